from __future__ import annotations

import pytest

from cdi.normalization.resolver import NameResolver, normalize_label, slugify


@pytest.mark.parametrize(
    "value, expected",
    [
        ("Business & Human Rights", "business-human-rights"),
        ("Business &amp; Human Rights", "business-human-rights"),
        ("  Anti-corruption ", "anti-corruption"),
        ("CO2 (per capita)", "co2-per-capita"),
        ("Trade", "trade"),
    ],
)
def test_slugify(value: str, expected: str) -> None:
    assert slugify(value) == expected


def test_normalize_label_collapses_whitespace_and_entities() -> None:
    assert normalize_label("  Business &amp;   Human Rights ") == "business & human rights"


def test_resolution_is_idempotent_on_canonical_ids() -> None:
    resolver = NameResolver([("Development Finance", "development-finance"), ("Trade", "trade")])

    assert resolver.resolve("development-finance") == "development-finance"
    assert resolver.resolve(resolver.resolve("Development Finance")) == "development-finance"


def test_resolution_steps() -> None:
    resolver = NameResolver(
        [("Business & Human Rights", "business-human-rights"), ("Financial Secrecy", "financial-secrecy")]
    )

    assert resolver.resolve("BUSINESS &amp; HUMAN RIGHTS") == "business-human-rights"
    assert resolver.resolve("Financial-Secrecy") == "financial-secrecy"
    assert resolver.resolve("Secrecy") == "financial-secrecy"
    assert resolver.resolve("Secrecy", fuzzy=False) is None
    assert resolver.resolve("Weather") is None
    assert resolver.resolve("   ") is None


def test_mint_versus_unmapped_fallback() -> None:
    resolver = NameResolver([("Trade", "trade")])

    assert resolver.resolve_or_mint("Trade") == ("trade", False)
    assert resolver.resolve_or_mint("Ocean Health") == ("ocean-health", True)
    assert resolver.resolve("Ocean Health") is None
