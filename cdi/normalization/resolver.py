from __future__ import annotations

"""Resolve free-text column headers and document headings to canonical ids."""

import logging
import re
from typing import Dict, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")
_NON_SLUG = re.compile(r"[^a-z0-9\s-]")
_HYPHENS = re.compile(r"-+")


def normalize_label(value: str) -> str:
    """Lower-case *value*, decode ``&amp;`` and collapse internal whitespace."""

    text = value.replace("&amp;", "&").lower()
    return _WHITESPACE.sub(" ", text).strip()


def slugify(value: str) -> str:
    """Return the machine id derived from a display name.

    ``"Business & Human Rights"`` becomes ``"business-human-rights"``.
    """

    text = value.replace("&amp;", "").replace("&", "").lower()
    text = _NON_SLUG.sub("", text)
    text = _WHITESPACE.sub("-", text.strip())
    text = _HYPHENS.sub("-", text)
    return text.strip("-")


class NameResolver:
    """Map human-readable labels to canonical entity ids.

    Lookup runs in three steps: an exact case-insensitive match against the
    known names (and the ids themselves), then a slug comparison against the
    ids in registration order (equality first, then containment in either
    direction). What happens when both fail depends on the caller, see
    :meth:`resolve` and :meth:`resolve_or_mint`.
    """

    def __init__(self, entries: Iterable[Tuple[str, str]] = ()) -> None:
        self._by_name: Dict[str, str] = {}
        self._ids: List[str] = []
        for name, entity_id in entries:
            self.add(name, entity_id)

    def add(self, name: str, entity_id: str) -> None:
        self._by_name.setdefault(normalize_label(name), entity_id)
        self._by_name.setdefault(normalize_label(entity_id), entity_id)
        if entity_id not in self._ids:
            self._ids.append(entity_id)

    def __contains__(self, entity_id: str) -> bool:
        return entity_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def resolve(self, label: str, *, fuzzy: bool = True) -> Optional[str]:
        """Return the id matching *label*, or ``None`` when nothing matches.

        With ``fuzzy=False`` only exact name and exact slug matches count.
        """

        if not label or not label.strip():
            return None
        exact = self._by_name.get(normalize_label(label))
        if exact:
            return exact
        slug = slugify(label)
        if not slug:
            return None
        if slug in self._ids:
            return slug
        if not fuzzy:
            return None
        for entity_id in self._ids:
            if slug in entity_id or entity_id in slug:
                return entity_id
        return None

    def resolve_or_mint(self, label: str) -> Tuple[str, bool]:
        """Resolve *label*, falling back to a freshly generated slug.

        Returns the id and whether it was minted rather than matched.
        """

        resolved = self.resolve(label)
        if resolved is not None:
            return resolved, False
        return slugify(label), True


__all__ = ["NameResolver", "normalize_label", "slugify"]
