"""Name resolution and cell parsing for the wide source tables."""
from __future__ import annotations

from .resolver import NameResolver, normalize_label, slugify

__all__ = ["NameResolver", "normalize_label", "slugify"]
