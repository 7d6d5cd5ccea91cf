"""
Name Identity Service

Unifies the spellings of a person's name across the three record tables. Phone
system exports and the activity log rarely agree on spelling ("Jon Doe" vs
"Jon D."), so every raw name is mapped to one canonical key before folding.

Sources, in order:
1. Explicit alias mappings (NameAliasMapping rows).
2. The free-text ``alternative_names`` field of activity records, for pairs
   where neither name already appears in an explicit mapping.
3. A second pass over the explicit mappings that fixes the display alternate
   label of every canonical key they touch.

Names are normalized (trimmed, whitespace runs collapsed, case kept) and then
merged with a union-find so chains of aliases resolve transitively. The
canonical key of a group is its shortest member, ties broken by lexicographic
order, which makes canonicalization idempotent and independent of row order.
"""

import logging
import re
from typing import Dict, Iterable, Optional, Set

from teamscore.models.schemas import ActivityRecord, NameAliasMapping

logger = logging.getLogger(__name__)


_WHITESPACE = re.compile(r"\s+")


def normalize_name(name: Optional[str]) -> str:
    """
    Trim a name and collapse internal whitespace runs to single spaces.

    Args:
        name: Raw name, may be None.

    Returns:
        Normalized name; empty string for None or blank input.
    """
    if not name:
        return ""
    return _WHITESPACE.sub(" ", str(name)).strip()


def _canonical_order(name: str):
    return (len(name), name)


class NameIdentityResolver:
    """
    Many-to-one mapping from raw person names to canonical keys.

    Build one per report request with ``from_records``; the resolver is a
    snapshot of the alias tables at that time.

    Example:
        >>> resolver = NameIdentityResolver.from_records(
        ...     [NameAliasMapping(name="Jon Doe", alternative_name="Jon D.")], []
        ... )
        >>> resolver.canonicalize("Jon  Doe ")
        'Jon D.'
    """

    def __init__(self):
        self._parent: Dict[str, str] = {}
        self._alternates: Dict[str, str] = {}

    # =========================================================================
    # Union-find
    # =========================================================================

    def _find(self, name: str) -> str:
        root = name
        while self._parent.get(root, root) != root:
            root = self._parent[root]
        # Path compression
        while name != root:
            parent = self._parent.get(name, name)
            self._parent[name] = root
            name = parent
        return root

    def _union(self, first: str, second: str) -> str:
        self._parent.setdefault(first, first)
        self._parent.setdefault(second, second)
        root_a, root_b = self._find(first), self._find(second)
        if root_a == root_b:
            return root_a

        keep, absorb = sorted((root_a, root_b), key=_canonical_order)
        self._parent[absorb] = keep
        if absorb in self._alternates and keep not in self._alternates:
            self._alternates[keep] = self._alternates[absorb]
        self._alternates.pop(absorb, None)
        return keep

    # =========================================================================
    # Construction
    # =========================================================================

    def add_mapping(self, name: str, alternative_name: str) -> Optional[str]:
        """Merge two spellings; returns the canonical key or None if either is blank."""
        first, second = normalize_name(name), normalize_name(alternative_name)
        if not first or not second:
            return None
        return self._union(first, second)

    @classmethod
    def from_records(
        cls,
        mappings: Iterable[NameAliasMapping],
        activity_records: Iterable[ActivityRecord] = (),
    ) -> "NameIdentityResolver":
        """
        Build the resolver from explicit mappings and activity alias fields.

        Args:
            mappings: Explicit alias pairs from the alias table.
            activity_records: Activity records whose ``alternative_names``
                field may carry an additional alias.

        Returns:
            NameIdentityResolver
        """
        resolver = cls()
        mappings = list(mappings)
        explicit: Set[str] = set()

        for mapping in mappings:
            if resolver.add_mapping(mapping.name, mapping.alternative_name) is not None:
                explicit.add(normalize_name(mapping.name))
                explicit.add(normalize_name(mapping.alternative_name))

        inferred = 0
        for record in activity_records:
            person = normalize_name(record.person_name)
            alias = normalize_name(record.alternative_names)
            if not person or not alias or person == alias:
                continue
            if person in explicit or alias in explicit:
                continue
            canonical = resolver._union(person, alias)
            resolver._alternates[canonical] = alias if canonical == person else person
            inferred += 1

        # Explicit mappings own the display label of the keys they produced
        for mapping in mappings:
            first = normalize_name(mapping.name)
            second = normalize_name(mapping.alternative_name)
            if not first or not second:
                continue
            canonical = resolver._find(first)
            other = second if canonical == first else first
            if other != canonical:
                resolver._alternates[canonical] = other

        logger.debug(
            "Name identity built from %d explicit mappings and %d activity aliases",
            len(mappings),
            inferred,
        )
        return resolver

    # =========================================================================
    # Lookups
    # =========================================================================

    def canonicalize(self, name: Optional[str]) -> str:
        """Return the canonical key for a raw name; unknown names map to themselves."""
        normalized = normalize_name(name)
        if normalized not in self._parent:
            return normalized
        return self._find(normalized)

    def alternate_name_for(self, canonical: str) -> Optional[str]:
        """Display alias recorded for a canonical key, if any."""
        return self._alternates.get(canonical)

    def build_lookup(self) -> Dict[str, str]:
        """Snapshot of every known normalized name and its canonical key."""
        return {name: self._find(name) for name in list(self._parent)}


__all__ = [
    "normalize_name",
    "NameIdentityResolver",
]
