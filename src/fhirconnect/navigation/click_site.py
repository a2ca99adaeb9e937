"""
Navigation Classifier
=====================
Interprets the YAML key the user clicked: is it navigable, and which
relationship kind does the click imply?

Navigable key paths are either simple keys (``slotArchetype``) matched on the
key text alone, or dotted paths (``metadata.name``) whose leading segments
must match the chain of enclosing keys, direct or list-nested.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional, Set, Tuple

from fhirconnect.navigation.relationships import (
    NAVIGABLE_KEY_PATHS,
    RelationshipCategory,
)
from fhirconnect.navigation.yaml_tree import (
    ElementKind,
    YamlElement,
    key_path,
    logical_parent,
)

logger = logging.getLogger(__name__)

# Categories searched when a reference (not a declaration) is clicked
DECLARATION_SEARCH = frozenset({
    RelationshipCategory.SLOT_ARCHETYPE,
    RelationshipCategory.ARCHETYPES,
    RelationshipCategory.START,
})


@dataclass
class ClickSite:
    """
    The interpreted click.

    Attributes:
        key: Text of the clicked key
        key_path: Dotted path of the key from the document root
        is_navigable: True if the key is one of the navigable key paths
        category: Relationship kind implied by the click, if navigable
        symbol: Scalar text under the cursor (quotes removed), if any
    """

    key: str
    key_path: str
    is_navigable: bool
    category: Optional[RelationshipCategory] = None
    symbol: Optional[str] = None

    @property
    def requested_categories(self) -> Set[RelationshipCategory]:
        """Categories handed to the resolver for this click."""
        if self.category is None:
            return set()
        if self.category is RelationshipCategory.METADATA_NAME:
            return {RelationshipCategory.METADATA_NAME}
        return set(DECLARATION_SEARCH) | {self.category}


class NavigationClassifier:
    """Decides navigability of clicked key-values against a key path set."""

    def __init__(self, navigable_key_paths: Iterable[str] = NAVIGABLE_KEY_PATHS):
        self.key_paths: FrozenSet[str] = frozenset(navigable_key_paths)
        self.simple_keys = frozenset(p for p in self.key_paths if "." not in p)
        self.dotted_paths = tuple(sorted(p for p in self.key_paths if "." in p))

    def match(self, key_value: Optional[YamlElement]) -> Optional[str]:
        """
        Return the navigable key path matched by a key-value, or None.

        Simple keys match on their text. For a dotted path whose last segment
        equals the key text, enclosing keys are compared segment by segment
        while ascending; running out of parents or a mismatch means no match.
        """
        if key_value is None or key_value.kind is not ElementKind.KEY_VALUE:
            return None

        text = key_value.key or ""
        if text in self.simple_keys:
            return text

        for dotted in self.dotted_paths:
            if dotted.split(".")[-1] == text and self._ancestry_matches(key_value, dotted):
                return dotted
        return None

    @staticmethod
    def _ancestry_matches(key_value: YamlElement, dotted: str) -> bool:
        segments = dotted.split(".")
        current: Optional[YamlElement] = key_value
        while segments:
            if current is None or current.key != segments[-1]:
                return False
            segments.pop()
            if segments:
                current = logical_parent(current)
        return True

    def is_navigable(self, key_value: Optional[YamlElement]) -> bool:
        return self.match(key_value) is not None

    def classify(self, key_value: Optional[YamlElement], offset: Optional[int] = None) -> ClickSite:
        """
        Interpret a clicked key-value.

        Args:
            key_value: Innermost key-value around the click
            offset: Click offset, used to pick the scalar under the cursor

        Returns:
            ClickSite (never raises; structural misses are "not navigable")
        """
        if key_value is None or key_value.kind is not ElementKind.KEY_VALUE:
            return ClickSite(key="", key_path="", is_navigable=False)

        site = ClickSite(
            key=key_value.key or "",
            key_path=key_path(key_value),
            is_navigable=False,
            symbol=_clicked_symbol(key_value, offset),
        )

        matched = self.match(key_value)
        if matched is None:
            return site
        if not site.symbol:
            logger.debug("Key %s has no value to navigate from", site.key_path)
            return site

        site.is_navigable = True
        site.category = RelationshipCategory.from_key_path(matched)
        logger.debug("Clicked on key: %s, word: %s", site.key_path, site.symbol)
        return site


def _clicked_symbol(key_value: YamlElement, offset: Optional[int]) -> Optional[str]:
    """
    Scalar text the click refers to.

    A click on a value scalar (including a list item) uses that scalar; a
    click on the key itself, or with no offset, falls back to a plain scalar
    value.
    """
    value = key_value.value_element
    if value is None:
        return None

    if offset is not None and value.contains(offset):
        scalars = [e for e in value.walk() if e.kind is ElementKind.SCALAR and e.contains(offset)]
        if scalars:
            return scalars[-1].value or None

    if value.kind is ElementKind.SCALAR:
        return value.value or None
    return None


def classify_key_path(path: str, navigable_key_paths: Iterable[str] = NAVIGABLE_KEY_PATHS) -> Tuple[bool, Optional[RelationshipCategory]]:
    """
    Classify a dotted key path without a parsed tree.

    Args:
        path: Dotted path of the clicked key from the document root

    Returns:
        (is_navigable, category)
    """
    segments = path.split(".")
    for candidate in sorted(navigable_key_paths, key=lambda p: -p.count(".")):
        candidate_segments = candidate.split(".")
        if "." not in candidate:
            if segments[-1] == candidate:
                return True, RelationshipCategory.from_key_path(candidate)
        elif segments[-len(candidate_segments):] == candidate_segments:
            return True, RelationshipCategory.from_key_path(candidate)
    return False, None


def classify_click_site(key_value: Optional[YamlElement], offset: Optional[int] = None) -> ClickSite:
    """Classify a clicked key-value with the default navigable key paths."""
    return NavigationClassifier().classify(key_value, offset)
