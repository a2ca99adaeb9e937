"""
Content Classifier
==================
Decides which relationship kinds a document plausibly contains for a symbol.

Matching is done on raw text, never on a parsed tree, so malformed or
half-edited YAML still classifies. Comparison is case-insensitive and
ignores spaces and quoting style.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, Mapping, Optional

from fhirconnect.navigation.relationships import (
    DEFAULT_RULES,
    RelationshipCategory,
    RelationshipRule,
)
from fhirconnect.navigation.scanner import Document

logger = logging.getLogger(__name__)

QUOTE_CHARS = "\"'"
CONTEXT_MARKER = "text:context"


def normalize_symbol(symbol: str) -> str:
    """Lower-case a clicked token, dropping surrounding quotes and all whitespace."""
    return "".join(symbol.strip().strip(QUOTE_CHARS).lower().split())


def normalize_content(content: str, symbol: str) -> str:
    """
    Normalise document text for substring probing.

    Lower-cases, strips spaces and tabs, then collapses quoted occurrences of
    the symbol so ``slotArchetype: "Foo"`` and ``slotArchetype: Foo`` read the
    same.
    """
    text = content.lower().replace(" ", "").replace("\t", "")
    if symbol:
        for quote in QUOTE_CHARS:
            text = text.replace(f"{quote}{symbol}{quote}", symbol)
    return text


def is_context_content(normalized: str) -> bool:
    """True if the text carries the context document marker."""
    return CONTEXT_MARKER in normalized


class ContentClassifier:
    """Probes document text against a relationship rule table."""

    def __init__(self, rules: Optional[Mapping[RelationshipCategory, RelationshipRule]] = None):
        self.rules: Dict[RelationshipCategory, RelationshipRule] = dict(rules or DEFAULT_RULES)

    def matches(
        self,
        category: RelationshipCategory,
        content: str,
        normalized: str,
        symbol: str,
    ) -> bool:
        """
        Run the probe for one category.

        Args:
            category: Relationship kind to probe for
            content: Raw document text
            normalized: ``normalize_content(content, symbol)``
            symbol: Normalised symbol

        Returns:
            True if the document plausibly contains this relationship
        """
        rule = self.rules.get(category)
        if rule is None:
            return False

        probe = rule.compile_probe(symbol)
        if probe is not None:
            return probe.search(normalized) is not None
        return rule.compile_locator(symbol).search(content) is not None

    def classify(
        self,
        document: Document,
        symbol: str,
        priority: Iterable[RelationshipCategory],
    ) -> Optional[RelationshipCategory]:
        """
        Return the first category in priority order whose probe hits.

        Later categories are not probed once one matches, so a document
        contributes at most one relationship per call.
        """
        content = document.content
        if content is None or not symbol:
            return None

        normalized = normalize_content(content, symbol)
        for category in priority:
            if self.matches(category, content, normalized, symbol):
                logger.debug("%s matches %s for '%s'", document.path, category.value, symbol)
                return category
        return None
