"""
Reference Resolver
==================
Finds the documents that reference, or declare, a clicked symbol.

Two search directions, chosen by the relationship categories of the click:
- usage search (clicked on metadata.name): every file that references the
  declared name via slotArchetype, archetypes, extends, starts or extensions
- declaration search (clicked on a reference): the file whose metadata.name
  declares the symbol, or failing that a file that starts a slot with it

Architecture:
- Candidate: a document plus the locator pattern that finds its anchor
- ReferenceResolver: scanner + classifier orchestration for one workspace
- find_candidates: one-shot functional entry point
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from fhirconnect.navigation.content import (
    ContentClassifier,
    is_context_content,
    normalize_content,
    normalize_symbol,
)
from fhirconnect.navigation.relationships import (
    DECLARATION_CLICKS,
    DECLARATION_PRIORITY,
    DEFAULT_RULES,
    USAGE_CLICKS,
    USAGE_PRIORITY,
    RelationshipCategory,
    RelationshipRule,
)
from fhirconnect.navigation.scanner import Document, WorkspaceScanner
from fhirconnect.utils.config import get_scan_config

logger = logging.getLogger(__name__)


@dataclass
class Candidate:
    """
    A document believed to hold the navigation target.

    Attributes:
        document: The candidate YAML document
        category: Relationship kind whose probe selected it
        pattern: Locator regex (one capturing group around the symbol)
        symbol: Normalised symbol the pattern was rendered for
    """

    document: Document
    category: RelationshipCategory
    pattern: str
    symbol: str

    @property
    def path(self) -> Path:
        return self.document.path

    @property
    def display_name(self) -> str:
        return self.document.name

    @property
    def is_context(self) -> bool:
        content = self.document.content
        return content is not None and is_context_content(normalize_content(content, self.symbol))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": str(self.path),
            "category": self.category.value,
            "context": self.is_context,
            "pattern": self.pattern,
        }


class ReferenceResolver:
    """
    Resolves clicked symbols to candidate documents within one workspace.

    The rule table and scanner settings are passed in; nothing is cached
    between calls.
    """

    def __init__(
        self,
        root: Path,
        rules: Optional[Mapping[RelationshipCategory, RelationshipRule]] = None,
        config: Optional[Dict[str, Any]] = None,
    ):
        self.root = Path(root)
        self.rules = dict(rules or DEFAULT_RULES)
        self.classifier = ContentClassifier(self.rules)
        scan_config = get_scan_config(self.root, config)
        self.scanner = WorkspaceScanner(
            self.root,
            exclude_dirs=scan_config["exclude_dirs"],
            extensions=scan_config["extensions"],
        )

    def _candidate(
        self, document: Document, category: RelationshipCategory, symbol: str
    ) -> Candidate:
        pattern = self.rules[category].locator_pattern(symbol)
        return Candidate(document=document, category=category, pattern=pattern, symbol=symbol)

    def find_candidates(
        self,
        current_file: Optional[Path],
        symbol: str,
        categories: Iterable[RelationshipCategory],
    ) -> List[Candidate]:
        """
        Find candidate documents for a clicked symbol.

        Args:
            current_file: File the click happened in (never a candidate)
            symbol: Clicked token, raw or normalised
            categories: Relationship categories implied by the click site

        Returns:
            Candidates in scan order. A file yields at most one candidate per
            search direction.
        """
        symbol = normalize_symbol(symbol)
        requested = set(categories)
        if not symbol or not requested:
            return []

        search_declarations = bool(requested & DECLARATION_CLICKS)
        search_usages = bool(requested & USAGE_CLICKS)

        candidates: List[Candidate] = []
        scanned = 0
        for document in self.scanner.scan():
            if current_file is not None and document.is_same_file(current_file):
                continue
            scanned += 1
            logger.debug("Reading file content: %s", document.path)

            if search_declarations:
                category = self.classifier.classify(document, symbol, DECLARATION_PRIORITY)
                if category is not None:
                    candidates.append(self._candidate(document, category, symbol))

            if search_usages:
                category = self.classifier.classify(document, symbol, USAGE_PRIORITY)
                if category is not None:
                    candidates.append(self._candidate(document, category, symbol))

        logger.info(
            "Resolved '%s' (%s) to %d candidate(s) across %d file(s)",
            symbol,
            ", ".join(sorted(c.value for c in requested)),
            len(candidates),
            scanned,
        )
        return candidates


def find_candidates(
    root: Path,
    current_file: Optional[Path],
    symbol: str,
    categories: Iterable[RelationshipCategory],
    rules: Optional[Mapping[RelationshipCategory, RelationshipRule]] = None,
    config: Optional[Dict[str, Any]] = None,
) -> List[Candidate]:
    """Resolve a symbol against a workspace root in one call."""
    return ReferenceResolver(root, rules=rules, config=config).find_candidates(
        current_file, symbol, categories
    )
