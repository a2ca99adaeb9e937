"""
Navigation CLI Command
======================
Host-side driver around the resolver: click -> candidates -> choice -> anchor.

The resolver itself is a pure function over workspace files. This command
plays the editor's part: it interprets a click position, picks one candidate
(directly, or through a chooser when several qualify) and hands the final
file/position to a sink callback.

Commands:
- goto: navigate from a file position
- candidates: list candidates for a symbol
- scan: list the documents the scanner sees
- keys: list navigable key paths

Usage:
    fhirconnect goto mappings/patient.yaml 3 11
    fhirconnect goto mappings/patient.yaml 3 11 --pick 2
    fhirconnect candidates mappings/patient.yaml Patient --category metadata.name
    fhirconnect scan --format json
"""
from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from fhirconnect.errors import ClickSiteError
from fhirconnect.navigation.click_site import ClickSite, NavigationClassifier
from fhirconnect.navigation.locator import AnchorLocator, Position
from fhirconnect.navigation.relationships import NAVIGABLE_KEY_PATHS, RelationshipCategory
from fhirconnect.navigation.resolver import Candidate, ReferenceResolver
from fhirconnect.navigation.scanner import read_text
from fhirconnect.navigation.yaml_tree import YamlDocument
from fhirconnect.utils.config import load_config
from fhirconnect.utils.repo import find_workspace_root

logger = logging.getLogger(__name__)

Chooser = Callable[[List[Candidate]], Optional[Candidate]]
Sink = Callable[["NavigationTarget"], None]


@dataclass
class NavigationTarget:
    """Final destination of a navigation request."""

    path: Path
    position: Position
    category: RelationshipCategory

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": str(self.path),
            "line": self.position.line + 1,
            "column": self.position.column + 1,
            "category": self.category.value,
        }


def prompt_chooser(candidates: List[Candidate]) -> Optional[Candidate]:
    """Interactive chooser: numbered list on stdout, selection from stdin."""
    print("Multiple Destinations Found, Select One")
    for index, candidate in enumerate(candidates, 1):
        print(f"  {index}. {candidate.display_name}  ({candidate.category.value})")
    response = input("   > ").strip()
    if not response.isdigit() or not 1 <= int(response) <= len(candidates):
        print("Navigation cancelled")
        return None
    return candidates[int(response) - 1]


def index_chooser(pick: int) -> Chooser:
    """Chooser selecting the one-based pick-th candidate."""

    def choose(candidates: List[Candidate]) -> Optional[Candidate]:
        if 1 <= pick <= len(candidates):
            return candidates[pick - 1]
        logger.warning("Pick %d out of range (1-%d)", pick, len(candidates))
        return None

    return choose


class NavigateCommand:
    """
    Navigation command handler for one workspace.

    Nothing is cached between requests: each call rescans the workspace.
    """

    def __init__(self, repo_root: Optional[Path] = None, config: Optional[Dict[str, Any]] = None):
        self.repo_root = repo_root or find_workspace_root()
        self.config = load_config(self.repo_root) if config is None else config
        self.classifier = NavigationClassifier()
        self.resolver = ReferenceResolver(self.repo_root, config=self.config)
        self.locator = AnchorLocator()

    def click_site(self, file: Path, line: int, column: int) -> ClickSite:
        """
        Interpret a click at a zero-based position in file.

        Unreadable or unparsable files are reported as not navigable.
        """
        text = read_text(Path(file))
        if text is None:
            return ClickSite(key="", key_path="", is_navigable=False)

        try:
            document = YamlDocument(text)
        except ClickSiteError as e:
            logger.debug("Not navigable, %s: %s", file, e)
            return ClickSite(key="", key_path="", is_navigable=False)

        offset = document.offset_of(line, column)
        return self.classifier.classify(document.key_value_at(offset), offset)

    def select(self, candidates: List[Candidate], chooser: Optional[Chooser] = None) -> Optional[Candidate]:
        """One candidate is taken directly; several go through the chooser."""
        if not candidates:
            return None
        if len(candidates) == 1:
            return candidates[0]
        if chooser is None:
            logger.info("%d candidates and no chooser, not navigating", len(candidates))
            return None
        return chooser(candidates)

    def navigate(
        self,
        file: Path,
        line: int,
        column: int,
        chooser: Optional[Chooser] = None,
        sink: Optional[Sink] = None,
    ) -> Optional[NavigationTarget]:
        """
        Resolve a click at a zero-based position to a navigation target.

        Args:
            file: File the click happened in
            line: Zero-based line
            column: Zero-based column
            chooser: Picks one candidate when several qualify
            sink: Receives the target (the editor "open and move caret" step)

        Returns:
            The target, or None when no navigation occurs
        """
        site = self.click_site(file, line, column)
        if not site.is_navigable:
            return None

        candidates = self.resolver.find_candidates(Path(file), site.symbol, site.requested_categories)
        chosen = self.select(candidates, chooser)
        if chosen is None:
            return None

        position = self.locator.locate(chosen)
        if position is None:
            return None

        target = NavigationTarget(path=chosen.path, position=position, category=chosen.category)
        if sink is not None:
            sink(target)
        return target

    # ------------------------------------------------------------------
    # CLI commands
    # ------------------------------------------------------------------

    def goto(
        self,
        file: Path,
        line: int,
        column: int,
        pick: Optional[int] = None,
        format: str = "text",
    ) -> int:
        """
        Navigate from a one-based file position and print the destination.

        Returns:
            Exit code (0 if a destination was found, 1 if not)
        """
        chooser = index_chooser(pick) if pick is not None else prompt_chooser
        try:
            target = self.navigate(Path(file), line - 1, column - 1, chooser=chooser)
        except Exception as e:
            print(f"Error navigating: {e}", file=sys.stderr)
            return 1

        if format == "json":
            print(json.dumps(target.to_dict() if target else None, indent=2))
        elif target is not None:
            print(f"{target.path}:{target.position}")
        else:
            print("No destination found")

        return 0 if target is not None else 1

    def candidates(
        self,
        file: Optional[Path],
        symbol: str,
        categories: Optional[Iterable[str]] = None,
        format: str = "text",
    ) -> int:
        """
        List candidates for a symbol, with the anchor found in each.

        Args:
            file: Current file (excluded from results)
            symbol: Symbol to resolve
            categories: Category key paths (default: metadata.name)
            format: Output format - "text" or "json"

        Returns:
            Exit code (0 if any candidate found, 1 if not)
        """
        try:
            requested = [
                RelationshipCategory(value)
                for value in (categories or [RelationshipCategory.METADATA_NAME.value])
            ]
            found = self.resolver.find_candidates(
                Path(file) if file else None, symbol, requested
            )

            if format == "json":
                output = []
                for candidate in found:
                    entry = candidate.to_dict()
                    position = self.locator.locate(candidate)
                    entry["anchor"] = (
                        {"line": position.line + 1, "column": position.column + 1} if position else None
                    )
                    output.append(entry)
                print(json.dumps(output, indent=2))
            else:
                for candidate in found:
                    position = self.locator.locate(candidate)
                    anchor = f":{position}" if position else ""
                    kind = "context" if candidate.is_context else "mapping"
                    print(f"  {candidate.category.value:<14} {kind:<8} {candidate.path}{anchor}")
                print(f"\nTotal: {len(found)} candidate(s)")

            return 0 if found else 1

        except Exception as e:
            print(f"Error resolving candidates: {e}", file=sys.stderr)
            return 1

    def scan(self, format: str = "text") -> int:
        """List the YAML documents the workspace scanner enumerates."""
        paths = [str(p) for p in self.resolver.scanner.iter_paths()]
        if format == "json":
            print(json.dumps(paths, indent=2))
        else:
            for path in paths:
                print(f"  {path}")
            print(f"\nTotal: {len(paths)} documents")
        return 0

    def keys(self) -> int:
        """List navigable key paths."""
        print("Navigable key paths:")
        for path in sorted(NAVIGABLE_KEY_PATHS):
            print(f"  - {path}")
        return 0
