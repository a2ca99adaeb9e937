"""
Anchor Locator
==============
Finds where a matched symbol begins inside a single candidate document.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional, Union

from fhirconnect.navigation.relationships import LOCATOR_FLAGS
from fhirconnect.navigation.scanner import read_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Position:
    """Zero-based line/column of a match inside a document."""

    line: int
    column: int

    def __str__(self) -> str:
        # Editors display one-based positions
        return f"{self.line + 1}:{self.column + 1}"


def offset_to_position(content: str, offset: int) -> Position:
    """Convert a character offset into a line/column position."""
    line = content.count("\n", 0, offset)
    line_start = content.rfind("\n", 0, offset) + 1
    return Position(line=line, column=offset - line_start)


def locate_anchor(
    content: str,
    pattern: Union[str, "re.Pattern[str]"],
    symbol: str = "",
) -> Optional[Position]:
    """
    Locate the first capturing-group match of pattern in content.

    Args:
        content: Document text
        pattern: Locator regex with one capturing group
        symbol: Symbol being located (for logging only)

    Returns:
        Position of group 1 in the first match where it participated,
        or None if nothing matched
    """
    regex = pattern if isinstance(pattern, re.Pattern) else re.compile(pattern, LOCATOR_FLAGS)

    for match in regex.finditer(content):
        start = match.start(1)
        if start >= 0:
            return offset_to_position(content, start)

    logger.debug("No anchor for '%s' found with pattern %s", symbol, regex.pattern)
    return None


class AnchorLocator:
    """Locates anchors in candidate files read from disk."""

    def locate(self, candidate) -> Optional[Position]:
        """
        Locate the anchor of a resolver candidate.

        Reads the file fresh, so edits made since the scan are honoured.
        """
        content = read_text(candidate.path)
        if content is None:
            return None

        position = locate_anchor(content, candidate.pattern, candidate.symbol)
        if position is not None:
            logger.info(
                "Anchor '%s' found in %s at line %d, character %d",
                candidate.symbol, candidate.path, position.line, position.column,
            )
        return position
