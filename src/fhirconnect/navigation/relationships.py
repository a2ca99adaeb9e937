"""
Relationship Table
==================
The kinds of cross-file reference a FHIR-Connect mapping can make, and how
each one is found in raw YAML text.

Each category carries:
- probe:   a cheap substring template tested against normalised text
           (lower-cased, spaces stripped, quotes collapsed). ``None`` means the
           locator pattern itself is used as the probe, for multi-line shapes
           that cannot survive space stripping.
- locator: a regex template with exactly one capturing group around the
           symbol, searched case-insensitively in multi-line mode.

Templates use ``{symbol}`` as the placeholder. The table is plain data:
pass a different mapping to the resolver to extend or override it.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple


class RelationshipCategory(Enum):
    """Kinds of cross-file reference. Values are the YAML key paths."""

    SLOT_ARCHETYPE = "slotArchetype"
    METADATA_NAME = "metadata.name"
    ARCHETYPES = "archetypes"
    START = "start"
    EXTENDS = "extends"
    EXTENSIONS = "extensions"

    @classmethod
    def from_key_path(cls, key_path: str) -> Optional["RelationshipCategory"]:
        for category in cls:
            if category.value == key_path:
                return category
        return None


# Characters that may continue an archetype identifier
# (e.g. openEHR-EHR-OBSERVATION.blood_pressure.v2)
IDENTIFIER_CHARS = r"\w.\-"

# Value tail shared by all locators: optional quote, optional padding, symbol
_VALUE = r"[ \t]*[\"']?[ \t]*({symbol})(?![" + IDENTIFIER_CHARS + r"])"

# Indented (or blank) lines inside a block, consumed lazily
_BLOCK_LINES = r"(?:(?:[ \t]+.*)?\r?\n)*?"

# Sequence items, comments or blank lines inside a block sequence
_SEQUENCE_LINES = r"(?:[ \t]*(?:-.*|#.*)?\r?\n)*?"


@dataclass(frozen=True)
class RelationshipRule:
    """Probe and locator templates for one relationship category."""

    category: RelationshipCategory
    locator: str
    probe: Optional[str] = None

    def locator_pattern(self, symbol: str) -> str:
        """Render the locator regex for a normalised symbol."""
        return self.locator.replace("{symbol}", symbol_regex(symbol))

    def compile_locator(self, symbol: str) -> "re.Pattern[str]":
        return re.compile(self.locator_pattern(symbol), LOCATOR_FLAGS)

    def compile_probe(self, symbol: str) -> Optional["re.Pattern[str]"]:
        """Compile the substring probe, guarded against longer identifiers."""
        if self.probe is None:
            return None
        needle = self.probe.replace("{symbol}", symbol)
        # A dash after a line break is a sequence marker, after a word it is part of the key
        return re.compile(
            r"(?<![\w.])(?<![\w.]-)" + re.escape(needle) + r"(?![" + IDENTIFIER_CHARS + r"])"
        )


LOCATOR_FLAGS = re.IGNORECASE | re.MULTILINE


def symbol_regex(symbol: str) -> str:
    """
    Regex for a normalised symbol that tolerates interior spaces.

    The symbol has had its spaces stripped, so a source value such as
    ``"Pa tient"`` must still be matched by the symbol ``patient``.
    """
    return r"[ \t]*".join(re.escape(ch) for ch in symbol)


DEFAULT_RULES: Dict[RelationshipCategory, RelationshipRule] = {
    RelationshipCategory.METADATA_NAME: RelationshipRule(
        category=RelationshipCategory.METADATA_NAME,
        locator=(
            r"^[ \t]*(?:-[ \t]*)?metadata:[ \t]*\r?\n"
            + _BLOCK_LINES
            + r"[ \t]+name:"
            + _VALUE
        ),
    ),
    RelationshipCategory.SLOT_ARCHETYPE: RelationshipRule(
        category=RelationshipCategory.SLOT_ARCHETYPE,
        locator=r"(?<![" + IDENTIFIER_CHARS + r"])slotArchetype:" + _VALUE,
        probe="slotarchetype:{symbol}",
    ),
    RelationshipCategory.ARCHETYPES: RelationshipRule(
        category=RelationshipCategory.ARCHETYPES,
        locator=r"^[ \t]*archetypes:[ \t]*\r?\n" + _SEQUENCE_LINES + r"[ \t]*-" + _VALUE,
    ),
    RelationshipCategory.EXTENSIONS: RelationshipRule(
        category=RelationshipCategory.EXTENSIONS,
        locator=r"^[ \t]*extensions:[ \t]*\r?\n" + _SEQUENCE_LINES + r"[ \t]*-" + _VALUE,
    ),
    RelationshipCategory.START: RelationshipRule(
        category=RelationshipCategory.START,
        locator=r"(?<![" + IDENTIFIER_CHARS + r"])starts:" + _VALUE,
        probe="starts:{symbol}",
    ),
    RelationshipCategory.EXTENDS: RelationshipRule(
        category=RelationshipCategory.EXTENDS,
        locator=(
            r"^[ \t]*spec:[ \t]*\r?\n"
            + _BLOCK_LINES
            + r"[ \t]+extends:"
            + _VALUE
        ),
    ),
}

# Clicking a declaration (metadata.name) looks for usages, first hit per file wins
USAGE_PRIORITY: Tuple[RelationshipCategory, ...] = (
    RelationshipCategory.SLOT_ARCHETYPE,
    RelationshipCategory.ARCHETYPES,
    RelationshipCategory.EXTENDS,
    RelationshipCategory.START,
    RelationshipCategory.EXTENSIONS,
)

# Clicking a usage looks for the declaration, falling back to a slot start
DECLARATION_PRIORITY: Tuple[RelationshipCategory, ...] = (
    RelationshipCategory.METADATA_NAME,
    RelationshipCategory.START,
)

USAGE_CLICKS = frozenset({RelationshipCategory.METADATA_NAME})
DECLARATION_CLICKS = frozenset({
    RelationshipCategory.SLOT_ARCHETYPE,
    RelationshipCategory.ARCHETYPES,
    RelationshipCategory.START,
    RelationshipCategory.EXTENDS,
    RelationshipCategory.EXTENSIONS,
})

NAVIGABLE_KEY_PATHS = frozenset(category.value for category in RelationshipCategory)
