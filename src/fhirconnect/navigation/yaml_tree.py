"""
YAML structure adapter.

Wraps PyYAML's composer output in a parent-linked element tree with text
ranges, which is all the click-site classifier needs:

    KEY_VALUE -> MAPPING -> KEY_VALUE                       (direct nesting)
    KEY_VALUE -> MAPPING -> SEQUENCE_ITEM -> SEQUENCE -> KEY_VALUE   (list nesting)

``logical_parent`` hides the difference between the two shapes.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional

import yaml

from fhirconnect.errors import ClickSiteError


class ElementKind(Enum):
    MAPPING = "mapping"
    SEQUENCE = "sequence"
    SEQUENCE_ITEM = "sequence_item"
    KEY_VALUE = "key_value"
    SCALAR = "scalar"


@dataclass(eq=False)
class YamlElement:
    """
    One structural element of a composed YAML document.

    Attributes:
        kind: Structural kind
        start: Character offset where the element begins
        end: Character offset where the element ends
        parent: Enclosing element, None at document level
        key: Key text (KEY_VALUE only)
        value: Scalar text (SCALAR only)
        children: Nested elements in document order
    """

    kind: ElementKind
    start: int
    end: int
    parent: Optional["YamlElement"] = None
    key: Optional[str] = None
    value: Optional[str] = None
    children: List["YamlElement"] = field(default_factory=list)

    def contains(self, offset: int) -> bool:
        return self.start <= offset <= self.end

    @property
    def key_element(self) -> Optional["YamlElement"]:
        if self.kind is ElementKind.KEY_VALUE and self.children:
            return self.children[0]
        return None

    @property
    def value_element(self) -> Optional["YamlElement"]:
        if self.kind is ElementKind.KEY_VALUE and len(self.children) > 1:
            return self.children[1]
        return None

    def walk(self) -> Iterator["YamlElement"]:
        yield self
        for child in self.children:
            yield from child.walk()


def logical_parent(key_value: YamlElement) -> Optional[YamlElement]:
    """
    Return the key-value that structurally owns this key-value.

    A key directly under a mapping is owned by the key-value holding that
    mapping. A key inside a list-of-mappings entry sits two levels deeper
    (item, then sequence) before the owning key-value is reached.
    """
    mapping = key_value.parent
    if mapping is None or mapping.kind is not ElementKind.MAPPING:
        return None

    holder = mapping.parent
    if holder is None:
        return None
    if holder.kind is ElementKind.KEY_VALUE:
        return holder
    if holder.kind is ElementKind.SEQUENCE_ITEM:
        sequence = holder.parent
        owner = sequence.parent if sequence is not None else None
        if owner is not None and owner.kind is ElementKind.KEY_VALUE:
            return owner
    return None


def key_path(key_value: YamlElement) -> str:
    """Dotted key path from the outermost reachable key-value down to this one."""
    keys = []
    current: Optional[YamlElement] = key_value
    while current is not None:
        keys.append(current.key or "")
        current = logical_parent(current)
    return ".".join(reversed(keys))


def _scalar_text(node: yaml.Node) -> str:
    if isinstance(node, yaml.ScalarNode):
        return node.value
    return ""


def _build(node: yaml.Node, parent: Optional[YamlElement]) -> YamlElement:
    start, end = node.start_mark.index, node.end_mark.index

    if isinstance(node, yaml.MappingNode):
        mapping = YamlElement(ElementKind.MAPPING, start, end, parent)
        for key_node, value_node in node.value:
            pair = YamlElement(
                ElementKind.KEY_VALUE,
                key_node.start_mark.index,
                max(key_node.end_mark.index, value_node.end_mark.index),
                mapping,
                key=_scalar_text(key_node),
            )
            pair.children.append(_build(key_node, pair))
            pair.children.append(_build(value_node, pair))
            mapping.children.append(pair)
        return mapping

    if isinstance(node, yaml.SequenceNode):
        sequence = YamlElement(ElementKind.SEQUENCE, start, end, parent)
        for item_node in node.value:
            item = YamlElement(
                ElementKind.SEQUENCE_ITEM,
                item_node.start_mark.index,
                item_node.end_mark.index,
                sequence,
            )
            item.children.append(_build(item_node, item))
            sequence.children.append(item)
        return sequence

    return YamlElement(ElementKind.SCALAR, start, end, parent, value=_scalar_text(node))


class YamlDocument:
    """A YAML text composed into element trees (one per YAML document)."""

    def __init__(self, text: str):
        self.text = text
        self.roots: List[YamlElement] = parse(text)

    def offset_of(self, line: int, column: int) -> int:
        """Zero-based line/column to character offset, clamped to the text."""
        offset = 0
        for index, raw_line in enumerate(self.text.splitlines(keepends=True)):
            if index == line:
                content_length = len(raw_line.rstrip("\r\n"))
                return offset + min(max(column, 0), content_length)
            offset += len(raw_line)
        return len(self.text)

    def _innermost(self, offset: int, kind: ElementKind) -> Optional[YamlElement]:
        found = None
        for root in self.roots:
            for element in root.walk():
                if element.kind is kind and element.contains(offset):
                    # walk() is pre-order, so later hits are nested deeper
                    found = element
        return found

    def key_value_at(self, offset: int) -> Optional[YamlElement]:
        """Innermost key-value whose range covers offset."""
        return self._innermost(offset, ElementKind.KEY_VALUE)

    def scalar_at(self, offset: int) -> Optional[YamlElement]:
        """Scalar token under offset."""
        return self._innermost(offset, ElementKind.SCALAR)


def parse(text: str) -> List[YamlElement]:
    """
    Compose YAML text into element trees.

    Raises:
        ClickSiteError: If the text is not composable YAML
    """
    try:
        nodes = [node for node in yaml.compose_all(text, Loader=yaml.SafeLoader) if node is not None]
    except yaml.YAMLError as e:
        raise ClickSiteError(f"Cannot parse YAML: {e}") from e
    return [_build(node, None) for node in nodes]


def find_key_value_at(text: str, line: int, column: int) -> Optional[YamlElement]:
    """Innermost key-value at a zero-based editor position."""
    document = YamlDocument(text)
    return document.key_value_at(document.offset_of(line, column))
