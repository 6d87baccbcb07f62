"""Tagged value tree for JSON-like records.

Records are parsed into a small closed union before any traversal::

    Node = Scalar | Marked | MappingNode | SequenceNode

``Marked`` is a single-key mapping ``{"$allot": value}``: the value under
the marker is secret-shared by ``allot`` (or, in a shard, is one node's
share). Allot and unify walk this union instead of probing dicts for
marker keys at every level.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Tuple, Union

from ..core.defaults import ALLOT_MARKER
from ..core.exceptions import InvalidRecordError

# Scalar types the secret-sharing primitive accepts
MARKABLE_TYPES = (int, str, bytes)


@dataclass(frozen=True)
class Scalar:
    """Plain leaf, copied unchanged to every shard."""

    value: Any


@dataclass(frozen=True)
class Marked:
    """Leaf that must be secret-shared (or a share, inside a shard)."""

    value: Any


@dataclass(frozen=True)
class MappingNode:
    fields: Dict[str, "Node"]


@dataclass(frozen=True)
class SequenceNode:
    items: Tuple["Node", ...]


Node = Union[Scalar, Marked, MappingNode, SequenceNode]


def child_path(path: str, key: Union[str, int]) -> str:
    """Human-readable location of a child, e.g. ``responses[0].rating``."""
    if isinstance(key, int):
        return f"{path}[{key}]"
    return f"{path}.{key}" if path else str(key)


def classify(obj: Any, marker: str = ALLOT_MARKER, path: str = "") -> Node:
    """Parse a JSON-like value into a ``Node`` tree.

    Raises:
        InvalidRecordError: If a mapping carries the marker next to other keys.
    """
    if isinstance(obj, dict):
        if marker in obj:
            if len(obj) != 1:
                raise InvalidRecordError(
                    f"Marked value at {path or '<root>'} must be a single-key "
                    f"mapping {{{marker!r}: value}}, got keys {sorted(obj)}"
                )
            return Marked(obj[marker])
        return MappingNode({
            key: classify(value, marker, child_path(path, key))
            for key, value in obj.items()
        })
    if isinstance(obj, (list, tuple)):
        return SequenceNode(tuple(
            classify(item, marker, child_path(path, i))
            for i, item in enumerate(obj)
        ))
    return Scalar(obj)


def to_plain(node: Node, marker: str = ALLOT_MARKER) -> Any:
    """Inverse of :func:`classify`."""
    if isinstance(node, Scalar):
        return node.value
    if isinstance(node, Marked):
        return {marker: node.value}
    if isinstance(node, MappingNode):
        return {key: to_plain(child, marker) for key, child in node.fields.items()}
    return [to_plain(child, marker) for child in node.items]


def iter_marked(node: Node, path: str = "") -> Iterator[Tuple[str, Marked]]:
    """Yield ``(path, Marked)`` for every marked leaf, depth first."""
    if isinstance(node, Marked):
        yield path, node
    elif isinstance(node, MappingNode):
        for key, child in node.fields.items():
            yield from iter_marked(child, child_path(path, key))
    elif isinstance(node, SequenceNode):
        for i, child in enumerate(node.items):
            yield from iter_marked(child, child_path(path, i))


def is_markable(value: Any) -> bool:
    """Whether ``value`` is a scalar the primitive can secret-share."""
    return isinstance(value, MARKABLE_TYPES) and not isinstance(value, bool)
