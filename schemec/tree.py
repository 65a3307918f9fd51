"""Immutable IR node base and the render fold shared by every IR family.

Nodes are frozen dataclasses.  Fields are declared with one of the field
helpers below (``ident()``, ``child()``, ``name_list()``, ...); on construction
identifiers are type-checked, collections are coerced to tuples and every
value is checked against the declared shape, so a built tree is immutable,
hashable, renders without error and only ever nests nodes of its own family.

Rendering is a post-order fold driven by an explicit work-stack: every node
exposes its ``children()`` and a ``format(parts, ordering)`` that receives the
already rendered children in the same order together with the output ordering
for unordered collections.  Deep trees therefore never touch the
interpreter recursion limit.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import field, fields
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .formatting import ORDERING_SORTED, check_ordering

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1

SHAPE = "shape"


def ident() -> Any:
    return field(metadata={SHAPE: "name"})


def flag() -> Any:
    return field(metadata={SHAPE: "flag"})


def child() -> Any:
    return field(metadata={SHAPE: "node"})


def child_list() -> Any:
    return field(metadata={SHAPE: "nodes"})


def name_list() -> Any:
    return field(metadata={SHAPE: "names"})


def binding_list() -> Any:
    return field(metadata={SHAPE: "bindings"})


def location_list() -> Any:
    return field(metadata={SHAPE: "locations"})


def conflict_graph() -> Any:
    return field(metadata={SHAPE: "graph"})


def frame_set() -> Any:
    return field(metadata={SHAPE: "frames"})


def int64() -> Any:
    return field(metadata={SHAPE: "int64"})


class Node:
    """Base of every IR node.  Family roots set ``_root = True``."""

    _root = False

    @classmethod
    def family(cls) -> type:
        for klass in cls.__mro__:
            if klass.__dict__.get("_root", False):
                return klass
        return Node

    def __post_init__(self) -> None:
        for spec in fields(self):
            shape = spec.metadata.get(SHAPE)
            if shape is None:
                continue
            value = _NORMALISERS[shape](self, spec.name, getattr(self, spec.name))
            object.__setattr__(self, spec.name, value)

    def children(self) -> Sequence["Node"]:
        return ()

    def format(self, parts: Sequence[str], ordering: str) -> str:
        raise NotImplementedError(type(self).__name__)

    def render(self, ordering: str = ORDERING_SORTED) -> str:
        return render(self, ordering)

    def __str__(self) -> str:
        return render(self)


def render(root: Node, ordering: str = ORDERING_SORTED) -> str:
    """Return the text form of ``root``; ``ordering`` orders name sets and maps."""

    check_ordering(ordering)
    results: List[str] = []
    stack: List[Tuple[Node, Optional[Tuple[Node, ...]]]] = [(root, None)]
    while stack:
        node, kids = stack.pop()
        if kids is None:
            kids = tuple(node.children())
            stack.append((node, kids))
            stack.extend((kid, None) for kid in reversed(kids))
            continue
        start = len(results) - len(kids)
        parts = results[start:]
        del results[start:]
        results.append(node.format(parts, ordering))
    return results[0]


# ---------------------------------------------------------------------------
# Field normalisation


def _where(owner: Node, name: str) -> str:
    return f"{type(owner).__name__}.{name}"


def _check_node(owner: Node, name: str, value: Any) -> Node:
    family = owner.family()
    if not isinstance(value, family):
        raise TypeError(f"{_where(owner, name)} expects a {family.__name__}, got {value!r}")
    return value


def _as_sequence(owner: Node, name: str, value: Any) -> Tuple[Any, ...]:
    if isinstance(value, (str, bytes, Node)) or not isinstance(value, Iterable):
        raise TypeError(f"{_where(owner, name)} expects a sequence, got {value!r}")
    return tuple(value)


def _as_pairs(owner: Node, name: str, value: Any) -> Tuple[Tuple[Any, Any], ...]:
    if isinstance(value, Mapping):
        return tuple(value.items())
    pairs = []
    for idx, entry in enumerate(_as_sequence(owner, name, value)):
        pair = () if isinstance(entry, (str, bytes)) or not isinstance(entry, Iterable) else tuple(entry)
        if len(pair) != 2:
            raise TypeError(f"{_where(owner, name)}[{idx}] expects a (name, value) pair, got {entry!r}")
        pairs.append(pair)
    return tuple(pairs)


def _coerce_name(owner: Node, name: str, value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{_where(owner, name)} expects names as strings, got {value!r}")
    return value


def _coerce_flag(owner: Node, name: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"{_where(owner, name)} expects a boolean, got {value!r}")
    return value


def _coerce_nodes(owner: Node, name: str, value: Any) -> Tuple[Node, ...]:
    return tuple(
        _check_node(owner, f"{name}[{idx}]", item)
        for idx, item in enumerate(_as_sequence(owner, name, value))
    )


def _coerce_names(owner: Node, name: str, value: Any) -> Tuple[str, ...]:
    return tuple(_coerce_name(owner, name, item) for item in _as_sequence(owner, name, value))


def _coerce_bindings(owner: Node, name: str, value: Any) -> Tuple[Tuple[str, Node], ...]:
    return tuple(
        (_coerce_name(owner, name, key), _check_node(owner, f"{name}[{key}]", item))
        for key, item in _as_pairs(owner, name, value)
    )


def _coerce_locations(owner: Node, name: str, value: Any) -> Tuple[Tuple[str, str], ...]:
    return tuple(
        (_coerce_name(owner, name, key), _coerce_name(owner, name, loc))
        for key, loc in _as_pairs(owner, name, value)
    )


def _coerce_graph(owner: Node, name: str, value: Any) -> Tuple[Tuple[str, Tuple[str, ...]], ...]:
    return tuple(
        (_coerce_name(owner, name, var), _coerce_names(owner, f"{name}[{var}]", conflicts))
        for var, conflicts in _as_pairs(owner, name, value)
    )


def _coerce_frames(owner: Node, name: str, value: Any) -> Tuple[Tuple[str, ...], ...]:
    return tuple(
        _coerce_names(owner, f"{name}[{idx}]", frame)
        for idx, frame in enumerate(_as_sequence(owner, name, value))
    )


def _coerce_int64(owner: Node, name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{_where(owner, name)} must be an integer, got {value!r}")
    if not INT64_MIN <= value <= INT64_MAX:
        raise ValueError(f"{_where(owner, name)} must fit in 64 bits, got {value}")
    return value


_NORMALISERS: Dict[str, Callable[[Node, str, Any], Any]] = {
    "name": _coerce_name,
    "flag": _coerce_flag,
    "node": _check_node,
    "nodes": _coerce_nodes,
    "names": _coerce_names,
    "bindings": _coerce_bindings,
    "locations": _coerce_locations,
    "graph": _coerce_graph,
    "frames": _coerce_frames,
    "int64": _coerce_int64,
}
