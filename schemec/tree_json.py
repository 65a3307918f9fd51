"""JSON interchange for IR trees.

Trees are exchanged as documents in the ``schemec.tree/1`` format::

    {"format": "schemec.tree/1", "family": "regalloc", "tree": {...}}

A node is an object carrying its class name under ``kind`` plus one member
per dataclass field.  Sequences become arrays; binding maps, location maps
and conflict graphs become arrays of ``[name, value]`` pairs so their order
survives the round trip.  Objects without ``kind`` are accepted on input for
those mapping fields.

Encoding and decoding walk the tree with an explicit stack.  The json module
itself recurses, so documents too deep for it are reported as ``ValueError``
by :func:`dump_document` and :func:`load_document`.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import fields, is_dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from . import asm, regalloc, scheme
from .tree import Node

TREE_FORMAT_VERSION = "schemec.tree/1"

LOGGER = logging.getLogger("schemec.tree_json")

FAMILIES: Dict[str, Dict[str, type]] = {
    "scheme": scheme.NODE_TYPES,
    "regalloc": regalloc.NODE_TYPES,
    "asm": asm.NODE_TYPES,
}

_FAMILY_ROOTS: Dict[type, str] = {
    scheme.SchemeNode: "scheme",
    regalloc.ExprNode: "regalloc",
    asm.AsmNode: "asm",
}


def family_of(tree: Node) -> str:
    family = _FAMILY_ROOTS.get(tree.family())
    if family is None:
        raise ValueError(f"{type(tree).__name__} does not belong to a known IR family")
    return family


def _members(value: Any) -> Optional[List[Any]]:
    if is_dataclass(value) and not isinstance(value, type):
        return [getattr(value, spec.name) for spec in fields(value)]
    if isinstance(value, tuple):
        return list(value)
    return None


def _encode_value(value: Any) -> Any:
    results: List[Any] = []
    stack: List[Tuple[Any, Optional[List[Any]]]] = [(value, None)]
    while stack:
        item, members = stack.pop()
        if members is None:
            members = _members(item)
            if members is None:
                results.append(item)
                continue
            stack.append((item, members))
            stack.extend((member, None) for member in reversed(members))
            continue
        start = len(results) - len(members)
        encoded = results[start:]
        del results[start:]
        if isinstance(item, tuple):
            results.append(encoded)
            continue
        node: Dict[str, Any] = {"kind": type(item).__name__}
        node.update(zip((spec.name for spec in fields(item)), encoded))
        results.append(node)
    return results[0]


def encode_tree(tree: Node) -> Dict[str, Any]:
    """Return a JSON-friendly description of ``tree``."""

    return _encode_value(tree)


def _node_class(value: Mapping[str, Any], node_types: Mapping[str, type]) -> type:
    kind = value["kind"]
    klass = node_types.get(kind) if isinstance(kind, str) else None
    if klass is None:
        raise ValueError(f"unknown node kind {kind!r}")
    names = {spec.name for spec in fields(klass)}
    extra = set(value) - names - {"kind"}
    if extra:
        raise ValueError(f"{kind} has unexpected fields {sorted(extra)}")
    return klass


def _member_keys(value: Any, node_types: Mapping[str, type]) -> Optional[List[Any]]:
    if isinstance(value, list):
        return list(range(len(value)))
    if not isinstance(value, Mapping):
        return None
    if "kind" in value:
        _node_class(value, node_types)
    return [key for key in value if key != "kind"]


def _decode_value(value: Any, node_types: Mapping[str, type]) -> Any:
    results: List[Any] = []
    stack: List[Tuple[Any, Optional[List[Any]]]] = [(value, None)]
    while stack:
        item, keys = stack.pop()
        if keys is None:
            keys = _member_keys(item, node_types)
            if keys is None:
                results.append(item)
                continue
            stack.append((item, keys))
            stack.extend((item[key], None) for key in reversed(keys))
            continue
        start = len(results) - len(keys)
        decoded = results[start:]
        del results[start:]
        if isinstance(item, list):
            results.append(tuple(decoded))
            continue
        args = dict(zip(keys, decoded))
        if "kind" not in item:
            results.append(args)
            continue
        klass = node_types[item["kind"]]
        try:
            results.append(klass(**args))
        except TypeError as exc:
            raise ValueError(f"malformed {item['kind']} node: {exc}") from exc
    return results[0]


def decode_tree(data: Mapping[str, Any], family: str) -> Node:
    """Rebuild a tree of ``family`` from :func:`encode_tree` output."""

    node_types = FAMILIES.get(family)
    if node_types is None:
        raise ValueError(f"family must be one of {sorted(FAMILIES)}, got {family!r}")
    if not isinstance(data, Mapping) or "kind" not in data:
        raise ValueError("tree node missing 'kind'")
    tree = _decode_value(data, node_types)
    if not isinstance(tree, Node):
        raise ValueError(f"{data['kind']} is not a tree node")
    return tree


def dump_document(tree: Node, path: Path) -> None:
    document = {
        "format": TREE_FORMAT_VERSION,
        "family": family_of(tree),
        "tree": encode_tree(tree),
    }
    try:
        text = json.dumps(document, indent=2)
    except RecursionError as exc:
        raise ValueError(f"{type(tree).__name__} tree nests too deeply for the json module") from exc
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(text)
        fh.write("\n")


def load_document(path: Path) -> Node:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except RecursionError as exc:
        raise ValueError(f"{path}: document nested too deeply") from exc
    if not isinstance(data, Mapping):
        raise ValueError("tree document must be a JSON object")
    fmt = data.get("format")
    if fmt != TREE_FORMAT_VERSION:
        raise ValueError(f"unsupported tree format {fmt!r} (expected {TREE_FORMAT_VERSION})")
    family = data.get("family")
    if "tree" not in data:
        raise ValueError("tree document missing 'tree'")
    tree = decode_tree(data["tree"], str(family))
    LOGGER.debug("loaded %s tree from %s", family, path)
    return tree
