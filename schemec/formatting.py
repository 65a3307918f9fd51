"""Text helpers shared by the IR serializers.

Every textual form is built out of two shapes: a flat run of pre-rendered
items joined by a separator, and an annotation form ``(name (items)\\n  tail)``
wrapped around a child tree.  The conflict-graph formatter is a specialised
annotation form.

Output order of unordered collections (name sets, binding maps, conflict
graphs) is an explicit ``ordering`` argument, ``"sorted"`` unless the caller
asks for ``"insertion"``, so rendered text stays stable for snapshot tests
and diffs.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

ORDERING_SORTED = "sorted"
ORDERING_INSERTION = "insertion"
ORDERINGS: Tuple[str, ...] = (ORDERING_SORTED, ORDERING_INSERTION)


def check_ordering(ordering: str) -> str:
    if ordering not in ORDERINGS:
        raise ValueError(f"ordering must be one of {list(ORDERINGS)}, got {ordering!r}")
    return ordering


def ordered(
    items: Iterable[Any],
    ordering: str,
    key: Optional[Callable[[Any], Any]] = None,
) -> List[Any]:
    items = list(items)
    if ordering == ORDERING_SORTED:
        return sorted(items, key=key)
    return items


def join(items: Iterable[Any], sep: str) -> str:
    return sep.join(str(item) for item in items)


def wrap_form(name: str, items: Iterable[Any], sep: str, tail: Any) -> str:
    return f"({name} ({join(items, sep)})\n  {tail})"


def format_conflict_graph(
    name: str,
    graph: Sequence[Tuple[str, Sequence[str]]],
    tail: Any,
    ordering: str = ORDERING_SORTED,
) -> str:
    """Render ``graph`` as ``(name ((v {c ...}) ...)\\n  tail)``."""

    entries = [
        f"({var} {{{join(ordered(conflicts, ordering), ' ')}}})"
        for var, conflicts in ordered(graph, ordering, key=lambda entry: entry[0])
    ]
    return wrap_form(name, entries, " ", tail)


__all__ = [
    "ORDERING_SORTED",
    "ORDERING_INSERTION",
    "ORDERINGS",
    "check_ordering",
    "ordered",
    "join",
    "wrap_form",
    "format_conflict_graph",
]
