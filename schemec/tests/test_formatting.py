import pytest

from schemec import formatting
from schemec.formatting import format_conflict_graph, join, wrap_form


def test_join_empty_sequence_is_empty_string() -> None:
    assert join([], " ") == ""
    assert join((), "\n") == ""


def test_join_renders_each_item() -> None:
    assert join(["a", "b", "c"], ", ") == "a, b, c"
    assert join([1, -2, 3], " ") == "1 -2 3"


def test_wrap_form_shape() -> None:
    assert wrap_form("locals", ["x.1", "y.2"], " ", "(nop)") == "(locals (x.1 y.2)\n  (nop))"
    assert wrap_form("spills", [], " ", "x") == "(spills ()\n  x)"


def test_conflict_graph_sorted_entries() -> None:
    graph = [("c", ("a",)), ("a", ("c", "b")), ("b", ("a",))]
    text = format_conflict_graph("register-conflict", graph, "(nop)")
    assert text == "(register-conflict ((a {b c}) (b {a}) (c {a}))\n  (nop))"


def test_conflict_graph_empty_conflicts() -> None:
    text = format_conflict_graph("frame-conflict", [("x", ())], "t")
    assert text == "(frame-conflict ((x {}))\n  t)"


def test_insertion_ordering_keeps_caller_order() -> None:
    graph = [("c", ("a",)), ("a", ("c", "b"))]
    text = format_conflict_graph("register-conflict", graph, "t", formatting.ORDERING_INSERTION)
    assert text == "(register-conflict ((c {a}) (a {c b}))\n  t)"
    assert formatting.ordered(["b", "a"], formatting.ORDERING_INSERTION) == ["b", "a"]
    assert formatting.ordered(["b", "a"], formatting.ORDERING_SORTED) == ["a", "b"]


def test_ordered_sorts_by_key() -> None:
    pairs = [("b", 1), ("a", 2)]
    assert formatting.ordered(pairs, formatting.ORDERING_SORTED, key=lambda pair: pair[0]) == [("a", 2), ("b", 1)]


def test_check_ordering_rejects_unknown_value() -> None:
    assert formatting.check_ordering("sorted") == "sorted"
    with pytest.raises(ValueError, match="ordering must be one of"):
        formatting.check_ordering("random")
