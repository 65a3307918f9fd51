import pytest

from schemec import formatting, scheme
from schemec.regalloc import (
    Begin,
    Bool,
    CallLive,
    FrameConflict,
    Funcall,
    If,
    If1,
    Int64,
    Lambda,
    Letrec,
    Locals,
    Locate,
    Mref,
    NewFrames,
    Nop,
    Prim2,
    RegisterConflict,
    ReturnPoint,
    Set,
    Spills,
    Symbol,
    Ulocals,
)


def test_locals_call_live_begin_nesting() -> None:
    tree = Locals(
        {"x.1", "y.2"},
        CallLive({"x.1"}, Begin([Set(Symbol("x.1"), Int64(5))])),
    )
    assert tree.render() == (
        "(locals (x.1 y.2)\n"
        "  (call-live (x.1)\n"
        "  (begin \n"
        "  (set! x.1 5))))"
    )


def test_allocation_annotation_headings() -> None:
    assert Ulocals(["u.3"], Nop()).render() == "(ulocals (u.3)\n  (nop))"
    assert Spills(["s.5", "s.4"], Nop()).render() == "(spills (s.4 s.5)\n  (nop))"
    assert CallLive([], Nop()).render() == "(call-live ()\n  (nop))"


def test_register_conflict_graph() -> None:
    graph = {"a": {"b", "c"}, "b": {"a"}, "c": {"a"}}
    tree = RegisterConflict(graph, Nop())
    assert tree.render() == "(register-conflict ((a {b c}) (b {a}) (c {a}))\n  (nop))"


def test_frame_conflict_graph() -> None:
    tree = FrameConflict({"y.2": ["x.1"], "x.1": ["y.2"]}, Symbol("y.2"))
    assert tree.render() == "(frame-conflict ((x.1 {y.2}) (y.2 {x.1}))\n  y.2)"


def test_conflict_graph_render_is_stable_for_set_input() -> None:
    graph = {name: {other for other in "abcdefgh" if other != name} for name in "hgfedcba"}
    tree = RegisterConflict(graph, Nop())
    assert tree.render() == tree.render()
    assert tree.render().startswith("(register-conflict ((a {b c d e f g h}) (b {a c d e f g h})")


def test_locate_bindings() -> None:
    tree = Locate({"y.2": "fv0", "x.1": "rax"}, Symbol("x.1"))
    assert tree.render() == "(locate ((x.1 rax) (y.2 fv0))\n x.1)"


def test_new_frames_keeps_slot_order_inside_each_frame() -> None:
    tree = NewFrames([("c.3",), ("b.2", "a.1")], Nop())
    assert tree.render() == "(new-frames ((b.2 a.1) (c.3)) (nop))"


def test_return_point() -> None:
    call = Funcall(Symbol("L.f.1"), [Symbol("rbp"), Symbol("rax")])
    assert ReturnPoint("rp.3", call).render() == "(return-point rp.3 (L.f.1 rbp rax))"


def test_one_and_two_armed_if() -> None:
    cond = Prim2("<", Symbol("x"), Int64(0))
    assert If1(cond, Funcall(Symbol("L.k"), [])).render() == "(if (< x 0) (L.k ))"
    assert If(cond, Bool(True), Bool(False)).render() == "(if (< x 0) (true) (false))"


def test_letrec_of_labelled_lambdas() -> None:
    tree = Letrec(
        [
            Lambda("L.f.1", ["x"], Symbol("x")),
            Lambda("L.g.2", [], Mref(Symbol("rdi"), Int64(8))),
        ],
        Funcall(Symbol("L.f.1"), [Int64(1)]),
    )
    assert tree.render() == (
        "(letrec ((L.f.1 (lambda (x) x))\n"
        "(L.g.2 (lambda () (mref rdi 8))))\n"
        "  (L.f.1 1))"
    )


def test_letrec_rejects_non_lambda_entries() -> None:
    with pytest.raises(TypeError, match="must be a Lambda"):
        Letrec([Nop()], Nop())
    with pytest.raises(TypeError, match="expects a ExprNode"):
        Letrec([scheme.Lambda(["x"], scheme.Symbol("x"))], Nop())


def test_insertion_ordering() -> None:
    insertion = formatting.ORDERING_INSERTION
    assert Locals(["y", "x"], Nop()).render(insertion) == "(locals (y x)\n  (nop))"
    assert Locate([("y", "rbx"), ("x", "rax")], Nop()).render(insertion) == "(locate ((y rbx) (x rax))\n (nop))"
    assert NewFrames([("c",), ("a", "b")], Nop()).render(insertion) == "(new-frames ((c) (a b)) (nop))"


def test_ordering_is_per_render_call() -> None:
    tree = Spills(["b", "a"], Locate([("y", "rbx"), ("x", "rax")], Nop()))
    sorted_text = "(spills (a b)\n  (locate ((x rax) (y rbx))\n (nop)))"
    insertion_text = "(spills (b a)\n  (locate ((y rbx) (x rax))\n (nop)))"
    assert tree.render() == sorted_text
    assert tree.render(formatting.ORDERING_INSERTION) == insertion_text
    assert tree.render() == sorted_text
    assert str(tree) == sorted_text


def test_render_rejects_unknown_ordering() -> None:
    with pytest.raises(ValueError, match="ordering must be one of"):
        Nop().render("random")


def test_identifier_fields_reject_non_strings() -> None:
    with pytest.raises(TypeError, match="Symbol.name expects names as strings"):
        Symbol(5)
    with pytest.raises(TypeError, match="Prim2.op expects names as strings"):
        Prim2(None, Int64(1), Int64(2))
    with pytest.raises(TypeError, match="Lambda.label expects names as strings"):
        Lambda(7, [], Nop())
    with pytest.raises(TypeError, match="ReturnPoint.label expects names as strings"):
        ReturnPoint(["rp"], Nop())
    with pytest.raises(TypeError, match="Bool.value expects a boolean"):
        Bool(1)


def test_deep_begin_chain_renders() -> None:
    depth = 3000
    tree = Nop()
    for idx in range(depth):
        tree = Begin([Set(Symbol(f"x.{idx}"), Int64(idx)), tree])
    text = tree.render()
    assert text.count("(begin \n") == depth
    assert text.count("(") == text.count(")")
    assert text.startswith(f"(begin \n  (set! x.{depth - 1} {depth - 1})")
    assert text.endswith("(nop)" + ")" * depth)


def test_families_are_distinct_types() -> None:
    assert Set(Symbol("x"), Int64(1)) != scheme.Set(scheme.Symbol("x"), scheme.Int64(1))
    assert Set(Symbol("x"), Int64(1)).render() == scheme.Set(scheme.Symbol("x"), scheme.Int64(1)).render()
    with pytest.raises(TypeError):
        Begin([scheme.Nop()])
