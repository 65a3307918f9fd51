"""Register-allocation IR.

The tree the allocator iterates over: code is annotated with the locals still
waiting for a location, the unspillable and spilled locals, conflict graphs,
candidate frames, call-live sets and return points.  Procedures are a flat
sequence of labelled lambdas under a single ``letrec``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Sequence, Tuple

from .common import (
    AllocForm,
    BeginForm,
    BoolForm,
    FuncallForm,
    IfForm,
    Int64Form,
    MrefForm,
    MsetForm,
    NamesForm,
    NopForm,
    PrimForm,
    SetForm,
    SymbolForm,
)
from .formatting import format_conflict_graph, join, ordered, wrap_form
from .tree import (
    Node,
    child,
    child_list,
    conflict_graph,
    frame_set,
    flag,
    ident,
    int64,
    location_list,
    name_list,
)


class ExprNode(Node):
    _root = True


@dataclass(frozen=True)
class Lambda(ExprNode):
    label: str = ident()
    args: Tuple[str, ...] = name_list()
    body: ExprNode = child()

    def children(self):
        return (self.body,)

    def format(self, parts: Sequence[str], ordering: str) -> str:
        return f"({self.label} (lambda ({join(self.args, ' ')}) {parts[0]}))"


@dataclass(frozen=True)
class Letrec(ExprNode):
    lambdas: Tuple[Lambda, ...] = child_list()
    body: ExprNode = child()

    def __post_init__(self) -> None:
        super().__post_init__()
        for idx, item in enumerate(self.lambdas):
            if not isinstance(item, Lambda):
                raise TypeError(f"Letrec.lambdas[{idx}] must be a Lambda, got {item!r}")

    def children(self):
        return self.lambdas + (self.body,)

    def format(self, parts: Sequence[str], ordering: str) -> str:
        return wrap_form("letrec", parts[:-1], "\n", parts[-1])


@dataclass(frozen=True)
class Locals(NamesForm, ExprNode):
    form_name = "locals"

    names: Tuple[str, ...] = name_list()
    tail: ExprNode = child()


@dataclass(frozen=True)
class Ulocals(NamesForm, ExprNode):
    form_name = "ulocals"

    names: Tuple[str, ...] = name_list()
    tail: ExprNode = child()


@dataclass(frozen=True)
class Spills(NamesForm, ExprNode):
    form_name = "spills"

    names: Tuple[str, ...] = name_list()
    tail: ExprNode = child()


@dataclass(frozen=True)
class CallLive(NamesForm, ExprNode):
    form_name = "call-live"

    names: Tuple[str, ...] = name_list()
    tail: ExprNode = child()


@dataclass(frozen=True)
class Locate(ExprNode):
    bindings: Tuple[Tuple[str, str], ...] = location_list()
    tail: ExprNode = child()

    def children(self):
        return (self.tail,)

    def format(self, parts: Sequence[str], ordering: str) -> str:
        bindings = ordered(self.bindings, ordering, key=lambda pair: pair[0])
        entries = [f"({name} {loc})" for name, loc in bindings]
        return f"(locate ({join(entries, ' ')})\n {parts[0]})"


@dataclass(frozen=True)
class RegisterConflict(ExprNode):
    graph: Tuple[Tuple[str, Tuple[str, ...]], ...] = conflict_graph()
    tail: ExprNode = child()

    def children(self):
        return (self.tail,)

    def format(self, parts: Sequence[str], ordering: str) -> str:
        return format_conflict_graph("register-conflict", self.graph, parts[0], ordering)


@dataclass(frozen=True)
class FrameConflict(ExprNode):
    graph: Tuple[Tuple[str, Tuple[str, ...]], ...] = conflict_graph()
    tail: ExprNode = child()

    def children(self):
        return (self.tail,)

    def format(self, parts: Sequence[str], ordering: str) -> str:
        return format_conflict_graph("frame-conflict", self.graph, parts[0], ordering)


@dataclass(frozen=True)
class NewFrames(ExprNode):
    frames: Tuple[Tuple[str, ...], ...] = frame_set()
    tail: ExprNode = child()

    def children(self):
        return (self.tail,)

    def format(self, parts: Sequence[str], ordering: str) -> str:
        frames = [f"({join(frame, ' ')})" for frame in ordered(self.frames, ordering)]
        return f"(new-frames ({join(frames, ' ')}) {parts[0]})"


@dataclass(frozen=True)
class ReturnPoint(ExprNode):
    label: str = ident()
    expr: ExprNode = child()

    def children(self):
        return (self.expr,)

    def format(self, parts: Sequence[str], ordering: str) -> str:
        return f"(return-point {self.label} {parts[0]})"


@dataclass(frozen=True)
class Begin(BeginForm, ExprNode):
    exprs: Tuple[ExprNode, ...] = child_list()


@dataclass(frozen=True)
class Set(SetForm, ExprNode):
    target: ExprNode = child()
    value: ExprNode = child()


@dataclass(frozen=True)
class Prim1(PrimForm, ExprNode):
    op: str = ident()
    operand: ExprNode = child()

    def operands(self):
        return (self.operand,)


@dataclass(frozen=True)
class Prim2(PrimForm, ExprNode):
    op: str = ident()
    left: ExprNode = child()
    right: ExprNode = child()

    def operands(self):
        return (self.left, self.right)


@dataclass(frozen=True)
class If(IfForm, ExprNode):
    cond: ExprNode = child()
    conseq: ExprNode = child()
    alt: ExprNode = child()


@dataclass(frozen=True)
class If1(ExprNode):
    """One-armed conditional; the false branch falls through."""

    cond: ExprNode = child()
    conseq: ExprNode = child()

    def children(self):
        return (self.cond, self.conseq)

    def format(self, parts: Sequence[str], ordering: str) -> str:
        return f"(if {parts[0]} {parts[1]})"


@dataclass(frozen=True)
class Alloc(AllocForm, ExprNode):
    size: ExprNode = child()


@dataclass(frozen=True)
class Mref(MrefForm, ExprNode):
    base: ExprNode = child()
    offset: ExprNode = child()


@dataclass(frozen=True)
class Mset(MsetForm, ExprNode):
    base: ExprNode = child()
    offset: ExprNode = child()
    value: ExprNode = child()


@dataclass(frozen=True)
class Funcall(FuncallForm, ExprNode):
    func: ExprNode = child()
    args: Tuple[ExprNode, ...] = child_list()


@dataclass(frozen=True)
class Symbol(SymbolForm, ExprNode):
    name: str = ident()


@dataclass(frozen=True)
class Int64(Int64Form, ExprNode):
    value: int = int64()


@dataclass(frozen=True)
class Bool(BoolForm, ExprNode):
    value: bool = flag()


@dataclass(frozen=True)
class Nop(NopForm, ExprNode):
    pass


NODE_TYPES: Dict[str, type] = {
    klass.__name__: klass
    for klass in (
        Letrec, Locals, Ulocals, Spills, Locate, Lambda, RegisterConflict,
        FrameConflict, NewFrames, CallLive, ReturnPoint, Begin, Prim1, Prim2,
        If, If1, Set, Alloc, Mref, Mset, Symbol, Funcall, Int64, Bool, Nop,
    )
}
