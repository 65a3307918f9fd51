"""High-level IR: the program after closure conversion.

Still expresses structured control (``if``/``begin``/``let``), closures and
memory primitives.  ``render`` (or ``str``) produces the s-expression trace
format used between passes.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
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
from .formatting import join, ordered
from .tree import Node, binding_list, child, child_list, flag, ident, int64, name_list


class SchemeNode(Node):
    _root = True


@dataclass(frozen=True)
class Closure:
    """One ``closures`` record: procedure name, entry label, free variables in order."""

    name: str
    label: str
    free: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for attr in ("name", "label"):
            value = getattr(self, attr)
            if not isinstance(value, str):
                raise TypeError(f"Closure.{attr} expects a string, got {value!r}")
        if isinstance(self.free, (str, bytes)) or not isinstance(self.free, Iterable):
            raise TypeError(f"Closure.free expects a sequence of names, got {self.free!r}")
        free = tuple(self.free)
        for item in free:
            if not isinstance(item, str):
                raise TypeError(f"Closure.free expects names as strings, got {item!r}")
        object.__setattr__(self, "free", free)

    def format(self) -> str:
        return f"[{self.name} {self.label} {join(self.free, ' ')}]"


def _binding_entries(bindings, parts: Sequence[str], ordering: str):
    """Pair binding names with their rendered values, then order the pairs once."""

    pairs = zip((name for name, _ in bindings), parts)
    return [f"[{name} {part}]" for name, part in ordered(pairs, ordering, key=lambda pair: pair[0])]


@dataclass(frozen=True)
class Lambda(SchemeNode):
    args: Tuple[str, ...] = name_list()
    body: SchemeNode = child()

    def children(self):
        return (self.body,)

    def format(self, parts: Sequence[str], ordering: str) -> str:
        return f"(lambda ({join(self.args, ' ')}) {parts[0]})"


@dataclass(frozen=True)
class Letrec(SchemeNode):
    bindings: Tuple[Tuple[str, Lambda], ...] = binding_list()
    body: SchemeNode = child()

    def __post_init__(self) -> None:
        super().__post_init__()
        for name, value in self.bindings:
            if not isinstance(value, Lambda):
                raise TypeError(f"Letrec binding {name!r} must be a Lambda, got {value!r}")

    def children(self):
        return tuple(value for _, value in self.bindings) + (self.body,)

    def format(self, parts: Sequence[str], ordering: str) -> str:
        entries = _binding_entries(self.bindings, parts[:-1], ordering)
        return "(letrec (" + join(entries, "\n") + f")\n {parts[-1]})"


@dataclass(frozen=True)
class Let(SchemeNode):
    bindings: Tuple[Tuple[str, SchemeNode], ...] = binding_list()
    tail: SchemeNode = child()

    def children(self):
        return tuple(value for _, value in self.bindings) + (self.tail,)

    def format(self, parts: Sequence[str], ordering: str) -> str:
        entries = _binding_entries(self.bindings, parts[:-1], ordering)
        return f"(let ({join(entries, ' ')})\n {parts[-1]})"


@dataclass(frozen=True)
class Locals(NamesForm, SchemeNode):
    form_name = "locals"

    names: Tuple[str, ...] = name_list()
    tail: SchemeNode = child()


@dataclass(frozen=True)
class Assigned(NamesForm, SchemeNode):
    form_name = "assigned"

    names: Tuple[str, ...] = name_list()
    tail: SchemeNode = child()


@dataclass(frozen=True)
class Free(NamesForm, SchemeNode):
    form_name = "free"
    unordered = False

    names: Tuple[str, ...] = name_list()
    tail: SchemeNode = child()


@dataclass(frozen=True)
class Bindfree(NamesForm, SchemeNode):
    form_name = "bind-free"
    unordered = False

    names: Tuple[str, ...] = name_list()
    tail: SchemeNode = child()


@dataclass(frozen=True)
class Closures(SchemeNode):
    records: Tuple[Closure, ...]
    tail: SchemeNode = child()

    def __post_init__(self) -> None:
        super().__post_init__()
        if isinstance(self.records, (str, bytes, Closure, Mapping)) or not isinstance(self.records, Iterable):
            raise TypeError(f"Closures.records expects a sequence, got {self.records!r}")
        records = []
        for idx, record in enumerate(self.records):
            if not isinstance(record, Closure):
                if isinstance(record, (str, bytes, Mapping)) or not isinstance(record, Iterable):
                    raise TypeError(f"Closures.records[{idx}] expects a Closure, got {record!r}")
                members = tuple(record)
                if len(members) != 3:
                    raise TypeError(
                        f"Closures.records[{idx}] expects (name, label, free), got {record!r}"
                    )
                record = Closure(*members)
            records.append(record)
        object.__setattr__(self, "records", tuple(records))

    def children(self):
        return (self.tail,)

    def format(self, parts: Sequence[str], ordering: str) -> str:
        entries = join((record.format() for record in self.records), " ")
        return f"(closures ({entries})\n{parts[0]})"


@dataclass(frozen=True)
class Begin(BeginForm, SchemeNode):
    exprs: Tuple[SchemeNode, ...] = child_list()


@dataclass(frozen=True)
class Set(SetForm, SchemeNode):
    target: SchemeNode = child()
    value: SchemeNode = child()


@dataclass(frozen=True)
class Prim1(PrimForm, SchemeNode):
    op: str = ident()
    operand: SchemeNode = child()

    def operands(self):
        return (self.operand,)


@dataclass(frozen=True)
class Prim2(PrimForm, SchemeNode):
    op: str = ident()
    left: SchemeNode = child()
    right: SchemeNode = child()

    def operands(self):
        return (self.left, self.right)


@dataclass(frozen=True)
class Prim3(PrimForm, SchemeNode):
    op: str = ident()
    first: SchemeNode = child()
    second: SchemeNode = child()
    third: SchemeNode = child()

    def operands(self):
        return (self.first, self.second, self.third)


@dataclass(frozen=True)
class If(IfForm, SchemeNode):
    cond: SchemeNode = child()
    conseq: SchemeNode = child()
    alt: SchemeNode = child()


@dataclass(frozen=True)
class Alloc(AllocForm, SchemeNode):
    size: SchemeNode = child()


@dataclass(frozen=True)
class Mref(MrefForm, SchemeNode):
    base: SchemeNode = child()
    offset: SchemeNode = child()


@dataclass(frozen=True)
class Mset(MsetForm, SchemeNode):
    base: SchemeNode = child()
    offset: SchemeNode = child()
    value: SchemeNode = child()


@dataclass(frozen=True)
class Funcall(FuncallForm, SchemeNode):
    func: SchemeNode = child()
    args: Tuple[SchemeNode, ...] = child_list()


@dataclass(frozen=True)
class Symbol(SymbolForm, SchemeNode):
    name: str = ident()


@dataclass(frozen=True)
class Int64(Int64Form, SchemeNode):
    value: int = int64()


@dataclass(frozen=True)
class Bool(BoolForm, SchemeNode):
    value: bool = flag()


@dataclass(frozen=True)
class Quote(SchemeNode):
    """``'datum``; a quoted boolean is written ``'#t`` / ``'#f`` instead of ``'(true)``."""

    datum: SchemeNode = child()

    def children(self):
        if isinstance(self.datum, Bool):
            return ()
        return (self.datum,)

    def format(self, parts: Sequence[str], ordering: str) -> str:
        if isinstance(self.datum, Bool):
            return "'#t" if self.datum.value else "'#f"
        return f"'{parts[0]}"


@dataclass(frozen=True)
class LiteralList(SchemeNode):
    items: Tuple[SchemeNode, ...] = child_list()

    def children(self):
        return self.items

    def format(self, parts: Sequence[str], ordering: str) -> str:
        return f"({join(parts, ' ')})"


@dataclass(frozen=True)
class LiteralVector(SchemeNode):
    items: Tuple[SchemeNode, ...] = child_list()

    def children(self):
        return self.items

    def format(self, parts: Sequence[str], ordering: str) -> str:
        return f"#({join(parts, ' ')})"


@dataclass(frozen=True)
class EmptyList(SchemeNode):
    def format(self, parts: Sequence[str], ordering: str) -> str:
        return "()"


@dataclass(frozen=True)
class Void(SchemeNode):
    def format(self, parts: Sequence[str], ordering: str) -> str:
        return "(void)"


@dataclass(frozen=True)
class Nop(NopForm, SchemeNode):
    pass


NODE_TYPES: Dict[str, type] = {
    klass.__name__: klass
    for klass in (
        Letrec, Locals, Assigned, Lambda, Free, Bindfree, Closures, Closure, Let,
        Begin, Set, Prim1, Prim2, Prim3, If, Alloc, Mref, Mset, Funcall,
        Symbol, Int64, Bool, Quote, LiteralList, LiteralVector, EmptyList, Void, Nop,
    )
}
