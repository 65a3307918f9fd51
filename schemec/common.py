"""Rendering rules for the node kinds the IR families have in common.

Each IR family declares its own dataclass for ``Begin``, ``Set``, ``If`` and
friends so the families stay distinct types; the classes below only carry the
``children``/``format`` pair and expect the field names documented on each.
"""

from __future__ import annotations

from typing import Sequence

from .formatting import join, ordered, wrap_form


class BeginForm:
    """``exprs``: ``(begin \\n  e1\\n  e2)``."""

    def children(self):
        return self.exprs

    def format(self, parts: Sequence[str], ordering: str) -> str:
        return "(begin \n" + "\n".join(f"  {part}" for part in parts) + ")"


class SetForm:
    def children(self):
        return (self.target, self.value)

    def format(self, parts: Sequence[str], ordering: str) -> str:
        return f"(set! {parts[0]} {parts[1]})"


class PrimForm:
    """``op`` applied to ``operands()``, call style."""

    def children(self):
        return self.operands()

    def format(self, parts: Sequence[str], ordering: str) -> str:
        return f"({self.op} {join(parts, ' ')})"


class IfForm:
    def children(self):
        return (self.cond, self.conseq, self.alt)

    def format(self, parts: Sequence[str], ordering: str) -> str:
        return f"(if {parts[0]} {parts[1]} {parts[2]})"


class AllocForm:
    def children(self):
        return (self.size,)

    def format(self, parts: Sequence[str], ordering: str) -> str:
        return f"(alloc {parts[0]})"


class MrefForm:
    def children(self):
        return (self.base, self.offset)

    def format(self, parts: Sequence[str], ordering: str) -> str:
        return f"(mref {parts[0]} {parts[1]})"


class MsetForm:
    def children(self):
        return (self.base, self.offset, self.value)

    def format(self, parts: Sequence[str], ordering: str) -> str:
        return f"(mset! {parts[0]} {parts[1]} {parts[2]})"


class FuncallForm:
    """``func`` applied to ``args``.  No arguments still leaves the separator: ``(f )``."""

    def children(self):
        return (self.func,) + self.args

    def format(self, parts: Sequence[str], ordering: str) -> str:
        return f"({parts[0]} {join(parts[1:], ' ')})"


class SymbolForm:
    def format(self, parts: Sequence[str], ordering: str) -> str:
        return self.name


class Int64Form:
    def format(self, parts: Sequence[str], ordering: str) -> str:
        return str(self.value)


class BoolForm:
    def format(self, parts: Sequence[str], ordering: str) -> str:
        return "(true)" if self.value else "(false)"


class NopForm:
    def format(self, parts: Sequence[str], ordering: str) -> str:
        return "(nop)"


class NamesForm:
    """Annotation ``(form_name (names...)\\n  tail)``.

    ``unordered`` marks name sets whose output order follows the requested
    ordering; ordered lists are emitted as given.
    """

    form_name = ""
    unordered = True

    def children(self):
        return (self.tail,)

    def format(self, parts: Sequence[str], ordering: str) -> str:
        names = ordered(self.names, ordering) if self.unordered else self.names
        return wrap_form(self.form_name, names, " ", parts[0])
