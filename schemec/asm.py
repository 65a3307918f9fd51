"""Assembly IR: x86-64 registers, addressing modes and control-flow blocks.

Renders AT&T syntax for the system assembler.  Unlike the s-expression forms
this text is consumed byte for byte: one tab-indented instruction per line,
``src, dst`` operand order, ``$imm`` / ``%reg`` / ``offset(reg)`` operands and
``jmp *x`` for computed jump targets.

Internal names are free to use ``-``, ``?`` and ``!``; every identifier that
reaches the output goes through :func:`mangle_label`.  The mapping is not
injective, so :func:`emit_program` checks the whole program for collisions
before handing text on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from .tree import Node, child, child_list, ident, int64

LOGGER = logging.getLogger("schemec.asm")

# Ordered so listings iterate registers in a stable order.
REGISTER_NAMES: Tuple[str, ...] = (
    "rsp", "rbp", "rax", "rbx", "rcx", "rdx", "rsi", "rdi",
    "r8", "r9", "r10", "r11", "r12", "r13", "r14", "r15",
    "rip",
)

_MANGLE_TABLE: Tuple[Tuple[str, str], ...] = (("-", "_"), ("?", "q"), ("!", "l"))


class LabelCollisionError(ValueError):
    pass


def mangle_label(name: str) -> str:
    """Turn an internal identifier into an assembler-legal label."""

    for old, new in _MANGLE_TABLE:
        name = name.replace(old, new)
    return name


class AsmNode(Node):
    _root = True


@dataclass(frozen=True)
class Reg(AsmNode):
    name: str = ident()

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.name not in REGISTER_NAMES:
            raise ValueError(f"Bad register '{self.name}'")

    def format(self, parts: Sequence[str], ordering: str) -> str:
        return f"%{self.name}"


RSP, RBP, RAX, RBX, RCX, RDX, RSI, RDI = (Reg(name) for name in REGISTER_NAMES[0:8])
R8, R9, R10, R11, R12, R13, R14, R15 = (Reg(name) for name in REGISTER_NAMES[8:16])
RIP = Reg("rip")


def _check_reg(owner: AsmNode, name: str, value: AsmNode) -> None:
    if not isinstance(value, Reg):
        raise TypeError(f"{type(owner).__name__}.{name} expects a register, got {value!r}")


@dataclass(frozen=True)
class Imm(AsmNode):
    value: int = int64()

    def format(self, parts: Sequence[str], ordering: str) -> str:
        return f"${self.value}"


@dataclass(frozen=True)
class Label(AsmNode):
    name: str = ident()

    def format(self, parts: Sequence[str], ordering: str) -> str:
        return mangle_label(self.name)


@dataclass(frozen=True)
class Deref(AsmNode):
    reg: AsmNode = child()
    offset: int = int64()

    def __post_init__(self) -> None:
        super().__post_init__()
        _check_reg(self, "reg", self.reg)

    def children(self):
        return (self.reg,)

    def format(self, parts: Sequence[str], ordering: str) -> str:
        return f"{self.offset}({parts[0]})"


@dataclass(frozen=True)
class DerefLabel(AsmNode):
    """Label-relative operand such as ``L_main(%rip)``."""

    reg: AsmNode = child()
    label: AsmNode = child()

    def __post_init__(self) -> None:
        super().__post_init__()
        _check_reg(self, "reg", self.reg)
        if not isinstance(self.label, Label):
            raise TypeError(f"DerefLabel.label expects a Label, got {self.label!r}")

    def children(self):
        return (self.reg, self.label)

    def format(self, parts: Sequence[str], ordering: str) -> str:
        return f"{parts[1]}({parts[0]})"


@dataclass(frozen=True)
class DerefRegister(AsmNode):
    base: AsmNode = child()
    index: AsmNode = child()

    def __post_init__(self) -> None:
        super().__post_init__()
        _check_reg(self, "base", self.base)
        _check_reg(self, "index", self.index)

    def children(self):
        return (self.base, self.index)

    def format(self, parts: Sequence[str], ordering: str) -> str:
        return f"({parts[0]},{parts[1]})"


@dataclass(frozen=True)
class Op2(AsmNode):
    mnemonic: str = ident()
    src: AsmNode = child()
    dst: AsmNode = child()

    def children(self):
        return (self.src, self.dst)

    def format(self, parts: Sequence[str], ordering: str) -> str:
        return f"\t{self.mnemonic} {parts[0]}, {parts[1]}\n"


@dataclass(frozen=True)
class Retq(AsmNode):
    def format(self, parts: Sequence[str], ordering: str) -> str:
        return "\tretq\n"


@dataclass(frozen=True)
class Push(AsmNode):
    operand: AsmNode = child()

    def children(self):
        return (self.operand,)

    def format(self, parts: Sequence[str], ordering: str) -> str:
        return f"\tpushq {parts[0]}\n"


@dataclass(frozen=True)
class Pop(AsmNode):
    operand: AsmNode = child()

    def children(self):
        return (self.operand,)

    def format(self, parts: Sequence[str], ordering: str) -> str:
        return f"\tpopq {parts[0]}\n"


def _jump_operand(target: AsmNode, rendered: str) -> str:
    if isinstance(target, Label):
        return rendered
    return f"*{rendered}"


@dataclass(frozen=True)
class Jmp(AsmNode):
    """Direct jump to a Label, indirect (``jmp *x``) through anything else."""

    target: AsmNode = child()

    def children(self):
        return (self.target,)

    def format(self, parts: Sequence[str], ordering: str) -> str:
        return f"\tjmp {_jump_operand(self.target, parts[0])}\n"


@dataclass(frozen=True)
class Jmpif(AsmNode):
    cc: str = ident()
    target: AsmNode = child()

    def children(self):
        return (self.target,)

    def format(self, parts: Sequence[str], ordering: str) -> str:
        return f"\tj{self.cc} {_jump_operand(self.target, parts[0])}\n"


@dataclass(frozen=True)
class Cfg(AsmNode):
    """One labelled block."""

    label: str = ident()
    instrs: Tuple[AsmNode, ...] = child_list()

    def children(self):
        return self.instrs

    def format(self, parts: Sequence[str], ordering: str) -> str:
        return f"{mangle_label(self.label)}:\n" + "".join(parts)


@dataclass(frozen=True)
class Code(AsmNode):
    instrs: Tuple[AsmNode, ...] = child_list()

    def children(self):
        return self.instrs

    def format(self, parts: Sequence[str], ordering: str) -> str:
        return "".join(parts)


@dataclass(frozen=True)
class Prog(AsmNode):
    blocks: Tuple[AsmNode, ...] = child_list()

    def children(self):
        return self.blocks

    def format(self, parts: Sequence[str], ordering: str) -> str:
        return "".join(f"{part}\n" for part in parts)


NODE_TYPES: Dict[str, type] = {
    klass.__name__: klass
    for klass in (
        Reg, Imm, Label, Deref, DerefLabel, DerefRegister, Op2, Retq,
        Cfg, Jmp, Jmpif, Prog, Push, Pop, Code,
    )
}


# ---------------------------------------------------------------------------
# Label bookkeeping


def collect_labels(tree: AsmNode) -> List[str]:
    """Return every raw label defined or referenced in ``tree``, first-seen order."""

    seen: Dict[str, None] = {}
    stack: List[AsmNode] = [tree]
    while stack:
        node = stack.pop()
        if isinstance(node, Cfg):
            seen.setdefault(node.label, None)
        elif isinstance(node, Label):
            seen.setdefault(node.name, None)
        stack.extend(reversed(tuple(node.children())))
    return list(seen)


def _defined_labels(tree: AsmNode) -> List[str]:
    defined: List[str] = []
    stack: List[AsmNode] = [tree]
    while stack:
        node = stack.pop()
        if isinstance(node, Cfg):
            defined.append(node.label)
        stack.extend(reversed(tuple(node.children())))
    return defined


def check_labels(tree: AsmNode) -> Dict[str, str]:
    """Verify that mangling keeps every label distinct.

    Returns the raw-name to emitted-name mapping.  Raises
    :class:`LabelCollisionError` when a block label is defined twice or when
    two different raw names mangle to the same identifier.
    """

    defined: Dict[str, None] = {}
    for name in _defined_labels(tree):
        if name in defined:
            LOGGER.warning("duplicate block label %s", name)
            raise LabelCollisionError(f"Duplicate label: {name}")
        defined[name] = None

    owners: Dict[str, str] = {}
    mapping: Dict[str, str] = {}
    for name in collect_labels(tree):
        mangled = mangle_label(name)
        other = owners.setdefault(mangled, name)
        if other != name:
            LOGGER.warning("labels %s and %s both mangle to %s", other, name, mangled)
            raise LabelCollisionError(f"Labels '{other}' and '{name}' both emit as '{mangled}'")
        mapping[name] = mangled
    return mapping


def emit_program(prog: AsmNode, *, check: bool = True) -> str:
    """Render the final compilation unit for the assembler."""

    if check:
        mapping = check_labels(prog)
        LOGGER.debug("emitting program with %d labels", len(mapping))
    return prog.render()
