"""
schemec - tree forms and text serializers for the Scheme-to-x86-64 compiler.

Three IR families, one per compiler stage, each in its own module:

    scheme.py    → high-level IR after closure conversion
    regalloc.py  → register-allocation IR with spill/frame/conflict metadata
    asm.py       → x86-64 assembly IR, label mangling, final emission

Shared pieces live beside them: formatting.py (join / wrap_form helpers and
the ordering names), tree.py (node base and the render fold),
tree_json.py (JSON interchange) and cli.py (``schemec-render``).
"""

from .formatting import ORDERINGS, check_ordering, join, wrap_form, format_conflict_graph  # noqa: F401
from .tree import Node, render  # noqa: F401
from .asm import LabelCollisionError, check_labels, emit_program, mangle_label  # noqa: F401
from .tree_json import decode_tree, dump_document, encode_tree, load_document  # noqa: F401

__all__ = [
    "join",
    "wrap_form",
    "format_conflict_graph",
    "ORDERINGS",
    "check_ordering",
    "Node",
    "render",
    "LabelCollisionError",
    "check_labels",
    "emit_program",
    "mangle_label",
    "encode_tree",
    "decode_tree",
    "dump_document",
    "load_document",
]

__version__ = "0.1.0"
