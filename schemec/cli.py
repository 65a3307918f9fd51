"""schemec-render: print the text form of a saved IR tree.

Usage:
  schemec-render tree.json -o out.s --check-labels
  python -m schemec tree.json --ordering insertion
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List

from . import asm, formatting, tree_json

LOG = logging.getLogger("schemec.cli")


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="schemec-render", description="Render a schemec IR tree")
    parser.add_argument("input", type=Path, help=f"{tree_json.TREE_FORMAT_VERSION} JSON document")
    parser.add_argument("-o", "--output", type=Path, help="write text here instead of stdout")
    parser.add_argument(
        "--ordering",
        choices=formatting.ORDERINGS,
        default=formatting.ORDERING_SORTED,
        help="output order for name sets, bindings and conflict graphs (default sorted)",
    )
    parser.add_argument(
        "--check-labels",
        action="store_true",
        help="reject assembly whose labels collide after mangling",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("SCHEMEC_LOG", "WARNING"),
        help="Logging level (default WARNING)",
    )
    return parser


def main(argv: List[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)
    try:
        tree = tree_json.load_document(args.input)
        if args.check_labels:
            if not isinstance(tree, asm.AsmNode):
                print("--check-labels only applies to asm trees", file=sys.stderr)
                return 1
            text = asm.emit_program(tree)
        else:
            text = tree.render(args.ordering)
        if args.output is not None:
            args.output.write_text(text, encoding="utf-8")
    except (OSError, ValueError) as exc:
        LOG.debug("render failed", exc_info=True)
        print(f"schemec-render: {exc}", file=sys.stderr)
        return 1
    if args.output is None:
        sys.stdout.write(text)
        if not text.endswith("\n"):
            sys.stdout.write("\n")
        return 0
    LOG.info("wrote %s (%d bytes)", args.output, len(text))
    print(f"Wrote {args.output}")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
