from pathlib import Path

from schemec import asm, cli, formatting, regalloc, scheme, tree_json


def _dump(tmp_path: Path, tree, name: str = "tree.json") -> Path:
    path = tmp_path / name
    tree_json.dump_document(tree, path)
    return path


def test_render_to_stdout(tmp_path: Path, capsys) -> None:
    prog = asm.Prog([asm.Cfg("main", [asm.Op2("movq", asm.Imm(5), asm.RAX), asm.Retq()])])
    rc = cli.main([str(_dump(tmp_path, prog))])
    assert rc == 0
    assert capsys.readouterr().out == "main:\n\tmovq $5, %rax\n\tretq\n\n"


def test_sexpr_output_gets_trailing_newline(tmp_path: Path, capsys) -> None:
    tree = scheme.Prim2("+", scheme.Int64(1), scheme.Int64(2))
    assert cli.main([str(_dump(tmp_path, tree))]) == 0
    assert capsys.readouterr().out == "(+ 1 2)\n"


def test_render_to_file(tmp_path: Path, capsys) -> None:
    tree = regalloc.Spills(["b", "a"], regalloc.Nop())
    out = tmp_path / "out.txt"
    rc = cli.main([str(_dump(tmp_path, tree)), "-o", str(out)])
    assert rc == 0
    assert out.read_text(encoding="utf-8") == "(spills (a b)\n  (nop))"
    assert "Wrote" in capsys.readouterr().out


def test_insertion_ordering_flag_is_scoped_to_the_run(tmp_path: Path, capsys) -> None:
    tree = regalloc.Locals(["b", "a"], regalloc.Nop())
    path = _dump(tmp_path, tree)
    assert cli.main([str(path), "--ordering", formatting.ORDERING_INSERTION]) == 0
    assert capsys.readouterr().out == "(locals (b a)\n  (nop))\n"
    assert cli.main([str(path)]) == 0
    assert capsys.readouterr().out == "(locals (a b)\n  (nop))\n"
    assert tree.render() == "(locals (a b)\n  (nop))"


def test_check_labels_reports_collision(tmp_path: Path, capsys) -> None:
    prog = asm.Prog([asm.Cfg("x?", [asm.Retq()]), asm.Cfg("xq", [asm.Retq()])])
    rc = cli.main([str(_dump(tmp_path, prog)), "--check-labels"])
    assert rc == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "both emit as 'xq'" in captured.err


def test_check_labels_requires_asm_tree(tmp_path: Path, capsys) -> None:
    rc = cli.main([str(_dump(tmp_path, scheme.Nop())), "--check-labels"])
    assert rc == 1
    assert "only applies to asm trees" in capsys.readouterr().err


def test_bad_document(tmp_path: Path, capsys) -> None:
    path = tmp_path / "bad.json"
    path.write_text("{not json", encoding="utf-8")
    assert cli.main([str(path)]) == 1
    assert "schemec-render:" in capsys.readouterr().err
    assert cli.main([str(tmp_path / "missing.json")]) == 1


def _write_document(tmp_path: Path, family: str, tree_text: str) -> Path:
    path = tmp_path / "doc.json"
    path.write_text(
        f'{{"format": "{tree_json.TREE_FORMAT_VERSION}", "family": "{family}", "tree": {tree_text}}}',
        encoding="utf-8",
    )
    return path


def test_non_string_identifier_is_reported(tmp_path: Path, capsys) -> None:
    path = _write_document(tmp_path, "asm", '{"kind": "Label", "name": 7}')
    assert cli.main([str(path)]) == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "malformed Label node" in captured.err


def test_malformed_closure_record_is_reported(tmp_path: Path, capsys) -> None:
    tree = '{"kind": "Closures", "records": [["f", "L.f.1"]], "tail": {"kind": "Nop"}}'
    path = _write_document(tmp_path, "scheme", tree)
    assert cli.main([str(path)]) == 1
    assert "malformed Closures node" in capsys.readouterr().err


def test_deeply_nested_document_is_reported(tmp_path: Path, capsys) -> None:
    depth = 100000
    path = _write_document(tmp_path, "scheme", "[" * depth + "]" * depth)
    assert cli.main([str(path)]) == 1
    assert "nested too deeply" in capsys.readouterr().err


def test_unwritable_output_is_reported(tmp_path: Path, capsys) -> None:
    path = _dump(tmp_path, scheme.Nop())
    assert cli.main([str(path), "-o", str(tmp_path)]) == 1
    captured = capsys.readouterr()
    assert "schemec-render:" in captured.err
    assert "Wrote" not in captured.out
