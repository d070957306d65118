#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

from conftest import has_error_code
from parts_ast import ExprStmt, LetStmt
from parts_parser import Parser


def _parse(src: str):
    parser = Parser.from_source(src)
    stmts = parser.parse()
    return stmts, parser.diagnostics


def test_missing_expression_reports_at_token():
    _, diags = _parse("1 + ;")
    assert diags.codes() == ["PAR-0010"]
    assert diags.items[0].format() == "[line 1] Error at ';': Expect expression."


def test_error_at_end_of_input():
    _, diags = _parse("print(1")
    assert diags.codes() == ["PAR-0130"]
    assert diags.items[0].where == " at end"
    assert diags.items[0].format() == "[line 1] Error at end: Expect ')' after arguments."


def test_recovers_at_next_statement():
    stmts, diags = _parse("let = 1; let b = 2;")
    assert diags.codes() == ["PAR-0060"]
    assert len(stmts) == 1
    assert isinstance(stmts[0], LetStmt)
    assert stmts[0].name.text == "b"


def test_reports_several_independent_errors():
    stmts, diags = _parse("1 +;\n2 +;\nprint(3);")
    assert diags.codes() == ["PAR-0010", "PAR-0010"]
    assert [d.line for d in diags] == [1, 2]
    assert len(stmts) == 1


def test_recovery_stops_before_statement_keyword():
    stmts, diags = _parse("let a = 1 2\nfun f() {}")
    assert has_error_code(diags, "PAR-0061")
    assert len(stmts) == 1


def test_invalid_assignment_target_does_not_synchronize():
    stmts, diags = _parse("1 = 2; print(3);")
    assert diags.codes() == ["PAR-0020"]
    assert diags.items[0].where == " at '='"
    assert len(stmts) == 2
    assert all(isinstance(s, ExprStmt) for s in stmts)


def test_too_many_arguments_reported_once():
    args = ", ".join(["1"] * 256)
    stmts, diags = _parse(f"f({args});")
    assert diags.codes() == ["PAR-0030"]
    assert diags.items[0].message == "Cannot have more than 255 arguments."
    assert len(stmts) == 1
    assert len(stmts[0].expr.args) == 256


def test_255_arguments_are_fine():
    args = ", ".join(["1"] * 255)
    _, diags = _parse(f"f({args});")
    assert not diags.has_errors()


def test_too_many_parameters():
    params = ", ".join(f"p{i}" for i in range(256))
    stmts, diags = _parse(f"fun f({params}) {{}}")
    assert diags.codes() == ["PAR-0031"]
    assert diags.items[0].message == "Cannot have more than 255 parameters."
    assert len(stmts) == 1


def test_unclosed_block():
    _, diags = _parse("{ let a = 1;")
    assert diags.codes() == ["PAR-0110"]
    assert diags.items[0].message == "Expect '}' after block."


def test_errors_set_static_flag_only():
    _, diags = _parse("let;")
    assert diags.had_static_error
    assert not diags.had_runtime_error
