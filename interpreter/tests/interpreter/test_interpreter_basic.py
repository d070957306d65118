#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

from parts_interpreter import Interpreter
from parts_parser import Parser
from parts_resolver import Resolver
from parts_diagnostics import Diagnostics


def test_arithmetic(run_source):
    result, out = run_source(
        """
        print(1 + 2);
        print(7 / 2);
        print(2 * 3 - 10);
        print(-(3));
        print((1 + 2) * 3);
        """
    )
    assert not result.has_errors()
    assert out == ["3", "3.5", "-4", "-3", "9"]


def test_string_concatenation(run_source):
    _, out = run_source('print("foo" + "bar");')
    assert out == ["foobar"]


def test_number_formatting(run_source):
    _, out = run_source(
        """
        print(0.1 + 0.2);
        print(1000000 * 1000000);
        print(10 / 4);
        """
    )
    assert out == ["0.30000000000000004", "1000000000000", "2.5"]


def test_division_by_zero_follows_ieee(run_source):
    result, out = run_source(
        """
        print(1 / 0);
        print(-1 / 0);
        print(0 / 0);
        """
    )
    assert not result.has_errors()
    assert out == ["Infinity", "-Infinity", "NaN"]


def test_comparison_and_equality(run_source):
    _, out = run_source(
        """
        print(1 < 2);
        print(2 <= 2);
        print(3 > 4);
        print(4 >= 5);
        print(1 == 1);
        print("a" == "a");
        print("a" != "b");
        print(nil == nil);
        print(nil == false);
        print(true == 1);
        print(0 == "0");
        """
    )
    assert out == ["true", "true", "false", "false", "true", "true", "true", "true", "false", "false", "false"]


def test_not_and_truthiness(run_source):
    _, out = run_source(
        """
        print(!nil);
        print(!0);
        print(!"");
        print(!!true);
        """
    )
    assert out == ["true", "false", "false", "true"]


def test_logical_operators_return_deciding_operand(run_source):
    result, out = run_source(
        """
        print(nil or "fallback");
        print("first" or "second");
        print(1 and 2);
        print(nil and 2);
        print(false and missing());
        print(true or missing());
        """
    )
    assert not result.has_errors()
    assert out == ["fallback", "first", "2", "nil", "false", "true"]


def test_let_defaults_to_nil(run_source):
    _, out = run_source("let a; print(a);")
    assert out == ["nil"]


def test_assignment_is_an_expression(run_source):
    _, out = run_source(
        """
        let a;
        let b;
        a = b = 3;
        print(a);
        print(b);
        print(a = 4);
        """
    )
    assert out == ["3", "3", "4"]


def test_block_scoping_and_shadowing(run_source):
    _, out = run_source(
        """
        let a = "outer";
        {
            let a = "inner";
            print(a);
        }
        print(a);
        """
    )
    assert out == ["inner", "outer"]


def test_global_redefinition_is_allowed(run_source):
    result, out = run_source("let a = 1; let a = 2; print(a);")
    assert not result.has_errors()
    assert out == ["2"]


def test_textual_forms_of_objects(run_source):
    _, out = run_source(
        """
        fun f() {}
        class A {}
        print(f);
        print(clock);
        print(print);
        print(A);
        print(A());
        """
    )
    assert out == ["<fn f>", "<native fn>", "<native fn>", "A", "A instance"]


def test_print_returns_nil(run_source):
    _, out = run_source("print(print(1));")
    assert out == ["1", "nil"]


def test_clock_uses_injected_source():
    out = []
    interp = Interpreter(output=out.append, clock=lambda: 42.0)
    diags = Diagnostics()
    stmts = Parser.from_source("print(clock());", diags).parse()
    distances = Resolver(diags).resolve(stmts)
    assert interp.interpret(stmts, distances, diags)
    assert out == ["42"]


def test_clock_is_positive(run_source):
    _, out = run_source("print(clock() > 0);")
    assert out == ["true"]


def test_callee_is_evaluated_before_arguments(run_source):
    _, out = run_source(
        """
        fun trace(label, value) { print(label); return value; }
        fun pick(a, b) { return a + b; }
        trace("callee", pick)(trace("first", 1), trace("second", 2));
        """
    )
    assert out == ["callee", "first", "second"]


def test_long_addition_chain(run_source):
    result, out = run_source("print(" + " + ".join(["1"] * 600) + ");")
    assert not result.has_errors()
    assert out == ["600"]


def test_deeply_nested_groupings(run_source):
    result, out = run_source("print(" + "(" * 120 + "7" + ")" * 120 + ");")
    assert not result.has_errors()
    assert out == ["7"]


def test_expression_too_deep_to_evaluate_is_a_stack_overflow(run_source):
    # resolvable, but evaluation nests two frames per operator
    result, out = run_source('print("before");\nprint(' + "1 + " * 20000 + "1);\nprint(\"after\");")
    assert result.diagnostics.codes() == ["RUN-0060"]
    assert result.diagnostics.items[0].line == 2
    assert out == ["before"]


def test_too_deep_nesting_is_reported_and_parsing_continues(run_source):
    result, out = run_source("print(" + "(" * 3000 + "1" + ")" * 3000 + ");\nlet x = ;")
    assert result.diagnostics.codes() == ["PAR-0150", "PAR-0010"]
    assert not result.executed
    assert out == []
