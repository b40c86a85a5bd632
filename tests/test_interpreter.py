import math
import operator
from collections.abc import Callable

import pytest
from hypothesis import given
from hypothesis import strategies as st

from tally.tally_ast import ASTNode, Empty, ExpressionStatement, Factorial, Group, Number, Print
from tally.tally_errors import EvalError, LexError, ParseError
from tally.tally_interpreter import (
    Interpreter,
    RunResult,
    divide,
    factorial,
    format_value,
    power,
    run,
)
from tally.tally_lexer import lex
from tally.tally_parser import parse


def evaluate(source: str) -> float:
    (stmt,) = parse(lex(source))
    result = Interpreter().execute(stmt)
    assert result is not None
    return result


def test_assignment_then_reference() -> None:
    result = run("a = 7\nb = a + 1\nprint b")
    assert result == RunResult({"a": 7.0, "b": 8.0}, [8.0])


def test_full_precedence_expression() -> None:
    result = run("a = 1 + 2 * 3 - 4 / 5")
    assert result.environment["a"] == pytest.approx(6.2)


def test_print_does_not_bind() -> None:
    result = run("print 1")
    assert result.environment == {}
    assert result.printed == [1.0]


def test_left_associativity() -> None:
    assert evaluate("10 - 2 - 3") == 5.0
    assert evaluate("100 / 10 / 5") == 2.0


def test_precedence() -> None:
    assert evaluate("2 + 3 * 4") == 14.0
    assert evaluate("(2 + 3) * 4") == 20.0


def test_power() -> None:
    assert evaluate("2 ^ 10") == 1024.0
    assert evaluate("2 ^ 3 ^ 2") == 64.0
    assert evaluate("4 ^ 0.5") == 2.0
    assert evaluate("2 * 3 ^ 2") == 18.0


def test_factorial() -> None:
    assert evaluate("5!") == 120.0
    assert evaluate("0!") == 1.0
    assert evaluate("1!") == 1.0
    assert evaluate("3!!") == 720.0
    assert evaluate("(2 + 1)!") == 6.0


def test_group_is_transparent() -> None:
    assert evaluate("((7))") == 7.0


def test_variable_undefined() -> None:
    with pytest.raises(EvalError, match="Undefined variable: x") as exc:
        run("print x")
    assert exc.value.line == 1
    assert exc.value.col == 7


def test_reassignment_overwrites() -> None:
    assert run("a = 1; a = a + 1; a = a * 10").environment == {"a": 20.0}


def test_print_emits_in_order() -> None:
    assert run("print 1; print 2\nprint 1 + 2").printed == [1.0, 2.0, 3.0]


def test_sink_receives_each_printed_value() -> None:
    seen: list[float] = []
    run("print 4; x = 2; print x ^ 2", sink=seen.append)
    assert seen == [4.0, 4.0]


def test_environment_is_threaded_between_runs() -> None:
    env: dict[str, float] = {}
    run("a = 2", environment=env)
    result = run("b = a * 3", environment=env)
    assert result.environment is env
    assert env == {"a": 2.0, "b": 6.0}


def test_error_keeps_earlier_effects() -> None:
    interpreter = Interpreter()
    statements = parse(lex("a = 1\nprint a\nb = c + 1\nd = 4"))
    with pytest.raises(EvalError, match="Undefined variable: c"):
        interpreter.interpret(statements)
    assert interpreter.environment == {"a": 1.0}
    assert interpreter.printed == [1.0]


def test_parse_error_runs_nothing() -> None:
    env: dict[str, float] = {}
    with pytest.raises(ParseError):
        run("a = 1\nb = (2", environment=env)
    assert env == {}


def test_lex_error_propagates() -> None:
    with pytest.raises(LexError):
        run("a = 1.2.3")


def test_expression_statement_result_is_discarded() -> None:
    result = run("1 + 2")
    assert result == RunResult({}, [])


def test_empty_evaluates_to_zero() -> None:
    interpreter = Interpreter()
    assert interpreter.evaluate(Empty()) == 0.0
    interpreter.execute(Print(Group(Empty())))
    assert interpreter.printed == [0.0]


def test_unknown_node_kind() -> None:
    interpreter = Interpreter()
    with pytest.raises(EvalError, match="Cannot evaluate node kind 'mystery'"):
        interpreter.evaluate(ASTNode("mystery"))
    with pytest.raises(EvalError, match="Cannot execute node kind 'number'"):
        interpreter.execute(Number(1))


def test_execute_returns_expression_value() -> None:
    assert Interpreter().execute(ExpressionStatement(Number(3))) == 3.0


def test_interpreter_logs_bindings(debug_logs: pytest.LogCaptureFixture) -> None:
    run("a = 5; print a")
    messages = [r.getMessage() for r in debug_logs.records]
    assert "bind a = 5.0" in messages
    assert "print 5.0" in messages


# Division by zero keeps float semantics


def test_division_by_zero_is_infinite() -> None:
    assert evaluate("1 / 0") == math.inf
    assert math.isnan(evaluate("0 / 0"))
    assert run("a = 0 - 3; b = a / 0").environment["b"] == -math.inf


def test_divide_signed_zero() -> None:
    assert divide(1.0, -0.0) == -math.inf
    assert divide(-1.0, -0.0) == math.inf
    assert math.isnan(divide(math.nan, 0.0))


# Power edge cases


def test_power_overflow_is_infinite() -> None:
    assert power(10.0, 400.0) == math.inf
    assert power(-10.0, 401.0) == -math.inf
    assert power(-10.0, 400.0) == math.inf


def test_power_domain_errors() -> None:
    assert power(0.0, -1.0) == math.inf
    assert math.isnan(power(-8.0, 1 / 3))


# Factorial policy


@pytest.mark.parametrize("source", ["2.5!", "(0 - 1)!", "(0 - 0.5)!", "(1/0)!", "(0/0)!"])
def test_factorial_rejects_invalid_operands(source: str) -> None:
    with pytest.raises(EvalError, match="Factorial is only defined"):
        evaluate(source)


def test_factorial_error_points_at_operator() -> None:
    with pytest.raises(EvalError) as exc:
        run("x = 1.5!")
    assert (exc.value.line, exc.value.col) == (1, 8)


def test_factorial_overflow_is_infinite() -> None:
    assert factorial(170.0) == float(math.factorial(170))
    assert factorial(171.0) == math.inf


# Deep trees


def test_long_sum_evaluates() -> None:
    result = run("print " + " + ".join(["1"] * 600))
    assert result.printed == [600.0]


def test_long_mixed_chain_evaluates() -> None:
    source = "x = 0" + " + 2 - 1" * 1500
    assert run(source).environment == {"x": 1500.0}


def test_deeply_nested_tree_evaluates() -> None:
    node: ASTNode = Number(5)
    for _ in range(5000):
        node = Group(node)
    assert Interpreter().evaluate(Factorial(node)) == 120.0


def test_deep_parentheses_report_parse_error() -> None:
    env: dict[str, float] = {}
    with pytest.raises(ParseError, match="nested too deeply"):
        run("a = 1\nprint " + "(" * 400 + "1" + ")" * 400, environment=env)
    assert env == {}


def test_left_operand_error_reported_first() -> None:
    with pytest.raises(EvalError, match="Undefined variable: p"):
        run("q = p + r")


def test_large_whole_number_prints_in_exponent_form() -> None:
    assert [format_value(v) for v in run("print 10 ^ 300").printed] == ["1e+300"]


# Formatting


@pytest.mark.parametrize(
    "value,text",
    [
        (8.0, "8"),
        (-3.0, "-3"),
        (0.5, "0.5"),
        (1e-05, "1e-05"),
        (math.inf, "inf"),
        (-math.inf, "-inf"),
        (math.nan, "nan"),
        (2.0**53, "9007199254740992"),
        (1e16, "1e+16"),
        (-1e300, "-1e+300"),
    ],
)
def test_format_value(value: float, text: str) -> None:
    assert format_value(value) == text


# Properties

BINARY_OPS: dict[str, Callable[[float, float], float]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
}


@given(
    st.integers(min_value=0, max_value=10**6),
    st.sampled_from(sorted(BINARY_OPS)),
    st.integers(min_value=1, max_value=10**6),
)  # type: ignore[misc]
def test_binary_expression_matches_direct_application(a: int, op: str, b: int) -> None:
    assert evaluate(f"{a} {op} {b}") == BINARY_OPS[op](float(a), float(b))


@given(st.integers(min_value=0, max_value=20))  # type: ignore[misc]
def test_factorial_matches_math(n: int) -> None:
    assert evaluate(f"{n}!") == float(math.factorial(n))


@given(st.lists(st.integers(min_value=0, max_value=1000), min_size=1, max_size=8))  # type: ignore[misc]
def test_subtraction_chain_folds_left(values: list[int]) -> None:
    source = " - ".join(str(v) for v in values)
    expected = float(values[0])
    for v in values[1:]:
        expected -= v
    assert evaluate(source) == expected
