"""
Tree-walking evaluator for the TALLY language.

This module provides the `Interpreter` class, which executes parsed TALLY
statements against a variable environment, and the `run` helper that drives
the whole lex → parse → interpret pipeline for a piece of source text.

Evaluation is dispatched on node kind: an expression node of kind `plus` is
handled by `eval_plus`, a statement of kind `assign` by `exec_assign`, and so
on. Arithmetic is total over floats: division by zero and out-of-range powers
produce IEEE-754 infinities or NaN instead of raising.

Usage:
    >>> result = run("a = 7\\nb = a + 1\\nprint b")
    >>> result.printed
    [8.0]
    >>> result.environment
    {'a': 7.0, 'b': 8.0}

Raises:
    EvalError: On an undefined variable or an invalid factorial operand. Effects
        of the statements that ran before the failing one are kept.
"""

import logging
import math
from collections.abc import Callable, Iterable
from typing import NamedTuple

from tally.tally_ast import (
    ASTNode,
    Assignment,
    BinaryNode,
    ExpressionStatement,
    Print,
    Statement,
    UnaryNode,
    Variable,
)
from tally.tally_errors import EvalError
from tally.tally_lexer import lex
from tally.tally_parser import parse

logger = logging.getLogger(__name__)

Environment = dict[str, float]
Sink = Callable[[float], None]

# Largest n whose factorial is representable as a float.
MAX_FACTORIAL = 170

# Whole numbers at or above this magnitude print in exponent form.
MAX_PLAIN_INTEGER = 1e16


class RunResult(NamedTuple):
    """Outcome of a successful run: final bindings and printed values in order."""

    environment: Environment
    printed: list[float]


def format_value(value: float) -> str:
    """Render a value the way `print` shows it: `8`, `0.5`, `inf`, `-inf`, `nan`."""
    if math.isnan(value):
        return "nan"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    if value.is_integer() and abs(value) < MAX_PLAIN_INTEGER:
        return str(int(value))
    return repr(value)


def divide(left: float, right: float) -> float:
    if right == 0:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


def power(base: float, exponent: float) -> float:
    try:
        return math.pow(base, exponent)
    except OverflowError:
        if base < 0 and exponent.is_integer() and exponent % 2 == 1:
            return -math.inf
        return math.inf
    except ValueError:
        # 0 ^ negative, or a negative base with a fractional exponent
        if base == 0:
            return math.inf
        return math.nan


def factorial(value: float) -> float:
    if not math.isfinite(value) or not value.is_integer() or value < 0:
        raise EvalError(
            f"Factorial is only defined for non-negative whole numbers, got {format_value(value)}"
        )
    n = int(value)
    if n > MAX_FACTORIAL:
        return math.inf
    return float(math.factorial(n))


class Interpreter:
    """Evaluates TALLY statements against an environment.

    Attributes:
        environment (Environment): Variable bindings; mutated in place by assignments.
        printed (list[float]): Every value emitted by `print`, in order.
        sink (Sink | None): Optional callback invoked with each printed value.
    """

    def __init__(self, environment: Environment | None = None, sink: Sink | None = None) -> None:
        self.environment: Environment = environment if environment is not None else {}
        self.printed: list[float] = []
        self.sink = sink

    def interpret(self, statements: Iterable[Statement]) -> RunResult:
        """Execute each statement in order and return the final state.

        Raises:
            EvalError: From the first statement that fails; earlier effects remain.
        """
        for statement in statements:
            self.execute(statement)
        return RunResult(self.environment, self.printed)

    def execute(self, statement: ASTNode) -> float | None:
        """Execute one statement. Returns the value of an expression statement."""
        method = getattr(self, f"exec_{statement.kind}", None)
        if method is None:
            raise EvalError(
                f"Cannot execute node kind '{statement.kind}'", statement.line, statement.col
            )
        result: float | None = method(statement)
        return result

    def evaluate(self, node: ASTNode) -> float:
        """Evaluate an expression tree in post-order on an explicit stack.

        Each `eval_<kind>` method receives the node followed by the values of
        its children, left to right. Tree depth is bounded by memory, not by
        the Python call stack.
        """
        values: list[float] = []
        pending: list[tuple[ASTNode, bool]] = [(node, False)]
        while pending:
            current, expanded = pending.pop()
            if current.children and not expanded:
                pending.append((current, True))
                pending.extend((child, False) for child in reversed(current.children))
                continue
            method = getattr(self, f"eval_{current.kind}", None)
            if method is None:
                raise EvalError(
                    f"Cannot evaluate node kind '{current.kind}'", current.line, current.col
                )
            split = len(values) - len(current.children)
            operands = values[split:]
            del values[split:]
            values.append(method(current, *operands))
        return values[0]

    # Statements

    def exec_expr_stmt(self, node: ExpressionStatement) -> float:
        return self.evaluate(node.expression)

    def exec_assign(self, node: Assignment) -> None:
        value = self.evaluate(node.expression)
        self.environment[node.name] = value
        logger.debug("bind %s = %r", node.name, value)

    def exec_print(self, node: Print) -> None:
        value = self.evaluate(node.expression)
        self.printed.append(value)
        logger.debug("print %r", value)
        if self.sink is not None:
            self.sink(value)

    # Expressions

    def eval_number(self, node: ASTNode) -> float:
        return float(node.value)  # type: ignore[arg-type]

    def eval_variable(self, node: Variable) -> float:
        try:
            return self.environment[node.name]
        except KeyError:
            raise EvalError(f"Undefined variable: {node.name}", node.line, node.col) from None

    def eval_group(self, node: UnaryNode, inner: float) -> float:
        return inner

    def eval_empty(self, node: ASTNode) -> float:
        return 0.0

    def eval_plus(self, node: BinaryNode, left: float, right: float) -> float:
        return left + right

    def eval_minus(self, node: BinaryNode, left: float, right: float) -> float:
        return left - right

    def eval_asterisk(self, node: BinaryNode, left: float, right: float) -> float:
        return left * right

    def eval_slash(self, node: BinaryNode, left: float, right: float) -> float:
        return divide(left, right)

    def eval_power(self, node: BinaryNode, base: float, exponent: float) -> float:
        return power(base, exponent)

    def eval_factorial(self, node: UnaryNode, operand: float) -> float:
        try:
            return factorial(operand)
        except EvalError as e:
            raise EvalError(e.message, node.line, node.col) from None


def run(source: str, environment: Environment | None = None, sink: Sink | None = None) -> RunResult:
    """Lex, parse and interpret `source`.

    Parsing completes before any statement runs, so a syntax error anywhere in
    `source` leaves `environment` untouched.

    Args:
        source: TALLY program text.
        environment: Bindings to start from and update; a new dict if omitted.
        sink: Called with each printed value as it is produced.

    Raises:
        LexError, ParseError, EvalError: The first error encountered.
    """
    statements = parse(lex(source))
    logger.debug("parsed %d statement(s)", len(statements))
    return Interpreter(environment, sink).interpret(statements)


__all__ = [
    "Environment",
    "Interpreter",
    "RunResult",
    "divide",
    "factorial",
    "format_value",
    "power",
    "run",
]
