"""Sandboxed single-variable formula evaluation for unit transforms."""

from __future__ import annotations

import ast
import math
import re
from dataclasses import dataclass
from decimal import (
    ROUND_HALF_UP,
    Context,
    Decimal,
    DecimalException,
    DivisionByZero,
    InvalidOperation,
    Overflow,
    Underflow,
    localcontext,
)
from functools import lru_cache
from typing import Callable, Mapping, Sequence


class TransformError(ValueError):
    """Raised when a transform formula cannot be parsed or evaluated."""


DECIMAL_PRECISION = 40

DECIMAL_CONTEXT = Context(
    prec=DECIMAL_PRECISION,
    rounding=ROUND_HALF_UP,
    Emax=999_999,
    Emin=-999_999,
    traps=[DivisionByZero, InvalidOperation, Overflow, Underflow],
)

_ALLOWED_CHARACTERS = re.compile(r"^[0-9a-zA-Z_\s+\-*/().,^%]*$")
_MAX_FORMULA_LENGTH = 256
_VARIABLE_NAMES = {"x", "X"}


def _abs(value: Decimal) -> Decimal:
    return abs(value)


def _neg(value: Decimal) -> Decimal:
    return -value


def _sqrt(value: Decimal) -> Decimal:
    return value.sqrt()


def _pow(base: Decimal, exponent: Decimal) -> Decimal:
    return base**exponent


# name -> (callable, minimum arity, maximum arity or None for variadic)
_FUNCTIONS: Mapping[str, tuple[Callable[..., Decimal], int, int | None]] = {
    "abs": (_abs, 1, 1),
    "neg": (_neg, 1, 1),
    "sqrt": (_sqrt, 1, 1),
    "pow": (_pow, 2, 2),
    "min": (lambda *args: min(args), 1, None),
    "max": (lambda *args: max(args), 1, None),
}

_BINARY_OPERATORS = (ast.Add, ast.Sub, ast.Mult, ast.Div, ast.Mod, ast.Pow)


def _normalize_formula(expression: str) -> str:
    if not isinstance(expression, str) or not expression.strip():
        raise TransformError("Transform expression must be a non-empty string")
    if len(expression) > _MAX_FORMULA_LENGTH:
        raise TransformError("Transform expression is too long")
    if not _ALLOWED_CHARACTERS.match(expression):
        raise TransformError("Invalid characters in transform expression")
    # Caret is the documented exponent operator.
    return expression.strip().replace("^", "**")


def _validate_node(node: ast.AST) -> None:
    if isinstance(node, ast.BinOp):
        if not isinstance(node.op, _BINARY_OPERATORS):
            raise TransformError("Operator not permitted in transform expression")
        _validate_node(node.left)
        _validate_node(node.right)
        return
    if isinstance(node, ast.UnaryOp):
        if not isinstance(node.op, (ast.UAdd, ast.USub)):
            raise TransformError("Unary operator not permitted in transform expression")
        _validate_node(node.operand)
        return
    if isinstance(node, ast.Call):
        if not isinstance(node.func, ast.Name):
            raise TransformError("Only named functions are permitted")
        if node.keywords:
            raise TransformError("Keyword arguments are not supported")
        spec = _FUNCTIONS.get(node.func.id)
        if spec is None:
            raise TransformError(f"Unsupported function '{node.func.id}' in transform expression")
        _, minimum, maximum = spec
        if len(node.args) < minimum or (maximum is not None and len(node.args) > maximum):
            raise TransformError(f"Wrong number of arguments for '{node.func.id}'")
        for arg in node.args:
            if isinstance(arg, ast.Starred):
                raise TransformError("Argument unpacking is not supported")
            _validate_node(arg)
        return
    if isinstance(node, ast.Name):
        if node.id not in _VARIABLE_NAMES:
            raise TransformError(f"Unknown identifier: {node.id}")
        return
    if isinstance(node, ast.Constant):
        if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
            raise TransformError("Only numeric literals are allowed")
        return
    raise TransformError("Unsupported syntax in transform expression")


def _literal(node: ast.Constant, source: str) -> Decimal:
    text = ast.get_source_segment(source, node)
    if text is None:  # pragma: no cover - positions are always present for parsed source
        text = repr(node.value)
    try:
        value = Decimal(text)
    except InvalidOperation as exc:
        raise TransformError(f"Unsupported numeric literal '{text}'") from exc
    return value


@dataclass(frozen=True)
class CompiledTransform:
    """A validated formula ready for repeated evaluation."""

    source: str
    normalized: str
    tree: ast.Expression

    def evaluate(self, x: Decimal | int | str) -> Decimal:
        value = x if isinstance(x, Decimal) else Decimal(str(x))
        try:
            with localcontext(DECIMAL_CONTEXT):
                result = self._eval(self.tree.body, value)
                # Apply context precision to results that never passed through arithmetic.
                result = +result
        except DecimalException as exc:
            raise TransformError(_describe_decimal_error(exc)) from exc
        if not result.is_finite():
            raise TransformError("Transform result is not finite")
        return result

    def _eval(self, node: ast.AST, x: Decimal) -> Decimal:
        if isinstance(node, ast.Constant):
            return _literal(node, self.normalized)
        if isinstance(node, ast.Name):
            return x
        if isinstance(node, ast.UnaryOp):
            operand = self._eval(node.operand, x)
            return +operand if isinstance(node.op, ast.UAdd) else -operand
        if isinstance(node, ast.BinOp):
            left = self._eval(node.left, x)
            right = self._eval(node.right, x)
            op = node.op
            if isinstance(op, ast.Add):
                return left + right
            if isinstance(op, ast.Sub):
                return left - right
            if isinstance(op, ast.Mult):
                return left * right
            if isinstance(op, ast.Div):
                return left / right
            if isinstance(op, ast.Mod):
                return left % right
            if isinstance(op, ast.Pow):
                return left**right
            raise TransformError("Operator not permitted in transform expression")  # pragma: no cover
        if isinstance(node, ast.Call):
            func, _, _ = _FUNCTIONS[node.func.id]
            args: Sequence[Decimal] = [self._eval(arg, x) for arg in node.args]
            return func(*args)
        raise TransformError("Unsupported syntax in transform expression")  # pragma: no cover


def _describe_decimal_error(exc: DecimalException) -> str:
    if isinstance(exc, DivisionByZero):
        return "Division by zero in transform expression"
    if isinstance(exc, Overflow):
        return "Transform result overflowed"
    if isinstance(exc, Underflow):
        return "Transform result underflowed"
    return "Invalid arithmetic operation in transform expression"


@lru_cache(maxsize=512)
def compile_transform(expression: str) -> CompiledTransform:
    """Check ``expression`` against the allow-list and grammar without evaluating it."""

    normalized = _normalize_formula(expression)
    try:
        tree = ast.parse(normalized, mode="eval")
    except SyntaxError as exc:
        raise TransformError(f"Could not parse transform expression: {exc.msg}") from exc
    _validate_node(tree.body)
    for node in ast.walk(tree):
        if isinstance(node, ast.Constant):
            _literal(node, normalized)
    return CompiledTransform(source=expression, normalized=normalized, tree=tree)


def evaluate_transform(expression: str, x: Decimal | int | str) -> Decimal:
    """Evaluate ``expression`` with the free variable bound to ``x``."""

    return compile_transform(expression).evaluate(x)


def evaluate_to_number(expression: str, x: Decimal | int | str = 1) -> float | None:
    """Evaluate ``expression`` and return a finite float, or ``None`` on any failure."""

    try:
        value = float(evaluate_transform(expression, x))
    except (TransformError, TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(value):
        return None
    return value


__all__ = [
    "DECIMAL_CONTEXT",
    "DECIMAL_PRECISION",
    "CompiledTransform",
    "TransformError",
    "compile_transform",
    "evaluate_to_number",
    "evaluate_transform",
]
