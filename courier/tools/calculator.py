"""
Arithmetic Evaluator
====================

Evaluates plain arithmetic for the calculator tool without eval().

Accepted grammar:
    expr   := expr ('+' | '-') term | term
    term   := term ('*' | '/') factor | factor
    factor := ('+' | '-') factor | '(' expr ')' | number

The expression is parsed with Python's ast module and walked with a strict
node whitelist. Names, calls, attribute access, strings, powers and every
other construct are rejected before anything is evaluated.
"""

import ast
import math
import operator

# Longest expression accepted, to keep parsing cheap
MAX_EXPRESSION_LENGTH = 500

_BINARY_OPERATORS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
}

_UNARY_OPERATORS = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}


class InvalidExpression(ValueError):
    """The expression is not valid arithmetic."""


def _evaluate(node: ast.AST) -> float:
    if isinstance(node, ast.Expression):
        return _evaluate(node.body)

    if isinstance(node, ast.Constant):
        # bool is an int subclass; True/False are names, not numbers
        if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
            raise InvalidExpression(f"unsupported literal {node.value!r}")
        return node.value

    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPERATORS:
        left = _evaluate(node.left)
        right = _evaluate(node.right)
        try:
            return _BINARY_OPERATORS[type(node.op)](left, right)
        except (ZeroDivisionError, OverflowError) as e:
            raise InvalidExpression(str(e)) from e

    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPERATORS:
        return _UNARY_OPERATORS[type(node.op)](_evaluate(node.operand))

    raise InvalidExpression(f"unsupported syntax: {type(node).__name__}")


def evaluate(expression: str) -> float:
    """
    Evaluate an arithmetic expression.

    Raises:
        InvalidExpression: If the text is not arithmetic over numeric
            literals, or cannot be evaluated (e.g. division by zero)
    """
    if not expression or not expression.strip():
        raise InvalidExpression("empty expression")
    if len(expression) > MAX_EXPRESSION_LENGTH:
        raise InvalidExpression("expression too long")

    try:
        tree = ast.parse(expression.strip(), mode="eval")
    except SyntaxError as e:
        raise InvalidExpression(str(e)) from e

    result = _evaluate(tree)
    if isinstance(result, float) and not math.isfinite(result):
        raise InvalidExpression("result is not a finite number")
    return result


def format_number(value: float) -> str:
    """Format a result, dropping the fractional part of whole floats."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
