"""
Safe evaluation of skill rule conditions.

Conditions are small boolean expressions written in skill bundles:

    spend > highSpendThreshold AND roas < lowRoasThreshold
    isContactPage AND (bounceRate > 60 OR avgTimeOnPage < 30)
    isMobileHeavy AND callConversions < clicks * 0.02

Grammar: names, numeric/boolean literals, parentheses, comparison operators
(<, <=, >, >=, ==, !=), arithmetic (+, -, *, /) and the keywords AND / OR /
NOT (lower-case and/or/not also work). Expressions are parsed with `ast`
and walked over a whitelist of node types; nothing is passed to eval().

Missing data semantics:
- A name absent from the namespace evaluates to None.
- Any comparison with a None operand is False.
- Arithmetic with a None operand (or division by zero) yields None.
- None is falsy for AND / OR / NOT.

So a rule that references a metric the row lacks simply does not match.
"""

import ast
import operator
import re
from functools import lru_cache
from typing import Any, Callable, Dict, Mapping, Optional


class ConditionError(ValueError):
    """A condition string is not valid in the rule grammar."""


_KEYWORD_PATTERN = re.compile(r"\b(AND|OR|NOT)\b")

_COMPARISONS: Dict[type, Callable[[Any, Any], bool]] = {
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
}

_ARITHMETIC: Dict[type, Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
}

_ALLOWED_NODES = (
    ast.Expression,
    ast.BoolOp,
    ast.And,
    ast.Or,
    ast.UnaryOp,
    ast.Not,
    ast.USub,
    ast.UAdd,
    ast.Compare,
    ast.BinOp,
    ast.Name,
    ast.Load,
    ast.Constant,
) + tuple(_COMPARISONS) + tuple(_ARITHMETIC)


def _to_python_syntax(condition: str) -> str:
    return _KEYWORD_PATTERN.sub(lambda match: match.group(1).lower(), condition)


@lru_cache(maxsize=1024)
def compile_condition(condition: str) -> ast.Expression:
    """
    Parse and validate a condition.

    Raises:
        ConditionError: Empty, unparsable or using a disallowed construct.
    """
    if not condition or not condition.strip():
        raise ConditionError("Condition is empty")

    try:
        tree = ast.parse(_to_python_syntax(condition.strip()), mode="eval")
    except SyntaxError as e:
        raise ConditionError(f"Invalid condition {condition!r}: {e.msg}") from e

    for node in ast.walk(tree):
        if not isinstance(node, _ALLOWED_NODES):
            raise ConditionError(f"Unsupported construct {type(node).__name__} in condition {condition!r}")
        if isinstance(node, ast.Constant) and not isinstance(node.value, (int, float, bool)):
            raise ConditionError(f"Unsupported literal {node.value!r} in condition {condition!r}")

    return tree


def _truthy(value: Any) -> bool:
    return bool(value) if value is not None else False


def _eval(node: ast.AST, namespace: Mapping[str, Any]) -> Any:
    if isinstance(node, ast.Expression):
        return _eval(node.body, namespace)

    if isinstance(node, ast.Constant):
        return node.value

    if isinstance(node, ast.Name):
        return namespace.get(node.id)

    if isinstance(node, ast.BoolOp):
        if isinstance(node.op, ast.And):
            return all(_truthy(_eval(value, namespace)) for value in node.values)
        return any(_truthy(_eval(value, namespace)) for value in node.values)

    if isinstance(node, ast.UnaryOp):
        operand = _eval(node.operand, namespace)
        if isinstance(node.op, ast.Not):
            return not _truthy(operand)
        if operand is None:
            return None
        return -operand if isinstance(node.op, ast.USub) else operand

    if isinstance(node, ast.BinOp):
        left = _eval(node.left, namespace)
        right = _eval(node.right, namespace)
        if left is None or right is None:
            return None
        try:
            return _ARITHMETIC[type(node.op)](left, right)
        except ZeroDivisionError:
            return None

    if isinstance(node, ast.Compare):
        left = _eval(node.left, namespace)
        for op, comparator in zip(node.ops, node.comparators):
            right = _eval(comparator, namespace)
            if left is None or right is None:
                return False
            if not _COMPARISONS[type(op)](left, right):
                return False
            left = right
        return True

    raise ConditionError(f"Unsupported construct {type(node).__name__}")


def evaluate_condition(condition: str, namespace: Mapping[str, Any]) -> bool:
    """
    Evaluate a condition against a metric namespace.

    Args:
        condition: Rule condition string.
        namespace: Metric, threshold, target and signal values by name.

    Returns:
        True when the condition holds; False otherwise, including when the
        metrics it needs are missing.

    Raises:
        ConditionError: If the condition itself is malformed.

    Example:
        >>> evaluate_condition("spend > 300 AND conversions < 3", {"spend": 350, "conversions": 1})
        True
        >>> evaluate_condition("roas < 2", {"roas": None})
        False
    """
    return _truthy(_eval(compile_condition(condition), namespace))


def referenced_names(condition: str) -> frozenset:
    """Names a condition reads, e.g. for skill bundle checks."""
    return frozenset(
        node.id for node in ast.walk(compile_condition(condition)) if isinstance(node, ast.Name)
    )


def safe_ratio(numerator: Optional[float], denominator: Optional[float], scale: float = 1.0) -> Optional[float]:
    """numerator / denominator * scale, or None when undefined."""
    if numerator is None or not denominator:
        return None
    return numerator / denominator * scale


__all__ = [
    "ConditionError",
    "compile_condition",
    "evaluate_condition",
    "referenced_names",
    "safe_ratio",
]
