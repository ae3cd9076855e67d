"""Condition evaluation for CONDITION nodes.

Operands are compared as strings for equality and as floats for ordering.
Evaluation is total: any operand or operator that cannot be evaluated makes
the condition false instead of raising.
"""

import math
import re
from enum import StrEnum

MemoryValue = str | int | float | bool


class ConditionOperator(StrEnum):
    """Operators a CONDITION node may use."""

    EQ = "=="
    NE = "!="
    GT = ">"
    LT = "<"
    GE = ">="
    LE = "<="


DEFAULT_OPERATOR = ConditionOperator.EQ

# Plain ASCII decimal literals; "1_000", "0x10" and "inf" are not numbers
_DECIMAL = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?", re.ASCII)

# Integral floats below this print without an exponent in the game runtime
_EXPONENT_THRESHOLD = 1e21


def _format_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer() and abs(value) < _EXPONENT_THRESHOLD:
        return str(int(value))
    # 1e-07 -> 1e-7, 1e+300 stays
    return re.sub(r"e([+-])0*(\d)", r"e\1\2", repr(value))


def stringify(value: MemoryValue | None) -> str:
    """Render a memory value the way the game runtime prints it."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return _format_float(value)
    return str(value)


def parse_number(value: str) -> float | None:
    """Parse a finite decimal literal, or None."""
    text = value.strip()
    if not _DECIMAL.fullmatch(text):
        return None
    number = float(text)
    if not math.isfinite(number):
        return None
    return number


def evaluate_condition(
    variable_name: str | None,
    operator: str | None,
    compare_value: str | None,
    memory: dict[str, MemoryValue],
) -> bool:
    """
    Evaluate a CONDITION node against the current memory.

    Args:
        variable_name: Memory key to read. A missing key reads as "".
        operator: One of ==, !=, >, <, >=, <=. None or "" means ==.
        compare_value: Right-hand operand. None means "".
        memory: Current game memory (read only)

    Returns:
        Result of the comparison. Ordering operators on non-numeric operands
        and unknown operators are False.
    """
    left = stringify(memory.get(variable_name or ""))
    right = compare_value or ""
    op = operator or DEFAULT_OPERATOR

    if op == ConditionOperator.EQ:
        return left == right
    if op == ConditionOperator.NE:
        return left != right

    if op not in (
        ConditionOperator.GT,
        ConditionOperator.LT,
        ConditionOperator.GE,
        ConditionOperator.LE,
    ):
        return False

    num_left = parse_number(left)
    num_right = parse_number(right)
    if num_left is None or num_right is None:
        return False

    if op == ConditionOperator.GT:
        return num_left > num_right
    if op == ConditionOperator.LT:
        return num_left < num_right
    if op == ConditionOperator.GE:
        return num_left >= num_right
    return num_left <= num_right
