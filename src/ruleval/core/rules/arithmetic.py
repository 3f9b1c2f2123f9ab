"""Numeric promotion and arithmetic for the value model.

Integers are signed 64-bit and wrap on overflow. Float `+ - *` go through
`decimal.Decimal` built from each operand's shortest repr, so
`1.223400012 - 1.2` gives `0.023400012` rather than the nearest binary
neighbour of the exact difference. Float `/` is plain IEEE-754 division.
"""

import math
from decimal import MAX_EMAX, MIN_EMIN, Context, Decimal

from .exceptions import RuleEvaluationError
from .values import INT64_MAX, FloatValue, IntValue, Value

# Wide enough that add/sub/mul of two 17-digit operands is exact at any exponent.
_DECIMAL_CONTEXT = Context(prec=1000, Emax=MAX_EMAX, Emin=MIN_EMIN)


def wrap_int64(value: int) -> int:
    """Reduce an arbitrary integer to signed 64-bit two's complement."""
    value &= (1 << 64) - 1
    if value > INT64_MAX:
        value -= 1 << 64
    return value


def unify_numeric(left: Value, right: Value) -> tuple[Value, Value]:
    """Bring a numeric operand pair to a shared representation.

    An Int64 paired with a Float is promoted to Float. Any other pair is
    returned unchanged; non-numeric operands are never coerced.
    """
    if isinstance(left, IntValue) and isinstance(right, FloatValue):
        return FloatValue(float(left.value)), right
    if isinstance(left, FloatValue) and isinstance(right, IntValue):
        return left, FloatValue(float(right.value))
    return left, right


def int_divide(left: int, right: int) -> int:
    """Integer division truncating toward zero."""
    if right == 0:
        raise RuleEvaluationError("integer division by zero")
    quotient = abs(left) // abs(right)
    if (left < 0) != (right < 0):
        quotient = -quotient
    return wrap_int64(quotient)


def int_remainder(left: int, right: int) -> int:
    """Remainder whose sign follows the dividend."""
    if right == 0:
        raise RuleEvaluationError("integer remainder by zero")
    remainder = abs(left) % abs(right)
    return -remainder if left < 0 else remainder


INT_ARITHMETIC = {
    "+": lambda a, b: wrap_int64(a + b),
    "-": lambda a, b: wrap_int64(a - b),
    "*": lambda a, b: wrap_int64(a * b),
    "/": int_divide,
    "%": int_remainder,
}


def _to_decimal(value: float) -> Decimal:
    if not math.isfinite(value):
        raise RuleEvaluationError(f"cannot apply decimal arithmetic to {value}")
    return Decimal(repr(value))


def decimal_add(left: float, right: float) -> float:
    return float(_DECIMAL_CONTEXT.add(_to_decimal(left), _to_decimal(right)))


def decimal_subtract(left: float, right: float) -> float:
    return float(_DECIMAL_CONTEXT.subtract(_to_decimal(left), _to_decimal(right)))


def decimal_multiply(left: float, right: float) -> float:
    return float(_DECIMAL_CONTEXT.multiply(_to_decimal(left), _to_decimal(right)))


def float_divide(left: float, right: float) -> float:
    """IEEE-754 division: a zero divisor gives an infinity or NaN."""
    if right == 0.0:
        if left == 0.0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


FLOAT_ARITHMETIC = {
    "+": decimal_add,
    "-": decimal_subtract,
    "*": decimal_multiply,
    "/": float_divide,
}

COMPARISONS = {
    "<": lambda a, b: a < b,
    ">": lambda a, b: a > b,
    "<=": lambda a, b: a <= b,
    ">=": lambda a, b: a >= b,
    "==": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
}


def negate(operand: Value) -> Value | None:
    """Arithmetic negation; None when the operand is not numeric."""
    if isinstance(operand, IntValue):
        return IntValue(wrap_int64(-operand.value))
    if isinstance(operand, FloatValue):
        return FloatValue(-operand.value)
    return None
