"""Decimal-safe arithmetic for prices and sizes.

Exchanges define price and size precision (tick size and lot size), but prices
travel through the system as native floats. Plain float arithmetic carries the
binary representation error forward:

    0.1 + 0.2  -> 0.30000000000000004
    0.1 * 0.2  -> 0.020000000000000004

Every helper here rounds its result back to the decimal precision its inputs
actually carry, so totals stay clean and order sizes stay exchange-legal:

    add(0.1, 0.2)                -> 0.3
    multiply(0.1, 0.2)           -> 0.02
    round_to_step(10.126, 0.01)  -> 10.13
"""

import math
from decimal import ROUND_FLOOR, Decimal

import numpy as np

# Precision assumed when the fractional part can't be read from the string form
DEFAULT_DIGITS = 2

Numeric = float | int
Step = float | int | str


def _canonical_text(value: Step) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, float):
        return repr(value)
    return str(value)


def _is_integral(value: Step) -> bool:
    if isinstance(value, bool):
        return True
    if isinstance(value, int):
        return True
    if isinstance(value, float):
        return value.is_integer()

    text = value.strip()
    if "." in text:
        return False
    try:
        return float(text).is_integer()
    except ValueError:
        return False


def digits_after_point(value: Step) -> int:
    """Count the fractional decimal digits in a value's canonical form.

    Examples:
        digits_after_point(5)        -> 0
        digits_after_point(3.14159)  -> 5
        digits_after_point("0.001")  -> 3
        digits_after_point(1e-05)    -> 5  (scientific: |exponent|)
        digits_after_point(1.23e-07) -> 7
        digits_after_point(inf)      -> 2  (undeterminable, default)
    """
    if _is_integral(value):
        return 0

    text = _canonical_text(value).lower()
    if "e" in text:
        _, _, exponent = text.partition("e")
        try:
            return abs(int(exponent))
        except ValueError:
            return DEFAULT_DIGITS

    _, _, fraction = text.partition(".")
    return len(fraction) or DEFAULT_DIGITS


def round_half_up(value: Numeric, decimals: int) -> float:
    """Round to `decimals` places, halves towards positive infinity.

    Non-finite values (inf, nan) are returned unchanged.
    """
    if not math.isfinite(value):
        return float(value)

    factor = 10.0**decimals
    scaled = value * factor
    if not math.isfinite(scaled):
        return float(value)
    return math.floor(scaled + 0.5) / factor


def add(a: Numeric, b: Numeric) -> float:
    decimals = max(digits_after_point(a), digits_after_point(b))
    return round_half_up(a + b, decimals)


def subtract(a: Numeric, b: Numeric) -> float:
    decimals = max(digits_after_point(a), digits_after_point(b))
    return round_half_up(a - b, decimals)


def multiply(a: Numeric, b: Numeric) -> float:
    decimals = digits_after_point(a) + digits_after_point(b)
    return round_half_up(a * b, decimals)


def divide(a: Numeric, b: Numeric) -> float:
    """Divide with precision max(digits(a), digits(b)).

    Division by zero follows IEEE-754 (inf, -inf or nan) instead of raising;
    callers that can see a zero divisor must guard for it.
    """
    decimals = max(digits_after_point(a), digits_after_point(b))
    with np.errstate(divide="ignore", invalid="ignore"):
        quotient = float(np.divide(np.float64(a), np.float64(b)))
    return round_half_up(quotient, decimals)


def round_to_step(value: Numeric, step: Step) -> float:
    """Snap a value to the nearest multiple of `step`.

    The result is rounded to the step's own digit count so the returned float
    prints exactly like a multiple of the step.

    Examples:
        round_to_step(10.126, 0.01)   -> 10.13
        round_to_step(10.123, 0.001)  -> 10.123
        round_to_step(10.123, "0.1")  -> 10.1
        round_to_step(10.5, 1)        -> 11

    A zero step or a non-finite value gives inf or nan instead of raising,
    as divide does.
    """
    step_value = float(step)
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        multiplier = np.divide(np.float64(1.0), np.float64(step_value))
        scaled = np.float64(value) * multiplier
        # zero step or non-finite input: no floor, IEEE result (inf or nan)
        if np.isfinite(scaled):
            scaled = np.floor(scaled + 0.5)
        snapped = float(np.divide(scaled, multiplier))
    return round_half_up(snapped, digits_after_point(step))


def floor_to_step(value: Numeric, step: Step) -> float:
    """Largest multiple of `step` that is not above `value`.

    Computed in exact decimal so that e.g. floor_to_step(0.3, 0.1) is 0.3 and
    not 0.2 (0.3 / 0.1 is 2.9999999999999996 in binary floating point).
    """
    step_dec = Decimal(_canonical_text(step))
    buckets = (Decimal(_canonical_text(value)) / step_dec).to_integral_value(
        rounding=ROUND_FLOOR
    )
    return float(buckets * step_dec)


def to_usd(value: Numeric) -> float:
    """Round a quote-currency amount to cents."""
    return round_half_up(value, 2)
