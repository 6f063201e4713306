"""
Numeric helpers shared by the terms, norms and defuzzifiers.

Floating-point equality is never tested exactly inside the engine: every
comparison against a threshold goes through the tolerant comparisons below.
"""

import re
from typing import Iterable

from flc.exceptions import ConfigurationError

nan = float("nan")
inf = float("inf")

EPSILON = 1e-9


def is_nan(x: float) -> bool:
    return x != x


def is_finite(x: float) -> bool:
    return not (is_nan(x) or x in (inf, -inf))


def is_eq(a: float, b: float, eps: float = EPSILON) -> bool:
    """True when a and b are within eps, or are both nan or the same infinity."""
    if a == b:
        return True
    if is_nan(a) and is_nan(b):
        return True
    return abs(a - b) < eps


def is_lt(a: float, b: float, eps: float = EPSILON) -> bool:
    return not is_eq(a, b, eps) and a < b


def is_le(a: float, b: float, eps: float = EPSILON) -> bool:
    return is_eq(a, b, eps) or a < b


def is_gt(a: float, b: float, eps: float = EPSILON) -> bool:
    return not is_eq(a, b, eps) and a > b


def is_ge(a: float, b: float, eps: float = EPSILON) -> bool:
    return is_eq(a, b, eps) or a > b


def bound(x: float, minimum: float, maximum: float) -> float:
    if x > maximum:
        return maximum
    if x < minimum:
        return minimum
    return x


def scale(x: float, from_min: float, from_max: float, to_min: float, to_max: float) -> float:
    """Linearly maps x from [from_min, from_max] onto [to_min, to_max]."""
    return (to_max - to_min) / (from_max - from_min) * (x - from_min) + to_min


def to_scalar(value) -> float:
    """
    Converts a number or its textual form into a float.

    Accepts the usual float syntax plus 'nan', 'inf' and '-inf'.

    Raises:
        ConfigurationError: If the value is not numeric.
    """
    if isinstance(value, bool):
        raise ConfigurationError(f"Expected a scalar but found boolean <{value}>")
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    try:
        return float(text)
    except ValueError:
        raise ConfigurationError(f"Expected a scalar but found <{text}>") from None


def to_scalars(values) -> list:
    """Splits a whitespace-separated string (or walks a sequence) into floats."""
    if isinstance(values, str):
        values = values.split()
    return [to_scalar(v) for v in values]


def str_scalar(x: float, decimals: int = 3) -> str:
    if is_nan(x):
        return "nan"
    if x == inf:
        return "inf"
    if x == -inf:
        return "-inf"
    text = f"{x:.{decimals}f}"
    # avoid "-0.000"
    if float(text) == 0.0:
        text = f"{0.0:.{decimals}f}"
    return text


def join_scalars(values: Iterable[float], decimals: int = 3, separator: str = " ") -> str:
    return separator.join(str_scalar(v, decimals) for v in values)


def valid_name(name: str) -> str:
    """Keeps only the characters that may appear in a variable or term name."""
    result = re.sub(r"[^A-Za-z0-9_.]", "", name)
    return result or "unnamed"
