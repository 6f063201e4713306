"""
Membership functions ("terms").

Every term maps a crisp value onto a membership degree through
`membership(x)`. Shapes are configured from an ordered list of scalar
parameters, and `parameters()` writes them back in the same order so that a
term can be exported and configured again without loss. Bounded shapes accept
an optional trailing `height` parameter that scales the whole curve.

Terms evaluated at nan return nan, so an input that was never set does not
fire any rule.

Monotonic shapes (Concave, Ramp, Sigmoid, SShape, ZShape) can be inverted
with `tsukamoto(w, minimum, maximum)`, which Tsukamoto-style weighted
defuzzifiers rely on.
"""

import math
from bisect import bisect_right
from typing import List, Sequence, Tuple

from flc.exceptions import ConfigurationError, EvaluationError
from flc.operation import (
    inf, nan, is_nan, is_eq, is_lt, is_le, is_gt, is_ge,
    scale, to_scalars, join_scalars,
)


def _in_unit_interval(w: float) -> bool:
    # rule weights above 1 push degrees past the invertible domain
    return not is_nan(w) and is_ge(w, 0.0) and is_le(w, 1.0)


def _collapsed(x: float, center: float) -> float:
    """Shape of zero width: 0 everywhere but at its center, where it is undefined."""
    return nan if is_eq(x, center) else 0.0


class Term:
    """
    Base class of every membership function.

    Subclasses list their shape parameters in `fields`; the generic
    `configure()` and `parameters()` below walk that list.

    Attributes:
        name (str): Unique name of the term within its variable.
        height (float): Scale of the curve, 1.0 unless configured otherwise.
    """

    fields: Tuple[str, ...] = ()
    has_height = True

    def __init__(self, name: str = "", height: float = 1.0):
        self.name = name
        self.height = height

    @property
    def class_name(self) -> str:
        return type(self).__name__

    def membership(self, x: float) -> float:
        raise NotImplementedError

    def parameters(self, decimals: int = 3) -> str:
        values = [getattr(self, f) for f in self.fields]
        if self.has_height and not is_eq(self.height, 1.0):
            values.append(self.height)
        return join_scalars(values, decimals)

    def configure(self, parameters) -> None:
        """
        Sets the shape from a sequence of scalars or a space-separated string.

        Raises:
            ConfigurationError: If the number of parameters does not match.
        """
        values = to_scalars(parameters)
        required = len(self.fields)
        allowed = (required, required + 1) if self.has_height else (required,)
        if len(values) not in allowed:
            raise ConfigurationError(
                f"{self.class_name} <{self.name}> requires {required} parameters"
                f"{' (plus optional height)' if self.has_height else ''}, "
                f"but {len(values)} were given"
            )
        for field, value in zip(self.fields, values):
            setattr(self, field, value)
        if self.has_height:
            self.height = values[required] if len(values) > required else 1.0

    def support(self) -> Tuple[float, float]:
        """Interval outside which the membership is zero (unbounded by default)."""
        return (-inf, inf)

    def is_monotonic(self) -> bool:
        return False

    def tsukamoto(self, activation_degree: float, minimum: float, maximum: float) -> float:
        raise EvaluationError(
            f"Tsukamoto inversion requires a monotonic term, but "
            f"{self.class_name} <{self.name}> is not monotonic"
        )

    def update_reference(self, engine) -> None:
        """Hook for terms that read other variables of the engine."""

    def __str__(self) -> str:
        return f"term: {self.name} {self.class_name} {self.parameters()}".rstrip()

    def __repr__(self) -> str:
        return f"{self.class_name}({self.name!r}, {self.parameters()!r})"


# ------------------------------------------------------------
# Piecewise-linear shapes
# ------------------------------------------------------------
class Triangle(Term):
    fields = ("vertex_a", "vertex_b", "vertex_c")

    def __init__(self, name: str = "", vertex_a: float = nan, vertex_b: float = nan,
                 vertex_c: float = nan, height: float = 1.0):
        super().__init__(name, height)
        self.vertex_a = vertex_a
        self.vertex_b = vertex_b
        self.vertex_c = vertex_c

    def membership(self, x: float) -> float:
        if is_nan(x):
            return nan
        a, b, c = self.vertex_a, self.vertex_b, self.vertex_c
        if is_lt(x, a) or is_gt(x, c):
            return 0.0
        if is_eq(x, b):
            return self.height * 1.0
        if is_lt(x, b):
            if a == -inf:
                return self.height * 1.0
            return self.height * (x - a) / (b - a)
        if c == inf:
            return self.height * 1.0
        return self.height * (c - x) / (c - b)

    def support(self):
        return (self.vertex_a, self.vertex_c)


class Trapezoid(Term):
    fields = ("vertex_a", "vertex_b", "vertex_c", "vertex_d")

    def __init__(self, name: str = "", vertex_a: float = nan, vertex_b: float = nan,
                 vertex_c: float = nan, vertex_d: float = nan, height: float = 1.0):
        super().__init__(name, height)
        self.vertex_a = vertex_a
        self.vertex_b = vertex_b
        self.vertex_c = vertex_c
        self.vertex_d = vertex_d

    def membership(self, x: float) -> float:
        if is_nan(x):
            return nan
        a, b, c, d = self.vertex_a, self.vertex_b, self.vertex_c, self.vertex_d
        if is_lt(x, a) or is_gt(x, d):
            return 0.0
        if is_lt(x, b):
            if a == -inf:
                return self.height * 1.0
            return self.height * min(1.0, (x - a) / (b - a))
        if is_le(x, c):
            return self.height * 1.0
        if is_lt(x, d):
            if d == inf:
                return self.height * 1.0
            return self.height * (d - x) / (d - c)
        if d == inf:
            return self.height * 1.0
        return 0.0

    def support(self):
        return (self.vertex_a, self.vertex_d)


class Rectangle(Term):
    fields = ("start", "end")

    def __init__(self, name: str = "", start: float = nan, end: float = nan, height: float = 1.0):
        super().__init__(name, height)
        self.start = start
        self.end = end

    def membership(self, x: float) -> float:
        if is_nan(x):
            return nan
        if is_ge(x, self.start) and is_le(x, self.end):
            return self.height * 1.0
        return 0.0

    def support(self):
        return (self.start, self.end)


class Ramp(Term):
    """Rises from start to end, or falls when end < start."""

    fields = ("start", "end")

    def __init__(self, name: str = "", start: float = nan, end: float = nan, height: float = 1.0):
        super().__init__(name, height)
        self.start = start
        self.end = end

    def membership(self, x: float) -> float:
        if is_nan(x):
            return nan
        start, end = self.start, self.end
        if is_eq(start, end):
            return 0.0
        if is_lt(start, end):
            if is_le(x, start):
                return 0.0
            if is_ge(x, end):
                return self.height * 1.0
            return self.height * (x - start) / (end - start)
        if is_ge(x, start):
            return 0.0
        if is_le(x, end):
            return self.height * 1.0
        return self.height * (start - x) / (start - end)

    def support(self):
        return (self.start, inf) if self.start < self.end else (-inf, self.start)

    def is_monotonic(self) -> bool:
        return True

    def tsukamoto(self, activation_degree, minimum, maximum):
        return scale(activation_degree, 0.0, 1.0, self.start, self.end)


class Binary(Term):
    """Step function: 1 from start onwards in the given direction, 0 otherwise."""

    fields = ("start", "direction")

    def __init__(self, name: str = "", start: float = nan, direction: float = nan, height: float = 1.0):
        super().__init__(name, height)
        self.start = start
        self.direction = direction

    def membership(self, x: float) -> float:
        if is_nan(x):
            return nan
        if self.direction > self.start and is_ge(x, self.start):
            return self.height * 1.0
        if self.direction < self.start and is_le(x, self.start):
            return self.height * 1.0
        return 0.0


class Discrete(Term):
    """
    Piecewise-linear curve through (x, y) points sorted by x.

    Outside the first and last x the curve is flat, so a single point
    degenerates into a constant.
    """

    def __init__(self, name: str = "", xy: Sequence[Tuple[float, float]] = (), height: float = 1.0):
        super().__init__(name, height)
        self.xy: List[Tuple[float, float]] = [(float(x), float(y)) for x, y in xy]

    def parameters(self, decimals: int = 3) -> str:
        values = [v for pair in self.xy for v in pair]
        if not is_eq(self.height, 1.0):
            values.append(self.height)
        return join_scalars(values, decimals)

    def configure(self, parameters) -> None:
        values = to_scalars(parameters)
        height = 1.0
        if len(values) % 2 == 1:
            height = values.pop()
        if not values:
            raise ConfigurationError(f"Discrete <{self.name}> requires at least one (x, y) pair")
        self.xy = list(zip(values[0::2], values[1::2]))
        self.height = height

    def membership(self, x: float) -> float:
        if is_nan(x):
            return nan
        if not self.xy:
            raise EvaluationError(f"Discrete <{self.name}> has no points")
        first_x, first_y = self.xy[0]
        last_x, last_y = self.xy[-1]
        if is_le(x, first_x):
            return self.height * first_y
        if is_ge(x, last_x):
            return self.height * last_y
        xs = [p[0] for p in self.xy]
        upper = bisect_right(xs, x)
        lower = upper - 1
        (x0, y0), (x1, y1) = self.xy[lower], self.xy[upper]
        return self.height * scale(x, x0, x1, y0, y1)

    def support(self):
        if not self.xy:
            return (nan, nan)
        return (self.xy[0][0], self.xy[-1][0])


# ------------------------------------------------------------
# Spline-like shapes (S, Z and their product Pi)
# ------------------------------------------------------------
def _s_curve(x: float, start: float, end: float) -> float:
    if is_le(x, start):
        return 0.0
    if is_le(x, 0.5 * (start + end)):
        return 2.0 * ((x - start) / (end - start)) ** 2
    if is_lt(x, end):
        return 1.0 - 2.0 * ((x - end) / (end - start)) ** 2
    return 1.0


def _z_curve(x: float, start: float, end: float) -> float:
    if is_le(x, start):
        return 1.0
    if is_le(x, 0.5 * (start + end)):
        return 1.0 - 2.0 * ((x - start) / (end - start)) ** 2
    if is_lt(x, end):
        return 2.0 * ((x - end) / (end - start)) ** 2
    return 0.0


class SShape(Term):
    fields = ("start", "end")

    def __init__(self, name: str = "", start: float = nan, end: float = nan, height: float = 1.0):
        super().__init__(name, height)
        self.start = start
        self.end = end

    def membership(self, x: float) -> float:
        if is_nan(x):
            return nan
        return self.height * _s_curve(x, self.start, self.end)

    def is_monotonic(self) -> bool:
        return True

    def tsukamoto(self, activation_degree, minimum, maximum):
        w = activation_degree
        if not _in_unit_interval(w):
            return nan
        difference = self.end - self.start
        if is_le(w, 0.5):
            return self.start + difference * math.sqrt(0.5 * w)
        return self.end - difference * math.sqrt(0.5 * (1.0 - w))


class ZShape(Term):
    fields = ("start", "end")

    def __init__(self, name: str = "", start: float = nan, end: float = nan, height: float = 1.0):
        super().__init__(name, height)
        self.start = start
        self.end = end

    def membership(self, x: float) -> float:
        if is_nan(x):
            return nan
        return self.height * _z_curve(x, self.start, self.end)

    def is_monotonic(self) -> bool:
        return True

    def tsukamoto(self, activation_degree, minimum, maximum):
        w = activation_degree
        if not _in_unit_interval(w):
            return nan
        difference = self.end - self.start
        if is_ge(w, 0.5):
            return self.start + difference * math.sqrt(0.5 * (1.0 - w))
        return self.end - difference * math.sqrt(0.5 * w)


class PiShape(Term):
    fields = ("bottom_left", "top_left", "top_right", "bottom_right")

    def __init__(self, name: str = "", bottom_left: float = nan, top_left: float = nan,
                 top_right: float = nan, bottom_right: float = nan, height: float = 1.0):
        super().__init__(name, height)
        self.bottom_left = bottom_left
        self.top_left = top_left
        self.top_right = top_right
        self.bottom_right = bottom_right

    def membership(self, x: float) -> float:
        if is_nan(x):
            return nan
        s = _s_curve(x, self.bottom_left, self.top_left)
        z = _z_curve(x, self.top_right, self.bottom_right)
        return self.height * s * z

    def support(self):
        return (self.bottom_left, self.bottom_right)


# ------------------------------------------------------------
# Smooth shapes
# ------------------------------------------------------------
class Gaussian(Term):
    fields = ("mean", "standard_deviation")

    def __init__(self, name: str = "", mean: float = nan, standard_deviation: float = nan,
                 height: float = 1.0):
        super().__init__(name, height)
        self.mean = mean
        self.standard_deviation = standard_deviation

    def membership(self, x: float) -> float:
        if is_nan(x):
            return nan
        sigma = self.standard_deviation
        if is_eq(sigma, 0.0):
            return self.height * _collapsed(x, self.mean)
        return self.height * math.exp(-((x - self.mean) ** 2) / (2.0 * sigma * sigma))


class GaussianProduct(Term):
    """Left half of one gaussian times the right half of another, flat in between."""

    fields = ("mean_a", "standard_deviation_a", "mean_b", "standard_deviation_b")

    def __init__(self, name: str = "", mean_a: float = nan, standard_deviation_a: float = nan,
                 mean_b: float = nan, standard_deviation_b: float = nan, height: float = 1.0):
        super().__init__(name, height)
        self.mean_a = mean_a
        self.standard_deviation_a = standard_deviation_a
        self.mean_b = mean_b
        self.standard_deviation_b = standard_deviation_b

    def membership(self, x: float) -> float:
        if is_nan(x):
            return nan
        a = b = 1.0
        if is_lt(x, self.mean_a):
            sa = self.standard_deviation_a
            if is_eq(sa, 0.0):
                return 0.0
            a = math.exp(-((x - self.mean_a) ** 2) / (2.0 * sa * sa))
        if is_gt(x, self.mean_b):
            sb = self.standard_deviation_b
            if is_eq(sb, 0.0):
                return 0.0
            b = math.exp(-((x - self.mean_b) ** 2) / (2.0 * sb * sb))
        return self.height * a * b


class Bell(Term):
    fields = ("center", "width", "slope")

    def __init__(self, name: str = "", center: float = nan, width: float = nan,
                 slope: float = nan, height: float = 1.0):
        super().__init__(name, height)
        self.center = center
        self.width = width
        self.slope = slope

    def membership(self, x: float) -> float:
        if is_nan(x):
            return nan
        if is_eq(self.width, 0.0):
            return self.height * _collapsed(x, self.center)
        return self.height / (1.0 + abs((x - self.center) / self.width) ** (2.0 * self.slope))


def _logistic(x: float, inflection: float, slope: float) -> float:
    exponent = -slope * (x - inflection)
    # math.exp overflows past ~709
    if exponent > 700.0:
        return 0.0
    return 1.0 / (1.0 + math.exp(exponent))


class Sigmoid(Term):
    fields = ("inflection", "slope")

    def __init__(self, name: str = "", inflection: float = nan, slope: float = nan,
                 height: float = 1.0):
        super().__init__(name, height)
        self.inflection = inflection
        self.slope = slope

    def membership(self, x: float) -> float:
        if is_nan(x):
            return nan
        return self.height * _logistic(x, self.inflection, self.slope)

    def is_monotonic(self) -> bool:
        return True

    def tsukamoto(self, activation_degree, minimum, maximum):
        w = activation_degree
        if is_eq(w, 1.0):
            return maximum if is_ge(self.slope, 0.0) else minimum
        if is_eq(w, 0.0):
            return minimum if is_ge(self.slope, 0.0) else maximum
        if not _in_unit_interval(w):
            return nan
        return self.inflection + math.log(1.0 / w - 1.0) / -self.slope


class SigmoidDifference(Term):
    fields = ("left", "rising", "falling", "right")

    def __init__(self, name: str = "", left: float = nan, rising: float = nan,
                 falling: float = nan, right: float = nan, height: float = 1.0):
        super().__init__(name, height)
        self.left = left
        self.rising = rising
        self.falling = falling
        self.right = right

    def membership(self, x: float) -> float:
        if is_nan(x):
            return nan
        a = _logistic(x, self.left, self.rising)
        b = _logistic(x, self.right, self.falling)
        return self.height * abs(a - b)


class SigmoidProduct(Term):
    fields = ("left", "rising", "falling", "right")

    def __init__(self, name: str = "", left: float = nan, rising: float = nan,
                 falling: float = nan, right: float = nan, height: float = 1.0):
        super().__init__(name, height)
        self.left = left
        self.rising = rising
        self.falling = falling
        self.right = right

    def membership(self, x: float) -> float:
        if is_nan(x):
            return nan
        a = _logistic(x, self.left, self.rising)
        b = _logistic(x, self.right, self.falling)
        return self.height * a * b


class Cosine(Term):
    fields = ("center", "width")

    def __init__(self, name: str = "", center: float = nan, width: float = nan, height: float = 1.0):
        super().__init__(name, height)
        self.center = center
        self.width = width

    def membership(self, x: float) -> float:
        if is_nan(x):
            return nan
        half = 0.5 * self.width
        if is_lt(x, self.center - half) or is_gt(x, self.center + half):
            return 0.0
        return self.height * 0.5 * (1.0 + math.cos(2.0 / self.width * math.pi * (x - self.center)))

    def support(self):
        return (self.center - 0.5 * self.width, self.center + 0.5 * self.width)


class Concave(Term):
    """Increasing when inflection <= end, decreasing otherwise; 1 past end."""

    fields = ("inflection", "end")

    def __init__(self, name: str = "", inflection: float = nan, end: float = nan, height: float = 1.0):
        super().__init__(name, height)
        self.inflection = inflection
        self.end = end

    def membership(self, x: float) -> float:
        if is_nan(x):
            return nan
        i, e = self.inflection, self.end
        if is_le(i, e):
            if is_lt(x, e):
                return self.height * (e - i) / (2.0 * e - i - x)
        elif is_gt(x, e):
            return self.height * (i - e) / (i - 2.0 * e + x)
        return self.height * 1.0

    def is_monotonic(self) -> bool:
        return True

    def tsukamoto(self, activation_degree, minimum, maximum):
        i, e = self.inflection, self.end
        return (i - e) / activation_degree + 2.0 * e - i


class Spike(Term):
    fields = ("center", "width")

    def __init__(self, name: str = "", center: float = nan, width: float = nan, height: float = 1.0):
        super().__init__(name, height)
        self.center = center
        self.width = width

    def membership(self, x: float) -> float:
        if is_nan(x):
            return nan
        if is_eq(self.width, 0.0):
            return self.height * _collapsed(x, self.center)
        return self.height * math.exp(-abs(10.0 / self.width * (x - self.center)))


# ------------------------------------------------------------
# Unbounded terms for Takagi-Sugeno consequents
# ------------------------------------------------------------
class Constant(Term):
    """Membership is the configured value for every x."""

    fields = ("value",)
    has_height = False

    def __init__(self, name: str = "", value: float = nan):
        super().__init__(name)
        self.value = value

    def membership(self, x: float) -> float:
        return self.value


class Linear(Term):
    """
    Weighted sum of the engine's input values: c0*in0 + c1*in1 + ... [+ k].

    One coefficient per input variable, in declaration order, plus an
    optional trailing constant. `x` itself is ignored.
    """

    has_height = False

    def __init__(self, name: str = "", coefficients: Sequence[float] = (), engine=None):
        super().__init__(name)
        self.coefficients: List[float] = [float(c) for c in coefficients]
        self.engine = engine

    def parameters(self, decimals: int = 3) -> str:
        return join_scalars(self.coefficients, decimals)

    def configure(self, parameters) -> None:
        self.coefficients = to_scalars(parameters)

    def update_reference(self, engine) -> None:
        self.engine = engine

    def membership(self, x: float) -> float:
        if self.engine is None:
            raise EvaluationError(f"Linear <{self.name}> is not attached to an engine")
        inputs = self.engine.input_variables
        result = sum(c * v.value for c, v in zip(self.coefficients, inputs))
        if len(self.coefficients) == len(inputs) + 1:
            result += self.coefficients[-1]
        return result
