"""
Computes the crisp output of an output variable from its fuzzy output.

Integral defuzzifiers (Mamdani / Larsen models) sample the aggregated fuzzy
set on a regular grid over the variable's range:

    x_i = minimum + (i + 0.5) * dx,    dx = (maximum - minimum) / resolution

Weighted defuzzifiers (Takagi-Sugeno / Tsukamoto models) never integrate;
they combine the activation degree `w` of each activated term with a single
value `z` taken from the term itself:

    WeightedAverage = Σ(w·z) / Σw,    WeightedSum = Σ(w·z)
"""

import logging

import numpy as np

from flc.aggregated import Aggregated
from flc.exceptions import ConfigurationError, EvaluationError
from flc.function import Function
from flc.operation import EPSILON, nan, is_finite, is_le, str_scalar
from flc.term import Constant, Linear, Term

defuzzifier_log = logging.getLogger("defuzzifier")


class Defuzzifier:
    """Base class of every defuzzifier."""

    @property
    def name(self) -> str:
        return type(self).__name__

    def defuzzify(self, term: Term, minimum: float, maximum: float) -> float:
        raise NotImplementedError

    def parameters(self) -> str:
        return ""

    def __str__(self) -> str:
        return f"{self.name} {self.parameters()}".rstrip()


# ------------------------------------------------------------
# Integral defuzzifiers
# ------------------------------------------------------------
class IntegralDefuzzifier(Defuzzifier):
    """
    Defuzzifier that samples the membership function over [minimum, maximum].

    Attributes:
        resolution (int): Number of samples taken over the range.
    """

    default_resolution = 200

    def __init__(self, resolution: int = default_resolution):
        self.resolution = int(resolution)

    def parameters(self) -> str:
        return str(self.resolution)

    def _samples(self, term: Term, minimum: float, maximum: float):
        """
        Returns (x, y, dx) for the sampling grid, or None when there is
        nothing to integrate.
        """
        if isinstance(term, Aggregated) and term.is_empty():
            defuzzifier_log.debug("%s: empty fuzzy output <%s>", self.name, term.name)
            return None
        if not (is_finite(minimum) and is_finite(maximum)):
            defuzzifier_log.warning(
                "%s: cannot integrate over non-finite range [%s, %s]",
                self.name, str_scalar(minimum), str_scalar(maximum),
            )
            return None
        dx = (maximum - minimum) / self.resolution
        x = minimum + (np.arange(self.resolution) + 0.5) * dx
        y = np.fromiter((term.membership(float(xi)) for xi in x), dtype=float, count=self.resolution)
        return x, y, dx


class Centroid(IntegralDefuzzifier):
    """Center of gravity of the area under the curve."""

    def defuzzify(self, term: Term, minimum: float, maximum: float) -> float:
        samples = self._samples(term, minimum, maximum)
        if samples is None:
            return nan
        x, y, _ = samples
        area = float(np.sum(y))
        if abs(area) < EPSILON:
            return 0.5 * (minimum + maximum)
        return float(np.sum(x * y)) / area


class Bisector(IntegralDefuzzifier):
    """
    Point that splits the area under the curve in two halves.

    Samples are accumulated from both ends towards the middle, always adding
    to the smaller side, and the two last positions are weighted by the area
    of the opposite side.
    """

    def defuzzify(self, term: Term, minimum: float, maximum: float) -> float:
        samples = self._samples(term, minimum, maximum)
        if samples is None:
            return nan
        x, y, _ = samples
        left, right = 0, self.resolution - 1
        left_area = right_area = 0.0
        x_left, x_right = minimum, maximum
        while left <= right:
            if is_le(left_area, right_area):
                x_left = x[left]
                left_area += y[left]
                left += 1
            else:
                x_right = x[right]
                right_area += y[right]
                right -= 1
        area = left_area + right_area
        if abs(area) < EPSILON:
            return 0.5 * (minimum + maximum)
        return float((left_area * x_right + right_area * x_left) / area)


class _MaximumDefuzzifier(IntegralDefuzzifier):
    def _maximum(self, term, minimum, maximum):
        samples = self._samples(term, minimum, maximum)
        if samples is None:
            return None
        x, y, _ = samples
        peak = np.nanmax(y)
        return x, np.abs(y - peak) < EPSILON


class SmallestOfMaximum(_MaximumDefuzzifier):
    """Smallest x at which the curve reaches its maximum."""

    def defuzzify(self, term: Term, minimum: float, maximum: float) -> float:
        found = self._maximum(term, minimum, maximum)
        if found is None:
            return nan
        x, at_peak = found
        return float(x[np.argmax(at_peak)])


class LargestOfMaximum(_MaximumDefuzzifier):
    """Largest x at which the curve reaches its maximum."""

    def defuzzify(self, term: Term, minimum: float, maximum: float) -> float:
        found = self._maximum(term, minimum, maximum)
        if found is None:
            return nan
        x, at_peak = found
        return float(x[len(x) - 1 - np.argmax(at_peak[::-1])])


class MeanOfMaximum(_MaximumDefuzzifier):
    """Middle of the first plateau on which the curve reaches its maximum."""

    def defuzzify(self, term: Term, minimum: float, maximum: float) -> float:
        found = self._maximum(term, minimum, maximum)
        if found is None:
            return nan
        x, at_peak = found
        first = last = int(np.argmax(at_peak))
        while last + 1 < len(x) and at_peak[last + 1]:
            last += 1
        return float(0.5 * (x[first] + x[last]))


# ------------------------------------------------------------
# Weighted defuzzifiers
# ------------------------------------------------------------
class WeightedDefuzzifier(Defuzzifier):
    """
    Base class of the weighted defuzzifiers.

    Attributes:
        type (str): ``Automatic``, ``TakagiSugeno`` or ``Tsukamoto``. With
            ``Automatic`` the type is inferred from the first activated term
            of each cycle and applied to all of them.
    """

    AUTOMATIC = "Automatic"
    TAKAGI_SUGENO = "TakagiSugeno"
    TSUKAMOTO = "Tsukamoto"
    TYPES = (AUTOMATIC, TAKAGI_SUGENO, TSUKAMOTO)

    def __init__(self, type: str = AUTOMATIC):
        if type not in self.TYPES:
            raise ConfigurationError(f"Unknown weighted defuzzifier type <{type}>")
        self.type = type

    def parameters(self) -> str:
        return self.type

    @classmethod
    def infer_type(cls, term: Term) -> str:
        if isinstance(term, (Constant, Linear, Function)):
            return cls.TAKAGI_SUGENO
        return cls.TSUKAMOTO

    def _weighted_sums(self, term: Term, minimum: float, maximum: float):
        """
        Returns (Σwz, Σw) folded with the aggregation operator, or None when
        the fuzzy output is empty.
        """
        if not isinstance(term, Aggregated):
            raise EvaluationError(
                f"{self.name} expects an Aggregated term, but found {term.class_name} <{term.name}>"
            )
        if term.is_empty():
            defuzzifier_log.debug("%s: empty fuzzy output <%s>", self.name, term.name)
            return None

        kind = self.type
        if kind == self.AUTOMATIC:
            kind = self.infer_type(term.terms[0].term)

        aggregation = term.aggregation
        total = weights = 0.0
        for activated in term.terms:
            w = activated.degree
            if kind == self.TAKAGI_SUGENO:
                z = activated.term.membership(w)
            else:
                z = activated.term.tsukamoto(w, minimum, maximum)
            wz = activated.implication.compute(w, z) if activated.implication is not None else w * z
            if aggregation is not None:
                total = aggregation.compute(total, wz)
                weights = aggregation.compute(weights, w)
            else:
                total += wz
                weights += w
        return total, weights


class WeightedAverage(WeightedDefuzzifier):
    def defuzzify(self, term: Term, minimum: float, maximum: float) -> float:
        sums = self._weighted_sums(term, minimum, maximum)
        if sums is None:
            return nan
        total, weights = sums
        if abs(weights) < EPSILON:
            defuzzifier_log.warning("%s: sum of weights is zero for <%s>", self.name, term.name)
            return nan
        return total / weights


class WeightedSum(WeightedDefuzzifier):
    def defuzzify(self, term: Term, minimum: float, maximum: float) -> float:
        sums = self._weighted_sums(term, minimum, maximum)
        if sums is None:
            return nan
        return sums[0]
