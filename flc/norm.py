"""
T-norms and S-norms.

T-norms implement fuzzy AND (rule conjunction and implication), S-norms fuzzy
OR (rule disjunction and aggregation of activated terms). Which norm plays
which role is decided by the RuleBlock / OutputVariable configuration; the
norms themselves are stateless binary operators.
"""

from flc.operation import is_eq, is_gt


class Norm:
    """Binary, commutative and associative combinator of two degrees."""

    @property
    def name(self) -> str:
        return type(self).__name__

    def compute(self, a: float, b: float) -> float:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.name}()"

    def __eq__(self, other) -> bool:
        return type(self) is type(other)

    def __hash__(self) -> int:
        return hash(type(self))


class TNorm(Norm):
    pass


class SNorm(Norm):
    pass


# ------------------------------------------------------------
# T-norms
# ------------------------------------------------------------
class Minimum(TNorm):
    def compute(self, a: float, b: float) -> float:
        return min(a, b)


class AlgebraicProduct(TNorm):
    def compute(self, a: float, b: float) -> float:
        return a * b


class BoundedDifference(TNorm):
    def compute(self, a: float, b: float) -> float:
        return max(0.0, a + b - 1.0)


class DrasticProduct(TNorm):
    def compute(self, a: float, b: float) -> float:
        if is_eq(max(a, b), 1.0):
            return min(a, b)
        return 0.0


class EinsteinProduct(TNorm):
    def compute(self, a: float, b: float) -> float:
        return (a * b) / (2.0 - (a + b - a * b))


class HamacherProduct(TNorm):
    def compute(self, a: float, b: float) -> float:
        denominator = a + b - a * b
        if denominator == 0.0:
            return 0.0
        return (a * b) / denominator


class NilpotentMinimum(TNorm):
    def compute(self, a: float, b: float) -> float:
        if is_gt(a + b, 1.0):
            return min(a, b)
        return 0.0


# ------------------------------------------------------------
# S-norms
# ------------------------------------------------------------
class Maximum(SNorm):
    def compute(self, a: float, b: float) -> float:
        return max(a, b)


class AlgebraicSum(SNorm):
    def compute(self, a: float, b: float) -> float:
        return a + b - (a * b)


class BoundedSum(SNorm):
    def compute(self, a: float, b: float) -> float:
        return min(1.0, a + b)


class NormalizedSum(SNorm):
    def compute(self, a: float, b: float) -> float:
        return (a + b) / max(1.0, a + b)


class DrasticSum(SNorm):
    def compute(self, a: float, b: float) -> float:
        if is_eq(min(a, b), 0.0):
            return max(a, b)
        return 1.0


class EinsteinSum(SNorm):
    def compute(self, a: float, b: float) -> float:
        return (a + b) / (1.0 + a * b)


class HamacherSum(SNorm):
    def compute(self, a: float, b: float) -> float:
        denominator = 1.0 - a * b
        if denominator == 0.0:
            return 1.0
        return (a + b - 2.0 * a * b) / denominator


class NilpotentMaximum(SNorm):
    def compute(self, a: float, b: float) -> float:
        if is_gt(1.0, a + b):
            return max(a, b)
        return 1.0


class UnboundedSum(SNorm):
    """Plain a + b, for accumulations where values above 1 are meaningful."""

    def compute(self, a: float, b: float) -> float:
        return a + b
