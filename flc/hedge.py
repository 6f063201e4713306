"""
Linguistic hedges.

A hedge modifies the membership degree of a proposition before it reaches the
rule connectives, e.g. 'Ambient is very DARK'. Hedges are stateless, so a
single instance may be shared by any number of propositions.
"""

import math


class Hedge:
    """Unary transform of a membership degree."""

    name = ""

    def hedge(self, x: float) -> float:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class Any(Hedge):
    """'any' matches regardless of the term; used for "don't care" propositions."""

    name = "any"

    def hedge(self, x: float) -> float:
        return 1.0


class Not(Hedge):
    name = "not"

    def hedge(self, x: float) -> float:
        return 1.0 - x


class Extremely(Hedge):
    name = "extremely"

    def hedge(self, x: float) -> float:
        if x <= 0.5:
            return 2.0 * x * x
        return 1.0 - 2.0 * (1.0 - x) * (1.0 - x)


class Seldom(Hedge):
    name = "seldom"

    def hedge(self, x: float) -> float:
        if x <= 0.5:
            return math.sqrt(0.5 * x)
        return 1.0 - math.sqrt(0.5 * (1.0 - x))


class Somewhat(Hedge):
    name = "somewhat"

    def hedge(self, x: float) -> float:
        return math.sqrt(x)


class Very(Hedge):
    name = "very"

    def hedge(self, x: float) -> float:
        return x * x


def apply_hedges(hedges, degree: float) -> float:
    """
    Applies a chain of hedges to a degree.

    The hedge written closest to the term acts first, so 'very somewhat A'
    computes very(somewhat(A)).
    """
    for hedge in reversed(hedges):
        degree = hedge.hedge(degree)
    return degree
