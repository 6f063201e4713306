"""
Fuzzy sets assembled from other terms.

`Aggregated` is the fuzzy output of an OutputVariable: every rule that fires
during a cycle appends an `Activated` entry (term, degree, implication) and
the defuzzifier reduces the union to one crisp value. `Cumulative` is a
standing union of plain terms whose overlapping memberships are summed
unless an accumulation operator is given.

Neither owns the terms it refers to; terms stay owned by their variable.
"""

from typing import List, Optional

from flc.exceptions import ConfigurationError
from flc.norm import SNorm, TNorm
from flc.operation import inf, nan, is_nan, join_scalars, str_scalar
from flc.term import Term


class Activated(Term):
    """
    A term scaled by the degree to which its rule fired.

    Attributes:
        term (Term): The consequent term (not owned).
        degree (float): Activation degree of the rule, after weight and hedges.
        implication (TNorm | None): Operator combining degree and membership.
    """

    has_height = False

    def __init__(self, term: Term, degree: float = 1.0, implication: Optional[TNorm] = None):
        super().__init__(term.name if term is not None else "")
        self.term = term
        self.degree = degree
        self.implication = implication

    def membership(self, x: float) -> float:
        y = self.term.membership(x)
        if self.implication is not None:
            return self.implication.compute(self.degree, y)
        return self.degree * y

    def parameters(self, decimals: int = 3) -> str:
        return f"{str_scalar(self.degree, decimals)}/{self.term.name}"

    def __str__(self) -> str:
        if self.implication is not None:
            return f"{self.implication.name}({str_scalar(self.degree)},{self.term.name})"
        return f"({str_scalar(self.degree)}*{self.term.name})"


class Aggregated(Term):
    """
    Union of the activated terms of one output variable for one cycle.

    Attributes:
        minimum (float): Lower bound of the output universe.
        maximum (float): Upper bound of the output universe.
        aggregation (SNorm | None): Operator joining the activated terms.
            Without one, each activated term replaces the previous value.
        terms (List[Activated]): Activations in the order rules fired.
    """

    has_height = False

    def __init__(self, name: str = "", minimum: float = nan, maximum: float = nan,
                 aggregation: Optional[SNorm] = None, terms=()):
        super().__init__(name)
        self.minimum = minimum
        self.maximum = maximum
        self.aggregation = aggregation
        self.terms: List[Activated] = list(terms)

    def add_term(self, term: Term, degree: float, implication: Optional[TNorm] = None) -> Activated:
        activated = Activated(term, degree, implication)
        self.terms.append(activated)
        return activated

    def clear(self) -> None:
        self.terms.clear()

    def is_empty(self) -> bool:
        return not self.terms

    def membership(self, x: float) -> float:
        if self.is_empty():
            return 0.0
        mu = 0.0
        for activated in self.terms:
            y = activated.membership(x)
            if self.aggregation is not None:
                mu = self.aggregation.compute(mu, y)
            else:
                mu = y
        return mu

    def activation_degree(self, term: Term) -> float:
        """
        Aggregated degree recorded for `term`, 0.0 when it did not fire.
        Without an aggregation operator the degrees are summed.
        """
        result = 0.0
        for activated in self.terms:
            if activated.term is term:
                if self.aggregation is not None:
                    result = self.aggregation.compute(result, activated.degree)
                else:
                    result += activated.degree
        return result

    def highest_activated_term(self) -> Optional[Activated]:
        highest = None
        for activated in self.terms:
            if is_nan(activated.degree) or activated.degree <= 0.0:
                continue
            if highest is None or activated.degree > highest.degree:
                highest = activated
        return highest

    def range(self) -> float:
        return self.maximum - self.minimum

    def support(self):
        return (self.minimum, self.maximum)

    def parameters(self, decimals: int = 3) -> str:
        aggregation = self.aggregation.name if self.aggregation is not None else "none"
        return f"{aggregation} {join_scalars((self.minimum, self.maximum), decimals)} {self}"

    def configure(self, parameters) -> None:
        raise ConfigurationError("Aggregated terms are assembled by the engine, not configured")

    def __str__(self) -> str:
        if not self.terms:
            return "(empty)"
        aggregation = self.aggregation.name if self.aggregation is not None else ""
        return f"{aggregation}[{','.join(str(a) for a in self.terms)}]"


class Cumulative(Term):
    """
    Union of plain terms.

    Overlapping memberships are added together unless an accumulation
    operator is set, in which case they are folded with it.
    """

    has_height = False

    def __init__(self, name: str = "", accumulation: Optional[SNorm] = None, terms=()):
        super().__init__(name)
        self.accumulation = accumulation
        self.terms: List[Term] = []
        self.minimum = inf
        self.maximum = -inf
        for term in terms:
            self.append(term)

    def append(self, term: Term) -> None:
        self.terms.append(term)
        lower, upper = term.support()
        self.minimum = min(self.minimum, lower)
        self.maximum = max(self.maximum, upper)

    def clear(self) -> None:
        self.terms.clear()
        self.minimum = inf
        self.maximum = -inf

    def __len__(self) -> int:
        return len(self.terms)

    def membership(self, x: float) -> float:
        mu = 0.0
        for term in self.terms:
            y = term.membership(x)
            if self.accumulation is not None:
                mu = self.accumulation.compute(mu, y)
            else:
                mu += y
        return mu

    def support(self):
        return (self.minimum, self.maximum)

    def parameters(self, decimals: int = 3) -> str:
        accumulation = self.accumulation.name if self.accumulation is not None else "sum"
        return f"{accumulation} " + " ".join(term.name for term in self.terms)

    def configure(self, parameters) -> None:
        raise ConfigurationError("Cumulative terms are assembled with append()")
