"""
Linguistic variables.

A variable is a named, ranged slot holding a crisp value and an ordered list
of terms. Term order matters: index-coded rules refer to terms by position.

Input variables receive their value from the client before each cycle.
Output variables collect activated terms in their `fuzzy_output` while the
rule blocks fire, then reduce them to a crisp value with their defuzzifier.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from flc.aggregated import Aggregated
from flc.exceptions import ConfigurationError, EvaluationError
from flc.operation import inf, nan, is_nan, bound, str_scalar
from flc.term import Term

variable_log = logging.getLogger("variable")


def _fuzzy_value(degrees, decimals: int) -> str:
    parts = []
    for degree, term in degrees:
        text = f"{str_scalar(abs(degree), decimals)}/{term.name}"
        if not parts:
            parts.append(f"-{text}" if degree < 0 else text)
        else:
            parts.append(f"{'-' if degree < 0 else '+'} {text}")
    return " ".join(parts)


class Variable:
    """
    Named container of terms with a value inside [minimum, maximum].

    Attributes:
        name (str): Variable name, referenced by rules and functions.
        description (str): Free text.
        minimum (float): Lower bound of the universe of discourse.
        maximum (float): Upper bound of the universe of discourse.
        enabled (bool): Disabled variables never fire in antecedents and are
            never written by consequents.
        lock_value_in_range (bool): Clamp assigned values to the range.
        terms (List[Term]): Ordered terms, names unique within the variable.
    """

    def __init__(self, name: str = "", minimum: float = -inf, maximum: float = inf,
                 terms: Sequence[Term] = ()):
        self.name = name
        self.description = ""
        self.minimum = minimum
        self.maximum = maximum
        self.enabled = True
        self.lock_value_in_range = False
        self.terms: List[Term] = []
        self._value = nan
        for term in terms:
            self.add_term(term)

    # ------------------------------------------------------------
    # Value and range
    # ------------------------------------------------------------
    @property
    def value(self) -> float:
        return self._value

    @value.setter
    def value(self, value: float) -> None:
        value = float(value)
        if self.lock_value_in_range:
            value = bound(value, self.minimum, self.maximum)
        self._value = value

    def set_range(self, minimum: float, maximum: float) -> None:
        self.minimum = minimum
        self.maximum = maximum

    @property
    def range(self) -> Tuple[float, float]:
        return (self.minimum, self.maximum)

    @range.setter
    def range(self, limits: Tuple[float, float]) -> None:
        self.set_range(*limits)

    # ------------------------------------------------------------
    # Terms
    # ------------------------------------------------------------
    def add_term(self, term: Term) -> Term:
        if self.has_term(term.name):
            raise ConfigurationError(f"Term <{term.name}> already exists in variable <{self.name}>")
        self.terms.append(term)
        return term

    def insert_term(self, term: Term, index: int) -> Term:
        if self.has_term(term.name):
            raise ConfigurationError(f"Term <{term.name}> already exists in variable <{self.name}>")
        self.terms.insert(index, term)
        return term

    def term(self, name: str) -> Term:
        for term in self.terms:
            if term.name == name:
                return term
        raise ConfigurationError(f"Term <{name}> not found in variable <{self.name}>")

    def term_at(self, index: int) -> Term:
        if not 0 <= index < len(self.terms):
            raise ConfigurationError(
                f"Term index <{index}> out of range for variable <{self.name}> "
                f"with {len(self.terms)} terms"
            )
        return self.terms[index]

    def has_term(self, name: str) -> bool:
        return any(term.name == name for term in self.terms)

    def remove_term(self, name_or_index) -> Term:
        if isinstance(name_or_index, int):
            term = self.term_at(name_or_index)
        else:
            term = self.term(name_or_index)
        self.terms.remove(term)
        return term

    def __len__(self) -> int:
        return len(self.terms)

    # ------------------------------------------------------------
    # Fuzzification
    # ------------------------------------------------------------
    def fuzzify(self, x: float, decimals: int = 3) -> str:
        """
        Describes x as a fuzzy value, e.g. ``0.500/DARK + 0.500/MEDIUM + 0.000/BRIGHT``.
        """
        return _fuzzy_value(((term.membership(x), term) for term in self.terms), decimals)

    def highest_membership(self, x: float) -> Tuple[float, Optional[Term]]:
        """Returns (degree, term) for the term with the highest positive membership."""
        best_degree, best_term = 0.0, None
        for term in self.terms:
            degree = term.membership(x)
            if degree > best_degree:
                best_degree, best_term = degree, term
        return best_degree, best_term

    def __str__(self) -> str:
        return f"{type(self).__name__}: {self.name}"


class InputVariable(Variable):
    """Variable whose value is set by the client before calling process()."""

    def fuzzy_input_value(self, decimals: int = 3) -> str:
        return self.fuzzify(self.value, decimals)


class OutputVariable(Variable):
    """
    Variable computed by the engine.

    Attributes:
        fuzzy_output (Aggregated): Activated terms of the current cycle.
        defuzzifier: Reduces `fuzzy_output` to a crisp value.
        default_value (float): Value used when no rule fired (nan by default).
        previous_value (float): Crisp value of the last cycle.
        lock_previous_value (bool): When no rule fires, keep the previous
            value instead of falling back to the default.
    """

    def __init__(self, name: str = "", minimum: float = -inf, maximum: float = inf,
                 terms: Sequence[Term] = ()):
        self.fuzzy_output = Aggregated(name, minimum, maximum)
        super().__init__(name, minimum, maximum, terms)
        self.defuzzifier = None
        self.default_value = nan
        self.previous_value = nan
        self.lock_previous_value = False

    @property
    def aggregation(self):
        return self.fuzzy_output.aggregation

    @aggregation.setter
    def aggregation(self, snorm) -> None:
        self.fuzzy_output.aggregation = snorm

    def defuzzify(self) -> float:
        """
        Computes and stores the crisp value of this cycle.

        Raises:
            EvaluationError: If rules fired but no defuzzifier is configured.
        """
        if not is_nan(self.value):
            self.previous_value = self.value
        self.fuzzy_output.minimum = self.minimum
        self.fuzzy_output.maximum = self.maximum

        if self.enabled and not self.fuzzy_output.is_empty():
            if self.defuzzifier is None:
                raise EvaluationError(f"Output variable <{self.name}> has no defuzzifier")
            result = self.defuzzifier.defuzzify(self.fuzzy_output, self.minimum, self.maximum)
        elif self.lock_previous_value and not is_nan(self.previous_value):
            result = self.previous_value
        else:
            result = self.default_value

        if self.lock_value_in_range and not is_nan(result):
            result = bound(result, self.minimum, self.maximum)
        self._value = result
        variable_log.debug("%s= %s <- %s", self.name, str_scalar(result), self.fuzzy_output)
        return result

    def clear(self) -> None:
        self.fuzzy_output.clear()
        self._value = nan
        self.previous_value = nan

    def fuzzy_output_value(self, decimals: int = 3) -> str:
        """Activation degree of every term, e.g. ``0.000/LOW + 0.750/MEDIUM + 0.250/HIGH``."""
        return _fuzzy_value(
            ((self.fuzzy_output.activation_degree(term), term) for term in self.terms), decimals
        )
