"""
Activation methods.

An activation method decides which rules of a rule block fire in a cycle.
Each method first computes the activation degree of every enabled, loaded
rule with the block's conjunction and disjunction, then triggers the chosen
rules with the block's implication.
"""

import logging
from typing import List, Tuple

from flc.exceptions import ConfigurationError
from flc.operation import is_eq, is_ge, is_gt, is_le, is_lt, is_nan, str_scalar, to_scalar

activation_log = logging.getLogger("rule_block")


def _active_rules(rule_block):
    return [rule for rule in rule_block.rules if rule.enabled and rule.is_loaded()]


def _activate(rule_block) -> List[Tuple[float, object]]:
    """Computes (degree, rule) for every active rule, in declaration order."""
    degrees = []
    for rule in _active_rules(rule_block):
        rule.deactivate()
        degree = rule.activate_with(rule_block.conjunction, rule_block.disjunction)
        degrees.append((degree, rule))
    return degrees


class Activation:
    """Base class of activation methods."""

    @property
    def name(self) -> str:
        return type(self).__name__

    def activate(self, rule_block) -> None:
        raise NotImplementedError

    def parameters(self) -> str:
        return ""

    def configure(self, parameters: str) -> None:
        pass

    def __str__(self) -> str:
        return f"{self.name} {self.parameters()}".rstrip()


class General(Activation):
    """Triggers every rule whose activation degree is greater than zero."""

    def activate(self, rule_block) -> None:
        for degree, rule in _activate(rule_block):
            if is_gt(degree, 0.0):
                rule.trigger(rule_block.implication)


class First(Activation):
    """
    Triggers the first `number_of_rules` rules, in declaration order, whose
    degree is greater than zero and at least `threshold`.
    """

    def __init__(self, number_of_rules: int = 1, threshold: float = 0.0):
        self.number_of_rules = number_of_rules
        self.threshold = threshold

    def parameters(self) -> str:
        return f"{self.number_of_rules} {str_scalar(self.threshold)}"

    def configure(self, parameters: str) -> None:
        values = parameters.split()
        if len(values) != 2:
            raise ConfigurationError(
                f"{self.name} requires 2 parameters (number of rules, threshold), "
                f"but {len(values)} were given"
            )
        self.number_of_rules = int(to_scalar(values[0]))
        self.threshold = to_scalar(values[1])

    def _ordered(self, degrees):
        return degrees

    def activate(self, rule_block) -> None:
        triggered = 0
        for degree, rule in self._ordered(_activate(rule_block)):
            if triggered >= self.number_of_rules:
                break
            if is_gt(degree, 0.0) and is_ge(degree, self.threshold):
                rule.trigger(rule_block.implication)
                triggered += 1


class Last(First):
    """Same as First, walking the rules from the last declared one."""

    def _ordered(self, degrees):
        return list(reversed(degrees))


class Highest(Activation):
    """Triggers the `number_of_rules` rules with the highest positive degrees."""

    def __init__(self, number_of_rules: int = 1):
        self.number_of_rules = number_of_rules

    def parameters(self) -> str:
        return str(self.number_of_rules)

    def configure(self, parameters: str) -> None:
        self.number_of_rules = int(to_scalar(parameters))

    def _sort_key(self, degree: float) -> float:
        return -degree

    def activate(self, rule_block) -> None:
        candidates = [(d, r) for d, r in _activate(rule_block) if is_gt(d, 0.0)]
        # sorted() is stable, ties keep declaration order
        candidates.sort(key=lambda pair: self._sort_key(pair[0]))
        for _, rule in candidates[:self.number_of_rules]:
            rule.trigger(rule_block.implication)


class Lowest(Highest):
    """Triggers the `number_of_rules` rules with the lowest positive degrees."""

    def _sort_key(self, degree: float) -> float:
        return degree


class Threshold(Activation):
    """
    Triggers every rule whose degree satisfies ``degree <comparison> value``.

    Comparisons: ``<``, ``<=``, ``==``, ``!=``, ``>=``, ``>``.
    """

    COMPARISONS = {
        "<": is_lt,
        "<=": is_le,
        "==": is_eq,
        "!=": lambda a, b: not is_eq(a, b),
        ">=": is_ge,
        ">": is_gt,
    }

    def __init__(self, comparison: str = ">=", value: float = 0.0):
        if comparison not in self.COMPARISONS:
            raise ConfigurationError(f"Unknown comparison operator <{comparison}>")
        self.comparison = comparison
        self.value = value

    def parameters(self) -> str:
        return f"{self.comparison} {str_scalar(self.value)}"

    def configure(self, parameters: str) -> None:
        values = parameters.split()
        if len(values) != 2:
            raise ConfigurationError(
                f"{self.name} requires 2 parameters (comparison, value), but {len(values)} were given"
            )
        if values[0] not in self.COMPARISONS:
            raise ConfigurationError(f"Unknown comparison operator <{values[0]}>")
        self.comparison = values[0]
        self.value = to_scalar(values[1])

    def activate(self, rule_block) -> None:
        compare = self.COMPARISONS[self.comparison]
        for degree, rule in _activate(rule_block):
            if is_nan(degree):
                continue
            if compare(degree, self.value):
                rule.trigger(rule_block.implication)


class Proportional(Activation):
    """Divides every activation degree by their sum, then triggers the rules."""

    def activate(self, rule_block) -> None:
        degrees = [(d, r) for d, r in _activate(rule_block) if is_gt(d, 0.0)]
        total = sum(d for d, _ in degrees)
        if not is_gt(total, 0.0):
            activation_log.debug("Proportional activation of <%s>: no rule fired", rule_block.name)
            return
        for degree, rule in degrees:
            rule.activation_degree = degree / total
            rule.trigger(rule_block.implication)
