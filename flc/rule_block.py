"""
Rule blocks.

A rule block groups rules that share the same operators: the conjunction
(``and``), the disjunction (``or``), the implication that shapes each
consequent term by its rule's degree, and the activation method that picks
which rules fire.
"""

import logging
from typing import List, Optional

from flc.activation import Activation, General
from flc.exceptions import RuleParseError
from flc.norm import SNorm, TNorm
from flc.rule import Rule

rule_block_log = logging.getLogger("rule_block")


class RuleBlock:
    """
    Attributes:
        name (str): Block name.
        enabled (bool): Disabled blocks are skipped by the engine.
        conjunction (TNorm | None): Operator for ``and``.
        disjunction (SNorm | None): Operator for ``or``.
        implication (TNorm | None): Operator applied to consequent terms.
        activation (Activation | None): Rule selection; General when unset.
        rules (List[Rule]): Rules in declaration order.
    """

    def __init__(self, name: str = "", conjunction: Optional[TNorm] = None,
                 disjunction: Optional[SNorm] = None, implication: Optional[TNorm] = None,
                 activation: Optional[Activation] = None):
        self.name = name
        self.description = ""
        self.enabled = True
        self.conjunction = conjunction
        self.disjunction = disjunction
        self.implication = implication
        self.activation = activation
        self.rules: List[Rule] = []

    def add_rule(self, rule) -> Rule:
        """Appends a rule, given as a Rule or as its text. Text is not parsed here."""
        if isinstance(rule, str):
            rule = Rule(rule)
        self.rules.append(rule)
        return rule

    def insert_rule(self, rule, index: int) -> Rule:
        if isinstance(rule, str):
            rule = Rule(rule)
        self.rules.insert(index, rule)
        return rule

    def remove_rule(self, index: int) -> Rule:
        return self.rules.pop(index)

    def rule_at(self, index: int) -> Rule:
        return self.rules[index]

    def __len__(self) -> int:
        return len(self.rules)

    def load_rules(self, engine) -> List[str]:
        """
        Parses every rule against the engine's variables.

        Rules that fail to parse are logged and left unloaded, the remaining
        ones are still loaded.

        Returns:
            List[str]: One message per rule that failed.
        """
        errors = []
        for index, rule in enumerate(self.rules):
            try:
                rule.load(engine)
            except RuleParseError as e:
                rule_block_log.error("Rule block <%s>, rule %d: %s", self.name, index, e)
                errors.append(f"[rule {index}] {e}")
        rule_block_log.info(
            "Rule block <%s>: %d of %d rules loaded", self.name, len(self.rules) - len(errors), len(self.rules)
        )
        return errors

    def unload_rules(self) -> None:
        for rule in self.rules:
            rule.unload()

    def reload_rules(self, engine) -> List[str]:
        self.unload_rules()
        return self.load_rules(engine)

    def activate(self) -> None:
        """Runs the activation method; General is used when none is set."""
        if not self.enabled:
            return
        activation = self.activation if self.activation is not None else General()
        rule_block_log.debug("Activating <%s> with %s", self.name, activation)
        activation.activate(self)

    def __str__(self) -> str:
        def name(operator):
            return operator.name if operator is not None else "none"

        lines = [
            f"RuleBlock: {self.name}",
            f"  enabled: {self.enabled}",
            f"  conjunction: {name(self.conjunction)}",
            f"  disjunction: {name(self.disjunction)}",
            f"  implication: {name(self.implication)}",
            f"  activation: {self.activation if self.activation is not None else 'none'}",
        ]
        lines.extend(f"  rule: {rule}" for rule in self.rules)
        return "\n".join(lines)
