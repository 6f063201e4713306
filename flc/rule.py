"""
Linguistic rules.

A rule reads ``if <antecedent> then <consequent> [with <weight>]``::

    if Ambient is DARK then Power is HIGH
    if service is poor or food is rancid then tip is cheap with 0.5
    if (temp is very hot and not humidity is low) then fan is fast and pump is on
    if inputX is any then trueFx is fx

The antecedent is parsed once, when the rule is loaded into an engine, into a
tree of propositions joined by ``and`` / ``or`` and prefixed by ``not``.
Binding, from tightest to loosest: ``not``, the hedge chain, ``is``,
``and``, ``or``; parentheses override. The consequent is a flat list of
``variable is [hedges] term`` clauses joined by ``and``.
"""

import logging
from typing import List, Optional, Union

from flc.exceptions import ConfigurationError, EvaluationError, RuleParseError
from flc.factory import HEDGES, create_hedge
from flc.hedge import Any, Hedge, apply_hedges
from flc.norm import SNorm, TNorm
from flc.operation import is_eq, is_gt, to_scalar, str_scalar
from flc.term import Term
from flc.variable import OutputVariable, Variable

rule_log = logging.getLogger("rule")

IF = "if"
IS = "is"
THEN = "then"
AND = "and"
OR = "or"
NOT = "not"
WITH = "with"

KEYWORDS = (IF, IS, THEN, AND, OR, NOT, WITH)


def _tokenize(text: str) -> List[str]:
    return text.replace("(", " ( ").replace(")", " ) ").split()


# ------------------------------------------------------------
# Expression tree
# ------------------------------------------------------------
class Proposition:
    """
    Leaf of a rule: ``variable is [hedges] term``.

    `term` is None when the hedge chain ends in ``any``.
    """

    def __init__(self, variable: Variable, hedges: List[Hedge], term: Optional[Term]):
        self.variable = variable
        self.hedges = hedges
        self.term = term

    def activation_degree(self, conjunction=None, disjunction=None) -> float:
        if not self.variable.enabled:
            return 0.0
        if self.hedges and isinstance(self.hedges[-1], Any):
            return apply_hedges(self.hedges, 1.0)

        if isinstance(self.variable, OutputVariable):
            # degree reached by the term in an earlier rule block of this cycle
            degree = self.variable.fuzzy_output.activation_degree(self.term)
        else:
            degree = self.term.membership(self.variable.value)
        return apply_hedges(self.hedges, degree)

    def __str__(self) -> str:
        words = [self.variable.name, IS] + [h.name for h in self.hedges]
        if self.term is not None:
            words.append(self.term.name)
        return " ".join(words)


class Operator:
    """``and`` / ``or`` node, evaluated with the rule block's norms."""

    def __init__(self, name: str, left, right):
        self.name = name
        self.left = left
        self.right = right

    def activation_degree(self, conjunction: Optional[TNorm], disjunction: Optional[SNorm]) -> float:
        a = self.left.activation_degree(conjunction, disjunction)
        b = self.right.activation_degree(conjunction, disjunction)
        if self.name == AND:
            if conjunction is None:
                raise EvaluationError(f"A conjunction operator is required to evaluate <{self}>")
            return conjunction.compute(a, b)
        if disjunction is None:
            raise EvaluationError(f"A disjunction operator is required to evaluate <{self}>")
        return disjunction.compute(a, b)

    def __str__(self) -> str:
        return f"({self.left} {self.name} {self.right})"


class Negation:
    """Prefix ``not`` applied to a proposition or a parenthesised group."""

    def __init__(self, operand):
        self.operand = operand

    def activation_degree(self, conjunction=None, disjunction=None) -> float:
        return 1.0 - self.operand.activation_degree(conjunction, disjunction)

    def __str__(self) -> str:
        return f"{NOT} {self.operand}"


Expression = Union[Proposition, Operator, Negation]


class _AntecedentParser:
    def __init__(self, text: str, engine):
        self.text = text
        self.engine = engine
        self.tokens = _tokenize(text)
        self.position = 0

    def parse(self) -> Expression:
        if not self.tokens:
            self._fail("the antecedent is empty")
        node = self._disjunction()
        if self.position != len(self.tokens):
            self._fail(f"unexpected token <{self.tokens[self.position]}>")
        return node

    def _fail(self, reason: str):
        raise RuleParseError(f"Cannot parse antecedent <{self.text}>: {reason}", self.text)

    def _peek(self) -> Optional[str]:
        if self.position < len(self.tokens):
            return self.tokens[self.position]
        return None

    def _advance(self) -> str:
        token = self._peek()
        if token is None:
            self._fail("unexpected end of antecedent")
        self.position += 1
        return token

    def _disjunction(self) -> Expression:
        node = self._conjunction()
        while self._peek() == OR:
            self._advance()
            node = Operator(OR, node, self._conjunction())
        return node

    def _conjunction(self) -> Expression:
        node = self._factor()
        while self._peek() == AND:
            self._advance()
            node = Operator(AND, node, self._factor())
        return node

    def _factor(self) -> Expression:
        token = self._peek()
        if token == NOT:
            self._advance()
            return Negation(self._factor())
        if token == "(":
            self._advance()
            node = self._disjunction()
            if self._advance() != ")":
                self._fail("missing closing parenthesis")
            return node
        return self._proposition()

    def _proposition(self) -> Proposition:
        name = self._advance()
        try:
            variable = self.engine.variable(name)
        except ConfigurationError:
            self._fail(f"variable <{name}> not found")
        if self._advance() != IS:
            self._fail(f"expected <{IS}> after variable <{name}>")

        hedges = []
        term = None
        while True:
            token = self._advance()
            if token in HEDGES and not variable.has_term(token):
                hedges.append(create_hedge(token))
                if isinstance(hedges[-1], Any):
                    break
                continue
            if not variable.has_term(token):
                self._fail(f"term <{token}> not found in variable <{name}>")
            term = variable.term(token)
            break
        return Proposition(variable, hedges, term)


class Antecedent:
    """The ``if`` part of a rule."""

    def __init__(self, text: str = ""):
        self.text = text
        self.expression: Optional[Expression] = None

    def load(self, engine) -> None:
        self.expression = _AntecedentParser(self.text, engine).parse()

    def unload(self) -> None:
        self.expression = None

    def is_loaded(self) -> bool:
        return self.expression is not None

    def activation_degree(self, conjunction: Optional[TNorm], disjunction: Optional[SNorm]) -> float:
        if self.expression is None:
            raise EvaluationError(f"Antecedent <{self.text}> is not loaded")
        return self.expression.activation_degree(conjunction, disjunction)

    def __str__(self) -> str:
        return str(self.expression) if self.expression is not None else self.text


class Consequent:
    """The ``then`` part of a rule: output propositions joined by ``and``."""

    def __init__(self, text: str = ""):
        self.text = text
        self.conclusions: List[Proposition] = []

    def load(self, engine) -> None:
        tokens = _tokenize(self.text)
        if not tokens:
            raise RuleParseError("The consequent is empty", self.text)

        conclusions = []
        clause: List[str] = []
        for token in tokens + [AND]:
            if token != AND:
                clause.append(token)
                continue
            conclusions.append(self._parse_clause(clause, engine))
            clause = []
        self.conclusions = conclusions

    def _parse_clause(self, clause: List[str], engine) -> Proposition:
        if len(clause) < 3 or clause[1] != IS:
            raise RuleParseError(
                f"Expected <variable is [hedges] term> in consequent but found <{' '.join(clause)}>",
                self.text,
            )
        name = clause[0]
        try:
            variable = engine.output_variable(name)
        except ConfigurationError:
            raise RuleParseError(f"Output variable <{name}> not found", self.text) from None

        *hedge_names, term_name = clause[2:]
        hedges = []
        for hedge_name in hedge_names:
            if hedge_name not in HEDGES or hedge_name == Any.name:
                raise RuleParseError(f"Unexpected <{hedge_name}> in consequent <{self.text}>", self.text)
            hedges.append(create_hedge(hedge_name))
        if not variable.has_term(term_name):
            raise RuleParseError(f"Term <{term_name}> not found in variable <{name}>", self.text)
        return Proposition(variable, hedges, variable.term(term_name))

    def unload(self) -> None:
        self.conclusions = []

    def is_loaded(self) -> bool:
        return bool(self.conclusions)

    def modify(self, activation_degree: float, implication: Optional[TNorm]) -> None:
        """Adds one activated term per conclusion to its output variable."""
        for proposition in self.conclusions:
            if not proposition.variable.enabled:
                continue
            degree = apply_hedges(proposition.hedges, activation_degree)
            proposition.variable.fuzzy_output.add_term(proposition.term, degree, implication)

    def __str__(self) -> str:
        if not self.conclusions:
            return self.text
        return f" {AND} ".join(str(p) for p in self.conclusions)


class Rule:
    """
    One linguistic rule.

    Attributes:
        text (str): The rule as written.
        weight (float): Multiplies the antecedent degree (1.0 by default,
            overridden by a ``with`` clause).
        enabled (bool): Disabled rules are skipped by the rule block.
        activation_degree (float): Weighted degree of the last activation.
        triggered (bool): Whether the rule modified its consequent this cycle.
    """

    def __init__(self, text: str = "", weight: float = 1.0):
        self.text = text
        self.weight = weight
        self.enabled = True
        self.antecedent = Antecedent()
        self.consequent = Consequent()
        self.activation_degree = 0.0
        self.triggered = False

    @classmethod
    def parse(cls, text: str, engine) -> "Rule":
        rule = cls(text)
        rule.load(engine)
        return rule

    def _split(self):
        tokens = self.text.split()
        if not tokens or tokens[0] != IF:
            raise RuleParseError(f"Expected rule to start with <{IF}>: <{self.text}>", self.text)
        if THEN not in tokens:
            raise RuleParseError(f"Expected keyword <{THEN}> in rule <{self.text}>", self.text)
        then_at = tokens.index(THEN)
        with_at = len(tokens)
        if WITH in tokens[then_at:]:
            with_at = len(tokens) - 1 - tokens[::-1].index(WITH)
            if with_at != len(tokens) - 2:
                raise RuleParseError(f"Expected a single weight after <{WITH}> in <{self.text}>", self.text)
            try:
                self.weight = to_scalar(tokens[with_at + 1])
            except ConfigurationError:
                raise RuleParseError(f"Invalid weight <{tokens[with_at + 1]}> in <{self.text}>",
                                     self.text) from None
        antecedent = " ".join(tokens[1:then_at])
        consequent = " ".join(tokens[then_at + 1:with_at])
        return antecedent, consequent

    def load(self, engine) -> None:
        """
        Parses the rule against the variables of `engine`.

        Raises:
            RuleParseError: If the text is malformed or refers to unknown
                variables, terms or hedges. The rule is left unloaded.
        """
        self.unload()
        try:
            antecedent, consequent = self._split()
            self.antecedent = Antecedent(antecedent)
            self.consequent = Consequent(consequent)
            self.antecedent.load(engine)
            self.consequent.load(engine)
        except RuleParseError as e:
            e.rule_text = self.text
            self.unload()
            raise
        rule_log.debug("Loaded rule: %s", self)

    def unload(self) -> None:
        self.deactivate()
        self.antecedent.unload()
        self.consequent.unload()

    def is_loaded(self) -> bool:
        return self.antecedent.is_loaded() and self.consequent.is_loaded()

    def activate_with(self, conjunction: Optional[TNorm], disjunction: Optional[SNorm]) -> float:
        if not self.is_loaded():
            raise EvaluationError(f"Rule <{self.text}> is not loaded")
        self.activation_degree = self.weight * self.antecedent.activation_degree(conjunction, disjunction)
        return self.activation_degree

    def trigger(self, implication: Optional[TNorm]) -> None:
        if not self.is_loaded():
            raise EvaluationError(f"Rule <{self.text}> is not loaded")
        if self.enabled and is_gt(self.activation_degree, 0.0):
            self.consequent.modify(self.activation_degree, implication)
            self.triggered = True

    def deactivate(self) -> None:
        self.activation_degree = 0.0
        self.triggered = False

    def __str__(self) -> str:
        if not self.is_loaded():
            return self.text
        text = f"{IF} {self.antecedent} {THEN} {self.consequent}"
        if not is_eq(self.weight, 1.0):
            text += f" {WITH} {str_scalar(self.weight)}"
        return text
