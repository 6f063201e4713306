"""
The fuzzy inference engine.

An Engine owns its input variables, output variables and rule blocks and
runs one inference cycle per call to `process()`:

    1) clear the fuzzy output of every output variable
    2) activate every enabled rule block, in declaration order
    3) defuzzify every output variable, in declaration order

Rule blocks see the fuzzy outputs written by the blocks before them, and
Function terms of later output variables see the crisp values of the
outputs defuzzified before them.

An engine is not thread-safe. Give each thread its own `clone()`.
"""

import copy
import logging
from enum import Enum
from typing import List, Optional, Tuple, Union

from flc import factory
from flc.defuzzifier import IntegralDefuzzifier, WeightedDefuzzifier
from flc.exceptions import ConfigurationError
from flc.function import Function
from flc.norm import AlgebraicProduct
from flc.operation import nan, str_scalar
from flc.rule import AND, OR, Operator
from flc.rule_block import RuleBlock
from flc.term import Constant, Linear
from flc.variable import InputVariable, OutputVariable, Variable

engine_log = logging.getLogger("engine")

Key = Union[str, int]


class EngineState(Enum):
    IDLE = "Idle"
    EVALUATED = "Evaluated"


class EngineType(Enum):
    UNKNOWN = "Unknown"
    MAMDANI = "Mamdani"
    LARSEN = "Larsen"
    TAKAGI_SUGENO = "TakagiSugeno"
    TSUKAMOTO = "Tsukamoto"
    INVERSE_TSUKAMOTO = "InverseTsukamoto"
    HYBRID = "Hybrid"


def _find(items, key: Key, kind: str):
    if isinstance(key, int):
        if not 0 <= key < len(items):
            raise ConfigurationError(f"{kind} index <{key}> out of range [0, {len(items)})")
        return items[key]
    for item in items:
        if item.name == key:
            return item
    raise ConfigurationError(f"{kind} <{key}> not found")


def _index_of(items, key: Key, kind: str) -> int:
    if isinstance(key, int):
        _find(items, key, kind)
        return key
    return items.index(_find(items, key, kind))


def _uses_connector(expression, name: str) -> bool:
    if isinstance(expression, Operator):
        return (expression.name == name
                or _uses_connector(expression.left, name)
                or _uses_connector(expression.right, name))
    operand = getattr(expression, "operand", None)
    return operand is not None and _uses_connector(operand, name)


class Engine:
    """
    Top-level fuzzy model.

    Attributes:
        name (str): Engine name.
        description (str): Free text.
        input_variables (List[InputVariable]): Inputs in declaration order.
        output_variables (List[OutputVariable]): Outputs in declaration order.
        rule_blocks (List[RuleBlock]): Rule blocks in evaluation order.
        state (EngineState): IDLE until process() completes, then EVALUATED.
    """

    def __init__(self, name: str = ""):
        self.name = name
        self.description = ""
        self.input_variables: List[InputVariable] = []
        self.output_variables: List[OutputVariable] = []
        self.rule_blocks: List[RuleBlock] = []
        self.state = EngineState.IDLE

    # ------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------
    def _attach(self, variable: Variable) -> None:
        for term in variable.terms:
            term.update_reference(self)

    def add_input_variable(self, variable: InputVariable) -> InputVariable:
        self._attach(variable)
        self.input_variables.append(variable)
        return variable

    def insert_input_variable(self, variable: InputVariable, index: int) -> InputVariable:
        self._attach(variable)
        self.input_variables.insert(index, variable)
        return variable

    def remove_input_variable(self, key: Key) -> InputVariable:
        return self.input_variables.pop(_index_of(self.input_variables, key, "Input variable"))

    def add_output_variable(self, variable: OutputVariable) -> OutputVariable:
        self._attach(variable)
        self.output_variables.append(variable)
        return variable

    def insert_output_variable(self, variable: OutputVariable, index: int) -> OutputVariable:
        self._attach(variable)
        self.output_variables.insert(index, variable)
        return variable

    def remove_output_variable(self, key: Key) -> OutputVariable:
        return self.output_variables.pop(_index_of(self.output_variables, key, "Output variable"))

    def add_rule_block(self, rule_block: RuleBlock) -> RuleBlock:
        self.rule_blocks.append(rule_block)
        return rule_block

    def insert_rule_block(self, rule_block: RuleBlock, index: int) -> RuleBlock:
        self.rule_blocks.insert(index, rule_block)
        return rule_block

    def remove_rule_block(self, key: Key) -> RuleBlock:
        return self.rule_blocks.pop(_index_of(self.rule_blocks, key, "Rule block"))

    def update_references(self) -> None:
        """Points every Linear and Function term at this engine."""
        for variable in self.variables():
            self._attach(variable)

    # ------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------
    def input_variable(self, key: Key) -> InputVariable:
        return _find(self.input_variables, key, "Input variable")

    def output_variable(self, key: Key) -> OutputVariable:
        return _find(self.output_variables, key, "Output variable")

    def rule_block(self, key: Key) -> RuleBlock:
        return _find(self.rule_blocks, key, "Rule block")

    def has_input_variable(self, name: str) -> bool:
        return any(v.name == name for v in self.input_variables)

    def has_output_variable(self, name: str) -> bool:
        return any(v.name == name for v in self.output_variables)

    def variables(self) -> List[Variable]:
        """Input variables followed by output variables."""
        return [*self.input_variables, *self.output_variables]

    def variable(self, name: str) -> Variable:
        for variable in self.variables():
            if variable.name == name:
                return variable
        raise ConfigurationError(f"Variable <{name}> not found")

    def set_input_value(self, name: str, value: float) -> None:
        self.input_variable(name).value = value

    def get_output_value(self, name: str) -> float:
        return self.output_variable(name).value

    # ------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------
    def configure(self, conjunction: str = "", disjunction: str = "", implication: str = "",
                  aggregation: str = "", defuzzifier: str = "", activation: str = "General",
                  resolution: Optional[int] = None) -> None:
        """
        Sets operators by name on every rule block and output variable that
        does not have one yet. Empty names leave the operator unset.

        Raises:
            ConfigurationError: If any name is unknown.
        """
        # validate all names before touching anything
        for create, name in ((factory.create_tnorm, conjunction), (factory.create_snorm, disjunction),
                             (factory.create_tnorm, implication), (factory.create_snorm, aggregation),
                             (factory.create_defuzzifier, defuzzifier),
                             (factory.create_activation, activation)):
            create(name)

        for block in self.rule_blocks:
            if block.conjunction is None:
                block.conjunction = factory.create_tnorm(conjunction)
            if block.disjunction is None:
                block.disjunction = factory.create_snorm(disjunction)
            if block.implication is None:
                block.implication = factory.create_tnorm(implication)
            if block.activation is None:
                block.activation = factory.create_activation(activation)

        for variable in self.output_variables:
            if variable.aggregation is None:
                variable.aggregation = factory.create_snorm(aggregation)
            if variable.defuzzifier is None:
                variable.defuzzifier = factory.create_defuzzifier(defuzzifier, resolution=resolution)
        engine_log.info(
            "Engine <%s> configured: conjunction=%s disjunction=%s implication=%s "
            "aggregation=%s defuzzifier=%s activation=%s",
            self.name, conjunction or "none", disjunction or "none", implication or "none",
            aggregation or "none", defuzzifier or "none", activation or "none",
        )

    def load_rules(self) -> List[str]:
        """Loads the rules of every block; returns the messages of the rules that failed."""
        errors = []
        for block in self.rule_blocks:
            errors.extend(block.load_rules(self))
        return errors

    def is_ready(self) -> Tuple[bool, str]:
        """
        Checks that the engine can be processed.

        Returns:
            Tuple[bool, str]: Whether the engine is ready, and one line per
                problem found.
        """
        problems = []
        if not self.input_variables:
            problems.append(f"Engine <{self.name}> has no input variables")
        if not self.output_variables:
            problems.append(f"Engine <{self.name}> has no output variables")
        if not self.rule_blocks:
            problems.append(f"Engine <{self.name}> has no rule blocks")

        for variable in self.variables():
            if not variable.terms:
                problems.append(f"Variable <{variable.name}> has no terms")
        for variable in self.output_variables:
            if variable.defuzzifier is None:
                problems.append(f"Output variable <{variable.name}> has no defuzzifier")
            elif isinstance(variable.defuzzifier, IntegralDefuzzifier) and variable.aggregation is None:
                problems.append(f"Output variable <{variable.name}> has no aggregation operator")

        mamdani = any(isinstance(v.defuzzifier, IntegralDefuzzifier) for v in self.output_variables)
        for block in self.rule_blocks:
            if not block.rules:
                problems.append(f"Rule block <{block.name}> has no rules")
            for rule in block.rules:
                if not rule.is_loaded():
                    problems.append(f"Rule <{rule.text}> is not loaded")
                    continue
                expression = rule.antecedent.expression
                if block.conjunction is None and _uses_connector(expression, AND):
                    problems.append(f"Rule block <{block.name}> needs a conjunction operator for <{rule.text}>")
                if block.disjunction is None and _uses_connector(expression, OR):
                    problems.append(f"Rule block <{block.name}> needs a disjunction operator for <{rule.text}>")
            if mamdani and block.implication is None:
                problems.append(f"Rule block <{block.name}> has no implication operator")
        return (not problems, "\n".join(problems))

    def infer_type(self) -> EngineType:
        """Classifies the engine from its defuzzifiers and output terms."""
        outputs = self.output_variables
        if not outputs:
            return EngineType.UNKNOWN
        if all(isinstance(v.defuzzifier, IntegralDefuzzifier) for v in outputs):
            product = [isinstance(b.implication, AlgebraicProduct) for b in self.rule_blocks]
            if product and all(product):
                return EngineType.LARSEN
            return EngineType.MAMDANI
        if all(isinstance(v.defuzzifier, WeightedDefuzzifier) for v in outputs):
            terms = [t for v in outputs for t in v.terms]
            if all(isinstance(t, (Constant, Linear, Function)) for t in terms):
                return EngineType.TAKAGI_SUGENO
            if all(t.is_monotonic() for t in terms):
                return EngineType.TSUKAMOTO
            return EngineType.INVERSE_TSUKAMOTO
        return EngineType.HYBRID

    # ------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------
    def process(self) -> None:
        """
        Runs one inference cycle over the current input values.

        Raises:
            EvaluationError: If a rule is evaluated without the operator it
                needs, or an output that fired has no defuzzifier.
        """
        if engine_log.isEnabledFor(logging.DEBUG):
            engine_log.debug(
                "process <%s>: %s", self.name,
                ", ".join(f"{v.name}={str_scalar(v.value)}" for v in self.input_variables),
            )
        for variable in self.output_variables:
            variable.fuzzy_output.clear()

        for block in self.rule_blocks:
            if block.enabled:
                block.activate()

        for variable in self.output_variables:
            variable.defuzzify()
        self.state = EngineState.EVALUATED

        if engine_log.isEnabledFor(logging.DEBUG):
            engine_log.debug(
                "process <%s> -> %s", self.name,
                ", ".join(f"{v.name}={str_scalar(v.value)}" for v in self.output_variables),
            )

    def restart(self) -> None:
        """Clears every value and fuzzy output; the engine returns to IDLE."""
        for variable in self.input_variables:
            variable.value = nan
        for variable in self.output_variables:
            variable.clear()
        for block in self.rule_blocks:
            for rule in block.rules:
                rule.deactivate()
        self.state = EngineState.IDLE

    def clone(self) -> "Engine":
        """Deep copy sharing no mutable state with this engine."""
        return copy.deepcopy(self)

    def __str__(self) -> str:
        lines = [f"Engine: {self.name}"]
        for variable in self.input_variables:
            lines.append(f"  {variable}")
            lines.extend(f"    {term}" for term in variable.terms)
        for variable in self.output_variables:
            lines.append(f"  {variable} defuzzifier={variable.defuzzifier} aggregation="
                         f"{variable.aggregation.name if variable.aggregation else 'none'}")
            lines.extend(f"    {term}" for term in variable.terms)
        for block in self.rule_blocks:
            lines.extend(f"  {line}" for line in str(block).splitlines())
        return "\n".join(lines)
