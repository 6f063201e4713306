import math

import pytest

from flc.activation import General
from flc.defuzzifier import Centroid, WeightedAverage
from flc.engine import Engine, EngineState, EngineType
from flc.exceptions import ConfigurationError, EvaluationError
from flc.norm import AlgebraicProduct, Maximum, Minimum
from flc.operation import is_nan
from flc.rule import Rule
from flc.rule_block import RuleBlock
from flc.term import Constant, Ramp, SShape, Triangle
from flc.variable import InputVariable, OutputVariable


def evaluate(engine, **inputs):
    for name, value in inputs.items():
        engine.set_input_value(name, value)
    engine.process()
    return {v.name: v.value for v in engine.output_variables}


# ------------------------------------------------------------
# Simple dimmer
# ------------------------------------------------------------
@pytest.mark.parametrize(
    "ambient, power",
    [
        (0.25, 1.5),    # DARK only -> HIGH
        (0.375, 1.25),  # DARK and MEDIUM at 0.5 each
        (0.5, 1.0),     # MEDIUM only
        (0.75, 0.5),    # BRIGHT only -> LOW
    ],
)
def test_dimmer_values(dimmer, ambient, power):
    assert evaluate(dimmer, Ambient=ambient)["Power"] == pytest.approx(power, abs=1e-2)


def test_dimmer_without_firing_rules_returns_default(dimmer):
    # DARK starts at 0, so no rule fires at the edge of the range
    assert is_nan(evaluate(dimmer, Ambient=0.0)["Power"])
    dimmer.output_variable("Power").default_value = 0.0
    assert evaluate(dimmer, Ambient=0.0)["Power"] == 0.0


def test_process_is_deterministic(dimmer):
    first = evaluate(dimmer, Ambient=0.4)["Power"]
    for _ in range(3):
        assert evaluate(dimmer, Ambient=0.4)["Power"] == first


def test_process_sets_state_and_restart_clears(dimmer):
    assert dimmer.state is EngineState.IDLE
    evaluate(dimmer, Ambient=0.25)
    assert dimmer.state is EngineState.EVALUATED

    dimmer.restart()
    assert dimmer.state is EngineState.IDLE
    assert is_nan(dimmer.input_variable("Ambient").value)
    power = dimmer.output_variable("Power")
    assert is_nan(power.value)
    assert power.fuzzy_output.is_empty()
    assert all(r.activation_degree == 0.0 and not r.triggered for r in dimmer.rule_block(0).rules)


def test_fuzzy_output_is_rebuilt_every_cycle(dimmer):
    evaluate(dimmer, Ambient=0.25)
    evaluate(dimmer, Ambient=0.75)
    power = dimmer.output_variable("Power")
    assert [t.term.name for t in power.fuzzy_output.terms] == ["LOW"]


def test_rule_weight_zero_never_fires(dimmer):
    block = dimmer.rule_block("mamdani")
    block.rule_at(0).weight = 0.0
    assert is_nan(evaluate(dimmer, Ambient=0.25)["Power"])
    assert not block.rule_at(0).triggered


def test_disabled_rule_block_is_skipped(dimmer):
    dimmer.rule_block(0).enabled = False
    assert is_nan(evaluate(dimmer, Ambient=0.5)["Power"])


def test_clone_is_independent(dimmer):
    copy = dimmer.clone()
    copy.output_variable("Power").term("HIGH").configure([1.5, 1.75, 2.0])
    copy.rule_block(0).rule_at(0).enabled = False

    assert evaluate(dimmer, Ambient=0.25)["Power"] == pytest.approx(1.5, abs=1e-2)
    assert is_nan(evaluate(copy, Ambient=0.25)["Power"])
    assert copy.rule_block(0).rule_at(1).antecedent.expression.variable is copy.input_variable(0)


def test_lookups(dimmer):
    assert dimmer.input_variable(0) is dimmer.input_variable("Ambient")
    assert dimmer.output_variable("Power") is dimmer.variable("Power")
    assert dimmer.has_input_variable("Ambient")
    assert not dimmer.has_output_variable("Ambient")
    assert [v.name for v in dimmer.variables()] == ["Ambient", "Power"]
    with pytest.raises(ConfigurationError):
        dimmer.input_variable("Missing")
    with pytest.raises(ConfigurationError):
        dimmer.rule_block(3)
    with pytest.raises(ConfigurationError):
        dimmer.set_input_value("Power", 1.0)


def test_add_insert_remove(dimmer):
    extra = InputVariable("Extra", 0.0, 1.0)
    dimmer.insert_input_variable(extra, 0)
    assert dimmer.input_variable(0) is extra
    assert dimmer.remove_input_variable("Extra") is extra
    assert dimmer.remove_rule_block(0).name == "mamdani"
    assert dimmer.rule_blocks == []


def test_is_ready(dimmer):
    assert dimmer.is_ready() == (True, "")

    empty = Engine("empty")
    ready, status = empty.is_ready()
    assert not ready
    assert "no input variables" in status
    assert "no rule blocks" in status


def test_is_ready_reports_missing_operators(dimmer):
    block = dimmer.rule_block(0)
    block.add_rule("if Ambient is DARK or Ambient is MEDIUM then Power is HIGH")
    assert dimmer.load_rules() == []
    block.disjunction = None
    block.implication = None
    dimmer.output_variable("Power").aggregation = None

    ready, status = dimmer.is_ready()
    assert not ready
    assert "needs a disjunction operator" in status
    assert "has no implication operator" in status
    assert "has no aggregation operator" in status


def test_missing_disjunction_raises_on_process(dimmer):
    block = dimmer.rule_block(0)
    block.add_rule("if Ambient is DARK or Ambient is MEDIUM then Power is HIGH")
    dimmer.load_rules()
    block.disjunction = None
    dimmer.set_input_value("Ambient", 0.3)
    with pytest.raises(EvaluationError):
        dimmer.process()


def test_configure_fills_only_unset_operators():
    engine = Engine("partial")
    power = engine.add_output_variable(OutputVariable("Power", 0.0, 1.0))
    power.defuzzifier = Centroid(50)
    engine.add_rule_block(RuleBlock("rules", conjunction=Minimum()))

    engine.configure("AlgebraicProduct", "Maximum", "AlgebraicProduct", "Maximum", "Bisector",
                     resolution=300)

    block = engine.rule_block(0)
    assert isinstance(block.conjunction, Minimum)
    assert isinstance(block.disjunction, Maximum)
    assert isinstance(block.implication, AlgebraicProduct)
    assert isinstance(block.activation, General)
    assert isinstance(power.defuzzifier, Centroid)
    assert power.defuzzifier.resolution == 50
    assert isinstance(power.aggregation, Maximum)


def test_configure_validates_before_changing_anything():
    engine = Engine()
    engine.add_rule_block(RuleBlock("rules"))
    with pytest.raises(ConfigurationError):
        engine.configure("Minimum", "Maximum", "Minimum", "Maximum", "Centroidd")
    assert engine.rule_block(0).conjunction is None


def test_infer_type(dimmer, sin_x):
    assert dimmer.infer_type() is EngineType.MAMDANI
    dimmer.rule_block(0).implication = AlgebraicProduct()
    assert dimmer.infer_type() is EngineType.LARSEN
    assert sin_x.infer_type() is EngineType.TAKAGI_SUGENO
    assert Engine().infer_type() is EngineType.UNKNOWN


def test_infer_type_tsukamoto_and_hybrid():
    engine = Engine()
    out = engine.add_output_variable(OutputVariable("y", 0.0, 1.0, [Ramp("UP", 0.0, 1.0)]))
    out.defuzzifier = WeightedAverage()
    assert engine.infer_type() is EngineType.TSUKAMOTO

    out.add_term(Triangle("MID", 0.0, 0.5, 1.0))
    assert engine.infer_type() is EngineType.INVERSE_TSUKAMOTO

    other = engine.add_output_variable(OutputVariable("z", 0.0, 1.0, [Constant("k", 1.0)]))
    other.defuzzifier = Centroid()
    assert engine.infer_type() is EngineType.HYBRID


def test_str_lists_variables_and_rules(dimmer):
    text = str(dimmer)
    assert text.startswith("Engine: simple-dimmer")
    assert "if Ambient is DARK then Power is HIGH" in text


# ------------------------------------------------------------
# Takagi-Sugeno approximation of sin(x)/x
# ------------------------------------------------------------
@pytest.mark.parametrize("x, approximation", [(1.0, 0.84), (1.5, 0.645), (2.0, 0.45)])
def test_sin_x_approximation(sin_x, x, approximation):
    outputs = evaluate(sin_x, inputX=x)
    assert outputs["outputFx"] == pytest.approx(approximation)
    assert outputs["trueFx"] == pytest.approx(math.sin(x) / x)
    assert outputs["diffFx"] == pytest.approx(abs(approximation - math.sin(x) / x))


def test_sin_x_keeps_previous_value_when_no_rule_fires(sin_x):
    evaluate(sin_x, inputX=1.0)
    outputs = evaluate(sin_x, inputX=10.0)
    assert outputs["outputFx"] == pytest.approx(0.84)
    assert outputs["trueFx"] == pytest.approx(math.sin(10.0) / 10.0)


def test_sin_x_rule_blocks_share_the_engine(sin_x):
    block = sin_x.rule_block("takagi-sugeno")
    assert len(block) == 10
    assert all(rule.is_loaded() for rule in block.rules)


def test_tsukamoto_rule_weight_above_one_yields_nan():
    engine = Engine("tsukamoto")
    x = engine.add_input_variable(InputVariable("x", 0.0, 1.0, [Ramp("A", 0.0, 1.0)]))
    y = engine.add_output_variable(OutputVariable("y", 0.0, 10.0))
    y.add_term(SShape("S", 0.0, 10.0))
    y.defuzzifier = WeightedAverage("Tsukamoto")
    block = engine.add_rule_block(RuleBlock("rules"))
    block.add_rule("if x is A then y is S with 2.0")
    assert engine.load_rules() == []

    x.value = 0.5
    engine.process()
    assert y.value == pytest.approx(10.0)

    x.value = 1.0
    engine.process()
    assert is_nan(y.value)


def test_rule_weight_is_compared_with_tolerance(dimmer):
    rule = dimmer.rule_block(0).rule_at(0)
    rule.weight = 1.0 + 1e-12
    assert str(rule) == "if Ambient is DARK then Power is HIGH"
    rule.weight = 0.5
    assert str(rule).endswith("with 0.500")
