import pytest

from flc.activation import Highest
from flc.config import engine_from_config, load_engine, read_config, rule_from_codes
from flc.defuzzifier import Bisector, Centroid, WeightedAverage
from flc.exceptions import ConfigurationError
from flc.norm import AlgebraicProduct, Maximum, Minimum
from flc.operation import is_nan


def two_by_two(**engine):
    """Two inputs with two terms, one output with two terms."""
    return {
        "engine": {"name": "coded", "conjunction": "Minimum", "disjunction": "Maximum",
                   "implication": "Minimum", "aggregation": "Maximum",
                   "defuzzifier": "Centroid", **engine},
        "input": [
            {"name": "a", "range": [0.0, 1.0], "terms": [
                {"name": "LOW", "type": "Ramp", "parameters": [1.0, 0.0]},
                {"name": "HIGH", "type": "Ramp", "parameters": [0.0, 1.0]},
            ]},
            {"name": "b", "range": [0.0, 1.0], "terms": [
                {"name": "LOW", "type": "Ramp", "parameters": [1.0, 0.0]},
                {"name": "HIGH", "type": "Ramp", "parameters": [0.0, 1.0]},
            ]},
        ],
        "output": [
            {"name": "y", "range": [0.0, 1.0], "terms": [
                {"name": "SMALL", "type": "Triangle", "parameters": [0.0, 0.25, 0.5]},
                {"name": "LARGE", "type": "Triangle", "parameters": [0.5, 0.75, 1.0]},
            ]},
        ],
        "rule_block": [{"name": "rules", "rules": []}],
    }


@pytest.fixture
def coded_engine():
    return engine_from_config(two_by_two())


# ------------------------------------------------------------
# Configuration files
# ------------------------------------------------------------
def test_load_dimmer_file(dimmer_config_path):
    engine = load_engine(dimmer_config_path)
    assert engine.name == "simple-dimmer"
    power = engine.output_variable("Power")
    assert isinstance(power.defuzzifier, Centroid)
    assert power.defuzzifier.resolution == 200
    assert isinstance(power.aggregation, Maximum)
    assert isinstance(engine.rule_block(0).implication, Minimum)
    assert engine.rule_block(0).conjunction is None
    assert engine.is_ready() == (True, "")

    engine.set_input_value("Ambient", 0.25)
    engine.process()
    assert power.value == pytest.approx(1.5, abs=1e-2)


def test_read_config_returns_the_toml_document(dimmer_config_path):
    cfg = read_config(dimmer_config_path)
    assert cfg["engine"]["defuzzifier"] == "Centroid"
    assert len(cfg["input"][0]["terms"]) == 3


def test_missing_file_raises_os_error(tmp_path):
    with pytest.raises(OSError):
        load_engine(str(tmp_path / "missing.toml"))


def test_weighted_type_from_engine_section(sin_x):
    defuzzifier = sin_x.output_variable("outputFx").defuzzifier
    assert isinstance(defuzzifier, WeightedAverage)
    assert defuzzifier.type == "TakagiSugeno"
    assert sin_x.output_variable("outputFx").lock_previous_value
    assert is_nan(sin_x.output_variable("trueFx").minimum)


def test_unknown_weighted_type_raises():
    cfg = two_by_two(defuzzifier="WeightedAverage", type="Mamdani")
    with pytest.raises(ConfigurationError):
        engine_from_config(cfg)


def test_section_overrides_engine_defaults():
    cfg = two_by_two()
    cfg["output"][0].update(defuzzifier="Bisector", resolution=100, aggregation="AlgebraicSum",
                            default=0.5, lock_range=True)
    cfg["rule_block"][0].update(implication="AlgebraicProduct", activation="Highest",
                                activation_parameters=[2])
    engine = engine_from_config(cfg)

    y = engine.output_variable("y")
    assert isinstance(y.defuzzifier, Bisector)
    assert y.defuzzifier.resolution == 100
    assert y.aggregation.name == "AlgebraicSum"
    assert y.default_value == 0.5
    assert y.lock_value_in_range
    block = engine.rule_block(0)
    assert isinstance(block.implication, AlgebraicProduct)
    assert isinstance(block.activation, Highest)
    assert block.activation.number_of_rules == 2


def test_input_value_and_disabled_flags():
    cfg = two_by_two()
    cfg["input"][0].update(value=0.75, description="first input")
    cfg["input"][1]["enabled"] = False
    cfg["rule_block"][0]["enabled"] = False
    engine = engine_from_config(cfg)
    assert engine.input_variable("a").value == 0.75
    assert engine.input_variable("a").description == "first input"
    assert not engine.input_variable("b").enabled
    assert not engine.rule_block(0).enabled


@pytest.mark.parametrize(
    "mutate",
    [
        lambda cfg: cfg["engine"].update(conjunction="Minimun"),
        lambda cfg: cfg["output"][0].update(defuzzifier="Centroidd"),
        lambda cfg: cfg["input"][0]["terms"].append({"name": "MID", "type": "Blob"}),
        lambda cfg: cfg["input"][0]["terms"].append({"name": "MID", "type": "Triangle",
                                                     "parameters": [0.0, 1.0]}),
        lambda cfg: cfg["input"][0]["terms"].append({"type": "Triangle"}),
        lambda cfg: cfg["input"][0]["terms"].append({"name": "LOW", "type": "Ramp",
                                                     "parameters": [0.0, 1.0]}),
        lambda cfg: cfg["input"][0].update(range=[0.0]),
        lambda cfg: cfg["rule_block"][0].update(activation="Threshold",
                                                activation_parameters=["~=", 0.5]),
    ],
    ids=["tnorm", "defuzzifier", "term-class", "term-arity", "term-name", "duplicate-term",
         "range", "activation-parameters"],
)
def test_invalid_configuration_raises(mutate):
    cfg = two_by_two()
    mutate(cfg)
    with pytest.raises(ConfigurationError):
        engine_from_config(cfg)


def test_strict_mode_raises_on_bad_rules():
    cfg = two_by_two()
    cfg["rule_block"][0]["rules"] = ["if a is LOW then y is SMALL", "if a is MISSING then y is SMALL"]
    with pytest.raises(ConfigurationError, match="1 rule"):
        engine_from_config(cfg)

    engine = engine_from_config(cfg, strict=False)
    rules = engine.rule_block(0).rules
    assert rules[0].is_loaded()
    assert not rules[1].is_loaded()
    ready, status = engine.is_ready()
    assert not ready
    assert "is not loaded" in status


# ------------------------------------------------------------
# Index-coded rules
# ------------------------------------------------------------
@pytest.mark.parametrize(
    "codes, text",
    [
        ([1, 2, 1, 1.0, 1], "if a is LOW and b is HIGH then y is SMALL"),
        ([2, 1, 2, 1.0, 2], "if a is HIGH or b is LOW then y is LARGE"),
        ([0, 2, 2, 0.5, 1], "if b is HIGH then y is LARGE with 0.5"),
        ([-1, 0, 1, 1.0, 1], "if a is not LOW then y is SMALL"),
        ([1.2, 0, 2.05, 1.0, 1], "if a is very LOW then y is somewhat LARGE"),
        ([2.4, 0, 1, 1.0, 1], "if a is very very HIGH then y is SMALL"),
        ([-2.3, 0, 1, 1.0, 1], "if a is not extremely HIGH then y is SMALL"),
        ([0.99, 0, 1.01, 1.0, 1], "if a is any then y is seldom SMALL"),
    ],
)
def test_rule_from_codes(coded_engine, codes, text):
    assert rule_from_codes(coded_engine, codes) == text


@pytest.mark.parametrize(
    "codes",
    [
        [1, 1, 1.0, 1],          # arity
        [3, 1, 1, 1.0, 1],       # term index out of range
        [1.7, 1, 1, 1.0, 1],     # no hedge coded by 0.7
        [1, 1, 1, 1.0, 3],       # connector
        [1, 1, 1.99, 1.0, 1],    # any in consequent
        [0, 0, 1, 1.0, 1],       # empty antecedent
        [1, 1, 0, 1.0, 1],       # empty consequent
    ],
)
def test_invalid_rule_codes(coded_engine, codes):
    with pytest.raises(ConfigurationError):
        rule_from_codes(coded_engine, codes)


def test_coded_rules_are_loaded_and_evaluated():
    cfg = two_by_two()
    cfg["rule_block"][0]["codes"] = [[1, 1, 2, 1.0, 1], [2, 2, 1, 1.0, 1]]
    engine = engine_from_config(cfg)
    assert [r.text for r in engine.rule_block(0).rules] == [
        "if a is LOW and b is LOW then y is LARGE",
        "if a is HIGH and b is HIGH then y is SMALL",
    ]
    engine.set_input_value("a", 0.0)
    engine.set_input_value("b", 0.0)
    engine.process()
    assert engine.get_output_value("y") == pytest.approx(0.75, abs=1e-2)
