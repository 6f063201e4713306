# tests/conftest.py
import os

import pytest

from flc.config import load_engine
from flc.defuzzifier import Centroid
from flc.engine import Engine
from flc.norm import Maximum, Minimum
from flc.rule import Rule
from flc.rule_block import RuleBlock
from flc.term import Triangle
from flc.variable import InputVariable, OutputVariable

CONFIG_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "config")


def build_dimmer() -> Engine:
    """The simple dimmer, assembled through the construction API."""
    engine = Engine("simple-dimmer")

    ambient = InputVariable("Ambient", 0.0, 1.0)
    ambient.add_term(Triangle("DARK", 0.0, 0.25, 0.5))
    ambient.add_term(Triangle("MEDIUM", 0.25, 0.5, 0.75))
    ambient.add_term(Triangle("BRIGHT", 0.5, 0.75, 1.0))
    engine.add_input_variable(ambient)

    power = OutputVariable("Power", 0.0, 2.0)
    power.defuzzifier = Centroid(200)
    power.aggregation = Maximum()
    power.add_term(Triangle("LOW", 0.0, 0.5, 1.0))
    power.add_term(Triangle("MEDIUM", 0.5, 1.0, 1.5))
    power.add_term(Triangle("HIGH", 1.0, 1.5, 2.0))
    engine.add_output_variable(power)

    block = RuleBlock("mamdani", conjunction=Minimum(), disjunction=Maximum(), implication=Minimum())
    block.add_rule(Rule("if Ambient is DARK then Power is HIGH"))
    block.add_rule(Rule("if Ambient is MEDIUM then Power is MEDIUM"))
    block.add_rule(Rule("if Ambient is BRIGHT then Power is LOW"))
    engine.add_rule_block(block)

    assert engine.load_rules() == []
    return engine


@pytest.fixture
def dimmer():
    return build_dimmer()


@pytest.fixture
def sin_x():
    """Takagi-Sugeno approximation of sin(x)/x, loaded from config/sin_x.toml."""
    return load_engine(os.path.join(CONFIG_DIR, "sin_x.toml"))


@pytest.fixture
def dimmer_config_path():
    return os.path.join(CONFIG_DIR, "flc_config.toml")


@pytest.fixture
def sin_x_path():
    return os.path.join(CONFIG_DIR, "sin_x.toml")
