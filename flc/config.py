"""
Builds an Engine from a TOML configuration.

Layout of a configuration file::

    [engine]
    name = "simple-dimmer"
    conjunction = ""            # names from the factory tables, "" for none
    disjunction = ""
    implication = "Minimum"
    aggregation = "Maximum"
    defuzzifier = "Centroid"
    resolution = 200            # integral defuzzifiers
    type = "Automatic"          # weighted defuzzifiers
    activation = "General"

    [[input]]
    name = "Ambient"
    range = [0.0, 1.0]
    lock_range = false
    terms = [ { name = "DARK", type = "Triangle", parameters = [0.0, 0.25, 0.5] } ]

    [[output]]
    name = "Power"
    range = [0.0, 2.0]
    default = nan
    lock_range = false
    lock_previous = false
    terms = [ ... ]

    [[rule_block]]
    name = "mamdani"
    rules = ["if Ambient is DARK then Power is HIGH"]
    codes = [[1, 3, 1.0, 1]]

Operators set on an output variable or a rule block override the `[engine]`
defaults.

`codes` are index-coded rules ``[in_1..in_n, out_1..out_m, weight, connector]``:
each code is the 1-based term index in its variable, 0 to leave the
variable out, negative for ``not``. The fractional part selects a hedge
(see `CODED_HEDGES`). The connector is 1 for ``and``, 2 for ``or``.
"""

import logging
import math
import tomllib
from typing import Any, Dict, List, Sequence

from flc import factory
from flc.defuzzifier import WeightedDefuzzifier
from flc.engine import Engine
from flc.exceptions import ConfigurationError
from flc.operation import is_eq, nan, str_scalar, to_scalar
from flc.rule_block import RuleBlock
from flc.variable import InputVariable, OutputVariable, Variable

config_log = logging.getLogger("engine")

# fractional part of a rule code -> hedge keywords
CODED_HEDGES = (
    (0.01, "seldom"),
    (0.05, "somewhat"),
    (0.2, "very"),
    (0.3, "extremely"),
    (0.4, "very very"),
    (0.99, "any"),
)

CONNECTORS = {1: "and", 2: "or"}


# ------------------------------------------------------------
# Load TOML
# ------------------------------------------------------------
def read_config(path: str) -> dict:
    with open(path, "rb") as f:
        return tomllib.load(f)


def load_engine(path: str, strict: bool = True) -> Engine:
    """Reads a TOML file and builds the engine it describes."""
    cfg = read_config(path)
    config_log.info("Configuration file '%s' loaded.", path)
    return engine_from_config(cfg, strict=strict)


# ------------------------------------------------------------
# Index-coded rules
# ------------------------------------------------------------
def _coded_proposition(variable: Variable, code: float, allow_any: bool) -> str:
    magnitude = abs(code)
    index = int(math.floor(magnitude)) - 1
    fraction = math.fmod(magnitude, 1.0)
    if index >= len(variable.terms):
        raise ConfigurationError(
            f"Term index <{index + 1}> out of range for variable <{variable.name}> "
            f"with {len(variable.terms)} terms"
        )

    words = [variable.name, "is"]
    if code < 0:
        words.append("not")
    if not is_eq(fraction, 0.0, 1e-6):
        for value, hedges in CODED_HEDGES:
            if is_eq(fraction, value, 1e-6):
                words.append(hedges)
                break
        else:
            raise ConfigurationError(
                f"No hedge is coded by <{str_scalar(fraction, 4)}> for variable <{variable.name}>"
            )
    is_any = words[-1] == "any"
    if is_any and not allow_any:
        raise ConfigurationError(f"Hedge <any> is not allowed in the consequent for <{variable.name}>")
    if index < 0 and not is_any:
        raise ConfigurationError(f"Rule code <{code}> selects no term of variable <{variable.name}>")
    if not is_any:
        words.append(variable.terms[index].name)
    return " ".join(words)


def rule_from_codes(engine: Engine, codes: Sequence[float]) -> str:
    """
    Translates one index-coded rule into rule text.

    Raises:
        ConfigurationError: On wrong arity, term indices out of range,
            unknown hedge fractions or connectors.
    """
    inputs, outputs = engine.input_variables, engine.output_variables
    expected = len(inputs) + len(outputs) + 2
    if len(codes) != expected:
        raise ConfigurationError(
            f"Coded rule {list(codes)} has {len(codes)} values, expected {expected} "
            f"({len(inputs)} inputs, {len(outputs)} outputs, weight, connector)"
        )
    codes = [to_scalar(c) for c in codes]
    input_codes = codes[:len(inputs)]
    output_codes = codes[len(inputs):len(inputs) + len(outputs)]
    weight, connector = codes[-2], int(codes[-1])
    if connector not in CONNECTORS:
        raise ConfigurationError(f"Unknown rule connector <{connector}>, expected 1 (and) or 2 (or)")

    antecedent = [
        _coded_proposition(v, c, allow_any=True)
        for v, c in zip(inputs, input_codes) if not is_eq(c, 0.0)
    ]
    consequent = [
        _coded_proposition(v, c, allow_any=False)
        for v, c in zip(outputs, output_codes) if not is_eq(c, 0.0)
    ]
    if not antecedent or not consequent:
        raise ConfigurationError(f"Coded rule {codes} needs at least one input and one output term")

    text = f"if {f' {CONNECTORS[connector]} '.join(antecedent)} then {' and '.join(consequent)}"
    if not is_eq(weight, 1.0):
        text += f" with {weight:g}"
    return text


# ------------------------------------------------------------
# Engine
# ------------------------------------------------------------
def _range(section: Dict[str, Any]):
    limits = section.get("range", [-math.inf, math.inf])
    if len(limits) != 2:
        raise ConfigurationError(f"Variable <{section.get('name', '')}> range must have 2 values")
    return to_scalar(limits[0]), to_scalar(limits[1])


def _fill_variable(variable: Variable, section: Dict[str, Any], engine: Engine) -> None:
    variable.description = section.get("description", "")
    variable.enabled = bool(section.get("enabled", True))
    variable.lock_value_in_range = bool(section.get("lock_range", False))
    for term_cfg in section.get("terms", []):
        try:
            term_type, term_name = term_cfg["type"], term_cfg["name"]
        except KeyError as e:
            raise ConfigurationError(f"Term of variable <{variable.name}> is missing {e}") from None
        term = factory.create_term(term_type, term_name, term_cfg.get("parameters", ()), engine)
        variable.add_term(term)


def _input_variable(section: Dict[str, Any], engine: Engine) -> InputVariable:
    variable = InputVariable(section["name"], *_range(section))
    _fill_variable(variable, section, engine)
    if "value" in section:
        variable.value = to_scalar(section["value"])
    return variable


def _output_variable(section: Dict[str, Any], engine: Engine) -> OutputVariable:
    variable = OutputVariable(section["name"], *_range(section))
    _fill_variable(variable, section, engine)
    variable.default_value = to_scalar(section.get("default", nan))
    variable.lock_previous_value = bool(section.get("lock_previous", False))
    variable.aggregation = factory.create_snorm(section.get("aggregation"))
    variable.defuzzifier = factory.create_defuzzifier(
        section.get("defuzzifier"), section.get("resolution"), section.get("type")
    )
    return variable


def _rule_block(section: Dict[str, Any], engine: Engine) -> RuleBlock:
    block = RuleBlock(
        section.get("name", ""),
        conjunction=factory.create_tnorm(section.get("conjunction")),
        disjunction=factory.create_snorm(section.get("disjunction")),
        implication=factory.create_tnorm(section.get("implication")),
        activation=factory.create_activation(
            section.get("activation"), section.get("activation_parameters", ())
        ),
    )
    block.description = section.get("description", "")
    block.enabled = bool(section.get("enabled", True))
    for text in section.get("rules", []):
        block.add_rule(text)
    for codes in section.get("codes", []):
        block.add_rule(rule_from_codes(engine, codes))
    return block


def engine_from_config(cfg: Dict[str, Any], strict: bool = True) -> Engine:
    """
    Builds, configures and loads an engine from a parsed configuration.

    Args:
        cfg (Dict[str, Any]): The parsed TOML document.
        strict (bool): Raise when any rule fails to load. Otherwise the
            failures are only logged and those rules stay unloaded.

    Raises:
        ConfigurationError: On unknown names, invalid parameters or
            (when strict) rules that fail to load.
    """
    engine_cfg = cfg.get("engine", {})
    engine = Engine(engine_cfg.get("name", ""))
    engine.description = engine_cfg.get("description", "")

    for section in cfg.get("input", []):
        engine.add_input_variable(_input_variable(section, engine))
    for section in cfg.get("output", []):
        engine.add_output_variable(_output_variable(section, engine))
    for section in cfg.get("rule_block", []):
        engine.add_rule_block(_rule_block(section, engine))

    engine.configure(
        conjunction=engine_cfg.get("conjunction", ""),
        disjunction=engine_cfg.get("disjunction", ""),
        implication=engine_cfg.get("implication", ""),
        aggregation=engine_cfg.get("aggregation", ""),
        defuzzifier=engine_cfg.get("defuzzifier", ""),
        activation=engine_cfg.get("activation", "General"),
        resolution=engine_cfg.get("resolution"),
    )
    defuzzifier_type = engine_cfg.get("type")
    if defuzzifier_type:
        if defuzzifier_type not in WeightedDefuzzifier.TYPES:
            raise ConfigurationError(f"Unknown weighted defuzzifier type <{defuzzifier_type}>")
        for variable in engine.output_variables:
            if (isinstance(variable.defuzzifier, WeightedDefuzzifier)
                    and variable.defuzzifier.type == WeightedDefuzzifier.AUTOMATIC):
                variable.defuzzifier.type = defuzzifier_type

    errors: List[str] = engine.load_rules()
    if errors and strict:
        raise ConfigurationError(
            f"Engine <{engine.name}>: {len(errors)} rule(s) failed to load:\n" + "\n".join(errors)
        )
    config_log.info(
        "Engine <%s> built: %d inputs, %d outputs, %d rule blocks",
        engine.name, len(engine.input_variables), len(engine.output_variables), len(engine.rule_blocks),
    )
    return engine
