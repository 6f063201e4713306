"""
Name-based construction of operators, hedges, terms, defuzzifiers and
activation methods.

Configuration files and rule texts refer to these objects by their class
names (``"Minimum"``, ``"Triangle"``, ``"Centroid"``) or, for hedges, by
their keyword (``"very"``). Each table maps that name to a constructor.
"""

from typing import Callable, Dict, Optional

from flc import activation, defuzzifier, hedge, norm, term
from flc.exceptions import ConfigurationError
from flc.function import Function


def _by_class_name(*classes) -> Dict[str, Callable]:
    return {cls.__name__: cls for cls in classes}


TNORMS = _by_class_name(
    norm.Minimum, norm.AlgebraicProduct, norm.BoundedDifference, norm.DrasticProduct,
    norm.EinsteinProduct, norm.HamacherProduct, norm.NilpotentMinimum,
)

SNORMS = _by_class_name(
    norm.Maximum, norm.AlgebraicSum, norm.BoundedSum, norm.NormalizedSum, norm.DrasticSum,
    norm.EinsteinSum, norm.HamacherSum, norm.NilpotentMaximum, norm.UnboundedSum,
)

HEDGES = {cls.name: cls for cls in (
    hedge.Any, hedge.Not, hedge.Extremely, hedge.Seldom, hedge.Somewhat, hedge.Very,
)}

TERMS = _by_class_name(
    term.Bell, term.Binary, term.Concave, term.Constant, term.Cosine, term.Discrete,
    Function, term.Gaussian, term.GaussianProduct, term.Linear, term.PiShape, term.Ramp,
    term.Rectangle, term.SShape, term.Sigmoid, term.SigmoidDifference, term.SigmoidProduct,
    term.Spike, term.Trapezoid, term.Triangle, term.ZShape,
)

DEFUZZIFIERS = _by_class_name(
    defuzzifier.Bisector, defuzzifier.Centroid, defuzzifier.LargestOfMaximum,
    defuzzifier.MeanOfMaximum, defuzzifier.SmallestOfMaximum,
    defuzzifier.WeightedAverage, defuzzifier.WeightedSum,
)

ACTIVATIONS = _by_class_name(
    activation.General, activation.First, activation.Last, activation.Highest,
    activation.Lowest, activation.Threshold, activation.Proportional,
)


def _create(table: Dict[str, Callable], kind: str, name: Optional[str]):
    if not name:
        return None
    if name not in table:
        raise ConfigurationError(
            f"Unknown {kind} <{name}>; expected one of: {', '.join(sorted(table))}"
        )
    return table[name]()


def create_tnorm(name: Optional[str]) -> Optional[norm.TNorm]:
    return _create(TNORMS, "T-norm", name)


def create_snorm(name: Optional[str]) -> Optional[norm.SNorm]:
    return _create(SNORMS, "S-norm", name)


def create_hedge(name: Optional[str]) -> Optional[hedge.Hedge]:
    return _create(HEDGES, "hedge", name)


def create_term(class_name: str, name: str, parameters=(), engine=None) -> term.Term:
    """
    Builds a term from its class name and parameters.

    Args:
        class_name (str): Key of `TERMS`, e.g. "Triangle".
        name (str): Name of the new term.
        parameters: Sequence of scalars or a space-separated string. For
            Function terms, the formula.
        engine: Engine that Linear and Function terms read their inputs from.

    Raises:
        ConfigurationError: On unknown class names or invalid parameters.
    """
    result = _create(TERMS, "term", class_name)
    if result is None:
        raise ConfigurationError(f"Missing term class for term <{name}>")
    result.name = name
    if isinstance(parameters, str):
        if parameters.strip():
            result.configure(parameters)
    elif parameters:
        result.configure(parameters)
    if engine is not None:
        result.update_reference(engine)
    return result


def create_defuzzifier(name: Optional[str], resolution: Optional[int] = None,
                       type: Optional[str] = None) -> Optional[defuzzifier.Defuzzifier]:
    result = _create(DEFUZZIFIERS, "defuzzifier", name)
    if isinstance(result, defuzzifier.IntegralDefuzzifier) and resolution is not None:
        result.resolution = int(resolution)
    if isinstance(result, defuzzifier.WeightedDefuzzifier) and type:
        if type not in defuzzifier.WeightedDefuzzifier.TYPES:
            raise ConfigurationError(f"Unknown weighted defuzzifier type <{type}>")
        result.type = type
    return result


def create_activation(name: Optional[str], parameters=()) -> Optional[activation.Activation]:
    result = _create(ACTIVATIONS, "activation method", name)
    if result is not None and parameters:
        if not isinstance(parameters, str):
            parameters = " ".join(str(p) for p in parameters)
        result.configure(parameters)
    return result


def register_term(name: str, constructor: Callable[[], term.Term]) -> None:
    """Makes a custom term class available to `create_term` and config files."""
    TERMS[name] = constructor
