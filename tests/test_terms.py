import math

import pytest

from flc.engine import Engine
from flc.exceptions import ConfigurationError, EvaluationError
from flc.operation import inf, nan, is_nan
from flc.term import (
    Bell, Binary, Concave, Constant, Cosine, Discrete, Gaussian, GaussianProduct, Linear,
    PiShape, Ramp, Rectangle, SShape, Sigmoid, SigmoidDifference, SigmoidProduct, Spike,
    Trapezoid, Triangle, ZShape,
)
from flc.variable import InputVariable

DOMAIN_TERMS = [
    Triangle("t", 0.0, 0.5, 1.0),
    Trapezoid("t", 0.0, 0.25, 0.75, 1.0),
    Rectangle("t", 0.25, 0.75),
    Ramp("t", 0.0, 1.0),
    Binary("t", 0.5, inf),
    Discrete("t", [(0.0, 0.0), (1.0, 1.0)]),
    SShape("t", 0.0, 1.0),
    ZShape("t", 0.0, 1.0),
    PiShape("t", 0.0, 0.25, 0.75, 1.0),
    Gaussian("t", 0.5, 0.2),
    GaussianProduct("t", 0.4, 0.1, 0.6, 0.1),
    Bell("t", 0.5, 0.25, 2.0),
    Sigmoid("t", 0.5, 10.0),
    SigmoidDifference("t", 0.25, 20.0, 20.0, 0.75),
    SigmoidProduct("t", 0.25, 20.0, -20.0, 0.75),
    Cosine("t", 0.5, 1.0),
    Concave("t", 0.5, 1.0),
    Spike("t", 0.5, 1.0),
]


@pytest.mark.parametrize("term", DOMAIN_TERMS, ids=lambda t: t.class_name)
def test_membership_of_nan_is_nan(term):
    assert is_nan(term.membership(nan))


@pytest.mark.parametrize("term", DOMAIN_TERMS, ids=lambda t: t.class_name)
def test_membership_stays_within_height(term):
    for i in range(101):
        assert -1e-9 <= term.membership(i / 100.0) <= 1.0 + 1e-9


@pytest.mark.parametrize(
    "x, expected",
    [(-0.1, 0.0), (0.0, 0.0), (0.25, 0.5), (0.5, 1.0), (0.75, 0.5), (1.0, 0.0), (1.1, 0.0)],
)
def test_triangle(x, expected):
    assert Triangle("A", 0.0, 0.5, 1.0).membership(x) == pytest.approx(expected)


def test_triangle_with_infinite_vertices():
    left = Triangle("LEFT", -inf, 0.0, 1.0)
    assert left.membership(-1000.0) == 1.0
    assert left.membership(0.5) == pytest.approx(0.5)
    right = Triangle("RIGHT", 0.0, 1.0, inf)
    assert right.membership(1000.0) == 1.0


@pytest.mark.parametrize("x, expected", [(0.1, 0.4), (0.5, 1.0), (0.9, 0.4), (1.5, 0.0)])
def test_trapezoid(x, expected):
    assert Trapezoid("A", 0.0, 0.25, 0.75, 1.0).membership(x) == pytest.approx(expected)


def test_rectangle_and_binary():
    rectangle = Rectangle("A", 0.25, 0.75)
    assert rectangle.membership(0.25) == 1.0
    assert rectangle.membership(0.8) == 0.0
    up = Binary("UP", 0.5, inf)
    assert up.membership(0.5) == 1.0
    assert up.membership(0.4) == 0.0
    down = Binary("DOWN", 0.5, -inf)
    assert down.membership(0.4) == 1.0


def test_ramp_rising_and_falling():
    rising = Ramp("UP", 0.0, 1.0)
    assert rising.membership(0.25) == pytest.approx(0.25)
    assert rising.membership(2.0) == 1.0
    falling = Ramp("DOWN", 1.0, 0.0)
    assert falling.membership(0.25) == pytest.approx(0.75)
    assert falling.membership(-1.0) == 1.0
    assert falling.support() == (-inf, 1.0)


def test_discrete_interpolates_and_is_flat_outside():
    term = Discrete("D", [(0.0, 0.0), (0.5, 1.0), (1.0, 0.5)])
    assert term.membership(0.25) == pytest.approx(0.5)
    assert term.membership(0.75) == pytest.approx(0.75)
    assert term.membership(-5.0) == 0.0
    assert term.membership(5.0) == pytest.approx(0.5)
    single = Discrete("ONE", [(0.3, 0.7)])
    assert single.membership(-1.0) == pytest.approx(0.7)
    assert single.membership(1.0) == pytest.approx(0.7)


def test_discrete_configure_with_trailing_height():
    term = Discrete("D")
    term.configure("0 0 1 1 0.5")
    assert term.xy == [(0.0, 0.0), (1.0, 1.0)]
    assert term.membership(1.0) == pytest.approx(0.5)
    assert term.parameters() == "0.000 0.000 1.000 1.000 0.500"


def test_s_z_and_pi_shapes():
    assert SShape("S", 0.0, 1.0).membership(0.5) == pytest.approx(0.5)
    assert SShape("S", 0.0, 1.0).membership(0.25) == pytest.approx(0.125)
    assert ZShape("Z", 0.0, 1.0).membership(0.25) == pytest.approx(0.875)
    assert PiShape("P", 0.0, 0.25, 0.75, 1.0).membership(0.5) == pytest.approx(1.0)


def test_smooth_shapes_peak_at_center():
    assert Gaussian("G", 0.5, 0.2).membership(0.5) == pytest.approx(1.0)
    assert Gaussian("G", 0.0, 1.0).membership(1.0) == pytest.approx(math.exp(-0.5))
    assert GaussianProduct("G", 0.4, 0.1, 0.6, 0.1).membership(0.5) == pytest.approx(1.0)
    assert Bell("B", 0.5, 0.25, 2.0).membership(0.75) == pytest.approx(0.5)
    assert Cosine("C", 0.5, 1.0).membership(0.5) == pytest.approx(1.0)
    assert Cosine("C", 0.5, 1.0).membership(0.25) == pytest.approx(0.5)
    assert Spike("P", 0.5, 1.0).membership(0.5) == pytest.approx(1.0)


@pytest.mark.parametrize(
    "term, center",
    [(Gaussian("G", 0.5, 0.0), 0.5), (Bell("B", 0.5, 0.0, 2.0), 0.5), (Spike("P", 0.5, 0.0), 0.5)],
    ids=lambda v: getattr(v, "class_name", str(v)),
)
def test_zero_width_shapes_do_not_divide_by_zero(term, center):
    assert term.membership(center + 0.25) == 0.0
    assert is_nan(term.membership(center))
    assert GaussianProduct("G", 0.4, 0.0, 0.6, 0.0).membership(0.2) == 0.0


def test_sigmoid_family():
    assert Sigmoid("S", 0.5, 10.0).membership(0.5) == pytest.approx(0.5)
    assert Sigmoid("S", 0.5, 10.0).membership(-1000.0) == pytest.approx(0.0)
    assert SigmoidDifference("D", 0.25, 20.0, 20.0, 0.75).membership(0.5) == pytest.approx(0.987, abs=1e-3)
    assert SigmoidProduct("P", 0.25, 20.0, -20.0, 0.75).membership(0.5) == pytest.approx(0.987, abs=1e-3)


def test_concave():
    term = Concave("C", 0.5, 1.0)
    assert term.membership(0.5) == pytest.approx(0.5)
    assert term.membership(1.0) == 1.0
    assert term.membership(2.0) == 1.0


def test_height_scales_membership():
    term = Triangle("A", 0.0, 0.5, 1.0, 0.5)
    assert term.membership(0.5) == pytest.approx(0.5)
    assert term.parameters() == "0.000 0.500 1.000 0.500"


def test_configure_from_string_and_sequence():
    term = Triangle("A")
    term.configure("0 0.25 0.5")
    assert (term.vertex_a, term.vertex_b, term.vertex_c) == (0.0, 0.25, 0.5)
    assert term.height == 1.0
    term.configure([0.0, 0.5, 1.0, 0.8])
    assert term.height == pytest.approx(0.8)
    assert str(term) == "term: A Triangle 0.000 0.500 1.000 0.800"


@pytest.mark.parametrize("parameters", ["0 1", "0 1 2 3 4", ""])
def test_configure_with_wrong_count_raises(parameters):
    with pytest.raises(ConfigurationError):
        Triangle("A").configure(parameters)


def test_constant_has_no_height():
    term = Constant("k", 0.84)
    assert term.membership(123.0) == 0.84
    with pytest.raises(ConfigurationError):
        term.configure([1.0, 2.0])


@pytest.mark.parametrize(
    "term, w",
    [
        (Ramp("R", 0.0, 10.0), 0.3),
        (Ramp("R", 10.0, 0.0), 0.3),
        (SShape("S", 0.0, 10.0), 0.2),
        (SShape("S", 0.0, 10.0), 0.8),
        (ZShape("Z", 0.0, 10.0), 0.2),
        (ZShape("Z", 0.0, 10.0), 0.8),
        (Sigmoid("G", 5.0, 1.5), 0.6),
        (Concave("C", 5.0, 10.0), 0.7),
    ],
    ids=lambda v: getattr(v, "class_name", str(v)),
)
def test_tsukamoto_inverts_monotonic_terms(term, w):
    assert term.is_monotonic()
    z = term.tsukamoto(w, 0.0, 10.0)
    assert term.membership(z) == pytest.approx(w, abs=1e-6)


def test_sigmoid_tsukamoto_saturates_to_range():
    assert Sigmoid("G", 5.0, 1.0).tsukamoto(1.0, 0.0, 10.0) == 10.0
    assert Sigmoid("G", 5.0, 1.0).tsukamoto(0.0, 0.0, 10.0) == 0.0


@pytest.mark.parametrize(
    "term", [SShape("S", 0.0, 10.0), ZShape("Z", 0.0, 10.0), Sigmoid("G", 5.0, 1.5)],
    ids=lambda t: t.class_name,
)
@pytest.mark.parametrize("w", [2.0, -0.5, nan])
def test_tsukamoto_outside_unit_interval_is_nan(term, w):
    assert is_nan(term.tsukamoto(w, 0.0, 10.0))


def test_tsukamoto_on_non_monotonic_term_raises():
    term = Triangle("A", 0.0, 0.5, 1.0)
    assert not term.is_monotonic()
    with pytest.raises(EvaluationError):
        term.tsukamoto(0.5, 0.0, 1.0)


def test_linear_sums_input_values():
    engine = Engine()
    a = engine.add_input_variable(InputVariable("a", 0.0, 10.0))
    b = engine.add_input_variable(InputVariable("b", 0.0, 10.0))
    a.value, b.value = 2.0, 3.0

    with_constant = Linear("L", [1.0, 2.0, 0.5])
    with_constant.update_reference(engine)
    assert with_constant.membership(nan) == pytest.approx(8.5)

    without_constant = Linear("L", [1.0, -1.0], engine)
    assert without_constant.membership(0.0) == pytest.approx(-1.0)


def test_linear_without_engine_raises():
    with pytest.raises(EvaluationError):
        Linear("L", [1.0]).membership(0.0)
