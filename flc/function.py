"""
Free-form arithmetic term.

A Function term holds a formula such as ``sin(inputX) / inputX`` or
``abs(outputFx - trueFx)``. The formula is parsed once, when the term is
configured, into a small expression tree; each membership call then walks the
tree with the current values of the engine's variables (plus ``x``, the
argument of the membership call).

Operator precedence, from tightest to loosest binding::

    unary - + ! ~ not
    ^                    (right associative)
    * / %
    + -
    < <= > >= == !=      (1.0 when true, 0.0 otherwise)
    and
    or

Parentheses override precedence. Arithmetic follows IEEE semantics: domain
errors and divisions by zero yield nan or infinity instead of raising.
"""

import math
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from flc.exceptions import ConfigurationError, EvaluationError
from flc.operation import inf, nan, is_eq, is_nan
from flc.term import Term


def _ieee(fn: Callable, *args) -> float:
    try:
        return float(fn(*args))
    except ZeroDivisionError:
        return nan
    except OverflowError:
        return inf
    except ValueError:
        return nan


def _divide(a: float, b: float) -> float:
    if b == 0.0:
        if a == 0.0 or is_nan(a):
            return nan
        return math.copysign(inf, a) * math.copysign(1.0, b)
    return a / b


def _modulo(a: float, b: float) -> float:
    if b == 0.0:
        return nan
    return math.fmod(a, b)


def _round(x: float) -> float:
    # half away from zero, unlike Python's banker's rounding
    return math.floor(x + 0.5) if x >= 0.0 else math.ceil(x - 0.5)


def _truth(value: bool) -> float:
    return 1.0 if value else 0.0


def _logical_and(a: float, b: float) -> float:
    return _truth(is_eq(a, 1.0) and is_eq(b, 1.0))


def _logical_or(a: float, b: float) -> float:
    return _truth(is_eq(a, 1.0) or is_eq(b, 1.0))


def _logical_not(a: float) -> float:
    return _truth(not is_eq(a, 1.0))


UNARY_OPERATORS: Dict[str, Callable[[float], float]] = {
    "-": lambda a: -a,
    "~": lambda a: -a,
    "+": lambda a: a,
    "!": _logical_not,
    "not": _logical_not,
}

BINARY_OPERATORS: Dict[str, Callable[[float, float], float]] = {
    "^": lambda a, b: _ieee(math.pow, a, b),
    "*": lambda a, b: a * b,
    "/": _divide,
    "%": _modulo,
    "+": lambda a, b: a + b,
    "-": lambda a, b: a - b,
    "<": lambda a, b: _truth(a < b),
    "<=": lambda a, b: _truth(a <= b),
    ">": lambda a, b: _truth(a > b),
    ">=": lambda a, b: _truth(a >= b),
    "==": lambda a, b: _truth(is_eq(a, b)),
    "!=": lambda a, b: _truth(not is_eq(a, b)),
    "and": _logical_and,
    "or": _logical_or,
}

# name -> (callable, arity)
FUNCTIONS: Dict[str, Tuple[Callable, int]] = {
    "abs": (abs, 1),
    "fabs": (math.fabs, 1),
    "acos": (math.acos, 1),
    "asin": (math.asin, 1),
    "atan": (math.atan, 1),
    "acosh": (math.acosh, 1),
    "asinh": (math.asinh, 1),
    "atanh": (math.atanh, 1),
    "ceil": (math.ceil, 1),
    "cos": (math.cos, 1),
    "cosh": (math.cosh, 1),
    "exp": (math.exp, 1),
    "expm1": (math.expm1, 1),
    "floor": (math.floor, 1),
    "log": (math.log, 1),
    "log10": (math.log10, 1),
    "log1p": (math.log1p, 1),
    "round": (_round, 1),
    "sin": (math.sin, 1),
    "sinh": (math.sinh, 1),
    "sqrt": (math.sqrt, 1),
    "tan": (math.tan, 1),
    "tanh": (math.tanh, 1),
    "atan2": (math.atan2, 2),
    "fmod": (_modulo, 2),
    "pow": (math.pow, 2),
    "max": (max, 2),
    "min": (min, 2),
    "gt": (lambda a, b: _truth(a > b), 2),
    "ge": (lambda a, b: _truth(a >= b), 2),
    "lt": (lambda a, b: _truth(a < b), 2),
    "le": (lambda a, b: _truth(a <= b), 2),
    "eq": (lambda a, b: _truth(is_eq(a, b)), 2),
    "neq": (lambda a, b: _truth(not is_eq(a, b)), 2),
}

CONSTANTS: Dict[str, float] = {"pi": math.pi, "e": math.e}


# ------------------------------------------------------------
# Expression tree
# ------------------------------------------------------------
class Node:
    def evaluate(self, variables: Dict[str, float]) -> float:
        raise NotImplementedError


@dataclass(frozen=True)
class Literal(Node):
    value: float

    def evaluate(self, variables):
        return self.value

    def __str__(self):
        return repr(self.value)


@dataclass(frozen=True)
class Reference(Node):
    """A variable name, resolved against the variables at evaluation time."""

    name: str

    def evaluate(self, variables):
        if self.name in variables:
            return float(variables[self.name])
        if self.name in CONSTANTS:
            return CONSTANTS[self.name]
        raise EvaluationError(f"Unknown variable <{self.name}> in function")

    def __str__(self):
        return self.name


@dataclass(frozen=True)
class Unary(Node):
    operator: str
    operand: Node

    def evaluate(self, variables):
        return UNARY_OPERATORS[self.operator](self.operand.evaluate(variables))

    def __str__(self):
        return f"({self.operator} {self.operand})"


@dataclass(frozen=True)
class Binary(Node):
    operator: str
    left: Node
    right: Node

    def evaluate(self, variables):
        a = self.left.evaluate(variables)
        b = self.right.evaluate(variables)
        return BINARY_OPERATORS[self.operator](a, b)

    def __str__(self):
        return f"({self.left} {self.operator} {self.right})"


@dataclass(frozen=True)
class Call(Node):
    name: str
    arguments: Tuple[Node, ...]

    def evaluate(self, variables):
        fn, _ = FUNCTIONS[self.name]
        return _ieee(fn, *(arg.evaluate(variables) for arg in self.arguments))

    def __str__(self):
        return f"{self.name}({', '.join(str(a) for a in self.arguments)})"


# ------------------------------------------------------------
# Parser
# ------------------------------------------------------------
_TOKEN = re.compile(
    r"\s*(?:"
    r"(?P<number>(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)"
    r"|(?P<name>[A-Za-z_][A-Za-z0-9_.]*)"
    r"|(?P<operator><=|>=|==|!=|[-+*/%^<>!~(),])"
    r")"
)

_RELATIONAL = ("<", "<=", ">", ">=", "==", "!=")


def tokenize(formula: str) -> List[str]:
    tokens = []
    position = 0
    formula = formula.rstrip()
    while position < len(formula):
        match = _TOKEN.match(formula, position)
        if match is None or match.end() == position:
            raise ConfigurationError(
                f"Unexpected character <{formula[position:].strip()[:1]}> in formula <{formula}>"
            )
        tokens.append(match.group(match.lastgroup))
        position = match.end()
    return tokens


class _Parser:
    """Recursive-descent parser; one method per precedence level."""

    def __init__(self, formula: str):
        self.formula = formula
        self.tokens = tokenize(formula)
        self.position = 0

    def parse(self) -> Node:
        if not self.tokens:
            raise ConfigurationError("Cannot parse an empty formula")
        node = self._or()
        if self.position != len(self.tokens):
            self._fail(f"unexpected token <{self.tokens[self.position]}>")
        return node

    def _fail(self, reason: str):
        raise ConfigurationError(f"Syntax error in formula <{self.formula}>: {reason}")

    def _peek(self) -> Optional[str]:
        if self.position < len(self.tokens):
            return self.tokens[self.position]
        return None

    def _advance(self) -> str:
        token = self._peek()
        if token is None:
            self._fail("unexpected end of formula")
        self.position += 1
        return token

    def _expect(self, token: str) -> None:
        found = self._advance()
        if found != token:
            self._fail(f"expected <{token}> but found <{found}>")

    def _or(self) -> Node:
        node = self._and()
        while self._peek() == "or":
            self._advance()
            node = Binary("or", node, self._and())
        return node

    def _and(self) -> Node:
        node = self._relation()
        while self._peek() == "and":
            self._advance()
            node = Binary("and", node, self._relation())
        return node

    def _relation(self) -> Node:
        node = self._additive()
        while self._peek() in _RELATIONAL:
            operator = self._advance()
            node = Binary(operator, node, self._additive())
        return node

    def _additive(self) -> Node:
        node = self._multiplicative()
        while self._peek() in ("+", "-"):
            operator = self._advance()
            node = Binary(operator, node, self._multiplicative())
        return node

    def _multiplicative(self) -> Node:
        node = self._power()
        while self._peek() in ("*", "/", "%"):
            operator = self._advance()
            node = Binary(operator, node, self._power())
        return node

    def _power(self) -> Node:
        base = self._unary()
        if self._peek() == "^":
            self._advance()
            return Binary("^", base, self._power())
        return base

    def _unary(self) -> Node:
        if self._peek() in UNARY_OPERATORS:
            operator = self._advance()
            return Unary(operator, self._unary())
        return self._primary()

    def _primary(self) -> Node:
        token = self._advance()
        if token == "(":
            node = self._or()
            self._expect(")")
            return node
        if token[0].isdigit() or token[0] == ".":
            return Literal(float(token))
        if token[0].isalpha() or token[0] == "_":
            if token in ("and", "or"):
                self._fail(f"operator <{token}> is missing its left operand")
            if self._peek() == "(":
                return self._call(token)
            return Reference(token)
        self._fail(f"unexpected token <{token}>")

    def _call(self, name: str) -> Node:
        if name not in FUNCTIONS:
            self._fail(f"unknown function <{name}>")
        self._expect("(")
        arguments = []
        if self._peek() != ")":
            arguments.append(self._or())
            while self._peek() == ",":
                self._advance()
                arguments.append(self._or())
        self._expect(")")
        arity = FUNCTIONS[name][1]
        if len(arguments) != arity:
            self._fail(f"function <{name}> takes {arity} argument(s), {len(arguments)} given")
        return Call(name, tuple(arguments))


def parse(formula: str) -> Node:
    """Parses a formula into an expression tree, raising ConfigurationError on bad syntax."""
    return _Parser(formula).parse()


# ------------------------------------------------------------
# Term
# ------------------------------------------------------------
class Function(Term):
    """
    Term whose membership is an arithmetic formula.

    Identifiers in the formula refer to ``x`` (the membership argument), to
    any input or output variable of the attached engine, or to the extra
    values stored in `variables`.

    Attributes:
        formula (str): The formula as configured.
        root (Node): Parsed expression tree, None until loaded.
        variables (Dict[str, float]): Extra named values for evaluation.
    """

    has_height = False

    def __init__(self, name: str = "", formula: str = "", engine=None):
        super().__init__(name)
        self.formula = formula
        self.engine = engine
        self.root: Optional[Node] = None
        self.variables: Dict[str, float] = {}
        if formula:
            self.load()

    @classmethod
    def create(cls, name: str, formula: str, engine=None) -> "Function":
        return cls(name, formula, engine)

    def load(self, formula: Optional[str] = None) -> None:
        if formula is not None:
            self.formula = formula
        self.root = parse(self.formula)

    def is_loaded(self) -> bool:
        return self.root is not None

    def parameters(self, decimals: int = 3) -> str:
        return self.formula

    def configure(self, parameters) -> None:
        if not isinstance(parameters, str):
            parameters = " ".join(str(p) for p in parameters)
        self.load(parameters)

    def update_reference(self, engine) -> None:
        self.engine = engine

    def evaluate(self, variables: Optional[Dict[str, float]] = None) -> float:
        if self.root is None:
            raise EvaluationError(f"Function <{self.name}> has no formula loaded")
        scope = dict(self.variables)
        if variables:
            scope.update(variables)
        return self.root.evaluate(scope)

    def membership(self, x: float) -> float:
        scope = {}
        if self.engine is not None:
            for variable in self.engine.variables():
                scope[variable.name] = variable.value
        scope["x"] = x
        return self.evaluate(scope)
