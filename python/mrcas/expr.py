# MrCAS - Symbolic Expressions
# Copyright (c) 2024 MrCAS Contributors. All rights reserved.

"""
Symbolic expression tree for MrCAS.

This module provides the node taxonomy of the engine: constants (with the
canonical singletons 0, 1, 2, π, e, ∞, -∞, -1), variables, opaque functions,
unary operations, the binary operations Diff/Div/Pow and the n-ary Sum/Prod.
Nodes are frozen dataclasses and support natural Python math syntax; raw
numbers are wrapped as constants at the constructor boundary.

Example:
    >>> x = var('x')
    >>> f = x**2 + sin(x)
    >>> print(f.diff(x).simplify())
    ((2 * x) + cos(x))
    >>> f.call({x: 0.0})
    0.0
"""

from __future__ import annotations
from abc import ABC, abstractmethod
import builtins
from dataclasses import dataclass, field
from enum import Enum
from fractions import Fraction
from typing import (
    TYPE_CHECKING, Any, ClassVar, FrozenSet, Iterable, Mapping, Optional, Union,
)
import math
import numbers

# Store references to the builtins we shadow below
builtins_abs = builtins.abs

from .exceptions import MissingBinding, TypeMismatch, UnknownOperation

if TYPE_CHECKING:
    from .conditions import BoxCondition, Comparison
    from .config import Config
    from .context import SymbolContext


Number = Union[int, float, Fraction]

# Type for evaluation environment (variable name -> value)
EvalEnv = dict[str, Number]
EvalResult = Union[Number, bool]

# Bindings accepted at the API edge: Variable objects or names as keys
Bindings = Mapping[Union['Variable', str], Number]

# Type alias for things that can be converted to expressions
ExprLike = Union['Expr', int, float, Fraction]


class Node(ABC):
    """
    Base class for every node of an expression tree.

    Subclasses are frozen dataclasses. ``child_fields`` names the attributes
    holding child nodes, in rendering order; when ``variadic`` is set the
    single child field holds a tuple of nodes. External visitors walk a tree
    through ``children()`` without depending on the concrete classes.

    Nodes are never edited after construction, with one exception:
    ``substitute`` installs new subtrees into a composite node's child slots.
    """

    child_fields: ClassVar[tuple[str, ...]] = ()
    variadic: ClassVar[bool] = False
    # child fields that hold conditions rather than expressions
    condition_fields: ClassVar[tuple[str, ...]] = ()

    def __post_init__(self):
        context = type(self).__name__
        for name in self.child_fields:
            if name in self.condition_fields:
                continue
            value = getattr(self, name)
            if self.variadic:
                if isinstance(value, Node) or not isinstance(value, Iterable):
                    raise TypeMismatch('sequence of expressions', value, context)
                value = tuple(_to_expr(v, context) for v in value)
            else:
                value = _to_expr(value, context)
            object.__setattr__(self, name, value)

    def children(self) -> tuple[Node, ...]:
        """Return the child nodes in rendering order."""
        if self.variadic:
            return tuple(getattr(self, self.child_fields[0]))
        return tuple(getattr(self, name) for name in self.child_fields)

    def _set_children(self, values: Iterable[Node]) -> None:
        # Bypass frozen dataclass __setattr__; used by substitution only
        values = tuple(values)
        if self.variadic:
            object.__setattr__(self, self.child_fields[0], values)
            return
        for name, value in zip(self.child_fields, values):
            object.__setattr__(self, name, value)

    def free_vars(self) -> FrozenSet[str]:
        """Return all variable names used in this subtree."""
        names: FrozenSet[str] = frozenset()
        for child in self.children():
            names = names | child.free_vars()
        return names

    @abstractmethod
    def evaluate(self, env: EvalEnv) -> EvalResult:
        """
        Evaluate the subtree numerically.

        Args:
            env: Dictionary mapping variable names to concrete values. Use
                 ``call`` to evaluate with Variable-keyed bindings.

        Returns:
            A number for expressions, a bool for conditions.

        Raises:
            MissingBinding: If a required variable is not in env.
        """
        ...

    def call(self, bindings: Optional[Bindings] = None) -> EvalResult:
        """Evaluate with bindings keyed by Variable or by variable name."""
        return self.evaluate(normalize_bindings(bindings))

    def depends_on(self, v: Node) -> bool:
        from .structure import depends_on
        return depends_on(self, v)

    def diff(self, v: Variable) -> Node:
        """Derivative with respect to ``v`` (not simplified)."""
        from .diff import differentiate
        return differentiate(self, v)

    def simplify(self, config: Optional[Config] = None) -> Node:
        from .simplify import simplify
        return simplify(self, config)

    def subs(self, mapping: Mapping[Node, Any]) -> Node:
        """Substitute subtrees in place, see ``structure.substitute``."""
        from .structure import substitute
        return substitute(self, mapping)

    def args(self) -> list[Variable]:
        """Distinct variables of the subtree, in order of appearance."""
        from .structure import collect_args
        return collect_args(self)

    # Structural (graph) equality, not mathematical equality
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Node):
            return NotImplemented
        from .structure import structural_equals
        return structural_equals(self, other)

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self) -> int:
        from .structure import structural_hash
        return structural_hash(self)

    def __repr__(self) -> str:
        inner = ', '.join(repr(c) for c in self.children())
        return f"{type(self).__name__}({inner})"


class Expr(Node):
    """
    Base class for numeric expressions.

    Expressions compose with Python operators. ``+`` and ``*`` build the
    n-ary Sum and Prod nodes and accumulate into an existing left-hand
    Sum/Prod.
    """

    # Operator overloading for natural math syntax
    def __neg__(self) -> Expr:
        return Invert(self)

    def __pos__(self) -> Expr:
        return self

    def __add__(self, other: ExprLike) -> Expr:
        return Sum((self, _to_expr(other, 'Sum')))

    def __radd__(self, other: ExprLike) -> Expr:
        return Sum((_to_expr(other, 'Sum'), self))

    def __sub__(self, other: ExprLike) -> Expr:
        return Diff(self, _to_expr(other, 'Diff'))

    def __rsub__(self, other: ExprLike) -> Expr:
        return Diff(_to_expr(other, 'Diff'), self)

    def __mul__(self, other: ExprLike) -> Expr:
        return Prod((self, _to_expr(other, 'Prod')))

    def __rmul__(self, other: ExprLike) -> Expr:
        return Prod((_to_expr(other, 'Prod'), self))

    def __truediv__(self, other: ExprLike) -> Expr:
        return Div(self, _to_expr(other, 'Div'))

    def __rtruediv__(self, other: ExprLike) -> Expr:
        return Div(_to_expr(other, 'Div'), self)

    def __pow__(self, other: ExprLike) -> Expr:
        return Pow(self, _to_expr(other, 'Pow'))

    def __rpow__(self, other: ExprLike) -> Expr:
        return Pow(_to_expr(other, 'Pow'), self)

    def __abs__(self) -> Expr:
        return Abs(self)

    # Condition helpers
    def equal(self, other: ExprLike) -> Comparison:
        from .conditions import equal
        return equal(self, other)

    def greater(self, other: ExprLike) -> Comparison:
        from .conditions import greater
        return greater(self, other)

    def greater_equal(self, other: ExprLike) -> Comparison:
        from .conditions import greater_equal
        return greater_equal(self, other)

    def smaller(self, other: ExprLike) -> Comparison:
        from .conditions import smaller
        return smaller(self, other)

    def smaller_equal(self, other: ExprLike) -> Comparison:
        from .conditions import smaller_equal
        return smaller_equal(self, other)

    def limit(self, lower: Any, upper: Any, kind: Any = 'closed') -> BoxCondition:
        """Box condition ``lower ≤ self ≤ upper`` (closure set by ``kind``)."""
        from .conditions import box
        return box(self, lower, upper, kind)


def _is_number(x: Any) -> bool:
    return isinstance(x, numbers.Real) and not isinstance(x, bool)


def _to_expr(x: ExprLike, context: Optional[str] = None) -> Expr:
    """Convert a value to an Expr."""
    if isinstance(x, Expr):
        return x
    elif _is_number(x):
        return make_constant(x)
    else:
        raise TypeMismatch('Expr or number', x, context)


def _format_number(value: Number) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


# Constants

class ConstKind(Enum):
    """Well-known constants, valued by their display symbol."""
    ZERO = '0'
    ONE = '1'
    TWO = '2'
    PI = 'π'
    E = 'e'
    INFINITY = '∞'
    NEG_INFINITY = '-∞'
    MINUS_ONE = '-1'

    @property
    def label(self) -> str:
        return _KIND_LABELS[self]


_KIND_LABELS = {
    ConstKind.ZERO: 'Zero',
    ConstKind.ONE: 'One',
    ConstKind.TWO: 'Two',
    ConstKind.PI: 'Pi',
    ConstKind.E: 'E',
    ConstKind.INFINITY: 'Infinity',
    ConstKind.NEG_INFINITY: 'NegInfinity',
    ConstKind.MINUS_ONE: 'MinusOne',
}


@dataclass(frozen=True, eq=False)
class Constant(Expr):
    """A numeric constant; ``kind`` tags the canonical singletons."""
    value: Number
    kind: Optional[ConstKind] = None

    def __post_init__(self):
        if not _is_number(self.value):
            raise TypeMismatch('number', self.value, 'Constant')

    def free_vars(self) -> FrozenSet[str]:
        return frozenset()

    def evaluate(self, env: EvalEnv) -> Number:
        return self.value

    def __str__(self) -> str:
        if self.kind is not None:
            return self.kind.value
        return _format_number(self.value)

    def __repr__(self) -> str:
        if self.kind is not None:
            return self.kind.label
        return f"const({_format_number(self.value)})"


Zero = Constant(0.0, ConstKind.ZERO)
One = Constant(1.0, ConstKind.ONE)
Two = Constant(2.0, ConstKind.TWO)
Pi = Constant(math.pi, ConstKind.PI)
E = Constant(math.e, ConstKind.E)
Infinity = Constant(math.inf, ConstKind.INFINITY)
NegInfinity = Constant(-math.inf, ConstKind.NEG_INFINITY)
MinusOne = Constant(-1.0, ConstKind.MINUS_ONE)

CANONICAL_CONSTANTS: dict[ConstKind, Constant] = {
    c.kind: c for c in (Zero, One, Two, Pi, E, Infinity, NegInfinity, MinusOne)
}

# Numeric value -> canonical singleton. Lookup is by numeric equality,
# so 0, 0.0 and Fraction(0) all resolve to Zero.
NUMERIC_TO_CONST: dict[Number, Constant] = {
    c.value: c for c in CANONICAL_CONSTANTS.values()
}


def make_constant(value: Number) -> Constant:
    """
    Create a constant expression.

    Returns the canonical singleton when ``value`` matches one of the
    registered special values, a fresh Constant otherwise.

    Raises:
        TypeMismatch: If value is not a real number.
    """
    if not _is_number(value):
        raise TypeMismatch('number', value, 'const')
    canonical = NUMERIC_TO_CONST.get(value)
    if canonical is not None:
        return canonical
    return Constant(value)


const = make_constant


# Variables and opaque functions

@dataclass(frozen=True, eq=False)
class Variable(Expr):
    """
    A symbolic variable with a name.

    Create variables through ``var`` or a ``SymbolContext`` so that names
    stay unique; constructing ``Variable`` directly skips the registry.
    """
    name: str

    def __post_init__(self):
        if not isinstance(self.name, str):
            raise TypeMismatch('str', self.name, 'Variable name')
        if not self.name:
            raise ValueError("Variable name cannot be empty")

    def free_vars(self) -> FrozenSet[str]:
        return frozenset({self.name})

    def evaluate(self, env: EvalEnv) -> Number:
        if self.name not in env:
            raise MissingBinding(self.name)
        return env[self.name]

    @classmethod
    def lookup(cls, name: str, context: Optional[SymbolContext] = None) -> Variable:
        """Return the registered variable ``name``, creating it if allowed."""
        from .context import default_context
        if context is None:
            context = default_context()
        return context.lookup(name)

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"var('{self.name}')"


@dataclass(frozen=True, eq=False)
class Function(Expr):
    """
    An opaque, declared-but-undefined function of its arguments.

    Functions cannot be evaluated. Differentiation produces the partial
    derivative functions ``D<name>[k]``, declared in the same context.
    Repeated arguments are dropped.
    """
    name: str
    xs: tuple[Expr, ...] = ()
    context: Optional[SymbolContext] = field(default=None, repr=False)

    child_fields = ('xs',)
    variadic = True

    def __post_init__(self):
        if not isinstance(self.name, str):
            raise TypeMismatch('str', self.name, 'Function name')
        if not self.name:
            raise ValueError("Function name cannot be empty")
        super().__post_init__()
        unique: list[Expr] = []
        for arg in self.xs:
            if not any(arg == seen for seen in unique):
                unique.append(arg)
        object.__setattr__(self, 'xs', tuple(unique))

    def evaluate(self, env: EvalEnv) -> Number:
        raise UnknownOperation(
            'Evaluation', f"function '{self.name}'",
            "opaque functions are declared, not defined",
        )

    def __getitem__(self, i: int) -> Expr:
        return self.xs[i]

    def __str__(self) -> str:
        return f"{self.name}({', '.join(str(x) for x in self.xs)})"

    def __repr__(self) -> str:
        inner = ''.join(f", {x!r}" for x in self.xs)
        return f"Function('{self.name}'{inner})"


# N-ary operations

@dataclass(frozen=True, eq=False)
class Sum(Expr):
    """Sum of an ordered tuple of terms."""
    xs: tuple[Expr, ...]

    child_fields = ('xs',)
    variadic = True

    def __add__(self, other: ExprLike) -> Expr:
        # Accumulate instead of nesting
        return Sum(self.xs + (_to_expr(other, 'Sum'),))

    def evaluate(self, env: EvalEnv) -> Number:
        return sum(x.evaluate(env) for x in self.xs)

    def __str__(self) -> str:
        return f"({' + '.join(str(x) for x in self.xs)})"


@dataclass(frozen=True, eq=False)
class Prod(Expr):
    """Product of an ordered tuple of factors."""
    xs: tuple[Expr, ...]

    child_fields = ('xs',)
    variadic = True

    def __mul__(self, other: ExprLike) -> Expr:
        # Accumulate instead of nesting
        return Prod(self.xs + (_to_expr(other, 'Prod'),))

    def evaluate(self, env: EvalEnv) -> Number:
        return math.prod(x.evaluate(env) for x in self.xs)

    def __str__(self) -> str:
        return f"({' * '.join(str(x) for x in self.xs)})"


# Binary operations

@dataclass(frozen=True, eq=False)
class Diff(Expr):
    """Subtraction: x - y."""
    x: Expr
    y: Expr

    child_fields = ('x', 'y')

    def evaluate(self, env: EvalEnv) -> Number:
        return self.x.evaluate(env) - self.y.evaluate(env)

    def __str__(self) -> str:
        return f"({self.x} - {self.y})"


@dataclass(frozen=True, eq=False)
class Div(Expr):
    """Division: x / y."""
    x: Expr
    y: Expr

    child_fields = ('x', 'y')

    def evaluate(self, env: EvalEnv) -> Number:
        return self.x.evaluate(env) / self.y.evaluate(env)

    def __str__(self) -> str:
        return f"({self.x} / {self.y})"


@dataclass(frozen=True, eq=False)
class Pow(Expr):
    """Power: x ** y."""
    x: Expr
    y: Expr

    child_fields = ('x', 'y')

    def evaluate(self, env: EvalEnv) -> float:
        return math.pow(self.x.evaluate(env), self.y.evaluate(env))

    def __str__(self) -> str:
        return f"({self.x})^({self.y})"


# Unary operations

@dataclass(frozen=True, eq=False)
class Invert(Expr):
    """Negation: -x."""
    x: Expr

    child_fields = ('x',)

    def evaluate(self, env: EvalEnv) -> Number:
        return -self.x.evaluate(env)

    def __str__(self) -> str:
        return f"-{self.x}"


@dataclass(frozen=True, eq=False)
class Sqrt(Expr):
    """Square root."""
    x: Expr

    child_fields = ('x',)

    def evaluate(self, env: EvalEnv) -> float:
        return math.sqrt(self.x.evaluate(env))

    def __str__(self) -> str:
        return f"√({self.x})"


@dataclass(frozen=True, eq=False)
class Abs(Expr):
    """Absolute value: |x|."""
    x: Expr

    child_fields = ('x',)

    def evaluate(self, env: EvalEnv) -> Number:
        return builtins_abs(self.x.evaluate(env))

    def __str__(self) -> str:
        return f"|{self.x}|"


@dataclass(frozen=True, eq=False)
class Sin(Expr):
    """Sine function."""
    x: Expr

    child_fields = ('x',)

    def evaluate(self, env: EvalEnv) -> float:
        return math.sin(self.x.evaluate(env))

    def __str__(self) -> str:
        return f"sin({self.x})"


@dataclass(frozen=True, eq=False)
class Cos(Expr):
    """Cosine function."""
    x: Expr

    child_fields = ('x',)

    def evaluate(self, env: EvalEnv) -> float:
        return math.cos(self.x.evaluate(env))

    def __str__(self) -> str:
        return f"cos({self.x})"


@dataclass(frozen=True, eq=False)
class Tan(Expr):
    """Tangent function."""
    x: Expr

    child_fields = ('x',)

    def evaluate(self, env: EvalEnv) -> float:
        return math.tan(self.x.evaluate(env))

    def __str__(self) -> str:
        return f"tan({self.x})"


@dataclass(frozen=True, eq=False)
class Asin(Expr):
    """Arc sine function."""
    x: Expr

    child_fields = ('x',)

    def evaluate(self, env: EvalEnv) -> float:
        return math.asin(self.x.evaluate(env))

    def __str__(self) -> str:
        return f"asin({self.x})"


@dataclass(frozen=True, eq=False)
class Acos(Expr):
    """Arc cosine function."""
    x: Expr

    child_fields = ('x',)

    def evaluate(self, env: EvalEnv) -> float:
        return math.acos(self.x.evaluate(env))

    def __str__(self) -> str:
        return f"acos({self.x})"


@dataclass(frozen=True, eq=False)
class Atan(Expr):
    """Arc tangent function."""
    x: Expr

    child_fields = ('x',)

    def evaluate(self, env: EvalEnv) -> float:
        return math.atan(self.x.evaluate(env))

    def __str__(self) -> str:
        return f"atan({self.x})"


@dataclass(frozen=True, eq=False)
class Exp(Expr):
    """Exponential function."""
    x: Expr

    child_fields = ('x',)

    def evaluate(self, env: EvalEnv) -> float:
        return math.exp(self.x.evaluate(env))

    def __str__(self) -> str:
        return f"exp({self.x})"


@dataclass(frozen=True, eq=False)
class Ln(Expr):
    """Natural logarithm."""
    x: Expr

    child_fields = ('x',)

    def evaluate(self, env: EvalEnv) -> float:
        return math.log(self.x.evaluate(env))

    def __str__(self) -> str:
        return f"log({self.x})"


# Evaluation entry point

def normalize_bindings(bindings: Optional[Bindings]) -> EvalEnv:
    """
    Convert Variable- or name-keyed bindings to a name-keyed environment.

    Constant values are unwrapped to their numeric value.

    Raises:
        TypeMismatch: If a key is not a Variable or str, or a value is not
                      a number.
    """
    if bindings is None:
        return {}
    if not isinstance(bindings, Mapping):
        raise TypeMismatch('mapping of bindings', bindings, 'evaluation')
    env: EvalEnv = {}
    for key, value in bindings.items():
        if isinstance(key, Variable):
            name = key.name
        elif isinstance(key, str):
            name = key
        else:
            raise TypeMismatch('Variable or variable name', key, 'bindings')
        if isinstance(value, Constant):
            value = value.value
        if not _is_number(value):
            raise TypeMismatch('number', value, f"binding for '{name}'")
        env[name] = value
    return env


def evaluate(node: Node, bindings: Optional[Bindings] = None) -> EvalResult:
    """Evaluate ``node`` numerically; conditions evaluate to bool."""
    if not isinstance(node, Node):
        raise TypeMismatch('expression node', node, 'evaluate')
    return node.call(bindings)


# Function constructors

def sqrt(x: ExprLike) -> Sqrt:
    """Square root."""
    return Sqrt(_to_expr(x))


def invert(x: ExprLike) -> Invert:
    """Negation."""
    return Invert(_to_expr(x))


def abs_(x: ExprLike) -> Abs:
    """Absolute value."""
    return Abs(_to_expr(x))


# Alias for abs to avoid shadowing builtin
abs = abs_


def pow_(x: ExprLike, y: ExprLike) -> Pow:
    """Power x ** y."""
    return Pow(_to_expr(x), _to_expr(y))


pow = pow_


def sin(x: ExprLike) -> Sin:
    """Sine function."""
    return Sin(_to_expr(x))


def cos(x: ExprLike) -> Cos:
    """Cosine function."""
    return Cos(_to_expr(x))


def tan(x: ExprLike) -> Tan:
    """Tangent function."""
    return Tan(_to_expr(x))


def asin(x: ExprLike) -> Asin:
    """Arc sine function."""
    return Asin(_to_expr(x))


def acos(x: ExprLike) -> Acos:
    """Arc cosine function."""
    return Acos(_to_expr(x))


def atan(x: ExprLike) -> Atan:
    """Arc tangent function."""
    return Atan(_to_expr(x))


arcsin = asin
arccos = acos
arctan = atan


def exp(x: ExprLike) -> Exp:
    """Exponential function."""
    return Exp(_to_expr(x))


def ln(x: ExprLike) -> Ln:
    """Natural logarithm."""
    return Ln(_to_expr(x))


log = ln
