# MrCAS - Conditions and Piecewise Expressions
# Copyright (c) 2024 MrCAS Contributors. All rights reserved.

"""
Conditions and piecewise expressions.

A condition is a boolean predicate over expressions: a binary comparison
(``Comparison``) or a box test of one expression against two constant
bounds (``BoxCondition``). Conditions select the branch of a ``Piecewise``
expression; ``Max`` and ``Min`` are piecewise expressions whose condition is
derived from their operands.

Example:
    >>> x = var('x')
    >>> f = piecewise(x, -x, x.greater_equal(0))
    >>> f.call({x: -2.0})
    2.0
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, NamedTuple, Union
import operator

from .exceptions import BOX_SYMBOLS, CONDITION_SYMBOLS, InvalidConditionType, TypeMismatch
from .expr import (
    Constant, EvalEnv, Expr, ExprLike, Node, _is_number, _to_expr, make_constant,
)


class Condition(Node):
    """Base class for boolean predicates over expressions."""
    pass


# Binary comparisons

class ConditionKind(Enum):
    EQUAL = 'eq'
    GREATER = 'gt'
    GREATER_EQUAL = 'geq'
    SMALLER = 'lt'
    SMALLER_EQUAL = 'leq'


class _ComparisonRule(NamedTuple):
    label: str
    op: Callable[[Any, Any], bool]
    symbol: str


_COMPARISONS = {
    ConditionKind.EQUAL: _ComparisonRule('Equal', operator.eq, '≡'),
    ConditionKind.GREATER: _ComparisonRule('Greater', operator.gt, '>'),
    ConditionKind.GREATER_EQUAL: _ComparisonRule('GreaterEqual', operator.ge, '≥'),
    ConditionKind.SMALLER: _ComparisonRule('Smaller', operator.lt, '<'),
    ConditionKind.SMALLER_EQUAL: _ComparisonRule('SmallerEqual', operator.le, '≤'),
}

_CONDITION_ALIASES = {
    'eq': ConditionKind.EQUAL,
    '==': ConditionKind.EQUAL,
    'gt': ConditionKind.GREATER,
    '>': ConditionKind.GREATER,
    'geq': ConditionKind.GREATER_EQUAL,
    '>=': ConditionKind.GREATER_EQUAL,
    'lt': ConditionKind.SMALLER,
    '<': ConditionKind.SMALLER,
    'leq': ConditionKind.SMALLER_EQUAL,
    '<=': ConditionKind.SMALLER_EQUAL,
}


def _condition_kind(kind: Union[ConditionKind, str]) -> ConditionKind:
    if isinstance(kind, ConditionKind):
        return kind
    try:
        return _CONDITION_ALIASES[kind]
    except (KeyError, TypeError):
        raise InvalidConditionType(kind, CONDITION_SYMBOLS) from None


@dataclass(frozen=True, eq=False)
class Comparison(Condition):
    """
    Binary comparison ``x <op> y``.

    ``kind`` accepts a ConditionKind or one of its string symbols
    (``'eq'``, ``'>='``, ...). Equality comparisons are symmetric under
    structural equality.
    """
    kind: ConditionKind
    x: Expr
    y: Expr

    child_fields = ('x', 'y')

    def __post_init__(self):
        object.__setattr__(self, 'kind', _condition_kind(self.kind))
        super().__post_init__()

    @property
    def label(self) -> str:
        return _COMPARISONS[self.kind].label

    @property
    def symbol(self) -> str:
        return _COMPARISONS[self.kind].symbol

    def evaluate(self, env: EvalEnv) -> bool:
        return bool(_COMPARISONS[self.kind].op(self.x.evaluate(env), self.y.evaluate(env)))

    def __str__(self) -> str:
        return f"({self.x} {self.symbol} {self.y})"

    def __repr__(self) -> str:
        return f"{self.label}({self.x!r}, {self.y!r})"


# Box conditions

class BoxKind(Enum):
    OPEN = 'open'
    CLOSED = 'closed'
    UPPER_CLOSED = 'upper_closed'
    LOWER_CLOSED = 'lower_closed'


class _BoxRule(NamedTuple):
    label: str
    lower_op: Callable[[Any, Any], bool]
    upper_op: Callable[[Any, Any], bool]
    lower_symbol: str
    upper_symbol: str


_BOXES = {
    BoxKind.OPEN: _BoxRule('BoxConditionOpen', operator.lt, operator.lt, '<', '<'),
    BoxKind.CLOSED: _BoxRule('BoxConditionClosed', operator.le, operator.le, '≤', '≤'),
    BoxKind.UPPER_CLOSED: _BoxRule('BoxConditionUpperClosed', operator.lt, operator.le, '<', '≤'),
    BoxKind.LOWER_CLOSED: _BoxRule('BoxConditionLowerClosed', operator.le, operator.lt, '≤', '<'),
}


def _box_kind(kind: Union[BoxKind, str]) -> BoxKind:
    if isinstance(kind, BoxKind):
        return kind
    try:
        return BoxKind(kind)
    except ValueError:
        raise InvalidConditionType(kind, BOX_SYMBOLS) from None


def _bound(value: Any) -> Constant:
    if isinstance(value, Constant):
        return value
    if _is_number(value):
        return make_constant(value)
    raise TypeMismatch('Constant or number', value, 'box condition bound')


@dataclass(frozen=True, eq=False)
class BoxCondition(Condition):
    """
    Interval test ``lower <op> x <op> upper`` against constant bounds.

    Bounds given in the wrong order are swapped. The closure of each end
    is set by ``kind``.
    """
    kind: BoxKind
    x: Expr
    lower: Constant
    upper: Constant

    child_fields = ('x',)

    def __post_init__(self):
        object.__setattr__(self, 'kind', _box_kind(self.kind))
        super().__post_init__()
        lower, upper = _bound(self.lower), _bound(self.upper)
        if lower.value > upper.value:
            lower, upper = upper, lower
        object.__setattr__(self, 'lower', lower)
        object.__setattr__(self, 'upper', upper)

    @property
    def label(self) -> str:
        return _BOXES[self.kind].label

    def evaluate(self, env: EvalEnv) -> bool:
        rule = _BOXES[self.kind]
        value = self.x.evaluate(env)
        return bool(rule.lower_op(self.lower.value, value) and rule.upper_op(value, self.upper.value))

    def __str__(self) -> str:
        rule = _BOXES[self.kind]
        return f"{self.lower} {rule.lower_symbol} {self.x} {rule.upper_symbol} {self.upper}"

    def __repr__(self) -> str:
        return f"{self.label}({self.x!r}, {self.lower!r}, {self.upper!r})"


# Piecewise expressions

@dataclass(frozen=True, eq=False)
class Piecewise(Expr):
    """
    ``x`` where ``condition`` holds, ``y`` elsewhere.

    Evaluation tests the condition first and evaluates only the selected
    branch.
    """
    x: Expr
    y: Expr
    condition: Condition

    child_fields = ('x', 'y', 'condition')
    condition_fields = ('condition',)

    def __post_init__(self):
        super().__post_init__()
        if not isinstance(self.condition, Condition):
            raise TypeMismatch('Condition', self.condition, type(self).__name__)

    def evaluate(self, env: EvalEnv):
        if self.condition.evaluate(env):
            return self.x.evaluate(env)
        return self.y.evaluate(env)

    def __str__(self) -> str:
        return f"({self.condition} ? {self.x} : {self.y})"


@dataclass(frozen=True, eq=False)
class Max(Piecewise):
    """Maximum of two expressions: ``x`` where ``x >= y``, else ``y``."""
    condition: Condition = field(init=False, repr=False)

    def __post_init__(self):
        _derive_condition(self, greater_equal)
        super().__post_init__()

    def __str__(self) -> str:
        return f"max({self.x}, {self.y})"

    def __repr__(self) -> str:
        return f"Max({self.x!r}, {self.y!r})"


@dataclass(frozen=True, eq=False)
class Min(Piecewise):
    """Minimum of two expressions: ``x`` where ``x <= y``, else ``y``."""
    condition: Condition = field(init=False, repr=False)

    def __post_init__(self):
        _derive_condition(self, smaller_equal)
        super().__post_init__()

    def __str__(self) -> str:
        return f"min({self.x}, {self.y})"

    def __repr__(self) -> str:
        return f"Min({self.x!r}, {self.y!r})"


def _derive_condition(node: Piecewise, factory: Callable[[ExprLike, ExprLike], Comparison]) -> None:
    # Coerce operands first so the condition shares them
    name = type(node).__name__
    object.__setattr__(node, 'x', _to_expr(node.x, name))
    object.__setattr__(node, 'y', _to_expr(node.y, name))
    object.__setattr__(node, 'condition', factory(node.x, node.y))


# Constructors

def condition(kind: Union[ConditionKind, str], x: ExprLike, y: ExprLike) -> Comparison:
    """
    Build a comparison from a kind symbol.

    Raises:
        InvalidConditionType: If kind is not a known comparison symbol.
    """
    return Comparison(_condition_kind(kind), _to_expr(x), _to_expr(y))


def equal(x: ExprLike, y: ExprLike) -> Comparison:
    return Comparison(ConditionKind.EQUAL, x, y)


def greater(x: ExprLike, y: ExprLike) -> Comparison:
    return Comparison(ConditionKind.GREATER, x, y)


def greater_equal(x: ExprLike, y: ExprLike) -> Comparison:
    return Comparison(ConditionKind.GREATER_EQUAL, x, y)


def smaller(x: ExprLike, y: ExprLike) -> Comparison:
    return Comparison(ConditionKind.SMALLER, x, y)


def smaller_equal(x: ExprLike, y: ExprLike) -> Comparison:
    return Comparison(ConditionKind.SMALLER_EQUAL, x, y)


def box(x: ExprLike, lower: Any, upper: Any, kind: Union[BoxKind, str] = 'closed') -> BoxCondition:
    """
    Build a box condition ``lower <op> x <op> upper``.

    Raises:
        InvalidConditionType: If kind is not one of the box kinds.
        TypeMismatch: If a bound is not a number or Constant.
    """
    return BoxCondition(_box_kind(kind), _to_expr(x), lower, upper)


def piecewise(x: ExprLike, y: ExprLike, cond: Condition) -> Piecewise:
    """``x`` where ``cond`` holds, ``y`` elsewhere."""
    return Piecewise(_to_expr(x), _to_expr(y), cond)


def max_(x: ExprLike, y: ExprLike) -> Max:
    """Maximum of two expressions."""
    return Max(_to_expr(x), _to_expr(y))


def min_(x: ExprLike, y: ExprLike) -> Min:
    """Minimum of two expressions."""
    return Min(_to_expr(x), _to_expr(y))


# Aliases to mirror the builtins
max = max_
min = min_
