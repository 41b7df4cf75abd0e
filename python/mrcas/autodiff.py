# MrCAS - Forward-Mode Automatic Differentiation
# Copyright (c) 2024 MrCAS Contributors. All rights reserved.

"""
Forward-mode automatic differentiation with dual numbers.

``auto_diff`` evaluates an expression over dual numbers ``a + b·ε`` with
``ε² = 0``: the real part is the value of the expression and the dual part
its derivative along one variable, computed in a single pass without
building a derivative tree.

Example:
    >>> x = var('x')
    >>> result = auto_diff(x**2 + sin(x), {x: 0.0}, x)
    >>> result.real, result.dual
    (0.0, 1.0)
"""

from __future__ import annotations
from dataclasses import dataclass
from functools import reduce
from typing import Callable, Optional, Union
import math
import operator

from .conditions import Max, Min, Piecewise
from .exceptions import MissingBinding, TypeMismatch, UnknownOperation
from .expr import (
    Abs, Acos, Asin, Atan, Bindings, Constant, Cos, Diff, Div, EvalEnv, Exp,
    Function, Invert, Ln, Node, Pow, Prod, Sin, Sqrt, Sum, Tan, Variable,
    _is_number, normalize_bindings,
)


@dataclass(frozen=True)
class DualNumber:
    """
    A dual number ``real + dual·ε``.

    Attributes:
        real: Value of the function
        dual: Derivative along the seeded direction
    """
    real: float
    dual: float = 0.0

    def __add__(self, other: Union[DualNumber, float]) -> DualNumber:
        other = _lift(other)
        return DualNumber(self.real + other.real, self.dual + other.dual)

    def __radd__(self, other: float) -> DualNumber:
        return self + other

    def __sub__(self, other: Union[DualNumber, float]) -> DualNumber:
        other = _lift(other)
        return DualNumber(self.real - other.real, self.dual - other.dual)

    def __rsub__(self, other: float) -> DualNumber:
        return _lift(other) - self

    def __mul__(self, other: Union[DualNumber, float]) -> DualNumber:
        other = _lift(other)
        return DualNumber(
            self.real * other.real,
            self.dual * other.real + self.real * other.dual,
        )

    def __rmul__(self, other: float) -> DualNumber:
        return self * other

    def __truediv__(self, other: Union[DualNumber, float]) -> DualNumber:
        other = _lift(other)
        return DualNumber(
            self.real / other.real,
            (self.dual * other.real - self.real * other.dual) / (other.real * other.real),
        )

    def __rtruediv__(self, other: float) -> DualNumber:
        return _lift(other) / self

    def __pow__(self, other: Union[DualNumber, float]) -> DualNumber:
        """
        General power ``u^w``.

        Each term is only formed when its operand carries a derivative:
        constant exponents work for negative bases, and constant bases
        work at zero.
        """
        other = _lift(other)
        real = math.pow(self.real, other.real)
        dual = 0.0
        if self.dual != 0:
            dual += other.real * math.pow(self.real, other.real - 1) * self.dual
        if other.dual != 0:
            dual += real * math.log(self.real) * other.dual
        return DualNumber(real, dual)

    def __rpow__(self, other: float) -> DualNumber:
        return _lift(other) ** self

    def __neg__(self) -> DualNumber:
        return DualNumber(-self.real, -self.dual)

    def __abs__(self) -> DualNumber:
        if self.real == 0:
            return DualNumber(0.0, 0.0)
        sign = 1.0 if self.real > 0 else -1.0
        return DualNumber(abs(self.real), sign * self.dual)

    def __repr__(self) -> str:
        return f"DualNumber({self.real}, {self.dual})"


def _lift(value: Union[DualNumber, float]) -> DualNumber:
    if isinstance(value, DualNumber):
        return value
    if _is_number(value):
        return DualNumber(value, 0.0)
    raise TypeMismatch('DualNumber or number', value, 'dual arithmetic')


# Elementary functions over dual numbers

def dual_sqrt(u: DualNumber) -> DualNumber:
    root = math.sqrt(u.real)
    if u.dual == 0:
        return DualNumber(root, 0.0)
    return DualNumber(root, u.dual / (2 * root))


def dual_sin(u: DualNumber) -> DualNumber:
    return DualNumber(math.sin(u.real), u.dual * math.cos(u.real))


def dual_cos(u: DualNumber) -> DualNumber:
    return DualNumber(math.cos(u.real), -u.dual * math.sin(u.real))


def dual_tan(u: DualNumber) -> DualNumber:
    return DualNumber(math.tan(u.real), u.dual / math.cos(u.real) ** 2)


def dual_asin(u: DualNumber) -> DualNumber:
    return DualNumber(math.asin(u.real), u.dual / math.sqrt(1 - u.real ** 2))


def dual_acos(u: DualNumber) -> DualNumber:
    return DualNumber(math.acos(u.real), -u.dual / math.sqrt(1 - u.real ** 2))


def dual_atan(u: DualNumber) -> DualNumber:
    return DualNumber(math.atan(u.real), u.dual / (1 + u.real ** 2))


def dual_exp(u: DualNumber) -> DualNumber:
    value = math.exp(u.real)
    return DualNumber(value, u.dual * value)


def dual_log(u: DualNumber) -> DualNumber:
    return DualNumber(math.log(u.real), u.dual / u.real)


_UNARY: dict[type, Callable[[DualNumber], DualNumber]] = {
    Sqrt: dual_sqrt,
    Invert: operator.neg,
    Abs: operator.abs,
    Sin: dual_sin,
    Cos: dual_cos,
    Tan: dual_tan,
    Asin: dual_asin,
    Acos: dual_acos,
    Atan: dual_atan,
    Exp: dual_exp,
    Ln: dual_log,
}

_BINARY: dict[type, Callable[[DualNumber, DualNumber], DualNumber]] = {
    Diff: operator.sub,
    Div: operator.truediv,
    Pow: operator.pow,
}


def auto_diff(node: Node, bindings: Optional[Bindings], wrt: Variable) -> DualNumber:
    """
    Value and derivative of ``node`` along ``wrt`` at a point.

    Args:
        node: Expression to evaluate
        bindings: Values of every variable, keyed by Variable or name
        wrt: Variable to differentiate along (seeded with dual part 1)

    Returns:
        DualNumber whose real part is the value and dual part the derivative

    Raises:
        TypeMismatch: If wrt is not a Variable.
        MissingBinding: If a variable has no value.
        UnknownOperation: For opaque functions and general piecewise nodes.
    """
    if not isinstance(wrt, Variable):
        raise TypeMismatch('Variable', wrt, 'auto_diff')
    if not isinstance(node, Node):
        raise TypeMismatch('expression node', node, 'auto_diff')
    return _forward(node, normalize_bindings(bindings), wrt.name)


def _forward(node: Node, env: EvalEnv, seed: str) -> DualNumber:
    if isinstance(node, Constant):
        return DualNumber(node.value, 0.0)

    if isinstance(node, Variable):
        if node.name not in env:
            raise MissingBinding(node.name)
        return DualNumber(env[node.name], 1.0 if node.name == seed else 0.0)

    if isinstance(node, Sum):
        return reduce(operator.add, (_forward(x, env, seed) for x in node.xs), DualNumber(0.0))

    if isinstance(node, Prod):
        return reduce(operator.mul, (_forward(x, env, seed) for x in node.xs), DualNumber(1.0))

    op = _BINARY.get(type(node))
    if op is not None:
        return op(_forward(node.x, env, seed), _forward(node.y, env, seed))

    op = _UNARY.get(type(node))
    if op is not None:
        return op(_forward(node.x, env, seed))

    if isinstance(node, (Max, Min)):
        # Follow the active branch
        a = _forward(node.x, env, seed)
        b = _forward(node.y, env, seed)
        if isinstance(node, Max):
            return a if a.real >= b.real else b
        return a if a.real <= b.real else b

    if isinstance(node, Piecewise):
        raise UnknownOperation('Automatic differentiation', 'Piecewise',
                               'only Max and Min are supported')

    if isinstance(node, Function):
        raise UnknownOperation('Automatic differentiation', f"function '{node.name}'")

    raise UnknownOperation('Automatic differentiation', type(node).__name__)
