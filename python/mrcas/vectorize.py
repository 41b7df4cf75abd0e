# MrCAS - Vectorised Evaluation
# Copyright (c) 2024 MrCAS Contributors. All rights reserved.

"""
Vectorised evaluation of expressions with numpy.

``evaluate_array`` evaluates a tree element-wise over array bindings using
numpy ufuncs; ``as_function`` turns a tree into a callable over positional
arrays, convenient for plotting or sampling.

Unlike scalar evaluation, both branches of a Piecewise expression are
computed over the whole array and combined with ``np.where``; floating
point warnings raised by the untaken branch are suppressed.

Example:
    >>> import numpy as np
    >>> x = var('x')
    >>> f = as_function(x**2 + 1, x)
    >>> f(np.array([0.0, 1.0, 2.0]))
    array([1., 2., 5.])
"""

from __future__ import annotations
from functools import reduce
from typing import Any, Callable, Mapping, Union
import numpy as np

from .conditions import BoxCondition, Comparison, ConditionKind, BoxKind, Piecewise
from .exceptions import MissingBinding, TypeMismatch, UnknownOperation
from .expr import (
    Abs, Acos, Asin, Atan, Constant, Cos, Diff, Div, Exp, Function, Invert,
    Ln, Node, Pow, Prod, Sin, Sqrt, Sum, Tan, Variable,
)
from .structure import collect_args

__all__ = [
    "evaluate_array",
    "as_function",
]


_UFUNCS = {
    Sqrt: np.sqrt,
    Invert: np.negative,
    Abs: np.abs,
    Sin: np.sin,
    Cos: np.cos,
    Tan: np.tan,
    Asin: np.arcsin,
    Acos: np.arccos,
    Atan: np.arctan,
    Exp: np.exp,
    Ln: np.log,
}

_BINARY_UFUNCS = {
    Diff: np.subtract,
    Div: np.divide,
    Pow: np.power,
}

_COMPARISON_UFUNCS = {
    ConditionKind.EQUAL: np.equal,
    ConditionKind.GREATER: np.greater,
    ConditionKind.GREATER_EQUAL: np.greater_equal,
    ConditionKind.SMALLER: np.less,
    ConditionKind.SMALLER_EQUAL: np.less_equal,
}

# (lower test, upper test) per box kind
_BOX_UFUNCS = {
    BoxKind.OPEN: (np.less, np.less),
    BoxKind.CLOSED: (np.less_equal, np.less_equal),
    BoxKind.UPPER_CLOSED: (np.less, np.less_equal),
    BoxKind.LOWER_CLOSED: (np.less_equal, np.less),
}


def evaluate_array(node: Node, bindings: Mapping[Union[Variable, str], Any]) -> np.ndarray:
    """
    Evaluate ``node`` element-wise over array bindings.

    Args:
        node: Expression or condition to evaluate
        bindings: Arrays (or scalars) per variable, keyed by Variable or
                  name; shapes must broadcast together

    Returns:
        Float array for expressions, boolean array for conditions

    Raises:
        MissingBinding: If a variable has no value.
        TypeMismatch: If a binding cannot be converted to a float array.
        UnknownOperation: If the tree contains an opaque function.
    """
    if not isinstance(node, Node):
        raise TypeMismatch('expression node', node, 'evaluate_array')
    env = _array_env(bindings)
    # Domain errors become nan/inf element-wise, as in numpy itself
    with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
        return np.asarray(_evaluate(node, env))


def as_function(node: Node, *variables: Union[Variable, str]) -> Callable[..., np.ndarray]:
    """
    Turn an expression into a function of positional arrays.

    Args:
        node: Expression to wrap
        *variables: Argument order; defaults to the variables of ``node``
                    in order of appearance

    Returns:
        Callable ``f(*arrays)`` evaluating ``node`` element-wise
    """
    if not variables:
        variables = tuple(collect_args(node))
    names = [_binding_name(v) for v in variables]

    def fn(*arrays: Any) -> np.ndarray:
        if len(arrays) != len(names):
            raise TypeError(f"expected {len(names)} arguments ({', '.join(names)}), got {len(arrays)}")
        return evaluate_array(node, dict(zip(names, arrays)))

    fn.__name__ = 'mrcas_function'
    fn.__doc__ = f"Vectorised {node} of ({', '.join(names)})"
    return fn


def _binding_name(key: Any) -> str:
    if isinstance(key, Variable):
        return key.name
    if isinstance(key, str):
        return key
    raise TypeMismatch('Variable or variable name', key, 'bindings')


def _array_env(bindings: Mapping[Union[Variable, str], Any]) -> dict[str, np.ndarray]:
    if not isinstance(bindings, Mapping):
        raise TypeMismatch('mapping of bindings', bindings, 'evaluate_array')
    env = {}
    for key, value in bindings.items():
        name = _binding_name(key)
        if isinstance(value, Constant):
            value = value.value
        try:
            env[name] = np.asarray(value, dtype=float)
        except (TypeError, ValueError):
            raise TypeMismatch('array of numbers', value, f"binding for '{name}'") from None
    return env


def _evaluate(node: Node, env: dict[str, np.ndarray]) -> np.ndarray:
    if isinstance(node, Constant):
        return np.float64(node.value)

    if isinstance(node, Variable):
        if node.name not in env:
            raise MissingBinding(node.name)
        return env[node.name]

    if isinstance(node, Sum):
        return reduce(np.add, (_evaluate(x, env) for x in node.xs), np.float64(0.0))

    if isinstance(node, Prod):
        return reduce(np.multiply, (_evaluate(x, env) for x in node.xs), np.float64(1.0))

    ufunc = _BINARY_UFUNCS.get(type(node))
    if ufunc is not None:
        return ufunc(_evaluate(node.x, env), _evaluate(node.y, env))

    ufunc = _UFUNCS.get(type(node))
    if ufunc is not None:
        return ufunc(_evaluate(node.x, env))

    if isinstance(node, Piecewise):
        return np.where(
            _evaluate(node.condition, env),
            _evaluate(node.x, env),
            _evaluate(node.y, env),
        )

    if isinstance(node, Comparison):
        ufunc = _COMPARISON_UFUNCS[node.kind]
        return ufunc(_evaluate(node.x, env), _evaluate(node.y, env))

    if isinstance(node, BoxCondition):
        lower_test, upper_test = _BOX_UFUNCS[node.kind]
        value = _evaluate(node.x, env)
        return np.logical_and(
            lower_test(node.lower.value, value),
            upper_test(value, node.upper.value),
        )

    if isinstance(node, Function):
        raise UnknownOperation('Vectorised evaluation', f"function '{node.name}'")

    raise UnknownOperation('Vectorised evaluation', type(node).__name__)
