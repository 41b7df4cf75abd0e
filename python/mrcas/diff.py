# MrCAS - Symbolic Differentiation
# Copyright (c) 2024 MrCAS Contributors. All rights reserved.

"""
Symbolic differentiation.

``differentiate`` applies the chain rule recursively over the whole node
taxonomy. Results are built from plain constructors and are not simplified;
call ``simplify`` on the result for a readable form.
"""

from __future__ import annotations
import logging

from .conditions import BoxCondition, Comparison, Piecewise, equal
from .context import default_context
from .exceptions import TypeMismatch
from .expr import (
    Abs, Acos, Asin, Atan, Constant, Cos, Diff, Div, Exp, Expr, Function,
    Invert, Ln, Node, One, Pow, Prod, Sin, Sqrt, Sum, Tan, Two, Variable, Zero,
)
from .simplify import simplify
from .structure import depends_on

logger = logging.getLogger(__name__)


def differentiate(node: Node, v: Variable) -> Node:
    """
    Derivative of ``node`` with respect to the variable ``v``.

    Any expression that does not depend on ``v`` derives to the canonical
    Zero. Conditions derive to an Equal condition (see
    ``_diff_condition``).

    Raises:
        TypeMismatch: If v is not a Variable or node is not a node.
    """
    if not isinstance(v, Variable):
        raise TypeMismatch('Variable', v, 'differentiate')
    if not isinstance(node, Node):
        raise TypeMismatch('expression node', node, 'differentiate')

    if isinstance(node, (Comparison, BoxCondition)):
        return _diff_condition(node, v)
    if not depends_on(node, v):
        return Zero

    if isinstance(node, Constant):
        return Zero
    if isinstance(node, Variable):
        return One

    if isinstance(node, Sum):
        terms = [differentiate(x, v) for x in node.xs if depends_on(x, v)]
        return _sum_or_single(terms)

    if isinstance(node, Prod):
        return _diff_prod(node, v)

    if isinstance(node, Diff):
        x, y = node.x, node.y
        if not depends_on(y, v):
            return differentiate(x, v)
        if not depends_on(x, v):
            return Invert(differentiate(y, v))
        return Diff(differentiate(x, v), differentiate(y, v))

    if isinstance(node, Pow):
        return _diff_pow(node, v)

    if isinstance(node, Div):
        return _diff_div(node, v)

    if isinstance(node, Piecewise):
        # Max/Min derive to a plain Piecewise carrying their condition
        return Piecewise(differentiate(node.x, v), differentiate(node.y, v), node.condition)

    if isinstance(node, Function):
        return _diff_function(node, v)

    return _diff_unary(node, v)


def _sum_or_single(terms: list[Expr]) -> Expr:
    if len(terms) == 1:
        return terms[0]
    return Sum(tuple(terms))


def _diff_prod(node: Prod, v: Variable) -> Expr:
    # Product rule: sum over dependent factors of d(factor) * (other factors)
    terms = []
    for i, factor in enumerate(node.xs):
        if not depends_on(factor, v):
            continue
        rest = node.xs[:i] + node.xs[i + 1:]
        others = rest[0] if len(rest) == 1 else Prod(rest)
        terms.append(Prod((differentiate(factor, v), others)))
    return _sum_or_single(terms)


def _diff_pow(node: Pow, v: Variable) -> Expr:
    x, y = node.x, node.y
    if not depends_on(y, v):
        # x^(y-1) * y * x'
        return Prod((Pow(x, Diff(y, One)), y, differentiate(x, v)))
    if not depends_on(x, v):
        # x^y * y' * ln x
        return Prod((Pow(x, y), differentiate(y, v), Ln(x)))
    # x^y * (y' * ln x + y * x' / x)
    return Prod((
        Pow(x, y),
        Sum((
            Prod((differentiate(y, v), Ln(x))),
            Div(Prod((y, differentiate(x, v))), x),
        )),
    ))


def _diff_div(node: Div, v: Variable) -> Expr:
    x, y = node.x, node.y
    if not depends_on(y, v):
        return Div(differentiate(x, v), y)
    if not depends_on(x, v):
        return Invert(Div(Prod((x, differentiate(y, v))), Pow(y, Two)))
    return Div(
        Diff(Prod((differentiate(x, v), y)), Prod((differentiate(y, v), x))),
        Pow(y, Two),
    )


def _diff_unary(node: Expr, v: Variable) -> Expr:
    x = node.x
    dx = differentiate(x, v)

    if isinstance(node, Sqrt):
        return Div(dx, Prod((Two, Sqrt(x))))
    if isinstance(node, Invert):
        return Invert(dx)
    if isinstance(node, Abs):
        return Prod((dx, Div(x, Abs(x))))
    if isinstance(node, Sin):
        return Prod((dx, Cos(x)))
    if isinstance(node, Cos):
        return Invert(Prod((dx, Sin(x))))
    if isinstance(node, Tan):
        return Prod((dx, Pow(Div(One, Cos(x)), Two)))
    if isinstance(node, Asin):
        return Div(dx, Sqrt(Diff(One, Pow(x, Two))))
    if isinstance(node, Acos):
        return Invert(Div(dx, Sqrt(Diff(One, Pow(x, Two)))))
    if isinstance(node, Atan):
        return Div(dx, Sum((Pow(x, Two), One)))
    if isinstance(node, Exp):
        return Prod((dx, Exp(x)))
    if isinstance(node, Ln):
        return Div(dx, x)

    raise TypeMismatch('expression node', node, 'differentiate')


def _diff_function(node: Function, v: Variable) -> Expr:
    """
    Chain rule for opaque functions.

    The partial derivative with respect to argument k is the opaque
    function ``D<name>[k]`` of the same arguments, declared in the context
    that owns ``node`` (the default context for unregistered functions).
    """
    context = node.context if node.context is not None else default_context()
    terms = []
    for k, arg in enumerate(node.xs):
        if not depends_on(arg, v):
            continue
        partial_name = f"D{node.name}[{k}]"
        partial = context.declare(partial_name, *node.xs)
        logger.debug("Partial derivative %s declared for %s", partial_name, node)
        terms.append(Prod((differentiate(arg, v), partial)))
    return _sum_or_single(terms)


def _diff_condition(node: Node, v: Variable) -> Comparison:
    # A condition's derivative states that its boundary does not move
    if isinstance(node, Comparison):
        return equal(simplify(Diff(differentiate(node.x, v), differentiate(node.y, v))), Zero)
    return equal(simplify(differentiate(node.x, v)), Zero)
