# MrCAS - Symbolic Simplification
# Copyright (c) 2024 MrCAS Contributors. All rights reserved.

"""
Algebraic simplification for MrCAS expressions.

Simplification is a local rewrite: every child is simplified to a fixed
point of its rendered signature, then the node's own rule table is applied.
The public entry point drives the root to a fixed point in the same way.
Rules include:
1. Constant folding (2 + 3 -> 5), skipped when the result is NaN or complex
2. Identity removal (x + 0 -> x, x * 1 -> x, x^1 -> x)
3. Zero propagation (x * 0 -> 0)
4. Negation simplification (--x -> x, x + (-y) -> x - y)
5. Cancellation and multiplicity (x - x -> 0, x + x -> 2 * x, x * x -> x^2)
6. Inverse-function cancellation and special values (sin(π) -> 0)

Roots of powers halve the exponent, sqrt(x^y) -> x^(y * 1/2), without
tracking the sign of the base: sqrt(x**2) simplifies to x, not |x|.

Rewriting is not globally confluent, so equal inputs may settle on
different but equivalent forms depending on their shape.

Example:
    >>> x = var('x')
    >>> print(simplify(x * 1 + 0))
    x
"""

from __future__ import annotations
from typing import Callable, Optional
import logging
import math
import operator

from .conditions import BoxCondition, Comparison, Max, Min, Piecewise
from .config import Config
from .exceptions import TypeMismatch
from .expr import (
    Abs, Acos, Asin, Atan, Constant, Cos, Diff, Div, E, Exp, Expr, Function,
    Infinity, Invert, Ln, MinusOne, NegInfinity, Node, One, Pi, Pow, Prod, Sin,
    Sqrt, Sum, Tan, Variable, Zero, make_constant,
)
from .structure import structural_equals

logger = logging.getLogger(__name__)


HALF_PI = make_constant(math.pi / 2)
QUARTER_PI = make_constant(math.pi / 4)

# f(f⁻¹(x)) -> x
_INVERSES = {
    Sin: Asin, Asin: Sin,
    Cos: Acos, Acos: Cos,
    Tan: Atan, Atan: Tan,
    Exp: Ln, Ln: Exp,
}

# Special values, matched by numeric value of a constant argument
_SPECIAL_VALUES = {
    Sin: ((Zero, Zero), (Pi, Zero), (HALF_PI, One)),
    Cos: ((Zero, One), (Pi, MinusOne), (HALF_PI, Zero)),
    Tan: ((Zero, Zero), (Pi, Zero), (HALF_PI, Infinity)),
    Asin: ((Zero, Zero), (One, HALF_PI)),
    Acos: ((Zero, HALF_PI), (One, Zero)),
    Atan: ((Zero, Zero), (One, QUARTER_PI), (Infinity, HALF_PI)),
    Exp: ((Zero, One), (One, E), (Infinity, Infinity), (NegInfinity, Zero)),
    Ln: ((Zero, NegInfinity), (One, Zero), (E, One), (Infinity, Infinity)),
}


def simplify(node: Node, config: Optional[Config] = None) -> Node:
    """
    Simplify an expression or condition algebraically.

    The input tree is never modified. The result is a fixed point:
    simplifying it again returns a structurally equal tree.

    Args:
        node: Expression or condition to simplify
        config: Folding switch and pass bound (default: Config())

    Returns:
        Simplified node (mathematically equivalent)
    """
    if not isinstance(node, Node):
        raise TypeMismatch('expression node', node, 'simplify')
    return _settle(node, config or Config())


def _settle(node: Node, config: Config) -> Node:
    """Apply local simplification until the rendered signature is stable."""
    signature = repr(node)
    result = _simplify_node(node, config)
    passes = 1
    while True:
        current = repr(result)
        if current == signature:
            return result
        if passes >= config.max_simplify_passes:
            logger.warning(
                "Simplification stopped after %d passes without a fixed point: %s",
                passes, current,
            )
            return result
        signature = current
        result = _simplify_node(result, config)
        passes += 1
        logger.debug("Simplification pass %d: %s", passes, signature)


def _simplify_node(node: Node, config: Config) -> Node:
    """Simplify the children of a node, then apply its own rules."""
    if isinstance(node, Constant):
        return make_constant(node.value)

    if isinstance(node, (Variable, Function)):
        return node

    if isinstance(node, Sum):
        return _simplify_sum([_settle(x, config) for x in node.xs], config)

    if isinstance(node, Prod):
        return _simplify_prod([_settle(x, config) for x in node.xs], config)

    if isinstance(node, Diff):
        return _simplify_diff(_settle(node.x, config), _settle(node.y, config), config)

    if isinstance(node, Div):
        return _simplify_div(_settle(node.x, config), _settle(node.y, config), config)

    if isinstance(node, Pow):
        return _simplify_pow(_settle(node.x, config), _settle(node.y, config), config)

    if isinstance(node, (Max, Min)):
        return type(node)(_settle(node.x, config), _settle(node.y, config))

    if isinstance(node, Piecewise):
        return Piecewise(
            _settle(node.x, config), _settle(node.y, config),
            _settle(node.condition, config),
        )

    if isinstance(node, Comparison):
        return Comparison(node.kind, _settle(node.x, config), _settle(node.y, config))

    if isinstance(node, BoxCondition):
        return BoxCondition(node.kind, _settle(node.x, config), node.lower, node.upper)

    x = _settle(node.x, config)

    if isinstance(node, Invert):
        # --x -> x
        if isinstance(x, Invert):
            return x.x
        if _is(x, Zero):
            return Zero
        if isinstance(x, Constant):
            return _fold(config, operator.neg, x) or Invert(x)
        return Invert(x)

    if isinstance(node, Abs):
        # |-x| -> |x|
        if isinstance(x, Invert):
            return Abs(x.x)
        if _is(x, Zero):
            return Zero
        if isinstance(x, Constant):
            return _fold(config, abs, x) or Abs(x)
        return Abs(x)

    if isinstance(node, Sqrt):
        # sqrt(x^y) -> x^(y * 1/2); sqrt(x^2) becomes x, the sign of x is dropped
        if isinstance(x, Pow):
            return Pow(x.x, Prod((x.y, make_constant(0.5))))
        if _is(x, Zero):
            return Zero
        if _is(x, One):
            return One
        if isinstance(x, Constant):
            return _fold(config, math.sqrt, x) or Sqrt(x)
        return Sqrt(x)

    node_type = type(node)
    if node_type in _INVERSES:
        if isinstance(x, _INVERSES[node_type]):
            return x.x
        if isinstance(x, Constant):
            for argument, value in _SPECIAL_VALUES[node_type]:
                if x.value == argument.value:
                    return value
        return node_type(x)

    return node


def _is(node: Node, constant: Constant) -> bool:
    return isinstance(node, Constant) and node.value == constant.value


def _fold(config: Config, fn: Callable, *operands: Constant) -> Optional[Constant]:
    """
    Evaluate ``fn`` over constant operands.

    Returns None when folding is disabled or the result is not a
    real number (domain error, overflow, NaN or complex result).
    """
    if not config.fold_constants:
        return None
    try:
        result = fn(*(c.value for c in operands))
    except (ArithmeticError, ValueError):
        return None
    if isinstance(result, complex):
        return None
    if isinstance(result, float) and math.isnan(result):
        return None
    return make_constant(result)


def _float_pow(x, y) -> float:
    # Float power so huge integer exponents overflow instead of hanging
    return float(x) ** float(y)


def _group(terms: list[Expr]) -> list[tuple[Expr, int]]:
    """Group structurally equal terms, keeping first-appearance order."""
    groups: list[list] = []
    for term in terms:
        for group in groups:
            if structural_equals(group[0], term):
                group[1] += 1
                break
        else:
            groups.append([term, 1])
    return [(term, count) for term, count in groups]


def _cancel(positive: list[Expr], negative: list[Expr]) -> tuple[list[Expr], list[Expr]]:
    """Remove pairs of equal terms from both buckets, one pair at a time."""
    negative = list(negative)
    kept = []
    for term in positive:
        for i, other in enumerate(negative):
            if structural_equals(term, other):
                del negative[i]
                break
        else:
            kept.append(term)
    return kept, negative


def _as_sum(terms: list[Expr]) -> Optional[Expr]:
    if not terms:
        return None
    if len(terms) == 1:
        return terms[0]
    return Sum(tuple(terms))


def _simplify_sum(terms: list[Expr], config: Config) -> Expr:
    if len(terms) == 1:
        return terms[0]

    # Flatten nested sums and drop zeros
    flat: list[Expr] = []
    for term in terms:
        if isinstance(term, Sum):
            flat.extend(term.xs)
        else:
            flat.append(term)
    flat = [t for t in flat if not _is(t, Zero)]
    if not flat:
        return Zero

    # Fold constants into one trailing constant
    constants = [t for t in flat if isinstance(t, Constant)]
    if len(constants) > 1 or (constants and not isinstance(flat[-1], Constant)):
        folded = _fold(config, lambda *values: sum(values), *constants)
        if folded is not None:
            flat = [t for t in flat if not isinstance(t, Constant)]
            if not _is(folded, Zero):
                flat.append(folded)
            if not flat:
                return Zero

    # Segregate negative terms
    positive: list[Expr] = []
    negative: list[Expr] = []
    for term in flat:
        if isinstance(term, Invert):
            negative.append(term.x)
        elif isinstance(term, Diff):
            positive.append(term.x)
            negative.append(term.y)
        else:
            positive.append(term)

    positive, negative = _cancel(positive, negative)

    # x + x -> 2 * x
    positive = [t if n == 1 else Prod((make_constant(n), t)) for t, n in _group(positive)]
    negative = [t if n == 1 else Prod((make_constant(n), t)) for t, n in _group(negative)]

    left, right = _as_sum(positive), _as_sum(negative)
    if left is None and right is None:
        return Zero
    if right is None:
        return left
    if left is None:
        return Invert(right)
    return Diff(left, right)


def _simplify_diff(x: Expr, y: Expr, config: Config) -> Expr:
    if _is(x, Zero):
        return Invert(y)
    if _is(y, Zero):
        return x
    if structural_equals(x, y):
        return Zero
    if isinstance(x, Constant) and isinstance(y, Constant):
        folded = _fold(config, operator.sub, x, y)
        if folded is not None:
            return folded
    # x - (-y) -> x + y
    if isinstance(y, Invert):
        return Sum((x, y.x))
    # (-x) - y -> -(x + y)
    if isinstance(x, Invert):
        return Invert(Sum((x.x, y)))
    return Diff(x, y)


def _simplify_prod(factors: list[Expr], config: Config) -> Expr:
    if len(factors) == 1:
        return factors[0]

    flat: list[Expr] = []
    for factor in factors:
        if isinstance(factor, Prod):
            flat.extend(factor.xs)
        else:
            flat.append(factor)

    # x * 0 -> 0
    if any(_is(f, Zero) for f in flat):
        return Zero
    flat = [f for f in flat if not _is(f, One)]
    if not flat:
        return One
    if len(flat) == 1:
        return flat[0]

    # Fold constants into one leading constant
    constants = [f for f in flat if isinstance(f, Constant)]
    if len(constants) > 1 or (constants and not isinstance(flat[0], Constant)):
        folded = _fold(config, lambda *values: math.prod(values), *constants)
        if folded is not None:
            if _is(folded, Zero):
                return Zero
            rest = [f for f in flat if not isinstance(f, Constant)]
            flat = rest if _is(folded, One) else [folded] + rest
            if not flat:
                return One

    # x * x -> x^2
    flat = [f if n == 1 else Pow(f, make_constant(n)) for f, n in _group(flat)]
    if len(flat) == 1:
        return flat[0]
    return Prod(tuple(flat))


def _indeterminate(x: Expr, y: Expr) -> bool:
    """0 and ∞ against each other: 0∘0, ∞∘∞, 0∘∞, ∞∘0."""
    return (
        (_is(x, Zero) or _is(x, Infinity))
        and (_is(y, Zero) or _is(y, Infinity))
    )


def _simplify_pow(x: Expr, y: Expr, config: Config) -> Expr:
    if _indeterminate(x, y):
        return Pow(x, y)
    if _is(x, Zero):
        return Zero
    if _is(x, One):
        return One
    if _is(y, One):
        return x
    if _is(y, Zero):
        return One
    if isinstance(x, Constant) and isinstance(y, Constant):
        folded = _fold(config, _float_pow, x, y)
        if folded is not None:
            return folded
    return Pow(x, y)


def _simplify_div(x: Expr, y: Expr, config: Config) -> Expr:
    if _indeterminate(x, y):
        return Div(x, y)
    if _is(x, Zero):
        return Zero
    if _is(y, Zero):
        return Infinity
    if _is(y, One):
        return x
    if _is(y, Infinity):
        return Zero
    if isinstance(x, Constant) and isinstance(y, Constant):
        folded = _fold(config, operator.truediv, x, y)
        if folded is not None:
            return folded
    return Div(x, y)
