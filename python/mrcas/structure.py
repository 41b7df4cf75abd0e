# MrCAS - Structural Queries
# Copyright (c) 2024 MrCAS Contributors. All rights reserved.

"""
Structural queries over expression trees.

Structural equality compares trees as graphs, not as mathematical values:
``x + y`` equals ``y + x`` (Sum and Prod are commutative multisets) but
``x - y`` does not equal ``-(y - x)``. The same notion drives hashing,
dependency queries and substitution.

Also exported here is the traversal contract for external renderers:
``children(node)`` and a fixed per-kind display tag.
"""

from __future__ import annotations
from typing import Any, Mapping, Sequence

from .conditions import BoxCondition, Comparison, Condition, ConditionKind
from .exceptions import TypeMismatch
from .expr import (
    Constant, Function, Node, Prod, Sum, Variable, _format_number, _is_number,
    make_constant,
)


# Tags for rendering backends, keyed by node label
DISPLAY_TAGS: dict[str, str] = {
    'Sum': '+',
    'Diff': '-',
    'Prod': '×',
    'Div': '÷',
    'Pow': '(∙)^(∙)',
    'Sqrt': '√(∙)',
    'Abs': '|∙|',
    'Invert': '-(∙)',
    'Sin': 'sin(∙)',
    'Cos': 'cos(∙)',
    'Tan': 'tan(∙)',
    'Asin': 'asin(∙)',
    'Acos': 'acos(∙)',
    'Atan': 'atan(∙)',
    'Exp': 'exp(∙)',
    'Ln': 'log(∙)',
    'Zero': '0',
    'One': '1',
    'Two': '2',
    'Pi': 'π',
    'E': 'e',
    'Infinity': '∞',
    'NegInfinity': '-∞',
    'MinusOne': '-1',
    'Equal': '≡',
    'Greater': '>',
    'GreaterEqual': '≥',
    'Smaller': '<',
    'SmallerEqual': '≤',
    'BoxConditionOpen': '(∙)',
    'BoxConditionClosed': '[∙]',
    'BoxConditionUpperClosed': '(∙]',
    'BoxConditionLowerClosed': '[∙)',
    'Piecewise': '?:',
    'Max': 'max(∙, ∙)',
    'Min': 'min(∙, ∙)',
}


def children(node: Node) -> tuple[Node, ...]:
    """Child nodes of ``node`` in rendering order."""
    if not isinstance(node, Node):
        raise TypeMismatch('expression node', node, 'children')
    return node.children()


def display_tag(node: Node) -> str:
    """
    Stable display tag for a node kind.

    Constants without a canonical kind render as their value; variables and
    opaque functions as their name.
    """
    if isinstance(node, Constant):
        if node.kind is not None:
            return DISPLAY_TAGS[node.kind.label]
        return _format_number(node.value)
    if isinstance(node, (Variable, Function)):
        return node.name
    if isinstance(node, (Comparison, BoxCondition)):
        return DISPLAY_TAGS[node.label]
    return DISPLAY_TAGS[type(node).__name__]


# Equality and hashing

def structural_equals(a: Any, b: Any) -> bool:
    """
    Check if two nodes are structurally equal.

    Constants compare by value, variables by name. Sum and Prod compare
    their children as multisets, Equal conditions are symmetric; every
    other kind requires the same kind and positionally equal children.
    """
    if a is b:
        return True
    if not isinstance(a, Node) or not isinstance(b, Node):
        return False
    if isinstance(a, Constant):
        return isinstance(b, Constant) and a.value == b.value
    if type(a) is not type(b):
        return False
    if isinstance(a, Variable):
        return a.name == b.name
    if isinstance(a, Function):
        return a.name == b.name and _positional_equal(a.xs, b.xs)
    if isinstance(a, (Sum, Prod)):
        return multiset_equal(a.xs, b.xs)
    if isinstance(a, Comparison):
        if a.kind is not b.kind:
            return False
        if structural_equals(a.x, b.x) and structural_equals(a.y, b.y):
            return True
        return (a.kind is ConditionKind.EQUAL
                and structural_equals(a.x, b.y) and structural_equals(a.y, b.x))
    if isinstance(a, BoxCondition):
        return (a.kind is b.kind
                and a.lower.value == b.lower.value
                and a.upper.value == b.upper.value
                and structural_equals(a.x, b.x))
    return _positional_equal(a.children(), b.children())


def _positional_equal(xs: Sequence[Node], ys: Sequence[Node]) -> bool:
    if len(xs) != len(ys):
        return False
    return all(structural_equals(x, y) for x, y in zip(xs, ys))


def multiset_equal(xs: Sequence[Node], ys: Sequence[Node]) -> bool:
    """True if both sequences hold structurally equal nodes, in any order."""
    if len(xs) != len(ys):
        return False
    remaining = list(ys)
    for x in xs:
        for i, y in enumerate(remaining):
            if structural_equals(x, y):
                del remaining[i]
                break
        else:
            return False
    return True


def structural_hash(node: Node) -> int:
    """Hash consistent with ``structural_equals``."""
    if isinstance(node, Constant):
        return hash(node.value)
    if isinstance(node, Variable):
        return hash(('Variable', node.name))
    if isinstance(node, Function):
        return hash(('Function', node.name, tuple(structural_hash(x) for x in node.xs)))
    child_hashes = [structural_hash(c) for c in node.children()]
    if isinstance(node, (Sum, Prod)):
        child_hashes.sort()
    if isinstance(node, Comparison):
        if node.kind is ConditionKind.EQUAL:
            child_hashes.sort()
        return hash((node.label, tuple(child_hashes)))
    if isinstance(node, BoxCondition):
        return hash((node.label, node.lower.value, node.upper.value, tuple(child_hashes)))
    return hash((type(node).__name__, tuple(child_hashes)))


# Dependency and argument queries

def depends_on(node: Node, v: Node) -> bool:
    """True if ``v`` occurs anywhere in the subtree, conditions included."""
    if not isinstance(v, Node):
        raise TypeMismatch('expression node', v, 'depends_on')
    if isinstance(node, Constant):
        return False
    if structural_equals(node, v):
        return True
    return any(depends_on(child, v) for child in node.children())


def collect_args(node: Node) -> list[Variable]:
    """Distinct variables of the tree, in order of first appearance."""
    found: dict[str, Variable] = {}
    stack = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, Variable):
            found.setdefault(current.name, current)
            continue
        # Reverse so the leftmost child is visited first
        stack.extend(reversed(current.children()))
    return list(found.values())


# Substitution

def substitute(node: Node, mapping: Mapping[Node, Any]) -> Node:
    """
    Replace every subtree structurally equal to a key of ``mapping``.

    If the root itself matches, the replacement is returned. Otherwise the
    child slots of composite nodes are replaced in place and ``node`` is
    returned. Replacements are not searched again.

    Args:
        node: Root of the tree to rewrite
        mapping: Node keys to replacement nodes or numbers

    Raises:
        TypeMismatch: If a key is not a node, or a value is neither a node
                      nor a number.
    """
    table = _substitution_table(mapping)
    return _substitute(node, table)


def _substitution_table(mapping: Mapping[Node, Any]) -> list[tuple[Node, Node]]:
    if not isinstance(mapping, Mapping):
        raise TypeMismatch('mapping', mapping, 'substitute')
    table = []
    for key, value in mapping.items():
        if not isinstance(key, Node):
            raise TypeMismatch('expression node', key, 'substitution key')
        if _is_number(value):
            value = make_constant(value)
        elif not isinstance(value, Node):
            raise TypeMismatch('expression node or number', value, f"substitution for {key}")
        if isinstance(key, Condition) != isinstance(value, Condition):
            expected = 'Condition' if isinstance(key, Condition) else 'Expr'
            raise TypeMismatch(expected, value, f"substitution for {key}")
        table.append((key, value))
    return table


def _substitute(node: Node, table: list[tuple[Node, Node]]) -> Node:
    for key, value in table:
        if structural_equals(node, key):
            return value
    kids = node.children()
    if not kids:
        return node
    node._set_children(_substitute(child, table) for child in kids)
    return node
