# MrCAS
# Copyright (c) 2024 MrCAS Contributors. All rights reserved.

"""
MrCAS - a small symbolic expression engine.

MrCAS represents mathematical expressions as trees of immutable nodes and
supports construction with natural Python syntax, structural equality,
symbolic differentiation, algebraic simplification, numeric evaluation and
substitution.

Example:
    >>> import mrcas as cas
    >>> x = cas.var('x')
    >>> f = cas.sqrt(x**2 + 2*x + 2)
    >>> df = f.diff(x).simplify()
    >>> round(df.call({x: 1.0}), 6)      # 2 / sqrt(5)
    0.894427

Key Features:
    - Canonical constants (0, 1, 2, π, e, ∞, -∞, -1) with exact equality
    - Caller-owned symbol contexts for variables and opaque functions
    - Conditions, box conditions and piecewise expressions
    - Forward-mode automatic differentiation and numpy evaluation
"""

import logging

__version__ = "0.1.0"

# Core expression types and constructors
from .expr import (
    Node,
    Expr,
    Constant,
    ConstKind,
    Variable,
    Function,
    Sum,
    Prod,
    Diff,
    Div,
    Pow,
    Invert,
    Sqrt,
    Abs,
    Sin,
    Cos,
    Tan,
    Asin,
    Acos,
    Atan,
    Exp,
    Ln,
    # Canonical constants
    Zero,
    One,
    Two,
    Pi,
    E,
    Infinity,
    NegInfinity,
    MinusOne,
    CANONICAL_CONSTANTS,
    NUMERIC_TO_CONST,
    make_constant,
    const,
    evaluate,
    sin,
    cos,
    tan,
    asin,
    acos,
    atan,
    arcsin,
    arccos,
    arctan,
    exp,
    ln,
    log,
    sqrt,
    abs,
    invert,
    pow,
)

# Conditions and piecewise expressions
from .conditions import (
    Condition,
    ConditionKind,
    Comparison,
    BoxKind,
    BoxCondition,
    Piecewise,
    Max,
    Min,
    condition,
    equal,
    greater,
    greater_equal,
    smaller,
    smaller_equal,
    box,
    piecewise,
    max,
    min,
)

# Symbol registries
from .context import (
    SymbolContext,
    default_context,
    var,
    vars,
    declare,
)

# Structural queries
from .structure import (
    DISPLAY_TAGS,
    children,
    display_tag,
    structural_equals,
    structural_hash,
    depends_on,
    collect_args,
    substitute,
)

# Configuration
from .config import Config

# Differentiation and simplification
from .diff import differentiate
from .simplify import simplify
from .autodiff import DualNumber, auto_diff
from .vectorize import evaluate_array, as_function

# Exceptions
from .exceptions import (
    CASError,
    TypeMismatch,
    NameConflict,
    SymbolNotFound,
    UnknownOperation,
    MissingBinding,
    InvalidConditionType,
    CONDITION_SYMBOLS,
    BOX_SYMBOLS,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Version
    "__version__",
    # Node types
    "Node",
    "Expr",
    "Constant",
    "ConstKind",
    "Variable",
    "Function",
    "Sum",
    "Prod",
    "Diff",
    "Div",
    "Pow",
    "Invert",
    "Sqrt",
    "Abs",
    "Sin",
    "Cos",
    "Tan",
    "Asin",
    "Acos",
    "Atan",
    "Exp",
    "Ln",
    # Canonical constants
    "Zero",
    "One",
    "Two",
    "Pi",
    "E",
    "Infinity",
    "NegInfinity",
    "MinusOne",
    "CANONICAL_CONSTANTS",
    "NUMERIC_TO_CONST",
    # Constructors
    "make_constant",
    "const",
    "sin",
    "cos",
    "tan",
    "asin",
    "acos",
    "atan",
    "arcsin",
    "arccos",
    "arctan",
    "exp",
    "ln",
    "log",
    "sqrt",
    "abs",
    "invert",
    "pow",
    # Conditions
    "Condition",
    "ConditionKind",
    "Comparison",
    "BoxKind",
    "BoxCondition",
    "Piecewise",
    "Max",
    "Min",
    "condition",
    "equal",
    "greater",
    "greater_equal",
    "smaller",
    "smaller_equal",
    "box",
    "piecewise",
    "max",
    "min",
    # Symbols
    "SymbolContext",
    "default_context",
    "var",
    "vars",
    "declare",
    # Operations
    "evaluate",
    "differentiate",
    "simplify",
    "substitute",
    "depends_on",
    "collect_args",
    "structural_equals",
    "structural_hash",
    "children",
    "display_tag",
    "DISPLAY_TAGS",
    "auto_diff",
    "DualNumber",
    "evaluate_array",
    "as_function",
    # Config
    "Config",
    # Exceptions
    "CASError",
    "TypeMismatch",
    "NameConflict",
    "SymbolNotFound",
    "UnknownOperation",
    "MissingBinding",
    "InvalidConditionType",
    "CONDITION_SYMBOLS",
    "BOX_SYMBOLS",
]
