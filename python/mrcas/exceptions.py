# MrCAS - Exceptions
# Copyright (c) 2024 MrCAS Contributors. All rights reserved.

"""Exception hierarchy for MrCAS."""

from __future__ import annotations
from typing import Optional, Any, Iterable


# Condition kind symbols accepted by the condition factories, for error messages
CONDITION_SYMBOLS = ['eq', '==', 'gt', '>', 'geq', '>=', 'lt', '<', 'leq', '<=']
BOX_SYMBOLS = ['closed', 'open', 'upper_closed', 'lower_closed']


class CASError(Exception):
    """Base class for all MrCAS exceptions."""
    pass


class TypeMismatch(CASError, TypeError):
    """Raised when an argument is neither an expression node nor a number."""

    def __init__(self, expected: str, received: Any, context: Optional[str] = None):
        message = f"required {expected}, received {type(received).__name__}"
        if context:
            message += f" in {context}"
        super().__init__(message)
        self.expected = expected
        self.received = received


class NameConflict(CASError):
    """Raised when a variable or function name is already registered."""

    def __init__(self, name: str, kind: str = 'Variable', detail: Optional[str] = None):
        message = f"{kind} '{name}' already exists"
        if detail:
            message += f" ({detail})"
        super().__init__(message)
        self.name = name
        self.kind = kind


class SymbolNotFound(CASError, LookupError):
    """Raised when a registry lookup misses."""

    def __init__(self, name: str, kind: str = 'Variable'):
        super().__init__(f"{kind} '{name}' not found")
        self.name = name
        self.kind = kind


class UnknownOperation(CASError, NotImplementedError):
    """Raised by operations that are explicitly not supported for a node kind."""

    def __init__(self, operation: str, node_kind: str, reason: Optional[str] = None):
        message = f"{operation} is not supported for {node_kind}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.operation = operation
        self.node_kind = node_kind


class MissingBinding(CASError, LookupError):
    """Raised when the evaluator has no value for a required variable."""

    def __init__(self, name: str):
        super().__init__(f"Variable '{name}' not in bindings")
        self.name = name

    def __str__(self) -> str:
        # LookupError would otherwise repr() the message
        return self.args[0]


class InvalidConditionType(CASError, ValueError):
    """Raised when an unrecognized condition or box-condition kind is requested."""

    def __init__(self, kind: Any, accepted: Iterable[str] = CONDITION_SYMBOLS):
        accepted = list(accepted)
        message = f"Unknown condition type: {kind!r}"
        message += f"\n  Accepted kinds: {', '.join(accepted)}"
        suggestion = _get_suggestion_for_kind(kind)
        if suggestion:
            message += f"\n  Suggestion: {suggestion}"
        super().__init__(message)
        self.kind = kind
        self.accepted = accepted
        self.suggestion = suggestion


def _get_suggestion_for_kind(kind: Any) -> Optional[str]:
    """Get a helpful suggestion for a misspelled condition kind."""
    if not isinstance(kind, str):
        return None
    suggestions = {
        '=': "Did you mean 'eq'? Use '==' or 'eq' for equality.",
        'equal': "Use 'eq' for equality conditions.",
        'ne': "Inequality (!=) conditions are not supported.",
        '!=': "Inequality (!=) conditions are not supported.",
        'ge': "Did you mean 'geq'?",
        'le': "Did you mean 'leq'?",
        '=>': "Did you mean '>='?",
        '=<': "Did you mean '<='?",
        'half_open': "Use 'upper_closed' or 'lower_closed' for half-open boxes.",
        'closed_open': "Did you mean 'lower_closed'?",
        'open_closed': "Did you mean 'upper_closed'?",
    }
    return suggestions.get(kind.lower())
