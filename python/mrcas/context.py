# MrCAS - Symbol Context
# Copyright (c) 2024 MrCAS Contributors. All rights reserved.

"""
Registries of variables and opaque functions.

A ``SymbolContext`` owns the names of one expression universe: variable
names are unique within it, and opaque functions are declared once per
argument list. A process-wide default context backs the convenience
constructors ``var``, ``vars`` and ``declare``; it is only emptied by an
explicit ``clear()``.

Example:
    >>> ctx = SymbolContext()
    >>> x, y = ctx.vars('x', 'y')
    >>> f = ctx.declare('f', x, y)
    >>> 'x' in ctx
    True
"""

from __future__ import annotations
from typing import Iterable, Optional, Union
import logging
import threading

from .config import Config
from .exceptions import NameConflict, SymbolNotFound
from .expr import Expr, ExprLike, Function, Variable, _to_expr
from .structure import multiset_equal

logger = logging.getLogger(__name__)


class SymbolContext:
    """
    Caller-owned registry of variables and opaque functions.

    Inserts are guarded by a lock so one context can be shared between
    threads.

    Args:
        config: Controls whether ``lookup`` creates missing variables
                (default: Config())
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = config or Config()
        self._variables: dict[str, Variable] = {}
        self._functions: dict[str, Function] = {}
        self._lock = threading.RLock()

    # Variables

    def variable(self, name: str) -> Variable:
        """
        Create and register a new variable.

        Raises:
            NameConflict: If a variable with this name already exists.
        """
        v = Variable(name)
        with self._lock:
            if name in self._variables:
                raise NameConflict(name)
            self._variables[name] = v
        logger.debug("Registered variable %r", name)
        return v

    def vars(self, *names: str) -> Union[Variable, list[Variable]]:
        """
        Create several variables; a single name returns the variable itself.

        Registration is all-or-nothing: on a conflict no name is registered.

        Raises:
            NameConflict: If any name already exists or is repeated.
        """
        created = [Variable(name) for name in names]
        with self._lock:
            seen = set()
            for name in names:
                if name in self._variables or name in seen:
                    raise NameConflict(name)
                seen.add(name)
            for v in created:
                self._variables[v.name] = v
        for v in created:
            logger.debug("Registered variable %r", v.name)
        if len(created) == 1:
            return created[0]
        return created

    def lookup(self, name: str) -> Variable:
        """
        Return the variable registered under ``name``.

        Missing names are created when ``config.auto_create_variables`` is
        set.

        Raises:
            SymbolNotFound: If the name is missing and auto-creation is off.
        """
        with self._lock:
            existing = self._variables.get(name)
            if existing is not None:
                return existing
            if not self.config.auto_create_variables:
                raise SymbolNotFound(name)
            return self.variable(name)

    def exists(self, name: str) -> bool:
        return name in self._variables

    def variables(self) -> dict[str, Variable]:
        """Snapshot of the registered variables by name."""
        with self._lock:
            return dict(self._variables)

    def __contains__(self, name: object) -> bool:
        return name in self._variables

    def __len__(self) -> int:
        return len(self._variables)

    # Opaque functions

    def declare(self, name: str, *args: Union[ExprLike, Iterable[ExprLike]]) -> Function:
        """
        Declare an opaque function of ``args``.

        Re-declaring an existing name returns the registered function when
        the arguments are the same (in any order) or omitted. Arguments may
        also be passed as a single list.

        Raises:
            NameConflict: If the name is registered with different arguments.
        """
        xs = _unique(_flatten_args(args))
        with self._lock:
            existing = self._functions.get(name)
            if existing is not None:
                if not xs or multiset_equal(existing.xs, xs):
                    return existing
                raise NameConflict(name, 'Function', 'declared with different arguments')
            fn = Function(name, tuple(xs), context=self)
            self._functions[name] = fn
        logger.debug("Declared function %s", fn)
        return fn

    def function(self, name: str) -> Function:
        """
        Return the function declared under ``name``.

        Raises:
            SymbolNotFound: If no such function was declared.
        """
        try:
            return self._functions[name]
        except KeyError:
            raise SymbolNotFound(name, 'Function') from None

    def function_exists(self, name: str) -> bool:
        return name in self._functions

    def functions(self) -> dict[str, Function]:
        """Snapshot of the declared functions by name."""
        with self._lock:
            return dict(self._functions)

    def clear(self) -> None:
        """Forget every registered variable and function."""
        with self._lock:
            self._variables.clear()
            self._functions.clear()
        logger.debug("Cleared symbol context")

    def __repr__(self) -> str:
        return (
            f"SymbolContext(variables={len(self._variables)}, "
            f"functions={len(self._functions)})"
        )


def _flatten_args(args: tuple) -> list[Expr]:
    if len(args) == 1 and isinstance(args[0], (list, tuple)):
        args = tuple(args[0])
    return [_to_expr(a, 'declare') for a in args]


def _unique(xs: list[Expr]) -> list[Expr]:
    unique: list[Expr] = []
    for x in xs:
        if not any(x == seen for seen in unique):
            unique.append(x)
    return unique


_default_context = SymbolContext()


def _resolve(context: Optional[SymbolContext]) -> SymbolContext:
    # An empty context is falsy, so test for None explicitly
    return context if context is not None else _default_context


def default_context() -> SymbolContext:
    """The process-wide context used by the convenience constructors."""
    return _default_context


def var(name: str, context: Optional[SymbolContext] = None) -> Variable:
    """
    Create a variable.

    Args:
        name: Variable name, unique within the context
        context: Registry to use (default: the process-wide context)

    Raises:
        NameConflict: If the name is already registered.
    """
    return _resolve(context).variable(name)


def vars(*names: str, context: Optional[SymbolContext] = None) -> Union[Variable, list[Variable]]:
    """Create several variables at once: ``x, y = vars('x', 'y')``."""
    return _resolve(context).vars(*names)


def declare(name: str, *args: Union[ExprLike, Iterable[ExprLike]],
            context: Optional[SymbolContext] = None) -> Function:
    """Declare an opaque function, see ``SymbolContext.declare``."""
    return _resolve(context).declare(name, *args)
