# MrCAS - Configuration
# Copyright (c) 2024 MrCAS Contributors. All rights reserved.

"""Configuration settings for MrCAS."""

from __future__ import annotations
from dataclasses import dataclass


@dataclass
class Config:
    """
    Configuration for simplification and symbol registries.

    Attributes:
        max_simplify_passes: Upper bound on the passes of every simplification
                     fixed-point loop. Reaching it logs a warning and returns
                     the last tree.
        fold_constants: Evaluate operations whose operands are all constants.
        auto_create_variables: Let ``SymbolContext.lookup`` create variables
                     that are not registered yet.
    """
    max_simplify_passes: int = 64
    fold_constants: bool = True
    auto_create_variables: bool = True

    def __post_init__(self):
        if isinstance(self.max_simplify_passes, float) and self.max_simplify_passes.is_integer():
            self.max_simplify_passes = int(self.max_simplify_passes)
        if not isinstance(self.max_simplify_passes, int) or self.max_simplify_passes < 1:
            raise ValueError(
                f"max_simplify_passes must be a positive integer, got {self.max_simplify_passes!r}"
            )

    @classmethod
    def default(cls) -> Config:
        """Default configuration."""
        return cls()

    @classmethod
    def strict(cls) -> Config:
        """Registry lookups never create variables implicitly."""
        return cls(auto_create_variables=False)

    @classmethod
    def symbolic(cls) -> Config:
        """Keep constant sub-expressions symbolic (no numeric folding)."""
        return cls(fold_constants=False)

    def __repr__(self) -> str:
        return (
            f"Config(max_simplify_passes={self.max_simplify_passes}, "
            f"fold_constants={self.fold_constants}, "
            f"auto_create_variables={self.auto_create_variables})"
        )
