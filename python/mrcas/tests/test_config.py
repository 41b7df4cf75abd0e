# MrCAS - Configuration Tests
# Copyright (c) 2024 MrCAS Contributors. All rights reserved.

"""
Tests for the configuration module and its presets.
"""

import pytest

from mrcas.config import Config


class TestConfig:
    """Tests for Config."""

    def test_default_values(self):
        """Test default configuration values."""
        cfg = Config()
        assert cfg.max_simplify_passes == 64
        assert cfg.fold_constants is True
        assert cfg.auto_create_variables is True

    def test_default_factory(self):
        """Test Config.default() matches the constructor defaults."""
        assert Config.default() == Config()

    def test_strict_factory(self):
        """Test Config.strict() disables implicit variable creation."""
        cfg = Config.strict()
        assert cfg.auto_create_variables is False
        assert cfg.fold_constants is True

    def test_symbolic_factory(self):
        """Test Config.symbolic() disables constant folding."""
        cfg = Config.symbolic()
        assert cfg.fold_constants is False
        assert cfg.auto_create_variables is True

    def test_integral_float_passes(self):
        """Test that an integral float pass bound is normalised to int."""
        cfg = Config(max_simplify_passes=10.0)
        assert cfg.max_simplify_passes == 10
        assert isinstance(cfg.max_simplify_passes, int)

    @pytest.mark.parametrize("passes", [0, -3, 2.5, "8"])
    def test_invalid_passes(self, passes):
        """Test that invalid pass bounds are rejected."""
        with pytest.raises(ValueError):
            Config(max_simplify_passes=passes)

    def test_repr(self):
        """Test repr shows all settings."""
        r = repr(Config.symbolic())
        assert "max_simplify_passes=64" in r
        assert "fold_constants=False" in r
        assert "auto_create_variables=True" in r

    def test_context_uses_config(self):
        """Test that a context picks up its config."""
        from mrcas import SymbolContext
        ctx = SymbolContext(Config.strict())
        assert ctx.config.auto_create_variables is False
        assert SymbolContext().config == Config()
