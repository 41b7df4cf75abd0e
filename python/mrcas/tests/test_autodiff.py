# Tests for autodiff.py - Forward-mode automatic differentiation

import math
import pytest

from mrcas import var, vars, sin, cos, tan, asin, acos, atan, exp, ln, sqrt, abs as abs_
from mrcas.autodiff import DualNumber, auto_diff


class TestDualNumber:
    """Tests for dual number arithmetic."""

    def test_add_sub(self):
        a = DualNumber(2.0, 1.0)
        b = DualNumber(3.0, 4.0)
        assert a + b == DualNumber(5.0, 5.0)
        assert b - a == DualNumber(1.0, 3.0)
        assert a + 1 == DualNumber(3.0, 1.0)
        assert 1 - a == DualNumber(-1.0, -1.0)

    def test_mul_div(self):
        a = DualNumber(2.0, 1.0)
        b = DualNumber(4.0, 0.0)
        assert a * b == DualNumber(8.0, 4.0)
        assert 3 * a == DualNumber(6.0, 3.0)
        assert a / b == DualNumber(0.5, 0.25)

    def test_pow(self):
        a = DualNumber(3.0, 1.0)
        result = a ** 2
        assert result.real == pytest.approx(9.0)
        assert result.dual == pytest.approx(6.0)

    def test_pow_negative_base_constant_exponent(self):
        result = DualNumber(-2.0, 1.0) ** 3
        assert result.real == pytest.approx(-8.0)
        assert result.dual == pytest.approx(12.0)

    def test_neg_abs(self):
        a = DualNumber(-2.0, 1.0)
        assert -a == DualNumber(2.0, -1.0)
        assert abs(a) == DualNumber(2.0, -1.0)
        assert abs(DualNumber(0.0, 1.0)) == DualNumber(0.0, 0.0)

    def test_rejects_non_numbers(self):
        from mrcas.exceptions import TypeMismatch
        with pytest.raises(TypeMismatch):
            DualNumber(1.0, 0.0) + 'a'


class TestAutoDiff:
    """auto_diff agrees with symbolic differentiation."""

    @pytest.mark.parametrize("build", [
        lambda x: x ** 2 + sin(x) * 2 + exp(x) * 3,
        lambda x: sqrt(x ** 2 + 2 * x + 2),
        lambda x: ln(x) / x,
        lambda x: tan(x) - cos(x),
        lambda x: asin(x) + acos(x) * 2 + atan(x),
        lambda x: abs_(x - 1) * x,
        lambda x: 2 ** x,
        lambda x: x ** x,
    ])
    def test_matches_symbolic(self, build):
        x = var('x')
        e = build(x)
        at = {x: 0.3}
        result = auto_diff(e, at, x)
        assert result.real == pytest.approx(e.call(at))
        assert result.dual == pytest.approx(e.diff(x).call(at))

    def test_partial_derivatives(self):
        x, y = vars('x', 'y')
        e = x * y ** 2
        at = {x: 2.0, y: 3.0}
        assert auto_diff(e, at, x).dual == pytest.approx(9.0)
        assert auto_diff(e, at, y).dual == pytest.approx(12.0)

    @pytest.mark.parametrize("build", [
        lambda x, y: x * y ** 0.5,
        lambda x, y: x * sqrt(y),
    ])
    def test_independent_operand_at_zero(self, build):
        """Constant subterms at a singular point contribute no derivative."""
        x, y = vars('x', 'y')
        e = build(x, y)
        at = {x: 1.0, y: 0.0}
        result = auto_diff(e, at, x)
        assert result.real == pytest.approx(0.0)
        assert result.dual == pytest.approx(0.0)
        assert result.dual == pytest.approx(e.diff(x).call(at))

    def test_constant_base_at_zero(self):
        result = DualNumber(0.0, 0.0) ** DualNumber(0.5, 0.0)
        assert result == DualNumber(0.0, 0.0)
        from mrcas.autodiff import dual_sqrt
        assert dual_sqrt(DualNumber(0.0, 0.0)) == DualNumber(0.0, 0.0)

    def test_max_follows_active_branch(self):
        from mrcas import max as max_
        x = var('x')
        m = max_(x * 2, x ** 2)
        assert auto_diff(m, {x: 1.0}, x).dual == pytest.approx(2.0)
        assert auto_diff(m, {x: 3.0}, x).dual == pytest.approx(6.0)

    def test_min_follows_active_branch(self):
        from mrcas import min as min_
        x = var('x')
        m = min_(x * 2, x ** 2)
        # x^2 is smaller at 0.5, 2x is smaller at 3
        assert auto_diff(m, {x: 0.5}, x).dual == pytest.approx(1.0)
        assert auto_diff(m, {x: 3.0}, x).dual == pytest.approx(2.0)
        assert auto_diff(m, {x: 3.0}, x).real == pytest.approx(6.0)

    def test_unsupported_nodes(self):
        from mrcas import piecewise, declare
        from mrcas.exceptions import UnknownOperation
        x = var('x')
        with pytest.raises(UnknownOperation):
            auto_diff(piecewise(x, 0, x.greater(0)), {x: 1.0}, x)
        with pytest.raises(UnknownOperation):
            auto_diff(declare('f', x) + 1, {x: 1.0}, x)

    def test_errors(self):
        from mrcas.exceptions import MissingBinding, TypeMismatch
        x, y = vars('x', 'y')
        with pytest.raises(MissingBinding):
            auto_diff(x + y, {x: 1.0}, x)
        with pytest.raises(TypeMismatch):
            auto_diff(x * 2, {x: 1.0}, 'x')
