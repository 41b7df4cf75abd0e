# Tests for diff.py - Symbolic differentiation

import math
import pytest


class TestBasicRules:
    """Tests for leaves and independence."""

    def test_constant(self):
        from mrcas import var
        from mrcas.expr import const, Zero
        x = var('x')
        assert const(5).diff(x) is Zero

    def test_variable(self):
        from mrcas import vars
        from mrcas.expr import One, Zero
        x, y = vars('x', 'y')
        assert x.diff(x) is One
        assert y.diff(x) is Zero

    def test_independent_subtree_is_zero(self):
        from mrcas import vars, sin, exp
        from mrcas.expr import Zero
        x, y = vars('x', 'y')
        assert (sin(y) * exp(y) + y ** 2).diff(x) is Zero

    def test_target_must_be_variable(self):
        from mrcas import var
        from mrcas.exceptions import TypeMismatch
        x = var('x')
        with pytest.raises(TypeMismatch):
            (x ** 2).diff('x')
        with pytest.raises(TypeMismatch):
            (x ** 2).diff(x + 1)


class TestCompositeRules:
    """Tests for the shape of derivatives."""

    def test_sum_elides_independent_terms(self):
        from mrcas import vars
        from mrcas.expr import One
        x, y = vars('x', 'y')
        assert (x + y).diff(x) is One

    def test_sum(self):
        from mrcas import var, sin
        from mrcas.expr import Sum
        x = var('x')
        d = (x + sin(x)).diff(x)
        assert isinstance(d, Sum)
        assert len(d.xs) == 2

    def test_diff_rules(self):
        from mrcas import vars
        from mrcas.expr import One, Invert, Diff
        x, y = vars('x', 'y')
        assert (x - y).diff(x) is One
        assert (y - x).diff(x) == Invert(One)
        assert (x - x ** 2).diff(x).__class__ is Diff

    def test_product_rule(self):
        from mrcas import vars
        from mrcas.expr import Prod, One
        x, y = vars('x', 'y')
        assert (x * y).diff(x) == Prod((One, y))

    def test_product_rule_three_factors(self):
        from mrcas import vars, sin
        x, y = vars('x', 'y')
        e = x * sin(x) * y
        d = e.diff(x)
        env = {x: 0.7, y: 1.5}
        expected = (math.sin(0.7) + 0.7 * math.cos(0.7)) * 1.5
        assert d.call(env) == pytest.approx(expected)

    def test_power_constant_exponent(self):
        from mrcas import var
        from mrcas.expr import Prod, Pow, Diff, Two, One
        x = var('x')
        assert (x ** 2).diff(x) == Prod((Pow(x, Diff(Two, One)), Two, One))

    def test_power_constant_base(self):
        from mrcas import var
        x = var('x')
        d = (2 ** x).diff(x)
        assert d.call({x: 1.5}) == pytest.approx(2 ** 1.5 * math.log(2))

    def test_power_general(self):
        from mrcas import var
        x = var('x')
        d = (x ** x).diff(x)
        value = 1.3
        assert d.call({x: value}) == pytest.approx(value ** value * (math.log(value) + 1))

    def test_quotient_rules(self):
        from mrcas import vars
        x, y = vars('x', 'y')
        env = {x: 2.0, y: 3.0}
        assert (x / y).diff(x).call(env) == pytest.approx(1 / 3)
        assert (y / x).diff(x).call(env) == pytest.approx(-3 / 4)
        assert (x / (x + y)).diff(x).call(env) == pytest.approx(3 / 25)

    def test_derivative_is_not_simplified(self):
        from mrcas import var, sin
        from mrcas.expr import Prod, Cos, One
        x = var('x')
        assert sin(x).diff(x) == Prod((One, Cos(x)))


class TestElementaryFunctions:
    """Derivatives of the unary operations, checked numerically."""

    @pytest.mark.parametrize("name,derivative", [
        ('sqrt', lambda v: 1 / (2 * math.sqrt(v))),
        ('sin', math.cos),
        ('cos', lambda v: -math.sin(v)),
        ('tan', lambda v: 1 / math.cos(v) ** 2),
        ('asin', lambda v: 1 / math.sqrt(1 - v ** 2)),
        ('acos', lambda v: -1 / math.sqrt(1 - v ** 2)),
        ('atan', lambda v: 1 / (1 + v ** 2)),
        ('exp', math.exp),
        ('ln', lambda v: 1 / v),
    ])
    def test_unary(self, name, derivative):
        import mrcas
        x = mrcas.var('x')
        fn = getattr(mrcas, name)
        d = fn(x).diff(x)
        assert d.call({x: 0.4}) == pytest.approx(derivative(0.4))

    def test_chain_rule_through_ln(self):
        from mrcas import var, ln
        x = var('x')
        d = ln(x ** 2).diff(x)
        assert d.call({x: 3.0}) == pytest.approx(2 / 3)

    def test_invert(self):
        from mrcas import var
        from mrcas.expr import Invert, One
        x = var('x')
        assert (-x).diff(x) == Invert(One)

    def test_abs(self):
        from mrcas import var, abs as abs_
        x = var('x')
        d = abs_(x * 3).diff(x)
        assert d.call({x: -2.0}) == pytest.approx(-3.0)
        assert d.call({x: 2.0}) == pytest.approx(3.0)

    def test_sqrt_of_quadratic(self):
        from mrcas import var, sqrt
        x = var('x')
        f = sqrt(x ** 2 + 2 * x + 2)
        assert f.diff(x).call({x: 1.0}) == pytest.approx(2 / math.sqrt(5))


class TestFunctionDerivatives:
    """Chain rule over opaque functions."""

    def test_partials_are_declared(self, ctx):
        from mrcas.expr import Prod, One, Sum
        x, y = ctx.vars('x', 'y')
        f = ctx.declare('f', x, y)
        d = f.diff(x)
        partial = ctx.function('Df[0]')
        assert partial.xs == (x, y)
        assert d == Prod((One, partial))
        assert not ctx.function_exists('Df[1]')

    def test_both_arguments_dependent(self, ctx):
        from mrcas.expr import Sum
        x = ctx.variable('x')
        f = ctx.declare('f', x, x ** 2)
        d = f.diff(x)
        assert isinstance(d, Sum)
        assert ctx.function_exists('Df[0]')
        assert ctx.function_exists('Df[1]')

    def test_nested_functions(self, ctx):
        from mrcas.expr import Prod, One
        x = ctx.variable('x')
        a = ctx.declare('a', x)
        b = ctx.declare('b', a)
        d = b.diff(x)
        da = ctx.function('Da[0]')
        db = ctx.function('Db[0]')
        assert d == Prod((Prod((One, da)), db))

    def test_repeated_differentiation_reuses_partials(self, ctx):
        x = ctx.variable('x')
        f = ctx.declare('f', x)
        first = f.diff(x)
        second = f.diff(x)
        assert first == second
        assert len(ctx.functions()) == 2

    def test_independent_function(self, ctx):
        from mrcas.expr import Zero
        x, y = ctx.vars('x', 'y')
        g = ctx.declare('g', y)
        assert g.diff(x) is Zero


class TestConditionalDerivatives:
    """Derivatives of piecewise expressions and conditions."""

    def test_piecewise_keeps_condition(self):
        from mrcas import var, piecewise
        from mrcas.conditions import Piecewise
        x = var('x')
        cond = x.greater(0)
        d = piecewise(x ** 2, -x, cond).diff(x)
        assert isinstance(d, Piecewise)
        assert d.condition is cond
        assert d.call({x: 3.0}) == pytest.approx(6.0)
        assert d.call({x: -3.0}) == pytest.approx(-1.0)

    def test_max_derives_to_piecewise(self):
        from mrcas import var, max as max_
        from mrcas.conditions import Piecewise, Max
        x = var('x')
        m = max_(x, 2 * x)
        d = m.diff(x)
        assert type(d) is Piecewise
        assert d.condition == m.condition
        assert d.call({x: 1.0}) == pytest.approx(2.0)

    def test_comparison(self):
        from mrcas import vars
        from mrcas.conditions import Comparison, ConditionKind
        from mrcas.expr import Two, Zero
        x, y = vars('x', 'y')
        d = (x * 2).greater(y).diff(x)
        assert isinstance(d, Comparison)
        assert d.kind is ConditionKind.EQUAL
        assert d.x is Two
        assert d.y is Zero

    def test_box_condition(self):
        from mrcas import var
        from mrcas.conditions import ConditionKind
        from mrcas.expr import Zero
        x = var('x')
        d = (x ** 2).limit(0, 1).diff(x)
        assert d.kind is ConditionKind.EQUAL
        assert d.y is Zero
        assert d.x.call({x: 0.5}) == pytest.approx(1.0)


class TestKnownTraces:
    """End-to-end differentiate + simplify traces."""

    def test_polynomial_trig_exp(self):
        from mrcas import var, sin, exp
        from mrcas.expr import Sum, Prod, Two, Cos, Exp, const
        x = var('x')
        f = x ** 2 + sin(x) * 2 + exp(x) * 3
        d = f.diff(x).simplify()
        assert d == Sum((Prod((Two, x)), Prod((Two, Cos(x))), Prod((const(3), Exp(x)))))
        assert d.call({x: 1.0}) == pytest.approx(2 + 2 * math.cos(1) + 3 * math.e)
