# Tests for conditions.py - Conditions and piecewise expressions

import pytest


class TestComparison:
    """Tests for binary comparisons."""

    @pytest.mark.parametrize("kind,left,right,expected", [
        ('eq', 2.0, 2.0, True),
        ('==', 2.0, 3.0, False),
        ('gt', 3.0, 2.0, True),
        ('>', 2.0, 2.0, False),
        ('geq', 2.0, 2.0, True),
        ('>=', 1.0, 2.0, False),
        ('lt', 1.0, 2.0, True),
        ('<', 2.0, 2.0, False),
        ('leq', 2.0, 2.0, True),
        ('<=', 3.0, 2.0, False),
    ])
    def test_evaluate(self, kind, left, right, expected):
        from mrcas import vars, condition
        x, y = vars('x', 'y')
        c = condition(kind, x, y)
        assert c.call({x: left, y: right}) is expected

    def test_helpers(self):
        from mrcas import var
        from mrcas.conditions import ConditionKind
        x = var('x')
        assert x.equal(1).kind is ConditionKind.EQUAL
        assert x.greater(1).kind is ConditionKind.GREATER
        assert x.greater_equal(1).kind is ConditionKind.GREATER_EQUAL
        assert x.smaller(1).kind is ConditionKind.SMALLER
        assert x.smaller_equal(1).kind is ConditionKind.SMALLER_EQUAL

    def test_unknown_kind(self):
        from mrcas import var, condition
        from mrcas.exceptions import InvalidConditionType
        x = var('x')
        with pytest.raises(InvalidConditionType) as exc_info:
            condition('ge', x, 1)
        assert exc_info.value.kind == 'ge'
        assert "geq" in str(exc_info.value)
        with pytest.raises(ValueError):
            condition('!=', x, 1)

    def test_rendering(self):
        from mrcas import var
        x = var('x')
        assert str(x.greater_equal(1)) == '(x ≥ 1)'
        assert str(x.equal(0)) == '(x ≡ 0)'
        assert repr(x.smaller(1)) == "Smaller(var('x'), One)"

    def test_operands_are_coerced(self):
        from mrcas import var, greater
        from mrcas.expr import Two
        x = var('x')
        assert greater(x, 2).y is Two
        from mrcas.exceptions import TypeMismatch
        with pytest.raises(TypeMismatch):
            greater(x, 'two')


class TestBoxCondition:
    """Tests for box conditions."""

    @pytest.mark.parametrize("kind,at_lower,at_upper", [
        ('closed', True, True),
        ('open', False, False),
        ('upper_closed', False, True),
        ('lower_closed', True, False),
    ])
    def test_bounds(self, kind, at_lower, at_upper):
        from mrcas import var, box
        x = var('x')
        b = box(x, 0, 1, kind)
        assert b.call({x: 0.0}) is at_lower
        assert b.call({x: 1.0}) is at_upper
        assert b.call({x: 0.5}) is True
        assert b.call({x: 2.0}) is False

    def test_bounds_are_ordered(self):
        from mrcas import var
        from mrcas.expr import Zero, const
        x = var('x')
        b = x.limit(5, 0)
        assert b.lower is Zero
        assert b.upper == const(5)

    def test_bounds_must_be_numbers(self):
        from mrcas import vars, box
        from mrcas.exceptions import TypeMismatch
        x, y = vars('x', 'y')
        with pytest.raises(TypeMismatch):
            box(x, y, 1)

    def test_unknown_kind(self):
        from mrcas import var, box
        from mrcas.exceptions import InvalidConditionType, BOX_SYMBOLS
        x = var('x')
        with pytest.raises(InvalidConditionType) as exc_info:
            box(x, 0, 1, 'half_open')
        assert exc_info.value.accepted == BOX_SYMBOLS
        assert exc_info.value.suggestion is not None

    def test_rendering(self):
        from mrcas import var
        x = var('x')
        assert str(x.limit(0, 1, 'upper_closed')) == '0 < x ≤ 1'

    def test_equality_includes_kind(self):
        from mrcas import var
        x = var('x')
        assert x.limit(0, 1) == x.limit(0, 1, 'closed')
        assert x.limit(0, 1) != x.limit(0, 1, 'open')
        assert x.limit(0, 1) != x.limit(0, 2)


class TestPiecewise:
    """Tests for piecewise expressions."""

    def test_branch_selection(self):
        from mrcas import var, piecewise
        x = var('x')
        p = piecewise(x ** 2, -x, x.greater_equal(0))
        assert p.call({x: 3.0}) == 9.0
        assert p.call({x: -3.0}) == 3.0

    def test_untaken_branch_not_evaluated(self):
        from mrcas import var, piecewise
        x = var('x')
        p = piecewise(x, 1 / (x - 1), x.greater_equal(1))
        # 1 / (x - 1) would raise ZeroDivisionError at x = 1
        assert p.call({x: 1}) == 1

    def test_condition_required(self):
        from mrcas import var, piecewise
        from mrcas.exceptions import TypeMismatch
        x = var('x')
        with pytest.raises(TypeMismatch):
            piecewise(x, 0, x + 1)

    def test_piecewise_is_arithmetic(self):
        from mrcas import var, piecewise
        x = var('x')
        p = piecewise(1, 2, x.greater(0)) + 1
        assert p.call({x: 1.0}) == 2.0

    def test_rendering(self):
        from mrcas import var, piecewise
        x = var('x')
        assert str(piecewise(x, 0, x.greater(0))) == '((x > 0) ? x : 0)'


class TestMaxMin:
    """Tests for Max and Min."""

    def test_max(self):
        from mrcas import vars, max as max_
        x, y = vars('x', 'y')
        m = max_(x, y)
        assert m.call({x: 1.0, y: 2.0}) == 2.0
        assert m.call({x: 3.0, y: 2.0}) == 3.0
        assert str(m) == 'max(x, y)'

    def test_min(self):
        from mrcas import vars, min as min_
        x, y = vars('x', 'y')
        m = min_(x, y)
        assert m.call({x: 1.0, y: 2.0}) == 1.0
        assert m.call({x: 3.0, y: 2.0}) == 2.0
        assert str(m) == 'min(x, y)'

    def test_condition_is_derived(self):
        from mrcas import var, max as max_, min as min_
        from mrcas.conditions import ConditionKind
        from mrcas.expr import Two
        x = var('x')
        m = max_(x, 2)
        assert m.condition.kind is ConditionKind.GREATER_EQUAL
        assert m.condition.x is x
        assert m.condition.y is Two
        assert min_(x, 2).condition.kind is ConditionKind.SMALLER_EQUAL

    def test_children(self):
        from mrcas import var, max as max_
        x = var('x')
        m = max_(x, 0)
        assert len(m.children()) == 3
        assert repr(m) == "Max(var('x'), Zero)"

    def test_max_differs_from_min(self):
        from mrcas import vars, max as max_, min as min_
        x, y = vars('x', 'y')
        assert max_(x, y) != min_(x, y)
        assert max_(x, y) == max_(x, y)
