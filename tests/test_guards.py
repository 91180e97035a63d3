"""Tests for the narrowing guard around initializer-derived constants."""

from lintfold.evaluate import (
    TRUE,
    UNKNOWN,
    evaluate,
    int_value,
    references,
    surrounded_by_variable_check,
)
from lintfold.evaluate._guards import is_within

from conftest import build, field, method, refs


GUARDED = """
class A:
    def f(self) -> int:
        x: int = 1
        if x > 0:
            return x
        return 0
"""


class TestLocalGuard:
    def test_use_inside_checked_body(self):
        unit, adapter = build(GUARDED)
        in_condition, in_body = refs(unit, "x", "f")
        assert evaluate(adapter, in_body) is UNKNOWN

    def test_use_inside_condition(self):
        unit, adapter = build(GUARDED)
        in_condition, _ = refs(unit, "x", "f")
        assert evaluate(adapter, in_condition) == int_value(1)

    def test_condition_still_folds(self):
        unit, adapter = build(GUARDED)
        condition = method(unit, "f").body[1].condition
        assert evaluate(adapter, condition) is TRUE

    def test_unrelated_condition(self):
        unit, adapter = build("""
            class A:
                def f(self, p: bool) -> int:
                    x: int = 1
                    if p:
                        return x
                    return 0
        """)
        assert evaluate(adapter, refs(unit, "x", "f")[0]) == int_value(1)

    def test_assigned_value_not_guarded(self):
        unit, adapter = build("""
            class A:
                def f(self) -> int:
                    x: int = 1
                    x = 2
                    if x > 0:
                        return x
                    return 0
        """)
        assert evaluate(adapter, refs(unit, "x", "f")[-1]) == int_value(2)

    def test_else_branch_guarded(self):
        unit, adapter = build("""
            class A:
                def f(self) -> int:
                    x: int = 1
                    if x == 0:
                        return 5
                    else:
                        return x
        """)
        assert evaluate(adapter, refs(unit, "x", "f")[-1]) is UNKNOWN

    def test_ternary_guard(self):
        unit, adapter = build("""
            class A:
                def f(self) -> int:
                    x: int = 1
                    return x if x > 0 else 0
        """)
        then_ref = refs(unit, "x", "f")[-1]
        assert evaluate(adapter, then_ref) is UNKNOWN


class TestFieldGuard:
    SOURCE = """
        class A:
            LIMIT: Final[int] = 3

            def f(self) -> int:
                if LIMIT > 2:
                    return LIMIT
                return LIMIT
    """

    def test_guarded_field_use(self):
        unit, adapter = build(self.SOURCE)
        _, inside, _ = refs(unit, "LIMIT", "f")
        assert evaluate(adapter, inside) is UNKNOWN

    def test_unguarded_field_use(self):
        unit, adapter = build(self.SOURCE)
        _, _, after = refs(unit, "LIMIT", "f")
        assert evaluate(adapter, after) == int_value(3)


class TestHelpers:
    def test_references(self):
        unit, adapter = build(GUARDED)
        f = method(unit, "f")
        x = f.body[0].variables[0]
        assert references(adapter, f.body[1].condition, x)
        assert not references(adapter, f.body[2], x)

    def test_is_within(self):
        unit, adapter = build(GUARDED)
        f = method(unit, "f")
        in_condition, in_body = refs(unit, "x", "f")
        assert is_within(adapter, in_condition, f.body[1].condition)
        assert not is_within(adapter, in_body, f.body[1].condition)
        assert is_within(adapter, f, f)

    def test_surrounded_by_variable_check(self):
        unit, adapter = build(GUARDED)
        x = method(unit, "f").body[0].variables[0]
        in_condition, in_body = refs(unit, "x", "f")
        assert surrounded_by_variable_check(adapter, in_body, x)
        assert not surrounded_by_variable_check(adapter, in_condition, x)

    def test_field_initializer_not_guarded(self):
        unit, adapter = build("""
            class A:
                X: Final[int] = 1
        """)
        x = field(unit, "X")
        assert not surrounded_by_variable_check(adapter, x.initializer, x)
