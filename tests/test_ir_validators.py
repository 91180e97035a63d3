"""Tests for Pydantic model validators on IR models."""

import pytest
from pydantic import ValidationError

from lintfold.model.expressions import (
    BinaryOp,
    LiteralExpr,
    LiteralType,
    NewArrayExpr,
    PolyadicExpr,
)
from lintfold.model.statements import DeclarationStatement
from lintfold.model.types import ClassTypeRef, PrimitiveType, primitive, string_type
from lintfold.model.unit import ClassDecl, CompilationUnit, Method
from lintfold.model.variables import Field, Parameter

from conftest import int_lit


# ===========================================================================
# LiteralExpr
# ===========================================================================


class TestLiteralExpr:
    def test_valid_int(self):
        assert LiteralExpr(value=5, literal_type=LiteralType.INT).value == 5

    def test_int_out_of_range(self):
        with pytest.raises(ValidationError, match="not a valid int literal"):
            LiteralExpr(value=2**31, literal_type=LiteralType.INT)

    def test_long_in_range(self):
        assert LiteralExpr(value=2**31, literal_type=LiteralType.LONG).value == 2**31

    def test_byte_range(self):
        with pytest.raises(ValidationError):
            LiteralExpr(value=128, literal_type=LiteralType.BYTE)

    def test_bool_is_not_int(self):
        with pytest.raises(ValidationError):
            LiteralExpr(value=True, literal_type=LiteralType.INT)

    def test_char_single_character(self):
        assert LiteralExpr(value="c", literal_type=LiteralType.CHAR).value == "c"
        with pytest.raises(ValidationError):
            LiteralExpr(value="cd", literal_type=LiteralType.CHAR)

    def test_null_has_no_value(self):
        with pytest.raises(ValidationError):
            LiteralExpr(value=0, literal_type=LiteralType.NULL)

    def test_double_accepts_int_payload(self):
        assert LiteralExpr(value=1, literal_type=LiteralType.DOUBLE).value == 1


# ===========================================================================
# Expressions
# ===========================================================================


class TestPolyadicExpr:
    def test_two_operands(self):
        expr = PolyadicExpr(op=BinaryOp.PLUS, operands=[int_lit(1), int_lit(2)])
        assert len(expr.operands) == 2

    def test_one_operand_rejected(self):
        with pytest.raises(ValidationError, match="at least 2 operands"):
            PolyadicExpr(op=BinaryOp.PLUS, operands=[int_lit(1)])


class TestNewArrayExpr:
    def test_initializer(self):
        arr = NewArrayExpr(element_type=primitive("int"), initializer=[int_lit(1)])
        assert arr.dimensions == []

    def test_empty_initializer_allowed(self):
        arr = NewArrayExpr(element_type=string_type(), initializer=[])
        assert arr.initializer == []

    def test_neither_rejected(self):
        with pytest.raises(ValidationError, match="dimensions or an initializer"):
            NewArrayExpr(element_type=primitive(PrimitiveType.INT))

    def test_both_rejected(self):
        with pytest.raises(ValidationError, match="cannot have both"):
            NewArrayExpr(
                element_type=primitive(PrimitiveType.INT),
                dimensions=[int_lit(1)],
                initializer=[int_lit(1)],
            )


# ===========================================================================
# Statements and units
# ===========================================================================


class TestDeclarationStatement:
    def test_empty_rejected(self):
        with pytest.raises(ValidationError, match="at least one variable"):
            DeclarationStatement(variables=[])


class TestClassTypeRef:
    def test_string_names(self):
        assert ClassTypeRef(name="java.lang.String").is_string
        assert ClassTypeRef(name="String").is_string
        assert not ClassTypeRef(name="android.content.Context").is_string


class TestCompilationUnit:
    def test_unique_ids(self):
        unit = CompilationUnit(classes=[ClassDecl(
            name="A",
            fields=[Field(id="A.x", name="x")],
            methods=[Method(id="A.f()", name="f", parameters=[Parameter(id="A.f().x", name="x")])],
        )])
        assert unit.classes[0].name == "A"

    def test_duplicate_ids_rejected(self):
        with pytest.raises(ValidationError, match="duplicate declaration id 'A.x'"):
            CompilationUnit(classes=[ClassDecl(
                name="A",
                fields=[Field(id="A.x", name="x"), Field(id="A.x", name="y")],
            )])

    def test_duplicates_across_nested_classes(self):
        with pytest.raises(ValidationError, match="duplicate declaration id"):
            CompilationUnit(classes=[ClassDecl(
                name="A",
                fields=[Field(id="dup", name="x")],
                inner_classes=[ClassDecl(name="B", fields=[Field(id="dup", name="y")])],
            )])

    def test_round_trips_through_json(self):
        unit = CompilationUnit(
            package="com.example",
            classes=[ClassDecl(name="A", fields=[Field(
                id="A.x", name="x", data_type=primitive("int"), initializer=int_lit(3),
            )])],
        )
        again = CompilationUnit.model_validate_json(unit.model_dump_json())
        assert again == unit
