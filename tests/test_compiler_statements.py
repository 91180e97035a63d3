"""Tests for AST compiler: statement handlers and unit structure."""

from typing import Final

from conftest import build, field, method

from lintfold.frontend import compile_class, compile_unit
from lintfold.model.expressions import (
    AssignmentExpr,
    AssignOp,
    CallExpr,
    LiteralExpr,
    LiteralType,
    ReferenceExpr,
)
from lintfold.model.statements import (
    BreakStatement,
    ContinueStatement,
    DeclarationStatement,
    EmptyStatement,
    ExpressionStatement,
    ForEachStatement,
    IfStatement,
    ReturnStatement,
    ThrowStatement,
    TryStatement,
    WhileStatement,
)
from lintfold.model.types import ArrayTypeRef, ClassTypeRef, PrimitiveType, PrimitiveTypeRef


def body_of(source: str, params: str = ""):
    """Compile a method ``f`` with *source* as its body and return the statements."""
    extra = f", {params}" if params else ""
    lines = "\n".join("        " + line for line in source.strip().splitlines())
    unit, _ = build(f"class A:\n    def f(self{extra}) -> int:\n{lines}\n")
    return method(unit, "f").body


# ---------------------------------------------------------------------------
# Declarations and assignments
# ---------------------------------------------------------------------------

class TestDeclarations:
    def test_local_declaration(self):
        (stmt,) = body_of("x: int = 1")
        assert isinstance(stmt, DeclarationStatement)
        local = stmt.variables[0]
        assert local.name == "x"
        assert local.id == "com.example.A.f()#x.0"
        assert local.data_type == PrimitiveTypeRef(type=PrimitiveType.INT)
        assert local.initializer == LiteralExpr(value=1, literal_type=LiteralType.INT)
        assert not local.is_final

    def test_final_local(self):
        (stmt,) = body_of("x: Final[str] = 'a'")
        local = stmt.variables[0]
        assert local.is_final
        assert local.data_type == ClassTypeRef(name="java.lang.String")

    def test_uninitialized(self):
        (stmt,) = body_of("x: long")
        assert stmt.variables[0].initializer is None

    def test_array_local(self):
        (stmt,) = body_of("xs: list[int] = array_of(int, 1)")
        assert stmt.variables[0].data_type == ArrayTypeRef(
            element_type=PrimitiveTypeRef(type=PrimitiveType.INT),
        )

    def test_initializer_sees_earlier_binding(self):
        first, second = body_of("""
x: int = 1
x: int = x
""")
        assert second.variables[0].id == "com.example.A.f()#x.1"
        assert second.variables[0].initializer.resolved == first.variables[0].id

    def test_annotated_local(self):
        (stmt,) = body_of('x: Annotated[int, "androidx.annotation.StringRes"] = 0')
        assert stmt.variables[0].annotations == ["androidx.annotation.StringRes"]


class TestAssignments:
    def test_plain_assignment(self):
        _, stmt = body_of("""
x: int = 1
x = 2
""")
        assert isinstance(stmt, ExpressionStatement)
        assign = stmt.expression
        assert isinstance(assign, AssignmentExpr)
        assert assign.op == AssignOp.ASSIGN
        assert assign.target.resolved == "com.example.A.f()#x.0"

    def test_augmented_assignment(self):
        _, stmt = body_of("""
x: int = 1
x += 2
""")
        assert stmt.expression.op == AssignOp.PLUS_ASSIGN
        assert stmt.expression.value.value == 2

    def test_floor_division_assignment(self):
        _, stmt = body_of("""
x: int = 8
x //= 2
""")
        assert stmt.expression.op == AssignOp.DIV_ASSIGN

    def test_parameter_assignment(self):
        (stmt,) = body_of("a = 1", "a: int")
        assert stmt.expression.target.resolved == "com.example.A.f().a"

    def test_field_assignment(self):
        unit, _ = build("""
            class A:
                count: int = 0

                def f(self) -> None:
                    self.count = 1
        """)
        target = method(unit, "f").body[0].expression.target
        assert target.resolved == field(unit, "count").id


# ---------------------------------------------------------------------------
# Control flow
# ---------------------------------------------------------------------------

class TestControlFlow:
    def test_if_else(self):
        (stmt,) = body_of("""
if p:
    return 1
else:
    return 2
""", "p: bool")
        assert isinstance(stmt, IfStatement)
        assert isinstance(stmt.then_body[0], ReturnStatement)
        assert stmt.else_body[0].value.value == 2

    def test_elif_nests(self):
        (stmt,) = body_of("""
if p:
    return 1
elif q:
    return 2
else:
    return 3
""", "p: bool, q: bool")
        (nested,) = stmt.else_body
        assert isinstance(nested, IfStatement)
        assert nested.condition.name == "q"
        assert nested.else_body[0].value.value == 3

    def test_while(self):
        (stmt,) = body_of("""
while p:
    break
""", "p: bool")
        assert isinstance(stmt, WhileStatement)
        assert isinstance(stmt.body[0], BreakStatement)

    def test_for_range(self):
        (stmt,) = body_of("""
for i in range(3):
    continue
""")
        assert isinstance(stmt, ForEachStatement)
        assert stmt.variable.data_type == PrimitiveTypeRef(type=PrimitiveType.INT)
        assert isinstance(stmt.iterable, CallExpr)
        assert isinstance(stmt.body[0], ContinueStatement)

    def test_for_over_array(self):
        (stmt,) = body_of("""
for item in items:
    pass
""", "items: list[str]")
        assert stmt.variable.data_type is None
        assert stmt.iterable.resolved == "com.example.A.f().items"
        assert isinstance(stmt.body[0], EmptyStatement)

    def test_loop_variable_binds(self):
        (stmt,) = body_of("""
for i in range(3):
    i = 0
""")
        assert stmt.body[0].expression.target.resolved == stmt.variable.id

    def test_try(self):
        (stmt,) = body_of("""
try:
    return 1
except java.io.IOException as e:
    raise e
except:
    return 2
finally:
    pass
""")
        assert isinstance(stmt, TryStatement)
        io, anything = stmt.catches
        assert io.parameter.data_type == ClassTypeRef(name="java.io.IOException")
        assert io.parameter.name == "e"
        thrown = io.body[0]
        assert isinstance(thrown, ThrowStatement)
        assert thrown.exception.resolved == io.parameter.id
        assert anything.parameter.data_type == ClassTypeRef(name="java.lang.Throwable")
        assert anything.parameter.name == "_"
        assert isinstance(stmt.finally_body[0], EmptyStatement)

    def test_raise(self):
        (stmt,) = body_of('raise IllegalStateException("boom")')
        assert isinstance(stmt, ThrowStatement)
        assert stmt.exception.method_name == "IllegalStateException"

    def test_bare_return(self):
        (stmt,) = body_of("return")
        assert stmt == ReturnStatement()

    def test_docstring_and_ellipsis_skipped(self):
        stmts = body_of('''
"""Docstring."""
x: int = 1
...
return x
''')
        assert [type(s) for s in stmts] == [DeclarationStatement, ReturnStatement]

    def test_expression_statement(self):
        (stmt,) = body_of("g()")
        assert isinstance(stmt.expression, CallExpr)


# ---------------------------------------------------------------------------
# Classes, fields and methods
# ---------------------------------------------------------------------------

class TestUnitStructure:
    SOURCE = '''
        """Module docstring."""
        from typing import Final


        @Keep
        class Outer:
            """Class docstring."""

            LIMIT: Final[int] = 10
            name: str

            class Inner:
                pass

            @staticmethod
            def make(n: int) -> "Outer":
                ...

            @androidx.annotation.StringRes
            def title(self) -> int:
                return 0

            def nothing(self):
                """Declared only."""
    '''

    def test_qualified_ids(self):
        unit, _ = build(self.SOURCE)
        assert unit.package == "com.example"
        assert field(unit, "LIMIT").id == "com.example.Outer.LIMIT"
        assert method(unit, "title").id == "com.example.Outer.title()"
        assert method(unit, "make").parameters[0].id == "com.example.Outer.make().n"

    def test_fields(self):
        unit, _ = build(self.SOURCE)
        limit = field(unit, "LIMIT")
        assert limit.is_final
        assert limit.is_static
        assert limit.initializer.value == 10
        name = field(unit, "name")
        assert not name.is_final
        assert name.initializer is None

    def test_nested_class_is_static(self):
        unit, _ = build(self.SOURCE)
        (outer,) = unit.classes
        assert not outer.is_static
        assert outer.annotations == ["Keep"]
        assert outer.inner_classes[0].name == "Inner"
        assert outer.inner_classes[0].is_static

    def test_static_method(self):
        unit, _ = build(self.SOURCE)
        make = method(unit, "make")
        assert make.is_static
        assert make.body is None
        assert make.return_type == ClassTypeRef(name="Outer")

    def test_method_annotations(self):
        unit, _ = build(self.SOURCE)
        title = method(unit, "title")
        assert title.annotations == ["androidx.annotation.StringRes"]
        assert not title.is_static
        assert title.parameters == []

    def test_docstring_only_method_has_no_body(self):
        unit, _ = build(self.SOURCE)
        assert method(unit, "nothing").body is None

    def test_forward_reference(self):
        unit, _ = build("""
            class A:
                def f(self) -> int:
                    return LATER

                LATER: int = 3
        """)
        ret = method(unit, "f").body[0]
        assert ret.value.resolved == "com.example.A.LATER"

    def test_no_package(self):
        unit, _ = build("class A:\n    X: int = 1\n", package="")
        assert field(unit, "X").id == "A.X"

    def test_file_name_recorded(self):
        unit = compile_unit("class A:\n    pass\n", file_name="A.py")
        assert unit.file_name == "A.py"
        assert unit.classes[0].fields == []


class Greeter:
    GREETING: Final[str] = "hello"

    def greet(self, loud: bool) -> str:
        text: str = GREETING  # noqa: F821
        if loud:
            text = text + "!"
        return text


class TestCompileClass:
    def test_compiles_source_of_class(self):
        unit = compile_class(Greeter, package="demo")
        (cls,) = unit.classes
        assert cls.name == "Greeter"
        greet = method(unit, "greet")
        decl = greet.body[0].variables[0]
        assert decl.initializer == ReferenceExpr(name="GREETING", resolved="demo.Greeter.GREETING")
        assert unit.file_name.endswith("test_compiler_statements.py")
