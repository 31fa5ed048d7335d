"""Weave AST Node definitions.

Top-level constructs: type, struct, fn, plus ordinary statements.
Expressions cover literals, identifiers, binary/unary operators, calls,
dot access (field or method, decided at run time), struct literals and
positional arguments ($N).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from weave.errors import SourceLocation


# ---------------------------------------------------------------------------
# Type Annotations (in source)
# ---------------------------------------------------------------------------

@dataclass
class TypeAnnotation:
    name: str
    location: Optional[SourceLocation] = None

    def __str__(self) -> str:
        return self.name


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------

@dataclass
class Expr:
    location: Optional[SourceLocation] = None


@dataclass
class NumberLiteral(Expr):
    value: float = 0.0


@dataclass
class StringLiteral(Expr):
    value: str = ""


@dataclass
class BoolLiteral(Expr):
    value: bool = False


@dataclass
class NilLiteral(Expr):
    pass


@dataclass
class Identifier(Expr):
    name: str = ""


@dataclass
class BinaryOp(Expr):
    op: str = ""
    left: Expr = field(default_factory=Expr)
    right: Expr = field(default_factory=Expr)


@dataclass
class UnaryOp(Expr):
    op: str = ""
    operand: Expr = field(default_factory=Expr)


@dataclass
class Call(Expr):
    callee: Expr = field(default_factory=Expr)
    args: list[Expr] = field(default_factory=list)


@dataclass
class Dot(Expr):
    """receiver.name or receiver.name(args).

    args is None when no parentheses followed the name; that is the only
    form that may resolve to a field read.
    """
    receiver: Expr = field(default_factory=Expr)
    name: str = ""
    args: Optional[list[Expr]] = None


@dataclass
class FieldInit:
    name: str
    value: Expr
    location: Optional[SourceLocation] = None


@dataclass
class StructLiteral(Expr):
    type_name: str = ""
    fields: list[FieldInit] = field(default_factory=list)


@dataclass
class PositionalArg(Expr):
    index: int = 0


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------

@dataclass
class Statement:
    location: Optional[SourceLocation] = None


@dataclass
class LetStmt(Statement):
    name: str = ""
    value: Expr = field(default_factory=Expr)


@dataclass
class ReturnStmt(Statement):
    value: Optional[Expr] = None


@dataclass
class ExprStmt(Statement):
    expr: Expr = field(default_factory=Expr)


@dataclass
class IfStmt(Statement):
    condition: Expr = field(default_factory=Expr)
    then_body: list[Statement] = field(default_factory=list)
    else_body: list[Statement] = field(default_factory=list)


@dataclass
class WhileStmt(Statement):
    condition: Expr = field(default_factory=Expr)
    body: list[Statement] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------

@dataclass
class Parameter:
    name: str
    type_annotation: TypeAnnotation
    location: Optional[SourceLocation] = None


@dataclass
class FieldDef:
    name: str
    type_annotation: TypeAnnotation
    location: Optional[SourceLocation] = None


@dataclass
class Declaration(Statement):
    name: str = ""


@dataclass
class TypeAliasDecl(Declaration):
    """type Status = "active" | "inactive" """
    literals: list[str] = field(default_factory=list)


@dataclass
class StructDecl(Declaration):
    fields: list[FieldDef] = field(default_factory=list)


@dataclass
class FnDecl(Declaration):
    params: list[Parameter] = field(default_factory=list)
    return_type: Optional[TypeAnnotation] = None
    body: list[Statement] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Program
# ---------------------------------------------------------------------------

@dataclass
class Program:
    statements: list[Statement] = field(default_factory=list)
    filename: str = "<string>"

    @property
    def declarations(self) -> list[Declaration]:
        return [s for s in self.statements if isinstance(s, Declaration)]
