"""Weave Parser — recursive-descent parser with precedence climbing.

Parses a token stream into a Program. Declarations (type, struct, fn) may
only appear at the top level; every other statement may appear anywhere.
Whether `a.b` is a field read or a method call is not decided here: the
parser only records whether an argument list followed the name.
"""

from __future__ import annotations

import logging
from typing import Optional

from weave.lexer import Token, TokenType, tokenize
from weave.ast_nodes import (
    Program, Statement, Declaration, TypeAliasDecl, StructDecl, FnDecl,
    FieldDef, Parameter, TypeAnnotation,
    LetStmt, ReturnStmt, ExprStmt, IfStmt, WhileStmt,
    Expr, NumberLiteral, StringLiteral, BoolLiteral, NilLiteral,
    Identifier, BinaryOp, UnaryOp, Call, Dot, StructLiteral, FieldInit,
    PositionalArg,
)
from weave.errors import SourceLocation, parse_error, ScriptError

logger = logging.getLogger(__name__)


_TOKEN_NAMES: dict[TokenType, str] = {
    TokenType.IDENT: "identifier",
    TokenType.NUMBER: "number",
    TokenType.STRING: "string literal",
    TokenType.POSITIONAL: "positional argument",
    TokenType.EOF: "end of input",
}

_EQUALITY_OPS = (TokenType.EQ, TokenType.NEQ)
_COMPARISON_OPS = (TokenType.LT, TokenType.GT, TokenType.LTE, TokenType.GTE)
_ADDITIVE_OPS = (TokenType.PLUS, TokenType.MINUS)
_MULTIPLICATIVE_OPS = (TokenType.STAR, TokenType.SLASH)
_DECLARATION_STARTS = (TokenType.TYPE, TokenType.STRUCT, TokenType.FN)


def _describe_type(tt: TokenType) -> str:
    if tt in _TOKEN_NAMES:
        return _TOKEN_NAMES[tt]
    return tt.name.lower()


def _describe_token(tok: Token) -> str:
    if tok.type == TokenType.EOF:
        return "end of input"
    if tok.type == TokenType.STRING:
        return f'"{tok.value}"'
    return f"'{tok.value}'"


class Parser:
    """Recursive-descent parser for Weave."""

    def __init__(self, tokens: list[Token], filename: str = "<string>"):
        self.tokens = tokens
        self.pos = 0
        self.filename = filename

    def _current(self) -> Token:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return self.tokens[-1]  # EOF

    def _peek(self, offset: int = 0) -> TokenType:
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx].type
        return TokenType.EOF

    def _loc(self) -> SourceLocation:
        return self._current().location

    def _advance(self) -> Token:
        tok = self._current()
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return tok

    def _error(self, expected: str) -> ScriptError:
        tok = self._current()
        found = _describe_token(tok)
        return ScriptError(parse_error(
            f"expected {expected}, found {found}",
            tok.location,
            expected=expected,
            found=found,
        ))

    def _expect(self, tt: TokenType) -> Token:
        if self._peek() != tt:
            raise self._error(_describe_type(tt))
        return self._advance()

    def _match(self, tt: TokenType) -> Optional[Token]:
        if self._peek() == tt:
            return self._advance()
        return None

    def _skip_semicolons(self) -> None:
        while self._match(TokenType.SEMICOLON):
            pass

    # -------------------------------------------------------------------
    # Top-level
    # -------------------------------------------------------------------

    def parse(self) -> Program:
        statements: list[Statement] = []
        self._skip_semicolons()
        while self._peek() != TokenType.EOF:
            try:
                if self._peek() in _DECLARATION_STARTS:
                    statements.append(self._parse_declaration())
                else:
                    statements.append(self._parse_statement())
            except RecursionError:
                raise ScriptError(parse_error("expression nested too deeply", self._loc())) from None
            self._skip_semicolons()
        logger.debug("parsed %d top-level statements", len(statements))
        return Program(statements=statements, filename=self.filename)

    def _parse_declaration(self) -> Declaration:
        tt = self._peek()
        if tt == TokenType.TYPE:
            return self._parse_type_alias()
        if tt == TokenType.STRUCT:
            return self._parse_struct()
        return self._parse_fn()

    # -------------------------------------------------------------------
    # type
    # -------------------------------------------------------------------

    def _parse_type_alias(self) -> TypeAliasDecl:
        loc = self._loc()
        self._expect(TokenType.TYPE)
        name = self._expect(TokenType.IDENT).value
        self._expect(TokenType.ASSIGN)
        literals = [self._expect(TokenType.STRING).value]
        while self._match(TokenType.PIPE):
            literals.append(self._expect(TokenType.STRING).value)
        return TypeAliasDecl(name=name, literals=literals, location=loc)

    # -------------------------------------------------------------------
    # struct
    # -------------------------------------------------------------------

    def _parse_struct(self) -> StructDecl:
        loc = self._loc()
        self._expect(TokenType.STRUCT)
        name = self._expect(TokenType.IDENT).value
        self._expect(TokenType.LBRACE)
        if self._peek() == TokenType.RBRACE:
            raise ScriptError(parse_error(
                f"struct '{name}' must declare at least one field", self._loc(),
            ))
        fields: list[FieldDef] = []
        while self._peek() != TokenType.RBRACE:
            fields.append(self._parse_field_def())
            # Commas between fields are optional so one-field-per-line layouts read naturally
            self._match(TokenType.COMMA)
        self._expect(TokenType.RBRACE)
        return StructDecl(name=name, fields=fields, location=loc)

    def _parse_field_def(self) -> FieldDef:
        loc = self._loc()
        name = self._expect(TokenType.IDENT).value
        self._expect(TokenType.COLON)
        type_ann = self._parse_type_annotation()
        return FieldDef(name=name, type_annotation=type_ann, location=loc)

    # -------------------------------------------------------------------
    # Type annotations
    # -------------------------------------------------------------------

    def _parse_type_annotation(self) -> TypeAnnotation:
        loc = self._loc()
        if self._peek() != TokenType.IDENT:
            raise self._error("type name")
        name = self._advance().value
        return TypeAnnotation(name=name, location=loc)

    # -------------------------------------------------------------------
    # fn
    # -------------------------------------------------------------------

    def _parse_fn(self) -> FnDecl:
        loc = self._loc()
        self._expect(TokenType.FN)
        name = self._expect(TokenType.IDENT).value
        self._expect(TokenType.LPAREN)
        params = self._parse_param_list()
        self._expect(TokenType.RPAREN)

        return_type: Optional[TypeAnnotation] = None
        if self._match(TokenType.ARROW):
            return_type = self._parse_type_annotation()

        body = self._parse_block()
        return FnDecl(name=name, params=params, return_type=return_type, body=body, location=loc)

    def _parse_param_list(self) -> list[Parameter]:
        params: list[Parameter] = []
        if self._peek() == TokenType.RPAREN:
            return params
        params.append(self._parse_parameter())
        while self._match(TokenType.COMMA):
            params.append(self._parse_parameter())
        return params

    def _parse_parameter(self) -> Parameter:
        loc = self._loc()
        name = self._expect(TokenType.IDENT).value
        self._expect(TokenType.COLON)
        type_ann = self._parse_type_annotation()
        return Parameter(name=name, type_annotation=type_ann, location=loc)

    # -------------------------------------------------------------------
    # Blocks
    # -------------------------------------------------------------------

    def _parse_block(self) -> list[Statement]:
        self._expect(TokenType.LBRACE)
        stmts: list[Statement] = []
        self._skip_semicolons()
        while self._peek() not in (TokenType.RBRACE, TokenType.EOF):
            stmts.append(self._parse_statement())
            self._skip_semicolons()
        self._expect(TokenType.RBRACE)
        return stmts

    # -------------------------------------------------------------------
    # Statements
    # -------------------------------------------------------------------

    def _parse_statement(self) -> Statement:
        tt = self._peek()

        if tt in _DECLARATION_STARTS:
            tok = self._current()
            raise ScriptError(parse_error(
                f"'{tok.value}' declarations are only allowed at the top level",
                tok.location,
            ))
        if tt == TokenType.LET:
            return self._parse_let()
        if tt == TokenType.RETURN:
            return self._parse_return()
        if tt == TokenType.PRINT:
            return self._parse_print()
        if tt == TokenType.IF:
            return self._parse_if()
        if tt == TokenType.WHILE:
            return self._parse_while()
        loc = self._loc()
        return ExprStmt(expr=self._parse_expression(), location=loc)

    def _parse_let(self) -> LetStmt:
        loc = self._loc()
        self._expect(TokenType.LET)
        name = self._expect(TokenType.IDENT).value
        self._expect(TokenType.ASSIGN)
        value = self._parse_expression()
        return LetStmt(name=name, value=value, location=loc)

    def _parse_return(self) -> ReturnStmt:
        tok = self._expect(TokenType.RETURN)
        value: Optional[Expr] = None
        nxt = self._current()
        # A bare `return` ends at a brace, a semicolon, or the end of its line
        if nxt.type not in (TokenType.RBRACE, TokenType.SEMICOLON, TokenType.EOF) \
                and nxt.location.line == tok.location.line:
            value = self._parse_expression()
        return ReturnStmt(value=value, location=tok.location)

    def _parse_print(self) -> ExprStmt:
        tok = self._expect(TokenType.PRINT)
        self._expect(TokenType.LPAREN)
        args = self._parse_arguments()
        callee = Identifier(name="print", location=tok.location)
        return ExprStmt(expr=Call(callee=callee, args=args, location=tok.location), location=tok.location)

    def _parse_if(self) -> IfStmt:
        loc = self._loc()
        self._expect(TokenType.IF)
        condition = self._parse_expression()
        then_body = self._parse_block()
        else_body: list[Statement] = []
        if self._match(TokenType.ELSE):
            if self._peek() == TokenType.IF:
                else_body = [self._parse_if()]
            else:
                else_body = self._parse_block()
        return IfStmt(condition=condition, then_body=then_body, else_body=else_body, location=loc)

    def _parse_while(self) -> WhileStmt:
        loc = self._loc()
        self._expect(TokenType.WHILE)
        condition = self._parse_expression()
        body = self._parse_block()
        return WhileStmt(condition=condition, body=body, location=loc)

    # -------------------------------------------------------------------
    # Expressions (precedence climbing)
    # -------------------------------------------------------------------

    def _parse_expression(self) -> Expr:
        return self._parse_binary(0)

    _LEVELS = (_EQUALITY_OPS, _COMPARISON_OPS, _ADDITIVE_OPS, _MULTIPLICATIVE_OPS)

    def _parse_binary(self, level: int) -> Expr:
        if level == len(self._LEVELS):
            return self._parse_unary()
        ops = self._LEVELS[level]
        left = self._parse_binary(level + 1)
        while self._peek() in ops:
            loc = self._loc()
            op = self._advance().value
            right = self._parse_binary(level + 1)
            left = BinaryOp(op=op, left=left, right=right, location=loc)
        return left

    def _parse_unary(self) -> Expr:
        if self._peek() in (TokenType.MINUS, TokenType.NOT):
            loc = self._loc()
            op = self._advance().value
            operand = self._parse_unary()
            return UnaryOp(op=op, operand=operand, location=loc)
        return self._parse_postfix()

    def _parse_arguments(self) -> list[Expr]:
        """Parse `arg, arg, ...)` after an opening parenthesis."""
        args: list[Expr] = []
        if self._peek() != TokenType.RPAREN:
            args.append(self._parse_expression())
            while self._match(TokenType.COMMA):
                args.append(self._parse_expression())
        self._expect(TokenType.RPAREN)
        return args

    def _parse_postfix(self) -> Expr:
        expr = self._parse_primary()
        while True:
            if self._peek() == TokenType.LPAREN:
                loc = self._loc()
                self._advance()
                expr = Call(callee=expr, args=self._parse_arguments(), location=loc)
            elif self._peek() == TokenType.DOT:
                loc = self._loc()
                self._advance()
                name = self._expect(TokenType.IDENT).value
                args: Optional[list[Expr]] = None
                if self._match(TokenType.LPAREN):
                    args = self._parse_arguments()
                expr = Dot(receiver=expr, name=name, args=args, location=loc)
            else:
                break
        return expr

    def _parse_primary(self) -> Expr:
        tt = self._peek()
        loc = self._loc()

        if tt == TokenType.NUMBER:
            return NumberLiteral(value=self._advance().literal, location=loc)

        if tt == TokenType.STRING:
            return StringLiteral(value=self._advance().literal, location=loc)

        if tt == TokenType.POSITIONAL:
            return PositionalArg(index=self._advance().literal, location=loc)

        if tt in (TokenType.TRUE, TokenType.FALSE):
            self._advance()
            return BoolLiteral(value=(tt == TokenType.TRUE), location=loc)

        if tt == TokenType.NIL:
            self._advance()
            return NilLiteral(location=loc)

        if tt == TokenType.IDENT:
            # `Name { field: ...` is a struct literal; `if flag { ... }` is not
            if self._peek(1) == TokenType.LBRACE and self._peek(2) == TokenType.IDENT \
                    and self._peek(3) == TokenType.COLON:
                return self._parse_struct_literal()
            return Identifier(name=self._advance().value, location=loc)

        if tt == TokenType.LPAREN:
            self._advance()
            expr = self._parse_expression()
            self._expect(TokenType.RPAREN)
            return expr

        raise self._error("expression")

    def _parse_struct_literal(self) -> StructLiteral:
        loc = self._loc()
        type_name = self._expect(TokenType.IDENT).value
        self._expect(TokenType.LBRACE)
        fields: list[FieldInit] = []
        while self._peek() != TokenType.RBRACE:
            floc = self._loc()
            fname = self._expect(TokenType.IDENT).value
            self._expect(TokenType.COLON)
            fields.append(FieldInit(name=fname, value=self._parse_expression(), location=floc))
            self._match(TokenType.COMMA)
        self._expect(TokenType.RBRACE)
        return StructLiteral(type_name=type_name, fields=fields, location=loc)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_tokens(tokens: list[Token], filename: str = "<string>") -> Program:
    """Parse an already-lexed token stream into a Program."""
    return Parser(tokens, filename).parse()


def parse(source: str, filename: str = "<string>") -> Program:
    """Parse Weave source code into an AST."""
    tokens = tokenize(source, filename)
    return parse_tokens(tokens, filename)
