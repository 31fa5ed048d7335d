"""Weave Lexer — Tokenizer with line/column tracking.

Produces a stream of tokens from Weave source code. Whitespace and
newlines only separate tokens; `#` starts a comment that runs to the end
of the line.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Optional

from weave.errors import SourceLocation, lex_error, ScriptError

logger = logging.getLogger(__name__)


class TokenType(Enum):
    # Keywords
    LET = auto()
    FN = auto()
    STRUCT = auto()
    TYPE = auto()
    RETURN = auto()
    PRINT = auto()
    IF = auto()
    ELSE = auto()
    WHILE = auto()
    TRUE = auto()
    FALSE = auto()
    NIL = auto()

    # Literals
    NUMBER = auto()
    STRING = auto()
    POSITIONAL = auto()

    # Identifier
    IDENT = auto()

    # Operators
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    EQ = auto()
    NEQ = auto()
    GTE = auto()
    LTE = auto()
    GT = auto()
    LT = auto()
    NOT = auto()
    ARROW = auto()
    ASSIGN = auto()
    DOT = auto()

    # Delimiters
    LBRACE = auto()
    RBRACE = auto()
    LPAREN = auto()
    RPAREN = auto()
    COLON = auto()
    COMMA = auto()
    PIPE = auto()
    SEMICOLON = auto()

    # Special
    EOF = auto()


KEYWORDS: dict[str, TokenType] = {
    "let": TokenType.LET,
    "fn": TokenType.FN,
    "struct": TokenType.STRUCT,
    "type": TokenType.TYPE,
    "return": TokenType.RETURN,
    "print": TokenType.PRINT,
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "while": TokenType.WHILE,
    "true": TokenType.TRUE,
    "false": TokenType.FALSE,
    "nil": TokenType.NIL,
}

ESCAPES: dict[str, str] = {"n": "\n", "t": "\t", "r": "\r", "0": "\0", "\\": "\\", '"': '"'}

# Single-character tokens; two-character operators are handled in tokenize().
SIMPLE_TOKENS: dict[str, TokenType] = {
    "+": TokenType.PLUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    ".": TokenType.DOT,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    ":": TokenType.COLON,
    ",": TokenType.COMMA,
    "|": TokenType.PIPE,
    ";": TokenType.SEMICOLON,
}

# (first char, second char) -> (two-char token, fallback single-char token)
PAIRED_TOKENS: dict[str, tuple[str, TokenType, TokenType]] = {
    "-": (">", TokenType.ARROW, TokenType.MINUS),
    "=": ("=", TokenType.EQ, TokenType.ASSIGN),
    "!": ("=", TokenType.NEQ, TokenType.NOT),
    ">": ("=", TokenType.GTE, TokenType.GT),
    "<": ("=", TokenType.LTE, TokenType.LT),
}


def _is_digit(ch: Optional[str]) -> bool:
    return ch is not None and "0" <= ch <= "9"


@dataclass
class Token:
    type: TokenType
    value: str
    location: SourceLocation
    literal: Any = None

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.location})"


class Lexer:
    """Tokenizer for Weave source code."""

    def __init__(self, source: str, filename: str = "<string>"):
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.column = 1

    def _loc(self) -> SourceLocation:
        return SourceLocation(self.line, self.column, self.filename)

    def _peek(self) -> Optional[str]:
        if self.pos < len(self.source):
            return self.source[self.pos]
        return None

    def _peek_ahead(self, offset: int = 1) -> Optional[str]:
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return None

    def _advance(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        if ch == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def _skip_whitespace_and_comments(self) -> None:
        while self.pos < len(self.source):
            ch = self.source[self.pos]
            if ch in (" ", "\t", "\r", "\n"):
                self._advance()
            elif ch == "#":
                while self.pos < len(self.source) and self.source[self.pos] != "\n":
                    self._advance()
            else:
                break

    def _read_string(self) -> Token:
        loc = self._loc()
        self._advance()  # opening quote
        chars: list[str] = []
        while self.pos < len(self.source):
            ch = self._advance()
            if ch == '"':
                value = "".join(chars)
                return Token(TokenType.STRING, value, loc, literal=value)
            if ch == "\\":
                if self.pos >= len(self.source):
                    break
                next_ch = self._advance()
                chars.append(ESCAPES.get(next_ch, next_ch))
            else:
                chars.append(ch)
        raise ScriptError(lex_error("unterminated string literal", loc))

    def _read_number(self) -> Token:
        loc = self._loc()
        start = self.pos
        while _is_digit(self._peek()):
            self._advance()
        # A dot only belongs to the number when a digit follows it: `2.5` vs `2.double()`
        nxt = self._peek_ahead()
        if self._peek() == "." and _is_digit(nxt):
            self._advance()
            while _is_digit(self._peek()):
                self._advance()
        text = self.source[start:self.pos]
        return Token(TokenType.NUMBER, text, loc, literal=float(text))

    def _read_identifier(self) -> Token:
        loc = self._loc()
        start = self.pos
        while self._peek() is not None and (self._peek().isalnum() or self._peek() == "_"):
            self._advance()
        value = self.source[start:self.pos]
        token_type = KEYWORDS.get(value, TokenType.IDENT)
        return Token(token_type, value, loc)

    def _read_positional(self) -> Token:
        loc = self._loc()
        self._advance()  # '$'
        start = self.pos
        while _is_digit(self._peek()):
            self._advance()
        digits = self.source[start:self.pos]
        if not digits:
            raise ScriptError(lex_error("expected digits after '$'", loc))
        return Token(TokenType.POSITIONAL, "$" + digits, loc, literal=int(digits))

    def tokenize(self) -> list[Token]:
        tokens: list[Token] = []
        while self.pos < len(self.source):
            self._skip_whitespace_and_comments()
            if self.pos >= len(self.source):
                break

            ch = self._peek()
            loc = self._loc()

            if ch == '"':
                tokens.append(self._read_string())
            elif _is_digit(ch):
                tokens.append(self._read_number())
            elif ch.isalpha() or ch == "_":
                tokens.append(self._read_identifier())
            elif ch == "$":
                tokens.append(self._read_positional())
            elif ch in PAIRED_TOKENS:
                second, paired_type, single_type = PAIRED_TOKENS[ch]
                self._advance()
                if self._peek() == second:
                    self._advance()
                    tokens.append(Token(paired_type, ch + second, loc))
                else:
                    tokens.append(Token(single_type, ch, loc))
            elif ch in SIMPLE_TOKENS:
                self._advance()
                tokens.append(Token(SIMPLE_TOKENS[ch], ch, loc))
            else:
                raise ScriptError(lex_error(f"unexpected character {ch!r}", loc))

        tokens.append(Token(TokenType.EOF, "", self._loc()))
        logger.debug("lexed %d tokens from %s", len(tokens), self.filename)
        return tokens


def tokenize(source: str, filename: str = "<string>") -> list[Token]:
    """Convenience function to tokenize Weave source code."""
    return Lexer(source, filename).tokenize()
