"""Weave Lexer Tests — LEX-001 through LEX-006.

Each class covers one tokenizer concern; positions are 1-based.
"""

import pytest

from weave.lexer import tokenize, TokenType
from weave.errors import ScriptError, ErrorKind


def types_of(source):
    return [t.type for t in tokenize(source)]


class TestLEX001:
    """LEX-001: Keywords, identifiers and punctuation.
    Pass Criteria: every keyword maps to its own token type; others are IDENT.
    """

    def test_keywords(self):
        assert types_of("let fn struct type return print") == [
            TokenType.LET, TokenType.FN, TokenType.STRUCT, TokenType.TYPE,
            TokenType.RETURN, TokenType.PRINT, TokenType.EOF,
        ]

    def test_identifiers_are_not_keywords(self):
        tokens = tokenize("letter fns _private Pizza2")
        assert [t.type for t in tokens[:-1]] == [TokenType.IDENT] * 4
        assert [t.value for t in tokens[:-1]] == ["letter", "fns", "_private", "Pizza2"]

    def test_punctuation_and_operators(self):
        assert types_of("{ } ( ) , : | + - * / == . -> = ;") == [
            TokenType.LBRACE, TokenType.RBRACE, TokenType.LPAREN, TokenType.RPAREN,
            TokenType.COMMA, TokenType.COLON, TokenType.PIPE, TokenType.PLUS,
            TokenType.MINUS, TokenType.STAR, TokenType.SLASH, TokenType.EQ,
            TokenType.DOT, TokenType.ARROW, TokenType.ASSIGN, TokenType.SEMICOLON,
            TokenType.EOF,
        ]

    def test_comparison_operators(self):
        assert types_of("!= <= >= < > !") == [
            TokenType.NEQ, TokenType.LTE, TokenType.GTE, TokenType.LT,
            TokenType.GT, TokenType.NOT, TokenType.EOF,
        ]

    def test_empty_source_is_just_eof(self):
        assert types_of("") == [TokenType.EOF]


class TestLEX002:
    """LEX-002: Numeric and string literals.
    Pass Criteria: numbers carry a float payload, strings are unescaped.
    """

    def test_integer_and_decimal(self):
        tokens = tokenize("42 3.25")
        assert tokens[0].type == TokenType.NUMBER
        assert tokens[0].literal == 42.0
        assert tokens[1].literal == 3.25

    def test_dot_after_number_without_digit_is_member_access(self):
        assert types_of("2.double") == [
            TokenType.NUMBER, TokenType.DOT, TokenType.IDENT, TokenType.EOF,
        ]

    def test_string_escapes(self):
        tok = tokenize(r'"a\nb\t\"q\"\\"')[0]
        assert tok.type == TokenType.STRING
        assert tok.literal == 'a\nb\t"q"\\'

    def test_unknown_escape_keeps_character(self):
        assert tokenize(r'"\q"')[0].literal == "q"

    def test_utf8_text_in_string(self):
        assert tokenize('"héllo ✓"')[0].literal == "héllo ✓"


class TestLEX003:
    """LEX-003: Positional-argument markers.
    Pass Criteria: `$` plus digits is one POSITIONAL token carrying the index.
    """

    def test_positional_index(self):
        tok = tokenize("$12")[0]
        assert tok.type == TokenType.POSITIONAL
        assert tok.literal == 12
        assert tok.value == "$12"

    def test_positional_inside_expression(self):
        assert types_of('"a" + $1') == [
            TokenType.STRING, TokenType.PLUS, TokenType.POSITIONAL, TokenType.EOF,
        ]

    def test_dollar_without_digits_is_lex_error(self):
        with pytest.raises(ScriptError) as exc:
            tokenize("$x")
        assert exc.value.kind == ErrorKind.LEX


class TestLEX004:
    """LEX-004: Comments.
    Pass Criteria: `#` to end of line produces no tokens, inline or alone.
    """

    def test_full_line_comment(self):
        assert types_of("# just a note\n") == [TokenType.EOF]

    def test_trailing_comment_matches_uncommented(self):
        plain = tokenize('type Color = "red" | "green" | "blue"')
        commented = tokenize('type Color = "red" | "green" | "blue"  # note')
        assert [(t.type, t.value) for t in plain] == [(t.type, t.value) for t in commented]

    def test_hash_inside_string_is_not_comment(self):
        tok = tokenize('"#1 pick" # comment')[0]
        assert tok.literal == "#1 pick"


class TestLEX005:
    """LEX-005: Source positions.
    Pass Criteria: every token records its 1-based line and column.
    """

    def test_line_and_column(self):
        tokens = tokenize("let x = 1\n  print(x)")
        let_tok, x_tok = tokens[0], tokens[1]
        assert (let_tok.location.line, let_tok.location.column) == (1, 1)
        assert (x_tok.location.line, x_tok.location.column) == (1, 5)
        print_tok = tokens[4]
        assert print_tok.type == TokenType.PRINT
        assert (print_tok.location.line, print_tok.location.column) == (2, 3)

    def test_filename_is_recorded(self):
        tok = tokenize("x", filename="demo.wv")[0]
        assert tok.location.file == "demo.wv"


class TestLEX006:
    """LEX-006: Lex errors.
    Pass Criteria: unterminated strings and stray characters fail with position.
    """

    def test_unterminated_string(self):
        with pytest.raises(ScriptError) as exc:
            tokenize('let s = "oops')
        err = exc.value.error
        assert err.kind == ErrorKind.LEX
        assert (err.location.line, err.location.column) == (1, 9)
        assert "unterminated" in err.message

    def test_backslash_at_end_is_unterminated(self):
        with pytest.raises(ScriptError) as exc:
            tokenize('"abc\\')
        assert exc.value.kind == ErrorKind.LEX

    def test_unrecognized_character(self):
        with pytest.raises(ScriptError) as exc:
            tokenize("let a = 1\nlet b = @")
        err = exc.value.error
        assert err.kind == ErrorKind.LEX
        assert (err.location.line, err.location.column) == (2, 9)
        assert str(err) == "lex error at 2:9: unexpected character '@'"
