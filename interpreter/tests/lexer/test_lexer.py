#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

from parts_diagnostics import Diagnostics, Phase
from parts_lexer import Lexer, TokenKind


def _tokens(src: str):
    diags = Diagnostics()
    return Lexer(src, diags).tokenize(), diags


def _kinds(src: str):
    tokens, _ = _tokens(src)
    return [t.kind for t in tokens]


def test_let_statement_tokens():
    assert _kinds("let x = 1.5;") == [
        TokenKind.LET,
        TokenKind.IDENT,
        TokenKind.EQ,
        TokenKind.NUMBER,
        TokenKind.SEMI,
        TokenKind.EOF,
    ]


def test_empty_source_is_just_eof():
    tokens, diags = _tokens("")
    assert [t.kind for t in tokens] == [TokenKind.EOF]
    assert tokens[0].line == 1
    assert not diags.has_errors()


def test_number_literals_are_floats():
    tokens, _ = _tokens("42 3.25")
    assert tokens[0].literal == 42.0
    assert isinstance(tokens[0].literal, float)
    assert tokens[1].literal == 3.25
    assert tokens[1].text == "3.25"


def test_trailing_dot_is_not_part_of_number():
    assert _kinds("123.") == [TokenKind.NUMBER, TokenKind.DOT, TokenKind.EOF]
    assert _kinds("1.foo") == [TokenKind.NUMBER, TokenKind.DOT, TokenKind.IDENT, TokenKind.EOF]


def test_two_char_operators():
    assert _kinds("!= == <= >= ! = < >") == [
        TokenKind.NE,
        TokenKind.EQEQ,
        TokenKind.LE,
        TokenKind.GE,
        TokenKind.BANG,
        TokenKind.EQ,
        TokenKind.LT,
        TokenKind.GT,
        TokenKind.EOF,
    ]


def test_single_char_punctuation():
    assert _kinds("(){},.-+;*/") == [
        TokenKind.LPAREN,
        TokenKind.RPAREN,
        TokenKind.LBRACE,
        TokenKind.RBRACE,
        TokenKind.COMMA,
        TokenKind.DOT,
        TokenKind.MINUS,
        TokenKind.PLUS,
        TokenKind.SEMI,
        TokenKind.STAR,
        TokenKind.SLASH,
        TokenKind.EOF,
    ]


def test_keywords_and_identifiers():
    tokens, _ = _tokens("and or class classy _a1 this super nil")
    assert [t.kind for t in tokens] == [
        TokenKind.AND,
        TokenKind.OR,
        TokenKind.CLASS,
        TokenKind.IDENT,
        TokenKind.IDENT,
        TokenKind.THIS,
        TokenKind.SUPER,
        TokenKind.NIL,
        TokenKind.EOF,
    ]
    assert tokens[4].text == "_a1"


def test_line_and_column_tracking():
    tokens, _ = _tokens("a  b\n  c")
    assert (tokens[0].line, tokens[0].column) == (1, 1)
    assert (tokens[1].line, tokens[1].column) == (1, 4)
    assert (tokens[2].line, tokens[2].column) == (2, 3)


def test_string_literal_value_excludes_quotes():
    tokens, _ = _tokens('"hello world"')
    assert tokens[0].kind is TokenKind.STRING
    assert tokens[0].literal == "hello world"
    assert tokens[0].text == '"hello world"'


def test_multiline_string_reports_start_line():
    tokens, diags = _tokens('"a\nb" x')
    assert tokens[0].kind is TokenKind.STRING
    assert tokens[0].literal == "a\nb"
    assert tokens[0].line == 1
    assert tokens[1].text == "x"
    assert tokens[1].line == 2
    assert not diags.has_errors()


def test_comments_are_skipped():
    tokens, diags = _tokens("// line comment\n/* block\n comment */ x // trailing")
    assert [t.kind for t in tokens] == [TokenKind.IDENT, TokenKind.EOF]
    assert tokens[0].line == 3
    assert not diags.has_errors()


def test_block_comment_ends_at_first_terminator():
    assert _kinds("/* a /* b */ x */") == [TokenKind.IDENT, TokenKind.STAR, TokenKind.SLASH, TokenKind.EOF]


def test_unterminated_block_comment_is_silent():
    tokens, diags = _tokens("x /* never closed")
    assert [t.kind for t in tokens] == [TokenKind.IDENT, TokenKind.EOF]
    assert not diags.has_errors()


def test_lone_slash_is_division():
    assert _kinds("a / b") == [TokenKind.IDENT, TokenKind.SLASH, TokenKind.IDENT, TokenKind.EOF]


def test_unexpected_character_is_reported_and_skipped():
    tokens, diags = _tokens("1 @ 2")
    assert [t.kind for t in tokens] == [TokenKind.NUMBER, TokenKind.NUMBER, TokenKind.EOF]
    assert diags.codes() == ["LEX-0040"]
    diag = diags.items[0]
    assert diag.phase is Phase.LEXICAL
    assert diag.message == "Unexpected character."
    assert (diag.line, diag.column) == (1, 3)
    assert diags.had_static_error


def test_every_bad_character_is_reported():
    _, diags = _tokens("@ # $")
    assert diags.codes() == ["LEX-0040", "LEX-0040", "LEX-0040"]


def test_unterminated_string_produces_no_token():
    tokens, diags = _tokens('print("abc')
    assert [t.kind for t in tokens] == [TokenKind.IDENT, TokenKind.LPAREN, TokenKind.EOF]
    assert diags.codes() == ["LEX-0010"]
    assert diags.items[0].message == "Unterminated string."
    assert diags.items[0].format() == "[line 1] Error: Unterminated string."
