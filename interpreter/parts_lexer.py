#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional, Union

from parts_diagnostics import Diagnostics, Phase


# ==========================
# Tokens and lexer
# ==========================

class TokenKind(Enum):
    # Special
    EOF = auto()

    IDENT = auto()  # identifier, e.g. i, name, etc.
    NUMBER = auto()  # number literal, e.g. 42, 3.14
    STRING = auto()  # string literal, e.g. "hello world"

    # Keywords
    AND = auto()
    CLASS = auto()
    ELSE = auto()
    FALSE = auto()
    FOR = auto()
    FUN = auto()
    IF = auto()
    LET = auto()
    NIL = auto()
    OR = auto()
    RETURN = auto()
    SUPER = auto()
    THIS = auto()
    TRUE = auto()
    WHILE = auto()

    # Punctuation / operators
    LPAREN = auto()  # (
    RPAREN = auto()  # )
    LBRACE = auto()  # {
    RBRACE = auto()  # }
    COMMA = auto()  # ,
    DOT = auto()  # .
    SEMI = auto()  # ;
    MINUS = auto()  # -
    PLUS = auto()  # +
    STAR = auto()  # *
    SLASH = auto()  # /
    BANG = auto()  # !
    NE = auto()  # !=
    EQ = auto()  # =
    EQEQ = auto()  # ==
    LT = auto()  # <
    LE = auto()  # <=
    GT = auto()  # >
    GE = auto()  # >=


KEYWORDS = {
    "and": TokenKind.AND,
    "class": TokenKind.CLASS,
    "else": TokenKind.ELSE,
    "false": TokenKind.FALSE,
    "for": TokenKind.FOR,
    "fun": TokenKind.FUN,
    "if": TokenKind.IF,
    "let": TokenKind.LET,
    "nil": TokenKind.NIL,
    "or": TokenKind.OR,
    "return": TokenKind.RETURN,
    "super": TokenKind.SUPER,
    "this": TokenKind.THIS,
    "true": TokenKind.TRUE,
    "while": TokenKind.WHILE,
}

# single-character tokens that never start a longer operator
SIMPLE_TOKENS = {
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "{": TokenKind.LBRACE,
    "}": TokenKind.RBRACE,
    ",": TokenKind.COMMA,
    ".": TokenKind.DOT,
    ";": TokenKind.SEMI,
    "-": TokenKind.MINUS,
    "+": TokenKind.PLUS,
    "*": TokenKind.STAR,
}

# c -> (kind, kind when followed by '=')
EQ_SUFFIX_TOKENS = {
    "!": (TokenKind.BANG, TokenKind.NE),
    "=": (TokenKind.EQ, TokenKind.EQEQ),
    "<": (TokenKind.LT, TokenKind.LE),
    ">": (TokenKind.GT, TokenKind.GE),
}


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str  # raw lexeme
    literal: Optional[Union[float, str]]
    line: int
    column: int = 1

    def __repr__(self) -> str:
        return f"{self.text!r}" if self.kind != TokenKind.EOF else "end-of-file"

    def is_eof(self) -> bool:
        return self.kind is TokenKind.EOF


@dataclass
class LexerError(Exception):
    code: str
    message: str
    line: int
    column: int


def _is_digit(c: str) -> bool:
    return "0" <= c <= "9"


def _is_alpha(c: str) -> bool:
    return ("a" <= c <= "z") or ("A" <= c <= "Z") or c == "_"


def _is_alnum(c: str) -> bool:
    return _is_alpha(c) or _is_digit(c)


class Lexer:
    """
    Turns source text into a token list terminated by an EOF token.

    Errors never stop the scan: each one is reported to the diagnostics
    context and scanning resumes with the next character.
    """

    def __init__(self, source: str, diagnostics: Optional[Diagnostics] = None) -> None:
        self.source = source
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.length = len(source)
        self.index = 0
        self.line = 1
        self.column = 1

    # --- low-level char utilities ---

    def _at_end(self) -> bool:
        return self.index >= self.length

    def _peek(self) -> str:
        if self._at_end():
            return "\0"
        return self.source[self.index]

    def _peek_next(self) -> str:
        if self.index + 1 >= self.length:
            return "\0"
        return self.source[self.index + 1]

    def _advance(self) -> str:
        c = self._peek()
        if not self._at_end():
            self.index += 1
            if c == "\n":
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        return c

    def _match(self, expected: str) -> bool:
        if self._peek() != expected or self._at_end():
            return False
        self._advance()
        return True

    # --- main API ---

    def tokenize(self) -> List[Token]:
        tokens: List[Token] = []
        while True:
            try:
                tok = self._next_token()
            except LexerError as e:
                self.diagnostics.error(Phase.LEXICAL, e.code, e.message, line=e.line, column=e.column)
                continue
            tokens.append(tok)
            if tok.kind is TokenKind.EOF:
                break
        return tokens

    def _next_token(self) -> Token:
        self._skip_ws_and_comments()
        start_index = self.index
        start_line, start_col = self.line, self.column

        if self._at_end():
            return Token(TokenKind.EOF, "", None, start_line, start_col)

        c = self._advance()

        # identifiers / keywords
        if _is_alpha(c):
            while _is_alnum(self._peek()):
                self._advance()
            text = self.source[start_index:self.index]
            kind = KEYWORDS.get(text, TokenKind.IDENT)
            return Token(kind, text, None, start_line, start_col)

        # numbers: digits with an optional fractional part
        if _is_digit(c):
            while _is_digit(self._peek()):
                self._advance()
            if self._peek() == "." and _is_digit(self._peek_next()):
                self._advance()  # '.'
                while _is_digit(self._peek()):
                    self._advance()
            text = self.source[start_index:self.index]
            return Token(TokenKind.NUMBER, text, float(text), start_line, start_col)

        # strings
        if c == '"':
            value = self._read_string_literal(start_line, start_col)
            text = self.source[start_index:self.index]
            return Token(TokenKind.STRING, text, value, start_line, start_col)

        kind = SIMPLE_TOKENS.get(c)
        if kind is not None:
            return Token(kind, c, None, start_line, start_col)

        pair = EQ_SUFFIX_TOKENS.get(c)
        if pair is not None:
            kind = pair[1] if self._match("=") else pair[0]
            return Token(kind, self.source[start_index:self.index], None, start_line, start_col)

        # comments were skipped above, so a lone '/' is division
        if c == "/":
            return Token(TokenKind.SLASH, c, None, start_line, start_col)

        raise LexerError("LEX-0040", "Unexpected character.", start_line, start_col)

    def _read_string_literal(self, start_line: int, start_col: int) -> str:
        chars: List[str] = []
        while self._peek() != '"' and not self._at_end():
            chars.append(self._advance())

        if self._at_end():
            # the whole tail was consumed; no token is produced
            raise LexerError("LEX-0010", "Unterminated string.", self.line, self.column)

        self._advance()  # closing quote
        return "".join(chars)

    def _skip_ws_and_comments(self) -> None:
        while True:
            c = self._peek()
            if c in (" ", "\t", "\r", "\n"):
                self._advance()
                continue
            if c == "/" and self._peek_next() == "/":
                # line comment
                self._advance()  # '/'
                self._advance()  # second '/'
                while self._peek() != "\n" and not self._at_end():
                    self._advance()
                continue
            if c == "/" and self._peek_next() == "*":
                # block comment, runs to the first '*/' (or to end of input)
                self._advance()  # '/'
                self._advance()  # '*'
                while not self._at_end():
                    if self._peek() == "*" and self._peek_next() == "/":
                        self._advance()  # '*'
                        self._advance()  # '/'
                        break
                    self._advance()
                continue
            break
