#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from dataclasses import dataclass
from typing import List, Optional

from parts_ast import (
    Span, Expr, Literal, Grouping, Unary, Binary, Variable, Assign, Call, Get, Set, This, Super, Stmt, ExprStmt,
    LetStmt, Block, IfStmt, WhileStmt, FuncDecl, ReturnStmt, ClassDecl)
from parts_diagnostics import Diagnostics, Phase
from parts_lexer import TokenKind, Token, Lexer


MAX_ARGS = 255

# Tokens that begin a declaration or statement; panic mode stops in front of them.
SYNC_KINDS = (
    TokenKind.CLASS,
    TokenKind.FUN,
    TokenKind.LET,
    TokenKind.FOR,
    TokenKind.IF,
    TokenKind.WHILE,
    TokenKind.RETURN,
)


# ==========================
# Parser
# ==========================

@dataclass
class ParseError(Exception):
    code: str
    message: str
    token: Optional[Token] = None


class Parser:
    """
    Recursive-descent parser producing a list of statements.

    Syntax errors are reported to the diagnostics context; the parser then
    discards tokens up to the next statement boundary and keeps going, so a
    single pass can surface several independent errors.
    """

    def __init__(self, tokens: List[Token], diagnostics: Optional[Diagnostics] = None) -> None:
        self.tokens = tokens
        self.index = 0
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()

    @classmethod
    def from_source(cls, source: str, diagnostics: Optional[Diagnostics] = None) -> "Parser":
        diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        tokens = Lexer(source, diagnostics).tokenize()
        return cls(tokens, diagnostics)

    # --- token utilities ---

    def _peek(self) -> Token:
        return self.tokens[self.index]

    def _last(self) -> Token:
        return self.tokens[self.index - 1 if self.index > 0 else 0]

    def _at_end(self) -> bool:
        return self._peek().kind is TokenKind.EOF

    def _advance(self) -> Token:
        tok = self._peek()
        if not self._at_end():
            self.index += 1
        return tok

    def _check(self, kind: TokenKind) -> bool:
        return self._peek().kind is kind

    def _match(self, *kinds: TokenKind) -> bool:
        if self._peek().kind in kinds:
            self._advance()
            return True
        return False

    def _expect(self, kind: TokenKind, code: str, msg: str) -> Token:
        if not self._check(kind):
            raise ParseError(code, msg, self._peek())
        return self._advance()

    def _report(self, code: str, token: Token, msg: str) -> None:
        """Report an error without entering panic mode."""
        self.diagnostics.token_error(Phase.SYNTAX, code, token, msg)

    def _span_start(self) -> Span:
        here = self._peek()
        return Span(here.line, here.column, here.line, here.column)

    def _extend_span(self, start: Span) -> Span:
        here = self._last()
        return Span(
            start.start_line,
            start.start_column,
            here.line,
            here.column + len(here.text),
        )

    # --- entry point ---

    def parse(self) -> List[Stmt]:
        statements: List[Stmt] = []
        while not self._at_end():
            stmt = self._parse_declaration()
            if stmt is not None:
                statements.append(stmt)
        return statements

    def _synchronize(self) -> None:
        self._advance()
        while not self._at_end():
            if self._last().kind is TokenKind.SEMI:
                return
            if self._peek().kind in SYNC_KINDS:
                return
            self._advance()

    # --- declarations ---

    def _parse_declaration(self) -> Optional[Stmt]:
        try:
            if self._match(TokenKind.CLASS):
                return self._parse_class()
            if self._match(TokenKind.FUN):
                return self._parse_function("function")
            if self._match(TokenKind.LET):
                return self._parse_let()
            return self._parse_stmt()
        except ParseError as e:
            self.diagnostics.token_error(Phase.SYNTAX, e.code, e.token, e.message)
            self._synchronize()
            return None
        except RecursionError:
            self.diagnostics.token_error(Phase.SYNTAX, "PAR-0150", self._peek(), "Expression too deeply nested.")
            self._synchronize()
            return None

    def _parse_class(self) -> ClassDecl:
        start = Span(self._last().line, self._last().column, self._last().line, self._last().column)
        name_tok = self._expect(TokenKind.IDENT, "PAR-0040", "Expect class name.")

        superclass: Optional[Variable] = None
        if self._match(TokenKind.LT):
            super_start = self._span_start()
            super_tok = self._expect(TokenKind.IDENT, "PAR-0041", "Expect superclass name.")
            superclass = Variable(super_tok, span=self._extend_span(super_start))

        self._expect(TokenKind.LBRACE, "PAR-0042", "Expect '{' before class body.")
        methods: List[FuncDecl] = []
        while not self._check(TokenKind.RBRACE) and not self._at_end():
            methods.append(self._parse_function("method"))
        self._expect(TokenKind.RBRACE, "PAR-0043", "Expect '}' after class body.")
        return ClassDecl(name_tok, superclass, methods, span=self._extend_span(start))

    def _parse_function(self, kind: str) -> FuncDecl:
        start = self._span_start()
        name_tok = self._expect(TokenKind.IDENT, "PAR-0050", f"Expect {kind} name.")
        self._expect(TokenKind.LPAREN, "PAR-0051", f"Expect '(' after {kind} name.")
        params: List[Token] = []
        if not self._check(TokenKind.RPAREN):
            while True:
                if len(params) >= MAX_ARGS:
                    self._report("PAR-0031", self._peek(), f"Cannot have more than {MAX_ARGS} parameters.")
                params.append(self._expect(TokenKind.IDENT, "PAR-0052", "Expect parameter name."))
                if not self._match(TokenKind.COMMA):
                    break
        self._expect(TokenKind.RPAREN, "PAR-0053", "Expect ')' after parameters.")
        self._expect(TokenKind.LBRACE, "PAR-0054", f"Expect '{{' before {kind} body.")
        body = self._parse_block_stmts()
        return FuncDecl(name_tok, params, body, span=self._extend_span(start))

    def _parse_let(self) -> LetStmt:
        start = Span(self._last().line, self._last().column, self._last().line, self._last().column)
        name_tok = self._expect(TokenKind.IDENT, "PAR-0060", "Expect variable name.")

        initializer: Optional[Expr] = None
        if self._match(TokenKind.EQ):
            initializer = self._parse_expr()

        self._expect(TokenKind.SEMI, "PAR-0061", "Expect ';' after variable declaration.")
        return LetStmt(name_tok, initializer, span=self._extend_span(start))

    # --- blocks and statements ---

    def _parse_block_stmts(self) -> List[Stmt]:
        """Parse declarations up to the closing brace; the '{' is already consumed."""
        stmts: List[Stmt] = []
        while not self._check(TokenKind.RBRACE) and not self._at_end():
            stmt = self._parse_declaration()
            if stmt is not None:
                stmts.append(stmt)
        self._expect(TokenKind.RBRACE, "PAR-0110", "Expect '}' after block.")
        return stmts

    def _parse_stmt(self) -> Stmt:
        if self._check(TokenKind.IF):
            return self._parse_if_stmt()
        if self._check(TokenKind.WHILE):
            return self._parse_while_stmt()
        if self._check(TokenKind.FOR):
            return self._parse_for_stmt()
        if self._check(TokenKind.RETURN):
            return self._parse_return_stmt()
        if self._check(TokenKind.LBRACE):
            start = self._span_start()
            self._advance()
            stmts = self._parse_block_stmts()
            return Block(stmts, span=self._extend_span(start))
        return self._parse_expr_stmt()

    def _parse_expr_stmt(self) -> ExprStmt:
        start = self._span_start()
        expr = self._parse_expr()
        self._expect(TokenKind.SEMI, "PAR-0120", "Expect ';' after expression.")
        return ExprStmt(expr, span=self._extend_span(start))

    def _parse_if_stmt(self) -> IfStmt:
        start = self._span_start()
        self._advance()  # 'if'
        self._expect(TokenKind.LPAREN, "PAR-0070", "Expect '(' after 'if'.")
        cond = self._parse_expr()
        self._expect(TokenKind.RPAREN, "PAR-0071", "Expect ')' after if condition.")
        then_stmt = self._parse_stmt()
        else_stmt: Optional[Stmt] = None
        if self._match(TokenKind.ELSE):
            else_stmt = self._parse_stmt()
        return IfStmt(cond, then_stmt, else_stmt, span=self._extend_span(start))

    def _parse_while_stmt(self) -> WhileStmt:
        start = self._span_start()
        self._advance()  # 'while'
        self._expect(TokenKind.LPAREN, "PAR-0080", "Expect '(' after 'while'.")
        cond = self._parse_expr()
        self._expect(TokenKind.RPAREN, "PAR-0081", "Expect ')' after condition.")
        body = self._parse_stmt()
        return WhileStmt(cond, body, span=self._extend_span(start))

    def _parse_for_stmt(self) -> Stmt:
        """
        Desugar `for (init; cond; incr) body` into

            { init; while (cond) { body; incr; } }

        A missing condition becomes the literal true; the outer block is
        only built when there is an initializer.
        """
        start = self._span_start()
        self._advance()  # 'for'
        self._expect(TokenKind.LPAREN, "PAR-0090", "Expect '(' after 'for'.")

        # Initialization
        init: Optional[Stmt]
        if self._match(TokenKind.SEMI):
            init = None
        elif self._match(TokenKind.LET):
            init = self._parse_let()
        else:
            init = self._parse_expr_stmt()

        # Condition
        cond: Optional[Expr] = None
        if not self._check(TokenKind.SEMI):
            cond = self._parse_expr()
        self._expect(TokenKind.SEMI, "PAR-0091", "Expect ';' after loop condition.")

        # Post-iteration
        incr: Optional[Expr] = None
        if not self._check(TokenKind.RPAREN):
            incr = self._parse_expr()
        self._expect(TokenKind.RPAREN, "PAR-0092", "Expect ')' after for clauses.")

        body = self._parse_stmt()
        span = self._extend_span(start)

        if incr is not None:
            body = Block([body, ExprStmt(incr, span=incr.span)], span=span)
        if cond is None:
            cond = Literal(True, span=span)
        loop: Stmt = WhileStmt(cond, body, span=span)
        if init is not None:
            loop = Block([init, loop], span=span)
        return loop

    def _parse_return_stmt(self) -> ReturnStmt:
        start = self._span_start()
        keyword = self._advance()
        value: Optional[Expr] = None
        if not self._check(TokenKind.SEMI):
            value = self._parse_expr()
        self._expect(TokenKind.SEMI, "PAR-0100", "Expect ';' after return value.")
        return ReturnStmt(keyword, value, span=self._extend_span(start))

    # --- expressions with precedence ---

    def _parse_expr(self) -> Expr:
        return self._parse_assignment()

    def _parse_assignment(self) -> Expr:
        start = self._span_start()
        expr = self._parse_or_expr()

        if self._match(TokenKind.EQ):
            equals = self._last()
            value = self._parse_assignment()  # right-associative
            if isinstance(expr, Variable):
                return Assign(expr.name, value, span=self._extend_span(start))
            if isinstance(expr, Get):
                return Set(expr.obj, expr.name, value, span=self._extend_span(start))
            # reported, but the parser is not confused: no synchronization
            self._report("PAR-0020", equals, "Invalid assignment target.")

        return expr

    def _parse_or_expr(self) -> Expr:
        start = self._span_start()
        expr = self._parse_and_expr()
        while self._match(TokenKind.OR):
            op_tok = self._last()
            right = self._parse_and_expr()
            expr = Binary(expr, op_tok, right, span=self._extend_span(start))
        return expr

    def _parse_and_expr(self) -> Expr:
        start = self._span_start()
        expr = self._parse_equality_expr()
        while self._match(TokenKind.AND):
            op_tok = self._last()
            right = self._parse_equality_expr()
            expr = Binary(expr, op_tok, right, span=self._extend_span(start))
        return expr

    def _parse_equality_expr(self) -> Expr:
        start = self._span_start()
        expr = self._parse_rel_expr()
        while self._match(TokenKind.EQEQ, TokenKind.NE):
            op_tok = self._last()
            right = self._parse_rel_expr()
            expr = Binary(expr, op_tok, right, span=self._extend_span(start))
        return expr

    def _parse_rel_expr(self) -> Expr:
        start = self._span_start()
        expr = self._parse_add_expr()
        while self._match(TokenKind.LT, TokenKind.GT, TokenKind.LE, TokenKind.GE):
            op_tok = self._last()
            right = self._parse_add_expr()
            expr = Binary(expr, op_tok, right, span=self._extend_span(start))
        return expr

    def _parse_add_expr(self) -> Expr:
        start = self._span_start()
        expr = self._parse_mul_expr()
        while self._match(TokenKind.PLUS, TokenKind.MINUS):
            op_tok = self._last()
            right = self._parse_mul_expr()
            expr = Binary(expr, op_tok, right, span=self._extend_span(start))
        return expr

    def _parse_mul_expr(self) -> Expr:
        start = self._span_start()
        expr = self._parse_unary_expr()
        while self._match(TokenKind.STAR, TokenKind.SLASH):
            op_tok = self._last()
            right = self._parse_unary_expr()
            expr = Binary(expr, op_tok, right, span=self._extend_span(start))
        return expr

    def _parse_unary_expr(self) -> Expr:
        start = self._span_start()
        # prefix unary operators: !, -
        if self._match(TokenKind.BANG, TokenKind.MINUS):
            op_tok = self._last()
            operand = self._parse_unary_expr()
            return Unary(op_tok, operand, span=self._extend_span(start))
        return self._parse_postfix_expr()

    def _parse_postfix_expr(self) -> Expr:
        start = self._span_start()
        expr = self._parse_primary_expr()
        while True:
            if self._match(TokenKind.LPAREN):
                # call
                args: List[Expr] = []
                if not self._check(TokenKind.RPAREN):
                    while True:
                        if len(args) >= MAX_ARGS:
                            self._report("PAR-0030", self._peek(), f"Cannot have more than {MAX_ARGS} arguments.")
                        args.append(self._parse_expr())
                        if not self._match(TokenKind.COMMA):
                            break
                paren = self._expect(TokenKind.RPAREN, "PAR-0130", "Expect ')' after arguments.")
                expr = Call(expr, paren, args, span=self._extend_span(start))
                continue
            if self._match(TokenKind.DOT):
                name_tok = self._expect(TokenKind.IDENT, "PAR-0131", "Expect property name after '.'.")
                expr = Get(expr, name_tok, span=self._extend_span(start))
                continue
            break
        return expr

    def _parse_primary_expr(self) -> Expr:
        start = self._span_start()
        tok = self._peek()

        # Literals
        if self._match(TokenKind.FALSE):
            return Literal(False, span=self._extend_span(start))
        if self._match(TokenKind.TRUE):
            return Literal(True, span=self._extend_span(start))
        if self._match(TokenKind.NIL):
            return Literal(None, span=self._extend_span(start))
        if self._match(TokenKind.NUMBER, TokenKind.STRING):
            return Literal(tok.literal, span=self._extend_span(start))

        # Parenthesized expression
        if self._match(TokenKind.LPAREN):
            inner = self._parse_expr()
            self._expect(TokenKind.RPAREN, "PAR-0140", "Expect ')' after expression.")
            return Grouping(inner, span=self._extend_span(start))

        if self._match(TokenKind.IDENT):
            return Variable(tok, span=self._extend_span(start))
        if self._match(TokenKind.THIS):
            return This(tok, span=self._extend_span(start))
        if self._match(TokenKind.SUPER):
            self._expect(TokenKind.DOT, "PAR-0141", "Expect '.' after 'super'.")
            method = self._expect(TokenKind.IDENT, "PAR-0142", "Expect superclass method name.")
            return Super(tok, method, span=self._extend_span(start))

        raise ParseError("PAR-0010", "Expect expression.", tok)
