#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from dataclasses import dataclass, field
from typing import List, Optional

from parts_lexer import Token


# ==========================
# AST definitions
# ==========================

# Nodes are frozen. Passes that attach data to a node key it by id(node),
# never by value: two structurally equal nodes are still different sites.


@dataclass(frozen=True)
class Span:
    start_line: int
    start_column: int
    end_line: int
    end_column: int


@dataclass(frozen=True)
class Node:
    span: Optional[Span] = field(default=None, repr=False, compare=False, kw_only=True)


# --- expressions ---

@dataclass(frozen=True)
class Expr(Node):
    pass


@dataclass(frozen=True)
class Literal(Expr):
    value: object  # float, str, bool or None


@dataclass(frozen=True)
class Grouping(Expr):
    inner: Expr


@dataclass(frozen=True)
class Unary(Expr):
    op: Token
    right: Expr


@dataclass(frozen=True)
class Binary(Expr):
    """Arithmetic, comparison, equality and the short-circuit 'and' / 'or'."""
    left: Expr
    op: Token
    right: Expr


@dataclass(frozen=True)
class Variable(Expr):
    name: Token


@dataclass(frozen=True)
class Assign(Expr):
    name: Token
    value: Expr


@dataclass(frozen=True)
class Call(Expr):
    callee: Expr
    paren: Token  # closing ')', used to locate call errors
    args: List[Expr]


@dataclass(frozen=True)
class Get(Expr):
    obj: Expr
    name: Token


@dataclass(frozen=True)
class Set(Expr):
    obj: Expr
    name: Token
    value: Expr


@dataclass(frozen=True)
class This(Expr):
    keyword: Token


@dataclass(frozen=True)
class Super(Expr):
    keyword: Token
    method: Token


# --- statements ---

@dataclass(frozen=True)
class Stmt(Node):
    pass


@dataclass(frozen=True)
class ExprStmt(Stmt):
    expr: Expr


@dataclass(frozen=True)
class LetStmt(Stmt):
    name: Token
    initializer: Optional[Expr]


@dataclass(frozen=True)
class Block(Stmt):
    stmts: List[Stmt]


@dataclass(frozen=True)
class IfStmt(Stmt):
    cond: Expr
    then_stmt: Stmt
    else_stmt: Optional[Stmt]


@dataclass(frozen=True)
class WhileStmt(Stmt):
    cond: Expr
    body: Stmt


@dataclass(frozen=True)
class FuncDecl(Stmt):
    name: Token
    params: List[Token]
    body: List[Stmt]


@dataclass(frozen=True)
class ReturnStmt(Stmt):
    keyword: Token
    value: Optional[Expr]


@dataclass(frozen=True)
class ClassDecl(Stmt):
    name: Token
    superclass: Optional[Variable]
    methods: List[FuncDecl]
