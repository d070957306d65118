#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from __future__ import annotations

from enum import Enum, auto
from typing import Dict, List, Optional, Tuple

from parts_ast import (
    Expr, Literal, Grouping, Unary, Binary, Variable, Assign, Call, Get, Set, This, Super, Stmt, ExprStmt, LetStmt,
    Block, IfStmt, WhileStmt, FuncDecl, ReturnStmt, ClassDecl)
from parts_diagnostics import Diagnostics, Phase
from parts_internal_error import InternalInterpreterError
from parts_lexer import Token


class FunctionKind(Enum):
    NONE = auto()
    FUNCTION = auto()
    INITIALIZER = auto()
    METHOD = auto()


class ClassKind(Enum):
    NONE = auto()
    CLASS = auto()
    SUBCLASS = auto()


class DistanceTable:
    """
    Static scope distances keyed by expression node identity.

    A node with no entry refers to a global. The table keeps a reference to
    every recorded node so that an id() is never reused by another node while
    the table is alive.
    """

    def __init__(self) -> None:
        self._depths: Dict[int, Tuple[Expr, int]] = {}

    def record(self, expr: Expr, depth: int) -> None:
        self._depths[id(expr)] = (expr, depth)

    def get(self, expr: Expr) -> Optional[int]:
        entry = self._depths.get(id(expr))
        return None if entry is None else entry[1]

    def update(self, other: DistanceTable) -> None:
        self._depths.update(other._depths)

    def __contains__(self, expr: Expr) -> bool:
        return id(expr) in self._depths

    def __len__(self) -> int:
        return len(self._depths)


class Resolver:
    """
    Static pass computing, for every local variable reference, how many
    scopes separate it from its declaration.

    Public API:

        resolver = Resolver(diagnostics)
        distances = resolver.resolve(statements)

    Design choices:

    - Globals are not tracked: the scope stack is empty at top level, and a
      name not found on the stack is left unrecorded.
    - Each scope maps a name to a "ready" flag; False means the name is
      declared but its initializer is still being resolved.
    - A method body sits two scopes (one without a superclass) below the
      scope holding the class name: 'super' (subclasses only), then 'this',
      then the parameters.
    - Errors are reported and resolution carries on.
    """

    def __init__(self, diagnostics: Optional[Diagnostics] = None) -> None:
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.scopes: List[Dict[str, bool]] = []
        self.distances = DistanceTable()
        self.current_function = FunctionKind.NONE
        self.current_class = ClassKind.NONE

    # --- public API ---

    def resolve(self, statements: List[Stmt]) -> DistanceTable:
        for stmt in statements:
            depth = len(self.scopes)
            function_kind, class_kind = self.current_function, self.current_class
            try:
                self._visit_stmt(stmt)
            except RecursionError:
                del self.scopes[depth:]
                self.current_function, self.current_class = function_kind, class_kind
                span = stmt.span
                self.diagnostics.error(
                    Phase.RESOLUTION, "RES-0060", "Expression too deeply nested.",
                    line=span.start_line if span is not None else None,
                    column=span.start_column if span is not None else None,
                )
        return self.distances

    # --- scopes ---

    def _begin_scope(self) -> None:
        self.scopes.append({})

    def _end_scope(self) -> None:
        self.scopes.pop()

    def _declare(self, name: Token) -> None:
        if not self.scopes:
            return
        scope = self.scopes[-1]
        if name.text in scope:
            self._error("RES-0010", name, "Variable with this name already declared in this scope.")
        scope[name.text] = False

    def _define(self, name: Token) -> None:
        if not self.scopes:
            return
        self.scopes[-1][name.text] = True

    def _resolve_local(self, expr: Expr, name: Token) -> None:
        for depth, scope in enumerate(reversed(self.scopes)):
            if name.text in scope:
                self.distances.record(expr, depth)
                return
        # Not found: global.

    def _error(self, code: str, token: Token, message: str) -> None:
        self.diagnostics.token_error(Phase.RESOLUTION, code, token, message)

    # --- statements ---

    def _visit_stmts(self, stmts: List[Stmt]) -> None:
        for stmt in stmts:
            self._visit_stmt(stmt)

    def _visit_stmt(self, stmt: Stmt) -> None:
        if isinstance(stmt, ExprStmt):
            self._visit_expr(stmt.expr)
            return

        if isinstance(stmt, LetStmt):
            self._declare(stmt.name)
            if stmt.initializer is not None:
                self._visit_expr(stmt.initializer)
            self._define(stmt.name)
            return

        if isinstance(stmt, Block):
            self._begin_scope()
            self._visit_stmts(stmt.stmts)
            self._end_scope()
            return

        if isinstance(stmt, IfStmt):
            self._visit_expr(stmt.cond)
            self._visit_stmt(stmt.then_stmt)
            if stmt.else_stmt is not None:
                self._visit_stmt(stmt.else_stmt)
            return

        if isinstance(stmt, WhileStmt):
            self._visit_expr(stmt.cond)
            self._visit_stmt(stmt.body)
            return

        if isinstance(stmt, FuncDecl):
            # Defined before the body so the function can call itself.
            self._declare(stmt.name)
            self._define(stmt.name)
            self._resolve_function(stmt, FunctionKind.FUNCTION)
            return

        if isinstance(stmt, ReturnStmt):
            if self.current_function is FunctionKind.NONE:
                self._error("RES-0030", stmt.keyword, "Cannot return from top-level code.")
            if stmt.value is not None:
                if self.current_function is FunctionKind.INITIALIZER:
                    self._error("RES-0031", stmt.keyword, "Cannot return a value from an initializer.")
                self._visit_expr(stmt.value)
            return

        if isinstance(stmt, ClassDecl):
            self._visit_class(stmt)
            return

        raise InternalInterpreterError(f"[ICE-0101] resolver: unexpected statement node {type(stmt).__name__}")

    def _visit_class(self, stmt: ClassDecl) -> None:
        enclosing_class = self.current_class
        self.current_class = ClassKind.CLASS

        self._declare(stmt.name)
        self._define(stmt.name)

        if stmt.superclass is not None:
            if stmt.superclass.name.text == stmt.name.text:
                self._error("RES-0040", stmt.superclass.name, "A class cannot inherit from itself.")
            self.current_class = ClassKind.SUBCLASS
            self._visit_expr(stmt.superclass)

            self._begin_scope()
            self.scopes[-1]["super"] = True

        self._begin_scope()
        self.scopes[-1]["this"] = True

        for method in stmt.methods:
            kind = FunctionKind.INITIALIZER if method.name.text == "init" else FunctionKind.METHOD
            self._resolve_function(method, kind)

        self._end_scope()
        if stmt.superclass is not None:
            self._end_scope()

        self.current_class = enclosing_class

    def _resolve_function(self, func: FuncDecl, kind: FunctionKind) -> None:
        enclosing_function = self.current_function
        self.current_function = kind

        self._begin_scope()
        for param in func.params:
            self._declare(param)
            self._define(param)
        # The body shares the parameter scope.
        self._visit_stmts(func.body)
        self._end_scope()

        self.current_function = enclosing_function

    # --- expressions ---

    def _visit_expr(self, expr: Expr) -> None:
        if isinstance(expr, Variable):
            if self.scopes and self.scopes[-1].get(expr.name.text) is False:
                self._error("RES-0020", expr.name, "Cannot read local variable in its own initializer.")
            self._resolve_local(expr, expr.name)
            return

        if isinstance(expr, Assign):
            self._visit_expr(expr.value)
            self._resolve_local(expr, expr.name)
            return

        if isinstance(expr, Binary):
            self._visit_expr(expr.left)
            self._visit_expr(expr.right)
            return

        if isinstance(expr, Unary):
            self._visit_expr(expr.right)
            return

        if isinstance(expr, Grouping):
            self._visit_expr(expr.inner)
            return

        if isinstance(expr, Literal):
            return

        if isinstance(expr, Call):
            self._visit_expr(expr.callee)
            for arg in expr.args:
                self._visit_expr(arg)
            return

        if isinstance(expr, Get):
            # Property names are looked up dynamically.
            self._visit_expr(expr.obj)
            return

        if isinstance(expr, Set):
            self._visit_expr(expr.value)
            self._visit_expr(expr.obj)
            return

        if isinstance(expr, This):
            if self.current_class is ClassKind.NONE:
                self._error("RES-0050", expr.keyword, "Cannot use 'this' outside of a class.")
                return
            self._resolve_local(expr, expr.keyword)
            return

        if isinstance(expr, Super):
            if self.current_class is ClassKind.NONE:
                self._error("RES-0051", expr.keyword, "Cannot use 'super' outside of a class.")
            elif self.current_class is not ClassKind.SUBCLASS:
                self._error("RES-0052", expr.keyword, "Cannot use 'super' in a class with no superclass.")
            self._resolve_local(expr, expr.keyword)
            return

        raise InternalInterpreterError(f"[ICE-0102] resolver: unexpected expression node {type(expr).__name__}")
