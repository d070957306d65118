#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

import math
import time
from typing import Callable, Dict, List, Optional

from parts_ast import (
    Expr, Literal, Grouping, Unary, Binary, Variable, Assign, Call, Get, Set, This, Super, Stmt, ExprStmt, LetStmt,
    Block, IfStmt, WhileStmt, FuncDecl, ReturnStmt, ClassDecl)
from parts_diagnostics import Diagnostics, Phase, diag_from_token
from parts_internal_error import InternalInterpreterError
from parts_lexer import Token, TokenKind
from parts_resolver import DistanceTable
from parts_runtime import (
    COMPLETED, Outcome, Returning, Environment, PartsCallable, NativeFunction, PartsFunction, PartsClass,
    PartsInstance, PartsRuntimeError)


# ==========================
# Value helpers
# ==========================

def is_truthy(value: object) -> bool:
    """Only nil and false are falsy."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True


def is_equal(a: object, b: object) -> bool:
    if a is None and b is None:
        return True
    if a is None or b is None:
        return False
    # bool is an int subclass in Python; never let true == 1 hold
    if type(a) is not type(b):
        return False
    return a == b


def stringify(value: object) -> str:
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        text = repr(value)
        if text.endswith(".0"):
            text = text[:-2]
        return text
    return str(value)


def _divide(left: float, right: float) -> float:
    # IEEE-754 semantics instead of ZeroDivisionError
    if right != 0.0:
        return left / right
    if left == 0.0 or math.isnan(left):
        return math.nan
    return math.copysign(math.inf, left) * math.copysign(1.0, right)


# ==========================
# Interpreter
# ==========================

class Interpreter:
    """
    Tree-walking evaluator.

    The global environment lives as long as the interpreter, so successive
    calls to interpret() (one per REPL line, say) see earlier definitions.
    Each call brings its own diagnostics context and distance table.
    """

    def __init__(self, output: Optional[Callable[[str], None]] = None, clock: Callable[[], float] = time.time) -> None:
        self.output = output if output is not None else print
        self.globals = Environment()
        self.environment = self.globals
        self.distances = DistanceTable()

        self.globals.define("clock", NativeFunction("clock", 0, clock))
        self.globals.define("print", NativeFunction("print", 1, self._native_print))

    def _native_print(self, value: object) -> None:
        self.output(stringify(value))
        return None

    # --- public API ---

    def interpret(self, statements: List[Stmt], distances: DistanceTable,
                  diagnostics: Optional[Diagnostics] = None) -> bool:
        """
        Execute statements in order. The first runtime error is reported and
        stops the run. Returns True when every statement completed.
        """
        diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.distances.update(distances)
        current: Optional[Stmt] = None
        try:
            for stmt in statements:
                current = stmt
                self._execute(stmt)
        except PartsRuntimeError as e:
            # leave the global scope current for the next run
            self.environment = self.globals
            diagnostics.report(diag_from_token("error", Phase.RUNTIME, e.code, e.message, token=e.token))
            return False
        except RecursionError:
            # deep nesting outside any call; the call site is unknown
            self.environment = self.globals
            span = current.span if current is not None else None
            diagnostics.error(Phase.RUNTIME, "RUN-0060", "Stack overflow.",
                              line=span.start_line if span is not None else None)
            return False
        return True

    def execute_block(self, statements: List[Stmt], environment: Environment) -> Outcome:
        previous = self.environment
        try:
            self.environment = environment
            for stmt in statements:
                outcome = self._execute(stmt)
                if isinstance(outcome, Returning):
                    return outcome
            return COMPLETED
        finally:
            self.environment = previous

    # --- statements ---

    def _execute(self, stmt: Stmt) -> Outcome:
        if isinstance(stmt, ExprStmt):
            self._evaluate(stmt.expr)
            return COMPLETED

        if isinstance(stmt, LetStmt):
            value = None
            if stmt.initializer is not None:
                value = self._evaluate(stmt.initializer)
            self.environment.define(stmt.name.text, value)
            return COMPLETED

        if isinstance(stmt, Block):
            return self.execute_block(stmt.stmts, Environment(self.environment))

        if isinstance(stmt, IfStmt):
            if is_truthy(self._evaluate(stmt.cond)):
                return self._execute(stmt.then_stmt)
            if stmt.else_stmt is not None:
                return self._execute(stmt.else_stmt)
            return COMPLETED

        if isinstance(stmt, WhileStmt):
            while is_truthy(self._evaluate(stmt.cond)):
                outcome = self._execute(stmt.body)
                if isinstance(outcome, Returning):
                    return outcome
            return COMPLETED

        if isinstance(stmt, FuncDecl):
            self.environment.define(stmt.name.text, PartsFunction(stmt, self.environment))
            return COMPLETED

        if isinstance(stmt, ReturnStmt):
            value = None
            if stmt.value is not None:
                value = self._evaluate(stmt.value)
            return Returning(value)

        if isinstance(stmt, ClassDecl):
            self._execute_class(stmt)
            return COMPLETED

        raise InternalInterpreterError(f"[ICE-0301] interpreter: unexpected statement node {type(stmt).__name__}")

    def _execute_class(self, stmt: ClassDecl) -> None:
        superclass: Optional[PartsClass] = None
        if stmt.superclass is not None:
            value = self._evaluate(stmt.superclass)
            if not isinstance(value, PartsClass):
                raise PartsRuntimeError(stmt.superclass.name, "Superclass must be a class.", "RUN-0050")
            superclass = value

        self.environment.define(stmt.name.text, None)

        if superclass is not None:
            self.environment = Environment(self.environment)
            self.environment.define("super", superclass)

        methods: Dict[str, PartsFunction] = {}
        for method in stmt.methods:
            methods[method.name.text] = PartsFunction(method, self.environment, method.name.text == "init")

        klass = PartsClass(stmt.name.text, superclass, methods)

        if superclass is not None:
            self.environment = self.environment.enclosing

        self.environment.assign(stmt.name, klass)

    # --- expressions ---

    def _evaluate(self, expr: Expr) -> object:
        if isinstance(expr, Literal):
            return expr.value

        if isinstance(expr, Grouping):
            return self._evaluate(expr.inner)

        if isinstance(expr, Unary):
            right = self._evaluate(expr.right)
            if expr.op.kind is TokenKind.MINUS:
                self._check_number_operand(expr.op, right)
                return -right
            if expr.op.kind is TokenKind.BANG:
                return not is_truthy(right)
            raise InternalInterpreterError(f"[ICE-0303] interpreter: unexpected unary operator {expr.op.text!r}")

        if isinstance(expr, Binary):
            return self._evaluate_binary(expr)

        if isinstance(expr, Variable):
            return self._look_up_variable(expr.name, expr)

        if isinstance(expr, Assign):
            value = self._evaluate(expr.value)
            distance = self.distances.get(expr)
            if distance is not None:
                self.environment.assign_at(distance, expr.name, value)
            else:
                self.globals.assign(expr.name, value)
            return value

        if isinstance(expr, Call):
            return self._evaluate_call(expr)

        if isinstance(expr, Get):
            obj = self._evaluate(expr.obj)
            if isinstance(obj, PartsInstance):
                return obj.get(expr.name)
            raise PartsRuntimeError(expr.name, "Only instances have properties.", "RUN-0040")

        if isinstance(expr, Set):
            obj = self._evaluate(expr.obj)
            if not isinstance(obj, PartsInstance):
                raise PartsRuntimeError(expr.name, "Only instances have fields.", "RUN-0041")
            value = self._evaluate(expr.value)
            obj.set(expr.name, value)
            return value

        if isinstance(expr, This):
            return self._look_up_variable(expr.keyword, expr)

        if isinstance(expr, Super):
            return self._evaluate_super(expr)

        raise InternalInterpreterError(f"[ICE-0302] interpreter: unexpected expression node {type(expr).__name__}")

    def _evaluate_binary(self, expr: Binary) -> object:
        kind = expr.op.kind

        # short-circuit: the result is the deciding operand itself
        if kind is TokenKind.OR:
            left = self._evaluate(expr.left)
            if is_truthy(left):
                return left
            return self._evaluate(expr.right)
        if kind is TokenKind.AND:
            left = self._evaluate(expr.left)
            if not is_truthy(left):
                return left
            return self._evaluate(expr.right)

        left = self._evaluate(expr.left)
        right = self._evaluate(expr.right)

        if kind is TokenKind.EQEQ:
            return is_equal(left, right)
        if kind is TokenKind.NE:
            return not is_equal(left, right)

        if kind is TokenKind.PLUS:
            if isinstance(left, float) and isinstance(right, float):
                return left + right
            if isinstance(left, str) and isinstance(right, str):
                return left + right
            raise PartsRuntimeError(expr.op, "Operands must be two numbers or two strings.", "RUN-0012")

        self._check_number_operands(expr.op, left, right)

        if kind is TokenKind.MINUS:
            return left - right
        if kind is TokenKind.STAR:
            return left * right
        if kind is TokenKind.SLASH:
            return _divide(left, right)
        if kind is TokenKind.GT:
            return left > right
        if kind is TokenKind.GE:
            return left >= right
        if kind is TokenKind.LT:
            return left < right
        if kind is TokenKind.LE:
            return left <= right

        raise InternalInterpreterError(f"[ICE-0303] interpreter: unexpected binary operator {expr.op.text!r}")

    def _evaluate_call(self, expr: Call) -> object:
        callee = self._evaluate(expr.callee)
        arguments = [self._evaluate(arg) for arg in expr.args]

        if not isinstance(callee, PartsCallable):
            raise PartsRuntimeError(expr.paren, "Can only call functions and classes.", "RUN-0030")
        if len(arguments) != callee.arity():
            raise PartsRuntimeError(
                expr.paren,
                f"Expected {callee.arity()} arguments but got {len(arguments)}.",
                "RUN-0031",
            )
        try:
            return callee.call(self, arguments)
        except RecursionError:
            # host stack exhausted by runaway PartS recursion
            raise PartsRuntimeError(expr.paren, "Stack overflow.", "RUN-0060") from None

    def _evaluate_super(self, expr: Super) -> object:
        distance = self.distances.get(expr)
        if distance is None:
            raise InternalInterpreterError(f"[ICE-0304] interpreter: 'super' at line {expr.keyword.line} was not resolved")
        superclass = self.environment.get_at(distance, "super")
        # 'this' is always one scope inside 'super'
        instance = self.environment.get_at(distance - 1, "this")

        method = superclass.find_method(expr.method.text)
        if method is None:
            raise PartsRuntimeError(expr.method, f"Undefined property '{expr.method.text}'.", "RUN-0042")
        return method.bind(instance)

    def _look_up_variable(self, name: Token, expr: Expr) -> object:
        distance = self.distances.get(expr)
        if distance is not None:
            return self.environment.get_at(distance, name.text)
        return self.globals.get(name)

    # --- operand checks ---

    @staticmethod
    def _check_number_operand(op: Token, operand: object) -> None:
        if isinstance(operand, float):
            return
        raise PartsRuntimeError(op, "Operand must be a number.", "RUN-0010")

    @staticmethod
    def _check_number_operands(op: Token, left: object, right: object) -> None:
        if isinstance(left, float) and isinstance(right, float):
            return
        raise PartsRuntimeError(op, "Operands must be numbers.", "RUN-0011")
