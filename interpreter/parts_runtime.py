#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

"""
Runtime value model: environments, callables, classes and instances.

Values are plain Python objects:

    nil      -> None
    booleans -> bool
    numbers  -> float
    strings  -> str
    others   -> the classes below

Environments, closures, classes and instances reference each other freely
(a closure may be stored in the very environment it captured); the host
garbage collector reclaims such cycles, so no ownership bookkeeping is done
here.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Union

from parts_ast import FuncDecl
from parts_internal_error import InternalInterpreterError
from parts_lexer import Token

if TYPE_CHECKING:
    from parts_interpreter import Interpreter


class PartsRuntimeError(Exception):
    """A user-facing runtime error, located at the offending token."""

    def __init__(self, token: Token, message: str, code: str):
        super().__init__(message)
        self.token = token
        self.message = message
        self.code = code


# ==========================
# Statement outcomes
# ==========================

class Completed:
    """Normal completion of a statement."""

    def __repr__(self) -> str:
        return "COMPLETED"


COMPLETED = Completed()


@dataclass(frozen=True)
class Returning:
    """A `return` unwinding towards the enclosing call boundary."""
    value: object


Outcome = Union[Completed, Returning]


# ==========================
# Environments
# ==========================

class Environment:
    """
    One lexical scope: a name -> value mapping plus a link to the enclosing
    scope. The global environment is the only one without an enclosing link.
    """

    def __init__(self, enclosing: Optional[Environment] = None) -> None:
        self.enclosing = enclosing
        self.values: Dict[str, object] = {}

    def define(self, name: str, value: object) -> None:
        # Redefinition is allowed; the resolver rejects it for locals.
        self.values[name] = value

    def get(self, name: Token) -> object:
        if name.text in self.values:
            return self.values[name.text]
        if self.enclosing is not None:
            return self.enclosing.get(name)
        raise PartsRuntimeError(name, f"Undefined variable '{name.text}'.", "RUN-0020")

    def assign(self, name: Token, value: object) -> None:
        if name.text in self.values:
            self.values[name.text] = value
            return
        if self.enclosing is not None:
            self.enclosing.assign(name, value)
            return
        raise PartsRuntimeError(name, f"Undefined variable '{name.text}'.", "RUN-0020")

    def ancestor(self, distance: int) -> Environment:
        env: Optional[Environment] = self
        for _ in range(distance):
            env = env.enclosing if env is not None else None
        if env is None:
            raise InternalInterpreterError(f"[ICE-0201] environment chain shorter than resolved distance {distance}")
        return env

    def get_at(self, distance: int, name: str) -> object:
        values = self.ancestor(distance).values
        if name not in values:
            raise InternalInterpreterError(f"[ICE-0202] '{name}' not found at resolved distance {distance}")
        return values[name]

    def assign_at(self, distance: int, name: Token, value: object) -> None:
        self.ancestor(distance).values[name.text] = value


# ==========================
# Callables
# ==========================

class PartsCallable(ABC):
    """Anything that can appear in callee position."""

    @abstractmethod
    def arity(self) -> int:
        ...

    @abstractmethod
    def call(self, interpreter: Interpreter, arguments: List[object]) -> object:
        ...


class NativeFunction(PartsCallable):
    """A built-in whose body is supplied by the host."""

    def __init__(self, name: str, arity: int, fn: Callable[..., object]) -> None:
        self.name = name
        self._arity = arity
        self.fn = fn

    def arity(self) -> int:
        return self._arity

    def call(self, interpreter: Interpreter, arguments: List[object]) -> object:
        return self.fn(*arguments)

    def __str__(self) -> str:
        return "<native fn>"


class PartsFunction(PartsCallable):
    """A user function together with the environment it was declared in."""

    def __init__(self, declaration: FuncDecl, closure: Environment, is_initializer: bool = False) -> None:
        self.declaration = declaration
        self.closure = closure
        self.is_initializer = is_initializer

    def arity(self) -> int:
        return len(self.declaration.params)

    def call(self, interpreter: Interpreter, arguments: List[object]) -> object:
        # Chained to the closure, never to the caller's environment.
        environment = Environment(self.closure)
        for param, arg in zip(self.declaration.params, arguments):
            environment.define(param.text, arg)

        outcome = interpreter.execute_block(self.declaration.body, environment)

        if self.is_initializer:
            return self.closure.get_at(0, "this")
        if isinstance(outcome, Returning):
            return outcome.value
        return None

    def bind(self, instance: PartsInstance) -> PartsFunction:
        environment = Environment(self.closure)
        environment.define("this", instance)
        return PartsFunction(self.declaration, environment, self.is_initializer)

    def __str__(self) -> str:
        return f"<fn {self.declaration.name.text}>"


class PartsClass(PartsCallable):
    def __init__(self, name: str, superclass: Optional[PartsClass], methods: Dict[str, PartsFunction]) -> None:
        self.name = name
        self.superclass = superclass
        self.methods = methods

    def find_method(self, name: str) -> Optional[PartsFunction]:
        klass: Optional[PartsClass] = self
        while klass is not None:
            method = klass.methods.get(name)
            if method is not None:
                return method
            klass = klass.superclass
        return None

    def arity(self) -> int:
        initializer = self.find_method("init")
        return 0 if initializer is None else initializer.arity()

    def call(self, interpreter: Interpreter, arguments: List[object]) -> object:
        instance = PartsInstance(self)
        initializer = self.find_method("init")
        if initializer is not None:
            initializer.bind(instance).call(interpreter, arguments)
        return instance

    def __str__(self) -> str:
        return self.name


class PartsInstance:
    def __init__(self, klass: PartsClass) -> None:
        self.klass = klass
        self.fields: Dict[str, object] = {}

    def get(self, name: Token) -> object:
        if name.text in self.fields:
            return self.fields[name.text]

        method = self.klass.find_method(name.text)
        if method is not None:
            return method.bind(self)

        raise PartsRuntimeError(name, f"Undefined property '{name.text}'.", "RUN-0042")

    def set(self, name: Token, value: object) -> None:
        self.fields[name.text] = value

    def __str__(self) -> str:
        return f"{self.klass.name} instance"
