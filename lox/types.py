"""Runtime object model for Lox.

Lox values map onto Python values as follows: ``nil`` is ``None``,
booleans are ``bool``, every number is a ``float`` and strings are ``str``.
Callables (user functions, classes and natives) and instances are the
classes defined here. This module also holds the display rules used by
``print`` and string concatenation.
"""

from __future__ import annotations

import math
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from .ast import FuncDecl, Lambda
from .environment import Environment
from .errors import LoxRuntimeError, ReturnSignal
from .tokens import Token


class LoxCallable:
    """Anything that can appear in the callee position of a call."""

    def arity(self) -> int:
        raise NotImplementedError

    def call(self, interpreter: Any, arguments: List[Any]) -> Any:
        raise NotImplementedError


class LoxFunction(LoxCallable):
    """A user-defined function, method, getter or lambda plus its closure.

    The closure is the environment that was active when the declaration
    was evaluated. It is shared, not copied, so later assignments to
    captured variables are visible to the function.
    """
    def __init__(self, declaration: Union[FuncDecl, Lambda], closure: Environment,
                 is_initializer: bool = False):
        self.declaration = declaration
        self.closure = closure
        self.is_initializer = is_initializer

    @property
    def name(self) -> Optional[str]:
        if isinstance(self.declaration, FuncDecl):
            return self.declaration.name.lexeme
        return None

    @property
    def params(self) -> List[Token]:
        return self.declaration.params or []

    @property
    def is_lambda(self) -> bool:
        return isinstance(self.declaration, Lambda)

    @property
    def is_getter(self) -> bool:
        return isinstance(self.declaration, FuncDecl) and self.declaration.is_getter

    def bind(self, instance: 'LoxInstance') -> 'LoxFunction':
        env = Environment(self.closure)
        env.define('this', instance)
        return LoxFunction(self.declaration, env, self.is_initializer)

    def arity(self) -> int:
        return len(self.params)

    def call(self, interpreter: Any, arguments: List[Any]) -> Any:
        env = Environment(self.closure)
        for param, arg in zip(self.params, arguments):
            env.define(param.lexeme, arg)
        result = interpreter.execute_block(self.declaration.body, env)
        if self.is_initializer:
            return self.closure.get_name_at(0, 'this')
        if isinstance(result, ReturnSignal):
            return result.value
        return None

    def __repr__(self) -> str:
        if self.is_lambda:
            return '<fn>'
        return f"<fn {self.name}>"


class LoxClass(LoxCallable):
    """A class value: callable to construct instances, and a holder of class methods."""
    def __init__(self, name: str, superclass: Optional['LoxClass'],
                 methods: Dict[str, LoxFunction], class_methods: Dict[str, LoxFunction]):
        self.name = name
        self.superclass = superclass
        self.methods = methods
        self.class_methods = class_methods

    def find_method(self, name: str) -> Optional[LoxFunction]:
        klass: Optional[LoxClass] = self
        while klass is not None:
            if name in klass.methods:
                return klass.methods[name]
            klass = klass.superclass
        return None

    def find_class_method(self, name: str) -> Optional[LoxFunction]:
        klass: Optional[LoxClass] = self
        while klass is not None:
            if name in klass.class_methods:
                return klass.class_methods[name]
            klass = klass.superclass
        return None

    def get(self, name: Token, interpreter: Any) -> Any:
        method = self.find_class_method(name.lexeme)
        if method is None:
            raise LoxRuntimeError(name, f"Undefined property '{name.lexeme}'.")
        if method.is_getter:
            return method.call(interpreter, [])
        return method

    def arity(self) -> int:
        initializer = self.find_method('init')
        if initializer is None:
            return 0
        return initializer.arity()

    def call(self, interpreter: Any, arguments: List[Any]) -> Any:
        instance = LoxInstance(self)
        initializer = self.find_method('init')
        if initializer is not None:
            initializer.bind(instance).call(interpreter, arguments)
        return instance

    def __repr__(self) -> str:
        return f"<class {self.name}>"


class LoxInstance:
    def __init__(self, klass: LoxClass):
        self.klass = klass
        self.fields: Dict[str, Any] = {}

    def get(self, name: Token, interpreter: Any) -> Any:
        if name.lexeme in self.fields:
            return self.fields[name.lexeme]
        method = self.klass.find_method(name.lexeme)
        if method is None:
            raise LoxRuntimeError(name, f"Undefined property '{name.lexeme}'.")
        bound = method.bind(self)
        if bound.is_getter:
            return bound.call(interpreter, [])
        return bound

    def set(self, name: Token, value: Any):
        self.fields[name.lexeme] = value

    def __repr__(self) -> str:
        return f"<{self.klass.name} instance>"


def type_name(value: Any) -> str:
    """Return the Lox type name of a runtime value."""
    if value is None:
        return 'nil'
    if isinstance(value, bool):
        return 'boolean'
    if isinstance(value, float):
        return 'number'
    if isinstance(value, str):
        return 'string'
    if isinstance(value, LoxClass):
        return 'class'
    if isinstance(value, LoxCallable):
        return 'function'
    if isinstance(value, LoxInstance):
        return 'instance'
    return type(value).__name__


def format_number(value: float) -> str:
    """Spell a number without an exponent; integral values drop the '.0'."""
    if not math.isfinite(value):
        return repr(value)
    text = format(Decimal(repr(value)), 'f')
    if text.endswith('.0'):
        text = text[:-2]
    return text


def to_string(value: Any) -> str:
    """Convert a Lox value to the text shown by ``print``."""
    if value is None:
        return 'nil'
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float):
        return format_number(value)
    if isinstance(value, str):
        return value
    return repr(value)
