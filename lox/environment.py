from typing import Any, Dict, Optional

from .errors import LoxRuntimeError
from .tokens import Token


class _Uninitialized:
    """Marks a variable declared without an initializer."""
    def __repr__(self) -> str:
        return '<uninitialized>'


UNINITIALIZED = _Uninitialized()


class Environment:
    """Represents a scope environment mapping identifiers to values."""
    def __init__(self, enclosing: Optional['Environment'] = None):
        self.enclosing = enclosing
        self.values: Dict[str, Any] = {}

    def define(self, name: str, value: Any = UNINITIALIZED):
        # redefinition is allowed; the resolver rejects it for locals
        self.values[name] = value

    def get(self, name: Token) -> Any:
        env: Optional[Environment] = self
        while env is not None:
            if name.lexeme in env.values:
                return self._initialized(name, env.values[name.lexeme])
            env = env.enclosing
        raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

    def assign(self, name: Token, value: Any):
        env: Optional[Environment] = self
        while env is not None:
            if name.lexeme in env.values:
                env.values[name.lexeme] = value
                return
            env = env.enclosing
        raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

    def ancestor(self, distance: int) -> 'Environment':
        env = self
        for _ in range(distance):
            env = env.enclosing
        return env

    def get_at(self, distance: int, name: Token) -> Any:
        values = self.ancestor(distance).values
        if name.lexeme not in values:
            raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")
        return self._initialized(name, values[name.lexeme])

    def get_name_at(self, distance: int, name: str) -> Any:
        """Read a synthetic binding such as 'this' or 'super'."""
        return self.ancestor(distance).values[name]

    def assign_at(self, distance: int, name: Token, value: Any):
        self.ancestor(distance).values[name.lexeme] = value

    @staticmethod
    def _initialized(name: Token, value: Any) -> Any:
        if value is UNINITIALIZED:
            raise LoxRuntimeError(name, f"Variable '{name.lexeme}' is not initialized.")
        return value
