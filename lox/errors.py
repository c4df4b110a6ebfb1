"""Diagnostics, exceptions and control signals shared by the pipeline."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Any

from .tokens import Token, TokenType


@dataclass(frozen=True)
class Diagnostic:
    """A static error reported by the scanner, parser or resolver."""
    line: int
    where: str
    message: str

    @classmethod
    def at_token(cls, token: Token, message: str) -> 'Diagnostic':
        if token.type == TokenType.EOF:
            return cls(token.line, ' at end', message)
        return cls(token.line, f" at '{token.lexeme}'", message)

    def __str__(self) -> str:
        return f"[line {self.line}] Error{self.where}: {self.message}"


@dataclass(frozen=True)
class RuntimeDiagnostic(Diagnostic):
    """The diagnostic produced when a runtime error stops execution."""

    def __str__(self) -> str:
        return f"{self.message}\n[line {self.line}]"


class LoxError(Exception):
    """Base class for errors raised inside the Lox pipeline."""


class ParseError(LoxError):
    """Raised by the parser to unwind to the nearest statement boundary."""


class LoxRuntimeError(LoxError):
    """Exception type used to propagate Lox runtime errors."""
    def __init__(self, token: Token, message: str):
        super().__init__(message)
        self.token = token
        self.message = message

    @property
    def diagnostic(self) -> RuntimeDiagnostic:
        return RuntimeDiagnostic(self.token.line, '', self.message)


class ControlSignal:
    """Non-local exit returned (not raised) by statement execution."""


class BreakSignal(ControlSignal):
    """Unwinds to the nearest enclosing loop."""
    def __repr__(self) -> str:
        return 'BreakSignal()'


class ReturnSignal(ControlSignal):
    """Unwinds to the nearest enclosing function call, carrying its value."""
    def __init__(self, value: Any):
        self.value = value

    def __repr__(self) -> str:
        return f"ReturnSignal({self.value!r})"


BREAK = BreakSignal()


# each Lox call or nesting level costs several Python frames
RECURSION_LIMIT = 10_000


def ensure_recursion_limit():
    """Raise the interpreter's recursion limit to at least RECURSION_LIMIT."""
    if sys.getrecursionlimit() < RECURSION_LIMIT:
        sys.setrecursionlimit(RECURSION_LIMIT)
