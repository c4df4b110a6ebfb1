# Lox language package
# This package provides a scanner, parser, resolver and tree-walking interpreter for Lox.
from .errors import Diagnostic, LoxRuntimeError
from .interpreter import run_program, Interpreter
from .parser import parse
from .resolver import resolve
from .scanner import scan

__all__ = [
    'scan',
    'parse',
    'resolve',
    'run_program',
    'Interpreter',
    'Diagnostic',
    'LoxRuntimeError',
]
