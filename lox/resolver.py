"""Static scope resolution for Lox programs.

The resolver walks the finished AST once, before anything runs. For
every local variable reference (``Variable``, ``Assign``, ``This`` and
``Super``) it records how many scopes separate the reference from the
declaration. The interpreter uses that number to read the binding
directly instead of searching the environment chain, which is what keeps
closures bound to the variable that was in scope when they were written.
References that match no local scope are left out of the map and are
looked up as globals at run time.

Along the way it reports errors that can be found without running the
program: reading a variable in its own initializer, duplicate local
declarations, unused locals, misplaced ``return``, ``this`` and ``super``,
and a class inheriting from itself. All of them are recorded as
diagnostics and resolution carries on.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, Iterator, List, Tuple

from .ast import (
    Node, Expr, Stmt, Literal, Grouping, UnaryOp, BinaryOp, LogicalOp, Variable,
    Assign, Call, Get, Set, This, Super, Lambda,
    ExprStmt, PrintStmt, VarDecl, Block, IfStmt, WhileStmt, BreakStmt,
    FuncDecl, ReturnStmt, ClassDecl,
)
from .errors import Diagnostic, ensure_recursion_limit
from .tokens import Token


class FunctionType(Enum):
    NONE = auto()
    FUNCTION = auto()
    METHOD = auto()
    INITIALIZER = auto()
    GETTER = auto()
    CLASS_METHOD = auto()


class ClassType(Enum):
    NONE = auto()
    CLASS = auto()
    SUBCLASS = auto()


@dataclass
class VarState:
    name: Token
    defined: bool = False
    used: bool = False


class Resolver:
    def __init__(self):
        self.scopes: List[Dict[str, VarState]] = []
        self.locals: Dict[Expr, int] = {}
        self.diagnostics: List[Diagnostic] = []
        self.current_function = FunctionType.NONE
        self.current_class = ClassType.NONE
        self.in_class_method = False

    def error(self, token: Token, message: str):
        self.diagnostics.append(Diagnostic.at_token(token, message))

    @contextmanager
    def context(self, **fields) -> Iterator[None]:
        """Temporarily override resolver state, restoring it on every exit path."""
        saved = {name: getattr(self, name) for name in fields}
        for name, value in fields.items():
            setattr(self, name, value)
        try:
            yield
        finally:
            for name, value in saved.items():
                setattr(self, name, value)

    # Scopes

    def begin_scope(self):
        self.scopes.append({})

    def end_scope(self):
        scope = self.scopes.pop()
        for name, state in scope.items():
            if not state.used:
                self.error(state.name, f"Local variable '{name}' is never used.")

    @contextmanager
    def scope(self) -> Iterator[Dict[str, VarState]]:
        self.begin_scope()
        try:
            yield self.scopes[-1]
        finally:
            self.end_scope()

    def declare(self, name: Token):
        if not self.scopes:
            return
        scope = self.scopes[-1]
        if name.lexeme in scope:
            self.error(name, 'Already a variable with this name in this scope.')
        scope[name.lexeme] = VarState(name)

    def define(self, name: Token):
        if not self.scopes:
            return
        state = self.scopes[-1].get(name.lexeme)
        if state is not None:
            state.defined = True

    def define_synthetic(self, keyword: Token, name: str):
        """Bind 'this' or 'super' in the innermost scope as already used."""
        self.scopes[-1][name] = VarState(keyword, defined=True, used=True)

    def resolve_local(self, expr: Expr, name: Token):
        for depth, scope in enumerate(reversed(self.scopes)):
            if name.lexeme in scope:
                self.locals[expr] = depth
                scope[name.lexeme].used = True
                return
        # not found: global

    def resolve_function(self, params: List[Token], body: List[Stmt], kind: FunctionType):
        with self.context(current_function=kind), self.scope():
            for param in params:
                self.declare(param)
                self.define(param)
            self.resolve_statements(body)

    # Entry points

    def resolve_statements(self, statements: List[Stmt]):
        for stmt in statements:
            self.resolve(stmt)

    def resolve(self, node: Node):
        if isinstance(node, Stmt):
            self.resolve_stmt(node)
        else:
            self.resolve_expr(node)

    # Statements

    def resolve_stmt(self, node: Stmt):
        if isinstance(node, Block):
            with self.scope():
                self.resolve_statements(node.statements)
            return
        if isinstance(node, VarDecl):
            self.declare(node.name)
            if node.initializer is not None:
                self.resolve_expr(node.initializer)
            self.define(node.name)
            return
        if isinstance(node, FuncDecl):
            # defined before the body so the function can call itself
            self.declare(node.name)
            self.define(node.name)
            self.resolve_function(node.params or [], node.body, FunctionType.FUNCTION)
            return
        if isinstance(node, ClassDecl):
            self.resolve_class(node)
            return
        if isinstance(node, (ExprStmt, PrintStmt)):
            self.resolve_expr(node.expression)
            return
        if isinstance(node, IfStmt):
            self.resolve_expr(node.condition)
            self.resolve_stmt(node.then_branch)
            if node.else_branch is not None:
                self.resolve_stmt(node.else_branch)
            return
        if isinstance(node, WhileStmt):
            self.resolve_expr(node.condition)
            self.resolve_stmt(node.body)
            return
        if isinstance(node, BreakStmt):
            return
        if isinstance(node, ReturnStmt):
            if self.current_function == FunctionType.NONE:
                self.error(node.keyword, "Can't return from top-level code.")
            if node.value is not None:
                if self.current_function == FunctionType.INITIALIZER:
                    self.error(node.keyword, "Can't return a value from an initializer.")
                self.resolve_expr(node.value)
            return
        raise NotImplementedError(f"resolve: unexpected node type {type(node)}")

    def resolve_class(self, node: ClassDecl):
        self.declare(node.name)
        self.define(node.name)
        class_type = ClassType.CLASS
        if node.superclass is not None:
            class_type = ClassType.SUBCLASS
            if node.superclass.name.lexeme == node.name.lexeme:
                self.error(node.superclass.name, "A class can't inherit from itself.")
            self.resolve_expr(node.superclass)

        with self.context(current_class=class_type):
            if node.superclass is not None:
                self.begin_scope()
                self.define_synthetic(node.superclass.name, 'super')
            try:
                # class methods close over the superclass scope but never see 'this'
                with self.context(in_class_method=True):
                    for method in node.class_methods:
                        kind = FunctionType.GETTER if method.is_getter else FunctionType.CLASS_METHOD
                        self.resolve_function(method.params or [], method.body, kind)
                with self.context(in_class_method=False), self.scope():
                    self.define_synthetic(node.name, 'this')
                    for method in node.methods:
                        if method.name.lexeme == 'init':
                            kind = FunctionType.INITIALIZER
                        elif method.is_getter:
                            kind = FunctionType.GETTER
                        else:
                            kind = FunctionType.METHOD
                        self.resolve_function(method.params or [], method.body, kind)
            finally:
                if node.superclass is not None:
                    self.end_scope()

    # Expressions

    def resolve_expr(self, node: Expr):
        if isinstance(node, Variable):
            if self.scopes:
                state = self.scopes[-1].get(node.name.lexeme)
                if state is not None and not state.defined:
                    self.error(node.name, "Can't read local variable in its own initializer.")
            self.resolve_local(node, node.name)
            return
        if isinstance(node, Assign):
            self.resolve_expr(node.value)
            self.resolve_local(node, node.name)
            return
        if isinstance(node, (BinaryOp, LogicalOp)):
            self.resolve_expr(node.left)
            self.resolve_expr(node.right)
            return
        if isinstance(node, UnaryOp):
            self.resolve_expr(node.operand)
            return
        if isinstance(node, Grouping):
            self.resolve_expr(node.expression)
            return
        if isinstance(node, Literal):
            return
        if isinstance(node, Call):
            self.resolve_expr(node.callee)
            for arg in node.args:
                self.resolve_expr(arg)
            return
        if isinstance(node, Get):
            self.resolve_expr(node.target)
            return
        if isinstance(node, Set):
            self.resolve_expr(node.value)
            self.resolve_expr(node.target)
            return
        if isinstance(node, This):
            if self.current_class == ClassType.NONE:
                self.error(node.keyword, "Can't use 'this' outside of a class.")
                return
            if self.in_class_method:
                self.error(node.keyword, "Can't use 'this' in a class method.")
                return
            self.resolve_local(node, node.keyword)
            return
        if isinstance(node, Super):
            if self.current_class == ClassType.NONE:
                self.error(node.keyword, "Can't use 'super' outside of a class.")
                return
            if self.current_class != ClassType.SUBCLASS:
                self.error(node.keyword, "Can't use 'super' in a class with no superclass.")
                return
            if self.in_class_method:
                self.error(node.keyword, "Can't use 'super' in a class method.")
                return
            self.resolve_local(node, node.keyword)
            return
        if isinstance(node, Lambda):
            self.resolve_function(node.params, node.body, FunctionType.FUNCTION)
            return
        raise NotImplementedError(f"resolve: unexpected node type {type(node)}")


def resolve(statements: List[Stmt]) -> Tuple[Dict[Expr, int], List[Diagnostic]]:
    """Compute scope distances for local references and collect static diagnostics."""
    ensure_recursion_limit()
    resolver = Resolver()
    resolver.resolve_statements(statements)
    return resolver.locals, resolver.diagnostics
