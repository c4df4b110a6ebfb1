"""Abstract Syntax Tree (AST) definitions for the Lox language.

The parser builds these nodes and both the resolver and the interpreter
dispatch on their class. Nodes compare and hash by identity
(``eq=False``): the resolver's distance map is keyed by the particular
occurrence of a variable, not by its name, so two ``Variable`` nodes for
the same identifier must stay distinct dictionary keys.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

from .tokens import Token


@dataclass(eq=False)
class Node:
    """Base class for all AST nodes."""
    pass


@dataclass(eq=False)
class Expr(Node):
    pass


@dataclass(eq=False)
class Stmt(Node):
    pass


# Expressions

@dataclass(eq=False)
class Literal(Expr):
    value: Any  # None, bool, float or str


@dataclass(eq=False)
class Grouping(Expr):
    expression: Expr


@dataclass(eq=False)
class UnaryOp(Expr):
    op: Token
    operand: Expr


@dataclass(eq=False)
class BinaryOp(Expr):
    left: Expr
    op: Token
    right: Expr


@dataclass(eq=False)
class LogicalOp(Expr):
    left: Expr
    op: Token  # AND or OR
    right: Expr


@dataclass(eq=False)
class Variable(Expr):
    name: Token


@dataclass(eq=False)
class Assign(Expr):
    name: Token
    value: Expr


@dataclass(eq=False)
class Call(Expr):
    callee: Expr
    paren: Token  # closing paren, used for error lines
    args: List[Expr]


@dataclass(eq=False)
class Get(Expr):
    target: Expr
    name: Token


@dataclass(eq=False)
class Set(Expr):
    target: Expr
    name: Token
    value: Expr


@dataclass(eq=False)
class This(Expr):
    keyword: Token


@dataclass(eq=False)
class Super(Expr):
    keyword: Token
    method: Token


@dataclass(eq=False)
class Lambda(Expr):
    keyword: Token
    params: List[Token]
    body: List[Stmt]


# Statements

@dataclass(eq=False)
class ExprStmt(Stmt):
    expression: Expr


@dataclass(eq=False)
class PrintStmt(Stmt):
    expression: Expr


@dataclass(eq=False)
class VarDecl(Stmt):
    name: Token
    initializer: Optional[Expr]


@dataclass(eq=False)
class Block(Stmt):
    statements: List[Stmt]


@dataclass(eq=False)
class IfStmt(Stmt):
    condition: Expr
    then_branch: Stmt
    else_branch: Optional[Stmt]


@dataclass(eq=False)
class WhileStmt(Stmt):
    condition: Expr
    body: Stmt


@dataclass(eq=False)
class BreakStmt(Stmt):
    keyword: Token


@dataclass(eq=False)
class FuncDecl(Stmt):
    name: Token
    params: Optional[List[Token]]  # None marks a getter
    body: List[Stmt]

    @property
    def is_getter(self) -> bool:
        return self.params is None


@dataclass(eq=False)
class ReturnStmt(Stmt):
    keyword: Token
    value: Optional[Expr]


@dataclass(eq=False)
class ClassDecl(Stmt):
    name: Token
    superclass: Optional[Variable]
    methods: List[FuncDecl]
    class_methods: List[FuncDecl]
