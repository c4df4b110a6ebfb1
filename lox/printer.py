"""Render a Lox AST back into Lox source text.

Used for debug traces and for checking that the parser is stable: the
printed text of a parsed program parses to a tree of the same shape.
Grouping nodes keep their parentheses, so operator precedence survives the
round trip without adding parentheses of our own.
"""

from __future__ import annotations

from typing import List

from .ast import (
    Expr, Stmt, Literal, Grouping, UnaryOp, BinaryOp, LogicalOp, Variable,
    Assign, Call, Get, Set, This, Super, Lambda,
    ExprStmt, PrintStmt, VarDecl, Block, IfStmt, WhileStmt, BreakStmt,
    FuncDecl, ReturnStmt, ClassDecl,
)
from .tokens import Token
from .types import format_number, to_string


class AstPrinter:
    def __init__(self, indent: str = '  '):
        self.indent = indent

    def print_program(self, statements: List[Stmt]) -> str:
        return '\n'.join(self.print_stmt(stmt, 0) for stmt in statements)

    def print_stmt(self, node: Stmt, depth: int) -> str:
        pad = self.indent * depth
        if isinstance(node, ExprStmt):
            return f"{pad}{self.print_expr(node.expression)};"
        if isinstance(node, PrintStmt):
            return f"{pad}print {self.print_expr(node.expression)};"
        if isinstance(node, VarDecl):
            if node.initializer is None:
                return f"{pad}var {node.name.lexeme};"
            return f"{pad}var {node.name.lexeme} = {self.print_expr(node.initializer)};"
        if isinstance(node, Block):
            return pad + self.print_body(node.statements, depth)
        if isinstance(node, IfStmt):
            text = f"{pad}if ({self.print_expr(node.condition)})\n"
            text += self.print_stmt(node.then_branch, depth + 1)
            if node.else_branch is not None:
                text += f"\n{pad}else\n" + self.print_stmt(node.else_branch, depth + 1)
            return text
        if isinstance(node, WhileStmt):
            return (f"{pad}while ({self.print_expr(node.condition)})\n"
                    + self.print_stmt(node.body, depth + 1))
        if isinstance(node, BreakStmt):
            return f"{pad}break;"
        if isinstance(node, ReturnStmt):
            if node.value is None:
                return f"{pad}return;"
            return f"{pad}return {self.print_expr(node.value)};"
        if isinstance(node, FuncDecl):
            return f"{pad}fun {self.print_function(node, depth)}"
        if isinstance(node, ClassDecl):
            header = f"{pad}class {node.name.lexeme}"
            if node.superclass is not None:
                header += f" < {node.superclass.name.lexeme}"
            lines = [header + ' {']
            for method in node.class_methods:
                lines.append(f"{pad}{self.indent}class {self.print_function(method, depth + 1)}")
            for method in node.methods:
                lines.append(f"{pad}{self.indent}{self.print_function(method, depth + 1)}")
            lines.append(pad + '}')
            return '\n'.join(lines)
        raise NotImplementedError(f"print: unexpected node type {type(node)}")

    def print_body(self, statements: List[Stmt], depth: int) -> str:
        if not statements:
            return '{}'
        inner = '\n'.join(self.print_stmt(stmt, depth + 1) for stmt in statements)
        return '{\n' + inner + '\n' + self.indent * depth + '}'

    def print_function(self, node: FuncDecl, depth: int) -> str:
        signature = node.name.lexeme
        if node.params is not None:
            signature += f"({self.print_params(node.params)})"
        return f"{signature} {self.print_body(node.body, depth)}"

    @staticmethod
    def print_params(params: List[Token]) -> str:
        return ', '.join(param.lexeme for param in params)

    def print_expr(self, node: Expr) -> str:
        if isinstance(node, Literal):
            if isinstance(node.value, str):
                return f'"{node.value}"'
            if isinstance(node.value, float):
                return format_number(node.value)
            return to_string(node.value)
        if isinstance(node, Grouping):
            return f"({self.print_expr(node.expression)})"
        if isinstance(node, UnaryOp):
            return f"{node.op.lexeme}{self.print_expr(node.operand)}"
        if isinstance(node, (BinaryOp, LogicalOp)):
            return f"{self.print_expr(node.left)} {node.op.lexeme} {self.print_expr(node.right)}"
        if isinstance(node, Variable):
            return node.name.lexeme
        if isinstance(node, Assign):
            return f"{node.name.lexeme} = {self.print_expr(node.value)}"
        if isinstance(node, Call):
            args = ', '.join(self.print_expr(arg) for arg in node.args)
            return f"{self.print_expr(node.callee)}({args})"
        if isinstance(node, Get):
            return f"{self.print_expr(node.target)}.{node.name.lexeme}"
        if isinstance(node, Set):
            return f"{self.print_expr(node.target)}.{node.name.lexeme} = {self.print_expr(node.value)}"
        if isinstance(node, This):
            return 'this'
        if isinstance(node, Super):
            return f"super.{node.method.lexeme}"
        if isinstance(node, Lambda):
            # lambdas are printed on one line
            body = ' '.join(self.print_stmt(stmt, 0).replace('\n', ' ') for stmt in node.body)
            if not body:
                return f"fun ({self.print_params(node.params)}) {{}}"
            return f"fun ({self.print_params(node.params)}) {{ {body} }}"
        raise NotImplementedError(f"print: unexpected node type {type(node)}")
