"""JSON serialization/deserialization for the Lox AST.

This module converts between Lox AST dataclasses and plain Python
dict/list structures suitable for JSON encoding. Tokens keep their type,
lexeme, literal and line so that a program loaded back from JSON reports
runtime errors on the same lines as the source it was parsed from.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from .ast import (
    Literal,
    Grouping,
    UnaryOp,
    BinaryOp,
    LogicalOp,
    Variable,
    Assign,
    Call,
    Get,
    Set,
    This,
    Super,
    Lambda,
    ExprStmt,
    PrintStmt,
    VarDecl,
    Block,
    IfStmt,
    WhileStmt,
    BreakStmt,
    FuncDecl,
    ReturnStmt,
    ClassDecl,
)
from .tokens import Token, TokenType


def literal_from_obj(value: Any) -> Any:
    # JSON may spell whole numbers as integers; Lox numbers are always float
    if isinstance(value, int) and not isinstance(value, bool):
        return float(value)
    return value


def token_to_obj(t: Token) -> Dict[str, Any]:
    return {"token": t.type.name, "lexeme": t.lexeme, "literal": t.literal, "line": t.line}


def token_from_obj(o: Dict[str, Any]) -> Token:
    return Token(TokenType[o["token"]], o["lexeme"], literal_from_obj(o.get("literal")), o["line"])


def params_to_obj(params: Optional[List[Token]]) -> Optional[List[Dict[str, Any]]]:
    if params is None:
        return None
    return [token_to_obj(p) for p in params]


def params_from_obj(o: Optional[List[Dict[str, Any]]]) -> Optional[List[Token]]:
    if o is None:
        return None
    return [token_from_obj(p) for p in o]


def ast_to_obj(node: Any) -> Any:
    if node is None:
        return None
    if isinstance(node, list):
        return [ast_to_obj(n) for n in node]

    # Expressions
    if isinstance(node, Literal):
        return {"type": "Literal", "value": node.value}
    if isinstance(node, Grouping):
        return {"type": "Grouping", "expression": ast_to_obj(node.expression)}
    if isinstance(node, UnaryOp):
        return {"type": "UnaryOp", "op": token_to_obj(node.op), "operand": ast_to_obj(node.operand)}
    if isinstance(node, (BinaryOp, LogicalOp)):
        return {
            "type": type(node).__name__,
            "left": ast_to_obj(node.left),
            "op": token_to_obj(node.op),
            "right": ast_to_obj(node.right),
        }
    if isinstance(node, Variable):
        return {"type": "Variable", "name": token_to_obj(node.name)}
    if isinstance(node, Assign):
        return {"type": "Assign", "name": token_to_obj(node.name), "value": ast_to_obj(node.value)}
    if isinstance(node, Call):
        return {
            "type": "Call",
            "callee": ast_to_obj(node.callee),
            "paren": token_to_obj(node.paren),
            "args": ast_to_obj(node.args),
        }
    if isinstance(node, Get):
        return {"type": "Get", "target": ast_to_obj(node.target), "name": token_to_obj(node.name)}
    if isinstance(node, Set):
        return {
            "type": "Set",
            "target": ast_to_obj(node.target),
            "name": token_to_obj(node.name),
            "value": ast_to_obj(node.value),
        }
    if isinstance(node, This):
        return {"type": "This", "keyword": token_to_obj(node.keyword)}
    if isinstance(node, Super):
        return {"type": "Super", "keyword": token_to_obj(node.keyword), "method": token_to_obj(node.method)}
    if isinstance(node, Lambda):
        return {
            "type": "Lambda",
            "keyword": token_to_obj(node.keyword),
            "params": params_to_obj(node.params),
            "body": ast_to_obj(node.body),
        }

    # Statements
    if isinstance(node, ExprStmt):
        return {"type": "ExprStmt", "expression": ast_to_obj(node.expression)}
    if isinstance(node, PrintStmt):
        return {"type": "PrintStmt", "expression": ast_to_obj(node.expression)}
    if isinstance(node, VarDecl):
        return {"type": "VarDecl", "name": token_to_obj(node.name), "initializer": ast_to_obj(node.initializer)}
    if isinstance(node, Block):
        return {"type": "Block", "statements": ast_to_obj(node.statements)}
    if isinstance(node, IfStmt):
        return {
            "type": "IfStmt",
            "condition": ast_to_obj(node.condition),
            "then_branch": ast_to_obj(node.then_branch),
            "else_branch": ast_to_obj(node.else_branch),
        }
    if isinstance(node, WhileStmt):
        return {"type": "WhileStmt", "condition": ast_to_obj(node.condition), "body": ast_to_obj(node.body)}
    if isinstance(node, BreakStmt):
        return {"type": "BreakStmt", "keyword": token_to_obj(node.keyword)}
    if isinstance(node, FuncDecl):
        return {
            "type": "FuncDecl",
            "name": token_to_obj(node.name),
            "params": params_to_obj(node.params),
            "body": ast_to_obj(node.body),
        }
    if isinstance(node, ReturnStmt):
        return {"type": "ReturnStmt", "keyword": token_to_obj(node.keyword), "value": ast_to_obj(node.value)}
    if isinstance(node, ClassDecl):
        return {
            "type": "ClassDecl",
            "name": token_to_obj(node.name),
            "superclass": ast_to_obj(node.superclass),
            "methods": ast_to_obj(node.methods),
            "class_methods": ast_to_obj(node.class_methods),
        }

    raise TypeError(f"Unsupported node for serialization: {type(node).__name__}")


def ast_from_obj(obj: Any) -> Any:
    if obj is None:
        return None
    if isinstance(obj, list):
        return [ast_from_obj(o) for o in obj]
    if not isinstance(obj, dict):
        raise TypeError("Invalid AST object")
    t = obj.get("type")

    # Expressions
    if t == "Literal":
        return Literal(value=literal_from_obj(obj["value"]))
    if t == "Grouping":
        return Grouping(expression=ast_from_obj(obj["expression"]))
    if t == "UnaryOp":
        return UnaryOp(op=token_from_obj(obj["op"]), operand=ast_from_obj(obj["operand"]))
    if t in ("BinaryOp", "LogicalOp"):
        node_class = BinaryOp if t == "BinaryOp" else LogicalOp
        return node_class(
            left=ast_from_obj(obj["left"]),
            op=token_from_obj(obj["op"]),
            right=ast_from_obj(obj["right"]),
        )
    if t == "Variable":
        return Variable(name=token_from_obj(obj["name"]))
    if t == "Assign":
        return Assign(name=token_from_obj(obj["name"]), value=ast_from_obj(obj["value"]))
    if t == "Call":
        return Call(
            callee=ast_from_obj(obj["callee"]),
            paren=token_from_obj(obj["paren"]),
            args=ast_from_obj(obj["args"]),
        )
    if t == "Get":
        return Get(target=ast_from_obj(obj["target"]), name=token_from_obj(obj["name"]))
    if t == "Set":
        return Set(
            target=ast_from_obj(obj["target"]),
            name=token_from_obj(obj["name"]),
            value=ast_from_obj(obj["value"]),
        )
    if t == "This":
        return This(keyword=token_from_obj(obj["keyword"]))
    if t == "Super":
        return Super(keyword=token_from_obj(obj["keyword"]), method=token_from_obj(obj["method"]))
    if t == "Lambda":
        return Lambda(
            keyword=token_from_obj(obj["keyword"]),
            params=params_from_obj(obj["params"]),
            body=ast_from_obj(obj["body"]),
        )

    # Statements
    if t == "ExprStmt":
        return ExprStmt(expression=ast_from_obj(obj["expression"]))
    if t == "PrintStmt":
        return PrintStmt(expression=ast_from_obj(obj["expression"]))
    if t == "VarDecl":
        return VarDecl(name=token_from_obj(obj["name"]), initializer=ast_from_obj(obj.get("initializer")))
    if t == "Block":
        return Block(statements=ast_from_obj(obj["statements"]))
    if t == "IfStmt":
        return IfStmt(
            condition=ast_from_obj(obj["condition"]),
            then_branch=ast_from_obj(obj["then_branch"]),
            else_branch=ast_from_obj(obj.get("else_branch")),
        )
    if t == "WhileStmt":
        return WhileStmt(condition=ast_from_obj(obj["condition"]), body=ast_from_obj(obj["body"]))
    if t == "BreakStmt":
        return BreakStmt(keyword=token_from_obj(obj["keyword"]))
    if t == "FuncDecl":
        return FuncDecl(
            name=token_from_obj(obj["name"]),
            params=params_from_obj(obj.get("params")),
            body=ast_from_obj(obj["body"]),
        )
    if t == "ReturnStmt":
        return ReturnStmt(keyword=token_from_obj(obj["keyword"]), value=ast_from_obj(obj.get("value")))
    if t == "ClassDecl":
        return ClassDecl(
            name=token_from_obj(obj["name"]),
            superclass=ast_from_obj(obj.get("superclass")),
            methods=ast_from_obj(obj["methods"]),
            class_methods=ast_from_obj(obj["class_methods"]),
        )

    raise ValueError(f"Unknown AST node type: {t}")
