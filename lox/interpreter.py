"""Tree-walking interpreter for the Lox language.

The interpreter executes the statements produced by the parser, using the
scope distances computed by the resolver to find local variables. Each
``execute`` call returns ``None`` on normal completion, or a control
signal (``BreakSignal`` / ``ReturnSignal``) that the enclosing loop or
function call absorbs. Runtime errors are raised as ``LoxRuntimeError``
and stop the run; ``interpret`` turns the first one into a diagnostic for
the driver.

``run_program`` chains the whole pipeline for a source string: scan,
parse, resolve, then interpret.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from .ast import (
    Expr, Stmt, Literal, Grouping, UnaryOp, BinaryOp, LogicalOp, Variable,
    Assign, Call, Get, Set, This, Super, Lambda,
    ExprStmt, PrintStmt, VarDecl, Block, IfStmt, WhileStmt, BreakStmt,
    FuncDecl, ReturnStmt, ClassDecl,
)
from .environment import Environment
from .errors import (
    BREAK, BreakSignal, ControlSignal, Diagnostic, LoxRuntimeError, ReturnSignal,
    ensure_recursion_limit,
)
from .parser import parse
from .printer import AstPrinter
from .resolver import resolve
from .scanner import scan
from .std import populate_native_environment
from .tokens import Token, TokenType
from .types import LoxCallable, LoxClass, LoxFunction, LoxInstance, to_string, type_name


class Interpreter:
    """Core interpreter that executes a resolved Lox AST."""
    def __init__(self, debug_level: int = 0, debug_file: str = 'debug.txt'):
        ensure_recursion_limit()
        self.globals = populate_native_environment(Environment())
        self.locals: Dict[Expr, int] = {}
        self.debug_level = debug_level
        self.debug_fp = open(debug_file, 'w') if debug_level > 0 else None

    def debug(self, msg: str):
        if self.debug_level > 0:
            if self.debug_fp:
                self.debug_fp.write(msg + '\n')
                self.debug_fp.flush()
            else:
                print(msg)

    def close(self):
        if self.debug_fp:
            self.debug_fp.close()
            self.debug_fp = None

    # Public API
    def interpret(self, statements: List[Stmt], locals_: Dict[Expr, int],
                  repl_mode: bool = False) -> List[Diagnostic]:
        """Run statements in the global scope.

        Returns an empty list on success, or a single runtime diagnostic if
        execution stopped on an error. In ``repl_mode`` a top-level
        expression statement prints its value.
        """
        self.locals.update(locals_)
        try:
            for stmt in statements:
                if repl_mode and isinstance(stmt, ExprStmt):
                    print(to_string(self.evaluate(stmt.expression, self.globals)))
                else:
                    self.execute(stmt, self.globals)
        except LoxRuntimeError as error:
            self.debug(f"runtime error at line {error.token.line}: {error.message}")
            return [error.diagnostic]
        return []

    def execute_block(self, statements: List[Stmt], env: Environment) -> Optional[ControlSignal]:
        for stmt in statements:
            result = self.execute(stmt, env)
            # propagate break/return signals
            if result is not None:
                return result
        return None

    def execute(self, node: Stmt, env: Environment) -> Optional[ControlSignal]:
        if isinstance(node, ExprStmt):
            self.evaluate(node.expression, env)
            return None
        if isinstance(node, PrintStmt):
            print(to_string(self.evaluate(node.expression, env)))
            return None
        if isinstance(node, VarDecl):
            if node.initializer is not None:
                env.define(node.name.lexeme, self.evaluate(node.initializer, env))
            else:
                env.define(node.name.lexeme)
            if self.debug_level >= 2:
                self.debug(f"declare {node.name.lexeme} = {env.values[node.name.lexeme]!r}")
            return None
        if isinstance(node, Block):
            return self.execute_block(node.statements, Environment(env))
        if isinstance(node, IfStmt):
            cond = self.evaluate(node.condition, env)
            truthy = self.is_truthy(cond)
            if self.debug_level >= 3:
                self.debug(f"if condition {to_string(cond)} -> {truthy}")
            if truthy:
                return self.execute(node.then_branch, env)
            if node.else_branch is not None:
                return self.execute(node.else_branch, env)
            return None
        if isinstance(node, WhileStmt):
            iteration = 0
            while self.is_truthy(self.evaluate(node.condition, env)):
                if self.debug_level >= 3:
                    self.debug(f"while iteration {iteration}")
                iteration += 1
                result = self.execute(node.body, env)
                if isinstance(result, BreakSignal):
                    break
                if isinstance(result, ReturnSignal):
                    return result
            return None
        if isinstance(node, BreakStmt):
            return BREAK
        if isinstance(node, ReturnStmt):
            value = self.evaluate(node.value, env) if node.value is not None else None
            return ReturnSignal(value)
        if isinstance(node, FuncDecl):
            env.define(node.name.lexeme, LoxFunction(node, env))
            if self.debug_level >= 1:
                self.debug(f"define function {node.name.lexeme}")
            return None
        if isinstance(node, ClassDecl):
            self.execute_class(node, env)
            return None
        raise NotImplementedError(f"execute: unexpected node type {type(node)}")

    def execute_class(self, node: ClassDecl, env: Environment):
        # declared first so methods can refer to the class by name
        env.define(node.name.lexeme)
        superclass: Optional[LoxClass] = None
        if node.superclass is not None:
            value = self.evaluate(node.superclass, env)
            if not isinstance(value, LoxClass):
                raise LoxRuntimeError(node.superclass.name, 'Superclass must be a class.')
            superclass = value

        method_env = env
        if superclass is not None:
            method_env = Environment(env)
            method_env.define('super', superclass)

        # later definitions with the same name replace earlier ones
        methods = {
            method.name.lexeme: LoxFunction(method, method_env, method.name.lexeme == 'init')
            for method in node.methods
        }
        class_methods = {
            method.name.lexeme: LoxFunction(method, method_env)
            for method in node.class_methods
        }
        klass = LoxClass(node.name.lexeme, superclass, methods, class_methods)
        env.define(node.name.lexeme, klass)
        if self.debug_level >= 1:
            parent = f" < {superclass.name}" if superclass is not None else ''
            self.debug(f"define class {klass.name}{parent} with methods {sorted(methods)}")

    def evaluate(self, node: Expr, env: Environment) -> Any:
        if isinstance(node, Literal):
            return node.value
        if isinstance(node, Grouping):
            return self.evaluate(node.expression, env)
        if isinstance(node, Variable):
            return self.look_up_variable(node.name, node, env)
        if isinstance(node, Assign):
            value = self.evaluate(node.value, env)
            distance = self.locals.get(node)
            if distance is not None:
                env.assign_at(distance, node.name, value)
            else:
                self.globals.assign(node.name, value)
            return value
        if isinstance(node, LogicalOp):
            left = self.evaluate(node.left, env)
            # short-circuit, yielding the deciding operand itself
            if node.op.type == TokenType.OR:
                if self.is_truthy(left):
                    return left
            elif not self.is_truthy(left):
                return left
            return self.evaluate(node.right, env)
        if isinstance(node, UnaryOp):
            operand = self.evaluate(node.operand, env)
            if node.op.type == TokenType.BANG:
                return not self.is_truthy(operand)
            self.check_number_operand(node.op, operand)
            if node.op.type == TokenType.MINUS:
                return -operand
            return operand
        if isinstance(node, BinaryOp):
            left = self.evaluate(node.left, env)
            right = self.evaluate(node.right, env)
            return self.apply_binary_op(node.op, left, right)
        if isinstance(node, Call):
            callee = self.evaluate(node.callee, env)
            args = [self.evaluate(arg, env) for arg in node.args]
            return self.call_function(callee, args, node.paren)
        if isinstance(node, Get):
            target = self.evaluate(node.target, env)
            if isinstance(target, (LoxInstance, LoxClass)):
                return target.get(node.name, self)
            raise LoxRuntimeError(node.name, 'Only instances have properties.')
        if isinstance(node, Set):
            target = self.evaluate(node.target, env)
            if not isinstance(target, LoxInstance):
                raise LoxRuntimeError(node.name, 'Only instances have fields.')
            value = self.evaluate(node.value, env)
            target.set(node.name, value)
            return value
        if isinstance(node, This):
            return self.look_up_variable(node.keyword, node, env)
        if isinstance(node, Super):
            return self.evaluate_super(node, env)
        if isinstance(node, Lambda):
            return LoxFunction(node, env)
        raise NotImplementedError(f"evaluate: unexpected node type {type(node)}")

    def evaluate_super(self, node: Super, env: Environment) -> Any:
        distance = self.locals[node]
        superclass: LoxClass = env.get_name_at(distance, 'super')
        # 'this' is always bound one scope inside 'super'
        instance: LoxInstance = env.get_name_at(distance - 1, 'this')
        method = superclass.find_method(node.method.lexeme)
        if method is None:
            raise LoxRuntimeError(node.method, f"Undefined property '{node.method.lexeme}'.")
        bound = method.bind(instance)
        if bound.is_getter:
            return bound.call(self, [])
        return bound

    def look_up_variable(self, name: Token, node: Expr, env: Environment) -> Any:
        distance = self.locals.get(node)
        if distance is not None:
            return env.get_at(distance, name)
        return self.globals.get(name)

    def call_function(self, func: Any, args: List[Any], paren: Token) -> Any:
        if not isinstance(func, LoxCallable):
            raise LoxRuntimeError(paren, 'Can only call functions and classes.')
        if len(args) != func.arity():
            raise LoxRuntimeError(paren, f"Expected {func.arity()} arguments but got {len(args)}.")
        if self.debug_level >= 1:
            self.debug(f"call {to_string(func)} with {len(args)} arguments at line {paren.line}")
        try:
            return func.call(self, args)
        except RecursionError:
            raise LoxRuntimeError(paren, 'Stack overflow.') from None

    def is_truthy(self, value: Any) -> bool:
        if value is None:
            return False
        if isinstance(value, bool):
            return value
        return True

    def check_number_operand(self, op: Token, operand: Any):
        if not isinstance(operand, float):
            raise LoxRuntimeError(op, 'Operand must be a number.')

    def check_number_operands(self, op: Token, a: Any, b: Any):
        if not isinstance(a, float):
            raise LoxRuntimeError(op, 'Left operand must be a number.')
        if not isinstance(b, float):
            raise LoxRuntimeError(op, 'Right operand must be a number.')

    def apply_binary_op(self, op: Token, a: Any, b: Any) -> Any:
        kind = op.type
        if kind == TokenType.EQUAL_EQUAL:
            return self.equal_values(a, b)
        if kind == TokenType.BANG_EQUAL:
            return not self.equal_values(a, b)
        if kind == TokenType.PLUS:
            if isinstance(a, float) and isinstance(b, float):
                return a + b
            # a string on either side turns the other operand into text
            if isinstance(a, str):
                return a + to_string(b)
            if isinstance(b, str):
                return to_string(a) + b
            raise LoxRuntimeError(op, 'Operands must be two numbers or include a string.')
        if kind == TokenType.STAR and isinstance(a, str) and isinstance(b, float):
            if not b.is_integer():
                raise LoxRuntimeError(op, "Can't repeat a string a non-integral number of times.")
            return a * int(b)

        self.check_number_operands(op, a, b)
        if kind == TokenType.MINUS:
            return a - b
        if kind == TokenType.STAR:
            return a * b
        if kind == TokenType.SLASH:
            if b == 0.0:
                raise LoxRuntimeError(op, 'Division by zero.')
            return a / b
        if kind == TokenType.GREATER:
            return a > b
        if kind == TokenType.GREATER_EQUAL:
            return a >= b
        if kind == TokenType.LESS:
            return a < b
        if kind == TokenType.LESS_EQUAL:
            return a <= b
        raise LoxRuntimeError(op, f"Unknown operator '{op.lexeme}' for {type_name(a)} and {type_name(b)}.")

    def equal_values(self, a: Any, b: Any) -> bool:
        if a is None or b is None:
            return a is None and b is None
        # bool is an int subclass in Python; keep it apart from numbers
        if isinstance(a, bool) or isinstance(b, bool):
            return a is b
        if isinstance(a, float) and isinstance(b, float):
            return a == b
        if isinstance(a, str) and isinstance(b, str):
            return a == b
        return a is b


def run_program(source: str, debug_level: int = 0, interpreter: Optional[Interpreter] = None,
                repl_mode: bool = False) -> List[Diagnostic]:
    """Scan, parse, resolve and run a Lox program.

    Returns the diagnostics that stopped the pipeline: scan and parse
    errors (which prevent resolution), resolve errors (which prevent
    execution) or the single runtime error that ended execution. An empty
    list means the program ran to completion.
    """
    owns_interpreter = interpreter is None
    if interpreter is None:
        interpreter = Interpreter(debug_level=debug_level)
    try:
        tokens, diagnostics = scan(source)
        if interpreter.debug_level >= 4:
            interpreter.debug('tokens: ' + ' '.join(f"[{token}]" for token in tokens))
        statements, parse_diagnostics = parse(tokens)
        diagnostics = diagnostics + parse_diagnostics
        if diagnostics:
            return diagnostics
        if interpreter.debug_level >= 4:
            interpreter.debug('ast:\n' + AstPrinter().print_program(statements))
        locals_, diagnostics = resolve(statements)
        if diagnostics:
            return diagnostics
        return interpreter.interpret(statements, locals_, repl_mode)
    finally:
        if owns_interpreter:
            interpreter.close()
