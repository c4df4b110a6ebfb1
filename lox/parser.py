"""Recursive-descent parser for the Lox language.

Grammar, lowest precedence first::

    program     -> declaration* EOF ;
    declaration -> classDecl | funDecl | varDecl | statement ;
    classDecl   -> "class" IDENTIFIER ( "<" IDENTIFIER )? "{" ( "class"? method )* "}" ;
    method      -> IDENTIFIER ( "(" parameters? ")" )? block ;
    funDecl     -> "fun" IDENTIFIER "(" parameters? ")" block ;
    varDecl     -> "var" IDENTIFIER ( "=" expression )? ";" ;
    statement   -> exprStmt | forStmt | ifStmt | printStmt | returnStmt
                 | whileStmt | breakStmt | block ;
    expression  -> assignment ;
    assignment  -> ( call "." )? IDENTIFIER "=" assignment | logic_or ;
    logic_or    -> logic_and ( "or" logic_and )* ;
    logic_and   -> equality ( "and" equality )* ;
    equality    -> comparison ( ( "!=" | "==" ) comparison )* ;
    comparison  -> term ( ( ">" | ">=" | "<" | "<=" ) term )* ;
    term        -> factor ( ( "-" | "+" ) factor )* ;
    factor      -> unary ( ( "/" | "*" ) unary )* ;
    unary       -> ( "!" | "-" | "+" ) unary | call ;
    call        -> primary ( "(" arguments? ")" | "." IDENTIFIER )* ;
    primary     -> NUMBER | STRING | "true" | "false" | "nil" | "this"
                 | "(" expression ")" | IDENTIFIER | "super" "." IDENTIFIER
                 | "fun" "(" parameters? ")" block ;

A ``for`` loop has no node of its own: it is rewritten into a block holding
the initializer and a ``while`` whose body runs the increment last.

Errors are recorded as diagnostics. Structural errors raise ``ParseError``,
which ``parse_declaration`` catches before skipping to the next statement
boundary; errors that leave the token stream intact (bad assignment target,
``break`` outside a loop, too many arguments) are recorded without
unwinding. Nesting deeper than the Python stack allows is reported as
"Too much nesting." at the token where parsing gave up.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from .ast import (
    Expr, Stmt, Literal, Grouping, UnaryOp, BinaryOp, LogicalOp, Variable,
    Assign, Call, Get, Set, This, Super, Lambda,
    ExprStmt, PrintStmt, VarDecl, Block, IfStmt, WhileStmt, BreakStmt,
    FuncDecl, ReturnStmt, ClassDecl,
)
from .errors import Diagnostic, ParseError, ensure_recursion_limit
from .tokens import Token, TokenType

MAX_ARGS = 255

SYNC_TOKENS = {
    TokenType.CLASS,
    TokenType.FUN,
    TokenType.VAR,
    TokenType.FOR,
    TokenType.IF,
    TokenType.WHILE,
    TokenType.PRINT,
    TokenType.RETURN,
}


class Parser:
    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0
        self.loop_depth = 0
        self.diagnostics: List[Diagnostic] = []

    # Token helpers

    def peek(self) -> Token:
        return self.tokens[self.pos]

    def previous(self) -> Token:
        return self.tokens[self.pos - 1]

    def at_end(self) -> bool:
        return self.peek().type == TokenType.EOF

    def advance(self) -> Token:
        token = self.peek()
        if not self.at_end():
            self.pos += 1
        return token

    def check(self, *types: TokenType) -> bool:
        if self.at_end():
            return False
        return self.peek().type in types

    def check_next(self, token_type: TokenType) -> bool:
        if self.pos + 1 >= len(self.tokens):
            return False
        return self.tokens[self.pos + 1].type == token_type

    def match(self, *types: TokenType) -> Optional[Token]:
        if self.check(*types):
            return self.advance()
        return None

    def consume(self, expected: TokenType, message: str) -> Token:
        if self.check(expected):
            return self.advance()
        raise self.error(self.peek(), message)

    def error(self, token: Token, message: str) -> ParseError:
        """Record a diagnostic and return (not raise) a ParseError."""
        self.diagnostics.append(Diagnostic.at_token(token, message))
        return ParseError(message)

    def synchronize(self):
        while not self.at_end():
            if self.peek().type == TokenType.SEMICOLON:
                self.advance()
                return
            if self.peek().type in SYNC_TOKENS:
                return
            self.advance()

    # Declarations

    def parse_program(self) -> List[Stmt]:
        statements: List[Stmt] = []
        while not self.at_end():
            stmt = self.parse_declaration()
            if stmt is not None:
                statements.append(stmt)
        return statements

    def parse_declaration(self) -> Optional[Stmt]:
        try:
            if self.match(TokenType.CLASS):
                return self.parse_class_decl()
            if self.check(TokenType.FUN) and self.check_next(TokenType.IDENTIFIER):
                self.advance()
                return self.parse_function('function')
            if self.match(TokenType.VAR):
                return self.parse_var_decl()
            return self.parse_statement()
        except ParseError:
            self.synchronize()
            return None
        except RecursionError:
            self.error(self.peek(), 'Too much nesting.')
            self.synchronize()
            return None

    def parse_class_decl(self) -> ClassDecl:
        name = self.consume(TokenType.IDENTIFIER, 'Expect class name.')
        superclass = None
        if self.match(TokenType.LESS):
            superclass = Variable(self.consume(TokenType.IDENTIFIER, 'Expect superclass name.'))
        self.consume(TokenType.LEFT_BRACE, "Expect '{' before class body.")
        methods: List[FuncDecl] = []
        class_methods: List[FuncDecl] = []
        while not self.check(TokenType.RIGHT_BRACE) and not self.at_end():
            if self.match(TokenType.CLASS):
                class_methods.append(self.parse_function('method'))
            else:
                methods.append(self.parse_function('method'))
        self.consume(TokenType.RIGHT_BRACE, "Expect '}' after class body.")
        return ClassDecl(name, superclass, methods, class_methods)

    def parse_function(self, kind: str) -> FuncDecl:
        name = self.consume(TokenType.IDENTIFIER, f"Expect {kind} name.")
        params: Optional[List[Token]] = None
        # a method without a parameter list is a getter
        if kind != 'method' or self.check(TokenType.LEFT_PAREN):
            self.consume(TokenType.LEFT_PAREN, f"Expect '(' after {kind} name.")
            params = self.parse_parameters()
        self.consume(TokenType.LEFT_BRACE, f"Expect '{{' before {kind} body.")
        body = self.parse_function_body()
        return FuncDecl(name, params, body)

    def parse_parameters(self) -> List[Token]:
        params: List[Token] = []
        if not self.check(TokenType.RIGHT_PAREN):
            while True:
                if len(params) >= MAX_ARGS:
                    self.error(self.peek(), f"Can't have more than {MAX_ARGS} parameters.")
                params.append(self.consume(TokenType.IDENTIFIER, 'Expect parameter name.'))
                if not self.match(TokenType.COMMA):
                    break
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after parameters.")
        return params

    def parse_function_body(self) -> List[Stmt]:
        # loops outside a function body do not make 'break' legal inside it
        enclosing_depth = self.loop_depth
        self.loop_depth = 0
        try:
            return self.parse_block()
        finally:
            self.loop_depth = enclosing_depth

    def parse_var_decl(self) -> VarDecl:
        name = self.consume(TokenType.IDENTIFIER, 'Expect variable name.')
        initializer: Optional[Expr] = None
        if self.match(TokenType.EQUAL):
            initializer = self.parse_expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after variable declaration.")
        return VarDecl(name, initializer)

    # Statements

    def parse_statement(self) -> Stmt:
        if self.match(TokenType.FOR):
            return self.parse_for_stmt()
        if self.match(TokenType.IF):
            return self.parse_if_stmt()
        if self.match(TokenType.PRINT):
            return self.parse_print_stmt()
        if keyword := self.match(TokenType.RETURN):
            return self.parse_return_stmt(keyword)
        if self.match(TokenType.WHILE):
            return self.parse_while_stmt()
        if keyword := self.match(TokenType.BREAK):
            return self.parse_break_stmt(keyword)
        if self.match(TokenType.LEFT_BRACE):
            return Block(self.parse_block())
        return self.parse_expr_stmt()

    def parse_block(self) -> List[Stmt]:
        statements: List[Stmt] = []
        while not self.check(TokenType.RIGHT_BRACE) and not self.at_end():
            stmt = self.parse_declaration()
            if stmt is not None:
                statements.append(stmt)
        self.consume(TokenType.RIGHT_BRACE, "Expect '}' after block.")
        return statements

    def parse_loop_body(self) -> Stmt:
        self.loop_depth += 1
        try:
            return self.parse_statement()
        finally:
            self.loop_depth -= 1

    def parse_for_stmt(self) -> Stmt:
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'for'.")
        initializer: Optional[Stmt]
        if self.match(TokenType.SEMICOLON):
            initializer = None
        elif self.match(TokenType.VAR):
            initializer = self.parse_var_decl()
        else:
            initializer = self.parse_expr_stmt()

        condition: Optional[Expr] = None
        if not self.check(TokenType.SEMICOLON):
            condition = self.parse_expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after loop condition.")

        increment: Optional[Expr] = None
        if not self.check(TokenType.RIGHT_PAREN):
            increment = self.parse_expression()
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after for clauses.")

        body = self.parse_loop_body()
        if increment is not None:
            body = Block([body, ExprStmt(increment)])
        if condition is None:
            condition = Literal(True)
        body = WhileStmt(condition, body)
        if initializer is not None:
            body = Block([initializer, body])
        return body

    def parse_if_stmt(self) -> IfStmt:
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'if'.")
        condition = self.parse_expression()
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after if condition.")
        then_branch = self.parse_statement()
        else_branch = None
        if self.match(TokenType.ELSE):
            else_branch = self.parse_statement()
        return IfStmt(condition, then_branch, else_branch)

    def parse_print_stmt(self) -> PrintStmt:
        value = self.parse_expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after value.")
        return PrintStmt(value)

    def parse_return_stmt(self, keyword: Token) -> ReturnStmt:
        value = None
        if not self.check(TokenType.SEMICOLON):
            value = self.parse_expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after return value.")
        return ReturnStmt(keyword, value)

    def parse_while_stmt(self) -> WhileStmt:
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'while'.")
        condition = self.parse_expression()
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after condition.")
        body = self.parse_loop_body()
        return WhileStmt(condition, body)

    def parse_break_stmt(self, keyword: Token) -> BreakStmt:
        if self.loop_depth == 0:
            self.error(keyword, "Can't use 'break' outside of a loop.")
        self.consume(TokenType.SEMICOLON, "Expect ';' after 'break'.")
        return BreakStmt(keyword)

    def parse_expr_stmt(self) -> ExprStmt:
        expr = self.parse_expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after expression.")
        return ExprStmt(expr)

    # Expressions

    def parse_expression(self) -> Expr:
        return self.parse_assignment()

    def parse_assignment(self) -> Expr:
        expr = self.parse_logic_or()
        if equals := self.match(TokenType.EQUAL):
            value = self.parse_assignment()
            if isinstance(expr, Variable):
                return Assign(expr.name, value)
            if isinstance(expr, Get):
                return Set(expr.target, expr.name, value)
            self.error(equals, 'Invalid assignment target.')
        return expr

    def parse_logic_or(self) -> Expr:
        expr = self.parse_logic_and()
        while op := self.match(TokenType.OR):
            expr = LogicalOp(expr, op, self.parse_logic_and())
        return expr

    def parse_logic_and(self) -> Expr:
        expr = self.parse_equality()
        while op := self.match(TokenType.AND):
            expr = LogicalOp(expr, op, self.parse_equality())
        return expr

    def parse_equality(self) -> Expr:
        expr = self.parse_comparison()
        while op := self.match(TokenType.BANG_EQUAL, TokenType.EQUAL_EQUAL):
            expr = BinaryOp(expr, op, self.parse_comparison())
        return expr

    def parse_comparison(self) -> Expr:
        expr = self.parse_term()
        while op := self.match(TokenType.GREATER, TokenType.GREATER_EQUAL,
                               TokenType.LESS, TokenType.LESS_EQUAL):
            expr = BinaryOp(expr, op, self.parse_term())
        return expr

    def parse_term(self) -> Expr:
        expr = self.parse_factor()
        while op := self.match(TokenType.MINUS, TokenType.PLUS):
            expr = BinaryOp(expr, op, self.parse_factor())
        return expr

    def parse_factor(self) -> Expr:
        expr = self.parse_unary()
        while op := self.match(TokenType.SLASH, TokenType.STAR):
            expr = BinaryOp(expr, op, self.parse_unary())
        return expr

    def parse_unary(self) -> Expr:
        if op := self.match(TokenType.BANG, TokenType.MINUS, TokenType.PLUS):
            return UnaryOp(op, self.parse_unary())
        return self.parse_call()

    def parse_call(self) -> Expr:
        expr = self.parse_primary()
        while True:
            if self.match(TokenType.LEFT_PAREN):
                expr = self.finish_call(expr)
            elif self.match(TokenType.DOT):
                name = self.consume(TokenType.IDENTIFIER, "Expect property name after '.'.")
                expr = Get(expr, name)
            else:
                break
        return expr

    def finish_call(self, callee: Expr) -> Call:
        args: List[Expr] = []
        if not self.check(TokenType.RIGHT_PAREN):
            while True:
                if len(args) >= MAX_ARGS:
                    self.error(self.peek(), f"Can't have more than {MAX_ARGS} arguments.")
                args.append(self.parse_expression())
                if not self.match(TokenType.COMMA):
                    break
        paren = self.consume(TokenType.RIGHT_PAREN, "Expect ')' after arguments.")
        return Call(callee, paren, args)

    def parse_primary(self) -> Expr:
        if self.match(TokenType.FALSE):
            return Literal(False)
        if self.match(TokenType.TRUE):
            return Literal(True)
        if self.match(TokenType.NIL):
            return Literal(None)
        if token := self.match(TokenType.NUMBER, TokenType.STRING):
            return Literal(token.literal)
        if keyword := self.match(TokenType.SUPER):
            self.consume(TokenType.DOT, "Expect '.' after 'super'.")
            method = self.consume(TokenType.IDENTIFIER, 'Expect superclass method name.')
            return Super(keyword, method)
        if keyword := self.match(TokenType.THIS):
            return This(keyword)
        if token := self.match(TokenType.IDENTIFIER):
            return Variable(token)
        if keyword := self.match(TokenType.FUN):
            return self.parse_lambda(keyword)
        if self.match(TokenType.LEFT_PAREN):
            expr = self.parse_expression()
            self.consume(TokenType.RIGHT_PAREN, "Expect ')' after expression.")
            return Grouping(expr)
        raise self.error(self.peek(), 'Expect expression.')

    def parse_lambda(self, keyword: Token) -> Lambda:
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'fun'.")
        params = self.parse_parameters()
        self.consume(TokenType.LEFT_BRACE, "Expect '{' before lambda body.")
        body = self.parse_function_body()
        return Lambda(keyword, params, body)


def parse(tokens: List[Token]) -> Tuple[List[Stmt], List[Diagnostic]]:
    """Parse a token list into statements, collecting syntax diagnostics."""
    ensure_recursion_limit()
    parser = Parser(tokens)
    statements = parser.parse_program()
    return statements, parser.diagnostics
