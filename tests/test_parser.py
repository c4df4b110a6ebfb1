from lox.ast import (
    Assign, BinaryOp, Block, ExprStmt, FuncDecl, Get, Grouping, Lambda,
    Literal, PrintStmt, Set, VarDecl, WhileStmt,
)
from lox.parser import parse
from lox.scanner import scan
from lox.tokens import TokenType


def parse_source(source):
    tokens, scan_diagnostics = scan(source)
    assert scan_diagnostics == []
    return parse(tokens)


def messages(diagnostics):
    return [str(d) for d in diagnostics]


def test_precedence():
    statements, diagnostics = parse_source('1 + 2 * 3;')
    assert diagnostics == []
    expr = statements[0].expression
    assert isinstance(expr, BinaryOp)
    assert expr.op.type == TokenType.PLUS
    assert isinstance(expr.right, BinaryOp)
    assert expr.right.op.type == TokenType.STAR


def test_grouping_and_unary():
    statements, _ = parse_source('-(1 + 2);')
    expr = statements[0].expression
    assert expr.op.type == TokenType.MINUS
    assert isinstance(expr.operand, Grouping)


def test_assignment_targets():
    statements, diagnostics = parse_source('a = b = 1; obj.field = 2;')
    assert diagnostics == []
    first = statements[0].expression
    assert isinstance(first, Assign)
    assert isinstance(first.value, Assign)
    second = statements[1].expression
    assert isinstance(second, Set)
    assert second.name.lexeme == 'field'


def test_invalid_assignment_target_does_not_unwind():
    statements, diagnostics = parse_source('1 = 2;\nprint 3;')
    assert messages(diagnostics) == ["[line 1] Error at '=': Invalid assignment target."]
    assert len(statements) == 2


def test_synchronize_reports_several_errors():
    statements, diagnostics = parse_source('var = 1;\nprint 2;\nvar x = ;\n')
    assert messages(diagnostics) == [
        "[line 1] Error at '=': Expect variable name.",
        "[line 3] Error at ';': Expect expression.",
    ]
    assert len(statements) == 1
    assert isinstance(statements[0], PrintStmt)


def test_missing_semicolon_at_end():
    _, diagnostics = parse_source('print 1')
    assert messages(diagnostics) == ["[line 1] Error at end: Expect ';' after value."]


def test_parameter_limit():
    params = ', '.join(f"p{i}" for i in range(255))
    _, diagnostics = parse_source(f"fun f({params}) {{}}")
    assert diagnostics == []

    params = ', '.join(f"p{i}" for i in range(256))
    statements, diagnostics = parse_source(f"fun f({params}) {{}}")
    assert messages(diagnostics) == ["[line 1] Error at 'p255': Can't have more than 255 parameters."]
    # the declaration itself still parses
    assert isinstance(statements[0], FuncDecl)


def test_argument_limit():
    args = ', '.join('1' for _ in range(256))
    _, diagnostics = parse_source(f"f({args});")
    assert [d.message for d in diagnostics] == ["Can't have more than 255 arguments."]


def test_break_outside_loop():
    _, diagnostics = parse_source('break;')
    assert messages(diagnostics) == ["[line 1] Error at 'break': Can't use 'break' outside of a loop."]


def test_break_inside_function_inside_loop():
    _, diagnostics = parse_source('while (true) { fun f() { break; } }')
    assert [d.message for d in diagnostics] == ["Can't use 'break' outside of a loop."]


def test_break_inside_loop():
    _, diagnostics = parse_source('while (true) { if (true) break; }')
    assert diagnostics == []


def test_for_loop_desugars_to_while():
    statements, diagnostics = parse_source('for (var i = 0; i < 3; i = i + 1) print i;')
    assert diagnostics == []
    outer = statements[0]
    assert isinstance(outer, Block)
    init, loop = outer.statements
    assert isinstance(init, VarDecl)
    assert isinstance(loop, WhileStmt)
    assert isinstance(loop.condition, BinaryOp)
    body, increment = loop.body.statements
    assert isinstance(body, PrintStmt)
    assert isinstance(increment, ExprStmt)
    assert isinstance(increment.expression, Assign)


def test_for_loop_without_clauses():
    statements, diagnostics = parse_source('for (;;) break;')
    assert diagnostics == []
    loop = statements[0]
    assert isinstance(loop, WhileStmt)
    assert isinstance(loop.condition, Literal)
    assert loop.condition.value is True


def test_class_members():
    source = 'class A < B { init(x) { this.x = x; } size { return 1; } class make() { return A(1); } }'
    statements, diagnostics = parse_source(source)
    assert diagnostics == []
    klass = statements[0]
    assert klass.superclass.name.lexeme == 'B'
    assert [m.name.lexeme for m in klass.methods] == ['init', 'size']
    assert klass.methods[1].params is None
    assert klass.methods[1].is_getter
    assert [m.name.lexeme for m in klass.class_methods] == ['make']
    assert not klass.class_methods[0].is_getter


def test_lambda_expression():
    statements, diagnostics = parse_source('var f = fun (a, b) { return a; };')
    assert diagnostics == []
    value = statements[0].initializer
    assert isinstance(value, Lambda)
    assert [p.lexeme for p in value.params] == ['a', 'b']


def test_property_chain():
    statements, _ = parse_source('a.b.c;')
    expr = statements[0].expression
    assert isinstance(expr, Get)
    assert expr.name.lexeme == 'c'
    assert isinstance(expr.target, Get)


def test_deeply_nested_groupings_parse():
    source = 'print ' + '(' * 120 + '1' + ')' * 120 + ';'
    statements, diagnostics = parse_source(source)
    assert diagnostics == []
    expr = statements[0].expression
    depth = 0
    while isinstance(expr, Grouping):
        expr = expr.expression
        depth += 1
    assert depth == 120
    assert isinstance(expr, Literal)


def test_runaway_nesting_is_reported():
    source = 'print ' + '(' * 5000 + '1' + ')' * 5000 + ';\nprint 2;'
    statements, diagnostics = parse_source(source)
    assert [d.message for d in diagnostics] == ['Too much nesting.']
    # parsing resumes after the offending statement
    assert len(statements) == 1
    assert isinstance(statements[0], PrintStmt)
