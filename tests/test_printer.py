import pytest

from lox.parser import parse
from lox.printer import AstPrinter
from lox.types import format_number
from lox.scanner import scan


def print_source(source):
    tokens, _ = scan(source)
    statements, diagnostics = parse(tokens)
    assert diagnostics == []
    return AstPrinter().print_program(statements)


def test_expressions_keep_their_grouping():
    assert print_source('print (1 + 2) * -3;') == 'print (1 + 2) * -3;'
    assert print_source('a.b = c or !d and "s";') == 'a.b = c or !d and "s";'


def test_number_literals_have_no_exponent():
    assert format_number(3.0) == '3'
    assert format_number(2.5) == '2.5'
    assert format_number(0.00001) == '0.00001'
    assert format_number(1e21) == '1000000000000000000000'


def test_for_loop_prints_as_while():
    printed = print_source('for (var i = 0; i < 2; i = i + 1) print i;')
    assert printed == '\n'.join([
        '{',
        '  var i = 0;',
        '  while (i < 2)',
        '    {',
        '      print i;',
        '      i = i + 1;',
        '    }',
        '}',
    ])


def test_class_printing():
    printed = print_source('class A < B { class make() { return A(); } size { return 1; } }')
    assert printed == '\n'.join([
        'class A < B {',
        '  class make() {',
        '    return A();',
        '  }',
        '  size {',
        '    return 1;',
        '  }',
        '}',
    ])


def test_lambda_on_one_line():
    assert print_source('var f = fun (a) { print a; return a; };') == \
        'var f = fun (a) { print a; return a; };'


@pytest.mark.parametrize('index', range(1, 14))
def test_printing_is_stable_for_examples(index, example_source):
    first = print_source(example_source(f"program_{index}.lox"))
    assert print_source(first) == first


def test_small_and_large_literals_reparse():
    printed = print_source('print 0.00001 + 100000000000000000000;')
    assert printed == 'print 0.00001 + 100000000000000000000;'
