import pytest

from lox.errors import RuntimeDiagnostic
from lox.interpreter import run_program, Interpreter


def run(source, capsys):
    diagnostics = run_program(source)
    return capsys.readouterr().out.strip().split('\n'), diagnostics


def runtime_message(source):
    diagnostics = run_program(source)
    assert len(diagnostics) == 1
    assert isinstance(diagnostics[0], RuntimeDiagnostic)
    return diagnostics[0].message


def test_string_repeat(capsys):
    out, diagnostics = run('print "a" * 3;', capsys)
    assert diagnostics == []
    assert out == ['aaa']


@pytest.mark.parametrize('source, message', [
    ('print 3 * "a";', 'Right operand must be a number.'),
    ('print "a" * 1.5;', "Can't repeat a string a non-integral number of times."),
    ('print "a" - 1;', 'Left operand must be a number.'),
    ('print -"a";', 'Operand must be a number.'),
    ('print +nil;', 'Operand must be a number.'),
    ('print true + 1;', 'Operands must be two numbers or include a string.'),
    ('print 1 < "2";', 'Right operand must be a number.'),
    ('print 1 / 0;', 'Division by zero.'),
    ('print y;', "Undefined variable 'y'."),
    ('y = 1;', "Undefined variable 'y'."),
    ('"x"();', 'Can only call functions and classes.'),
    ('fun f(a) { return a; } f(1, 2);', 'Expected 1 arguments but got 2.'),
    ('class A { init(x) { this.x = x; } } A();', 'Expected 1 arguments but got 0.'),
    ('var n = 1; print n.x;', 'Only instances have properties.'),
    ('var n = 1; n.x = 2;', 'Only instances have fields.'),
    ('class A {} print A().x;', "Undefined property 'x'."),
    ('class A {} print A.make;', "Undefined property 'make'."),
    ('var B = 1; class A < B {}', 'Superclass must be a class.'),
    ('{ var a; print a; }', "Variable 'a' is not initialized."),
])
def test_runtime_errors(source, message):
    assert runtime_message(source) == message


def test_runtime_error_line(capsys):
    out, diagnostics = run('print "ok";\n\nprint nil + nil;\nprint "never";', capsys)
    assert out == ['ok']
    assert [str(d) for d in diagnostics] == [
        'Operands must be two numbers or include a string.\n[line 3]',
    ]


def test_number_display(capsys):
    out, _ = run('print 3; print 1.5; print 10 / 4; print 0.1 + 0.2; print 2 * 3.5;', capsys)
    assert out == ['3', '1.5', '2.5', '0.30000000000000004', '7']


def test_string_concatenation_converts_other_operand(capsys):
    out, _ = run('print "x" + 1; print 2 + "y"; print "t" + true; print "n" + nil;', capsys)
    assert out == ['x1', '2y', 'ttrue', 'nnil']


def test_equality(capsys):
    source = '''
    print nil == nil;
    print 1 == "1";
    print true == 1;
    print "a" + "b" == "ab";
    print 2 != 2;
    fun f() {}
    print f == f;
    '''
    out, diagnostics = run(source, capsys)
    assert diagnostics == []
    assert out == ['true', 'false', 'false', 'true', 'false', 'true']


def test_logical_operators_return_operands(capsys):
    out, _ = run('print nil or 0; print false and 1; print 1 and 2; print "a" or "b";', capsys)
    assert out == ['0', 'false', '2', 'a']


def test_short_circuit_skips_right_side(capsys):
    source = '''
    var calls = 0;
    fun touch() { calls = calls + 1; return true; }
    print true or touch();
    print false and touch();
    print calls;
    '''
    out, _ = run(source, capsys)
    assert out == ['true', 'false', '0']


def test_functions_without_return_yield_nil(capsys):
    out, _ = run('fun f() {} print f(); fun g() { return; } print g();', capsys)
    assert out == ['nil', 'nil']


def test_return_unwinds_nested_loops(capsys):
    source = '''
    fun find() {
      for (var i = 0; i < 5; i = i + 1) {
        var j = 0;
        while (j < 5) {
          if (i * j == 6) return i + j;
          j = j + 1;
        }
      }
      return -1;
    }
    print find();
    '''
    out, diagnostics = run(source, capsys)
    assert diagnostics == []
    assert out == ['5']


def test_break_only_leaves_inner_loop(capsys):
    source = '''
    for (var i = 0; i < 3; i = i + 1) {
      while (true) {
        { break; }
      }
      print i;
    }
    '''
    out, _ = run(source, capsys)
    assert out == ['0', '1', '2']


def test_bound_methods_are_independent(capsys):
    source = '''
    class Box {
      init(v) { this.v = v; }
      get() { return this.v; }
    }
    var a = Box(1);
    var b = Box(2);
    var ga = a.get;
    var gb = b.get;
    print ga();
    print gb();
    a.v = 10;
    print ga();
    print gb();
    '''
    out, _ = run(source, capsys)
    assert out == ['1', '2', '10', '2']


def test_fields_shadow_methods(capsys):
    source = '''
    class A { m() { return "method"; } }
    var a = A();
    a.m = fun () { return "field"; };
    print a.m();
    '''
    out, _ = run(source, capsys)
    assert out == ['field']


def test_init_returns_instance(capsys):
    source = '''
    class A {
      init() { this.n = 1; return; }
    }
    var a = A();
    print a.init() == a;
    print a.n;
    '''
    out, _ = run(source, capsys)
    assert out == ['true', '1']


def test_inherited_init_and_super_getter(capsys):
    source = '''
    class Base {
      init(name) { this.name = name; }
      label { return "base " + this.name; }
    }
    class Derived < Base {
      label { return super.label + "!"; }
    }
    print Derived("d").label;
    '''
    out, diagnostics = run(source, capsys)
    assert diagnostics == []
    assert out == ['base d!']


def test_class_methods_and_inheritance(capsys):
    source = '''
    class Math {
      class square(n) { return n * n; }
    }
    class More < Math {}
    print Math.square(3);
    print More.square(4);
    '''
    out, _ = run(source, capsys)
    assert out == ['9', '16']


def test_display_of_runtime_objects(capsys):
    source = '''
    class A { m() { return 1; } }
    fun f() {}
    print A;
    print A();
    print A().m;
    print f;
    print fun () {};
    print clock;
    '''
    out, _ = run(source, capsys)
    assert out == ['<class A>', '<A instance>', '<fn m>', '<fn f>', '<fn>', '<native fn clock>']


def test_clock_is_a_number(capsys):
    out, _ = run('var t = clock(); print t > 0; print t - t;', capsys)
    assert out == ['true', '0']


def test_repl_mode_prints_expression_statements(capsys):
    diagnostics = run_program('1 + 2; print "p"; var x = 4; x;', repl_mode=True)
    assert diagnostics == []
    assert capsys.readouterr().out.strip().split('\n') == ['3', 'p', '4']


def test_interpreter_keeps_globals_between_runs(capsys):
    interp = Interpreter()
    assert run_program('var a = 1; fun bump() { a = a + 1; }', interpreter=interp) == []
    assert run_program('bump(); print a;', interpreter=interp) == []
    # an error in one run leaves the state usable for the next
    assert len(run_program('print missing;', interpreter=interp)) == 1
    assert run_program('print a;', interpreter=interp) == []
    assert capsys.readouterr().out.strip().split('\n') == ['2', '2']


def test_debug_trace_written_to_file(tmp_path, capsys):
    debug_file = tmp_path / 'debug.txt'
    interp = Interpreter(debug_level=4, debug_file=str(debug_file))
    run_program('fun f(n) { return n; }\nvar x = f(1);\nif (x) print x;', interpreter=interp)
    interp.close()
    assert capsys.readouterr().out.strip() == '1'
    trace = debug_file.read_text(encoding='utf-8')
    assert 'tokens: [FUN fun None]' in trace
    assert 'ast:\nfun f(n) {\n  return n;\n}' in trace
    assert 'define function f' in trace
    assert 'call <fn f> with 1 arguments at line 2' in trace
    assert 'declare x = 1.0' in trace
    assert 'if condition 1 -> True' in trace


def test_override_and_super_dispatch(capsys):
    source = '''
    class A { f() { return "A"; } }
    class B < A {
      f() { return "B"; }
      viaSuper() { return super.f(); }
    }
    print B().f();
    print B().viaSuper();
    '''
    out, diagnostics = run(source, capsys)
    assert diagnostics == []
    assert out == ['B', 'A']


def test_deep_recursion(capsys):
    source = 'fun sum(n) { if (n == 0) return 0; return n + sum(n - 1); }\nprint sum(300);'
    out, diagnostics = run(source, capsys)
    assert diagnostics == []
    assert out == ['45150']


def test_unbounded_recursion_is_a_runtime_error(capsys):
    out, diagnostics = run('print "start";\nfun f() { f(); }\nf();\nprint "never";', capsys)
    assert out == ['start']
    assert diagnostics == [RuntimeDiagnostic(2, '', 'Stack overflow.')]


def test_numbers_print_without_exponent(capsys):
    out, _ = run('print 10000000000000000; print 0.00001; print 123456789 * 1000000000000;', capsys)
    assert out == ['10000000000000000', '0.00001', '123456789000000000000']
