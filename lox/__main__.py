"""CLI entry point for the Lox interpreter.

Usage:
    python -m lox [-v|-vv|-vvv|-vvvv] [script]
    python -m lox [-v...] --emit-ast <script>
    python -m lox [-v...] --ast <ast_json_file>

Options:
  -v            Increase debug verbosity (can be repeated)
  --emit-ast    Parse the given .lox file and emit an AST JSON file
  --ast         Resolve and execute a previously emitted AST JSON file

Without a script an interactive prompt is started. Each line is run
against the same global environment and bare expression statements print
their value. Debug information is written to `debug.txt` in the current
directory when verbosity is greater than zero.

Exit codes: 64 for usage and static errors, 70 for runtime errors and 66
when the input file does not exist.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from .ast_json import ast_to_obj, ast_from_obj
from .errors import Diagnostic, RuntimeDiagnostic
from .interpreter import run_program, Interpreter
from .parser import parse
from .resolver import resolve
from .scanner import scan

EXIT_STATIC_ERROR = 64
EXIT_NO_INPUT = 66
EXIT_RUNTIME_ERROR = 70


def report(diagnostics: List[Diagnostic]) -> int:
    """Print diagnostics to stderr and return the matching exit code."""
    for diagnostic in diagnostics:
        print(diagnostic, file=sys.stderr)
    if not diagnostics:
        return 0
    if any(isinstance(d, RuntimeDiagnostic) for d in diagnostics):
        return EXIT_RUNTIME_ERROR
    return EXIT_STATIC_ERROR


def read_source(path: Path) -> str:
    if not path.exists():
        print(f"Error: file {path} not found", file=sys.stderr)
        sys.exit(EXIT_NO_INPUT)
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def run_repl(interpreter: Interpreter):
    while True:
        try:
            line = input('> ')
        except EOFError:
            print()
            break
        # errors on one line never poison the next
        report(run_program(line, interpreter=interpreter, repl_mode=True))


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Lox language interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    group = parser.add_mutually_exclusive_group()
    group.add_argument('--emit-ast', metavar='LOX_FILE', help='emit AST JSON for the given .lox file')
    group.add_argument('--ast', metavar='AST_JSON_FILE', help='execute AST from a JSON file')
    parser.add_argument('script', nargs='?', help='Lox script (.lox) to execute; omit for a prompt')
    args = parser.parse_args(argv)

    # Emit AST mode
    if args.emit_ast:
        program_file = Path(args.emit_ast)
        source = read_source(program_file)
        tokens, diagnostics = scan(source)
        statements, parse_diagnostics = parse(tokens)
        code = report(diagnostics + parse_diagnostics)
        if code:
            sys.exit(code)
        out_path = program_file.with_name(program_file.name + '.ast.json')
        with open(out_path, 'w', encoding='utf-8') as out:
            json.dump(ast_to_obj(statements), out, ensure_ascii=False, indent=2)
        print(str(out_path))
        return

    # Execute from AST JSON
    if args.ast:
        ast_path = Path(args.ast)
        if not ast_path.exists():
            print(f"Error: file {ast_path} not found", file=sys.stderr)
            sys.exit(EXIT_NO_INPUT)
        with open(ast_path, 'r', encoding='utf-8') as f:
            statements = ast_from_obj(json.load(f))
        locals_, diagnostics = resolve(statements)
        code = report(diagnostics)
        if code:
            sys.exit(code)
        interpreter = Interpreter(debug_level=args.v)
        try:
            code = report(interpreter.interpret(statements, locals_))
        finally:
            interpreter.close()
        if code:
            sys.exit(code)
        return

    interpreter = Interpreter(debug_level=args.v)
    try:
        if not args.script:
            run_repl(interpreter)
            return
        source = read_source(Path(args.script))
        code = report(run_program(source, interpreter=interpreter))
    finally:
        interpreter.close()
    if code:
        sys.exit(code)


if __name__ == '__main__':
    main()
