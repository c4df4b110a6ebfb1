from lox.errors import Diagnostic
from lox.scanner import scan
from lox.tokens import TokenType


def token_types(source):
    tokens, _ = scan(source)
    return [t.type for t in tokens]


def test_punctuation_and_operators():
    assert token_types('(){},.-+;*/ ! != = == < <= > >=') == [
        TokenType.LEFT_PAREN, TokenType.RIGHT_PAREN, TokenType.LEFT_BRACE,
        TokenType.RIGHT_BRACE, TokenType.COMMA, TokenType.DOT, TokenType.MINUS,
        TokenType.PLUS, TokenType.SEMICOLON, TokenType.STAR, TokenType.SLASH,
        TokenType.BANG, TokenType.BANG_EQUAL, TokenType.EQUAL, TokenType.EQUAL_EQUAL,
        TokenType.LESS, TokenType.LESS_EQUAL, TokenType.GREATER, TokenType.GREATER_EQUAL,
        TokenType.EOF,
    ]


def test_keywords_and_identifiers():
    tokens, diagnostics = scan('class classy break _x1')
    assert diagnostics == []
    assert [t.type for t in tokens] == [
        TokenType.CLASS, TokenType.IDENTIFIER, TokenType.BREAK, TokenType.IDENTIFIER, TokenType.EOF,
    ]
    assert tokens[3].lexeme == '_x1'


def test_literals():
    tokens, _ = scan('12 3.25 "hi there"')
    assert tokens[0].literal == 12.0
    assert tokens[1].literal == 3.25
    assert tokens[2].type == TokenType.STRING
    assert tokens[2].literal == 'hi there'
    assert tokens[2].lexeme == '"hi there"'


def test_trailing_dot_is_not_part_of_number():
    tokens, _ = scan('123.')
    assert [t.type for t in tokens] == [TokenType.NUMBER, TokenType.DOT, TokenType.EOF]
    assert tokens[0].literal == 123.0


def test_comments_are_skipped_and_lines_counted():
    source = '// line comment\nvar a; /* block\ncomment */ print a;\n'
    tokens, diagnostics = scan(source)
    assert diagnostics == []
    assert [(t.lexeme, t.line) for t in tokens] == [
        ('var', 2), ('a', 2), (';', 2), ('print', 3), ('a', 3), (';', 3), ('', 4),
    ]


def test_multiline_string_line_number():
    tokens, _ = scan('"one\ntwo" x')
    assert tokens[0].literal == 'one\ntwo'
    assert tokens[1].line == 2


def test_unexpected_character_keeps_scanning():
    tokens, diagnostics = scan('1 @ 2')
    assert diagnostics == [Diagnostic(1, '', 'Unexpected character.')]
    assert [t.type for t in tokens] == [TokenType.NUMBER, TokenType.NUMBER, TokenType.EOF]


def test_unterminated_string():
    tokens, diagnostics = scan('print "abc\ndef')
    assert [str(d) for d in diagnostics] == ['[line 2] Error: Unterminated string.']
    assert [t.type for t in tokens] == [TokenType.PRINT, TokenType.EOF]


def test_unterminated_comment_reports_start_line():
    _, diagnostics = scan('var a;\n/* never\nclosed\n')
    assert diagnostics == [Diagnostic(2, '', 'Unterminated comment.')]
