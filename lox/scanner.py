"""Lexical scanner for the Lox language.

The scanner walks the raw source text once and produces a flat list of
tokens, each tagged with the line it started on. Malformed input never
stops the scan: the offending character (or unterminated string/comment)
is recorded as a diagnostic and scanning resumes after it. The token list
always ends with a single EOF token.
"""

from __future__ import annotations

from typing import Any, List, Tuple

from .errors import Diagnostic
from .tokens import KEYWORDS, Token, TokenType


SINGLE_CHAR_TOKENS = {
    '(': TokenType.LEFT_PAREN,
    ')': TokenType.RIGHT_PAREN,
    '{': TokenType.LEFT_BRACE,
    '}': TokenType.RIGHT_BRACE,
    ',': TokenType.COMMA,
    '.': TokenType.DOT,
    '-': TokenType.MINUS,
    '+': TokenType.PLUS,
    ';': TokenType.SEMICOLON,
    '*': TokenType.STAR,
}

# character -> (token if followed by '=', token otherwise)
EQUAL_PAIRS = {
    '!': (TokenType.BANG_EQUAL, TokenType.BANG),
    '=': (TokenType.EQUAL_EQUAL, TokenType.EQUAL),
    '<': (TokenType.LESS_EQUAL, TokenType.LESS),
    '>': (TokenType.GREATER_EQUAL, TokenType.GREATER),
}


def is_digit(c: str) -> bool:
    return '0' <= c <= '9'


def is_alpha(c: str) -> bool:
    return 'a' <= c <= 'z' or 'A' <= c <= 'Z' or c == '_'


def is_alphanumeric(c: str) -> bool:
    return is_alpha(c) or is_digit(c)


class Scanner:
    def __init__(self, source: str):
        self.source = source
        self.tokens: List[Token] = []
        self.diagnostics: List[Diagnostic] = []
        self.start = 0
        self.current = 0
        self.line = 1

    def scan_tokens(self) -> List[Token]:
        while not self.at_end():
            # beginning of the next lexeme
            self.start = self.current
            self.scan_token()
        self.tokens.append(Token(TokenType.EOF, '', None, self.line))
        return self.tokens

    def at_end(self) -> bool:
        return self.current >= len(self.source)

    def advance(self) -> str:
        c = self.source[self.current]
        self.current += 1
        return c

    def match(self, expected: str) -> bool:
        if self.at_end() or self.source[self.current] != expected:
            return False
        self.current += 1
        return True

    def peek(self) -> str:
        if self.at_end():
            return '\0'
        return self.source[self.current]

    def peek_next(self) -> str:
        if self.current + 1 >= len(self.source):
            return '\0'
        return self.source[self.current + 1]

    def error(self, line: int, message: str):
        self.diagnostics.append(Diagnostic(line, '', message))

    def add_token(self, token_type: TokenType, literal: Any = None):
        lexeme = self.source[self.start:self.current]
        self.tokens.append(Token(token_type, lexeme, literal, self.line))

    def scan_token(self):
        c = self.advance()
        if c in SINGLE_CHAR_TOKENS:
            self.add_token(SINGLE_CHAR_TOKENS[c])
            return
        if c in EQUAL_PAIRS:
            with_equal, alone = EQUAL_PAIRS[c]
            self.add_token(with_equal if self.match('=') else alone)
            return
        if c == '/':
            if self.match('/'):
                # line comment runs to the end of the line
                while self.peek() != '\n' and not self.at_end():
                    self.advance()
            elif self.match('*'):
                self.block_comment()
            else:
                self.add_token(TokenType.SLASH)
            return
        if c in (' ', '\r', '\t'):
            return
        if c == '\n':
            self.line += 1
            return
        if c == '"':
            self.string()
            return
        if is_digit(c):
            self.number()
        elif is_alpha(c):
            self.identifier()
        else:
            self.error(self.line, 'Unexpected character.')

    def block_comment(self):
        start_line = self.line
        while not self.at_end() and not (self.peek() == '*' and self.peek_next() == '/'):
            if self.peek() == '\n':
                self.line += 1
            self.advance()
        if self.at_end():
            self.error(start_line, 'Unterminated comment.')
            return
        # closing "*/"
        self.advance()
        self.advance()

    def string(self):
        while self.peek() != '"' and not self.at_end():
            if self.peek() == '\n':
                self.line += 1
            self.advance()
        if self.at_end():
            self.error(self.line, 'Unterminated string.')
            return
        self.advance()  # closing quote
        self.add_token(TokenType.STRING, self.source[self.start + 1:self.current - 1])

    def number(self):
        while is_digit(self.peek()):
            self.advance()
        # a fractional part needs at least one digit after the dot
        if self.peek() == '.' and is_digit(self.peek_next()):
            self.advance()
            while is_digit(self.peek()):
                self.advance()
        self.add_token(TokenType.NUMBER, float(self.source[self.start:self.current]))

    def identifier(self):
        while is_alphanumeric(self.peek()):
            self.advance()
        text = self.source[self.start:self.current]
        self.add_token(KEYWORDS.get(text, TokenType.IDENTIFIER))


def scan(source: str) -> Tuple[List[Token], List[Diagnostic]]:
    """Scan Lox source into tokens, collecting any lexical diagnostics."""
    scanner = Scanner(source)
    tokens = scanner.scan_tokens()
    return tokens, scanner.diagnostics
