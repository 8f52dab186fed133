# src/monkey_py/parser/lexer.py

import re
from typing import Iterator, List

# --- Token kinds ---

ILLEGAL = 'ILLEGAL'
EOF = 'EOF'

IDENT = 'IDENT'
INT = 'INT'
STRING = 'STRING'

ASSIGN = 'ASSIGN'
PLUS = 'PLUS'
MINUS = 'MINUS'
BANG = 'BANG'
ASTERISK = 'ASTERISK'
SLASH = 'SLASH'
LT = 'LT'
GT = 'GT'
EQ = 'EQ'
NOT_EQ = 'NOT_EQ'

COMMA = 'COMMA'
SEMICOLON = 'SEMICOLON'
COLON = 'COLON'
LPAREN = 'LPAREN'
RPAREN = 'RPAREN'
LBRACE = 'LBRACE'
RBRACE = 'RBRACE'
LBRACKET = 'LBRACKET'
RBRACKET = 'RBRACKET'

FUNCTION = 'FUNCTION'
LET = 'LET'
TRUE = 'TRUE'
FALSE = 'FALSE'
IF = 'IF'
ELSE = 'ELSE'
RETURN = 'RETURN'
MACRO = 'MACRO'

KEYWORDS = {
    'fn': FUNCTION,
    'let': LET,
    'true': TRUE,
    'false': FALSE,
    'if': IF,
    'else': ELSE,
    'return': RETURN,
    'macro': MACRO,
}

# Order matters: two-character operators before their one-character prefixes.
token_specification = [
    ('WHITESPACE', r'[ \t\r\n]+'),
    ('INT',        r'\d+'),
    ('STRING',     r'"[^"]*"?'),
    ('IDENT',      r'[A-Za-z_]+'),
    ('EQ',         r'=='),
    ('NOT_EQ',     r'!='),
    ('ASSIGN',     r'='),
    ('BANG',       r'!'),
    ('PLUS',       r'\+'),
    ('MINUS',      r'-'),
    ('ASTERISK',   r'\*'),
    ('SLASH',      r'/'),
    ('LT',         r'<'),
    ('GT',         r'>'),
    ('COMMA',      r','),
    ('SEMICOLON',  r';'),
    ('COLON',      r':'),
    ('LPAREN',     r'\('),
    ('RPAREN',     r'\)'),
    ('LBRACE',     r'\{'),
    ('RBRACE',     r'\}'),
    ('LBRACKET',   r'\['),
    ('RBRACKET',   r'\]'),
    ('ILLEGAL',    r'.'),
]

token_regex = re.compile('|'.join(f'(?P<{name}>{pattern})' for name, pattern in token_specification), re.DOTALL)


class Token:
    """A lexical unit. Identity is the kind plus the literal text; position is informational."""

    def __init__(self, type: str, literal: str, line: int = 0, column: int = 0):
        self.type = type
        self.literal = literal
        self.line = line
        self.column = column

    def __repr__(self):
        return f"Token({self.type!r}, {self.literal!r}, line={self.line}, col={self.column})"

    def __eq__(self, other):
        return isinstance(other, Token) and self.type == other.type and self.literal == other.literal

    def __hash__(self):
        return hash((Token, self.type, self.literal))


def lookup_identifier(identifier: str) -> str:
    return KEYWORDS.get(identifier, IDENT)


def iter_tokens(code: str) -> Iterator[Token]:
    """Lazily yields the tokens of `code`, finishing with a single EOF token."""
    line_num = 1
    line_start = 0
    for mo in token_regex.finditer(code):
        kind = mo.lastgroup
        value = mo.group()
        column = mo.start() - line_start + 1

        if kind == 'IDENT':
            yield Token(lookup_identifier(value), value, line_num, column)
        elif kind == 'STRING':
            # Unterminated strings run to the end of input
            body = value[1:-1] if len(value) > 1 and value.endswith('"') else value[1:]
            yield Token(STRING, body, line_num, column)
        elif kind != 'WHITESPACE':
            yield Token(kind, value, line_num, column)

        newlines = value.count('\n')
        if newlines > 0:
            line_num += newlines
            line_start = mo.start() + value.rfind('\n') + 1

    yield Token(EOF, '', line_num, len(code) - line_start + 1)


def tokenize(code: str) -> List[Token]:
    return list(iter_tokens(code))
