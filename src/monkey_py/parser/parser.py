# src/monkey_py/parser/parser.py

import logging
from typing import Callable, Dict, Iterable, Iterator, List, Tuple

from ..core.ast import (
    ArrayLiteral, BlockStatement, BooleanLiteral, CallExpression, Expression, ExpressionStatement,
    FunctionLiteral, HashLiteral, Identifier, IfExpression, IndexExpression, InfixExpression,
    IntegerLiteral, LetStatement, MacroLiteral, PrefixExpression, Program, ReturnStatement,
    Statement, StringLiteral,
)
from . import lexer
from .lexer import Token, iter_tokens

logger = logging.getLogger(__name__)

INT64_MAX = 2 ** 63 - 1


class ParseError(Exception):
    """A single syntax error. Raised inside the parser and collected into Parser.errors."""
    pass


# Operator Precedence Levels (Binding Powers)
# Higher numbers mean higher precedence
PRECEDENCE = {
    'LOWEST': 1,
    'EQUALS': 2,       # ==, !=
    'LESSGREATER': 3,  # <, >
    'SUM': 4,          # +, -
    'PRODUCT': 5,      # *, /
    'PREFIX': 6,       # -x, !x
    'CALL': 7,         # f(x)
    'INDEX': 8,        # a[i]
}

BINDING_POWERS = {
    lexer.EQ: PRECEDENCE['EQUALS'],
    lexer.NOT_EQ: PRECEDENCE['EQUALS'],
    lexer.LT: PRECEDENCE['LESSGREATER'],
    lexer.GT: PRECEDENCE['LESSGREATER'],
    lexer.PLUS: PRECEDENCE['SUM'],
    lexer.MINUS: PRECEDENCE['SUM'],
    lexer.ASTERISK: PRECEDENCE['PRODUCT'],
    lexer.SLASH: PRECEDENCE['PRODUCT'],
    lexer.LPAREN: PRECEDENCE['CALL'],
    lexer.LBRACKET: PRECEDENCE['INDEX'],
}

PrefixParseFn = Callable[[], Expression]
InfixParseFn = Callable[[Expression], Expression]


class Parser:
    """
    Pratt parser over a token stream.

    Keeps a two-token window (current_token, peek_token). Every parse method starts
    with current_token on the first token of its construct and leaves it on the
    construct's last token; callers advance past it.
    """

    def __init__(self, tokens: Iterable[Token]):
        self._tokens: Iterator[Token] = iter(tokens)
        self.errors: List[str] = []
        self.current_token: Token = self._next_from_stream()
        self.peek_token: Token = self._next_from_stream()
        self.prefix_parse_fns: Dict[str, PrefixParseFn] = self._init_prefix()
        self.infix_parse_fns: Dict[str, InfixParseFn] = self._init_infix()

    def _init_prefix(self) -> Dict[str, PrefixParseFn]:
        return {
            lexer.IDENT: self.parse_identifier,
            lexer.INT: self.parse_integer_literal,
            lexer.STRING: self.parse_string_literal,
            lexer.TRUE: self.parse_boolean,
            lexer.FALSE: self.parse_boolean,
            lexer.BANG: self.parse_prefix_expression,
            lexer.MINUS: self.parse_prefix_expression,
            lexer.LPAREN: self.parse_grouped_expression,
            lexer.IF: self.parse_if_expression,
            lexer.FUNCTION: self.parse_function_literal,
            lexer.MACRO: self.parse_macro_literal,
            lexer.LBRACKET: self.parse_array_literal,
            lexer.LBRACE: self.parse_hash_literal,
        }

    def _init_infix(self) -> Dict[str, InfixParseFn]:
        infix: Dict[str, InfixParseFn] = {
            op: self.parse_infix_expression for op in (
                lexer.PLUS, lexer.MINUS, lexer.ASTERISK, lexer.SLASH,
                lexer.EQ, lexer.NOT_EQ, lexer.LT, lexer.GT,
            )
        }
        infix[lexer.LPAREN] = self.parse_call_expression
        infix[lexer.LBRACKET] = self.parse_index_expression
        return infix

    # --- Token window ---

    def _next_from_stream(self) -> Token:
        # A stream that ends without EOF behaves as if it had one
        return next(self._tokens, None) or Token(lexer.EOF, '')

    def _advance(self):
        """Move to the next token."""
        self.current_token = self.peek_token
        if self.current_token.type != lexer.EOF:
            self.peek_token = self._next_from_stream()

    def _current_token_is(self, token_type: str) -> bool:
        return self.current_token.type == token_type

    def _peek_token_is(self, token_type: str) -> bool:
        return self.peek_token.type == token_type

    def _expect_peek(self, token_type: str):
        """Advance if the next token has the expected type, else raise ParseError."""
        if not self._peek_token_is(token_type):
            raise ParseError(
                f"expected next token to be {token_type}, got {self.peek_token.type} instead")
        self._advance()

    def _peek_precedence(self) -> int:
        return BINDING_POWERS.get(self.peek_token.type, PRECEDENCE['LOWEST'])

    def _current_precedence(self) -> int:
        return BINDING_POWERS.get(self.current_token.type, PRECEDENCE['LOWEST'])

    def _synchronize(self, in_block: bool = False):
        """
        Skip the rest of a broken statement: stop on ';' or EOF, and inside a block
        also on the '}' that closes it (left as current token).
        """
        depth = 0
        while not self._current_token_is(lexer.EOF):
            if self._current_token_is(lexer.SEMICOLON) and depth == 0:
                return
            if self._current_token_is(lexer.LBRACE):
                depth += 1
            elif self._current_token_is(lexer.RBRACE):
                if depth == 0 and in_block:
                    return
                depth = max(depth - 1, 0)
            self._advance()

    # --- Statements ---

    def parse_program(self) -> Program:
        """Parses statements until EOF, collecting errors instead of stopping at the first."""
        statements: List[Statement] = []
        while not self._current_token_is(lexer.EOF):
            try:
                statements.append(self.parse_statement())
            except ParseError as e:
                logger.debug("syntax error at %r: %s", self.current_token, e)
                self.errors.append(str(e))
                self._synchronize()
            self._advance()
        return Program(statements)

    def parse_statement(self) -> Statement:
        if self._current_token_is(lexer.LET):
            return self.parse_let_statement()
        elif self._current_token_is(lexer.RETURN):
            return self.parse_return_statement()
        return self.parse_expression_statement()

    def parse_let_statement(self) -> LetStatement:
        self._expect_peek(lexer.IDENT)
        name = Identifier(self.current_token.literal)
        self._expect_peek(lexer.ASSIGN)
        self._advance()
        value = self.parse_expression(PRECEDENCE['LOWEST'])
        if self._peek_token_is(lexer.SEMICOLON):
            self._advance()
        return LetStatement(name, value)

    def parse_return_statement(self) -> ReturnStatement:
        self._advance()
        return_value = self.parse_expression(PRECEDENCE['LOWEST'])
        if self._peek_token_is(lexer.SEMICOLON):
            self._advance()
        return ReturnStatement(return_value)

    def parse_expression_statement(self) -> ExpressionStatement:
        expression = self.parse_expression(PRECEDENCE['LOWEST'])
        if self._peek_token_is(lexer.SEMICOLON):
            self._advance()
        return ExpressionStatement(expression)

    def parse_block_statement(self) -> BlockStatement:
        """Current token is '{'. Errors inside the block are recorded and skipped."""
        statements: List[Statement] = []
        self._advance()
        while not self._current_token_is(lexer.RBRACE):
            if self._current_token_is(lexer.EOF):
                raise ParseError(f"expected next token to be {lexer.RBRACE}, got {lexer.EOF} instead")
            try:
                statements.append(self.parse_statement())
            except ParseError as e:
                logger.debug("syntax error in block at %r: %s", self.current_token, e)
                self.errors.append(str(e))
                self._synchronize(in_block=True)
                if self._current_token_is(lexer.RBRACE):
                    continue
            self._advance()
        return BlockStatement(statements)

    # --- Core Pratt Parsing Logic ---

    def parse_expression(self, precedence: int = PRECEDENCE['LOWEST']) -> Expression:
        prefix = self.prefix_parse_fns.get(self.current_token.type)
        if prefix is None:
            raise ParseError(f"no prefix parse function for {self.current_token.type} found")
        left = prefix()

        while not self._peek_token_is(lexer.SEMICOLON) and precedence < self._peek_precedence():
            infix = self.infix_parse_fns.get(self.peek_token.type)
            if infix is None:
                return left
            self._advance()
            left = infix(left)

        return left

    # --- Prefix rules ---

    def parse_identifier(self) -> Identifier:
        return Identifier(self.current_token.literal)

    def parse_integer_literal(self) -> IntegerLiteral:
        literal = self.current_token.literal
        value = int(literal)
        if value > INT64_MAX:
            raise ParseError(f'could not parse "{literal}" as integer')
        return IntegerLiteral(value)

    def parse_string_literal(self) -> StringLiteral:
        return StringLiteral(self.current_token.literal)

    def parse_boolean(self) -> BooleanLiteral:
        return BooleanLiteral(self._current_token_is(lexer.TRUE))

    def parse_prefix_expression(self) -> PrefixExpression:
        operator = self.current_token.literal
        self._advance()
        right = self.parse_expression(PRECEDENCE['PREFIX'])
        return PrefixExpression(operator, right)

    def parse_grouped_expression(self) -> Expression:
        self._advance()
        expression = self.parse_expression(PRECEDENCE['LOWEST'])
        self._expect_peek(lexer.RPAREN)
        return expression

    def parse_if_expression(self) -> IfExpression:
        self._expect_peek(lexer.LPAREN)
        self._advance()
        condition = self.parse_expression(PRECEDENCE['LOWEST'])
        self._expect_peek(lexer.RPAREN)
        self._expect_peek(lexer.LBRACE)
        consequence = self.parse_block_statement()

        alternative = None
        if self._peek_token_is(lexer.ELSE):
            self._advance()
            self._expect_peek(lexer.LBRACE)
            alternative = self.parse_block_statement()

        return IfExpression(condition, consequence, alternative)

    def parse_function_literal(self) -> FunctionLiteral:
        self._expect_peek(lexer.LPAREN)
        parameters = self.parse_function_parameters()
        self._expect_peek(lexer.LBRACE)
        return FunctionLiteral(parameters, self.parse_block_statement())

    def parse_macro_literal(self) -> MacroLiteral:
        self._expect_peek(lexer.LPAREN)
        parameters = self.parse_function_parameters()
        self._expect_peek(lexer.LBRACE)
        return MacroLiteral(parameters, self.parse_block_statement())

    def parse_function_parameters(self) -> List[Identifier]:
        """Current token is '('; leaves current token on ')'."""
        parameters: List[Identifier] = []
        if self._peek_token_is(lexer.RPAREN):
            self._advance()
            return parameters

        while True:
            self._advance()
            if not self._current_token_is(lexer.IDENT):
                raise ParseError(f"expected parameter name, got {self.current_token.type} instead")
            parameters.append(Identifier(self.current_token.literal))
            if not self._peek_token_is(lexer.COMMA):
                break
            self._advance()

        self._expect_peek(lexer.RPAREN)
        return parameters

    def parse_array_literal(self) -> ArrayLiteral:
        return ArrayLiteral(self.parse_expression_list(lexer.RBRACKET))

    def parse_hash_literal(self) -> HashLiteral:
        pairs: List[Tuple[Expression, Expression]] = []
        if self._peek_token_is(lexer.RBRACE):
            self._advance()
            return HashLiteral(pairs)

        while True:
            self._advance()
            key = self.parse_expression(PRECEDENCE['LOWEST'])
            self._expect_peek(lexer.COLON)
            self._advance()
            value = self.parse_expression(PRECEDENCE['LOWEST'])
            pairs.append((key, value))
            if not self._peek_token_is(lexer.COMMA):
                break
            self._advance()

        self._expect_peek(lexer.RBRACE)
        return HashLiteral(pairs)

    def parse_expression_list(self, end: str) -> List[Expression]:
        """Comma-separated expressions up to `end`; current token is the opening delimiter."""
        items: List[Expression] = []
        if self._peek_token_is(end):
            self._advance()
            return items

        self._advance()
        items.append(self.parse_expression(PRECEDENCE['LOWEST']))
        while self._peek_token_is(lexer.COMMA):
            self._advance()
            self._advance()
            items.append(self.parse_expression(PRECEDENCE['LOWEST']))

        self._expect_peek(end)
        return items

    # --- Infix rules ---

    def parse_infix_expression(self, left: Expression) -> InfixExpression:
        operator = self.current_token.literal
        precedence = self._current_precedence()
        self._advance()
        right = self.parse_expression(precedence)
        return InfixExpression(left, operator, right)

    def parse_call_expression(self, function: Expression) -> CallExpression:
        return CallExpression(function, self.parse_expression_list(lexer.RPAREN))

    def parse_index_expression(self, left: Expression) -> IndexExpression:
        self._advance()
        index = self.parse_expression(PRECEDENCE['LOWEST'])
        self._expect_peek(lexer.RBRACKET)
        return IndexExpression(left, index)


# --- Entry points ---

def parse(tokens: Iterable[Token]) -> Tuple[Program, List[str]]:
    """
    Parses a token stream. Returns the (possibly partial) program and the list of
    syntax errors; the program must not be evaluated unless the list is empty.
    """
    parser = Parser(tokens)
    program = parser.parse_program()
    return program, parser.errors


def parse_source(code: str) -> Tuple[Program, List[str]]:
    return parse(iter_tokens(code))
