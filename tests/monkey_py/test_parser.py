# tests/monkey_py/test_parser.py

import unittest

from monkey_py.core.ast import (
    ArrayLiteral, BlockStatement, BooleanLiteral, CallExpression, ExpressionStatement, FunctionLiteral,
    HashLiteral, Identifier, IfExpression, IndexExpression, InfixExpression, IntegerLiteral,
    LetStatement, MacroLiteral, PrefixExpression, Program, ReturnStatement, StringLiteral,
)
from monkey_py.parser.lexer import Token, tokenize
from monkey_py.parser.parser import Parser, parse, parse_source


class TestParser(unittest.TestCase):

    def parse_ok(self, text: str) -> Program:
        """Helper: parse text and assert there were no syntax errors"""
        program, errors = parse_source(text)
        self.assertEqual(errors, [], f"Input: {text}")
        return program

    def parse_expression(self, text: str):
        program = self.parse_ok(text)
        self.assertEqual(len(program.statements), 1, f"Input: {text}")
        statement = program.statements[0]
        self.assertIsInstance(statement, ExpressionStatement)
        return statement.expression

    def assertParseErrors(self, text: str, expected_errors):
        _, errors = parse_source(text)
        self.assertEqual(errors, expected_errors, f"Input: {text}")

    # --- Statements ---

    def test_let_statements(self):
        tests = [
            ("let x = 5;", "x", IntegerLiteral(5)),
            ("let y = true;", "y", BooleanLiteral(True)),
            ("let foobar = y;", "foobar", Identifier("y")),
        ]
        for text, name, value in tests:
            with self.subTest(text=text):
                program = self.parse_ok(text)
                self.assertEqual(program.statements, [LetStatement(Identifier(name), value)])

    def test_return_statements(self):
        tests = [
            ("return 5;", IntegerLiteral(5)),
            ("return true;", BooleanLiteral(True)),
            ("return foobar;", Identifier("foobar")),
        ]
        for text, value in tests:
            with self.subTest(text=text):
                program = self.parse_ok(text)
                self.assertEqual(program.statements, [ReturnStatement(value)])

    def test_semicolons_are_optional(self):
        with_semis = self.parse_ok("let a = 1; a; return a;")
        without = self.parse_ok("let a = 1 a return a")
        self.assertEqual(with_semis, without)
        self.assertEqual(len(without.statements), 3)

    def test_empty_program(self):
        self.assertEqual(self.parse_ok("").statements, [])

    # --- Expressions ---

    def test_literals(self):
        self.assertEqual(self.parse_expression("foobar;"), Identifier("foobar"))
        self.assertEqual(self.parse_expression("5;"), IntegerLiteral(5))
        self.assertEqual(self.parse_expression("false"), BooleanLiteral(False))
        self.assertEqual(self.parse_expression('"hello world";'), StringLiteral("hello world"))

    def test_largest_integer(self):
        self.assertEqual(self.parse_expression("9223372036854775807"), IntegerLiteral(2 ** 63 - 1))

    def test_prefix_expressions(self):
        tests = [
            ("!5;", "!", IntegerLiteral(5)),
            ("-15;", "-", IntegerLiteral(15)),
            ("!true;", "!", BooleanLiteral(True)),
            ("-a", "-", Identifier("a")),
        ]
        for text, operator, right in tests:
            with self.subTest(text=text):
                self.assertEqual(self.parse_expression(text), PrefixExpression(operator, right))

    def test_infix_expressions(self):
        for operator in ['+', '-', '*', '/', '>', '<', '==', '!=']:
            text = f"5 {operator} 5;"
            with self.subTest(text=text):
                self.assertEqual(self.parse_expression(text),
                                 InfixExpression(IntegerLiteral(5), operator, IntegerLiteral(5)))

    def test_operator_precedence(self):
        tests = [
            ("-a * b", "((-a) * b)"),
            ("!-a", "(!(-a))"),
            ("a + b + c", "((a + b) + c)"),
            ("a + b - c", "((a + b) - c)"),
            ("a * b * c", "((a * b) * c)"),
            ("a * b / c", "((a * b) / c)"),
            ("a + b / c", "(a + (b / c))"),
            ("a + b * c + d / e - f", "(((a + (b * c)) + (d / e)) - f)"),
            ("3 + 4; -5 * 5", "(3 + 4); ((-5) * 5)"),
            ("5 > 4 == 3 < 4", "((5 > 4) == (3 < 4))"),
            ("5 < 4 != 3 > 4", "((5 < 4) != (3 > 4))"),
            ("3 + 4 * 5 == 3 * 1 + 4 * 5", "((3 + (4 * 5)) == ((3 * 1) + (4 * 5)))"),
            ("true", "true"),
            ("3 > 5 == false", "((3 > 5) == false)"),
            ("1 + (2 + 3) + 4", "((1 + (2 + 3)) + 4)"),
            ("(5 + 5) * 2", "((5 + 5) * 2)"),
            ("2 / (5 + 5)", "(2 / (5 + 5))"),
            ("-(5 + 5)", "(-(5 + 5))"),
            ("!(true == true)", "(!(true == true))"),
            ("a + add(b * c) + d", "((a + add((b * c))) + d)"),
            ("add(a, b, 1, 2 * 3, 4 + 5, add(6, 7 * 8))", "add(a, b, 1, (2 * 3), (4 + 5), add(6, (7 * 8)))"),
            ("add(a + b + c * d / f + g)", "add((((a + b) + ((c * d) / f)) + g))"),
            ("a * [1, 2, 3, 4][b * c] * d", "((a * ([1, 2, 3, 4][(b * c)])) * d)"),
            ("add(a * b[2], b[1], 2 * [1, 2][1])", "add((a * (b[2])), (b[1]), (2 * ([1, 2][1])))"),
        ]
        for text, expected in tests:
            with self.subTest(text=text):
                self.assertEqual(str(self.parse_ok(text)), expected)

    def test_if_expression(self):
        expression = self.parse_expression("if (x < y) { x }")
        self.assertEqual(expression, IfExpression(
            InfixExpression(Identifier("x"), '<', Identifier("y")),
            BlockStatement([ExpressionStatement(Identifier("x"))]),
        ))
        self.assertIsNone(expression.alternative)

    def test_if_else_expression(self):
        expression = self.parse_expression("if (x < y) { x } else { y }")
        self.assertEqual(expression.alternative, BlockStatement([ExpressionStatement(Identifier("y"))]))

    def test_function_literal(self):
        expression = self.parse_expression("fn(x, y) { x + y; }")
        self.assertEqual(expression, FunctionLiteral(
            [Identifier("x"), Identifier("y")],
            BlockStatement([ExpressionStatement(InfixExpression(Identifier("x"), '+', Identifier("y")))]),
        ))

    def test_function_parameters(self):
        tests = [
            ("fn() {};", []),
            ("fn(x) {};", ["x"]),
            ("fn(x, y, z) {};", ["x", "y", "z"]),
        ]
        for text, expected in tests:
            with self.subTest(text=text):
                expression = self.parse_expression(text)
                self.assertEqual([p.value for p in expression.parameters], expected)

    def test_macro_literal(self):
        expression = self.parse_expression("macro(x, y) { x + y; }")
        self.assertIsInstance(expression, MacroLiteral)
        self.assertEqual([p.value for p in expression.parameters], ["x", "y"])
        self.assertEqual(str(expression.body), "{ (x + y) }")

    def test_call_expression(self):
        expression = self.parse_expression("add(1, 2 * 3, 4 + 5);")
        self.assertIsInstance(expression, CallExpression)
        self.assertEqual(expression.function, Identifier("add"))
        self.assertEqual([str(a) for a in expression.arguments], ["1", "(2 * 3)", "(4 + 5)"])

    def test_call_with_no_arguments(self):
        self.assertEqual(self.parse_expression("f()"), CallExpression(Identifier("f"), []))

    def test_array_literal(self):
        expression = self.parse_expression("[1, 2 * 2, 3 + 3]")
        self.assertIsInstance(expression, ArrayLiteral)
        self.assertEqual([str(e) for e in expression.elements], ["1", "(2 * 2)", "(3 + 3)"])
        self.assertEqual(self.parse_expression("[]"), ArrayLiteral([]))

    def test_index_expression(self):
        self.assertEqual(self.parse_expression("myArray[1 + 1]"), IndexExpression(
            Identifier("myArray"), InfixExpression(IntegerLiteral(1), '+', IntegerLiteral(1))))

    def test_hash_literals(self):
        expression = self.parse_expression('{"one": 1, "two": 2, "three": 3}')
        self.assertIsInstance(expression, HashLiteral)
        self.assertEqual([(k.value, v.value) for k, v in expression.pairs],
                         [("one", 1), ("two", 2), ("three", 3)])

        self.assertEqual(self.parse_expression("{}"), HashLiteral([]))

        expression = self.parse_expression('{"one": 0 + 1, true: 10 - 8, 3: 15 / 5}')
        self.assertEqual([(str(k), str(v)) for k, v in expression.pairs],
                         [('"one"', "(0 + 1)"), ("true", "(10 - 8)"), ("3", "(15 / 5)")])

    def test_printing_round_trips(self):
        sources = [
            "let add = fn(a, b) { return a + b; }; add(1, 2 * 3)",
            'let h = {"a": [1, 2], 3: true}; h["a"][0]',
            "if (!x) { 1 } else { if (y == z) { -2 } }",
            'let m = macro(q) { quote(unquote(q) + 1) }; "str"',
            "fn() { }",
        ]
        for source in sources:
            with self.subTest(source=source):
                program = self.parse_ok(source)
                self.assertEqual(self.parse_ok(str(program)), program)

    # --- Errors ---

    def test_let_errors(self):
        self.assertParseErrors("let = 5;", ["expected next token to be IDENT, got ASSIGN instead"])
        self.assertParseErrors("let x 5;", ["expected next token to be ASSIGN, got INT instead"])

    def test_errors_are_collected(self):
        program, errors = parse_source("let x = 5; let = 10; let 838383;")
        self.assertEqual(errors, [
            "expected next token to be IDENT, got ASSIGN instead",
            "expected next token to be IDENT, got INT instead",
        ])
        self.assertEqual(str(program), "let x = 5")

    def test_no_prefix_parse_function(self):
        self.assertParseErrors("+5", ["no prefix parse function for PLUS found"])
        self.assertParseErrors("let x = ;", ["no prefix parse function for SEMICOLON found"])

    def test_illegal_character(self):
        self.assertParseErrors("1 @ 2", ["no prefix parse function for ILLEGAL found"])

    def test_integer_out_of_range(self):
        self.assertParseErrors("92233720368547758070",
                               ['could not parse "92233720368547758070" as integer'])

    def test_bad_parameter(self):
        self.assertParseErrors("fn(1) {}", ["expected parameter name, got INT instead"])

    def test_unclosed_group(self):
        self.assertParseErrors("(1 + 2", ["expected next token to be RPAREN, got EOF instead"])

    def test_unterminated_block(self):
        self.assertParseErrors("fn() { x", ["expected next token to be RBRACE, got EOF instead"])

    def test_block_error_resumes_inside_block(self):
        program, errors = parse_source("fn() { let = 1; x }; 5")
        self.assertEqual(errors, ["expected next token to be IDENT, got ASSIGN instead"])
        self.assertEqual(str(program), "fn() { x }; 5")

    def test_parsing_continues_after_error(self):
        program, errors = parse_source("let = 1; let y = 2; y")
        self.assertEqual(len(errors), 1)
        self.assertEqual(str(program), "let y = 2; y")

    # --- Entry points ---

    def test_parse_accepts_token_list(self):
        program, errors = parse(tokenize("1 + 2"))
        self.assertEqual(errors, [])
        self.assertEqual(str(program), "(1 + 2)")

    def test_stream_without_eof(self):
        parser = Parser(iter([Token('INT', '7')]))
        program = parser.parse_program()
        self.assertEqual(parser.errors, [])
        self.assertEqual(program.statements, [ExpressionStatement(IntegerLiteral(7))])


if __name__ == '__main__':
    unittest.main()
