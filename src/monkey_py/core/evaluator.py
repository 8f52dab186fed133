# src/monkey_py/core/evaluator.py

import logging
from typing import List

from .ast import (
    ArrayLiteral, BlockStatement, BooleanLiteral, CallExpression, Expression, ExpressionStatement,
    FunctionLiteral, HashLiteral, Identifier, IfExpression, IndexExpression, InfixExpression,
    IntegerLiteral, LetStatement, MacroLiteral, Node, PrefixExpression, Program, ReturnStatement,
    StringLiteral, INT64_MIN, modify,
)
from .builtins import lookup_builtin
from .environment import Environment
from .object import (
    FALSE, NULL, TRUE, Array, Boolean, Builtin, Error, Function, Hash, HashPair, Integer, Macro,
    Object, Quote, ReturnValue, String, hash_key_of, native_bool_to_boolean,
)

logger = logging.getLogger(__name__)

INT64_MASK = 2 ** 64 - 1


def evaluate(node: Node, env: Environment) -> Object:
    """
    Evaluates an AST node in `env`.

    Runtime failures come back as Error objects, never as Python exceptions. Inside
    blocks a ReturnValue or Error stops evaluation and is handed up unchanged; only
    function application and the program level unwrap a ReturnValue.
    """
    # --- Statements ---
    if isinstance(node, Program):
        return eval_program(node, env)

    elif isinstance(node, BlockStatement):
        return eval_block_statement(node, env)

    elif isinstance(node, ExpressionStatement):
        return evaluate(node.expression, env)

    elif isinstance(node, ReturnStatement):
        value = evaluate(node.return_value, env)
        if is_abrupt(value):
            return value
        return ReturnValue(value)

    elif isinstance(node, LetStatement):
        value = evaluate(node.value, env)
        if is_abrupt(value):
            return value
        env.define(node.name.value, value)
        return NULL

    # --- Literals ---
    elif isinstance(node, IntegerLiteral):
        return Integer(node.value)

    elif isinstance(node, BooleanLiteral):
        return native_bool_to_boolean(node.value)

    elif isinstance(node, StringLiteral):
        return String(node.value)

    elif isinstance(node, Identifier):
        return eval_identifier(node, env)

    elif isinstance(node, FunctionLiteral):
        return Function(node.parameters, node.body, env)

    elif isinstance(node, MacroLiteral):
        return Macro(node.parameters, node.body, env)

    elif isinstance(node, ArrayLiteral):
        elements = eval_expressions(node.elements, env)
        if len(elements) == 1 and is_abrupt(elements[0]):
            return elements[0]
        return Array(elements)

    elif isinstance(node, HashLiteral):
        return eval_hash_literal(node, env)

    # --- Operators ---
    elif isinstance(node, PrefixExpression):
        right = evaluate(node.right, env)
        if is_abrupt(right):
            return right
        return eval_prefix_expression(node.operator, right)

    elif isinstance(node, InfixExpression):
        left = evaluate(node.left, env)
        if is_abrupt(left):
            return left
        right = evaluate(node.right, env)
        if is_abrupt(right):
            return right
        return eval_infix_expression(node.operator, left, right)

    elif isinstance(node, IfExpression):
        return eval_if_expression(node, env)

    elif isinstance(node, IndexExpression):
        left = evaluate(node.left, env)
        if is_abrupt(left):
            return left
        index = evaluate(node.index, env)
        if is_abrupt(index):
            return index
        return eval_index_expression(left, index)

    elif isinstance(node, CallExpression):
        if isinstance(node.function, Identifier) and node.function.value == 'quote':
            if len(node.arguments) != 1:
                return Error(f"wrong number of arguments: want=1, got={len(node.arguments)}")
            return quote(node.arguments[0], env)

        function = evaluate(node.function, env)
        if is_abrupt(function):
            return function
        args = eval_expressions(node.arguments, env)
        if len(args) == 1 and is_abrupt(args[0]):
            return args[0]
        return apply_function(function, args)

    # Should not be reached if parsing is correct and all AST nodes are handled
    raise TypeError(f"Unknown or unhandled node type for evaluation: {type(node).__name__}")


# --- Statements ---

def eval_program(program: Program, env: Environment) -> Object:
    logger.debug("evaluating program with %d statement(s)", len(program.statements))
    result: Object = NULL
    for statement in program.statements:
        result = evaluate(statement, env)
        if isinstance(result, ReturnValue):
            return result.value
        if is_abrupt(result):
            return result
    return result


def eval_block_statement(block: BlockStatement, env: Environment) -> Object:
    result: Object = NULL
    for statement in block.statements:
        result = evaluate(statement, env)
        # Unwinding stops here; the ReturnValue stays wrapped for enclosing blocks
        if is_abrupt(result):
            return result
    return result


def eval_if_expression(node: IfExpression, env: Environment) -> Object:
    condition = evaluate(node.condition, env)
    if is_abrupt(condition):
        return condition
    if is_truthy(condition):
        return evaluate(node.consequence, env)
    elif node.alternative is not None:
        return evaluate(node.alternative, env)
    return NULL


# --- Names and calls ---

def eval_identifier(node: Identifier, env: Environment) -> Object:
    value = env.get(node.value)
    if value is not None:
        return value
    builtin = lookup_builtin(node.value)
    if builtin is not None:
        return builtin
    return Error(f"identifier not found: {node.value}")


def eval_expressions(expressions: List[Expression], env: Environment) -> List[Object]:
    """
    Evaluates left to right. On the first Error or pending return, returns a
    one-element list holding just that object.
    """
    results: List[Object] = []
    for expression in expressions:
        evaluated = evaluate(expression, env)
        if is_abrupt(evaluated):
            return [evaluated]
        results.append(evaluated)
    return results


def apply_function(function: Object, args: List[Object]) -> Object:
    if isinstance(function, Function):
        if len(args) != len(function.parameters):
            return Error(f"wrong number of arguments: want={len(function.parameters)}, got={len(args)}")
        call_env = extend_function_env(function, args)
        return unwrap_return_value(evaluate(function.body, call_env))
    elif isinstance(function, Builtin):
        return function.fn(args)
    return Error(f"not a function: {function.type()}")


def extend_function_env(function: Function, args: List[Object]) -> Environment:
    # Enclosed by the defining environment, not the caller's
    call_env = Environment(outer=function.env)
    for param, arg in zip(function.parameters, args):
        call_env.define(param.value, arg)
    return call_env


def unwrap_return_value(obj: Object) -> Object:
    if isinstance(obj, ReturnValue):
        return obj.value
    return obj


# --- Operators ---

def eval_prefix_expression(operator: str, right: Object) -> Object:
    if operator == '!':
        return FALSE if is_truthy(right) else TRUE
    elif operator == '-':
        if not isinstance(right, Integer):
            return Error(f"unknown operator: -{right.type()}")
        return Integer(wrap_int64(-right.value))
    return Error(f"unknown operator: {operator}{right.type()}")


def eval_infix_expression(operator: str, left: Object, right: Object) -> Object:
    if isinstance(left, Integer) and isinstance(right, Integer):
        return eval_integer_infix_expression(operator, left, right)
    elif isinstance(left, String) and isinstance(right, String):
        return eval_string_infix_expression(operator, left, right)
    elif operator == '==':
        # Booleans and null are singletons; any other pair compares by identity
        return native_bool_to_boolean(left is right)
    elif operator == '!=':
        return native_bool_to_boolean(left is not right)
    elif left.type() != right.type():
        return Error(f"type mismatch: {left.type()} {operator} {right.type()}")
    return Error(f"unknown operator: {left.type()} {operator} {right.type()}")


def eval_integer_infix_expression(operator: str, left: Integer, right: Integer) -> Object:
    a, b = left.value, right.value
    if operator == '+':
        return Integer(wrap_int64(a + b))
    elif operator == '-':
        return Integer(wrap_int64(a - b))
    elif operator == '*':
        return Integer(wrap_int64(a * b))
    elif operator == '/':
        if b == 0:
            return Error("division by zero")
        return Integer(wrap_int64(truncating_div(a, b)))
    elif operator == '<':
        return native_bool_to_boolean(a < b)
    elif operator == '>':
        return native_bool_to_boolean(a > b)
    elif operator == '==':
        return native_bool_to_boolean(a == b)
    elif operator == '!=':
        return native_bool_to_boolean(a != b)
    return Error(f"unknown operator: {left.type()} {operator} {right.type()}")


def eval_string_infix_expression(operator: str, left: String, right: String) -> Object:
    if operator == '+':
        return String(left.value + right.value)
    elif operator == '==':
        return native_bool_to_boolean(left.value == right.value)
    elif operator == '!=':
        return native_bool_to_boolean(left.value != right.value)
    return Error(f"unknown operator: {left.type()} {operator} {right.type()}")


def truncating_div(a: int, b: int) -> int:
    """Integer division rounding toward zero (Python's // rounds toward -inf)."""
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b >= 0) else -quotient


def wrap_int64(value: int) -> int:
    """Wraps an arbitrary Python int into the signed 64-bit range."""
    value &= INT64_MASK
    return value + 2 * INT64_MIN if value > -INT64_MIN - 1 else value


# --- Containers ---

def eval_hash_literal(node: HashLiteral, env: Environment) -> Object:
    pairs = {}
    for key_node, value_node in node.pairs:
        key = evaluate(key_node, env)
        if is_abrupt(key):
            return key
        hash_key = hash_key_of(key)
        if hash_key is None:
            return Error(f"unusable as hash key: {key.type()}")
        value = evaluate(value_node, env)
        if is_abrupt(value):
            return value
        pairs[hash_key] = HashPair(key, value)
    return Hash(pairs)


def eval_index_expression(left: Object, index: Object) -> Object:
    if isinstance(left, Array) and isinstance(index, Integer):
        return eval_array_index_expression(left, index)
    elif isinstance(left, Hash):
        return eval_hash_index_expression(left, index)
    return Error(f"index operator not supported: {left.type()}")


def eval_array_index_expression(array: Array, index: Integer) -> Object:
    # Out of range is null, not an error
    if index.value < 0 or index.value >= len(array.elements):
        return NULL
    return array.elements[index.value]


def eval_hash_index_expression(hash_obj: Hash, index: Object) -> Object:
    hash_key = hash_key_of(index)
    if hash_key is None:
        return Error(f"unusable as hash key: {index.type()}")
    pair = hash_obj.pairs.get(hash_key)
    return pair.value if pair is not None else NULL


# --- Quote / unquote ---

class _UnquoteConversionError(Exception):
    def __init__(self, error: Error):
        super().__init__(error.message)
        self.error = error


def quote(node: Node, env: Environment) -> Object:
    """Wraps `node` unevaluated, after splicing in the values of its unquote(...) calls."""
    try:
        return Quote(eval_unquote_calls(node, env))
    except _UnquoteConversionError as e:
        return e.error


def eval_unquote_calls(quoted: Node, env: Environment) -> Node:
    def modifier(node: Node) -> Node:
        if not is_unquote_call(node):
            return node
        value = unwrap_return_value(evaluate(node.arguments[0], env))
        if is_error(value):
            raise _UnquoteConversionError(value)
        return convert_object_to_ast_node(value)

    return modify(quoted, modifier)


def is_unquote_call(node: Node) -> bool:
    return (isinstance(node, CallExpression) and
            isinstance(node.function, Identifier) and
            node.function.value == 'unquote' and
            len(node.arguments) == 1)


def convert_object_to_ast_node(obj: Object) -> Node:
    if isinstance(obj, Integer):
        return IntegerLiteral(obj.value)
    elif isinstance(obj, Boolean):
        return BooleanLiteral(obj.value)
    elif isinstance(obj, String):
        return StringLiteral(obj.value)
    elif isinstance(obj, Array):
        return ArrayLiteral([convert_object_to_ast_node(e) for e in obj.elements])
    elif isinstance(obj, Quote):
        return obj.node
    raise _UnquoteConversionError(Error(f"unquote: cannot convert {obj.type()} to an AST node"))


# --- Helpers ---

def is_truthy(obj: Object) -> bool:
    return obj is not NULL and obj is not FALSE


def is_error(obj: Object) -> bool:
    return isinstance(obj, Error)


def is_abrupt(obj: Object) -> bool:
    """True for the two results that must propagate unchanged: a pending return or an error."""
    return isinstance(obj, (ReturnValue, Error))
