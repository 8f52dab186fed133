# src/monkey_py/core/macro_expander.py

import logging
from typing import List

from .ast import CallExpression, Identifier, LetStatement, MacroLiteral, Node, Program, Statement, modify
from .environment import Environment
from .evaluator import evaluate, unwrap_return_value
from .object import Macro, Quote

logger = logging.getLogger(__name__)


class MacroExpansionError(Exception):
    """Raised when a macro call cannot be expanded into an AST node."""
    pass


# --- Macro definition ---

def is_macro_definition(statement: Statement) -> bool:
    return isinstance(statement, LetStatement) and isinstance(statement.value, MacroLiteral)


def add_macro(statement: LetStatement, env: Environment):
    literal = statement.value
    env.define_macro(statement.name.value, Macro(literal.parameters, literal.body, env))
    logger.debug("defined macro %s(%s)", statement.name,
                 ', '.join(str(p) for p in literal.parameters))


def define_macros(program: Program, env: Environment) -> Program:
    """
    Registers every top-level `let name = macro(...) {...}` in env's macro table.
    Returns a new Program holding the remaining statements in their original order.
    """
    remaining: List[Statement] = []
    for statement in program.statements:
        if is_macro_definition(statement):
            add_macro(statement, env)
        else:
            remaining.append(statement)
    return Program(remaining)


# --- Macro expansion ---

def expand_macros(program: Node, env: Environment) -> Node:
    """
    Replaces each call to a macro defined in `env` with the AST its body produces.

    The call's arguments are passed in as Quote objects, unevaluated, and the body runs
    in a scope enclosed by the macro's defining environment. The body must evaluate
    to a Quote; its node is spliced in place of the call.
    """
    def modifier(node: Node) -> Node:
        if not isinstance(node, CallExpression):
            return node
        macro = macro_for_call(node, env)
        if macro is None:
            return node

        if len(node.arguments) != len(macro.parameters):
            raise MacroExpansionError(
                f"wrong number of arguments to macro {node.function}: "
                f"want={len(macro.parameters)}, got={len(node.arguments)}")

        evaluated = unwrap_return_value(evaluate(macro.body, extend_macro_env(macro, node.arguments)))
        if not isinstance(evaluated, Quote):
            raise MacroExpansionError(
                f"macro {node.function} must return a QUOTE, got {evaluated.type()}: {evaluated.inspect()}")
        logger.debug("expanded %s into %s", node, evaluated.node)
        return evaluated.node

    return modify(program, modifier)


def macro_for_call(call: CallExpression, env: Environment):
    if not isinstance(call.function, Identifier):
        return None
    return env.lookup_macro(call.function.value)


def extend_macro_env(macro: Macro, arguments: List[Node]) -> Environment:
    macro_env = Environment(outer=macro.env)
    for param, argument in zip(macro.parameters, arguments):
        macro_env.define(param.value, Quote(argument))
    return macro_env
