# src/monkey_py/core/ast.py

from typing import Callable, List, Optional, Tuple

INT64_MIN = -2 ** 63


class Node:
    """Base class for every AST node.

    Nodes are built once by the parser and never mutated afterwards; `str()` renders
    a node back to source text that parses to an equal tree.
    """

    def __repr__(self):
        return f"{type(self).__name__}({str(self)!r})"


class Statement(Node):
    pass


class Expression(Node):
    pass


# --- Program ---

class Program(Node):
    def __init__(self, statements: List[Statement]):
        self.statements = statements

    def __str__(self):
        return '; '.join(str(s) for s in self.statements)

    def __eq__(self, other):
        return isinstance(other, Program) and self.statements == other.statements


# --- Atoms ---

class Identifier(Expression):
    def __init__(self, value: str):
        self.value = value

    def __str__(self):
        return self.value

    def __repr__(self):
        return f"Identifier({self.value!r})"

    def __eq__(self, other):
        return isinstance(other, Identifier) and self.value == other.value

    def __hash__(self):
        return hash((Identifier, self.value))


class IntegerLiteral(Expression):
    def __init__(self, value: int):
        self.value = value

    def __str__(self):
        # Spliced values may be negative; print them as expressions the parser accepts
        if self.value == INT64_MIN:
            return f"({self.value + 1} - 1)"
        if self.value < 0:
            return f"({self.value})"
        return str(self.value)

    def __repr__(self):
        return f"IntegerLiteral({self.value})"

    def __eq__(self, other):
        return isinstance(other, IntegerLiteral) and self.value == other.value


class BooleanLiteral(Expression):
    def __init__(self, value: bool):
        self.value = value

    def __str__(self):
        return "true" if self.value else "false"

    def __repr__(self):
        return f"BooleanLiteral({self.value})"

    def __eq__(self, other):
        return isinstance(other, BooleanLiteral) and self.value == other.value


class StringLiteral(Expression):
    def __init__(self, value: str):
        self.value = value

    def __str__(self):
        return f'"{self.value}"'

    def __repr__(self):
        return f"StringLiteral({self.value!r})"

    def __eq__(self, other):
        return isinstance(other, StringLiteral) and self.value == other.value


# --- Statements ---

class LetStatement(Statement):
    """let <name> = <value>"""
    def __init__(self, name: Identifier, value: Expression):
        self.name = name
        self.value = value

    def __str__(self):
        return f"let {self.name} = {self.value}"

    def __eq__(self, other):
        return (isinstance(other, LetStatement) and
                self.name == other.name and
                self.value == other.value)


class ReturnStatement(Statement):
    """return <return_value>"""
    def __init__(self, return_value: Expression):
        self.return_value = return_value

    def __str__(self):
        return f"return {self.return_value}"

    def __eq__(self, other):
        return isinstance(other, ReturnStatement) and self.return_value == other.return_value


class ExpressionStatement(Statement):
    def __init__(self, expression: Expression):
        self.expression = expression

    def __str__(self):
        return str(self.expression)

    def __eq__(self, other):
        return isinstance(other, ExpressionStatement) and self.expression == other.expression


class BlockStatement(Statement):
    """{ <statement>; ... } - function bodies and if branches."""
    def __init__(self, statements: List[Statement]):
        self.statements = statements

    def __str__(self):
        if not self.statements:
            return "{ }"
        return "{ " + '; '.join(str(s) for s in self.statements) + " }"

    def __eq__(self, other):
        return isinstance(other, BlockStatement) and self.statements == other.statements


# --- Expressions ---

class PrefixExpression(Expression):
    """<operator><right>, e.g. -x or !ok"""
    def __init__(self, operator: str, right: Expression):
        self.operator = operator
        self.right = right

    def __str__(self):
        return f"({self.operator}{self.right})"

    def __eq__(self, other):
        return (isinstance(other, PrefixExpression) and
                self.operator == other.operator and
                self.right == other.right)


class InfixExpression(Expression):
    """<left> <operator> <right>"""
    def __init__(self, left: Expression, operator: str, right: Expression):
        self.left = left
        self.operator = operator
        self.right = right

    def __str__(self):
        return f"({self.left} {self.operator} {self.right})"

    def __eq__(self, other):
        return (isinstance(other, InfixExpression) and
                self.left == other.left and
                self.operator == other.operator and
                self.right == other.right)


class IfExpression(Expression):
    """if (<condition>) <consequence> [else <alternative>]"""
    def __init__(self, condition: Expression, consequence: BlockStatement,
                 alternative: Optional[BlockStatement] = None):
        self.condition = condition
        self.consequence = consequence
        self.alternative = alternative

    def __str__(self):
        result = f"if ({self.condition}) {self.consequence}"
        if self.alternative is not None:
            result += f" else {self.alternative}"
        return result

    def __eq__(self, other):
        return (isinstance(other, IfExpression) and
                self.condition == other.condition and
                self.consequence == other.consequence and
                self.alternative == other.alternative)


class FunctionLiteral(Expression):
    """fn(<parameters>) <body>. The environment is attached at evaluation time."""
    def __init__(self, parameters: List[Identifier], body: BlockStatement):
        self.parameters = parameters
        self.body = body

    def __str__(self):
        params = ', '.join(str(p) for p in self.parameters)
        return f"fn({params}) {self.body}"

    def __eq__(self, other):
        return (isinstance(other, FunctionLiteral) and
                self.parameters == other.parameters and
                self.body == other.body)


class MacroLiteral(Expression):
    """macro(<parameters>) <body>"""
    def __init__(self, parameters: List[Identifier], body: BlockStatement):
        self.parameters = parameters
        self.body = body

    def __str__(self):
        params = ', '.join(str(p) for p in self.parameters)
        return f"macro({params}) {self.body}"

    def __eq__(self, other):
        return (isinstance(other, MacroLiteral) and
                self.parameters == other.parameters and
                self.body == other.body)


class CallExpression(Expression):
    """<function>(<arguments>)"""
    def __init__(self, function: Expression, arguments: List[Expression]):
        self.function = function
        self.arguments = arguments

    def __str__(self):
        args = ', '.join(str(a) for a in self.arguments)
        return f"{self.function}({args})"

    def __eq__(self, other):
        return (isinstance(other, CallExpression) and
                self.function == other.function and
                self.arguments == other.arguments)


class ArrayLiteral(Expression):
    def __init__(self, elements: List[Expression]):
        self.elements = elements

    def __str__(self):
        return "[" + ', '.join(str(e) for e in self.elements) + "]"

    def __eq__(self, other):
        return isinstance(other, ArrayLiteral) and self.elements == other.elements


class HashLiteral(Expression):
    """{<key>: <value>, ...}; pairs keep source order."""
    def __init__(self, pairs: List[Tuple[Expression, Expression]]):
        self.pairs = pairs

    def __str__(self):
        return "{" + ', '.join(f"{k}: {v}" for k, v in self.pairs) + "}"

    def __eq__(self, other):
        return isinstance(other, HashLiteral) and self.pairs == other.pairs


class IndexExpression(Expression):
    """<left>[<index>]"""
    def __init__(self, left: Expression, index: Expression):
        self.left = left
        self.index = index

    def __str__(self):
        return f"({self.left}[{self.index}])"

    def __eq__(self, other):
        return (isinstance(other, IndexExpression) and
                self.left == other.left and
                self.index == other.index)


# --- Tree rewriting ---

Modifier = Callable[[Node], Node]


def modify(node: Node, modifier: Modifier) -> Node:
    """
    Rebuilds `node` bottom-up: children are modified first, then `modifier` is
    applied to the rebuilt node itself. The input tree is left untouched.
    Identifiers in parameter lists are not passed to `modifier`.
    """
    if isinstance(node, Program):
        node = Program([modify(s, modifier) for s in node.statements])
    elif isinstance(node, ExpressionStatement):
        node = ExpressionStatement(modify(node.expression, modifier))
    elif isinstance(node, BlockStatement):
        node = BlockStatement([modify(s, modifier) for s in node.statements])
    elif isinstance(node, ReturnStatement):
        node = ReturnStatement(modify(node.return_value, modifier))
    elif isinstance(node, LetStatement):
        node = LetStatement(node.name, modify(node.value, modifier))
    elif isinstance(node, InfixExpression):
        node = InfixExpression(modify(node.left, modifier), node.operator, modify(node.right, modifier))
    elif isinstance(node, PrefixExpression):
        node = PrefixExpression(node.operator, modify(node.right, modifier))
    elif isinstance(node, IndexExpression):
        node = IndexExpression(modify(node.left, modifier), modify(node.index, modifier))
    elif isinstance(node, IfExpression):
        alternative = modify(node.alternative, modifier) if node.alternative is not None else None
        node = IfExpression(modify(node.condition, modifier), modify(node.consequence, modifier), alternative)
    elif isinstance(node, FunctionLiteral):
        node = FunctionLiteral(node.parameters, modify(node.body, modifier))
    elif isinstance(node, CallExpression):
        node = CallExpression(modify(node.function, modifier),
                              [modify(a, modifier) for a in node.arguments])
    elif isinstance(node, ArrayLiteral):
        node = ArrayLiteral([modify(e, modifier) for e in node.elements])
    elif isinstance(node, HashLiteral):
        node = HashLiteral([(modify(k, modifier), modify(v, modifier)) for k, v in node.pairs])

    return modifier(node)
