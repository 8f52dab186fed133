# src/monkey_py/core/object.py

from enum import Enum
from typing import Callable, Dict, List, NamedTuple, Optional, TYPE_CHECKING

from .ast import BlockStatement, Identifier, Node

if TYPE_CHECKING:
    from .environment import Environment


class ObjectType(Enum):
    INTEGER = "INTEGER"
    BOOLEAN = "BOOLEAN"
    NULL = "NULL"
    STRING = "STRING"
    ARRAY = "ARRAY"
    HASH = "HASH"
    FUNCTION = "FUNCTION"
    BUILTIN = "BUILTIN"
    RETURN_VALUE = "RETURN_VALUE"
    ERROR = "ERROR"
    QUOTE = "QUOTE"
    MACRO = "MACRO"

    def __str__(self):
        return self.value


class HashKey(NamedTuple):
    """Keys are compared by type and value, so 1, true and "1" never collide."""
    type: ObjectType
    value: object


class Object:
    """Base class for runtime values."""
    object_type: ObjectType

    def type(self) -> ObjectType:
        return self.object_type

    def inspect(self) -> str:
        raise NotImplementedError

    def __repr__(self):
        return f"<{self.object_type} {self.inspect()}>"


# --- Scalars ---

class Integer(Object):
    object_type = ObjectType.INTEGER

    def __init__(self, value: int):
        self.value = value

    def inspect(self) -> str:
        return str(self.value)

    def hash_key(self) -> HashKey:
        return HashKey(self.object_type, self.value)

    def __eq__(self, other):
        return isinstance(other, Integer) and self.value == other.value

    def __hash__(self):
        return hash(self.hash_key())


class Boolean(Object):
    """Interned: Boolean(True) is always the same object."""
    object_type = ObjectType.BOOLEAN
    _instances: Dict[bool, 'Boolean'] = {}

    def __new__(cls, value: bool):
        value = bool(value)
        if value not in cls._instances:
            instance = super().__new__(cls)
            instance.value = value
            cls._instances[value] = instance
        return cls._instances[value]

    def inspect(self) -> str:
        return "true" if self.value else "false"

    def hash_key(self) -> HashKey:
        return HashKey(self.object_type, self.value)


class NullType(Object):
    """The absence of a value. Singleton."""
    object_type = ObjectType.NULL
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def inspect(self) -> str:
        return "null"


TRUE = Boolean(True)
FALSE = Boolean(False)
NULL = NullType()


def native_bool_to_boolean(value: bool) -> Boolean:
    return TRUE if value else FALSE


class String(Object):
    object_type = ObjectType.STRING

    def __init__(self, value: str):
        self.value = value

    def inspect(self) -> str:
        return self.value

    def hash_key(self) -> HashKey:
        return HashKey(self.object_type, self.value)

    def __eq__(self, other):
        return isinstance(other, String) and self.value == other.value

    def __hash__(self):
        return hash(self.hash_key())


HASHABLE_TYPES = (Integer, Boolean, String)


# --- Containers ---

class Array(Object):
    object_type = ObjectType.ARRAY

    def __init__(self, elements: List[Object]):
        self.elements = elements

    def inspect(self) -> str:
        return "[" + ', '.join(e.inspect() for e in self.elements) + "]"

    def __eq__(self, other):
        return isinstance(other, Array) and self.elements == other.elements


class HashPair(NamedTuple):
    key: Object
    value: Object


class Hash(Object):
    object_type = ObjectType.HASH

    def __init__(self, pairs: Dict[HashKey, HashPair]):
        self.pairs = pairs

    def inspect(self) -> str:
        items = ', '.join(f"{p.key.inspect()}: {p.value.inspect()}" for p in self.pairs.values())
        return "{" + items + "}"

    def __eq__(self, other):
        return isinstance(other, Hash) and self.pairs == other.pairs


# --- Callables ---

class Function(Object):
    """A closure: parameters and body from the literal, plus the defining environment."""
    object_type = ObjectType.FUNCTION

    def __init__(self, parameters: List[Identifier], body: BlockStatement, env: 'Environment'):
        self.parameters = parameters
        self.body = body
        self.env = env

    def inspect(self) -> str:
        params = ', '.join(str(p) for p in self.parameters)
        return f"fn({params}) {self.body}"


BuiltinFunction = Callable[[List[Object]], Object]


class Builtin(Object):
    object_type = ObjectType.BUILTIN

    def __init__(self, name: str, fn: BuiltinFunction):
        self.name = name
        self.fn = fn

    def inspect(self) -> str:
        return "builtin function"

    def __repr__(self):
        return f"<BUILTIN {self.name}>"


class Macro(Object):
    object_type = ObjectType.MACRO

    def __init__(self, parameters: List[Identifier], body: BlockStatement, env: 'Environment'):
        self.parameters = parameters
        self.body = body
        self.env = env

    def inspect(self) -> str:
        params = ', '.join(str(p) for p in self.parameters)
        return f"macro({params}) {self.body}"


# --- Evaluation signals ---

class ReturnValue(Object):
    """Wraps the payload of a `return` while it unwinds through enclosing blocks."""
    object_type = ObjectType.RETURN_VALUE

    def __init__(self, value: Object):
        self.value = value

    def inspect(self) -> str:
        return self.value.inspect()


class Error(Object):
    object_type = ObjectType.ERROR

    def __init__(self, message: str):
        self.message = message

    def inspect(self) -> str:
        return f"ERROR: {self.message}"

    def __eq__(self, other):
        return isinstance(other, Error) and self.message == other.message


class Quote(Object):
    """An unevaluated AST node produced by quote(...)."""
    object_type = ObjectType.QUOTE

    def __init__(self, node: Node):
        self.node = node

    def inspect(self) -> str:
        return f"QUOTE({self.node})"

    def __eq__(self, other):
        return isinstance(other, Quote) and self.node == other.node


def hash_key_of(obj: Object) -> Optional[HashKey]:
    """Returns the hash key for `obj`, or None when its type cannot key a hash."""
    if isinstance(obj, HASHABLE_TYPES):
        return obj.hash_key()
    return None
