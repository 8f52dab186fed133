# src/monkey_py/core/environment.py

from typing import Dict, Optional

from .object import Macro, Object


class UnboundIdentifierError(LookupError):
    """Raised by Environment.lookup when a name is bound nowhere in the scope chain."""
    pass


class Environment:
    """
    One lexical scope. `outer` points at the enclosing scope; function calls create
    a new Environment whose outer is the function's defining environment, never the
    caller's. Closures keep their defining scope alive simply by referencing it.
    """

    def __init__(self, outer: Optional['Environment'] = None):
        self.bindings: Dict[str, Object] = {}
        self.macros: Dict[str, Macro] = {}
        self.outer = outer

    def define(self, name: str, value: Object) -> Object:
        """Binds `name` in this scope. Re-defining shadows the previous binding."""
        self.bindings[name] = value
        return value

    def get(self, name: str) -> Optional[Object]:
        """Like lookup, but returns None instead of raising."""
        env: Optional[Environment] = self
        while env is not None:
            if name in env.bindings:
                return env.bindings[name]
            env = env.outer
        return None

    def lookup(self, name: str) -> Object:
        value = self.get(name)
        if value is None:
            raise UnboundIdentifierError(f"identifier not found: {name}")
        return value

    def define_macro(self, name: str, macro: Macro):
        self.macros[name] = macro

    def lookup_macro(self, name: str) -> Optional[Macro]:
        """Look up a macro, searching outer environments."""
        if name in self.macros:
            return self.macros[name]
        elif self.outer is not None:
            return self.outer.lookup_macro(name)
        else:
            return None

    def __repr__(self):
        names = ', '.join(self.bindings)
        return f"<Environment [{names}] outer={'yes' if self.outer else 'no'}>"
