# src/monkey_py/core/builtins.py

from typing import Dict, List, Optional

from .object import NULL, Array, Builtin, Error, Integer, Object, String


def _wrong_argument_count(got: int, want: int) -> Error:
    return Error(f"wrong number of arguments. got={got}, want={want}")


def builtin_len(args: List[Object]) -> Object:
    """len(string | array) -> integer"""
    if len(args) != 1:
        return _wrong_argument_count(len(args), 1)
    target = args[0]
    if isinstance(target, String):
        return Integer(len(target.value))
    if isinstance(target, Array):
        return Integer(len(target.elements))
    return Error(f"argument to `len` not supported, got {target.type()}")


def builtin_first(args: List[Object]) -> Object:
    """first(array) -> first element, or null when empty"""
    if len(args) != 1:
        return _wrong_argument_count(len(args), 1)
    target = args[0]
    if not isinstance(target, Array):
        return Error(f"argument to `first` must be ARRAY, got {target.type()}")
    return target.elements[0] if target.elements else NULL


def builtin_last(args: List[Object]) -> Object:
    """last(array) -> last element, or null when empty"""
    if len(args) != 1:
        return _wrong_argument_count(len(args), 1)
    target = args[0]
    if not isinstance(target, Array):
        return Error(f"argument to `last` must be ARRAY, got {target.type()}")
    return target.elements[-1] if target.elements else NULL


def builtin_rest(args: List[Object]) -> Object:
    """rest(array) -> new array without the first element, or null when empty"""
    if len(args) != 1:
        return _wrong_argument_count(len(args), 1)
    target = args[0]
    if not isinstance(target, Array):
        return Error(f"argument to `rest` must be ARRAY, got {target.type()}")
    if not target.elements:
        return NULL
    return Array(target.elements[1:])


def builtin_push(args: List[Object]) -> Object:
    """push(array, value) -> new array with value appended; the argument is left as is"""
    if len(args) != 2:
        return _wrong_argument_count(len(args), 2)
    target, value = args
    if not isinstance(target, Array):
        return Error(f"argument to `push` must be ARRAY, got {target.type()}")
    return Array(target.elements + [value])


def builtin_puts(args: List[Object]) -> Object:
    """puts(value ...) prints each value on its own line and returns null"""
    for arg in args:
        print(arg.inspect())
    return NULL


BUILTINS: Dict[str, Builtin] = {
    name: Builtin(name, fn) for name, fn in [
        ("len", builtin_len),
        ("first", builtin_first),
        ("last", builtin_last),
        ("rest", builtin_rest),
        ("push", builtin_push),
        ("puts", builtin_puts),
    ]
}


def lookup_builtin(name: str) -> Optional[Builtin]:
    return BUILTINS.get(name)
