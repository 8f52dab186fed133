# examples/monkey/run_example.py

import os
import sys

# Make the src directory importable when run from a checkout
script_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.dirname(os.path.dirname(script_dir))
src_dir = os.path.join(project_root, 'src')
if src_dir not in sys.path:
    sys.path.insert(0, src_dir)

from monkey_py.core.environment import Environment  # noqa: E402
from monkey_py.core.evaluator import evaluate  # noqa: E402
from monkey_py.core.macro_expander import define_macros, expand_macros  # noqa: E402
from monkey_py.parser.parser import parse_source  # noqa: E402

monkey_code = """
let unless = macro(condition, consequence, alternative) {
    quote(if (!(unquote(condition))) { unquote(consequence) } else { unquote(alternative) });
};

let map = fn(arr, f) {
    let iter = fn(arr, acc) {
        if (len(arr) == 0) { acc } else { iter(rest(arr), push(acc, f(first(arr)))) }
    };
    iter(arr, []);
};

let squares = map([1, 2, 3, 4], fn(x) { x * x });
unless(len(squares) > 10, squares, "too many");
"""

print("--- Monkey Code ---")
print(monkey_code)
print("-------------------")

program, errors = parse_source(monkey_code)
if errors:
    print("parser errors:")
    for message in errors:
        print(f"\t{message}")
    sys.exit(1)

macro_env = Environment()
expanded = expand_macros(define_macros(program, macro_env), macro_env)

print("--- Expanded Program ---")
for statement in expanded.statements:
    print(statement)
print("------------------------")

result = evaluate(expanded, Environment())
print(f"Result: {result.inspect()}")
