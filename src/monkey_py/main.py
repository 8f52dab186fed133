# src/monkey_py/main.py

import argparse
import logging
import sys
import threading
from typing import Callable, List, Optional

from .core.environment import Environment
from .core.evaluator import evaluate
from .core.macro_expander import MacroExpansionError, define_macros, expand_macros
from .core.object import Error, Object
from .parser.parser import parse_source

logger = logging.getLogger(__name__)

PROMPT = ">> "

# Each Monkey call costs roughly ten Python frames
RECURSION_LIMIT = 50_000
EVAL_STACK_SIZE = 256 * 1024 * 1024


class MonkeySyntaxError(Exception):
    """Raised by run_source when the parser reports errors. `errors` keeps every message."""

    def __init__(self, errors: List[str]):
        super().__init__('\n'.join(errors))
        self.errors = errors


def call_with_deep_stack(fn: Callable, *args):
    """
    Runs fn(*args) on a worker thread with a large stack and a raised recursion limit,
    then returns its result or re-raises its exception in the calling thread.
    """
    outcome = {}

    def target():
        try:
            outcome['result'] = fn(*args)
        except BaseException as e:
            outcome['error'] = e

    previous_limit = sys.getrecursionlimit()
    previous_stack_size = threading.stack_size(EVAL_STACK_SIZE)
    sys.setrecursionlimit(max(previous_limit, RECURSION_LIMIT))
    try:
        worker = threading.Thread(target=target, name="monkey-eval", daemon=True)
        worker.start()
        worker.join()
    finally:
        threading.stack_size(previous_stack_size)
        sys.setrecursionlimit(previous_limit)

    if 'error' in outcome:
        raise outcome['error']
    return outcome['result']


def _parse_expand_evaluate(code: str, env: Environment, macro_env: Environment) -> Object:
    program, errors = parse_source(code)
    if errors:
        raise MonkeySyntaxError(errors)

    program = define_macros(program, macro_env)
    expanded = expand_macros(program, macro_env)
    return evaluate(expanded, env)


def run_source(code: str, env: Optional[Environment] = None,
               macro_env: Optional[Environment] = None) -> Object:
    """
    Parses, macro-expands and evaluates `code`. Runtime failures come back as an
    Error object; syntax errors raise MonkeySyntaxError and a bad macro call raises
    MacroExpansionError. Only recursion that never terminates raises RecursionError.
    """
    env = env if env is not None else Environment()
    macro_env = macro_env if macro_env is not None else Environment()
    return call_with_deep_stack(_parse_expand_evaluate, code, env, macro_env)


def print_parser_errors(errors: List[str], file=None):
    file = file or sys.stdout
    print("parser errors:", file=file)
    for message in errors:
        print(f"\t{message}", file=file)


def repl():
    """Read-Eval-Print loop. Bindings and macros persist for the whole session."""
    print("Monkey REPL. Ctrl+D to exit.")
    env = Environment()
    macro_env = Environment()

    while True:
        try:
            line = input(PROMPT)
            if not line.strip():
                continue
            result = run_source(line, env, macro_env)
            print(result.inspect())
        except MonkeySyntaxError as e:
            print_parser_errors(e.errors)
        except MacroExpansionError as e:
            print(f"macro error: {e}")
        except RecursionError:
            print("ERROR: maximum recursion depth exceeded")
        except EOFError:
            print()
            break
        except KeyboardInterrupt:
            print("\nInterrupted. Ctrl+D to exit.")


def run_file(path: str) -> int:
    with open(path, encoding='utf-8') as f:
        code = f.read()

    try:
        result = run_source(code)
    except MonkeySyntaxError as e:
        print_parser_errors(e.errors, file=sys.stderr)
        return 1
    except MacroExpansionError as e:
        print(f"macro error: {e}", file=sys.stderr)
        return 1
    except RecursionError:
        print("ERROR: maximum recursion depth exceeded", file=sys.stderr)
        return 1

    if isinstance(result, Error):
        print(result.inspect(), file=sys.stderr)
        return 1
    print(result.inspect())
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Command-line interface."""
    parser = argparse.ArgumentParser(prog="monkey", description="Run Monkey programs.")
    parser.add_argument(
        "input_file",
        nargs='?',
        help="Path to a Monkey source file. Starts the REPL if not provided."
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log parser, macro expansion and evaluator activity."
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.input_file is None:
        repl()
        return 0

    logger.debug("running %s", args.input_file)
    try:
        return run_file(args.input_file)
    except OSError as e:
        print(f"cannot read {args.input_file}: {e.strerror}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
