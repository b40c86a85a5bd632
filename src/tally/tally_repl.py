"""
Interactive read-eval-print loop for the TALLY language.

One Interpreter (and therefore one Environment) lives for the whole session,
so variables assigned on one line are visible on the next. A line that fails
to lex, parse or evaluate is reported and the session continues; statements
that ran before the failure keep their effects.

Meta commands:
    exit, quit      Leave the REPL.
    vars            List current variable bindings.
    verbose-mode    Toggle debug logging of tokens, statements and bindings.
"""

import logging

from tally.tally_ast import ExpressionStatement
from tally.tally_errors import TallyError
from tally.tally_interpreter import Interpreter, format_value
from tally.tally_lexer import CharacterStream, Lexer
from tally.tally_parser import Parser

logger = logging.getLogger(__name__)


def run_line(src: str, interpreter: Interpreter) -> None:
    """Parse and execute one REPL entry, echoing bare expression values."""
    statements = Parser(Lexer(CharacterStream(src, 0, 1, 1))).parse()
    for statement in statements:
        result = interpreter.execute(statement)
        if isinstance(statement, ExpressionStatement) and result is not None:
            print(format_value(result))


def print_vars(interpreter: Interpreter) -> None:
    if not interpreter.environment:
        print("[vars] >>> No variables defined.")
        return
    for name, value in sorted(interpreter.environment.items()):
        print(f"{name:>12} = {format_value(value)}")


def set_verbose(verbose: bool) -> None:
    logging.getLogger("tally").setLevel(logging.DEBUG if verbose else logging.NOTSET)


def start_repl(verbose: bool = False) -> None:
    print("Tally REPL. Type 'exit' or 'quit' to leave.")
    interpreter = Interpreter(sink=lambda value: print(format_value(value)))
    set_verbose(verbose)

    while True:
        try:
            src = input(">>> ").strip()
            if not src or src.startswith("#"):
                continue
            if src in ("exit", "quit"):
                print("Exiting Tally REPL.")
                return
            if src == "vars":
                print_vars(interpreter)
                continue
            if src.lower() == "verbose-mode":
                verbose = not verbose
                set_verbose(verbose)
                print(f"[mode] >>> Verbose mode {'ON' if verbose else 'OFF'}")
                continue
            try:
                run_line(src, interpreter)
            except TallyError as e:
                logger.debug("line failed: %r", src)
                print(f"[error] >>> {e}")
        except (KeyboardInterrupt, EOFError):
            print("\nExiting Tally REPL.")
            break


def main() -> None:
    start_repl()


if __name__ == "__main__":
    main()
