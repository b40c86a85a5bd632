"""
TALLY CLI Entrypoint.

This module provides the command-line interface for executing TALLY source code.
It supports running files or inline strings, inspecting tokens and ASTs, and an
interactive REPL.

Features:
    - Read source from `.tally` files or inline strings.
    - Lex, parse, and interpret the program, printing each `print` value.
    - Dump the token stream (`--tokens`) or the AST as JSON (`--ast`).
    - Launch an interactive REPL with optional verbosity.

Environment:
    TALLY_LOG_LEVEL - Logging level when `--verbose` is not given (default: WARNING).

Example usage:
    tally hello.tally
    tally -s "a = 2; print a ^ 10"
    tally -s "print (1 + 2) * 3" --ast
    tally --repl --verbose

Functions:
    configure_logging(verbose: bool = False) -> None:
        Sets up stderr logging from the flag or TALLY_LOG_LEVEL.

    run_tally(source: str, is_string: bool = False, tokens: bool = False,
              ast: bool = False, pretty: bool = False) -> RunResult | None:
        Executes the full TALLY pipeline (lex → parse → interpret → output).

    main() -> None:
        Parses CLI arguments and invokes the appropriate action.
"""

import argparse
import json
import logging
import os
import sys

from tally.tally_errors import TallyError
from tally.tally_interpreter import Interpreter, RunResult, format_value
from tally.tally_lexer import CharacterStream, Lexer
from tally.tally_parser import Parser

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(verbose: bool = False) -> None:
    if verbose:
        level = logging.DEBUG
    else:
        level_name = os.getenv("TALLY_LOG_LEVEL", "WARNING").upper()
        level = getattr(logging, level_name, logging.WARNING)
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr, force=True)


def run_tally(
    source: str,
    is_string: bool = False,
    tokens: bool = False,
    ast: bool = False,
    pretty: bool = False,
) -> RunResult | None:
    """
    Run the TALLY toolchain: lex, parse, and interpret, or dump an intermediate stage.

    Args:
        source (str): The TALLY source code or path to a `.tally` file.
        is_string (bool): If True, treats `source` as raw code instead of a file path.
        tokens (bool): If True, print the token stream and stop.
        ast (bool): If True, print the parsed statements as JSON and stop.
        pretty (bool): If True, prints banners around each output section.

    Returns:
        RunResult | None: The final environment and printed values, or None
        when only tokens or the AST were requested.

    Raises:
        ValueError: If `is_string` is False and the source does not end with '.tally',
            or if `ast` is set and the tree is too deep to serialize.
        TallyError: The first lexing, parsing or evaluation error.
    """
    if not is_string and not source.endswith(".tally"):
        raise ValueError("Only .tally files are supported.")
    # 1. Read source
    if not is_string:
        with open(source, encoding="utf-8") as f:
            source = f.read()
    banner = "=" * 20

    # 2. Lexing
    lexer = Lexer(CharacterStream(source, 0, 1, 1))
    if tokens:
        if pretty:
            print(f"{banner}\nTokens\n{banner}")
        for tok in lexer:
            print(f"{tok.line}:{tok.col}\t{tok.type}\t{tok.value!r}")
        return None

    # 3. Parsing
    statements = Parser(lexer).parse()
    logger.debug("parsed %d statement(s)", len(statements))
    if ast:
        if pretty:
            print(f"{banner}\nAST\n{banner}")
        try:
            dump = json.dumps([s.to_dict() for s in statements], indent=2)
        except RecursionError:
            raise ValueError("AST is nested too deeply to print as JSON.") from None
        print(dump)
        return None

    # 4. Interpreting
    if pretty:
        print("<<< OUTPUT >>>")
    interpreter = Interpreter(sink=lambda value: print(format_value(value)))
    return interpreter.interpret(statements)


def main() -> None:
    """
    Entry point for the TALLY CLI.

    Parses command-line arguments and dispatches to the appropriate mode:
    - Launches the REPL if no arguments are passed or `--repl` is specified.
    - Otherwise, runs the full TALLY pipeline on a file or string.

    Supported flags:
        - `-s`, `--string`: Interpret source as a raw string instead of a file path.
        - `--tokens`: Print the token stream instead of running.
        - `--ast`: Print the parsed AST as JSON instead of running.
        - `-p`, `--pretty`: Show banners around output sections.
        - `--repl`: Launch the interactive REPL.
        - `--verbose`: Enable debug logging.

    Errors are written to stderr as `Error: <message>` with exit status 1.
    """
    if len(sys.argv) == 1:
        # No args passed: open REPL instead
        from tally.tally_repl import start_repl

        configure_logging()
        start_repl()
        return
    parser = argparse.ArgumentParser(prog="tally")
    parser.add_argument("source", nargs="?", help="Filename or raw source (with -s)")
    parser.add_argument(
        "-s", "--string", action="store_true", help="Interpret source as literal string"
    )
    stage = parser.add_mutually_exclusive_group()
    stage.add_argument(
        "--tokens", action="store_true", help="Print the token stream and exit"
    )
    stage.add_argument(
        "--ast", action="store_true", help="Print the parsed AST as JSON and exit"
    )
    parser.add_argument(
        "-p", "--pretty", action="store_true", help="Show output with banners"
    )
    parser.add_argument(
        "--repl",
        action="store_true",
        help="Launch interactive REPL instead of running a program",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args()
    configure_logging(args.verbose)

    if args.repl or args.source is None:
        from tally.tally_repl import start_repl

        start_repl(verbose=args.verbose)
        return
    try:
        run_tally(
            source=args.source,
            is_string=args.string,
            tokens=args.tokens,
            ast=args.ast,
            pretty=args.pretty,
        )
    except (TallyError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
