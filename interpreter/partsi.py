#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

import argparse
from pathlib import Path
from typing import List, Optional

from parts_analysis import AnalysisResult
from parts_ast_printer import format_program
from parts_context import RunContext, LogLevel
from parts_diagnostics import Diagnostic
from parts_driver import PartsDriver
from parts_internal_error import InternalInterpreterError, ICELocation
from parts_lexer import TokenKind
from parts_logger import log_info, log_error

EXIT_OK = 0
EXIT_STATIC_ERROR = 65
EXIT_NO_INPUT = 66
EXIT_RUNTIME_ERROR = 70

REPL_PROMPT = "> "


def print_diagnostics(result: AnalysisResult, context: RunContext) -> None:
    lines = result.source.splitlines()
    for diag in result.diagnostics:
        print_diagnostic_with_snippet(diag, lines, context)


def print_diagnostic_with_snippet(diag: Diagnostic, lines: List[str], context: Optional[RunContext] = None) -> None:
    # First line(s): header
    log_error(context, diag.format())

    if diag.line is None:
        return

    line_idx = diag.line - 1
    if not (0 <= line_idx < len(lines)):
        return

    src_line = lines[line_idx]

    # Pretty "N | ..." formatting (width keeps multi-digit line numbers aligned)
    width = max(5, len(str(diag.line)))
    gutter = f"{diag.line:>{width}} | "

    log_error(context, gutter + src_line)

    if diag.column is None:
        return

    start_col = max(1, diag.column)
    caret_prefix = " " * width + " | " + " " * (start_col - 1)
    log_error(context, caret_prefix + "^")


def build_run_context(args: argparse.Namespace) -> RunContext:
    """Build a RunContext from command-line arguments."""
    log_rich_format = getattr(args, 'log', False)

    # Convert verbosity count to LogLevel
    verbosity = getattr(args, 'verbosity', 0)
    if verbosity >= 3:
        log_level = LogLevel.DEBUG
    elif verbosity >= 1:
        log_level = LogLevel.INFO
    else:
        log_level = LogLevel.ERROR

    return RunContext(
        log_rich_format=log_rich_format,
        log_level=log_level,
    )


def _read_source(path: str, context: RunContext) -> Optional[str]:
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        log_error(context, f"error: [PSI-0010] cannot read {path}: {e}")
        return None


def _exit_code_for(result: AnalysisResult) -> int:
    if result.has_static_errors():
        return EXIT_STATIC_ERROR
    if result.has_runtime_errors():
        return EXIT_RUNTIME_ERROR
    return EXIT_OK


def cmd_run(args: argparse.Namespace) -> int:
    """Run a PartS source file."""
    context = build_run_context(args)
    source = _read_source(args.file, context)
    if source is None:
        return EXIT_NO_INPUT

    driver = PartsDriver(context=context)
    try:
        result = driver.run(source, filename=args.file)
    except InternalInterpreterError as e:
        if e.loc is None:
            e.loc = ICELocation(filename=args.file, line=None)
        log_error(context, e.format())
        return EXIT_RUNTIME_ERROR

    print_diagnostics(result, context)
    return _exit_code_for(result)


def cmd_repl(args: argparse.Namespace) -> int:
    """
    Interactive session: one run per input line.

    Definitions persist from line to line; errors do not.
    """
    context = build_run_context(args)
    driver = PartsDriver(context=context)
    log_info(context, "Starting interactive session (Ctrl-D to exit)")

    while True:
        try:
            line = input(REPL_PROMPT)
        except EOFError:
            print()
            return EXIT_OK
        except KeyboardInterrupt:
            print()
            continue

        try:
            result = driver.run(line)
        except InternalInterpreterError as e:
            log_error(context, e.format())
            continue
        print_diagnostics(result, context)


def cmd_check(args: argparse.Namespace) -> int:
    """Scan, parse and resolve a file without running it."""
    context = build_run_context(args)
    source = _read_source(args.file, context)
    if source is None:
        return EXIT_NO_INPUT

    result = PartsDriver(context=context).analyze(source, filename=args.file)
    print_diagnostics(result, context)
    return EXIT_STATIC_ERROR if result.has_static_errors() else EXIT_OK


def cmd_tok(args: argparse.Namespace) -> int:
    """Dump scanner tokens."""
    context = build_run_context(args)
    source = _read_source(args.file, context)
    if source is None:
        return EXIT_NO_INPUT

    result = PartsDriver(context=context).tokenize(source, filename=args.file)
    for tok in result.tokens:
        if not args.include_eof and tok.kind is TokenKind.EOF:
            continue
        # Format: file:line:col: KIND  'text'
        print(
            f"{args.file}:{tok.line}:{tok.column}:\t"
            f"{tok.kind.name:<12} {tok.text!r}"
        )
    print_diagnostics(result, context)
    return EXIT_STATIC_ERROR if result.has_static_errors() else EXIT_OK


def cmd_ast(args: argparse.Namespace) -> int:
    """Pretty-print the parsed statements."""
    context = build_run_context(args)
    source = _read_source(args.file, context)
    if source is None:
        return EXIT_NO_INPUT

    result = PartsDriver(context=context).parse(source, filename=args.file)
    if result.has_static_errors():
        print_diagnostics(result, context)
        return EXIT_STATIC_ERROR

    if result.statements:
        print(format_program(result.statements))
    return EXIT_OK


def _add_file_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("file", help="PartS source file")


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(prog="partsi", description="PartS tree-walking interpreter")
    subparsers = parser.add_subparsers(dest="command", required=True, help="Command to run")

    parser.add_argument("-v", "--verbose",
                        action='count',
                        default=0,
                        dest='verbosity',
                        help="Increase verbosity: -v=INFO, -vvv=DEBUG")
    parser.add_argument("-l", "--log",
                        action='store_true',
                        default=False,
                        help="Enable rich log formatting (timestamps, levels)")

    ###########################
    # run command
    ###########################
    p_run = subparsers.add_parser("run", help="Run a source file")
    _add_file_arg(p_run)
    p_run.set_defaults(func=cmd_run)

    ###########################
    # repl command
    ###########################
    p_repl = subparsers.add_parser("repl", help="Start an interactive session")
    p_repl.set_defaults(func=cmd_repl)

    ###########################
    # check command
    ###########################
    p_check = subparsers.add_parser("check", help="Scan, parse and resolve a file", aliases=["analyze"])
    _add_file_arg(p_check)
    p_check.set_defaults(func=cmd_check)

    ###########################
    # tok command
    ###########################
    p_tok = subparsers.add_parser("tok", help="Dump scanner tokens", aliases=["tokens"])
    p_tok.add_argument("--include-eof", "-I", action="store_true",
                       help="Include the EOF token in the output")
    _add_file_arg(p_tok)
    p_tok.set_defaults(func=cmd_tok)

    ###########################
    # ast command
    ###########################
    p_ast = subparsers.add_parser("ast", help="Pretty-print the parsed AST")
    _add_file_arg(p_ast)
    p_ast.set_defaults(func=cmd_ast)

    args = parser.parse_args(argv)

    rc = args.func(args)
    raise SystemExit(rc)


if __name__ == "__main__":
    main()
