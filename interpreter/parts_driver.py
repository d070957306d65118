#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

import sys
import threading
from pathlib import Path
from typing import Callable, Optional, TypeVar

from parts_analysis import AnalysisResult
from parts_context import RunContext
from parts_diagnostics import Diagnostic, Diagnostics
from parts_interpreter import Interpreter
from parts_lexer import Lexer
from parts_logger import log_info, log_debug, log_stage
from parts_parser import Parser
from parts_resolver import Resolver

# One PartS call or nesting level spans several Python frames.
RECURSION_LIMIT = 25_000
THREAD_STACK_SIZE = 256 * 1024 * 1024

T = TypeVar("T")


def call_with_deep_stack(fn: Callable[..., T], *args) -> T:
    """
    Call fn(*args) on a worker thread with THREAD_STACK_SIZE bytes of stack
    and wait for it. The result is returned and any exception is re-raised
    in the calling thread.
    """
    outcome: dict = {}

    def target() -> None:
        try:
            outcome["value"] = fn(*args)
        except BaseException as e:
            outcome["error"] = e

    previous_limit = sys.getrecursionlimit()
    previous_size = threading.stack_size(THREAD_STACK_SIZE)
    try:
        sys.setrecursionlimit(max(previous_limit, RECURSION_LIMIT))
        worker = threading.Thread(target=target, name="parts-pipeline")
        worker.start()
    finally:
        threading.stack_size(previous_size)
    try:
        worker.join()
    finally:
        sys.setrecursionlimit(previous_limit)

    if "error" in outcome:
        raise outcome["error"]
    return outcome["value"]


class PartsDriver:
    """
    Pipeline driver:
      - scan
      - parse
      - resolve
      - interpret

    The driver owns one interpreter for its whole lifetime, so globals
    defined by one run are visible to the next (as in an interactive
    session). Every run gets a fresh diagnostics context: an error in one
    submission never leaks into the next.

    Entry points:
      - tokenize(source): scan only.
      - parse(source): scan and parse.
      - analyze(source): scan, parse and resolve.
      - run(source): analyze, then interpret when no static error was reported.
      - run_file(path): read a UTF-8 file and run it.

    Each entry point runs the pipeline through call_with_deep_stack().
    """

    def __init__(
        self,
        context: RunContext | None = None,
        output: Callable[[str], None] | None = None,
        sink: Callable[[Diagnostic], None] | None = None,
    ):
        self.context = context or RunContext.default()
        self.sink = sink
        self.interpreter = Interpreter(output=output)

    # --- Public API ---

    def tokenize(self, source: str, filename: Optional[str] = None) -> AnalysisResult:
        return call_with_deep_stack(self._tokenize, source, filename)

    def parse(self, source: str, filename: Optional[str] = None) -> AnalysisResult:
        return call_with_deep_stack(self._parse, source, filename)

    def analyze(self, source: str, filename: Optional[str] = None) -> AnalysisResult:
        """
        Front-end pipeline:

          1. Scan.
          2. Parse.
          3. Resolve, unless scanning or parsing reported an error.

        Returns an AnalysisResult holding all products and diagnostics.
        """
        return call_with_deep_stack(self._analyze, source, filename)

    def run(self, source: str, filename: Optional[str] = None) -> AnalysisResult:
        return call_with_deep_stack(self._run, source, filename)

    def run_file(self, path: str | Path) -> AnalysisResult:
        """Read `path` as UTF-8 and run it. A missing file raises FileNotFoundError."""
        path = Path(path)
        log_debug(self.context, f"Reading '{path}'")
        source = path.read_text(encoding="utf-8")
        return self.run(source, filename=str(path))

    # --- Internals ---

    def _tokenize(self, source: str, filename: Optional[str]) -> AnalysisResult:
        result = self._new_result(source, filename)
        log_stage(self.context, "Scanning", filename)
        result.tokens = Lexer(source, result.diagnostics).tokenize()
        log_debug(self.context, f"Scanner produced {len(result.tokens)} token(s)")
        return result

    def _parse(self, source: str, filename: Optional[str]) -> AnalysisResult:
        result = self._tokenize(source, filename)
        log_stage(self.context, "Parsing", filename)
        result.statements = Parser(result.tokens, result.diagnostics).parse()
        log_debug(self.context, f"Parser produced {len(result.statements)} top-level statement(s)")
        return result

    def _analyze(self, source: str, filename: Optional[str]) -> AnalysisResult:
        result = self._parse(source, filename)
        if result.has_static_errors():
            log_info(self.context, f"Skipping resolution: {len(result.diagnostics.items)} diagnostic(s)")
            return result

        log_stage(self.context, "Resolving", filename)
        result.distances = Resolver(result.diagnostics).resolve(result.statements)
        log_debug(self.context, f"Resolver recorded {len(result.distances)} local reference(s)")
        return result

    def _run(self, source: str, filename: Optional[str]) -> AnalysisResult:
        result = self._analyze(source, filename)
        if result.has_static_errors():
            log_info(self.context, f"Not running: {len(result.diagnostics.items)} static error(s)")
            return result

        log_stage(self.context, "Interpreting", filename)
        self.interpreter.interpret(result.statements, result.distances, result.diagnostics)
        result.executed = True
        log_info(self.context, f"Run complete: {len(result.diagnostics.items)} diagnostic(s)")
        return result

    def _new_result(self, source: str, filename: Optional[str]) -> AnalysisResult:
        diagnostics = Diagnostics(sink=self.sink, filename=filename)
        return AnalysisResult(source=source, filename=filename, diagnostics=diagnostics)
