#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from dataclasses import dataclass, field
from typing import List, Optional

from parts_ast import Stmt
from parts_diagnostics import Diagnostics, Phase
from parts_lexer import Token
from parts_resolver import DistanceTable


@dataclass
class AnalysisResult:
    """
    Products of one pass through the pipeline for a single source text.

    Contains:
      - the token list (always present, possibly with error recovery gaps)
      - the parsed statements (empty when not parsed)
      - the resolver's distance table (empty when resolution was skipped)
      - the diagnostics context of the run
      - whether the statements were handed to the interpreter
    """
    source: str
    filename: Optional[str] = None
    tokens: List[Token] = field(default_factory=list)
    statements: List[Stmt] = field(default_factory=list)
    distances: DistanceTable = field(default_factory=DistanceTable)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
    executed: bool = False

    def has_errors(self) -> bool:
        return self.diagnostics.has_errors()

    def has_static_errors(self) -> bool:
        return self.diagnostics.had_static_error

    def has_runtime_errors(self) -> bool:
        return self.diagnostics.had_runtime_error

    def errors_in(self, phase: Phase) -> List[str]:
        """Codes of the errors reported during `phase`, in report order."""
        return [d.code for d in self.diagnostics if d.phase is phase and d.kind == "error"]
