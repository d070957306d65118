#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Callable, List, Optional

if TYPE_CHECKING:
    from parts_lexer import Token


DIAGNOSTIC_CODE_FAMILIES = {
    "LEX": [
        "LEX-0010",  # unterminated string
        "LEX-0040",  # unexpected character
    ],
    "PAR": [
        "PAR-0010",
        "PAR-0020",
        "PAR-0030",
        "PAR-0031",
        "PAR-0040",
        "PAR-0041",
        "PAR-0042",
        "PAR-0043",
        "PAR-0050",
        "PAR-0051",
        "PAR-0052",
        "PAR-0053",
        "PAR-0054",
        "PAR-0060",
        "PAR-0061",
        "PAR-0070",
        "PAR-0071",
        "PAR-0080",
        "PAR-0081",
        "PAR-0090",
        "PAR-0091",
        "PAR-0092",
        "PAR-0100",
        "PAR-0110",
        "PAR-0120",
        "PAR-0130",
        "PAR-0131",
        "PAR-0140",
        "PAR-0141",
        "PAR-0142",
        "PAR-0150",  # nesting deeper than the host stack allows
    ],
    "RES": [
        "RES-0010",
        "RES-0020",
        "RES-0030",
        "RES-0031",
        "RES-0040",
        "RES-0050",
        "RES-0051",
        "RES-0052",
        "RES-0060",  # nesting deeper than the host stack allows
    ],
    # ICE codes are internal interpreter errors raised as exceptions,
    # not user-facing diagnostics; they are excluded from this registry.
    "RUN": [
        "RUN-0010",
        "RUN-0011",
        "RUN-0012",
        "RUN-0020",
        "RUN-0030",
        "RUN-0031",
        "RUN-0040",
        "RUN-0041",
        "RUN-0042",
        "RUN-0050",
        "RUN-0060",
    ],
}


class Phase(Enum):
    LEXICAL = auto()
    SYNTAX = auto()
    RESOLUTION = auto()
    RUNTIME = auto()


@dataclass
class Diagnostic:
    kind: str  # "error" or "warning"
    phase: Phase
    message: str
    code: Optional[str] = None

    # Primary location
    line: Optional[int] = None
    column: Optional[int] = None

    # Context label: "", " at end" or " at '<lexeme>'"
    where: str = ""
    filename: Optional[str] = None

    @property
    def is_static(self) -> bool:
        return self.phase is not Phase.RUNTIME

    # Return the report text; snippets are printed at the call site
    def format(self) -> str:
        prefix = f"{self.filename}: " if self.filename is not None else ""
        line = "?" if self.line is None else self.line
        if self.phase is Phase.RUNTIME:
            return f"{prefix}{self.message}\n[line {line}]"
        label = "Error" if self.kind == "error" else "Warning"
        return f"{prefix}[line {line}] {label}{self.where}: {self.message}"


def where_from_token(token: Optional[Token]) -> str:
    if token is None:
        return ""
    if token.is_eof():
        return " at end"
    return f" at '{token.text}'"


def diag_from_token(
        kind: str,
        phase: Phase,
        code: str,
        message: str,
        *,
        token: Optional[Token],
        filename: Optional[str] = None,
) -> Diagnostic:
    line = column = None
    if token is not None:
        line = token.line
        column = token.column
    return Diagnostic(
        kind=kind,
        phase=phase,
        message=message,
        code=code,
        line=line,
        column=column,
        where=where_from_token(token) if phase is not Phase.RUNTIME else "",
        filename=filename,
    )


@dataclass
class Diagnostics:
    """
    Per-run diagnostics context shared by the scanner, parser, resolver and
    interpreter.

    Every report is kept in order and forwarded to the optional sink. The
    two flags stay set for the lifetime of the context: callers start a new
    context for each independent run instead of resetting this one.
    """
    sink: Optional[Callable[[Diagnostic], None]] = None
    filename: Optional[str] = None
    items: List[Diagnostic] = field(default_factory=list)
    had_static_error: bool = False
    had_runtime_error: bool = False

    def report(self, diag: Diagnostic) -> None:
        if diag.filename is None:
            diag.filename = self.filename
        self.items.append(diag)
        if diag.kind == "error":
            if diag.is_static:
                self.had_static_error = True
            else:
                self.had_runtime_error = True
        if self.sink is not None:
            self.sink(diag)

    def error(
            self,
            phase: Phase,
            code: str,
            message: str,
            *,
            line: Optional[int] = None,
            column: Optional[int] = None,
            where: str = "",
    ) -> None:
        self.report(Diagnostic(kind="error", phase=phase, message=message, code=code,
                               line=line, column=column, where=where))

    def token_error(self, phase: Phase, code: str, token: Optional[Token], message: str) -> None:
        self.report(diag_from_token("error", phase, code, message, token=token))

    def has_errors(self) -> bool:
        return self.had_static_error or self.had_runtime_error

    def codes(self) -> List[str]:
        return [d.code for d in self.items if d.code is not None]

    def __iter__(self):
        return iter(self.items)
