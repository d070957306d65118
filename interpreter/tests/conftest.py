#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

from __future__ import annotations

import sys
from pathlib import Path
from textwrap import dedent

import pytest

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from parts_driver import PartsDriver


@pytest.fixture
def driver_with_output():
    """A driver whose print output is collected into a list.

    Usage:
        def test_something(driver_with_output):
            driver, out = driver_with_output
            driver.run("print(1);")
            assert out == ["1"]
    """
    out: list[str] = []
    return PartsDriver(output=out.append), out


@pytest.fixture
def run_source():
    """Run a PartS program on a fresh driver.

    Returns (result, printed_lines).

    Usage:
        def test_something(run_source):
            result, out = run_source('''
                print(1 + 2);
            ''')
            assert out == ["3"]
    """

    def _run(src: str):
        out: list[str] = []
        driver = PartsDriver(output=out.append)
        result = driver.run(dedent(src))
        return result, out

    return _run


@pytest.fixture
def analyze_source():
    """Scan, parse and resolve a PartS program without running it."""

    def _analyze(src: str):
        return PartsDriver().analyze(dedent(src))

    return _analyze


def has_error_code(diagnostics, code: str) -> bool:
    """Check if any diagnostic carries the given error code.

    Args:
        diagnostics: Diagnostics context or list of Diagnostic objects
        code: Error code string like "RES-0010" or "[RES-0010]"
    """
    code = code.strip("[]")
    return any(d.code == code for d in diagnostics)
