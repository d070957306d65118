"""
Run context for cross-cutting interpreter options.

This module defines the RunContext dataclass which holds options that affect
more than one pipeline stage (currently only logging).
"""

#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from dataclasses import dataclass
from enum import IntEnum


class LogLevel(IntEnum):
    """Hierarchical logging levels for the PartS interpreter."""
    SILENT = 0      # No logging
    ERROR = 3       # Error messages only
    WARNING = 6     # Warning messages (default)
    INFO = 10       # General progress messages (-v)
    DEBUG = 30      # Detailed pipeline information (-vvv)


@dataclass
class RunContext:
    """
    Holds cross-cutting options shared by the driver, the logger and the CLI.

    Attributes:
        log_rich_format:        If True, emit logs in rich format: timestamp and log level prefix.
        log_level:              Current logging level.
    """
    log_rich_format: bool = False
    log_level: LogLevel = LogLevel.WARNING

    @staticmethod
    def default() -> 'RunContext':
        """Create a RunContext with default settings."""
        return RunContext(log_level=LogLevel.WARNING)
