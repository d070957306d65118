"""
Logging utilities for the PartS interpreter.

Messages go to stderr and are filtered by the RunContext log level, so that
stdout carries nothing but program output.
"""

#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

import sys
import time
from typing import Optional

from parts_context import RunContext, LogLevel


def log(context: Optional[RunContext], log_level: LogLevel, message: str) -> None:
    """
    Log a message if the context's logging level admits it.

    Args:
        context:    The run context holding the logging level; None logs unconditionally.
        log_level:  The level of the message to log.
        message:    The message to log.
    """
    if context is None:
        print(message, file=sys.stderr)
        return
    prefix = ""
    if context.log_rich_format:
        timestamp = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime())
        prefix = {
            LogLevel.ERROR: f"{timestamp} [ERROR] ",
            LogLevel.WARNING: f"{timestamp} [WARNING] ",
            LogLevel.INFO: f"{timestamp} [INFO] ",
            LogLevel.DEBUG: f"{timestamp} [DEBUG] ",
        }.get(log_level, "")
    if context.log_level >= log_level:
        print(f"{prefix}{message}", file=sys.stderr)


def log_error(context: Optional[RunContext], message: str) -> None:
    log(context, LogLevel.ERROR, message)


def log_info(context: Optional[RunContext], message: str) -> None:
    log(context, LogLevel.INFO, message)


def log_debug(context: Optional[RunContext], message: str) -> None:
    log(context, LogLevel.DEBUG, message)


def log_stage(context: Optional[RunContext], stage: str, source_name: Optional[str] = None) -> None:
    """
    Log the start of a pipeline stage.

    Args:
        context:     The run context.
        stage:       The stage name (e.g. "Scanning", "Resolving").
        source_name: Optional file name being processed.
    """
    if source_name:
        log(context, LogLevel.INFO, f"{stage} '{source_name}'")
    else:
        log(context, LogLevel.INFO, f"{stage}...")
