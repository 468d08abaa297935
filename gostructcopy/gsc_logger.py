"""
Logging for gostructcopy.

Every message goes to stderr through the FlattenContext of the run: the
context's level decides what is printed, and its rich-format flag adds a
timestamp and level tag. The pipeline announces its stages with log_stage.
"""

#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

import sys
import time
from enum import Enum
from typing import Optional

from gsc_context import FlattenContext, LogLevel

_LEVEL_TAGS = {
    LogLevel.ERROR: "ERROR",
    LogLevel.WARNING: "WARNING",
    LogLevel.INFO: "INFO",
    LogLevel.DEBUG: "DEBUG",
}


class Stage(Enum):
    LOAD = "Loading packages"
    RESOLVE = "Resolving type names"
    FLATTEN = "Flattening"
    RESOLVE_CONFLICTS = "Resolving name conflicts"
    RENDER = "Rendering definitions"


def _prefix(context: FlattenContext, log_level: LogLevel) -> str:
    if not context.log_rich_format:
        return ""
    timestamp = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime())
    return f"{timestamp} [{_LEVEL_TAGS.get(log_level, log_level.name)}] "


def log(context: Optional[FlattenContext], log_level: LogLevel, message: str) -> None:
    """
    Print a message to stderr if the context's level admits it.

    Without a context the message is printed unconditionally, after a note
    that no context was given.
    """
    if context is None:
        print("No context provided for logging.", file=sys.stderr)
        print(message, file=sys.stderr)
        return
    if context.log_level >= log_level:
        print(f"{_prefix(context, log_level)}{message}", file=sys.stderr)


def log_error(context: Optional[FlattenContext], message: str) -> None:
    log(context, LogLevel.ERROR, message)


def log_warning(context: Optional[FlattenContext], message: str) -> None:
    log(context, LogLevel.WARNING, message)


def log_info(context: Optional[FlattenContext], message: str) -> None:
    log(context, LogLevel.INFO, message)


def log_debug(context: Optional[FlattenContext], message: str) -> None:
    log(context, LogLevel.DEBUG, message)


def log_stage(context: Optional[FlattenContext], stage: Stage, subject: Optional[str] = None) -> None:
    """
    Announce a pipeline stage at INFO level.

    Args:
        context: The flatten context of the run.
        stage:   The stage being entered.
        subject: What the stage works on (an import path or a type), if any.
    """
    if subject:
        log(context, LogLevel.INFO, f"{stage.value} '{subject}'")
    else:
        log(context, LogLevel.INFO, f"{stage.value}...")
