"""
Flattening context for cross-cutting options.

This module defines the FlattenContext dataclass which holds options that
affect more than one stage (loading, flattening, rendering, logging).
"""

#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List


class LogLevel(IntEnum):
    """Hierarchical logging levels for gostructcopy."""
    SILENT = 0      # No logging
    ERROR = 3       # Error messages only
    WARNING = 6     # Warning messages (default)
    INFO = 10       # General progress messages (-v)
    DEBUG = 30      # Detailed diagnostic information (-vvv)


@dataclass
class FlattenContext:
    """
    Holds cross-cutting options that affect multiple stages.

    Attributes:
        log_rich_format:    If True, emit logs in rich format: may include log level, timestamps, etc.
        log_level:          Current logging level.
        indent_str:         Indentation used for struct field lines in the rendered output.
        expand_prefixes:    Import path prefixes that are always expanded, even when they carry
                            no dotted domain segment (e.g. a module declared as 'myapp').
    """
    log_rich_format: bool = False
    log_level: LogLevel = LogLevel.WARNING
    indent_str: str = "\t"
    expand_prefixes: List[str] = field(default_factory=list)

    @staticmethod
    def default() -> 'FlattenContext':
        """Create a FlattenContext with default settings."""
        return FlattenContext(log_level=LogLevel.WARNING)
