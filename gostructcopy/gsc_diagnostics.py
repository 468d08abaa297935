#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

import os
import re
from dataclasses import dataclass
from typing import Optional

from gsc_ast import Node, Span
from gsc_lexer import Token


DIAGNOSTIC_CODE_FAMILIES = {
    "LEX": [
        "LEX-0010",
        "LEX-0011",
        "LEX-0020",
        "LEX-0040",
        "LEX-0070",
    ],
    "PAR": [
        "PAR-0010",
        "PAR-0011",
        "PAR-0020",
        "PAR-0030",
        "PAR-0031",
        "PAR-0040",
        "PAR-0041",
        "PAR-0042",
        "PAR-0050",
        "PAR-0051",
        "PAR-0052",
        "PAR-0053",
        "PAR-0060",
        "PAR-0061",
        "PAR-0062",
        "PAR-0064",
        "PAR-0065",
        "PAR-0070",
    ],
    "DRV": [
        "DRV-0010",
        "DRV-0020",
    ],
    "RES": [
        "RES-0010",
        "RES-0020",
        "RES-0030",
    ],
    # Copy results are not diagnostics, but their codes share the registry
    # so that the message prefixes stay unique.
    "CPY": [
        "CPY-0010",
        "CPY-0020",
        "CPY-0090",
    ],
}


_CODE_RE = re.compile(r"\[([A-Z]{3}-\d{4})\]")


@dataclass
class Diagnostic:
    kind: str  # "error" or "warning"
    message: str  # carries its "[XXX-0000]" code
    package: Optional[str] = None  # import path
    filename: Optional[str] = None

    line: Optional[int] = None
    column: Optional[int] = None

    # Exclusive end of the reported range, when known
    end_line: Optional[int] = None
    end_column: Optional[int] = None

    @property
    def code(self) -> Optional[str]:
        m = _CODE_RE.search(self.message)
        return m.group(1) if m else None

    @property
    def is_error(self) -> bool:
        return self.kind == "error"

    def format(self) -> str:
        """One-line header: 'path:line:col(package): kind: message'."""
        where = []
        if self.filename is not None:
            where.append(os.path.abspath(str(self.filename)))
        if self.line is not None:
            where.append(str(self.line))
            if self.column is not None:
                where.append(str(self.column))
        loc = ":".join(where)
        if self.line is not None and self.package is not None:
            loc += f"({self.package})"
        return f"{loc}: {self.kind}: {self.message}" if loc else f"{self.kind}: {self.message}"


def _at_span(kind: str, message: str, package: Optional[str], filename: Optional[str],
             span: Optional[Span]) -> Diagnostic:
    diag = Diagnostic(kind=kind, message=message, package=package, filename=filename)
    if span is not None:
        diag.line, diag.column = span.start_line, span.start_column
        diag.end_line, diag.end_column = span.end_line, span.end_column
    return diag


def diag_from_node(kind: str, message: str, *, package: Optional[str], filename: Optional[str],
                   node: Optional[Node]) -> Diagnostic:
    return _at_span(kind, message, package, filename, node.span if node is not None else None)


def diag_from_token(kind: str, message: str, *, package: Optional[str], filename: Optional[str],
                    token: Optional[Token]) -> Diagnostic:
    if token is None:
        return _at_span(kind, message, package, filename, None)
    # Multi-line tokens (raw strings, inserted semicolons) only mark their first column
    width = 1 if "\n" in token.text else max(1, len(token.text))
    span = Span(token.line, token.column, token.line, token.column + width)
    return _at_span(kind, message, package, filename, span)
