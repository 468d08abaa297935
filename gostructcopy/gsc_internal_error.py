#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from gsc_ast import Span, TypeDecl

_ICE_CODE_RE = re.compile(r"\[(ICE-\d{4})\]")


@dataclass(frozen=True)
class ICELocation:
    filename: Optional[str] = None
    span: Optional[Span] = None

    @classmethod
    def of_decl(cls, decl: Optional[TypeDecl]) -> ICELocation:
        if decl is None:
            return cls()
        return cls(filename=decl.filename, span=decl.span)

    def prefix(self) -> str:
        if not self.filename:
            return ""
        if self.span is None:
            return f"{self.filename}: "
        return f"{self.filename}:{self.span.start_line}:{self.span.start_column}: "


class InternalFlattenError(RuntimeError):
    """
    A violated engine invariant (a flattener bug).

    Malformed input never raises this: the front end reports it as a
    Diagnostic and the engine as a failed CopyResult.
    """

    def __init__(self, message: str, loc: ICELocation | None = None):
        super().__init__(message)
        self.message = message
        self.loc = loc or ICELocation()

    @property
    def code(self) -> str:
        m = _ICE_CODE_RE.search(self.message)
        return m.group(1) if m else "ICE-9999"

    def format(self) -> str:
        message = self.message if _ICE_CODE_RE.search(self.message) else f"[{self.code}] {self.message}"
        return f"{self.loc.prefix()}internal error: {message}"
