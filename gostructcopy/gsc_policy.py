#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from typing import Optional

from gsc_ast import TypeDecl
from gsc_context import FlattenContext


class ExpansionPolicy:
    """
    Decides which declarations are flattened and which stay as references.

    A declaration whose import path has no dotted domain segment ("time",
    "net/http", "encoding/json") belongs to the standard library or another
    runtime-provided package and is kept as an opaque reference. Declarations
    with an empty location or a dotted path ("github.com/acme/api") are
    expanded. Paths listed in FlattenContext.expand_prefixes are always expanded.
    """

    def __init__(self, context: Optional[FlattenContext] = None):
        self.context = context or FlattenContext.default()

    def should_expand(self, decl: TypeDecl) -> bool:
        return self.expands_location(decl.location)

    def expands_location(self, location: str) -> bool:
        if not location:
            return True
        if self._is_forced(location):
            return True
        return "." in location

    def _is_forced(self, location: str) -> bool:
        for prefix in self.context.expand_prefixes:
            prefix = prefix.rstrip("/")
            if location == prefix or location.startswith(prefix + "/"):
                return True
        return False
