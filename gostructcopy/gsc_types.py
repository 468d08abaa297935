#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from enum import Enum, auto
from typing import Optional

from gsc_ast import (
    TypeExpr, NamedType, StructType, PointerType, SequenceType, MapType, OpaqueType,
)

# ========================================
# Type expression kinds seen by the engine.
# ========================================

GO_PREDECLARED_TYPES = (
    "any", "bool", "byte", "comparable", "complex64", "complex128", "error",
    "float32", "float64", "int", "int8", "int16", "int32", "int64", "rune",
    "string", "uint", "uint8", "uint16", "uint32", "uint64", "uintptr",
)

# Placeholder used where a map side renders to nothing.
ANY_PLACEHOLDER = "interface{}"


class TypeKind(Enum):
    STRUCT = auto()
    POINTER = auto()
    SEQUENCE = auto()
    MAP = auto()
    NAMED = auto()
    OPAQUE = auto()


# --- type stringification for debugging ---

def format_type(t: Optional[TypeExpr]) -> str:
    if t is None:
        return "<none>"
    elif isinstance(t, NamedType):
        return f"{t.qualifier}.{t.name}" if t.qualifier else t.name
    elif isinstance(t, StructType):
        fields = ", ".join(
            format_type(f.type) if f.name is None else f"{f.name}: {format_type(f.type)}"
            for f in t.fields
        )
        return f"struct{{{fields}}}"
    elif isinstance(t, PointerType):
        return f"*{format_type(t.inner)}"
    elif isinstance(t, SequenceType):
        marker = "..." if t.ellipsis else (t.length or "")
        return f"[{marker}]{format_type(t.inner)}"
    elif isinstance(t, MapType):
        return f"map[{format_type(t.key)}]{format_type(t.value)}"
    elif isinstance(t, OpaqueType):
        return f"opaque({t.text})"
    else:
        # Fallback (should not happen)
        return repr(t)
