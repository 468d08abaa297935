#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional, List


# ==========================
# AST definitions
# ==========================


@dataclass
class Span:
    start_line: int
    start_column: int
    end_line: int
    end_column: int


@dataclass
class Node:
    span: Optional[Span] = field(default=None, repr=False, compare=False, kw_only=True)


# --- type expressions ---
#
# Every type expression keeps `text`, the verbatim source it was parsed from.
# When a node is built by hand the text is derived from its parts.

class TypeExpr(Node):
    text: str


@dataclass
class NamedType(TypeExpr):
    name: str  # e.g. "User", "string"
    qualifier: Optional[str] = None  # package qualifier, e.g. "time" in time.Time
    text: str = ""  # may carry type arguments, e.g. "pkg.Box[int]"

    def __post_init__(self) -> None:
        if not self.text:
            self.text = f"{self.qualifier}.{self.name}" if self.qualifier else self.name


@dataclass
class StructType(TypeExpr):
    fields: List["FieldDecl"]
    text: str = ""

    def __post_init__(self) -> None:
        if not self.text:
            parts = []
            for f in self.fields:
                line = f.type.text if f.name is None else f"{f.name} {f.type.text}"
                if f.raw_tag:
                    line += f" {f.raw_tag}"
                parts.append(line)
            self.text = "struct { " + "; ".join(parts) + " }" if parts else "struct{}"


@dataclass
class PointerType(TypeExpr):
    inner: TypeExpr
    text: str = ""

    def __post_init__(self) -> None:
        if not self.text:
            self.text = f"*{self.inner.text}"


@dataclass
class SequenceType(TypeExpr):
    inner: TypeExpr
    length: Optional[str] = None  # literal length text of an array type; None for slices
    ellipsis: bool = False  # [...]T
    text: str = ""

    def __post_init__(self) -> None:
        if not self.text:
            marker = "..." if self.ellipsis else (self.length or "")
            self.text = f"[{marker}]{self.inner.text}"


@dataclass
class MapType(TypeExpr):
    key: TypeExpr
    value: TypeExpr
    text: str = ""

    def __post_init__(self) -> None:
        if not self.text:
            self.text = f"map[{self.key.text}]{self.value.text}"


@dataclass
class OpaqueType(TypeExpr):
    text: str  # interfaces, funcs, channels, parenthesized types, ...


# --- declarations ---

class DeclKind(Enum):
    STRUCT = auto()
    ALIAS = auto()


@dataclass
class FieldDecl(Node):
    name: Optional[str]  # None for embedded fields
    type: TypeExpr
    raw_tag: Optional[str] = None  # verbatim tag literal, delimiters included

    @property
    def is_embedded(self) -> bool:
        return self.name is None


@dataclass(eq=False)
class TypeDecl(Node):
    """
    A named type declaration. Identity is the node itself: two declarations
    with the same name (even in the same package) are different declarations.
    """
    name: str
    type: TypeExpr
    location: str = ""  # import path of the defining package
    package_name: str = ""
    is_alias: bool = False  # `type A = B`
    type_params: Optional[str] = None  # raw "[T any]" text of a generic declaration
    filename: Optional[str] = field(default=None, repr=False, compare=False, kw_only=True)

    @property
    def kind(self) -> DeclKind:
        return DeclKind.STRUCT if isinstance(self.type, StructType) else DeclKind.ALIAS

    @property
    def qualified_name(self) -> str:
        return f"{self.location}.{self.name}" if self.location else self.name


@dataclass
class Import(Node):
    path: str
    alias: Optional[str] = None  # explicit name, "_" or "."


@dataclass
class SourceFile(Node):
    package_name: str
    imports: List[Import]
    decls: List[TypeDecl]
    filename: Optional[str] = field(default=None, repr=False, compare=False, kw_only=True)


@dataclass
class Package:
    """
    All files of one Go package, identified by its import path.
    """
    import_path: str
    name: str
    files: List[SourceFile] = field(default_factory=list)

    @property
    def decls(self) -> List[TypeDecl]:
        return [d for f in self.files for d in f.decls]
