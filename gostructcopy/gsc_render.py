#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, List, Optional, Sequence, Union

from gsc_ast import TypeExpr, NamedType, StructType, PointerType, SequenceType, MapType
from gsc_internal_error import InternalFlattenError, ICELocation
from gsc_logger import log_debug
from gsc_types import ANY_PLACEHOLDER, TypeKind

if TYPE_CHECKING:
    from gsc_flatten import FlattenRun, FlattenTarget


class RenderPass(Enum):
    PROVISIONAL = auto()  # while the worklist drains: reserve names, enqueue targets
    FINAL = auto()  # after conflict resolution: look names up only


@dataclass
class RenderedField:
    name: Optional[str]  # None for embedded fields
    type_text: str
    tag: Optional[str] = None

    def to_line(self) -> str:
        parts = [p for p in (self.name, self.type_text, self.tag) if p]
        return " ".join(parts)


@dataclass
class StructDefinition:
    name: str
    fields: List[RenderedField] = field(default_factory=list)


@dataclass
class AliasDefinition:
    name: str
    underlying: str


EmittedDefinition = Union[StructDefinition, AliasDefinition]


def sanitize_json_tag(raw_tag: Optional[str]) -> Optional[str]:
    """
    Keep only the json segment of a struct tag.

        `json:"id,omitempty" db:"user_id"`  ->  `json:"id,omitempty"`
        `db:"user_id"`                       ->  None
    """
    if not raw_tag:
        return None
    text = raw_tag.strip()
    if len(text) >= 2 and text[0] == "`" and text[-1] == "`":
        text = text[1:-1]
    elif len(text) >= 2 and text[0] == '"' and text[-1] == '"':
        # Interpreted string tag: "json:\"id\""
        text = text[1:-1].replace('\\"', '"')
    for segment in text.split():
        if segment.startswith('json:"') or segment.startswith('json="'):
            return f"`{segment}`"
    return None


@dataclass
class GoCodeBuilder:
    """
    Helper for building Go source with indentation tracking.
    """
    lines: List[str] = field(default_factory=list)
    indent_level: int = 0
    indent_str: str = "\t"

    def indent(self) -> None:
        self.indent_level += 1

    def dedent(self) -> None:
        assert self.indent_level > 0, "dedent below zero"
        self.indent_level -= 1

    def emit(self, line: str = "") -> None:
        """Emit a line with current indentation."""
        if line:
            self.lines.append(self.indent_str * self.indent_level + line)
        else:
            self.lines.append("")

    def to_string(self) -> str:
        return "\n".join(self.lines)


def render_definitions(definitions: Sequence[EmittedDefinition], indent_str: str = "\t") -> str:
    """
    Serialize definitions: struct blocks in order (blank line between them),
    then one `type Name underlying` line per alias.
    """
    structs = [d for d in definitions if isinstance(d, StructDefinition)]
    aliases = [d for d in definitions if isinstance(d, AliasDefinition)]

    out = GoCodeBuilder(indent_str=indent_str)
    for i, struct in enumerate(structs):
        if i > 0:
            out.emit()
        out.emit(f"type {struct.name} struct {{")
        out.indent()
        for f in struct.fields:
            out.emit(f.to_line())
        out.dedent()
        out.emit("}")

    if structs and aliases:
        out.emit()
    for alias in aliases:
        out.emit(f"type {alias.name} {alias.underlying}")

    if not out.lines:
        return ""
    return out.to_string() + "\n"


def splice_name(text: str, declared: str, assigned: str) -> str:
    """
    Put an assigned output name into the reference text it replaces.

    A bare or package-qualified reference is replaced outright; anything
    else (type arguments, unusual qualifiers) gets a literal substitution.
    """
    if text == declared or text.endswith("." + declared):
        return assigned
    return text.replace(declared, assigned)


def embedded_name(expr: TypeExpr) -> Optional[str]:
    while isinstance(expr, PointerType):
        expr = expr.inner
    if isinstance(expr, NamedType):
        return expr.name
    return None


class TypeRenderer:
    """
    Renders type expressions to Go text against one flattening run.

    In the provisional pass every expandable reference is given a name and
    queued; in the final pass the same walk only reads names back from the
    registry, so references pick up renames made by the conflict resolver.
    """

    def __init__(self, run: FlattenRun, render_pass: RenderPass):
        self.run = run
        self.render_pass = render_pass

    # --- targets ---

    def render_target(self, target: FlattenTarget) -> EmittedDefinition:
        name = self._target_name(target)
        if target.struct is not None:
            return StructDefinition(name, self.render_fields(target.struct, name))
        if target.alias_type is None:
            raise InternalFlattenError(
                f"[ICE-0210] target '{target.name}' has neither a struct body nor an underlying type",
                ICELocation.of_decl(target.decl),
            )
        underlying = self.render_type(target.alias_type, name, None)
        return AliasDefinition(name, underlying or ANY_PLACEHOLDER)

    def render_fields(self, struct: StructType, owner: str) -> List[RenderedField]:
        rendered: List[RenderedField] = []
        for f in struct.fields:
            if f.name == "":
                continue
            hint = f.name if f.name is not None else embedded_name(f.type)
            type_text = self.render_type(f.type, owner, hint)
            if not type_text:
                log_debug(self.run.context, f"Dropping field '{hint}' of '{owner}': type renders empty")
                continue
            rendered.append(RenderedField(f.name, type_text, sanitize_json_tag(f.raw_tag)))
        return rendered

    # --- type expressions ---

    def render_type(self, expr: TypeExpr, owner: str, field_hint: Optional[str]) -> str:
        kind = self.run.graph.classify(expr)
        if kind is TypeKind.NAMED:
            return self._render_named(expr)
        if kind is TypeKind.STRUCT:
            return self._render_anonymous(expr, owner, field_hint)
        if kind is TypeKind.POINTER:
            inner = self.render_type(expr.inner, owner, field_hint)
            return f"*{inner}" if inner else ""
        if kind is TypeKind.SEQUENCE:
            inner = self.render_type(expr.inner, owner, field_hint)
            marker = "..." if expr.ellipsis else (expr.length or "")
            return f"[{marker}]{inner}"
        if kind is TypeKind.MAP:
            key = self.render_type(expr.key, owner, field_hint) or ANY_PLACEHOLDER
            value = self.render_type(expr.value, owner, field_hint) or ANY_PLACEHOLDER
            return f"map[{key}]{value}"
        return expr.text

    def _render_named(self, expr: NamedType) -> str:
        decl = self.run.graph.resolve_named(expr)
        if decl is None or not self.run.policy.should_expand(decl):
            return expr.text

        if self.render_pass is RenderPass.PROVISIONAL:
            assigned = self.run.enqueue_decl(decl)
            if assigned is None:
                return expr.text
        else:
            assigned = self.run.registry.lookup_decl(decl)
            if assigned is None:
                raise InternalFlattenError(
                    f"[ICE-0200] no output name recorded for '{decl.qualified_name}'",
                    ICELocation.of_decl(decl),
                )
        return splice_name(expr.text, decl.name, assigned)

    def _render_anonymous(self, struct: StructType, owner: str, field_hint: Optional[str]) -> str:
        if self.render_pass is RenderPass.PROVISIONAL:
            return self.run.enqueue_anonymous(struct, owner, field_hint)
        assigned = self.run.registry.lookup_anonymous(struct)
        if assigned is None:
            raise InternalFlattenError(
                f"[ICE-0201] no output name recorded for anonymous struct in '{owner}'",
                ICELocation(span=struct.span),
            )
        return assigned

    # --- internal helpers ---

    def _target_name(self, target: FlattenTarget) -> str:
        if self.render_pass is RenderPass.PROVISIONAL:
            return target.name
        assigned = self.run.registry.lookup(target.key)
        if assigned is None:
            raise InternalFlattenError(
                f"[ICE-0202] target '{target.name}' lost its reservation",
                ICELocation.of_decl(target.decl),
            )
        return assigned
