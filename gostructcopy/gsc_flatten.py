#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from collections import deque
from dataclasses import dataclass
from enum import Enum, auto
from typing import Deque, List, Optional, Set

from gsc_ast import TypeExpr, NamedType, StructType, TypeDecl
from gsc_conflicts import ConflictResolver
from gsc_context import FlattenContext
from gsc_graph import TypeGraph
from gsc_internal_error import InternalFlattenError
from gsc_logger import Stage, log_debug, log_error, log_info, log_stage
from gsc_names import NameRegistry, ReservationKey, decl_key
from gsc_policy import ExpansionPolicy
from gsc_render import (
    EmittedDefinition, RenderPass, StructDefinition, TypeRenderer, render_definitions,
)

ANONYMOUS_ROOT = "<anonymous>"


class ResultKind(Enum):
    OK = auto()
    NOT_FOUND = auto()
    NOT_A_STRUCT = auto()
    INTERNAL_ERROR = auto()


@dataclass(frozen=True)
class CopyResult:
    success: bool
    content: Optional[str]
    message: str
    kind: ResultKind = ResultKind.OK

    @staticmethod
    def ok(content: str, root_name: str) -> 'CopyResult':
        return CopyResult(True, content, f"Copied struct {root_name}", ResultKind.OK)

    @staticmethod
    def failure(kind: ResultKind, message: str) -> 'CopyResult':
        return CopyResult(False, None, message, kind)

    @property
    def is_empty(self) -> bool:
        """True for a successful copy that produced no text."""
        return self.success and not (self.content or "").strip()


@dataclass
class FlattenTarget:
    """
    One pending definition: a declaration (struct-bearing or not) or an
    anonymous struct, with the name it was given when it was queued.
    """
    name: str
    key: ReservationKey
    decl: Optional[TypeDecl] = None  # None for anonymous structs
    struct: Optional[StructType] = None
    alias_type: Optional[TypeExpr] = None


@dataclass
class CollectedNode:
    target: FlattenTarget
    provisional: EmittedDefinition

    @property
    def is_struct(self) -> bool:
        return isinstance(self.provisional, StructDefinition)


class FlattenRun:
    """
    Mutable state of a single flattening: the name registry, the FIFO
    worklist, the processed keys and the definitions collected in discovery
    order. Nothing here outlives the run.
    """

    def __init__(self, graph: TypeGraph, policy: ExpansionPolicy, context: FlattenContext):
        self.graph = graph
        self.policy = policy
        self.context = context
        self.registry = NameRegistry()
        self.queue: Deque[FlattenTarget] = deque()
        self.processed: Set[ReservationKey] = set()
        self.collected: List[CollectedNode] = []

    # --- seeding ---

    def seed(self, decl: TypeDecl) -> Optional[str]:
        """
        Queue the root declaration. A struct-bearing root is always expanded;
        any other root goes through the expansion policy like a reference.
        """
        struct = self.graph.resolve_struct(decl, can_follow=self.policy.should_expand)
        if struct is None:
            return self.enqueue_decl(decl)
        reservation = self.registry.reserve(decl.name, decl)
        self.queue.append(FlattenTarget(reservation.name, decl_key(decl), decl, struct=struct))
        log_debug(self.context, f"Seeded root '{decl.qualified_name}' as '{reservation.name}'")
        return reservation.name

    def enqueue_decl(self, decl: TypeDecl) -> Optional[str]:
        if not decl.name or not self.policy.should_expand(decl):
            return None
        reservation = self.registry.reserve(decl.name, decl)
        if not reservation.newly_reserved:
            return reservation.name

        struct = self.graph.resolve_struct(decl, can_follow=self.policy.should_expand)
        target = FlattenTarget(
            reservation.name,
            decl_key(decl),
            decl,
            struct=struct,
            alias_type=None if struct is not None else decl.type,
        )
        self.queue.append(target)
        log_debug(
            self.context,
            f"Queued {'struct' if struct is not None else 'alias'} '{decl.qualified_name}' as '{reservation.name}'",
        )
        return reservation.name

    def enqueue_anonymous(self, struct: StructType, owner: str, field_hint: Optional[str]) -> str:
        reservation = self.registry.reserve_anonymous(struct, owner, field_hint)
        if reservation.newly_reserved:
            key = self.registry.anonymous_key_of(struct)
            self.queue.append(FlattenTarget(reservation.name, key, struct=struct))
            log_debug(self.context, f"Queued anonymous struct in '{owner}' as '{reservation.name}'")
        return reservation.name

    # --- passes ---

    def drain(self) -> None:
        renderer = TypeRenderer(self, RenderPass.PROVISIONAL)
        while self.queue:
            target = self.queue.popleft()
            if target.key in self.processed:
                continue
            self.processed.add(target.key)
            self.collected.append(CollectedNode(target, renderer.render_target(target)))

    def finalize(self) -> List[EmittedDefinition]:
        renderer = TypeRenderer(self, RenderPass.FINAL)
        return [renderer.render_target(node.target) for node in self.collected]


class StructFlattener:
    """
    Public entry point of the engine.

    Given a declaration (or a bare type expression) from a bound TypeGraph,
    produce Go text holding it and every struct and named type it reaches,
    each as its own top-level declaration. Failures are reported through
    CopyResult; no exception escapes.
    """

    def __init__(self, graph: TypeGraph, context: Optional[FlattenContext] = None):
        self.graph = graph
        self.context = context or FlattenContext.default()
        self.policy = ExpansionPolicy(self.context)

    def expand(self, decl: Optional[TypeDecl]) -> CopyResult:
        if decl is None:
            return CopyResult.failure(ResultKind.NOT_FOUND, "[CPY-0010] no struct declaration found")
        try:
            return self._expand_decl(decl)
        except InternalFlattenError as e:
            return self._internal_failure(decl.name, e)

    def expand_type(self, expr: TypeExpr) -> CopyResult:
        if isinstance(expr, NamedType):
            decl = self.graph.resolve_named(expr)
            if decl is None:
                return CopyResult.failure(
                    ResultKind.NOT_FOUND, f"[CPY-0010] type '{expr.text}' could not be resolved"
                )
            return self.expand(decl)
        if isinstance(expr, StructType):
            try:
                run = self._new_run()
                run.enqueue_anonymous(expr, "", None)
                return self._complete(run, ANONYMOUS_ROOT)
            except InternalFlattenError as e:
                return self._internal_failure(ANONYMOUS_ROOT, e)
        return CopyResult.failure(
            ResultKind.NOT_A_STRUCT, f"[CPY-0020] '{expr.text}' is not a struct type"
        )

    # --- internal helpers ---

    def _new_run(self) -> FlattenRun:
        return FlattenRun(self.graph, self.policy, self.context)

    def _expand_decl(self, decl: TypeDecl) -> CopyResult:
        if decl.type_params is not None:
            return CopyResult.failure(
                ResultKind.NOT_A_STRUCT,
                f"[CPY-0020] generic type '{decl.name}{decl.type_params}' cannot be copied",
            )
        log_stage(self.context, Stage.FLATTEN, decl.qualified_name)
        run = self._new_run()
        if run.seed(decl) is None:
            return CopyResult.failure(
                ResultKind.NOT_A_STRUCT, f"[CPY-0020] '{decl.name}' is not a struct and cannot be copied"
            )
        return self._complete(run, decl.name)

    def _complete(self, run: FlattenRun, root_name: str) -> CopyResult:
        run.drain()
        log_debug(self.context, f"Collected {len(run.collected)} definition(s)")

        log_stage(self.context, Stage.RESOLVE_CONFLICTS)
        renames = ConflictResolver(run).resolve()
        if renames:
            log_debug(self.context, f"Conflict resolution renamed {renames} declaration(s)")

        log_stage(self.context, Stage.RENDER)
        content = render_definitions(run.finalize(), self.context.indent_str)
        log_info(self.context, f"Copied struct {root_name} ({len(run.collected)} definition(s))")
        return CopyResult.ok(content, root_name)

    def _internal_failure(self, root_name: str, e: InternalFlattenError) -> CopyResult:
        log_error(self.context, e.format())
        return CopyResult.failure(
            ResultKind.INTERNAL_ERROR, f"[CPY-0090] failed to copy '{root_name}': {e.format()}"
        )
