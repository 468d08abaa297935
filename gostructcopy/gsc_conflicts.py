#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from __future__ import annotations

from typing import TYPE_CHECKING, List, Set

from gsc_ast import TypeDecl
from gsc_logger import log_debug
from gsc_names import decl_key

if TYPE_CHECKING:
    from gsc_flatten import FlattenRun


class ConflictResolver:
    """
    Post-traversal pass over the claims of a run.

    Declarations from different packages that asked for the same name are
    renamed after a prefix derived from their import path. When every
    claimant is emitted as a struct, the first one discovered keeps the bare
    name; when any of them is emitted as a one-line alias, all of them are
    prefixed.
    """

    def __init__(self, run: FlattenRun):
        self.run = run
        self.renames: List[tuple[TypeDecl, str, str]] = []

    def resolve(self) -> int:
        registry = self.run.registry
        alias_decls: Set[int] = {
            id(node.target.decl)
            for node in self.run.collected
            if node.target.decl is not None and not node.is_struct
        }

        for desired, claimants in registry.claims().items():
            if len(claimants) < 2:
                continue
            if len({c.location for c in claimants}) < 2:
                continue

            previous = {id(c): registry.lookup_decl(c) for c in claimants}
            for name in previous.values():
                if name is not None:
                    registry.release(name)

            prefix_all = any(id(c) in alias_decls for c in claimants)
            for index, decl in enumerate(claimants):
                if index == 0 and not prefix_all and not registry.is_used(desired):
                    name = desired
                else:
                    name = registry.prefixed_name(desired, decl.location)
                registry.rename(decl_key(decl), name)
                if name != previous[id(decl)]:
                    self.renames.append((decl, previous[id(decl)], name))
                    log_debug(
                        self.run.context,
                        f"Renamed '{decl.qualified_name}' from '{previous[id(decl)]}' to '{name}'",
                    )
        return len(self.renames)
