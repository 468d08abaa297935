#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from typing import Callable, Dict, List, Optional, Set, Tuple

from gsc_ast import (
    TypeExpr, NamedType, StructType, PointerType, SequenceType, MapType, OpaqueType, TypeDecl, Package,
)
from gsc_internal_error import InternalFlattenError, ICELocation
from gsc_types import TypeKind


class TypeGraph:
    """
    Read-only view over loaded packages that the flattener consumes.

    Named references are bound to their declarations by the name resolver
    (keyed by id of the NamedType node, as other per-node facts are);
    everything else is answered from the nodes themselves.
    """

    def __init__(self, packages: Optional[Dict[str, Package]] = None):
        self.packages: Dict[str, Package] = packages if packages is not None else {}
        # id(NamedType) -> (node, declaration); the node is kept so its id stays unique.
        self._bindings: Dict[int, Tuple[NamedType, TypeDecl]] = {}

    def bind(self, expr: NamedType, decl: TypeDecl) -> None:
        self._bindings[id(expr)] = (expr, decl)

    # --- accessor contract ---

    def classify(self, expr: TypeExpr) -> TypeKind:
        if isinstance(expr, StructType):
            return TypeKind.STRUCT
        elif isinstance(expr, PointerType):
            return TypeKind.POINTER
        elif isinstance(expr, SequenceType):
            return TypeKind.SEQUENCE
        elif isinstance(expr, MapType):
            return TypeKind.MAP
        elif isinstance(expr, NamedType):
            return TypeKind.NAMED
        elif isinstance(expr, OpaqueType):
            return TypeKind.OPAQUE
        raise InternalFlattenError(
            f"[ICE-0100] unhandled type expression {type(expr).__name__}",
            ICELocation(span=getattr(expr, "span", None)),
        )

    def resolve_named(self, expr: NamedType) -> Optional[TypeDecl]:
        bound = self._bindings.get(id(expr))
        if bound is None or bound[0] is not expr:
            return None
        return bound[1]

    def resolve_struct(
            self,
            decl: TypeDecl,
            can_follow: Optional[Callable[[TypeDecl], bool]] = None,
    ) -> Optional[StructType]:
        """
        Return the struct body reachable from `decl`, following named types
        (`type A B`, `type A = B`) until a struct literal is found.
        `can_follow` decides whether a referenced declaration may be entered.
        """
        visited: Set[int] = set()
        current: Optional[TypeDecl] = decl
        while current is not None and id(current) not in visited:
            visited.add(id(current))
            if isinstance(current.type, StructType):
                return current.type
            if not isinstance(current.type, NamedType):
                return None
            target = self.resolve_named(current.type)
            if target is not None and can_follow is not None and not can_follow(target):
                return None
            current = target
        return None

    # --- lookup helpers ---

    def declarations(self, location: str) -> List[TypeDecl]:
        pkg = self.packages.get(location)
        if pkg is None:
            return []
        return [d for d in pkg.decls if d.type_params is None]

    def lookup(self, location: str, name: str) -> Optional[TypeDecl]:
        for decl in self.declarations(location):
            if decl.name == name:
                return decl
        return None

    def find(self, qualified: str, default_location: Optional[str] = None) -> Optional[TypeDecl]:
        """
        Find a declaration by 'import/path.Name', 'pkgname.Name' or a bare
        'Name' (searched in default_location first, then every package).
        """
        if "." in qualified:
            location, name = qualified.rsplit(".", 1)
            if location in self.packages:
                return self.lookup(location, name)
            for import_path in sorted(self.packages):
                pkg = self.packages[import_path]
                if pkg.name == location or import_path.rsplit("/", 1)[-1] == location:
                    found = self.lookup(import_path, name)
                    if found is not None:
                        return found
            return None

        if default_location is not None:
            found = self.lookup(default_location, qualified)
            if found is not None:
                return found
        for import_path in sorted(self.packages):
            found = self.lookup(import_path, qualified)
            if found is not None:
                return found
        return None
