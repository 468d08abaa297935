#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from typing import Dict, List, Optional

from gsc_ast import (
    TypeExpr, NamedType, StructType, PointerType, SequenceType, MapType, OpaqueType, TypeDecl, Package, SourceFile,
)
from gsc_diagnostics import Diagnostic, diag_from_node
from gsc_graph import TypeGraph
from gsc_types import GO_PREDECLARED_TYPES


class NameResolver:
    """
    Package-level type name resolver.

    - Builds a scope of type declarations for each package.
    - Binds every named type reference in every file to its declaration:
        * unqualified names: package scope, then dot-imported packages
        * qualified names: the package imported under that name
    - Detects:
        * duplicate type declarations inside a package
        * imports that are not part of the loaded package set
        * generic declarations (kept out of scope; references stay textual)
    """

    def __init__(self, packages: Dict[str, Package]):
        self.packages = packages
        self.scopes: Dict[str, Dict[str, TypeDecl]] = {}
        self.diagnostics: List[Diagnostic] = []

    def resolve(self) -> TypeGraph:
        """
        Main entry point: build scopes for all packages and return the bound graph.
        """
        graph = TypeGraph(self.packages)

        # 1. Collect package scopes
        for pkg in self.packages.values():
            self.scopes[pkg.import_path] = self._collect_scope(pkg)

        # 2. Bind references file by file (imports are per file)
        for pkg in self.packages.values():
            for src in pkg.files:
                self._bind_file(graph, pkg, src)

        return graph

    # --- internal helpers ---

    def _collect_scope(self, pkg: Package) -> Dict[str, TypeDecl]:
        scope: Dict[str, TypeDecl] = {}
        for src in pkg.files:
            for decl in src.decls:
                if decl.type_params is not None:
                    self.diagnostics.append(
                        diag_from_node(
                            kind="warning",
                            message=f"[RES-0030] generic type '{decl.name}{decl.type_params}' in package "
                                    f"'{pkg.import_path}' is not flattened; references to it are kept as written",
                            package=pkg.import_path,
                            filename=src.filename,
                            node=decl,
                        )
                    )
                    continue
                if decl.name in scope:
                    self.diagnostics.append(
                        diag_from_node(
                            kind="error",
                            message=f"[RES-0010] duplicate type declaration '{decl.name}' in package "
                                    f"'{pkg.import_path}'",
                            package=pkg.import_path,
                            filename=src.filename,
                            node=decl,
                        )
                    )
                    # Keep the first declaration.
                    continue
                scope[decl.name] = decl
        return scope

    def _bind_file(self, graph: TypeGraph, pkg: Package, src: SourceFile) -> None:
        named_imports: Dict[str, str] = {}
        dot_imports: List[str] = []
        for imp in src.imports:
            imported = self.packages.get(imp.path)
            if imported is None:
                # Standard library packages are usually not on the search path.
                if imp.alias != "_" and "." in imp.path.split("/", 1)[0]:
                    self.diagnostics.append(
                        diag_from_node(
                            kind="warning",
                            message=f"[RES-0020] imported package '{imp.path}' is not loaded; "
                                    f"its types are kept as written",
                            package=pkg.import_path,
                            filename=src.filename,
                            node=imp,
                        )
                    )
                continue
            if imp.alias == ".":
                dot_imports.append(imp.path)
            elif imp.alias == "_":
                continue
            else:
                named_imports[imp.alias or imported.name] = imp.path

        def lookup(expr: NamedType) -> Optional[TypeDecl]:
            if expr.qualifier is not None:
                path = named_imports.get(expr.qualifier)
                if path is None:
                    return None
                return self.scopes[path].get(expr.name)
            found = self.scopes[pkg.import_path].get(expr.name)
            if found is not None:
                return found
            if expr.name in GO_PREDECLARED_TYPES:
                return None
            for path in dot_imports:
                found = self.scopes[path].get(expr.name)
                if found is not None:
                    return found
            return None

        for decl in src.decls:
            self._bind_type(graph, decl.type, lookup)

    def _bind_type(self, graph: TypeGraph, expr: TypeExpr, lookup) -> None:
        if isinstance(expr, NamedType):
            target = lookup(expr)
            if target is not None:
                graph.bind(expr, target)
        elif isinstance(expr, StructType):
            for f in expr.fields:
                self._bind_type(graph, f.type, lookup)
        elif isinstance(expr, (PointerType, SequenceType)):
            self._bind_type(graph, expr.inner, lookup)
        elif isinstance(expr, MapType):
            self._bind_type(graph, expr.key, lookup)
            self._bind_type(graph, expr.value, lookup)
        elif isinstance(expr, OpaqueType):
            # Interfaces, funcs and channels are copied verbatim.
            pass
