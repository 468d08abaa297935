#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Deque, Dict, List, Mapping, Optional, Sequence, Union

from gsc_ast import Package, SourceFile
from gsc_context import FlattenContext
from gsc_diagnostics import Diagnostic, diag_from_token
from gsc_graph import TypeGraph
from gsc_lexer import LexerError, Lexer
from gsc_logger import Stage, log_info, log_debug, log_stage
from gsc_name_resolver import NameResolver
from gsc_parser import Parser, ParseError
from gsc_paths import SourceSearchPaths, is_package_file
from gsc_policy import ExpansionPolicy


@dataclass
class AnalysisResult:
    """
    Front-end result for an entry package.

    Contains:
      - the bound type graph (None when loading failed)
      - the loaded packages by import path
      - diagnostics accumulated from all passes
    """
    entry: Optional[str] = None
    graph: Optional[TypeGraph] = None
    context: FlattenContext = field(default_factory=FlattenContext.default)
    packages: Dict[str, Package] = field(default_factory=dict)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    def has_errors(self) -> bool:
        return any(d.is_error for d in self.diagnostics)

    def has_warnings(self) -> bool:
        return any(d.kind == "warning" for d in self.diagnostics)


class GoDriver:
    """
    Front-end driver:
      - locate package directories through SourceSearchPaths
      - tokenize and parse every non-test .go file
      - follow imports of expandable packages transitively (packages that
        cannot be found are skipped, the standard library is never entered)
      - bind named type references into a TypeGraph

    Entry points:
      - analyze(import_path): load from disk starting at an entry package.
      - analyze_sources(sources): build a graph from in-memory sources.
      - load_package(import_path): load a single package (cached).
    """

    def __init__(
        self,
        search_paths: SourceSearchPaths | None = None,
        context: FlattenContext | None = None,
    ):
        self.search_paths = search_paths or SourceSearchPaths()
        self.context = context or FlattenContext.default()
        self.policy = ExpansionPolicy(self.context)
        # Packages successfully loaded (by import path).
        self.package_cache: Dict[str, Package] = {}

    # --- Public API ---

    def analyze(self, entry_import_path: str) -> AnalysisResult:
        """
        High-level pipeline:

          1. Load the entry package and everything it imports.
          2. Run NameResolver to bind type references.

        On fatal load errors, graph will be None and diagnostics will contain an error.
        """
        log_info(self.context, f"Starting analysis for entry package '{entry_import_path}'")
        result = AnalysisResult(entry=entry_import_path, context=self.context)

        log_stage(self.context, Stage.LOAD, entry_import_path)
        try:
            packages = self.collect_packages(entry_import_path)
        except FileNotFoundError as e:
            result.diagnostics.append(Diagnostic(kind="error", message=f"file: [DRV-0010] {str(e)}"))
            return result
        except ValueError as e:
            result.diagnostics.append(Diagnostic(kind="error", message=f"input: [DRV-0020] {str(e)}"))
            return result
        except LexerError as e:
            result.diagnostics.append(self._lexer_diagnostic(e))
            return result
        except ParseError as e:
            result.diagnostics.append(self._parse_diagnostic(e))
            return result

        self._resolve(result, packages)
        return result

    def analyze_sources(
            self,
            sources: Mapping[str, Union[str, Sequence[str]]],
            entry: Optional[str] = None,
    ) -> AnalysisResult:
        """
        Build a graph from in-memory sources: import path -> file text (or list of file texts).
        """
        result = AnalysisResult(entry=entry, context=self.context)
        packages: Dict[str, Package] = {}
        try:
            for import_path, texts in sources.items():
                if isinstance(texts, str):
                    texts = [texts]
                files = [
                    self._parse_source(text, f"{import_path or '<input>'}/file{i}.go", import_path)
                    for i, text in enumerate(texts)
                ]
                packages[import_path] = self._make_package(import_path, files)
        except ValueError as e:
            result.diagnostics.append(Diagnostic(kind="error", message=f"input: [DRV-0020] {str(e)}"))
            return result
        except LexerError as e:
            result.diagnostics.append(self._lexer_diagnostic(e))
            return result
        except ParseError as e:
            result.diagnostics.append(self._parse_diagnostic(e))
            return result

        self._resolve(result, packages)
        return result

    def collect_packages(self, entry_import_path: str) -> Dict[str, Package]:
        """
        Load entry_import_path and walk its imports breadth-first. Only the
        entry package must exist; imports that cannot be located, and imports
        the expansion policy would keep as references, are left out and their
        types stay textual.
        """
        collected: Dict[str, Package] = {}
        queue: Deque[str] = deque([entry_import_path])
        while queue:
            import_path = queue.popleft()
            if import_path in collected:
                continue
            try:
                pkg = self.load_package(import_path)
            except FileNotFoundError:
                if import_path == entry_import_path:
                    raise
                log_debug(self.context, f"Package '{import_path}' not found; leaving its types unexpanded")
                continue
            collected[import_path] = pkg
            for src in pkg.files:
                for imp in src.imports:
                    if imp.path not in collected and self.policy.expands_location(imp.path):
                        queue.append(imp.path)
        return collected

    def load_package(self, import_path: str) -> Package:
        """
        Load every non-test .go file of a package by import path (cached).
        """
        if import_path in self.package_cache:
            log_debug(self.context, f"Package '{import_path}' already loaded (cache hit)")
            return self.package_cache[import_path]

        directory = self.search_paths.resolve(import_path)
        log_debug(self.context, f"Resolved '{import_path}' to {directory}")

        files = [
            self._load_single_file(path, import_path)
            for path in sorted(directory.iterdir())
            if is_package_file(path)
        ]
        pkg = self._make_package(import_path, files)
        self.package_cache[import_path] = pkg
        return pkg

    # --- Internal helpers ---

    def _resolve(self, result: AnalysisResult, packages: Dict[str, Package]) -> None:
        result.packages = packages
        log_debug(self.context, f"Loaded {len(packages)} package(s): {', '.join(sorted(packages))}")

        log_stage(self.context, Stage.RESOLVE)
        nr = NameResolver(packages)
        result.graph = nr.resolve()
        result.diagnostics.extend(nr.diagnostics)
        log_debug(self.context, f"Name resolution produced {len(nr.diagnostics)} diagnostic(s)")

    def _make_package(self, import_path: str, files: List[SourceFile]) -> Package:
        names = sorted({f.package_name for f in files})
        if len(names) > 1:
            raise ValueError(
                f"Package '{import_path}' mixes package clauses: {', '.join(names)}"
            )
        name = names[0] if names else import_path.rsplit("/", 1)[-1]
        return Package(import_path, name, files)

    def _load_single_file(self, path: Path, import_path: str) -> SourceFile:
        text = path.read_text(encoding="utf-8")
        return self._parse_source(text, str(path), import_path)

    def _parse_source(self, text: str, file_path: str, import_path: str) -> SourceFile:
        log_debug(self.context, f"Lexing {file_path}")
        lexer = Lexer(text, filename=file_path)
        tokens = lexer.tokenize()
        log_debug(self.context, f"Lexed {len(tokens)} token(s) from {file_path}")

        parser = Parser(tokens, text)
        src = parser.parse_file(filename=file_path, import_path=import_path)
        log_debug(self.context, f"Parsed {len(src.decls)} type declaration(s) from {file_path}")
        return src

    @staticmethod
    def _lexer_diagnostic(e: LexerError) -> Diagnostic:
        return Diagnostic(
            kind="error",
            message=f"syntax: {e.message}",
            filename=e.filename,
            line=e.line,
            column=e.column,
        )

    @staticmethod
    def _parse_diagnostic(e: ParseError) -> Diagnostic:
        return diag_from_token(
            kind="error",
            message=e.message,
            token=e.token,
            package=None,
            filename=e.filename,
        )
