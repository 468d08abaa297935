#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

import argparse
import os
from pathlib import Path
from typing import Dict, List, Optional

from gsc_context import FlattenContext, LogLevel
from gsc_diagnostics import Diagnostic
from gsc_driver import AnalysisResult, GoDriver
from gsc_flatten import StructFlattener
from gsc_lexer import LexerError, TokenKind, Lexer
from gsc_logger import log_info, log_error, log_warning
from gsc_paths import SourceSearchPaths
from gsc_types import format_type


def _load_file_lines(path: str, cache: Dict[str, List[str]]) -> List[str]:
    if path not in cache:
        text = Path(path).read_text(encoding="utf-8")
        cache[path] = text.splitlines()
    return cache[path]


def print_diagnostics(result: AnalysisResult, context: FlattenContext) -> None:
    file_cache: Dict[str, List[str]] = {}

    for diag in result.diagnostics:
        print_diagnostic_with_snippet(diag, file_cache, context)


def print_diagnostic_with_snippet(diag: Diagnostic, file_cache: Dict[str, List[str]],
                                  context: Optional[FlattenContext] = None) -> None:
    emit = log_error if diag.kind == "error" else log_warning
    emit(context, diag.format())

    if not diag.filename or diag.line is None:
        return

    try:
        lines = _load_file_lines(diag.filename, file_cache)
    except OSError:
        # In-memory sources have no file to quote
        return

    line_idx = diag.line - 1
    if not (0 <= line_idx < len(lines)):
        return

    src_line = lines[line_idx]
    width = max(5, len(str(diag.line)))
    emit(context, f"{diag.line:>{width}} | " + src_line)

    if diag.column is None:
        return

    start_col = max(1, diag.column)
    if diag.end_line is None or diag.end_column is None:
        end_col = start_col
    elif diag.end_line == diag.line:
        end_col = max(start_col, diag.end_column)
    else:
        end_col = len(src_line) + 1

    caret_width = max(1, end_col - start_col)
    emit(context, " " * width + " | " + " " * (start_col - 1) + "^" * caret_width)


def build_search_paths(context: FlattenContext, args: argparse.Namespace) -> SourceSearchPaths:
    if not args.project_root:
        args.project_root = ["."]
    if not args.sys_root:
        # Default system root: $GOROOT/src
        goroot = os.getenv("GOROOT")
        args.sys_root = [os.path.join(goroot, "src")] if goroot else []
    sp = SourceSearchPaths()
    for root in args.sys_root:
        sp.add_system_root(root)
    for root in args.project_root:
        sp.add_project_root(root)
    sys_list = ",".join(f"'{p}'" for p in sp.system_roots)
    proj_list = ",".join(f"'{p}'" for p in sp.project_roots)
    log_info(context, f"System root(s): {sys_list or '<none>'}")
    log_info(context, f"Project root(s): {proj_list or '<none>'}")
    return sp


def build_flatten_context(args: argparse.Namespace) -> FlattenContext:
    """Build a FlattenContext from command-line arguments."""
    verbosity = getattr(args, 'verbosity', 0)
    if verbosity >= 3:
        log_level = LogLevel.DEBUG
    elif verbosity >= 1:
        log_level = LogLevel.INFO
    else:
        log_level = LogLevel.ERROR

    return FlattenContext(
        log_rich_format=getattr(args, 'log', False),
        log_level=log_level,
        expand_prefixes=list(getattr(args, 'expand', None) or []),
    )


def _default_package(search_paths: SourceSearchPaths) -> Optional[str]:
    """Module path of the first project root that has a go.mod."""
    for root in search_paths.project_roots:
        module = search_paths.module_path(root)
        if module is not None:
            return module
    return None


def _has_package(search_paths: SourceSearchPaths, import_path: str) -> bool:
    try:
        search_paths.resolve(import_path)
    except FileNotFoundError:
        return False
    return True


def _entry_package(search_paths: SourceSearchPaths, qualified: str) -> Optional[str]:
    """
    Import path of the package to load for TYPE.

    'path/to/pkg.Name' names it directly. A 'pkg.Name' prefix is tried as an
    import path, then under each go.mod module; otherwise the go.mod module is
    loaded and the declaration is matched by package name among what it reaches.
    """
    if "." not in qualified:
        return _default_package(search_paths)
    prefix = qualified.rsplit(".", 1)[0]
    if "/" in prefix or _has_package(search_paths, prefix):
        return prefix
    for root in search_paths.project_roots:
        module = search_paths.module_path(root)
        if module is not None and _has_package(search_paths, f"{module}/{prefix}"):
            return f"{module}/{prefix}"
    return _default_package(search_paths) or prefix


def _run_analysis(args: argparse.Namespace, entry: str):
    """Run the front end, returning (result, context, exit_code)."""
    context = args.context
    driver = GoDriver(search_paths=args.search_paths, context=context)
    result = driver.analyze(entry)
    print_diagnostics(result, context=context)
    exit_code = 1 if (result.graph is None or result.has_errors()) else 0
    return result, context, exit_code


def cmd_copy(args: argparse.Namespace) -> int:
    """Flatten a struct and everything it references into standalone Go declarations."""
    context = args.context
    qualified = args.type
    entry = args.package or _entry_package(args.search_paths, qualified)
    if not entry:
        log_error(context, f"error: [GSC-0010] cannot tell which package declares '{qualified}'; use --package")
        return 1

    result, _, exit_code = _run_analysis(args, entry)
    if result.graph is None:
        return exit_code

    decl = result.graph.find(qualified, default_location=entry)
    copy = StructFlattener(result.graph, context).expand(decl)
    if not copy.success:
        log_error(context, f"error: {copy.message}")
        return 1
    if copy.is_empty:
        print("Nothing to copy.")
        return 0

    if args.output:
        Path(args.output).write_text(copy.content, encoding="utf-8")
    else:
        print(copy.content, end="")
    log_info(context, copy.message)
    return 0


def cmd_decls(args: argparse.Namespace) -> int:
    """List the type declarations of a package."""
    result, _, exit_code = _run_analysis(args, args.package_path)
    if result.graph is None:
        return exit_code

    for decl in result.graph.declarations(args.package_path):
        alias = " =" if decl.is_alias else ""
        print(f"{decl.name:<24} {decl.kind.name.lower():<7}{alias} {format_type(decl.type)}")
    return exit_code


def cmd_tok(args: argparse.Namespace) -> int:
    """Dump lexer tokens of a single Go file."""
    context = args.context
    path = Path(args.file)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        log_error(context, f"error: [GSC-0020] cannot read {path}: {e}")
        return 1

    try:
        tokens = Lexer(text, filename=str(path)).tokenize()
    except LexerError as e:
        log_error(context, f"{e.filename}:{e.line}:{e.column}: error: {e.message}")
        return 1

    for tok in tokens:
        if not args.include_eof and tok.kind is TokenKind.EOF:
            continue
        print(f"{path}:{tok.line}:{tok.column}:\t{tok.kind.name:<12} {tok.text!r}")
    return 0


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(
        prog="gostructcopy",
        description="Copy a Go struct together with every type it depends on",
    )
    subparsers = parser.add_subparsers(dest="command", required=True, help="Command to run")

    parser.add_argument("-v", "--verbose",
                        action='count',
                        default=0,
                        dest='verbosity',
                        help="Increase verbosity: -v=INFO, -vvv=DEBUG")
    parser.add_argument("-l", "--log",
                        action='store_true',
                        default=False,
                        help="Enable rich log formatting (timestamps, levels)")
    parser.add_argument(
        "-P", "--project-root",
        action="append",
        default=[],
        help="Add a project source root, a go.mod directory or a GOPATH-style src tree (repeatable; default: .)",
    )
    parser.add_argument(
        "-S", "--sys-root",
        action="append",
        default=[],
        help="Add a standard library source root (repeatable; default: $GOROOT/src)",
    )
    parser.add_argument(
        "-E", "--expand",
        action="append",
        default=[],
        help="Always expand packages under this import path prefix, even without a dotted domain",
    )

    ###########################
    # copy command
    ###########################
    p_copy = subparsers.add_parser("copy", help="Flatten a struct into standalone declarations")
    p_copy.add_argument("--output", "-o", help="Output Go file (default: stdout)")
    p_copy.add_argument("--package", "-p",
                        help="Import path of the package declaring TYPE (default: taken from TYPE or go.mod)")
    p_copy.add_argument("type", help="Type to copy, e.g. 'example.com/app/models.User', 'models.User' or 'User'")
    p_copy.set_defaults(func=cmd_copy)

    ###########################
    # decls command
    ###########################
    p_decls = subparsers.add_parser("decls", help="List the type declarations of a package")
    p_decls.add_argument("package_path", metavar="PACKAGE", help="Import path, e.g. 'example.com/app/models'")
    p_decls.set_defaults(func=cmd_decls)

    ###########################
    # tok command
    ###########################
    p_tok = subparsers.add_parser("tok", help="Dump lexer tokens", aliases=["tokens"])
    p_tok.add_argument("--include-eof", "-I", action="store_true",
                       help="Include the EOF token in the output")
    p_tok.add_argument("file", help="Go source file")
    p_tok.set_defaults(func=cmd_tok)

    args = parser.parse_args(argv)
    args.context = build_flatten_context(args)
    args.search_paths = build_search_paths(args.context, args)

    rc = args.func(args)
    raise SystemExit(rc)


if __name__ == "__main__":
    main()
