#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

from __future__ import annotations

import sys
from pathlib import Path
from textwrap import dedent

import pytest

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from gsc_driver import GoDriver
from gsc_flatten import StructFlattener
from gsc_paths import SourceSearchPaths


@pytest.fixture
def temp_project(tmp_path: Path) -> Path:
    return tmp_path


@pytest.fixture
def write_go_file(temp_project: Path):
    """Write a Go file under the project root, laid out by import path.

    Usage:
        write_go_file("example.com/app/models", "user.go", '''
            package models
            type User struct { Name string }
        ''')
    """

    def _write(import_path: str, filename: str, content: str) -> Path:
        directory = temp_project.joinpath(*import_path.split("/"))
        directory.mkdir(parents=True, exist_ok=True)
        file_path = directory / filename
        file_path.write_text(dedent(content))
        return file_path

    return _write


@pytest.fixture
def search_paths(temp_project: Path) -> SourceSearchPaths:
    paths = SourceSearchPaths()
    paths.add_project_root(temp_project)
    return paths


@pytest.fixture
def analyze_project(search_paths: SourceSearchPaths):
    """Analyze an entry package from the files written with write_go_file."""

    def _analyze(import_path: str):
        driver = GoDriver(search_paths=search_paths)
        return driver.analyze(import_path)

    return _analyze


@pytest.fixture
def analyze_sources():
    """Analyze in-memory sources: {import_path: source or [sources]}."""

    def _analyze(sources):
        driver = GoDriver()
        return driver.analyze_sources({path: _dedent_all(texts) for path, texts in sources.items()})

    return _analyze


@pytest.fixture
def flatten_sources(analyze_sources):
    """Analyze in-memory sources and flatten one declaration.

    Usage:
        def test_something(flatten_sources):
            result = flatten_sources({"example.com/app": '''
                package app
                type Node struct { Next *Node }
            '''}, "example.com/app.Node")
            assert result.success
    """

    def _flatten(sources, qualified: str, context=None):
        analysis = analyze_sources(sources)
        assert not analysis.has_errors(), [d.format() for d in analysis.diagnostics]
        decl = analysis.graph.find(qualified)
        return StructFlattener(analysis.graph, context).expand(decl)

    return _flatten


def _dedent_all(texts):
    if isinstance(texts, str):
        return dedent(texts)
    return [dedent(t) for t in texts]


def has_error_code(diagnostics, code: str) -> bool:
    """Check if any diagnostic contains the given error code.

    Args:
        diagnostics: List of Diagnostic objects
        code: Error code string like "RES-0010" or "[RES-0010]"

    Returns:
        True if any diagnostic message contains the error code
    """
    if not code.startswith("["):
        code = f"[{code}]"
    return any(code in d.message for d in diagnostics)
