#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

from pathlib import Path

from conftest import has_error_code
from gsc_context import FlattenContext
from gsc_driver import GoDriver
from gsc_paths import SourceSearchPaths, read_module_path


def test_driver_loads_entry_and_transitive_imports(write_go_file, analyze_project):
    write_go_file("example.com/app", "order.go", """
        package app

        import (
            "time"
            "example.com/app/models"
        )

        type Order struct {
            Buyer  models.User
            Placed time.Time
        }
    """)
    write_go_file("example.com/app/models", "user.go", """
        package models

        import "example.com/app/geo"

        type User struct { Home geo.Point }
    """)
    write_go_file("example.com/app/geo", "point.go", """
        package geo

        type Point struct { Lat, Lng float64 }
    """)

    result = analyze_project("example.com/app")

    assert not result.has_errors()
    assert sorted(result.packages) == ["example.com/app", "example.com/app/geo", "example.com/app/models"]
    user = result.graph.lookup("example.com/app/models", "User")
    point = result.graph.resolve_named(user.type.fields[0].type)
    assert point is result.graph.lookup("example.com/app/geo", "Point")


def test_driver_ignores_test_files_and_other_extensions(write_go_file, analyze_project):
    write_go_file("example.com/app", "user.go", "package app\ntype User struct { Name string }\n")
    write_go_file("example.com/app", "user_test.go", "package app_test\ntype Fixture struct{}\n")
    write_go_file("example.com/app", "README.md", "not go\n")

    result = analyze_project("example.com/app")

    assert not result.has_errors()
    assert [d.name for d in result.graph.declarations("example.com/app")] == ["User"]


def test_driver_missing_entry_package(analyze_project):
    result = analyze_project("example.com/missing")
    assert result.graph is None
    assert result.has_errors()
    assert has_error_code(result.diagnostics, "DRV-0010")


def test_driver_mixed_package_clauses(write_go_file, analyze_project):
    write_go_file("example.com/mixed", "a.go", "package a\n")
    write_go_file("example.com/mixed", "b.go", "package b\n")

    result = analyze_project("example.com/mixed")

    assert result.has_errors()
    assert has_error_code(result.diagnostics, "DRV-0020")


def test_driver_reports_lexer_errors_with_location(write_go_file, analyze_project):
    path = write_go_file("example.com/app", "bad.go", 'package app\n\nvar s = "open\n')

    result = analyze_project("example.com/app")

    assert has_error_code(result.diagnostics, "LEX-0010")
    diag = result.diagnostics[0]
    assert diag.filename == str(path)
    assert diag.line == 3


def test_driver_reports_parse_errors_with_location(write_go_file, analyze_project):
    write_go_file("example.com/app", "bad.go", "package app\n\ntype A struct { X int Y int }\n")

    result = analyze_project("example.com/app")

    assert has_error_code(result.diagnostics, "PAR-0062")
    assert result.diagnostics[0].line == 3


def test_driver_resolves_module_paths_from_go_mod(tmp_path: Path):
    (tmp_path / "go.mod").write_text("module example.com/svc\n\ngo 1.22\n")
    (tmp_path / "api").mkdir()
    (tmp_path / "api" / "types.go").write_text("package api\ntype Request struct { ID string }\n")

    assert read_module_path(tmp_path) == "example.com/svc"

    paths = SourceSearchPaths()
    paths.add_project_root(tmp_path)
    assert paths.resolve("example.com/svc/api") == tmp_path / "api"

    result = GoDriver(search_paths=paths).analyze("example.com/svc/api")
    assert not result.has_errors()
    assert result.graph.lookup("example.com/svc/api", "Request") is not None


def test_driver_caches_loaded_packages(write_go_file, search_paths):
    write_go_file("example.com/app", "user.go", "package app\ntype User struct{}\n")
    driver = GoDriver(search_paths=search_paths)

    first = driver.load_package("example.com/app")
    second = driver.load_package("example.com/app")

    assert first is second


def test_analyze_sources_accepts_lists_of_files(analyze_sources):
    result = analyze_sources({
        "example.com/app": [
            "package app\ntype A struct { B B }\n",
            "package app\ntype B struct { C string }\n",
        ],
    })
    assert not result.has_errors()
    a = result.graph.lookup("example.com/app", "A")
    assert result.graph.resolve_named(a.type.fields[0].type) is result.graph.lookup("example.com/app", "B")


def test_driver_does_not_enter_standard_library_imports(tmp_path: Path, write_go_file, search_paths):
    sys_root = tmp_path / "goroot"
    (sys_root / "time").mkdir(parents=True)
    (sys_root / "time" / "time.go").write_text("package time\ntype Time struct { wall uint64 }\n")
    search_paths.add_system_root(sys_root)
    write_go_file("example.com/app", "event.go", """
        package app

        import "time"

        type Event struct { At time.Time }
    """)

    result = GoDriver(search_paths=search_paths).analyze("example.com/app")

    assert not result.has_errors()
    assert sorted(result.packages) == ["example.com/app"]


def test_driver_follows_forced_expansion_prefixes(write_go_file, search_paths):
    write_go_file("myapp", "main.go", """
        package myapp

        import "myapp/models"

        type Root struct { U models.User }
    """)
    write_go_file("myapp/models", "user.go", "package models\ntype User struct { Name string }\n")

    result = GoDriver(search_paths=search_paths, context=FlattenContext(expand_prefixes=["myapp"])).analyze("myapp")

    assert sorted(result.packages) == ["myapp", "myapp/models"]
