#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

from pathlib import Path

import pytest

import gsc_cli


def _patch_handlers(monkeypatch):
    calls = []

    def _mk_handler(name):
        def _handler(args):
            calls.append((name, args))
            return 0

        return _handler

    monkeypatch.setattr(gsc_cli, "cmd_copy", _mk_handler("copy"))
    monkeypatch.setattr(gsc_cli, "cmd_decls", _mk_handler("decls"))
    monkeypatch.setattr(gsc_cli, "cmd_tok", _mk_handler("tok"))
    return calls


def _run_main(argv):
    with pytest.raises(SystemExit) as exc:
        gsc_cli.main(argv)
    return exc.value.code


@pytest.fixture
def project(tmp_path: Path, monkeypatch) -> Path:
    monkeypatch.delenv("GOROOT", raising=False)
    models = tmp_path / "example.com" / "app" / "models"
    models.mkdir(parents=True)
    (models / "user.go").write_text(
        "package models\n"
        "\n"
        "type Role string\n"
        "\n"
        "type User struct {\n"
        "    Name string `json:\"name\" db:\"name\"`\n"
        "    Role Role\n"
        "}\n"
    )
    return tmp_path


def test_copy_subcommand_dispatch(monkeypatch):
    calls = _patch_handlers(monkeypatch)

    rc = _run_main(["copy", "-p", "example.com/app", "-o", "out.go", "User"])

    assert rc == 0
    assert len(calls) == 1
    name, args = calls[0]
    assert name == "copy"
    assert args.type == "User"
    assert args.package == "example.com/app"
    assert args.output == "out.go"


def test_tokens_alias_dispatches_to_tok(monkeypatch):
    calls = _patch_handlers(monkeypatch)

    rc = _run_main(["tokens", "-I", "user.go"])

    assert rc == 0
    name, args = calls[0]
    assert name == "tok"
    assert args.file == "user.go"
    assert args.include_eof


def test_global_flags_build_context_and_search_paths(monkeypatch, tmp_path: Path):
    calls = _patch_handlers(monkeypatch)
    monkeypatch.delenv("GOROOT", raising=False)

    rc = _run_main(["-vvv", "-E", "myapp", "-P", str(tmp_path), "decls", "myapp/models"])

    assert rc == 0
    _, args = calls[0]
    assert args.package_path == "myapp/models"
    assert args.context.log_level == gsc_cli.LogLevel.DEBUG
    assert args.context.expand_prefixes == ["myapp"]
    assert args.search_paths.project_roots == [tmp_path]
    assert args.search_paths.system_roots == []


def test_goroot_supplies_default_system_root(monkeypatch, tmp_path: Path):
    calls = _patch_handlers(monkeypatch)
    monkeypatch.setenv("GOROOT", str(tmp_path))

    _run_main(["decls", "example.com/app"])

    _, args = calls[0]
    assert args.search_paths.system_roots == [tmp_path / "src"]
    assert args.search_paths.project_roots == [Path(".")]


def test_missing_subcommand_is_usage_error(monkeypatch):
    calls = _patch_handlers(monkeypatch)

    assert _run_main([]) == 2
    assert calls == []


def test_copy_prints_flattened_declarations(project: Path, capsys):
    rc = _run_main(["-P", str(project), "copy", "example.com/app/models.User"])

    assert rc == 0
    out = capsys.readouterr().out
    assert out == (
        "type User struct {\n"
        "\tName string `json:\"name\"`\n"
        "\tRole Role\n"
        "}\n"
        "\n"
        "type Role string\n"
    )


def test_copy_writes_output_file(project: Path, tmp_path: Path, capsys):
    target = tmp_path / "flat.go"

    rc = _run_main(["-P", str(project), "copy", "-o", str(target), "example.com/app/models.User"])

    assert rc == 0
    assert capsys.readouterr().out == ""
    assert target.read_text().startswith("type User struct {\n")


def test_copy_bare_name_uses_go_mod_module(tmp_path: Path, monkeypatch, capsys):
    monkeypatch.delenv("GOROOT", raising=False)
    (tmp_path / "go.mod").write_text("module example.com/svc\n\ngo 1.22\n")
    (tmp_path / "types.go").write_text("package svc\ntype Request struct { ID string }\n")

    rc = _run_main(["-P", str(tmp_path), "copy", "Request"])

    assert rc == 0
    assert capsys.readouterr().out == "type Request struct {\n\tID string\n}\n"


@pytest.fixture
def module_project(tmp_path: Path, monkeypatch) -> Path:
    monkeypatch.delenv("GOROOT", raising=False)
    (tmp_path / "go.mod").write_text("module example.com/app\n\ngo 1.22\n")
    (tmp_path / "app.go").write_text(
        'package app\n\nimport "example.com/app/internal/store"\n\ntype Root struct { S store.Item }\n'
    )
    (tmp_path / "models").mkdir()
    (tmp_path / "models" / "user.go").write_text("package models\ntype User struct { Name string }\n")
    (tmp_path / "internal" / "store").mkdir(parents=True)
    (tmp_path / "internal" / "store" / "item.go").write_text("package store\ntype Item struct { SKU string }\n")
    return tmp_path


def test_copy_package_name_form_resolves_under_go_mod_module(module_project: Path, capsys):
    rc = _run_main(["-P", str(module_project), "copy", "models.User"])

    assert rc == 0
    assert capsys.readouterr().out == "type User struct {\n\tName string\n}\n"


def test_copy_package_name_form_matches_reachable_package(module_project: Path, capsys):
    rc = _run_main(["-P", str(module_project), "copy", "store.Item"])

    assert rc == 0
    assert capsys.readouterr().out == "type Item struct {\n\tSKU string\n}\n"


def test_copy_missing_type_reports_not_found(project: Path, capsys):
    rc = _run_main(["-P", str(project), "copy", "example.com/app/models.Missing"])

    assert rc == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "[CPY-0010]" in captured.err


def test_copy_alias_root_is_emitted(project: Path, capsys):
    rc = _run_main(["-P", str(project), "copy", "example.com/app/models.Role"])

    assert rc == 0
    assert capsys.readouterr().out == "type Role string\n"


def test_copy_without_package_or_go_mod_fails(tmp_path: Path, monkeypatch, capsys):
    monkeypatch.delenv("GOROOT", raising=False)

    rc = _run_main(["-P", str(tmp_path), "copy", "User"])

    assert rc == 1
    assert "[GSC-0010]" in capsys.readouterr().err


def test_copy_reports_missing_package(tmp_path: Path, monkeypatch, capsys):
    monkeypatch.delenv("GOROOT", raising=False)

    rc = _run_main(["-P", str(tmp_path), "copy", "example.com/nowhere.User"])

    assert rc == 1
    assert "[DRV-0010]" in capsys.readouterr().err


def test_decls_lists_package_types(project: Path, capsys):
    rc = _run_main(["-P", str(project), "decls", "example.com/app/models"])

    assert rc == 0
    lines = capsys.readouterr().out.splitlines()
    assert [line.split()[:2] for line in lines] == [["Role", "alias"], ["User", "struct"]]


def test_tok_dumps_tokens(tmp_path: Path, monkeypatch, capsys):
    monkeypatch.delenv("GOROOT", raising=False)
    src = tmp_path / "a.go"
    src.write_text("package a\n")

    rc = _run_main(["tok", str(src)])

    assert rc == 0
    out = capsys.readouterr().out.splitlines()
    assert out[0].split("\t")[1].split()[0] == "PACKAGE"
    assert not any("EOF" in line for line in out)


def test_tok_reports_unreadable_file(tmp_path: Path, monkeypatch, capsys):
    monkeypatch.delenv("GOROOT", raising=False)

    rc = _run_main(["tok", str(tmp_path / "missing.go")])

    assert rc == 1
    assert "[GSC-0020]" in capsys.readouterr().err
