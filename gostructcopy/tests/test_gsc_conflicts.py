#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

from gsc_conflicts import ConflictResolver
from gsc_context import FlattenContext
from gsc_flatten import FlattenRun
from gsc_policy import ExpansionPolicy


def test_nested_same_name_structs_from_different_packages(flatten_sources):
    result = flatten_sources({
        "example.com/outer": """
            package outer

            import "example.com/innerpkg"

            type Outer struct {
                Inner innerpkg.Config
            }
        """,
        "example.com/innerpkg": """
            package innerpkg

            import "example.com/deeppkg"

            type Config struct {
                Deep deeppkg.Config
            }
        """,
        "example.com/deeppkg": """
            package deeppkg

            type Config struct {
                Level int
            }
        """,
    }, "example.com/outer.Outer")

    assert result.content == (
        "type Outer struct {\n\tInner Config\n}\n"
        "\n"
        "type Config struct {\n\tDeep DeeppkgConfig\n}\n"
        "\n"
        "type DeeppkgConfig struct {\n\tLevel int\n}\n"
    )


def test_same_name_aliases_are_all_prefixed(flatten_sources):
    result = flatten_sources({
        "example.com/app": """
            package app

            import (
                "example.com/pkg1"
                "example.com/pkg2"
            )

            type Account struct {
                Owner   pkg1.UserId
                Creator pkg2.UserId
            }
        """,
        "example.com/pkg1": "package pkg1\ntype UserId string\n",
        "example.com/pkg2": "package pkg2\ntype UserId int64\n",
    }, "example.com/app.Account")

    assert result.content == (
        "type Account struct {\n\tOwner Pkg1UserId\n\tCreator Pkg2UserId\n}\n"
        "\n"
        "type Pkg1UserId string\n"
        "type Pkg2UserId int64\n"
    )


def test_chain_of_same_name_structs_keeps_first_bare(flatten_sources):
    result = flatten_sources({
        "example.com/pkg1": """
            package pkg1

            import "example.com/pkg2"

            type Config struct {
                Name string
                Next pkg2.Config
            }
        """,
        "example.com/pkg2": """
            package pkg2

            import "example.com/pkg3"

            type Config struct {
                Next *pkg3.Config
            }
        """,
        "example.com/pkg3": """
            package pkg3

            type Config struct {
                Value string
            }
        """,
    }, "example.com/pkg1.Config")

    assert result.content == (
        "type Config struct {\n\tName string\n\tNext Pkg2Config\n}\n"
        "\n"
        "type Pkg2Config struct {\n\tNext *Pkg3Config\n}\n"
        "\n"
        "type Pkg3Config struct {\n\tValue string\n}\n"
    )


def test_every_reference_uses_the_disambiguated_name(flatten_sources):
    result = flatten_sources({
        "example.com/app": """
            package app

            import (
                "example.com/app/lib"
                "example.com/app/model"
            )

            type Root struct {
                First  lib.Item
                Second model.Item
                Third  Holder
            }

            type Holder struct {
                Items []model.Item
                Index map[string]lib.Item
            }
        """,
        "example.com/app/lib": "package lib\ntype Item struct { L int }\n",
        "example.com/app/model": "package model\ntype Item struct { M int }\n",
    }, "example.com/app.Root")

    assert result.content == (
        "type Root struct {\n\tFirst Item\n\tSecond ModelItem\n\tThird Holder\n}\n"
        "\n"
        "type Item struct {\n\tL int\n}\n"
        "\n"
        "type ModelItem struct {\n\tM int\n}\n"
        "\n"
        "type Holder struct {\n\tItems []ModelItem\n\tIndex map[string]Item\n}\n"
    )


def test_bare_name_held_by_anonymous_struct_forces_prefixes(flatten_sources):
    result = flatten_sources({
        "example.com/app": """
            package app

            import (
                "example.com/pkga"
                "example.com/pkgb"
            )

            type App struct {
                Config struct { Debug bool }
                A      pkga.Config
                B      pkgb.Config
            }
        """,
        "example.com/pkga": "package pkga\ntype Config struct { X int }\n",
        "example.com/pkgb": "package pkgb\ntype Config struct { Y int }\n",
    }, "example.com/app.App")

    assert result.content == (
        "type App struct {\n\tConfig Config\n\tA PkgaConfig\n\tB PkgbConfig\n}\n"
        "\n"
        "type Config struct {\n\tDebug bool\n}\n"
        "\n"
        "type PkgaConfig struct {\n\tX int\n}\n"
        "\n"
        "type PkgbConfig struct {\n\tY int\n}\n"
    )


def test_resolver_leaves_same_location_claims_alone(analyze_sources):
    analysis = analyze_sources({"example.com/app": """
        package app

        type User struct { Best *User; Friends []User }
    """})
    user = analysis.graph.lookup("example.com/app", "User")
    run = FlattenRun(analysis.graph, ExpansionPolicy(), FlattenContext())
    run.seed(user)
    run.drain()

    resolver = ConflictResolver(run)

    assert resolver.resolve() == 0
    assert run.registry.lookup_decl(user) == "User"


def test_resolver_counts_renames(analyze_sources):
    analysis = analyze_sources({
        "example.com/app": """
            package app

            import (
                "example.com/a"
                "example.com/b"
            )

            type Pair struct { Left a.ID; Right b.ID }
        """,
        "example.com/a": "package a\ntype ID string\n",
        "example.com/b": "package b\ntype ID string\n",
    })
    run = FlattenRun(analysis.graph, ExpansionPolicy(), FlattenContext())
    run.seed(analysis.graph.lookup("example.com/app", "Pair"))
    run.drain()

    resolver = ConflictResolver(run)

    assert resolver.resolve() == 1
    assert [(decl.location, old, new) for decl, old, new in resolver.renames] == [
        ("example.com/a", "ID", "AID"),
    ]
    assert run.registry.lookup_decl(analysis.graph.lookup("example.com/b", "ID")) == "BID"
