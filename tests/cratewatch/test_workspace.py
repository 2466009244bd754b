"""Tests for the Cargo workspace provider."""

from __future__ import annotations

from pathlib import Path

import pytest

from cratewatch.engines.workspace.manifest import (
    find_root_manifest,
    load_workspace,
    parse_dependencies,
    read_locked_versions,
)
from cratewatch.engines.workspace.models import (
    AnyVersion,
    ExplicitRequirement,
    LockedVersion,
    SourceKind,
)
from cratewatch.exceptions import ManifestNotFoundError, ManifestParseError


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


def _by_name(decls):
    return {d.name: d for d in decls}


# ── parse_dependencies ───────────────────────────────────────────────────


class TestParseDependencies:
    def test_string_spec_is_registry(self):
        decls = parse_dependencies({"dependencies": {"serde": "1.0"}}, Path("Cargo.toml"))
        assert decls[0].name == "serde"
        assert decls[0].requirement == ExplicitRequirement("1.0")
        assert decls[0].source_kind is SourceKind.REGISTRY

    def test_table_spec_with_version(self):
        data = {"dependencies": {"tokio": {"version": "1", "features": ["full"]}}}
        decl = parse_dependencies(data, Path("Cargo.toml"))[0]
        assert decl.requirement == ExplicitRequirement("1")
        assert decl.source_kind is SourceKind.REGISTRY

    def test_path_dependency(self):
        data = {"dependencies": {"local-util": {"path": "../local-util"}}}
        decl = parse_dependencies(data, Path("Cargo.toml"))[0]
        assert decl.source_kind is SourceKind.LOCAL_PATH
        assert decl.requirement == AnyVersion()

    def test_path_with_version_is_still_local(self):
        data = {"dependencies": {"core": {"path": "../core", "version": "0.1"}}}
        decl = parse_dependencies(data, Path("Cargo.toml"))[0]
        assert decl.source_kind is SourceKind.LOCAL_PATH

    def test_git_dependency_is_other(self):
        data = {"dependencies": {"foo": {"git": "https://github.com/org/foo"}}}
        decl = parse_dependencies(data, Path("Cargo.toml"))[0]
        assert decl.source_kind is SourceKind.OTHER
        assert decl.requirement == AnyVersion()

    def test_alternate_registry_is_other(self):
        data = {"dependencies": {"bar": {"version": "1", "registry": "internal"}}}
        assert parse_dependencies(data, Path("Cargo.toml"))[0].source_kind is SourceKind.OTHER

    def test_renamed_package_uses_real_name(self):
        data = {"dependencies": {"json": {"package": "serde_json", "version": "1"}}}
        assert parse_dependencies(data, Path("Cargo.toml"))[0].name == "serde_json"

    def test_all_sections_and_targets(self):
        data = {
            "dependencies": {"a": "1"},
            "dev-dependencies": {"b": "1"},
            "build-dependencies": {"c": "1"},
            "target": {
                "cfg(windows)": {"dependencies": {"d": "1"}},
                "cfg(unix)": {"dev-dependencies": {"e": "1"}},
            },
        }
        names = {d.name for d in parse_dependencies(data, Path("Cargo.toml"))}
        assert names == {"a", "b", "c", "d", "e"}

    def test_workspace_inheritance(self):
        data = {"dependencies": {"serde": {"workspace": True, "features": ["derive"]}}}
        ws = {"serde": {"version": "1.0.100"}}
        decl = parse_dependencies(data, Path("Cargo.toml"), ws)[0]
        assert decl.requirement == ExplicitRequirement("1.0.100")

    def test_workspace_inheritance_string_form(self):
        data = {"dependencies": {"log": {"workspace": True}}}
        decl = parse_dependencies(data, Path("Cargo.toml"), {"log": "0.4"})[0]
        assert decl.requirement == ExplicitRequirement("0.4")

    def test_workspace_inheritance_missing(self):
        data = {"dependencies": {"log": {"workspace": True}}}
        with pytest.raises(ManifestParseError):
            parse_dependencies(data, Path("Cargo.toml"), {})

    def test_locked_version(self):
        data = {"dependencies": {"serde": "1.0"}}
        locked = {"serde": ["1.0.197"]}
        decl = parse_dependencies(data, Path("Cargo.toml"), locked=locked)[0]
        assert decl.requirement == LockedVersion(version="1.0.197", requirement="1.0")

    def test_locked_version_outside_requirement_is_explicit(self):
        data = {"dependencies": {"rand": "0.8"}}
        locked = {"rand": ["0.7.3"]}
        decl = parse_dependencies(data, Path("Cargo.toml"), locked=locked)[0]
        assert decl.requirement == ExplicitRequirement("0.8")


# ── lockfile ─────────────────────────────────────────────────────────────


class TestLockfile:
    def test_reads_registry_packages_only(self, tmp_path):
        _write(
            tmp_path / "Cargo.lock",
            "version = 3\n\n"
            '[[package]]\nname = "app"\nversion = "0.1.0"\n\n'
            '[[package]]\nname = "serde"\nversion = "1.0.197"\n'
            'source = "registry+https://github.com/rust-lang/crates.io-index"\n\n'
            '[[package]]\nname = "foo"\nversion = "0.2.0"\n'
            'source = "git+https://github.com/org/foo#abc"\n',
        )
        assert read_locked_versions(tmp_path) == {"serde": ["1.0.197"]}

    def test_missing_lockfile(self, tmp_path):
        assert read_locked_versions(tmp_path) == {}

    def test_unreadable_lockfile_ignored(self, tmp_path):
        _write(tmp_path / "Cargo.lock", "[[package]\nbroken")
        assert read_locked_versions(tmp_path) == {}


# ── discovery + loading ──────────────────────────────────────────────────


class TestFindRootManifest:
    def test_finds_in_cwd(self, tmp_path):
        manifest = _write(tmp_path / "Cargo.toml", '[package]\nname = "app"\n')
        assert find_root_manifest(tmp_path) == manifest.resolve()

    def test_walks_up(self, tmp_path):
        manifest = _write(tmp_path / "Cargo.toml", '[package]\nname = "app"\n')
        nested = tmp_path / "src" / "bin"
        nested.mkdir(parents=True)
        assert find_root_manifest(nested) == manifest.resolve()

    def test_member_resolves_to_workspace_root(self, tmp_path):
        root = _write(tmp_path / "Cargo.toml", '[workspace]\nmembers = ["crates/*"]\n')
        _write(tmp_path / "crates" / "core" / "Cargo.toml", '[package]\nname = "core"\n')
        assert find_root_manifest(tmp_path / "crates" / "core") == root.resolve()

    def test_non_member_stays_standalone(self, tmp_path):
        _write(tmp_path / "Cargo.toml", '[workspace]\nmembers = ["crates/*"]\n')
        own = _write(tmp_path / "tools" / "gen" / "Cargo.toml", '[package]\nname = "gen"\n')
        assert find_root_manifest(tmp_path / "tools" / "gen") == own.resolve()

    def test_not_found(self, tmp_path):
        with pytest.raises(ManifestNotFoundError):
            find_root_manifest(tmp_path / "missing" / "nowhere")


class TestLoadWorkspace:
    def test_single_package(self, tmp_path):
        manifest = _write(
            tmp_path / "Cargo.toml",
            '[package]\nname = "app"\nversion = "0.1.0"\n\n'
            '[dependencies]\nserde = "1.0"\nregex = "0.1"\n',
        )
        members = load_workspace(manifest)
        assert [m.name for m in members] == ["app"]
        assert set(_by_name(members[0].declarations)) == {"serde", "regex"}

    def test_virtual_workspace(self, tmp_path):
        manifest = _write(
            tmp_path / "Cargo.toml",
            '[workspace]\nmembers = ["crates/*"]\nexclude = ["crates/skip"]\n\n'
            '[workspace.dependencies]\nlog = "0.4"\n',
        )
        _write(
            tmp_path / "crates" / "app" / "Cargo.toml",
            '[package]\nname = "app"\n\n[dependencies]\nlog = { workspace = true }\n'
            'lib = { path = "../lib" }\n',
        )
        _write(
            tmp_path / "crates" / "lib" / "Cargo.toml",
            '[package]\nname = "lib"\n\n[dependencies]\nlocal-util = { path = "../util" }\n',
        )
        _write(tmp_path / "crates" / "skip" / "Cargo.toml", '[package]\nname = "skip"\n')

        members = load_workspace(manifest)
        assert [m.name for m in members] == ["app", "lib"]
        app = _by_name(members[0].declarations)
        assert app["log"].requirement == ExplicitRequirement("0.4")
        assert app["lib"].source_kind is SourceKind.LOCAL_PATH

    def test_root_package_with_workspace(self, tmp_path):
        manifest = _write(
            tmp_path / "Cargo.toml",
            '[package]\nname = "root"\n\n[workspace]\nmembers = ["member"]\n\n'
            '[dependencies]\nanyhow = "1"\n',
        )
        _write(tmp_path / "member" / "Cargo.toml", '[package]\nname = "member"\n')
        assert [m.name for m in load_workspace(manifest)] == ["root", "member"]

    def test_member_without_manifest(self, tmp_path):
        manifest = _write(tmp_path / "Cargo.toml", '[workspace]\nmembers = ["empty"]\n')
        (tmp_path / "empty").mkdir()
        with pytest.raises(ManifestParseError):
            load_workspace(manifest)

    def test_missing_package_name(self, tmp_path):
        manifest = _write(tmp_path / "Cargo.toml", '[package]\nversion = "0.1.0"\n')
        with pytest.raises(ManifestParseError):
            load_workspace(manifest)

    def test_invalid_toml(self, tmp_path):
        manifest = _write(tmp_path / "Cargo.toml", "[package\nname = ")
        with pytest.raises(ManifestParseError):
            load_workspace(manifest)

    def test_missing_manifest(self, tmp_path):
        with pytest.raises(ManifestNotFoundError):
            load_workspace(tmp_path / "Cargo.toml")

    def test_lockfile_marks_locked(self, tmp_path):
        manifest = _write(
            tmp_path / "Cargo.toml", '[package]\nname = "app"\n\n[dependencies]\nserde = "1"\n'
        )
        _write(
            tmp_path / "Cargo.lock",
            '[[package]]\nname = "serde"\nversion = "1.0.197"\n'
            'source = "registry+https://github.com/rust-lang/crates.io-index"\n',
        )
        decl = load_workspace(manifest)[0].declarations[0]
        assert isinstance(decl.requirement, LockedVersion)
        assert decl.requirement.version == "1.0.197"

    def test_member_manifest_inherits_from_enclosing_workspace(self, tmp_path):
        _write(
            tmp_path / "Cargo.toml",
            '[workspace]\nmembers = ["a", "b"]\n\n[workspace.dependencies]\nregex = "0.1"\n',
        )
        _write(
            tmp_path / "Cargo.lock",
            '[[package]]\nname = "regex"\nversion = "0.1.80"\n'
            'source = "registry+https://github.com/rust-lang/crates.io-index"\n',
        )
        member = _write(
            tmp_path / "a" / "Cargo.toml",
            '[package]\nname = "a"\n\n[dependencies]\nregex = { workspace = true }\n',
        )
        _write(tmp_path / "b" / "Cargo.toml", '[package]\nname = "b"\n')

        members = load_workspace(member)
        assert [m.name for m in members] == ["a"]
        decl = members[0].declarations[0]
        assert decl.name == "regex"
        assert decl.requirement == LockedVersion(version="0.1.80", requirement="0.1")

    def test_standalone_package_under_unrelated_workspace(self, tmp_path):
        _write(tmp_path / "Cargo.toml", '[workspace]\nmembers = ["crates/*"]\n')
        own = _write(
            tmp_path / "tools" / "gen" / "Cargo.toml",
            '[package]\nname = "gen"\n\n[dependencies]\nlog = { workspace = true }\n',
        )
        with pytest.raises(ManifestParseError):
            load_workspace(own)
