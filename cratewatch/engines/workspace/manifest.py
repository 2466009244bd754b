"""Cargo manifest and workspace discovery."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

import structlog

from cratewatch.engines.outdated.requirement import VersionRequirement, parse_version
from cratewatch.engines.workspace.models import (
    AnyVersion,
    DependencyDeclaration,
    ExplicitRequirement,
    LockedVersion,
    MemberPackage,
    RequirementSpec,
    SourceKind,
)
from cratewatch.exceptions import ManifestNotFoundError, ManifestParseError

log = structlog.get_logger("cratewatch.workspace")

MANIFEST_NAME = "Cargo.toml"
LOCKFILE_NAME = "Cargo.lock"

_DEP_SECTIONS = ("dependencies", "dev-dependencies", "build-dependencies")


# ── discovery ────────────────────────────────────────────────────────────


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
        raise ManifestParseError(str(path), str(exc)) from exc


def _member_dirs(root: Path, workspace: dict[str, Any]) -> list[Path]:
    """Expand ``workspace.members`` globs, minus ``workspace.exclude``."""
    excluded = {(root / e).resolve() for e in workspace.get("exclude", [])}
    dirs: list[Path] = []
    seen: set[Path] = set()
    for pattern in workspace.get("members", []):
        for hit in sorted(root.glob(pattern)):
            resolved = hit.resolve()
            if not hit.is_dir() or resolved in excluded or resolved in seen:
                continue
            seen.add(resolved)
            dirs.append(hit)
    return dirs


def find_root_manifest(cwd: Path) -> Path:
    """Return the manifest that governs *cwd*.

    The nearest ``Cargo.toml`` at or above *cwd* is located first; if an
    enclosing manifest declares a ``[workspace]`` that lists it as a member,
    that workspace manifest is returned instead.
    """
    start = cwd.resolve()
    nearest: Path | None = None
    for directory in (start, *start.parents):
        candidate = directory / MANIFEST_NAME
        if candidate.is_file():
            nearest = candidate
            break
    if nearest is None:
        raise ManifestNotFoundError(str(cwd))

    if "workspace" in _read_toml(nearest):
        return nearest

    enclosing = _enclosing_workspace(nearest.parent)
    return enclosing[0] if enclosing else nearest


def _enclosing_workspace(package_dir: Path) -> tuple[Path, dict[str, Any]] | None:
    """Return the workspace manifest (and its ``[workspace]`` table) listing *package_dir*."""
    package_dir = package_dir.resolve()
    for directory in package_dir.parents:
        candidate = directory / MANIFEST_NAME
        if not candidate.is_file():
            continue
        workspace = _read_toml(candidate).get("workspace")
        if workspace is None:
            continue
        members = {d.resolve() for d in _member_dirs(directory, workspace)}
        if package_dir in members:
            return candidate, workspace
    return None


# ── dependency tables ────────────────────────────────────────────────────


def _iter_dep_tables(data: dict[str, Any]):
    for section in _DEP_SECTIONS:
        yield data.get(section, {})
    for target in data.get("target", {}).values():
        if isinstance(target, dict):
            for section in _DEP_SECTIONS:
                yield target.get(section, {})


def _source_kind(spec: str | dict[str, Any]) -> SourceKind:
    if isinstance(spec, str):
        return SourceKind.REGISTRY
    if "path" in spec:
        return SourceKind.LOCAL_PATH
    if "git" in spec or "registry" in spec:
        return SourceKind.OTHER
    return SourceKind.REGISTRY


def _requirement(
    name: str,
    spec: str | dict[str, Any],
    kind: SourceKind,
    locked: dict[str, list[str]],
) -> RequirementSpec:
    version = spec if isinstance(spec, str) else spec.get("version")
    if version is None:
        return AnyVersion()
    if kind is SourceKind.REGISTRY and name in locked:
        req = VersionRequirement.parse(version)
        for candidate in locked[name]:
            try:
                if req.matches(parse_version(candidate)):
                    return LockedVersion(version=candidate, requirement=version)
            except ValueError:
                continue
    return ExplicitRequirement(version)


def parse_dependencies(
    data: dict[str, Any],
    manifest_path: Path,
    workspace_deps: dict[str, Any] | None = None,
    locked: dict[str, list[str]] | None = None,
) -> list[DependencyDeclaration]:
    """Extract every dependency declaration of one package manifest."""
    workspace_deps = workspace_deps or {}
    locked = locked or {}
    declarations: list[DependencyDeclaration] = []

    for table in _iter_dep_tables(data):
        for key, spec in table.items():
            if isinstance(spec, dict) and spec.get("workspace") is True:
                inherited = workspace_deps.get(key)
                if inherited is None:
                    raise ManifestParseError(
                        str(manifest_path),
                        f"dependency `{key}` inherits from the workspace, "
                        "but `workspace.dependencies` does not define it",
                    )
                merged = {"version": inherited} if isinstance(inherited, str) else dict(inherited)
                merged.update((k, v) for k, v in spec.items() if k != "workspace")
                spec = merged
            if not isinstance(spec, (str, dict)):
                raise ManifestParseError(
                    str(manifest_path), f"dependency `{key}` has an unsupported specification"
                )

            name = spec.get("package", key) if isinstance(spec, dict) else key
            kind = _source_kind(spec)
            declarations.append(
                DependencyDeclaration(
                    name=name,
                    requirement=_requirement(name, spec, kind, locked),
                    source_kind=kind,
                )
            )

    return declarations


# ── lockfile ─────────────────────────────────────────────────────────────


def read_locked_versions(root: Path) -> dict[str, list[str]]:
    """Map crate name -> versions pinned from a registry in ``Cargo.lock``.

    A missing lockfile yields an empty mapping; an unreadable one is logged
    and ignored.
    """
    lock_path = root / LOCKFILE_NAME
    if not lock_path.is_file():
        return {}
    try:
        data = tomllib.loads(lock_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
        log.warning("workspace.lockfile_unreadable", path=str(lock_path), error=str(exc))
        return {}

    locked: dict[str, list[str]] = {}
    for pkg in data.get("package", []):
        source = pkg.get("source", "")
        if not source.startswith("registry+"):
            continue
        locked.setdefault(pkg["name"], []).append(pkg["version"])
    return locked


# ── workspace loading ────────────────────────────────────────────────────


def _load_member(
    manifest_path: Path,
    workspace_deps: dict[str, Any],
    locked: dict[str, list[str]],
    data: dict[str, Any] | None = None,
) -> MemberPackage:
    if data is None:
        data = _read_toml(manifest_path)
    name = data.get("package", {}).get("name")
    if not isinstance(name, str) or not name:
        raise ManifestParseError(str(manifest_path), "missing `package.name`")
    return MemberPackage(
        name=name,
        manifest_path=manifest_path,
        declarations=parse_dependencies(data, manifest_path, workspace_deps, locked),
    )


def load_workspace(manifest_path: Path) -> list[MemberPackage]:
    """Load every package governed by *manifest_path*.

    A plain package manifest yields that single package; when it is a
    member of an enclosing workspace, ``workspace = true`` entries resolve
    against that workspace and pins come from the workspace's lockfile.
    A manifest with a ``[workspace]`` table yields each member, plus the
    root package when the manifest also declares one.
    """
    if not manifest_path.is_file():
        raise ManifestNotFoundError(str(manifest_path))

    root = manifest_path.parent
    data = _read_toml(manifest_path)
    workspace = data.get("workspace")

    if workspace is None:
        enclosing = _enclosing_workspace(root)
        if enclosing is None:
            return [_load_member(manifest_path, {}, read_locked_versions(root), data)]
        workspace_manifest, enclosing_table = enclosing
        log.debug("workspace.member", manifest=str(manifest_path), root=str(workspace_manifest))
        return [
            _load_member(
                manifest_path,
                enclosing_table.get("dependencies", {}),
                read_locked_versions(workspace_manifest.parent),
                data,
            )
        ]

    locked = read_locked_versions(root)

    workspace_deps = workspace.get("dependencies", {})
    members: list[MemberPackage] = []
    if "package" in data:
        members.append(_load_member(manifest_path, workspace_deps, locked, data))

    for member_dir in _member_dirs(root, workspace):
        if member_dir.resolve() == root.resolve():
            continue
        member_manifest = member_dir / MANIFEST_NAME
        if not member_manifest.is_file():
            raise ManifestParseError(
                str(manifest_path),
                f"workspace member `{member_dir.relative_to(root)}` has no {MANIFEST_NAME}",
            )
        members.append(_load_member(member_manifest, workspace_deps, locked))

    log.debug("workspace.loaded", root=str(root), members=[m.name for m in members])
    return members
