"""Data models for the Cargo workspace provider.

These are pure declarations as written in the manifests; nothing here is
parsed into semver yet.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union


class SourceKind(enum.Enum):
    """Where a dependency resolves from."""

    REGISTRY = "registry"
    LOCAL_PATH = "path"
    OTHER = "other"


@dataclass(frozen=True)
class AnyVersion:
    """No version constraint was declared."""


@dataclass(frozen=True)
class LockedVersion:
    """A requirement pinned by Cargo.lock to an exact version."""

    version: str
    requirement: str


@dataclass(frozen=True)
class ExplicitRequirement:
    """A version requirement as written in the manifest."""

    requirement: str


RequirementSpec = Union[AnyVersion, LockedVersion, ExplicitRequirement]


@dataclass(frozen=True)
class DependencyDeclaration:
    """One dependency entry from a package manifest."""

    name: str
    requirement: RequirementSpec
    source_kind: SourceKind


@dataclass
class MemberPackage:
    """A package of the workspace (or the lone package of a project)."""

    name: str
    manifest_path: Path
    declarations: list[DependencyDeclaration] = field(default_factory=list)
