"""Cargo workspace provider: find manifests and list each package's dependencies."""

from cratewatch.engines.workspace.manifest import find_root_manifest, load_workspace
from cratewatch.engines.workspace.models import (
    AnyVersion,
    DependencyDeclaration,
    ExplicitRequirement,
    LockedVersion,
    MemberPackage,
    SourceKind,
)

__all__ = [
    "AnyVersion",
    "DependencyDeclaration",
    "ExplicitRequirement",
    "LockedVersion",
    "MemberPackage",
    "SourceKind",
    "find_root_manifest",
    "load_workspace",
]
