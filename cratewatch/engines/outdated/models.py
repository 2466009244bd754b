"""Data models for the outdated-dependency scan."""

from __future__ import annotations

from dataclasses import dataclass, field

from semantic_version import Version

from cratewatch.engines.outdated.requirement import VersionRequirement
from cratewatch.engines.workspace.models import SourceKind


@dataclass(frozen=True)
class Dependency:
    """One normalized dependency of a package. Identity is the full triple."""

    name: str
    requirement: VersionRequirement
    source_kind: SourceKind

    @property
    def is_local(self) -> bool:
        return self.source_kind is SourceKind.LOCAL_PATH


# package name -> that package's dependencies
PackageDependencySet = dict[str, frozenset[Dependency]]


@dataclass(frozen=True)
class RegistryVersionInfo:
    """Outcome of one registry query.

    The default value (empty name, ``0.0.0``) means the registry listed no
    eligible (non-yanked) version.
    """

    crate_name: str = ""
    latest_version: Version = field(default_factory=lambda: Version("0.0.0"))
    last_updated: str = ""


@dataclass(frozen=True)
class OutdatedFinding:
    """A dependency whose latest release falls outside its declared requirement."""

    owning_package: str
    dependency_name: str
    declared_requirement: str
    latest_version: str


@dataclass
class OutdatedReport:
    """Findings grouped by owning package, in merge order."""

    outdated: dict[str, list[OutdatedFinding]] = field(default_factory=dict)
    skipped: int = 0

    def add(self, package: str, finding: OutdatedFinding) -> None:
        self.outdated.setdefault(package, []).append(finding)

    def is_empty(self) -> bool:
        return not self.outdated


@dataclass
class ScanOutcome:
    """Raw orchestrator output: unordered ``(package, finding)`` pairs."""

    findings: list[tuple[str, OutdatedFinding]] = field(default_factory=list)
    skipped: int = 0
