"""Outdated dependency engine — registry lookup, freshness check, report."""

from cratewatch.engines.outdated.requirement import VersionRequirement, is_up_to_date
from cratewatch.engines.outdated.models import (
    Dependency,
    OutdatedFinding,
    OutdatedReport,
    RegistryVersionInfo,
    ScanOutcome,
)
from cratewatch.engines.outdated.normalizer import build_dependency_set, normalize
from cratewatch.engines.outdated.registry_client import CratesIoClient
from cratewatch.engines.outdated.report import aggregate, render_json, render_tree
from cratewatch.engines.outdated.scanner import scan_outdated

__all__ = [
    "CratesIoClient",
    "Dependency",
    "OutdatedFinding",
    "OutdatedReport",
    "RegistryVersionInfo",
    "ScanOutcome",
    "VersionRequirement",
    "aggregate",
    "build_dependency_set",
    "is_up_to_date",
    "normalize",
    "render_json",
    "render_tree",
    "scan_outdated",
]
