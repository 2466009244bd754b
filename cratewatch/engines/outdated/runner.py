"""End-to-end pipeline: manifest -> normalized deps -> registry scan -> report."""

from __future__ import annotations

from pathlib import Path

import httpx
import structlog

from cratewatch.config import RegistryConfig
from cratewatch.engines.outdated.models import OutdatedReport
from cratewatch.engines.outdated.normalizer import build_dependency_set
from cratewatch.engines.outdated.registry_client import CratesIoClient
from cratewatch.engines.outdated.report import aggregate
from cratewatch.engines.outdated.scanner import scan_outdated
from cratewatch.engines.workspace.manifest import find_root_manifest, load_workspace

log = structlog.get_logger("cratewatch.engine")


async def check_outdated(
    manifest_path: Path | None,
    config: RegistryConfig,
    *,
    cwd: Path | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> OutdatedReport:
    """Run one stateless scan.

    Every :class:`~cratewatch.exceptions.SetupError` is raised before the
    first registry request; per-dependency fetch failures never escape.
    """
    root = manifest_path or find_root_manifest(cwd or Path.cwd())
    packages = load_workspace(root)
    package_deps = build_dependency_set(packages)
    log.info(
        "scan.start",
        manifest=str(root),
        packages=len(package_deps),
        dependencies=sum(len(d) for d in package_deps.values()),
    )

    async with CratesIoClient(config, client=http_client) as client:
        outcome = await scan_outdated(package_deps, client, config.concurrency)

    if outcome.skipped:
        log.warning("scan.skipped_dependencies", count=outcome.skipped)
    return aggregate(outcome.findings, skipped=outcome.skipped)
