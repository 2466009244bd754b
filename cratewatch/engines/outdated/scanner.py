"""Concurrent outdated scan — fan registry queries out over every package."""

from __future__ import annotations

import asyncio
from typing import Protocol, TypeVar

import structlog

from cratewatch.engines.outdated.models import (
    Dependency,
    OutdatedFinding,
    PackageDependencySet,
    RegistryVersionInfo,
    ScanOutcome,
)
from cratewatch.engines.outdated.requirement import is_up_to_date
from cratewatch.exceptions import FetchError

log = structlog.get_logger("cratewatch.scan")

T = TypeVar("T")

# Marks a dependency whose fetch failed (as opposed to None: up to date / local).
_SKIPPED = object()


class LatestVersionSource(Protocol):
    async def fetch_latest(self, crate_name: str) -> RegistryVersionInfo: ...


def _sort_key(dep: Dependency) -> tuple[str, str, str]:
    return dep.name, dep.requirement.expression, dep.source_kind.value


def dedup_adjacent(items: list[T]) -> list[T]:
    """Collapse runs of equal neighbours, keeping order."""
    out: list[T] = []
    for item in items:
        if not out or out[-1] != item:
            out.append(item)
    return out


async def scan_outdated(
    package_deps: PackageDependencySet,
    client: LatestVersionSource,
    concurrency: int,
) -> ScanOutcome:
    """Check every non-local dependency of every package against the registry.

    Packages and their dependencies are fanned out as two independent
    ``asyncio.gather`` stages; in-flight registry calls are bounded by
    *concurrency*. A failed fetch yields no finding and is counted in
    :attr:`ScanOutcome.skipped`.
    """
    sem = asyncio.Semaphore(concurrency)

    async def _check_one(package: str, dep: Dependency) -> object:
        async with sem:
            try:
                latest = await client.fetch_latest(dep.name)
            except FetchError as exc:
                log.debug(
                    "registry.fetch_failed",
                    package=package,
                    crate=dep.name,
                    error_type=type(exc).__name__,
                    error=str(exc.cause),
                )
                return _SKIPPED
        if is_up_to_date(dep.requirement, latest.latest_version):
            return None
        return OutdatedFinding(
            owning_package=package,
            dependency_name=dep.name,
            declared_requirement=dep.requirement.expression,
            latest_version=str(latest.latest_version),
        )

    async def _check_package(
        package: str, deps: frozenset[Dependency]
    ) -> tuple[list[OutdatedFinding], int]:
        remote = sorted((d for d in deps if not d.is_local), key=_sort_key)
        results = await asyncio.gather(*(_check_one(package, d) for d in remote))
        skipped = sum(1 for r in results if r is _SKIPPED)
        findings = [r for r in results if isinstance(r, OutdatedFinding)]
        return dedup_adjacent(findings), skipped

    packages = sorted(package_deps.items(), key=lambda item: item[0])
    per_package = await asyncio.gather(*(_check_package(name, deps) for name, deps in packages))

    outcome = ScanOutcome()
    for (name, _), (findings, skipped) in zip(packages, per_package):
        outcome.findings.extend((name, f) for f in findings)
        outcome.skipped += skipped

    log.info(
        "scan.complete",
        packages=len(packages),
        outdated=len(outcome.findings),
        skipped=outcome.skipped,
    )
    return outcome
