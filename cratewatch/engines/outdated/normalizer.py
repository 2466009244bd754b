"""Turn manifest declarations into normalized :class:`Dependency` values."""

from __future__ import annotations

from collections.abc import Iterable

from cratewatch.engines.outdated.models import Dependency, PackageDependencySet
from cratewatch.engines.outdated.requirement import VersionRequirement
from cratewatch.engines.workspace.models import (
    AnyVersion,
    DependencyDeclaration,
    ExplicitRequirement,
    LockedVersion,
    MemberPackage,
)
from cratewatch.exceptions import InvalidRequirementError, ProgrammingInvariantError

_WILDCARD_LITERAL = "*"


def wildcard_requirement() -> VersionRequirement:
    """The requirement that admits every (non-pre-release) version."""
    try:
        return VersionRequirement.parse(_WILDCARD_LITERAL)
    except InvalidRequirementError as exc:
        raise ProgrammingInvariantError(
            f"fixed requirement {_WILDCARD_LITERAL!r} failed to parse"
        ) from exc


def normalize(declaration: DependencyDeclaration) -> Dependency:
    """Build a :class:`Dependency` from one manifest declaration.

    Raises :class:`InvalidRequirementError` when an explicit requirement is
    not valid Cargo syntax.
    """
    spec = declaration.requirement
    if isinstance(spec, AnyVersion):
        requirement = wildcard_requirement()
    elif isinstance(spec, LockedVersion):
        requirement = VersionRequirement.parse(spec.requirement)
    elif isinstance(spec, ExplicitRequirement):
        requirement = VersionRequirement.parse(spec.requirement)
    else:
        raise ProgrammingInvariantError(f"unknown requirement spec: {spec!r}")

    return Dependency(
        name=declaration.name,
        requirement=requirement,
        source_kind=declaration.source_kind,
    )


def build_dependency_set(packages: Iterable[MemberPackage]) -> PackageDependencySet:
    """Normalize every package's declarations; duplicates collapse."""
    return {
        package.name: frozenset(normalize(d) for d in package.declarations)
        for package in packages
    }
