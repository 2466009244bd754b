"""Cargo version requirements and the freshness check.

Matching is delegated to :class:`semantic_version.NpmSpec`. Cargo and npm
agree on caret, tilde, wildcard and comparison operators as well as on
pre-release exclusion; they differ only in what a bare version means
(Cargo: caret, npm: exact-ish), so bare comparators are rewritten with a
leading ``^`` before the spec is built.
"""

from __future__ import annotations

import re

from semantic_version import NpmSpec, Version

from cratewatch.exceptions import InvalidRequirementError

_COMPARATOR_RE = re.compile(
    r"^(?P<op>>=|<=|=|>|<|~|\^)?\s*"
    r"(?P<version>\*|[0-9]+(?:\.(?:[0-9]+|\*|x|X)){0,2}(?:-[0-9A-Za-z.-]+)?(?:\+[0-9A-Za-z.-]+)?)$"
)

_WILDCARD_RE = re.compile(r"(^|\.)(\*|x|X)$")


def _canonical_comparator(raw: str) -> str:
    m = _COMPARATOR_RE.match(raw.strip())
    if not m:
        raise InvalidRequirementError(raw)
    op = m.group("op") or ""
    version = m.group("version")
    if not op and not _WILDCARD_RE.search(version):
        op = "^"
    return f"{op}{version}"


class VersionRequirement:
    """An immutable Cargo version requirement such as ``^1.2``, ``~0.3`` or ``*``."""

    __slots__ = ("_expression", "_spec")

    def __init__(self, expression: str, spec: NpmSpec) -> None:
        self._expression = expression
        self._spec = spec

    @classmethod
    def parse(cls, text: str) -> VersionRequirement:
        """Parse Cargo requirement syntax (comma-separated comparators).

        Raises :class:`InvalidRequirementError` on malformed input.
        """
        parts = [p.strip() for p in text.split(",")]
        if not text.strip() or any(not p for p in parts):
            raise InvalidRequirementError(text)
        comparators = [_canonical_comparator(p) for p in parts]
        try:
            spec = NpmSpec(" ".join(comparators))
        except ValueError as exc:
            raise InvalidRequirementError(text, str(exc)) from exc
        return cls(", ".join(comparators), spec)

    @property
    def expression(self) -> str:
        return self._expression

    def matches(self, version: Version) -> bool:
        return self._spec.match(version)

    def __str__(self) -> str:
        return self._expression

    def __repr__(self) -> str:
        return f"VersionRequirement({self._expression!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VersionRequirement):
            return NotImplemented
        return self._expression == other._expression

    def __hash__(self) -> int:
        return hash(self._expression)


def parse_version(text: str) -> Version:
    """Parse a strict semver string; raises ``ValueError`` if malformed."""
    return Version(text)


def is_up_to_date(requirement: VersionRequirement, latest: Version) -> bool:
    """True when *latest* already satisfies *requirement*."""
    return requirement.matches(latest)
