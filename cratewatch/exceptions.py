"""Custom exceptions for cratewatch."""

from __future__ import annotations


class CratewatchError(Exception):
    """Base exception for all cratewatch errors."""


# ── setup (fatal) ────────────────────────────────────────────────────────


class SetupError(CratewatchError):
    """Raised when the project cannot be loaded; aborts before any network I/O."""


class ManifestNotFoundError(SetupError):
    """Raised when no Cargo.toml exists in the working directory or its parents."""

    def __init__(self, start: str):
        self.start = start
        super().__init__(f"could not find `Cargo.toml` in `{start}` or any parent directory")


class ManifestParseError(SetupError):
    """Raised when a manifest is unreadable or structurally invalid."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"failed to parse manifest at `{path}`: {reason}")


class InvalidRequirementError(SetupError):
    """Raised when a declared version requirement is not valid Cargo syntax."""

    def __init__(self, expression: str, reason: str = "invalid version requirement"):
        self.expression = expression
        super().__init__(f"{reason}: {expression!r}")


# ── per-dependency fetch (recovered locally) ─────────────────────────────


class FetchError(CratewatchError):
    """Raised when the registry query for a single crate fails."""

    def __init__(self, crate_name: str, cause: BaseException | str):
        self.crate_name = crate_name
        self.cause = cause
        super().__init__(f"{crate_name}: {cause}")


class NetworkError(FetchError):
    """Transport failure, timeout, or non-2xx status."""


class EncodingError(FetchError):
    """Response body was not valid UTF-8."""


class ParseError(FetchError):
    """Response body was not the expected JSON document."""


class VersionParseError(ParseError):
    """A version string in the registry response is not valid semver."""


# ── defects ──────────────────────────────────────────────────────────────


class ProgrammingInvariantError(RuntimeError):
    """Raised when an internal invariant is violated. Never caught."""
