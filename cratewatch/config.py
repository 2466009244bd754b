"""Runtime configuration for the registry client and scan."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace

DEFAULT_REGISTRY_URL = "https://crates.io"
DEFAULT_USER_AGENT = "cratewatch/0.1.0 (https://github.com/cratewatch/cratewatch)"
DEFAULT_TIMEOUT = 30.0


def _default_concurrency() -> int:
    return os.cpu_count() or 4


@dataclass(frozen=True)
class RegistryConfig:
    """Where and how to talk to the registry.

    Passed explicitly to :class:`CratesIoClient` so tests can point it at
    a mock registry.
    """

    registry_url: str = DEFAULT_REGISTRY_URL
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = DEFAULT_TIMEOUT
    concurrency: int = field(default_factory=_default_concurrency)

    def __post_init__(self) -> None:
        if self.concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {self.concurrency}")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {self.timeout}")
        object.__setattr__(self, "registry_url", self.registry_url.rstrip("/"))

    @classmethod
    def from_env(cls) -> RegistryConfig:
        """Build a config from environment variables.

        Reads:
            CRATEWATCH_REGISTRY_URL — registry base URL (default: https://crates.io)
            CRATEWATCH_USER_AGENT   — User-Agent header
            CRATEWATCH_TIMEOUT      — per-request timeout in seconds (default: 30)
            CRATEWATCH_CONCURRENCY  — max in-flight requests (default: CPU count)
        """
        timeout = os.environ.get("CRATEWATCH_TIMEOUT")
        concurrency = os.environ.get("CRATEWATCH_CONCURRENCY")
        return cls(
            registry_url=os.environ.get("CRATEWATCH_REGISTRY_URL", DEFAULT_REGISTRY_URL),
            user_agent=os.environ.get("CRATEWATCH_USER_AGENT", DEFAULT_USER_AGENT),
            timeout=float(timeout) if timeout else DEFAULT_TIMEOUT,
            concurrency=int(concurrency) if concurrency else _default_concurrency(),
        )

    def override(self, **changes: object) -> RegistryConfig:
        """Return a copy with every non-None value in *changes* applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    def versions_url(self, crate_name: str) -> str:
        return f"{self.registry_url}/api/v1/crates/{crate_name}/versions"
