"""Async crates.io client — latest non-yanked version per crate."""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, ValidationError

from cratewatch.config import RegistryConfig
from cratewatch.engines.outdated.models import RegistryVersionInfo
from cratewatch.engines.outdated.requirement import parse_version
from cratewatch.exceptions import EncodingError, NetworkError, ParseError, VersionParseError

log = structlog.get_logger("cratewatch.registry")


# ── response schema ──────────────────────────────────────────────────────


class PublishedBy(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int | None = None
    login: str | None = None
    name: str | None = None
    avatar: str | None = None
    url: str | None = None


class CrateVersion(BaseModel):
    """One entry of ``/api/v1/crates/{name}/versions``.

    Only ``crate``, ``num``, ``yanked`` and ``updated_at`` are used; the rest
    is accepted loosely.
    """

    model_config = ConfigDict(extra="ignore")

    crate: str
    num: str
    yanked: bool
    updated_at: str

    id: int | None = None
    dl_path: str | None = None
    readme_path: str | None = None
    created_at: str | None = None
    downloads: int | None = None
    features: dict[str, Any] | None = None
    license: str | None = None
    links: dict[str, Any] | None = None
    crate_size: int | None = None
    published_by: PublishedBy | None = None
    audit_actions: list[dict[str, Any]] | None = None


class CrateVersionsResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    versions: list[CrateVersion]


# ── selection ────────────────────────────────────────────────────────────


def _strip_fraction(timestamp: str) -> str:
    return timestamp.split(".", 1)[0]


def select_latest(crate_name: str, versions: list[CrateVersion]) -> RegistryVersionInfo:
    """Pick the newest non-yanked release.

    The registry lists versions newest first. Records are walked in reverse
    (oldest first) and every non-yanked one overwrites the selection, so the
    newest non-yanked record wins. Returns the default value when nothing is
    eligible.

    Raises :class:`VersionParseError` if a visited version is not semver.
    """
    latest = RegistryVersionInfo()
    for record in reversed(versions):
        if record.yanked:
            continue
        try:
            version = parse_version(record.num)
        except ValueError as exc:
            raise VersionParseError(crate_name, exc) from exc
        latest = RegistryVersionInfo(
            crate_name=record.crate,
            latest_version=version,
            last_updated=_strip_fraction(record.updated_at),
        )
    return latest


# ── client ───────────────────────────────────────────────────────────────


class CratesIoClient:
    """Thin async wrapper around the crates.io versions endpoint."""

    def __init__(
        self,
        config: RegistryConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config or RegistryConfig()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self.config.timeout)
        self._headers = {"User-Agent": self.config.user_agent, "Accept": "application/json"}

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> CratesIoClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── public ─────────────────────────────────────────────────────────────

    async def fetch_latest(self, crate_name: str) -> RegistryVersionInfo:
        """Query the registry once and return the latest eligible version.

        Raises :class:`NetworkError`, :class:`EncodingError` or
        :class:`ParseError` (including :class:`VersionParseError`).
        """
        url = self.config.versions_url(crate_name)
        try:
            resp = await self._client.get(url, headers=self._headers)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise NetworkError(crate_name, exc) from exc

        try:
            body = resp.content.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise EncodingError(crate_name, exc) from exc

        try:
            payload = CrateVersionsResponse.model_validate_json(body)
        except ValidationError as exc:
            raise ParseError(crate_name, exc) from exc

        latest = select_latest(crate_name, payload.versions)
        log.debug(
            "registry.latest",
            crate=crate_name,
            version=str(latest.latest_version),
            candidates=len(payload.versions),
        )
        return latest
