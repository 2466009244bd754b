"""Shared fixtures for cratewatch tests (no network required)."""

from __future__ import annotations

import pytest


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


def _version_record(
    crate: str,
    num: str,
    *,
    yanked: bool = False,
    updated_at: str = "2024-03-01T10:20:30.123456+00:00",
) -> dict:
    """One entry as returned by ``/api/v1/crates/{name}/versions``."""
    return {
        "id": 1,
        "crate": crate,
        "num": num,
        "dl_path": f"/api/v1/crates/{crate}/{num}/download",
        "readme_path": None,
        "updated_at": updated_at,
        "created_at": updated_at,
        "downloads": 1234,
        "features": {"default": ["std"]},
        "yanked": yanked,
        "license": "MIT OR Apache-2.0",
        "links": {"dependencies": f"/api/v1/crates/{crate}/{num}/dependencies"},
        "crate_size": None,
        "published_by": None,
        "audit_actions": [],
    }


@pytest.fixture
def version_record():
    return _version_record
