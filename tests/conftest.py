"""
Pytest config.

Tests import the local `authorized/` package; pin the repo root on sys.path so that works even
when the package is not installed (e.g. when invoking a global `pytest` entrypoint).
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_repo_root_on_syspath() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    repo_root_str = str(repo_root)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


_ensure_repo_root_on_syspath()


@pytest.fixture(autouse=True)
def _fresh_authz_config(monkeypatch: pytest.MonkeyPatch):
    """
    `load_authz_config()` is cached for the process lifetime.

    Clear the AUTHORIZED_* env and the cache around every test so env-driven tests don't leak
    settings into each other.
    """
    from authorized.config import load_authz_config

    for name in ("AUTHORIZED_DEFAULT_SCOPE", "AUTHORIZED_LOG_DROPPED_ITEMS", "AUTHORIZED_LOG_REDACTIONS"):
        monkeypatch.delenv(name, raising=False)
    load_authz_config.cache_clear()
    yield
    load_authz_config.cache_clear()
