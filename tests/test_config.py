from __future__ import annotations

import pytest


def test_authz_config_defaults() -> None:
    from authorized.config import load_authz_config

    cfg = load_authz_config()
    assert cfg.default_scope == ""
    assert cfg.log_dropped_items is True
    assert cfg.log_redactions is False


def test_authz_config_reads_env(monkeypatch: pytest.MonkeyPatch) -> None:
    from authorized.config import load_authz_config

    monkeypatch.setenv("AUTHORIZED_DEFAULT_SCOPE", "  guest !admin ")
    monkeypatch.setenv("AUTHORIZED_LOG_DROPPED_ITEMS", "off")
    monkeypatch.setenv("AUTHORIZED_LOG_REDACTIONS", "yes")
    cfg = load_authz_config()
    assert cfg.default_scope == "guest !admin"
    assert cfg.log_dropped_items is False
    assert cfg.log_redactions is True


def test_authz_config_unknown_bool_falls_back_to_default(monkeypatch: pytest.MonkeyPatch) -> None:
    from authorized.config import load_authz_config

    monkeypatch.setenv("AUTHORIZED_LOG_DROPPED_ITEMS", "maybe")
    monkeypatch.setenv("AUTHORIZED_LOG_REDACTIONS", "")
    cfg = load_authz_config()
    assert cfg.log_dropped_items is True
    assert cfg.log_redactions is False


def test_authz_config_is_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    from authorized.config import load_authz_config

    first = load_authz_config()
    monkeypatch.setenv("AUTHORIZED_DEFAULT_SCOPE", "admin")
    assert load_authz_config() is first
    load_authz_config.cache_clear()
    assert load_authz_config().default_scope == "admin"


def test_invalid_default_scope_fails_when_used(monkeypatch: pytest.MonkeyPatch) -> None:
    from dataclasses import dataclass

    from authorized import ParseScopeError, authorizable, authorize

    @authorizable("admin")
    @dataclass
    class Thing:
        x: int = 0

    monkeypatch.setenv("AUTHORIZED_DEFAULT_SCOPE", 'bad"scope')
    with pytest.raises(ParseScopeError) as exc:
        authorize(Thing())
    assert exc.value.source == 'bad"scope'
