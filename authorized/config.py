from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


def _env_bool(name: str, default: bool = False) -> bool:
    raw = (os.getenv(name) or "").strip().lower()
    if raw in ("1", "true", "yes", "y", "on"):
        return True
    if raw in ("0", "false", "no", "n", "off"):
        return False
    return default


@dataclass(frozen=True)
class AuthzConfig:
    # Requester scope used when a caller authorizes without presenting one.
    default_scope: str = ""

    # Collection adapter drops failing items; log them so they are not lost silently.
    log_dropped_items: bool = True

    # Debug-log every redaction pass (field names only, never values).
    log_redactions: bool = False


@lru_cache(maxsize=1)
def load_authz_config() -> AuthzConfig:
    """
    Load authorization settings from env (ConfigMap/Secret friendly).

    Recommended vars:
    - AUTHORIZED_DEFAULT_SCOPE=guest
    - AUTHORIZED_LOG_DROPPED_ITEMS=1
    - AUTHORIZED_LOG_REDACTIONS=0

    The default scope is kept as raw text; it is parsed (and validated) when used.
    """
    return AuthzConfig(
        default_scope=(os.getenv("AUTHORIZED_DEFAULT_SCOPE", "") or "").strip(),
        log_dropped_items=_env_bool("AUTHORIZED_LOG_DROPPED_ITEMS", True),
        log_redactions=_env_bool("AUTHORIZED_LOG_REDACTIONS", False),
    )
