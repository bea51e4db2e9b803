"""Authorization over sequences, and by-reference forwarding."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Sequence, Tuple

from authorized.authz.engine import Authorizable
from authorized.config import load_authz_config
from authorized.core.errors import AuthorizedError
from authorized.core.result import AuthorizationStatus, AuthorizedResult
from authorized.core.scope import Scope

logger = logging.getLogger(__name__)


def as_authorizable(value: Any) -> Authorizable:
    if isinstance(value, (AuthorizableSequence, AuthorizableRef)):
        return value
    if isinstance(value, (list, tuple)):
        return AuthorizableSequence(tuple(value))
    if isinstance(value, Authorizable):
        return value
    raise TypeError(f"{type(value).__name__} is not authorizable; decorate it with @authorizable")


@dataclass(frozen=True)
class AuthorizableRef:
    """Forwards every capability to the referenced entity; holds no state of its own."""

    target: Any

    def build_authorized(self, unauthorized_fields: Sequence[str]) -> Any:
        return as_authorizable(self.target).build_authorized(unauthorized_fields)

    def filter_unauthorized_fields(self, scope: Scope) -> List[str]:
        return as_authorizable(self.target).filter_unauthorized_fields(scope)

    def authorize(self, scope: Scope) -> AuthorizedResult[Any]:
        return as_authorizable(self.target).authorize(scope)


@dataclass(frozen=True)
class AuthorizableSequence:
    """
    Authorizes every item of an ordered sequence with the same requester scope.

    Best effort: an item raising an AuthorizedError (malformed rule, failing default) is dropped
    from the output instead of failing the whole call, and the sequence itself is always
    AUTHORIZED. Per-item verdicts live on the inner results.
    """

    items: Tuple[Any, ...]

    def build_authorized(self, unauthorized_fields: Sequence[str]) -> List[AuthorizedResult[Any]]:
        return []

    def filter_unauthorized_fields(self, scope: Scope) -> List[str]:
        return []

    def authorize(self, scope: Scope) -> AuthorizedResult[List[AuthorizedResult[Any]]]:
        # Non-authorizable items are programming errors and still raise TypeError.
        targets = [as_authorizable(item) for item in self.items]

        inner: List[AuthorizedResult[Any]] = []
        dropped: List[Tuple[int, AuthorizedError]] = []
        for index, target in enumerate(targets):
            try:
                inner.append(target.authorize(scope))
            except AuthorizedError as e:
                dropped.append((index, e))

        if dropped and load_authz_config().log_dropped_items:
            logger.warning(
                "Dropped %d of %d items while authorizing a collection: %s",
                len(dropped),
                len(self.items),
                "; ".join(f"#{i}: {e}" for i, e in dropped),
            )

        return AuthorizedResult(
            input_scope=scope,
            inner=inner,
            status=AuthorizationStatus.AUTHORIZED,
            unauthorized_fields=(),
        )
