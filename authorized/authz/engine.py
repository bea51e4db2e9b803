from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Protocol, Sequence, TypeVar, runtime_checkable

from authorized.authz.rules import RULES_ATTR, CompiledRules, RuleTable, build_rule_table, rules_for
from authorized.config import load_authz_config
from authorized.core.errors import ParseScopeError
from authorized.core.result import AuthorizationStatus, AuthorizedResult
from authorized.core.scope import InvalidCharacter, Scope, ScopeLike, into_scope

logger = logging.getLogger(__name__)

C = TypeVar("C", bound=type)


@runtime_checkable
class Authorizable(Protocol):
    """
    What the engine needs from an entity type.

    `@authorizable` installs all three from a declarative rule table; types may also implement
    them by hand.
    """

    def build_authorized(self, unauthorized_fields: Sequence[str]) -> Any:
        """Redacted copy: listed fields take their declared default, the rest are copied."""

    def filter_unauthorized_fields(self, scope: Scope) -> List[str]:
        """Names of the fields whose required scope does not allow access to `scope`."""

    def authorize(self, scope: Scope) -> AuthorizedResult[Any]:
        """Compose the two above with the entity-level verdict."""


def unauthorized_fields_for(compiled: CompiledRules, scope: Scope) -> List[str]:
    return [name for name, required in compiled.field_scopes if not required.allow_access(scope)]


def verdict_for(compiled: CompiledRules, scope: Scope) -> AuthorizationStatus:
    # Any entity scope granting access is enough; no entity scope means nobody is authorized.
    if any(required.allow_access(scope) for required in compiled.entity_scopes):
        return AuthorizationStatus.AUTHORIZED
    return AuthorizationStatus.UNAUTHORIZED


def authorize_entity(entity: Any, scope: Scope, table: Optional[RuleTable] = None) -> AuthorizedResult[Any]:
    """
    Authorize one rule-table backed entity.

    Rule scopes are parsed before any field is evaluated, so a malformed rule aborts the call.
    Redaction never depends on the verdict: an UNAUTHORIZED result still carries a complete
    (redacted) entity.
    """
    table = table or rules_for(entity)
    compiled = table.compiled

    unauthorized = unauthorized_fields_for(compiled, scope)
    status = verdict_for(compiled, scope)
    inner = table.build_redacted(entity, unauthorized)

    if load_authz_config().log_redactions:
        logger.debug(
            "Authorized %s for scope %r: status=%s redacted=%s",
            table.type_name,
            str(scope),
            status.value,
            unauthorized,
        )

    return AuthorizedResult(
        input_scope=scope,
        inner=inner,
        status=status,
        unauthorized_fields=tuple(unauthorized),
    )


def _build_authorized(self: Any, unauthorized_fields: Sequence[str]) -> Any:
    return rules_for(self).build_redacted(self, unauthorized_fields)


def _filter_unauthorized_fields(self: Any, scope: Scope) -> List[str]:
    return unauthorized_fields_for(rules_for(self).compiled, scope)


def _authorize(self: Any, scope: Scope) -> AuthorizedResult[Any]:
    return authorize_entity(self, scope)


def authorizable(*scopes: str) -> Callable[[C], C]:
    """
    Class decorator making a dataclass or pydantic model Authorizable.

    `scopes` are the entity-level scopes: the verdict is AUTHORIZED when any of them allows
    access to the requester scope. Apply it above `@dataclass`. Subclasses inherit the rules only
    while they keep the parent's fields; a subclass declaring fields needs its own decorator.
    """

    def decorate(cls: C) -> C:
        table = build_rule_table(cls, scopes)
        setattr(cls, RULES_ATTR, table)
        cls.build_authorized = _build_authorized  # type: ignore[attr-defined]
        cls.filter_unauthorized_fields = _filter_unauthorized_fields  # type: ignore[attr-defined]
        cls.authorize = _authorize  # type: ignore[attr-defined]
        return cls

    return decorate


def resolve_scope(scope: Optional[ScopeLike]) -> Scope:
    """Requester scope from a Scope, scope text, or None (configured default)."""
    if scope is None:
        scope = load_authz_config().default_scope
    try:
        return into_scope(scope)
    except InvalidCharacter as e:
        raise ParseScopeError(e, source=str(scope)) from e


class Authorizor:
    """Entry point: authorize an entity (or a list/tuple of entities) for a requester scope."""

    @staticmethod
    def authorize(entity: Any, scope: Optional[ScopeLike] = None) -> AuthorizedResult[Any]:
        from authorized.authz.collection import as_authorizable

        requester = resolve_scope(scope)
        return as_authorizable(entity).authorize(requester)


def authorize(entity: Any, scope: Optional[ScopeLike] = None) -> AuthorizedResult[Any]:
    return Authorizor.authorize(entity, scope)

