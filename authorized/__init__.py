"""
Field-level access control for structured data.

A requester presents a scope (`"admin read:title"`); every field of an entity may require one.
Authorizing an entity returns a redacted copy, the list of redacted fields and an advisory
entity-level verdict.
"""

from authorized.authz.collection import AuthorizableRef, AuthorizableSequence
from authorized.authz.engine import Authorizable, Authorizor, authorizable, authorize
from authorized.authz.rules import FieldRule, rules_for
from authorized.core.errors import AuthorizedError, BuildError, MultipleAuthorizedErrors, ParseScopeError
from authorized.core.result import AuthorizationStatus, AuthorizedResult
from authorized.core.scope import InvalidCharacter, Scope, ScopeOrdering, into_scope, parse_scope

__all__ = [
    "Authorizable",
    "AuthorizableRef",
    "AuthorizableSequence",
    "AuthorizationStatus",
    "AuthorizedError",
    "AuthorizedResult",
    "Authorizor",
    "BuildError",
    "FieldRule",
    "InvalidCharacter",
    "MultipleAuthorizedErrors",
    "ParseScopeError",
    "Scope",
    "ScopeOrdering",
    "authorizable",
    "authorize",
    "into_scope",
    "parse_scope",
    "rules_for",
]
