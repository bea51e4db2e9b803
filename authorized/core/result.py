from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, Tuple, TypeVar

from authorized.core.scope import Scope

T = TypeVar("T")


class AuthorizationStatus(str, Enum):
    AUTHORIZED = "authorized"
    UNAUTHORIZED = "unauthorized"


@dataclass(frozen=True)
class AuthorizedResult(Generic[T]):
    """
    Outcome of one authorization call.

    `inner` is the redacted copy, independent from the source entity.
    `status` is advisory: fields are redacted whatever the verdict is.
    """

    input_scope: Scope
    inner: T
    status: AuthorizationStatus
    unauthorized_fields: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_authorized(self) -> bool:
        return self.status is AuthorizationStatus.AUTHORIZED

    def is_redacted(self, field_name: str) -> bool:
        return field_name in self.unauthorized_fields
