from __future__ import annotations

from typing import List, Optional, Sequence

from authorized.core.scope import InvalidCharacter


class AuthorizedError(Exception):
    """Base class for errors raised while authorizing an entity."""


class ParseScopeError(AuthorizedError):
    """Scope text (a rule declaration or the requester input) could not be parsed."""

    def __init__(self, error: InvalidCharacter, *, source: Optional[str] = None):
        self.error = error
        self.source = source
        if source is None:
            msg = str(error)
        else:
            msg = f"{error} (in {source!r})"
        super().__init__(msg)


class MultipleAuthorizedErrors(AuthorizedError):
    def __init__(self, errors: Sequence[AuthorizedError]):
        self.errors: List[AuthorizedError] = list(errors)
        super().__init__(f"{len(self.errors)} authorization errors: " + "; ".join(str(e) for e in self.errors))


class BuildError(AuthorizedError):
    """The redacted copy of an entity could not be built."""

    def __init__(self, type_name: str, field_name: Optional[str], reason: str):
        self.type_name = type_name
        # None when the copy itself failed rather than one field default.
        self.field_name = field_name
        if field_name is None:
            msg = f"Cannot build redacted {type_name}: copy failed: {reason}"
        else:
            msg = f"Cannot build redacted {type_name}: default for field {field_name!r} failed: {reason}"
        super().__init__(msg)


def raise_collected(errors: Sequence[AuthorizedError]) -> None:
    """Raise a single error as-is, several as MultipleAuthorizedErrors, nothing if empty."""
    if not errors:
        return
    if len(errors) == 1:
        raise errors[0]
    raise MultipleAuthorizedErrors(errors)
