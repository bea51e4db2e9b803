"""Scope value type and its partial order.

A scope is a set of required ("allowed") tokens plus a set of forbidden ("denied") tokens.
Scopes are used on both sides of a check:

- as a *requirement* attached to a field or an entity (`read:title`, `!guest`)
- as a *grant* presented by the requester (`admin read:title`)

Example (username visible to all, email hidden from guests, password admin-only):

    >>> username_scope = Scope.parse("")
    >>> email_scope = Scope.parse("!guest")
    >>> password_scope = Scope.parse("admin")
    >>> username_scope.allow_access(Scope.parse("guest"))
    True
    >>> email_scope.allow_access(Scope.parse("guest"))
    False
    >>> password_scope.allow_access(Scope.parse("admin"))
    True
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional, Union

SEPARATOR = " "
DENY_PREFIX = "!"


class InvalidCharacter(ValueError):
    """
    A character was encountered which is not allowed to appear in scope strings.

    Scope tokens are restricted to this subset of ascii:
    - the character '!'
    - the range 0x23..0x5B (digits, upper case letters, most punctuation)
    - the range 0x5D..0x7E (lower case letters)
    Tokens are separated by spaces. '"' (0x22) and '\\' (0x5C) are never allowed.
    """

    def __init__(self, char: str, position: Optional[int] = None):
        self.char = char
        self.position = position
        super().__init__(f"Encountered invalid character in scope: {char}")


def is_valid_scope_char(ch: str) -> bool:
    if ch == SEPARATOR or ch == "!":
        return True
    code = ord(ch)
    return 0x23 <= code <= 0x5B or 0x5D <= code <= 0x7E


class ScopeOrdering(str, Enum):
    LESS = "less"
    EQUAL = "equal"
    GREATER = "greater"
    INCOMPARABLE = "incomparable"


@dataclass(frozen=True)
class Scope:
    allowed: FrozenSet[str] = field(default_factory=frozenset)
    denied: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        # Direct construction must yield the same values parse_scope can produce.
        object.__setattr__(self, "allowed", frozenset(self.allowed))
        object.__setattr__(self, "denied", frozenset(self.denied))
        for token in self.allowed | self.denied:
            if not isinstance(token, str):
                raise TypeError(f"scope tokens must be str, got {type(token).__name__}")
            for i, ch in enumerate(token):
                if ch == SEPARATOR or not is_valid_scope_char(ch):
                    raise InvalidCharacter(ch, position=i)
        for token in self.allowed:
            if not token or token.startswith(DENY_PREFIX):
                raise ValueError(f"allowed scope token must be non-empty and not start with {DENY_PREFIX!r}: {token!r}")

    @classmethod
    def parse(cls, text: str) -> "Scope":
        return parse_scope(text)

    @property
    def is_empty(self) -> bool:
        return not self.allowed and not self.denied

    def compare(self, other: "Scope") -> ScopeOrdering:
        """
        Partial-order comparison.

        A scope denying a token the other one requires (either way round) cannot be ordered.
        Otherwise scopes are ordered by inclusion of their allowed tokens.
        """
        if self.denied or other.denied:
            if self.denied & other.allowed or other.denied & self.allowed:
                return ScopeOrdering.INCOMPARABLE

        common = len(self.allowed & other.allowed)
        if common == len(self.allowed) and common == len(other.allowed):
            return ScopeOrdering.EQUAL
        if common == len(self.allowed):
            return ScopeOrdering.LESS
        if common == len(other.allowed):
            return ScopeOrdering.GREATER
        return ScopeOrdering.INCOMPARABLE

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Scope):
            return NotImplemented
        return self.compare(other) is ScopeOrdering.LESS

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Scope):
            return NotImplemented
        return self.compare(other) in (ScopeOrdering.LESS, ScopeOrdering.EQUAL)

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Scope):
            return NotImplemented
        return self.compare(other) is ScopeOrdering.GREATER

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Scope):
            return NotImplemented
        return self.compare(other) in (ScopeOrdering.GREATER, ScopeOrdering.EQUAL)

    def priviledged_to(self, other: "Scope") -> bool:
        """
        True if this scope carries enough privileges to access a resource requiring `other`.

        Equivalent to `self >= other`.
        """
        return other <= self

    def allow_access(self, other: "Scope") -> bool:
        """
        True if a resource protected by this scope should be disclosed to the grant `other`.

        Equivalent to `self <= other`.
        """
        return self <= other

    def __str__(self) -> str:
        tokens = sorted(self.allowed) + [DENY_PREFIX + t for t in sorted(self.denied)]
        return SEPARATOR.join(tokens)

    def __repr__(self) -> str:
        return f"Scope({str(self)!r})"


def parse_scope(text: str) -> Scope:
    """
    Parse a space separated token string into a Scope.

    Raises InvalidCharacter for the first character outside the scope charset.
    Semantic conflicts (`a !a`) are accepted; denial wins at comparison time.
    """
    for i, ch in enumerate(text):
        if not is_valid_scope_char(ch):
            raise InvalidCharacter(ch, position=i)

    tokens = [t for t in text.split(SEPARATOR) if t]
    denied = frozenset(t[len(DENY_PREFIX) :] for t in tokens if t.startswith(DENY_PREFIX))
    allowed = frozenset(t for t in tokens if not t.startswith(DENY_PREFIX))
    return Scope(allowed=allowed, denied=denied)


ScopeLike = Union[Scope, str]


def into_scope(value: ScopeLike) -> Scope:
    """Accept a pre-built Scope or any scope text."""
    if isinstance(value, Scope):
        return value
    if isinstance(value, str):
        return parse_scope(value)
    raise TypeError(f"cannot build a Scope from {type(value).__name__}")
