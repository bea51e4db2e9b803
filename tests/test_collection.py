from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Annotated, List, Optional, Sequence

import pytest

from authorized import AuthorizationStatus, AuthorizedResult, FieldRule, Scope, authorizable


@authorizable("admin")
@dataclass(frozen=True)
class MyResource:
    id: int
    title: Annotated[str, FieldRule(scope="read:title")]
    description: Optional[str] = None


@authorizable("admin")
@dataclass
class Broken:
    id: int
    secret: Annotated[str, FieldRule(scope="read\\secret")] = ""


@dataclass
class MyUser:
    """Implements the capability set by hand: email is always withheld."""

    name: str
    password: str
    email: str
    calls: List[str] = field(default_factory=list, compare=False)

    def build_authorized(self, unauthorized_fields: Sequence[str]) -> "MyUser":
        return MyUser(name=self.name, password=self.password, email="")

    def filter_unauthorized_fields(self, scope: Scope) -> List[str]:
        return ["email"]

    def authorize(self, scope: Scope) -> AuthorizedResult[MyUser]:
        self.calls.append(str(scope))
        unauthorized = self.filter_unauthorized_fields(scope)
        return AuthorizedResult(
            input_scope=scope,
            inner=self.build_authorized(unauthorized),
            status=AuthorizationStatus.AUTHORIZED,
            unauthorized_fields=tuple(unauthorized),
        )


def _resources() -> List[MyResource]:
    return [
        MyResource(id=1, title="Some title", description="description"),
        MyResource(id=2, title="Some title2", description="description"),
    ]


def test_sequence_authorizes_every_item() -> None:
    from authorized import Authorizor

    res = Authorizor.authorize(_resources(), "admin")

    assert res.status is AuthorizationStatus.AUTHORIZED
    assert res.unauthorized_fields == ()
    assert res.input_scope == Scope.parse("admin")
    assert [r.inner.id for r in res.inner] == [1, 2]
    assert all(r.unauthorized_fields == ("title",) for r in res.inner)
    assert all(r.inner.title == "" for r in res.inner)


def test_sequence_status_ignores_item_verdicts() -> None:
    from authorized import authorize

    res = authorize(tuple(_resources()), "guest")

    assert res.status is AuthorizationStatus.AUTHORIZED
    assert [r.status for r in res.inner] == [AuthorizationStatus.UNAUTHORIZED] * 2


def test_failing_items_are_dropped(caplog: pytest.LogCaptureFixture) -> None:
    from authorized import authorize

    good = MyResource(id=1, title="t")
    with caplog.at_level(logging.WARNING, logger="authorized.authz.collection"):
        res = authorize([Broken(id=9), good], "admin")

    assert res.status is AuthorizationStatus.AUTHORIZED
    assert len(res.inner) == 1
    assert res.inner[0].inner.id == 1
    assert "Dropped 1 of 2 items" in caplog.text
    assert "#0" in caplog.text


def test_dropped_items_logging_can_be_disabled(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    from authorized import authorize
    from authorized.config import load_authz_config

    monkeypatch.setenv("AUTHORIZED_LOG_DROPPED_ITEMS", "0")
    load_authz_config.cache_clear()
    with caplog.at_level(logging.WARNING, logger="authorized.authz.collection"):
        res = authorize([Broken(id=9), Broken(id=10)], "admin")

    assert res.inner == []
    assert res.status is AuthorizationStatus.AUTHORIZED
    assert not caplog.records


def test_single_failing_entity_still_raises() -> None:
    from authorized import ParseScopeError, authorize

    with pytest.raises(ParseScopeError):
        authorize(Broken(id=9), "admin")


def test_invalid_requester_scope_fails_the_whole_sequence() -> None:
    from authorized import ParseScopeError, authorize

    with pytest.raises(ParseScopeError):
        authorize(_resources(), 'ad"min')


def test_non_authorizable_item_is_a_type_error() -> None:
    from authorized import authorize

    with pytest.raises(TypeError):
        authorize([MyResource(id=1, title="t"), object()], "admin")


def test_nested_sequences() -> None:
    from authorized import authorize

    a, b = _resources()
    res = authorize([[a, b], a], "admin read:title")

    assert len(res.inner) == 2
    nested = res.inner[0]
    assert nested.status is AuthorizationStatus.AUTHORIZED
    assert [r.inner for r in nested.inner] == [a, b]
    assert res.inner[1].inner == a


def test_empty_sequence() -> None:
    from authorized import authorize

    res = authorize([], "admin")
    assert res.inner == []
    assert res.status is AuthorizationStatus.AUTHORIZED


def test_refs_forward_to_the_target() -> None:
    from authorized import AuthorizableRef, authorize

    resources = _resources()
    direct = authorize(resources, "admin")
    via_refs = authorize([AuthorizableRef(r) for r in resources], "admin")
    assert via_refs == direct

    ref = AuthorizableRef(resources[0])
    scope = Scope.parse("admin")
    assert ref.filter_unauthorized_fields(scope) == ["title"]
    assert ref.build_authorized(["title"]) == MyResource(id=1, title="", description="description")
    assert ref.authorize(scope) == resources[0].authorize(scope)


def test_ref_to_a_sequence() -> None:
    from authorized import AuthorizableRef, authorize

    res = authorize(AuthorizableRef(_resources()), "admin")
    assert len(res.inner) == 2


def test_adapter_capabilities_are_empty() -> None:
    from authorized import AuthorizableSequence, Authorizable

    seq = AuthorizableSequence(tuple(_resources()))
    assert isinstance(seq, Authorizable)
    assert seq.filter_unauthorized_fields(Scope.parse("admin")) == []
    assert seq.build_authorized(["title"]) == []


def test_hand_written_authorizable() -> None:
    from authorized import Authorizable, Authorizor

    based_user = MyUser(name="name", password="pass", email="email")
    assert isinstance(based_user, Authorizable)

    res = Authorizor.authorize(based_user, "read:user")
    assert res.inner == MyUser("name", "pass", "")
    assert res.unauthorized_fields == ("email",)
    assert based_user.calls == ["read:user"]

    users = [based_user, MyUser("name2", "pass", "email")]
    res = Authorizor.authorize(users, "read:user")
    assert [r.inner.name for r in res.inner] == ["name", "name2"]


@authorizable("admin")
@dataclass
class Validated:
    id: int
    title: Annotated[str, FieldRule(scope="read:title")]

    def __post_init__(self) -> None:
        if not self.title:
            raise ValueError("title required")


def test_items_whose_redacted_copy_fails_validation_are_dropped(caplog: pytest.LogCaptureFixture) -> None:
    from authorized import authorize

    with caplog.at_level(logging.WARNING, logger="authorized.authz.collection"):
        res = authorize([Validated(id=1, title="t"), MyResource(id=2, title="t2")], "admin")

    assert res.status is AuthorizationStatus.AUTHORIZED
    assert [r.inner.id for r in res.inner] == [2]
    assert "Dropped 1 of 2 items" in caplog.text
    assert "title required" in caplog.text

    kept = authorize([Validated(id=1, title="t")], "admin read:title")
    assert [r.inner.title for r in kept.inner] == ["t"]
