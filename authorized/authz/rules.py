"""Declarative field rules.

Entity types declare which scope each field requires, and what a redacted field falls back to,
with `typing.Annotated`:

    @authorizable("admin")
    @dataclass(frozen=True)
    class Resource:
        id: int
        title: Annotated[str, FieldRule(scope="read:title")]
        summary: Annotated[str, FieldRule(scope="read:summary", default=lambda: "hidden")]

The same annotations work on pydantic models. The rule table is read at decoration time,
or on first use when an annotation names a class declared further down the module. The scope
texts inside it are parsed on first use so a malformed rule only fails the entities that carry it.
"""

from __future__ import annotations

import copy
import dataclasses
import types
from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from typing import (
    Annotated,
    Any,
    Callable,
    Dict,
    List,
    Literal,
    Optional,
    Sequence,
    Tuple,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)

from pydantic import BaseModel

from authorized.core.errors import AuthorizedError, BuildError, ParseScopeError, raise_collected
from authorized.core.scope import InvalidCharacter, Scope, parse_scope

# Dataclass fields may also carry their rule as `field(metadata={RULE_METADATA_KEY: FieldRule(...)})`.
RULE_METADATA_KEY = "authorized"
RULES_ATTR = "__authorized_rules__"


@dataclass(frozen=True)
class FieldRule:
    scope: Optional[str] = None
    default: Optional[Callable[[], Any]] = None


def _none() -> None:
    return None


_BUILTIN_ZEROS: Dict[type, Callable[[], Any]] = {
    str: str,
    int: int,
    float: float,
    bool: bool,
    bytes: bytes,
    list: list,
    dict: dict,
    set: set,
    frozenset: frozenset,
    tuple: tuple,
}


def _instantiate_or_none(tp: type) -> Callable[[], Any]:
    def make() -> Any:
        try:
            return tp()
        except (TypeError, ValueError):
            # Required constructor arguments (or pydantic validation errors).
            return None

    return make


def zero_value_factory(tp: Any) -> Callable[[], Any]:
    """
    Factory for the "empty" value of an annotated type, used when a redacted field has no default.

    Optional types zero to None; builtins to their empty value; nested dataclasses and pydantic
    models to a no-argument instance when they allow one. Anything else zeroes to None.
    """
    if tp is Any or tp is None or tp is type(None):
        return _none

    origin = get_origin(tp)
    if origin is Annotated:
        return zero_value_factory(get_args(tp)[0])
    if origin is Union or origin is types.UnionType:
        args = get_args(tp)
        if type(None) in args:
            return _none
        return zero_value_factory(args[0])
    if origin is Literal:
        return _none
    if origin is not None:
        tp = origin

    if tp in _BUILTIN_ZEROS:
        return _BUILTIN_ZEROS[tp]
    if isinstance(tp, type):
        if issubclass(tp, Enum):
            return _none
        if dataclasses.is_dataclass(tp) or issubclass(tp, BaseModel):
            return _instantiate_or_none(tp)
    return _none


@dataclass(frozen=True)
class FieldSpec:
    name: str
    rule: FieldRule
    zero: Callable[[], Any]

    def redacted_value(self, type_name: str) -> Any:
        provider = self.rule.default or self.zero
        try:
            return provider()
        except Exception as e:
            raise BuildError(type_name, self.name, f"{type(e).__name__}: {e}") from e


@dataclass(frozen=True)
class CompiledRules:
    field_scopes: Tuple[Tuple[str, Scope], ...]
    entity_scopes: Tuple[Scope, ...]


def _parse_rule_scope(text: str, errors: List[AuthorizedError]) -> Optional[Scope]:
    try:
        return parse_scope(text)
    except InvalidCharacter as e:
        errors.append(ParseScopeError(e, source=text))
        return None


@dataclass(frozen=True)
class RuleTable:
    type_name: str
    is_model: bool
    entity_scopes: Tuple[str, ...]
    owner: type = dataclasses.field(compare=False, repr=False)

    @cached_property
    def fields(self) -> Tuple[FieldSpec, ...]:
        if self.is_model:
            return tuple(_model_fields(self.owner))
        return tuple(_dataclass_fields(self.owner))

    @cached_property
    def compiled(self) -> CompiledRules:
        """
        Parse every scope text of the table.

        All failures are collected so a single pass reports every malformed rule.
        Only a successful compilation is memoized.
        """
        errors: List[AuthorizedError] = []
        field_scopes: List[Tuple[str, Scope]] = []
        for spec in self.fields:
            if spec.rule.scope is None:
                continue
            parsed = _parse_rule_scope(spec.rule.scope, errors)
            if parsed is not None:
                field_scopes.append((spec.name, parsed))

        entity_scopes: List[Scope] = []
        for text in self.entity_scopes:
            parsed = _parse_rule_scope(text, errors)
            if parsed is not None:
                entity_scopes.append(parsed)

        raise_collected(errors)
        return CompiledRules(field_scopes=tuple(field_scopes), entity_scopes=tuple(entity_scopes))

    def build_redacted(self, entity: Any, unauthorized_fields: Sequence[str]) -> Any:
        redact = set(unauthorized_fields)
        overrides = {s.name: s.redacted_value(self.type_name) for s in self.fields if s.name in redact}

        # replace() re-runs __init__ and __post_init__, which may reject a redacted value.
        try:
            if self.is_model:
                return entity.model_copy(update=overrides, deep=True)
            kept = {s.name: copy.deepcopy(getattr(entity, s.name)) for s in self.fields if s.name not in overrides}
            return dataclasses.replace(entity, **kept, **overrides)
        except Exception as e:
            raise BuildError(self.type_name, None, f"{type(e).__name__}: {e}") from e


def _split_annotated(tp: Any) -> Tuple[Any, Optional[FieldRule]]:
    if get_origin(tp) is not Annotated:
        return tp, None
    base, *extras = get_args(tp)
    rules = [m for m in extras if isinstance(m, FieldRule)]
    return base, (rules[-1] if rules else None)


def _dataclass_fields(cls: type) -> List[FieldSpec]:
    hints = get_type_hints(cls, include_extras=True)
    out: List[FieldSpec] = []
    for f in dataclasses.fields(cls):
        base, rule = _split_annotated(hints.get(f.name, Any))
        meta_rule = f.metadata.get(RULE_METADATA_KEY)
        if isinstance(meta_rule, FieldRule):
            rule = meta_rule
        # Non-init fields are derived by __post_init__; they are never copied nor redacted.
        if not f.init:
            if rule is not None:
                raise TypeError(f"{cls.__name__}.{f.name} is init=False and cannot carry a FieldRule")
            continue
        out.append(FieldSpec(name=f.name, rule=rule or FieldRule(), zero=zero_value_factory(base)))
    return out


def _model_fields(cls: type) -> List[FieldSpec]:
    out: List[FieldSpec] = []
    for name, info in cls.model_fields.items():
        rules = [m for m in info.metadata if isinstance(m, FieldRule)]
        rule = rules[-1] if rules else FieldRule()
        out.append(FieldSpec(name=name, rule=rule, zero=zero_value_factory(info.annotation)))
    return out


def _field_signature(cls: type) -> Tuple[Any, ...]:
    if issubclass(cls, BaseModel):
        return tuple((name, info.annotation, tuple(info.metadata)) for name, info in cls.model_fields.items())
    return tuple((f.name, f.type, f.init, f.metadata.get(RULE_METADATA_KEY)) for f in dataclasses.fields(cls))


def build_rule_table(cls: type, entity_scopes: Sequence[str]) -> RuleTable:
    if isinstance(cls, type) and issubclass(cls, BaseModel):
        is_model = True
    elif isinstance(cls, type) and dataclasses.is_dataclass(cls):
        is_model = False
    else:
        raise TypeError(f"{getattr(cls, '__name__', cls)!r} must be a dataclass or a pydantic model")

    for text in entity_scopes:
        if not isinstance(text, str):
            raise TypeError(f"entity scope must be a str, got {type(text).__name__}")

    table = RuleTable(
        type_name=cls.__name__,
        is_model=is_model,
        entity_scopes=tuple(entity_scopes),
        owner=cls,
    )
    try:
        table.fields
    except NameError:
        # Annotations naming a class declared further down; resolved on first use.
        pass
    return table


def rules_for(cls_or_entity: Any) -> RuleTable:
    """
    Rule table of a decorated type.

    A subclass of a decorated type reuses the parent's table as long as it leaves the fields
    unchanged; one that adds or redeclares fields must be decorated itself.
    """
    cls = cls_or_entity if isinstance(cls_or_entity, type) else type(cls_or_entity)
    for klass in cls.__mro__:
        table = klass.__dict__.get(RULES_ATTR)
        if not isinstance(table, RuleTable):
            continue
        if klass is cls or _field_signature(klass) == _field_signature(cls):
            return table
        raise TypeError(
            f"{cls.__name__} changes the fields of {klass.__name__}; decorate it with @authorizable"
        )
    raise TypeError(f"{cls.__name__} has no authorization rules; decorate it with @authorizable")
