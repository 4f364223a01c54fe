"""
Condition evaluator for conditional exclusions.

Conditions are a small tagged variant, discriminated on ``kind``:
- always: always true
- os_family: true when the snapshot's OS family equals ``family``
- host_os_matches: true when ``pattern`` (regex) is found in the host OS string
- not / any_of / all_of: combinators over other conditions

Conditions are pure functions of an EnvironmentSnapshot. Anything that could
go wrong (unknown kinds, bad regexes, missing fields) is reported by
parse_condition() as a ConfigurationError, so evaluate() is total.
"""

from __future__ import annotations

import abc as _abc
import collections.abc as _collections_abc
import re as _re
import typing as _typing

import pydantic as _pydantic

import skipgate.environment as environment
import skipgate.errors as errors


class _ConditionBase(_pydantic.BaseModel):
    """Common configuration for all condition variants."""

    model_config = _pydantic.ConfigDict(frozen=True, extra="forbid")

    @_abc.abstractmethod
    def evaluate(self, snapshot: environment.EnvironmentSnapshot) -> bool:
        """Return True when the condition holds for ``snapshot``."""

    def describe(self) -> str:
        """Short human-readable rendering, used in listings."""
        return self.kind  # type: ignore[attr-defined, no-any-return]


class AlwaysCondition(_ConditionBase):
    """Always true. Equivalent to registering without a condition."""

    kind: _typing.Literal["always"] = "always"

    def evaluate(self, snapshot: environment.EnvironmentSnapshot) -> bool:
        return True


class OsFamilyCondition(_ConditionBase):
    """True when the host belongs to the given OS family."""

    kind: _typing.Literal["os_family"] = "os_family"
    family: environment.OsFamily

    def evaluate(self, snapshot: environment.EnvironmentSnapshot) -> bool:
        return snapshot.os_family is self.family

    def describe(self) -> str:
        return f"os_family={self.family.value}"


class HostOsMatchesCondition(_ConditionBase):
    """True when the regex pattern is found in the raw host OS string."""

    kind: _typing.Literal["host_os_matches"] = "host_os_matches"
    pattern: str

    @_pydantic.field_validator("pattern")
    @classmethod
    def _check_pattern(cls, value: str) -> str:
        if not value:
            raise ValueError("pattern must not be empty")
        try:
            _re.compile(value)
        except _re.error as e:
            raise ValueError(f"invalid regex {value!r}: {e}") from e
        return value

    def evaluate(self, snapshot: environment.EnvironmentSnapshot) -> bool:
        return _re.search(self.pattern, snapshot.host_os) is not None

    def describe(self) -> str:
        return f"host_os =~ /{self.pattern}/"


class NotCondition(_ConditionBase):
    """Negates the inner condition."""

    kind: _typing.Literal["not"] = "not"
    condition: Condition

    def evaluate(self, snapshot: environment.EnvironmentSnapshot) -> bool:
        return not self.condition.evaluate(snapshot)

    def describe(self) -> str:
        return f"not ({self.condition.describe()})"


class AnyOfCondition(_ConditionBase):
    """True when at least one inner condition is true."""

    kind: _typing.Literal["any_of"] = "any_of"
    conditions: tuple[Condition, ...] = _pydantic.Field(min_length=1)

    def evaluate(self, snapshot: environment.EnvironmentSnapshot) -> bool:
        return any(c.evaluate(snapshot) for c in self.conditions)

    def describe(self) -> str:
        return " or ".join(f"({c.describe()})" for c in self.conditions)


class AllOfCondition(_ConditionBase):
    """True when every inner condition is true."""

    kind: _typing.Literal["all_of"] = "all_of"
    conditions: tuple[Condition, ...] = _pydantic.Field(min_length=1)

    def evaluate(self, snapshot: environment.EnvironmentSnapshot) -> bool:
        return all(c.evaluate(snapshot) for c in self.conditions)

    def describe(self) -> str:
        return " and ".join(f"({c.describe()})" for c in self.conditions)


Condition = _typing.Annotated[
    _typing.Union[
        AlwaysCondition,
        OsFamilyCondition,
        HostOsMatchesCondition,
        NotCondition,
        AnyOfCondition,
        AllOfCondition,
    ],
    _pydantic.Field(discriminator="kind"),
]

NotCondition.model_rebuild()
AnyOfCondition.model_rebuild()
AllOfCondition.model_rebuild()

CONDITION_KINDS: frozenset[str] = frozenset(
    {"always", "os_family", "host_os_matches", "not", "any_of", "all_of"}
)
"""All condition kinds understood by parse_condition()."""

_FIELDLESS_KINDS = frozenset({"always"})

_condition_adapter: _pydantic.TypeAdapter[_typing.Any] = _pydantic.TypeAdapter(Condition)


def _normalize(data: _typing.Any) -> _typing.Any:
    """Expand string shorthands into mappings, recursively."""
    if isinstance(data, _ConditionBase):
        return data
    if isinstance(data, str):
        if data in _FIELDLESS_KINDS:
            return {"kind": data}
        if data in {f.value for f in environment.OsFamily}:
            return {"kind": "os_family", "family": data}
        raise errors.ConfigurationError(
            f"Unknown condition {data!r}. Expected one of "
            f"{sorted(_FIELDLESS_KINDS | {f.value for f in environment.OsFamily})} "
            f"or a mapping with a 'kind' key"
        )
    if isinstance(data, _collections_abc.Mapping):
        kind = data.get("kind")
        if kind is None:
            raise errors.ConfigurationError(f"Condition is missing 'kind': {dict(data)!r}")
        if kind not in CONDITION_KINDS:
            raise errors.ConfigurationError(
                f"Unknown condition kind {kind!r}. Known kinds: {sorted(CONDITION_KINDS)}"
            )
        normalized = dict(data)
        if "condition" in normalized:
            normalized["condition"] = _normalize(normalized["condition"])
        if "conditions" in normalized:
            inner = normalized["conditions"]
            if not isinstance(inner, (list, tuple)):
                raise errors.ConfigurationError(
                    f"'{kind}' expects a list of conditions, got {type(inner).__name__}"
                )
            normalized["conditions"] = [_normalize(c) for c in inner]
        return normalized
    raise errors.ConfigurationError(
        f"Condition must be a string or mapping, got {type(data).__name__}"
    )


def parse_condition(data: _typing.Any) -> Condition:
    """
    Build a condition from declarative data.

    Accepts an existing condition (returned unchanged), a mapping with a
    ``kind`` key, a field-less kind name (``"always"``), or an OS family
    shorthand (``"windows"``, ``"unix"``, ``"other"``).

    Args:
        data: Declarative condition data.

    Returns:
        A validated condition.

    Raises:
        ConfigurationError: If the data does not describe a valid condition.
    """
    if isinstance(data, _ConditionBase):
        return data  # type: ignore[return-value]
    normalized = _normalize(data)
    try:
        return _condition_adapter.validate_python(normalized)  # type: ignore[no-any-return]
    except _pydantic.ValidationError as e:
        raise errors.ConfigurationError(f"Invalid condition {data!r}: {e}") from e


def is_condition(value: _typing.Any) -> bool:
    """Check whether a value is an already-built condition."""
    return isinstance(value, _ConditionBase)


def evaluate(
    condition: Condition | None,
    snapshot: environment.EnvironmentSnapshot,
) -> bool:
    """
    Evaluate a condition against a snapshot.

    An absent condition is always true.
    """
    if condition is None:
        return True
    return condition.evaluate(snapshot)


def always() -> AlwaysCondition:
    """Condition that is always true."""
    return AlwaysCondition()


def os_family(family: environment.OsFamily | str) -> OsFamilyCondition:
    """Condition on the host OS family."""
    return parse_condition({"kind": "os_family", "family": family})  # type: ignore[return-value]


def windows() -> OsFamilyCondition:
    """Condition that holds on Windows-family hosts."""
    return os_family(environment.OsFamily.WINDOWS)


def host_os_matches(pattern: str) -> HostOsMatchesCondition:
    """Condition on a regex search over the raw host OS string."""
    return parse_condition({"kind": "host_os_matches", "pattern": pattern})  # type: ignore[return-value]
