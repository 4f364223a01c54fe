"""
Exclusion registry.

The registry holds ExclusionEntry records in registration order and resolves
the active skip reason for a test id against an environment snapshot.

A registry is populated once (programmatically or through skipgate.loader),
frozen, and then shared read-only. Nothing here consults global state: the
registry is passed explicitly to whatever needs it.
"""

from __future__ import annotations

import collections.abc as _abc
import dataclasses as _dataclasses
import logging as _logging
import typing as _typing

import skipgate.conditions as conditions
import skipgate.environment as environment
import skipgate.errors as errors

_logger = _logging.getLogger(__name__)


@_dataclasses.dataclass(frozen=True)
class ExclusionEntry:
    """A test id paired with a skip reason and an optional activation condition."""

    test_id: str
    reason: str
    condition: conditions.Condition | None = None
    source: str | None = None
    """Where the entry was declared (file path), if known."""

    def applies_to(self, snapshot: environment.EnvironmentSnapshot) -> bool:
        """Whether this entry excludes its test under the given snapshot."""
        return conditions.evaluate(self.condition, snapshot)

    def to_dict(self) -> dict[str, _typing.Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "test_id": self.test_id,
            "reason": self.reason,
            "condition": self.condition.model_dump(mode="json") if self.condition else None,
            "source": self.source,
        }


def make_entry(
    test_id: str,
    reason: str | None,
    condition: _typing.Any = None,
    *,
    source: str | None = None,
) -> ExclusionEntry:
    """
    Validate inputs and build an ExclusionEntry.

    Args:
        test_id: Test identifier. Must be non-empty.
        reason: Human-readable skip reason. Must be non-blank.
        condition: A condition, declarative condition data, or None.
        source: Optional origin of the entry, for diagnostics.

    Raises:
        ValidationError: If test_id or reason is empty.
        ConfigurationError: If condition is not a valid condition.
    """
    if not isinstance(test_id, str) or not test_id.strip():
        raise errors.ValidationError(f"Exclusion test id must be a non-empty string, got {test_id!r}")
    if not isinstance(reason, str) or not reason.strip():
        raise errors.ValidationError(f"Exclusion for {test_id!r} must have a non-empty reason")
    parsed = conditions.parse_condition(condition) if condition is not None else None
    return ExclusionEntry(test_id=test_id, reason=reason, condition=parsed, source=source)


class ExclusionRegistry:
    """
    Ordered registry of exclusion entries.

    Handles:
    - Registration with up-front validation
    - First-match resolution per test id
    - Freezing once start-up is done
    """

    def __init__(self) -> None:
        self._entries: list[ExclusionEntry] = []
        self._by_test: dict[str, list[ExclusionEntry]] = {}
        self._frozen = False

    @classmethod
    def from_entries(cls, entries: _abc.Iterable[ExclusionEntry]) -> ExclusionRegistry:
        """Build a frozen registry from already-validated entries."""
        registry = cls()
        for entry in entries:
            registry._add(entry)
        registry.freeze()
        return registry

    # Registration
    def register(
        self,
        test_id: str,
        reason: str,
        condition: _typing.Any = None,
        *,
        source: str | None = None,
    ) -> ExclusionEntry:
        """
        Append an exclusion entry.

        Duplicate test ids are allowed; resolve() picks the first
        registered entry whose condition holds.

        Args:
            test_id: Test identifier.
            reason: Skip reason. Must be non-blank.
            condition: Optional condition or declarative condition data.
                None means the test is always excluded.
            source: Optional origin of the entry, for diagnostics.

        Returns:
            The registered entry.

        Raises:
            RegistryFrozenError: If the registry has been frozen.
            ValidationError: If test_id or reason is empty.
            ConfigurationError: If condition is invalid.
        """
        if self._frozen:
            raise errors.RegistryFrozenError(
                f"Cannot register {test_id!r}: exclusion registry is frozen"
            )
        entry = make_entry(test_id, reason, condition, source=source)
        self._add(entry)
        return entry

    def _add(self, entry: ExclusionEntry) -> None:
        self._entries.append(entry)
        self._by_test.setdefault(entry.test_id, []).append(entry)

    def freeze(self) -> None:
        """Make the registry read-only."""
        if not self._frozen:
            _logger.debug("Freezing exclusion registry with %d entries", len(self._entries))
        self._frozen = True

    @property
    def frozen(self) -> bool:
        """Whether the registry is read-only."""
        return self._frozen

    # Lookup
    def resolve(
        self,
        test_id: str,
        snapshot: environment.EnvironmentSnapshot,
    ) -> str | None:
        """
        Get the active skip reason for a test.

        Args:
            test_id: Test identifier.
            snapshot: Environment to evaluate conditions against.

        Returns:
            Reason of the first registered entry for test_id whose condition
            is absent or true, or None if the test should run.
        """
        for entry in self._by_test.get(test_id, ()):
            if entry.applies_to(snapshot):
                return entry.reason
        return None

    def entries_for(self, test_id: str) -> list[ExclusionEntry]:
        """All entries registered for a test id, in registration order."""
        return list(self._by_test.get(test_id, ()))

    def duplicates(self) -> list[str]:
        """Test ids with more than one entry, in first-registered order."""
        return [test_id for test_id, entries in self._by_test.items() if len(entries) > 1]

    @property
    def entries(self) -> tuple[ExclusionEntry, ...]:
        """All entries in registration order."""
        return tuple(self._entries)

    def __iter__(self) -> _abc.Iterator[ExclusionEntry]:
        return iter(tuple(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, test_id: object) -> bool:
        return test_id in self._by_test

    # Serialization
    def to_dict(self) -> dict[str, _typing.Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "frozen": self._frozen,
            "entry_count": len(self._entries),
            "entries": [e.to_dict() for e in self._entries],
        }
