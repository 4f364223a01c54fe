"""
Test selector.

Partitions a test set into the tests to run and the tests to skip, using an
exclusion registry and an environment snapshot. Selection has no side
effects: running the tests is left to the caller.
"""

from __future__ import annotations

import collections.abc as _abc
import dataclasses as _dataclasses
import logging as _logging
import typing as _typing

import skipgate.environment as environment
import skipgate.registry as registry_module

_logger = _logging.getLogger(__name__)


@_dataclasses.dataclass
class Selection:
    """Partition of a test set into run and skipped groups."""

    run: list[str] = _dataclasses.field(default_factory=list)
    """Tests to run, in input order."""

    skipped: dict[str, str] = _dataclasses.field(default_factory=dict)
    """Skipped test ids mapped to their reasons, in input order."""

    def is_skipped(self, test_id: str) -> bool:
        return test_id in self.skipped

    def to_dict(self) -> dict[str, _typing.Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "run": list(self.run),
            "skipped": dict(self.skipped),
        }


def select(
    all_test_ids: _abc.Iterable[str],
    registry: registry_module.ExclusionRegistry,
    snapshot: environment.EnvironmentSnapshot,
) -> Selection:
    """
    Partition test ids into run and skipped.

    Args:
        all_test_ids: Full test set. Iteration order is preserved; repeated
            ids are only partitioned once.
        registry: Exclusion registry to consult.
        snapshot: Environment to evaluate conditions against.

    Returns:
        Selection with run ids and skipped id -> reason.
    """
    selection = Selection()
    seen: set[str] = set()

    for test_id in all_test_ids:
        if test_id in seen:
            continue
        seen.add(test_id)

        reason = registry.resolve(test_id, snapshot)
        if reason is None:
            selection.run.append(test_id)
        else:
            selection.skipped[test_id] = reason

    _logger.debug(
        "Selected %d tests to run, %d skipped (os_family=%s)",
        len(selection.run),
        len(selection.skipped),
        snapshot.os_family.value,
    )
    return selection
