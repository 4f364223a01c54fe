"""
pytest integration.

Loads an exclusion registry once per session and marks excluded tests as
skipped with their registered reason. The plugin does nothing unless
exclusion paths are configured through one of:
- ``--skipgate PATH`` (repeatable)
- the ``skipgate_paths`` ini option
- SKIPGATE_EXCLUSION_PATHS / .skipgate.yaml (see skipgate.config)

A test matches an exclusion by its full node id, by ``Class::name``, or by
its bare name. For parametrized tests the name without parameters is also
tried.
"""

from __future__ import annotations

import logging as _logging
import typing as _typing

import pydantic as _pydantic
import pytest as _pytest

import skipgate.config as config_module
import skipgate.environment as environment
import skipgate.errors as errors
import skipgate.loader as loader
import skipgate.registry as registry_module
import skipgate.selector as selector

_logger = _logging.getLogger(__name__)

_REGISTRY_KEY = _pytest.StashKey[registry_module.ExclusionRegistry]()
_SNAPSHOT_KEY = _pytest.StashKey[environment.EnvironmentSnapshot]()


def pytest_addoption(parser: _pytest.Parser) -> None:
    group = parser.getgroup("skipgate", "test exclusions")
    group.addoption(
        "--skipgate",
        action="append",
        dest="skipgate_paths",
        default=[],
        metavar="PATH",
        help="Exclusion file or directory to apply (repeatable).",
    )
    group.addoption(
        "--skipgate-os",
        dest="skipgate_os",
        default=None,
        choices=[f.value for f in environment.OsFamily],
        help="Evaluate exclusion conditions as if running on this OS family.",
    )
    parser.addini(
        "skipgate_paths",
        type="paths",
        default=[],
        help="Exclusion files or directories to apply.",
    )


def _load_settings() -> config_module.Settings:
    try:
        return config_module.Settings()
    except _pydantic.ValidationError as e:
        raise _pytest.UsageError(f"Invalid skipgate settings: {e}") from e


def pytest_configure(config: _pytest.Config) -> None:
    settings = _load_settings()

    paths: list[_typing.Any] = list(config.getoption("skipgate_paths") or [])
    if not paths:
        paths = list(config.getini("skipgate_paths") or [])
    if not paths:
        paths = list(settings.exclusion_paths)
    if not paths:
        return

    try:
        registry = loader.load_registry(paths, warn_on_duplicates=settings.warn_on_duplicates)
    except errors.SkipgateError as e:
        raise _pytest.UsageError(f"skipgate: {e}") from e

    os_override = config.getoption("skipgate_os")
    if os_override is not None:
        snapshot = environment.EnvironmentSnapshot.capture(
            host_os=settings.host_os, os_family=os_override
        )
    else:
        snapshot = settings.snapshot()

    config.stash[_REGISTRY_KEY] = registry
    config.stash[_SNAPSHOT_KEY] = snapshot
    _logger.debug(
        "skipgate active: %d exclusions, os_family=%s", len(registry), snapshot.os_family.value
    )


def candidate_ids(item: _pytest.Item) -> list[str]:
    """Ids an item may be excluded under, most specific first."""
    ids = [item.nodeid]
    names = [item.name]
    original = getattr(item, "originalname", None)
    if original and original != item.name:
        names.append(original)

    cls = getattr(item, "cls", None)
    if cls is not None:
        ids.extend(f"{cls.__name__}{loader.QUALIFIER}{name}" for name in names)
    ids.extend(names)

    # Keep order, drop repeats
    return list(dict.fromkeys(ids))


def pytest_collection_modifyitems(
    session: _pytest.Session,
    config: _pytest.Config,
    items: list[_pytest.Item],
) -> None:
    registry = config.stash.get(_REGISTRY_KEY, None)
    if registry is None:
        return
    snapshot = config.stash[_SNAPSHOT_KEY]

    per_item = [(item, candidate_ids(item)) for item in items]
    all_ids = [test_id for _, ids in per_item for test_id in ids]
    selection = selector.select(all_ids, registry, snapshot)

    for item, ids in per_item:
        for test_id in ids:
            if selection.is_skipped(test_id):
                item.add_marker(_pytest.mark.skip(reason=selection.skipped[test_id]))
                break
