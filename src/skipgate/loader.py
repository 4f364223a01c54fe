"""
Exclusion file loading.

Exclusions are declared in YAML files, one file per test case class:

```yaml
version: 1
conditions:
  windows:
    kind: host_os_matches
    pattern: "mswin|mingw"
excludes:
  - test: test_accept_loop
    reason: needs investigation
  - test: test_unix
    reason: needs investigation
    when: windows
```

``when`` may name a condition from the ``conditions`` section, use an OS
family shorthand (``windows``, ``unix``, ``other``), or be an inline
condition mapping. When a directory is loaded, test ids are qualified with
the file stem (``TestSocket::test_unix``).

Every file is fully validated before a registry is returned, so a single bad
entry aborts loading instead of producing a partial registry.
"""

from __future__ import annotations

import collections.abc as _abc
import logging as _logging
import pathlib as _pathlib
import typing as _typing

import pydantic as _pydantic
import yaml as _yaml

import skipgate.conditions as conditions
import skipgate.errors as errors
import skipgate.registry as registry_module

_logger = _logging.getLogger(__name__)

EXCLUSION_FILE_SUFFIXES = (".yaml", ".yml")

QUALIFIER = "::"
"""Separator between a test case class and a test name (pytest node-id style)."""


class ExcludeDefinition(_pydantic.BaseModel):
    """A single exclusion as written in an exclusion file."""

    model_config = _pydantic.ConfigDict(extra="forbid")

    test: str | None = None
    """Test name (qualified with the file stem when loaded from a directory)."""

    reason: str | None = None
    """Why the test is excluded."""

    when: str | dict[str, _typing.Any] | None = None
    """Optional condition: a named condition, OS family shorthand, or inline mapping."""


class ExclusionFile(_pydantic.BaseModel):
    """Complete contents of an exclusion file."""

    model_config = _pydantic.ConfigDict(extra="forbid")

    version: _typing.Literal[1] = 1
    """File format version."""

    conditions: dict[str, dict[str, _typing.Any] | str] = _pydantic.Field(default_factory=dict)
    """Named conditions that entries can refer to by name."""

    excludes: list[ExcludeDefinition] = _pydantic.Field(default_factory=list)
    """Exclusions in declaration order."""


def _read_exclusion_file(path: _pathlib.Path) -> ExclusionFile:
    if not path.is_file():
        raise errors.ConfigurationError(f"Exclusion file not found: {path}")

    try:
        content = path.read_text(encoding="utf-8")
        data = _yaml.safe_load(content) or {}
        return ExclusionFile.model_validate(data)
    except OSError as e:
        raise errors.ConfigurationError(f"Cannot read exclusion file {path}: {e}") from e
    except _yaml.YAMLError as e:
        raise errors.ConfigurationError(f"Invalid YAML in {path}: {e}") from e
    except _pydantic.ValidationError as e:
        raise errors.ConfigurationError(f"Invalid exclusion file {path}: {e}") from e


def _resolve_when(
    when: str | dict[str, _typing.Any] | None,
    named: dict[str, conditions.Condition],
    path: _pathlib.Path,
) -> conditions.Condition | None:
    if when is None:
        return None
    if isinstance(when, str) and when in named:
        return named[when]
    try:
        return conditions.parse_condition(when)
    except errors.ConfigurationError as e:
        raise errors.ConfigurationError(f"{path}: {e}") from e


def load_exclusion_file(
    path: _pathlib.Path,
    *,
    prefix: str | None = None,
) -> list[registry_module.ExclusionEntry]:
    """
    Load and validate all exclusions declared in a file.

    Args:
        path: Path to the YAML exclusion file.
        prefix: Optional qualifier prepended to each test name as
            ``<prefix>::<test>``.

    Returns:
        Validated entries in declaration order.

    Raises:
        ConfigurationError: If the file is missing or malformed, or a
            condition is invalid.
        ValidationError: If an entry has an empty test name or reason.
    """
    exclusion_file = _read_exclusion_file(path)

    named: dict[str, conditions.Condition] = {}
    for name, data in exclusion_file.conditions.items():
        try:
            named[name] = conditions.parse_condition(data)
        except errors.ConfigurationError as e:
            raise errors.ConfigurationError(f"{path}: condition {name!r}: {e}") from e

    entries: list[registry_module.ExclusionEntry] = []
    for definition in exclusion_file.excludes:
        test_name = definition.test.strip() if isinstance(definition.test, str) else ""
        if not test_name:
            raise errors.ValidationError(
                f"{path}: Exclusion test id must be a non-empty string, got {definition.test!r}"
            )
        test_id = f"{prefix}{QUALIFIER}{test_name}" if prefix else test_name
        condition = _resolve_when(definition.when, named, path)
        try:
            entry = registry_module.make_entry(
                test_id, definition.reason, condition, source=str(path)
            )
        except errors.ValidationError as e:
            raise errors.ValidationError(f"{path}: {e}") from e
        entries.append(entry)

    _logger.debug("Loaded %d exclusions from %s", len(entries), path)
    return entries


def load_exclusion_dir(path: _pathlib.Path) -> list[registry_module.ExclusionEntry]:
    """
    Load every exclusion file in a directory.

    Files are loaded in sorted order. Test ids are qualified with the file
    stem, so ``excludes/TestSocket.yaml`` yields ``TestSocket::<test>``.

    Args:
        path: Directory containing exclusion files.

    Returns:
        Validated entries from all files.
    """
    if not path.is_dir():
        raise errors.ConfigurationError(f"Exclusion directory not found: {path}")

    entries: list[registry_module.ExclusionEntry] = []
    for file_path in sorted(path.iterdir()):
        if file_path.is_file() and file_path.suffix in EXCLUSION_FILE_SUFFIXES:
            entries.extend(load_exclusion_file(file_path, prefix=file_path.stem))
    return entries


def load_entries(
    paths: _abc.Iterable[_pathlib.Path | str],
) -> list[registry_module.ExclusionEntry]:
    """Load entries from a mix of exclusion files and directories."""
    entries: list[registry_module.ExclusionEntry] = []
    for raw_path in paths:
        path = _pathlib.Path(raw_path)
        if path.is_dir():
            entries.extend(load_exclusion_dir(path))
        else:
            entries.extend(load_exclusion_file(path))
    return entries


def load_registry(
    paths: _abc.Iterable[_pathlib.Path | str],
    *,
    warn_on_duplicates: bool = True,
) -> registry_module.ExclusionRegistry:
    """
    Build a frozen registry from exclusion files and directories.

    Nothing is returned unless every path loads cleanly.

    Args:
        paths: Exclusion files and/or directories.
        warn_on_duplicates: Log a warning for test ids declared more than once.

    Returns:
        Frozen ExclusionRegistry.
    """
    entries = load_entries(paths)
    registry = registry_module.ExclusionRegistry.from_entries(entries)

    if warn_on_duplicates:
        for test_id in registry.duplicates():
            sources = ", ".join(
                e.source or "<unknown>" for e in registry.entries_for(test_id)
            )
            _logger.warning(
                "Test %r is excluded more than once (%s); the first matching entry wins",
                test_id,
                sources,
            )

    return registry
