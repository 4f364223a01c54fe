"""
skipgate - conditional test exclusions

Keeps a registry of tests that must not run, each with a reason and an
optional host condition, and partitions a test set into tests to run and
tests to skip.
"""

import importlib.metadata as _metadata

# Version is defined in pyproject.toml - read it and parse into tuple (primary representation)
_raw_version = _metadata.version("skipgate")
__version_info__: tuple[int, int, int] = tuple(int(x) for x in _raw_version.split(".")[:3])  # type: ignore[assignment]
__version__: str = ".".join(str(x) for x in __version_info__)
__author__ = "skipgate Contributors"

from skipgate.conditions import (  # noqa: E402
    Condition,
    evaluate,
    parse_condition,
)
from skipgate.environment import EnvironmentSnapshot, OsFamily  # noqa: E402
from skipgate.errors import (  # noqa: E402
    ConfigurationError,
    RegistryFrozenError,
    SkipgateError,
    ValidationError,
)
from skipgate.loader import load_registry  # noqa: E402
from skipgate.registry import ExclusionEntry, ExclusionRegistry  # noqa: E402
from skipgate.selector import Selection, select  # noqa: E402

__all__ = [
    "__version__",
    "__version_info__",
    # Conditions
    "Condition",
    "evaluate",
    "parse_condition",
    # Environment
    "EnvironmentSnapshot",
    "OsFamily",
    # Errors
    "ConfigurationError",
    "RegistryFrozenError",
    "SkipgateError",
    "ValidationError",
    # Registry and selection
    "ExclusionEntry",
    "ExclusionRegistry",
    "Selection",
    "load_registry",
    "select",
]
