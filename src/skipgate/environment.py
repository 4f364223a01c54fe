"""
Environment snapshots used to evaluate exclusion conditions.

A snapshot is captured once at start-up and passed explicitly to every
evaluation. Conditions never look at the live host themselves.
"""

from __future__ import annotations

import dataclasses as _dataclasses
import enum as _enum
import re as _re
import sys as _sys
import typing as _typing

_WINDOWS_HOST_RE = _re.compile(r"mswin|mingw|win32|windows", _re.IGNORECASE)
_UNIX_HOST_RE = _re.compile(r"linux|darwin|bsd|cygwin|sunos|solaris|aix|hp-ux", _re.IGNORECASE)


class OsFamily(str, _enum.Enum):
    """Coarse host operating system family."""

    WINDOWS = "windows"
    UNIX = "unix"
    OTHER = "other"


def classify_host_os(host_os: str) -> OsFamily:
    """
    Map a raw host OS string onto an OS family.

    Accepts both Python-style platform names (``win32``, ``linux``,
    ``darwin``) and toolchain-style names (``mswin32``, ``mingw32``,
    ``x86_64-linux``).

    Args:
        host_os: Raw host OS identifier.

    Returns:
        The matching OsFamily, or OTHER when nothing matches.
    """
    if _WINDOWS_HOST_RE.search(host_os):
        return OsFamily.WINDOWS
    if _UNIX_HOST_RE.search(host_os):
        return OsFamily.UNIX
    return OsFamily.OTHER


@_dataclasses.dataclass(frozen=True)
class EnvironmentSnapshot:
    """Immutable capture of the host facts that conditions may inspect."""

    host_os: str
    """Raw host OS identifier (e.g. ``linux``, ``win32``, ``mingw32``)."""

    os_family: OsFamily
    """Host OS family derived from host_os unless explicitly overridden."""

    @property
    def is_windows(self) -> bool:
        """Whether the host belongs to the Windows family."""
        return self.os_family is OsFamily.WINDOWS

    @classmethod
    def capture(
        cls,
        host_os: str | None = None,
        os_family: OsFamily | str | None = None,
    ) -> EnvironmentSnapshot:
        """
        Capture a snapshot of the current host.

        Args:
            host_os: Override for the host OS string. Defaults to sys.platform.
            os_family: Override for the OS family. When omitted the family is
                classified from host_os.

        Returns:
            A new EnvironmentSnapshot.
        """
        if host_os is None:
            host_os = _sys.platform
        family = OsFamily(os_family) if os_family is not None else classify_host_os(host_os)
        return cls(host_os=host_os, os_family=family)

    def to_dict(self) -> dict[str, _typing.Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "host_os": self.host_os,
            "os_family": self.os_family.value,
            "is_windows": self.is_windows,
        }
