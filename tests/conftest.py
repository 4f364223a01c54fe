"""
Shared pytest fixtures for skipgate tests.

This file is automatically loaded by pytest. Fixtures defined here are
available to all test files without explicit imports.
"""

import os as _os
import pathlib as _pathlib
import textwrap as _textwrap
import typing as _typing
import unittest.mock as _mock

import click.testing as _click_testing
import pytest as _pytest

import skipgate.conditions as conditions
import skipgate.config as config
import skipgate.environment as environment
import skipgate.registry as registry

REPO_ROOT = _pathlib.Path(__file__).parent.parent

SOCKET_EXCLUDES = REPO_ROOT / "examples" / "excludes" / "TestSocket.yaml"
"""Exclusion file for the socket conformance suite (19 entries, 3 Windows-only)."""

SOCKET_WINDOWS_ONLY = [
    "test_accept_loop_with_unix",
    "test_unix",
    "test_unix_server_socket",
]


def _is_skipgate_key(key: str) -> bool:
    return key.startswith("SKIPGATE_")


@_pytest.fixture(autouse=True)
def _no_skipgate_env(monkeypatch: _pytest.MonkeyPatch) -> None:
    """Keep the developer's SKIPGATE_* variables out of every test."""
    for key in list(_os.environ):
        if _is_skipgate_key(key):
            monkeypatch.delenv(key, raising=False)


@_pytest.fixture
def clean_env() -> dict[str, str]:
    """
    Return environment dict with skipgate keys removed.

    Use with mock.patch.dict to isolate tests from the actual environment.
    """
    return {k: v for k, v in _os.environ.items() if not _is_skipgate_key(k)}


@_pytest.fixture
def isolated_env(clean_env: dict[str, str]) -> _typing.Any:
    """
    Context manager that isolates tests from environment variables.

    Usage:
        def test_something(isolated_env):
            with isolated_env:
                settings = config.Settings.construct_without_dotenv()
    """
    return _mock.patch.dict(_os.environ, clean_env, clear=True)


@_pytest.fixture
def isolated_workspace(tmp_path: _pathlib.Path, monkeypatch: _pytest.MonkeyPatch) -> _pathlib.Path:
    """Temporary working directory with no .env or .skipgate.yaml."""
    workspace = tmp_path / "workspace"
    workspace.mkdir()
    monkeypatch.chdir(workspace)
    return workspace


@_pytest.fixture
def clean_settings(isolated_env: _typing.Any, isolated_workspace: _pathlib.Path) -> config.Settings:
    """
    Settings instance isolated from environment, .env and project config.

    This fixture ensures tests get predictable default settings.
    """
    with isolated_env:
        return config.Settings.construct_without_dotenv()


@_pytest.fixture
def windows() -> environment.EnvironmentSnapshot:
    """Snapshot of a Windows host as reported by a mingw toolchain."""
    return environment.EnvironmentSnapshot.capture(host_os="mingw32")


@_pytest.fixture
def linux() -> environment.EnvironmentSnapshot:
    """Snapshot of a Linux host."""
    return environment.EnvironmentSnapshot.capture(host_os="linux")


@_pytest.fixture
def scenario_registry() -> registry.ExclusionRegistry:
    """Registry with A always excluded ("x") and B excluded on Windows ("y")."""
    reg = registry.ExclusionRegistry()
    reg.register("A", "x")
    reg.register("B", "y", conditions.windows())
    reg.freeze()
    return reg


@_pytest.fixture
def socket_excludes() -> _pathlib.Path:
    """Path to the socket conformance exclusion file."""
    return SOCKET_EXCLUDES


@_pytest.fixture
def socket_windows_only() -> list[str]:
    """Socket tests that are only excluded on Windows, in file order."""
    return list(SOCKET_WINDOWS_ONLY)


@_pytest.fixture
def write_exclusions(tmp_path: _pathlib.Path) -> _typing.Callable[..., _pathlib.Path]:
    """
    Factory writing an exclusion YAML file under tmp_path.

    Usage:
        path = write_exclusions("TestFoo.yaml", '''
            excludes:
              - test: test_bar
                reason: flaky
        ''')
    """

    def _write(name: str, content: str, directory: _pathlib.Path | None = None) -> _pathlib.Path:
        target_dir = directory or tmp_path
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / name
        path.write_text(_textwrap.dedent(content), encoding="utf-8")
        return path

    return _write


@_pytest.fixture
def cli_runner() -> _click_testing.CliRunner:
    """Click CLI runner for command tests."""
    return _click_testing.CliRunner()
