"""
Main CLI entry point for skipgate.

Provides a small command-line interface using Click for validating
exclusion files and previewing how a test set would be partitioned.
"""

import json as _json
import logging as _logging
import pathlib as _pathlib
import sys as _sys
import typing as _typing

import click as _click
import pydantic as _pydantic

import skipgate
import skipgate.config as config
import skipgate.environment as environment
import skipgate.errors as errors
import skipgate.loader as loader
import skipgate.registry as registry_module
import skipgate.selector as selector

CONTEXT_SETTINGS: dict[str, _typing.Any] = {
    "help_option_names": ["-h", "--help"],
    "max_content_width": 100,
}

_PATH_TYPE = _click.Path(exists=False, path_type=_pathlib.Path)


def _configure_logging(level: int) -> None:
    _logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=_sys.stderr,
    )


def _load_registry(
    ctx: _click.Context,
    paths: tuple[_pathlib.Path, ...],
) -> tuple[registry_module.ExclusionRegistry, config.Settings]:
    settings: config.Settings = ctx.obj["settings"]
    effective = list(paths) or list(settings.exclusion_paths)
    if not effective:
        _click.echo("Error: no exclusion paths given", err=True)
        raise SystemExit(2)
    try:
        registry = loader.load_registry(effective, warn_on_duplicates=settings.warn_on_duplicates)
    except errors.SkipgateError as e:
        _click.echo(f"Error: {e}", err=True)
        raise SystemExit(1) from None
    return registry, settings


@_click.group(context_settings=CONTEXT_SETTINGS)
@_click.version_option(skipgate.__version__, "-V", "--version", prog_name="skipgate")
@_click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@_click.pass_context
def cli(ctx: _click.Context, verbose: bool) -> None:
    """skipgate - conditional test exclusions."""
    try:
        settings = config.Settings()
    except _pydantic.ValidationError as e:
        _click.echo(f"Error: invalid settings: {e}", err=True)
        raise SystemExit(2) from None

    _configure_logging(_logging.DEBUG if verbose else settings.log_level_number)
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@cli.command()
@_click.argument("paths", nargs=-1, type=_PATH_TYPE)
@_click.option("--json", "as_json", is_flag=True, help="Print the loaded registry as JSON.")
@_click.pass_context
def check(ctx: _click.Context, paths: tuple[_pathlib.Path, ...], as_json: bool) -> None:
    """Validate exclusion files and directories."""
    registry, _ = _load_registry(ctx, paths)

    if as_json:
        _click.echo(_json.dumps(registry.to_dict(), indent=2))
        return

    conditional = sum(1 for entry in registry if entry.condition is not None)
    _click.echo(f"OK: {len(registry)} exclusions ({conditional} conditional)")
    for test_id in registry.duplicates():
        _click.echo(f"  duplicate: {test_id}")


@cli.command("select")
@_click.argument("paths", nargs=-1, type=_PATH_TYPE)
@_click.option(
    "-t",
    "--test",
    "test_ids",
    multiple=True,
    required=True,
    help="Test id to partition (repeatable).",
)
@_click.option(
    "--os",
    "os_family",
    type=_click.Choice([f.value for f in environment.OsFamily]),
    default=None,
    help="Evaluate conditions as if running on this OS family.",
)
@_click.option("--json", "as_json", is_flag=True, help="Print the partition as JSON.")
@_click.pass_context
def select_command(
    ctx: _click.Context,
    paths: tuple[_pathlib.Path, ...],
    test_ids: tuple[str, ...],
    os_family: str | None,
    as_json: bool,
) -> None:
    """Show which of the given tests would run and which would be skipped."""
    registry, settings = _load_registry(ctx, paths)

    if os_family is not None:
        snapshot = environment.EnvironmentSnapshot.capture(
            host_os=settings.host_os, os_family=os_family
        )
    else:
        snapshot = settings.snapshot()

    selection = selector.select(test_ids, registry, snapshot)

    if as_json:
        payload = selection.to_dict()
        payload["environment"] = snapshot.to_dict()
        _click.echo(_json.dumps(payload, indent=2))
        return

    for test_id in selection.run:
        _click.echo(f"run   {test_id}")
    for test_id, reason in selection.skipped.items():
        _click.echo(f"skip  {test_id}: {reason}")


def main() -> None:
    """Console script entry point."""
    cli(prog_name="skipgate")


if __name__ == "__main__":
    main()
