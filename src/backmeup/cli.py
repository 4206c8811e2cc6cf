"""CLI entry point: run a backup or edit the persisted settings."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import click

from .errors import ConfigurationError, PathMappingError
from .models import RunOptions
from .pathmap import map_to_destination
from .report import print_config, print_summary
from .settings import SETTINGS_FILENAME, Settings, load_settings, save_settings
from .walker import run_backup

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool):
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def _load(settings_path: Path) -> Settings:
    try:
        return load_settings(settings_path)
    except ConfigurationError as e:
        raise click.ClickException(str(e))


def _save(settings: Settings, settings_path: Path):
    try:
        save_settings(settings, settings_path)
    except ConfigurationError as e:
        raise click.ClickException(str(e))


def _absolute(paths) -> list[str]:
    return [os.path.abspath(p) for p in paths]


@click.group(invoke_without_command=True)
@click.version_option(package_name="backmeup")
@click.option("--config", "config_path", default=SETTINGS_FILENAME,
              envvar="BACKMEUP_CONFIG", type=click.Path(dir_okay=False),
              show_default=True, help="Settings file")
@click.option("--verbose", "-v", is_flag=True,
              help="Give verbose output")
@click.option("--preserve", "-p", is_flag=True,
              help="Preserve file modification times and permissions")
@click.option("--report", default=None, type=click.Path(dir_okay=False),
              help="Write a JSONL line per file to this path")
@click.pass_context
def main(ctx, config_path, verbose, preserve, report):
    """backmeup: copy configured directories into a backup location.

    With no command, runs the backup.
    """
    _setup_logging(verbose)
    ctx.obj = Path(config_path)

    if ctx.invoked_subcommand is not None:
        return

    settings = _load(ctx.obj)
    if not settings.directories:
        logger.warning("No directories configured; add one with 'backmeup dir add <path>'")

    options = RunOptions(verbose=verbose, preserve_attributes=preserve)
    try:
        config = settings.to_configuration()
        if report:
            try:
                report_file = open(report, "w")
            except OSError as e:
                raise click.ClickException(f"Cannot write report: {e}")
            with report_file:
                result = run_backup(config, options, report_file)
        else:
            result = run_backup(config, options)
    except ConfigurationError as e:
        raise click.ClickException(str(e))

    print_summary(result)
    if report:
        print(f"Report written to: {report}")

    if not result.ok:
        ctx.exit(1)


@click.command()
@click.argument("path", required=False)
@click.pass_obj
def loc_cmd(settings_path, path):
    """Set (or show) the backup location."""
    settings = _load(settings_path)
    if path is None:
        if not settings.location:
            print("Usage: backmeup loc <backup path>")
        else:
            print(settings.location)
        return

    settings.set_location(os.path.abspath(path))
    _save(settings, settings_path)
    print(settings.location)


@click.group()
def dir_grp():
    """Manage the list of backed up directories."""


@dir_grp.command("add")
@click.argument("paths", nargs=-1, required=True)
@click.pass_obj
def dir_add(settings_path, paths):
    """Add directories to the list of backed up directories."""
    settings = _load(settings_path)
    settings.add_directories(_absolute(paths))
    _save(settings, settings_path)
    print(f"Adding Dir {settings.directories}")


@dir_grp.command("rm")
@click.argument("path")
@click.pass_obj
def dir_rm(settings_path, path):
    """Remove a directory from the list of backed up directories."""
    settings = _load(settings_path)
    path = os.path.abspath(path)
    removed = settings.remove_directory(path)
    _save(settings, settings_path)
    if not removed:
        print(f"{path} not removed, not in directory list")


@click.group()
def exclude_grp():
    """Manage the list of excluded directories."""


@exclude_grp.command("add")
@click.argument("paths", nargs=-1, required=True)
@click.pass_obj
def exclude_add(settings_path, paths):
    """Add directories to the list of excluded directories."""
    settings = _load(settings_path)
    settings.add_exclusions(_absolute(paths))
    _save(settings, settings_path)
    print(f"Adding Exclusion {settings.exclusions}")


@exclude_grp.command("rm")
@click.argument("path")
@click.pass_obj
def exclude_rm(settings_path, path):
    """Remove a directory from the list of excluded directories."""
    settings = _load(settings_path)
    path = os.path.abspath(path)
    removed = settings.remove_exclusion(path)
    _save(settings, settings_path)
    if not removed:
        print(f"{path} not removed, not in exclusion list")


@click.command()
@click.pass_obj
def config_cmd(settings_path):
    """Show the current settings."""
    settings = _load(settings_path)
    print_config(settings.location, settings.directories, settings.exclusions)


@click.command()
@click.argument("source")
@click.pass_obj
def map_cmd(settings_path, source):
    """Show where SOURCE would be stored in the backup."""
    settings = _load(settings_path)
    try:
        config = settings.to_configuration()
        if not config.location:
            raise ConfigurationError(message="Backup location is not set")
        if not config.layout.flavour(source).is_absolute():
            source = os.path.abspath(source)
        print(map_to_destination(source, config.location, config.layout))
    except (ConfigurationError, PathMappingError) as e:
        raise click.ClickException(str(e))


# Register subcommands
main.add_command(loc_cmd, "loc")
main.add_command(dir_grp, "dir")
main.add_command(exclude_grp, "exclude")
main.add_command(config_cmd, "config")
main.add_command(map_cmd, "map")
