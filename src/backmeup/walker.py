"""Backup orchestrator: walk configured directories and copy every file."""

from __future__ import annotations

import logging
import os
import stat
from collections.abc import Iterator
from typing import Optional, TextIO

from .copier import copy_file
from .errors import ConfigurationError, SubtreeTraversalError
from .models import (
    BackupConfiguration,
    EntryKind,
    RunOptions,
    RunReport,
    VolumeStyle,
    WalkEntry,
)
from .report import write_report_line

logger = logging.getLogger(__name__)


def walk_entries(root: str, exclusions: frozenset[str] = frozenset()) -> Iterator[WalkEntry]:
    """Yield entries under root depth-first, parents before children.

    Excluded directories are yielded as EXCLUDED and not descended into.
    Symlinks are never followed. A directory that cannot be listed yields
    one ERROR entry and its subtree is abandoned.
    """
    try:
        root_stat = os.stat(root)
    except OSError as e:
        yield WalkEntry(root, EntryKind.ERROR, SubtreeTraversalError(root, cause=e))
        return

    if not stat.S_ISDIR(root_stat.st_mode):
        kind = EntryKind.FILE if stat.S_ISREG(root_stat.st_mode) else EntryKind.OTHER
        yield WalkEntry(root, kind)
        return

    if root in exclusions:
        yield WalkEntry(root, EntryKind.EXCLUDED)
        return

    stack = [root]
    while stack:
        directory = stack.pop()
        yield WalkEntry(directory, EntryKind.DIRECTORY)
        try:
            with os.scandir(directory) as it:
                entries = list(it)
        except OSError as e:
            yield WalkEntry(directory, EntryKind.ERROR, SubtreeTraversalError(directory, cause=e))
            continue

        subdirs = []
        for entry in entries:
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
                is_file = not is_dir and entry.is_file(follow_symlinks=False)
            except OSError as e:
                yield WalkEntry(entry.path, EntryKind.ERROR, SubtreeTraversalError(entry.path, cause=e))
                continue

            if is_dir:
                if entry.path in exclusions:
                    yield WalkEntry(entry.path, EntryKind.EXCLUDED)
                else:
                    subdirs.append(entry.path)
            elif is_file:
                yield WalkEntry(entry.path, EntryKind.FILE)
            else:
                yield WalkEntry(entry.path, EntryKind.OTHER)

        # Reversed so the first listed subdirectory is walked next
        stack.extend(reversed(subdirs))


def check_location(config: BackupConfiguration):
    """Reject backup locations that cannot hold a mirrored tree."""
    if not config.location:
        raise ConfigurationError(message="Backup location is not set")

    layout = config.layout
    location = layout.flavour(config.location)
    if not location.is_absolute():
        raise ConfigurationError(config.location, message="Backup location is not absolute")

    # Files under such a root would map onto themselves
    volume_roots = [layout.flavour(r) for r in layout.roots]
    if location in volume_roots or (
        layout.style is VolumeStyle.POSIX and str(location) == location.anchor
    ):
        raise ConfigurationError(config.location, message="Backup location is a volume root")


def run_backup(
    config: BackupConfiguration,
    options: RunOptions,
    report_file: Optional[TextIO] = None,
) -> RunReport:
    """Back up every configured directory.

    Raises ConfigurationError if the backup location is unset, relative,
    or a volume root. Per-file and per-subtree failures are logged as they
    happen and collected on the returned report; they never stop the run.
    """
    check_location(config)

    # Never walk into the backup tree itself
    pruned = config.exclusions | {os.path.normpath(config.location)}
    report = RunReport()

    for directory in config.directories:
        logger.debug("Walking %s", directory)
        for entry in walk_entries(directory, pruned):
            if entry.kind is EntryKind.EXCLUDED:
                report.directories_skipped += 1
                if options.verbose:
                    logger.info("Skipped %s", os.path.basename(entry.path))

            elif entry.kind is EntryKind.DIRECTORY:
                report.directories_walked += 1
                if options.verbose:
                    logger.info("Entering %s", entry.path)

            elif entry.kind is EntryKind.FILE:
                if options.verbose:
                    logger.info("Backing up: %s", entry.path)
                outcome = copy_file(entry.path, config, options)
                if outcome.error is not None:
                    logger.error("%s", outcome.error)
                for warning in outcome.warnings:
                    logger.warning("%s", warning)
                report.record(outcome)
                if report_file is not None:
                    write_report_line(report_file, outcome)

            elif entry.kind is EntryKind.ERROR:
                logger.error("%s", entry.error)
                report.errors.append(entry.error)

            else:
                report.entries_ignored += 1

    logger.debug(
        "Backup finished: %d copied, %d failed",
        report.files_copied, report.files_failed,
    )
    return report
