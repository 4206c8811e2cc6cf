"""Copy one file into the backup tree."""

from __future__ import annotations

import logging
import os
import shutil
import stat

from .errors import (
    AttributePreservationError,
    DestinationSetupError,
    InvalidSourceError,
    PathMappingError,
    SourceReadError,
    StatError,
    StreamCopyError,
)
from .models import BackupConfiguration, CopyOutcome, RunOptions
from .pathmap import map_to_destination

logger = logging.getLogger(__name__)

COPY_BUFSIZE = 1024 * 1024
DIR_MODE = 0o777


def copy_file(
    source_path: str,
    config: BackupConfiguration,
    options: RunOptions,
) -> CopyOutcome:
    """Copy source_path to its mirrored location under config.location.

    Any failure is returned on the outcome rather than raised. Attribute
    preservation problems are warnings; the copy still counts.
    """
    outcome = CopyOutcome(source=source_path)

    try:
        outcome.destination = map_to_destination(
            source_path, config.location, config.layout,
        )
    except PathMappingError as e:
        outcome.error = e
        return outcome
    dest = outcome.destination

    # The entry may have changed between enumeration and copy
    try:
        src_stat = os.stat(source_path)
    except OSError as e:
        outcome.error = StatError(source_path, cause=e)
        return outcome
    if not stat.S_ISREG(src_stat.st_mode):
        outcome.error = InvalidSourceError(source_path)
        return outcome

    try:
        dest_stat = os.stat(dest)
    except OSError:
        dest_stat = None
    if dest_stat is not None and os.path.samestat(src_stat, dest_stat):
        outcome.error = DestinationSetupError(dest, message="Destination is the source file")
        return outcome

    try:
        os.makedirs(os.path.dirname(dest), mode=DIR_MODE, exist_ok=True)
    except OSError as e:
        outcome.error = DestinationSetupError(dest, cause=e)
        return outcome

    try:
        source = open(source_path, "rb")
    except OSError as e:
        outcome.error = SourceReadError(source_path, cause=e)
        return outcome

    with source:
        _make_writable(dest)
        try:
            destination = open(dest, "wb")
        except OSError as e:
            outcome.error = DestinationSetupError(dest, cause=e)
            return outcome

        # Closed before touching attributes, or the close would bump mtime
        with destination:
            try:
                shutil.copyfileobj(source, destination, COPY_BUFSIZE)
                destination.flush()
            except OSError as e:
                outcome.error = StreamCopyError(source_path, cause=e)
                return outcome
            outcome.bytes_copied = destination.tell()

    logger.debug("Copied %s -> %s (%d bytes)", source_path, dest, outcome.bytes_copied)

    if options.preserve_attributes:
        outcome.warnings.extend(preserve_attributes(dest, src_stat))

    return outcome


def preserve_attributes(dest: str, src_stat: os.stat_result) -> list[AttributePreservationError]:
    """Apply the source mtime and permission bits to dest; return failures."""
    problems = []
    try:
        os.utime(dest, ns=(src_stat.st_mtime_ns, src_stat.st_mtime_ns))
    except OSError as e:
        problems.append(AttributePreservationError(
            dest, cause=e, message="Cannot preserve modification time",
        ))
    try:
        os.chmod(dest, stat.S_IMODE(src_stat.st_mode))
    except OSError as e:
        problems.append(AttributePreservationError(
            dest, cause=e, message="Cannot preserve file mode",
        ))
    return problems


def _make_writable(dest: str):
    """Give the owner write permission on an existing read-only destination."""
    try:
        mode = os.stat(dest).st_mode
    except OSError:
        return
    if stat.S_ISREG(mode) and not mode & stat.S_IWUSR:
        try:
            os.chmod(dest, stat.S_IMODE(mode) | stat.S_IWUSR)
        except OSError as e:
            logger.debug("Could not make %s writable: %s", dest, e)
