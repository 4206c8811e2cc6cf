"""Error taxonomy for backup runs."""

from __future__ import annotations

from typing import Optional


class BackupError(Exception):
    """Base class for everything a backup run can report."""

    message = "Backup error"

    def __init__(
        self,
        path: Optional[str] = None,
        cause: Optional[BaseException] = None,
        message: Optional[str] = None,
    ):
        self.path = path
        self.cause = cause
        if message is not None:
            self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        parts = [self.message]
        if self.path:
            parts.append(str(self.path))
        if self.cause is not None:
            parts.append(str(self.cause))
        return ": ".join(parts)


class ConfigurationError(BackupError):
    """Settings are missing, malformed, or have no backup location."""

    message = "Invalid configuration"


class PathMappingError(BackupError):
    """Source path cannot be expressed relative to its volume root."""

    message = "Cannot map path"


class StatError(BackupError):
    message = "Cannot stat source"


class InvalidSourceError(BackupError):
    message = "Not a regular file"


class SourceReadError(BackupError):
    message = "Cannot open source"


class DestinationSetupError(BackupError):
    message = "Cannot create destination"


class StreamCopyError(BackupError):
    message = "Copy failed"


class AttributePreservationError(BackupError):
    """chmod/utime failed after an otherwise successful copy."""

    message = "Cannot preserve attributes"


class SubtreeTraversalError(BackupError):
    message = "Cannot read directory"
