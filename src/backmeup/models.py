"""Data models for backmeup."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePath, PurePosixPath, PureWindowsPath
from typing import Optional

from .errors import BackupError


class VolumeStyle(Enum):
    """How the volume root of an absolute path is determined."""

    POSIX = "posix"
    WINDOWS = "windows"

    @classmethod
    def for_platform(cls) -> VolumeStyle:
        return cls.WINDOWS if os.name == "nt" else cls.POSIX

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional[VolumeStyle]:
        """Parse a settings value; 'auto' and empty mean the running platform."""
        if value is None or value == "" or value.lower() == "auto":
            return None
        try:
            return cls(value.lower())
        except ValueError:
            valid = ", ".join(["auto"] + [s.value for s in cls])
            raise ValueError(f"Invalid platform '{value}'. Valid: {valid}")


@dataclass(frozen=True)
class VolumeLayout:
    """Path flavour plus any extra prefixes that count as volume roots."""

    style: VolumeStyle = VolumeStyle.POSIX
    roots: tuple[str, ...] = ()

    @classmethod
    def for_platform(cls, roots: tuple[str, ...] = ()) -> VolumeLayout:
        return cls(style=VolumeStyle.for_platform(), roots=tuple(roots))

    @property
    def flavour(self) -> type[PurePath]:
        if self.style is VolumeStyle.WINDOWS:
            return PureWindowsPath
        return PurePosixPath


@dataclass(frozen=True)
class BackupConfiguration:
    """What to back up and where. Immutable for the duration of a run."""

    location: str
    directories: tuple[str, ...] = ()
    exclusions: frozenset[str] = frozenset()
    volume_roots: tuple[str, ...] = ()
    volume_style: Optional[VolumeStyle] = None

    @property
    def layout(self) -> VolumeLayout:
        style = self.volume_style or VolumeStyle.for_platform()
        return VolumeLayout(style=style, roots=self.volume_roots)


@dataclass(frozen=True)
class RunOptions:
    """Flags for one backup invocation."""

    verbose: bool = False
    preserve_attributes: bool = False


@dataclass
class CopyOutcome:
    """Result of copying one file."""

    source: str
    destination: Optional[str] = None
    bytes_copied: int = 0
    error: Optional[BackupError] = None
    warnings: list[BackupError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None


class EntryKind(Enum):
    """What the traversal found at a path."""

    FILE = "file"
    DIRECTORY = "directory"
    EXCLUDED = "excluded"
    OTHER = "other"
    ERROR = "error"


@dataclass
class WalkEntry:
    """One step of a directory traversal."""

    path: str
    kind: EntryKind
    error: Optional[BackupError] = None


@dataclass
class RunReport:
    """Summary of a backup run."""

    files_copied: int = 0
    files_failed: int = 0
    bytes_copied: int = 0
    directories_walked: int = 0
    directories_skipped: int = 0
    entries_ignored: int = 0
    errors: list[BackupError] = field(default_factory=list)
    warnings: list[BackupError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def record(self, outcome: CopyOutcome):
        """Fold one file's outcome into the totals."""
        if outcome.ok:
            self.files_copied += 1
            self.bytes_copied += outcome.bytes_copied
        else:
            self.files_failed += 1
            self.errors.append(outcome.error)
        self.warnings.extend(outcome.warnings)
