"""Persisted settings: the YAML file behind `backmeup loc/dir/exclude`."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

import yaml

from .errors import ConfigurationError
from .models import BackupConfiguration, VolumeStyle

logger = logging.getLogger(__name__)

SETTINGS_FILENAME = ".backmeup.yml"


@dataclass
class Settings:
    """Mutable, on-disk form of the backup configuration."""

    location: str = ""
    directories: list[str] = field(default_factory=list)
    exclusions: list[str] = field(default_factory=list)
    volume_roots: list[str] = field(default_factory=list)
    volume_style: str = "auto"

    @classmethod
    def from_dict(cls, data: dict) -> Settings:
        location = data.get("loc") or ""
        if not isinstance(location, str):
            raise ConfigurationError(message=f"'loc' must be a string, got {location!r}")
        volume_style = data.get("platform") or "auto"
        if not isinstance(volume_style, str):
            raise ConfigurationError(message=f"'platform' must be a string, got {volume_style!r}")
        return cls(
            location=location,
            directories=_string_list(data, "dir"),
            exclusions=_string_list(data, "exclude"),
            volume_roots=_string_list(data, "volumes"),
            volume_style=volume_style,
        )

    def to_dict(self) -> dict:
        data: dict[str, object] = {
            "loc": self.location,
            "dir": list(self.directories),
            "exclude": list(self.exclusions),
        }
        if self.volume_roots:
            data["volumes"] = list(self.volume_roots)
        if self.volume_style != "auto":
            data["platform"] = self.volume_style
        return data

    def set_location(self, path: str):
        self.location = path

    def add_directories(self, paths: Iterable[str]):
        self.directories.extend(paths)

    def remove_directory(self, path: str) -> bool:
        """Drop every entry equal to path. Returns whether any was removed."""
        kept = [d for d in self.directories if d != path]
        removed = len(kept) != len(self.directories)
        self.directories = kept
        return removed

    def add_exclusions(self, paths: Iterable[str]):
        self.exclusions.extend(paths)

    def remove_exclusion(self, path: str) -> bool:
        kept = [e for e in self.exclusions if e != path]
        removed = len(kept) != len(self.exclusions)
        self.exclusions = kept
        return removed

    def to_configuration(self) -> BackupConfiguration:
        """Freeze into the value the backup core consumes."""
        try:
            style = VolumeStyle.parse(self.volume_style)
        except ValueError as e:
            raise ConfigurationError(message=str(e))
        return BackupConfiguration(
            location=self.location,
            directories=tuple(os.path.normpath(d) for d in self.directories),
            exclusions=frozenset(os.path.normpath(e) for e in self.exclusions),
            volume_roots=tuple(self.volume_roots),
            volume_style=style,
        )


def load_settings(path: Path) -> Settings:
    """Read settings from path. A missing file gives empty settings."""
    path = Path(path)
    if not path.exists():
        logger.debug("No settings file at %s", path)
        return Settings()

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(str(path), cause=e, message="Failed to load settings")

    if data is None:
        return Settings()
    if not isinstance(data, dict):
        raise ConfigurationError(str(path), message="Settings file must contain a mapping")
    return Settings.from_dict(data)


def save_settings(settings: Settings, path: Path):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(
                settings.to_dict(),
                f,
                allow_unicode=True,
                sort_keys=False,
                default_flow_style=False,
            )
    except OSError as e:
        raise ConfigurationError(str(path), cause=e, message="Failed to save settings")
    logger.debug("Saved settings to %s", path)


def _string_list(data: dict, key: str) -> list[str]:
    value = data.get(key)
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigurationError(message=f"'{key}' must be a list of paths, got {value!r}")
    return list(value)
