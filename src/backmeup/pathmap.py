"""Map absolute source paths into the backup tree.

The destination of a file is the backup root joined with the file's path
relative to its volume root:

    source      = C:\\Users\\me\\notes.txt     (windows, volume root C:\\)
    backup_root = D:\\backup
    -> D:\\backup\\Users\\me\\notes.txt

    source      = /home/me/notes.txt          (posix, volume root /)
    backup_root = /mnt/backup
    -> /mnt/backup/home/me/notes.txt

Extra volume roots (mount points, for example) can be configured through a
VolumeLayout; the longest one containing the source wins over the anchor.
"""

from __future__ import annotations

import os
from pathlib import PurePath
from typing import Optional, Union

from .errors import PathMappingError
from .models import VolumeLayout

PathLike = Union[str, os.PathLike]


def volume_root(source: PurePath, layout: VolumeLayout) -> PurePath:
    """Return the volume root that `source` should be made relative to."""
    best: Optional[PurePath] = None
    for raw in layout.roots:
        candidate = layout.flavour(raw)
        if not candidate.is_absolute() or not source.is_relative_to(candidate):
            continue
        if best is None or len(candidate.parts) > len(best.parts):
            best = candidate
    if best is not None:
        return best
    return layout.flavour(source.anchor)


def map_to_destination(
    source_path: PathLike,
    backup_root: PathLike,
    layout: Optional[VolumeLayout] = None,
) -> str:
    """Compute where `source_path` is stored under `backup_root`.

    Pure function: no filesystem access. Raises PathMappingError when the
    source is relative, contains '..', is itself a volume root, or the
    backup root is empty or relative.
    """
    layout = layout or VolumeLayout.for_platform()
    flavour = layout.flavour

    root_str = os.fspath(backup_root)
    if not root_str:
        raise PathMappingError(os.fspath(source_path), message="Backup root is empty")
    root = flavour(root_str)
    if not root.is_absolute():
        raise PathMappingError(root_str, message="Backup root is not absolute")

    source = flavour(os.fspath(source_path))
    if not source.is_absolute():
        raise PathMappingError(str(source), message="Source path is not absolute")
    if ".." in source.parts:
        raise PathMappingError(str(source), message="Source path contains '..'")

    volume = volume_root(source, layout)
    try:
        relative = source.relative_to(volume)
    except ValueError as e:
        raise PathMappingError(str(source), cause=e) from e

    if not relative.parts:
        raise PathMappingError(str(source), message="Source path is a volume root")

    return str(root / relative)
