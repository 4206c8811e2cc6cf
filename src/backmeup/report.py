"""JSONL report writer and human-readable summary printer."""

from __future__ import annotations

import json
from typing import Optional, TextIO

from .errors import BackupError
from .models import CopyOutcome, RunReport


def write_report_line(report_file: TextIO, outcome: CopyOutcome):
    """Write one JSONL line for a copied (or failed) file."""
    entry = {
        "source": outcome.source,
        "destination": outcome.destination,
        "action": "copied" if outcome.ok else "failed",
        "bytes": outcome.bytes_copied,
    }

    if outcome.error is not None:
        entry["error"] = _error_dict(outcome.error)

    if outcome.warnings:
        entry["warnings"] = [_error_dict(w) for w in outcome.warnings]

    report_file.write(json.dumps(entry) + "\n")


def print_summary(report: RunReport):
    """Print human-readable backup summary to stdout."""
    print()
    print("=" * 60)
    print("backmeup summary")
    print("=" * 60)
    print(f"  Files copied:            {report.files_copied}")
    print(f"  Files failed:            {report.files_failed}")
    print(f"  Bytes copied:            {report.bytes_copied}")
    print(f"  Directories walked:      {report.directories_walked}")
    print(f"  Directories excluded:    {report.directories_skipped}")
    print(f"  Other entries ignored:   {report.entries_ignored}")
    print(f"  Warnings:                {len(report.warnings)}")
    print("=" * 60)

    if report.errors:
        print()
        print("Errors:")
        for error in report.errors:
            print(f"  {error}")
    print()


def print_config(
    location: Optional[str],
    directories: list[str],
    exclusions: list[str],
):
    """Print the persisted settings the way `backmeup config` shows them."""
    print("Backup Location:")
    print(f"\t{location or ''}")
    print("Backed up directories:")
    for item in directories:
        print(f"\t{item}")
    print("Excluded directories:")
    for item in exclusions:
        print(f"\t{item}")


def _error_dict(error: BackupError) -> dict:
    return {
        "type": type(error).__name__,
        "path": error.path,
        "message": str(error),
    }
