"""Tests for report lines, summaries and error formatting."""

import io
import json

from backmeup.errors import (
    AttributePreservationError,
    ConfigurationError,
    StatError,
)
from backmeup.models import CopyOutcome, RunReport
from backmeup.report import print_summary, write_report_line


class TestErrorFormatting:

    def test_message_path_and_cause(self):
        error = StatError("/src/a.txt", cause=FileNotFoundError("gone"))
        assert str(error) == "Cannot stat source: /src/a.txt: gone"

    def test_message_only(self):
        assert str(ConfigurationError(message="Backup location is not set")) == "Backup location is not set"


class TestReportLines:

    def test_failed_outcome(self):
        outcome = CopyOutcome(source="/src/a.txt", destination="/b/a.txt",
                              error=StatError("/src/a.txt"))
        out = io.StringIO()
        write_report_line(out, outcome)

        entry = json.loads(out.getvalue())
        assert entry["action"] == "failed"
        assert entry["error"]["type"] == "StatError"
        assert entry["error"]["path"] == "/src/a.txt"

    def test_warnings_listed(self):
        outcome = CopyOutcome(
            source="/src/a.txt", destination="/b/a.txt", bytes_copied=5,
            warnings=[AttributePreservationError("/b/a.txt", message="Cannot preserve file mode")],
        )
        out = io.StringIO()
        write_report_line(out, outcome)

        entry = json.loads(out.getvalue())
        assert entry["action"] == "copied"
        assert entry["warnings"][0]["message"] == "Cannot preserve file mode: /b/a.txt"


class TestRunReport:

    def test_record(self):
        report = RunReport()
        report.record(CopyOutcome(source="/a", bytes_copied=10))
        report.record(CopyOutcome(source="/b", error=StatError("/b")))
        report.record(CopyOutcome(
            source="/c", bytes_copied=1,
            warnings=[AttributePreservationError("/c")],
        ))

        assert report.files_copied == 2
        assert report.files_failed == 1
        assert report.bytes_copied == 11
        assert len(report.errors) == 1
        assert len(report.warnings) == 1
        assert not report.ok

    def test_summary(self, capsys):
        report = RunReport(files_copied=3, bytes_copied=42)
        report.errors.append(StatError("/x"))
        print_summary(report)

        output = capsys.readouterr().out
        assert "backmeup summary" in output
        assert "Files copied:            3" in output
        assert "Cannot stat source: /x" in output
