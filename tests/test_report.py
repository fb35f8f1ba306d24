"""Tests for migration reports."""

from io import StringIO

from rich.console import Console

from provider_migration.models.migration import (
    IntegrityValidationResult,
    MigrationRunStatistics,
    MigrationState,
)
from provider_migration.monitoring.report import format_report, render_report, render_validation


def make_console():
    return Console(file=StringIO(), width=200, color_system=None)


class TestFormatReport:
    """Test cases for format_report."""

    def test_no_statistics(self):
        assert format_report(None) == "No migration statistics available"

    def test_clean_run(self):
        stats = MigrationRunStatistics(total_configs=3, providers_created=2, configs_updated=3)
        stats.finish(MigrationState.DONE)

        report = format_report(stats)

        assert report.startswith("=== Provider Data Migration Report ===\n")
        assert report.endswith("=== End of Report ===\n")
        assert "State:                 done" in report
        assert "Total Configs:         3" in report
        assert "Providers Created:     2" in report
        assert "No errors or warnings reported." in report

    def test_errors_and_warnings_are_numbered(self):
        stats = MigrationRunStatistics()
        stats.add_error("first error")
        stats.add_error("second error")
        stats.add_warning("a warning")

        report = format_report(stats)

        assert "Errors:\n1. first error\n2. second error" in report
        assert "Warnings:\n1. a warning" in report
        assert "Duration:              -" in report
        assert "No errors or warnings reported." not in report


class TestRenderReport:
    """Test cases for the Rich renderers."""

    def test_render_report(self):
        console = make_console()
        stats = MigrationRunStatistics(total_configs=5)
        stats.add_error("failed to create provider record: host is required for SFTP provider")
        stats.finish(MigrationState.ROLLED_BACK)

        render_report(stats, console)

        output = console.file.getvalue()
        assert "Provider Data Migration Report" in output
        assert "rolled_back" in output
        assert "host is required for SFTP provider" in output

    def test_render_valid_result(self):
        console = make_console()

        render_validation(IntegrityValidationResult(total_configs=2, valid_configs=2), console)

        assert "All transfer configs reference valid providers" in console.file.getvalue()

    def test_render_invalid_result(self):
        console = make_console()
        result = IntegrityValidationResult()
        result.add_error(7, "Config ID 7 is missing source provider reference")
        result.success = False

        render_validation(result, console)

        output = console.file.getvalue()
        assert "Config ID 7 is missing source provider reference" in output
        assert "1 config(s) with errors" in output
