"""Reporting of migration runs."""

from provider_migration.monitoring.report import format_report, render_report, render_validation

__all__ = [
    "format_report",
    "render_report",
    "render_validation",
]
