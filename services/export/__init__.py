"""
RTX Export Service
Exports RT tickets to flat CSV rows

Components:
- pipeline.py: per-ticket fetch/assemble pipeline and the export driver
- context.py: per-run error channel and counters
- writer.py: CSV row sink
- config.py: environment settings and profile loading
- cli.py: command-line interface
"""

from .context import ErrorEntry, ExportContext
from .pipeline import export_ticket, export_tickets, fetch_ticket_bundle, ticket_range
from .writer import CsvSink

__all__ = [
    "ErrorEntry",
    "ExportContext",
    "export_ticket",
    "export_tickets",
    "fetch_ticket_bundle",
    "ticket_range",
    "CsvSink",
]
