"""
CSV output
Header once, then one comma-joined line per ticket
"""

import os
from typing import Any, Iterable, TextIO

import structlog

logger = structlog.get_logger()


def format_row(values: Iterable[Any]) -> str:
    """Join already-quoted values with commas; None becomes an empty cell"""
    return ",".join("" if value is None else str(value) for value in values)


class CsvSink:
    """
    Append-only row writer for one column profile.

    Values arrive quoted by the record assembler, so rows are joined as-is
    rather than passed through the csv module.
    """

    def __init__(self, stream: TextIO, header: list[str]):
        self.stream = stream
        self.header = list(header)
        self.rows_written = 0

    def write_header(self):
        self.stream.write(format_row(self.header) + "\n")
        self.stream.flush()

    def write_record(self, record: dict[str, Any]):
        self.stream.write(format_row(record.get(column) for column in self.header) + "\n")
        self.stream.flush()
        self.rows_written += 1


def needs_header(path: str, append: bool) -> bool:
    """A header is written unless appending to a file that already has content"""
    if not append:
        return True
    return not (os.path.exists(path) and os.path.getsize(path) > 0)
