"""
RTX Normalize Service
Converts fetched RT data into flat output records

Components:
- sanitizer.py: HTML block and inline tag stripping
- extractor.py: transaction classification and attachment text extraction
- fields.py: custom field lookup and translation tables
- assembler.py: RecordAssembler for bundle -> OutputRecord conversion
"""

from .assembler import RecordAssembler, convert_date, quote_text
from .extractor import extract_fragments, filter_transactions
from .fields import TranslationTable, find_custom_field, lookup_custom_field
from .sanitizer import sanitize_description, strip_block, strip_inline_tags

__all__ = [
    "RecordAssembler",
    "convert_date",
    "quote_text",
    "extract_fragments",
    "filter_transactions",
    "TranslationTable",
    "find_custom_field",
    "lookup_custom_field",
    "sanitize_description",
    "strip_block",
    "strip_inline_tags",
]
