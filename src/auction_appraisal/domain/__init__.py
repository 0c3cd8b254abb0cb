"""Appraisal domain: reply parsing, display helpers, and the chat session."""

from .extractor import classify_label, extract, segment_blocks
from .models import FIELD_KEYS, ParsedAppraisal, RawAppraisal, StructuredAppraisal, Turn
from .render import display_rows, summarize
from .session import CANCELLED_TEXT, Session

__all__ = [
    "FIELD_KEYS",
    "ParsedAppraisal",
    "RawAppraisal",
    "StructuredAppraisal",
    "Turn",
    "Session",
    "CANCELLED_TEXT",
    "classify_label",
    "extract",
    "segment_blocks",
    "display_rows",
    "summarize",
]
