from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from .models import ParsedAppraisal, RawAppraisal

NOT_AVAILABLE = "N/A"
NO_RESPONSE_TEXT = "No response."

# Body rows of the appraisal card; item name and price are shown separately.
DETAIL_ROWS: Tuple[Tuple[str, str], ...] = (
    ("condition", "Condition"),
    ("materials", "Materials"),
    ("dimensions", "Dimensions"),
    ("age", "Age / Period"),
    ("maker", "Maker / Origin"),
    ("details", "Details"),
    ("damage", "Damage / Flaws"),
    ("marketNotes", "Market notes"),
)


def is_displayable(value: Optional[str]) -> bool:
    return bool(value) and value != NOT_AVAILABLE


def display_rows(parsed: Optional[ParsedAppraisal]) -> List[Tuple[str, str]]:
    """Return ``(label, value)`` rows worth showing, in card order."""
    if parsed is None or isinstance(parsed, RawAppraisal):
        return []
    rows: List[Tuple[str, str]] = []
    for key, label in DETAIL_ROWS:
        value = parsed.get(key)
        if is_displayable(value):
            rows.append((label, value))
    return rows


def summarize(parsed: Optional[ParsedAppraisal]) -> Dict[str, Any]:
    """Build the JSON card the chat page renders for an assistant reply.

    Only the detail rows drop "N/A"; title and price are shown as given.
    """
    if parsed is None:
        return {"kind": "empty", "message": NO_RESPONSE_TEXT}
    if isinstance(parsed, RawAppraisal):
        return {"kind": "raw", "raw": parsed.text}
    title = parsed.get("itemName")
    price = parsed.get("price")
    return {
        "kind": "structured",
        "title": title or None,
        "rows": [{"label": label, "value": value} for label, value in display_rows(parsed)],
        "price": price or None,
        "fields": dict(parsed.fields),
    }
