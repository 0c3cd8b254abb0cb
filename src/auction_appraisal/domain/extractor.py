"""Split a model reply with inline bold labels into appraisal fields.

The reply format is not guaranteed (a plain chat answer has no labels at all),
so extraction is best effort: labelled blocks are segmented first, each label
is then classified into one of the known field keys, and when nothing is
recognized the trimmed text is returned verbatim as a raw appraisal.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple

from ..logging import get_logger
from .models import ParsedAppraisal, RawAppraisal, StructuredAppraisal

LOG = get_logger("extractor")

# **label** [:|-] [newline] content ... up to the next **label** or end of text.
_BLOCK_RE = re.compile(
    r"\*\*([^*]+)\*\*\s*[:\-]?\s*\n?(.*?)(?=\*\*[^*]+\*\*|\Z)",
    re.IGNORECASE | re.DOTALL,
)


def segment_blocks(text: str) -> List[Tuple[str, str]]:
    """Return ``(label, content)`` pairs, label lowercased and both trimmed.

    Blocks whose content is empty after trimming are skipped.
    """
    blocks: List[Tuple[str, str]] = []
    for m in _BLOCK_RE.finditer(text):
        label = (m.group(1) or "").strip().lower()
        content = (m.group(2) or "").strip()
        if not content:
            continue
        blocks.append((label, content))
    return blocks


def classify_label(label: str) -> Optional[str]:
    """Map a lowercased label to a field key; first rule that matches wins."""
    if "item name" in label or ("name" in label and "market" not in label):
        return "itemName"
    if "condition" in label:
        return "condition"
    if "material" in label:
        return "materials"
    if "dimension" in label:
        return "dimensions"
    if "age" in label or "period" in label:
        return "age"
    if "maker" in label or "origin" in label:
        return "maker"
    if "detail" in label or "description" in label:
        return "details"
    if "damage" in label or "flaw" in label:
        return "damage"
    if "market" in label:
        return "marketNotes"
    if "value" in label or "price" in label or "estimate" in label:
        return "price"
    return None


def extract(text: Optional[str]) -> Optional[ParsedAppraisal]:
    """Parse a model reply into a structured or raw appraisal.

    Returns None for empty or whitespace-only input; callers show that as
    "No response." rather than an error. Values such as "N/A" are kept.
    """
    if not text or not text.strip():
        return None
    t = text.strip()

    fields: Dict[str, str] = {}
    for label, content in segment_blocks(t):
        key = classify_label(label)
        if key is None:
            LOG.debug("Dropping unrecognized label %r", label)
            continue
        fields[key] = content

    if fields:
        LOG.debug("Extracted %d field(s): %s", len(fields), sorted(fields))
        return StructuredAppraisal(fields=fields)
    return RawAppraisal(text=t)
