from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

# Closed set of appraisal field keys, in display order.
FIELD_KEYS: Tuple[str, ...] = (
    "itemName",
    "condition",
    "materials",
    "dimensions",
    "age",
    "maker",
    "details",
    "damage",
    "marketNotes",
    "price",
)

ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"

STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"


@dataclass(frozen=True)
class RawAppraisal:
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": "raw", "raw": self.text}


@dataclass(frozen=True)
class StructuredAppraisal:
    fields: Dict[str, str]

    def __post_init__(self) -> None:
        if not self.fields:
            raise ValueError("StructuredAppraisal requires at least one field")
        unknown = set(self.fields) - set(FIELD_KEYS)
        if unknown:
            raise ValueError(f"Unknown appraisal field(s): {sorted(unknown)}")

    def get(self, key: str) -> Optional[str]:
        return self.fields.get(key)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": "structured", "fields": dict(self.fields)}


ParsedAppraisal = Union[RawAppraisal, StructuredAppraisal]


@dataclass
class Turn:
    turn_id: str
    role: str
    status: str
    text: Optional[str] = None
    image_ref: Optional[str] = None  # user turns only (data: URL)

    @property
    def is_pending(self) -> bool:
        return self.status == STATUS_PENDING

    def to_dict(self) -> Dict[str, Any]:
        return {
            "turn_id": self.turn_id,
            "role": self.role,
            "status": self.status,
            "text": self.text,
            "image_ref": self.image_ref,
        }
