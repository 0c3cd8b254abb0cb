from __future__ import annotations

import threading
import uuid
from dataclasses import replace
from typing import Any, Dict, List, Optional

from ..errors import InvalidInputError, TurnConflictError
from ..logging import get_logger
from .models import (
    ROLE_ASSISTANT,
    ROLE_USER,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_PENDING,
    Turn,
)

LOG = get_logger("session")

CANCELLED_TEXT = "Stopped."
IMAGE_ONLY_TEXT = "Analyze this item."


class Session:
    """Ordered chat history for one interactive user.

    Each submit appends a completed user turn and a pending assistant turn.
    The pending turn is later either resolved or cancelled, exactly once;
    cancellation is sticky, so a reply arriving afterwards is dropped.

    At most one turn is pending at a time: submit refuses with
    TurnConflictError while one is outstanding. The pending check, the
    append, and each status transition happen under one lock, since requests,
    resolution, and cancellation may come from different threads.
    """

    def __init__(self) -> None:
        self._turns: List[Turn] = []
        self._lock = threading.Lock()

    # ---------- queries ----------
    def turns(self) -> List[Turn]:
        with self._lock:
            return [replace(t) for t in self._turns]

    def get(self, turn_id: str) -> Optional[Turn]:
        with self._lock:
            t = self._find(turn_id)
            return replace(t) if t is not None else None

    def pending_turn(self) -> Optional[Turn]:
        with self._lock:
            for t in reversed(self._turns):
                if t.is_pending:
                    return replace(t)
        return None

    def last_assistant_text(self) -> Optional[str]:
        """Text of the most recent finished assistant turn, if any."""
        with self._lock:
            for t in reversed(self._turns):
                if t.role == ROLE_ASSISTANT and not t.is_pending and t.text:
                    return t.text
        return None

    def __len__(self) -> int:
        return len(self._turns)

    # ---------- transitions ----------
    def submit(self, user_text: Optional[str], image_ref: Optional[str] = None) -> str:
        """Append the user turn and a pending assistant turn; return its id."""
        text = (user_text or "").strip()
        if not text and not image_ref:
            raise InvalidInputError("Add an image or type a message to chat.")

        user = Turn(
            turn_id=uuid.uuid4().hex,
            role=ROLE_USER,
            status=STATUS_COMPLETED,
            text=text or IMAGE_ONLY_TEXT,
            image_ref=image_ref or None,
        )
        pending = Turn(turn_id=uuid.uuid4().hex, role=ROLE_ASSISTANT, status=STATUS_PENDING)
        with self._lock:
            if any(t.is_pending for t in self._turns):
                raise TurnConflictError("A request is already in progress.")
            self._turns.append(user)
            self._turns.append(pending)
        LOG.info("Submitted turn %s (image=%s, text=%d chars)", pending.turn_id, bool(image_ref), len(text))
        return pending.turn_id

    def resolve(self, turn_id: str, result_text: Optional[str]) -> bool:
        """Complete a pending turn. Returns False for a stale resolution."""
        with self._lock:
            t = self._find(turn_id)
            if t is None or not t.is_pending:
                LOG.debug("Dropping stale resolution for turn %s", turn_id)
                return False
            t.status = STATUS_COMPLETED
            t.text = result_text or ""
        LOG.info("Resolved turn %s (%d chars)", turn_id, len(result_text or ""))
        return True

    def fail(self, turn_id: str, message: str) -> bool:
        """Resolve a pending turn with an error message for display."""
        return self.resolve(turn_id, f"Error: {message}")

    def cancel(self, turn_id: str) -> bool:
        with self._lock:
            t = self._find(turn_id)
            if t is None or not t.is_pending:
                return False
            t.status = STATUS_CANCELLED
            t.text = CANCELLED_TEXT
        LOG.info("Cancelled turn %s", turn_id)
        return True

    def clear(self) -> None:
        with self._lock:
            if any(t.is_pending for t in self._turns):
                raise InvalidInputError("Cannot clear the chat while a request is pending.")
            self._turns.clear()
        LOG.info("Session cleared")

    def to_dict(self) -> Dict[str, Any]:
        turns = self.turns()
        pending = next((t.turn_id for t in turns if t.is_pending), None)
        return {"turns": [t.to_dict() for t in turns], "pending_turn_id": pending}

    # ---------- helpers ----------
    def _find(self, turn_id: str) -> Optional[Turn]:
        for t in self._turns:
            if t.turn_id == turn_id:
                return t
        return None
