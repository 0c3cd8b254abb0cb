from __future__ import annotations

from typing import Optional

from .config import VertexConfig, load_vertex_config
from .domain.models import Turn
from .domain.session import Session
from .errors import AppraisalError
from .logging import get_logger
from .vertex.client import VertexClient
from .vertex.prompt import build_request_body


LOG = get_logger("appraisal-service")


class AppraisalService:
    """Coordinates request building, the remote call, and session updates.

    The Vertex client is created lazily from configuration so a server can
    start (and report a config error per request) without credentials.
    """

    def __init__(self, cfg: Optional[VertexConfig] = None, *, client: Optional[VertexClient] = None) -> None:
        self._cfg = cfg
        self._client = client

    @property
    def client(self) -> VertexClient:
        if self._client is None:
            cfg = self._cfg or load_vertex_config()
            self._client = VertexClient.from_config(cfg)
        return self._client

    def appraise(
        self,
        user_text: Optional[str],
        image_bytes: Optional[bytes] = None,
        *,
        mime_type: Optional[str] = None,
    ) -> str:
        """Return the model's reply text. Raises AppraisalError subclasses."""
        body = build_request_body(user_text, image_bytes, mime_type=mime_type)
        return self.client.generate_content(body)

    def run_turn(
        self,
        session: Session,
        turn_id: str,
        user_text: Optional[str],
        image_bytes: Optional[bytes] = None,
        *,
        mime_type: Optional[str] = None,
    ) -> Optional[Turn]:
        """Run the remote call for a pending turn and record the outcome.

        Failures are attached to the turn as "Error: ..." text. If the turn
        was cancelled meanwhile the outcome is dropped by the session.
        """
        try:
            text = self.appraise(user_text, image_bytes, mime_type=mime_type)
        except AppraisalError as exc:
            LOG.warning("Turn %s failed: %s", turn_id, exc)
            session.fail(turn_id, str(exc) or "Request failed")
        else:
            session.resolve(turn_id, text)
        return session.get(turn_id)
