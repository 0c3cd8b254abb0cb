from __future__ import annotations

import json
from typing import Any, Dict, Optional

import requests

from ..config import VertexConfig
from ..errors import ConfigError, VertexError
from ..logging import get_logger
from .auth import TokenProvider
from .endpoint import MISSING_CONFIG_MESSAGE, resolve_generate_content_url


def extract_reply_text(data: Any) -> str:
    """Concatenate the text parts of the first candidate; '' when absent."""
    if not isinstance(data, dict):
        return ""
    candidates = data.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return ""
    first = candidates[0] if isinstance(candidates[0], dict) else {}
    content = first.get("content") or {}
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return ""
    return "".join(str(p.get("text") or "") for p in parts if isinstance(p, dict))


def _error_message(data: Any) -> str:
    err = data.get("error") if isinstance(data, dict) else None
    if not isinstance(err, dict):
        return "Vertex AI request failed"
    msg = err.get("message") or err.get("status") or "Vertex AI request failed"
    if err.get("details"):
        msg = f"{msg} {json.dumps(err['details'])}"
    return str(msg)


class VertexClient:
    """Thin client for the Vertex AI generateContent endpoint.

    Uses a requests session with a bearer token from ``TokenProvider``.
    """

    def __init__(
        self,
        url: str,
        tokens: TokenProvider,
        *,
        timeout: float = 120.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.url = url
        self.timeout = float(timeout)
        self.tokens = tokens
        self.log = get_logger("vertex-client")
        self.s = session or requests.Session()
        self.s.headers.update({"Content-Type": "application/json"})

    @classmethod
    def from_config(cls, cfg: VertexConfig) -> "VertexClient":
        url = resolve_generate_content_url(cfg)
        if not url:
            raise ConfigError(MISSING_CONFIG_MESSAGE)
        return cls(url, TokenProvider(cfg.service_account_key), timeout=cfg.timeout)

    def generate_content(self, body: Dict[str, Any]) -> str:
        """POST the body and return the concatenated reply text.

        Raises AuthError when no token can be obtained and VertexError for
        transport failures, non-JSON bodies, and non-2xx responses.
        """
        token = self.tokens.token()
        self.log.info("POST generateContent (%s)", self.url.rsplit("/", 1)[-1])
        try:
            r = self.s.post(
                self.url,
                json=body,
                headers={"Authorization": f"Bearer {token}"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            self.log.error(f"generateContent request failed: {exc}")
            raise VertexError(str(exc) or "Generate failed") from exc

        try:
            data = r.json()
        except ValueError:
            raise VertexError(f"Vertex AI returned non-JSON. Status: {r.status_code}", r.status_code)

        if not r.ok:
            msg = _error_message(data)
            self.log.error("Vertex error %s: %s", r.status_code, msg)
            raise VertexError(msg, r.status_code)

        text = extract_reply_text(data)
        self.log.info(f"Received reply with {len(text)} characters")
        return text
