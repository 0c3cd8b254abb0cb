from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, Optional

from dotenv import dotenv_values

from .logging import get_logger

log = get_logger("config")

DEFAULT_TIMEOUT_SECONDS = 120.0


def _find_upwards(start_dir: str, filename: str) -> Optional[str]:
    """Return first matching file found when walking up from start_dir.

    Lets the server or CLI started from a subdirectory still pick up the
    repository-level `.env`.
    """
    d = os.path.abspath(start_dir or ".")
    while True:
        candidate = os.path.join(d, filename)
        if os.path.isfile(candidate):
            return candidate
        parent = os.path.dirname(d)
        if parent == d:
            return None
        d = parent


def _read_dotenv(dotenv_dir: str) -> Dict[str, str]:
    """Read the nearest .env into a mapping; does not mutate os.environ."""
    path = _find_upwards(dotenv_dir, ".env")
    if not path:
        log.debug(f"No .env found starting from: {os.path.abspath(dotenv_dir)}")
        return {}
    try:
        values = dotenv_values(path)
    except (OSError, UnicodeDecodeError) as e:
        log.warning(f"Failed reading .env: {e}")
        return {}
    env = {k: v.strip() for k, v in values.items() if v is not None}
    log.debug(f"Loaded {len(env)} key(s) from .env at {path}")
    return env


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class VertexConfig:
    """Settings needed to reach the Vertex AI generateContent endpoint.

    Exactly one of three shapes is expected to be usable: an explicit
    ``endpoint_id``, a fully-qualified ``vertex_model`` resource path, or a
    bare ``gemini_model`` together with ``project_id`` and ``location``.
    """

    project_id: Optional[str] = None
    location: Optional[str] = None
    endpoint_id: Optional[str] = None
    vertex_model: Optional[str] = None
    gemini_model: Optional[str] = None
    service_account_key: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT_SECONDS


def load_vertex_config(dotenv_dir: Optional[str] = None) -> VertexConfig:
    """Build a VertexConfig from the process environment, falling back to .env.

    Environment variables win over `.env` values key by key.
    """
    env = _read_dotenv(dotenv_dir or os.getcwd())

    def _get(key: str) -> Optional[str]:
        v = _clean(os.environ.get(key))
        if v is not None:
            return v
        return _clean(env.get(key))

    timeout_raw = _get("VERTEX_TIMEOUT")
    timeout = DEFAULT_TIMEOUT_SECONDS
    if timeout_raw:
        try:
            timeout = float(timeout_raw)
        except ValueError:
            log.warning(f"VERTEX_TIMEOUT={timeout_raw!r} is not a number; using {DEFAULT_TIMEOUT_SECONDS}s")
        else:
            if timeout <= 0:
                log.warning(f"VERTEX_TIMEOUT must be positive; using {DEFAULT_TIMEOUT_SECONDS}s")
                timeout = DEFAULT_TIMEOUT_SECONDS

    # Service account JSON is multi-line friendly; keep it unstripped inside.
    key_json = os.environ.get("GCP_SERVICE_ACCOUNT_KEY") or env.get("GCP_SERVICE_ACCOUNT_KEY")

    cfg = VertexConfig(
        project_id=_get("PROJECT_ID"),
        location=_get("VERTEX_LOCATION"),
        endpoint_id=_get("VERTEX_ENDPOINT_ID"),
        vertex_model=_get("VERTEX_MODEL"),
        gemini_model=_get("GEMINI_MODEL"),
        service_account_key=key_json or None,
        timeout=timeout,
    )
    log.debug(
        "Vertex config: project=%s location=%s endpoint=%s vertex_model=%s gemini_model=%s key=%s",
        cfg.project_id,
        cfg.location,
        cfg.endpoint_id,
        cfg.vertex_model,
        cfg.gemini_model,
        bool(cfg.service_account_key),
    )
    return cfg
