from __future__ import annotations

import re
from typing import Optional

from ..config import VertexConfig
from ..logging import get_logger

LOG = get_logger("vertex-endpoint")

MISSING_CONFIG_MESSAGE = (
    "Missing model config: set VERTEX_MODEL (full resource name) or PROJECT_ID, VERTEX_LOCATION, and GEMINI_MODEL"
)

_MODEL_RESOURCE_RE = re.compile(r"^projects/([^/]+)/locations/([^/]+)/models/(.+)$")


def _base(location: str, project_id: str) -> str:
    return f"https://{location}-aiplatform.googleapis.com/v1/projects/{project_id}/locations/{location}"


def resolve_generate_content_url(cfg: VertexConfig) -> Optional[str]:
    """Return the generateContent URL for the configured model, or None.

    Precedence: deployed endpoint id, then a full ``projects/.../models/...``
    resource in VERTEX_MODEL, then a publisher Gemini model id.
    """
    if cfg.endpoint_id and cfg.project_id and cfg.location:
        LOG.debug("Using deployed endpoint %s", cfg.endpoint_id)
        return f"{_base(cfg.location, cfg.project_id)}/endpoints/{cfg.endpoint_id}:generateContent"

    if cfg.vertex_model:
        m = _MODEL_RESOURCE_RE.match(cfg.vertex_model)
        if m:
            project_id, location, model_id = m.group(1), m.group(2), m.group(3)
            LOG.debug("Using model resource %s", cfg.vertex_model)
            return f"{_base(location, project_id)}/models/{model_id}:generateContent"
        LOG.warning("VERTEX_MODEL=%r is not a projects/.../models/... resource; ignoring", cfg.vertex_model)

    if cfg.project_id and cfg.location and cfg.gemini_model:
        LOG.debug("Using publisher model %s", cfg.gemini_model)
        return f"{_base(cfg.location, cfg.project_id)}/publishers/google/models/{cfg.gemini_model}:generateContent"

    return None
