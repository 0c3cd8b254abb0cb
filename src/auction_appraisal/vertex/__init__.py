"""Vertex AI collaborators: endpoint URL, request body, credentials, HTTP client."""

from .auth import TokenProvider, load_credentials
from .client import VertexClient, extract_reply_text
from .endpoint import MISSING_CONFIG_MESSAGE, resolve_generate_content_url
from .prompt import AUCTION_PROMPT, PROMPT_TEMPLATES, build_request_body, sniff_mime_type

__all__ = [
    "AUCTION_PROMPT",
    "MISSING_CONFIG_MESSAGE",
    "PROMPT_TEMPLATES",
    "TokenProvider",
    "VertexClient",
    "build_request_body",
    "extract_reply_text",
    "load_credentials",
    "resolve_generate_content_url",
    "sniff_mime_type",
]
