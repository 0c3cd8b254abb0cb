"""Request bodies for the Vertex AI generateContent call."""

from __future__ import annotations

import base64
import io
from typing import Any, Dict, List, Optional

from PIL import Image, UnidentifiedImageError

from ..errors import InvalidInputError
from ..logging import get_logger

LOG = get_logger("vertex-prompt")

DEFAULT_MIME_TYPE = "image/jpeg"
MAX_OUTPUT_TOKENS = 4096
IMAGE_TEMPERATURE = 0.2
CHAT_TEMPERATURE = 0.3

AUCTION_PROMPT = "\n".join(
    [
        "You are an auction specialist. Analyze this image in detail and respond ONLY in this format "
        "(include every bold label; write N/A if not visible):",
        "",
        "**Item name:** (What is this object? One clear line.)",
        "**Condition:** (Overall condition: wear, scratches, chips, cracks, repairs, completeness, authenticity cues.)",
        "**Materials:** (What it is made of: e.g. wood, ceramic, metal, fabric, glass.)",
        "**Dimensions:** (Size if visible or estimable: height, width, depth, weight if relevant.)",
        "**Age/Period:** (Approximate age, era, or period if identifiable.)",
        "**Maker/Origin:** (Manufacturer, artist, region, or origin if visible.)",
        "**Details:** (Full description: style, design, markings, inscriptions, notable features, quality.)",
        "**Damage/Flaws:** (Any damage, restoration, missing parts, or flaws.)",
        "**Market notes:** (Why it might sell, comparable sales, demand, or caveats.)",
        "**Price:** (Most important: clear estimate or range in currency, e.g. $50–$80 or €120. "
        "Be specific and brief reasoning.)",
        "",
        "Price is mandatory. Be thorough but concise. Use N/A only when truly not visible.",
    ]
)

# Optional notes offered next to the upload form.
PROMPT_TEMPLATES: List[Dict[str, str]] = [
    {"label": "Furniture", "note": "Category: Furniture. Focus on joinery, wood type, condition, and period."},
    {"label": "Ceramics", "note": "Category: Ceramics. Note maker marks, glaze, chips, and age."},
    {"label": "Jewelry", "note": "Category: Jewelry. Describe metals, stones, hallmarks, and wear."},
    {"label": "Art / Paintings", "note": "Category: Art. Describe medium, signature, condition, and provenance if visible."},
    {"label": "General", "note": "General antique or collectible. Full condition and value assessment."},
]


def sniff_mime_type(data: bytes, declared: Optional[str] = None) -> str:
    """Return the image MIME type: declared if it is an image type, else sniffed."""
    if declared and declared.startswith("image/"):
        return declared
    try:
        with Image.open(io.BytesIO(data)) as im:
            mime = Image.MIME.get(im.format or "")
    except (UnidentifiedImageError, OSError):
        mime = None
    if mime:
        LOG.debug("Sniffed image MIME type %s", mime)
        return mime
    return DEFAULT_MIME_TYPE


def build_request_body(
    user_text: Optional[str],
    image_bytes: Optional[bytes] = None,
    *,
    mime_type: Optional[str] = None,
) -> Dict[str, Any]:
    """Return the generateContent JSON body.

    With an image the user's text (or the auction prompt when empty) is sent
    alongside the inline image; without one the text is sent as a plain chat.
    """
    prompt = (user_text or "").strip()
    if not image_bytes and not prompt:
        raise InvalidInputError("Send an image and/or a message (text required for chat-only).")

    if image_bytes:
        parts: List[Dict[str, Any]] = [
            {"text": prompt or AUCTION_PROMPT},
            {
                "inlineData": {
                    "mimeType": sniff_mime_type(image_bytes, mime_type),
                    "data": base64.b64encode(image_bytes).decode("ascii"),
                }
            },
        ]
        temperature = IMAGE_TEMPERATURE
    else:
        parts = [{"text": prompt}]
        temperature = CHAT_TEMPERATURE

    return {
        "contents": [{"role": "user", "parts": parts}],
        "generationConfig": {
            "temperature": temperature,
            "maxOutputTokens": MAX_OUTPUT_TOKENS,
        },
    }
