from __future__ import annotations

import base64
import os
from typing import Any, Dict, List, Optional, Tuple

from starlette.applications import Starlette
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route
from starlette.staticfiles import StaticFiles

from ..domain import Session, extract, summarize
from ..domain.models import ROLE_ASSISTANT, Turn
from ..errors import AuthError, ConfigError, InvalidInputError, TurnConflictError, VertexError
from ..logging import get_logger
from ..service import AppraisalService
from ..vertex.prompt import PROMPT_TEMPLATES, sniff_mime_type


LOG = get_logger("web")

DEFAULT_STATIC_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "static")


def _error(message: str, status_code: int, **extra: Any) -> JSONResponse:
    return JSONResponse({"error": message, **extra}, status_code=status_code)


async def _read_submission(request: Request) -> Tuple[str, Optional[bytes], Optional[str]]:
    """Return (text, image bytes, declared MIME type) from a multipart form.

    Raises ValueError when the body is not a readable form.
    """
    try:
        form = await request.form()
    except Exception as exc:
        raise ValueError("Invalid multipart body") from exc
    text = form.get("text")
    user_text = text.strip() if isinstance(text, str) else ""
    image = form.get("image")
    image_bytes: Optional[bytes] = None
    mime_type: Optional[str] = None
    if isinstance(image, UploadFile):
        data = await image.read()
        if data:
            image_bytes = data
            mime_type = image.content_type or None
    return user_text, image_bytes, mime_type


def _turn_payload(turn: Turn) -> Dict[str, Any]:
    payload = turn.to_dict()
    if turn.role == ROLE_ASSISTANT and not turn.is_pending:
        payload["appraisal"] = summarize(extract(turn.text))
    return payload


def create_app(
    *,
    service: Optional[AppraisalService] = None,
    session: Optional[Session] = None,
    static_dir: Optional[str] = None,
    allow_origins: Optional[List[str]] = None,
    serve_static: bool = True,
) -> Starlette:
    """Create the Starlette app: appraisal proxy, chat session API, chat page."""

    svc = service or AppraisalService()
    chat = session or Session()

    resolved_static_dir: Optional[str] = None
    if serve_static:
        candidate = os.path.abspath(static_dir or DEFAULT_STATIC_DIR)
        if os.path.isdir(candidate):
            resolved_static_dir = candidate
            LOG.info("Serving chat page from %s", resolved_static_dir)
        else:
            LOG.warning("Static directory not found at %s; API will run without the chat page.", candidate)
    else:
        LOG.info("Static page serving disabled (API only mode).")

    async def health(_: Request) -> JSONResponse:
        return JSONResponse({"status": "ok"})

    async def appraise(request: Request) -> JSONResponse:
        try:
            user_text, image_bytes, mime_type = await _read_submission(request)
        except ValueError as exc:
            return _error(str(exc), 400)
        if not image_bytes and not user_text:
            return _error("Send an image and/or a message (text required for chat-only).", 400)
        try:
            text = await run_in_threadpool(svc.appraise, user_text, image_bytes, mime_type=mime_type)
        except InvalidInputError as exc:
            return _error(str(exc), 400)
        except (ConfigError, AuthError) as exc:
            return _error(str(exc), 500)
        except VertexError as exc:
            if exc.status is None:
                return _error(exc.message or "Generate failed", 500)
            return _error(exc.message, exc.proxy_status, status=exc.status)
        return JSONResponse({"text": text})

    async def session_state(_: Request) -> JSONResponse:
        turns = chat.turns()
        pending = chat.pending_turn()
        return JSONResponse(
            {
                "turns": [_turn_payload(t) for t in turns],
                "pending_turn_id": pending.turn_id if pending else None,
            }
        )

    async def session_submit(request: Request) -> JSONResponse:
        # Early exit only; Session.submit does the authoritative check.
        if chat.pending_turn() is not None:
            return _error("A request is already in progress.", 409)
        try:
            user_text, image_bytes, mime_type = await _read_submission(request)
        except ValueError as exc:
            return _error(str(exc), 400)

        image_ref = None
        if image_bytes:
            mime = sniff_mime_type(image_bytes, mime_type)
            image_ref = f"data:{mime};base64,{base64.b64encode(image_bytes).decode('ascii')}"
        try:
            turn_id = chat.submit(user_text, image_ref)
        except TurnConflictError as exc:
            return _error(str(exc), 409)
        except InvalidInputError as exc:
            return _error(str(exc), 400)

        turn = await run_in_threadpool(
            svc.run_turn, chat, turn_id, user_text, image_bytes, mime_type=mime_type
        )
        if turn is None:
            # Chat was cleared while the request was in flight.
            return _error("Turn no longer exists.", 410)
        return JSONResponse({"turn": _turn_payload(turn)})

    async def session_cancel(_: Request) -> JSONResponse:
        pending = chat.pending_turn()
        if pending is None or not chat.cancel(pending.turn_id):
            return _error("No request in progress.", 404)
        return JSONResponse({"turn": _turn_payload(chat.get(pending.turn_id))})

    async def session_clear(_: Request) -> JSONResponse:
        try:
            chat.clear()
        except InvalidInputError as exc:
            return _error(str(exc), 409)
        return JSONResponse({"turns": [], "pending_turn_id": None})

    async def session_last(_: Request) -> JSONResponse:
        text = chat.last_assistant_text()
        if text is None:
            return _error("No assistant response yet.", 404)
        return JSONResponse({"text": text})

    async def templates(_: Request) -> JSONResponse:
        return JSONResponse({"items": PROMPT_TEMPLATES})

    async def parse(request: Request) -> JSONResponse:
        try:
            body = await request.json()
        except ValueError:
            return _error("Invalid JSON body", 400)
        text = body.get("text") if isinstance(body, dict) else None
        if text is not None and not isinstance(text, str):
            return _error("text must be a string", 400)
        parsed = extract(text)
        return JSONResponse(
            {
                "parsed": parsed.to_dict() if parsed is not None else None,
                "appraisal": summarize(parsed),
            }
        )

    routes = [
        Route("/api/health", health, methods=["GET"]),
        Route("/api/appraise", appraise, methods=["POST"]),
        Route("/api/session", session_state, methods=["GET"]),
        Route("/api/session", session_clear, methods=["DELETE"]),
        Route("/api/session/messages", session_submit, methods=["POST"]),
        Route("/api/session/cancel", session_cancel, methods=["POST"]),
        Route("/api/session/last", session_last, methods=["GET"]),
        Route("/api/templates", templates, methods=["GET"]),
        Route("/api/parse", parse, methods=["POST"]),
    ]

    app = Starlette(debug=False, routes=routes)
    app.state.session = chat
    app.state.service = svc

    origins = allow_origins or ["http://localhost:8000", "http://127.0.0.1:8000"]
    if "*" in origins:
        cors_allow_origins = ["*"]
    else:
        cors_allow_origins = origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if resolved_static_dir:
        app.mount("/", StaticFiles(directory=resolved_static_dir, html=True), name="chat")
    else:
        async def api_only(_: Request) -> JSONResponse:
            return JSONResponse({"detail": "Appraisal API is running. Chat page disabled."})

        app.add_route("/", api_only, methods=["GET"])

    return app


__all__ = ["create_app"]
