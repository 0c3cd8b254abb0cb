from __future__ import annotations

import argparse
import json
import mimetypes
import os
import sys
from typing import Sequence

from ..config import load_vertex_config
from ..domain import RawAppraisal, display_rows, extract
from ..errors import AppraisalError, InvalidInputError
from ..logging import get_logger
from ..service import AppraisalService
from ..vertex.endpoint import MISSING_CONFIG_MESSAGE, resolve_generate_content_url

LOG = get_logger("cli-main")


def _print_parsed(text: str, as_json: bool) -> None:
    parsed = extract(text)
    if as_json:
        print(json.dumps(parsed.to_dict() if parsed is not None else None, ensure_ascii=False))
        return
    if parsed is None:
        print("No response.")
        return
    if isinstance(parsed, RawAppraisal):
        print(parsed.text)
        return
    if parsed.get("itemName"):
        print(parsed.get("itemName"))
    for label, value in display_rows(parsed):
        print(f"{label}: {value}")
    if parsed.get("price"):
        print(f"Price: {parsed.get('price')}")


def _add_serve_cli(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    serve = subparsers.add_parser("serve", help="Run the appraisal web app (API + chat page).")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true", help="Enable auto-reload (development only)")
    serve.add_argument("--log-level", default="info")
    serve.add_argument("--static-dir", help="Override the directory the chat page is served from")
    serve.add_argument("--api-only", action="store_true", help="Serve the JSON API without the chat page")
    serve.add_argument(
        "--allow-origin",
        action="append",
        dest="allow_origins",
        help="Allowed CORS origin (can be provided multiple times, use '*' for any).",
    )

    def _serve(ns: argparse.Namespace) -> int:
        from ..web import create_app
        import uvicorn

        cfg = load_vertex_config(os.getcwd())
        if resolve_generate_content_url(cfg) is None:
            LOG.warning(MISSING_CONFIG_MESSAGE)

        app = create_app(
            service=AppraisalService(cfg),
            static_dir=ns.static_dir,
            allow_origins=ns.allow_origins,
            serve_static=not ns.api_only,
        )
        uvicorn.run(app, host=ns.host, port=ns.port, reload=ns.reload, log_level=ns.log_level)
        return 0

    serve.set_defaults(handler=_serve)


def main(argv: Sequence[str] | None = None) -> int:
    provided = list(argv) if argv is not None else sys.argv[1:]
    LOG.debug(f"CLI invoked with arguments: {provided}")

    parser = argparse.ArgumentParser(
        prog="auction-appraisal",
        description="Photo-to-appraisal tools backed by a Vertex AI model.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    _add_serve_cli(subparsers)

    appraise_cmd = subparsers.add_parser("appraise", help="Appraise one photo (and/or ask a question) and exit.")
    appraise_cmd.add_argument("--image", help="Path to the item photo")
    appraise_cmd.add_argument("--text", default="", help="Optional note, or the question for text-only chat")
    appraise_cmd.add_argument("--json", action="store_true", help="Print the parsed appraisal as JSON")

    def _appraise(ns: argparse.Namespace) -> int:
        image_bytes = None
        mime_type = None
        if ns.image:
            path = os.path.abspath(os.path.expanduser(ns.image))
            try:
                with open(path, "rb") as f:
                    image_bytes = f.read()
            except OSError as exc:
                LOG.error(f"Cannot read image {path}: {exc}")
                return 2
            mime_type, _ = mimetypes.guess_type(path)
        svc = AppraisalService(load_vertex_config(os.getcwd()))
        try:
            text = svc.appraise(ns.text, image_bytes, mime_type=mime_type)
        except InvalidInputError as exc:
            LOG.error(str(exc))
            return 2
        except AppraisalError as exc:
            LOG.error(f"Appraisal failed: {exc}")
            return 1
        _print_parsed(text, ns.json)
        return 0

    appraise_cmd.set_defaults(handler=_appraise)

    parse_cmd = subparsers.add_parser("parse", help="Parse a saved model reply into appraisal fields.")
    parse_cmd.add_argument("file", nargs="?", help="Reply text file (reads stdin when omitted)")
    parse_cmd.add_argument("--json", action="store_true", help="Print the parsed appraisal as JSON")

    def _parse(ns: argparse.Namespace) -> int:
        if ns.file:
            try:
                with open(ns.file, "r", encoding="utf-8") as f:
                    text = f.read()
            except (OSError, UnicodeDecodeError) as exc:
                LOG.error(f"Cannot read reply file {ns.file}: {exc}")
                return 2
        else:
            text = sys.stdin.read()
        _print_parsed(text, ns.json)
        return 0

    parse_cmd.set_defaults(handler=_parse)

    endpoint_cmd = subparsers.add_parser("endpoint", help="Print the resolved generateContent URL.")

    def _endpoint(_: argparse.Namespace) -> int:
        url = resolve_generate_content_url(load_vertex_config(os.getcwd()))
        if not url:
            LOG.error(MISSING_CONFIG_MESSAGE)
            return 2
        print(url)
        return 0

    endpoint_cmd.set_defaults(handler=_endpoint)

    args = parser.parse_args(provided)
    code = args.handler(args)
    LOG.debug(f"Subcommand '{args.command}' finished with exit code {code}.")
    return code


if __name__ == "__main__":
    sys.exit(main())
