from __future__ import annotations

import json
from typing import Any, Optional

import google.auth
from google.auth import exceptions as google_exceptions
from google.auth.transport.requests import Request as AuthRequest
from google.oauth2 import service_account

from ..errors import AuthError
from ..logging import get_logger

LOG = get_logger("vertex-auth")

CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"


def load_credentials(service_account_key: Optional[str] = None) -> Any:
    """Return google-auth credentials scoped for Vertex AI.

    An inline service account JSON (GCP_SERVICE_ACCOUNT_KEY) wins; otherwise
    application default credentials are used (GOOGLE_APPLICATION_CREDENTIALS,
    gcloud login, or the metadata server).
    """
    scopes = [CLOUD_PLATFORM_SCOPE]
    if service_account_key:
        try:
            info = json.loads(service_account_key)
        except ValueError as exc:
            raise AuthError("Invalid GCP_SERVICE_ACCOUNT_KEY JSON.") from exc
        try:
            creds = service_account.Credentials.from_service_account_info(info, scopes=scopes)
        except (ValueError, KeyError) as exc:
            raise AuthError(f"Invalid service account key: {exc}") from exc
        LOG.info("Using service account credentials for %s", info.get("client_email", "<unknown>"))
        return creds
    try:
        creds, project = google.auth.default(scopes=scopes)
    except google_exceptions.DefaultCredentialsError as exc:
        raise AuthError(
            "Could not get Google access token. Check GOOGLE_APPLICATION_CREDENTIALS."
        ) from exc
    LOG.info("Using application default credentials (project=%s)", project)
    return creds


class TokenProvider:
    """Hands out bearer tokens, refreshing the cached credentials when stale."""

    def __init__(self, service_account_key: Optional[str] = None, *, credentials: Any = None) -> None:
        self._key = service_account_key
        self._creds = credentials

    def token(self) -> str:
        if self._creds is None:
            self._creds = load_credentials(self._key)
        if not self._creds.valid:
            try:
                self._creds.refresh(AuthRequest())
            except (google_exceptions.RefreshError, google_exceptions.TransportError) as exc:
                raise AuthError(f"Could not refresh Google access token: {exc}") from exc
        tok = getattr(self._creds, "token", None)
        if not tok:
            raise AuthError("Could not get Google access token. Check GOOGLE_APPLICATION_CREDENTIALS.")
        return tok
