"""
Auction appraisal – photo in, structured auction appraisal out.

Modules:
- domain: reply field extraction, card rendering helpers, chat session
- vertex: Vertex AI endpoint URL, request body, credentials, HTTP client
- service: ties a request to the remote call and the session
- web: Starlette app (appraisal proxy, session API, chat page)
- cli: `auction-appraisal` command line entry point
"""

__version__ = "0.1.0"

__all__ = [
    "config",
    "domain",
    "errors",
    "logging",
    "service",
    "vertex",
    "web",
]
