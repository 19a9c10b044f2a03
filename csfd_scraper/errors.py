"""
Error types for the ČSFD scraper.

Every failure surfaced by the library derives from CsfdError. Network and
HTTP failures carry the URL that failed, parse failures describe the part of
the page that could not be read. The string form of each error is what the
desktop host receives.
"""

from typing import Any
from typing import Dict
from typing import Optional


class CsfdError(Exception):
    """Base class for all ČSFD scraper errors."""

    kind = "error"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the error for the host binding."""
        return {"kind": self.kind, "message": str(self)}


class HttpError(CsfdError):
    """HTTP request failed after all retries, or with a fatal status."""

    kind = "http"

    def __init__(self, url: str, status: Optional[int] = None, reason: Optional[str] = None) -> None:
        self.url = url
        self.status = status
        self.reason = reason
        detail = reason or (f"status {status}" if status is not None else "request error")
        super().__init__(f"HTTP request failed: {detail} ({url})")

    @property
    def is_server_error(self) -> bool:
        return self.status is not None and 500 <= self.status < 600


class NetworkError(HttpError):
    """Timeout or connection failure that persisted through all retries."""

    kind = "network"


class RateLimitedError(HttpError):
    """Server kept answering HTTP 429."""

    kind = "rate_limited"

    def __init__(self, url: str) -> None:
        self.url = url
        self.status = 429
        self.reason = None
        CsfdError.__init__(self, "Rate limited - too many requests")


class NotFoundError(CsfdError):
    """Requested page does not exist (HTTP 404)."""

    kind = "not_found"

    def __init__(self, what: str) -> None:
        self.what = what
        super().__init__(f"Series not found: {what}")


class ParseError(CsfdError):
    """Page HTML could not be turned into a record."""

    kind = "parse"

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Failed to parse HTML: {detail}")


class ElementNotFoundError(ParseError):
    """A required element is missing from the page, usually layout drift."""

    kind = "element_not_found"

    def __init__(self, element: str) -> None:
        self.element = element
        CsfdError.__init__(self, f"Element not found: {element}")
        self.detail = element


class InvalidUrlError(CsfdError):
    """Request input cannot be turned into a valid URL."""

    kind = "invalid_url"

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Invalid URL: {detail}")


class InvalidIdError(CsfdError):
    """ČSFD identifiers are positive integers."""

    kind = "invalid_id"

    def __init__(self, csfd_id: Any) -> None:
        self.csfd_id = csfd_id
        super().__init__(f"Invalid CSFD ID: {csfd_id}")
