"""Direct fetch provider — one page per source, with SSRF protection.

Used when no search API is configured. Security requirements:
- SSRF guard: ipaddress module blocks private/loopback/link-local ranges before
  any connection is established.
- Allowed URL schemes: https:// and http:// only.
- Content-Type whitelist: text/html and text/plain only.
- Max response body: 5 MB.
- Timeout: configurable, default 30 seconds (connect + read).
- Max redirects: 3.
"""

from __future__ import annotations

import ipaddress
import socket
import urllib.error
import urllib.parse
import urllib.request
from http.client import HTTPResponse

from bs4 import BeautifulSoup

from sentinel.errors import CrawlError
from sentinel.ingest.extract import html_to_text
from sentinel.sources.base import CrawlProvider
from sentinel.sources.pages import UNTITLED
from sentinel.store.models import PageRecord

_USER_AGENT = "sentinel/0.1 (knowledge crawler)"
_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
_MAX_REDIRECTS = 3
_ALLOWED_SCHEMES = {"https", "http"}
_ALLOWED_CONTENT_TYPES = {"text/html", "text/plain"}


class SsrfError(CrawlError):
    """Raised when a URL resolves to a private or reserved address."""


class DirectFetchProvider(CrawlProvider):
    """Fetch the source URL itself and return it as a single page.

    SSRF protection is applied *before* any connection is made: the hostname
    is resolved and every resulting address is checked against private,
    loopback, link-local and reserved ranges.
    """

    name = "direct"

    def __init__(self, timeout: float = 30.0) -> None:
        self.timeout = timeout

    def fetch_pages(self, url: str) -> list[PageRecord]:
        self._validate_scheme(url)
        self._check_ssrf(url)
        body, content_type = self._fetch(url)
        page = self._to_page(url, body, content_type)
        return [page] if page.text.strip() else []

    # ------------------------------------------------------------------
    # Fetch pipeline
    # ------------------------------------------------------------------

    @staticmethod
    def _validate_scheme(url: str) -> None:
        parsed = urllib.parse.urlparse(url)
        if parsed.scheme not in _ALLOWED_SCHEMES:
            raise CrawlError(
                f"Unsupported URL scheme '{parsed.scheme}'. Only https:// and http:// are allowed."
            )

    @staticmethod
    def _check_ssrf(url: str) -> None:
        """Resolve the hostname and block private/reserved IP ranges."""
        hostname = urllib.parse.urlparse(url).hostname
        if not hostname:
            raise CrawlError(f"URL has no hostname: {url}")

        try:
            addrinfos = socket.getaddrinfo(hostname, None)
        except socket.gaierror as exc:
            raise CrawlError(f"DNS resolution failed for '{hostname}': {exc}") from exc

        for addrinfo in addrinfos:
            try:
                ip = ipaddress.ip_address(addrinfo[4][0])
            except ValueError:
                continue
            if (
                ip.is_private
                or ip.is_loopback
                or ip.is_link_local
                or ip.is_reserved
                or ip.is_multicast
                or ip.is_unspecified
            ):
                raise SsrfError(
                    f"URL resolves to private address ({ip}). "
                    "Access to internal network addresses is not allowed."
                )

    def _fetch(self, url: str) -> tuple[bytes, str]:
        """Fetch *url* with timeout, redirect limit, size cap, and Content-Type check.

        Returns (body_bytes, content_type_without_params).
        """
        request = urllib.request.Request(url, headers={"User-Agent": _USER_AGENT})
        opener = urllib.request.build_opener(_LimitedRedirectHandler(_MAX_REDIRECTS))

        try:
            response: HTTPResponse = opener.open(request, timeout=self.timeout)
        except (urllib.error.URLError, TimeoutError, OSError) as exc:
            raise CrawlError(f"Failed to fetch URL '{url}': {exc}") from exc

        with response:
            ct = response.headers.get("Content-Type", "text/html").split(";")[0].strip().lower()
            if ct not in _ALLOWED_CONTENT_TYPES:
                raise CrawlError(
                    f"Unsupported Content-Type '{ct}' for URL '{url}'. "
                    f"Accepted: {', '.join(sorted(_ALLOWED_CONTENT_TYPES))}"
                )
            body = response.read(_MAX_BYTES + 1)

        if len(body) > _MAX_BYTES:
            raise CrawlError(
                f"Response body exceeds {_MAX_BYTES // (1024 * 1024)} MB limit for URL '{url}'."
            )
        return body, ct

    @staticmethod
    def _to_page(url: str, body: bytes, content_type: str) -> PageRecord:
        text = body.decode("utf-8", errors="replace")
        if content_type == "text/plain":
            return PageRecord(url=url, title=UNTITLED, text=text)

        soup = BeautifulSoup(text, "html.parser")
        title = soup.title.get_text(strip=True) if soup.title else ""
        return PageRecord(url=url, title=title or UNTITLED, text=html_to_text(text))


class _LimitedRedirectHandler(urllib.request.HTTPRedirectHandler):
    """Raise an error after more than *max_redirects* redirects."""

    def __init__(self, max_redirects: int) -> None:
        self._max_redirects = max_redirects
        self._count = 0

    def redirect_request(self, req, fp, code, msg, headers, newurl):
        self._count += 1
        if self._count > self._max_redirects:
            raise CrawlError(
                f"Too many redirects (>{self._max_redirects}) for URL '{req.full_url}'."
            )
        return super().redirect_request(req, fp, code, msg, headers, newurl)
