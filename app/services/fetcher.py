"""Fetch published sitemap files and say what, if anything, is wrong with them.

Only public http(s) hosts are contacted, every redirect target is checked
the same way, and bodies larger than a sitemap may legally be are refused
before they are read.
"""

import ipaddress
import logging
import socket
from typing import Optional
from urllib.parse import urljoin, urlparse

import httpx

from app.services.sitemap import parse_sitemap

logger = logging.getLogger(__name__)

MAX_CONTENT_SIZE = 50 * 1024 * 1024  # sitemaps.org cap on an uncompressed sitemap
TIMEOUT = 10  # seconds
MAX_REDIRECTS = 5
ALLOWED_SCHEMES = {"http", "https"}

_REQUEST_HEADERS = {
    "Accept": "application/xml, text/xml;q=0.9",
    "Cache-Control": "no-store",
}

_XML_MEDIA_TYPES = {"application/xml", "text/xml", "application/x-xml"}


def _is_private_address(hostname: str) -> bool:
    """Return True if *hostname* resolves to a private, loopback, or link-local address."""
    try:
        infos = socket.getaddrinfo(hostname, None)
    except socket.gaierror:
        return False

    for info in infos:
        # Strip IPv6 zone IDs ("fe80::1%eth0")
        raw_ip = info[4][0].split("%")[0]
        try:
            addr = ipaddress.ip_address(raw_ip)
        except ValueError:
            continue
        if addr.is_private or addr.is_loopback or addr.is_link_local or addr.is_reserved:
            return True
    return False


def _validate_url(url: str) -> None:
    """Raise ValueError unless *url* is an absolute http(s) URL on a public host."""
    parsed = urlparse(url)

    if parsed.scheme not in ALLOWED_SCHEMES:
        raise ValueError(f"Scheme '{parsed.scheme}' is not allowed. Use http or https.")

    hostname = parsed.hostname
    if not hostname:
        raise ValueError("URL must have a valid hostname.")

    if _is_private_address(hostname):
        raise ValueError("Requests to private/internal addresses are not allowed.")


def _check_headers(response: httpx.Response) -> None:
    """Reject a response by its headers alone: wrong media type or advertised size."""
    media_type = response.headers.get("content-type", "").split(";")[0].strip().lower()
    if media_type and media_type not in _XML_MEDIA_TYPES and not media_type.endswith("+xml"):
        raise ValueError(f"Unexpected content type '{media_type}'")

    content_length = response.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > MAX_CONTENT_SIZE:
        raise RuntimeError("Response body exceeds the maximum allowed size.")


async def _read_capped(response: httpx.Response) -> str:
    chunks = []
    total = 0
    async for chunk in response.aiter_bytes():
        total += len(chunk)
        if total > MAX_CONTENT_SIZE:
            raise RuntimeError("Response body exceeds the maximum allowed size.")
        chunks.append(chunk)
    return b"".join(chunks).decode(errors="replace")


async def fetch_sitemap(url: str) -> str:
    """Fetch the sitemap document at *url* and return it as text.

    Raises:
        ValueError: if the URL or a redirect target is rejected, or the
            response is not served as XML.
        httpx.HTTPError: on network errors or a non-2xx status.
        RuntimeError: if the body is too large or redirects loop.
    """
    _validate_url(url)

    current_url = url
    async with httpx.AsyncClient(follow_redirects=False, timeout=TIMEOUT) as client:
        for _ in range(MAX_REDIRECTS + 1):
            async with client.stream("GET", current_url, headers=_REQUEST_HEADERS) as response:
                if response.is_redirect:
                    current_url = urljoin(current_url, response.headers.get("location", ""))
                    _validate_url(current_url)
                    continue

                response.raise_for_status()
                _check_headers(response)
                return await _read_capped(response)

    raise RuntimeError("Too many redirects.")


async def sitemap_problem(url: str) -> Optional[str]:
    """Return a short description of what is wrong with the sitemap at *url*.

    Returns *None* for a reachable ``urlset`` or ``sitemapindex`` that lists
    at least one location.
    """
    try:
        xml_text = await fetch_sitemap(url)
    except ValueError as exc:
        return str(exc)
    except httpx.HTTPStatusError as exc:
        return f"HTTP {exc.response.status_code}"
    except (httpx.HTTPError, RuntimeError) as exc:
        logger.error("Error fetching sitemap %s: %s", url, exc)
        return str(exc) or type(exc).__name__

    kind, locs = parse_sitemap(xml_text)
    if not kind:
        return "Not a valid sitemap or index"
    if not locs:
        return f"Empty {kind}"
    return None
