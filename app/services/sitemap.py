"""Sitemap partitioning, validation, statistics and XML/robots rendering."""

import logging
from typing import List, Optional, Sequence, Tuple
from urllib.parse import urlparse
from xml.etree import ElementTree

from app.models.sitemap import SitemapChunk, SitemapEntry, SitemapStats, ValidationResult

logger = logging.getLogger(__name__)

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"

_XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'

_ALLOWED_SCHEMES = {"http", "https"}


def chunk_filename(index: int) -> str:
    return f"sitemap-{index}.xml"


def chunk_url(base_url: str, index: int) -> str:
    """Return the public URL of chunk *index* under *base_url*."""
    return f"{base_url.rstrip('/')}/sitemaps/{chunk_filename(index)}"


def _serialize(root: ElementTree.Element) -> str:
    ElementTree.indent(root, space="  ")
    return _XML_DECLARATION + "\n" + ElementTree.tostring(root, encoding="unicode")


def generate_urlset_xml(entries: Sequence[SitemapEntry]) -> str:
    """Render *entries* as a sitemaps.org ``urlset`` document."""
    root = ElementTree.Element("urlset", xmlns=SITEMAP_NS)
    for entry in entries:
        url = ElementTree.SubElement(root, "url")
        ElementTree.SubElement(url, "loc").text = entry.loc or ""
        if entry.lastmod:
            ElementTree.SubElement(url, "lastmod").text = entry.lastmod
        if entry.changefreq:
            ElementTree.SubElement(url, "changefreq").text = entry.changefreq
        if entry.priority is not None:
            ElementTree.SubElement(url, "priority").text = str(entry.priority)
    return _serialize(root)


def chunk_entries(entries: Sequence[SitemapEntry], max_per_chunk: int) -> List[SitemapChunk]:
    """Split *entries* into consecutive chunks of at most *max_per_chunk* URLs.

    Input order is preserved; this function never sorts.  Each chunk's
    ``size`` is the UTF-8 byte length of its rendered ``urlset``.

    Raises:
        ValueError: if *max_per_chunk* is smaller than 1.
    """
    if max_per_chunk < 1:
        raise ValueError("max_per_chunk must be at least 1")

    chunks: List[SitemapChunk] = []
    for start in range(0, len(entries), max_per_chunk):
        urls = list(entries[start:start + max_per_chunk])
        xml = generate_urlset_xml(urls)
        chunks.append(
            SitemapChunk(
                filename=chunk_filename(len(chunks)),
                urls=urls,
                size=len(xml.encode("utf-8")),
            )
        )
    return chunks


def _is_absolute_url(loc: str) -> bool:
    parsed = urlparse(loc)
    return parsed.scheme in _ALLOWED_SCHEMES and bool(parsed.netloc)


def validate_entries(entries: Sequence[SitemapEntry]) -> ValidationResult:
    """Check *entries* and collect every problem found.

    Callers must refuse to publish a sitemap when the result is not valid.
    """
    errors: List[str] = []

    if not entries:
        errors.append("No URLs found in sitemap")

    for entry in entries:
        if not entry.loc:
            errors.append("URL missing location")
            continue
        if not _is_absolute_url(entry.loc):
            errors.append(f"Invalid URL format: {entry.loc}")
        if entry.priority is not None and not 0 <= entry.priority <= 1:
            errors.append(f"Invalid priority value: {entry.priority} for {entry.loc}")

    return ValidationResult(valid=not errors, errors=errors)


def sitemap_stats(entries: Sequence[SitemapEntry], chunks: Sequence[SitemapChunk]) -> SitemapStats:
    total_urls = len(entries)
    total_chunks = len(chunks)
    return SitemapStats(
        total_urls=total_urls,
        total_chunks=total_chunks,
        total_size=sum(c.size for c in chunks),
        average_urls_per_chunk=total_urls / total_chunks if total_chunks else 0,
        largest_chunk=max((len(c.urls) for c in chunks), default=0),
    )


def generate_index_xml(
    chunks: Sequence[SitemapChunk], base_url: str, lastmod: Optional[str] = None
) -> str:
    """Render a ``sitemapindex`` referencing every chunk under *base_url*.

    *lastmod* is stamped on every ``<sitemap>`` when given; it is a parameter
    rather than the current time so that output depends only on the inputs.
    """
    root = ElementTree.Element("sitemapindex", xmlns=SITEMAP_NS)
    for index, _ in enumerate(chunks):
        sitemap = ElementTree.SubElement(root, "sitemap")
        ElementTree.SubElement(sitemap, "loc").text = chunk_url(base_url, index)
        if lastmod:
            ElementTree.SubElement(sitemap, "lastmod").text = lastmod
    return _serialize(root)


def generate_robots_txt(chunks: Sequence[SitemapChunk], base_url: str) -> str:
    """Return robots directives listing the sitemap index and every chunk."""
    base = base_url.rstrip("/")
    lines = [
        "User-agent: *",
        "Allow: /",
        "Disallow: /api/",
        "",
        f"Sitemap: {base}/sitemap.xml",
    ]
    lines.extend(f"Sitemap: {chunk_url(base, index)}" for index, _ in enumerate(chunks))
    return "\n".join(lines) + "\n"


def parse_sitemap(xml_text: str) -> Tuple[str, List[str]]:
    """Return the document kind and every ``<loc>`` value of a sitemap.

    The kind is ``"urlset"``, ``"sitemapindex"``, or ``""`` when the text is
    not XML or has some other root element.
    """
    try:
        root = ElementTree.fromstring(xml_text)
    except ElementTree.ParseError as exc:
        logger.warning("Failed to parse sitemap XML: %s", exc)
        return "", []

    ns = root.tag.split("}")[0] + "}" if root.tag.startswith("{") else ""
    kind = root.tag[len(ns):]
    if kind not in ("urlset", "sitemapindex"):
        return "", []
    locs = [elem.text.strip() for elem in root.iter(f"{ns}loc") if elem.text]
    return kind, locs
