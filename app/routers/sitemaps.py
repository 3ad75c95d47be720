import logging
import re
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse, Response

from app import config
from app.models.category import Category, Locale
from app.models.sitemap import SitemapChunk, SitemapEntry
from app.services.repository import InMemoryRepository, get_category_repository, get_locale_repository
from app.services.sitemap import (
    chunk_entries,
    generate_index_xml,
    generate_robots_txt,
    generate_urlset_xml,
    sitemap_stats,
    validate_entries,
)
from app.services.url_enumerator import collect_entries

logger = logging.getLogger(__name__)

router = APIRouter(tags=["sitemaps"])

_CHUNK_FILENAME = re.compile(r"^sitemap-(0|[1-9]\d*)\.xml$")

_CACHE_HEADERS = {"Cache-Control": "public, max-age=3600, s-maxage=3600"}


async def site_entries(
    categories: InMemoryRepository[Category], locales: InMemoryRepository[Locale]
) -> List[SitemapEntry]:
    return await collect_entries(
        config.SITE_URL,
        categories.list(),
        locales.list(),
        default_locale=config.DEFAULT_LOCALE,
        wordpress_url=config.WORDPRESS_URL,
    )


def validated_chunks(entries: List[SitemapEntry]) -> List[SitemapChunk]:
    """Validate and chunk the site's URLs.

    Raises a 500 carrying every validation error instead of publishing a
    partially correct sitemap.
    """
    validation = validate_entries(entries)
    if not validation.valid:
        logger.error("Sitemap validation failed: %s", validation.errors)
        raise HTTPException(
            status_code=500,
            detail={"error": "Sitemap validation failed", "details": validation.errors},
        )

    chunks = chunk_entries(entries, config.MAX_URLS_PER_SITEMAP)
    stats = sitemap_stats(entries, chunks)
    logger.info(
        "Sitemap generated",
        extra={
            "total_urls": stats.total_urls,
            "total_chunks": stats.total_chunks,
            "total_size_mb": round(stats.total_size / (1024 * 1024), 2),
            "largest_chunk": stats.largest_chunk,
        },
    )
    return chunks


@router.get("/sitemap.xml", summary="Sitemap index")
async def sitemap_index(
    categories: InMemoryRepository[Category] = Depends(get_category_repository),
    locales: InMemoryRepository[Locale] = Depends(get_locale_repository),
) -> Response:
    chunks = validated_chunks(await site_entries(categories, locales))
    return Response(
        content=generate_index_xml(chunks, config.SITE_URL),
        media_type="application/xml",
        headers=_CACHE_HEADERS,
    )


@router.get("/sitemaps/{filename}", summary="One sitemap chunk")
async def sitemap_chunk(
    filename: str,
    categories: InMemoryRepository[Category] = Depends(get_category_repository),
    locales: InMemoryRepository[Locale] = Depends(get_locale_repository),
) -> Response:
    match = _CHUNK_FILENAME.match(filename)
    if not match:
        raise HTTPException(status_code=400, detail="Invalid sitemap filename")

    chunks = validated_chunks(await site_entries(categories, locales))
    index = int(match.group(1))
    if index >= len(chunks):
        raise HTTPException(status_code=404, detail="Sitemap chunk not found")

    return Response(
        content=generate_urlset_xml(chunks[index].urls),
        media_type="application/xml",
        headers=_CACHE_HEADERS,
    )


@router.get("/robots.txt", response_class=PlainTextResponse, summary="Robots directives")
async def robots(
    categories: InMemoryRepository[Category] = Depends(get_category_repository),
    locales: InMemoryRepository[Locale] = Depends(get_locale_repository),
) -> PlainTextResponse:
    entries = await site_entries(categories, locales)
    chunks = chunk_entries(entries, config.MAX_URLS_PER_SITEMAP)
    return PlainTextResponse(generate_robots_txt(chunks, config.SITE_URL), headers=_CACHE_HEADERS)
