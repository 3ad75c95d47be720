import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from app import config
from app.models.category import Category, Locale
from app.models.sitemap import (
    ChunkSummary,
    SitemapFileIssue,
    SitemapListResponse,
    SitemapValidateRequest,
    SitemapValidateResponse,
)
from app.routers.sitemaps import site_entries, validated_chunks
from app.services.fetcher import sitemap_problem
from app.services.repository import InMemoryRepository, get_category_repository, get_locale_repository
from app.services.sitemap import sitemap_stats

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)
router = APIRouter(prefix="/api/ops", tags=["ops"])


def _resolve(file: str) -> Optional[str]:
    """Return the URL to check for *file*, or None if it is neither absolute nor site-relative."""
    if file.startswith(("http://", "https://")):
        return file
    if file.startswith("/"):
        return config.SITE_URL + file
    return None


@router.get("/sitemaps/list", response_model=SitemapListResponse, summary="Sitemap chunks and statistics")
@limiter.limit("30/minute")
async def list_sitemaps(
    request: Request,
    categories: InMemoryRepository[Category] = Depends(get_category_repository),
    locales: InMemoryRepository[Locale] = Depends(get_locale_repository),
) -> SitemapListResponse:
    entries = await site_entries(categories, locales)
    chunks = validated_chunks(entries)
    return SitemapListResponse(
        index=f"{config.SITE_URL}/sitemap.xml",
        chunks=[ChunkSummary(filename=c.filename, url_count=len(c.urls), size=c.size) for c in chunks],
        stats=sitemap_stats(entries, chunks),
    )


@router.post(
    "/sitemaps/validate",
    response_model=SitemapValidateResponse,
    summary="Check published sitemap files",
    description=(
        "Fetches each file (absolute, or relative to the site URL) and reports "
        "files that cannot be fetched or are not a `urlset`/`sitemapindex` document."
    ),
)
@limiter.limit("5/minute")
async def validate_sitemaps(request: Request, body: SitemapValidateRequest) -> SitemapValidateResponse:
    logger.info("Sitemap check requested", extra={"files": len(body.files)})

    issues: List[SitemapFileIssue] = []
    for file in body.files:
        url = _resolve(file)
        problem = await sitemap_problem(url) if url else "Expected an absolute URL or a path starting with /"
        if problem:
            issues.append(SitemapFileIssue(file=file, problem=problem))

    return SitemapValidateResponse(ok=not issues, issues=issues)
