"""Editorial pages and posts from a headless WordPress backend."""

import logging
from typing import Dict, List, Union
from urllib.parse import urljoin

import httpx

logger = logging.getLogger(__name__)

_WP_API_TIMEOUT = 15
_WP_PAGE_SIZE = 100
_WP_MAX_ITEMS = 1000

CmsPage = Dict[str, Union[str, float]]


async def _fetch_wp_resource(base_url: str, resource: str, max_items: int = _WP_MAX_ITEMS) -> List[dict]:
    """Fetch published items of a WordPress REST resource type, following pagination.

    Network and HTTP errors end the fetch early; whatever was collected so
    far is returned.
    """
    results: List[dict] = []
    page = 1
    api_url = urljoin(base_url.rstrip("/") + "/", f"wp-json/wp/v2/{resource}")

    async with httpx.AsyncClient(timeout=_WP_API_TIMEOUT, follow_redirects=True) as client:
        while len(results) < max_items:
            try:
                resp = await client.get(
                    api_url,
                    params={
                        "per_page": _WP_PAGE_SIZE,
                        "page": page,
                        "status": "publish",
                        "_fields": "id,slug,link,modified",
                    },
                )
                # WordPress answers 400 once the page number passes the last page
                if resp.status_code == 400:
                    break
                resp.raise_for_status()
                items = resp.json()
                if not items:
                    break
                results.extend(items)
                total_pages = int(resp.headers.get("X-WP-TotalPages", 1))
                if page >= total_pages:
                    break
                page += 1
            except (httpx.HTTPError, ValueError) as exc:
                logger.warning("WP API error fetching %s page %d: %s", resource, page, exc)
                break

    return results[:max_items]


def pages_to_sitemap(items: List[dict]) -> List[CmsPage]:
    pages: List[CmsPage] = []
    for item in items:
        slug = item.get("slug") or ""
        page: CmsPage = {
            "path": f"/{slug}",
            "changefreq": "monthly",
            "priority": 1.0 if slug in ("", "home") else 0.8,
        }
        if item.get("modified"):
            page["lastmod"] = item["modified"]
        pages.append(page)
    return pages


def posts_to_sitemap(items: List[dict]) -> List[CmsPage]:
    posts: List[CmsPage] = []
    for item in items:
        slug = item.get("slug")
        if not slug:
            continue
        post: CmsPage = {"path": f"/blog/{slug}", "changefreq": "weekly", "priority": 0.6}
        if item.get("modified"):
            post["lastmod"] = item["modified"]
        posts.append(post)
    return posts


async def fetch_cms_pages(base_url: str) -> List[CmsPage]:
    """Return sitemap page descriptors for every published WordPress page and post."""
    pages = await _fetch_wp_resource(base_url, "pages")
    posts = await _fetch_wp_resource(base_url, "posts")
    logger.info("Fetched %d WordPress pages and %d posts", len(pages), len(posts))
    return pages_to_sitemap(pages) + posts_to_sitemap(posts)
