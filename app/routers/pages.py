import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app import config
from app.models.block import ContentBlock, SelectionContext
from app.models.category import Category, Locale
from app.models.page import PageModel
from app.services.categories import (
    generate_page_path,
    generate_seo_description,
    generate_seo_title,
    get_category_by_slug,
    parse_page_path,
)
from app.services.repository import (
    InMemoryRepository,
    get_block_repository,
    get_category_repository,
    get_locale_repository,
)
from app.services.selection import select_blocks

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/pages", tags=["pages"])


@router.get(
    "/{locale}/{category}/{identifier:path}",
    response_model=PageModel,
    summary="Resolve a category page and its content blocks",
)
async def get_page(
    locale: str,
    category: str,
    identifier: str,
    max_per_slot: Optional[int] = Query(default=None, ge=0, le=20),
    blocks: InMemoryRepository[ContentBlock] = Depends(get_block_repository),
    categories: InMemoryRepository[Category] = Depends(get_category_repository),
    locales: InMemoryRepository[Locale] = Depends(get_locale_repository),
) -> PageModel:
    """Return SEO metadata and the slot → blocks selection for one page.

    Block rotation is seeded by the page path and the build SHA, so the
    same page shows the same blocks for the whole build.
    """
    all_categories = categories.list()
    active_locales = [loc.code for loc in locales.list() if loc.is_active]

    if locale not in active_locales:
        raise HTTPException(status_code=404, detail="Page not found")

    page_id = parse_page_path(
        f"{locale}/{category}/{identifier}", all_categories, active_locales, config.DEFAULT_LOCALE
    )
    if page_id is None:
        raise HTTPException(status_code=404, detail="Page not found")

    cat = get_category_by_slug(all_categories, page_id.category)
    path = generate_page_path(cat, page_id.identifier, locale, config.DEFAULT_LOCALE)

    hreflang = {
        code: config.SITE_URL + generate_page_path(cat, page_id.identifier, code, config.DEFAULT_LOCALE)
        for code in active_locales
        if code in cat.locales
    }
    hreflang["x-default"] = config.SITE_URL + generate_page_path(
        cat, page_id.identifier, config.DEFAULT_LOCALE, config.DEFAULT_LOCALE
    )

    context = SelectionContext(
        category_id=cat.id,
        locale=locale,
        page_key=path,
        build_salt=config.BUILD_SHA,
    )
    selected = select_blocks(
        blocks.list(),
        context,
        config.DEFAULT_SLOTS,
        config.MAX_BLOCKS_PER_SLOT if max_per_slot is None else max_per_slot,
        locale_policy=config.BLOCK_LOCALE_POLICY,
        ordering=config.BLOCK_ORDERING,
    )
    logger.info("Page resolved", extra={"path": path, "category": cat.id})

    return PageModel(
        path=path,
        canonical=config.SITE_URL + path,
        title=generate_seo_title(cat.seo_settings.title_template, page_id.params, cat),
        description=generate_seo_description(cat.seo_settings.description_template, page_id.params, cat),
        template_type=cat.template_type,
        identifier=page_id,
        hreflang=hreflang,
        blocks=selected,
    )
