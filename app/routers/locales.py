import logging

from fastapi import APIRouter, Depends, HTTPException

from app.models.category import DefaultLocaleRequest, Locale, LocaleCreate
from app.services.repository import DuplicateKeyError, InMemoryRepository, get_locale_repository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/locales", tags=["admin"])

LocaleRepository = InMemoryRepository[Locale]


@router.get("", summary="List locales")
async def list_locales(repo: LocaleRepository = Depends(get_locale_repository)) -> dict:
    locales = repo.list()
    return {"locales": [loc.model_dump() for loc in locales], "total": len(locales)}


@router.post("", status_code=201, summary="Add a locale")
async def create_locale(body: LocaleCreate, repo: LocaleRepository = Depends(get_locale_repository)) -> dict:
    locale = Locale(**body.model_dump(), is_default=False)
    locale.code = locale.code.lower()
    try:
        repo.create(locale)
    except DuplicateKeyError:
        raise HTTPException(status_code=409, detail="Locale code already exists")
    return {"locale": locale.model_dump()}


@router.put("/default", summary="Set the default locale")
async def set_default_locale(
    body: DefaultLocaleRequest, repo: LocaleRepository = Depends(get_locale_repository)
) -> dict:
    target = repo.get(body.code)
    if target is None:
        raise HTTPException(status_code=404, detail="Locale not found")
    if not target.is_active:
        raise HTTPException(status_code=400, detail="Default locale must be active")

    # Exactly one locale carries the default flag
    for locale in repo.list():
        is_default = locale.code == body.code
        if locale.is_default != is_default:
            locale.is_default = is_default
            repo.update(locale)

    logger.info("Default locale changed", extra={"locale": body.code})
    return {"default": body.code}
