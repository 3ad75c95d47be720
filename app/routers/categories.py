import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from pydantic import ValidationError

from app.models.category import Category
from app.services.categories import validate_category, validate_category_uniqueness
from app.services.repository import (
    DuplicateKeyError,
    InMemoryRepository,
    NotFoundError,
    get_category_repository,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/categories", tags=["admin"])

CategoryRepository = InMemoryRepository[Category]


@router.get("", summary="List categories")
async def list_categories(repo: CategoryRepository = Depends(get_category_repository)) -> dict:
    categories = repo.list()
    return {"categories": [c.model_dump() for c in categories], "total": len(categories)}


@router.post("", status_code=201, summary="Create a category")
async def create_category(
    body: Dict[str, Any] = Body(...),
    repo: CategoryRepository = Depends(get_category_repository),
) -> dict:
    data = dict(body)
    if not data.get("id"):
        data["id"] = data.get("slug")
    category = _to_category(data, repo.list())

    try:
        repo.create(category)
    except DuplicateKeyError:
        raise HTTPException(status_code=409, detail="Category with this ID already exists")

    logger.info("Category created", extra={"category_id": category.id})
    return {"category": category.model_dump()}


@router.put("", summary="Update a category")
async def update_category(
    body: Dict[str, Any] = Body(...),
    repo: CategoryRepository = Depends(get_category_repository),
) -> dict:
    category_id = body.get("id")
    existing = repo.get(category_id) if category_id else None
    if existing is None:
        raise HTTPException(status_code=404, detail="Category not found")

    category = _to_category({**existing.model_dump(), **body}, repo.list())
    try:
        repo.update(category)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Category not found")
    return {"category": category.model_dump()}


@router.delete("", summary="Delete a category")
async def delete_category(
    id: str = Query(..., min_length=1),
    repo: CategoryRepository = Depends(get_category_repository),
) -> dict:
    try:
        deleted = repo.delete(id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Category not found")
    return {"message": "Category deleted successfully", "deleted_category": deleted.model_dump()}


def _to_category(data: Dict[str, Any], existing: List[Category]) -> Category:
    errors = validate_category(data)
    if errors:
        raise HTTPException(status_code=400, detail={"error": "Validation failed", "details": errors})

    try:
        category = Category.model_validate(data)
    except ValidationError as exc:
        details = [f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in exc.errors()]
        raise HTTPException(status_code=400, detail={"error": "Validation failed", "details": details})

    conflicts = validate_category_uniqueness(existing, category)
    if conflicts:
        raise HTTPException(status_code=400, detail={"error": "Validation failed", "details": conflicts})
    return category
