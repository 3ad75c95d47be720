from typing import List

from fastapi import APIRouter

from app.models.seo import SeoConsistencyResult, SeoValidationData, SeoValidationResult
from app.services.seo import validate_seo, validate_seo_consistency

router = APIRouter(prefix="/api/admin/seo", tags=["admin"])


@router.post("/validate", response_model=SeoValidationResult, summary="Score a page's SEO metadata")
async def validate(body: SeoValidationData) -> SeoValidationResult:
    return validate_seo(body)


@router.post(
    "/consistency",
    response_model=SeoConsistencyResult,
    summary="Find duplicate titles and descriptions across pages",
)
async def consistency(body: List[SeoValidationData]) -> SeoConsistencyResult:
    return validate_seo_consistency(body)
