from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class Breadcrumb(BaseModel):
    name: str
    url: str


class SeoValidationData(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    canonical: Optional[str] = None
    hreflang: Optional[Dict[str, str]] = None
    json_ld: List[Dict[str, Any]] = Field(default_factory=list)
    breadcrumbs: List[Breadcrumb] = Field(default_factory=list)


class SeoValidationResult(BaseModel):
    is_valid: bool
    errors: List[str]
    warnings: List[str]
    score: int  # 0-100


class SeoConsistencyResult(BaseModel):
    is_valid: bool
    errors: List[str]
    warnings: List[str]
    duplicate_titles: List[str]
    duplicate_descriptions: List[str]
