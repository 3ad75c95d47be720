from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

BlockType = Literal["benefit", "cta", "faq", "promo", "info"]

BLOCK_TYPES = ("benefit", "cta", "faq", "promo", "info")

# Locale value marking a block as valid for every page locale
GLOBAL_LOCALE = "*"


class BlockConstraints(BaseModel):
    slots: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    mutually_exclusive: List[str] = Field(default_factory=list)

    # null means unconstrained, same as an empty list
    @field_validator("slots", "categories", "mutually_exclusive", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return [] if value is None else value


class BlockMedia(BaseModel):
    image: Optional[str] = None
    alt: Optional[str] = None


class ContentBlock(BaseModel):
    """A reusable unit of page content, stored in the CMS-as-data layer.

    Shape rules (id format, field lengths, weight range) are enforced by
    :func:`app.services.blocks.validate_block` on admin writes, not here.
    """

    id: str
    type: str
    title: str
    body: str
    weight: int = 1
    locale: str
    reviewed: bool = False
    constraints: BlockConstraints = Field(default_factory=BlockConstraints)
    media: Optional[BlockMedia] = None

    @field_validator("constraints", mode="before")
    @classmethod
    def _none_as_unconstrained(cls, value):
        return BlockConstraints() if value is None else value


class SelectionContext(BaseModel):
    category_id: str
    locale: str
    page_key: str
    build_salt: str


class BlockStatistics(BaseModel):
    total: int
    by_type: Dict[str, int]
    by_locale: Dict[str, int]
    by_category: Dict[str, int]
    reviewed: int
    unreviewed: int


class BlockListResponse(BaseModel):
    blocks: List[ContentBlock]
    total: int
    types: List[str]
    slots: List[str]


class BlockImportResponse(BaseModel):
    imported: int
    skipped: List[str]
