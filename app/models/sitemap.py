from typing import List, Literal, Optional

from pydantic import BaseModel, Field

ChangeFreq = Literal["always", "hourly", "daily", "weekly", "monthly", "yearly", "never"]


class SitemapEntry(BaseModel):
    """One ``<url>`` of a sitemap.

    ``loc`` is optional at the model level so that malformed entries reach
    :func:`app.services.sitemap.validate_entries` and are reported there.
    """

    loc: Optional[str] = None
    lastmod: Optional[str] = None
    changefreq: Optional[ChangeFreq] = None
    priority: Optional[float] = None


class SitemapChunk(BaseModel):
    filename: str
    urls: List[SitemapEntry]
    size: int  # bytes of the serialized urlset, UTF-8


class SitemapStats(BaseModel):
    total_urls: int
    total_chunks: int
    total_size: int
    average_urls_per_chunk: float
    largest_chunk: int


class ValidationResult(BaseModel):
    valid: bool
    errors: List[str]


class ChunkSummary(BaseModel):
    filename: str
    url_count: int
    size: int


class SitemapListResponse(BaseModel):
    index: str
    chunks: List[ChunkSummary]
    stats: SitemapStats


class SitemapValidateRequest(BaseModel):
    files: List[str] = Field(default_factory=list, max_length=100)


class SitemapFileIssue(BaseModel):
    file: str
    problem: str


class SitemapValidateResponse(BaseModel):
    ok: bool
    issues: List[SitemapFileIssue]
