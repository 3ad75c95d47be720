from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

TemplateType = Literal["converter", "directory", "news", "information", "custom"]


class SeoSettings(BaseModel):
    title_template: str = "{category} - {param}"
    description_template: str = "{category}"
    canonical_pattern: str = "/{locale}/{category}/{identifier}"


class Category(BaseModel):
    id: str
    slug: str
    name: str
    description: Optional[str] = None
    url_pattern: str
    template_type: TemplateType
    locales: List[str]
    priority: int = 0
    is_active: bool = True
    seo_settings: SeoSettings = Field(default_factory=SeoSettings)


class PageIdentifier(BaseModel):
    """A resolved category page: slug, raw identifier, locale and pattern params."""

    category: str
    identifier: str
    locale: str
    params: Dict[str, str]


class Locale(BaseModel):
    code: str
    name: str
    native_name: str
    is_active: bool = True
    is_default: bool = False


class LocaleCreate(BaseModel):
    code: str = Field(min_length=2, max_length=2)
    name: str = Field(min_length=1)
    native_name: str = Field(min_length=1)
    is_active: bool = True


class DefaultLocaleRequest(BaseModel):
    code: str
