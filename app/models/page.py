from typing import Dict, List

from pydantic import BaseModel

from app.models.block import ContentBlock
from app.models.category import PageIdentifier


class PageModel(BaseModel):
    """A generated category page as consumed by the page templates."""

    path: str
    canonical: str
    title: str
    description: str
    template_type: str
    identifier: PageIdentifier
    hreflang: Dict[str, str]
    blocks: Dict[str, List[ContentBlock]]  # slot -> selected blocks, in render order
