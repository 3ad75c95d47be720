"""SEO guardrails for generated pages."""

import json
from collections import defaultdict
from typing import Dict, List, Sequence
from urllib.parse import urlparse

from app.models.seo import SeoConsistencyResult, SeoValidationData, SeoValidationResult

MAX_TITLE_LENGTH = 60
MIN_TITLE_LENGTH = 10
MAX_DESCRIPTION_LENGTH = 160
MIN_DESCRIPTION_LENGTH = 50
MAX_CANONICAL_LENGTH = 2048
MAX_JSON_LD_SIZE = 10000


def _is_url(value: str) -> bool:
    parsed = urlparse(value)
    return bool(parsed.scheme) and bool(parsed.netloc)


def validate_seo(data: SeoValidationData) -> SeoValidationResult:
    """Score a page's SEO metadata out of 100 and list what is wrong with it."""
    errors: List[str] = []
    warnings: List[str] = []
    score = 100

    if data.title:
        length = len(data.title)
        if length < MIN_TITLE_LENGTH:
            errors.append(f"Title too short: {length} characters (min: {MIN_TITLE_LENGTH})")
            score -= 20
        elif length > MAX_TITLE_LENGTH:
            errors.append(f"Title too long: {length} characters (max: {MAX_TITLE_LENGTH})")
            score -= 15
    else:
        errors.append("Missing title")
        score -= 25

    if data.description:
        length = len(data.description)
        if length < MIN_DESCRIPTION_LENGTH:
            warnings.append(f"Description too short: {length} characters (min: {MIN_DESCRIPTION_LENGTH})")
            score -= 10
        elif length > MAX_DESCRIPTION_LENGTH:
            warnings.append(f"Description too long: {length} characters (max: {MAX_DESCRIPTION_LENGTH})")
            score -= 5
    else:
        warnings.append("Missing description")
        score -= 15

    if data.canonical:
        if len(data.canonical) > MAX_CANONICAL_LENGTH:
            errors.append(
                f"Canonical URL too long: {len(data.canonical)} characters (max: {MAX_CANONICAL_LENGTH})"
            )
            score -= 10
        if not _is_url(data.canonical):
            errors.append("Invalid canonical URL format")
            score -= 15
    else:
        warnings.append("Missing canonical URL")
        score -= 10

    if data.hreflang is not None:
        if not data.hreflang:
            warnings.append("No hreflang tags found")
            score -= 10
        else:
            if "x-default" not in data.hreflang:
                warnings.append("Missing x-default hreflang")
                score -= 5
            for lang, url in data.hreflang.items():
                if not _is_url(url):
                    errors.append(f"Invalid hreflang URL for {lang}: {url}")
                    score -= 5

    if data.json_ld:
        for number, schema in enumerate(data.json_ld, start=1):
            size = len(json.dumps(schema))
            if size > MAX_JSON_LD_SIZE:
                errors.append(
                    f"JSON-LD schema {number} too large: {size} characters (max: {MAX_JSON_LD_SIZE})"
                )
                score -= 10
            if not schema.get("@context") or not schema.get("@type"):
                errors.append(f"JSON-LD schema {number} missing required fields (@context or @type)")
                score -= 15
    else:
        warnings.append("No JSON-LD structured data found")
        score -= 15

    if data.breadcrumbs:
        if len(data.breadcrumbs) < 2:
            warnings.append("Breadcrumbs should have at least 2 levels")
            score -= 5
        for crumb in data.breadcrumbs:
            if not _is_url(crumb.url):
                errors.append(f"Invalid breadcrumb URL: {crumb.url}")
                score -= 5
    else:
        warnings.append("No breadcrumb navigation found")
        score -= 10

    return SeoValidationResult(is_valid=not errors, errors=errors, warnings=warnings, score=max(0, score))


def validate_seo_consistency(pages: Sequence[SeoValidationData]) -> SeoConsistencyResult:
    """Find titles and descriptions reused across *pages* (case-insensitive)."""
    titles: Dict[str, List[str]] = defaultdict(list)
    descriptions: Dict[str, List[str]] = defaultdict(list)

    for number, page in enumerate(pages, start=1):
        if page.title:
            titles[page.title.lower().strip()].append(f"Page {number}")
        if page.description:
            descriptions[page.description.lower().strip()].append(f"Page {number}")

    errors: List[str] = []
    warnings: List[str] = []
    duplicate_titles: List[str] = []
    duplicate_descriptions: List[str] = []

    for title, used_on in titles.items():
        if len(used_on) > 1:
            duplicate_titles.append(f"{title} (used on: {', '.join(used_on)})")
            errors.append(f'Duplicate title found: "{title}" used on {len(used_on)} pages')

    for desc, used_on in descriptions.items():
        if len(used_on) > 1:
            duplicate_descriptions.append(f"{desc} (used on: {', '.join(used_on)})")
            warnings.append(f'Duplicate description found: "{desc}" used on {len(used_on)} pages')

    return SeoConsistencyResult(
        is_valid=not errors,
        errors=errors,
        warnings=warnings,
        duplicate_titles=duplicate_titles,
        duplicate_descriptions=duplicate_descriptions,
    )
