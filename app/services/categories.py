"""Category validation, URL-pattern matching, page paths and SEO text."""

import re
from typing import Any, Dict, List, Mapping, Optional, Sequence
from urllib.parse import quote, unquote

from app.models.category import Category, PageIdentifier

_SLUG_RE = re.compile(r"^[a-z0-9-]+$")

# Named placeholders such as ":base" in ":base-:quote"
_PARAM_RE = re.compile(r":([a-zA-Z0-9_]+)")

MAX_TITLE_LENGTH = 60
MAX_DESCRIPTION_LENGTH = 160


def validate_category(data: Mapping[str, Any]) -> List[str]:
    """Return every shape problem of the category described by *data*."""
    errors: List[str] = []

    slug = data.get("slug")
    if not slug:
        errors.append("Category slug is required")
    elif not isinstance(slug, str) or not _SLUG_RE.match(slug):
        errors.append("Category slug must be lowercase alphanumeric with hyphens only")

    pattern = data.get("url_pattern")
    if not pattern:
        errors.append("URL pattern is required")
    elif not isinstance(pattern, str) or not _PARAM_RE.search(pattern):
        errors.append("URL pattern must contain at least one parameter (e.g., :code, :country)")

    if not data.get("name"):
        errors.append("Category name is required")

    if not data.get("template_type"):
        errors.append("Template type is required")

    if not data.get("locales"):
        errors.append("At least one locale must be specified")

    return errors


def validate_category_uniqueness(categories: Sequence[Category], candidate: Category) -> List[str]:
    errors: List[str] = []
    others = [c for c in categories if c.id != candidate.id]

    if any(c.slug == candidate.slug for c in others):
        errors.append(f'Category slug "{candidate.slug}" already exists')
    if any(c.url_pattern == candidate.url_pattern for c in others):
        errors.append(f'URL pattern "{candidate.url_pattern}" already exists')

    return errors


def parse_url_pattern(pattern: str) -> List[str]:
    """Return the placeholder names of *pattern* in order of appearance."""
    return _PARAM_RE.findall(pattern)


def build_url_from_pattern(pattern: str, params: Mapping[str, str]) -> str:
    """Substitute URL-encoded *params* into *pattern*.

    Unknown placeholders are left untouched.
    """
    def _replace(match: "re.Match[str]") -> str:
        name = match.group(1)
        if name not in params:
            return match.group(0)
        return quote(str(params[name]), safe="")

    return _PARAM_RE.sub(_replace, pattern)


def extract_params_from_url(pattern: str, identifier: str) -> Optional[Dict[str, str]]:
    """Match *identifier* against *pattern* and return the placeholder values.

    Returns *None* when the identifier does not fit the pattern.
    """
    if "/" not in pattern:
        names: List[str] = []
        regex_parts: List[str] = []
        last = 0
        for match in _PARAM_RE.finditer(pattern):
            regex_parts.append(re.escape(pattern[last:match.start()]))
            regex_parts.append("([^/]+)")
            names.append(match.group(1))
            last = match.end()
        regex_parts.append(re.escape(pattern[last:]))

        found = re.fullmatch("".join(regex_parts), identifier)
        if not found:
            return None
        return {name: unquote(value) for name, value in zip(names, found.groups())}

    pattern_parts = pattern.split("/")
    url_parts = identifier.split("/")
    if len(pattern_parts) != len(url_parts):
        return None

    params: Dict[str, str] = {}
    for pattern_part, url_part in zip(pattern_parts, url_parts):
        if pattern_part.startswith(":"):
            if not url_part:
                return None
            params[pattern_part[1:]] = unquote(url_part)
        elif pattern_part != url_part:
            return None
    return params


def get_active_categories(categories: Sequence[Category]) -> List[Category]:
    """Return active categories, highest priority first."""
    return sorted((c for c in categories if c.is_active), key=lambda c: -c.priority)


def get_category_by_slug(categories: Sequence[Category], slug: str) -> Optional[Category]:
    return next((c for c in categories if c.slug == slug), None)


def generate_page_path(category: Category, identifier: str, locale: str, default_locale: str = "en") -> str:
    """Return the site-relative path of a page; the default locale has no prefix."""
    prefix = "" if locale == default_locale else f"/{locale}"
    return f"{prefix}/{category.slug}/{identifier}"


def parse_page_path(
    path: str,
    categories: Sequence[Category],
    locales: Sequence[str],
    default_locale: str = "en",
) -> Optional[PageIdentifier]:
    """Resolve a site-relative *path* into a :class:`PageIdentifier`.

    Returns *None* for unknown or inactive categories, locales the category
    does not support, and identifiers that do not match the URL pattern.
    """
    parts = path.strip("/").split("/")
    if len(parts) < 2:
        return None

    if parts[0] in locales:
        locale, parts = parts[0], parts[1:]
    else:
        locale = default_locale
    if len(parts) < 2:
        return None

    category = get_category_by_slug(categories, parts[0])
    if category is None or not category.is_active or locale not in category.locales:
        return None

    identifier = "/".join(parts[1:])
    params = extract_params_from_url(category.url_pattern, identifier)
    if params is None:
        return None

    return PageIdentifier(category=category.slug, identifier=identifier, locale=locale, params=params)


def _fill_template(template: str, params: Mapping[str, str], category: Category) -> str:
    text = template.replace("{category}", category.name)
    for key, value in params.items():
        text = text.replace(f"{{{key}}}", value)
    # "{param}" stands for all placeholder values joined, e.g. "usd eur"
    return text.replace("{param}", " ".join(params.values()))


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."


def generate_seo_title(template: str, params: Mapping[str, str], category: Category) -> str:
    return _truncate(_fill_template(template, params, category), MAX_TITLE_LENGTH)


def generate_seo_description(template: str, params: Mapping[str, str], category: Category) -> str:
    return _truncate(_fill_template(template, params, category), MAX_DESCRIPTION_LENGTH)
