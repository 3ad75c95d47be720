"""Enumerate every public URL of the site as sitemap entries."""

from typing import Iterable, List, Optional, Sequence

from app.models.category import Category, Locale
from app.models.sitemap import SitemapEntry
from app.services.categories import generate_page_path
from app.services.wordpress import fetch_cms_pages

_CURRENCY_PAIRS = (
    "usd-eur", "eur-usd", "gbp-usd", "usd-gbp", "jpy-usd", "usd-jpy",
    "eur-gbp", "gbp-eur", "usd-cad", "cad-usd", "aud-usd", "usd-aud",
    "usd-chf", "chf-usd", "usd-cny", "cny-usd", "usd-inr", "inr-usd",
)

_SWIFT_CODES = (
    "BOFAUS3N", "CHASUS33", "CITIUS33", "DEUTDEFF", "UBSWCHZH",
    "RZBAATWW", "BNPAFRPP", "CRESCHZZ", "DABADKKK", "ESSEGB2L",
    "GENODEF1", "HANDDEFF", "INGBNL2A", "JPMBCH6L", "KREUTZZ",
)

_COUNTRIES = (
    "usa", "india", "uk", "germany", "france", "japan", "canada",
    "australia", "china", "brazil", "russia", "south-korea", "italy",
    "spain", "netherlands", "switzerland", "sweden", "norway",
)

_BANKING_TYPES = (
    "swift-code", "iban-number", "routing-number", "sort-code",
    "bsb-code", "ifsc-code", "micr-code", "account-number",
)

_SAMPLES = {
    "converter": _CURRENCY_PAIRS,
    "directory": _SWIFT_CODES,
    "news": _COUNTRIES,
    "information": _BANKING_TYPES,
}

# Per-category identifier cap used when enumerating a build
BUILD_IDENTIFIERS_PER_CATEGORY = 20

_STATIC_PAGES = (
    {"path": "/", "priority": 1.0, "changefreq": "daily"},
    {"path": "/about", "priority": 0.8, "changefreq": "monthly"},
    {"path": "/contact", "priority": 0.7, "changefreq": "monthly"},
)


def sample_identifiers(category: Category, max_count: int = 10) -> List[str]:
    """Return up to *max_count* example identifiers for *category*'s template type."""
    samples = _SAMPLES.get(category.template_type)
    if samples is None:
        return [f"sample-{i}" for i in range(1, max_count + 1)]
    return list(samples[:max_count])


def _supported_locales(category: Category, locales: Sequence[Locale]) -> List[str]:
    return [loc.code for loc in locales if loc.is_active and loc.code in category.locales]


class SitemapBuilder:
    """Collects programmatic, category-index and CMS entries for one build.

    ``lastmod`` is supplied by the caller so that the same inputs always
    produce the same entries.
    """

    def __init__(
        self,
        base_url: str,
        default_locale: str = "en",
        changefreq: str = "weekly",
        priority: float = 0.5,
        lastmod: Optional[str] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.default_locale = default_locale
        self.changefreq = changefreq
        self.priority = priority
        self.lastmod = lastmod
        self.programmatic_pages: List[SitemapEntry] = []
        self.cms_pages: List[SitemapEntry] = []

    def add_programmatic_pages(
        self,
        categories: Sequence[Category],
        locales: Sequence[Locale],
        per_category: int = BUILD_IDENTIFIERS_PER_CATEGORY,
    ) -> None:
        for category in categories:
            if not category.is_active:
                continue
            identifiers = sample_identifiers(category, per_category)
            for locale in _supported_locales(category, locales):
                for identifier in identifiers:
                    path = generate_page_path(category, identifier, locale, self.default_locale)
                    self.programmatic_pages.append(
                        SitemapEntry(
                            loc=f"{self.base_url}{path}",
                            lastmod=self.lastmod,
                            changefreq=self.changefreq,
                            priority=self.priority,
                        )
                    )

    def add_category_index_pages(self, categories: Sequence[Category], locales: Sequence[Locale]) -> None:
        # Index pages change more often than leaf pages and rank higher
        for category in categories:
            if not category.is_active:
                continue
            for locale in _supported_locales(category, locales):
                prefix = "" if locale == self.default_locale else f"/{locale}"
                self.programmatic_pages.append(
                    SitemapEntry(
                        loc=f"{self.base_url}{prefix}/{category.slug}",
                        lastmod=self.lastmod,
                        changefreq="daily",
                        priority=0.8,
                    )
                )

    def add_cms_pages(self, pages: Iterable[dict]) -> None:
        """Add editorial pages given as ``{"path", "lastmod"?, "changefreq"?, "priority"?}``.

        A path already added as a CMS page is skipped.
        """
        seen = {entry.loc for entry in self.cms_pages}
        for page in pages:
            loc = f"{self.base_url}{page['path']}"
            if loc in seen:
                continue
            seen.add(loc)
            priority = page.get("priority")
            self.cms_pages.append(
                SitemapEntry(
                    loc=loc,
                    lastmod=page.get("lastmod") or self.lastmod,
                    changefreq=page.get("changefreq") or self.changefreq,
                    priority=self.priority if priority is None else priority,
                )
            )

    def entries(self) -> List[SitemapEntry]:
        return [*self.programmatic_pages, *self.cms_pages]


async def collect_entries(
    base_url: str,
    categories: Sequence[Category],
    locales: Sequence[Locale],
    default_locale: str = "en",
    wordpress_url: str = "",
    lastmod: Optional[str] = None,
) -> List[SitemapEntry]:
    """Return every sitemap entry of the site in publication order.

    Programmatic pages come first, then category indexes, the static pages,
    and finally WordPress pages and posts when *wordpress_url* is set.
    """
    builder = SitemapBuilder(base_url, default_locale=default_locale, lastmod=lastmod)
    builder.add_programmatic_pages(categories, locales)
    builder.add_category_index_pages(categories, locales)
    builder.add_cms_pages(_STATIC_PAGES)
    if wordpress_url:
        builder.add_cms_pages(await fetch_cms_pages(wordpress_url))
    return builder.entries()
