"""Tests for SEO guardrails."""

from app.models.seo import Breadcrumb, SeoValidationData
from app.services.seo import validate_seo, validate_seo_consistency


def _page(**overrides) -> SeoValidationData:
    data = {
        "title": "USD to EUR Converter - Live Rates",
        "description": "Convert US dollars to euros with live mid-market rates updated every hour.",
        "canonical": "https://www.example.com/currency/usd-eur",
        "hreflang": {
            "en": "https://www.example.com/currency/usd-eur",
            "x-default": "https://www.example.com/currency/usd-eur",
        },
        "json_ld": [{"@context": "https://schema.org", "@type": "WebPage"}],
        "breadcrumbs": [
            Breadcrumb(name="Home", url="https://www.example.com/"),
            Breadcrumb(name="Currency", url="https://www.example.com/currency"),
        ],
    }
    data.update(overrides)
    return SeoValidationData(**data)


class TestValidateSeo:
    def test_complete_page_scores_full_marks(self):
        result = validate_seo(_page())
        assert result.is_valid
        assert result.errors == []
        assert result.warnings == []
        assert result.score == 100

    def test_missing_title_is_an_error(self):
        result = validate_seo(_page(title=None))
        assert not result.is_valid
        assert "Missing title" in result.errors
        assert result.score == 75

    def test_short_title(self):
        result = validate_seo(_page(title="Rates"))
        assert result.errors == ["Title too short: 5 characters (min: 10)"]

    def test_short_description_is_a_warning(self):
        result = validate_seo(_page(description="Too short"))
        assert result.is_valid
        assert result.warnings == ["Description too short: 9 characters (min: 50)"]
        assert result.score == 90

    def test_relative_canonical(self):
        result = validate_seo(_page(canonical="/currency/usd-eur"))
        assert "Invalid canonical URL format" in result.errors

    def test_missing_x_default(self):
        result = validate_seo(_page(hreflang={"en": "https://www.example.com/currency/usd-eur"}))
        assert result.warnings == ["Missing x-default hreflang"]

    def test_json_ld_needs_context_and_type(self):
        result = validate_seo(_page(json_ld=[{"@type": "WebPage"}]))
        assert result.errors == ["JSON-LD schema 1 missing required fields (@context or @type)"]

    def test_single_breadcrumb(self):
        result = validate_seo(_page(breadcrumbs=[Breadcrumb(name="Home", url="https://www.example.com/")]))
        assert result.warnings == ["Breadcrumbs should have at least 2 levels"]

    def test_score_never_negative(self):
        result = validate_seo(
            SeoValidationData(
                canonical="not a url",
                hreflang={"en": "nope", "fr": "nope"},
                json_ld=[{}, {}, {}],
                breadcrumbs=[Breadcrumb(name="x", url="bad")],
            )
        )
        assert result.score == 0


class TestValidateSeoConsistency:
    def test_unique_pages(self):
        result = validate_seo_consistency([_page(), _page(title="EUR to USD Converter", description="Other text")])
        assert result.is_valid
        assert result.duplicate_titles == []

    def test_duplicate_title_ignores_case(self):
        result = validate_seo_consistency([_page(), _page(title="usd to eur converter - live rates")])
        assert not result.is_valid
        assert result.errors == ['Duplicate title found: "usd to eur converter - live rates" used on 2 pages']
        assert result.duplicate_titles == ["usd to eur converter - live rates (used on: Page 1, Page 2)"]

    def test_duplicate_description_is_a_warning(self):
        result = validate_seo_consistency([_page(title="First page title"), _page(title="Second page title")])
        assert result.is_valid
        assert len(result.duplicate_descriptions) == 1
        assert len(result.warnings) == 1
