"""In-memory CMS-as-data store injected into the admin and page routers."""

import copy
import logging
import threading
from typing import Dict, Generic, Iterable, List, Optional, TypeVar

from pydantic import BaseModel

from app.models.block import BlockConstraints, ContentBlock
from app.models.category import Category, Locale, SeoSettings

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class DuplicateKeyError(ValueError):
    """Raised when creating an entity whose key already exists."""


class NotFoundError(KeyError):
    """Raised when updating or deleting an entity that does not exist."""


class InMemoryRepository(Generic[T]):
    """Keyed CRUD store.

    Entities are deep-copied on the way in and out so callers can never
    mutate stored state behind the repository's back.
    """

    def __init__(self, key: str = "id", items: Iterable[T] = ()) -> None:
        self._key = key
        self._items: Dict[str, T] = {}
        self._lock = threading.Lock()
        for item in items:
            self._items[getattr(item, key)] = item.model_copy(deep=True)

    def list(self) -> List[T]:
        with self._lock:
            return [item.model_copy(deep=True) for item in self._items.values()]

    def get(self, key: str) -> Optional[T]:
        with self._lock:
            item = self._items.get(key)
            return item.model_copy(deep=True) if item is not None else None

    def create(self, item: T) -> T:
        key = getattr(item, self._key)
        with self._lock:
            if key in self._items:
                raise DuplicateKeyError(key)
            self._items[key] = item.model_copy(deep=True)
        logger.info("Created %s %s", type(item).__name__, key)
        return item

    def update(self, item: T) -> T:
        key = getattr(item, self._key)
        with self._lock:
            if key not in self._items:
                raise NotFoundError(key)
            self._items[key] = item.model_copy(deep=True)
        return item

    def delete(self, key: str) -> T:
        with self._lock:
            if key not in self._items:
                raise NotFoundError(key)
            item = self._items.pop(key)
        logger.info("Deleted %s %s", type(item).__name__, key)
        return item


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------

_SEED_CATEGORIES = [
    Category(
        id="currency",
        slug="currency",
        name="Currency Converter",
        description="Currency conversion tools",
        url_pattern=":base-:quote",
        template_type="converter",
        locales=["en", "hi", "fr", "es", "de"],
        priority=10,
        seo_settings=SeoSettings(
            title_template="{category} - {param}",
            description_template="Convert {param} with our {category} tool",
        ),
    ),
    Category(
        id="swift",
        slug="swift",
        name="SWIFT Codes",
        description="Bank SWIFT code directory",
        url_pattern=":code",
        template_type="directory",
        locales=["en", "hi", "fr", "es", "de"],
        priority=8,
        seo_settings=SeoSettings(
            title_template="{category} - {param}",
            description_template="Find {param} in our {category} directory",
        ),
    ),
]

_SEED_LOCALES = [
    Locale(code="en", name="English", native_name="English", is_default=True),
    Locale(code="hi", name="Hindi", native_name="हिन्दी"),
    Locale(code="fr", name="French", native_name="Français"),
    Locale(code="es", name="Spanish", native_name="Español"),
    Locale(code="de", name="German", native_name="Deutsch"),
]


def _seed_block(block_id: str, block_type: str, title: str, body: str, weight: int, slot: str) -> ContentBlock:
    return ContentBlock(
        id=block_id,
        type=block_type,
        title=title,
        body=body,
        weight=weight,
        locale="en",
        reviewed=True,
        constraints=BlockConstraints(slots=[slot], categories=["currency"]),
    )


_SEED_BLOCKS = [
    _seed_block(
        "benefit-fast", "benefit", "Fast & Reliable",
        "Get instant currency conversion with real-time exchange rates.", 10, "benefits",
    ),
    _seed_block(
        "benefit-secure", "benefit", "Secure & Private",
        "Your conversion queries are private. No personal data is stored or shared.", 9, "benefits",
    ),
    _seed_block(
        "cta-convert", "cta", "Start Converting Now",
        "Use our converter to get accurate exchange rates instantly.", 8, "cta",
    ),
    _seed_block(
        "faq-how-to", "faq", "How to use the currency converter?",
        "Enter an amount, pick the source and target currencies, and the result "
        "is shown with the current exchange rate.", 7, "faq",
    ),
    _seed_block(
        "promo-accurate", "promo", "Most Accurate Rates",
        "Rates come from reliable financial sources and refresh throughout the day.", 6, "promo",
    ),
]


def default_blocks() -> List[ContentBlock]:
    return copy.deepcopy(_SEED_BLOCKS)


def default_categories() -> List[Category]:
    return copy.deepcopy(_SEED_CATEGORIES)


def default_locales() -> List[Locale]:
    return copy.deepcopy(_SEED_LOCALES)


_block_repository: InMemoryRepository[ContentBlock] = InMemoryRepository("id", default_blocks())
_category_repository: InMemoryRepository[Category] = InMemoryRepository("id", default_categories())
_locale_repository: InMemoryRepository[Locale] = InMemoryRepository("code", default_locales())


def get_block_repository() -> InMemoryRepository[ContentBlock]:
    return _block_repository


def get_category_repository() -> InMemoryRepository[Category]:
    return _category_repository


def get_locale_repository() -> InMemoryRepository[Locale]:
    return _locale_repository
