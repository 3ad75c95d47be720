"""Runtime settings read from the environment at import time."""

import os

SITE_URL = os.getenv("SITE_URL", "https://www.example.com").rstrip("/")

# Build-wide salt for block rotation; a commit SHA in CI, "dev" locally.
BUILD_SHA = os.getenv("BUILD_SHA", "dev")

DEFAULT_LOCALE = os.getenv("DEFAULT_LOCALE", "en")

MAX_URLS_PER_SITEMAP = int(os.getenv("MAX_URLS_PER_SITEMAP", "50000"))
MAX_BLOCKS_PER_SLOT = int(os.getenv("MAX_BLOCKS_PER_SLOT", "3"))
DEFAULT_SLOTS = tuple(
    s.strip()
    for s in os.getenv("DEFAULT_SLOTS", "benefits,cta,faq,promo,info").split(",")
    if s.strip()
)

# "exact" or "allow_global" (blocks with locale "*" match every page locale)
BLOCK_LOCALE_POLICY = os.getenv("BLOCK_LOCALE_POLICY", "exact")
# "weight_first" or "weighted_sample"
BLOCK_ORDERING = os.getenv("BLOCK_ORDERING", "weight_first")

# Optional headless WordPress backend contributing editorial pages to the sitemap
WORDPRESS_URL = os.getenv("WORDPRESS_URL", "").rstrip("/")
