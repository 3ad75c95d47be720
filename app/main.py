import logging
import logging.config

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.routers.blocks import router as blocks_router
from app.routers.categories import router as categories_router
from app.routers.locales import router as locales_router
from app.routers.ops import limiter, router as ops_router
from app.routers.pages import router as pages_router
from app.routers.seo import router as seo_router
from app.routers.sitemaps import router as sitemaps_router

logging.config.dictConfig(
    {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "format": '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}',
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json",
            },
        },
        "root": {"level": "INFO", "handlers": ["console"]},
    }
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Unified Programmatic Site",
    description=(
        "CMS-as-data backend for a programmatic SEO site: content-block rotation "
        "per page, category/locale administration, and chunked sitemaps."
    ),
    version="1.0.0",
)

# Rate-limiting state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception for %s", request.url)
    return JSONResponse(status_code=500, content={"detail": "An unexpected error occurred."})


app.include_router(pages_router)
app.include_router(sitemaps_router)
app.include_router(blocks_router)
app.include_router(categories_router)
app.include_router(locales_router)
app.include_router(seo_router)
app.include_router(ops_router)


@app.get("/", summary="Health check")
async def root() -> dict:
    return {"message": "Hello from Unified Programmatic Site"}
