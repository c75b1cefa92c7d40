"""Postcode Lookup API — FastAPI application entry point.

Resolves UK postcodes to candidate addresses for embedded quote forms:
/post-code-lookup/api/postcodes/{postcode}, /suggestions/{partial},
/residential-address, /generate-key and /users, plus /health.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from postcode_lookup.config import Settings, settings as default_settings
from postcode_lookup.errors import AccessDenied, RequestTooLarge
from postcode_lookup.logging_config import configure_logging
from postcode_lookup.middleware import PreflightMiddleware, SlowRequestMiddleware
from postcode_lookup.routers import keys, lookup, users
from postcode_lookup.services.container import ServiceContainer

logger = logging.getLogger("postcode_lookup")


def create_app(settings: Settings | None = None, services: ServiceContainer | None = None) -> FastAPI:
    settings = settings or default_settings
    services = services or ServiceContainer(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Postcode lookup starting | places_key=%s", settings.has_places_key)
        await services.start()
        yield
        await services.stop()
        logger.info("Postcode lookup shutting down")

    app = FastAPI(
        title="Postcode Lookup API",
        description="UK postcode to address lookup with residential submissions",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.services = services

    app.add_middleware(GZipMiddleware, minimum_size=settings.gzip_min_bytes)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=86400,
    )
    app.add_middleware(SlowRequestMiddleware, threshold_ms=settings.slow_request_ms)
    # Added last = outermost: OPTIONS never reaches auth or the limiters.
    app.add_middleware(PreflightMiddleware)

    @app.exception_handler(AccessDenied)
    async def access_denied_handler(request: Request, exc: AccessDenied):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message}, headers=exc.headers)

    @app.exception_handler(RequestTooLarge)
    async def request_too_large_handler(request: Request, exc: RequestTooLarge):
        logger.info("Request body too large | %s %s", request.method, request.url.path)
        return JSONResponse(status_code=413, content={"error": "Request entity too large"})

    app.include_router(lookup.router, prefix=settings.api_prefix)
    app.include_router(keys.router, prefix=settings.api_prefix)
    app.include_router(users.router, prefix=settings.api_prefix)

    @app.get("/health")
    async def health():
        try:
            cache_sizes = services.caches.sizes()
        except Exception as e:
            logger.error("Health check failed: %s", str(e)[:200])
            return JSONResponse(status_code=500, content={"error": "Health check failed"})
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "cache": cache_sizes,
        }

    return app


configure_logging(default_settings.log_level)
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=default_settings.host, port=default_settings.port)
