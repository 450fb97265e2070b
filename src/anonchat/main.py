"""Main entry point for the AnonChat auth service."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from anonchat.api.v1 import auth_router
from anonchat.core.logging import configure_logging
from anonchat.core.settings import settings
from anonchat.db.session import create_tables

logger = logging.getLogger(__name__)

_SIGNATURE_FIELDS = {"signature"}

app = FastAPI(
    title="AnonChat Auth API",
    description="Wallet signature authentication for AnonChat",
    version=settings.app_version,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

app.include_router(auth_router, prefix="/api/v1")


def _validation_message(exc: RequestValidationError) -> str:
    for error in exc.errors():
        if error.get("type") == "json_invalid":
            return "Invalid JSON body"
        loc = error.get("loc", ())
        if loc and loc[-1] in _SIGNATURE_FIELDS:
            return "signature is required"
    return "identityKey is required"


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report body validation failures as 400 with the standard error body."""
    logger.warning("Rejected malformed request to %s", request.url.path)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": _validation_message(exc)},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Keep unexpected failures opaque to clients."""
    logger.exception("Unhandled error on %s", request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging()
    if not settings.wallet_auth_secret:
        logger.warning("WALLET_AUTH_SECRET is not set; wallet sign-in will fail")
    if settings.identity_provider == "local":
        create_tables()


@app.on_event("shutdown")
async def on_shutdown() -> None:
    if settings.identity_provider == "supabase":
        from anonchat.services.supabase import close_supabase_provider

        await close_supabase_provider()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("anonchat.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
