import math

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from repvault.api.generate import router as generate_router
from repvault.config.settings import settings
from repvault.core.errors import GovernanceError, InvalidInput, RateLimitExceeded
from repvault.core.logger import setup_logger

# Initialize logger
setup_logger(level=settings.log_level, serialize=settings.log_json)


def _error_response(error: GovernanceError) -> JSONResponse:
    headers = {}
    if isinstance(error, RateLimitExceeded) and "retryAfterMs" in error.details:
        headers["Retry-After"] = str(math.ceil(error.details["retryAfterMs"] / 1000))
    return JSONResponse(status_code=error.status_code, content=error.to_payload(), headers=headers)


async def governance_error_handler(_request: Request, exc: GovernanceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"Request failed: {exc}")
    return _error_response(exc)


async def request_validation_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.debug(f"Rejected malformed request body: {exc}")
    return _error_response(InvalidInput("Request body must be valid JSON.", code="INVALID_JSON"))


async def unhandled_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.opt(exception=exc).error("Unhandled error")
    return _error_response(GovernanceError("An unexpected internal error occurred."))


def create_app() -> FastAPI:
    app = FastAPI(title="RepVault AI Backend")
    app.add_exception_handler(GovernanceError, governance_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
    app.include_router(generate_router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()
