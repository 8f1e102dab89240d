import logging
import sys
from typing import Optional, Sequence

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app import config
from .api import router as api_router
from .database import make_engine, make_session_factory
from .constants import REVIEWS_ALLOWED_METHODS, REVIEWS_PATH
from .errors import InternalError, MethodNotAllowedError, ReviewServiceError
from .ingest import load_raw_reviews
from .schemas import ErrorResponse, RawReview
from .service import ReviewQueryService
from .store import ModerationStore

logger = logging.getLogger(__name__)


def setup_logging(log_level: str = config.LOG_LEVEL):
    """Configure logging for the entire application."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format=config.LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def _error(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(message=message).model_dump(), headers=headers)


async def review_service_error_handler(request: Request, exc: ReviewServiceError) -> JSONResponse:
    headers = None
    if isinstance(exc, MethodNotAllowedError):
        headers = {"Allow": ", ".join(exc.allowed)}
    return _error(exc.status_code, exc.message, headers)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Rejected request to %s: %s", request.url.path, exc.errors())
    return _error(400, "Invalid request")


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    headers = getattr(exc, "headers", None)
    # Router-level 405s only know the matched route, not the whole /reviews collection
    if exc.status_code == 405 and request.url.path == REVIEWS_PATH:
        headers = {**(headers or {}), "Allow": ", ".join(REVIEWS_ALLOWED_METHODS)}
    return _error(exc.status_code, str(exc.detail), headers)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error(500, InternalError.default_message)


def create_app(
    database_url: Optional[str] = None,
    reviews_source: Optional[str] = None,
    raw_reviews: Optional[Sequence[RawReview]] = None,
) -> FastAPI:
    """Build the API with its own moderation store and review service.

    Args:
        database_url: SQLAlchemy URL for the store (default config.DATABASE_URL).
        reviews_source: path of the raw reviews JSON (default config.REVIEWS_SOURCE).
        raw_reviews: raw reviews to serve instead of loading `reviews_source`.

    Returns:
        FastAPI application; the store lives on app.state for the life of the app.
    """
    setup_logging()
    if raw_reviews is None:
        raw_reviews = load_raw_reviews(reviews_source or config.REVIEWS_SOURCE)

    engine = make_engine(database_url or config.DATABASE_URL)
    store = ModerationStore(make_session_factory(engine))

    app = FastAPI(title="Review Moderation API", version="0.1.0")
    app.state.moderation_store = store
    app.state.review_service = ReviewQueryService(raw_reviews, store)
    app.add_exception_handler(ReviewServiceError, review_service_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
    app.include_router(api_router)
    logger.info("Serving %d reviews", len(raw_reviews))
    return app


app = create_app()
