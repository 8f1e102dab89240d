import csv
import io
import logging
from contextlib import contextmanager
from itertools import chain
from typing import Annotated, Any, Literal, Optional, Sequence

from fastapi import APIRouter, Body, Depends, Query, Request
from fastapi.responses import StreamingResponse

from app.constants import (
    CATEGORY_COLUMN_PREFIX,
    F_CATEGORIES,
    MAX_RATING,
    MIN_RATING,
    REVIEWS_ALLOWED_METHODS,
)
from app.errors import InternalError, MethodNotAllowedError, NotFoundError, ReviewServiceError
from app.pii import mask_review
from app.queries import ReviewFilters, filter_reviews, listing_names, listing_showcase, moderation_stats
from app.schemas import (
    HEADERS,
    CanonicalReview,
    ListingShowcaseResponse,
    ListingsResponse,
    ModerationStatsResponse,
    ModerationUpdateResponse,
    ReviewListResponse,
    ReviewResponse,
)
from app.service import ReviewQueryService
from app.validate import parse_moderation_patch

logger = logging.getLogger(__name__)

router = APIRouter()


def get_service(request: Request) -> ReviewQueryService:
    """Dependency returning the service created by create_app().

    Usage:
        as a FastAPI dependency: service: ReviewQueryService = Depends(get_service)
    """
    return request.app.state.review_service


@contextmanager
def internal_errors(message: str):
    """Turn unexpected exceptions into InternalError with a generic message."""
    try:
        yield
    except ReviewServiceError:
        raise
    except Exception as exc:
        logger.exception(message)
        raise InternalError(message) from exc


def review_csv_columns(reviews: Sequence[CanonicalReview]) -> list[str]:
    """HEADERS['reviews'] followed by one cat_<name> column per category, first-seen order."""
    categories = dict.fromkeys(name for review in reviews for name in review.categories)
    return HEADERS["reviews"] + [CATEGORY_COLUMN_PREFIX + name for name in categories]


def review_csv_line(review: CanonicalReview, columns: Sequence[str]) -> list:
    values = review.model_dump(exclude={F_CATEGORIES})
    for name, rating in review.categories.items():
        values[CATEGORY_COLUMN_PREFIX + name] = rating
    return [values.get(column, "") for column in columns]


def stream_reviews_csv(reviews: Sequence[CanonicalReview], filename: str) -> StreamingResponse:
    """Stream canonical reviews as a CSV download, one line per review.

    Args:
        reviews: reviews to export, already filtered and masked as needed.
        filename: Suggested filename included in Content-Disposition header.

    Returns:
        fastapi.responses.StreamingResponse streaming CSV text.
    """
    columns = review_csv_columns(reviews)

    def iter_lines():
        buf = io.StringIO()
        writer = csv.writer(buf)
        for line in chain([columns], (review_csv_line(r, columns) for r in reviews)):
            writer.writerow(line)
            yield buf.getvalue()
            buf.seek(0); buf.truncate(0)

    return StreamingResponse(
        iter_lines(),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


def review_filters(
    search: Optional[str] = None,
    listing: Optional[str] = None,
    min_rating: Annotated[Optional[int], Query(ge=MIN_RATING, le=MAX_RATING)] = None,
    channel: Optional[str] = None,
    approved: Optional[bool] = None,
    featured: Optional[bool] = None,
    sort: Optional[Literal["date", "rating"]] = None,
) -> ReviewFilters:
    """Collect the optional dashboard query parameters.

    Returns:
        ReviewFilters: empty when the request carries none of them.
    """
    return ReviewFilters(
        search=search or None,
        listing=listing,
        min_rating=min_rating,
        channel=channel,
        approved=approved,
        featured=featured,
        sort=sort,
    )


@router.get("/health")
def health():
    """Healthcheck endpoint.

    Returns:
        dict: simple status payload.
    """
    return {"status": "ok"}


@router.get("/reviews", response_model=ReviewListResponse)
def list_reviews(
    filters: ReviewFilters = Depends(review_filters),
    service: ReviewQueryService = Depends(get_service),
):
    """Return normalized reviews merged with their moderation flags.

    Args:
        filters: dependency-provided dashboard filters; none means every review in source order.
        service: review query service dependency.

    Returns:
        ReviewListResponse: {"status": "success", "count": n, "data": [...]}.
    """
    with internal_errors("Failed to fetch reviews"):
        reviews = filter_reviews(service.list_reviews(), filters)
    return ReviewListResponse(count=len(reviews), data=reviews)


@router.patch("/reviews", response_model=ModerationUpdateResponse)
def update_review(
    body: Annotated[Any, Body()] = None,
    service: ReviewQueryService = Depends(get_service),
):
    """Set the approved and/or featured flag of one review.

    Args:
        body: JSON object {"id": int, "approved"?: bool, "featured"?: bool}.
        service: review query service dependency.

    Returns:
        ModerationUpdateResponse with the merged flags.
    """
    with internal_errors("Failed to update review"):
        review_id, patch = parse_moderation_patch(body)
        result = service.update_flags(review_id, patch)
    return ModerationUpdateResponse(data=result)


@router.api_route("/reviews", methods=["POST", "PUT", "DELETE", "OPTIONS"], include_in_schema=False)
def reviews_method_not_allowed():
    raise MethodNotAllowedError(REVIEWS_ALLOWED_METHODS)


@router.get("/reviews/stats", response_model=ModerationStatsResponse)
def review_stats(service: ReviewQueryService = Depends(get_service)):
    """Dashboard counters: total, approved, featured and the average overall rating."""
    with internal_errors("Failed to compute review statistics"):
        stats = moderation_stats(service.list_reviews())
    return ModerationStatsResponse(data=stats)


@router.get("/reviews/export")
def export_reviews(
    mask_pii: bool = True,
    filters: ReviewFilters = Depends(review_filters),
    service: ReviewQueryService = Depends(get_service),
):
    """Return the (optionally filtered) review list as a CSV download.

    Args:
        mask_pii: whether to mask guest names (default True).
        filters: dependency-provided dashboard filters.
        service: review query service dependency.

    Returns:
        StreamingResponse: CSV with HEADERS["reviews"] plus one cat_<name> column per category.
    """
    with internal_errors("Failed to export reviews"):
        reviews = filter_reviews(service.list_reviews(), filters)
        if mask_pii:
            reviews = [mask_review(review) for review in reviews]
    return stream_reviews_csv(reviews, "reviews.csv")


@router.get("/reviews/{review_id}", response_model=ReviewResponse)
def get_review(review_id: int, service: ReviewQueryService = Depends(get_service)):
    with internal_errors("Failed to fetch review"):
        review = service.get_review(review_id)
    return ReviewResponse(data=review)


@router.get("/listings", response_model=ListingsResponse)
def list_listings(service: ReviewQueryService = Depends(get_service)):
    """Listing names that have at least one review, in source order."""
    with internal_errors("Failed to fetch listings"):
        names = listing_names(service.list_reviews())
    return ListingsResponse(count=len(names), data=names)


@router.get("/listings/{listing_name}/showcase", response_model=ListingShowcaseResponse)
def showcase(listing_name: str, service: ReviewQueryService = Depends(get_service)):
    """Public property-page data: approved and featured reviews plus rating averages.

    Args:
        listing_name: exact listing name (URL-encoded in the path).
        service: review query service dependency.

    Returns:
        ListingShowcaseResponse.
    """
    with internal_errors("Failed to build listing showcase"):
        reviews = service.list_reviews()
        if listing_name not in listing_names(reviews):
            raise NotFoundError("Listing not found")
        data = listing_showcase(reviews, listing_name)
    return ListingShowcaseResponse(data=data)
