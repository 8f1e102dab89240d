from dataclasses import dataclass, fields
from datetime import datetime
from typing import Optional, Sequence

import pandas as pd

from app.constants import (
    F_APPROVED,
    F_FEATURED,
    F_OVERALL_RATING,
    SORT_BY_DATE,
    SORT_BY_RATING,
    TIMESTAMP_FORMAT,
)
from app.schemas import CanonicalReview, ListingShowcase, ModerationStats, round_half_up


@dataclass(frozen=True)
class ReviewFilters:
    search: Optional[str] = None
    listing: Optional[str] = None
    min_rating: Optional[int] = None
    channel: Optional[str] = None
    approved: Optional[bool] = None
    featured: Optional[bool] = None
    sort: Optional[str] = None

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))


def submitted_at(review: CanonicalReview) -> datetime:
    """Parse submittedAt; unparseable timestamps sort as the oldest possible."""
    try:
        return datetime.strptime(review.submittedAt, TIMESTAMP_FORMAT)
    except ValueError:
        return datetime.min


def _matches_search(review: CanonicalReview, term: str) -> bool:
    term = term.lower()
    return (
        term in review.comment.lower()
        or term in review.guestName.lower()
        or term in review.listingName.lower()
    )


def filter_reviews(reviews: Sequence[CanonicalReview], filters: ReviewFilters) -> list[CanonicalReview]:
    """Apply the dashboard filters and sort order to a review list.

    Args:
        reviews: canonical reviews, usually the output of list_reviews().
        filters: ReviewFilters; None fields do not filter.

    Returns:
        list[CanonicalReview]. With no filters at all the input order is kept;
        otherwise reviews are sorted newest first, or by overall rating
        (highest first) when sort="rating".
    """
    if filters.is_empty():
        return list(reviews)

    result = [
        r for r in reviews
        if (not filters.search or _matches_search(r, filters.search))
        and (filters.listing is None or r.listingName == filters.listing)
        and (filters.min_rating is None or r.overallRating >= filters.min_rating)
        and (filters.channel is None or r.channel == filters.channel)
        and (filters.approved is None or r.approved == filters.approved)
        and (filters.featured is None or r.featured == filters.featured)
    ]
    if filters.sort == SORT_BY_RATING:
        result.sort(key=lambda r: r.overallRating, reverse=True)
    elif filters.sort in (None, SORT_BY_DATE):
        result.sort(key=submitted_at, reverse=True)
    return result


def listing_names(reviews: Sequence[CanonicalReview]) -> list[str]:
    """Unique listing names in first-seen order."""
    return list(dict.fromkeys(r.listingName for r in reviews))


def _frame(reviews: Sequence[CanonicalReview]) -> pd.DataFrame:
    return pd.DataFrame(
        [{F_OVERALL_RATING: r.overallRating, F_APPROVED: r.approved, F_FEATURED: r.featured} for r in reviews],
        columns=[F_OVERALL_RATING, F_APPROVED, F_FEATURED],
    )


def average_rating(reviews: Sequence[CanonicalReview]) -> float:
    if not reviews:
        return 0.0
    return float(_frame(reviews)[F_OVERALL_RATING].mean())


def category_averages(reviews: Sequence[CanonicalReview]) -> dict[str, float]:
    """Mean rating per category over the reviews that rate that category."""
    rows = [
        {"category": name, "rating": rating}
        for r in reviews
        for name, rating in r.categories.items()
    ]
    if not rows:
        return {}
    means = pd.DataFrame(rows).groupby("category", sort=False)["rating"].mean()
    return {str(name): float(value) for name, value in means.items()}


def moderation_stats(reviews: Sequence[CanonicalReview]) -> ModerationStats:
    if not reviews:
        return ModerationStats(total=0, approved=0, featured=0, averageRating=0.0)
    df = _frame(reviews)
    return ModerationStats(
        total=len(df),
        approved=int(df[F_APPROVED].sum()),
        featured=int(df[F_FEATURED].sum()),
        averageRating=average_rating(reviews),
    )


def listing_showcase(reviews: Sequence[CanonicalReview], listing: str) -> ListingShowcase:
    """Build the public showcase for one listing.

    Only approved reviews are shown; featured reviews must be approved too.
    Averages are computed over the approved reviews.

    Args:
        reviews: canonical reviews for all listings.
        listing: exact listing name.

    Returns:
        ListingShowcase.
    """
    listing_reviews = [r for r in reviews if r.listingName == listing]
    approved = [r for r in listing_reviews if r.approved]
    featured = [r for r in approved if r.featured]
    approval_rate = round_half_up(len(approved) / len(listing_reviews) * 100) if listing_reviews else 0
    return ListingShowcase(
        listingName=listing,
        totalReviews=len(listing_reviews),
        approvedCount=len(approved),
        featuredCount=len(featured),
        approvalRate=approval_rate,
        averageRating=average_rating(approved),
        categoryAverages=category_averages(approved),
        approvedReviews=approved,
        featuredReviews=featured,
    )
