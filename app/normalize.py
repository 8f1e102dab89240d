from typing import Callable, Iterable

from app.constants import DEFAULT_CHANNEL
from app.schemas import CanonicalReview, ModerationFlags, RawReview, round_half_up

FlagsLookup = Callable[[int], ModerationFlags]


def _default_flags(review_id: int) -> ModerationFlags:
    return ModerationFlags()


def overall_rating(raw: RawReview) -> int:
    """Derive the overall rating of a raw review.

    The explicit rating wins when present. Otherwise the category ratings are
    averaged (every entry counts, duplicates included) and rounded half-up.
    A review with neither scores 0.

    Args:
        raw: RawReview as loaded from the provider payload.

    Returns:
        int overall rating.
    """
    if raw.rating is not None:
        return raw.rating
    ratings = [c.rating for c in raw.reviewCategory]
    if not ratings:
        return 0
    return round_half_up(sum(ratings) / len(ratings))


def category_map(raw: RawReview) -> dict[str, int]:
    """Fold the ordered category list into a mapping; later duplicates win."""
    categories: dict[str, int] = {}
    for entry in raw.reviewCategory:
        categories[entry.category] = entry.rating
    return categories


def normalize_review(raw: RawReview, flags: ModerationFlags) -> CanonicalReview:
    return CanonicalReview(
        id=raw.id,
        type=raw.type,
        status=raw.status,
        overallRating=overall_rating(raw),
        comment=raw.publicReview,
        categories=category_map(raw),
        submittedAt=raw.submittedAt,
        guestName=raw.guestName,
        listingName=raw.listingName,
        channel=raw.channel or DEFAULT_CHANNEL,
        approved=flags.approved,
        featured=flags.featured,
    )


def normalize(raw_reviews: Iterable[RawReview], lookup: FlagsLookup = _default_flags) -> list[CanonicalReview]:
    """Normalize raw provider reviews, one canonical review per input, order kept.

    Args:
        raw_reviews: iterable of RawReview.
        lookup: callable returning the current moderation flags for a review id.

    Returns:
        list[CanonicalReview] with flags taken from `lookup` at call time.
    """
    return [normalize_review(raw, lookup(raw.id)) for raw in raw_reviews]
