import math
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.constants import CANONICAL_FIELDS, DEFAULT_CHANNEL, F_CATEGORIES

ReviewType = Literal["host-to-guest", "guest-to-host"]


def coerce_rating(value: Any) -> Optional[int]:
    """Permissively turn a provider rating into an int.

    Args:
        value: raw rating as found in the payload (int, float, numeric string, ...).

    Returns:
        int rating (floats rounded half-up), or None when the value is missing
        or not numeric.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return round_half_up(number)


def round_half_up(number: float) -> int:
    """Round to the nearest int with halves going up (2.5 -> 3, -2.5 -> -2)."""
    return math.floor(number + 0.5)


# -------------------------
# Raw provider records
# -------------------------
class RawCategoryRating(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    category: str
    rating: int = 0

    @field_validator("rating", mode="before")
    @classmethod
    def _permissive_rating(cls, value: Any) -> int:
        coerced = coerce_rating(value)
        return 0 if coerced is None else coerced


class RawReview(BaseModel):
    """Review record as received from the Hostaway aggregator."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: int
    type: ReviewType
    status: str = ""
    rating: Optional[int] = None
    publicReview: str = ""
    reviewCategory: list[RawCategoryRating] = Field(default_factory=list)
    submittedAt: str = ""
    guestName: str = ""
    listingName: str = ""
    channel: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _strict_id(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("review id must be an integer")
        return value

    @field_validator("rating", mode="before")
    @classmethod
    def _permissive_rating(cls, value: Any) -> Optional[int]:
        return coerce_rating(value)

    @field_validator("publicReview", "guestName", "listingName", "status", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("reviewCategory", mode="before")
    @classmethod
    def _none_as_no_categories(cls, value: Any) -> Any:
        return [] if value is None else value


# -------------------------
# Canonical records
# -------------------------
class ModerationFlags(BaseModel):
    model_config = ConfigDict(frozen=True)

    approved: bool = False
    featured: bool = False


class ModerationPatch(BaseModel):
    """Partial flag update; None means leave the current value alone."""

    model_config = ConfigDict(frozen=True)

    approved: Optional[bool] = None
    featured: Optional[bool] = None

    def apply(self, current: ModerationFlags) -> ModerationFlags:
        return ModerationFlags(
            approved=current.approved if self.approved is None else self.approved,
            featured=current.featured if self.featured is None else self.featured,
        )


class CanonicalReview(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    type: ReviewType
    status: str
    overallRating: int
    comment: str
    categories: dict[str, int] = Field(default_factory=dict)
    submittedAt: str
    guestName: str
    listingName: str
    channel: str = DEFAULT_CHANNEL
    approved: bool = False
    featured: bool = False


class ModerationResult(BaseModel):
    id: int
    approved: bool
    featured: bool


# -------------------------
# Responses
# -------------------------
class ReviewListResponse(BaseModel):
    status: str = "success"
    count: int
    data: list[CanonicalReview]


class ReviewResponse(BaseModel):
    status: str = "success"
    data: CanonicalReview


class ModerationUpdateResponse(BaseModel):
    status: str = "success"
    message: str = "Review updated successfully"
    data: ModerationResult


class ModerationStats(BaseModel):
    total: int
    approved: int
    featured: int
    averageRating: float


class ModerationStatsResponse(BaseModel):
    status: str = "success"
    data: ModerationStats


class ListingShowcase(BaseModel):
    listingName: str
    totalReviews: int
    approvedCount: int
    featuredCount: int
    approvalRate: int
    averageRating: float
    categoryAverages: dict[str, float]
    approvedReviews: list[CanonicalReview]
    featuredReviews: list[CanonicalReview]


class ListingShowcaseResponse(BaseModel):
    status: str = "success"
    data: ListingShowcase


class ListingsResponse(BaseModel):
    status: str = "success"
    count: int
    data: list[str]


class ErrorResponse(BaseModel):
    status: str = "error"
    message: str


# CSV column order for exports; per-category columns are appended at runtime
HEADERS = {
    "reviews": [f for f in CANONICAL_FIELDS if f != F_CATEGORIES],
}
