import logging
from typing import Optional

import httpx

from app.constants import F_APPROVED, F_FEATURED, F_ID, MODERATION_FLAGS, REVIEWS_PATH
from app.schemas import CanonicalReview, ModerationResult

logger = logging.getLogger(__name__)


class ReviewsClient:
    """Thin wrapper over the moderation API.

    Takes any httpx.Client (including fastapi.testclient.TestClient) whose
    base_url points at the API. Non-2xx responses raise httpx.HTTPStatusError.
    """

    def __init__(self, http: httpx.Client):
        self._http = http

    def fetch_reviews(self) -> list[CanonicalReview]:
        response = self._http.get(REVIEWS_PATH)
        response.raise_for_status()
        return [CanonicalReview.model_validate(item) for item in response.json()["data"]]

    def update_flags(
        self,
        review_id: int,
        approved: Optional[bool] = None,
        featured: Optional[bool] = None,
    ) -> ModerationResult:
        body = {F_ID: review_id}
        if approved is not None:
            body[F_APPROVED] = approved
        if featured is not None:
            body[F_FEATURED] = featured
        response = self._http.patch(REVIEWS_PATH, json=body)
        response.raise_for_status()
        return ModerationResult.model_validate(response.json()["data"])


class ModerationBoard:
    """Local copy of the review list with optimistic flag toggles.

    A toggle flips the flag locally first, then sends the PATCH. If the call
    fails only the toggled flag is put back; on success the board takes the
    flags the server returned.
    """

    def __init__(self, client: ReviewsClient):
        self._client = client
        self._reviews: dict[int, CanonicalReview] = {}

    @property
    def reviews(self) -> list[CanonicalReview]:
        return list(self._reviews.values())

    def review(self, review_id: int) -> CanonicalReview:
        return self._reviews[review_id]

    def refresh(self) -> None:
        self._reviews = {review.id: review for review in self._client.fetch_reviews()}

    def toggle(self, review_id: int, flag: str) -> bool:
        """Flip `flag` ("approved" or "featured") of one review.

        Returns:
            True when the server accepted the change, False when it was rolled back.
        """
        if flag not in MODERATION_FLAGS:
            raise ValueError(f"Unknown moderation flag: {flag}")
        previous = self._reviews[review_id]
        wanted = not getattr(previous, flag)
        self._reviews[review_id] = previous.model_copy(update={flag: wanted})

        try:
            result = self._client.update_flags(review_id, **{flag: wanted})
        except httpx.HTTPError as exc:
            logger.warning("Failed to update %s of review %s: %s", flag, review_id, exc)
            current = self._reviews[review_id]
            self._reviews[review_id] = current.model_copy(update={flag: getattr(previous, flag)})
            return False

        self._reviews[review_id] = self._reviews[review_id].model_copy(
            update={F_APPROVED: result.approved, F_FEATURED: result.featured}
        )
        return True

    def toggle_approved(self, review_id: int) -> bool:
        return self.toggle(review_id, F_APPROVED)

    def toggle_featured(self, review_id: int) -> bool:
        return self.toggle(review_id, F_FEATURED)
