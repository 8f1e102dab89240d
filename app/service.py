import logging
from typing import Any, Sequence

from app.errors import NotFoundError
from app.normalize import normalize, normalize_review
from app.schemas import CanonicalReview, ModerationPatch, ModerationResult, RawReview
from app.store import ModerationStore
from app.validate import ensure_review_id

logger = logging.getLogger(__name__)


class ReviewQueryService:
    """Reads canonical reviews merged with moderation state, and updates that state.

    The raw review set is fixed for the life of the service; the store is owned
    by the caller and passed in.
    """

    def __init__(self, raw_reviews: Sequence[RawReview], store: ModerationStore):
        self._raw_reviews = tuple(raw_reviews)
        self._by_id = {raw.id: raw for raw in self._raw_reviews}
        self._store = store

    @property
    def store(self) -> ModerationStore:
        return self._store

    def list_reviews(self) -> list[CanonicalReview]:
        """All reviews, in raw order, with the moderation flags as of this call."""
        flags = self._store.get_many(self._by_id.keys())
        return normalize(self._raw_reviews, flags.__getitem__)

    def get_review(self, review_id: Any) -> CanonicalReview:
        raw = self._require(review_id)
        return normalize_review(raw, self._store.get(raw.id))

    def update_flags(self, review_id: Any, patch: ModerationPatch) -> ModerationResult:
        """Apply a partial approved/featured patch to a known review.

        Args:
            review_id: identifier of the review to moderate.
            patch: ModerationPatch; omitted fields keep their value.

        Returns:
            ModerationResult with the merged flags.

        Raises:
            InvalidInputError: malformed identifier.
            NotFoundError: no raw review with that identifier; nothing is stored.
        """
        raw = self._require(review_id)
        flags = self._store.set(raw.id, patch)
        return ModerationResult(id=raw.id, approved=flags.approved, featured=flags.featured)

    def _require(self, review_id: Any) -> RawReview:
        review_id = ensure_review_id(review_id)
        raw = self._by_id.get(review_id)
        if raw is None:
            logger.warning("Review %s not found", review_id)
            raise NotFoundError("Review not found")
        return raw
