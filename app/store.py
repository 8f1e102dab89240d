import logging
import threading
from typing import Iterable

from sqlalchemy.orm import sessionmaker

from app.schemas import ModerationFlags, ModerationPatch
from .crud import count_moderation, get_moderation, query_moderation, to_flags, upsert_moderation

logger = logging.getLogger(__name__)

DEFAULT_FLAGS = ModerationFlags(approved=False, featured=False)


class ModerationStore:
    """Process-lifetime approved/featured flags keyed by review id.

    A review id with no stored row reads as DEFAULT_FLAGS; callers never see
    the difference between "never set" and "explicitly set to false".
    All reads and read-modify-writes go through one lock, so two updates of
    the same review never interleave (last writer wins).
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory
        self._lock = threading.Lock()

    def get(self, review_id: int) -> ModerationFlags:
        with self._lock, self._session_factory() as db:
            row = get_moderation(db, review_id)
            return DEFAULT_FLAGS if row is None else to_flags(row)

    def get_many(self, review_ids: Iterable[int]) -> dict[int, ModerationFlags]:
        """Flags for every requested id, DEFAULT_FLAGS filled in for unseen ones."""
        ids = list(review_ids)
        with self._lock, self._session_factory() as db:
            stored = {row.review_id: to_flags(row) for row in query_moderation(db, ids)}
        return {review_id: stored.get(review_id, DEFAULT_FLAGS) for review_id in ids}

    def set(self, review_id: int, patch: ModerationPatch) -> ModerationFlags:
        """Merge the provided fields over the current (or default) flags.

        Args:
            review_id: review identifier; existence is not checked here.
            patch: ModerationPatch with the fields to change.

        Returns:
            ModerationFlags: the full state after the merge.
        """
        with self._lock, self._session_factory() as db:
            flags = to_flags(upsert_moderation(db, review_id, patch))
        logger.info("Moderation flags for review %s set to approved=%s featured=%s",
                    review_id, flags.approved, flags.featured)
        return flags

    def has_entry(self, review_id: int) -> bool:
        with self._lock, self._session_factory() as db:
            return get_moderation(db, review_id) is not None

    def __len__(self) -> int:
        with self._lock, self._session_factory() as db:
            return count_moderation(db)
