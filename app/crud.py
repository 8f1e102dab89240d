from typing import Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.schemas import ModerationFlags, ModerationPatch
from .models import ReviewModeration


def get_moderation(db: Session, review_id: int) -> Optional[ReviewModeration]:
    """Retrieve the moderation row for a review by primary key.

    Args:
        db: SQLAlchemy Session.
        review_id: review identifier.

    Returns:
        ReviewModeration or None if the review was never moderated.
    """
    return db.get(ReviewModeration, review_id)


def query_moderation(db: Session, review_ids: Iterable[int]) -> list[ReviewModeration]:
    """Fetch the moderation rows that exist for the given review ids.

    Args:
        db: SQLAlchemy Session.
        review_ids: identifiers to look up; ids without a row are simply absent.

    Returns:
        List[ReviewModeration] ordered by review id.
    """
    ids = list(review_ids)
    if not ids:
        return []
    stmt = select(ReviewModeration).where(ReviewModeration.review_id.in_(ids)).order_by(ReviewModeration.review_id)
    return db.execute(stmt).scalars().all()


def count_moderation(db: Session) -> int:
    return db.execute(select(func.count()).select_from(ReviewModeration)).scalar_one()


def upsert_moderation(db: Session, review_id: int, patch: ModerationPatch) -> ReviewModeration:
    """Merge a partial flag patch into the row for `review_id`, creating it if needed.

    Args:
        db: SQLAlchemy Session (committed by this call).
        review_id: review identifier.
        patch: ModerationPatch; None fields keep their current value.

    Returns:
        ReviewModeration: the row after the merge.
    """
    row = get_moderation(db, review_id)
    if row is None:
        row = ReviewModeration(review_id=review_id, approved=False, featured=False)
        db.add(row)
    merged = patch.apply(to_flags(row))
    row.approved = merged.approved
    row.featured = merged.featured
    db.commit()
    db.refresh(row)
    return row


def to_flags(row: ReviewModeration) -> ModerationFlags:
    """Project a ReviewModeration row onto its approved/featured flags."""
    return ModerationFlags(approved=bool(row.approved), featured=bool(row.featured))
