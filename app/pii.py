# Guest names are the only personal data in a review export.

from app.constants import F_GUEST_NAME
from app.schemas import CanonicalReview


def mask_name(name: str) -> str:
    """Mask a person name keeping only the first character of each part.

    Args:
        name: raw guest name, e.g. "Shane Finkelstein".

    Returns:
        Masked name ("S*** F***"), or original falsy input.
    """
    if not name:
        return name
    return " ".join(part[0] + "***" for part in name.split())


def mask_review(review: CanonicalReview) -> CanonicalReview:
    """Copy of `review` with the guest name masked; flags and ratings untouched."""
    return review.model_copy(update={F_GUEST_NAME: mask_name(review.guestName)})
