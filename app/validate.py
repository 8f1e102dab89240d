from typing import Any

from app.constants import F_ID, MODERATION_FLAGS
from app.errors import InvalidInputError
from app.schemas import ModerationPatch


def ensure_review_id(value: Any) -> int:
    """Check that `value` is a well-formed review identifier.

    Args:
        value: candidate identifier, typically straight out of a JSON body.

    Returns:
        int: the identifier.

    Raises:
        InvalidInputError: if the value is missing, boolean or not an integer.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError("Invalid review ID")
    return value


def parse_moderation_patch(body: Any) -> tuple[int, ModerationPatch]:
    """Validate a PATCH /reviews body.

    Flags set to null are treated as omitted.

    Args:
        body: decoded JSON body.

    Returns:
        (review_id, ModerationPatch)

    Raises:
        InvalidInputError: if the body is not an object, the id is malformed,
            or a flag is not a boolean.
    """
    if not isinstance(body, dict):
        raise InvalidInputError("Request body must be a JSON object")
    review_id = ensure_review_id(body.get(F_ID))
    flags = {}
    for name in MODERATION_FLAGS:
        value = body.get(name)
        if value is not None and not isinstance(value, bool):
            raise InvalidInputError(f"'{name}' must be a boolean")
        flags[name] = value
    return review_id, ModerationPatch(**flags)
