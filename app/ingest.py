import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

import pandas as pd
from pydantic import ValidationError

from app.constants import CATEGORY_COLUMN_PREFIX, F_CATEGORIES, RAW_RESULT
from app.normalize import normalize
from app.schemas import RawReview

logger = logging.getLogger(__name__)


def parse_raw_reviews(payload: Any) -> list[RawReview]:
    """Validate a Hostaway payload into RawReview records.

    Accepts a bare list of records or the API envelope {"status": ..., "result": [...]}.
    Numeric fields are permissive; structural problems are not.

    Args:
        payload: decoded JSON.

    Returns:
        list[RawReview] in payload order.

    Raises:
        ValueError: if the payload has no record list, a record is malformed
            (missing id, unknown type) or two records share an id.
    """
    records = payload.get(RAW_RESULT) if isinstance(payload, dict) else payload
    if not isinstance(records, list):
        raise ValueError("Review payload must be a list or an object with a 'result' list")

    reviews = []
    seen = set()
    for position, record in enumerate(records):
        try:
            raw = RawReview.model_validate(record)
        except ValidationError as exc:
            raise ValueError(f"Invalid review record at position {position}: {exc}") from exc
        if raw.id in seen:
            raise ValueError(f"Duplicate review id {raw.id}")
        seen.add(raw.id)
        reviews.append(raw)
    return reviews


def load_raw_reviews(path: str | Path) -> list[RawReview]:
    with open(path, encoding="utf-8") as f:
        payload = json.load(f)
    reviews = parse_raw_reviews(payload)
    logger.info("Loaded %d raw reviews from %s", len(reviews), path)
    return reviews


def preview_frame(raw_reviews: list[RawReview]) -> pd.DataFrame:
    """Flatten normalized reviews into one row each, categories as cat_<name> columns."""
    rows = []
    for review in normalize(raw_reviews):
        row = review.model_dump(exclude={F_CATEGORIES})
        for name, rating in review.categories.items():
            row[CATEGORY_COLUMN_PREFIX + name] = rating
        rows.append(row)
    return pd.DataFrame(rows)


def run(json_path: str) -> None:
    raw_reviews = load_raw_reviews(json_path)
    preview_frame(raw_reviews).to_csv(sys.stdout, index=False)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Normalize a Hostaway reviews JSON file and print it as CSV")
    parser.add_argument("--json", required=True, help="Path to reviews JSON file")
    args = parser.parse_args()
    run(args.json)
