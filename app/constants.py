# --- Source payload (Hostaway API envelope) ---
RAW_RESULT = "result"

# --- Canonical field names (wire contract consumed by the views) ---
F_ID = "id"
F_TYPE = "type"
F_STATUS = "status"
F_OVERALL_RATING = "overallRating"
F_COMMENT = "comment"
F_CATEGORIES = "categories"
F_SUBMITTED_AT = "submittedAt"
F_GUEST_NAME = "guestName"
F_LISTING_NAME = "listingName"
F_CHANNEL = "channel"
F_APPROVED = "approved"
F_FEATURED = "featured"

CANONICAL_FIELDS = [
    F_ID,
    F_TYPE,
    F_STATUS,
    F_OVERALL_RATING,
    F_COMMENT,
    F_CATEGORIES,
    F_SUBMITTED_AT,
    F_GUEST_NAME,
    F_LISTING_NAME,
    F_CHANNEL,
    F_APPROVED,
    F_FEATURED,
]

# Moderation flags an operator can patch
MODERATION_FLAGS = (F_APPROVED, F_FEATURED)

DEFAULT_CHANNEL = "hostaway"

# Source format of submittedAt, kept verbatim on the wire
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

MIN_RATING = 0
MAX_RATING = 10

SORT_BY_DATE = "date"
SORT_BY_RATING = "rating"

REVIEWS_PATH = "/reviews"

# Methods served on the /reviews collection
REVIEWS_ALLOWED_METHODS = ("GET", "PATCH")

# Prefix for per-category columns in CSV output
CATEGORY_COLUMN_PREFIX = "cat_"

# --- Table names ---
TBL_REVIEW_MODERATION = "review_moderation"
