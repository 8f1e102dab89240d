import os
from pathlib import Path

PACKAGE_ROOT = Path(__file__).parent

# In-memory SQLite only: moderation state must not outlive the process.
DATABASE_URL = "sqlite://"

# Raw Hostaway review payload loaded at startup
REVIEWS_SOURCE = os.getenv("REVIEWS_SOURCE", str(PACKAGE_ROOT / "data" / "hostaway_reviews.json"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
