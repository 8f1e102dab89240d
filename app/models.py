from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, func
from sqlalchemy.orm import Mapped, mapped_column

from app.constants import TBL_REVIEW_MODERATION
from .database import Base


class ReviewModeration(Base):
    __tablename__ = TBL_REVIEW_MODERATION
    review_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
