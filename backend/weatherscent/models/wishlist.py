"""
Wishlist model: saved perfumes per user.
"""
from sqlalchemy import Column, Integer, DateTime, UniqueConstraint
from sqlalchemy.sql import func

from weatherscent.core.database import Base


class WishlistRecord(Base):
    """A perfume saved by a user. One row per (user, perfume) pair."""

    __tablename__ = "wishlist"
    __table_args__ = (
        UniqueConstraint("user_id", "perfume_id", name="uq_wishlist_user_perfume"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    perfume_id = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<WishlistRecord(user_id={self.user_id}, perfume_id={self.perfume_id})>"
