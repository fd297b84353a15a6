"""
Recommendation log: one row per perfume surfaced to a user.
"""
from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func

from weatherscent.core.database import Base


class RecommendationRecord(Base):
    """Weather-based recommendation shown to a user."""

    __tablename__ = "recommendations"

    id = Column(Integer, primary_key=True, index=True)

    # Soft references, no FK constraints
    user_id = Column(Integer, nullable=True, index=True)
    perfume_id = Column(Integer, nullable=True)

    weather_condition = Column(String(100), nullable=True)
    temperature = Column(Integer, nullable=True)
    reason = Column(Text, nullable=True)
    mood_text = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<RecommendationRecord(id={self.id}, user_id={self.user_id}, perfume_id={self.perfume_id})>"
