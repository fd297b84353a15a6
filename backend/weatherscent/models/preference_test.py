"""
Preference quiz results. At most one row per user; a new test replaces the old one.
"""
from sqlalchemy import Column, Integer, DateTime
from sqlalchemy.sql import func

from weatherscent.core.database import Base, JSONType


class PreferenceTestRecord(Base):
    """Answers and LLM analysis for a user's preference quiz."""

    __tablename__ = "preference_tests"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, unique=True, nullable=True, index=True)
    answers = Column(JSONType, nullable=False)  # [{questionId, question, answer, label}]
    results = Column(JSONType, nullable=True)

    completed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<PreferenceTestRecord(id={self.id}, user_id={self.user_id})>"
