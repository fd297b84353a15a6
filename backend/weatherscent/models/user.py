"""
User model holding account identity and the analysed fragrance profile.
"""
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func

from weatherscent.core.database import Base, JSONType


class UserRecord(Base):
    """Registered (or demo) user."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), unique=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)

    # Serialized UserPreferences, written by the preference analysis flow
    preferences = Column(JSONType, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<UserRecord(id={self.id}, username='{self.username}')>"
