"""
Chat history model. Each turn is stored as two rows: the user's message and the reply.
"""
from sqlalchemy import Column, Integer, Text, Boolean, DateTime
from sqlalchemy.sql import func

from weatherscent.core.database import Base


class ChatMessageRecord(Base):
    """Single chat message (user or assistant side)."""

    __tablename__ = "chat_messages"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=True, index=True)
    message = Column(Text, nullable=False)
    response = Column(Text, nullable=True)
    is_user = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<ChatMessageRecord(id={self.id}, user_id={self.user_id}, is_user={self.is_user})>"
