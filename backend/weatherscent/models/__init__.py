# Database models
from weatherscent.models.user import UserRecord
from weatherscent.models.perfume import PerfumeRecord
from weatherscent.models.recommendation import RecommendationRecord
from weatherscent.models.wishlist import WishlistRecord
from weatherscent.models.chat_message import ChatMessageRecord
from weatherscent.models.preference_test import PreferenceTestRecord

__all__ = [
    "UserRecord",
    "PerfumeRecord",
    "RecommendationRecord",
    "WishlistRecord",
    "ChatMessageRecord",
    "PreferenceTestRecord",
]
