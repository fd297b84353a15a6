"""
Storage interface shared by the in-memory and the relational implementations.

Both implementations must return observably identical results for the same
sequence of calls; only durability differs. Records handed out are copies.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from weatherscent.schemas import (
    ChatMessage,
    ChatMessageCreate,
    Perfume,
    PerfumeCreate,
    PreferenceTest,
    PreferenceTestCreate,
    Recommendation,
    RecommendationCreate,
    RecommendationWithPerfume,
    User,
    UserCreate,
    WishlistCreate,
    WishlistItem,
    WishlistItemWithPerfume,
)


class StorageError(Exception):
    """Persistence failure (connection lost, constraint violation, ...)."""


class Storage(ABC):
    """Record keeping for users, perfumes, recommendations, wishlist, chat and quiz results."""

    name = "abstract"

    # Users
    @abstractmethod
    async def create_user(self, user: UserCreate) -> User:
        """Raises StorageError when the username or email is already taken."""

    @abstractmethod
    async def get_user_by_id(self, user_id: int) -> Optional[User]: ...

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[User]: ...

    @abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[User]: ...

    @abstractmethod
    async def update_user_preferences(
        self, user_id: int, preferences: Optional[Dict[str, Any]]
    ) -> Optional[User]: ...

    # Perfumes
    @abstractmethod
    async def create_perfume(self, perfume: PerfumeCreate) -> Perfume: ...

    @abstractmethod
    async def get_all_perfumes(self) -> List[Perfume]: ...

    @abstractmethod
    async def get_perfume_by_id(self, perfume_id: int) -> Optional[Perfume]: ...

    @abstractmethod
    async def find_perfume(self, name: str, brand: str) -> Optional[Perfume]:
        """First perfume whose name and brand match case-insensitively."""

    @abstractmethod
    async def update_perfume_views(self, perfume_id: int) -> Optional[Perfume]:
        """Increment the view counter by one. Returns the updated perfume, or None if absent."""

    # Recommendation log
    @abstractmethod
    async def create_recommendation(self, recommendation: RecommendationCreate) -> Recommendation: ...

    @abstractmethod
    async def get_recommendations_by_user_id(self, user_id: int) -> List[Recommendation]: ...

    async def get_recommendations_with_perfumes(self, user_id: int) -> List[RecommendationWithPerfume]:
        """Recommendations for a user with the referenced perfume attached (None if gone)."""
        rows = await self.get_recommendations_by_user_id(user_id)
        joined = []
        for row in rows:
            perfume = await self.get_perfume_by_id(row.perfume_id) if row.perfume_id is not None else None
            joined.append(RecommendationWithPerfume(**row.model_dump(), perfume=perfume))
        return joined

    # Wishlist
    @abstractmethod
    async def add_to_wishlist(self, item: WishlistCreate) -> Optional[WishlistItem]:
        """Insert the pair unless it already exists. Returns None for a duplicate."""

    @abstractmethod
    async def remove_from_wishlist(self, user_id: int, perfume_id: int) -> bool: ...

    @abstractmethod
    async def get_wishlist_by_user_id(self, user_id: int) -> List[WishlistItem]: ...

    @abstractmethod
    async def is_in_wishlist(self, user_id: int, perfume_id: int) -> bool: ...

    async def get_wishlist_with_perfumes(self, user_id: int) -> List[WishlistItemWithPerfume]:
        """Wishlist rows for a user with the referenced perfume attached (None if gone)."""
        rows = await self.get_wishlist_by_user_id(user_id)
        joined = []
        for row in rows:
            perfume = await self.get_perfume_by_id(row.perfume_id)
            joined.append(WishlistItemWithPerfume(**row.model_dump(), perfume=perfume))
        return joined

    # Chat
    @abstractmethod
    async def save_chat_message(self, message: ChatMessageCreate) -> ChatMessage: ...

    @abstractmethod
    async def get_chat_history(self, user_id: int) -> List[ChatMessage]:
        """Messages for a user, oldest first."""

    # Preference tests
    @abstractmethod
    async def save_preference_test(self, test: PreferenceTestCreate) -> PreferenceTest:
        """Store a quiz result, replacing the user's previous one."""

    @abstractmethod
    async def get_preference_test_by_user_id(self, user_id: int) -> Optional[PreferenceTest]: ...

    async def close(self) -> None:
        """Release any held resources."""
