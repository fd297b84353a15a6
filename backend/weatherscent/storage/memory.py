"""
In-memory storage. Ephemeral, pre-seeded with the demo user and sample perfumes.

Method bodies never await, so each call runs to completion without interleaving
with other requests on the event loop.
"""
import itertools
from datetime import datetime, timezone
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
    User,
    UserCreate,
    WishlistCreate,
    WishlistItem,
)
from weatherscent.storage.base import Storage, StorageError
from weatherscent.storage.sample_data import DEMO_USER, SAMPLE_PERFUMES


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MemoryStorage(Storage):
    """Dict-backed storage with per-entity id counters."""

    name = "memory"

    def __init__(self, seed: bool = True):
        self._users: Dict[int, User] = {}
        self._perfumes: Dict[int, Perfume] = {}
        self._recommendations: Dict[int, Recommendation] = {}
        self._wishlist: Dict[int, WishlistItem] = {}
        self._chat_messages: Dict[int, ChatMessage] = {}
        self._preference_tests: Dict[int, PreferenceTest] = {}

        self._user_ids = itertools.count(1)
        self._perfume_ids = itertools.count(1)
        self._recommendation_ids = itertools.count(1)
        self._wishlist_ids = itertools.count(1)
        self._chat_ids = itertools.count(1)
        self._test_ids = itertools.count(1)

        if seed:
            self._insert_user(DEMO_USER)
            for perfume in SAMPLE_PERFUMES:
                self._insert_perfume(perfume)

    def _insert_user(self, data: UserCreate) -> User:
        # Same unique columns as the users table
        for existing in self._users.values():
            if existing.username == data.username or existing.email == data.email:
                raise StorageError(f"Duplicate user: username={data.username!r} email={data.email!r}")
        user = User(**data.model_dump(), id=next(self._user_ids), created_at=_now())
        self._users[user.id] = user
        return user

    def _insert_perfume(self, data: PerfumeCreate) -> Perfume:
        perfume = Perfume(**data.model_dump(), id=next(self._perfume_ids))
        self._perfumes[perfume.id] = perfume
        return perfume

    @staticmethod
    def _copy(record):
        return record.model_copy(deep=True) if record is not None else None

    # Users

    async def create_user(self, user: UserCreate) -> User:
        return self._copy(self._insert_user(user))

    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        return self._copy(self._users.get(user_id))

    async def get_user_by_email(self, email: str) -> Optional[User]:
        return self._copy(next((u for u in self._users.values() if u.email == email), None))

    async def get_user_by_username(self, username: str) -> Optional[User]:
        return self._copy(next((u for u in self._users.values() if u.username == username), None))

    async def update_user_preferences(
        self, user_id: int, preferences: Optional[Dict[str, Any]]
    ) -> Optional[User]:
        user = self._users.get(user_id)
        if user is None:
            return None
        user.preferences = preferences
        return self._copy(user)

    # Perfumes

    async def create_perfume(self, perfume: PerfumeCreate) -> Perfume:
        return self._copy(self._insert_perfume(perfume))

    async def get_all_perfumes(self) -> List[Perfume]:
        return [self._copy(p) for p in self._perfumes.values()]

    async def get_perfume_by_id(self, perfume_id: int) -> Optional[Perfume]:
        return self._copy(self._perfumes.get(perfume_id))

    async def find_perfume(self, name: str, brand: str) -> Optional[Perfume]:
        name, brand = name.lower(), brand.lower()
        for perfume in self._perfumes.values():
            if perfume.name.lower() == name and perfume.brand.lower() == brand:
                return self._copy(perfume)
        return None

    async def update_perfume_views(self, perfume_id: int) -> Optional[Perfume]:
        perfume = self._perfumes.get(perfume_id)
        if perfume is None:
            return None
        perfume.views = (perfume.views or 0) + 1
        return self._copy(perfume)

    # Recommendation log

    async def create_recommendation(self, recommendation: RecommendationCreate) -> Recommendation:
        record = Recommendation(
            **recommendation.model_dump(), id=next(self._recommendation_ids), created_at=_now()
        )
        self._recommendations[record.id] = record
        return self._copy(record)

    async def get_recommendations_by_user_id(self, user_id: int) -> List[Recommendation]:
        return [self._copy(r) for r in self._recommendations.values() if r.user_id == user_id]

    # Wishlist

    async def add_to_wishlist(self, item: WishlistCreate) -> Optional[WishlistItem]:
        if self._find_wishlist_id(item.user_id, item.perfume_id) is not None:
            return None
        record = WishlistItem(**item.model_dump(), id=next(self._wishlist_ids), created_at=_now())
        self._wishlist[record.id] = record
        return self._copy(record)

    async def remove_from_wishlist(self, user_id: int, perfume_id: int) -> bool:
        item_id = self._find_wishlist_id(user_id, perfume_id)
        if item_id is None:
            return False
        del self._wishlist[item_id]
        return True

    async def get_wishlist_by_user_id(self, user_id: int) -> List[WishlistItem]:
        return [self._copy(w) for w in self._wishlist.values() if w.user_id == user_id]

    async def is_in_wishlist(self, user_id: int, perfume_id: int) -> bool:
        return self._find_wishlist_id(user_id, perfume_id) is not None

    def _find_wishlist_id(self, user_id: int, perfume_id: int) -> Optional[int]:
        for item_id, item in self._wishlist.items():
            if item.user_id == user_id and item.perfume_id == perfume_id:
                return item_id
        return None

    # Chat

    async def save_chat_message(self, message: ChatMessageCreate) -> ChatMessage:
        record = ChatMessage(**message.model_dump(), id=next(self._chat_ids), created_at=_now())
        self._chat_messages[record.id] = record
        return self._copy(record)

    async def get_chat_history(self, user_id: int) -> List[ChatMessage]:
        history = [m for m in self._chat_messages.values() if m.user_id == user_id]
        history.sort(key=lambda m: (m.created_at, m.id))
        return [self._copy(m) for m in history]

    # Preference tests

    async def save_preference_test(self, test: PreferenceTestCreate) -> PreferenceTest:
        if test.user_id is not None:
            stale = [k for k, v in self._preference_tests.items() if v.user_id == test.user_id]
            for key in stale:
                del self._preference_tests[key]
        record = PreferenceTest(**test.model_dump(), id=next(self._test_ids), completed_at=_now())
        self._preference_tests[record.id] = record
        return self._copy(record)

    async def get_preference_test_by_user_id(self, user_id: int) -> Optional[PreferenceTest]:
        return self._copy(
            next((t for t in self._preference_tests.values() if t.user_id == user_id), None)
        )
