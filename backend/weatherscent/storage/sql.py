"""
Relational storage on async SQLAlchemy (PostgreSQL via asyncpg, SQLite via aiosqlite).
"""
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from weatherscent.core.database import Base, create_engine, create_session_factory
from weatherscent.models import (
    ChatMessageRecord,
    PerfumeRecord,
    PreferenceTestRecord,
    RecommendationRecord,
    UserRecord,
    WishlistRecord,
)
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

logger = logging.getLogger(__name__)


class SqlStorage(Storage):
    """Storage backed by a relational database."""

    name = "sql"

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self._session_factory = create_session_factory(engine)

    @classmethod
    def from_url(cls, database_url: str, echo: bool = False) -> "SqlStorage":
        return cls(create_engine(database_url, echo=echo))

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        """Session scope: commit on success, translate driver errors into StorageError."""
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(f"Database operation failed: {e}")
                raise StorageError(str(e)) from e

    async def create_schema(self) -> None:
        """Create all tables (tests and DB_AUTO_CREATE; production uses Alembic)."""
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as e:
            raise StorageError(str(e)) from e

    async def seed_sample_data(self) -> Dict[str, int]:
        """Insert the demo user and sample perfumes that are not present yet."""
        created = {"users": 0, "perfumes": 0}
        if await self.get_user_by_email(DEMO_USER.email) is None:
            await self.create_user(DEMO_USER)
            created["users"] += 1
        for perfume in SAMPLE_PERFUMES:
            if await self.find_perfume(perfume.name, perfume.brand) is None:
                await self.create_perfume(perfume)
                created["perfumes"] += 1
        return created

    async def close(self) -> None:
        await self.engine.dispose()

    async def _add(self, record):
        async with self._session() as session:
            session.add(record)
            await session.flush()
            # Pull server-side defaults (created_at) before the session closes
            await session.refresh(record)
        return record

    # Users

    async def create_user(self, user: UserCreate) -> User:
        record = await self._add(UserRecord(**user.model_dump()))
        return User.model_validate(record)

    async def _get_user_where(self, *criteria) -> Optional[User]:
        async with self._session() as session:
            result = await session.execute(select(UserRecord).where(*criteria).limit(1))
            record = result.scalar_one_or_none()
        return User.model_validate(record) if record else None

    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        return await self._get_user_where(UserRecord.id == user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        return await self._get_user_where(UserRecord.email == email)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        return await self._get_user_where(UserRecord.username == username)

    async def update_user_preferences(
        self, user_id: int, preferences: Optional[Dict[str, Any]]
    ) -> Optional[User]:
        async with self._session() as session:
            record = await session.get(UserRecord, user_id)
            if record is None:
                return None
            record.preferences = preferences
            await session.flush()
            user = User.model_validate(record)
        return user

    # Perfumes

    async def create_perfume(self, perfume: PerfumeCreate) -> Perfume:
        record = await self._add(PerfumeRecord(**perfume.model_dump()))
        return Perfume.model_validate(record)

    async def get_all_perfumes(self) -> List[Perfume]:
        async with self._session() as session:
            result = await session.execute(select(PerfumeRecord).order_by(PerfumeRecord.id))
            records = result.scalars().all()
        return [Perfume.model_validate(r) for r in records]

    async def get_perfume_by_id(self, perfume_id: int) -> Optional[Perfume]:
        async with self._session() as session:
            record = await session.get(PerfumeRecord, perfume_id)
        return Perfume.model_validate(record) if record else None

    async def find_perfume(self, name: str, brand: str) -> Optional[Perfume]:
        stmt = (
            select(PerfumeRecord)
            .where(
                func.lower(PerfumeRecord.name) == name.lower(),
                func.lower(PerfumeRecord.brand) == brand.lower(),
            )
            .order_by(PerfumeRecord.id)
            .limit(1)
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            record = result.scalar_one_or_none()
        return Perfume.model_validate(record) if record else None

    async def update_perfume_views(self, perfume_id: int) -> Optional[Perfume]:
        # Single UPDATE so concurrent viewers cannot lose increments
        stmt = (
            update(PerfumeRecord)
            .where(PerfumeRecord.id == perfume_id)
            .values(views=PerfumeRecord.views + 1)
            .execution_options(synchronize_session=False)
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            if result.rowcount == 0:
                return None
            record = await session.get(PerfumeRecord, perfume_id, populate_existing=True)
            perfume = Perfume.model_validate(record)
        return perfume

    # Recommendation log

    async def create_recommendation(self, recommendation: RecommendationCreate) -> Recommendation:
        record = await self._add(RecommendationRecord(**recommendation.model_dump()))
        return Recommendation.model_validate(record)

    async def get_recommendations_by_user_id(self, user_id: int) -> List[Recommendation]:
        stmt = (
            select(RecommendationRecord)
            .where(RecommendationRecord.user_id == user_id)
            .order_by(RecommendationRecord.id)
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            records = result.scalars().all()
        return [Recommendation.model_validate(r) for r in records]

    # Wishlist

    async def add_to_wishlist(self, item: WishlistCreate) -> Optional[WishlistItem]:
        record = WishlistRecord(**item.model_dump())
        async with self._session() as session:
            session.add(record)
            try:
                await session.flush()
            except IntegrityError:
                # uq_wishlist_user_perfume: the pair is already saved
                await session.rollback()
                return None
            await session.refresh(record)
            wishlist_item = WishlistItem.model_validate(record)
        return wishlist_item

    async def remove_from_wishlist(self, user_id: int, perfume_id: int) -> bool:
        stmt = (
            select(WishlistRecord)
            .where(WishlistRecord.user_id == user_id, WishlistRecord.perfume_id == perfume_id)
            .order_by(WishlistRecord.id)
            .limit(1)
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            record = result.scalar_one_or_none()
            if record is None:
                return False
            await session.delete(record)
        return True

    async def get_wishlist_by_user_id(self, user_id: int) -> List[WishlistItem]:
        stmt = (
            select(WishlistRecord)
            .where(WishlistRecord.user_id == user_id)
            .order_by(WishlistRecord.id)
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            records = result.scalars().all()
        return [WishlistItem.model_validate(r) for r in records]

    async def is_in_wishlist(self, user_id: int, perfume_id: int) -> bool:
        stmt = select(func.count(WishlistRecord.id)).where(
            WishlistRecord.user_id == user_id, WishlistRecord.perfume_id == perfume_id
        )
        async with self._session() as session:
            count = (await session.execute(stmt)).scalar_one()
        return count > 0

    # Chat

    async def save_chat_message(self, message: ChatMessageCreate) -> ChatMessage:
        record = await self._add(ChatMessageRecord(**message.model_dump()))
        return ChatMessage.model_validate(record)

    async def get_chat_history(self, user_id: int) -> List[ChatMessage]:
        stmt = (
            select(ChatMessageRecord)
            .where(ChatMessageRecord.user_id == user_id)
            .order_by(ChatMessageRecord.created_at, ChatMessageRecord.id)
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            records = result.scalars().all()
        return [ChatMessage.model_validate(r) for r in records]

    # Preference tests

    async def save_preference_test(self, test: PreferenceTestCreate) -> PreferenceTest:
        record = PreferenceTestRecord(**test.model_dump(by_alias=True, include={"answers", "results"}))
        record.user_id = test.user_id
        async with self._session() as session:
            if test.user_id is not None:
                await session.execute(
                    delete(PreferenceTestRecord).where(PreferenceTestRecord.user_id == test.user_id)
                )
            session.add(record)
            await session.flush()
            await session.refresh(record)
            saved = PreferenceTest.model_validate(record)
        return saved

    async def get_preference_test_by_user_id(self, user_id: int) -> Optional[PreferenceTest]:
        stmt = (
            select(PreferenceTestRecord)
            .where(PreferenceTestRecord.user_id == user_id)
            .order_by(PreferenceTestRecord.id)
            .limit(1)
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            record = result.scalar_one_or_none()
        return PreferenceTest.model_validate(record) if record else None
