"""
Entity and payload schemas shared by the storage layer, the adapters and the API.

Python attributes are snake_case; the JSON wire format is camelCase.
"""
from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialising to camelCase and accepting either spelling."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive CURRENT_TIMESTAMP values, which are UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]


# ─── Weather ────────────────────────────────────────────────────────────────


class WeatherData(CamelModel):
    """Normalized weather reading for a coordinate."""

    temperature: int
    condition: str
    humidity: int = 0
    wind_speed: float = 0.0
    location: str = "현재 위치"


class WeatherReport(WeatherData):
    """Weather reading plus the mood sentence shown next to it."""

    mood_text: str


# ─── Users ──────────────────────────────────────────────────────────────────


class UserPreferences(CamelModel):
    """Fragrance profile stored on the user record."""

    favorite_categories: List[str] = []
    intensity: Literal["light", "medium", "strong"] = "medium"
    occasion: List[str] = []
    personality: Optional[str] = None
    age_range: Optional[str] = None
    gender: Optional[str] = None

    @field_validator("intensity", mode="before")
    @classmethod
    def _normalize_intensity(cls, value):
        if isinstance(value, str) and value.strip().lower() in {"light", "medium", "strong"}:
            return value.strip().lower()
        return "medium"

    @field_validator("favorite_categories", "occasion", mode="before")
    @classmethod
    def _normalize_list(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        if not isinstance(value, list):
            return []
        return [str(item) for item in value if item is not None]


class UserCreate(CamelModel):
    username: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=255)
    preferences: Optional[Dict[str, Any]] = None


class User(UserCreate):
    id: int
    created_at: Optional[UtcDatetime] = None


# ─── Perfumes ───────────────────────────────────────────────────────────────


class PerfumeCreate(CamelModel):
    name: str
    brand: str
    category: str
    notes: List[str] = []
    description: Optional[str] = None
    image: Optional[str] = None
    rating: int = 0
    views: int = 0


class Perfume(PerfumeCreate):
    id: int


class RecommendedPerfume(Perfume):
    """Stored perfume annotated with why it was picked."""

    reason: str


# ─── Recommendation log ─────────────────────────────────────────────────────


class RecommendationCreate(CamelModel):
    user_id: Optional[int] = None
    perfume_id: Optional[int] = None
    weather_condition: Optional[str] = None
    temperature: Optional[int] = None
    reason: Optional[str] = None
    mood_text: Optional[str] = None


class Recommendation(RecommendationCreate):
    id: int
    created_at: Optional[UtcDatetime] = None


class RecommendationWithPerfume(Recommendation):
    perfume: Optional[Perfume] = None


# ─── Wishlist ───────────────────────────────────────────────────────────────


class WishlistCreate(CamelModel):
    user_id: int
    perfume_id: int


class WishlistItem(WishlistCreate):
    id: int
    created_at: Optional[UtcDatetime] = None


class WishlistItemWithPerfume(WishlistItem):
    perfume: Optional[Perfume] = None


# ─── Chat ───────────────────────────────────────────────────────────────────


class ChatMessageCreate(CamelModel):
    user_id: Optional[int] = None
    message: str
    response: Optional[str] = None
    is_user: bool = True


class ChatMessage(ChatMessageCreate):
    id: int
    created_at: Optional[UtcDatetime] = None


# ─── Preference test ────────────────────────────────────────────────────────


class PreferenceAnswer(CamelModel):
    """One answered quiz question."""

    question_id: int
    question: str = ""
    answer: Any = None
    label: str = ""


class PreferenceTestCreate(CamelModel):
    user_id: Optional[int] = None
    answers: List[PreferenceAnswer]
    results: Optional[Dict[str, Any]] = None


class PreferenceTest(PreferenceTestCreate):
    id: int
    completed_at: Optional[UtcDatetime] = None


# ─── LLM results ────────────────────────────────────────────────────────────


class PerfumeSuggestion(CamelModel):
    """A perfume proposed by the language model, not yet tied to a stored record."""

    name: str = Field(..., min_length=1)
    brand: str = Field(..., min_length=1)
    category: str = ""
    notes: List[str] = []
    reason: str = ""
    mood_text: str = ""
    confidence: float = 0.0

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value):
        try:
            value = float(value)
        except (TypeError, ValueError):
            return 0.0
        return max(0.0, min(1.0, value))

    @field_validator("notes", mode="before")
    @classmethod
    def _coerce_notes(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            return [n.strip() for n in value.split(",") if n.strip()]
        return [str(n) for n in value]


class PreferenceAnalysis(CamelModel):
    """Structured result of the preference quiz analysis."""

    model_config = ConfigDict(extra="allow")

    profile: Optional[UserPreferences] = None
    recommendations: Optional[Dict[str, Any]] = None
    explanation: str = ""


class ChatReply(CamelModel):
    message: str
    recommendations: Optional[List[PerfumeSuggestion]] = None


class PerfumePick(CamelModel):
    """A perfume chosen from the candidate list, identified by name/brand."""

    name: str
    brand: str
    reason: str = ""


class CombinedRecommendation(CamelModel):
    mood_text: str
    summary: str
    recommended_perfumes: List[PerfumePick] = []
