"""
Local recommendation logic: candidate filtering, matching LLM picks back to the
catalogue, and persisting weather-based suggestions.
"""
import logging
import math
from typing import List, Optional, Sequence, Tuple

from weatherscent.schemas import (
    Perfume,
    PerfumeCreate,
    PerfumePick,
    PerfumeSuggestion,
    RecommendationCreate,
    RecommendedPerfume,
    WeatherData,
)
from weatherscent.storage import Storage, StorageError

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 3


def matches_scent(perfume: Perfume, scents: Sequence[str]) -> bool:
    """True if any scent keyword appears in the perfume's category or one of its notes."""
    category = perfume.category.lower()
    notes = [n.lower() for n in perfume.notes if isinstance(n, str)]
    for scent in scents:
        keyword = scent.strip().lower()
        if not keyword:
            continue
        if keyword in category or any(keyword in note for note in notes):
            return True
    return False


def filter_by_scents(perfumes: Sequence[Perfume], scents: Sequence[str]) -> List[Perfume]:
    return [p for p in perfumes if matches_scent(p, scents)]


def sort_by_rating(perfumes: Sequence[Perfume]) -> List[Perfume]:
    # stable: ties keep catalogue order
    return sorted(perfumes, key=lambda p: p.rating or 0, reverse=True)


def top_rated(perfumes: Sequence[Perfume], limit: int = DEFAULT_LIMIT) -> List[Perfume]:
    return sort_by_rating(perfumes)[:limit]


def build_candidates(perfumes: Sequence[Perfume], scents: Sequence[str]) -> List[Perfume]:
    """Scent-matching perfumes (all perfumes if none match), best rated first."""
    filtered = filter_by_scents(perfumes, scents) if scents else []
    return sort_by_rating(filtered or perfumes)


def match_pick(pick: PerfumePick, perfumes: Sequence[Perfume]) -> Optional[Perfume]:
    """
    Loose lookup of an LLM pick in the catalogue.

    A perfume matches when either name contains the other (case-insensitive).
    Only when no name matches anywhere is an equal brand (case-insensitive) accepted.
    First match wins within each pass.
    """
    name = pick.name.strip().lower()
    brand = pick.brand.strip().lower()
    if name:
        for perfume in perfumes:
            stored_name = perfume.name.lower()
            if stored_name in name or name in stored_name:
                return perfume
    if brand:
        for perfume in perfumes:
            if perfume.brand.lower() == brand:
                return perfume
    return None


def default_reason(perfume: Perfume, mood: str) -> str:
    return f"{mood} 기분에 잘 어울리는 {perfume.category} 계열의 향수입니다."


def select_recommended(
    picks: Sequence[PerfumePick],
    perfumes: Sequence[Perfume],
    preferred_scents: Sequence[str],
    mood: str,
    limit: int = DEFAULT_LIMIT,
) -> List[RecommendedPerfume]:
    """
    Resolve picks to stored perfumes.

    Fallback chain: matched picks -> scent-filtered catalogue -> top rated catalogue.
    """
    chosen: List[Tuple[Perfume, str]] = []
    seen_ids = set()
    for pick in picks:
        perfume = match_pick(pick, perfumes)
        if perfume is None or perfume.id in seen_ids:
            continue
        seen_ids.add(perfume.id)
        chosen.append((perfume, pick.reason or default_reason(perfume, mood)))
        if len(chosen) >= limit:
            break

    if not chosen:
        fallback = filter_by_scents(perfumes, preferred_scents)[:limit] if preferred_scents else []
        if not fallback:
            fallback = top_rated(perfumes, limit)
        chosen = [(p, default_reason(p, mood)) for p in fallback]

    return [RecommendedPerfume(**p.model_dump(), reason=reason) for p, reason in chosen]


def similar_perfumes(perfume: Perfume, perfumes: Sequence[Perfume], limit: int = 4) -> List[Perfume]:
    """Other perfumes of the same category, best rated first."""
    same_category = [
        p for p in perfumes
        if p.id != perfume.id and p.category.lower() == perfume.category.lower()
    ]
    return top_rated(same_category, limit)


async def find_or_create_perfume(storage: Storage, suggestion: PerfumeSuggestion) -> Perfume:
    """Stored perfume with the suggestion's name and brand, created if missing."""
    existing = await storage.find_perfume(suggestion.name, suggestion.brand)
    if existing:
        return existing

    return await storage.create_perfume(
        PerfumeCreate(
            name=suggestion.name,
            brand=suggestion.brand,
            category=suggestion.category or "기타",
            notes=suggestion.notes,
            description=suggestion.reason,
            rating=math.floor(suggestion.confidence * 50),  # 0-50 catalogue scale
            views=0,
        )
    )


async def save_weather_recommendations(
    storage: Storage,
    user_id: int,
    weather: WeatherData,
    suggestions: Sequence[PerfumeSuggestion],
) -> Tuple[int, int]:
    """
    Persist each suggestion (find-or-create perfume, then one log row).

    Suggestions are saved independently: a storage failure skips that suggestion
    and is counted. Returns (saved, failed).
    """
    saved = failed = 0
    for suggestion in suggestions:
        try:
            perfume = await find_or_create_perfume(storage, suggestion)
            await storage.create_recommendation(
                RecommendationCreate(
                    user_id=user_id,
                    perfume_id=perfume.id,
                    weather_condition=weather.condition,
                    temperature=weather.temperature,
                    reason=suggestion.reason,
                    mood_text=suggestion.mood_text,
                )
            )
            saved += 1
        except StorageError as e:
            failed += 1
            logger.error(f"Failed to save recommendation '{suggestion.name}' for user {user_id}: {e}")
    return saved, failed
