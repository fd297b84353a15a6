"""
Recommendation endpoints: weather-based LLM suggestions, the questionnaire-driven
combined recommendation, and the per-user recommendation log.
"""
import logging
import uuid
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import ConfigDict, Field

from weatherscent.api.deps import get_llm_service, get_storage, llm_http_error
from weatherscent.schemas import (
    CamelModel,
    PerfumeSuggestion,
    RecommendationWithPerfume,
    RecommendedPerfume,
    WeatherData,
)
from weatherscent.services import LLMServiceError, OpenAIService, derive_mood
from weatherscent.services.recommender import (
    build_candidates,
    save_weather_recommendations,
    select_recommended,
)
from weatherscent.storage import Storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/recommendations", tags=["recommendations"])

# Number of catalogue entries offered to the model
MAX_CANDIDATES = 10


class WeatherRecommendationRequest(CamelModel):
    weather_data: WeatherData
    user_preferences: Optional[Dict[str, Any]] = None
    user_id: Optional[int] = None


class WeatherRecommendationResponse(CamelModel):
    recommendations: List[PerfumeSuggestion]
    mood_text: str
    weather_data: WeatherData
    saved_count: int = 0
    warning: Optional[str] = None


class RecommendationRequest(CamelModel):
    """Questionnaire answers from the recommendation page."""

    gender: str = ""
    age_range: str = ""
    mood: str = Field(..., min_length=1)
    purpose: str = Field(..., min_length=1)
    preferred_scents: List[str] = []
    weather: Optional[WeatherData] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "gender": "female",
                "ageRange": "20s",
                "mood": "설레는",
                "purpose": "데이트",
                "preferredScents": ["플로럴"],
                "weather": {"temperature": 22, "condition": "Clear", "humidity": 40,
                            "windSpeed": 1.5, "location": "서울"},
            }
        }
    )


class RecommendationResult(CamelModel):
    id: str
    mood: str
    weather: Optional[WeatherData] = None
    perfumes: List[RecommendedPerfume]
    mood_text: str
    summary: str


@router.post("/weather", response_model=WeatherRecommendationResponse, response_model_exclude_none=True)
async def weather_recommendations(
    payload: WeatherRecommendationRequest,
    storage: Storage = Depends(get_storage),
    llm: OpenAIService = Depends(get_llm_service),
):
    """
    Ask the language model for perfumes matching the weather.

    With a userId, every suggestion is stored: the perfume is looked up by
    name+brand (created if missing) and a recommendation log row is written.
    """
    try:
        suggestions = await llm.weather_recommendations(payload.weather_data, payload.user_preferences)
    except LLMServiceError as e:
        logger.error(f"Weather recommendations failed: {e}")
        raise llm_http_error(e, "Failed to get recommendations")

    response = WeatherRecommendationResponse(
        recommendations=suggestions,
        mood_text=derive_mood(payload.weather_data),
        weather_data=payload.weather_data,
    )

    if payload.user_id:
        saved, failed = await save_weather_recommendations(
            storage, payload.user_id, payload.weather_data, suggestions
        )
        response.saved_count = saved
        if failed:
            response.warning = f"{failed} recommendation(s) could not be saved"

    return response


@router.post("", response_model=RecommendationResult)
async def create_recommendation(
    payload: RecommendationRequest,
    storage: Storage = Depends(get_storage),
    llm: OpenAIService = Depends(get_llm_service),
):
    """
    Recommend three catalogue perfumes from the questionnaire and the weather.

    The model picks from scent-filtered candidates; without a model (or when its
    picks match nothing) the catalogue is filtered by scent, then by rating.
    """
    perfumes = await storage.get_all_perfumes()
    candidates = build_candidates(perfumes, payload.preferred_scents)[:MAX_CANDIDATES]

    result = await llm.combined_recommendation(
        payload.weather,
        payload.mood,
        payload.purpose,
        candidates,
        gender=payload.gender,
        age_range=payload.age_range,
        preferred_scents=payload.preferred_scents,
    )

    recommended = select_recommended(
        result.recommended_perfumes,
        perfumes,
        payload.preferred_scents,
        payload.mood,
    )

    return RecommendationResult(
        id=str(uuid.uuid4()),
        mood=payload.mood,
        weather=payload.weather,
        perfumes=recommended,
        mood_text=result.mood_text,
        summary=result.summary,
    )


@router.get("/{user_id}", response_model=List[RecommendationWithPerfume])
async def get_user_recommendations(user_id: int, storage: Storage = Depends(get_storage)):
    """Recommendation history for a user, each row with its perfume (null if deleted)."""
    return await storage.get_recommendations_with_perfumes(user_id)
