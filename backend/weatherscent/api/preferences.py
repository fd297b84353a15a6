"""
Preference quiz endpoints.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import Field

from weatherscent.api.deps import get_llm_service, get_storage, llm_http_error
from weatherscent.schemas import CamelModel, PreferenceAnalysis, PreferenceAnswer, PreferenceTest, PreferenceTestCreate
from weatherscent.services import LLMServiceError, OpenAIService
from weatherscent.storage import Storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/preferences", tags=["preferences"])


class AnalyzeRequest(CamelModel):
    answers: List[PreferenceAnswer] = Field(..., min_length=1)
    user_id: Optional[int] = None


@router.post("/analyze", response_model=PreferenceAnalysis, response_model_exclude_none=True)
async def analyze_preferences(
    payload: AnalyzeRequest,
    storage: Storage = Depends(get_storage),
    llm: OpenAIService = Depends(get_llm_service),
):
    """
    Analyze quiz answers into a fragrance profile.

    With a userId the test is stored (replacing the previous one) and the
    profile becomes the user's preferences.
    """
    answers = [a.model_dump(by_alias=True) for a in payload.answers]
    try:
        analysis = await llm.analyze_preferences(answers)
    except LLMServiceError as e:
        logger.error(f"Preference analysis failed: {e}")
        raise llm_http_error(e, "Failed to analyze preferences")

    if payload.user_id:
        await storage.save_preference_test(
            PreferenceTestCreate(
                user_id=payload.user_id,
                answers=payload.answers,
                results=analysis.model_dump(by_alias=True, exclude_none=True),
            )
        )
        if analysis.profile:
            await storage.update_user_preferences(
                payload.user_id, analysis.profile.model_dump(by_alias=True, exclude_none=True)
            )

    return analysis


@router.get("/{user_id}", response_model=Optional[PreferenceTest])
async def get_preferences(user_id: int, storage: Storage = Depends(get_storage)):
    """The user's stored preference test, or null if they have not taken it."""
    return await storage.get_preference_test_by_user_id(user_id)
