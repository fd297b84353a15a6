"""
FastAPI dependencies resolving the collaborators attached to app.state at startup.
"""
from fastapi import HTTPException, Request

from weatherscent.services import LLMNotConfiguredError, LLMServiceError, OpenAIService, WeatherService
from weatherscent.storage import Storage


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def get_weather_service(request: Request) -> WeatherService:
    return request.app.state.weather


def get_llm_service(request: Request) -> OpenAIService:
    return request.app.state.llm


def llm_http_error(error: LLMServiceError, failure_detail: str) -> HTTPException:
    """Map a text-generation failure to the HTTP error shown to the client."""
    if isinstance(error, LLMNotConfiguredError):
        return HTTPException(status_code=503, detail="AI service is not configured")
    return HTTPException(status_code=500, detail=failure_detail)
