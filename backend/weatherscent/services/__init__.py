# Services module
from .llm_openai import LLMNotConfiguredError, LLMServiceError, OpenAIService
from .weather import WeatherService, derive_mood

__all__ = [
    "OpenAIService",
    "LLMServiceError",
    "LLMNotConfiguredError",
    "WeatherService",
    "derive_mood",
]
