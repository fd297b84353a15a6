import json
import logging
import re
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from weatherscent.schemas import (
    ChatReply,
    CombinedRecommendation,
    Perfume,
    PerfumePick,
    PerfumeSuggestion,
    PreferenceAnalysis,
    WeatherData,
)

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 3

CONSULTANT_SYSTEM_PROMPT = (
    "You are WeatherScent AI, an expert perfume consultant. "
    "Respond ONLY with valid JSON in the exact format requested."
)


class LLMServiceError(Exception):
    """The text-generation service failed or returned unusable output."""


class LLMNotConfiguredError(LLMServiceError):
    """No API key configured for the text-generation service."""


def extract_json(text: str) -> Dict[str, Any]:
    """Parse a JSON object from model output, tolerating text around it."""
    if not text or not text.strip():
        raise LLMServiceError("Received empty response from the language model")

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        json_match = re.search(r"\{.*\}", text, re.DOTALL)
        if not json_match:
            raise LLMServiceError(f"Could not parse LLM response as JSON: {text[:500]}")
        try:
            parsed = json.loads(json_match.group())
        except json.JSONDecodeError as e:
            raise LLMServiceError(f"Could not parse LLM response as JSON: {text[:500]}") from e

    if not isinstance(parsed, dict):
        raise LLMServiceError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed


def parse_suggestions(items: Any, limit: int = MAX_SUGGESTIONS) -> List[PerfumeSuggestion]:
    """Validate raw suggestion dicts, dropping malformed entries."""
    if not isinstance(items, list):
        return []

    suggestions = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            suggestions.append(PerfumeSuggestion.model_validate(item))
        except ValidationError:
            logger.debug(f"Dropping malformed suggestion: {item}")
            continue
        if len(suggestions) >= limit:
            break
    return suggestions


def fallback_combined_recommendation(
    weather: Optional[WeatherData],
    mood: str,
    purpose: str,
    candidates: List[Perfume],
) -> CombinedRecommendation:
    """Templated recommendation built from the first three candidates."""
    if weather:
        mood_text = (
            f"{weather.temperature}°C {weather.condition} 날씨에 "
            f"{mood} 기분으로 보내는 하루를 위한 향수를 추천합니다."
        )
    else:
        mood_text = f"{mood} 기분과 {purpose} 목적에 어울리는 향수를 추천합니다."

    picks = [
        PerfumePick(
            name=perfume.name,
            brand=perfume.brand,
            reason=f"{mood} 기분에 잘 어울리는 {perfume.category} 계열의 향수입니다.",
        )
        for perfume in candidates[:MAX_SUGGESTIONS]
    ]

    return CombinedRecommendation(
        mood_text=mood_text,
        summary=f"{mood} 기분에 {purpose} 목적으로 추천한 향수입니다.",
        recommended_perfumes=picks,
    )


class OpenAIService:
    """Client for an OpenAI-compatible chat completions API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4o",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def _post_completion(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST the payload to /chat/completions and return the decoded body."""
        headers = {"Authorization": f"Bearer {self.api_key}"}
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(
                f"{self.base_url}/chat/completions",
                json=payload,
                headers=headers,
            )
            response.raise_for_status()
            return response.json()

    async def _complete_json(self, user_message: str, temperature: float = 0.7) -> Dict[str, Any]:
        """Send one prompt and return the parsed JSON object from the reply."""
        if not self.api_key:
            raise LLMNotConfiguredError("OPENAI_API_KEY is not configured")

        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": CONSULTANT_SYSTEM_PROMPT},
                {"role": "user", "content": user_message},
            ],
            "response_format": {"type": "json_object"},
            "temperature": temperature,
        }

        logger.debug(f"Sending chat completion to {self.base_url} (model={self.model})")

        try:
            result = await self._post_completion(payload)
        except httpx.HTTPError as e:
            raise LLMServiceError(f"LLM request failed: {e}") from e
        except ValueError as e:
            raise LLMServiceError(f"LLM returned a non-JSON body: {e}") from e

        try:
            content = result["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise LLMServiceError(f"Unexpected LLM response shape: {type(result).__name__}") from e

        return extract_json(content)

    async def weather_recommendations(
        self,
        weather: WeatherData,
        preferences: Optional[Dict[str, Any]] = None,
    ) -> List[PerfumeSuggestion]:
        """
        Ask for up to three perfumes suited to the weather and the user's preferences.

        Raises LLMServiceError when the service cannot be used; an unusable but
        well-formed reply yields an empty list.
        """
        preferences_block = (
            json.dumps(preferences, ensure_ascii=False, indent=2)
            if preferences
            else "No specific preferences provided"
        )
        prompt = f"""Based on the following weather conditions and user preferences, recommend 3 perfumes that would be perfect for today.

Weather Information:
- Temperature: {weather.temperature}°C
- Condition: {weather.condition}
- Humidity: {weather.humidity}%
- Location: {weather.location}

User Preferences:
{preferences_block}

Return JSON with this structure:
{{
  "recommendations": [
    {{
      "name": "perfume name",
      "brand": "brand name",
      "category": "fragrance category (프레시/플로럴/우디/오리엔탈)",
      "notes": ["note1", "note2", "note3"],
      "reason": "why this perfume suits the weather and preferences",
      "moodText": "poetic description of how this perfume matches the day's mood",
      "confidence": 0.95
    }}
  ]
}}

Focus on how temperature and humidity affect how fragrances perform."""

        data = await self._complete_json(prompt, temperature=0.7)
        return parse_suggestions(data.get("recommendations"))

    async def analyze_preferences(self, answers: List[Dict[str, Any]]) -> PreferenceAnalysis:
        """Turn quiz answers into a fragrance profile."""
        prompt = f"""Analyze the following perfume preference quiz answers and build a fragrance profile.

Quiz Answers:
{json.dumps(answers, ensure_ascii=False, indent=2)}

Return JSON with this structure:
{{
  "profile": {{
    "favoriteCategories": ["category1", "category2"],
    "intensity": "light | medium | strong",
    "occasion": ["daily", "special", "romantic", "professional"],
    "personality": "brief personality description"
  }},
  "recommendations": {{
    "topCategories": ["recommended fragrance families"],
    "avoidCategories": ["categories to avoid"],
    "bestTimes": ["morning", "evening", "special occasions"],
    "seasonality": ["spring", "summer", "fall", "winter"]
  }},
  "explanation": "detailed explanation of the analysis"
}}"""

        data = await self._complete_json(prompt, temperature=0.7)
        try:
            return PreferenceAnalysis.model_validate(data)
        except ValidationError as e:
            raise LLMServiceError(f"Invalid preference analysis format: {e}") from e

    async def chat_reply(self, message: str, context: Optional[Dict[str, Any]] = None) -> ChatReply:
        """Answer a free-form perfume question; suggestions only when the user asked for them."""
        context_block = "No additional context"
        if context:
            try:
                context_block = json.dumps(context, ensure_ascii=False, default=str)[:4000]
            except (TypeError, ValueError):
                logger.debug("Chat context is not serializable, sending without it")

        prompt = f"""Respond to the user's question about perfumes, fragrances, or scent-related topics.
Maintain a luxurious, sophisticated tone that matches a premium perfume brand.

User Message: "{message}"

Context: {context_block}

Return JSON with this structure:
{{
  "message": "your response to the user",
  "recommendations": [
    {{
      "name": "perfume name",
      "brand": "brand name",
      "category": "category",
      "notes": ["note1", "note2"],
      "reason": "why this fits their request"
    }}
  ]
}}

Only include recommendations if the user is specifically asking for perfume suggestions."""

        data = await self._complete_json(prompt, temperature=0.8)

        reply_text = data.get("message")
        if not isinstance(reply_text, str) or not reply_text.strip():
            raise LLMServiceError("LLM chat reply has no message")

        suggestions = parse_suggestions(data.get("recommendations"))
        return ChatReply(message=reply_text, recommendations=suggestions or None)

    async def combined_recommendation(
        self,
        weather: Optional[WeatherData],
        mood: str,
        purpose: str,
        candidates: List[Perfume],
        gender: str = "",
        age_range: str = "",
        preferred_scents: Optional[List[str]] = None,
    ) -> CombinedRecommendation:
        """
        Pick up to three perfumes from the candidate list.

        Never raises: without a key, or on any failure, the templated fallback is returned.
        """
        if not self.is_configured:
            return fallback_combined_recommendation(weather, mood, purpose, candidates)

        candidate_lines = "\n".join(
            f"- {p.name} ({p.brand}) | {p.category} | {', '.join(p.notes)}" for p in candidates
        )
        weather_line = (
            f"{weather.temperature}°C, {weather.condition}, humidity {weather.humidity}%"
            if weather
            else "unknown"
        )
        prompt = f"""Choose up to 3 perfumes from the candidate list for this customer and explain each choice in Korean.

Customer:
- Gender: {gender or "unspecified"}
- Age range: {age_range or "unspecified"}
- Mood: {mood}
- Purpose: {purpose}
- Preferred scents: {", ".join(preferred_scents or []) or "none"}
- Weather: {weather_line}

Candidates:
{candidate_lines}

Return JSON with this structure:
{{
  "moodText": "one sentence tying the weather and mood together",
  "summary": "one sentence summary of the selection",
  "recommendedPerfumes": [
    {{"name": "perfume name from the list", "brand": "brand", "reason": "why it fits"}}
  ]
}}"""

        try:
            data = await self._complete_json(prompt, temperature=0.7)
            result = CombinedRecommendation.model_validate(data)
        except Exception:  # noqa: BLE001
            logger.warning("Combined recommendation via LLM failed, using templated fallback", exc_info=True)
            return fallback_combined_recommendation(weather, mood, purpose, candidates)

        result.recommended_perfumes = result.recommended_perfumes[:MAX_SUGGESTIONS]
        return result
