import json

import httpx
import pytest

from weatherscent.schemas import Perfume, WeatherData
from weatherscent.services.llm_openai import (
    LLMNotConfiguredError,
    LLMServiceError,
    OpenAIService,
    extract_json,
    parse_suggestions,
)


def _completion(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def _service(handler) -> OpenAIService:
    return OpenAIService(api_key="sk-test", transport=httpx.MockTransport(handler))


@pytest.fixture
def candidates():
    return [
        Perfume(id=1, name="Chance Eau Tendre", brand="CHANEL", category="프레시",
                notes=["자스민"], rating=48),
        Perfume(id=2, name="Neroli Portofino", brand="TOM FORD", category="우디",
                notes=["네롤리"], rating=46),
    ]


class TestExtractJson:
    def test_plain_object(self):
        assert extract_json('{"message": "hi"}') == {"message": "hi"}

    def test_object_wrapped_in_prose(self):
        text = 'Sure! Here you go:\n```json\n{"message": "hi", "n": 1}\n```'
        assert extract_json(text) == {"message": "hi", "n": 1}

    def test_empty_text(self):
        with pytest.raises(LLMServiceError):
            extract_json("   ")

    def test_no_object(self):
        with pytest.raises(LLMServiceError):
            extract_json("I cannot help with that.")

    def test_array_is_rejected(self):
        with pytest.raises(LLMServiceError):
            extract_json("[1, 2, 3]")


class TestParseSuggestions:
    def test_drops_malformed_and_caps_at_three(self):
        items = [
            {"name": "A", "brand": "X", "confidence": 1.7},
            {"name": "", "brand": "X"},
            "not a dict",
            {"name": "B", "brand": "Y", "notes": "rose, musk"},
            {"name": "C", "brand": "Z"},
            {"name": "D", "brand": "W"},
        ]

        suggestions = parse_suggestions(items)

        assert [s.name for s in suggestions] == ["A", "B", "C"]
        assert suggestions[0].confidence == 1.0
        assert suggestions[1].notes == ["rose", "musk"]

    def test_non_list(self):
        assert parse_suggestions({"name": "A"}) == []


class TestOpenAIService:
    @pytest.mark.asyncio
    async def test_not_configured(self):
        service = OpenAIService(api_key=None)

        assert service.is_configured is False
        with pytest.raises(LLMNotConfiguredError):
            await service.chat_reply("추천해줘")

    @pytest.mark.asyncio
    async def test_weather_recommendations_request_and_parse(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            content = json.dumps({
                "recommendations": [
                    {"name": "Light Blue", "brand": "D&G", "category": "프레시",
                     "notes": ["레몬"], "reason": "hot day", "moodText": "상쾌함", "confidence": 0.9},
                ]
            })
            return httpx.Response(200, json=_completion(content))

        service = _service(handler)
        weather = WeatherData(temperature=31, condition="Clear", humidity=40, location="서울")

        suggestions = await service.weather_recommendations(weather, {"intensity": "light"})

        assert seen["url"] == "https://api.openai.com/v1/chat/completions"
        assert seen["auth"] == "Bearer sk-test"
        assert seen["body"]["model"] == "gpt-4o"
        assert seen["body"]["response_format"] == {"type": "json_object"}
        assert "31°C" in seen["body"]["messages"][1]["content"]
        assert len(suggestions) == 1
        assert suggestions[0].mood_text == "상쾌함"

    @pytest.mark.asyncio
    async def test_http_error_is_wrapped(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json={"error": "boom"})

        with pytest.raises(LLMServiceError):
            await _service(handler).analyze_preferences([{"questionId": 1, "answer": "a"}])

    @pytest.mark.asyncio
    async def test_timeout_is_not_retried(self):
        attempts = {"n": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            attempts["n"] += 1
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(LLMServiceError):
            await _service(handler).chat_reply("hello")

        assert attempts["n"] == 1

    @pytest.mark.asyncio
    async def test_unexpected_shape_is_wrapped(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"id": "cmpl-1"})

        with pytest.raises(LLMServiceError):
            await _service(handler).chat_reply("hello")

    @pytest.mark.asyncio
    async def test_chat_reply_without_message_fails(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_completion('{"recommendations": []}'))

        with pytest.raises(LLMServiceError):
            await _service(handler).chat_reply("hello")

    @pytest.mark.asyncio
    async def test_chat_reply_omits_empty_recommendations(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_completion('{"message": "향수는 피부 위에서 변해요."}'))

        reply = await _service(handler).chat_reply("향수는 왜 변하나요?")

        assert reply.message == "향수는 피부 위에서 변해요."
        assert reply.recommendations is None

    @pytest.mark.asyncio
    async def test_analyze_preferences_normalizes_profile(self):
        content = json.dumps({
            "profile": {"favoriteCategories": "우디", "intensity": "EXTREME", "personality": "차분함"},
            "explanation": "우디 계열을 선호합니다.",
        })

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_completion(content))

        analysis = await _service(handler).analyze_preferences([{"questionId": 1, "answer": "forest"}])

        assert analysis.profile.favorite_categories == ["우디"]
        assert analysis.profile.intensity == "medium"
        assert analysis.explanation == "우디 계열을 선호합니다."


class TestCombinedRecommendation:
    @pytest.mark.asyncio
    async def test_fallback_without_key(self, candidates):
        service = OpenAIService(api_key=None)

        result = await service.combined_recommendation(None, "차분한", "데일리", candidates)

        assert len(result.recommended_perfumes) == 2
        first = result.recommended_perfumes[0]
        assert first.name == "Chance Eau Tendre"
        assert "차분한" in first.reason
        assert "프레시" in first.reason
        assert "차분한" in result.mood_text
        assert "데일리" in result.summary

    @pytest.mark.asyncio
    async def test_fallback_mentions_weather(self, candidates):
        weather = WeatherData(temperature=12, condition="Rain")

        result = await OpenAIService(api_key=None).combined_recommendation(
            weather, "우울한", "출근", candidates
        )

        assert "12°C" in result.mood_text

    @pytest.mark.asyncio
    async def test_fallback_on_service_failure(self, candidates):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, json={"error": "overloaded"})

        result = await _service(handler).combined_recommendation(None, "설레는", "데이트", candidates)

        assert [p.name for p in result.recommended_perfumes] == [
            "Chance Eau Tendre",
            "Neroli Portofino",
        ]

    @pytest.mark.asyncio
    async def test_fallback_on_invalid_reply(self, candidates):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_completion('{"summary": "missing fields"}'))

        result = await _service(handler).combined_recommendation(None, "설레는", "데이트", candidates)

        assert len(result.recommended_perfumes) == 2

    @pytest.mark.asyncio
    async def test_model_picks_are_capped(self, candidates):
        picks = [{"name": f"P{i}", "brand": "B", "reason": "r"} for i in range(5)]
        content = json.dumps({"moodText": "m", "summary": "s", "recommendedPerfumes": picks})

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_completion(content))

        result = await _service(handler).combined_recommendation(None, "설레는", "데이트", candidates)

        assert result.mood_text == "m"
        assert len(result.recommended_perfumes) == 3
