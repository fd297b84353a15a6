import logging
import math
from typing import Optional

import httpx

from weatherscent.schemas import WeatherData

logger = logging.getLogger(__name__)

# Served whenever the provider cannot be used (no key, network error, bad payload)
FALLBACK_WEATHER = WeatherData(
    temperature=20,
    condition="Clear",
    humidity=50,
    wind_speed=2.0,
    location="서울",
)

MOOD_RAIN = "비 오는 날, 차분하고 포근한 향으로 마음을 감싸보세요."
MOOD_SNOW = "눈 내리는 날, 따뜻하고 부드러운 향이 온기를 더해줍니다."
MOOD_CLOUD = "흐린 하늘 아래, 은은하고 부드러운 향으로 기분을 밝혀보세요."
MOOD_HOT_CLEAR = "뜨거운 햇살 아래, 상쾌하고 가벼운 시트러스 향이 어울리는 날입니다."
MOOD_MILD_CLEAR = "맑고 화창한 날, 산뜻한 플로럴 향으로 하루를 시작해보세요."
MOOD_COLD_CLEAR = "맑지만 쌀쌀한 날, 따뜻한 우디 향으로 포근함을 더해보세요."
MOOD_DEFAULT = "오늘의 날씨에 어울리는 특별한 향을 찾아보세요."


def derive_mood(weather: WeatherData) -> str:
    """
    Map a weather reading to a mood sentence.

    Condition keywords are matched case-insensitively as substrings; clear/sunny
    weather is split at 25°C and 15°C (>25 hot, 15<t<=25 mild, <=15 cold).
    """
    condition = (weather.condition or "").lower()
    temperature = weather.temperature

    if "rain" in condition or "storm" in condition:
        return MOOD_RAIN
    if "snow" in condition:
        return MOOD_SNOW
    if "cloud" in condition:
        return MOOD_CLOUD
    if "clear" in condition or "sun" in condition:
        if temperature > 25:
            return MOOD_HOT_CLEAR
        if temperature > 15:
            return MOOD_MILD_CLEAR
        return MOOD_COLD_CLEAR
    return MOOD_DEFAULT


class WeatherService:
    """OpenWeatherMap client that never fails: errors turn into FALLBACK_WEATHER."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = "https://api.openweathermap.org/data/2.5/weather",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def fetch(self, lat: float, lon: float) -> WeatherData:
        """Current weather at (lat, lon), or the fallback reading."""
        if not self.api_key:
            logger.info("OPENWEATHER_API_KEY not set, serving fallback weather")
            return FALLBACK_WEATHER.model_copy()

        params = {
            "lat": lat,
            "lon": lon,
            "appid": self.api_key,
            "units": "metric",
            "lang": "kr",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(self.base_url, params=params)
                response.raise_for_status()
                data = response.json()

            return WeatherData(
                temperature=math.floor(data["main"]["temp"] + 0.5),  # half-up, 20.5 -> 21
                condition=data["weather"][0]["main"],
                humidity=int(data["main"].get("humidity", 0)),
                wind_speed=float(data.get("wind", {}).get("speed", 0.0)),
                location=data.get("name") or "현재 위치",
            )
        except Exception:
            logger.warning("Weather API call failed, serving fallback weather", exc_info=True)
            return FALLBACK_WEATHER.model_copy()
