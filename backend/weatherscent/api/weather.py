"""
Weather lookup endpoints.
"""

from fastapi import APIRouter, Depends, Query
from pydantic import ConfigDict, Field

from weatherscent.api.deps import get_weather_service
from weatherscent.schemas import CamelModel, WeatherReport
from weatherscent.services import WeatherService, derive_mood

router = APIRouter(prefix="/api/weather", tags=["weather"])


class WeatherRequest(CamelModel):
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)

    model_config = ConfigDict(json_schema_extra={"example": {"lat": 37.5665, "lon": 126.978}})


async def _report(weather_service: WeatherService, lat: float, lon: float) -> WeatherReport:
    weather = await weather_service.fetch(lat, lon)
    return WeatherReport(**weather.model_dump(), mood_text=derive_mood(weather))


@router.post("", response_model=WeatherReport)
async def post_weather(
    payload: WeatherRequest,
    weather_service: WeatherService = Depends(get_weather_service),
):
    """Current weather for a coordinate plus its mood sentence. Falls back to fixed data."""
    return await _report(weather_service, payload.lat, payload.lon)


@router.get("", response_model=WeatherReport)
async def get_weather(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    weather_service: WeatherService = Depends(get_weather_service),
):
    """Query-string variant of POST /api/weather."""
    return await _report(weather_service, lat, lon)
