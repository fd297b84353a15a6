"""WeatherScent - weather-aware perfume recommendation API."""

__version__ = "0.1.0"
