# weather_tool.py
import logging
from typing import List, Optional

import requests

import config
from basemodel_dto.weather_responsedto import Coordinates, DailyForecast

logger = logging.getLogger(__name__)

WEATHER_API_URL = "https://api.open-meteo.com/v1/forecast"
GEOCODING_API_URL = "https://geocoding-api.open-meteo.com/v1/search"

DAY_LABELS = ["Today", "Tomorrow", "Day after tomorrow"]

# WMO weather interpretation codes
WEATHER_DESCRIPTIONS = {
    0: 'Clear sky',
    1: 'Mainly clear',
    2: 'Partly cloudy',
    3: 'Overcast',
    45: 'Fog',
    48: 'Depositing rime fog',
    51: 'Light drizzle',
    53: 'Moderate drizzle',
    55: 'Dense drizzle',
    56: 'Light freezing drizzle',
    57: 'Dense freezing drizzle',
    61: 'Slight rain',
    63: 'Moderate rain',
    65: 'Heavy rain',
    66: 'Light freezing rain',
    67: 'Heavy freezing rain',
    71: 'Slight snow fall',
    73: 'Moderate snow fall',
    75: 'Heavy snow fall',
    77: 'Snow grains',
    80: 'Slight rain showers',
    81: 'Moderate rain showers',
    82: 'Violent rain showers',
    85: 'Slight snow showers',
    86: 'Heavy snow showers',
    95: 'Thunderstorm',
    96: 'Thunderstorm with slight hail',
    99: 'Thunderstorm with heavy hail',
}


def describe_weather_code(code) -> str:
    return WEATHER_DESCRIPTIONS.get(code, 'Unknown')


def _mock_forecast(tag: str, temps, conditions, rain, humidity) -> List[DailyForecast]:
    return [
        DailyForecast(day=DAY_LABELS[i], temp=temps[i], condition=f"{conditions[i]} ({tag})",
                      rain_probability=rain[i], humidity=humidity[i])
        for i in range(len(DAY_LABELS))
    ]


def get_coordinates(location: str) -> Optional[Coordinates]:
    params = {"name": location, "count": 1}
    try:
        response = requests.get(GEOCODING_API_URL, params=params, timeout=config.HTTP_TIMEOUT)
        if response.status_code != 200:
            return None
        results = response.json().get("results") or []
        if not results:
            return None
        return Coordinates(latitude=results[0]["latitude"], longitude=results[0]["longitude"])
    except Exception as e:
        logger.error("Geocoding failed for %s: %s", location, e)
        return None


def get_weather_forecast(location: str) -> List[DailyForecast]:
    """
    Returns a 3-day forecast for a place name.
    Falls back to mock data when the place cannot be geocoded or the API fails.
    """
    coords = get_coordinates(location)
    if not coords:
        logger.warning("Could not get coordinates for %s. Returning mock weather data.", location)
        return _mock_forecast("Mock", [28, 29, 27], ["Sunny", "Partly Cloudy", "Light Rain"], [10, 20, 60], [80, 85, 90])

    params = {
        "latitude": coords.latitude,
        "longitude": coords.longitude,
        "daily": "weather_code,temperature_2m_max,precipitation_probability_max,relative_humidity_2m_mean",
        "forecast_days": 3,
        "timezone": "auto",
    }

    try:
        response = requests.get(WEATHER_API_URL, params=params, timeout=config.HTTP_TIMEOUT)
        if response.status_code != 200:
            raise Exception(f"{response.status_code} Error: {response.text}")

        daily = response.json()["daily"]
        return [
            DailyForecast(
                day=DAY_LABELS[i],
                temp=round(daily["temperature_2m_max"][i]),
                condition=describe_weather_code(daily["weather_code"][i]),
                rain_probability=daily["precipitation_probability_max"][i] or 0,
                humidity=round(daily["relative_humidity_2m_mean"][i]),
            )
            for i in range(min(len(daily["time"]), len(DAY_LABELS)))
        ]
    except Exception as e:
        logger.error("Failed to fetch from weather API: %s", e)
        return _mock_forecast("API Error", [30, 31, 29], ["Sunny", "Sunny", "Cloudy"], [5, 10, 15], [75, 78, 80])


def weather_tool(location: str) -> list:
    """
    Gets a 3-day weather forecast for a specific location.
    Args:
        location (str): The city or area to get weather for.
    Returns:
        list: Objects with 'day', 'temp', 'condition', 'rain_probability' and 'humidity'.
    """
    return [d.model_dump() for d in get_weather_forecast(location)]
