from pydantic import BaseModel, Field


class Coordinates(BaseModel):
    latitude: float
    longitude: float


class DailyForecast(BaseModel):
    day: str = Field(description="The day of the forecast, e.g., 'Today', 'Tomorrow'.")
    temp: float = Field(description="The maximum temperature in Celsius.")
    condition: str = Field(description="A brief description of the weather condition, e.g., 'Partly cloudy'.")
    rain_probability: float = Field(description="The maximum probability of rain as a percentage (0-100).")
    humidity: float = Field(description="The mean relative humidity as a percentage (0-100).")
