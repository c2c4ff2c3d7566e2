from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from basemodel_dto.farm_dto import Profile
from basemodel_dto.weather_responsedto import DailyForecast

AlertStatus = Literal['active', 'triggered', 'cancelled', 'acknowledged']


class MandiPrice(BaseModel):
    market: str
    price: float


class NewsItem(BaseModel):
    title: str
    summary: str
    link: str


class MarketData(BaseModel):
    profile: Profile
    crop: str = Field(min_length=1)
    quantity: float = Field(gt=0)
    unit: Literal['kg', 'quintal']
    harvestStatus: Literal['Harvested', 'Not Harvested']
    storageDaysLeft: int = Field(ge=0)


class BestMandi(BaseModel):
    name: str
    price: float


class SellDecision(BaseModel):
    """The part of the sell advice the model decides."""
    recommendation: Literal['sell', 'wait', 'hold']
    reasoning: str
    predictedPrice: str = Field(description="Predicted near-future price range, e.g., 'Rs 2,100 - Rs 2,300 per quintal'.")


class SellAdvice(SellDecision):
    bestMandi: Optional[BestMandi] = None
    mandiPrices: List[MandiPrice]
    weather: List[DailyForecast]
    news: List[NewsItem]


class MarketAlertCreate(BaseModel):
    crop: str = Field(min_length=1)
    priceThreshold: float = Field(gt=0)


class MarketAlert(MarketAlertCreate):
    id: str
    userId: str
    status: AlertStatus
    createdAt: str
    triggeredAt: Optional[str] = None
    triggeredPrice: Optional[float] = None


class PriceCheckOutput(BaseModel):
    triggeredAlerts: List[str]
