# market_advisor.py
import asyncio
import logging
from typing import Tuple

from agent import LANGUAGE_RULE, run_structured_agent, structured_agent
from basemodel_dto.market_dto import BestMandi, MarketData, SellAdvice, SellDecision
from flows.farm_context import language_line
from tools.mandi_tool import get_mandi_prices
from tools.news_tool import get_news
from tools.weather_tool import get_weather_forecast

logger = logging.getLogger(__name__)

DEFAULT_DISTRICT = "pune"
DEFAULT_STATE = "maharashtra"

sell_advisor_agent = structured_agent(
    name="MarketSellAdvisorAgent",
    description="Decides whether a farmer should sell now, wait or hold.",
    instruction=(
        "You are an expert agricultural market advisor for Indian farmers. "
        "Using the mandi prices, 3-day weather forecast and news in the message, decide whether the farmer should sell now, wait or hold. "
        "If the crop is not yet harvested the recommendation must be wait. "
        "Heavy rain in the next few days can disrupt transport and market access, which may favor selling now; mention it in the reasoning. "
        "If no mandi prices are available, say local prices are unavailable and decide from weather and news only; wait or hold is then likely unless news is strongly negative. "
        "Mandi prices are per quintal, so mention the conversion when the quantity is in kg. "
        "Give clear reasoning that cites the data used, and a realistic, conservative predictedPrice range for the near future, "
        "or state that a prediction cannot be made when there is no price data. " + LANGUAGE_RULE
    ),
    output_schema=SellDecision,
)


def parse_location(location: str) -> Tuple[str, str]:
    """Splits a 'District, State' profile location, defaulting to Pune, Maharashtra."""
    parts = [p.strip() for p in (location or "").split(",")]
    district = parts[0] if parts and parts[0] else DEFAULT_DISTRICT
    state = parts[1] if len(parts) > 1 and parts[1] else DEFAULT_STATE
    return district, state


def _render_sell_message(payload: MarketData, district: str, state: str, prices, weather, news) -> str:
    price_lines = "\n".join(f"- {p.market}: Rs {p.price} per quintal" for p in prices) or "- No prices available."
    weather_lines = "\n".join(
        f"- {d.day}: {d.temp}°C, {d.condition}, rain {d.rain_probability}%" for d in weather
    )
    news_lines = "\n".join(f"- {n.title}: {n.summary}" for n in news) or "- No recent news."
    return (
        f"Farmer's Location: {district}, {state}\n"
        f"Crop: {payload.crop}\n"
        f"Quantity: {payload.quantity} {payload.unit}\n"
        f"Harvest Status: {payload.harvestStatus}\n"
        f"Storage Viability: can be stored for {payload.storageDaysLeft} more days\n"
        f"Mandi Prices:\n{price_lines}\n"
        f"Weather Forecast:\n{weather_lines}\n"
        f"Recent News:\n{news_lines}\n"
        f"{language_line(payload.profile.language)}"
    )


async def get_sell_advice(payload: MarketData) -> SellAdvice:
    district, state = parse_location(payload.profile.location)
    prices, weather, news = await asyncio.gather(
        asyncio.to_thread(get_mandi_prices, state, district, payload.crop),
        asyncio.to_thread(get_weather_forecast, payload.profile.location or district),
        asyncio.to_thread(get_news, payload.crop),
    )

    decision = await run_structured_agent(
        sell_advisor_agent, _render_sell_message(payload, district, state, prices, weather, news), SellDecision
    )
    if payload.harvestStatus == "Not Harvested" and decision.recommendation != "wait":
        logger.info("Overriding '%s' with 'wait' for an unharvested crop", decision.recommendation)
        decision.recommendation = "wait"

    best_mandi = None
    if decision.recommendation == "sell" and prices:
        top = max(prices, key=lambda p: p.price)
        best_mandi = BestMandi(name=top.market, price=top.price)

    return SellAdvice(
        **decision.model_dump(),
        bestMandi=best_mandi,
        mandiPrices=prices,
        weather=weather,
        news=news,
    )
