# cultivation_advisor.py
import asyncio
import logging

from agent import LANGUAGE_RULE, run_structured_agent, structured_agent
from basemodel_dto.recommendation_dto import (FertilizerRecommendationInput, FertilizerRecommendationOutput,
                                              PestDiseaseForecastInput, PestDiseaseForecastOutput,
                                              WaterManagementInput, WaterManagementOutput)
from flows.farm_context import language_line, render_farm
from tools.news_tool import get_news
from tools.weather_tool import get_weather_forecast

logger = logging.getLogger(__name__)

PLACEHOLDER_IMAGE_URL = "https://placehold.co/600x400.png"

APPLICATION_ITEM_RULES = (
    "For each application give an applicationStage such as 'Basal Application (at sowing)' or 'Top Dressing (30 days after sowing)', "
    "a fertilizerName (e.g. Urea, DAP, MOP for inorganic; Vermicompost, Neem Cake, Jeevamrut for organic), "
    "a quantity that MUST be per ACRE (e.g. '50 kg' or '2 tonnes') and a very specific, farmer-friendly applicationMethod. "
    "For liquids and sprays always include mixing instructions such as 'Mix 5ml in 1 liter of water and spray on the foliage'. "
)

fertilizer_agent = structured_agent(
    name="FertilizerRecommendationAgent",
    description="Builds NPK dosage and organic/inorganic fertilizer plans from a soil health card.",
    instruction=(
        "You are an expert soil scientist and agronomist advising an Indian farmer who has shared their Soil Health Card. "
        "1. Calculate the N, P and K dosage in kg per ACRE for the crop from the soil data. "
        "2. Create two complete schedules that meet it: an inorganic plan with conventional fertilizers and an organic plan with organic inputs. "
        + APPLICATION_ITEM_RULES +
        "3. Suggest 2-3 recommendedBrands of conventional fertilizer trusted in India (e.g. IFFCO, Kribhco, NFL). "
        "4. Briefly describe government subsidyInfo for conventional fertilizers. "
        "5. Add notes and precautions for both plans, such as split application of Nitrogen. "
        + LANGUAGE_RULE
    ),
    output_schema=FertilizerRecommendationOutput,
)

water_management_agent = structured_agent(
    name="WaterManagementAgent",
    description="Builds one irrigation plan per irrigation source of a farm.",
    instruction=(
        "You are an expert irrigation and water management advisor for Indian farmers. "
        "The irrigation field may list several sources (e.g. 'Borewell, Canal, Rain-fed'). Create a separate plan for each mechanical or manual source. "
        "When Rain-fed appears with another source, merge it into that plan (e.g. 'Canal/Rain-fed Source') and never create a separate Rain-fed plan. "
        "Only a farm that is purely rain-fed gets a Rain-fed plan. "
        "Each plan has a source name, a paragraph of practical advice for the crop and location that factors in soil water loss and mentions drip, sprinkler "
        "or alternate wetting and drying where applicable, and a schedule of at least 3-4 growth stages. "
        "Each stage has a growthStage, a specific frequency (e.g. 'Every 8-10 days') and a duration given as a water depth the farmer can check, "
        "such as 'Apply water until it reaches a depth of 3-4 inches across the field', never pump run times. "
        "Use clear, simple language. " + LANGUAGE_RULE
    ),
    output_schema=WaterManagementOutput,
)

pest_forecast_agent = structured_agent(
    name="PestDiseaseForecastAgent",
    description="Forecasts likely pest and disease threats with preventative measures.",
    instruction=(
        "You are an expert plant pathologist and entomologist giving preventative advice to an Indian farmer. Prevention is better than cure. "
        "Using the crop, location, soil, weather forecast and news in the message, identify the 2-3 most likely pests and diseases in the near future. "
        "High humidity or particular temperature ranges favor certain diseases, and news can show threats already active in the region. "
        "For each threat give its name, a type of Pest or Disease, farmer-friendly early symptoms, and preventativeMeasures with "
        "1-2 organic methods (e.g. 'Prophylactic spray of Neem oil (5ml per liter of water) every 15 days') and 1-2 chemical methods with "
        "chemical name, concentration and application instructions (e.g. 'Mancozeb 75% WP (2 grams per liter of water) during cloudy weather'). "
        + LANGUAGE_RULE
    ),
    output_schema=PestDiseaseForecastOutput,
)


def _render_fertilizer_message(payload: FertilizerRecommendationInput) -> str:
    card = payload.soilHealthCard
    return (
        f"Crop: {payload.cropName}\n"
        f"Location: {payload.location}\n"
        "Soil Health Card Data:\n"
        f"- pH: {card.ph}\n"
        f"- Organic Carbon (%): {card.organic_carbon}\n"
        f"- Available Nitrogen (N) (kg/ha): {card.nitrogen}\n"
        f"- Available Phosphorus (P) (kg/ha): {card.phosphorus}\n"
        f"- Available Potassium (K) (kg/ha): {card.potassium}\n"
        f"{language_line(payload.language)}"
    )


def _render_water_message(payload: WaterManagementInput) -> str:
    return (
        f"Crop: {payload.cropName}\n"
        f"Farm Data:\n{render_farm(payload.farm, include_planting_month=False)}\n"
        f"{language_line(payload.language)}"
    )


def _render_forecast_message(payload: PestDiseaseForecastInput, weather, news) -> str:
    weather_lines = "\n".join(
        f"- {d.day}: {d.temp}°C, {d.condition}, rain {d.rain_probability}%, humidity {d.humidity}%" for d in weather
    )
    news_lines = "\n".join(f"- {n.title}: {n.summary}" for n in news) or "- No recent news."
    return (
        f"Crop: {payload.cropName}\n"
        f"Location: {payload.farm.location}\n"
        f"Soil Type: {payload.farm.soilType or 'Not specified'}\n"
        f"Weather Forecast:\n{weather_lines}\n"
        f"Recent News:\n{news_lines}\n"
        f"{language_line(payload.language)}"
    )


async def get_fertilizer_recommendations(payload: FertilizerRecommendationInput) -> FertilizerRecommendationOutput:
    return await run_structured_agent(fertilizer_agent, _render_fertilizer_message(payload), FertilizerRecommendationOutput)


async def get_water_management_plan(payload: WaterManagementInput) -> WaterManagementOutput:
    return await run_structured_agent(water_management_agent, _render_water_message(payload), WaterManagementOutput)


async def get_pest_disease_forecast(payload: PestDiseaseForecastInput) -> PestDiseaseForecastOutput:
    weather, news = await asyncio.gather(
        asyncio.to_thread(get_weather_forecast, payload.farm.location),
        asyncio.to_thread(get_news, f"{payload.cropName} outbreak pest India"),
    )
    logger.info("Gathered %d forecast days and %d news items for %s", len(weather), len(news), payload.farm.location)

    result = await run_structured_agent(
        pest_forecast_agent, _render_forecast_message(payload, weather, news), PestDiseaseForecastOutput
    )
    for threat in result.threats:
        threat.imageUrl = threat.imageUrl or PLACEHOLDER_IMAGE_URL
    return result
