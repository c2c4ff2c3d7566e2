# crop_advisor.py
import logging

from google.adk.agents import LlmAgent
from google.adk.tools import FunctionTool

from agent import (MODEL_NAME, LANGUAGE_RULE, build_content, parse_json_reply, run_agent_and_get_text,
                   run_structured_agent, schema_hint, structured_agent)
from basemodel_dto.recommendation_dto import (CropRecommendationInput, CropRecommendationOutput,
                                              VarietyRecommendationInput, YearLongPlannerInput,
                                              YearLongPlannerOutput, YearLongVarietyPlanInput,
                                              YearLongVarietyPlanOutput)
from errors import FlowError
from flows.farm_context import ensure_single_best_fit, language_line, render_farm
from tools.mandi_tool import mandi_prices_tool

logger = logging.getLogger(__name__)

RECOMMENDATION_DETAILS = """
For each recommendation provide:
1. Recommendation details: cropName, a short description, a reason that justifies the fit for the farm's location, soil, irrigation and rotation after the last crop, the ideal sowing month for the region, a specific estimated duration (e.g. "110-120 days") and a comment on market suitability.
2. cropOverview: bestSeason, harvestDuration, recommendedLandType, seedRate, irrigationNeeds, estimatedWaterUsage (mm) and seedTreatment.
3. sowingWindows: exactly 3 windows, each with a dateRange, a riskLevel of Low, Medium or High, isPmfbyEligible and a description. Add a pmfbyReminder to check PMFBY deadlines for the farmer's state.
4. plan: 2-3 land preparation steps, 2-3 seed selection suggestions, an irrigation schedule, a spraying schedule as a single string (mention the nutrients to replenish after the last crop) and a week-by-week timeline of 3-4 milestones.
5. Financial estimates for the farm's location: estimatedCosts per size unit for seed, fertilizer, pesticide, labor and irrigation; estimatedYield in kg per size unit; estimatedSellingPrice in Rupees per kg. Be precise and realistic, never vague.
"""

crop_recommendation_agent = structured_agent(
    name="CropRecommendationAgent",
    description="Recommends the top 4 crops for a farm.",
    instruction=(
        "You are an expert agricultural advisor for Indian farmers whose reputation depends on accurate, data-driven advice. "
        "Based on the farm data in the message, recommend the top 4 most suitable and profitable crops, personalized to the farm's conditions. "
        "Soil type heavily influences suitability, irrigation decides which crops are viable, and the last crop matters for rotation and pest cycles.\n"
        + RECOMMENDATION_DETAILS +
        "Generate diverse and practical recommendations. " + LANGUAGE_RULE
    ),
    output_schema=CropRecommendationOutput,
)

variety_recommendation_agent = structured_agent(
    name="VarietyRecommendationAgent",
    description="Recommends the top 4 varieties of a chosen crop for a farm.",
    instruction=(
        "You are an expert agronomist advising an Indian farmer who has already chosen a crop and needs the best VARIETIES of it. "
        "Recommend the top 4 most suitable and profitable varieties of the chosen crop for the farm in the message. "
        "cropName must be the variety name (e.g. 'Pusa Ruby Tomato'). The reason must explicitly reference the farm's location, soil type and irrigation. "
        "Seed selection should say where to source certified seed of the variety, and the spraying schedule should cover the crop's common pests and diseases.\n"
        + RECOMMENDATION_DETAILS + LANGUAGE_RULE
    ),
    output_schema=CropRecommendationOutput,
)

# Tools cannot be combined with output_schema, so this agent is told to reply with raw JSON.
autonomous_crop_agent = LlmAgent(
    model=MODEL_NAME,
    name="AutonomousCropRecommendationAgent",
    description="Ranks crops with a weighted scoring system and live mandi prices.",
    instruction=(
        "You are an expert agricultural advisor for Indian farmers acting as an autonomous agent. The farmer has not chosen a crop. "
        "Rank crop candidates with this weighted scoring system: location fit 25%, soil compatibility 15%, irrigation match 15% "
        "(never water-intensive crops like sugarcane for rain-fed farms), seasonal timing with the intended planting month 15%, "
        "rotation benefit after the last crop 10%, market profitability 10% and past performance from KVK trials and district yield data 10%. "
        "Infer the state and district from the farm location and call the mandi_prices_tool to assess local demand and prices. "
        "Return the top 4 recommendations. Mark the crop with the highest composite score with isBestFit true and every other one with isBestFit false. "
        "The reason must reference how the crop scores against the weighted criteria.\n"
        + RECOMMENDATION_DETAILS +
        "Reply with a single JSON object only, with no other text. " + LANGUAGE_RULE
    ),
    tools=[FunctionTool(mandi_prices_tool)],
)

year_long_planner_agent = structured_agent(
    name="YearLongPlannerAgent",
    description="Builds a Kharif/Rabi/Zaid crop rotation plan.",
    instruction=(
        "You are an expert Indian agronomist with deep knowledge of crop cycles, regional climates and market economics. "
        "Create a strategic year-long crop rotation plan split into the kharif (June-Oct), rabi (Nov-Mar) and zaid (Apr-June) seasons. "
        "Work out which season the start month falls into and begin there. For each season give 2-3 DIVERSE recommendations, including pulses, millets, "
        "oilseeds or cash crops that are sound for the region, soil and irrigation. Fit the farmer's preferred crops into suitable seasons when viable, "
        "and when one is not suitable explain why in the reason of a better recommendation. Never recommend water-intensive crops when only rain-fed irrigation is available. "
        "For each season mark exactly ONE crop with isBestFit true, choosing the best combination of profitability, suitability and market demand; all others are false. "
        "For every crop give cropName, a popular high-yielding variety, duration, a reason that explicitly mentions the soil type and irrigation, "
        "estimatedCosts per land area unit, estimatedYield in kg per land area unit and estimatedSellingPrice in Rupees per kg. "
        + LANGUAGE_RULE
    ),
    output_schema=YearLongPlannerOutput,
)

year_long_variety_plan_agent = structured_agent(
    name="YearLongVarietyPlanAgent",
    description="Builds a month-by-month plan for each crop in a chosen crop cycle.",
    instruction=(
        "You are an expert Indian agronomist. The farmer has chosen a crop (and variety) for one or more seasons. "
        "Return one seasonal plan per chosen crop, in the same order, repeating its season, cropName and variety. "
        "Each plan has a monthlyTimeline of key activities from land preparation to harvest and a fertilizerPlan with inorganic and organic "
        "application items (stage, fertilizer name, quantity per acre, application method) suited to the farm's soil and irrigation. "
        + LANGUAGE_RULE
    ),
    output_schema=YearLongVarietyPlanOutput,
)


def _render_crop_message(payload: CropRecommendationInput) -> str:
    return f"Farm Data:\n{render_farm(payload.farm)}\n{language_line(payload.language)}"


def _render_variety_message(payload: VarietyRecommendationInput) -> str:
    return (
        f"User's Chosen Crop: {payload.cropName}\n"
        f"Farm Data:\n{render_farm(payload.farm)}\n{language_line(payload.language)}"
    )


def _render_year_long_message(payload: YearLongPlannerInput) -> str:
    preferred = ", ".join(payload.preferredCrops) if payload.preferredCrops else "None"
    return (
        "Farmer's Input:\n"
        f"- Location: {payload.location}\n"
        f"- Start Month: {payload.startMonth}\n"
        f"- Land Area: {payload.landArea} {payload.landAreaUnit}\n"
        f"- Soil Type: {payload.soilType}\n"
        f"- Irrigation Systems: {', '.join(payload.irrigation) or 'Rain-fed'}\n"
        f"- Preferred Crops: {preferred}\n"
        f"{language_line(payload.language)}"
    )


def _render_variety_plan_message(payload: YearLongVarietyPlanInput) -> str:
    farm = payload.farm
    cycle = "\n".join(f"- {c.season}: {c.cropName} ({c.variety})" for c in payload.cropCycle)
    return (
        "Farm Data:\n"
        f"- Location: {farm.location}\n"
        f"- Land Area: {farm.landArea} {farm.landAreaUnit}\n"
        f"- Soil Type: {farm.soilType}\n"
        f"- Irrigation: {', '.join(farm.irrigation) or 'Rain-fed'}\n"
        f"Chosen Crop Cycle:\n{cycle}\n"
        f"{language_line(payload.language)}"
    )


async def get_crop_recommendations(payload: CropRecommendationInput) -> CropRecommendationOutput:
    return await run_structured_agent(crop_recommendation_agent, _render_crop_message(payload), CropRecommendationOutput)


async def get_variety_recommendations(payload: VarietyRecommendationInput) -> CropRecommendationOutput:
    return await run_structured_agent(variety_recommendation_agent, _render_variety_message(payload), CropRecommendationOutput)


async def get_autonomous_crop_recommendations(payload: CropRecommendationInput) -> CropRecommendationOutput:
    message = (
        f"{_render_crop_message(payload)}\n"
        f"The reply must be JSON matching this schema:\n{schema_hint(CropRecommendationOutput)}"
    )
    logger.info("Running flow agent %s", autonomous_crop_agent.name)
    text = await run_agent_and_get_text(autonomous_crop_agent, build_content(message))
    result = parse_json_reply(text, CropRecommendationOutput)
    result.recommendations = ensure_single_best_fit(result.recommendations)
    return result


async def get_year_long_plan(payload: YearLongPlannerInput) -> YearLongPlannerOutput:
    result = await run_structured_agent(year_long_planner_agent, _render_year_long_message(payload), YearLongPlannerOutput)
    result.kharif = ensure_single_best_fit(result.kharif)
    result.rabi = ensure_single_best_fit(result.rabi)
    result.zaid = ensure_single_best_fit(result.zaid)
    return result


async def get_year_long_variety_plan(payload: YearLongVarietyPlanInput) -> YearLongVarietyPlanOutput:
    result = await run_structured_agent(
        year_long_variety_plan_agent, _render_variety_plan_message(payload), YearLongVarietyPlanOutput
    )
    if len(result.seasonalPlans) != len(payload.cropCycle):
        raise FlowError(
            f"Expected {len(payload.cropCycle)} seasonal plans, the model returned {len(result.seasonalPlans)}."
        )
    for choice, plan in zip(payload.cropCycle, result.seasonalPlans):
        if plan.cropName.strip().casefold() != choice.cropName.strip().casefold():
            raise FlowError(f"Seasonal plan for '{plan.cropName}' does not match the chosen crop '{choice.cropName}'.")
    return result
