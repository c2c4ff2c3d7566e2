"""Tests for the advisory flows with the model runner patched out."""
import asyncio
import base64
import json
from unittest.mock import AsyncMock, patch

import pytest

from agent import parse_data_uri, parse_json_reply
from basemodel_dto.assistant_dto import AgriBotInput, ChatMessage, NavigationInput, VoiceInputForFarmDetailsInput
from basemodel_dto.diagnosis_dto import DiagnosisInput, FindSuppliersInput, Supplier
from basemodel_dto.farm_dto import FarmDetails, Profile, YearLongFarmDetails
from basemodel_dto.market_dto import MandiPrice, MarketData, NewsItem
from basemodel_dto.recommendation_dto import (CropCycleChoice, CropRecommendationInput, CropRecommendationOutput,
                                              FertilizerRecommendationInput, PestDiseaseForecastInput,
                                              SoilHealthCard, VarietyRecommendationInput, WaterManagementInput,
                                              YearLongPlannerInput, YearLongVarietyPlanInput)
from basemodel_dto.scheme_dto import PopulateSchemeDetailsInput, SchemeFinderInput
from basemodel_dto.weather_responsedto import DailyForecast
from errors import FlowError, NotFoundError
from flows import assistant, crop_advisor, cultivation_advisor, diagnosis, market_advisor, schemes

FARM = FarmDetails(size=2, sizeUnit="acres", location="Nashik, Maharashtra", soilType="Black",
                   irrigation="Borewell", lastCrop="Soybean", mainCrop="Tomato")

WEATHER = [DailyForecast(day="Today", temp=30, condition="Clear sky", rain_probability=5, humidity=60)]
NEWS = [NewsItem(title="Onion exports rise", summary="Demand is up.", link="https://news/1")]


def _recommendation(name, best=None):
    return {
        "cropName": name, "isBestFit": best, "description": "d", "reason": "r", "sowingMonth": "June",
        "estimatedDuration": "100 days", "marketSuitability": "good",
        "cropOverview": {"bestSeason": "Kharif", "harvestDuration": "90-100 days", "recommendedLandType": "loam",
                         "seedRate": "8 kg/acre", "irrigationNeeds": "moderate", "estimatedWaterUsage": "500 mm",
                         "seedTreatment": "Thiram"},
        "sowingWindows": [{"dateRange": f"June {i}", "riskLevel": "Low", "isPmfbyEligible": True,
                           "description": "ok"} for i in range(3)],
        "pmfbyReminder": "Check PMFBY dates",
        "plan": {"landPreparation": ["plough"], "seedSelection": ["certified"], "irrigationSchedule": "weekly",
                 "sprayingSchedule": "neem", "timeline": [{"week": "Week 1", "activity": "Sowing"}]},
        "estimatedCosts": {"seed": 1, "fertilizer": 2, "pesticide": 3, "labor": 4, "irrigation": 5},
        "estimatedYield": 1000, "estimatedSellingPrice": 20,
    }


def _cycle(name, best=None):
    return {"cropName": name, "duration": "4 months", "reason": "fits", "isBestFit": best}


def _run(coro):
    return asyncio.run(coro)


# --- Runtime helpers ---

def test_parse_json_reply_accepts_code_fence():
    text = "```json\n" + json.dumps({"recommendations": []}) + "\n```"
    assert parse_json_reply(text, CropRecommendationOutput).recommendations == []


def test_parse_json_reply_rejects_wrong_shape():
    with pytest.raises(FlowError):
        parse_json_reply('{"something": "else"}', CropRecommendationOutput)


def test_parse_data_uri():
    uri = "data:image/png;base64," + base64.b64encode(b"leaf").decode()
    assert parse_data_uri(uri) == ("image/png", b"leaf")
    with pytest.raises(ValueError):
        parse_data_uri("not-a-data-uri")


def test_recommendation_needs_three_sowing_windows():
    bad = _recommendation("Onion")
    bad["sowingWindows"] = bad["sowingWindows"][:2]
    with pytest.raises(FlowError):
        parse_json_reply(json.dumps({"recommendations": [bad]}), CropRecommendationOutput)


# --- Crop advice ---

@patch("agent.run_agent_and_get_text", new_callable=AsyncMock)
def test_crop_recommendations(mock_run):
    mock_run.return_value = json.dumps({"recommendations": [_recommendation(n) for n in "ABCD"]})

    result = _run(crop_advisor.get_crop_recommendations(CropRecommendationInput(farm=FARM, language="hi")))

    assert [r.cropName for r in result.recommendations] == ["A", "B", "C", "D"]
    message = mock_run.call_args[0][1].parts[0].text
    assert "Nashik, Maharashtra" in message and "Soybean" in message and "hi" in message


@patch("flows.crop_advisor.run_agent_and_get_text", new_callable=AsyncMock)
def test_autonomous_recommendations_have_exactly_one_best_fit(mock_run):
    mock_run.return_value = json.dumps({"recommendations": [
        _recommendation("A", False), _recommendation("B", True), _recommendation("C", True), _recommendation("D"),
    ]})

    result = _run(crop_advisor.get_autonomous_crop_recommendations(CropRecommendationInput(farm=FARM)))

    assert [r.isBestFit for r in result.recommendations] == [False, True, False, False]


@patch("flows.crop_advisor.run_agent_and_get_text", new_callable=AsyncMock)
def test_autonomous_recommendations_flag_first_when_none_flagged(mock_run):
    mock_run.return_value = json.dumps({"recommendations": [_recommendation("A"), _recommendation("B")]})

    result = _run(crop_advisor.get_autonomous_crop_recommendations(CropRecommendationInput(farm=FARM)))

    assert [r.isBestFit for r in result.recommendations] == [True, False]


@patch("agent.run_agent_and_get_text", new_callable=AsyncMock)
def test_year_long_plan_one_best_fit_per_season(mock_run):
    mock_run.return_value = json.dumps({
        "kharif": [_cycle("Soybean", True), _cycle("Cotton", True)],
        "rabi": [_cycle("Wheat"), _cycle("Gram")],
        "zaid": [],
    })
    payload = YearLongPlannerInput(location="Nashik", startMonth="June", landArea=2, landAreaUnit="acres",
                                   soilType="Black", irrigation=["Borewell"], preferredCrops=["Onion"])

    result = _run(crop_advisor.get_year_long_plan(payload))

    assert [c.isBestFit for c in result.kharif] == [True, False]
    assert [c.isBestFit for c in result.rabi] == [True, False]
    assert result.zaid == []
    assert "Onion" in mock_run.call_args[0][1].parts[0].text


@patch("agent.run_agent_and_get_text", new_callable=AsyncMock)
def test_flow_error_propagates(mock_run):
    mock_run.return_value = "I cannot help with that."
    with pytest.raises(FlowError):
        _run(crop_advisor.get_crop_recommendations(CropRecommendationInput(farm=FARM)))


@patch("agent.run_agent_and_get_text", new_callable=AsyncMock)
def test_variety_recommendations(mock_run):
    mock_run.return_value = json.dumps({"recommendations": [_recommendation("Pusa Ruby Tomato")]})

    result = _run(crop_advisor.get_variety_recommendations(
        VarietyRecommendationInput(farm=FARM, cropName="Tomato", language="mr")))

    assert result.recommendations[0].cropName == "Pusa Ruby Tomato"
    message = mock_run.call_args[0][1].parts[0].text
    assert "User's Chosen Crop: Tomato" in message
    assert "- Soil Type: Black" in message and "- Irrigation: Borewell" in message
    assert "Respond in this language: mr" in message


@patch("agent.run_agent_and_get_text", new_callable=AsyncMock)
def test_variety_recommendations_reject_bad_reply(mock_run):
    mock_run.return_value = json.dumps({"recommendations": [{"cropName": "Pusa Ruby Tomato"}]})
    with pytest.raises(FlowError):
        _run(crop_advisor.get_variety_recommendations(VarietyRecommendationInput(farm=FARM, cropName="Tomato")))


def _seasonal_plan(season, crop, variety):
    item = {"applicationStage": "Basal", "fertilizerName": "DAP", "quantity": "50 kg", "applicationMethod": "Broadcast"}
    return {"season": season, "cropName": crop, "variety": variety,
            "monthlyTimeline": [{"month": "June", "activity": "Sowing"}],
            "fertilizerPlan": {"inorganic": [item], "organic": [{**item, "fertilizerName": "FYM"}]}}


VARIETY_PLAN_INPUT = YearLongVarietyPlanInput(
    farm=YearLongFarmDetails(location="Nashik", landArea=3.5, landAreaUnit="acres", soilType="Black",
                             irrigation=["Borewell", "Drip"]),
    cropCycle=[CropCycleChoice(season="Kharif", cropName="Soybean", variety="JS 335"),
               CropCycleChoice(season="Rabi", cropName="Wheat", variety="HD 2967")],
    language="hi",
)


@patch("agent.run_agent_and_get_text", new_callable=AsyncMock)
def test_year_long_variety_plan(mock_run):
    mock_run.return_value = json.dumps({"seasonalPlans": [
        _seasonal_plan("Kharif", "Soybean", "JS 335"), _seasonal_plan("Rabi", "wheat", "HD 2967"),
    ]})

    result = _run(crop_advisor.get_year_long_variety_plan(VARIETY_PLAN_INPUT))

    assert [p.cropName for p in result.seasonalPlans] == ["Soybean", "wheat"]
    assert result.seasonalPlans[0].fertilizerPlan.organic[0].fertilizerName == "FYM"
    message = mock_run.call_args[0][1].parts[0].text
    assert "- Kharif: Soybean (JS 335)" in message and "- Rabi: Wheat (HD 2967)" in message
    assert "- Irrigation: Borewell, Drip" in message and "- Land Area: 3.5 acres" in message
    assert "Respond in this language: hi" in message


@patch("agent.run_agent_and_get_text", new_callable=AsyncMock)
def test_year_long_variety_plan_needs_one_plan_per_crop(mock_run):
    mock_run.return_value = json.dumps({"seasonalPlans": [_seasonal_plan("Kharif", "Soybean", "JS 335")]})
    with pytest.raises(FlowError):
        _run(crop_advisor.get_year_long_variety_plan(VARIETY_PLAN_INPUT))


@patch("agent.run_agent_and_get_text", new_callable=AsyncMock)
def test_year_long_variety_plan_keeps_crop_order(mock_run):
    mock_run.return_value = json.dumps({"seasonalPlans": [
        _seasonal_plan("Rabi", "Wheat", "HD 2967"), _seasonal_plan("Kharif", "Soybean", "JS 335"),
    ]})
    with pytest.raises(FlowError):
        _run(crop_advisor.get_year_long_variety_plan(VARIETY_PLAN_INPUT))


# --- Fertilizer and water ---

@patch("agent.run_agent_and_get_text", new_callable=AsyncMock)
def test_fertilizer_recommendations(mock_run):
    item = {"applicationStage": "Basal", "fertilizerName": "Urea", "quantity": "40 kg", "applicationMethod": "Band"}
    mock_run.return_value = json.dumps({
        "npkRecommendation": {"n": 48, "p": 24, "k": 16},
        "fertilizerPlan": {"inorganic": [item], "organic": []},
        "recommendedBrands": ["IFFCO"], "subsidyInfo": "Neem coated urea is subsidised.", "notes": "Split doses.",
    })
    card = SoilHealthCard(ph=7.8, organic_carbon=0.42, nitrogen=210.0, phosphorus=11.5, potassium=320.0)

    result = _run(cultivation_advisor.get_fertilizer_recommendations(
        FertilizerRecommendationInput(soilHealthCard=card, cropName="Wheat", location="Nashik", language="hi")))

    assert result.npkRecommendation.n == 48
    assert result.fertilizerPlan.inorganic[0].fertilizerName == "Urea"
    message = mock_run.call_args[0][1].parts[0].text
    assert "Crop: Wheat" in message and "Location: Nashik" in message
    assert "- pH: 7.8" in message and "- Organic Carbon (%): 0.42" in message
    assert "- Available Nitrogen (N) (kg/ha): 210.0" in message
    assert "- Available Phosphorus (P) (kg/ha): 11.5" in message
    assert "- Available Potassium (K) (kg/ha): 320.0" in message
    assert "Respond in this language: hi" in message


@patch("agent.run_agent_and_get_text", new_callable=AsyncMock)
def test_fertilizer_recommendations_reject_bad_reply(mock_run):
    mock_run.return_value = json.dumps({"npkRecommendation": {"n": "lots"}})
    card = SoilHealthCard(ph=7, organic_carbon=0.5, nitrogen=200, phosphorus=10, potassium=300)
    with pytest.raises(FlowError):
        _run(cultivation_advisor.get_fertilizer_recommendations(
            FertilizerRecommendationInput(soilHealthCard=card, cropName="Wheat", location="Nashik")))


@patch("agent.run_agent_and_get_text", new_callable=AsyncMock)
def test_water_management_plan(mock_run):
    mock_run.return_value = json.dumps({"waterPlan": [{
        "source": "Borewell Source", "advice": "Irrigate early morning.",
        "schedule": [{"growthStage": "Flowering", "frequency": "Every 5 days", "duration": "3-4 inches"}],
    }]})

    result = _run(cultivation_advisor.get_water_management_plan(
        WaterManagementInput(farm=FARM, cropName="Tomato", language="ta")))

    assert result.waterPlan[0].schedule[0].growthStage == "Flowering"
    message = mock_run.call_args[0][1].parts[0].text
    assert "Crop: Tomato" in message and "- Irrigation: Borewell" in message
    assert "- Soil Type: Black" in message and "Respond in this language: ta" in message


@patch("agent.run_agent_and_get_text", new_callable=AsyncMock)
def test_water_management_plan_rejects_bad_reply(mock_run):
    mock_run.return_value = json.dumps({"waterPlan": [{"source": "Borewell Source"}]})
    with pytest.raises(FlowError):
        _run(cultivation_advisor.get_water_management_plan(WaterManagementInput(farm=FARM, cropName="Tomato")))


# --- Pest forecast ---

@patch("agent.run_agent_and_get_text", new_callable=AsyncMock)
@patch("flows.cultivation_advisor.get_news")
@patch("flows.cultivation_advisor.get_weather_forecast")
def test_pest_forecast_uses_weather_and_news(mock_weather, mock_news, mock_run):
    mock_weather.return_value = WEATHER
    mock_news.return_value = NEWS
    threat = {"name": "Fruit borer", "type": "Pest", "symptoms": "holes",
              "preventativeMeasures": {"organic": ["neem"], "chemical": ["spinosad"]}}
    mock_run.return_value = json.dumps({"threats": [threat, {**threat, "imageUrl": "https://img/x.png"}]})

    result = _run(cultivation_advisor.get_pest_disease_forecast(
        PestDiseaseForecastInput(farm=FARM, cropName="Tomato")))

    assert result.threats[0].imageUrl == "https://placehold.co/600x400.png"
    assert result.threats[1].imageUrl == "https://img/x.png"
    message = mock_run.call_args[0][1].parts[0].text
    assert "Clear sky" in message and "Onion exports rise" in message


# --- Diagnosis ---

@patch("flows.diagnosis.find_nearby_agri_shops")
@patch("agent.run_agent_and_get_text", new_callable=AsyncMock)
def test_diagnosis_attaches_vendors_from_places(mock_run, mock_shops):
    mock_shops.return_value = [Supplier(name="Shree Krishi Kendra", address="MG Road")]
    treatment = {"organic": [], "inorganic": [], "schedule": []}
    mock_run.return_value = json.dumps({"diagnosis": [
        {"diseaseName": "Early Blight", "confidence": 80, "description": "d", "symptoms": ["spots"],
         "treatment": treatment},
    ]})
    photo = "data:image/jpeg;base64," + base64.b64encode(b"jpeg-bytes").decode()

    result = _run(diagnosis.diagnose_plant_disease(DiagnosisInput(farm=FARM, photoDataUri=photo)))

    assert result.diagnosis[0].vendorRecommendations[0].name == "Shree Krishi Kendra"
    content = mock_run.call_args[0][1]
    assert content.parts[1].inline_data.mime_type == "image/jpeg"
    assert content.parts[1].inline_data.data == b"jpeg-bytes"
    mock_shops.assert_called_once_with("Nashik, Maharashtra")


def test_diagnosis_needs_evidence():
    with pytest.raises(ValueError):
        _run(diagnosis.diagnose_plant_disease(DiagnosisInput(farm=FARM)))


@patch("flows.diagnosis.find_nearby_agri_shops")
def test_find_suppliers(mock_shops):
    mock_shops.return_value = [Supplier(name="A", address="B")]
    assert _run(diagnosis.find_suppliers(FindSuppliersInput(location="Nashik"))).suppliers[0].name == "A"


# --- Sell advice ---

def _market(harvest="Harvested", location="Nashik, Maharashtra"):
    return MarketData(profile=Profile(name="Asha", location=location, language="mr"), crop="Onion",
                      quantity=20, unit="quintal", harvestStatus=harvest, storageDaysLeft=10)


def _patch_market_data(prices):
    return (
        patch("flows.market_advisor.get_mandi_prices", return_value=prices),
        patch("flows.market_advisor.get_weather_forecast", return_value=WEATHER),
        patch("flows.market_advisor.get_news", return_value=NEWS),
    )


@patch("agent.run_agent_and_get_text", new_callable=AsyncMock)
def test_sell_advice_picks_best_mandi(mock_run):
    prices = [MandiPrice(market="Pimpalgaon", price=2100), MandiPrice(market="Lasalgaon", price=2400)]
    mock_run.return_value = json.dumps({"recommendation": "sell", "reasoning": "good", "predictedPrice": "Rs 2300"})
    p1, p2, p3 = _patch_market_data(prices)

    with p1 as mock_prices, p2, p3:
        advice = _run(market_advisor.get_sell_advice(_market()))

    mock_prices.assert_called_once_with("Maharashtra", "Nashik", "Onion")
    assert advice.bestMandi.name == "Lasalgaon" and advice.bestMandi.price == 2400
    assert advice.mandiPrices == prices
    assert advice.weather == WEATHER and advice.news == NEWS


@patch("agent.run_agent_and_get_text", new_callable=AsyncMock)
def test_unharvested_crop_always_waits(mock_run):
    mock_run.return_value = json.dumps({"recommendation": "sell", "reasoning": "r", "predictedPrice": "p"})
    p1, p2, p3 = _patch_market_data([MandiPrice(market="Lasalgaon", price=2400)])

    with p1, p2, p3:
        advice = _run(market_advisor.get_sell_advice(_market(harvest="Not Harvested")))

    assert advice.recommendation == "wait"
    assert advice.bestMandi is None


@patch("agent.run_agent_and_get_text", new_callable=AsyncMock)
def test_sell_without_prices_has_no_best_mandi(mock_run):
    mock_run.return_value = json.dumps({"recommendation": "sell", "reasoning": "r", "predictedPrice": "p"})
    p1, p2, p3 = _patch_market_data([])

    with p1, p2, p3:
        advice = _run(market_advisor.get_sell_advice(_market()))

    assert advice.bestMandi is None
    assert "No prices available" in mock_run.call_args[0][1].parts[0].text


def test_parse_location_defaults():
    assert market_advisor.parse_location("Nashik, Maharashtra") == ("Nashik", "Maharashtra")
    assert market_advisor.parse_location("Nashik") == ("Nashik", "maharashtra")
    assert market_advisor.parse_location("") == ("pune", "maharashtra")


# --- Schemes ---

@patch("agent.run_agent_and_get_text", new_callable=AsyncMock)
def test_scheme_search_keeps_known_ids_in_order(mock_run):
    mock_run.return_value = json.dumps({"relevantSchemeIds": ["pmfby", "made-up", "pm-kisan", "pmfby"]})

    result = _run(schemes.find_relevant_schemes(SchemeFinderInput(query="crop insurance", language="hi")))

    assert result.relevantSchemeIds == ["pmfby", "pm-kisan"]


@patch("agent.run_agent_and_get_text", new_callable=AsyncMock)
def test_populate_scheme_details(mock_run):
    mock_run.return_value = json.dumps({
        "title": "PM-KISAN", "description": "Income support.", "benefits": "Rs 6000 a year",
        "eligibility": "Landholding farmers", "howToApply": "Online", "requiredDocuments": "Aadhaar, Land records",
    })

    scheme = _run(schemes.populate_scheme_details(PopulateSchemeDetailsInput(schemeId="pm-kisan")))

    assert scheme.id == "pm-kisan" and scheme.title == "PM-KISAN"
    assert scheme.category == "Central"


def test_populate_unknown_scheme():
    with pytest.raises(NotFoundError):
        _run(schemes.populate_scheme_details(PopulateSchemeDetailsInput(schemeId="nope")))


# --- Assistant ---

@patch("flows.assistant.run_agent_and_get_text", new_callable=AsyncMock)
def test_agri_bot_includes_history(mock_run):
    mock_run.return_value = "  Sow after the first good rain.  "
    payload = AgriBotInput(query="When to sow?", language="mr",
                           chatHistory=[ChatMessage(role="user", content="I grow soybean")])

    result = _run(assistant.ask_agri_bot(payload))

    assert result.response == "Sow after the first good rain."
    message = mock_run.call_args[0][1].parts[0].text
    assert "I grow soybean" in message and "When to sow?" in message


@patch("agent.run_agent_and_get_text", new_callable=AsyncMock)
def test_voice_input_absent_value(mock_run):
    mock_run.return_value = json.dumps({"processedValue": ""})
    payload = VoiceInputForFarmDetailsInput(voiceInput="hello there", fieldToPopulate="farm size")
    assert _run(assistant.process_voice_input(payload)).processedValue == ""


@patch("agent.run_agent_and_get_text", new_callable=AsyncMock)
def test_navigation_known_route(mock_run):
    mock_run.return_value = json.dumps({"navigationPath": "/market-insights"})
    result = _run(assistant.analyze_voice_input_and_route(NavigationInput(voiceInput="बाजार भाव दिखाओ", language="hi")))
    assert result.navigationPath == "/market-insights"


@patch("agent.run_agent_and_get_text", new_callable=AsyncMock)
def test_navigation_unknown_route_defaults(mock_run):
    mock_run.return_value = json.dumps({"navigationPath": "/admin"})
    result = _run(assistant.analyze_voice_input_and_route(NavigationInput(voiceInput="open admin")))
    assert result.navigationPath == "/my-farms"


@patch("agent.run_agent_and_get_text", new_callable=AsyncMock)
def test_navigation_error_defaults(mock_run):
    mock_run.side_effect = FlowError("model unavailable")
    result = _run(assistant.analyze_voice_input_and_route(NavigationInput(voiceInput="anything")))
    assert result.navigationPath == "/my-farms"
