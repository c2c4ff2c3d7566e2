# main.py
import asyncio
import logging
from typing import Annotated, List, Optional

from fastapi import Depends, FastAPI, File, Form, Header, HTTPException, Query, Request, UploadFile, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError
from starlette.responses import JSONResponse

import config
import firebase_client
from basemodel_dto.assistant_dto import (AgriBotInput, AgriBotOutput, NavigationInput, NavigationOutput,
                                         VoiceInputForFarmDetailsInput, VoiceInputForFarmDetailsOutput)
from basemodel_dto.community_dto import CommentCreate, CommunityComment, CommunityPost
from basemodel_dto.diagnosis_dto import (DiagnosisInput, DiagnosisOutput, DiagnosisReport, DiagnosisReportCreate,
                                         FindSuppliersInput, FindSuppliersOutput)
from basemodel_dto.farm_dto import Farm, FarmCreate, Profile, ProfileUpdate
from basemodel_dto.market_dto import (AlertStatus, MarketAlert, MarketAlertCreate, MarketData, PriceCheckOutput,
                                      SellAdvice)
from basemodel_dto.recommendation_dto import (CropPlan, CropPlanCreate, CropRecommendationInput,
                                              CropRecommendationOutput, FertilizerRecommendationInput,
                                              FertilizerRecommendationOutput, PestDiseaseForecastInput,
                                              PestDiseaseForecastOutput, VarietyRecommendationInput,
                                              WaterManagementInput, WaterManagementOutput, YearLongPlannerInput,
                                              YearLongPlannerOutput, YearLongVarietyPlanInput,
                                              YearLongVarietyPlanOutput)
from basemodel_dto.scheme_dto import (PopulatedScheme, PopulateSchemeDetailsInput, Scheme, SchemeFinderInput,
                                      SchemeFinderOutput)
from errors import FlowError, ForbiddenError, InvalidTransitionError, KrishakMitraError, NotFoundError
from flows import assistant, crop_advisor, cultivation_advisor, diagnosis, market_advisor, price_alerts, schemes
from store import alerts, community, crop_plans, diagnosis_reports, farms, profiles
from tools.scheme_catalog import list_schemes

# --- Configure Logging ---
logging.basicConfig(level=config.LOG_LEVEL, format='%(asctime)s - %(levelname)s - %(name)s - %(message)s')
logger = logging.getLogger(__name__)

# --- FastAPI Application Setup ---
app = FastAPI(title=config.APP_NAME)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ERROR_STATUS_CODES = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    InvalidTransitionError: status.HTTP_409_CONFLICT,
    FlowError: status.HTTP_502_BAD_GATEWAY,
}


@app.exception_handler(KrishakMitraError)
async def app_error_handler(request: Request, exc: KrishakMitraError):
    status_code = ERROR_STATUS_CODES.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    logger.warning("%s %s failed with %s: %s", request.method, request.url.path, type(exc).__name__, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    if isinstance(exc, ValidationError):
        # Raised when a stored document no longer fits its model
        logger.error("%s %s failed on invalid stored data: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                            content={"detail": "Internal Server Error"})
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


# --- Dependencies to validate the Firebase ID token ---
async def get_token_claims(
        authorization: Annotated[str | None, Header(description="Bearer token from Firebase Authentication")] = None
) -> dict:
    """
    FastAPI dependency that validates a Firebase ID token and returns its decoded claims.
    Every route except /api/ping requires it.
    """
    try:
        if not authorization:
            raise ValueError("Authorization header is missing")
        scheme, token = authorization.split(" ")
        if scheme.lower() != "bearer":
            raise ValueError("Invalid authentication scheme")

        claims = await asyncio.to_thread(firebase_client.verify_id_token, token)
        logger.debug("Token verified. Authenticated user ID: %s", claims["uid"])
        return claims
    except Exception as e:
        logger.warning("Failed to verify Firebase ID token: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid or missing authentication token: {str(e)}"
        )


async def get_user_id_from_token(claims: Annotated[dict, Depends(get_token_claims)]) -> str:
    return claims["uid"]


async def get_verified_phone(claims: Annotated[dict, Depends(get_token_claims)]) -> Optional[str]:
    """The phone number the user signed in with, if any."""
    return claims.get("phone_number")


UserId = Annotated[str, Depends(get_user_id_from_token)]
VerifiedPhone = Annotated[Optional[str], Depends(get_verified_phone)]


async def _upload(user_id: str, image: UploadFile) -> str:
    image_bytes = await image.read()
    return await asyncio.to_thread(
        firebase_client.upload_image, user_id, image_bytes, image.filename, image.content_type
    )


# --- Profile ---
@app.get("/api/profile", response_model=Profile)
async def get_profile(current_user_id: UserId):
    return await asyncio.to_thread(profiles.get_or_create_profile, current_user_id)


@app.put("/api/profile", response_model=Profile)
async def update_profile(changes: ProfileUpdate, current_user_id: UserId):
    return await asyncio.to_thread(profiles.update_profile, current_user_id, changes)


# --- Farms ---
@app.post("/api/farms", response_model=Farm, status_code=status.HTTP_201_CREATED)
async def create_farm(farm: FarmCreate, current_user_id: UserId):
    return await asyncio.to_thread(farms.create_farm, current_user_id, farm)


@app.get("/api/farms", response_model=List[Farm])
async def list_farms(current_user_id: UserId):
    return await asyncio.to_thread(farms.list_farms, current_user_id)


@app.get("/api/farms/{farm_id}", response_model=Farm)
async def get_farm(farm_id: str, current_user_id: UserId):
    return await asyncio.to_thread(farms.get_farm, current_user_id, farm_id)


@app.put("/api/farms/{farm_id}", response_model=Farm)
async def update_farm(farm_id: str, farm: FarmCreate, current_user_id: UserId):
    return await asyncio.to_thread(farms.update_farm, current_user_id, farm_id, farm)


@app.delete("/api/farms/{farm_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_farm(farm_id: str, current_user_id: UserId):
    await asyncio.to_thread(farms.delete_farm, current_user_id, farm_id)


# --- Crop plans ---
@app.post("/api/crop-plans", response_model=CropPlan, status_code=status.HTTP_201_CREATED)
async def create_crop_plan(plan: CropPlanCreate, current_user_id: UserId):
    return await asyncio.to_thread(crop_plans.create_crop_plan, current_user_id, plan)


@app.get("/api/crop-plans", response_model=List[CropPlan])
async def list_crop_plans(current_user_id: UserId):
    return await asyncio.to_thread(crop_plans.list_crop_plans, current_user_id)


@app.get("/api/crop-plans/{plan_id}", response_model=CropPlan)
async def get_crop_plan(plan_id: str, current_user_id: UserId):
    return await asyncio.to_thread(crop_plans.get_crop_plan, current_user_id, plan_id)


@app.delete("/api/crop-plans/{plan_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_crop_plan(plan_id: str, current_user_id: UserId):
    await asyncio.to_thread(crop_plans.delete_crop_plan, current_user_id, plan_id)


# --- Community ---
@app.post("/api/community/posts", response_model=CommunityPost, status_code=status.HTTP_201_CREATED)
async def create_post(
        current_user_id: UserId,
        content: Annotated[str, Form()] = "",
        image: Annotated[UploadFile | None, File()] = None,
):
    image_url = await _upload(current_user_id, image) if image else None
    return await asyncio.to_thread(community.create_post, current_user_id, content, image_url)


@app.get("/api/community/posts", response_model=List[CommunityPost])
async def list_posts(current_user_id: UserId, limit: int = Query(50, ge=1, le=200)):
    return await asyncio.to_thread(community.list_posts, limit)


@app.get("/api/community/posts/{post_id}", response_model=CommunityPost)
async def get_post(post_id: str, current_user_id: UserId):
    return await asyncio.to_thread(community.get_post, post_id)


@app.delete("/api/community/posts/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(post_id: str, current_user_id: UserId):
    await asyncio.to_thread(community.delete_post, current_user_id, post_id)


@app.post("/api/community/posts/{post_id}/like", response_model=CommunityPost)
async def toggle_like(post_id: str, current_user_id: UserId):
    return await asyncio.to_thread(community.toggle_like, current_user_id, post_id)


@app.post("/api/community/posts/{post_id}/comments", response_model=CommunityComment,
          status_code=status.HTTP_201_CREATED)
async def add_comment(post_id: str, comment: CommentCreate, current_user_id: UserId):
    return await asyncio.to_thread(community.add_comment, current_user_id, post_id, comment)


@app.get("/api/community/posts/{post_id}/comments", response_model=List[CommunityComment])
async def list_comments(post_id: str, current_user_id: UserId):
    return await asyncio.to_thread(community.list_comments, post_id)


# --- Market alerts ---
@app.post("/api/alerts", response_model=MarketAlert, status_code=status.HTTP_201_CREATED)
async def create_alert(alert: MarketAlertCreate, current_user_id: UserId):
    return await asyncio.to_thread(alerts.create_alert, current_user_id, alert)


@app.get("/api/alerts", response_model=List[MarketAlert])
async def list_alerts(current_user_id: UserId, alert_status: Annotated[Optional[AlertStatus], Query(alias="status")] = None):
    return await asyncio.to_thread(alerts.list_alerts, current_user_id, alert_status)


@app.post("/api/alerts/check", response_model=PriceCheckOutput)
async def check_alerts(current_user_id: UserId, verified_phone: VerifiedPhone):
    return await price_alerts.check_price_alerts(current_user_id, verified_phone)


@app.post("/api/alerts/{alert_id}/cancel", response_model=MarketAlert)
async def cancel_alert(alert_id: str, current_user_id: UserId):
    return await asyncio.to_thread(alerts.cancel_alert, current_user_id, alert_id)


@app.post("/api/alerts/{alert_id}/acknowledge", response_model=MarketAlert)
async def acknowledge_alert(alert_id: str, current_user_id: UserId):
    return await asyncio.to_thread(alerts.acknowledge_alert, current_user_id, alert_id)


@app.delete("/api/alerts/{alert_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_alert(alert_id: str, current_user_id: UserId):
    await asyncio.to_thread(alerts.delete_alert, current_user_id, alert_id)


# --- Diagnosis reports ---
@app.post("/api/diagnosis-reports", response_model=DiagnosisReport, status_code=status.HTTP_201_CREATED)
async def save_diagnosis_report(report: DiagnosisReportCreate, current_user_id: UserId):
    return await asyncio.to_thread(diagnosis_reports.save_diagnosis_report, current_user_id, report)


@app.get("/api/diagnosis-reports", response_model=List[DiagnosisReport])
async def list_diagnosis_reports(current_user_id: UserId, farm_id: Annotated[Optional[str], Query(alias="farmId")] = None):
    return await asyncio.to_thread(diagnosis_reports.list_diagnosis_reports, current_user_id, farm_id)


@app.post("/api/uploads/image")
async def upload_image(current_user_id: UserId, image: Annotated[UploadFile, File()]):
    """Stores a user image (e.g. a diseased plant photo) and returns its public URL."""
    return {"imageUrl": await _upload(current_user_id, image)}


# --- Advisory flows ---
@app.post("/api/advisor/crop-recommendations", response_model=CropRecommendationOutput)
async def crop_recommendations(payload: CropRecommendationInput, current_user_id: UserId):
    return await crop_advisor.get_crop_recommendations(payload)


@app.post("/api/advisor/autonomous-crop-recommendations", response_model=CropRecommendationOutput)
async def autonomous_crop_recommendations(payload: CropRecommendationInput, current_user_id: UserId):
    return await crop_advisor.get_autonomous_crop_recommendations(payload)


@app.post("/api/advisor/variety-recommendations", response_model=CropRecommendationOutput)
async def variety_recommendations(payload: VarietyRecommendationInput, current_user_id: UserId):
    return await crop_advisor.get_variety_recommendations(payload)


@app.post("/api/advisor/year-long-plan", response_model=YearLongPlannerOutput)
async def year_long_plan(payload: YearLongPlannerInput, current_user_id: UserId):
    return await crop_advisor.get_year_long_plan(payload)


@app.post("/api/advisor/year-long-variety-plan", response_model=YearLongVarietyPlanOutput)
async def year_long_variety_plan(payload: YearLongVarietyPlanInput, current_user_id: UserId):
    return await crop_advisor.get_year_long_variety_plan(payload)


@app.post("/api/advisor/fertilizer", response_model=FertilizerRecommendationOutput)
async def fertilizer_recommendations(payload: FertilizerRecommendationInput, current_user_id: UserId):
    return await cultivation_advisor.get_fertilizer_recommendations(payload)


@app.post("/api/advisor/water-management", response_model=WaterManagementOutput)
async def water_management(payload: WaterManagementInput, current_user_id: UserId):
    return await cultivation_advisor.get_water_management_plan(payload)


@app.post("/api/advisor/pest-forecast", response_model=PestDiseaseForecastOutput)
async def pest_forecast(payload: PestDiseaseForecastInput, current_user_id: UserId):
    return await cultivation_advisor.get_pest_disease_forecast(payload)


@app.post("/api/advisor/diagnosis", response_model=DiagnosisOutput)
async def diagnose(payload: DiagnosisInput, current_user_id: UserId):
    return await diagnosis.diagnose_plant_disease(payload)


@app.post("/api/advisor/sell-advice", response_model=SellAdvice)
async def sell_advice(payload: MarketData, current_user_id: UserId):
    return await market_advisor.get_sell_advice(payload)


@app.post("/api/suppliers", response_model=FindSuppliersOutput)
async def find_suppliers(payload: FindSuppliersInput, current_user_id: UserId):
    return await diagnosis.find_suppliers(payload)


# --- Schemes ---
@app.get("/api/schemes", response_model=List[Scheme])
async def get_schemes(current_user_id: UserId, category: Optional[str] = None, state: Optional[str] = None):
    return await asyncio.to_thread(list_schemes, category, state)


@app.post("/api/schemes/search", response_model=SchemeFinderOutput)
async def search_schemes(payload: SchemeFinderInput, current_user_id: UserId):
    return await schemes.find_relevant_schemes(payload)


@app.post("/api/schemes/details", response_model=PopulatedScheme)
async def scheme_details(payload: PopulateSchemeDetailsInput, current_user_id: UserId):
    return await schemes.populate_scheme_details(payload)


# --- Assistant ---
@app.post("/api/assistant/chat", response_model=AgriBotOutput)
async def chat(payload: AgriBotInput, current_user_id: UserId):
    return await assistant.ask_agri_bot(payload)


@app.post("/api/assistant/voice-field", response_model=VoiceInputForFarmDetailsOutput)
async def voice_field(payload: VoiceInputForFarmDetailsInput, current_user_id: UserId):
    return await assistant.process_voice_input(payload)


@app.post("/api/assistant/navigate", response_model=NavigationOutput)
async def navigate(payload: NavigationInput, current_user_id: UserId):
    return await assistant.analyze_voice_input_and_route(payload)


@app.get("/api/ping")
async def ping():
    """
    Health check endpoint to verify if the API server is running.
    """
    return {"status": "ok", "message": "API is up and running!"}


# --- Uvicorn Entry Point (Cloud Run runs `uvicorn main:app` directly) ---
if __name__ == "__main__":
    import uvicorn

    logger.info("Starting FastAPI app on http://127.0.0.1:%s/", config.PORT)
    uvicorn.run("main:app", host="127.0.0.1", port=config.PORT, reload=True)
