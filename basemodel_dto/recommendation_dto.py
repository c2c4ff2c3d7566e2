from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from basemodel_dto.farm_dto import FarmDetails, YearLongFarmDetails, SizeUnit


class WeekActivity(BaseModel):
    week: str = Field(description="The week number or range, e.g., 'Week 1-2'.")
    activity: str = Field(description="The key activity for that week.")


class CropOverview(BaseModel):
    bestSeason: str = Field(description="The best season to sow the crop, e.g., Kharif, Rabi.")
    harvestDuration: str = Field(description="The typical time from sowing to harvest, e.g., '90-120 days'.")
    recommendedLandType: str = Field(description="The ideal type of land or soil for this crop.")
    seedRate: str = Field(description="The recommended amount of seed per unit area, e.g., '20-25 kg/acre'.")
    irrigationNeeds: str = Field(description="Description of the crop's water requirements.")
    estimatedWaterUsage: str = Field(description="An estimated total water usage, e.g., '~600 mm'.")
    seedTreatment: str = Field(description="Instructions for treating seeds before sowing.")


class SowingWindow(BaseModel):
    dateRange: str = Field(description="A specific date range for sowing, e.g., 'July 15 - July 25'.")
    riskLevel: Literal['Low', 'Medium', 'High']
    isPmfbyEligible: bool = Field(description="Whether this window is typically eligible for PMFBY insurance.")
    description: str


class ActionPlan(BaseModel):
    landPreparation: List[str]
    seedSelection: List[str]
    irrigationSchedule: str
    sprayingSchedule: str
    timeline: List[WeekActivity]


class EstimatedCosts(BaseModel):
    seed: float
    fertilizer: float
    pesticide: float
    labor: float
    irrigation: float


class Recommendation(BaseModel):
    cropName: str = Field(description="The name of the recommended crop or variety.")
    isBestFit: Optional[bool] = Field(None, description="Whether this is the single best recommendation.")
    description: str
    reason: str = Field(description="Why this crop fits the farm's location, soil, irrigation and last crop.")
    sowingMonth: str
    estimatedDuration: str
    marketSuitability: str
    cropOverview: CropOverview
    sowingWindows: List[SowingWindow] = Field(min_length=3, max_length=3, description="Exactly three sowing windows.")
    pmfbyReminder: str
    plan: ActionPlan
    estimatedCosts: EstimatedCosts = Field(description="Estimated input costs per size unit.")
    estimatedYield: float = Field(description="Estimated yield in kg per size unit.")
    estimatedSellingPrice: float = Field(description="Estimated selling price in Rs per kg.")


class CropRecommendationInput(BaseModel):
    farm: FarmDetails
    language: str = "en"


class CropRecommendationOutput(BaseModel):
    recommendations: List[Recommendation]


class VarietyRecommendationInput(BaseModel):
    farm: FarmDetails
    cropName: str
    language: str = "en"


# --- Fertilizer ---

class SoilHealthCard(BaseModel):
    ph: float
    organic_carbon: float = Field(description="Percentage of organic carbon (e.g., 0.5 for 0.5%).")
    nitrogen: float = Field(description="Available Nitrogen (N) in kg/ha.")
    phosphorus: float = Field(description="Available Phosphorus (P) in kg/ha.")
    potassium: float = Field(description="Available Potassium (K) in kg/ha.")


class ApplicationItem(BaseModel):
    applicationStage: str = Field(description="e.g., 'Basal Dose (at Sowing)'.")
    fertilizerName: str
    quantity: str = Field(description="Quantity per ACRE, e.g., '50 kg'.")
    applicationMethod: str


class FertilizerPlan(BaseModel):
    inorganic: List[ApplicationItem]
    organic: List[ApplicationItem]


class NpkRecommendation(BaseModel):
    n: float = Field(description="Nitrogen in kg/acre.")
    p: float = Field(description="Phosphorus in kg/acre.")
    k: float = Field(description="Potassium in kg/acre.")


class FertilizerRecommendationInput(BaseModel):
    soilHealthCard: SoilHealthCard
    cropName: str
    location: str
    language: str = "en"


class FertilizerRecommendationOutput(BaseModel):
    npkRecommendation: NpkRecommendation
    fertilizerPlan: FertilizerPlan
    recommendedBrands: List[str]
    subsidyInfo: str
    notes: str


# --- Water management ---

class IrrigationStage(BaseModel):
    growthStage: str
    frequency: str
    duration: str = Field(description="Required water depth, e.g., 'Apply water until it reaches a depth of 3-4 inches'.")


class SourcePlan(BaseModel):
    source: str = Field(description="Irrigation source, e.g., 'Borewell Source', 'Canal/Rain-fed Source'.")
    advice: str
    schedule: List[IrrigationStage]


class WaterManagementInput(BaseModel):
    farm: FarmDetails
    cropName: str
    language: str = "en"


class WaterManagementOutput(BaseModel):
    waterPlan: List[SourcePlan]


# --- Pest and disease forecast ---

class PreventativeMeasures(BaseModel):
    organic: List[str]
    chemical: List[str]


class Threat(BaseModel):
    name: str
    type: Literal['Pest', 'Disease']
    symptoms: str
    imageUrl: Optional[str] = None
    preventativeMeasures: PreventativeMeasures


class PestDiseaseForecastInput(BaseModel):
    farm: FarmDetails
    cropName: str
    language: str = "en"


class PestDiseaseForecastOutput(BaseModel):
    threats: List[Threat]


# --- Year-long planning ---

class CropCycleRecommendation(BaseModel):
    cropName: str
    variety: Optional[str] = None
    duration: str
    reason: str
    isBestFit: Optional[bool] = None
    estimatedCosts: Optional[EstimatedCosts] = None
    estimatedYield: Optional[float] = None
    estimatedSellingPrice: Optional[float] = None


class YearLongPlannerInput(BaseModel):
    location: str
    startMonth: str
    landArea: float = Field(gt=0)
    landAreaUnit: SizeUnit
    soilType: str
    irrigation: List[str]
    preferredCrops: Optional[List[str]] = None
    language: str = "en"


class YearLongPlannerOutput(BaseModel):
    kharif: List[CropCycleRecommendation] = Field(description="Kharif season (June-Oct) recommendations.")
    rabi: List[CropCycleRecommendation] = Field(description="Rabi season (Nov-Mar) recommendations.")
    zaid: List[CropCycleRecommendation] = Field(description="Zaid season (Apr-June) recommendations.")


class CropCycleChoice(BaseModel):
    season: str
    cropName: str
    variety: str


class MonthActivity(BaseModel):
    month: str
    activity: str


class SeasonalPlan(BaseModel):
    season: str
    cropName: str
    variety: str
    monthlyTimeline: List[MonthActivity]
    fertilizerPlan: FertilizerPlan


class YearLongVarietyPlanInput(BaseModel):
    farm: YearLongFarmDetails
    cropCycle: List[CropCycleChoice] = Field(min_length=1)
    language: str = "en"


class YearLongVarietyPlanOutput(BaseModel):
    seasonalPlans: List[SeasonalPlan]


# --- Saved crop plans ---

class ProfitSummary(BaseModel):
    totalRevenue: float
    totalCost: float
    netProfit: float = 0.0


class CropPlanCreate(BaseModel):
    farmId: str = "manual"
    cropName: str = Field(min_length=1)
    plan: Optional[ActionPlan] = None
    fertilizerPlan: Optional[FertilizerRecommendationOutput] = None
    waterPlan: Optional[WaterManagementOutput] = None
    profitSummary: Optional[ProfitSummary] = None


class CropPlan(CropPlanCreate):
    id: str
    userId: str
    createdAt: str
