from typing import List, Optional

from pydantic import BaseModel, Field

from basemodel_dto.farm_dto import FarmDetails
from basemodel_dto.recommendation_dto import WeekActivity


class Supplier(BaseModel):
    name: str
    address: str
    phone: Optional[str] = None


class TreatmentOption(BaseModel):
    solutionName: str
    applicationMethod: str
    safetyWarning: str


class Treatment(BaseModel):
    organic: List[TreatmentOption]
    inorganic: List[TreatmentOption]
    schedule: List[WeekActivity]


class DiseaseFinding(BaseModel):
    """What the model returns for one likely disease."""
    diseaseName: str
    confidence: float = Field(ge=0, le=100, description="Confidence score for this diagnosis (0-100).")
    description: str
    symptoms: List[str]
    treatment: Treatment


class DiseaseFindings(BaseModel):
    diagnosis: List[DiseaseFinding] = Field(description="The top 2-3 likely diseases.")


class Diagnosis(DiseaseFinding):
    vendorRecommendations: List[Supplier] = []


class DiagnosisInput(BaseModel):
    farm: FarmDetails
    symptoms: Optional[str] = None
    photoDataUri: Optional[str] = Field(None, description="'data:<mimetype>;base64,<encoded_data>'")
    language: str = "en"


class DiagnosisOutput(BaseModel):
    diagnosis: List[Diagnosis]


class DiagnosisReportCreate(BaseModel):
    farmId: str
    crop: str
    imageURL: Optional[str] = None
    symptoms: Optional[str] = None
    selectedDisease: str
    aiConfidence: float
    selectedTreatment: Treatment
    vendorRecommendations: List[Supplier] = []


class DiagnosisReport(DiagnosisReportCreate):
    id: str
    userId: str
    timestamp: str


class FindSuppliersInput(BaseModel):
    location: str = Field(min_length=1)


class FindSuppliersOutput(BaseModel):
    suppliers: List[Supplier]
