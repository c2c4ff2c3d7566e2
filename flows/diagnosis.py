# diagnosis.py
import asyncio
import logging

from agent import LANGUAGE_RULE, parse_data_uri, run_structured_agent, structured_agent
from basemodel_dto.diagnosis_dto import (Diagnosis, DiagnosisInput, DiagnosisOutput, DiseaseFindings,
                                         FindSuppliersInput, FindSuppliersOutput)
from flows.farm_context import language_line
from tools.places_tool import find_nearby_agri_shops

logger = logging.getLogger(__name__)

diagnosis_agent = structured_agent(
    name="PlantDiseaseDiagnosisAgent",
    description="Diagnoses crop diseases from a photo and/or described symptoms.",
    instruction=(
        "You are an expert plant pathologist and agricultural advisor for Indian farmers. "
        "From the attached photo (if any) and the described symptoms, identify the top 2-3 most likely diseases affecting the farmer's crop. "
        "For each give the common diseaseName, your confidence from 0 to 100, a simple description and a list of key symptoms that help the farmer confirm it. "
        "Add a treatment with 1-2 organic solutions (e.g. Neem oil, Trichoderma) and 1-2 inorganic solutions (e.g. Mancozeb, Copper Oxychloride), "
        "each with a precise applicationMethod (e.g. 'Mix 5ml per liter of water and spray on leaves every 7 days') and a safetyWarning, "
        "plus a 3-4 week schedule of key actions. Be practical and empathetic and prioritize safe and effective solutions. "
        "Do not list shops or vendors. " + LANGUAGE_RULE
    ),
    output_schema=DiseaseFindings,
)


def _render_diagnosis_message(payload: DiagnosisInput) -> str:
    farm = payload.farm
    return (
        "Farm Information:\n"
        f"- Crop: {farm.mainCrop or 'Not specified'}\n"
        f"- Location: {farm.location}\n"
        "Evidence Provided by Farmer:\n"
        f"- Symptoms described: {payload.symptoms or 'None, see the photo'}\n"
        f"- Photo attached: {'yes' if payload.photoDataUri else 'no'}\n"
        f"{language_line(payload.language)}"
    )


async def find_suppliers(payload: FindSuppliersInput) -> FindSuppliersOutput:
    suppliers = await asyncio.to_thread(find_nearby_agri_shops, payload.location)
    logger.info("Found %d agri suppliers near %s", len(suppliers), payload.location)
    return FindSuppliersOutput(suppliers=suppliers)


async def diagnose_plant_disease(payload: DiagnosisInput) -> DiagnosisOutput:
    if not payload.symptoms and not payload.photoDataUri:
        raise ValueError("Provide a photo of the plant or describe the symptoms.")

    images = [parse_data_uri(payload.photoDataUri)] if payload.photoDataUri else None

    # Vendors come from the places search only; the model is never asked for them.
    findings, suppliers = await asyncio.gather(
        run_structured_agent(diagnosis_agent, _render_diagnosis_message(payload), DiseaseFindings, images=images),
        asyncio.to_thread(find_nearby_agri_shops, payload.farm.location),
    )
    return DiagnosisOutput(diagnosis=[
        Diagnosis(**finding.model_dump(), vendorRecommendations=suppliers) for finding in findings.diagnosis
    ])
