# diagnosis_reports.py
import logging
from typing import List, Optional

from basemodel_dto.diagnosis_dto import DiagnosisReport, DiagnosisReportCreate
from firebase_client import get_db
from store.documents import list_owned, now_iso

logger = logging.getLogger(__name__)

DIAGNOSIS_REPORTS_COLLECTION = "diagnosisReports"


def save_diagnosis_report(user_id: str, report: DiagnosisReportCreate) -> DiagnosisReport:
    data = {**report.model_dump(), "userId": user_id, "timestamp": now_iso()}
    _, ref = get_db().collection(DIAGNOSIS_REPORTS_COLLECTION).add(data)
    logger.info("Diagnosis report %s saved (%s on %s)", ref.id, report.selectedDisease, report.crop)
    return DiagnosisReport(id=ref.id, **data)


def list_diagnosis_reports(user_id: str, farm_id: Optional[str] = None) -> List[DiagnosisReport]:
    docs = list_owned(DIAGNOSIS_REPORTS_COLLECTION, user_id, sort_key="timestamp")
    if farm_id:
        docs = [d for d in docs if d.get("farmId") == farm_id]
    return [DiagnosisReport(**doc) for doc in docs]
