# reportsync/api/validation.py
from typing import List

from fastapi import APIRouter, Depends

from reportsync.api.deps import get_validation_service
from reportsync.schemas.validation import ReportDraft, SubmissionDecision, ValidationVerdict

router = APIRouter(prefix="/validation", tags=["Validation"])


@router.post("", response_model=ValidationVerdict)
async def validate_report(draft: ReportDraft, validation=Depends(get_validation_service)):
    return await validation.validate(draft)


@router.post("/decision", response_model=SubmissionDecision)
async def submission_decision(draft: ReportDraft, validation=Depends(get_validation_service)):
    return await validation.decide_submission(draft)


@router.post("/recommendations", response_model=List[str])
async def recommendations(draft: ReportDraft, validation=Depends(get_validation_service)):
    return await validation.generate_recommendations(draft)
