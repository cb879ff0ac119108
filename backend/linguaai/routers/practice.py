from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from ..activity import record
from ..db import get_db
from ..schemas import PracticeRequest, PracticeResponse, TranslationCheckRequest, TranslationCheckResponse
from ..tutor import PRACTICE_TYPES, LanguageTutor, get_tutor


router = APIRouter(prefix="/api/practice", tags=["practice"])


@router.post("/generate", response_model=PracticeResponse)
async def generate(
    req: PracticeRequest,
    request: Request,
    tutor: LanguageTutor = Depends(get_tutor),
    db: Session = Depends(get_db),
):
    if req.type not in PRACTICE_TYPES:
        raise HTTPException(status_code=400, detail=f"type must be one of: {', '.join(PRACTICE_TYPES)}")
    result = await tutor.generate_practice(req)
    record(request, db, tutor, "GeneratePractice", f"{req.language}/{req.level}/{req.type}/{req.count}")
    return result


@router.post("/check-translation", response_model=TranslationCheckResponse)
async def check_translation(
    req: TranslationCheckRequest,
    request: Request,
    tutor: LanguageTutor = Depends(get_tutor),
    db: Session = Depends(get_db),
):
    if not req.user_answer.strip():
        raise HTTPException(status_code=400, detail="userAnswer is required")
    result = await tutor.check_translation(req)
    record(request, db, tutor, "CheckTranslation", req.language)
    return result
