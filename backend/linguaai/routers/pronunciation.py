from __future__ import annotations

from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..activity import record
from ..db import get_db
from ..schemas import PronunciationRequest, PronunciationResponse
from ..tutor import LanguageTutor, get_tutor


router = APIRouter(prefix="/api/pronunciation", tags=["pronunciation"])


class PhraseItem(BaseModel):
    text: str
    romanization: str = ""
    meaning: str


PHRASES: Dict[str, List[PhraseItem]] = {
    "ko": [
        PhraseItem(text="안녕하세요", romanization="annyeonghaseyo", meaning="Hello"),
        PhraseItem(text="감사합니다", romanization="gamsahamnida", meaning="Thank you"),
        PhraseItem(text="죄송합니다", romanization="joesonghamnida", meaning="I'm sorry"),
        PhraseItem(text="사랑해요", romanization="saranghaeyo", meaning="I love you"),
        PhraseItem(text="맛있어요", romanization="masisseoyo", meaning="It's delicious"),
    ],
    "zh": [
        PhraseItem(text="你好", romanization="nǐ hǎo", meaning="Hello"),
        PhraseItem(text="谢谢", romanization="xiè xiè", meaning="Thank you"),
        PhraseItem(text="对不起", romanization="duì bù qǐ", meaning="I'm sorry"),
        PhraseItem(text="我爱你", romanization="wǒ ài nǐ", meaning="I love you"),
        PhraseItem(text="很好吃", romanization="hěn hǎo chī", meaning="It's delicious"),
    ],
    "en": [
        PhraseItem(text="Hello", meaning="Greeting"),
        PhraseItem(text="Thank you", meaning="Gratitude"),
        PhraseItem(text="I'm sorry", meaning="Apology"),
        PhraseItem(text="I love you", meaning="Affection"),
        PhraseItem(text="Delicious!", meaning="Praise for food"),
    ],
}


@router.post("/evaluate", response_model=PronunciationResponse)
async def evaluate(
    req: PronunciationRequest,
    request: Request,
    tutor: LanguageTutor = Depends(get_tutor),
    db: Session = Depends(get_db),
):
    if not req.target_text.strip():
        raise HTTPException(status_code=400, detail="targetText is required")
    result = await tutor.evaluate_pronunciation(req.language, req.target_text, req.spoken_text)
    record(request, db, tutor, "EvaluatePronunciation", req.language)
    return result


@router.get("/phrases/{language}", response_model=List[PhraseItem])
async def phrases(language: str):
    return PHRASES.get(language.lower(), PHRASES["en"])
