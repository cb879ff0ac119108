from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..activity import record
from ..db import get_db
from ..schemas import EnrichRequest, TranslateRequest, TranslateResponse, VocabularyRequest, VocabularyResponse
from ..tutor import LanguageTutor, detect_language, get_tutor


router = APIRouter(prefix="/api/vocabulary", tags=["vocabulary"])


class ThemeItem(BaseModel):
    id: str
    name: str
    icon: str


THEMES: List[ThemeItem] = [
    ThemeItem(id="greetings", name="Greetings", icon="👋"),
    ThemeItem(id="numbers", name="Numbers", icon="🔢"),
    ThemeItem(id="food", name="Food", icon="🍕"),
    ThemeItem(id="family", name="Family", icon="👨‍👩‍👧‍👦"),
    ThemeItem(id="colors", name="Colors", icon="🎨"),
    ThemeItem(id="animals", name="Animals", icon="🐾"),
    ThemeItem(id="weather", name="Weather", icon="🌤️"),
    ThemeItem(id="shopping", name="Shopping", icon="🛒"),
    ThemeItem(id="travel", name="Travel", icon="🧳"),
    ThemeItem(id="work", name="Work", icon="💼"),
]


@router.post("/generate", response_model=VocabularyResponse)
async def generate(
    req: VocabularyRequest,
    request: Request,
    tutor: LanguageTutor = Depends(get_tutor),
    db: Session = Depends(get_db),
):
    words = await tutor.generate_vocabulary(req.language, req.theme, req.count)
    record(request, db, tutor, "GenerateVocabulary", f"{req.language}/{req.theme}/{req.count}")
    warning = "" if words else "No vocabulary could be generated, please try again"
    return VocabularyResponse(words=words, warning=warning)


@router.post("/enrich", response_model=VocabularyResponse)
async def enrich(
    req: EnrichRequest,
    request: Request,
    tutor: LanguageTutor = Depends(get_tutor),
    db: Session = Depends(get_db),
):
    if not req.items:
        raise HTTPException(status_code=400, detail="items are required")
    words = await tutor.enrich_vocabulary(req.items)
    record(request, db, tutor, "EnrichVocabulary", f"{len(req.items)} items")
    return VocabularyResponse(words=words)


@router.post("/translate", response_model=TranslateResponse)
async def translate(
    req: TranslateRequest,
    request: Request,
    tutor: LanguageTutor = Depends(get_tutor),
    db: Session = Depends(get_db),
):
    if not req.text.strip():
        raise HTTPException(status_code=400, detail="Text is required")
    translated = await tutor.translate(req.text, req.target_language or "en")
    record(request, db, tutor, "Translate", req.target_language or "en")
    return TranslateResponse(translated=translated, original_language=detect_language(req.text))


@router.get("/themes", response_model=List[ThemeItem])
async def themes():
    return THEMES
