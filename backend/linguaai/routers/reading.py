from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..activity import record
from ..db import get_db
from ..schemas import ReadingRequest, ReadingResponse
from ..tutor import LanguageTutor, get_tutor


router = APIRouter(prefix="/api/reading", tags=["reading"])


class TopicItem(BaseModel):
    id: str
    name: str
    icon: str


TOPICS: List[TopicItem] = [
    TopicItem(id="culture", name="Culture", icon="🏛️"),
    TopicItem(id="food", name="Food", icon="🍜"),
    TopicItem(id="travel", name="Travel", icon="✈️"),
    TopicItem(id="technology", name="Technology", icon="💻"),
    TopicItem(id="nature", name="Nature", icon="🌿"),
    TopicItem(id="sports", name="Sports", icon="⚽"),
    TopicItem(id="history", name="History", icon="📜"),
    TopicItem(id="daily", name="Daily life", icon="🏠"),
]


@router.post("/generate", response_model=ReadingResponse)
async def generate(
    req: ReadingRequest,
    request: Request,
    tutor: LanguageTutor = Depends(get_tutor),
    db: Session = Depends(get_db),
):
    passage = await tutor.generate_reading(req.language, req.level, req.topic)
    record(request, db, tutor, "GenerateReading", f"{req.language}/{req.level}/{req.topic or '-'}")
    return passage


@router.get("/topics", response_model=List[TopicItem])
async def topics():
    return TOPICS
