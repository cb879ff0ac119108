from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..activity import record
from ..db import get_db
from ..schemas import WritingRequest, WritingResponse
from ..tutor import LanguageTutor, get_tutor


router = APIRouter(prefix="/api/writing", tags=["writing"])

# Long essays are clamped before they reach the model
MAX_TEXT_CHARS = 8000


class WritingPrompt(BaseModel):
    level: str
    title: str
    description: str


PROMPTS: List[WritingPrompt] = [
    WritingPrompt(level="beginner", title="About me", description="Write a short paragraph introducing yourself"),
    WritingPrompt(level="beginner", title="Family", description="Describe the members of your family"),
    WritingPrompt(level="intermediate", title="Hobbies", description="Write about your hobbies and favourite activities"),
    WritingPrompt(level="intermediate", title="Travel", description="Tell the story of a memorable trip"),
    WritingPrompt(level="advanced", title="Opinion", description="Give your opinion on a social issue"),
    WritingPrompt(level="advanced", title="Plans", description="Describe your plans for the future"),
]


@router.post("/check", response_model=WritingResponse)
async def check(
    req: WritingRequest,
    request: Request,
    tutor: LanguageTutor = Depends(get_tutor),
    db: Session = Depends(get_db),
):
    text = req.text.strip()
    if not text:
        raise HTTPException(status_code=400, detail="text is required")
    result = await tutor.check_writing(req.language, text[:MAX_TEXT_CHARS], req.level)
    record(request, db, tutor, "CheckWriting", f"{req.language}/{req.level}/{len(text)} chars")
    return result


@router.get("/prompts/{language}", response_model=List[WritingPrompt])
async def prompts(language: str):
    # Prompts are language independent; the path keeps the client contract
    return PROMPTS
