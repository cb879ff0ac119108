from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..activity import record
from ..db import get_db
from ..schemas import ChatRequest, ChatResponse
from ..tutor import LanguageTutor, get_tutor


router = APIRouter(prefix="/api/conversation", tags=["conversation"])

# Only the most recent turns are replayed to the model
MAX_HISTORY = 20


class ScenarioItem(BaseModel):
    id: str
    name: str
    description: str


SCENARIOS: List[ScenarioItem] = [
    ScenarioItem(id="coffee", name="Coffee shop", description="Order drinks at a cafe"),
    ScenarioItem(id="restaurant", name="Restaurant", description="Order food and pay the bill"),
    ScenarioItem(id="shopping", name="Shopping", description="Talk with a shop assistant"),
    ScenarioItem(id="travel", name="Travel", description="Ask for directions, book a hotel room"),
    ScenarioItem(id="work", name="Work", description="Meetings, presentations, email"),
    ScenarioItem(id="daily", name="Everyday", description="Chat with friends and family"),
    ScenarioItem(id="interview", name="Interview", description="A job interview"),
]


@router.post("/chat", response_model=ChatResponse)
async def chat(
    req: ChatRequest,
    request: Request,
    tutor: LanguageTutor = Depends(get_tutor),
    db: Session = Depends(get_db),
):
    if not req.message.strip():
        raise HTTPException(status_code=400, detail="message is required")
    result = await tutor.chat(req.language, req.scenario, req.message, req.history[-MAX_HISTORY:])
    record(request, db, tutor, "Chat", f"{req.language}/{req.scenario}")
    return result


@router.get("/scenarios", response_model=List[ScenarioItem])
async def scenarios():
    return SCENARIOS
