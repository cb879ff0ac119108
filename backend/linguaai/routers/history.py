from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import ActionLog, AIResponseLog


router = APIRouter(prefix="/api/history", tags=["history"])


class ActionLogOut(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: str
	user_id: str
	action_type: str
	details: Optional[str] = None
	timestamp: datetime


class AIResponseLogOut(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: str
	user_id: str
	request_type: str
	request_prompt: str
	ai_response: str
	timestamp: datetime


@router.get("/action-logs", response_model=List[ActionLogOut])
def action_logs(user_id: Optional[str] = None, limit: int = Query(default=50, ge=1, le=500), db: Session = Depends(get_db)):
	query = db.query(ActionLog)
	if user_id is not None:
		query = query.filter(ActionLog.user_id == user_id)
	return query.order_by(ActionLog.timestamp.desc()).limit(limit).all()


@router.get("/ai-logs", response_model=List[AIResponseLogOut])
def ai_logs(user_id: Optional[str] = None, limit: int = Query(default=50, ge=1, le=500), db: Session = Depends(get_db)):
	query = db.query(AIResponseLog)
	if user_id is not None:
		query = query.filter(AIResponseLog.user_id == user_id)
	return query.order_by(AIResponseLog.timestamp.desc()).limit(limit).all()


@router.delete("/logs/{log_id}")
def delete_log(log_id: str, db: Session = Depends(get_db)):
	removed = 0
	for model in (ActionLog, AIResponseLog):
		removed += db.query(model).filter(model.id == log_id).delete()
	db.commit()
	if not removed:
		raise HTTPException(status_code=404, detail="log not found")
	return {"deleted": log_id}
