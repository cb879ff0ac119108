"""Best-effort activity and AI-response logging.

A failed insert is logged and rolled back; it never fails the request.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Request
from sqlalchemy.orm import Session

from .middleware import ANONYMOUS_CLIENT
from .models import ActionLog, AIResponseLog
from .tutor import LanguageTutor

logger = logging.getLogger(__name__)


def client_id(request: Request) -> str:
	return getattr(request.state, "client_id", None) or ANONYMOUS_CLIENT


def log_action(db: Session, user_id: str, action: str, details: Optional[str] = None) -> None:
	try:
		db.add(ActionLog(user_id=user_id, action_type=action, details=details))
		db.commit()
	except Exception:
		db.rollback()
		logger.exception("Failed to log user action %s", action)


def log_exchanges(db: Session, user_id: str, tutor: LanguageTutor) -> None:
	try:
		for request_type, prompt, response in tutor.exchanges:
			db.add(AIResponseLog(user_id=user_id, request_type=request_type, request_prompt=prompt, ai_response=response))
		db.commit()
	except Exception:
		db.rollback()
		logger.exception("Failed to log AI responses")
	tutor.exchanges.clear()


def record(request: Request, db: Session, tutor: LanguageTutor, action: str, details: Optional[str] = None) -> None:
	user_id = client_id(request)
	log_action(db, user_id, action, details)
	log_exchanges(db, user_id, tutor)
