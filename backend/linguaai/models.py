from __future__ import annotations
import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, Text
from .db import Base


def _new_id() -> str:
	return uuid.uuid4().hex


def _utcnow() -> datetime:
	return datetime.now(timezone.utc).replace(tzinfo=None)


class LearnerAccount(Base):
	__tablename__ = "learner_accounts"
	id = Column(String(32), primary_key=True, default=_new_id)
	username = Column(String(128), unique=True, index=True, nullable=False)
	password_hash = Column(String(256), nullable=False)
	email = Column(String(256), nullable=True)
	created_at = Column(DateTime, default=_utcnow, nullable=False)


class ActionLog(Base):
	__tablename__ = "action_logs"
	id = Column(String(32), primary_key=True, default=_new_id)
	# Authenticated API client, "anonymous" in development bypass mode
	user_id = Column(String(128), index=True, nullable=False)
	action_type = Column(String(64), nullable=False)  # e.g. "GenerateVocabulary", "CheckWriting"
	details = Column(Text, nullable=True)
	timestamp = Column(DateTime, default=_utcnow, index=True, nullable=False)


class AIResponseLog(Base):
	__tablename__ = "ai_logs"
	id = Column(String(32), primary_key=True, default=_new_id)
	user_id = Column(String(128), index=True, nullable=False)
	request_type = Column(String(64), nullable=False)  # e.g. "Practice", "Vocabulary"
	request_prompt = Column(Text, nullable=False)
	ai_response = Column(Text, nullable=False)
	timestamp = Column(DateTime, default=_utcnow, index=True, nullable=False)
