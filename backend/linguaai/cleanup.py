from __future__ import annotations
from datetime import datetime, timedelta, timezone
from sqlalchemy import delete
from sqlalchemy.orm import Session

from .models import ActionLog, AIResponseLog


def purge_stale_logs(db: Session, days: int) -> int:
	if days <= 0:
		return 0
	threshold = datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(days=days)
	removed = 0
	for model in (ActionLog, AIResponseLog):
		res = db.execute(delete(model).where(model.timestamp < threshold))
		removed += res.rowcount or 0
	db.commit()
	return removed
