from __future__ import annotations

import logging
import os

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from sqlalchemy.orm import Session

from ..activity import record
from ..db import get_db
from ..schemas import TranscribeResponse
from ..tutor import LanguageTutor, get_tutor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/speech", tags=["speech"])

MIME_BY_EXTENSION = {
    ".wav": "audio/wav",
    ".mp3": "audio/mp3",
    ".webm": "audio/webm",
    ".ogg": "audio/ogg",
    ".m4a": "audio/mp4",
}


def guess_mime_type(content_type: str | None, filename: str | None) -> str:
    if content_type and content_type != "application/octet-stream":
        return content_type
    ext = os.path.splitext(filename or "")[1].lower()
    return MIME_BY_EXTENSION.get(ext, "audio/wav")


@router.post("/transcribe", response_model=TranscribeResponse)
async def transcribe(
    request: Request,
    audio: UploadFile = File(...),
    language: str = Form("ko"),
    tutor: LanguageTutor = Depends(get_tutor),
    db: Session = Depends(get_db),
):
    data = await audio.read()
    if not data:
        raise HTTPException(status_code=400, detail="No audio file provided")
    mime_type = guess_mime_type(audio.content_type, audio.filename)
    logger.info("Transcribing audio: %d bytes, %s, lang=%s", len(data), mime_type, language)
    transcript = await tutor.transcribe_audio(data, language, mime_type)
    record(request, db, tutor, "Transcribe", f"{language}/{mime_type}/{len(data)} bytes")
    if not transcript:
        return TranscribeResponse(transcript="", success=False, error="Could not transcribe audio")
    return TranscribeResponse(transcript=transcript, success=True)
