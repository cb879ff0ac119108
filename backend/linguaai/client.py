"""Async client for the LinguaAI API.

Every request is signed with a fresh ``HMAC-SHA256`` Authorization header, so
a long-lived client keeps working across time windows.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

import httpx

from .hmac_auth import build_authorization_header, utc_ticks
from .schemas import (
	ChatMessage,
	ChatResponse,
	PracticeRequest,
	PracticeResponse,
	PronunciationResponse,
	ReadingResponse,
	TranscribeResponse,
	TranslateResponse,
	TranslationCheckRequest,
	TranslationCheckResponse,
	VocabularyResponse,
	WritingResponse,
)
from .settings import settings

logger = logging.getLogger(__name__)


class HmacAuth(httpx.Auth):
	def __init__(self, user_id: str, api_key: str, *, clock: Callable[[], int] = utc_ticks) -> None:
		if not user_id or not api_key:
			raise ValueError("user_id and api_key are required")
		if ":" in user_id:
			raise ValueError("user_id must not contain ':'")
		self.user_id = user_id
		self._api_key = api_key
		self._clock = clock

	def auth_flow(self, request: httpx.Request):
		request.headers["Authorization"] = build_authorization_header(self.user_id, self._api_key, self._clock())
		yield request


class LinguaApiClient:
	def __init__(
		self,
		base_url: Optional[str] = None,
		user_id: Optional[str] = None,
		api_key: Optional[str] = None,
		*,
		timeout: float = 60,
		transport: Optional[httpx.AsyncBaseTransport] = None,
	) -> None:
		user_id = (user_id or settings.auth_user_id or "").strip()
		api_key = (api_key or settings.auth_api_key or "").strip()
		self._client = httpx.AsyncClient(
			base_url=base_url or settings.linguaai_base_url,
			auth=HmacAuth(user_id, api_key),
			timeout=timeout,
			transport=transport,
		)

	async def __aenter__(self) -> "LinguaApiClient":
		return self

	async def __aexit__(self, *exc_info) -> None:
		await self.aclose()

	async def aclose(self) -> None:
		await self._client.aclose()

	async def _get(self, path: str) -> Any:
		r = await self._client.get(path)
		r.raise_for_status()
		return r.json()

	async def _post(self, path: str, body: Dict[str, Any]) -> Any:
		r = await self._client.post(path, json=body)
		if r.is_error:
			logger.warning("LinguaAI %s failed: %s", path, r.status_code)
		r.raise_for_status()
		return r.json()

	async def get_themes(self) -> List[Dict[str, Any]]:
		return await self._get("/api/vocabulary/themes")

	async def generate_vocabulary(self, language: str, theme: str, count: int = 10) -> VocabularyResponse:
		data = await self._post("/api/vocabulary/generate", {"language": language, "theme": theme, "count": count})
		return VocabularyResponse.model_validate(data)

	async def translate(self, text: str, target_language: str = "en") -> TranslateResponse:
		data = await self._post("/api/vocabulary/translate", {"text": text, "targetLanguage": target_language})
		return TranslateResponse.model_validate(data)

	async def generate_reading(self, language: str, level: str, topic: Optional[str] = None) -> ReadingResponse:
		data = await self._post("/api/reading/generate", {"language": language, "level": level, "topic": topic})
		return ReadingResponse.model_validate(data)

	async def check_writing(self, language: str, text: str, level: str = "intermediate") -> WritingResponse:
		data = await self._post("/api/writing/check", {"language": language, "text": text, "level": level})
		return WritingResponse.model_validate(data)

	async def evaluate_pronunciation(self, language: str, target: str, spoken: str) -> PronunciationResponse:
		body = {"language": language, "targetText": target, "spokenText": spoken}
		data = await self._post("/api/pronunciation/evaluate", body)
		return PronunciationResponse.model_validate(data)

	async def get_phrases(self, language: str) -> List[Dict[str, Any]]:
		return await self._get(f"/api/pronunciation/phrases/{language}")

	async def chat(
		self,
		language: str,
		scenario: str,
		message: str,
		history: Sequence[ChatMessage] = (),
	) -> ChatResponse:
		body = {
			"language": language,
			"scenario": scenario,
			"message": message,
			"history": [m.model_dump(by_alias=True) for m in history],
		}
		data = await self._post("/api/conversation/chat", body)
		return ChatResponse.model_validate(data)

	async def transcribe(
		self,
		audio: bytes,
		language: str,
		*,
		filename: str = "audio.webm",
		mime_type: str = "audio/webm",
	) -> TranscribeResponse:
		r = await self._client.post(
			"/api/speech/transcribe",
			files={"audio": (filename, audio, mime_type)},
			data={"language": language},
		)
		r.raise_for_status()
		return TranscribeResponse.model_validate(r.json())

	async def generate_practice(self, request: PracticeRequest) -> PracticeResponse:
		data = await self._post("/api/practice/generate", request.model_dump(by_alias=True))
		return PracticeResponse.model_validate(data)

	async def check_translation(self, request: TranslationCheckRequest) -> TranslationCheckResponse:
		data = await self._post("/api/practice/check-translation", request.model_dump(by_alias=True))
		return TranslationCheckResponse.model_validate(data)
