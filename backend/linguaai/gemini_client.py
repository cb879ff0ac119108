from __future__ import annotations
import asyncio
import logging
import httpx
from typing import Any, Dict, List, Optional, Tuple
from .settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)

AI_STUDIO_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
VERTEX_URL = (
	"https://{region}-aiplatform.googleapis.com/v1/projects/{project}"
	"/locations/{region}/publishers/google/models/{model}:generateContent"
)


class GeminiError(RuntimeError):
	"""Raised when Gemini (and the optional fallback) cannot produce text."""


def resolve_endpoint(config: Settings, model: str) -> Tuple[str, bool]:
	"""Return ``(url, key_in_query)`` for the configured provider."""
	if config.gemini_provider == "vertex":
		# Vertex AI Express takes the API key as a header
		project = config.vertex_project or "placeholder-project"
		return VERTEX_URL.format(region=config.vertex_region, project=project, model=model), False
	return AI_STUDIO_URL.format(model=model), True


def candidate_text(data: Dict[str, Any]) -> str:
	return data["candidates"][0]["content"]["parts"][0]["text"]


class OpenRouterFallback:
	"""Text-only fallback through OpenRouter's chat completions API."""

	def __init__(self, config: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
		self.model = config.openrouter_model
		self.url = config.openrouter_base_url
		headers = {
			"Authorization": f"Bearer {config.openrouter_api_key}",
			"HTTP-Referer": config.openrouter_referer,
			"X-Title": config.openrouter_title,
		}
		self.headers = {k: v for k, v in headers.items() if v}
		self._client = httpx.AsyncClient(timeout=30, transport=transport)

	async def complete(self, prompt: str) -> str:
		body = {"model": self.model, "messages": [{"role": "user", "content": prompt}]}
		r = await self._client.post(self.url, headers=self.headers, json=body)
		r.raise_for_status()
		return r.json()["choices"][0]["message"]["content"]

	async def aclose(self) -> None:
		await self._client.aclose()


class GeminiClient:
	def __init__(
		self,
		api_key: Optional[str] = None,
		*,
		base_url: Optional[str] = None,
		model: Optional[str] = None,
		config: Optional[Settings] = None,
		transport: Optional[httpx.AsyncBaseTransport] = None,
	) -> None:
		config = config or default_settings
		self.api_key = api_key or config.gemini_api_key
		if not self.api_key:
			raise ValueError("GEMINI_API_KEY is not configured")
		self.model = model or config.gemini_model
		url, self._key_in_query = resolve_endpoint(config, self.model)
		self.base_url = base_url or url
		self.max_retries = max(0, config.gemini_max_retries)
		self.retry_delay = config.gemini_retry_delay_seconds
		self._client = httpx.AsyncClient(timeout=30, transport=transport)
		self.fallback: Optional[OpenRouterFallback] = None
		if config.openrouter_api_key:
			self.fallback = OpenRouterFallback(config, transport)

	async def generate(self, prompt: str) -> str:
		contents = [{"parts": [{"text": prompt}]}]
		return await self._generate(contents, fallback_prompt=prompt)

	async def generate_multimodal(
		self,
		parts: List[Dict[str, Any]],
		*,
		role: str = "user",
		allow_fallback: bool = False,
	) -> str:
		# Only the text parts can be replayed to the fallback
		text = "\n".join(p["text"] for p in parts if "text" in p)
		prompt = text if allow_fallback and text else None
		return await self._generate([{"role": role, "parts": parts}], fallback_prompt=prompt)

	def _auth(self) -> Tuple[Dict[str, str], Dict[str, str]]:
		if self._key_in_query:
			return {"key": self.api_key}, {}
		return {}, {"x-goog-api-key": self.api_key}

	async def _post(self, body: Dict[str, Any]) -> httpx.Response:
		params, headers = self._auth()
		delay = self.retry_delay
		for attempt in range(self.max_retries + 1):
			r = await self._client.post(self.base_url, params=params, headers=headers, json=body)
			if r.status_code != 429 or attempt == self.max_retries:
				break
			logger.warning("Gemini rate limited, retrying in %.1fs (attempt %d/%d)", delay, attempt + 1, self.max_retries)
			await asyncio.sleep(delay)
			delay *= 2
		r.raise_for_status()
		return r

	async def _generate(self, contents: List[Dict[str, Any]], *, fallback_prompt: Optional[str]) -> str:
		try:
			r = await self._post({"contents": contents})
			return candidate_text(r.json())
		except httpx.HTTPStatusError as exc:
			logger.error("Gemini API error %s: %s", exc.response.status_code, exc.response.text[:500])
			cause: Exception = exc
		except httpx.RequestError as exc:
			logger.error("Gemini request failed: %s", exc)
			cause = exc
		except (KeyError, IndexError, TypeError, ValueError) as exc:
			logger.error("Unexpected Gemini response shape: %s", exc)
			cause = exc

		if self.fallback is None or fallback_prompt is None:
			raise GeminiError("Gemini call failed and no fallback is available") from cause
		logger.info("Falling back to OpenRouter model %s", self.fallback.model)
		try:
			return await self.fallback.complete(fallback_prompt)
		except Exception as exc:
			raise GeminiError(f"Gemini call failed ({cause}); OpenRouter fallback also failed") from exc

	async def aclose(self) -> None:
		await self._client.aclose()
		if self.fallback is not None:
			await self.fallback.aclose()
