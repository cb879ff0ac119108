from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from fastapi import Request

from .hmac_auth import SharedSecret

class Settings(BaseSettings):
	# Shared secret for the HMAC-SHA256 Authorization header
	auth_user_id: str | None = Field(default=None, validation_alias="AUTH_USER_ID")
	auth_api_key: str | None = Field(default=None, validation_alias="AUTH_API_KEY")
	# Windows of clock drift tolerated on each side of "now"
	auth_drift_windows: int = Field(default=1, ge=0, validation_alias="AUTH_DRIFT_WINDOWS")
	# Development escape hatch: serve unauthenticated when no secret is configured
	auth_allow_anonymous: bool = Field(default=False, validation_alias="AUTH_ALLOW_ANONYMOUS")

	# Basic auth in front of /docs, /redoc and /openapi.json
	docs_username: str | None = Field(default=None, validation_alias="DOCS_USERNAME")
	docs_password: str | None = Field(default=None, validation_alias="DOCS_PASSWORD")

	cors_allowed_origins: str = Field(
		default="http://localhost:5262,https://localhost:5262",
		validation_alias="CORS_ALLOWED_ORIGINS",
	)

	gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
	# Provider can be "vertex" (Vertex AI Express) or "ai_studio" (Generative Language API)
	gemini_provider: str = Field(default="ai_studio", validation_alias="GEMINI_PROVIDER")
	gemini_model: str = Field(default="gemini-2.0-flash", validation_alias="GEMINI_MODEL")
	vertex_region: str = Field(default="us-central1", validation_alias="GEMINI_VERTEX_REGION")
	vertex_project: str | None = Field(default=None, validation_alias="GEMINI_VERTEX_PROJECT")
	# Backoff on HTTP 429 from Gemini
	gemini_max_retries: int = Field(default=3, validation_alias="GEMINI_MAX_RETRIES")
	gemini_retry_delay_seconds: float = Field(default=2.0, validation_alias="GEMINI_RETRY_DELAY_SECONDS")

	# OpenRouter fallback configuration (optional)
	openrouter_api_key: str | None = Field(default=None, validation_alias="OPENROUTER_API_KEY")
	openrouter_model: str = Field(default="x-ai/grok-4-fast:free", validation_alias="OPENROUTER_MODEL")
	openrouter_base_url: str = Field(default="https://openrouter.ai/api/v1/chat/completions", validation_alias="OPENROUTER_BASE_URL")
	openrouter_referer: str = Field(default="https://localhost", validation_alias="OPENROUTER_HTTP_REFERER")
	openrouter_title: str = Field(default="LinguaAI", validation_alias="OPENROUTER_TITLE")

	# Language used for meanings, feedback and translations shown to the learner
	learner_language: str = Field(default="Vietnamese", validation_alias="LEARNER_LANGUAGE")

	# Learner accounts
	jwt_secret_key: str = Field(default="change-me", validation_alias="JWT_SECRET_KEY")
	jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
	access_token_expire_minutes: int = Field(default=120, validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES")

	# Database
	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")
	log_retention_days: int = Field(default=30, validation_alias="LOG_RETENTION_DAYS")

	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

	# Default API base URL for the client SDK
	linguaai_base_url: str = Field(default="http://localhost:5000", validation_alias="LINGUAAI_BASE_URL")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

	@property
	def shared_secret(self) -> SharedSecret | None:
		if not self.auth_user_id or not self.auth_api_key:
			return None
		return SharedSecret(user_id=self.auth_user_id, api_key=self.auth_api_key)

	@property
	def cors_origins(self) -> List[str]:
		return [o.strip() for o in self.cors_allowed_origins.split(",") if o.strip()]

settings = Settings()


def get_settings(request: Request) -> Settings:
	"""Dependency returning the settings the running app was built with."""
	return request.app.state.settings
