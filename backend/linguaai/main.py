import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import sessionmaker

from .db import DEFAULT_DATABASE_URL, Base, build_engine, build_session_factory
from .cleanup import purge_stale_logs
from .gemini_client import GeminiError
from .hmac_auth import RequestAuthenticator
from .middleware import DocsBasicAuthMiddleware, HmacAuthMiddleware, SecurityHeadersMiddleware
from .settings import Settings, settings as default_settings
from .routers import accounts, conversation, health, history, practice, pronunciation, reading, speech, vocabulary, writing

logger = logging.getLogger(__name__)


def _purge_once(session_factory: sessionmaker, days: int) -> None:
	db = session_factory()
	try:
		removed = purge_stale_logs(db, days)
		if removed:
			logger.info("Purged %d activity log rows older than %d days", removed, days)
	except Exception:
		logger.exception("Activity log cleanup failed")
	finally:
		db.close()


async def _cleanup_watcher(session_factory: sessionmaker, days: int) -> None:
	while True:
		await asyncio.sleep(24 * 60 * 60)
		_purge_once(session_factory, days)


def create_app(config: Optional[Settings] = None) -> FastAPI:
	config = config or default_settings
	logging.basicConfig(level=config.log_level.upper())
	engine = build_engine(config.database_url or DEFAULT_DATABASE_URL)
	session_factory = build_session_factory(engine)

	@asynccontextmanager
	async def lifespan(app: FastAPI):
		Base.metadata.create_all(bind=engine)
		_purge_once(session_factory, config.log_retention_days)
		watcher = asyncio.create_task(_cleanup_watcher(session_factory, config.log_retention_days))
		try:
			yield
		finally:
			watcher.cancel()
			engine.dispose()

	app = FastAPI(title="LinguaAI API", version="1.0.0", lifespan=lifespan)
	app.state.settings = config
	app.state.session_factory = session_factory

	secret = config.shared_secret
	authenticator = None
	if secret is not None:
		authenticator = RequestAuthenticator(secret, drift_windows=config.auth_drift_windows)

	# Last added runs first: security headers, CORS, docs basic auth, HMAC auth
	app.add_middleware(
		HmacAuthMiddleware,
		authenticator=authenticator,
		allow_anonymous=config.auth_allow_anonymous,
	)
	app.add_middleware(DocsBasicAuthMiddleware, username=config.docs_username, password=config.docs_password)
	app.add_middleware(
		CORSMiddleware,
		allow_origins=config.cors_origins,
		allow_methods=["*"],
		allow_headers=["*"],
	)
	app.add_middleware(SecurityHeadersMiddleware)

	@app.exception_handler(GeminiError)
	async def gemini_error_handler(request: Request, exc: GeminiError):
		logger.error("AI backend failure on %s: %s", request.url.path, exc)
		return JSONResponse(status_code=502, content={"error": "Bad Gateway", "message": "AI service unavailable"})

	app.include_router(health.router)
	app.include_router(accounts.router)
	app.include_router(vocabulary.router)
	app.include_router(reading.router)
	app.include_router(writing.router)
	app.include_router(pronunciation.router)
	app.include_router(conversation.router)
	app.include_router(speech.router)
	app.include_router(practice.router)
	app.include_router(history.router)
	return app


app = create_app()
