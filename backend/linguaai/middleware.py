from __future__ import annotations

import base64
import binascii
import hmac
import logging
from typing import Iterable, Optional, Tuple

from fastapi import Request
from fastapi.responses import JSONResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .hmac_auth import RequestAuthenticator

logger = logging.getLogger(__name__)

# Never authenticated with HMAC: health checks, API docs, favicon
EXCLUDED_PATHS: Tuple[str, ...] = ("/health", "/docs", "/redoc", "/openapi.json", "/favicon.ico")
DOCS_PATHS: Tuple[str, ...] = ("/docs", "/redoc", "/openapi.json")

ANONYMOUS_CLIENT = "anonymous"


def _unauthorized(message: str) -> JSONResponse:
	return JSONResponse(status_code=401, content={"error": "Unauthorized", "message": message})


class HmacAuthMiddleware(BaseHTTPMiddleware):
	"""Reject requests without a valid ``HMAC-SHA256`` Authorization header.

	``authenticator`` is None when no shared secret is configured. Requests are
	then let through only if ``allow_anonymous`` was switched on explicitly;
	otherwise every protected request gets a 401.
	"""

	def __init__(
		self,
		app,
		authenticator: Optional[RequestAuthenticator],
		*,
		allow_anonymous: bool = False,
		excluded_paths: Iterable[str] = EXCLUDED_PATHS,
	):
		super().__init__(app)
		self.authenticator = authenticator
		self.allow_anonymous = allow_anonymous
		self.excluded_paths = tuple(p.lower() for p in excluded_paths)
		if authenticator is None:
			if allow_anonymous:
				logger.warning("Auth credentials not configured - AUTH_ALLOW_ANONYMOUS is on, API is unauthenticated")
			else:
				logger.error("Auth credentials not configured - all protected requests will be rejected")

	def _is_excluded(self, path: str) -> bool:
		path = path.lower()
		return any(path.startswith(p) for p in self.excluded_paths)

	async def dispatch(self, request: Request, call_next):
		path = request.url.path
		if self._is_excluded(path):
			return await call_next(request)

		if self.authenticator is None:
			if self.allow_anonymous:
				request.state.client_id = ANONYMOUS_CLIENT
				return await call_next(request)
			return _unauthorized("Invalid or expired credentials")

		auth_header = request.headers.get("authorization")
		if not auth_header:
			logger.warning("Missing Authorization header for path: %s", path)
			return _unauthorized("Missing Authorization header")

		credentials = self.authenticator.authenticate(auth_header)
		if credentials is None:
			logger.warning("Invalid Authorization for path: %s", path)
			return _unauthorized("Invalid or expired credentials")

		request.state.client_id = credentials.user_id
		return await call_next(request)


class DocsBasicAuthMiddleware(BaseHTTPMiddleware):
	"""HTTP Basic auth in front of the interactive API docs.

	With no username/password configured the docs are locked.
	"""

	realm = "LinguaAI Docs"

	def __init__(self, app, username: Optional[str], password: Optional[str]):
		super().__init__(app)
		self.username = username
		self.password = password

	def _is_authorized(self, header: Optional[str]) -> bool:
		if not self.username or not self.password or not header:
			return False
		scheme, _, param = header.partition(" ")
		if scheme.lower() != "basic" or not param:
			return False
		try:
			decoded = base64.b64decode(param.strip(), validate=True).decode("utf-8")
		except (binascii.Error, UnicodeDecodeError):
			return False
		user, sep, password = decoded.partition(":")
		if not sep:
			return False
		user_ok = hmac.compare_digest(user.encode(), self.username.encode())
		password_ok = hmac.compare_digest(password.encode(), self.password.encode())
		return user_ok and password_ok

	async def dispatch(self, request: Request, call_next):
		path = request.url.path.lower()
		if not any(path.startswith(p) for p in DOCS_PATHS):
			return await call_next(request)
		if self._is_authorized(request.headers.get("authorization")):
			return await call_next(request)
		return Response(status_code=401, headers={"WWW-Authenticate": f'Basic realm="{self.realm}"'})


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
	headers = {
		"X-Content-Type-Options": "nosniff",
		"X-Frame-Options": "DENY",
		"X-XSS-Protection": "1; mode=block",
		"Referrer-Policy": "strict-origin-when-cross-origin",
	}

	async def dispatch(self, request: Request, call_next):
		response = await call_next(request)
		for name, value in self.headers.items():
			response.headers[name] = value
		return response
