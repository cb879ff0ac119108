"""Time-windowed HMAC-SHA256 request authentication.

Both sides share ``(user_id, api_key)``. Per request the client derives a
one-time password from the API key and the current 60 second window, mixes in
its user id, and sends::

	Authorization: HMAC-SHA256 <user_id>:<sha256 hex>

The server re-derives the token for the windows around its own clock and
accepts the first match. Ticks are 100 ns units counted from
0001-01-01T00:00:00Z so tokens match the ones computed by existing clients.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional, Union

logger = logging.getLogger(__name__)

TICKS_PER_SECOND = 10_000_000
WINDOW_SECONDS = 60
WINDOW_TICKS = WINDOW_SECONDS * TICKS_PER_SECOND
# Ticks between 0001-01-01 and 1970-01-01
UNIX_EPOCH_TICKS = 621_355_968_000_000_000

SCHEME = "HMAC-SHA256"
_PREFIX = SCHEME + " "


@dataclass(frozen=True)
class SharedSecret:
	user_id: str
	api_key: str = field(repr=False)


@dataclass(frozen=True)
class ParsedCredentials:
	user_id: str
	token: str = field(repr=False)


@dataclass(frozen=True)
class MalformedHeader:
	reason: str


ParseResult = Union[ParsedCredentials, MalformedHeader]


def utc_ticks() -> int:
	"""Current UTC time in 100 ns ticks since 0001-01-01."""
	return UNIX_EPOCH_TICKS + time.time_ns() // 100


def unix_seconds_to_ticks(seconds: float) -> int:
	return UNIX_EPOCH_TICKS + int(seconds * TICKS_PER_SECOND)


def _sha256_hex(value: str) -> str:
	return hashlib.sha256(value.encode("utf-8")).hexdigest()


def derive_password(api_key: str, time_ticks: int) -> str:
	"""Return ``sha256(api_key + window)`` as lower-case hex.

	``window`` is ``time_ticks // WINDOW_TICKS`` rendered as plain ASCII digits,
	so every tick inside the same minute yields the same password.
	"""
	window = time_ticks // WINDOW_TICKS
	return _sha256_hex(f"{api_key}{window:d}")


def derive_token(user_id: str, password: str) -> str:
	"""Return ``sha256(user_id + ":" + password)`` as lower-case hex."""
	return _sha256_hex(f"{user_id}:{password}")


def build_authorization_header(user_id: str, api_key: str, time_ticks: Optional[int] = None) -> str:
	if time_ticks is None:
		time_ticks = utc_ticks()
	token = derive_token(user_id, derive_password(api_key, time_ticks))
	return f"{_PREFIX}{user_id}:{token}"


def parse_authorization_header(header: Optional[str]) -> ParseResult:
	if not header:
		return MalformedHeader("missing header")
	if header[: len(_PREFIX)].lower() != _PREFIX.lower():
		return MalformedHeader("unsupported scheme")
	user_id, sep, token = header[len(_PREFIX):].partition(":")
	if not sep or not user_id or not token:
		return MalformedHeader("expected <user_id>:<token>")
	return ParsedCredentials(user_id=user_id, token=token)


def mask_identity(user_id: str) -> str:
	if len(user_id) <= 2:
		return "***"
	return user_id[:2] + "***"


def _matching_offset(
	token: str,
	user_id: str,
	api_key: str,
	now_ticks: int,
	drift_windows: int,
) -> Optional[int]:
	for offset in range(-drift_windows, drift_windows + 1):
		password = derive_password(api_key, now_ticks + offset * WINDOW_TICKS)
		expected = derive_token(user_id, password)
		if hmac.compare_digest(expected.encode("ascii"), token.encode("utf-8")):
			return offset
	return None


def _authenticate(
	auth_header: Optional[str],
	expected_user_id: str,
	expected_api_key: str,
	drift_windows: int,
	clock: Callable[[], int],
) -> Optional[ParsedCredentials]:
	parsed = parse_authorization_header(auth_header)
	if isinstance(parsed, MalformedHeader):
		logger.debug("Rejected Authorization header: %s", parsed.reason)
		return None

	# Unknown identities point at credential guessing, so they log above bad tokens
	if parsed.user_id != expected_user_id:
		logger.error("Authorization for unknown user id: %s", mask_identity(parsed.user_id))
		return None

	# One clock read per validation; every candidate window is relative to it
	now_ticks = clock()
	offset = _matching_offset(parsed.token, expected_user_id, expected_api_key, now_ticks, drift_windows)
	if offset is None:
		logger.warning("Invalid auth token from user id: %s", mask_identity(parsed.user_id))
		return None

	logger.debug("Auth validated for %s with window offset %d", mask_identity(parsed.user_id), offset)
	return parsed


def validate(
	auth_header: Optional[str],
	expected_user_id: str,
	expected_api_key: str,
	*,
	drift_windows: int = 1,
	now_ticks: Optional[int] = None,
) -> bool:
	"""Check an ``Authorization`` header against the expected shared secret.

	Never raises: malformed input, a wrong identity, an expired or forged token
	and internal failures all return ``False``.
	"""
	if now_ticks is None:
		clock: Callable[[], int] = utc_ticks
	else:
		fixed = now_ticks
		clock = lambda: fixed
	try:
		return _authenticate(auth_header, expected_user_id, expected_api_key, drift_windows, clock) is not None
	except Exception:
		logger.exception("Error validating Authorization header")
		return False


@dataclass(frozen=True)
class RequestAuthenticator:
	"""Validate inbound headers against one injected shared secret."""

	credentials: SharedSecret
	drift_windows: int = 1
	clock: Callable[[], int] = utc_ticks

	def __post_init__(self) -> None:
		if self.drift_windows < 0:
			raise ValueError("drift_windows must be >= 0")

	def authenticate(self, auth_header: Optional[str]) -> Optional[ParsedCredentials]:
		"""Return the verified credentials, or None. Never raises."""
		try:
			return _authenticate(
				auth_header,
				self.credentials.user_id,
				self.credentials.api_key,
				self.drift_windows,
				self.clock,
			)
		except Exception:
			logger.exception("Error validating Authorization header")
			return None

	def validate(self, auth_header: Optional[str]) -> bool:
		return self.authenticate(auth_header) is not None
