from fastapi import APIRouter, Depends

from ..settings import Settings, get_settings

router = APIRouter(tags=["health"])


@router.get("/health")
def health(config: Settings = Depends(get_settings)):
	return {
		"status": "ok",
		"gemini_configured": bool(config.gemini_api_key),
		"auth_configured": config.shared_secret is not None,
	}
