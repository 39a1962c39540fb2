from datetime import datetime, timezone

from fastapi import APIRouter

from ..settings import settings

router = APIRouter(tags=["health"])

API_VERSION = "1.0.0"


def _now() -> str:
	return datetime.now(timezone.utc).isoformat()


@router.get("/health")
def health():
	# Minimal probe for load balancers
	return {"ok": True, "ts": _now()}


@router.get("/api/health")
def health_detail():
	return {
		"ok": True,
		"timestamp": _now(),
		"version": API_VERSION,
		"environment": settings.app_env,
		"llmConfigured": settings.llm_configured,
		"llmProvider": "xai",
		"llmModel": settings.xai_model,
	}
