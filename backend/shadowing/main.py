import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .db import Base, engine, seed_sentences
from .rate_limit import RateLimitExceeded
from .settings import settings
from .routers import health
from .routers import feedback
from .routers import sentences
from .routers import tutor_line

logging.basicConfig(
	level=getattr(logging, settings.log_level.upper(), logging.INFO),
	format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Shadowing Tutor API", version=health.API_VERSION)
app.add_middleware(
	CORSMiddleware,
	allow_origins=["*"],
	allow_credentials=True,
	allow_methods=["GET", "POST", "OPTIONS"],
	allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
)
app.include_router(health.router)
app.include_router(feedback.router)
app.include_router(sentences.router)
app.include_router(tutor_line.router)


@app.middleware("http")
async def request_log(request: Request, call_next):
	req_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:8]
	start = time.perf_counter()
	response = await call_next(request)
	elapsed_ms = (time.perf_counter() - start) * 1000
	response.headers["X-Request-ID"] = req_id
	logger.info("%s %s %s -> %s (%.0fms)", req_id, request.method, request.url.path, response.status_code, elapsed_ms)
	return response


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
	# Clients expect {ok:false, error}; FastAPI's default is 422 {detail}
	first = exc.errors()[0] if exc.errors() else {}
	field = ".".join(str(p) for p in first.get("loc", ()) if p != "body") or "body"
	return JSONResponse(status_code=400, content={"ok": False, "error": f'Missing or invalid "{field}" field'})


@app.exception_handler(RateLimitExceeded)
async def rate_limited(request: Request, exc: RateLimitExceeded):
	return JSONResponse(
		status_code=429,
		content={"ok": False, "error": "Too many requests", "details": exc.detail, "retryAfter": exc.retry_after},
		headers={**(exc.headers or {}), "Retry-After": str(exc.retry_after)},
	)


@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
	if exc.status_code == 404:
		return JSONResponse(status_code=404, content={"ok": False, "error": "Not found"})
	return JSONResponse(status_code=exc.status_code, content={"ok": False, "error": str(exc.detail)})


@app.on_event("startup")
async def startup_event():
	Base.metadata.create_all(bind=engine)
	seed_sentences()
	logger.info(
		"Shadowing Tutor API ready (env=%s, xAI %s)",
		settings.app_env,
		"configured" if settings.llm_configured else "NOT configured (feedback will return NOT_CONFIGURED)",
	)
