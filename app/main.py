from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
import time
from typing import Any, Dict, Optional

from opentelemetry.trace import get_current_span

from app.core.config import settings
from app.api.routes.admin import router as admin_router
from app.api.routes.auth import router as auth_router
from app.api.routes.health import router as health_router
from app.api.routes.subscriptions import router as subscriptions_router
from app.api.routes.support import router as support_router
from app.api.routes.users import router as users_router
from app.integrations.payment_gateway import StripeGateway
from app.services.notification_service import EmailNotifier
from app.utils.envelopes import api_success, api_error
from app.utils.exceptions import AppException
from app.core.db import dispose_engine, init_engine_and_session

_logger = logging.getLogger("mayramao.api")

# Versioned API routers; health probes stay at the root for load balancers
_API_ROUTERS = (auth_router, users_router, subscriptions_router, support_router, admin_router)


def _enable_telemetry(application: FastAPI) -> None:
	"""Wire Azure Monitor when a connection string is configured. Never raises."""
	if not (settings.ENABLE_APP_INSIGHTS and settings.AZURE_MONITOR_CONN_STR):
		return
	try:
		from azure.monitor.opentelemetry import configure_azure_monitor
		from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
		from opentelemetry.instrumentation.logging import LoggingInstrumentor

		configure_azure_monitor(
			connection_string=settings.AZURE_MONITOR_CONN_STR,
			sampling_ratio=settings.SAMPLING_RATIO,
		)
		LoggingInstrumentor().instrument(set_logging_format=True)
		FastAPIInstrumentor.instrument_app(application)
	except Exception as telemetry_exc:
		_logger.warning("Failed to initialize Azure Monitor telemetry: %s", telemetry_exc)
		return
	_logger.info("Azure Monitor telemetry is enabled")


def _trace_id() -> Optional[str]:
	span = get_current_span()
	trace_id_int = span.get_span_context().trace_id if span else 0
	return f"{trace_id_int:032x}" if trace_id_int else None


def _request_fields(request: Request) -> Dict[str, Any]:
	"""Log attributes shared by every record emitted for a request."""
	forwarded_for = request.headers.get("x-forwarded-for")
	return {
		"http.method": request.method,
		"http.route": request.url.path,
		"net.peer.ip": forwarded_for or (request.client.host if request.client else None),
		"http.user_agent": request.headers.get("user-agent"),
		"trace_id": _trace_id(),
	}


app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG)
_enable_telemetry(app)

_origins = settings.cors_origins
app.add_middleware(
	CORSMiddleware,
	allow_origins=_origins,
	# Browsers refuse credentialed requests against a wildcard origin
	allow_credentials="*" not in _origins,
	allow_methods=["*"],
	allow_headers=["*"],
)

_api_prefix = settings.API_PREFIX.rstrip("/")
app.include_router(health_router)
for _router in _API_ROUTERS:
	app.include_router(_router, prefix=_api_prefix)


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
	start_time = time.perf_counter()
	status_code: Optional[int] = None
	try:
		response = await call_next(request)
		status_code = response.status_code
		return response
	finally:
		elapsed_ms = (time.perf_counter() - start_time) * 1000.0
		fields = _request_fields(request)
		fields.update({"http.status_code": status_code, "http.duration_ms": round(elapsed_ms, 2)})
		_logger.info("HTTP request", extra=fields)


@app.on_event("startup")
def on_startup() -> None:
	init_engine_and_session()
	# Tests install fakes on app.state before startup
	if getattr(app.state, "notifier", None) is None:
		app.state.notifier = EmailNotifier.from_settings()
	if getattr(app.state, "gateway", None) is None:
		app.state.gateway = StripeGateway.from_settings()


@app.on_event("shutdown")
async def on_shutdown() -> None:
	await dispose_engine()


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
	if exc.status_code >= 500:
		_logger.error("Application error: %s", exc.message, extra={"error.code": exc.code, **_request_fields(request)})
	return JSONResponse(status_code=exc.status_code, content=api_error(exc.code, exc.message, exc.details))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
	errors = exc.errors()
	first = errors[0] if errors else {}
	field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
	message = f"{field}: {first.get('msg')}" if field else "Invalid request"
	details = [{"loc": list(err.get("loc", ())), "msg": err.get("msg")} for err in errors]
	return JSONResponse(status_code=400, content=api_error("VALIDATION_ERROR", message, details))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
	return JSONResponse(
		status_code=exc.status_code,
		content=api_error("HTTP_ERROR", str(exc.detail)),
		headers=getattr(exc, "headers", None),
	)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
	_logger.exception("Unhandled exception", extra=_request_fields(request))
	return JSONResponse(status_code=500, content=api_error(code="INTERNAL_SERVER_ERROR", message="An unexpected error occurred"))


@app.get("/")
async def root():
	return api_success(service=settings.APP_NAME, status="ok")
