"""
ridelog/main.py
============================================
FastAPI Application for the RideLog Service
============================================

Main entry point of the motorcycle trip and fuel tracking service.

Architecture Overview:
---------------------
- REST API: trip lifecycle (/trips), fuel analytics (/fuel), record intake
  (/fuel-logs, /maintenance)
- WebSocket: real-time service logs streamed via /logs
- Errors: domain exceptions (ridelog/Core/errors.py) rendered by one handler
  as {"detail", "error_type", "context"}

Identity:
    Authentication happens upstream. The gateway forwards the resolved user
    as X-User-Id and, for administrators, X-User-Role: admin.
"""

# Environment Configuration
from dotenv import load_dotenv
import os
load_dotenv()

# FastAPI Core
from fastapi import FastAPI, Request, WebSocket
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import asyncio

from ridelog.Core.config import settings
from ridelog.Core.errors import RideLogError, PersistenceError
from ridelog.Controller.Routes import trips, fuel, records

# WebSocket Management (system logs only)
from ridelog.Core import log_ws

# Database
from ridelog.DB.base import Base
from ridelog.DB.session import engine

# ============================================================
# DEPLOYMENT CONFIGURATION #1: ROOT PATH HANDLING
# ============================================================
from starlette.middleware.base import BaseHTTPMiddleware
from fastapi.responses import RedirectResponse

# Extract root path for subdirectory deployment (e.g., /api/v1)
ROOT_PATH = os.getenv("ROOT_PATH", "").strip()
if ROOT_PATH:
    if not ROOT_PATH.startswith("/"):
        ROOT_PATH = "/" + ROOT_PATH
    if ROOT_PATH.endswith("/"):
        ROOT_PATH = ROOT_PATH[:-1]


class StripPrefixMiddleware(BaseHTTPMiddleware):
    """
    Removes ROOT_PATH from incoming request paths so routes stay prefix-free.

    Example:
        ROOT_PATH = "/ridelog"
        Incoming request: /ridelog/trips/12
        FastAPI receives: /trips/12
    """

    def __init__(self, app, prefix: str):
        super().__init__(app)
        self.prefix = prefix

    async def dispatch(self, request, call_next):
        if self.prefix:
            path = request.url.path

            # Redirect bare prefix to prefix with trailing slash
            if path == self.prefix:
                return RedirectResponse(url=self.prefix + "/", status_code=307)

            if path.startswith(self.prefix + "/"):
                request.scope["path"] = path[len(self.prefix):] or "/"

        return await call_next(request)


# ============================================================
# DEPLOYMENT CONFIGURATION #2: DYNAMIC CORS CONFIGURATION
# ============================================================
from fastapi.middleware.cors import CORSMiddleware


def _parse_origins(csv_value: str):
    """
    Parse comma-separated origins into (is_wildcard, origins).

    Examples:
        "*" → (True, ["*"])
        "https://app.com,https://admin.app.com" → (False, ["https://app.com", "https://admin.app.com"])
        "" → (False, [])
    """
    if not csv_value:
        return (False, [])

    csv_value = csv_value.strip()

    if csv_value == "*":
        return (True, ["*"])

    origins = [origin.strip() for origin in csv_value.split(",") if origin.strip()]
    return (False, origins)


_http_allow_all, _http_origins = _parse_origins(
    os.getenv("HTTP_ALLOWED_ORIGINS", "*")
)
_ws_allow_all, _ws_origins = _parse_origins(
    os.getenv("WS_ALLOWED_ORIGINS", "*")
)


# ============================================================
# INSTANCE IDENTIFICATION MIDDLEWARE
# ============================================================
class InstanceHeaderMiddleware(BaseHTTPMiddleware):
    """
    Adds X-Instance-ID to every response when INSTANCE_ID is set, so requests
    can be traced to a replica behind a load balancer.
    """

    async def dispatch(self, request, call_next):
        response = await call_next(request)

        instance_id = os.getenv("INSTANCE_ID")
        if instance_id:
            response.headers["X-Instance-ID"] = instance_id

        return response


# ============================================================
# APPLICATION LIFESPAN MANAGEMENT
# ============================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup:
        1. Hand the event loop to the log WebSocket manager
        2. SQLite only: create missing tables (PostgreSQL goes through Alembic)
    """
    loop = asyncio.get_running_loop()
    log_ws.log_ws_manager.set_main_loop(loop)

    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)
        print("[STARTUP] SQLite schema ensured")

    print("[STARTUP] ✅ Application initialization complete")

    yield

    print("[SHUTDOWN] 🛑 Application shutdown initiated")


# ============================================================
# APPLICATION INSTANCE CREATION
# ============================================================
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    lifespan=lifespan
)


# ============================================================
# MIDDLEWARE REGISTRATION
# ============================================================
# IMPORTANT: Middlewares are executed in REVERSE order of registration
# (last registered = first executed)

# 1. Root Path Handler (if subdirectory deployment is configured)
if ROOT_PATH:
    app.add_middleware(StripPrefixMiddleware, prefix=ROOT_PATH)

# 2. Instance Identification
app.add_middleware(InstanceHeaderMiddleware)

# 3. CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=_http_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================
# EXCEPTION HANDLERS
# ============================================================
@app.exception_handler(RideLogError)
async def ridelog_error_handler(request: Request, exc: RideLogError):
    """Render any domain error with the status code it carries."""
    if isinstance(exc, PersistenceError):
        log_ws.log_from_thread(
            f"[API] {request.method} {request.url.path} failed: {exc.message}",
            msg_type="error"
        )

    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and query parameters answer 400, not FastAPI's default 422."""
    return JSONResponse(
        status_code=400,
        content=jsonable_encoder({
            "detail": "Request validation failed",
            "error_type": "ValidationError",
            "context": {"errors": exc.errors()},
        })
    )


# ============================================================
# HEALTH CHECK ENDPOINT
# ============================================================
@app.get("/health")
def health():
    """Liveness check for the load balancer or orchestrator."""
    return {"status": "ok"}


# ============================================================
# REST API ROUTE REGISTRATION
# ============================================================
app.include_router(trips.router, prefix="/trips", tags=["trips"])
app.include_router(fuel.router, prefix="/fuel", tags=["fuel"])
app.include_router(records.fuel_logs_router, prefix="/fuel-logs", tags=["fuel-logs"])
app.include_router(records.maintenance_router, prefix="/maintenance", tags=["maintenance"])


# ============================================================
# WEBSOCKET ENDPOINTS
# ============================================================
async def socket_handler(ws: WebSocket, manager):
    """
    Generic WebSocket lifecycle: origin check, register, read loop, cleanup.

    Connections from origins outside WS_ALLOWED_ORIGINS are closed with 403.
    """
    origin = ws.headers.get("origin")

    if (not _ws_allow_all) and (origin not in _ws_origins):
        print(f"[WS] ❌ Connection rejected - unauthorized origin: {origin}")
        await ws.close(code=403)
        return

    await manager.register(ws)

    try:
        while True:
            message = await ws.receive_text()
            await manager.handle_message(ws, message)
    except Exception as e:
        print(f"[WS] Connection closed: {e}")
    finally:
        manager.unregister(ws)


@app.websocket("/logs")
async def websocket_logs(ws: WebSocket):
    """
    WebSocket endpoint for streaming real-time service logs.

    Message Format:
        {
            "msg_type": "log" | "error" | "warning",
            "message": "Log message content",
            "timestamp": "2025-12-01T10:30:00+00:00"
        }
    """
    await socket_handler(ws, log_ws.log_ws_manager)


# ============================================================
# API INFORMATION ENDPOINT
# ============================================================
@app.get("/api")
def api_info():
    """Service status, enabled features and endpoint map."""
    return {
        "status": "online",
        "version": settings.PROJECT_VERSION,
        "architecture": "REST + WebSocket logs",
        "features": {
            "analytics_cache_ttl_s": {
                "combined": settings.CACHE_COMBINED_TTL_S,
                "efficiency": settings.CACHE_ANALYTICS_TTL_S,
                "cost_analysis": settings.CACHE_ANALYTICS_TTL_S,
            },
            "default_tank_capacity_l": settings.DEFAULT_TANK_CAPACITY_L,
            "websockets": ["/logs"],
            "instance_tracking": bool(os.getenv("INSTANCE_ID"))
        },
        "endpoints": {
            "trips": "/trips/*",
            "fuel": "/fuel/*",
            "fuel_logs": "/fuel-logs",
            "maintenance": "/maintenance/*",
            "logs": "/logs (WebSocket)",
            "health": "/health"
        }
    }
