import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.dispatch.api.v1.routes_ambulances import router as ambulances_router_v1
from src.dispatch.api.v1.routes_drivers import router as drivers_router_v1
from src.dispatch.api.v1.routes_incidents import router as incidents_router_v1
from src.dispatch.api.v1.routes_medics import router as medics_router_v1
from src.dispatch.api.v1.routes_system import router as system_router_v1
from src.dispatch.api.v1.routes_users import router as users_router_v1
from src.dispatch.config import DEFAULT_JWT_SECRET, settings
from src.dispatch.errors import DispatchError
from src.dispatch.infra.db.bootstrap import init_database

logging.basicConfig(
    level=settings.log_level.upper(),
    stream=sys.stdout,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan.

    On startup, binds the engine to DATABASE_URL and, unless
    CREATE_TABLES_ON_STARTUP is turned off, creates any missing tables.
    """

    init_database()
    if settings.jwt_secret == DEFAULT_JWT_SECRET:
        logger.warning("JWT_SECRET is not set; tokens are signed with the development default")
    yield


app = FastAPI(title="Ambulance Dispatch API", lifespan=lifespan)


# CORS configuration – permissive by default for development. Tighten via
# CORS_ALLOW_ORIGINS in production deployments.
allow_origins = [origin.strip() for origin in settings.cors_allow_origins.split(",") if origin.strip()] or ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_body(message: str, error=None) -> dict:
    body = {"message": message}
    if error is not None:
        body["error"] = error
    return body


@app.exception_handler(DispatchError)
async def dispatch_error_handler(request: Request, exc: DispatchError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message, exc.error))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = "; ".join(
        "{}: {}".format(".".join(str(part) for part in err.get("loc", ())), err.get("msg", ""))
        for err in exc.errors()
    )
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_error_body("Invalid request", details))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=_error_body(str(exc.detail)), headers=exc.headers)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("Server error"),
    )


@app.get("/health", tags=["system"])
async def health_check() -> dict:
    """Basic liveness check for the API root."""
    return {"status": "ok"}


# Versioned API routers
app.include_router(system_router_v1, prefix="/api/v1")
app.include_router(users_router_v1, prefix="/api/v1")
app.include_router(drivers_router_v1, prefix="/api/v1")
app.include_router(medics_router_v1, prefix="/api/v1")
app.include_router(ambulances_router_v1, prefix="/api/v1")
app.include_router(incidents_router_v1, prefix="/api/v1")
