from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy import text

from ruya.db.base import get_db
from ruya.core.config import settings
from ruya.core.logging import (
    bind_request_context,
    clear_request_context,
    configure_logging,
    get_logger,
)
from ruya.routers import dreams as dreams_router
from ruya.routers import stats as stats_router
from ruya.core.errors import (
    RuyaException,
    ruya_exception_handler,
    validation_exception_handler,
    unhandled_exception_handler,
)

configure_logging(settings)
logger = get_logger(__name__)

if settings.admin_token_is_insecure:
    logger.warning(
        "insecure_admin_token",
        hint="ADMIN_TOKEN is unset and the public default is in use; set it before deploying.",
    )

app = FastAPI(
    title="Ruya API",
    description=(
        "**Dream submission and interpretation service**\n\n"
        "Visitors submit dreams through a public endpoint; an administrator "
        "holding the shared admin token reviews, interprets and publishes them.\n\n"
        "All responses follow the `{success, data, error, code, pagination}` envelope."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_log_context(request: Request, call_next):
    clear_request_context()
    bind_request_context(method=request.method, path=request.url.path)
    try:
        return await call_next(request)
    finally:
        clear_request_context()


# --- Exception handlers (most specific first) ---
app.add_exception_handler(RuyaException, ruya_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# --- Routers ---
app.include_router(dreams_router.router)
app.include_router(stats_router.router)


@app.get("/health", tags=["health"], summary="Health check")
def health(db: Session = Depends(get_db)):
    """
    Returns `{"status": "ok", "db": "ok"}` when both the API and the database
    are reachable. Returns HTTP 503 if the DB is down.
    Used by Railway / Render for liveness probes.
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = "ok"
    except SQLAlchemyError:
        logger.warning("health_db_unreachable")
        db_status = "unreachable"

    if db_status != "ok":
        return JSONResponse(
            status_code=503,
            content={"status": "error", "db": db_status},
        )
    return {"status": "ok", "db": "ok", "env": settings.APP_ENV}
