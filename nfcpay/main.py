from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import TimeoutError as SQLAlchemyTimeoutError
from nfcpay.api.v1.routes import router as api_router
from nfcpay.core.config import get_settings, parse_cors_origins
import logging
import time
from nfcpay.core.database import Base, engine, SessionLocal
from nfcpay.core.errors import ErrorKind, NFCPayError, NotFoundError
from nfcpay.core.logging import configure_logging
from nfcpay.middlewares.rate_limit import limiter
from nfcpay.services.merchants import seed_default_merchants


settings = get_settings()

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
_started_at = time.time()

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.AUTHORIZATION: 403,
    ErrorKind.STATE: 409,
    ErrorKind.LIMIT_EXCEEDED: 422,
    ErrorKind.PERSISTENCE: 503,
}


def status_for(exc: NFCPayError) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    return STATUS_BY_KIND.get(exc.kind, 400)


@app.exception_handler(NFCPayError)
async def nfcpay_error_handler(request: Request, exc: NFCPayError):
    status_code = status_for(exc)
    log = logger.error if status_code >= 500 else logger.warning
    log("%s %s rejected with %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=status_code, content={"detail": exc.to_dict()})


@app.exception_handler(SQLAlchemyTimeoutError)
async def sqlalchemy_timeout_handler(request: Request, exc: SQLAlchemyTimeoutError):
    logger.warning("Database pool timeout on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=503,
        content={"detail": "Service is busy. Please retry in a moment."},
    )


allow_origins = parse_cors_origins(settings.cors_origins or "")
logger.info("CORS allow_origins=%s", allow_origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.api_v1_prefix)


def _seed_merchants() -> None:
    db = SessionLocal()
    try:
        seed_default_merchants(db)
    except Exception as exc:
        logger.warning("Merchant seeding failed: %s", exc)
    finally:
        db.close()


@app.on_event("startup")
def ensure_tables():
    if settings.auto_create_tables:
        # Optional local fallback for fresh environments.
        try:
            Base.metadata.create_all(bind=engine)
        except Exception as exc:
            logger.warning("DB unavailable on startup, skipping table creation: %s", exc)
    if settings.seed_merchants:
        _seed_merchants()


@app.get("/")
def root():
    return {"status": "ok"}


@app.get("/healthz")
def healthz():
    # Liveness: process is up.
    return {
        "status": "ok",
        "uptime_seconds": int(max(0, time.time() - _started_at)),
        "service": settings.app_name,
    }


@app.get("/readyz")
def readyz():
    # Readiness: database is reachable.
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        return {
            "status": "ready",
            "uptime_seconds": int(max(0, time.time() - _started_at)),
        }
    except Exception as exc:
        logger.warning("Readiness DB check failed: %s", exc)
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "detail": "database_unavailable"},
        )
    finally:
        db.close()
