"""
MedAI Pharmacy backend.

ARCHITECTURE:
- FastAPI: counter sales, inventory, credit ledger, supplier bills
- SQLite DB: source of truth for all state
- Groq vision model: reads photographed supplier bills into editable rows

Scanned bills are only staged; nothing reaches the catalog until the
pharmacist confirms the reviewed rows.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from medai.api.routes import agencies, analytics, credits, medicines, patients, sales, scans
from medai.core.config import settings
from medai.core.exceptions import BusinessError, PharmacyError, pharmacy_error_handler
from medai.db.init_db import init_db

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and the walk-in patient on startup."""
    logger.info("Initializing database...")
    init_db()
    logger.info("Database initialized")
    yield


app = FastAPI(
    title="MedAI Pharmacy API",
    description="Counter sales, inventory, credit ledger and AI bill scanning for a single pharmacy.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "Origin"],
    max_age=600,
    expose_headers=["Content-Type", "Content-Disposition"],
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


app.add_exception_handler(PharmacyError, pharmacy_error_handler)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    http_exc = BusinessError.server_error(exc)
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})


app.include_router(medicines.router, prefix="/medicines", tags=["medicines"])
app.include_router(patients.router, prefix="/patients", tags=["patients"])
app.include_router(sales.router, tags=["sales"])
app.include_router(credits.router, prefix="/credits", tags=["credits"])
app.include_router(agencies.router, prefix="/agencies", tags=["agencies"])
app.include_router(scans.router, prefix="/scans", tags=["scans"])
app.include_router(analytics.router, prefix="/analytics", tags=["analytics"])


@app.get("/health")
def health():
    return {"status": "ok", "pharmacy": settings.PHARMACY_NAME}
