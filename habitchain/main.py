import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy import text

from habitchain.db.base import SessionLocal, get_db
from habitchain.core.config import settings
from habitchain.core.logging_config import configure_logging
from habitchain.routers import badges as badges_router
from habitchain.routers import habits as habits_router
from habitchain.routers import users as users_router
from habitchain.services.badge_catalog import seed_default_badges
from habitchain.core.errors import (
    HabitChainException,
    habitchain_exception_handler,
    validation_exception_handler,
    unhandled_exception_handler,
)

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.SEED_DEFAULT_BADGES:
        db = SessionLocal()
        try:
            added = seed_default_badges(db)
            logger.info("Badge catalog ready (%d added)", added)
        except Exception:
            logger.exception("Seeding the badge catalog failed")
            raise
        finally:
            db.close()
    yield


app = FastAPI(
    title="HabitChain API",
    description=(
        "**Habit streaks, completion rates and achievement badges.**\n\n"
        "Every check-in refreshes the habit's streak and evaluates all badges "
        "the user does not own yet.\n\n"
        "All error responses follow the `{code, message, details}` envelope."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Exception handlers (most specific first) ---
app.add_exception_handler(HabitChainException, habitchain_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# --- Routers ---
app.include_router(habits_router.router)
app.include_router(users_router.router)
app.include_router(badges_router.router)


@app.get("/health", tags=["health"], summary="Health check")
def health(db: Session = Depends(get_db)):
    """
    Returns `{"status": "ok", "db": "ok"}` when both the API and the database
    are reachable. Returns HTTP 503 if the DB is down.
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = "ok"
    except Exception:
        logger.exception("Health check: database unreachable")
        db_status = "unreachable"

    if db_status != "ok":
        return JSONResponse(
            status_code=503,
            content={"status": "error", "db": db_status},
        )
    return {"status": "ok", "db": "ok", "env": settings.APP_ENV}
