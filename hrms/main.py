import time
import logging
from fastapi import FastAPI, Request, Depends
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from sqlalchemy.ext.asyncio import AsyncSession  # type: ignore
from dotenv import load_dotenv
import os

# Load env vars
load_dotenv()

from hrms.routes import auth, employees, departments, positions, leave_policies, leave_requests, leave_balances, audit_logs
from hrms.db import get_db, init_db, close_db, ping_db
from hrms.errors import AppError
from hrms.utils.logging_config import setup_logging

# Configure logging (file + console) on import
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
setup_logging(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")
CREATE_TABLES_ON_STARTUP = os.getenv("CREATE_TABLES_ON_STARTUP", "true").lower() in ("1", "true", "yes")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: create missing tables unless migrations own the schema
    if CREATE_TABLES_ON_STARTUP:
        try:
            await init_db()
        except Exception as e:
            err_msg = str(e).lower()
            if "unknown database" in err_msg or "1049" in err_msg or "does not exist" in err_msg:
                logger.warning("Database not found; create it and run scripts/create_tables.py.")
            else:
                raise
    logger.info("Application started")
    yield
    # Shutdown
    await close_db()
    logger.info("Application shutdown")


app = FastAPI(title="HR Management System", lifespan=lifespan)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every HTTP request: method, path, status, duration."""
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %s %.2fms",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
    )
    return response


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"status": "error", "message": exc.message, "code": exc.code},
        headers=exc.headers,
    )


# CORS Configuration
origins = [FRONTEND_URL]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    return {"message": "HR Management System API is running"}


@app.get("/api/health")
async def health(db: AsyncSession = Depends(get_db)):
    try:
        await ping_db(db)
    except Exception:
        logger.exception("Health check failed")
        return JSONResponse(
            status_code=503,
            content={"status": "Service Unavailable", "database": "Disconnected"},
        )
    return {"status": "OK", "database": "Connected"}


# Include Routers
app.include_router(auth.router)
app.include_router(employees.router)
app.include_router(departments.router)
app.include_router(positions.router)
app.include_router(leave_policies.router)
app.include_router(leave_requests.router)
app.include_router(leave_balances.router)
app.include_router(audit_logs.router)
