"""
FastAPI application with optional New Relic APM, CORS, lifespan, error mapping and routers.
"""
import logging
import os

# New Relic must be initialized BEFORE any other imports that it instruments.
if os.getenv("NEW_RELIC_LICENSE_KEY"):
    import newrelic.agent
    newrelic.agent.initialize("newrelic.ini")

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from payment_gateway.config import get_settings
from payment_gateway.database import close_db
from payment_gateway.exceptions import (
    InvalidPaymentStateError,
    PaymentNotFoundError,
    PaymentValidationError,
)
from payment_gateway.redis_client import get_redis, close_redis
from payment_gateway.routers import payments

settings = get_settings()
logger = logging.getLogger(__name__)

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting %s [%s]", settings.app_name, settings.env)
    await get_redis()          # warm up connection pool
    yield
    await close_redis()
    await close_db()
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.app_name,
    version="1.0.0",
    description="Payment lifecycle service: creation, processing, refunds, cancellation and statistics",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Domain error mapping
@app.exception_handler(PaymentValidationError)
async def validation_error_handler(request: Request, exc: PaymentValidationError):
    logger.info("Rejected payment input on %s: %s (%s)", request.url.path, exc.message, exc.field)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": exc.message, "field": exc.field},
    )


@app.exception_handler(PaymentNotFoundError)
async def not_found_handler(request: Request, exc: PaymentNotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(InvalidPaymentStateError)
async def invalid_state_handler(request: Request, exc: InvalidPaymentStateError):
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={
            "detail": exc.message,
            "current_status": exc.current_status,
            "operation": exc.operation,
        },
    )


# Global error handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s: %s", request.url, exc, exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# Health check (no auth)
@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok"}


# Register routers
app.include_router(payments.router)
