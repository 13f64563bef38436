from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.requests import Request

from app.api import auth, profiles, webhooks
from app.core.config import Settings, get_settings, settings
from app.core.logger import DEFAULT_LOG_DIR, api_logger, configure_logging, logger
from app.core.responses import standard_response
from app.db.pool import Database
from app.db.stores import PostgresPaymentEventStore
from app.services.payments import PaymentEventProcessor


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(
        level=settings.LOG_LEVEL,
        log_dir=(settings.LOG_DIR or DEFAULT_LOG_DIR) if settings.LOG_TO_FILE else None,
        backup_count=settings.LOG_BACKUP_COUNT,
        secrets=settings.secret_values()
    )

    logger.info("=" * 50)
    logger.info("Starting Mini App backend...")
    logger.info("=" * 50)

    for name in settings.missing_secrets():
        logger.error(f"✗ {name} is not set, requests needing it will be rejected")

    if settings.SIGNATURE_DEV_MODE:
        logger.warning("✗ SIGNATURE_DEV_MODE is on: unconfigured verifiers accept unsigned input")

    settings.ensure_configured()

    app.state.db = None
    app.state.payment_processor = None

    if settings.DB_ENABLED:
        db = Database.from_settings(settings)
        await db.create_session_pool()
        logger.info("✓ Database connected")

        if settings.DB_CREATE_TABLES:
            await db.create_tables()

        app.state.db = db
        app.state.payment_processor = PaymentEventProcessor(PostgresPaymentEventStore(db))

    logger.info("Application started successfully!")

    yield

    logger.info("Shutting down application...")

    if app.state.db is not None:
        await app.state.db.close()
        logger.info("✓ Database disconnected")


app = FastAPI(
    title="Mini App Backend",
    description="Telegram Mini App auth and payment webhooks",
    version="1.0.0",
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router, tags=["Telegram"])
app.include_router(profiles.router, tags=["Profiles"])
app.include_router(
    webhooks.router,
    prefix="/webhook",
    tags=["Payment Webhooks"]
)


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "miniapp-backend"}


@app.get("/status", tags=["Status"])
async def get_status(request: Request, app_settings: Settings = Depends(get_settings)):
    """Database health and which verifiers have their secrets"""
    db = getattr(request.app.state, "db", None)

    return {
        "status": "running",
        "database": "connected" if db is not None and await db.health_check() else "disconnected",
        "verifiers": {
            "telegram": bool(app_settings.bot_token),
            "stripe": bool(app_settings.stripe_webhook_secret),
            "paystack": bool(app_settings.paystack_secret_key),
        },
        "dev_mode": app_settings.SIGNATURE_DEV_MODE
    }


@app.exception_handler(HTTPException)
async def http_exception_handler(_: Request, exc: HTTPException):
    return standard_response(
        success=False,
        message=str(exc.detail),
        errors=[str(exc.detail)],
        status_code=exc.status_code
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    ]
    api_logger.info(f"Invalid request to {request.url.path}: {errors}")

    return standard_response(
        success=False,
        message="invalid_request",
        errors=errors,
        status_code=400
    )
