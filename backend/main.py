from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional
import logging
import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings
from database import Base, build_engine, build_session_factory
import models  # noqa: F401  (registers every table on Base.metadata)
import routers.audit as audit
import routers.auth as auth
import routers.close_cash as close_cash
import routers.customers as customers
import routers.orders as orders
import routers.payments as payments
import routers.receipts as receipts
import routers.register as register
import routers.register_legacy as register_legacy
from scheduler import build_scheduler
from utils.formatting import utcnow

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings):
    level = getattr(logging, settings.log_level, logging.INFO)
    root = logging.getLogger()
    root.setLevel(level)
    # create_app can run more than once in a process (tests); don't stack handlers
    for handler in list(root.handlers):
        if getattr(handler, "_laundry_handler", False):
            root.removeHandler(handler)

    if settings.log_dir:
        os.makedirs(settings.log_dir, exist_ok=True)  # Create the log directory if it doesn't exist
        # Create a unique log file name based on current date/time
        current_time_str = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        file_handler = logging.FileHandler(os.path.join(settings.log_dir, f"app_{current_time_str}.log"), mode='a')
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        file_handler._laundry_handler = True
        root.addHandler(file_handler)

    # Also output logs to the console
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    console_handler._laundry_handler = True
    root.addHandler(console_handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    if settings.auto_create_tables:
        # Create database tables
        Base.metadata.create_all(bind=app.state.engine)

    scheduler = None
    if settings.enable_audit_cleanup_job:
        scheduler = build_scheduler(settings, app.state.session_factory)
        scheduler.start()

    logger.info("Application started")
    try:
        yield
    finally:
        if scheduler is not None:
            scheduler.shutdown(wait=False)
        app.state.engine.dispose()
        logger.info("Application stopped")


def _validation_message(error: dict) -> str:
    message = error.get("msg", "Invalid value")
    # Messages raised from our own validators come back prefixed by pydantic
    return message.removeprefix("Value error, ")


def register_exception_handlers(app: FastAPI):
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        details = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
                "message": _validation_message(err),
            }
            for err in exc.errors()
        ]
        error = details[0]["message"] if len(details) == 1 else "Validation failed"
        return JSONResponse(status_code=400, content={"error": error, "details": details})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings)

    app = FastAPI(title="Laundry Management API", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = build_engine(settings)
    app.state.session_factory = build_session_factory(app.state.engine)

    # Enable CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def custom_openapi():
        if app.openapi_schema:
            return app.openapi_schema
        openapi_schema = get_openapi(
            title="Laundry Management API",
            version="1.0.0",
            description="API for the Laundry Management System",
            routes=app.routes,
        )
        openapi_schema.setdefault("components", {})["securitySchemes"] = {
            "BearerAuth": {
                "type": "http",
                "scheme": "bearer",
                "bearerFormat": "JWT",
            }
        }
        # Apply security globally to all endpoints
        openapi_schema["security"] = [{"BearerAuth": []}]
        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi
    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(customers.router)
    app.include_router(orders.router)
    app.include_router(payments.router)
    app.include_router(receipts.router)
    app.include_router(register.router)
    app.include_router(register_legacy.router)
    app.include_router(close_cash.router)
    app.include_router(audit.router)

    @app.get("/api/health")
    def health():
        return {"status": "OK", "timestamp": utcnow().isoformat()}

    logger.info("Application starting up...")
    return app


app = create_app()
