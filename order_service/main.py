"""
Order Service application
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from order_service import __version__
from order_service.api import health, orders
from order_service.api.errors import register_exception_handlers
from order_service.config import settings
from order_service.database import init_db
from order_service.utils.logging import configure_logging, get_logger

configure_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)

app = FastAPI(
    title="Order Service",
    description="Checkout service: charges payment cards and records orders through fulfillment",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(health.router)
app.include_router(orders.router)

# Request metrics at /metrics; probes are left out
Instrumentator(excluded_handlers=["/metrics", "/api/health"]).instrument(app).expose(app)


@app.on_event("startup")
def startup_event():
    init_db()
    logger.info(
        "Service started",
        service=settings.SERVICE_NAME,
        port=settings.SERVICE_PORT,
        payment_gateway=settings.PAYMENT_GATEWAY,
        square_environment=settings.SQUARE_ENVIRONMENT,
        notification_backend=settings.NOTIFICATION_BACKEND,
        transition_policy=settings.STATUS_TRANSITION_POLICY,
    )


@app.on_event("shutdown")
def shutdown_event():
    logger.info("Service stopping", service=settings.SERVICE_NAME)
