"""
Liveness and service banner endpoints
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from order_service import __version__
from order_service.config import settings
from order_service.database import get_db
from order_service.payments import get_payment_gateway
from order_service.payments.gateway import PaymentGateway
from order_service.utils.logging import get_logger

router = APIRouter(tags=["health"])
logger = get_logger(__name__)


def _database_status(db: Session) -> str:
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning("Database health check failed", error=str(e))
        return f"unhealthy: {e}"
    return "connected"


@router.get("/api/health")
def health_check(
    db: Session = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    """Report database connectivity and the active payment gateway"""
    database = _database_status(db)
    return {
        "service": settings.SERVICE_NAME,
        "status": "healthy" if database == "connected" else "unhealthy",
        "database": database,
        "paymentGateway": gateway.name,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/")
def root():
    return {
        "service": settings.SERVICE_NAME,
        "status": "online",
        "version": __version__,
        "docs": "/docs",
    }
