"""
Repositories package
"""
from order_service.repositories.order_repository import OrderRepository

__all__ = ["OrderRepository"]
