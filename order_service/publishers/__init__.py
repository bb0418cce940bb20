"""
Publishers package
"""
from order_service.publishers.event_publisher import EventPublisher

__all__ = ["EventPublisher"]
