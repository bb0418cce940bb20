#!/usr/bin/env python
"""
Script to run the RabbitMQ notification consumer
"""
from order_service.notifications.consumer import start_consumer

if __name__ == "__main__":
    start_consumer()
