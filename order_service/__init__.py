"""
Order Service - checkout, payment and order lifecycle
"""

__version__ = "1.0.0"
