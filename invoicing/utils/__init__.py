"""
Utilities package initialization.
"""
from .logger import get_logger, log_business_event, log_performance, setup_logging
from .hashing import IdentifierEncoder

__all__ = ["get_logger", "log_business_event", "log_performance", "setup_logging", "IdentifierEncoder"]
