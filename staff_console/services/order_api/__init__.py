"""
Order API Factory

Returns the Mock or HTTP order API client based on ENV_MODE.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from functools import lru_cache

from staff_console.core.config import get_settings
from staff_console.services.order_api.base import BaseOrderAPI, OrderAPIError
from staff_console.services.order_api.mock import MockOrderAPI
from staff_console.services.order_api.http import HttpOrderAPI

logger = logging.getLogger(__name__)


@lru_cache()
def get_order_api() -> BaseOrderAPI:
    """Get the configured order API client."""
    settings = get_settings()

    if settings.is_development:
        logger.info("Order API: Using MockOrderAPI (development mode)")
        return MockOrderAPI(
            failure_rate=settings.mock_failure_rate,
            min_latency=settings.mock_min_latency,
            max_latency=settings.mock_max_latency,
        )
    else:
        logger.info(f"Order API: Using HttpOrderAPI ({settings.env_mode.value} mode)")
        return HttpOrderAPI(
            base_url=settings.order_api_base_url,
            token=settings.order_api_token,
            timeout=settings.order_api_timeout_seconds,
        )


def reset_order_api() -> None:
    """Clear the cached client instance."""
    get_order_api.cache_clear()


__all__ = [
    "get_order_api",
    "reset_order_api",
    "BaseOrderAPI",
    "OrderAPIError",
    "MockOrderAPI",
    "HttpOrderAPI",
]
