"""Stock data subsystem: live quotes and all-time highs with demo fallback.

Public API:
    StockDataService          - Orchestrates caches, providers and demo fallback
    StockResult               - Quote + optional ATH + isLive/isDemo/error flags
    Quote, AllTimeHigh        - Immutable result dataclasses
    TTLCache                  - Thread-safe time-to-live cache
    InstrumentRegistry        - Symbol -> brokerage token lookup
    create_stock_data_service - Factory that wires providers from the environment
    create_stock_router       - FastAPI router factory for /api/stock
"""

from .api import create_stock_router
from .cache import TTLCache
from .errors import FetchError, InvalidRequest
from .factory import create_stock_data_service
from .instruments import InstrumentRegistry
from .models import AllTimeHigh, Quote, StockResult
from .service import StockDataService

__all__ = [
    "AllTimeHigh",
    "FetchError",
    "InstrumentRegistry",
    "InvalidRequest",
    "Quote",
    "StockDataService",
    "StockResult",
    "TTLCache",
    "create_stock_data_service",
    "create_stock_router",
]
