"""HTTP endpoints for stock quotes."""

from __future__ import annotations

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from .errors import InvalidRequest
from .models import StockResult
from .service import StockDataService

logger = logging.getLogger(__name__)


def create_stock_router(service: StockDataService) -> APIRouter:
    """Create the stock API router bound to a service instance.

    This factory pattern lets us inject the StockDataService without globals.
    """
    router = APIRouter(prefix="/api", tags=["stocks"])

    @router.get("/stock")
    async def get_stock(symbol: str | None = None) -> JSONResponse:
        """Current quote plus all-time high for one symbol.

        Always 200 with a well-formed payload when a symbol is given; check
        isLive / isDemo to tell real data from the synthetic fallback. A
        missing symbol is the only 400.
        """
        try:
            result = await service.query_stock(symbol)
        except InvalidRequest as e:
            logger.info("Rejected stock request: %s", e)
            return JSONResponse(status_code=400, content=StockResult.failed(str(e)).to_dict())
        return JSONResponse(content=result.to_dict())

    @router.get("/market-status")
    async def get_market_status() -> dict:
        """Whether NSE is in session and how often clients should poll."""
        return service.market_status()

    @router.get("/symbols")
    async def get_symbols() -> list[dict]:
        return [
            {"symbol": i.symbol, "label": i.label, "type": i.kind}
            for i in service.registry.supported()
        ]

    return router
