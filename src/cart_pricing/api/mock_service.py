"""
Mock pricing service - FastAPI router mirroring the external pricing contract.

GET /get-sales-prices?skus=["SKU A","SKU B"] returns {"SKU A": 100.00, ...}
for the SKUs the static table knows. Point CART_PRICING_SERVICE_URL at it
to exercise remote mode locally.
"""
import json
import logging

from fastapi import APIRouter, HTTPException, Query

from ..engine.price_sources import StaticPriceSource
from .state import settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["mock-pricing"])

# Same table as static mode, but never invents default prices
price_table = StaticPriceSource(prices=StaticPriceSource.from_settings(settings).prices)


def parse_skus(raw: str) -> set[str]:
    """Decode the `skus` query parameter; raises ValueError when malformed."""
    try:
        skus = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"skus is not valid JSON: {e}")
    if not isinstance(skus, list) or not all(isinstance(s, str) and s for s in skus):
        raise ValueError("skus must be a JSON array of non-empty strings")
    return set(skus)


@router.get("/get-sales-prices")
async def get_sales_prices(skus: str = Query(...)):
    """Return prices for the requested SKUs; unknown SKUs are omitted."""
    try:
        requested = parse_skus(skus)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    prices = price_table.lookup(requested)
    logger.debug("Mock pricing served %d of %d SKU(s)", len(prices), len(requested))
    return {sku: float(price) for sku, price in prices.items()}
