"""
Price sources - resolve unit prices for a batch of SKUs.

Two modes:
- StaticPriceSource: small fixed table, optionally extended from a CSV
- RemotePriceSource: external pricing service over HTTP

A lookup either returns a SKU -> price mapping (SKUs left out are unpriced)
or UNAVAILABLE when the whole batch failed. Sources never raise for a
failed lookup and never retry.
"""
import json
import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional, Protocol

import pandas as pd
import requests
from requests.exceptions import Timeout

from ..config.settings import DEFAULT_SERVICE_TIMEOUT, PriceSourceMode, Settings, get_settings
from .models import UNAVAILABLE, PriceLookupResult

logger = logging.getLogger(__name__)


# Built-in prices used when no CSV table is configured
STATIC_PRICES: dict[str, Decimal] = {
    "My SKU 1": Decimal("100.00"),
    "My SKU 2": Decimal("200.00"),
    "My SKU 3": Decimal("300.00"),
}


class PriceSource(Protocol):
    def lookup(self, skus: set[str]) -> PriceLookupResult:
        ...


def load_price_table(path: Path) -> dict[str, Decimal]:
    """Load a `sku,price` CSV into a SKU -> Decimal mapping."""
    if not path.exists():
        raise FileNotFoundError(f"Price table not found at {path}.")

    df = pd.read_csv(path, dtype=str).fillna('')
    df.columns = [c.strip().lower() for c in df.columns]
    missing = {'sku', 'price'} - set(df.columns)
    if missing:
        raise ValueError(f"Price table {path} is missing column(s): {', '.join(sorted(missing))}")

    df['sku'] = df['sku'].str.strip()
    df['price'] = df['price'].str.strip()
    df = df[(df['sku'] != '') & (df['price'] != '')]

    table = {}
    for sku, price in zip(df['sku'], df['price']):
        try:
            table[sku] = Decimal(price)
        except InvalidOperation:
            raise ValueError(f"Price table {path}: invalid price {price!r} for SKU {sku!r}")
    return table


class StaticPriceSource:
    """
    Prices SKUs from a fixed table.

    Unknown SKUs get `default_price` when `price_missing_by_default` is set,
    otherwise they are left out of the result.
    """

    def __init__(
        self,
        prices: Optional[dict[str, Decimal]] = None,
        price_missing_by_default: bool = False,
        default_price: Decimal = Decimal("100.00"),
    ):
        self.prices = dict(STATIC_PRICES if prices is None else prices)
        self.price_missing_by_default = price_missing_by_default
        self.default_price = Decimal(default_price)

    @classmethod
    def from_settings(cls, settings: Settings) -> 'StaticPriceSource':
        prices = dict(STATIC_PRICES)
        if settings.price_table is not None:
            prices.update(load_price_table(settings.price_table))
        return cls(
            prices=prices,
            price_missing_by_default=settings.price_missing_skus_by_default,
            default_price=settings.default_price,
        )

    def lookup(self, skus: set[str]) -> PriceLookupResult:
        result = {}
        for sku in skus:
            if sku in self.prices:
                result[sku] = self.prices[sku]
            elif self.price_missing_by_default:
                result[sku] = self.default_price
        return result


class RemotePriceSource:
    """
    Prices SKUs through the external pricing service.

    Sends `GET <url>?skus=<JSON array>` and expects 200 with a JSON object
    mapping SKU to price. Any transport error or timeout, other status, or
    malformed body collapses to UNAVAILABLE. A price must be a finite,
    non-negative number; anything else marks the whole body malformed.
    """

    DEFAULT_TIMEOUT = DEFAULT_SERVICE_TIMEOUT

    def __init__(
        self,
        url: str,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.url = url
        self.session = session or requests.Session()
        self.timeout = timeout

    def lookup(self, skus: set[str]) -> PriceLookupResult:
        if not skus:
            return {}

        params = {"skus": json.dumps(sorted(skus))}
        try:
            response = self.session.get(self.url, params=params, timeout=self.timeout)
        except Timeout:
            logger.warning("Pricing service did not answer within %.1fs", self.timeout)
            return UNAVAILABLE
        except requests.RequestException as e:
            logger.warning("Pricing service request failed: %s", e)
            return UNAVAILABLE

        if response.status_code != 200:
            logger.warning(
                "Pricing service returned status %s for %d SKU(s)",
                response.status_code, len(skus)
            )
            return UNAVAILABLE

        try:
            body = response.json(parse_float=Decimal)
        except ValueError as e:
            logger.warning("Pricing service returned a body that is not JSON: %s", e)
            return UNAVAILABLE

        prices = self._decode_prices(body, skus)
        if prices is UNAVAILABLE:
            logger.warning("Pricing service returned a malformed price mapping")
        return prices

    @staticmethod
    def _decode_prices(body, skus: set[str]) -> PriceLookupResult:
        if not isinstance(body, dict):
            return UNAVAILABLE

        prices = {}
        for sku, value in body.items():
            if sku not in skus or value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, (int, Decimal, str)):
                return UNAVAILABLE
            try:
                price = Decimal(value)
            except InvalidOperation:
                return UNAVAILABLE
            if not price.is_finite() or price < 0:
                return UNAVAILABLE
            prices[sku] = price
        return prices


def build_price_source(settings: Optional[Settings] = None) -> PriceSource:
    """Create the price source selected by configuration."""
    settings = settings or get_settings()
    if settings.source_mode == PriceSourceMode.REMOTE:
        logger.info("Using remote price source at %s", settings.service_url)
        return RemotePriceSource(settings.service_url, timeout=settings.service_timeout)
    logger.info("Using static price source")
    return StaticPriceSource.from_settings(settings)
