"""
Centralized settings for the cart pricing service.

Values come from environment variables with sensible defaults.
"""
import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from pathlib import Path
from typing import Optional


DEFAULT_SERVICE_URL = "https://example.com/get-sales-prices"
DEFAULT_SERVICE_TIMEOUT = 10.0


class PriceSourceMode(str, Enum):
    STATIC = "static"
    REMOTE = "remote"


def get_package_root() -> Path:
    """Get the cart_pricing package directory."""
    return Path(__file__).resolve().parent.parent


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Application settings, fixed for the lifetime of a calculator."""

    source_mode: PriceSourceMode = PriceSourceMode.STATIC
    service_url: str = DEFAULT_SERVICE_URL
    service_timeout: float = DEFAULT_SERVICE_TIMEOUT  # seconds per pricing request

    # Static table behaviour for SKUs it does not know
    price_missing_skus_by_default: bool = False
    default_price: Decimal = Decimal("100.00")

    # Optional CSV (sku,price) extending the built-in static table
    price_table: Optional[Path] = None

    default_locale: str = "en_US"
    log_level: str = "INFO"

    @classmethod
    def load(cls) -> 'Settings':
        """Load settings from the environment."""
        raw_mode = os.environ.get("CART_PRICING_SOURCE", PriceSourceMode.STATIC.value)
        try:
            mode = PriceSourceMode(raw_mode.strip().lower())
        except ValueError:
            raise ValueError(
                f"CART_PRICING_SOURCE must be one of "
                f"{[m.value for m in PriceSourceMode]}, got {raw_mode!r}"
            )

        raw_price = os.environ.get("CART_PRICING_DEFAULT_PRICE", "100.00")
        try:
            default_price = Decimal(raw_price)
        except InvalidOperation:
            raise ValueError(f"CART_PRICING_DEFAULT_PRICE is not a decimal: {raw_price!r}")

        raw_timeout = os.environ.get("CART_PRICING_SERVICE_TIMEOUT", str(DEFAULT_SERVICE_TIMEOUT))
        try:
            service_timeout = float(raw_timeout)
        except ValueError:
            raise ValueError(f"CART_PRICING_SERVICE_TIMEOUT is not a number: {raw_timeout!r}")
        if service_timeout <= 0:
            raise ValueError(f"CART_PRICING_SERVICE_TIMEOUT must be positive, got {service_timeout}")

        table = os.environ.get("CART_PRICING_PRICE_TABLE")
        if table:
            price_table = Path(table)
        else:
            bundled = get_package_root() / 'data' / 'static_prices.csv'
            price_table = bundled if bundled.exists() else None

        return cls(
            source_mode=mode,
            service_url=os.environ.get("CART_PRICING_SERVICE_URL", DEFAULT_SERVICE_URL),
            service_timeout=service_timeout,
            price_missing_skus_by_default=_env_bool("CART_PRICING_DEFAULT_MISSING", False),
            default_price=default_price,
            price_table=price_table,
            default_locale=os.environ.get("CART_PRICING_LOCALE", "en_US"),
            log_level=os.environ.get("CART_PRICING_LOG_LEVEL", "INFO").upper(),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reset_settings():
    """Drop the cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None
