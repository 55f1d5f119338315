"""Configuration subpackage - settings loaded from the environment."""
from .settings import Settings, PriceSourceMode, get_settings, reset_settings

__all__ = ['Settings', 'PriceSourceMode', 'get_settings', 'reset_settings']
