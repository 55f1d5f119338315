"""
Shared calculator instance for the API routes.
"""
from ..config.settings import get_settings
from ..engine.reconciler import StageDispatchCalculator

settings = get_settings()
calculator = StageDispatchCalculator.from_settings(settings)
