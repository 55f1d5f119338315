"""Engine subpackage - cart repricing and annotation reconciliation."""
from .models import (
    UNAVAILABLE,
    Annotation,
    AnnotationKind,
    Cart,
    CartStage,
    ChangeDescriptor,
    ItemChanged,
    ItemRemoved,
    LineItem,
    Severity,
)
from .annotations import ErrorAnnotationStore
from .change_set import ChangeSetResolver
from .price_sources import PriceSource, RemotePriceSource, StaticPriceSource, build_price_source
from .reconciler import (
    CartCalculator,
    DefaultCartCalculator,
    PricingReconciler,
    StageDispatchCalculator,
    select_calculator,
)

__all__ = [
    'UNAVAILABLE', 'Annotation', 'AnnotationKind', 'Cart', 'CartStage',
    'ChangeDescriptor', 'ItemChanged', 'ItemRemoved', 'LineItem', 'Severity',
    'ErrorAnnotationStore', 'ChangeSetResolver',
    'PriceSource', 'RemotePriceSource', 'StaticPriceSource', 'build_price_source',
    'CartCalculator', 'DefaultCartCalculator', 'PricingReconciler',
    'StageDispatchCalculator', 'select_calculator',
]
