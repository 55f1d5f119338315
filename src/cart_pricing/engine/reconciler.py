"""
Pricing reconciler - reprices cart line items and reconciles PRICING annotations.

Before checkout carts go through DefaultCartCalculator (static list prices,
no annotations). From checkout onward PricingReconciler reprices the items
selected by ChangeSetResolver through the configured price source:
- Whole batch unavailable: one cart-scoped error, no prices change
- SKU missing from the result: one error for that item, its prices kept
- Otherwise: unit and extended prices set on the item
Failures end up as annotations; calculate() does not raise for them.
"""
import logging
from typing import Optional, Protocol

from ..config.settings import Settings, get_settings
from . import messages
from .annotations import ErrorAnnotationStore
from .change_set import ChangeSetResolver
from .models import (
    UNAVAILABLE,
    Annotation,
    AnnotationKind,
    Cart,
    CartStage,
    ChangeDescriptor,
    LineItem,
    Severity,
)
from .price_sources import PriceSource, StaticPriceSource, build_price_source

logger = logging.getLogger(__name__)


class CartCalculator(Protocol):
    def calculate(
        self,
        cart: Cart,
        stage: CartStage,
        changes: Optional[ChangeDescriptor] = None,
        locale: Optional[str] = None,
    ) -> None:
        ...


class DefaultCartCalculator:
    """Prices every item from the static list-price table; unknown SKUs are left as-is."""

    def __init__(self, price_source: Optional[StaticPriceSource] = None):
        self.price_source = price_source or StaticPriceSource()

    def calculate(self, cart, stage, changes=None, locale=None):
        skus = {item.sku for item in cart.items}
        if not skus:
            return
        prices = self.price_source.lookup(skus)
        for item in cart.items:
            if item.sku in prices:
                item.apply_price(prices[item.sku])


class PricingReconciler:
    """Reprices changed items from checkout onward against a price source."""

    def __init__(
        self,
        price_source: PriceSource,
        default_calculator: Optional[CartCalculator] = None,
        resolver: Optional[ChangeSetResolver] = None,
        default_locale: str = messages.FALLBACK_LOCALE,
    ):
        self.price_source = price_source
        self.default_calculator = default_calculator or DefaultCartCalculator()
        self.resolver = resolver or ChangeSetResolver()
        self.default_locale = default_locale

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> 'PricingReconciler':
        settings = settings or get_settings()
        return cls(
            price_source=build_price_source(settings),
            # The default path never invents prices for unknown SKUs
            default_calculator=DefaultCartCalculator(
                StaticPriceSource(prices=StaticPriceSource.from_settings(settings).prices)
            ),
            default_locale=settings.default_locale,
        )

    def calculate(
        self,
        cart: Cart,
        stage: CartStage,
        changes: Optional[ChangeDescriptor] = None,
        locale: Optional[str] = None,
    ) -> None:
        """
        Reprice the cart in place.

        Args:
            cart: Cart to update (items and annotations mutated)
            stage: Current cart stage
            changes: Buyer edits since the last pass; None means a full pass
            locale: Locale for annotation messages; defaults to the configured one
        """
        if stage == CartStage.PRE_CHECKOUT:
            self.default_calculator.calculate(cart, stage, changes, locale)
            return

        if cart.stage != stage:
            logger.warning(
                "Cart stage %s disagrees with requested stage %s; using %s",
                cart.stage.value, stage.value, stage.value
            )

        locale = locale or self.default_locale
        targets = self.resolver.resolve(cart, changes, stage=stage)
        if not targets:
            logger.debug("No items to reprice")
            return

        # One lookup per SKU; every target item with that SKU gets the price
        by_sku: dict[str, LineItem] = {}
        for item in targets:
            by_sku[item.sku] = item

        prices = self.price_source.lookup(set(by_sku))
        store = ErrorAnnotationStore(cart)

        if prices is UNAVAILABLE:
            logger.warning("Prices unavailable for %d SKU(s); cart left unpriced", len(by_sku))
            store.add(Annotation(
                kind=AnnotationKind.PRICING,
                severity=Severity.ERROR,
                message=messages.general_failure(locale),
            ))
            return

        missing = 0
        for item in targets:
            price = prices.get(item.sku)
            if price is None:
                missing += 1
                # An item without an id yields an annotation with no related item,
                # indistinguishable from a cart-scoped one. Such items only take part
                # in full passes, which clear every PRICING annotation first.
                store.add(Annotation(
                    kind=AnnotationKind.PRICING,
                    severity=Severity.ERROR,
                    message=messages.item_unavailable(item.sku, locale),
                    related_item_id=item.id,
                ))
                continue
            item.apply_price(price)

        logger.info(
            "Repriced %d of %d item(s) across %d SKU(s)",
            len(targets) - missing, len(targets), len(by_sku)
        )


def select_calculator(
    stage: CartStage,
    default: CartCalculator,
    reconciler: CartCalculator,
) -> CartCalculator:
    """Pick the calculator responsible for a cart stage."""
    if stage == CartStage.PRE_CHECKOUT:
        return default
    return reconciler


class StageDispatchCalculator:
    """Routes each calculation to the default calculator or the reconciler by stage."""

    def __init__(self, default: CartCalculator, reconciler: CartCalculator):
        self.default = default
        self.reconciler = reconciler

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> 'StageDispatchCalculator':
        reconciler = PricingReconciler.from_settings(settings)
        return cls(default=reconciler.default_calculator, reconciler=reconciler)

    def calculate(self, cart, stage, changes=None, locale=None):
        calculator = select_calculator(stage, self.default, self.reconciler)
        calculator.calculate(cart, stage, changes, locale)
