"""
Change-set resolution - decides which line items need repricing.
"""
import logging
from typing import Optional

from .annotations import ErrorAnnotationStore
from .models import (
    AnnotationKind,
    Cart,
    CartStage,
    ChangeDescriptor,
    ItemChanged,
    LineItem,
)

logger = logging.getLogger(__name__)


class ChangeSetResolver:
    """
    Resolves the line items to reprice and clears their stale PRICING annotations.

    Decision order:
    1. Pre-checkout carts: nothing to reprice here
    2. No change information, or checkout just started: full pass
    3. Otherwise: only the changed items, in change order
    """

    def resolve(
        self,
        cart: Cart,
        changes: Optional[ChangeDescriptor] = None,
        stage: Optional[CartStage] = None,
    ) -> list[LineItem]:
        """Return the items to reprice; `stage` overrides `cart.stage` when given."""
        stage = stage or cart.stage
        if stage == CartStage.PRE_CHECKOUT:
            return []

        store = ErrorAnnotationStore(cart)

        if changes is None or changes.checkout_started:
            store.remove_all_of_type(AnnotationKind.PRICING)
            logger.debug("Full repricing pass over %d item(s)", len(cart.items))
            return list(cart.items)

        targets = []
        for record in changes.changes:
            if not isinstance(record, ItemChanged):
                # Removed items have nothing left to price
                continue
            targets.append(record.item)
            store.remove_of_type_related_to(AnnotationKind.PRICING, record.item)

        logger.debug(
            "Targeted repricing: %d of %d change record(s) carry an item",
            len(targets), len(changes.changes)
        )
        return targets
