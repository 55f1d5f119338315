"""
Error annotation store - maintains the validation annotations of a cart.

Removals are pure filters over the existing list; the store swaps the
filtered list into the cart, so surviving annotations keep their order.
"""
import logging
from typing import Iterable

from .models import Annotation, AnnotationKind, Cart, LineItem

logger = logging.getLogger(__name__)


def without_kind(annotations: Iterable[Annotation], kind: AnnotationKind) -> list[Annotation]:
    """Return the annotations whose kind differs from `kind`."""
    return [a for a in annotations if a.kind != kind]


def without_kind_for_item(
    annotations: Iterable[Annotation],
    kind: AnnotationKind,
    item_id: str
) -> list[Annotation]:
    """Return the annotations except those of `kind` related to `item_id`."""
    return [
        a for a in annotations
        if not (a.kind == kind and a.related_item_id is not None and a.related_item_id == item_id)
    ]


class ErrorAnnotationStore:
    """Type- and item-scoped edits of a cart's annotation list."""

    def __init__(self, cart: Cart):
        self.cart = cart

    def remove_all_of_type(self, kind: AnnotationKind):
        before = len(self.cart.annotations)
        self.cart.annotations = without_kind(self.cart.annotations, kind)
        logger.debug("Cleared %d %s annotation(s)", before - len(self.cart.annotations), kind.value)

    def remove_of_type_related_to(self, kind: AnnotationKind, item: LineItem):
        """
        Remove annotations of `kind` attached to `item`.

        An item without an id has never been persisted, so it cannot carry
        earlier annotations; nothing is removed for it.
        """
        if item.id is None:
            return
        self.cart.annotations = without_kind_for_item(self.cart.annotations, kind, item.id)

    def add(self, annotation: Annotation):
        self.cart.annotations.append(annotation)
