"""
Pydantic request/response models and their mapping onto engine dataclasses.
"""
from decimal import Decimal
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ..engine.models import (
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


class LineItemModel(BaseModel):
    id: Optional[str] = None
    sku: str = Field(min_length=1)
    quantity: int = Field(gt=0)
    list_price: Optional[Decimal] = None
    sale_price: Optional[Decimal] = None
    total_list_price: Optional[Decimal] = None
    total_sale_price: Optional[Decimal] = None


class AnnotationModel(BaseModel):
    kind: AnnotationKind
    severity: Severity
    message: str
    related_item_id: Optional[str] = None


class CartModel(BaseModel):
    id: Optional[str] = None
    stage: CartStage
    items: list[LineItemModel] = []
    annotations: list[AnnotationModel] = []


class ChangedItemRef(BaseModel):
    """A changed item, referenced by its position in the cart's item list."""
    model_config = ConfigDict(extra="forbid")

    item_index: int = Field(ge=0)


class RemovedItemRef(BaseModel):
    model_config = ConfigDict(extra="forbid")

    removed: bool = True


class ChangesModel(BaseModel):
    changes: list[Union[ChangedItemRef, RemovedItemRef]] = []
    checkout_started: bool = False


class CalculateRequest(BaseModel):
    cart: CartModel
    changes: Optional[ChangesModel] = None
    locale: Optional[str] = None


def to_cart(model: CartModel) -> Cart:
    return Cart(
        id=model.id,
        stage=model.stage,
        items=[LineItem(**item.model_dump()) for item in model.items],
        annotations=[Annotation(**a.model_dump()) for a in model.annotations],
    )


def to_change_descriptor(model: ChangesModel, cart: Cart) -> ChangeDescriptor:
    """Resolve item indexes against the cart; raises ValueError for a bad index."""
    records = []
    for change in model.changes:
        if isinstance(change, ChangedItemRef):
            if change.item_index >= len(cart.items):
                raise ValueError(
                    f"Change refers to item {change.item_index}, "
                    f"cart has {len(cart.items)} item(s)"
                )
            records.append(ItemChanged(cart.items[change.item_index]))
        else:
            records.append(ItemRemoved())
    return ChangeDescriptor(changes=records, checkout_started=model.checkout_started)


def from_cart(cart: Cart) -> CartModel:
    return CartModel(
        id=cart.id,
        stage=cart.stage,
        items=[LineItemModel(**item.__dict__) for item in cart.items],
        annotations=[AnnotationModel(**a.__dict__) for a in cart.annotations],
    )
