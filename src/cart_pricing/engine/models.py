"""
Data models for cart pricing.

Uses dataclasses for structured, type-safe data representation.
Prices are Decimal so extended prices stay exact.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional, Union


class CartStage(str, Enum):
    """Lifecycle stage of a cart."""
    PRE_CHECKOUT = "pre_checkout"
    CHECKOUT = "checkout"


class AnnotationKind(str, Enum):
    PRICING = "pricing"
    INVENTORY = "inventory"
    SHIPPING = "shipping"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass
class LineItem:
    """A single line item in a cart."""
    sku: str
    quantity: int
    id: Optional[str] = None  # None until the item is persisted
    list_price: Optional[Decimal] = None
    sale_price: Optional[Decimal] = None
    total_list_price: Optional[Decimal] = None
    total_sale_price: Optional[Decimal] = None

    def __post_init__(self):
        if not self.sku:
            raise ValueError("LineItem requires a non-empty SKU")
        if self.quantity < 1:
            raise ValueError(f"LineItem quantity must be positive, got {self.quantity}")

    def apply_price(self, price: Decimal):
        """Set unit and extended list/sale prices from a single unit price."""
        price = Decimal(price)
        self.list_price = price
        self.sale_price = price
        self.total_list_price = price * self.quantity
        self.total_sale_price = price * self.quantity


@dataclass(frozen=True)
class Annotation:
    """A validation message attached to a cart, or to one of its items."""
    kind: AnnotationKind
    severity: Severity
    message: str
    related_item_id: Optional[str] = None  # None = cart-scoped

    @property
    def cart_scoped(self) -> bool:
        return self.related_item_id is None


@dataclass
class Cart:
    """A shopping cart: stage, ordered line items and annotations."""
    stage: CartStage
    items: list[LineItem] = field(default_factory=list)
    annotations: list[Annotation] = field(default_factory=list)
    id: Optional[str] = None

    def annotations_of(self, kind: AnnotationKind) -> list[Annotation]:
        return [a for a in self.annotations if a.kind == kind]


@dataclass(frozen=True)
class ItemChanged:
    """The buyer changed this item since the last pricing pass."""
    item: LineItem


@dataclass(frozen=True)
class ItemRemoved:
    """The buyer removed an item; there is nothing left to reprice."""


ChangeRecord = Union[ItemChanged, ItemRemoved]


@dataclass
class ChangeDescriptor:
    """Buyer edits since the previous pricing pass."""
    changes: list[ChangeRecord] = field(default_factory=list)
    checkout_started: bool = False


class _Unavailable:
    """Sentinel for a price lookup where the whole batch failed."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "UNAVAILABLE"

    def __bool__(self):
        return False


UNAVAILABLE = _Unavailable()

# SKU -> price; SKUs missing from the mapping are explicitly unpriced.
PriceLookupResult = Union[_Unavailable, dict[str, Decimal]]
