import pytest
import sys
import os
import logging
from decimal import Decimal

from hypothesis import given, settings
from hypothesis import strategies as st

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from cart_pricing.engine import (
    UNAVAILABLE,
    Annotation,
    AnnotationKind,
    Cart,
    CartStage,
    ChangeDescriptor,
    ItemChanged,
    ItemRemoved,
    LineItem,
    PricingReconciler,
    Severity,
    StageDispatchCalculator,
    StaticPriceSource,
    select_calculator,
)
from cart_pricing.config.settings import Settings


class RecordingSource:
    """Price source double that records every lookup."""

    def __init__(self, result):
        self.result = result
        self.calls = []

    def lookup(self, skus):
        self.calls.append(set(skus))
        return self.result


class RecordingCalculator:
    def __init__(self):
        self.calls = []

    def calculate(self, cart, stage, changes=None, locale=None):
        self.calls.append((cart, stage, changes, locale))


def make_cart(*items, stage=CartStage.CHECKOUT, annotations=None):
    return Cart(stage=stage, items=list(items), annotations=list(annotations or []))


@pytest.fixture
def static_reconciler():
    return PricingReconciler(StaticPriceSource())


def test_full_pass_prices_every_item(static_reconciler):
    """Scenario: two known SKUs, checkout, no change descriptor."""
    item1 = LineItem(sku="My SKU 1", quantity=2, id="li-1")
    item2 = LineItem(sku="My SKU 2", quantity=1, id="li-2")
    cart = make_cart(item1, item2)

    static_reconciler.calculate(cart, CartStage.CHECKOUT)

    assert item1.list_price == Decimal("100.00")
    assert item1.sale_price == Decimal("100.00")
    assert item1.total_list_price == Decimal("200.00")
    assert item1.total_sale_price == Decimal("200.00")
    assert item2.list_price == Decimal("200.00")
    assert item2.total_sale_price == Decimal("200.00")
    assert cart.annotations == []


def test_unknown_sku_gets_item_annotation(static_reconciler):
    item = LineItem(sku="Unknown SKU", quantity=1, id="li-1", list_price=Decimal("5"))
    cart = make_cart(item)

    static_reconciler.calculate(cart, CartStage.CHECKOUT)

    assert len(cart.annotations) == 1
    annotation = cart.annotations[0]
    assert annotation.kind == AnnotationKind.PRICING
    assert annotation.severity == Severity.ERROR
    assert annotation.related_item_id == "li-1"
    assert "Unknown SKU" in annotation.message
    assert item.list_price == Decimal("5")
    assert item.total_list_price is None


def test_unknown_sku_priced_when_default_enabled():
    reconciler = PricingReconciler(StaticPriceSource(price_missing_by_default=True, default_price=Decimal("9.99")))
    item = LineItem(sku="Unknown SKU", quantity=3, id="li-1")
    cart = make_cart(item)

    reconciler.calculate(cart, CartStage.CHECKOUT)

    assert item.sale_price == Decimal("9.99")
    assert item.total_sale_price == Decimal("29.97")
    assert cart.annotations == []


def test_removed_only_changes_do_nothing():
    source = RecordingSource({})
    existing = Annotation(AnnotationKind.PRICING, Severity.ERROR, "old", related_item_id="li-1")
    item = LineItem(sku="My SKU 1", quantity=1, id="li-1")
    cart = make_cart(item, annotations=[existing])

    PricingReconciler(source).calculate(
        cart, CartStage.CHECKOUT, ChangeDescriptor(changes=[ItemRemoved()])
    )

    assert source.calls == []
    assert cart.annotations == [existing]
    assert item.list_price is None


def test_unavailable_adds_single_cart_annotation():
    source = RecordingSource(UNAVAILABLE)
    item1 = LineItem(sku="My SKU 1", quantity=1, id="li-1", list_price=Decimal("1"))
    item2 = LineItem(sku="My SKU 2", quantity=2, id="li-2")
    cart = make_cart(item1, item2)

    PricingReconciler(source).calculate(cart, CartStage.CHECKOUT)

    assert len(cart.annotations) == 1
    assert cart.annotations[0].cart_scoped
    assert cart.annotations[0].severity == Severity.ERROR
    assert item1.list_price == Decimal("1")
    assert item2.list_price is None


def test_partial_failure_isolated_per_item():
    source = RecordingSource({"A": Decimal("10.00")})
    a1 = LineItem(sku="A", quantity=2, id="a1")
    b1 = LineItem(sku="B", quantity=1, id="b1")
    a2 = LineItem(sku="A", quantity=5, id="a2")
    cart = make_cart(a1, b1, a2)

    PricingReconciler(source).calculate(cart, CartStage.CHECKOUT)

    assert source.calls == [{"A", "B"}]
    assert a1.total_list_price == Decimal("20.00")
    assert a2.total_list_price == Decimal("50.00")
    assert b1.list_price is None
    assert [a.related_item_id for a in cart.annotations] == ["b1"]


def test_targeted_update_keeps_other_annotations():
    source = RecordingSource({"A": Decimal("3.50")})
    a = LineItem(sku="A", quantity=2, id="a")
    b = LineItem(sku="B", quantity=1, id="b")
    stale_a = Annotation(AnnotationKind.PRICING, Severity.ERROR, "stale", related_item_id="a")
    other_b = Annotation(AnnotationKind.PRICING, Severity.ERROR, "keep", related_item_id="b")
    inventory = Annotation(AnnotationKind.INVENTORY, Severity.ERROR, "stock", related_item_id="a")
    cart = make_cart(a, b, annotations=[stale_a, other_b, inventory])

    PricingReconciler(source).calculate(
        cart, CartStage.CHECKOUT, ChangeDescriptor(changes=[ItemChanged(a), ItemRemoved()])
    )

    assert source.calls == [{"A"}]
    assert a.total_sale_price == Decimal("7.00")
    assert b.list_price is None
    assert cart.annotations == [other_b, inventory]


def test_checkout_started_forces_full_pass():
    source = RecordingSource({"A": Decimal("1"), "B": Decimal("2")})
    a = LineItem(sku="A", quantity=1, id="a")
    b = LineItem(sku="B", quantity=1, id="b")
    cart_level = Annotation(AnnotationKind.PRICING, Severity.ERROR, "down")
    cart = make_cart(a, b, annotations=[cart_level])

    PricingReconciler(source).calculate(
        cart, CartStage.CHECKOUT, ChangeDescriptor(changes=[ItemChanged(a)], checkout_started=True)
    )

    assert source.calls == [{"A", "B"}]
    assert b.list_price == Decimal("2")
    assert cart.annotations == []


def test_pre_checkout_delegates_to_default():
    source = RecordingSource({"A": Decimal("1")})
    default = RecordingCalculator()
    existing = Annotation(AnnotationKind.PRICING, Severity.ERROR, "old", related_item_id="a")
    item = LineItem(sku="A", quantity=1, id="a")
    cart = make_cart(item, stage=CartStage.PRE_CHECKOUT, annotations=[existing])

    PricingReconciler(source, default_calculator=default).calculate(cart, CartStage.PRE_CHECKOUT)

    assert source.calls == []
    assert len(default.calls) == 1
    assert cart.annotations == [existing]
    assert item.list_price is None


def test_messages_follow_locale():
    reconciler = PricingReconciler(RecordingSource(UNAVAILABLE), default_locale="fr")
    cart = make_cart(LineItem(sku="A", quantity=1, id="a"))

    reconciler.calculate(cart, CartStage.CHECKOUT)
    reconciler.calculate(cart, CartStage.CHECKOUT, locale="en_US")

    # second full pass clears the French message before adding the English one
    assert len(cart.annotations) == 1
    assert cart.annotations[0].message.startswith("We couldn't")


def test_stage_dispatch():
    default = RecordingCalculator()
    reconciler = RecordingCalculator()
    dispatch = StageDispatchCalculator(default=default, reconciler=reconciler)
    cart = make_cart(LineItem(sku="A", quantity=1))

    dispatch.calculate(cart, CartStage.PRE_CHECKOUT)
    dispatch.calculate(cart, CartStage.CHECKOUT, locale="fr")

    assert len(default.calls) == 1
    assert reconciler.calls[0][1] == CartStage.CHECKOUT
    assert reconciler.calls[0][3] == "fr"
    assert select_calculator(CartStage.CHECKOUT, default, reconciler) is reconciler


def test_default_calculator_uses_static_table():
    reconciler = PricingReconciler(RecordingSource(UNAVAILABLE))
    known = LineItem(sku="My SKU 3", quantity=2)
    unknown = LineItem(sku="Nope", quantity=1)
    cart = make_cart(known, unknown, stage=CartStage.PRE_CHECKOUT)

    reconciler.calculate(cart, CartStage.PRE_CHECKOUT)

    assert known.total_list_price == Decimal("600.00")
    assert unknown.list_price is None
    assert cart.annotations == []


def test_default_path_ignores_default_price_setting():
    reconciler = PricingReconciler.from_settings(Settings(price_missing_skus_by_default=True))
    unknown = LineItem(sku="Nope", quantity=2)
    known = LineItem(sku="My SKU 1", quantity=1)
    cart = make_cart(unknown, known, stage=CartStage.PRE_CHECKOUT)

    reconciler.calculate(cart, CartStage.PRE_CHECKOUT)

    assert unknown.list_price is None
    assert unknown.total_list_price is None
    assert known.list_price == Decimal("100.00")

    # the checkout path still honours the setting
    reconciler.calculate(cart, CartStage.CHECKOUT)
    assert unknown.total_list_price == Decimal("200.00")


def test_requested_stage_wins_over_cart_stage(caplog):
    source = RecordingSource({"A": Decimal("4")})
    item = LineItem(sku="A", quantity=2, id="a")
    cart = make_cart(item, stage=CartStage.PRE_CHECKOUT)

    with caplog.at_level(logging.WARNING, logger="cart_pricing.engine.reconciler"):
        PricingReconciler(source).calculate(cart, CartStage.CHECKOUT)

    assert source.calls == [{"A"}]
    assert item.total_sale_price == Decimal("8")
    assert "disagrees" in caplog.text


def test_missing_price_on_unsaved_item_reads_as_cart_scoped():
    reconciler = PricingReconciler(RecordingSource({}))
    cart = make_cart(LineItem(sku="Ghost", quantity=1))

    reconciler.calculate(cart, CartStage.CHECKOUT)
    reconciler.calculate(cart, CartStage.CHECKOUT)

    assert len(cart.annotations) == 1
    assert cart.annotations[0].cart_scoped
    assert "Ghost" in cart.annotations[0].message


# =============================================================================
# Properties
# =============================================================================

skus = st.sampled_from(["A", "B", "C", "D"])
quantities = st.integers(min_value=1, max_value=500)
prices = st.decimals(min_value=Decimal("0"), max_value=Decimal("10000"), places=2)


@settings(max_examples=100)
@given(
    lines=st.lists(st.tuples(skus, quantities), min_size=1, max_size=8),
    table=st.dictionaries(skus, prices),
)
def test_priced_items_extend_exactly_and_passes_are_idempotent(lines, table):
    items = [LineItem(sku=sku, quantity=qty, id=f"li-{i}") for i, (sku, qty) in enumerate(lines)]
    cart = make_cart(*items)
    reconciler = PricingReconciler(StaticPriceSource(prices=table))

    reconciler.calculate(cart, CartStage.CHECKOUT)
    first_prices = [(i.list_price, i.total_list_price) for i in items]
    first_count = len(cart.annotations_of(AnnotationKind.PRICING))

    reconciler.calculate(cart, CartStage.CHECKOUT)

    assert [(i.list_price, i.total_list_price) for i in items] == first_prices
    assert len(cart.annotations_of(AnnotationKind.PRICING)) == first_count
    for item in items:
        if item.sku in table:
            assert item.total_list_price == item.list_price * item.quantity
            assert item.total_sale_price == item.sale_price * item.quantity
        else:
            assert item.list_price is None
    assert first_count == sum(1 for item in items if item.sku not in table)


@settings(max_examples=50)
@given(lines=st.lists(st.tuples(skus, quantities), min_size=1, max_size=8))
def test_unavailable_never_changes_prices(lines):
    items = [LineItem(sku=sku, quantity=qty, id=f"li-{i}") for i, (sku, qty) in enumerate(lines)]
    cart = make_cart(*items)

    PricingReconciler(RecordingSource(UNAVAILABLE)).calculate(cart, CartStage.CHECKOUT)

    assert all(item.list_price is None for item in items)
    assert len(cart.annotations) == 1
    assert cart.annotations[0].cart_scoped
