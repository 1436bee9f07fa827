from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from schemas import BillCreate, BillUpdate, OrderCreate

LINE = {
    "product_id": "p-1",
    "product_name": "Gold Ring",
    "quantity": 1,
    "price_inr": "45000.00",
    "price_bhd": "205.125",
    "gross_weight": "5.20",
    "net_weight": "4.90",
    "making_charges": "6750.00",
    "discount": "0",
    "sgst": "675.00",
    "cgst": "675.00",
    "vat": "0",
    "total": "53100.00",
}

CUSTOMER = {
    "customer_name": "Meera Nair",
    "customer_email": "meera@example.com",
    "customer_phone": "9876543210",
    "customer_address": "12 MG Road, Kochi",
}


def _bill(**overrides):
    fields = dict(CUSTOMER, subtotal="45000", making_charges="6750", gst="1350",
                  paid_amount="53100", items=[LINE])
    fields.update(overrides)
    return BillCreate(**fields)


def _order(**overrides):
    fields = dict(CUSTOMER, subtotal="45000", making_charges="6750", gst="1350",
                  paid_amount="0", items=[LINE])
    fields.update(overrides)
    return OrderCreate(**fields)


def test_bill_total_is_additive(store):
    bill = store.create_bill(_bill(discount="100.50"))
    assert bill.total == Decimal("52999.50")
    assert bill.bill_number.startswith("PJ-BILL-")


def test_bill_discount_defaults_to_zero(store):
    assert store.create_bill(_bill()).total == Decimal("53100")


def test_bill_total_ignores_vat(store):
    bill = store.create_bill(_bill(currency="BHD", subtotal="205.125", making_charges="30.769",
                                   gst="0", vat="23.589"))
    assert bill.total == Decimal("235.894")


def test_line_items_are_stored_verbatim(store):
    # header totals are not cross-checked against the items
    bill = store.create_bill(_bill(subtotal="1"))
    fetched = store.get_bill(bill.id)
    assert fetched.items == [LINE]
    assert fetched.total == Decimal("8101")


def test_bill_number_unique(store):
    store.create_bill(_bill(bill_number="PJ-BILL-0001"))
    with pytest.raises(IntegrityError):
        store.create_bill(_bill(bill_number="PJ-BILL-0001"))
    assert store.get_bill_by_number("PJ-BILL-0001") is not None


def test_update_bill_recomputes_total_from_merged_values(store):
    bill = store.create_bill(_bill())
    updated = store.update_bill(bill.id, BillUpdate(discount="600"))
    assert updated.total == Decimal("52500")
    assert updated.subtotal == Decimal("45000")
    assert store.update_bill("missing", BillUpdate(discount="1")) is None


def test_search_bills(store):
    store.create_bill(_bill())
    store.create_bill(_bill(customer_name="Ravi Kumar", customer_phone="9123456780"))
    assert [b.customer_name for b in store.search_bills("meera")] == ["Meera Nair"]
    assert [b.customer_name for b in store.search_bills("91234")] == ["Ravi Kumar"]
    assert store.search_bills("nobody") == []


def test_bills_by_date_range_is_inclusive(store, clock):
    early = store.create_bill(_bill())
    clock.advance(days=10)
    late = store.create_bill(_bill())
    clock.advance(days=10)
    store.create_bill(_bill())

    found = store.get_bills_by_date_range(early.created_at, late.created_at)
    assert [b.id for b in found] == [late.id, early.id]
    assert store.get_bills_by_date_range(datetime(2020, 1, 1), datetime(2020, 12, 31)) == []


def test_order_total_includes_vat_and_shipping(store):
    order = store.create_order(_order(vat="10", shipping="250", discount="100"))
    assert order.total == Decimal("53260")
    assert order.order_number.startswith("PJ-ORD-")
    assert order.payment_status == "PENDING"
    assert order.order_status == "PENDING"


def test_order_lookups_and_status(store):
    order = store.create_order(_order(order_number="PJ-ORD-TEST"))
    assert store.get_order_by_number("PJ-ORD-TEST").id == order.id
    assert store.get_order("missing") is None

    assert store.update_order_status(order.id, "SHIPPED").order_status == "SHIPPED"
    paid = store.update_payment_status(order.id, "PAID", "pi_123")
    assert (paid.payment_status, paid.stripe_payment_intent_id) == ("PAID", "pi_123")
    assert store.update_payment_status("missing", "PAID") is None
    assert [o.id for o in store.get_all_orders()] == [order.id]


def test_null_discount_rejected_before_bill_is_touched(store):
    from errors import ValidationFailed
    from schemas import validate
    bill = store.create_bill(_bill(discount="100"))
    with pytest.raises(ValidationFailed):
        store.update_bill(bill.id, validate(BillUpdate, {"discount": None}))
    assert store.get_bill(bill.id).discount == Decimal("100")
