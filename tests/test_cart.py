import pytest

from errors import ValidationFailed
from schemas import CartItemCreate


def test_guest_cart_joins_products(store, make_product):
    product = make_product()
    store.add_to_cart(CartItemCreate(session_id="sess-1", product_id=product.id, quantity=2))

    items = store.get_cart_items(session_id="sess-1")
    assert len(items) == 1
    assert items[0]["quantity"] == 2
    assert items[0]["product"]["name"] == "Gold Ring"
    assert store.get_cart_items(session_id="sess-2") == []


def test_adding_same_product_increments_quantity(store, make_product):
    product = make_product()
    first = store.add_to_cart(CartItemCreate(user_id="u1", product_id=product.id))
    again = store.add_to_cart(CartItemCreate(user_id="u1", product_id=product.id, quantity=2))
    assert again.id == first.id
    assert again.quantity == 3


def test_carts_are_scoped_by_owner(store, make_product):
    product = make_product()
    store.add_to_cart(CartItemCreate(user_id="u1", product_id=product.id))
    store.add_to_cart(CartItemCreate(session_id="sess-1", product_id=product.id))
    assert len(store.get_cart_items(user_id="u1")) == 1
    assert len(store.get_cart_items(session_id="sess-1")) == 1
    assert store.get_cart_items() == []


def test_soft_deleted_product_drops_out_of_cart(store, make_product):
    product = make_product()
    store.add_to_cart(CartItemCreate(session_id="s", product_id=product.id))
    store.delete_product(product.id)
    assert store.get_cart_items(session_id="s") == []


def test_update_and_remove(store, make_product):
    product = make_product()
    item = store.add_to_cart(CartItemCreate(session_id="s", product_id=product.id))

    assert store.update_cart_item(item.id, 5).quantity == 5
    assert store.update_cart_item("missing", 5) is None
    with pytest.raises(ValidationFailed) as info:
        store.update_cart_item(item.id, 0)
    assert info.value.errors[0]["field"] == "quantity"

    assert store.remove_from_cart(item.id) is True
    assert store.remove_from_cart(item.id) is False


def test_clear_cart(store, make_product):
    ring = make_product()
    chain = make_product(name="Chain")
    store.add_to_cart(CartItemCreate(session_id="s", product_id=ring.id))
    store.add_to_cart(CartItemCreate(session_id="s", product_id=chain.id))
    store.add_to_cart(CartItemCreate(session_id="other", product_id=ring.id))

    assert store.clear_cart(session_id="s") is True
    assert store.get_cart_items(session_id="s") == []
    assert len(store.get_cart_items(session_id="other")) == 1
    assert store.clear_cart() is False
