from decimal import Decimal

import pytest

from crud import carts as crud_carts
from crud import wishlists as crud_wishlists
from crud.product_variant import update_product_variant
from exceptions import NotFoundError
from schemas.variants import ProductVariantUpdate


@pytest.fixture
def wishlist(db):
    return crud_wishlists.get_or_create_wishlist(db, "shopper-1")


def test_saving_the_same_selection_twice_bumps_quantity(db, catalogue, wishlist):
    first = crud_wishlists.add_to_wishlist(db, wishlist.id, catalogue.shirt_id, [catalogue.small_id, catalogue.red_id])
    second = crud_wishlists.add_to_wishlist(db, wishlist.id, catalogue.shirt_id, [catalogue.red_id, catalogue.small_id])

    assert second.id == first.id
    assert second.quantity == 2
    assert wishlist.total_items == 2
    # 100.00 base + 5.00 red + 0.00 small, twice
    assert wishlist.total_amount == Decimal("210.00")


def test_remove_item(db, catalogue, wishlist):
    item = crud_wishlists.add_to_wishlist(db, wishlist.id, catalogue.tote_id, [])

    crud_wishlists.remove_wishlist_item(db, wishlist.id, item.id)

    assert wishlist.items == []
    assert wishlist.total_amount == Decimal("0.00")
    with pytest.raises(NotFoundError):
        crud_wishlists.remove_wishlist_item(db, wishlist.id, item.id)


def test_move_to_cart_prices_the_selection_again(db, catalogue, wishlist):
    saved = crud_wishlists.add_to_wishlist(db, wishlist.id, catalogue.shirt_id, [catalogue.red_id, catalogue.small_id])
    update_product_variant(db, catalogue.red_id, ProductVariantUpdate(additional_price=Decimal("7.00")))
    cart = crud_carts.get_or_create_cart(db, user_id="shopper-1")

    cart_item = crud_wishlists.move_wishlist_item_to_cart(db, wishlist.id, saved.id, cart.id)

    assert saved.price == Decimal("105.00")
    assert cart_item.price == Decimal("107.00")
    assert cart.total_amount == Decimal("107.00")
    assert wishlist.items == []
    assert wishlist.total_items == 0


def test_failed_move_leaves_the_wishlist_alone(db, catalogue, wishlist):
    saved = crud_wishlists.add_to_wishlist(db, wishlist.id, catalogue.tote_id, [])

    with pytest.raises(NotFoundError):
        crud_wishlists.move_wishlist_item_to_cart(db, wishlist.id, saved.id, 9999)

    assert [i.id for i in crud_wishlists.get_wishlist(db, wishlist.id).items] == [saved.id]
