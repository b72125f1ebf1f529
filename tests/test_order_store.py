import re

import pytest

import order_store
from catalog import MaterialClass, OptionType
from quote_builder import QuoteBuilder
from quote_cart import Cart

ADDRESS = {
    "postal_code": "130-0001",
    "prefecture": "Tokyo",
    "city": "Sumida",
    "address_line": "1-2-3",
    "recipient_name": "Crate Buyer",
    "phone": "03-0000-0000",
}


@pytest.fixture
def cart(db):
    catalog = order_store.load_catalog(db)
    material = catalog.material("mat-lauan")
    b = QuoteBuilder(
        width=500,
        depth=400,
        height=300,
        material=material,
        thickness=catalog.thicknesses_for(material.id)[0],
    )
    b.add_option(catalog.option("opt-handle"))
    b.set_fitting("opt-handle", "width", distance=50, count=2)

    c = Cart()
    c.add(b.snapshot())
    return c


def test_default_catalog_is_seeded_once(db):
    catalog = order_store.load_catalog(db)

    assert [m.id for m in catalog.materials] == ["mat-lauan", "mat-softwood", "mat-osb"]
    assert catalog.material("mat-lauan").material_class == MaterialClass.PLYWOOD_LAUAN
    assert catalog.option("opt-skids").option_type == OptionType.SKIDS
    assert not catalog.thickness("mat-osb-t12").is_available

    assert order_store.seed_catalog(db, catalog) is False


def test_unknown_material_class_gets_standard_rules(db):
    row = db.get(order_store.MaterialRow, "mat-osb")
    row.material_class = "cardboard"
    db.commit()

    assert order_store.load_catalog(db).material("mat-osb").material_class == MaterialClass.PLYWOOD_STANDARD


def test_decode_legacy_id_list():
    assert order_store.decode_selected_options(["opt-a", "opt-b"]) == [
        {"option_id": "opt-a", "quantity": 1},
        {"option_id": "opt-b", "quantity": 1},
    ]


def test_decode_legacy_object_list():
    raw = [{"option_id": "opt-reinforcement", "quantity": 2, "reinforcement_length": 500, "reinforcement_width": 300}]
    assert order_store.decode_selected_options(raw) == raw


def test_decode_current_version():
    raw = {"version": 2, "options": [{"option_id": "opt-handle", "quantity": 1}]}
    assert order_store.decode_selected_options(raw) == [{"option_id": "opt-handle", "quantity": 1}]
    assert order_store.decode_selected_options(None) == []


def test_decode_rejects_unknown_shapes():
    with pytest.raises(ValueError):
        order_store.decode_selected_options({"version": 99, "options": []})
    with pytest.raises(ValueError):
        order_store.decode_selected_options([42])


def test_order_number_format():
    assert re.fullmatch(r"ORD-\d{13}-[A-Z0-9]{9}", order_store.generate_order_number())


def test_order_copies_cart_prices(db, cart):
    order = order_store.create_order_from_cart(
        db, cart, user_id="user-1", shipping_address=ADDRESS, payment_method="bank_transfer"
    )

    assert order.status == "pending"
    assert order.payment_status == "pending"
    assert order.total_amount == cart.total_amount == 14080

    (item,) = order.items
    assert item.unit_price == 14080
    assert item.subtotal == 14080
    assert item.selected_options["version"] == 2
    assert item.selected_options["options"][0]["fitting_positions_width"] == [50, 450]
    assert item.bend_buckle_config["top"]["enabled"] is False


def test_order_rejects_empty_cart_and_bad_payment(db, cart):
    with pytest.raises(ValueError):
        order_store.create_order_from_cart(db, Cart(), user_id="u", shipping_address=ADDRESS, payment_method="invoice")
    with pytest.raises(ValueError):
        order_store.create_order_from_cart(db, cart, user_id="u", shipping_address=ADDRESS, payment_method="cash")


def test_status_updates_use_the_allowed_set(db, cart):
    order = order_store.create_order_from_cart(
        db, cart, user_id="user-1", shipping_address=ADDRESS, payment_method="invoice"
    )

    updated = order_store.update_order_status(db, order.id, "manufacturing", shipping_eta="2026-11-01")
    assert updated.status == "manufacturing"
    assert updated.shipping_eta == "2026-11-01"

    with pytest.raises(ValueError):
        order_store.update_order_status(db, order.id, "lost")
    assert order_store.update_order_status(db, "missing", "shipped") is None


def test_list_orders_filters(db, cart):
    a = order_store.create_order_from_cart(db, cart, user_id="user-1", shipping_address=ADDRESS, payment_method="invoice")
    order_store.create_order_from_cart(db, cart, user_id="user-2", shipping_address=ADDRESS, payment_method="invoice")
    order_store.update_order_status(db, a.id, "shipped")

    assert [o.id for o in order_store.list_orders(db, user_id="user-1")] == [a.id]
    assert [o.id for o in order_store.list_orders(db, status="shipped")] == [a.id]
    assert len(order_store.list_orders(db, status="all")) == 2


def test_delete_material_takes_its_thicknesses(db):
    assert order_store.delete_material(db, "mat-osb") is True

    catalog = order_store.load_catalog(db)
    assert catalog.material("mat-osb") is None
    assert catalog.thicknesses_for("mat-osb") == []
    assert order_store.delete_material(db, "mat-osb") is False


def test_delete_row(db):
    assert order_store.delete_row(db, order_store.OptionRow, "opt-skids") is True
    assert order_store.load_catalog(db).option("opt-skids") is None
    assert order_store.delete_row(db, order_store.OptionRow, "opt-skids") is False
