import pytest

from boutique_pos.models import Product
from boutique_pos.services import products_service
from boutique_pos.signals import products_changed, subscribe
from boutique_pos.validation import ConflictError, NotFoundError, ValidationError


def assert_breakdown_consistent(product):
    details = product.stock_details
    if details is not None:
        assert product.stock == details["store"] + details["warehouse"] + details["display"]


def test_create_generates_sku_when_blank(db_session):
    p = products_service.create_product(patch={"sku": "", "name": "Vestido", "price_cents": 45000})
    assert len(p.sku) == 8
    assert p.sku == p.sku.upper()
    assert p.sku.isalnum()
    assert p.stock == 0
    assert p.stock_details is None


def test_create_with_breakdown_recomputes_total(db_session):
    p = products_service.create_product(patch={
        "sku": "FAL-01",
        "name": "Falda",
        "price_cents": 30000,
        "stock": 99,
        "stock_details": {"store": 2, "warehouse": 5, "display": 1},
    })
    assert p.stock == 8
    assert p.stock_details == {"store": 2, "warehouse": 5, "display": 1}


def test_create_requires_name_and_price(db_session):
    with pytest.raises(ValidationError):
        products_service.create_product(patch={"name": "", "price_cents": 100})
    with pytest.raises(ValidationError):
        products_service.create_product(patch={"name": "Blusa"})


def test_create_duplicate_sku_conflicts(db_session, make_product):
    make_product("DUP-1")
    with pytest.raises(ConflictError):
        products_service.create_product(patch={"sku": "DUP-1", "name": "Otra", "price_cents": 100})


def test_find_by_code_miss_returns_none(db_session, make_product):
    make_product("ABC123")
    assert products_service.find_by_code("ABC123").sku == "ABC123"
    assert products_service.find_by_code("abc123") is None
    assert products_service.find_by_code("NOPE") is None


def test_get_product_unknown_id(db_session):
    with pytest.raises(NotFoundError):
        products_service.get_product(9999)


def test_list_products_search(db_session, make_product):
    make_product("BL-001", name="Blusa Roja")
    make_product("PA-002", name="Pantalón Negro")
    make_product("BL-003", name="blusa azul")

    names = [p.name for p in products_service.list_products("BLUSA")]
    assert names == ["Blusa Roja", "blusa azul"]

    assert [p.sku for p in products_service.list_products("PA-")] == ["PA-002"]
    assert len(products_service.list_products()) == 3
    assert products_service.list_products("100%") == []


def test_update_total_only_moves_difference_into_store(db_session, make_product):
    p = make_product("X1", details={"store": 2, "warehouse": 5, "display": 1})
    updated = products_service.update_product(product_id=p.id, patch={"stock": 10})
    assert updated.stock == 10
    assert updated.stock_details == {"store": 4, "warehouse": 5, "display": 1}
    assert_breakdown_consistent(updated)


def test_update_total_below_other_buckets_rejected(db_session, make_product):
    p = make_product("X1", details={"store": 2, "warehouse": 5, "display": 1})
    with pytest.raises(ValidationError):
        products_service.update_product(product_id=p.id, patch={"stock": 3})


def test_update_breakdown_wins_over_total(db_session, make_product):
    p = make_product("X1", stock=4)
    updated = products_service.update_product(
        product_id=p.id,
        patch={"stock": 50, "stock_details": {"store": 1, "warehouse": 1, "display": 1}},
    )
    assert updated.stock == 3
    assert_breakdown_consistent(updated)


def test_update_without_breakdown_sets_total(db_session, make_product):
    p = make_product("X1", stock=4)
    updated = products_service.update_product(product_id=p.id, patch={"stock": 7, "price_cents": 1500})
    assert updated.stock == 7
    assert updated.price_cents == 1500
    assert updated.stock_details is None


def test_update_sku_conflict(db_session, make_product):
    make_product("A1")
    b = make_product("B1")
    with pytest.raises(ConflictError):
        products_service.update_product(product_id=b.id, patch={"sku": "A1"})


def test_update_blank_name_rejected(db_session, make_product):
    p = make_product("A1")
    with pytest.raises(ValidationError):
        products_service.update_product(product_id=p.id, patch={"name": "  "})


def test_delete_product(db_session, make_product):
    p = make_product("DEL-1")
    assert products_service.delete_product(product_id=p.id) is True
    assert products_service.find_by_code("DEL-1") is None
    assert products_service.delete_product(product_id=p.id) is False


def test_decrement_synthesizes_breakdown(db_session, make_product):
    make_product("X1", stock=6)
    p = products_service.decrement_for_sale("X1", 2)
    db_session.commit()
    assert p.stock == 4
    assert p.stock_details == {"store": 4, "warehouse": 0, "display": 0}


def test_decrement_takes_from_store_only(db_session, make_product):
    make_product("X1", details={"store": 1, "warehouse": 5, "display": 2})
    p = products_service.decrement_for_sale("X1", 3)
    db_session.commit()
    assert p.stock_details == {"store": -2, "warehouse": 5, "display": 2}
    assert p.stock == 5
    assert_breakdown_consistent(p)


def test_decrement_unknown_sku_returns_none(db_session):
    assert products_service.decrement_for_sale("GONE", 1) is None


def test_bulk_upsert_preserves_id_and_replaces_fields(db_session, make_product):
    existing = make_product("U1", name="Viejo", price_cents=100, details={"store": 1, "warehouse": 1, "display": 1})
    existing_id = existing.id

    result = products_service.bulk_upsert([
        {"sku": "U1", "name": "Nuevo", "price_cents": 250, "stock": 9, "stock_details": None},
        {"sku": "U2", "name": "Otro", "price_cents": 300, "stock_details": {"store": 1, "warehouse": 2, "display": 3}},
    ])
    assert result["created"] == 1
    assert result["updated"] == 1

    u1 = products_service.find_by_code("U1")
    assert u1.id == existing_id
    assert u1.name == "Nuevo"
    assert u1.price_cents == 250
    assert u1.stock == 9
    assert u1.stock_details is None

    u2 = products_service.find_by_code("U2")
    assert u2.stock == 6


def test_bulk_upsert_rolls_back_on_bad_record(db_session):
    with pytest.raises(ValidationError):
        products_service.bulk_upsert([
            {"sku": "OK1", "name": "Bien", "price_cents": 100, "stock": 1},
            {"sku": "BAD", "name": "", "price_cents": 100},
        ])
    assert db_session.query(Product).count() == 0


def test_restock_list_orders_by_stock(db_session, make_product):
    make_product("A", name="A", stock=2)
    make_product("B", name="B", stock=10)
    make_product("C", name="C", stock=0)
    assert [p.sku for p in products_service.restock_list()] == ["C", "A"]
    assert [p.sku for p in products_service.restock_list(threshold=11)] == ["C", "A", "B"]


def test_label_payloads(db_session, make_product):
    a = make_product("L1", name="Aretes", price_cents=5000)
    make_product("L2", name="Bolsa", price_cents=9000)
    assert products_service.label_payloads([a.id]) == [{"sku": "L1", "name": "Aretes", "price_cents": 5000}]
    assert len(products_service.label_payloads()) == 2


def test_changes_are_broadcast(db_session):
    seen = []
    unsubscribe = subscribe(products_changed, lambda sender, **kw: seen.append(kw["action"]))
    try:
        p = products_service.create_product(patch={"name": "Blusa", "price_cents": 100})
        products_service.update_product(product_id=p.id, patch={"price_cents": 200})
        products_service.delete_product(product_id=p.id)
    finally:
        unsubscribe()
    assert seen == ["created", "updated", "deleted"]


def test_manual_edit_rejects_negative_bucket(db_session, make_product):
    p = make_product("X1", stock=4)
    with pytest.raises(ValidationError):
        products_service.update_product(
            product_id=p.id,
            patch={"stock_details": {"store": -1, "warehouse": 2, "display": 0}},
        )


def test_bulk_upsert_accepts_oversold_bucket(db_session):
    products_service.bulk_upsert([
        {"sku": "OV1", "name": "Blusa", "price_cents": 100, "stock_details": {"store": -2, "warehouse": 2, "display": 0}},
    ])
    p = products_service.find_by_code("OV1")
    assert p.stock == 0
    assert p.stock_details["store"] == -2


def test_bulk_upsert_repeated_sku_counts_once(db_session, make_product):
    make_product("R1", name="Viejo")
    result = products_service.bulk_upsert([
        {"sku": "N1", "name": "Primero", "price_cents": 100, "stock": 1},
        {"sku": "N1", "name": "Segundo", "price_cents": 200, "stock": 2},
        {"sku": "R1", "name": "Medio", "price_cents": 300, "stock": 3},
        {"sku": "R1", "name": "Final", "price_cents": 400, "stock": 4},
    ])
    assert result["created"] == 1
    assert result["updated"] == 1
    assert len(result["items"]) == 2

    n1 = products_service.find_by_code("N1")
    assert (n1.name, n1.price_cents, n1.stock) == ("Segundo", 200, 2)
    r1 = products_service.find_by_code("R1")
    assert (r1.name, r1.price_cents, r1.stock) == ("Final", 400, 4)
    assert db_session.query(Product).count() == 2
