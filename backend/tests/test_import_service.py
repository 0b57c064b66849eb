import io

import pytest

from boutique_pos.models import Product
from boutique_pos.services import import_service, products_service, sales_service
from boutique_pos.services.import_service import EXPORT_HEADERS
from boutique_pos.validation import ConflictError


def snapshot_catalog(session):
    return sorted(
        (p.sku, p.name, p.price_cents, p.stock, p.stock_details)
        for p in session.query(Product).all()
    )


def csv_stream(text):
    return io.BytesIO(text.encode("utf-8"))


def test_csv_import_creates_products(db_session):
    rows = import_service.read_rows(csv_stream(
        "SKU,Nombre,Precio,Stock\n"
        "BL-01,Blusa,350.50,4\n"
        ",Falda,200,\n"
        "ZZ,,100,1\n"
        "YY,Sin precio,,1\n"
        "GR-01,Regalo,0,2\n"
    ), "productos.csv")

    result = import_service.import_csv_rows(rows)
    assert result["created"] == 3
    assert result["skipped"] == 2

    blusa = products_service.find_by_code("BL-01")
    assert blusa.price_cents == 35050
    assert blusa.stock == 4
    assert blusa.stock_details == {"store": 4, "warehouse": 0, "display": 0}

    falda = db_session.query(Product).filter_by(name="Falda").one()
    assert len(falda.sku) == 8
    assert falda.stock == 0

    assert products_service.find_by_code("GR-01").price_cents == 0


def test_csv_headers_are_case_insensitive(db_session):
    rows = import_service.read_rows(csv_stream("sku,NOMBRE,precio\nA1,Aretes,15\n"), "p.csv")
    result = import_service.import_csv_rows(rows)
    assert result["created"] == 1
    assert products_service.find_by_code("A1").price_cents == 1500


def test_csv_duplicate_sku_aborts_import(db_session, make_product):
    make_product("DUP")
    rows = [
        {"SKU": "NEW", "Nombre": "Nuevo", "Precio": "10"},
        {"SKU": "DUP", "Nombre": "Repetido", "Precio": "10"},
    ]
    with pytest.raises(ConflictError):
        import_service.import_csv_rows(rows)
    assert products_service.find_by_code("NEW") is None


def test_sheet_row_with_locations_uses_their_sum():
    record = import_service.normalize_sheet_row({
        "SKU": "X1",
        "Nombre": "Blusa",
        "Precio": 100,
        "Stock Total": 999,
        "Stock Tienda": 1,
        "Stock Bodega": None,
        "Stock Exhibicion": 2,
    })
    assert record["stock_details"] == {"store": 1, "warehouse": 0, "display": 2}
    assert "stock" not in record


def test_sheet_row_without_locations_uses_total():
    record = import_service.normalize_sheet_row({"SKU": "X1", "Nombre": "Blusa", "Precio": "1,250.00", "Stock Total": 7})
    assert record["stock"] == 7
    assert record["stock_details"] is None
    assert record["price_cents"] == 125000


def test_sheet_row_defaults():
    assert import_service.normalize_sheet_row({"Nombre": "Sin SKU", "Precio": 1}) is None
    record = import_service.normalize_sheet_row({"SKU": "X1"})
    assert record["name"] == import_service.DEFAULT_PRODUCT_NAME
    assert record["price_cents"] == 0
    assert record["stock"] == 0


def test_xlsx_export_reimport_round_trip(db_session, make_product):
    make_product("A1", name="Aretes", price_cents=15050, stock=3)
    make_product("B1", name="Bolsa", price_cents=90000, details={"store": 1, "warehouse": 4, "display": 2})
    make_product("C1", name="Collar", price_cents=0, details={"store": 0, "warehouse": 0, "display": 0})
    before = snapshot_catalog(db_session)

    out = import_service.write_xlsx(import_service.export_rows(), headers=EXPORT_HEADERS, sheet_name="Inventario")

    db_session.query(Product).delete()
    db_session.commit()

    rows = import_service.read_rows(out, "inventario.xlsx")
    result = import_service.upsert_sheet_rows(rows)
    assert result["created"] == 3
    assert snapshot_catalog(db_session) == before


def test_csv_export_reimport_round_trip(db_session, make_product):
    make_product("A1", name="Aretes", price_cents=15050, stock=3)
    make_product("B1", name="Bolsa", price_cents=90000, details={"store": 1, "warehouse": 4, "display": 2})
    before = snapshot_catalog(db_session)

    text = import_service.write_csv(import_service.export_rows(), headers=EXPORT_HEADERS)
    result = import_service.upsert_sheet_rows(import_service.read_rows(csv_stream(text), "inventario.csv"))

    assert result["updated"] == 2
    assert snapshot_catalog(db_session) == before


def test_export_rows_shape(db_session, make_product):
    make_product("A1", name="Aretes", price_cents=15050, stock=3)
    rows = import_service.export_rows()
    assert rows == [{
        "SKU": "A1",
        "Nombre": "Aretes",
        "Precio": 150.5,
        "Stock Total": 3,
        "Stock Tienda": None,
        "Stock Bodega": None,
        "Stock Exhibición": None,
    }]


def test_unsupported_file_type():
    with pytest.raises(import_service.ImportFileError):
        import_service.read_rows(io.BytesIO(b"{}"), "productos.json")


def test_import_file_error_is_not_the_builtin():
    assert not issubclass(import_service.ImportFileError, ImportError)
    assert issubclass(import_service.ImportFileError, ValueError)


def test_oversold_catalog_export_reimport_round_trip(db_session, make_product):
    make_product("X1", name="Blusa", price_cents=1000, details={"store": 3, "warehouse": 2, "display": 0})
    sales_service.commit_sale(
        [{"sku": "X1", "name": "Blusa", "price_cents": 1000, "quantity": 5}], "cash"
    )
    assert products_service.find_by_code("X1").stock_details == {"store": -2, "warehouse": 2, "display": 0}
    before = snapshot_catalog(db_session)

    out = import_service.write_xlsx(import_service.export_rows(), headers=EXPORT_HEADERS, sheet_name="Inventario")
    result = import_service.upsert_sheet_rows(import_service.read_rows(out, "inventario.xlsx"))

    assert result["updated"] == 1
    assert snapshot_catalog(db_session) == before
