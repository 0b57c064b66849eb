"""
Pytest fixtures for boutique_pos backend tests.

Provides an in-memory database, a per-test clean session and the test client.
"""

from datetime import datetime

import pytest

from boutique_pos import create_app
from boutique_pos.extensions import db
from boutique_pos.models import Product, Sale


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'DEFAULT_OPENING_FLOAT_CENTS': 100000,
        'SCANNER_MIN_LENGTH': 3,
        'SCANNER_TIME_THRESHOLD_MS': 100,
        'LOW_STOCK_THRESHOLD': 3,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory for committed products."""
    def _make(sku, name="Producto", price_cents=1000, stock=0, details=None):
        product = Product(sku=sku, name=name, price_cents=price_cents, stock=stock)
        if details is not None:
            product.set_stock_details(details)
        db_session.add(product)
        db_session.commit()
        return product
    return _make


@pytest.fixture(scope='function')
def make_sale(db_session):
    """Factory for committed sales at an explicit local timestamp."""
    def _make(when: datetime, total_cents=1000, payment_method="cash", items=None):
        if items is None:
            items = [{"sku": "S1", "name": "Blusa", "price_cents": total_cents, "quantity": 1}]
        sale = Sale(date=when, items=items, total_cents=total_cents, payment_method=payment_method)
        db_session.add(sale)
        db_session.commit()
        return sale
    return _make
