"""
Pytest fixtures for POS backend tests.

Provides an in-memory database, a test client, and a small catalog
(category, product, staff, taxes, discounts) to ring sales against.
"""

import pytest
from posbackend import create_app
from posbackend.extensions import db
from posbackend.models import Category, Product, Staff, Tax, Discount


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
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
def category(db_session):
    category = Category(name="Beverages", description="Drinks")
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture(scope='function')
def product(db_session, category):
    """Product priced at 10.00 with 100 on hand."""
    product = Product(name="Coffee", price=10, category_id=category.id, stock_quantity=100, sku="BEV-001")
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def second_product(db_session, category):
    """Product priced at 5.50 with only 3 on hand."""
    product = Product(name="Muffin", price="5.50", category_id=category.id, stock_quantity=3)
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def staff(db_session):
    staff = Staff(name="Casey Cashier", email="casey@pos.local", role="cashier", is_active=True)
    db_session.add(staff)
    db_session.commit()
    return staff


@pytest.fixture(scope='function')
def tax(db_session):
    """Active 10% tax."""
    tax = Tax(name="Sales Tax", rate=10, is_active=True)
    db_session.add(tax)
    db_session.commit()
    return tax


@pytest.fixture(scope='function')
def inactive_tax(db_session):
    tax = Tax(name="Old Tax", rate=5, is_active=False)
    db_session.add(tax)
    db_session.commit()
    return tax


@pytest.fixture(scope='function')
def fixed_discount(db_session):
    """Active fixed 5.00 discount."""
    discount = Discount(name="Five Off", type="fixed", value=5, is_active=True)
    db_session.add(discount)
    db_session.commit()
    return discount


@pytest.fixture(scope='function')
def percentage_discount(db_session):
    """Active 15% discount."""
    discount = Discount(name="Fifteen Percent", type="percentage", value=15, is_active=True)
    db_session.add(discount)
    db_session.commit()
    return discount


@pytest.fixture(scope='function')
def sale_payload(staff, product):
    """Valid single-line sale: 2 x 10.00, cash."""
    return {
        "staff_id": staff.id,
        "items": [{"product_id": product.id, "quantity": 2, "unit_price": 10.00}],
        "payment_method": "cash",
    }
