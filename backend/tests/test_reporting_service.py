import pytest

from posbackend.errors import ValidationError
from posbackend.models import Category, Product, Sale
from posbackend.services import reporting_service, sales_service
from posbackend.time_utils import utcnow

START = "2000-01-01T00:00:00Z"
END = "2100-01-01T00:00:00Z"


@pytest.fixture
def snacks(db_session):
    """Second category with one product."""
    category = Category(name="Snacks")
    db_session.add(category)
    db_session.commit()
    chips = Product(name="Chips", price=2, category_id=category.id, stock_quantity=50)
    db_session.add(chips)
    db_session.commit()
    return category, chips


def _sell(db_session, staff_id, lines):
    return sales_service.create_sale(db_session, {
        "staff_id": staff_id,
        "items": [{"product_id": pid, "quantity": qty, "unit_price": price} for pid, qty, price in lines],
        "payment_method": "cash",
    })


class TestSalesReport:

    def test_empty_range(self, db_session):
        report = reporting_service.generate_sales_report(db_session, start_date=START, end_date=END)
        assert report == {
            "total_sales": 0.0,
            "total_transactions": 0,
            "average_transaction": 0.0,
            "top_products": [],
            "daily_breakdown": [],
        }

    def test_totals_top_products_and_daily(self, db_session, staff, product, snacks):
        _, chips = snacks
        _sell(db_session, staff.id, [(product.id, 2, 10)])
        _sell(db_session, staff.id, [(chips.id, 3, 2), (product.id, 1, 10)])

        report = reporting_service.generate_sales_report(db_session, start_date=START, end_date=END)

        assert report["total_sales"] == 36.00
        assert report["total_transactions"] == 2
        assert report["average_transaction"] == 18.00
        assert report["top_products"] == [
            {"product_id": product.id, "product_name": "Coffee", "quantity_sold": 3, "total_revenue": 30.00},
            {"product_id": chips.id, "product_name": "Chips", "quantity_sold": 3, "total_revenue": 6.00},
        ]
        assert report["daily_breakdown"] == [
            {"date": utcnow().date().isoformat(), "sales_count": 2, "total_amount": 36.00},
        ]

    def test_average_rounds_half_up(self, db_session, staff, product):
        _sell(db_session, staff.id, [(product.id, 1, "0.01")])
        _sell(db_session, staff.id, [(product.id, 1, "0.02")])

        report = reporting_service.generate_sales_report(db_session, start_date=START, end_date=END)
        # 0.03 / 2 = 0.015
        assert report["average_transaction"] == 0.02

    def test_only_completed_sales_counted(self, db_session, staff, product):
        sale = _sell(db_session, staff.id, [(product.id, 1, 10)])
        _sell(db_session, staff.id, [(product.id, 1, 10)])
        db_session.get(Sale, sale["id"]).status = "refunded"
        db_session.commit()

        report = reporting_service.generate_sales_report(db_session, start_date=START, end_date=END)
        assert report["total_transactions"] == 1

    def test_staff_filter(self, db_session, staff, product):
        _sell(db_session, staff.id, [(product.id, 1, 10)])
        report = reporting_service.generate_sales_report(
            db_session, start_date=START, end_date=END, staff_id=staff.id + 1000,
        )
        assert report["total_transactions"] == 0

    def test_category_filter_counts_each_sale_once(self, db_session, staff, product, second_product, snacks):
        category, chips = snacks
        _sell(db_session, staff.id, [(chips.id, 1, 2)])
        _sell(db_session, staff.id, [(product.id, 1, 10), (second_product.id, 1, 5)])

        report = reporting_service.generate_sales_report(
            db_session, start_date=START, end_date=END, category_id=product.category_id,
        )

        assert report["total_transactions"] == 1
        assert report["total_sales"] == 15.00
        assert {p["product_id"] for p in report["top_products"]} == {product.id, second_product.id}

        snack_report = reporting_service.generate_sales_report(
            db_session, start_date=START, end_date=END, category_id=category.id,
        )
        assert snack_report["total_sales"] == 2.00
        assert [p["product_id"] for p in snack_report["top_products"]] == [chips.id]

    def test_top_limit(self, db_session, staff, product, second_product):
        _sell(db_session, staff.id, [(product.id, 1, 10), (second_product.id, 1, 5)])
        report = reporting_service.generate_sales_report(
            db_session, start_date=START, end_date=END, top_limit=1,
        )
        assert [p["product_id"] for p in report["top_products"]] == [product.id]

    def test_range_excludes_outside_sales(self, db_session, staff, product):
        _sell(db_session, staff.id, [(product.id, 1, 10)])
        report = reporting_service.generate_sales_report(
            db_session, start_date="2000-01-01T00:00:00Z", end_date="2000-12-31T23:59:59Z",
        )
        assert report["total_transactions"] == 0

    @pytest.mark.parametrize("start,end", [
        (None, END),
        (START, None),
        ("not-a-date", END),
        (END, START),
    ])
    def test_invalid_range(self, db_session, start, end):
        with pytest.raises(ValidationError):
            reporting_service.generate_sales_report(db_session, start_date=start, end_date=end)
