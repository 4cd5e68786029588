"""
Product catalog tests.

Verifies:
- Products are created with normalized prices and derived figures
- Duplicate SKUs are rejected and leave the catalog unchanged
- Negative or non-numeric prices are rejected
- Lookup by id and listing
"""

from decimal import Decimal

import pytest

from stockflow.models import Product
from stockflow.validation import DuplicateSKUError, InvalidPriceError, NotFoundError, ValidationError


class TestCreateProduct:
    def test_create_product(self, services, db_session):
        product = services.catalog.create_product(
            sku="SKU-1",
            name="Keyboard",
            cost_price="10",
            sale_price=15,
            description="Mechanical",
        )

        assert product.id is not None
        assert product.sku == "SKU-1"
        assert product.cost_price == Decimal("10.00")
        assert product.sale_price == Decimal("15.00")
        assert product.description == "Mechanical"
        assert db_session.query(Product).count() == 1

    def test_duplicate_sku_rejected_and_catalog_unchanged(self, services, db_session, laptop):
        with pytest.raises(DuplicateSKUError):
            services.catalog.create_product(
                sku=laptop.sku,
                name="Another notebook",
                cost_price=1,
                sale_price=2,
            )

        products = services.catalog.list_products()
        assert [p.id for p in products] == [laptop.id]
        assert products[0].name == "Notebook"

    @pytest.mark.parametrize("field", ["cost_price", "sale_price"])
    def test_negative_price_rejected(self, services, db_session, field):
        prices = {"cost_price": 1, "sale_price": 2}
        prices[field] = -0.01
        with pytest.raises(InvalidPriceError):
            services.catalog.create_product(sku="NEG", name="Negative", **prices)
        assert db_session.query(Product).count() == 0

    def test_non_numeric_price_rejected(self, services, db_session):
        with pytest.raises(InvalidPriceError):
            services.catalog.create_product(sku="NAN", name="Bad", cost_price="abc", sale_price=1)

    def test_zero_prices_allowed(self, services, db_session):
        product = services.catalog.create_product(sku="FREE", name="Freebie", cost_price=0, sale_price=0)
        assert product.profit_margin == Decimal("0.00")

    def test_prices_rounded_to_cents(self, services, db_session):
        created = services.catalog.create_product(
            sku="ROUND", name="Rounded", cost_price="1.004", sale_price="10.005",
        )

        assert created.cost_price == Decimal("1.00")
        assert created.sale_price == Decimal("10.01")
        stored = services.catalog.get_product(created.id)
        assert (stored.cost_price, stored.sale_price) == (created.cost_price, created.sale_price)

    def test_price_above_max_after_rounding(self, services, db_session):
        with pytest.raises(InvalidPriceError):
            services.catalog.create_product(sku="MAX", name="Max", cost_price=0, sale_price="9999999.995")

    def test_blank_sku_rejected(self, services, db_session):
        with pytest.raises(ValidationError):
            services.catalog.create_product(sku="  ", name="Blank", cost_price=1, sale_price=2)


class TestProductLookup:
    def test_get_product(self, services, laptop):
        found = services.catalog.get_product(laptop.id)
        assert found.sku == "NB-001"
        assert found.sale_price == Decimal("1200.00")

    def test_get_product_not_found(self, services, db_session):
        with pytest.raises(NotFoundError):
            services.catalog.get_product(999)

    def test_list_products_empty(self, services, db_session):
        assert services.catalog.list_products() == []

    def test_list_products(self, services, laptop, mouse):
        skus = {p.sku for p in services.catalog.list_products()}
        assert skus == {"NB-001", "MS-001"}


class TestProductFigures:
    def test_profit_margin_rounded(self, mouse):
        # (15 - 10) / 15 * 100 = 33.333...
        assert mouse.profit_margin == Decimal("33.33")
        assert mouse.profit_per_unit == Decimal("5.00")

    def test_to_dict_formats_money(self, laptop):
        data = laptop.to_dict()
        assert data["cost_price"] == "800.00"
        assert data["sale_price"] == "1200.00"
        assert data["profit_per_unit"] == "400.00"
        assert data["profit_margin"] == "33.33"
