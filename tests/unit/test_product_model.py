"""Unit tests for the product model and source boundary."""

import json
import logging
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from storefront_core.catalog.sources import (
    JsonFileProductSource,
    StaticProductSource,
    normalize_records,
)
from storefront_core.exceptions import CatalogSourceError
from storefront_core.models.product import Product


class TestProductNormalization:
    """Tests for record normalization at the data-source boundary."""

    def test_camel_case_aliases(self, product_map):
        """Test camelCase keys fill their snake_case fields."""
        dress = product_map["p2"]

        assert dress.in_stock is True
        assert dress.views_count == 300
        assert dress.created_at == datetime(2024, 5, 10, 9, 0, tzinfo=timezone.utc)

    def test_snake_case_wins_over_alias(self):
        """Test an explicit snake_case value is not overwritten by its alias."""
        product = Product.from_record(
            {"id": "x", "name": "X", "price": 100, "views_count": 5, "viewsCount": 99}
        )

        assert product.views_count == 5

    def test_null_collections_default_to_empty(self, product_map):
        """Test null size and tags become empty lists."""
        scarf = product_map["p4"]

        assert scarf.size == []
        assert scarf.tags == []
        assert scarf.is_sizeless

    def test_explicit_null_flags_use_defaults(self):
        """Test null flags and counters fall back to defaults."""
        product = Product.from_record(
            {
                "id": "x",
                "name": "X",
                "price": 100,
                "in_stock": None,
                "featured": None,
                "views_count": None,
                "currency": None,
            }
        )

        assert product.in_stock is True
        assert product.featured is False
        assert product.views_count == 0
        assert product.currency == "NGN"

    def test_bare_string_size(self):
        """Test a single size string becomes a one-element list."""
        product = Product.from_record({"id": "x", "name": "X", "price": 100, "size": "One Size"})

        assert product.size == ["One Size"]

    def test_naive_timestamp_is_utc(self):
        """Test naive timestamps are treated as UTC."""
        product = Product.from_record(
            {"id": "x", "name": "X", "price": 100, "created_at": "2024-01-01T00:00:00"}
        )

        assert product.created_at.tzinfo == timezone.utc

    def test_negative_price_rejected(self):
        """Test prices must be non-negative minor units."""
        with pytest.raises(ValidationError):
            Product.from_record({"id": "x", "name": "X", "price": -1})

    def test_products_are_immutable(self, product_map):
        """Test products cannot be modified after loading."""
        with pytest.raises(ValidationError):
            product_map["p1"].price = 1


class TestProductProperties:
    """Tests for derived product properties."""

    def test_badges(self, product_map):
        """Test badge properties read the tags."""
        assert product_map["p1"].is_new
        assert product_map["p1"].is_best_seller
        assert not product_map["p5"].is_new

    def test_low_stock(self):
        """Test low stock needs a positive quantity at or below the threshold."""
        base = {"id": "x", "name": "X", "price": 100, "low_stock_threshold": 2}

        assert Product.from_record({**base, "stock_quantity": 2}).is_low_stock
        assert not Product.from_record({**base, "stock_quantity": 3}).is_low_stock
        assert not Product.from_record({**base, "stock_quantity": 0}).is_low_stock
        assert not Product.from_record({"id": "x", "name": "X", "price": 100}).is_low_stock


class TestNormalizeRecords:
    """Tests for bulk record validation."""

    def test_keeps_order(self, product_records):
        """Test catalog order is the input order."""
        products = normalize_records(product_records)

        assert [p.id for p in products] == ["p1", "p2", "p3", "p4", "p5"]

    def test_skips_soft_deleted(self, product_records):
        """Test records with deleted_at set are dropped."""
        product_records[0]["deleted_at"] = "2024-06-01T00:00:00Z"

        products = normalize_records(product_records)

        assert "p1" not in [p.id for p in products]

    def test_skips_invalid_records(self, product_records, caplog):
        """Test one bad record does not empty the catalog."""
        product_records.append({"id": "bad", "name": "Broken", "price": "free"})

        with caplog.at_level(logging.WARNING):
            products = normalize_records(product_records)

        assert len(products) == 5
        assert "Skipping invalid product record" in caplog.text

    def test_skips_non_object_records(self, product_records, caplog):
        """Test null and non-object entries are logged and skipped."""
        records = [product_records[0], None, "junk", product_records[1]]

        with caplog.at_level(logging.WARNING):
            products = normalize_records(records)

        assert [p.id for p in products] == ["p1", "p2"]
        assert caplog.text.count("Skipping non-object product record") == 2


class TestProductSources:
    """Tests for product sources."""

    @pytest.mark.asyncio
    async def test_static_source(self, product_records, products):
        """Test static sources accept raw records and Product instances."""
        source = StaticProductSource([products[0], product_records[1]])

        fetched = await source.fetch_products()

        assert [p.id for p in fetched] == ["p1", "p2"]

    @pytest.mark.asyncio
    async def test_json_file_source_wrapped(self, tmp_path, product_records):
        """Test a {"products": [...]} export loads."""
        path = tmp_path / "products.json"
        path.write_text(json.dumps({"products": product_records}), encoding="utf-8")

        fetched = await JsonFileProductSource(path).fetch_products()

        assert len(fetched) == 5

    @pytest.mark.asyncio
    async def test_json_file_source_bare_list(self, tmp_path, product_records):
        """Test a bare list export loads."""
        path = tmp_path / "products.json"
        path.write_text(json.dumps(product_records[:2]), encoding="utf-8")

        fetched = await JsonFileProductSource(str(path)).fetch_products()

        assert [p.id for p in fetched] == ["p1", "p2"]

    @pytest.mark.asyncio
    async def test_json_file_source_missing_file(self, tmp_path):
        """Test a missing export maps to a catalog source error."""
        source = JsonFileProductSource(tmp_path / "absent.json")

        with pytest.raises(CatalogSourceError) as exc_info:
            await source.fetch_products()

        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_json_file_source_corrupt_file(self, tmp_path):
        """Test a truncated export maps to a catalog source error."""
        path = tmp_path / "products.json"
        path.write_text('[{"id": "p1", "name": ', encoding="utf-8")

        with pytest.raises(CatalogSourceError):
            await JsonFileProductSource(path).fetch_products()

    @pytest.mark.asyncio
    async def test_json_file_source_skips_non_objects(self, tmp_path, product_records):
        """Test null and scalar entries in an export are skipped."""
        path = tmp_path / "products.json"
        path.write_text(json.dumps([product_records[0], None, "junk", 7]), encoding="utf-8")

        fetched = await JsonFileProductSource(path).fetch_products()

        assert [p.id for p in fetched] == ["p1"]
