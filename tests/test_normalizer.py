"""
tests/test_normalizer.py

Pytest unit tests for sales.normalizer.

Coverage
--------
- Flat and canonical-ish shape mapping
- Month name to ISO date synthesis
- Zero coercion of missing / invalid numerics
- Default filling on and off
- Idempotency and order preservation
"""

from __future__ import annotations

import pytest

from sales.normalizer import (
    DEFAULT_CATEGORY,
    SalesRecord,
    month_to_iso_date,
    normalize_record,
    normalize_records,
    parse_iso_date,
)


@pytest.fixture()
def flat_row() -> dict:
    return {
        "id": "1",
        "productName": "A",
        "sku": "A-1",
        "salesLocation": "Texas",
        "price": 10,
        "month": "April",
        "quantity": 50,
        "category": "Audio",
        "margin": 20,
    }


@pytest.fixture()
def canonical_row() -> dict:
    return {
        "id": "s-1",
        "product": "Speaker",
        "category": "Audio",
        "quantity": 3,
        "unit_price": 25.5,
        "total_sales": 76.5,
        "region": "Ohio",
        "date": "2023-07-14T10:00:00Z",
        "customer_type": "Wholesale",
    }


class TestWorkedExample:
    def test_flat_record_maps_fields_and_synthesizes_date(self, flat_row: dict) -> None:
        record = normalize_record(flat_row)
        assert record.product == "A"
        assert record.unit_price == 10
        assert record.quantity == 50
        assert record.total_sales == pytest.approx(500.0)
        assert record.region == "Texas"
        assert record.date == "2023-04-01"
        assert record.customer_type == "Regular"
        assert record.sku == "A-1"
        assert record.margin == 20

    def test_two_record_example(self) -> None:
        a, b = normalize_records(
            [
                {"productName": "A", "price": 100, "quantity": 5, "month": "April", "category": "Electronics"},
                {"productName": "B", "price": 50, "quantity": 0, "month": "February", "category": ""},
            ]
        )
        assert a.total_sales == pytest.approx(500.0)
        assert a.date == "2023-04-01"
        assert b.total_sales == 0
        assert b.category == "Uncategorized"
        assert b.date == "2023-02-01"

    def test_sparse_flat_record_is_zeroed_and_defaulted(self) -> None:
        record = normalize_record({"id": "2", "productName": "B", "month": "February"})
        assert record.quantity == 0.0
        assert record.unit_price == 0.0
        assert record.total_sales == 0.0
        assert record.category == DEFAULT_CATEGORY
        assert record.date == "2023-02-01"


class TestShapes:
    def test_canonical_row_keeps_fields(self, canonical_row: dict) -> None:
        record = normalize_record(canonical_row)
        assert record.id == "s-1"
        assert record.region == "Ohio"
        assert record.customer_type == "Wholesale"
        assert record.date == "2023-07-14"

    def test_stored_total_sales_is_ignored(self, canonical_row: dict) -> None:
        canonical_row["total_sales"] = 9999
        assert normalize_record(canonical_row).total_sales == pytest.approx(76.5)

    def test_canonical_row_without_date_uses_month(self) -> None:
        record = normalize_record({"product": "X", "month": "November"}, year=2024)
        assert record.date == "2024-11-01"

    def test_missing_id_uses_index(self) -> None:
        records = normalize_records([{"product": "X"}, {"product": "Y"}])
        assert [r.id for r in records] == ["record-0", "record-1"]

    def test_sales_record_input_is_accepted(self, canonical_row: dict) -> None:
        record = normalize_record(canonical_row)
        assert normalize_record(record) == record


class TestNumericCoercion:
    @pytest.mark.parametrize("value", [None, "abc", True, float("nan"), float("inf"), [1]])
    def test_invalid_quantity_becomes_zero(self, value: object) -> None:
        record = normalize_record({"product": "X", "quantity": value, "unit_price": 5})
        assert record.quantity == 0.0

    def test_numeric_strings_are_parsed(self) -> None:
        record = normalize_record({"product": "X", "quantity": "4", "unit_price": "2.5"})
        assert record.total_sales == pytest.approx(10.0)

    def test_negative_values_keep_their_sign(self) -> None:
        record = normalize_record({"product": "X", "quantity": 2, "unit_price": -3})
        assert record.unit_price == -3


class TestDefaults:
    def test_fill_defaults_off_leaves_empty_strings(self) -> None:
        record = normalize_record({"product": "X"}, fill_defaults=False)
        assert record.category == ""
        assert record.region == ""
        assert record.customer_type == ""

    def test_fill_defaults_on(self) -> None:
        record = normalize_record({"product": "X"})
        assert record.category == "Uncategorized"
        assert record.region == "Unknown"
        assert record.customer_type == "Regular"


class TestMonthDates:
    @pytest.mark.parametrize(
        ("month", "expected"),
        [
            ("January", "2023-01-01"),
            ("march", "2023-03-01"),
            ("October", "2023-10-01"),
            ("Smarch", "2023-01-01"),
            (None, "2023-01-01"),
        ],
    )
    def test_month_to_iso_date(self, month: object, expected: str) -> None:
        assert month_to_iso_date(month) == expected

    def test_parse_iso_date_rejects_garbage(self) -> None:
        assert parse_iso_date("not a date") is None
        assert parse_iso_date(None) is None
        assert parse_iso_date("2023-02-30") is None


class TestInvariants:
    def test_idempotent(self, flat_row: dict, canonical_row: dict) -> None:
        for raw in (flat_row, canonical_row, {"productName": "Z"}, {}):
            once = normalize_record(raw)
            assert normalize_record(once) == once

    def test_length_and_order_preserved(self, flat_row: dict, canonical_row: dict) -> None:
        records = normalize_records([canonical_row, flat_row, {}])
        assert len(records) == 3
        assert [r.id for r in records] == ["s-1", "1", "record-2"]

    def test_to_dict_includes_total_sales(self, flat_row: dict) -> None:
        payload = normalize_record(flat_row).to_dict()
        assert payload["total_sales"] == pytest.approx(500.0)
        assert isinstance(normalize_record(flat_row), SalesRecord)
