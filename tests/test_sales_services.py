"""
tests/test_sales_services.py

Pytest unit tests for the sales data services: loading with fixture
fallback, JSON upload parsing, quality assessment, cleaning and CSV export.

HTTP is faked by injecting a stub session into the table client; nothing
here touches the network.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest
import requests

from app.config import AnalyticsSettings, BaaSSettings, DEFAULT_FIXTURE_PATH
from app.connectors.base import BaaSTableClient
from app.repositories.sales_repository import SalesFixtureError, SalesRepository, load_fixture
from app.services.export_service import EXPORT_FIELDS, CSVExportError, export_csv, parse_csv
from app.services.preprocessing_service import (
    assess_quality,
    clean_records,
    normalize_date_text,
)
from app.services.sales_loader_service import (
    EMPTY_TABLE_NOTICE,
    FETCH_FAILED_NOTICE,
    SOURCE_FIXTURE,
    SOURCE_REMOTE,
    SalesLoaderService,
)
from app.services.upload_service import SalesUploadError, parse_upload
from sales.normalizer import SalesRecord, normalize_records


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class _FakeResponse:
    def __init__(self, status_code: int, payload: Any = None) -> None:
        self.status_code = status_code
        self._payload = payload
        self.content = b"" if payload is None else json.dumps(payload).encode("utf-8")

    def json(self) -> Any:
        return self._payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}", response=self)  # type: ignore[arg-type]


@dataclass
class _FakeSession:
    responses: list[Any]
    calls: list[dict[str, Any]] = field(default_factory=list)

    def request(self, **kwargs: Any) -> _FakeResponse:
        self.calls.append(kwargs)
        outcome = self.responses.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _settings(**overrides: Any) -> BaaSSettings:
    values: dict[str, Any] = {
        "url": "https://example.test",
        "anon_key": "anon",
        "max_retries": 0,
        "backoff_initial_seconds": 0.0,
    }
    values.update(overrides)
    return BaaSSettings(**values)


def _loader(session: _FakeSession, *, baas: BaaSSettings | None = None) -> SalesLoaderService:
    client = BaaSTableClient(settings=baas or _settings(), session=session)  # type: ignore[arg-type]
    return SalesLoaderService(
        repository=SalesRepository(client),
        settings=AnalyticsSettings(fixture_path=DEFAULT_FIXTURE_PATH),
    )


def _record(**overrides: Any) -> SalesRecord:
    values: dict[str, Any] = {
        "id": "r-1",
        "product": "Speaker",
        "category": "Audio",
        "quantity": 2.0,
        "unit_price": 10.0,
        "region": "Ohio",
        "date": "2023-03-01",
        "customer_type": "Regular",
    }
    values.update(overrides)
    return SalesRecord(**values)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


class TestSalesLoader:
    def test_remote_rows_are_normalized(self) -> None:
        rows = [{"id": "a", "product": "X", "quantity": 2, "unit_price": 3, "date": "2023-05-01"}]
        session = _FakeSession([_FakeResponse(200, rows)])

        result = _loader(session).load()

        assert result.source == SOURCE_REMOTE
        assert result.notice is None
        assert result.records[0].total_sales == pytest.approx(6.0)

    def test_request_orders_by_date_descending(self) -> None:
        session = _FakeSession([_FakeResponse(200, [{"product": "X"}])])

        _loader(session).load()

        call = session.calls[0]
        assert call["method"] == "GET"
        assert call["url"] == "https://example.test/rest/v1/sales"
        assert call["params"] == {"select": "*", "order": "date.desc"}
        assert call["headers"]["apikey"] == "anon"
        assert call["headers"]["Authorization"] == "Bearer anon"

    def test_fetch_failure_falls_back_with_notice(self) -> None:
        session = _FakeSession([requests.ConnectionError("down")])

        result = _loader(session).load()

        assert result.source == SOURCE_FIXTURE
        assert result.notice == FETCH_FAILED_NOTICE
        assert result.notice.title == "Using local data"
        assert len(result.records) == 12

    def test_empty_table_falls_back(self) -> None:
        result = _loader(_FakeSession([_FakeResponse(200, [])])).load()

        assert result.source == SOURCE_FIXTURE
        assert result.notice == EMPTY_TABLE_NOTICE

    def test_unconfigured_backend_falls_back_without_request(self) -> None:
        session = _FakeSession([])

        result = _loader(session, baas=BaaSSettings()).load()

        assert result.source == SOURCE_FIXTURE
        assert session.calls == []

    def test_retryable_status_falls_back_after_one_attempt(self) -> None:
        session = _FakeSession([_FakeResponse(503), _FakeResponse(200, [{"product": "X"}])])

        result = _loader(session, baas=_settings(max_retries=3)).load()

        assert result.source == SOURCE_FIXTURE
        assert result.notice == FETCH_FAILED_NOTICE
        assert len(session.calls) == 1

    def test_connection_error_with_default_settings_is_not_retried(self) -> None:
        session = _FakeSession([requests.ConnectionError("down")] * 3)
        baas = BaaSSettings(url="https://example.test", anon_key="anon")

        result = _loader(session, baas=baas).load()

        assert result.source == SOURCE_FIXTURE
        assert len(session.calls) == 1

    def test_client_error_is_not_retried(self) -> None:
        session = _FakeSession([_FakeResponse(401), _FakeResponse(200, [])])

        result = _loader(session, baas=_settings(max_retries=3)).load()

        assert result.source == SOURCE_FIXTURE
        assert len(session.calls) == 1

    def test_fixture_records_are_flat_shape(self) -> None:
        records = normalize_records(load_fixture(DEFAULT_FIXTURE_PATH))
        assert records[0].product == "Wireless Earbuds"
        assert records[0].date == "2023-04-01"
        assert all(r.customer_type == "Regular" for r in records)

    def test_missing_fixture_raises(self, tmp_path: Path) -> None:
        with pytest.raises(SalesFixtureError):
            load_fixture(tmp_path / "missing.json")

    def test_non_array_fixture_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "fixture.json"
        path.write_text('{"id": 1}', encoding="utf-8")
        with pytest.raises(SalesFixtureError):
            load_fixture(path)


# ---------------------------------------------------------------------------
# Upload
# ---------------------------------------------------------------------------


class TestUpload:
    def test_missing_ids_are_generated(self) -> None:
        content = json.dumps([{"product": "A"}, {"id": "keep", "product": "B"}, {"id": "", "product": "C"}])

        rows = parse_upload(content.encode("utf-8"), max_bytes=10_000)

        assert [row["id"] for row in rows] == ["upload-0", "keep", "upload-2"]

    @pytest.mark.parametrize(
        "content",
        [
            b"\xff\xfe\x00",
            b"{not json",
            b'{"product": "A"}',
            b"[1, 2]",
        ],
    )
    def test_malformed_upload_raises(self, content: bytes) -> None:
        with pytest.raises(SalesUploadError):
            parse_upload(content, max_bytes=10_000)

    def test_upload_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            parse_upload(b"null", max_bytes=10_000)

    def test_size_limit(self) -> None:
        with pytest.raises(SalesUploadError):
            parse_upload(b"[]" + b" " * 100, max_bytes=10)


# ---------------------------------------------------------------------------
# Preprocessing
# ---------------------------------------------------------------------------


class TestQualityReport:
    def test_clean_dataset_scores_100(self) -> None:
        report = assess_quality([_record(), _record(id="r-2")])
        assert report.missing_values == 0
        assert report.anomalies == 0
        assert report.quality_score == 100

    def test_empty_dataset_scores_100(self) -> None:
        report = assess_quality([])
        assert report.total_records == 0
        assert report.quality_score == 100

    def test_missing_and_anomalies_are_counted(self) -> None:
        records = [
            _record(category="", region=""),
            _record(id="r-2", unit_price=-5.0),
            _record(id="r-3", quantity=0.0),
        ]

        report = assess_quality(records)

        assert report.missing_values == 2
        assert report.anomalies == 2
        # 100 * (1 - 4 / 18), rounded
        assert report.quality_score == 78

    def test_half_scores_round_up(self) -> None:
        records = [_record(id=f"r-{i}", category="", region="", date="") for i in range(6)]
        records += [_record(id="r-6"), _record(id="r-7")]

        report = assess_quality(records)

        assert report.missing_values == 18
        # 100 * (1 - 18 / 48) == 62.5
        assert report.quality_score == 63

    def test_zero_price_counts_as_missing(self) -> None:
        report = assess_quality([_record(unit_price=0.0)])
        assert report.missing_values == 1


class TestCleaning:
    def test_clean_fixes_defaults_and_anomalies(self) -> None:
        dirty = _record(category="", region="", customer_type="", unit_price=-5.0, quantity=0.0, date="")

        cleaned = clean_records([dirty])[0]

        assert cleaned.category == "Uncategorized"
        assert cleaned.region == "Unknown"
        assert cleaned.customer_type == "Regular"
        assert cleaned.unit_price == 5.0
        assert cleaned.quantity == 1.0
        assert cleaned.date == "2023-01-01"
        assert cleaned.total_sales == pytest.approx(5.0)

    def test_clean_output_has_no_anomalies(self) -> None:
        dirty = [_record(unit_price=-1.0), _record(id="r-2", quantity=-3.0)]
        assert assess_quality(clean_records(dirty)).anomalies == 0

    def test_clean_leaves_good_records_unchanged(self) -> None:
        record = _record()
        assert clean_records([record]) == [record]

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("2023-06-15", "2023-06-15"),
            ("2023-06-15T08:30:00Z", "2023-06-15"),
            ("06/15/2023", "2023-06-15"),
            ("garbage", "2023-01-01"),
            ("", "2023-01-01"),
        ],
    )
    def test_normalize_date_text(self, value: str, expected: str) -> None:
        assert normalize_date_text(value) == expected

    def test_fallback_year(self) -> None:
        assert normalize_date_text("", fallback_year=2024) == "2024-01-01"


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------


class TestCSVExport:
    def test_header_and_column_order(self) -> None:
        text = export_csv([_record()])
        header, first = text.splitlines()[:2]
        assert header == ",".join(EXPORT_FIELDS)
        assert first == "r-1,Speaker,Audio,2.0,10.0,20.0,Ohio,2023-03-01,Regular"

    def test_round_trip(self) -> None:
        records = [
            _record(),
            _record(id="r-2", product="Watch, Smart", quantity=3.5, unit_price=19.99, category=""),
        ]
        assert parse_csv(export_csv(records)) == records

    def test_sku_and_margin_are_not_exported(self) -> None:
        (parsed,) = parse_csv(export_csv([_record(sku="SP-1", margin=25.0)]))
        assert parsed.sku is None
        assert parsed.margin == 0.0
        assert parsed.total_sales == pytest.approx(20.0)

    def test_empty_export_has_header_only(self) -> None:
        assert export_csv([]).strip() == ",".join(EXPORT_FIELDS)

    def test_parse_without_header_raises(self) -> None:
        with pytest.raises(CSVExportError):
            parse_csv("")
