"""
app/services/sales_loader_service.py

Loads the working sales dataset for one page view.

Order of preference:

    1. hosted ``sales`` table, newest first
    2. bundled fixture, when the backend is unconfigured, unreachable or
       returns no rows

Falling back is never an error. ``LoadResult.notice`` carries the message the
view shows as a non-blocking toast. Only a broken fixture raises.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache

from app.config import AnalyticsSettings, get_analytics_settings, get_baas_settings
from app.connectors.base import BaaSRequestError, BaaSTableClient
from app.logging_utils import log_event
from app.repositories.sales_repository import SalesRepository, load_fixture
from sales.normalizer import SalesRecord, normalize_records

logger = logging.getLogger(__name__)

SOURCE_REMOTE = "remote"
SOURCE_FIXTURE = "fixture"


@dataclass(frozen=True)
class LoadNotice:
    title: str
    description: str


FETCH_FAILED_NOTICE = LoadNotice(
    title="Using local data",
    description="Could not connect to database, using sample data instead.",
)
EMPTY_TABLE_NOTICE = LoadNotice(
    title="Using local data",
    description="No sales rows found in the database, using sample data instead.",
)


@dataclass(frozen=True)
class LoadResult:
    records: list[SalesRecord] = field(default_factory=list)
    source: str = SOURCE_FIXTURE
    notice: LoadNotice | None = None


class SalesLoaderService:
    """
    Fetches remote sales rows and falls back to the bundled fixture.
    """

    def __init__(
        self,
        *,
        repository: SalesRepository,
        settings: AnalyticsSettings,
    ) -> None:
        self._repository = repository
        self._settings = settings

    def load(self) -> LoadResult:
        try:
            rows = self._repository.fetch_all()
        except BaaSRequestError as exc:
            logger.warning("Sales fetch failed, falling back to fixture: %s", exc)
            return self._from_fixture(FETCH_FAILED_NOTICE, reason="fetch_failed")

        if not rows:
            logger.warning("Sales table returned no rows, falling back to fixture")
            return self._from_fixture(EMPTY_TABLE_NOTICE, reason="empty_table")

        records = normalize_records(rows, year=self._settings.fallback_year)
        log_event(logger, logging.INFO, "sales_loaded", source=SOURCE_REMOTE, records=len(records))
        return LoadResult(records=records, source=SOURCE_REMOTE)

    def load_fixture(self) -> list[SalesRecord]:
        """Normalized fixture rows. Raises SalesFixtureError if unreadable."""
        rows = load_fixture(self._settings.fixture_path)
        return normalize_records(rows, year=self._settings.fallback_year)

    def _from_fixture(self, notice: LoadNotice, *, reason: str) -> LoadResult:
        records = self.load_fixture()
        log_event(
            logger,
            logging.INFO,
            "sales_loaded",
            source=SOURCE_FIXTURE,
            reason=reason,
            records=len(records),
        )
        return LoadResult(records=records, source=SOURCE_FIXTURE, notice=notice)


@lru_cache(maxsize=1)
def get_sales_loader_service() -> SalesLoaderService:
    """
    Build and cache the sales loader from environment settings.
    """

    baas_settings = get_baas_settings()
    client = BaaSTableClient(settings=baas_settings)
    return SalesLoaderService(
        repository=SalesRepository(client, table=baas_settings.sales_table),
        settings=get_analytics_settings(),
    )
