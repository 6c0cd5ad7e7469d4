"""
app/connectors/base.py

HTTP client for the hosted backend's PostgREST table API.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import requests

from app.config import BaaSSettings

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class BaaSRequestError(RuntimeError):
    """
    Raised when a backend table request fails after retries.
    """


class BaaSNotConfiguredError(BaaSRequestError):
    """
    Raised when the backend URL or key is missing.
    """


class BaaSTableClient:
    """
    Minimal table client: ordered selects and single-row inserts.
    """

    source = "baas"

    def __init__(
        self,
        *,
        settings: BaaSSettings,
        session: requests.Session | None = None,
    ) -> None:
        self._settings = settings
        self._session = session or requests.Session()
        self._timeout_seconds = settings.timeout_seconds
        self._max_retries = settings.max_retries
        self._backoff_initial_seconds = settings.backoff_initial_seconds
        self._backoff_multiplier = settings.backoff_multiplier

    @property
    def enabled(self) -> bool:
        return self._settings.enabled

    def select(
        self,
        table: str,
        *,
        order: str | None = None,
        descending: bool = False,
        max_retries: int | None = None,
    ) -> list[dict[str, Any]]:
        """
        Fetch every row of *table*, optionally ordered by one column.

        *max_retries* overrides the configured retry count for this call;
        pass ``0`` for a single attempt.

        Raises:
            BaaSNotConfiguredError: URL or key missing.
            BaaSRequestError: Transport failure, non-2xx status or a body
                that is not a JSON array.
        """
        params = {"select": "*"}
        if order:
            params["order"] = f"{order}.{'desc' if descending else 'asc'}"

        payload = self._request_json(method="GET", table=table, params=params, max_retries=max_retries)
        if not isinstance(payload, list):
            raise BaaSRequestError(f"{self.source}: expected a JSON array from table {table!r}.")
        return [row for row in payload if isinstance(row, dict)]

    def insert(self, table: str, row: dict[str, Any]) -> dict[str, Any] | None:
        """
        Insert one row and return the stored representation when the backend
        sends it back.
        """
        payload = self._request_json(
            method="POST",
            table=table,
            json_body=row,
            extra_headers={"Prefer": "return=representation"},
        )
        if isinstance(payload, list) and payload and isinstance(payload[0], dict):
            return payload[0]
        return None

    def _headers(self) -> dict[str, str]:
        key = self._settings.anon_key or ""
        return {
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
        }

    def _table_url(self, table: str) -> str:
        return f"{self._settings.url}/rest/v1/{table}"

    def _request_json(
        self,
        *,
        method: str,
        table: str,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
        extra_headers: dict[str, str] | None = None,
        max_retries: int | None = None,
    ) -> Any:
        if not self.enabled:
            raise BaaSNotConfiguredError(f"{self.source}: BAAS_URL and BAAS_ANON_KEY must be set.")

        headers = self._headers()
        if extra_headers:
            headers.update(extra_headers)
        response = self._request(
            method=method,
            url=self._table_url(table),
            params=params,
            headers=headers,
            json_body=json_body,
            max_retries=max_retries,
        )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise BaaSRequestError(f"{self.source}: response was not valid JSON.") from exc

    def _request(
        self,
        *,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        json_body: Any = None,
        max_retries: int | None = None,
    ) -> requests.Response:
        """
        Execute an HTTP request with exponential backoff on retryable failures.
        """

        retries = self._max_retries if max_retries is None else max_retries
        last_error: Exception | None = None
        for attempt in range(retries + 1):
            try:
                response = self._session.request(
                    method=method,
                    url=url,
                    params=params,
                    headers=headers,
                    json=json_body,
                    timeout=self._timeout_seconds,
                )
                if response.status_code in RETRYABLE_STATUS_CODES:
                    raise requests.HTTPError(
                        f"Retryable HTTP status code: {response.status_code}",
                        response=response,
                    )
                response.raise_for_status()
                return response
            except requests.HTTPError as exc:
                last_error = exc
                status_code = exc.response.status_code if exc.response is not None else None
                if status_code not in RETRYABLE_STATUS_CODES:
                    logger.error(
                        "BaaS request failed status=%s method=%s url=%s error=%s",
                        status_code,
                        method,
                        url,
                        exc,
                    )
                    raise BaaSRequestError(f"{self.source}: non-retryable request failure.") from exc
            except (requests.Timeout, requests.ConnectionError) as exc:
                last_error = exc

            if attempt >= retries:
                break

            backoff_seconds = self._backoff_initial_seconds * (self._backoff_multiplier**attempt)
            logger.warning(
                "BaaS request retry attempt=%s/%s wait_seconds=%.2f url=%s",
                attempt + 1,
                retries,
                backoff_seconds,
                url,
            )
            time.sleep(backoff_seconds)

        logger.error("BaaS request exhausted retries url=%s error=%s", url, last_error)
        raise BaaSRequestError(f"{self.source}: request failed after retries.") from last_error
