"""
Async client for the usage reporting API.

Serves two endpoints:
- GET /usage returns the daily usage feed and totals
- GET /exchange-rate?date=YYYY-MM-DD returns {"rate": <positive number>}
"""

from datetime import date
from typing import Any, Dict, Optional

import httpx

from ai_usage_dashboard.core.rates import RateUnavailableError, validate_rate
from ai_usage_dashboard.core.records import UsageResponse
from ai_usage_dashboard.observability.logger import get_logger

log = get_logger("client.api")

API_KEY_HEADER = "x-api-key"


class UsageFeedError(Exception):
    """Raised when the usage feed cannot be retrieved or parsed."""


class UsageApiClient:
    """Thin async wrapper over the reporting API.

    Use as an async context manager so the underlying connection pool is
    closed when the load cycle is done.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """Initialize the client.

        Args:
            base_url: API root, e.g. ``http://localhost:3000/api``
            api_key: Sent as the ``x-api-key`` header when set
            timeout_seconds: Per-request timeout
            transport: Optional transport, mainly for tests

        Raises:
            ValueError: If base_url is empty or timeout is not positive
        """
        if not base_url or not base_url.strip():
            raise ValueError("base_url is required and cannot be empty")
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")

        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._headers(),
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )

    def _headers(self) -> Dict[str, str]:
        if self.api_key:
            return {API_KEY_HEADER: self.api_key}
        return {}

    async def __aenter__(self) -> "UsageApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_usage(self) -> UsageResponse:
        """Fetch and parse the usage feed.

        Raises:
            UsageFeedError: On transport errors, non-2xx status or bad payload
        """
        if self.is_closed:
            raise UsageFeedError("Usage API client is closed")
        try:
            response = await self._client.get("/usage")
        except httpx.HTTPError as e:
            log.error("usage_fetch_error", url=self.base_url, error=str(e))
            raise UsageFeedError(f"Usage API request failed: {e}") from e

        if not response.is_success:
            log.error("usage_fetch_error", url=self.base_url, status=response.status_code)
            raise UsageFeedError(f"API error: {response.status_code}")

        try:
            usage = UsageResponse.from_dict(_json_body(response))
        except ValueError as e:
            log.error("usage_payload_invalid", error=str(e))
            raise UsageFeedError(f"Malformed usage payload: {e}") from e

        log.info("usage_fetched", days=len(usage.daily), total_cost=usage.totals.total_cost)
        return usage

    async def fetch_exchange_rate(self, day: date) -> float:
        """Fetch the USD rate for one date.

        Raises:
            RateUnavailableError: On any failure, including non-positive rates
        """
        if self.is_closed:
            raise RateUnavailableError(day, "client is closed")
        try:
            response = await self._client.get(
                "/exchange-rate",
                params={"date": day.isoformat()},
            )
        except httpx.HTTPError as e:
            raise RateUnavailableError(day, f"request failed: {e}") from e

        if not response.is_success:
            raise RateUnavailableError(day, f"HTTP {response.status_code}")

        try:
            body = _json_body(response)
        except ValueError as e:
            raise RateUnavailableError(day, str(e)) from e
        if not isinstance(body, dict) or "rate" not in body:
            raise RateUnavailableError(day, "response missing 'rate'")

        try:
            rate = validate_rate(body["rate"])
        except ValueError as e:
            raise RateUnavailableError(day, str(e)) from e

        log.debug("rate_fetched", date=day.isoformat(), rate=rate)
        return rate


def _json_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        raise ValueError("response body is not valid JSON")
