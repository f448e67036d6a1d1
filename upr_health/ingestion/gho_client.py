"""
WHO Global Health Observatory (GHO) OData API client.

API:   https://ghoapi.azureedge.net/api
Docs:  https://www.who.int/data/gho/info/gho-odata-api

Endpoints used:
  Dimension lookup (code → title):
    GET /DIMENSION/{dimension}/DimensionValues
    dimension: "GHO" (indicators), "COUNTRY", "REGION"
  Indicator observations:
    GET /{IndicatorCode}

Both return ``{"value": [ {...}, ... ]}``.

No credentials, no caching, no retry: one request per call, and any
``httpx`` error (transport failure, non-2xx status, unknown code → 404)
propagates to the caller. A report run either gets every series or fails.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, ClassVar, Optional

import httpx

from upr_health.models.indicator import IndicatorObservation

logger = logging.getLogger(__name__)


class IndicatorPayloadError(ValueError):
    """The service answered 2xx but the body is not a GHO OData payload."""


# ── Response types ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class DimensionValue:
    """One code → title entry of a GHO dimension."""

    code: str
    title: Optional[str]


# ── Client ─────────────────────────────────────────────────────────────────────

class GhoClient:
    """Read-only client for the GHO OData API.

    Usage::

        client = GhoClient()
        countries = client.get_dimension_values("COUNTRY")
        mmr = client.get_indicator_data("MDG_0000000026")
        series = client.fetch_many(["WHOSIS_000001", "NCDMORT3070"], concurrent=True)

    Tests inject ``transport`` / ``async_transport`` (e.g. ``httpx.MockTransport``)
    instead of touching the network.

    Attributes:
        base_url: API root, without trailing slash.
        timeout:  Per-request timeout in seconds.
    """

    BASE_URL: ClassVar[str] = "https://ghoapi.azureedge.net/api"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
        async_transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._async_transport = async_transport

    # ── Synchronous API ────────────────────────────────────────────────────────

    def get_dimension_values(self, dimension: str) -> list[DimensionValue]:
        """Fetch the code → title mapping of one GHO dimension.

        Raises:
            httpx.HTTPError:       On transport failure or non-2xx status.
            IndicatorPayloadError: If the body has no ``value`` list.
        """
        payload = self._get_json(f"DIMENSION/{dimension}/DimensionValues")
        values = [
            DimensionValue(code=str(row["Code"]), title=row.get("Title"))
            for row in _value_list(payload, f"dimension {dimension}")
            if row.get("Code") is not None
        ]
        logger.info("GHO dimension %s: %d values", dimension, len(values))
        return values

    def get_indicator_data(self, code: str) -> list[IndicatorObservation]:
        """Fetch every observation of one indicator.

        Raises:
            httpx.HTTPError:       On transport failure or non-2xx status
                                   (an unknown code answers 404).
            IndicatorPayloadError: If the body has no ``value`` list.
        """
        payload = self._get_json(code)
        return _parse_observations(code, payload)

    def fetch_many(
        self,
        codes: list[str],
        concurrent: bool = False,
        max_concurrency: int = 4,
    ) -> dict[str, list[IndicatorObservation]]:
        """Fetch several indicators, one request per code.

        Args:
            codes:           Indicator codes; the result keeps this order.
            concurrent:      Issue requests concurrently on an ``AsyncClient``.
            max_concurrency: Simultaneous requests when ``concurrent`` is set.

        Returns:
            ``{code: observations}`` in the order of ``codes``.

        Raises:
            httpx.HTTPError / IndicatorPayloadError: From the first failing code;
                no partial result is returned.
        """
        unique = list(dict.fromkeys(codes))
        if concurrent and len(unique) > 1:
            fetched = asyncio.run(self._fetch_all_async(unique, max_concurrency))
        else:
            fetched = {code: self.get_indicator_data(code) for code in unique}
        return {code: fetched[code] for code in unique}

    def _get_json(self, path: str) -> Any:
        url = f"{self.base_url}/{path}"
        logger.debug("GET %s", url)
        with httpx.Client(transport=self._transport, timeout=self.timeout) as client:
            resp = client.get(url)
            resp.raise_for_status()
            return resp.json()

    # ── Concurrent fetch ───────────────────────────────────────────────────────

    async def _fetch_one_async(
        self,
        client: httpx.AsyncClient,
        semaphore: asyncio.Semaphore,
        code: str,
    ) -> tuple[str, list[IndicatorObservation]]:
        async with semaphore:
            resp = await client.get(f"{self.base_url}/{code}")
            resp.raise_for_status()
            return code, _parse_observations(code, resp.json())

    async def _fetch_all_async(
        self,
        codes: list[str],
        max_concurrency: int,
    ) -> dict[str, list[IndicatorObservation]]:
        semaphore = asyncio.Semaphore(max_concurrency)
        async with httpx.AsyncClient(
            transport=self._async_transport, timeout=self.timeout
        ) as client:
            results = await asyncio.gather(
                *(self._fetch_one_async(client, semaphore, code) for code in codes)
            )
        return dict(results)


# ── Payload parsing ────────────────────────────────────────────────────────────

def _value_list(payload: Any, what: str) -> list[dict]:
    if not isinstance(payload, dict) or not isinstance(payload.get("value"), list):
        raise IndicatorPayloadError(f"GHO response for {what} has no 'value' list.")
    return payload["value"]


def _parse_observations(code: str, payload: Any) -> list[IndicatorObservation]:
    rows = _value_list(payload, f"indicator {code}")
    observations = [IndicatorObservation.from_api(code, row) for row in rows]
    logger.info("GHO indicator %s: %d observations", code, len(observations))
    return observations
