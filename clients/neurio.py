"""HTTP client for the Neurio sensor API."""

from __future__ import annotations

import logging
from typing import Any, List, Optional

import httpx

from models.samples import Granularity, Sample, TimeRange
from services.errors import ConfigurationError, SensorResponseError
from settings import DEFAULT_BASE_URL

logger = logging.getLogger(__name__)


class NeurioClient:
    """Minimal HTTP client for a single Neurio sensor.

    The access token is used as-is; obtaining and refreshing it is left to the
    caller.
    """

    def __init__(
        self,
        sensor_id: str,
        access_token: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        page_size: int = 500,
        page_limit: int = 10,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        if not sensor_id:
            raise ConfigurationError("A sensor id is required.")
        if not access_token:
            raise ConfigurationError("An access token is required.")
        self.sensor_id = sensor_id
        self.page_size = page_size
        self.page_limit = page_limit
        self._client = http_client or httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
        )
        self._client.headers["Authorization"] = f"Bearer {access_token}"

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "NeurioClient":
        return self

    def __exit__(self, *_exc_info: object) -> None:
        self.close()

    def fetch_samples(
        self,
        start: str,
        granularity: Granularity | str,
        end: Optional[str] = None,
        frequency: Optional[int] = None,
    ) -> List[Sample]:
        window = TimeRange(start=start, granularity=granularity, end=end, frequency=frequency)
        payload = self._get("/samples", window.as_params())
        return self._parse_samples(payload)

    def fetch_energy_stats(
        self,
        start: str,
        granularity: Granularity | str,
        end: Optional[str] = None,
        frequency: Optional[int] = None,
        page_size: Optional[int] = None,
        page_limit: Optional[int] = None,
    ) -> List[Sample]:
        window = TimeRange(start=start, granularity=granularity, end=end, frequency=frequency)
        per_page = page_size or self.page_size
        pages = page_limit or self.page_limit

        samples: List[Sample] = []
        for page in range(1, pages + 1):
            params = window.as_params()
            params.update({"perPage": per_page, "page": page})
            batch = self._parse_samples(self._get("/samples/stats", params))
            samples.extend(batch)
            logger.debug(
                "Fetched energy stats page",
                extra={"sensor_id": self.sensor_id, "page": page, "sample_count": len(batch)},
            )
            if len(batch) < per_page:
                break
        return samples

    def _get(self, path: str, params: dict[str, Any]) -> Any:
        query = {"sensorId": self.sensor_id, **params}
        response = self._client.get(path, params=query)
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError:
            logger.warning(
                "Sensor API request failed",
                extra={
                    "sensor_id": self.sensor_id,
                    "status_code": response.status_code,
                    "reason": response.text.strip() or None,
                },
            )
            raise
        try:
            return response.json()
        except ValueError as exc:
            raise SensorResponseError("The sensor API answered with a non-JSON body.") from exc

    @staticmethod
    def _parse_samples(payload: Any) -> List[Sample]:
        if not isinstance(payload, list):
            raise SensorResponseError(
                f"Expected a list of samples, got {type(payload).__name__}."
            )
        samples: List[Sample] = []
        for entry in payload:
            if not isinstance(entry, dict):
                raise SensorResponseError("Sample entries must be JSON objects.")
            try:
                samples.append(Sample.from_payload(entry))
            except (TypeError, ValueError) as exc:
                raise SensorResponseError(f"Malformed sample: {entry!r}") from exc
        return samples
