# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Prometheus query client — read one instant value for an expression.
"""

import time
from typing import Optional

import httpx

from oncall_sync.core.errors import InvalidResponse, TransportError
from oncall_sync.core.logging import get_logger
from oncall_sync.services.session import join_url

logger = get_logger(__name__)

QUERY_ENDPOINT = "/api/v1/query"


class PrometheusQueryClient:
    def __init__(self, base_url: str, http_client: httpx.Client) -> None:
        self._base_url = base_url
        self._http = http_client

    def query(self, expr: str, at: Optional[float] = None) -> float:
        """Value of the first sample of an instant query.

        Raises TransportError on network failure and InvalidResponse when the
        answer has no usable sample.
        """
        url = join_url(self._base_url, QUERY_ENDPOINT)
        params = {"query": expr, "time": str(int(at if at is not None else time.time()))}
        try:
            res = self._http.get(url, params=params)
        except httpx.HTTPError as exc:
            raise TransportError(f"prometheus query failed: {exc}", path=QUERY_ENDPOINT) from exc
        if res.status_code != 200:
            raise InvalidResponse(f"prometheus answered {res.status_code}")
        try:
            value = res.json()["data"]["result"][0]["value"][1]
            return float(value)
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise InvalidResponse(f"empty or malformed response for {expr!r}") from exc
