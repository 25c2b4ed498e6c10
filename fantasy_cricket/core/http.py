from __future__ import annotations
import logging
import time
from typing import Any, Mapping, Optional
import httpx

DEFAULT_TIMEOUT = 20.0
RETRYABLE = (429, 502, 503, 504)

log = logging.getLogger(__name__)

class HttpRetryingClient:
    """httpx client with basic retries/backoff, used to pull bootstrap JSON documents."""
    def __init__(self, base_url: str, headers: Optional[Mapping[str, str]] = None,
                 timeout: float = DEFAULT_TIMEOUT, transport: Optional[httpx.BaseTransport] = None,
                 backoff: float = 0.75):
        self._base = base_url.rstrip("/")
        self._backoff = backoff
        self._http = httpx.Client(timeout=timeout, headers=headers or {}, transport=transport)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "HttpRetryingClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def url_for(self, name: str) -> str:
        return f"{self._base}/{name.lstrip('/')}"

    def get(self, url: str, *, params: Optional[Mapping[str, Any]] = None,
            retries: int = 2, backoff: Optional[float] = None) -> httpx.Response:
        backoff = self._backoff if backoff is None else backoff
        last_exc = None
        for i in range(retries + 1):
            try:
                r = self._http.get(url, params=params or {})
                r.raise_for_status()
                return r
            except httpx.HTTPStatusError as e:
                # 4xx other than 429 will not get better on retry
                if e.response.status_code not in RETRYABLE:
                    raise
                last_exc = e
            except httpx.TransportError as e:
                last_exc = e
            if i < retries:
                log.warning("GET %s failed (%s), retry %d/%d", url, last_exc, i + 1, retries)
                time.sleep(backoff * (2 ** i))
        assert last_exc is not None
        raise last_exc

    def get_json(self, name: str, **kwargs: Any) -> Any:
        return self.get(self.url_for(name), **kwargs).json()
