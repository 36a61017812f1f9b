"""HTTP transport for the SaleEditor service."""
from __future__ import annotations

import logging
import random
import threading
import time
from typing import Any, Dict, Optional

import requests

from saledesk.errors import ApiError, ConnectivityError, RequestCancelled

DEFAULT_BASE_URL = "https://api.example.com"


def _error_message(resp: requests.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return (resp.text or "").strip()[:200]
    if isinstance(data, dict):
        return str(data.get("message") or data.get("title") or data.get("error") or "")
    return ""


class SaleEditorClient:
    """Thin ``requests`` wrapper returning decoded JSON.

    GET calls are retried on 429/5xx and network errors with exponential
    backoff.  POST calls are sent exactly once.  After :meth:`cancel` every call
    (including ones whose answer arrives late) raises ``RequestCancelled``.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        token: str = "",
        timeout: float = 10,
        max_retries: int = 3,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.session = requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"
        self._cancelled = threading.Event()

    @classmethod
    def from_config(cls, config) -> "SaleEditorClient":
        return cls(
            base_url=config.get("SALE_API_URL", DEFAULT_BASE_URL),
            token=config.get("SALE_API_TOKEN", ""),
            timeout=config.get("SALE_API_TIMEOUT", 10),
            max_retries=config.get("SALE_API_RETRIES", 3),
        )

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()
        self.session.close()

    def _check_cancelled(self, path: str) -> None:
        if self._cancelled.is_set():
            raise RequestCancelled(path)

    def _send(self, method: str, path: str, **kwargs) -> requests.Response:
        self._check_cancelled(path)
        url = f"{self.base_url}{path}"
        start = time.monotonic()
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            self._check_cancelled(path)
            raise ConnectivityError(f"{method} {path}: {e}") from e
        self._check_cancelled(path)
        latency = (time.monotonic() - start) * 1000
        logging.info("SaleEditor %s %s %s %.1fms", method, path, resp.status_code, latency)
        return resp

    def _decode(self, resp: requests.Response) -> Dict[str, Any]:
        if resp.status_code >= 400:
            raise ApiError(resp.status_code, _error_message(resp))
        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError:
            return {}

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        tries = 0
        while True:
            try:
                r = self._send("GET", path, params=params)
            except ConnectivityError:
                tries += 1
                if tries > self.max_retries:
                    raise
                time.sleep(min(2 ** tries, 30) + random.random())
                continue
            if r.status_code == 429 or r.status_code >= 500:
                tries += 1
                if tries <= self.max_retries:
                    time.sleep(min(2 ** tries, 30) + random.random())
                    continue
            return self._decode(r)

    def post(self, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self._decode(self._send("POST", path, json=payload or {}))
