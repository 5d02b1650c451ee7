from __future__ import annotations

import logging
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from config.settings import HTTP_TIMEOUT_SECONDS
from destinations.base import DestinationError

logger = logging.getLogger(__name__)

USER_AGENT = "UploadDistributor/1.0"


def build_session() -> requests.Session:
    """Session with transport-level retries for idempotent reads only.

    Uploads are retried by the adapters' own policy, never by urllib3.
    """
    session = requests.Session()
    retry = Retry(
        total=3,
        backoff_factor=0.4,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=frozenset({"GET"}),
        respect_retry_after_header=True,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers.update({"User-Agent": USER_AGENT, "Accept": "application/json"})
    return session


class JsonApiClient:
    """Base for platform clients: one session, JSON responses, typed errors."""

    error_class: type[DestinationError] = DestinationError
    platform = "destination"

    def __init__(self, base_url: str, *, session: requests.Session | None = None, timeout: float = HTTP_TIMEOUT_SECONDS) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or build_session()

    def request_json(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        kwargs.setdefault("timeout", self.timeout)
        try:
            response = self._session.request(method, url, **kwargs)
        except requests.RequestException as exc:
            logger.error("destination_request_failed platform=%s method=%s endpoint=%s error=%s", self.platform, method, endpoint, exc)
            raise self.error_class(f"{self.platform} request failed: {exc}") from exc

        status = int(response.status_code)
        logger.info("destination_request platform=%s method=%s endpoint=%s status=%s", self.platform, method, endpoint, status)
        if status >= 400:
            raise self.error_class(_error_message(response), status_code=status)
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise self.error_class(f"{self.platform} returned invalid JSON for {endpoint}", status_code=status) from exc


def _error_message(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        for key in ("message", "error", "formatted_message", "detail"):
            value = payload.get(key)
            if isinstance(value, dict):
                value = value.get("message")
            if value:
                return str(value)
    text = (response.text or "").strip()
    return text[:200] or f"HTTP {response.status_code}"
