"""HTTP client for the remote key-value sync endpoint."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from pydantic import ValidationError

from .schemas import ErrorBody, PushResult, SyncDocument

LOGGER = logging.getLogger(__name__)

PULL_FAILED = "Could not download data from the cloud"
PUSH_FAILED = "Could not upload data to the cloud"


class SyncError(RuntimeError):
    """Raised when the sync endpoint cannot be reached or rejects a request."""


def _default_opener(request: Request, timeout: float):
    return urlopen(request, timeout=timeout)  # noqa: S310 - configured endpoint


def _error_message(payload: bytes, fallback: str) -> str:
    try:
        body = ErrorBody.model_validate_json(payload or b"{}")
    except ValidationError:
        return fallback
    return body.error or fallback


@dataclass
class SyncClient:
    base_url: str
    timeout: float = 15.0
    _opener: Callable[[Request, float], Any] = _default_opener

    def _send(self, request: Request, fallback: str) -> bytes:
        LOGGER.debug("%s %s", request.get_method(), request.full_url)
        try:
            with self._opener(request, self.timeout) as response:
                status = getattr(response, "status", 200)
                payload = response.read()
        except HTTPError as exc:
            message = _error_message(exc.read() if exc.fp else b"", fallback)
            LOGGER.warning("Sync HTTP %s: %s", exc.code, message)
            raise SyncError(message) from exc
        except (URLError, OSError) as exc:
            LOGGER.warning("Sync transport failure: %s", exc)
            raise SyncError(f"{fallback}: {exc}") from exc
        if not 200 <= int(status) < 300:
            message = _error_message(payload, fallback)
            LOGGER.warning("Sync HTTP %s: %s", status, message)
            raise SyncError(message)
        return payload

    def pull(self) -> SyncDocument:
        request = Request(self.base_url, headers={"Accept": "application/json"}, method="GET")
        payload = self._send(request, PULL_FAILED)
        try:
            return SyncDocument.model_validate_json(payload)
        except ValidationError as exc:
            raise SyncError(f"{PULL_FAILED}: invalid response") from exc

    def push(self, body: Mapping[str, Any]) -> PushResult:
        request = Request(
            self.base_url,
            data=json.dumps(body).encode("utf-8"),
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            method="PUT",
        )
        payload = self._send(request, PUSH_FAILED)
        try:
            return PushResult.model_validate_json(payload or b"{}")
        except ValidationError as exc:
            raise SyncError(f"{PUSH_FAILED}: invalid response") from exc


__all__ = ["SyncClient", "SyncError", "PULL_FAILED", "PUSH_FAILED"]
