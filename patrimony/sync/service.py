"""Pull/push orchestration between the local repository and the sync endpoint."""
from __future__ import annotations

import json
import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait
from typing import Any

from ..data.repo_base import SYNCED_KEYS, BaseRepository, RepositoryError
from ..notify import ERROR, SUCCESS, LoggingNotifier, Notifier
from .client import SyncClient, SyncError

LOGGER = logging.getLogger(__name__)


class SyncService:
    """Mirror the synced storage keys to and from the remote endpoint.

    Remote values overwrite local ones on pull and local values overwrite
    remote ones on push; there is no merging. Without a client every
    operation is a no-op.
    """

    def __init__(
        self,
        repo: BaseRepository,
        client: SyncClient | None = None,
        *,
        notifier: Notifier | None = None,
        executor: Executor | None = None,
    ) -> None:
        self.repo = repo
        self.client = client
        self.notifier = notifier or LoggingNotifier()
        self._executor = executor
        self._pending: list[Future] = []

    @property
    def enabled(self) -> bool:
        return self.client is not None

    # ------------------------------------------------------------------
    def pull(self) -> bool:
        """Overwrite local keys with every non-null remote value."""

        if self.client is None:
            return False
        try:
            document = self.client.pull()
        except SyncError as exc:
            self.notifier.notify(str(exc), ERROR)
            return False
        remote = {
            "snapshots": document.snapshots,
            "targets": document.targets,
            "targetsMeta": document.targets_meta,
        }
        try:
            for field, value in remote.items():
                if value is not None:
                    self.repo.set(SYNCED_KEYS[field], json.dumps(value))
        except RepositoryError as exc:
            self.notifier.notify(f"Could not store downloaded data: {exc}", ERROR)
            return False
        LOGGER.info("Pulled remote state (last modified %s)", document.last_modified)
        self.notifier.notify("Data downloaded from the cloud", SUCCESS)
        return True

    def build_push_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {}
        for field, key in SYNCED_KEYS.items():
            raw = self.repo.get(key)
            if not raw:
                continue
            try:
                body[field] = json.loads(raw)
            except json.JSONDecodeError:
                LOGGER.warning("Skipping unreadable local value for %s", key)
        return body

    def push(self) -> bool:
        if self.client is None:
            return False
        try:
            result = self.client.push(self.build_push_body())
        except SyncError as exc:
            self.notifier.notify(str(exc), ERROR)
            return False
        LOGGER.info("Pushed local state (last modified %s)", result.last_modified)
        self.notifier.notify("Data saved to the cloud", SUCCESS)
        return True

    # ------------------------------------------------------------------
    def push_async(self) -> Future | None:
        """Schedule a push without waiting for it."""

        if self.client is None:
            return None
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="patrimony-sync")
        future = self._executor.submit(self.push)
        self._pending = [f for f in self._pending if not f.done()] + [future]
        return future

    def flush(self, timeout: float | None = None) -> None:
        """Wait for scheduled pushes to finish."""

        pending, self._pending = self._pending, []
        if pending:
            wait(pending, timeout=timeout)

    def close(self) -> None:
        self.flush()
        if isinstance(self._executor, ThreadPoolExecutor):
            self._executor.shutdown(wait=True)
        self._executor = None


__all__ = ["SyncService"]
