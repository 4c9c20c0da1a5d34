"""Persisted, date-ordered collection of portfolio snapshots."""
from __future__ import annotations

import json
import logging
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Any, Callable, Sequence

from pydantic import ValidationError

from ..data.repo_base import SNAPSHOTS_KEY, BaseRepository
from ..notify import ERROR, SUCCESS, LoggingNotifier, Notifier
from .codec import DEFAULT_CURRENCY_SYMBOL, decode_legacy, format_tabular, migrate_snapshots, needs_migration, parse_tabular_input
from .metrics import compute_snapshot_metrics
from .models import Asset, DerivedSnapshot, Snapshot, parse_instant
from .schemas import RawSnapshot

if TYPE_CHECKING:  # pragma: no cover
    from ..sync.service import SyncService

LOGGER = logging.getLogger(__name__)

MSG_CORRUPT = "Stored snapshot data was corrupt; the history has been reset."
MSG_EMPTY_INPUT = "Paste your portfolio data before saving."
MSG_MISSING_DATE = "Select a date for the snapshot."
MSG_UNPARSEABLE = "No rows could be parsed. Check the format."
MSG_IMPORT_FAILED = "Could not import the JSON file."
MSG_NOTHING_TO_EXPORT = "There is no data to export."


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SnapshotStore:
    """Owns the snapshot list and keeps the repository copy in step with it.

    Every successful mutation persists the raw fields of all snapshots and
    schedules a push through the sync service, when one is attached.
    Validation problems are reported through the notifier and leave the list
    untouched.
    """

    def __init__(
        self,
        repo: BaseRepository,
        *,
        notifier: Notifier | None = None,
        sync: "SyncService | None" = None,
        currency_symbol: str = DEFAULT_CURRENCY_SYMBOL,
        now_fn: Callable[[], datetime] | None = None,
    ) -> None:
        self.repo = repo
        self.notifier = notifier or LoggingNotifier()
        self.sync = sync
        self.currency_symbol = currency_symbol
        self._now = now_fn or _utcnow
        self.snapshots: list[DerivedSnapshot] = []

    # ------------------------------------------------------------------
    def _new_id(self) -> int:
        candidate = int(self._now().timestamp() * 1000)
        taken = {snapshot.id for snapshot in self.snapshots}
        while candidate in taken:
            candidate += 1
        return candidate

    def _sort(self) -> None:
        self.snapshots.sort(key=lambda snapshot: snapshot.date)

    def _write(self) -> None:
        payload = [snapshot.to_raw() for snapshot in self.snapshots]
        self.repo.set(SNAPSHOTS_KEY, json.dumps(payload, ensure_ascii=False))

    def _commit(self) -> None:
        self._sort()
        self._write()
        if self.sync is not None:
            self.sync.push_async()

    def _build(self, raw: RawSnapshot, assigned_ids: set[int]) -> DerivedSnapshot:
        snapshot_id = raw.id
        if snapshot_id is None:
            snapshot_id = self._new_id()
            while snapshot_id in assigned_ids:
                snapshot_id += 1
        assigned_ids.add(snapshot_id)
        return compute_snapshot_metrics(
            Snapshot(
                id=snapshot_id,
                date=raw.date,
                assets=decode_legacy(raw.assets),
                tag=raw.tag or "",
                note=raw.note or "",
            )
        )

    def _validate_input(self, raw_text: str | None, when: Any) -> tuple[list[Asset], datetime] | None:
        if not raw_text or not raw_text.strip():
            self.notifier.notify(MSG_EMPTY_INPUT, ERROR)
            return None
        if when is None or (isinstance(when, str) and not when.strip()):
            self.notifier.notify(MSG_MISSING_DATE, ERROR)
            return None
        try:
            instant = parse_instant(when)
        except ValueError:
            self.notifier.notify(MSG_MISSING_DATE, ERROR)
            return None
        assets = parse_tabular_input(raw_text, self.currency_symbol)
        if not assets:
            self.notifier.notify(MSG_UNPARSEABLE, ERROR)
            return None
        return assets, instant

    # ------------------------------------------------------------------
    def load(self) -> list[DerivedSnapshot]:
        """Read, migrate and re-persist the stored collection."""

        stored = self.repo.get(SNAPSHOTS_KEY)
        if not stored:
            self.snapshots = []
            return self.snapshots
        try:
            loaded = json.loads(stored)
            if not isinstance(loaded, list):
                raise ValueError("snapshot document is not a list")
        except ValueError as exc:
            LOGGER.warning("Discarding corrupt snapshot data: %s", exc)
            self.repo.remove(SNAPSHOTS_KEY)
            self.snapshots = []
            self.notifier.notify(MSG_CORRUPT, ERROR)
            return self.snapshots

        readable: list[dict[str, Any]] = []
        skipped = 0
        for element in loaded:
            try:
                RawSnapshot.model_validate(element)
            except ValidationError as exc:
                skipped += 1
                LOGGER.warning("Skipping unreadable stored snapshot: %s", exc)
            else:
                readable.append(element)

        if needs_migration(readable):
            LOGGER.info("Migrating %d snapshots to the compact asset format", len(readable))
            readable = migrate_snapshots(readable)

        snapshots: list[DerivedSnapshot] = []
        assigned: set[int] = set()
        for element in readable:
            snapshots.append(self._build(RawSnapshot.model_validate(element), assigned))
        if skipped:
            self.notifier.notify(f"{skipped} stored snapshot(s) could not be read and were dropped.", ERROR)

        self.snapshots = snapshots
        self._sort()
        self._write()
        return self.snapshots

    def latest(self) -> DerivedSnapshot | None:
        return self.snapshots[-1] if self.snapshots else None

    def get(self, snapshot_id: int) -> DerivedSnapshot | None:
        return next((s for s in self.snapshots if s.id == snapshot_id), None)

    # ------------------------------------------------------------------
    def capture(
        self,
        raw_text: str,
        when: datetime | date | str | None,
        tag: str = "",
        note: str = "",
    ) -> DerivedSnapshot | None:
        validated = self._validate_input(raw_text, when)
        if validated is None:
            return None
        assets, instant = validated
        snapshot = compute_snapshot_metrics(
            Snapshot(
                id=self._new_id(),
                date=instant,
                assets=assets,
                tag=(tag or "").strip(),
                note=(note or "").strip(),
            )
        )
        self.snapshots.append(snapshot)
        self._commit()
        self.notifier.notify("Snapshot saved", SUCCESS)
        return snapshot

    def edit(
        self,
        snapshot_id: int,
        raw_text: str,
        when: datetime | date | str | None,
        tag: str = "",
        note: str = "",
    ) -> DerivedSnapshot | None:
        index = next((i for i, s in enumerate(self.snapshots) if s.id == snapshot_id), None)
        if index is None:
            return None
        validated = self._validate_input(raw_text, when)
        if validated is None:
            return None
        assets, instant = validated
        snapshot = compute_snapshot_metrics(
            Snapshot(
                id=snapshot_id,
                date=instant,
                assets=assets,
                tag=(tag or "").strip(),
                note=(note or "").strip(),
            )
        )
        self.snapshots[index] = snapshot
        self._commit()
        self.notifier.notify("Snapshot updated", SUCCESS)
        return snapshot

    def delete(self, snapshot_id: int) -> bool:
        remaining = [s for s in self.snapshots if s.id != snapshot_id]
        if len(remaining) == len(self.snapshots):
            return False
        self.snapshots = remaining
        self._commit()
        self.notifier.notify("Snapshot deleted", SUCCESS)
        return True

    def import_batch(self, payload: str | Sequence[Any]) -> int | None:
        """Replace the whole collection; returns the number of snapshots imported."""

        try:
            data = json.loads(payload) if isinstance(payload, (str, bytes)) else payload
            if not isinstance(data, list):
                raise ValueError("import payload is not a list")
            raws = [RawSnapshot.model_validate(element) for element in data]
        except (ValueError, ValidationError) as exc:
            LOGGER.warning("Import rejected: %s", exc)
            self.notifier.notify(MSG_IMPORT_FAILED, ERROR)
            return None

        assigned: set[int] = set()
        self.snapshots = [self._build(raw, assigned) for raw in raws]
        self._commit()
        self.notifier.notify("Data imported and compacted", SUCCESS)
        return len(self.snapshots)

    def export_all(self) -> str | None:
        if not self.snapshots:
            self.notifier.notify(MSG_NOTHING_TO_EXPORT, ERROR)
            return None
        return json.dumps([s.to_raw() for s in self.snapshots], indent=2, ensure_ascii=False)

    def export_one(self, snapshot_id: int | None = None) -> str | None:
        """Tabular text for *snapshot_id*, or for the latest snapshot when omitted."""

        snapshot = self.latest() if snapshot_id is None else self.get(snapshot_id)
        if snapshot is None:
            self.notifier.notify("Snapshot not found", ERROR)
            return None
        return format_tabular(snapshot.assets)

    # --- holdings editor support ---------------------------------------
    def replace_latest_assets(self, assets: Sequence[Asset]) -> DerivedSnapshot | None:
        latest = self.latest()
        if latest is None:
            return None
        updated = compute_snapshot_metrics(
            Snapshot(id=latest.id, date=latest.date, assets=list(assets), tag=latest.tag, note=latest.note)
        )
        self.snapshots[-1] = updated
        self._commit()
        return updated

    def append(
        self,
        assets: Sequence[Asset],
        when: datetime,
        tag: str = "",
        note: str = "",
        *,
        restore_latest: Sequence[Asset] | None = None,
    ) -> DerivedSnapshot:
        """Add a snapshot dated *when*, optionally resetting the current latest first."""

        latest = self.latest()
        if restore_latest is not None and latest is not None:
            self.snapshots[-1] = compute_snapshot_metrics(
                Snapshot(id=latest.id, date=latest.date, assets=list(restore_latest), tag=latest.tag, note=latest.note)
            )
        snapshot = compute_snapshot_metrics(
            Snapshot(id=self._new_id(), date=when, assets=list(assets), tag=tag, note=note)
        )
        self.snapshots.append(snapshot)
        self._commit()
        return snapshot


__all__ = [
    "SnapshotStore",
    "MSG_CORRUPT",
    "MSG_EMPTY_INPUT",
    "MSG_MISSING_DATE",
    "MSG_UNPARSEABLE",
    "MSG_IMPORT_FAILED",
    "MSG_NOTHING_TO_EXPORT",
]
