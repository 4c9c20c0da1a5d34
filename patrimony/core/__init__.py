"""Core domain exports."""
from .models import Asset, CategoryTarget, DerivedSnapshot, Snapshot, TargetsMeta
from .codec import format_tabular, migrate_snapshots, parse_tabular_input
from .metrics import compute_snapshot_metrics
from .ranges import RANGE_MONTHS, monthly_for_range, select_range
from .store import SnapshotStore
from .targets import TargetsBook
from .state import AppState
from .holdings import HoldingsEditor, SaveMode

__all__ = [
    "Asset",
    "CategoryTarget",
    "DerivedSnapshot",
    "Snapshot",
    "TargetsMeta",
    "format_tabular",
    "migrate_snapshots",
    "parse_tabular_input",
    "compute_snapshot_metrics",
    "RANGE_MONTHS",
    "monthly_for_range",
    "select_range",
    "SnapshotStore",
    "TargetsBook",
    "AppState",
    "HoldingsEditor",
    "SaveMode",
]
