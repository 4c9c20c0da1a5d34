"""Cloud sync client and service."""

from .client import SyncClient, SyncError
from .schemas import PushResult, SyncDocument
from .service import SyncService

__all__ = ["SyncClient", "SyncError", "SyncDocument", "PushResult", "SyncService"]
