from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class SyncDocument(BaseModel):
    """Body returned by ``GET`` on the sync endpoint.

    Any field may be ``null`` when the remote side has never stored it.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    snapshots: Optional[list[Any]] = None
    targets: Optional[dict[str, Any]] = None
    targets_meta: Optional[dict[str, Any]] = Field(default=None, alias="targetsMeta")
    last_modified: Optional[str] = Field(default=None, alias="lastModified")


class PushResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    ok: bool = False
    last_modified: Optional[str] = Field(default=None, alias="lastModified")


class ErrorBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    error: Optional[str] = None


__all__ = ["SyncDocument", "PushResult", "ErrorBody"]
