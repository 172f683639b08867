from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import Field

from .base import CamelModel
from .constants import SCHEMA_VERSION


class SnapshotConfig(CamelModel):
    categories: Optional[List[str]] = None
    payment_methods: Optional[List[str]] = None


class Snapshot(CamelModel):
    """Full backup payload: every record kind of the store."""

    schema_version: str = SCHEMA_VERSION
    exported_at: Optional[Union[int, str]] = None
    trips: List[Dict[str, Any]] = Field(default_factory=list)
    expenses: List[Dict[str, Any]] = Field(default_factory=list)
    config: SnapshotConfig = Field(default_factory=SnapshotConfig)
