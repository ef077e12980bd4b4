from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import ConfigDict, Field, field_validator, model_validator

from reportsync.core.enums import IdentitySource, ReportPriority, ReportStatus
from reportsync.models.category import CategorySnapshot
from reportsync.models.common import SyncBaseModel
from reportsync.utils.mongo import parse_iso, utcnow


class Coordinates(SyncBaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class ReportIdentity(SyncBaseModel):
    """
    Tagged identity: `local` while the record only exists on this device,
    `remote` once the backend issued (or acknowledged) the value.
    """

    # hashable: identities are collected into sets when re-keying
    model_config = ConfigDict(frozen=True)

    source: IdentitySource
    value: int

    @classmethod
    def local(cls, value: int) -> "ReportIdentity":
        return cls(source=IdentitySource.local, value=value)

    @classmethod
    def remote(cls, value: int) -> "ReportIdentity":
        return cls(source=IdentitySource.remote, value=value)


class ZoneSnapshot(SyncBaseModel):
    id: int = 1
    name: str = "Downtown"
    type: str = "neighborhood"
    active: bool = True


class OwnerSnapshot(SyncBaseModel):
    id: int
    name: str = "User"


class Report(SyncBaseModel):
    id: int
    identity: Optional[ReportIdentity] = None
    # client-generated, stable across re-keying; sent to the backend on create
    idempotency_key: Optional[str] = None

    title: str
    description: str
    category_id: str
    location: Coordinates
    address: str = ""
    images: List[str] = Field(default_factory=list)

    status: ReportStatus = ReportStatus.new
    priority: ReportPriority = ReportPriority.medium
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    owner_id: int = 0
    likes: int = 0
    dislikes: int = 0
    validation_votes: int = 0
    comments_count: int = 0
    validated: Optional[bool] = None

    category: Optional[CategorySnapshot] = None
    zone: ZoneSnapshot = Field(default_factory=ZoneSnapshot)
    owner: Optional[OwnerSnapshot] = None

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _aware_timestamps(cls, v):
        if v is None:
            return utcnow()
        parsed = parse_iso(v)
        return parsed if parsed is not None else v

    @model_validator(mode="after")
    def _default_identity(self):
        # records without a tag came from the backend
        if self.identity is None:
            self.identity = ReportIdentity.remote(self.id)
        return self

    @property
    def pending_sync(self) -> bool:
        return self.identity is not None and self.identity.source == IdentitySource.local

    def rekey(self, identity: ReportIdentity) -> "Report":
        return self.model_copy(update={"id": identity.value, "identity": identity})
