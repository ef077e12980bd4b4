from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from reportsync.core.enums import DataTier, ReportPriority, ReportStatus
from reportsync.models.report import Report
from reportsync.schemas.validation import ContactInfo, DraftLocation, ValidationVerdict


class ReportCreate(BaseModel):
    # presence is checked by the repository, not by the schema
    title: Optional[str] = None
    description: Optional[str] = None
    category_id: str = ""
    # unbounded: out-of-range values are rejected by the pre-check, not the schema
    location: Optional[DraftLocation] = None
    address: Optional[str] = None
    image: Optional[str] = None
    priority: Optional[ReportPriority] = None
    anonymous: bool = False

    custom_fields: Dict[str, Any] = Field(default_factory=dict)
    contact: Optional[ContactInfo] = None


class GeoPoint(BaseModel):
    lat: float
    lng: float


class GeoRadius(BaseModel):
    center: GeoPoint
    radius_m: float = Field(..., gt=0)


class ReportFilter(BaseModel):
    category_id: Optional[str] = None
    status: Optional[ReportStatus] = None
    priority: Optional[ReportPriority] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    text: Optional[str] = None
    near: Optional[GeoRadius] = None

    def to_query(self) -> Dict[str, str]:
        """Flat query params for the backend; unset dimensions are omitted."""
        params: Dict[str, str] = {}
        if self.category_id:
            params["category_id"] = self.category_id
        if self.status:
            params["status"] = self.status.value
        if self.priority:
            params["priority"] = self.priority.value
        if self.date_from:
            params["date_from"] = self.date_from.isoformat()
        if self.date_to:
            params["date_to"] = self.date_to.isoformat()
        if self.text:
            params["text"] = self.text
        if self.near:
            params["lat"] = str(self.near.center.lat)
            params["lng"] = str(self.near.center.lng)
            params["radius_m"] = str(self.near.radius_m)
        return params


class CreationResult(BaseModel):
    success: bool
    report: Optional[Report] = None
    error: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)
    tier: Optional[DataTier] = None
    verdict: Optional[ValidationVerdict] = None


class StatusUpdate(BaseModel):
    status: ReportStatus


class TrendPoint(BaseModel):
    date: str
    count: int


class ReportStatistics(BaseModel):
    total: int = 0
    new: int = 0
    in_process: int = 0
    resolved: int = 0
    rejected: int = 0
    pending_sync: int = 0
    by_category: Dict[str, int] = Field(default_factory=dict)
    trend: List[TrendPoint] = Field(default_factory=list)
