# reportsync/api/reports.py
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from reportsync.api.deps import get_report_repository
from reportsync.core.enums import ReportPriority, ReportStatus
from reportsync.schemas.report import (
    CreationResult,
    GeoPoint,
    GeoRadius,
    ReportCreate,
    ReportFilter,
    ReportStatistics,
    StatusUpdate,
)

router = APIRouter(prefix="/reports", tags=["Reports"])


def report_filter(
    category_id: Optional[str] = Query(None),
    status: Optional[ReportStatus] = Query(None),
    priority: Optional[ReportPriority] = Query(None),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    text: Optional[str] = Query(None),
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    radius_m: Optional[float] = Query(None, gt=0),
) -> ReportFilter:
    near = None
    if lat is not None and lng is not None and radius_m is not None:
        near = GeoRadius(center=GeoPoint(lat=lat, lng=lng), radius_m=radius_m)
    return ReportFilter(
        category_id=category_id,
        status=status,
        priority=priority,
        date_from=date_from,
        date_to=date_to,
        text=text,
        near=near,
    )


# -------------------------
# Create
# -------------------------
@router.post("", response_model=CreationResult)
async def create_report(body: ReportCreate, reports=Depends(get_report_repository)):
    # rejections are part of the result, not HTTP errors
    return await reports.create(body)


# -------------------------
# Lists
# -------------------------
@router.get("")
async def list_reports(
    filt: ReportFilter = Depends(report_filter),
    reports=Depends(get_report_repository),
):
    result = await reports.fetch_all(filt)
    return {"tier": result.tier, "data": result.value or []}


@router.get("/mine")
async def list_my_reports(
    filt: ReportFilter = Depends(report_filter),
    refresh: bool = Query(False),
    reports=Depends(get_report_repository),
):
    if refresh:
        await reports.refresh_mine()
    return {"data": await reports.list_mine(filt)}


@router.get("/map")
async def list_map_reports(
    filt: ReportFilter = Depends(report_filter),
    reports=Depends(get_report_repository),
):
    result = await reports.fetch_for_map(filt)
    return {"tier": result.tier, "data": result.value or []}


@router.get("/stats", response_model=ReportStatistics)
async def report_stats(reports=Depends(get_report_repository)):
    return await reports.statistics()


@router.get("/pending")
async def pending_reports(reports=Depends(get_report_repository)):
    return {"data": await reports.pending()}


@router.post("/sync")
async def sync_pending(reports=Depends(get_report_repository)):
    reconciled = await reports.sync_pending()
    return {"reconciled": reconciled, "pending": len(await reports.pending())}


# -------------------------
# Single report
# -------------------------
@router.get("/{report_id}")
async def get_report(report_id: int, reports=Depends(get_report_repository)):
    report = await reports.get(report_id)
    if not report:
        raise HTTPException(404, "Report not found")
    return report


@router.patch("/{report_id}/status")
async def update_status(
    report_id: int,
    body: StatusUpdate,
    reports=Depends(get_report_repository),
):
    if not await reports.get(report_id):
        raise HTTPException(404, "Report not found")
    if not await reports.update_status(report_id, body.status):
        raise HTTPException(503, "Status change could not be saved")
    return await reports.get(report_id)
