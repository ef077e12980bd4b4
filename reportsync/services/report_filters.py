from __future__ import annotations

from typing import Iterable, List, Optional

from reportsync.models.report import Report
from reportsync.schemas.report import ReportFilter
from reportsync.utils.mongo import parse_iso


def apply_filters(reports: Iterable[Report], filt: Optional[ReportFilter]) -> List[Report]:
    """
    Conjunctive in-memory filter used by the local tier.
    `near` is not evaluated here; only the backend applies the radius.
    """
    result = list(reports)
    if filt is None:
        return result

    if filt.category_id:
        result = [r for r in result if r.category_id == filt.category_id]

    if filt.status:
        result = [r for r in result if r.status == filt.status]

    if filt.priority:
        result = [r for r in result if r.priority == filt.priority]

    if filt.date_from:
        since = parse_iso(filt.date_from)
        result = [r for r in result if r.created_at >= since]

    if filt.date_to:
        until = parse_iso(filt.date_to)
        result = [r for r in result if r.created_at <= until]

    if filt.text:
        needle = filt.text.lower()
        result = [
            r
            for r in result
            if needle in r.title.lower() or needle in r.description.lower()
        ]

    return result


def newest_first(reports: Iterable[Report]) -> List[Report]:
    # same timestamp: the later identity first
    return sorted(reports, key=lambda r: (r.created_at, r.id), reverse=True)
