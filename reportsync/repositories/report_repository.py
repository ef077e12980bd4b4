from __future__ import annotations

import asyncio
import logging
import uuid
from collections import Counter
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from reportsync.core.config import Settings
from reportsync.core.enums import DataTier, DiagnosticKind, ReportPriority, ReportStatus
from reportsync.core.errors import CacheError, RemoteUnavailableError
from reportsync.models.category import Category, CategorySnapshot, snapshot_of
from reportsync.models.report import (
    Coordinates,
    OwnerSnapshot,
    Report,
    ReportIdentity,
    ZoneSnapshot,
)
from reportsync.repositories.cache_repository import CacheRepository
from reportsync.schemas.report import (
    CreationResult,
    ReportCreate,
    ReportFilter,
    ReportStatistics,
    TrendPoint,
)
from reportsync.schemas.validation import ReportDraft
from reportsync.services import validators
from reportsync.services.fallback import TierResult, try_remote
from reportsync.services.remote_service import RemoteService
from reportsync.services.report_filters import apply_filters, newest_first
from reportsync.utils.mongo import utcnow

logger = logging.getLogger(__name__)

ALL_REPORTS_KEY = "citizen_reports"
MY_REPORTS_KEY = "my_reports"

ACCEPTED_IMAGE_PREFIXES = ("file://", "content://", "data:image/", "http://", "https://")

PENDING_SYNC_WARNING = "Report saved locally. It will be synchronized when a connection is available."
INTERNAL_ERROR = "Internal system error"
PERSISTENCE_ERROR = "The report could not be saved on this device"
INVALID_IMAGE_ERROR = "Invalid image format. Use the camera or the gallery."


def draft_from(data: ReportCreate) -> ReportDraft:
    return ReportDraft(
        title=data.title,
        description=data.description,
        category_id=data.category_id or None,
        location=data.location,
        photos=[data.image] if data.image else None,
        custom_fields=data.custom_fields,
        anonymous=data.anonymous,
        contact=data.contact,
    )


def _precheck(data: ReportCreate) -> Optional[str]:
    if not (data.title or "").strip():
        return "The title is required"
    if not (data.description or "").strip():
        return "The description is required"
    if data.location is None:
        return "The location is required"

    # coordinates must fit the stored record before anything else runs
    checked = validators.check_location(draft_from(data), validators.ValidationLimits())
    errors = [d.message for d in checked.diagnostics if d.kind == DiagnosticKind.error]
    if errors:
        return "; ".join(errors)
    return None


class ReportRepository:
    """
    Owns report identity and the remote-first / local-fallback strategy.

    Two collections are kept in memory and mirrored to the cache:
    every report this device knows about, and the reports owned by the
    current user. Local identities come from a counter that is always
    greater than every id held in either collection.
    """

    def __init__(
        self,
        cache: CacheRepository,
        remote: RemoteService,
        directory,
        settings: Settings,
        validation=None,
    ):
        self.cache = cache
        self.remote = remote
        self.directory = directory
        self.settings = settings
        self.validation = validation

        self._all: List[Report] = []
        self._mine: List[Report] = []
        self._next_id = 1
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def open(self) -> None:
        async with self._lock:
            self._all = await self._read(ALL_REPORTS_KEY)
            self._mine = await self._read(MY_REPORTS_KEY)
            ids = [r.id for r in self._all + self._mine]
            self._next_id = max(ids) + 1 if ids else 1
        logger.info("Reports loaded: %d public, %d mine", len(self._all), len(self._mine))

    async def close(self) -> None:
        async with self._lock:
            self._all = []
            self._mine = []
            self._next_id = 1

    @property
    def next_id(self) -> int:
        return self._next_id

    # ------------------------------------------------------------------
    # Persistence helpers
    # ------------------------------------------------------------------
    async def _read(self, key: str) -> List[Report]:
        try:
            raw = await self.cache.get(key)
        except CacheError as exc:
            logger.warning("Report cache unreadable, starting empty: %s", exc)
            return []

        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.warning("Report cache %s is not a list, ignoring it", key)
            return []

        out: List[Report] = []
        for item in raw:
            try:
                out.append(Report.model_validate(item))
            except ValidationError as exc:
                logger.warning("Dropping malformed cached report in %s: %s", key, exc)
        return out

    async def _write_both(self) -> None:
        """Write both collections; one retry of the pair, then CacheError."""
        failures: List[Exception] = []
        for attempt in (1, 2):
            results = await asyncio.gather(
                self.cache.put(ALL_REPORTS_KEY, self._all),
                self.cache.put(MY_REPORTS_KEY, self._mine),
                return_exceptions=True,
            )
            failures = [r for r in results if isinstance(r, Exception)]
            if not failures:
                return
            for failure in failures:
                if not isinstance(failure, CacheError):
                    raise failure
            logger.warning("Persisting reports failed (attempt %d): %s", attempt, failures[0])
        raise failures[0]

    async def _commit(self, previous_all: List[Report], previous_mine: List[Report]) -> bool:
        """
        Persist the current collections. On failure restore the previous
        in-memory state (and try to restore the cache) and return False.
        Caller holds the lock.
        """
        try:
            await self._write_both()
            return True
        except CacheError:
            self._all, self._mine = previous_all, previous_mine
            try:
                await self._write_both()
            except CacheError as exc:
                logger.warning("Could not restore report cache: %s", exc)
            return False

    # ------------------------------------------------------------------
    # Identity helpers (caller holds the lock)
    # ------------------------------------------------------------------
    def _allocate_local(self) -> ReportIdentity:
        identity = ReportIdentity.local(self._next_id)
        self._next_id += 1
        return identity

    def _claim(self, value: int, keep: Optional[ReportIdentity] = None) -> None:
        """
        Make `value` available for a backend-issued identity: pending local
        records holding it are moved to a fresh local id, and the counter
        is pushed past it.
        """
        self._next_id = max(self._next_id, value + 1)

        clashing = {
            r.identity
            for r in self._known()
            if r.pending_sync and r.id == value and r.identity != keep
        }
        for identity in clashing:
            fresh = self._allocate_local()
            logger.info("Local report %d re-keyed to %d", identity.value, fresh.value)
            self._replace(lambda r: r.identity == identity, lambda r: r.rekey(fresh))

    def _replace(self, match, change) -> bool:
        found = False
        for collection in (self._all, self._mine):
            for i, r in enumerate(collection):
                if match(r):
                    collection[i] = change(r)
                    found = True
        return found

    def _upsert(self, report: Report, collection: List[Report]) -> None:
        for i, r in enumerate(collection):
            if r.identity == report.identity:
                collection[i] = report
                return
        collection.append(report)

    def _remove(self, match) -> None:
        self._all = [r for r in self._all if not match(r)]
        self._mine = [r for r in self._mine if not match(r)]

    def _adopt(self, report: Report) -> None:
        """
        Store a backend record in both collections. A pending local copy
        carrying the same client key is the same report and is dropped.
        """
        key = report.idempotency_key
        if key:
            self._remove(lambda r: r.pending_sync and r.idempotency_key == key)
        self._upsert(report, self._all)
        self._upsert(report, self._mine)

    def _known(self) -> List[Report]:
        seen = set()
        out = []
        for r in self._all + self._mine:
            key = (r.identity.source, r.identity.value)
            if key not in seen:
                seen.add(key)
                out.append(r)
        return out

    # ------------------------------------------------------------------
    # Backend payloads
    # ------------------------------------------------------------------
    def _owner_id(self, anonymous: bool) -> int:
        return self.settings.anonymous_owner_id if anonymous else self.settings.current_owner_id

    def _merge_backend(self, data: Dict[str, Any], local: Report) -> Report:
        """Backend answer wins for server-owned fields, local data fills the rest."""
        try:
            backend_id = int(data["id"])
        except (KeyError, TypeError, ValueError) as exc:
            raise RemoteUnavailableError("backend answer carries no usable report id") from exc

        category = local.category
        if data.get("category"):
            category = CategorySnapshot.model_validate(data["category"])

        owner_name = (data.get("owner") or {}).get("name") or "User"
        return Report(
            id=backend_id,
            identity=ReportIdentity.remote(backend_id),
            idempotency_key=local.idempotency_key,
            title=data.get("title") or local.title,
            description=data.get("description") or local.description,
            category_id=local.category_id,
            location=data.get("location") or local.location,
            address=data.get("address") or local.address,
            images=local.images,
            status=data.get("status") or local.status,
            priority=data.get("priority") or local.priority,
            created_at=data.get("created_at") or local.created_at,
            updated_at=data.get("updated_at") or data.get("created_at") or local.updated_at,
            owner_id=local.owner_id,
            owner=OwnerSnapshot(id=local.owner_id, name=owner_name),
            validated=data.get("validated", local.validated),
            category=category,
            zone=ZoneSnapshot.model_validate(data["zone"]) if data.get("zone") else local.zone,
        )

    @staticmethod
    def _payload(report: Report, anonymous: bool) -> Dict[str, Any]:
        return {
            "title": report.title,
            "description": report.description,
            "category_id": report.category_id,
            "location": {
                "latitude": report.location.latitude,
                "longitude": report.location.longitude,
            },
            "address": report.address,
            "priority": report.priority.value,
            "images": list(report.images),
            "anonymous": anonymous,
            "idempotency_key": report.idempotency_key,
        }

    async def _push(self, report: Report, anonymous: bool) -> TierResult[Report]:
        async def remote_create() -> Report:
            res = await self.remote.create_report(self._payload(report, anonymous))
            if not res.success or not isinstance(res.data, dict):
                raise RemoteUnavailableError(res.message or "backend rejected the report")
            return self._merge_backend(res.data, report)

        return await try_remote(
            remote_create, timeout=self.settings.remote_timeout_seconds
        ).run()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------
    async def create(self, data: ReportCreate) -> CreationResult:
        try:
            return await self._create(data)
        except Exception:
            logger.exception("Unexpected error creating report")
            return CreationResult(success=False, error=INTERNAL_ERROR)

    async def _create(self, data: ReportCreate) -> CreationResult:
        problem = _precheck(data)
        if problem:
            return CreationResult(success=False, error=problem)

        images: List[str] = []
        if data.image:
            if not data.image.startswith(ACCEPTED_IMAGE_PREFIXES):
                logger.info("Unrecognized image reference rejected: %.50s", data.image)
                return CreationResult(success=False, error=INVALID_IMAGE_ERROR)
            images.append(data.image)

        verdict = None
        if self.validation is not None:
            verdict = await self.validation.validate(draft_from(data))
            decision = self.validation.decide(verdict)
            if not decision.can_submit:
                return CreationResult(
                    success=False,
                    error="; ".join(decision.rejection_reasons),
                    verdict=verdict,
                )

        category: Optional[Category] = None
        if self.directory is not None and data.category_id:
            category = await self.directory.get(data.category_id)

        owner_id = self._owner_id(data.anonymous)
        now = utcnow()
        # identity is provisional until a tier accepts the record
        draft = Report(
            id=0,
            identity=ReportIdentity.local(0),
            idempotency_key=uuid.uuid4().hex,
            title=data.title.strip(),
            description=data.description.strip(),
            category_id=data.category_id,
            location=Coordinates(
                latitude=data.location.latitude, longitude=data.location.longitude
            ),
            address=data.address or "",
            images=images,
            status=ReportStatus.new,
            priority=data.priority or ReportPriority.medium,
            created_at=now,
            updated_at=now,
            owner_id=owner_id,
            owner=OwnerSnapshot(
                id=owner_id, name="Anonymous user" if data.anonymous else "User"
            ),
            category=snapshot_of(category, data.category_id),
        )

        pushed = await self._push(draft, data.anonymous)
        if pushed.ok:
            report = pushed.value
            async with self._lock:
                previous = (list(self._all), list(self._mine))
                self._claim(report.id)
                self._upsert(report, self._all)
                self._upsert(report, self._mine)
                if not await self._commit(*previous):
                    return CreationResult(success=False, error=PERSISTENCE_ERROR)
            logger.info("Report created on backend: %d", report.id)
            return CreationResult(
                success=True, report=report, tier=DataTier.remote, verdict=verdict
            )

        logger.info("Backend unavailable, saving report locally")
        async with self._lock:
            previous = (list(self._all), list(self._mine))
            report = draft.rekey(self._allocate_local()).model_copy(
                update={"address": data.address or "Address not specified"}
            )
            self._all.append(report)
            self._mine.append(report)
            if not await self._commit(*previous):
                return CreationResult(success=False, error=PERSISTENCE_ERROR)

        logger.info("Report created locally: id %d", report.id)
        return CreationResult(
            success=True,
            report=report,
            warnings=[PENDING_SYNC_WARNING],
            tier=DataTier.local,
            verdict=verdict,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    async def get(self, report_id: int) -> Optional[Report]:
        return next((r for r in self._all + self._mine if r.id == report_id), None)

    async def list_mine(self, filt: Optional[ReportFilter] = None) -> List[Report]:
        return newest_first(apply_filters(self._mine, filt))

    async def fetch_all(self, filt: Optional[ReportFilter] = None) -> TierResult[List[Report]]:
        async def remote_list() -> List[Report]:
            res = await self.remote.list_reports(filt.to_query() if filt else None)
            if not res.success:
                raise RemoteUnavailableError(res.message or "report listing rejected")
            return [Report.model_validate(r) for r in (res.data or [])]

        async def local_list() -> List[Report]:
            return newest_first(apply_filters(self._all, filt))

        return await (
            try_remote(remote_list, timeout=self.settings.remote_timeout_seconds, accept=bool)
            .or_else(DataTier.local, local_list)
            .run()
        )

    async def list_all(self, filt: Optional[ReportFilter] = None) -> List[Report]:
        return (await self.fetch_all(filt)).value

    async def fetch_for_map(self, filt: Optional[ReportFilter] = None) -> TierResult[List[Report]]:
        async def remote_map() -> List[Report]:
            res = await self.remote.list_map_reports(filt.to_query() if filt else None)
            if not res.success:
                raise RemoteUnavailableError(res.message or "map listing rejected")
            return [Report.model_validate(r) for r in (res.data or [])]

        async def local_validated() -> List[Report]:
            # unvalidated reports never reach the map
            return apply_filters([r for r in self._all if r.validated is True], filt)

        return await (
            try_remote(remote_map, timeout=self.settings.remote_timeout_seconds, accept=bool)
            .or_else(DataTier.local, local_validated)
            .run()
        )

    async def list_for_map(self, filt: Optional[ReportFilter] = None) -> List[Report]:
        return (await self.fetch_for_map(filt)).value

    async def pending(self) -> List[Report]:
        return [r for r in self._known() if r.pending_sync]

    async def statistics(self) -> ReportStatistics:
        known = self._known()
        by_status = Counter(r.status for r in known)
        by_day = Counter(r.created_at.date().isoformat() for r in known)
        return ReportStatistics(
            total=len(known),
            new=by_status.get(ReportStatus.new, 0),
            in_process=by_status.get(ReportStatus.in_process, 0),
            resolved=by_status.get(ReportStatus.resolved, 0),
            rejected=by_status.get(ReportStatus.rejected, 0),
            pending_sync=sum(1 for r in known if r.pending_sync),
            by_category=dict(Counter(r.category_id for r in known)),
            trend=[TrendPoint(date=d, count=c) for d, c in sorted(by_day.items())],
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    async def update_status(self, report_id: int, status: ReportStatus) -> bool:
        async with self._lock:
            previous = (list(self._all), list(self._mine))
            now = utcnow()
            found = False
            for collection in (self._all, self._mine):
                for i, r in enumerate(collection):
                    if r.id == report_id:
                        collection[i] = r.model_copy(update={"status": status, "updated_at": now})
                        found = True
            if not found:
                return False
            if not await self._commit(*previous):
                return False

        logger.info("Report %d status set to %s", report_id, status.value)
        return True

    async def refresh_mine(self) -> List[Report]:
        """Pull the caller's reports from the backend and merge them by identity."""

        async def remote_mine() -> List[Report]:
            res = await self.remote.list_my_reports()
            if not res.success:
                raise RemoteUnavailableError(res.message or "own report listing rejected")
            return [Report.model_validate(r) for r in (res.data or [])]

        result = await try_remote(
            remote_mine, timeout=self.settings.remote_timeout_seconds
        ).run()
        if not result.ok:
            return newest_first(self._mine)

        async with self._lock:
            previous = (list(self._all), list(self._mine))
            for report in result.value:
                self._claim(report.id, keep=report.identity)
                self._adopt(report)
            if not await self._commit(*previous):
                logger.warning("Fetched own reports could not be cached")

        return newest_first(self._mine)

    async def sync_pending(self) -> int:
        """
        Push locally created reports to the backend. Each accepted record is
        replaced by the backend copy, so no duplicate remains.
        """
        reconciled = 0
        for local in await self.pending():
            anonymous = local.owner_id == self.settings.anonymous_owner_id
            pushed = await self._push(local, anonymous)
            if not pushed.ok:
                logger.info("Report %d still pending, backend unavailable", local.id)
                continue

            remote = pushed.value
            async with self._lock:
                # match on the client key: the local id may have been re-keyed meanwhile
                key = local.idempotency_key
                current = next(
                    (
                        r
                        for r in self._known()
                        if r.pending_sync
                        and (r.idempotency_key == key if key else r.identity == local.identity)
                    ),
                    None,
                )
                if current is None:
                    continue
                previous = (list(self._all), list(self._mine))
                self._claim(remote.id, keep=current.identity)
                # the backend copy may already be known (a lost create reply)
                self._remove(lambda r: r.identity == current.identity)
                self._adopt(remote)
                if not await self._commit(*previous):
                    logger.warning("Reconciled report %d could not be cached", remote.id)
                    continue
            logger.info("Local report %d reconciled as %d", local.id, remote.id)
            reconciled += 1
        return reconciled
