from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from pydantic import ValidationError

from reportsync.core.config import Settings
from reportsync.core.enums import DataTier
from reportsync.core.errors import CacheError
from reportsync.models.category import DEFAULT_CATEGORIES, Category
from reportsync.repositories.cache_repository import CacheRepository
from reportsync.services.fallback import try_remote
from reportsync.services.remote_service import RemoteService
from reportsync.utils.category_icons import icon_for
from reportsync.utils.mongo import utcnow

logger = logging.getLogger(__name__)

CATEGORIES_KEY = "report_categories"


def _with_icons(categories: List[Category]) -> List[Category]:
    return [c.model_copy(update={"emoji": icon_for(c.name)}) for c in categories]


def _defaults() -> List[Category]:
    return _with_icons([c.model_copy(deep=True) for c in DEFAULT_CATEGORIES])


class CategoryDirectory:
    """
    Category lookup backed by the remote service, the persisted cache and
    a built-in default set, in that order. Sync failures are soft: callers
    keep getting the stale cache or the defaults.
    """

    def __init__(self, cache: CacheRepository, remote: RemoteService, settings: Settings):
        self.cache = cache
        self.remote = remote
        self.settings = settings
        self.ttl = timedelta(seconds=settings.category_ttl_seconds)

        self._categories: List[Category] = []
        self._last_update: Optional[datetime] = None
        self._tier: Optional[DataTier] = None
        self._lock = asyncio.Lock()

    # -------------------------
    # Lifecycle
    # -------------------------
    async def open(self) -> None:
        await self._load()

    async def close(self) -> None:
        async with self._lock:
            self._categories = []
            self._last_update = None
            self._tier = None

    @property
    def tier(self) -> Optional[DataTier]:
        return self._tier

    @property
    def last_update(self) -> Optional[datetime]:
        return self._last_update

    # -------------------------
    # Loading / sync
    # -------------------------
    async def _load(self) -> None:
        async with self._lock:
            try:
                raw = await self.cache.get(CATEGORIES_KEY)
                stamp = await self.cache.refreshed_at(CATEGORIES_KEY)
            except CacheError as exc:
                logger.warning("Category cache unreadable, ignoring it: %s", exc)
                raw, stamp = None, None

            if raw:
                try:
                    self._categories = [Category.model_validate(c) for c in raw]
                    self._last_update = stamp
                    self._tier = DataTier.local
                except ValidationError as exc:
                    logger.warning("Cached categories are malformed, dropping them: %s", exc)
                    self._categories = []
                    self._last_update = None

            stale = self._last_update is None or utcnow() - self._last_update > self.ttl

        if stale:
            await self.sync()

    async def sync(self) -> bool:
        """
        Replace the category set with the remote one. Returns False
        (never raises) when the remote set could not be obtained.
        """
        try:
            result = await try_remote(
                self.remote.list_categories,
                timeout=self.settings.remote_timeout_seconds,
                accept=bool,
            ).run()
        except Exception:
            logger.exception("Unexpected error while syncing categories")
            result = None

        async with self._lock:
            if result is None or not result.ok:
                if not self._categories:
                    self._categories = _defaults()
                    self._tier = DataTier.defaults
                logger.info("Category sync failed, serving %s data", self._tier.value)
                return False

            now = utcnow()
            self._categories = _with_icons(result.value)
            self._last_update = now
            self._tier = DataTier.remote

            try:
                await self.cache.put(CATEGORIES_KEY, self._categories)
                await self.cache.mark_refreshed(CATEGORIES_KEY, now)
            except CacheError as exc:
                logger.warning("Could not persist categories: %s", exc)

            logger.info("Categories synced: %d", len(self._categories))
            return True

    async def force_refresh(self) -> bool:
        try:
            await self.cache.clear(CATEGORIES_KEY)
        except CacheError as exc:
            logger.warning("Could not clear category cache: %s", exc)

        async with self._lock:
            self._categories = []
            self._last_update = None
            self._tier = None

        return await self.sync()

    # -------------------------
    # Queries
    # -------------------------
    async def list_active(self) -> List[Category]:
        if not self._categories:
            await self._load()
        return sorted((c for c in self._categories if c.active), key=lambda c: c.order)

    async def get(self, category_id: str) -> Optional[Category]:
        result = await try_remote(
            lambda: self.remote.get_category(category_id),
            timeout=self.settings.remote_timeout_seconds,
            accept=lambda c: c is not None,
        ).run()
        if result.ok:
            return result.value.model_copy(update={"emoji": icon_for(result.value.name)})

        if not self._categories:
            await self._load()
        # inactive entries are returned too so callers can tell "inactive" from "missing"
        return next((c for c in self._categories if c.id == category_id), None)

    async def search(self, term: str) -> List[Category]:
        needle = (term or "").lower()
        return [
            c
            for c in await self.list_active()
            if needle in c.name.lower() or needle in (c.description or "").lower()
        ]
