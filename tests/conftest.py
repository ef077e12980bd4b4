import copy
from typing import Any, Dict, List, Optional

import pytest
from pymongo.errors import PyMongoError

from reportsync.core.config import Settings
from reportsync.core.errors import RemoteUnavailableError
from reportsync.models.category import Category
from reportsync.repositories.cache_repository import CacheRepository
from reportsync.repositories.report_repository import ReportRepository
from reportsync.services.category_directory import CategoryDirectory
from reportsync.services.remote_service import RemoteResponse
from reportsync.services.validation_service import ValidationService


# -------------------------
# Test doubles
# -------------------------
class _UpdateResult:
    def __init__(self, matched: int):
        self.matched_count = matched
        self.modified_count = matched


class _DeleteResult:
    def __init__(self, deleted: int):
        self.deleted_count = deleted


class FakeCollection:
    """The slice of the motor collection API the cache uses, kept in a dict."""

    def __init__(self):
        self.docs: Dict[str, Dict[str, Any]] = {}
        self.fail_writes = 0
        self.fail_reads = False
        self.writes: List[str] = []

    async def find_one(self, query):
        if self.fail_reads:
            raise PyMongoError("read refused")
        doc = self.docs.get(query["_id"])
        return copy.deepcopy(doc) if doc else None

    async def update_one(self, query, update, upsert=False):
        if self.fail_writes:
            self.fail_writes -= 1
            raise PyMongoError("write refused")
        key = query["_id"]
        if key not in self.docs:
            if not upsert:
                return _UpdateResult(0)
            self.docs[key] = {"_id": key}
        self.docs[key].update(copy.deepcopy(update["$set"]))
        self.writes.append(key)
        return _UpdateResult(1)

    async def delete_one(self, query):
        return _DeleteResult(1 if self.docs.pop(query["_id"], None) else 0)


class FakeRemote:
    """Backend stand-in. `online=False` makes every call fail like a dead network."""

    def __init__(self, online: bool = True):
        self.online = online
        self.categories: List[Category] = []
        self.reports: List[Dict[str, Any]] = []
        self.map_reports: List[Dict[str, Any]] = []
        self.my_reports: List[Dict[str, Any]] = []
        self.created: List[Dict[str, Any]] = []
        self.next_id = 1000
        self.calls: List[str] = []

    def _check(self, name: str):
        self.calls.append(name)
        if not self.online:
            raise RemoteUnavailableError(f"{name}: network unreachable")

    async def create_report(self, payload):
        self._check("create_report")
        self.created.append(payload)
        data = dict(payload)
        data.update(
            id=self.next_id,
            status="new",
            created_at="2026-03-01T10:00:00+00:00",
            category={"id": payload["category_id"], "name": "Remote category"},
        )
        self.next_id += 1
        return RemoteResponse(success=True, data=data)

    async def list_reports(self, filters=None):
        self._check("list_reports")
        return RemoteResponse(success=True, data=self.reports)

    async def list_map_reports(self, filters=None):
        self._check("list_map_reports")
        return RemoteResponse(success=True, data=self.map_reports)

    async def list_my_reports(self):
        self._check("list_my_reports")
        return RemoteResponse(success=True, data=self.my_reports)

    async def get_category(self, category_id: str) -> Optional[Category]:
        self._check("get_category")
        return next((c for c in self.categories if c.id == category_id), None)

    async def list_categories(self) -> List[Category]:
        self._check("list_categories")
        return list(self.categories)

    async def health(self) -> bool:
        return self.online


# -------------------------
# Fixtures
# -------------------------
@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        mongo_uri="mongodb://test",
        api_base_url="http://backend.test/api",
        remote_timeout_seconds=1.0,
    )


@pytest.fixture
def collection():
    return FakeCollection()


@pytest.fixture
def cache(collection):
    return CacheRepository(collection)


@pytest.fixture
def remote():
    return FakeRemote(online=True)


@pytest.fixture
def offline_remote():
    return FakeRemote(online=False)


@pytest.fixture
async def offline_directory(cache, offline_remote, settings):
    directory = CategoryDirectory(cache, offline_remote, settings)
    await directory.open()
    return directory


@pytest.fixture
def offline_validation(offline_directory, settings):
    return ValidationService(offline_directory, settings)


@pytest.fixture
async def offline_repo(cache, offline_remote, offline_directory, settings):
    repo = ReportRepository(cache, offline_remote, offline_directory, settings)
    await repo.open()
    return repo
