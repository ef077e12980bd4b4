import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from reportsync.api.categories import router as categories_router
from reportsync.api.reports import router as reports_router
from reportsync.api.validation import router as validation_router
from reportsync.core.config import Settings, get_settings
from reportsync.db.mongo import MongoConnection
from reportsync.repositories.cache_repository import CacheRepository
from reportsync.repositories.report_repository import ReportRepository
from reportsync.services.category_directory import CategoryDirectory
from reportsync.services.remote_service import HttpRemoteService
from reportsync.services.validation_service import ValidationService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings

    mongo = MongoConnection(settings)
    mongo.open()
    cache = CacheRepository(mongo.cache_collection())
    remote = HttpRemoteService(settings)

    categories = CategoryDirectory(cache, remote, settings)
    validation = ValidationService(categories, settings)
    reports = ReportRepository(cache, remote, categories, settings, validation=validation)

    await categories.open()
    await reports.open()

    app.state.remote = remote
    app.state.categories = categories
    app.state.validation = validation
    app.state.reports = reports
    try:
        yield
    finally:
        await reports.close()
        await categories.close()
        await remote.close()
        mongo.close()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(reports_router)
    app.include_router(categories_router)
    app.include_router(validation_router)

    @app.get("/")
    def root():
        return {"ok": True, "docs": "/docs"}

    @app.get("/health")
    async def health(request: Request):
        online = await request.app.state.remote.health()
        return {"ok": True, "backend": "online" if online else "offline"}

    return app


app = create_app()
