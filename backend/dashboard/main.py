"""
Sheet Mirror Dashboard Service
Google Sheets 미러링 + 대시보드 조회 API

Port: 3001
"""

from dotenv import load_dotenv

load_dotenv()  # Load .env file

from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import FastAPI

from dashboard.routers.storage import router as storage_router
from dashboard.routers.sync import SERVICE_NAME, SERVICE_VERSION
from dashboard.routers.sync import router as sync_router
from dashboard.services.sync_scheduler import SyncScheduler
from data_connector.google_sheets.auth import build_auth, describe_auth
from data_connector.google_sheets.service import GoogleSheetsService
from data_connector.google_sheets.sync import SheetSyncOrchestrator
from shared.config.settings import ApplicationSettings, get_settings
from shared.exceptions import CredentialsError, SheetSourceError
from shared.interfaces.spreadsheet_source import SnapshotPersistence, SpreadsheetSource
from shared.models.records import CellFormatting, SheetTab
from shared.services.field_classifier import FieldClassifier
from shared.services.record_store import RecordStore
from shared.services.service_factory import ServiceInfo, create_fastapi_service, run_service
from shared.services.snapshot_persistence import JsonSnapshotPersistence
from shared.services.sync_monitor import SyncMonitor
from shared.utils.app_logger import configure_logging, get_logger

logger = get_logger(__name__)


class UnconfiguredSource(SpreadsheetSource):
    """Stands in for the spreadsheet when no sheet id or credentials are set; every sync fails."""

    def __init__(self, reason: str):
        self.reason = reason

    async def list_tabs(self) -> List[SheetTab]:
        raise SheetSourceError(self.reason)

    async def get_values(self, range_name: str) -> List[List[str]]:
        raise SheetSourceError(self.reason)

    async def get_formatting(self, range_name: str) -> List[List[Optional[CellFormatting]]]:
        raise SheetSourceError(self.reason)


def build_source(settings: ApplicationSettings) -> SpreadsheetSource:
    sheets = settings.google_sheets
    if not sheets.google_sheet_id:
        logger.error("GOOGLE_SHEET_ID is not set; syncs will fail until it is configured")
        return UnconfiguredSource("GOOGLE_SHEET_ID is not configured")
    try:
        auth = build_auth(sheets)
    except CredentialsError as e:
        logger.error(str(e))
        return UnconfiguredSource(e.message)

    logger.info(f"Google Sheets auth mode: {describe_auth(auth)}")
    return GoogleSheetsService(
        sheets.google_sheet_id, auth, timeout=sheets.sheets_request_timeout
    )


def create_app(
    settings: Optional[ApplicationSettings] = None,
    *,
    source: Optional[SpreadsheetSource] = None,
    persistence: Optional[SnapshotPersistence] = None,
    run_scheduler: bool = True,
) -> FastAPI:
    """
    Build the dashboard app. `source` / `persistence` override the Google
    Sheets client and the JSON file store (tests pass fakes here).
    """
    settings = settings or get_settings()

    service_info = ServiceInfo(
        name=SERVICE_NAME,
        title="Sheet Mirror Dashboard",
        description="Google Sheets 레코드 미러 및 대시보드 API",
        version=SERVICE_VERSION,
        port=settings.service.port,
        host=settings.service.host,
        tags=[
            {"name": "Storage", "description": "Mirrored records, search, filters and export"},
        ],
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """애플리케이션 시작/종료 이벤트"""
        configure_logging(settings.service.log_level)
        logger.info("🚀 Sheet Mirror Dashboard 시작")

        sheet_source = source or build_source(settings)
        store = RecordStore(
            persistence if persistence is not None else JsonSnapshotPersistence(settings.sync.snapshot_path)
        )
        store.load()

        monitor = SyncMonitor(max_history=settings.sync.sync_history_size)
        orchestrator = SheetSyncOrchestrator(
            sheet_source,
            wip_marker=settings.sync.wip_marker,
            concurrency=settings.sync.fetch_concurrency,
            column_span=settings.google_sheets.sheets_column_span,
        )
        scheduler = SyncScheduler(
            orchestrator, store, monitor, interval_minutes=settings.sync.sync_interval_minutes
        )

        app.state.settings = settings
        app.state.record_store = store
        app.state.field_classifier = FieldClassifier(settings.classifier)
        app.state.sync_monitor = monitor
        app.state.sync_scheduler = scheduler

        if run_scheduler:
            scheduler.start()

        yield

        await scheduler.stop()
        if isinstance(sheet_source, GoogleSheetsService):
            await sheet_source.close()
        logger.info("🔄 Sheet Mirror Dashboard 종료")

    app = create_fastapi_service(service_info, lifespan=lifespan, service_settings=settings.service)
    app.include_router(storage_router, prefix="/api")
    app.include_router(sync_router, prefix="/api")

    @app.get("/", tags=["Health"])
    async def root() -> Dict[str, Any]:
        """루트 엔드포인트"""
        return {
            "service": service_info.name,
            "version": service_info.version,
            "status": "running",
            "endpoints": {
                "health": "/api/health",
                "records": "/api/storage",
                "sync": "/api/storage/sync",
                "docs": "/docs",
            },
        }

    return app


app = create_app()


def main() -> None:
    settings = get_settings()
    run_service(
        ServiceInfo(
            name=SERVICE_NAME,
            title="Sheet Mirror Dashboard",
            description="Google Sheets 레코드 미러 및 대시보드 API",
            port=settings.service.port,
            host=settings.service.host,
        ),
        "dashboard.main:app",
    )


if __name__ == "__main__":
    main()
