"""
Storage Router
미러링된 스프레드시트 레코드 조회/검색/필터/내보내기 API
"""

import csv
import io
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from fastapi.responses import Response

from dashboard.services.sync_scheduler import SyncScheduler
from shared.exceptions import SyncInProgressError
from shared.models.records import SheetRecord
from shared.models.responses import ApiResponse
from shared.services.field_classifier import FieldClassifier, schema_fields
from shared.services.record_store import RecordStore
from shared.utils.app_logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/storage", tags=["Storage"])


def get_record_store(request: Request) -> RecordStore:
    """레코드 저장소 의존성"""
    return request.app.state.record_store


def get_field_classifier(request: Request) -> FieldClassifier:
    return request.app.state.field_classifier


def get_sync_scheduler(request: Request) -> SyncScheduler:
    return request.app.state.sync_scheduler


def _dump(records: List[SheetRecord]) -> List[Dict[str, Any]]:
    return [record.model_dump(mode="json") for record in records]


def _dump_grouped(grouped: Dict[str, List[SheetRecord]]) -> Dict[str, List[Dict[str, Any]]]:
    return {name: _dump(records) for name, records in grouped.items()}


def _scope(store: RecordStore, sheet: Optional[str]) -> List[SheetRecord]:
    if sheet is not None:
        return store.get_sheet(sheet)
    return [record for records in store.get_all_sheets().values() for record in records]


def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


@router.get("")
async def get_records(sheet: Optional[str] = None, store: RecordStore = Depends(get_record_store)):
    """한 시트 또는 전체 시트의 레코드"""
    last_sync = _iso(store.get_last_sync_time())
    if sheet is not None:
        records = store.get_sheet(sheet)
        data = {
            "sheet": sheet,
            "records": _dump(records),
            "header_notes": store.get_header_notes(sheet),
            "count": len(records),
            "last_sync_time": last_sync,
        }
    else:
        sheets = store.get_all_sheets()
        data = {
            "sheets": _dump_grouped(sheets),
            "header_notes": store.get_header_notes(),
            "count": sum(len(records) for records in sheets.values()),
            "last_sync_time": last_sync,
        }
    return ApiResponse.success("Records retrieved", data).to_dict()


@router.get("/sheets")
async def list_sheets(store: RecordStore = Depends(get_record_store)):
    names = store.get_sheet_names()
    return ApiResponse.success(f"{len(names)} sheets", {"sheets": names}).to_dict()


@router.get("/search")
async def search_records(
    q: str = "", sheet: Optional[str] = None, store: RecordStore = Depends(get_record_store)
):
    """대소문자 구분 없는 부분 문자열 검색 (셀 텍스트 + 링크 URL)"""
    result = store.search(q, sheet)
    if sheet is not None:
        data = {"query": q, "sheet": sheet, "records": _dump(result), "count": len(result)}
    else:
        data = {
            "query": q,
            "sheets": _dump_grouped(result),
            "count": sum(len(records) for records in result.values()),
        }
    return ApiResponse.success("Search completed", data).to_dict()


@router.post("/filter")
async def filter_records(
    field_filters: Optional[Dict[str, str]] = Body(default=None),
    sheet: Optional[str] = None,
    store: RecordStore = Depends(get_record_store),
):
    """필드별 부분 문자열 조건 (모든 조건 AND, 빈 값은 무시)"""
    result = store.filter(field_filters or {}, sheet)
    if sheet is not None:
        data = {"sheet": sheet, "records": _dump(result), "count": len(result)}
    else:
        data = {
            "sheets": _dump_grouped(result),
            "count": sum(len(records) for records in result.values()),
        }
    return ApiResponse.success("Filter applied", data).to_dict()


@router.get("/fields/{field}/values")
async def get_field_values(
    field: str, sheet: Optional[str] = None, store: RecordStore = Depends(get_record_store)
):
    values = store.unique_values(field, sheet)
    return ApiResponse.success(
        f"{len(values)} distinct values", {"field": field, "values": values}
    ).to_dict()


@router.get("/filters")
async def get_filter_fields(
    sheet: Optional[str] = None,
    store: RecordStore = Depends(get_record_store),
    classifier: FieldClassifier = Depends(get_field_classifier),
):
    """필터로 제공할 필드 자동 감지 (partner / product / status)"""
    fields = classifier.detect_filter_fields(_scope(store, sheet))
    return ApiResponse.success(
        f"{len(fields)} filter fields detected",
        {"filters": [f.model_dump(mode="json") for f in fields]},
    ).to_dict()


@router.get("/insights")
async def get_insights(
    sheet: Optional[str] = None,
    store: RecordStore = Depends(get_record_store),
    classifier: FieldClassifier = Depends(get_field_classifier),
):
    insights = classifier.summarize(_scope(store, sheet))
    return ApiResponse.success("Insights computed", insights.model_dump(mode="json")).to_dict()


@router.get("/stats")
async def get_stats(store: RecordStore = Depends(get_record_store)):
    stats = store.get_stats()
    stats["last_sync_time"] = _iso(stats["last_sync_time"])
    return ApiResponse.success("Storage stats", stats).to_dict()


def _flat_rows(records: List[SheetRecord], include_sheet: bool) -> List[Dict[str, Any]]:
    rows = []
    for record in records:
        row: Dict[str, Any] = {"id": record.id}
        if include_sheet:
            row["sheet"] = record.sheet_name
        for name in record.fields:
            row[name] = record.canonical(name)
        rows.append(row)
    return rows


@router.get("/export/{fmt}")
async def export_records(
    fmt: str, sheet: Optional[str] = None, store: RecordStore = Depends(get_record_store)
):
    """CSV / JSON 내보내기 (셀의 표시 텍스트 기준)"""
    fmt = fmt.lower()
    if fmt not in ("csv", "json"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=ApiResponse.error(f"Unsupported export format: {fmt}", ["use csv or json"]).to_dict(),
        )

    records = _scope(store, sheet)
    include_sheet = sheet is None
    rows = _flat_rows(records, include_sheet)
    filename = f"{sheet or 'all-sheets'}.{fmt}"

    if fmt == "json":
        return ApiResponse.success(f"{len(rows)} records exported", {"records": rows}).to_dict()

    columns = (["id", "sheet"] if include_sheet else ["id"]) + schema_fields(records)
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=columns, restval="", extrasaction="ignore")
    writer.writeheader()
    writer.writerows(rows)
    return Response(
        content=buffer.getvalue(),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/sync")
async def trigger_sync(scheduler: SyncScheduler = Depends(get_sync_scheduler)):
    """수동 동기화 (진행 중이면 409)"""
    try:
        run = await scheduler.trigger_sync("manual")
    except SyncInProgressError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=ApiResponse.error(e.message, [e.code]).to_dict(),
        )
    except Exception as e:
        logger.error(f"Manual sync failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=ApiResponse.error("Sync failed", [str(e)]).to_dict(),
        )

    message = "Sync completed"
    if run.failed_sheets:
        return ApiResponse.partial(
            message, run.model_dump(mode="json"), [f"failed: {name}" for name in run.failed_sheets]
        ).to_dict()
    return ApiResponse.success(message, run.model_dump(mode="json")).to_dict()
