# app/routers/exports.py
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse

from app.deps import get_reader
from app.services.reader import AggregationReader

router = APIRouter(tags=["exports"])


def _today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def _attachment(filename: str) -> dict:
    return {"Content-Disposition": f'attachment; filename="{filename}"'}


@router.get("/export/csv")
@router.get("/api/admin/export", include_in_schema=False)
def export_csv(reader: AggregationReader = Depends(get_reader)):
    """One row per parseable record; 404 when there is nothing to export."""
    content = reader.export_csv()
    return Response(
        content=content,
        media_type="text/csv",
        headers=_attachment(f"survey_responses_{_today()}.csv"),
    )


@router.get("/export/json")
@router.get("/api/export-all", include_in_schema=False)
def export_json(reader: AggregationReader = Depends(get_reader)):
    return JSONResponse(
        content=reader.export_all(),
        headers=_attachment(f"all_participants_{_today()}.json"),
    )
