# app/routers/submissions.py
from fastapi import APIRouter, Body, Depends, Request, Response
from typing import Any

from app.deps import client_ip, get_reader, get_store
from app.services.reader import AggregationReader
from app.services.submissions import SubmissionStore

router = APIRouter(tags=["submissions"])


# ---------- Routes ----------

@router.post("/submission")
@router.post("/api/survey/save", include_in_schema=False)
def submit(request: Request,
           payload: Any = Body(...),
           store: SubmissionStore = Depends(get_store)):
    """
    Save one survey response as survey_<participant>_<timestamp>.json.
    The body is taken as-is; the store decides what is acceptable.
    Missing participant/prolific IDs answer 400 and write nothing.
    """
    result = store.submit(
        payload,
        ip_address=client_ip(request),
        user_agent=request.headers.get("User-Agent"),
    )
    return {
        "success": True,
        "message": "Survey response saved successfully",
        "participant_id": result.participant_id,
        "filename": result.filename,
        "path": result.path,
    }


@router.get("/submissions")
@router.get("/api/list-data", include_in_schema=False)
@router.get("/api/admin/responses", include_in_schema=False)
def list_submissions(reader: AggregationReader = Depends(get_reader)):
    files = reader.list()
    return {
        "success": True,
        "count": len(files),
        "dataDir": reader.data_dir,
        "files": files,
    }


@router.get("/submissions/{filename}")
@router.get("/api/download/{filename}", include_in_schema=False)
def download_submission(filename: str,
                        reader: AggregationReader = Depends(get_reader)):
    content = reader.download(filename)
    return Response(
        content=content,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
