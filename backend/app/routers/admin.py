# app/routers/admin.py
from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from app.deps import get_reader
from app.services.reader import AggregationReader

router = APIRouter(tags=["admin"])

# Survey video is hosted on YouTube, nothing is served locally
VIDEO_ID = "TpDG2LS1YpQ"


@router.get("/logs")
@router.get("/api/logs", include_in_schema=False)
def get_logs(reader: AggregationReader = Depends(get_reader)):
    """Raw audit log as text/plain."""
    logs = reader.read_log()
    if logs is None:
        return {"success": True, "logs": "No survey logs yet"}
    return PlainTextResponse(logs)


@router.get("/stats")
@router.get("/api/stats", include_in_schema=False)
def get_stats(reader: AggregationReader = Depends(get_reader)):
    return reader.stats()


@router.get("/health")
@router.get("/api/health", include_in_schema=False)
def health(reader: AggregationReader = Depends(get_reader)):
    return reader.health()


@router.get("/video-info")
@router.get("/api/check-video", include_in_schema=False)
def video_info():
    return {
        "videoType": "YouTube",
        "videoId": VIDEO_ID,
        "embedUrl": f"https://www.youtube.com/embed/{VIDEO_ID}",
        "publicUrl": f"https://youtu.be/{VIDEO_ID}",
        "status": "Using YouTube hosting - no local video file needed",
        "benefits": [
            "No GitHub file size limits",
            "Better streaming performance",
            "Universal compatibility",
            "Professional video hosting",
        ],
    }
