# app/services/reader.py
"""
Read side of the store directory. Every call rescans the directory and
re-parses each survey_*.json file; nothing is cached between requests.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Tuple

from app.config import Settings
from app.services.audit import AuditLog, to_iso, utc_now_iso
from app.services.errors import InvalidFilenameError, NoDataError, NotFoundError, ParseError
from app.services.storage import FileInfo, LocalStorage

logger = logging.getLogger(__name__)

# Demographic fields surfaced in the listing
LIST_RESPONSE_FIELDS = ["political_views", "age", "gender", "education", "zip_code"]

CSV_COLUMNS = [
    "participant_id",
    "prolific_id",
    "condition",
    "start_time",
    "end_time",
    "latitude",
    "longitude",
    "consent",
    "political_views",
    "video_review_word_count",
    "condition_review_word_count",
    "followup_comfort",
    "age",
    "gender",
    "education",
    "zip_code",
    "server_timestamp",
]

KNOWN_CONDITIONS = ("A", "B")


def _sub(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key)
    return value if isinstance(value, dict) else {}


def _csv_cell(value: Any) -> str:
    # Empty and falsy values become "" like every other string cell
    return json.dumps(value or "", ensure_ascii=False)


def flatten_record(data: Dict[str, Any]) -> Dict[str, Any]:
    """Project one record onto CSV_COLUMNS."""
    location = _sub(data, "location")
    responses = _sub(data, "responses")
    row: Dict[str, Any] = {}
    for col in CSV_COLUMNS:
        if col in ("latitude", "longitude"):
            row[col] = location.get(col)
        elif col in ("participant_id", "prolific_id", "condition",
                     "start_time", "end_time", "server_timestamp"):
            row[col] = data.get(col)
        else:
            row[col] = responses.get(col)
    return row


class AggregationReader:
    def __init__(self, settings: Settings):
        self.settings = settings
        self.storage = LocalStorage(settings.data_dir)
        self.audit = AuditLog(self.storage)

    @property
    def data_dir(self) -> str:
        return str(self.settings.data_dir)

    # ---------- Scan helpers ----------

    def record_files(self) -> List[str]:
        """Names of every survey_*.json file in the store directory."""
        names = self.storage.list_dir()
        return sorted(n for n in names if n.startswith("survey_") and n.endswith(".json"))

    def parse(self, filename: str) -> Dict[str, Any]:
        try:
            return self.storage.read_json(filename)
        except (ValueError, UnicodeDecodeError, FileNotFoundError) as e:
            raise ParseError(filename, str(e)) from e

    def stat(self, filename: str) -> Optional[FileInfo]:
        """File metadata, or None if the file vanished since the scan."""
        try:
            return self.storage.stat(filename)
        except FileNotFoundError:
            logger.warning("File %s removed during scan", filename)
            return None

    def iter_records(self) -> Iterator[Tuple[str, Dict[str, Any]]]:
        """Yield (filename, record) for every file that parses; log the rest."""
        for filename in self.record_files():
            try:
                yield filename, self.parse(filename)
            except ParseError as e:
                logger.error(e.message)

    # ---------- Operations ----------

    def list(self) -> List[Dict[str, Any]]:
        entries: List[Tuple[datetime, Dict[str, Any]]] = []
        for filename in self.record_files():
            info = self.stat(filename)
            if info is None:
                continue

            participant_info: Dict[str, Any] = {}
            try:
                data = self.parse(filename)
            except ParseError as e:
                logger.error(e.message)
            else:
                if isinstance(data, dict):
                    responses = _sub(data, "responses")
                    participant_info = {
                        "participant_id": data.get("participant_id"),
                        "prolific_id": data.get("prolific_id"),
                        "condition": data.get("condition"),
                    }
                    for field in LIST_RESPONSE_FIELDS:
                        participant_info[field] = responses.get(field)
                    participant_info["created_at"] = data.get("start_time") or to_iso(info.created)

            entry = {
                "filename": filename,
                "size": info.size,
                "created": to_iso(info.created),
                "modified": to_iso(info.modified),
                **participant_info,
            }
            entries.append((info.created, entry))

        entries.sort(key=lambda item: item[0], reverse=True)
        return [entry for _, entry in entries]

    def download(self, filename: str) -> bytes:
        """Raw bytes of one record file."""
        if (not filename or "/" in filename or "\\" in filename
                or ".." in filename or "\x00" in filename):
            raise InvalidFilenameError("Invalid filename")
        if not self.storage.contains(filename):
            raise InvalidFilenameError("Invalid filename")
        if not self.storage.exists(filename):
            raise NotFoundError("File not found")
        return self.storage.read_file(filename)

    def export_csv(self) -> str:
        rows = [flatten_record(data) for _, data in self.iter_records()
                if isinstance(data, dict)]
        if not rows:
            raise NoDataError("No survey data found")

        lines = [",".join(CSV_COLUMNS)]
        for row in rows:
            lines.append(",".join(_csv_cell(row[col]) for col in CSV_COLUMNS))
        return "\n".join(lines)

    def export_all(self) -> Dict[str, Any]:
        participants = [{"filename": filename, "data": data}
                        for filename, data in self.iter_records()]
        return {
            "exportDate": utc_now_iso(),
            "totalParticipants": len(participants),
            "dataDirectory": self.data_dir,
            "participants": participants,
        }

    def stats(self) -> Dict[str, Any]:
        total = 0
        by_date: Dict[str, int] = {}
        conditions = {c: 0 for c in KNOWN_CONDITIONS}
        used = 0

        for filename in self.record_files():
            info = self.stat(filename)
            if info is None:
                continue
            total += 1
            used += info.size

            day = info.created.astimezone(timezone.utc).date().isoformat()
            by_date[day] = by_date.get(day, 0) + 1

            try:
                data = self.parse(filename)
            except ParseError:
                continue
            # Anything other than A/B is left out of both buckets
            condition = data.get("condition") if isinstance(data, dict) else None
            if condition in conditions:
                conditions[condition] += 1

        return {
            "totalResponses": total,
            "responsesByDate": by_date,
            "conditionCounts": conditions,
            "dataDirectory": self.data_dir,
            "diskSpace": {
                "used": used,
                "usedMB": f"{used / (1024 * 1024):.2f}",
                "isPersistent": self.settings.persistent,
            },
        }

    def read_log(self) -> Optional[str]:
        return self.audit.read()

    def health(self) -> Dict[str, Any]:
        return {
            "status": "OK",
            "message": "Survey server is running",
            "dataDir": self.data_dir,
            "persistentDisk": self.settings.persistent,
            "timestamp": utc_now_iso(),
        }
