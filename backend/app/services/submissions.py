# app/services/submissions.py
"""
Submission store: validates a survey record, stamps server metadata and
writes it as its own JSON file. Every attempt lands in the audit log.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional

from pydantic import BaseModel

from app.config import Settings
from app.services.audit import AuditLog, utc_now_iso
from app.services.errors import ValidationError
from app.services.storage import LocalStorage

logger = logging.getLogger(__name__)

_STAMP_CHARS_RE = re.compile(r"[:.]")
_UNSAFE_ID_RE = re.compile(r"[^A-Za-z0-9_-]")


class SubmissionResult(BaseModel):
    participant_id: str
    prolific_id: str
    filename: str
    path: str


# ---------- Helpers ----------

def resolve_prolific_id(record: Dict[str, Any]) -> Optional[Any]:
    """Top-level prolific_id wins, else responses.prolific_id."""
    if record.get("prolific_id"):
        return record["prolific_id"]
    responses = record.get("responses")
    if isinstance(responses, dict) and responses.get("prolific_id"):
        return responses["prolific_id"]
    return None


def record_filename(participant_id: Any, server_ts: str, counter: int = 0) -> str:
    """
    survey_<participant_id>_<timestamp>.json, e.g.
      survey_p1_2024-05-01T12-00-00-000Z.json
    A non-zero counter is appended when the plain name is already taken.
    """
    safe_id = _UNSAFE_ID_RE.sub("_", str(participant_id))
    stamp = _STAMP_CHARS_RE.sub("-", server_ts)
    suffix = f"_{counter}" if counter else ""
    return f"survey_{safe_id}_{stamp}{suffix}.json"


# ---------- Store ----------

class SubmissionStore:
    def __init__(self, settings: Settings):
        self.settings = settings
        self.storage = LocalStorage(settings.data_dir)
        self.audit = AuditLog(self.storage)

    def submit(self,
               record: Any,
               ip_address: Optional[str] = None,
               user_agent: Optional[str] = None) -> SubmissionResult:
        """
        Persist one submission. Raises ValidationError (and writes nothing)
        when participant_id or prolific_id is missing.
        """
        try:
            if not isinstance(record, dict):
                raise ValidationError("Submission must be a JSON object")
            return self._save(dict(record), ip_address, user_agent)
        except Exception as err:
            self.audit.write(f"ERROR: {err}")
            raise

    def _save(self,
              record: Dict[str, Any],
              ip_address: Optional[str],
              user_agent: Optional[str]) -> SubmissionResult:
        logger.debug("Survey save request, keys=%s condition=%s",
                     sorted(record), record.get("condition"))

        prolific_id = resolve_prolific_id(record)
        if not record.get("participant_id"):
            raise ValidationError("No participant ID provided")
        if not prolific_id:
            responses = record.get("responses")
            logger.debug("Missing Prolific ID, response fields=%s",
                         sorted(responses) if isinstance(responses, dict) else [])
            raise ValidationError("No Prolific ID provided")

        participant_id = record["participant_id"]
        record["prolific_id"] = prolific_id

        server_ts = utc_now_iso()
        record["server_timestamp"] = server_ts
        record["ip_address"] = ip_address
        record["user_agent"] = user_agent

        content = json.dumps(record, ensure_ascii=False, indent=2).encode("utf-8")

        counter = 0
        while True:
            filename = record_filename(participant_id, server_ts, counter)
            try:
                self.storage.create_file(filename, content)
                break
            except FileExistsError:
                counter += 1

        self.audit.write(
            f"SUCCESS: Survey data saved for participant {participant_id} "
            f"(Prolific: {prolific_id}) to {filename}"
        )

        return SubmissionResult(
            participant_id=str(participant_id),
            prolific_id=str(prolific_id),
            filename=filename,
            path=str(self.settings.data_dir),
        )
