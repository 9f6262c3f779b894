# app/services/audit.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from app.config import LOG_FILENAME
from app.services.storage import StorageBackend

logger = logging.getLogger(__name__)


# ---------- Time helpers ----------

def to_iso(dt: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a 'Z' suffix."""
    dt = dt.astimezone(timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_now_iso() -> str:
    return to_iso(datetime.now(timezone.utc))


# ---------- Audit log ----------

class AuditLog:
    """
    Append-only plaintext log of submission attempts, kept next to the
    records in the store directory. One line per event:
      [2024-05-01T12:00:00.000Z] SUCCESS: ...
    """

    def __init__(self, storage: StorageBackend, filename: str = LOG_FILENAME):
        self.storage = storage
        self.filename = filename

    def write(self, message: str) -> None:
        line = f"[{utc_now_iso()}] {message}\n"
        logger.info(message)
        self.storage.append_text(self.filename, line)

    def read(self) -> Optional[str]:
        """Return the whole log, or None if nothing was logged yet."""
        if not self.storage.exists(self.filename):
            return None
        return self.storage.read_text(self.filename)
