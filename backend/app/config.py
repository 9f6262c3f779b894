# app/config.py
"""
Process configuration, resolved once at startup and passed explicitly
to the store, the reader and the app factory.
"""
import os
from pathlib import Path
from typing import List

from pydantic import BaseModel

LOG_FILENAME = "survey_submissions_log.txt"


class Settings(BaseModel):
    data_dir: Path
    persistent: bool = False
    cors_origins: List[str] = ["*"]
    static_dir: Path = Path("public")
    port: int = 3000

    @property
    def log_file(self) -> Path:
        return self.data_dir / LOG_FILENAME

    @classmethod
    def from_env(cls) -> "Settings":
        # Render's persistent disk mount point if available, otherwise local
        disk_path = os.getenv("RENDER_DISK_PATH")
        if disk_path:
            data_dir = Path(disk_path) / "survey_data"
        else:
            data_dir = Path("survey_data")

        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            data_dir=data_dir,
            persistent=bool(disk_path),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            static_dir=Path(os.getenv("STATIC_DIR", "public")),
            port=int(os.getenv("PORT", "3000")),
        )
