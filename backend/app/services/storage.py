# app/services/storage.py
"""
Flat-directory storage layer for the store directory.
Every path handed to it is a bare file name relative to `base_dir`.
"""
import json
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


@dataclass
class FileInfo:
    name: str
    size: int
    created: datetime
    modified: datetime


class StorageBackend:
    """Abstract storage interface"""

    def create_file(self, name: str, content: bytes) -> str:
        """Create a new file, never overwriting. Return its path."""
        raise NotImplementedError

    def append_text(self, name: str, text: str) -> str:
        """Append text to a file, creating it if needed"""
        raise NotImplementedError

    def read_file(self, name: str) -> bytes:
        """Read file content"""
        raise NotImplementedError

    def read_text(self, name: str) -> str:
        """Read text file"""
        return self.read_file(name).decode("utf-8")

    def read_json(self, name: str) -> Any:
        """Read JSON file"""
        return json.loads(self.read_text(name))

    def exists(self, name: str) -> bool:
        """Check if file exists"""
        raise NotImplementedError

    def list_dir(self) -> list[str]:
        """List file names in the directory"""
        raise NotImplementedError

    def stat(self, name: str) -> FileInfo:
        """Size and timestamps of a file"""
        raise NotImplementedError


class LocalStorage(StorageBackend):
    """Local filesystem storage"""

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _full_path(self, name: str) -> Path:
        return self.base_dir / name

    def contains(self, name: str) -> bool:
        """True if `name` resolves to a direct child of the directory."""
        full_path = self._full_path(name).resolve()
        return full_path.parent == self.base_dir.resolve()

    def create_file(self, name: str, content: bytes) -> str:
        full_path = self._full_path(name)
        # 'xb' raises FileExistsError instead of clobbering another record
        with open(full_path, "xb") as f:
            try:
                f.write(content)
            except OSError:
                f.close()
                full_path.unlink(missing_ok=True)
                raise
        return str(full_path)

    def append_text(self, name: str, text: str) -> str:
        full_path = self._full_path(name)
        with open(full_path, "a", encoding="utf-8") as f:
            f.write(text)
        return str(full_path)

    def read_file(self, name: str) -> bytes:
        with open(self._full_path(name), "rb") as f:
            return f.read()

    def exists(self, name: str) -> bool:
        return self._full_path(name).is_file()

    def list_dir(self) -> list[str]:
        if not self.base_dir.exists():
            return []
        return [p.name for p in self.base_dir.iterdir() if p.is_file()]

    def stat(self, name: str) -> FileInfo:
        st = os.stat(self._full_path(name))
        # st_birthtime is missing on most Linux filesystems
        created = getattr(st, "st_birthtime", st.st_ctime)
        return FileInfo(
            name=name,
            size=st.st_size,
            created=datetime.fromtimestamp(created, tz=timezone.utc),
            modified=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
        )
