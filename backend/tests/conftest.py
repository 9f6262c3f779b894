import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.main import create_app
from app.services.reader import AggregationReader
from app.services.submissions import SubmissionStore


@pytest.fixture
def settings(tmp_path):
    return Settings(data_dir=tmp_path / "survey_data", static_dir=tmp_path / "public")


@pytest.fixture
def store(settings):
    return SubmissionStore(settings)


@pytest.fixture
def reader(settings):
    return AggregationReader(settings)


@pytest.fixture
def client(settings):
    return TestClient(create_app(settings))


def record_files(settings):
    return sorted(p.name for p in settings.data_dir.glob("survey_*.json"))


def log_lines(settings):
    if not settings.log_file.exists():
        return []
    return settings.log_file.read_text(encoding="utf-8").splitlines()
