import json
import re

import pytest

from app.services import submissions as submissions_module
from app.services.errors import ValidationError
from app.services.submissions import record_filename, resolve_prolific_id

from conftest import log_lines, record_files


def test_submit_writes_one_file_and_success_line(store, settings):
    result = store.submit(
        {"participant_id": "p1", "prolific_id": "pr1", "condition": "A"},
        ip_address="10.0.0.1",
        user_agent="pytest",
    )

    files = record_files(settings)
    assert files == [result.filename]
    assert re.fullmatch(r"survey_p1_\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2}-\d{3}Z\.json", result.filename)
    assert result.participant_id == "p1"
    assert result.prolific_id == "pr1"
    assert result.path == str(settings.data_dir)

    lines = log_lines(settings)
    assert len(lines) == 1
    assert "SUCCESS" in lines[0]
    assert "participant p1 (Prolific: pr1)" in lines[0]
    assert result.filename in lines[0]


def test_submit_stamps_server_fields(store, settings):
    result = store.submit({"participant_id": "p1", "prolific_id": "pr1"},
                          ip_address="10.0.0.1", user_agent="pytest")

    saved = json.loads((settings.data_dir / result.filename).read_text(encoding="utf-8"))
    assert saved["ip_address"] == "10.0.0.1"
    assert saved["user_agent"] == "pytest"
    assert saved["server_timestamp"].endswith("Z")


def test_submit_normalizes_nested_prolific_id(store, settings):
    result = store.submit({"participant_id": "p2", "responses": {"prolific_id": "pr2"}})

    saved = json.loads((settings.data_dir / result.filename).read_text(encoding="utf-8"))
    assert saved["prolific_id"] == "pr2"
    assert saved["responses"] == {"prolific_id": "pr2"}
    assert result.prolific_id == "pr2"


@pytest.mark.parametrize("record, message", [
    ({}, "No participant ID provided"),
    ({"prolific_id": "pr1"}, "No participant ID provided"),
    ({"participant_id": "p1"}, "No Prolific ID provided"),
    ({"participant_id": "p1", "responses": {"age": 30}}, "No Prolific ID provided"),
])
def test_submit_rejects_missing_ids(store, settings, record, message):
    with pytest.raises(ValidationError, match=message):
        store.submit(record)

    assert record_files(settings) == []
    lines = log_lines(settings)
    assert len(lines) == 1
    assert f"ERROR: {message}" in lines[0]


def test_submit_does_not_mutate_input(store):
    record = {"participant_id": "p2", "responses": {"prolific_id": "pr2"}}
    store.submit(record)
    assert record == {"participant_id": "p2", "responses": {"prolific_id": "pr2"}}


def test_same_timestamp_never_overwrites(store, settings, monkeypatch):
    monkeypatch.setattr(submissions_module, "utc_now_iso", lambda: "2024-05-01T12:00:00.000Z")

    first = store.submit({"participant_id": "p1", "prolific_id": "pr1", "n": 1})
    second = store.submit({"participant_id": "p1", "prolific_id": "pr1", "n": 2})

    assert first.filename == "survey_p1_2024-05-01T12-00-00-000Z.json"
    assert second.filename == "survey_p1_2024-05-01T12-00-00-000Z_1.json"
    assert len(record_files(settings)) == 2
    saved = json.loads((settings.data_dir / first.filename).read_text(encoding="utf-8"))
    assert saved["n"] == 1


def test_participant_id_cannot_escape_store(store, settings):
    result = store.submit({"participant_id": "../../etc/x", "prolific_id": "pr1"})

    assert "/" not in result.filename
    assert (settings.data_dir / result.filename).exists()
    saved = json.loads((settings.data_dir / result.filename).read_text(encoding="utf-8"))
    assert saved["participant_id"] == "../../etc/x"


def test_record_filename():
    ts = "2024-05-01T12:00:00.123Z"
    assert record_filename("p1", ts) == "survey_p1_2024-05-01T12-00-00-123Z.json"
    assert record_filename("p1", ts, 3) == "survey_p1_2024-05-01T12-00-00-123Z_3.json"
    assert record_filename(42, ts) == "survey_42_2024-05-01T12-00-00-123Z.json"


def test_resolve_prolific_id():
    assert resolve_prolific_id({"prolific_id": "top", "responses": {"prolific_id": "nested"}}) == "top"
    assert resolve_prolific_id({"responses": {"prolific_id": "nested"}}) == "nested"
    assert resolve_prolific_id({"responses": "not a dict"}) is None
    assert resolve_prolific_id({}) is None


@pytest.mark.parametrize("record", [[], ["x"], "text", 7, None])
def test_submit_rejects_non_object(store, settings, record):
    with pytest.raises(ValidationError, match="Submission must be a JSON object"):
        store.submit(record)

    assert record_files(settings) == []
    lines = log_lines(settings)
    assert len(lines) == 1
    assert "ERROR: Submission must be a JSON object" in lines[0]


def test_submit_accepts_non_mapping_location(store, settings):
    result = store.submit({"participant_id": "p1", "prolific_id": "pr1", "location": "home"})

    saved = json.loads((settings.data_dir / result.filename).read_text(encoding="utf-8"))
    assert saved["location"] == "home"
