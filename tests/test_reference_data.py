"""Tests for the leave / offboarding reference data repository."""

import json
from datetime import date

import pytest

from timekeeper.services.reference_data import ReferenceDataError, ReferenceDataRepository


def _write(directory, name, payload):
    (directory / name).write_text(json.dumps(payload), encoding="utf-8")


def test_missing_files_load_as_empty(tmp_path):
    repo = ReferenceDataRepository(tmp_path)
    repo.load()
    assert repo.loaded is True
    assert repo.leaves == []
    assert repo.offboardings == []
    assert repo.is_on_leave("E1", date(2024, 1, 1)) is False
    assert repo.is_terminated("E1", date(2024, 1, 1)) is False


def test_leave_covers_inclusive_range_and_only_when_approved(tmp_path):
    _write(
        tmp_path,
        "leaves.json",
        [
            {"employeeId": "E1", "startDate": "2024-02-05", "endDate": "2024-02-07", "status": "approved"},
            {"employee_id": "E2", "start_date": "2024-02-05", "end_date": "2024-02-07", "status": "pending"},
        ],
    )
    repo = ReferenceDataRepository(tmp_path)
    repo.load()

    assert repo.is_on_leave("E1", date(2024, 2, 4)) is False
    assert repo.is_on_leave("E1", date(2024, 2, 5)) is True
    assert repo.is_on_leave("E1", date(2024, 2, 7)) is True
    assert repo.is_on_leave("E1", date(2024, 2, 8)) is False
    assert repo.is_on_leave("E2", date(2024, 2, 6)) is False


def test_termination_applies_from_effective_date(tmp_path):
    _write(tmp_path, "offboarding.json", [{"employeeId": "E1", "effectiveDate": "2024-03-01"}])
    repo = ReferenceDataRepository(tmp_path)
    repo.load()

    assert repo.is_terminated("E1", date(2024, 2, 29)) is False
    assert repo.is_terminated("E1", date(2024, 3, 1)) is True
    assert repo.is_terminated("E1", date(2024, 6, 1)) is True
    assert repo.is_terminated("E2", date(2024, 6, 1)) is False


def test_malformed_file_fails_first_load(tmp_path):
    (tmp_path / "leaves.json").write_text("{not json", encoding="utf-8")
    repo = ReferenceDataRepository(tmp_path)
    with pytest.raises(ReferenceDataError):
        repo.load()
    assert repo.loaded is False
    with pytest.raises(ReferenceDataError):
        repo.refresh()


def test_bad_refresh_keeps_previous_terminations(tmp_path):
    _write(
        tmp_path,
        "offboarding.json",
        [
            {"employee_id": "E1", "effective_date": "2024-01-01"},
            {"employee_id": "E2", "effective_date": "2024-01-01"},
        ],
    )
    _write(tmp_path, "leaves.json", [{"employee_id": "E3", "start_date": "2024-03-01", "end_date": "2024-03-05"}])
    repo = ReferenceDataRepository(tmp_path)
    repo.load()
    assert repo.is_terminated("E1", date(2024, 3, 1)) is True

    # One bad entry in the next export
    _write(
        tmp_path,
        "offboarding.json",
        [
            {"employee_id": "E1", "effective_date": "2024-01-01"},
            {"employee_id": "E2", "effective_date": "not-a-date"},
        ],
    )
    _write(tmp_path, "leaves.json", [])
    assert repo.refresh() is False

    assert repo.is_terminated("E1", date(2024, 3, 1)) is True
    assert repo.is_terminated("E2", date(2024, 3, 1)) is True
    # The leave file parsed, but the snapshot is replaced as a whole or not at all
    assert repo.is_on_leave("E3", date(2024, 3, 2)) is True


def test_refresh_picks_up_new_snapshot(tmp_path):
    repo = ReferenceDataRepository(tmp_path)
    repo.load()
    assert repo.is_terminated("E1", date(2024, 3, 1)) is False

    _write(tmp_path, "offboarding.json", [{"employee_id": "E1", "effective_date": "2024-01-01"}])
    assert repo.refresh() is True
    assert repo.is_terminated("E1", date(2024, 3, 1)) is True


def test_ensure_loaded_only_reads_once(tmp_path):
    repo = ReferenceDataRepository(tmp_path)
    repo.ensure_loaded()
    _write(tmp_path, "offboarding.json", [{"employee_id": "E1", "effective_date": "2024-01-01"}])
    repo.ensure_loaded()
    assert repo.offboardings == []
