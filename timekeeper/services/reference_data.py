"""
Reference data from the HR collaborators: approved leave and offboarding.

The leave and offboarding systems export JSON snapshots into
``REFERENCE_DATA_DIR``; this repository reads them on ``load()`` and again on
``refresh()``. Nothing is read at import time.

A missing file is an empty snapshot. A file that does not parse fails the
first ``load()``; on ``refresh()`` the previous snapshot is kept instead.
"""

from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path

from pydantic import AliasChoices, BaseModel, Field, ValidationError

from timekeeper.core.config import settings

logger = logging.getLogger(__name__)

LEAVES_FILE = "leaves.json"
OFFBOARDING_FILE = "offboarding.json"


class ReferenceDataError(Exception):
    """A reference file exists but could not be parsed."""


class LeaveEntry(BaseModel):
    employee_id: str = Field(validation_alias=AliasChoices("employee_id", "employeeId"))
    start_date: date = Field(validation_alias=AliasChoices("start_date", "startDate"))
    end_date: date = Field(validation_alias=AliasChoices("end_date", "endDate"))
    status: str = "approved"

    @property
    def is_approved(self) -> bool:
        return self.status.lower() == "approved"


class OffboardingEntry(BaseModel):
    employee_id: str = Field(validation_alias=AliasChoices("employee_id", "employeeId"))
    effective_date: date = Field(
        validation_alias=AliasChoices("effective_date", "effectiveDate")
    )


class ReferenceDataRepository:
    def __init__(self, directory: str | Path | None = None) -> None:
        self.directory = Path(directory or settings.REFERENCE_DATA_DIR)
        self.leaves: list[LeaveEntry] = []
        self.offboardings: list[OffboardingEntry] = []
        self.loaded = False

    def load(self) -> None:
        # Both files parse before either list is replaced
        leaves = self._read(LEAVES_FILE, LeaveEntry)
        offboardings = self._read(OFFBOARDING_FILE, OffboardingEntry)
        self.leaves, self.offboardings = leaves, offboardings
        self.loaded = True
        logger.info(
            "Reference data loaded from %s: %d leave(s), %d offboarding(s)",
            self.directory,
            len(self.leaves),
            len(self.offboardings),
        )

    def refresh(self) -> bool:
        """
        Re-read both snapshots.

        Returns False and keeps the previous data when a file is malformed.
        Before the first successful load there is nothing to keep, so the
        error propagates.
        """
        if not self.loaded:
            self.load()
            return True
        try:
            self.load()
        except ReferenceDataError as e:
            logger.error("Reference refresh failed, keeping previous snapshot: %s", e)
            return False
        return True

    def ensure_loaded(self) -> None:
        if not self.loaded:
            self.load()

    def _read(self, filename: str, model: type[BaseModel]) -> list:
        path = self.directory / filename
        if not path.is_file():
            logger.warning("Reference file %s not found, treating as empty", path)
            return []
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            return [model.model_validate(item) for item in raw]
        except (json.JSONDecodeError, ValidationError, TypeError) as e:
            raise ReferenceDataError(f"Could not load reference file {path}: {e}") from e

    # ── Collaborator queries ────────────────────────────────────────
    def is_on_leave(self, employee_id: str, day: date) -> bool:
        return any(
            leave.employee_id == employee_id
            and leave.is_approved
            and leave.start_date <= day <= leave.end_date
            for leave in self.leaves
        )

    def is_terminated(self, employee_id: str, day: date) -> bool:
        for entry in self.offboardings:
            if entry.employee_id == employee_id:
                return day >= entry.effective_date
        return False


reference_data = ReferenceDataRepository()


def get_reference_data() -> ReferenceDataRepository:
    """FastAPI dependency; loads lazily when the app lifespan did not run."""
    reference_data.ensure_loaded()
    return reference_data
