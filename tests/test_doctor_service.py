"""Tests for doctor registration validation and persistence."""

import asyncio
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from doctor_registry.core.exceptions import (
    DuplicateKeyException,
    StorageUnavailableException,
    ValidationFailedException,
)
from doctor_registry.database import Database
from doctor_registry.services.doctor_service import DoctorService


@pytest.fixture
def candidate() -> dict:
    """A normalized candidate record."""
    return {
        "fullName": "Dr. Ravi Kumar",
        "dob": "1979-11-02",
        "gender": "Male",
        "contactNumber": "+91-9123456780",
        "email": "ravi.kumar@example.com",
        "degree": "MBBS, MS (Ortho)",
        "specializations": ["Orthopedics"],
        "licenseNumber": "MMC-20931",
        "issuingAuthority": "Maharashtra Medical Council",
        "fees": "500",
        "licenseFile": "uploads/1700000000000-abcd1234-license.pdf",
        "timingSlots": [{"day": "Tuesday", "from": "10:00", "to": "13:00"}],
        "bio": "Orthopedic surgeon focusing on sports injuries.",
    }


def test_validate_converts_types(candidate: dict):
    doctor = DoctorService.validate(candidate)

    assert doctor.full_name == "Dr. Ravi Kumar"
    assert doctor.dob == date(1979, 11, 2)
    assert doctor.fees == Decimal("500")
    assert doctor.timing_slots[0].from_ == "10:00"


def test_validate_reports_every_offending_field(candidate: dict):
    del candidate["fullName"]
    candidate["email"] = "not-an-email"
    candidate["fees"] = "free"

    with pytest.raises(ValidationFailedException) as exc_info:
        DoctorService.validate(candidate)

    fields = {err["field"] for err in exc_info.value.errors}
    assert {"fullName", "email", "fees"} <= fields
    assert exc_info.value.message.startswith("Validation failed: ")
    assert exc_info.value.status_code == 400


@pytest.mark.parametrize(
    ("field", "value"),
    [
        ("specializations", []),
        ("specializations", [""]),
        ("bio", "   "),
        ("fees", "-10"),
        ("dob", "2999-01-01"),
        ("timingSlots", [{"day": "Monday", "from": "9am", "to": "12:00"}]),
        ("timingSlots", [{"day": "Monday", "from": "09:00"}]),
    ],
)
def test_validate_rejects_malformed_values(candidate: dict, field: str, value):
    candidate[field] = value

    with pytest.raises(ValidationFailedException):
        DoctorService.validate(candidate)


def test_to_row_uses_slot_keys(candidate: dict):
    row = DoctorService.validate(candidate).to_row()

    assert row["timing_slots"] == [{"day": "Tuesday", "from": "10:00", "to": "13:00"}]
    assert row["license_number"] == "MMC-20931"
    assert row["email"] == "ravi.kumar@example.com"


@pytest.mark.asyncio
async def test_register_persists_record(db_session: AsyncSession, candidate: dict, stored_doctors):
    doctor_id = await DoctorService().register(db_session, candidate)

    rows = await stored_doctors()
    assert len(rows) == 1
    assert rows[0]["id"] == doctor_id
    assert rows[0]["specializations"] == ["Orthopedics"]
    assert rows[0]["created_at"] is not None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("changed_field", "expected_field"),
    [("licenseNumber", "email"), ("email", "licenseNumber")],
)
async def test_create_doctor_duplicate(
    db_session: AsyncSession,
    candidate: dict,
    stored_doctors,
    changed_field: str,
    expected_field: str,
):
    """Reusing either unique field is reported as a duplicate."""
    service = DoctorService()
    await service.register(db_session, candidate)

    second = dict(candidate)
    second[changed_field] = "other@example.com" if changed_field == "email" else "OTHER-1"

    with pytest.raises(DuplicateKeyException) as exc_info:
        await service.register(db_session, second)

    assert exc_info.value.field == expected_field
    assert "Duplicate entry" in exc_info.value.message
    assert len(await stored_doctors()) == 1


@pytest.mark.asyncio
async def test_concurrent_duplicate_email_single_winner(
    database: Database, candidate: dict, stored_doctors
):
    """The unique constraint picks exactly one of two racing inserts."""
    service = DoctorService()
    second = dict(candidate, licenseNumber="MMC-99999")

    async def attempt(data: dict):
        async with database.session() as session:
            return await service.register(session, data)

    results = await asyncio.gather(attempt(candidate), attempt(second), return_exceptions=True)

    failures = [r for r in results if isinstance(r, Exception)]
    assert len(failures) == 1
    assert isinstance(failures[0], DuplicateKeyException)
    assert len(await stored_doctors()) == 1


@pytest.mark.asyncio
async def test_create_doctor_storage_unavailable(candidate: dict):
    session = AsyncMock(spec=AsyncSession)
    session.execute.side_effect = OperationalError(
        "INSERT INTO doctors", {}, ConnectionRefusedError("connection refused")
    )

    with pytest.raises(StorageUnavailableException):
        await DoctorService().register(session, candidate)


@pytest.mark.asyncio
async def test_check_connection_unreachable(tmp_path):
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'doctors.db'}")
    await database.connect()

    assert await database.check_connection() is False

    await database.disconnect()
