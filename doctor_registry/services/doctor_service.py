"""Doctor service for business logic."""

from typing import Any
from uuid import UUID, uuid4

import structlog
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from doctor_registry.core.exceptions import (
    DuplicateKeyException,
    StorageUnavailableException,
    ValidationFailedException,
)
from doctor_registry.models.doctors import doctors
from doctor_registry.schemas.doctors import DoctorCreate

logger = structlog.get_logger(__name__)

# Matched against both PostgreSQL constraint names and SQLite column messages
_UNIQUE_FIELDS = {
    "doctors_email_key": "email",
    "doctors.email": "email",
    "doctors_license_number_key": "licenseNumber",
    "doctors.license_number": "licenseNumber",
}


def _format_location(loc: tuple) -> str:
    return ".".join(str(part) for part in loc) or "record"


def duplicate_field(error: IntegrityError) -> str | None:
    """Name the unique field an integrity error collided on, if recognizable."""
    error_msg = str(error.orig) if error.orig is not None else str(error)
    for marker, field in _UNIQUE_FIELDS.items():
        if marker in error_msg:
            return field
    return None


class DoctorService:
    """Service for doctor registration."""

    @staticmethod
    def validate(candidate: dict[str, Any]) -> DoctorCreate:
        """
        Validate a normalized candidate record.

        Raises:
            ValidationFailedException: Naming every missing or malformed field
        """
        try:
            return DoctorCreate.model_validate(candidate)
        except ValidationError as e:
            errors = [
                {"field": _format_location(err["loc"]), "message": err["msg"]}
                for err in e.errors()
            ]
            message = "Validation failed: " + "; ".join(
                f"{err['field']}: {err['message']}" for err in errors
            )
            raise ValidationFailedException(message, errors=errors) from e

    async def create_doctor(self, db: AsyncSession, doctor: DoctorCreate) -> UUID:
        """
        Insert a registration record.

        Uniqueness of email and license number is decided by the table's
        constraints in the same statement as the insert.

        Raises:
            DuplicateKeyException: If email or license number is taken
            StorageUnavailableException: If the database cannot be reached
        """
        doctor_id = uuid4()
        query = doctors.insert().values(id=doctor_id, **doctor.to_row())

        try:
            await db.execute(query)
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            field = duplicate_field(e)
            logger.info(
                "doctor_registration_duplicate",
                field=field,
                email=str(doctor.email),
                license_number=doctor.license_number,
            )
            raise DuplicateKeyException(field=field) from e
        except (OperationalError, InterfaceError, OSError) as e:
            logger.error("storage_unavailable", error=str(e))
            raise StorageUnavailableException() from e

        logger.info("doctor_registered", doctor_id=str(doctor_id), email=str(doctor.email))
        return doctor_id

    async def register(self, db: AsyncSession, candidate: dict[str, Any]) -> UUID:
        """Validate a candidate record and persist it."""
        doctor = self.validate(candidate)
        return await self.create_doctor(db, doctor)
