"""Doctor registration endpoint."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from doctor_registry.config import settings
from doctor_registry.core.exceptions import AppException, BadRequestException
from doctor_registry.database import get_db
from doctor_registry.services.doctor_service import DoctorService
from doctor_registry.services.form_normalizer import collect_form_fields, normalize_registration
from doctor_registry.services.license_storage import (
    LicenseFileStore,
    StoredLicenseFile,
    single_upload,
)

logger = structlog.get_logger(__name__)

router = APIRouter()

LICENSE_FILE_FIELD = "licenseFile"


def get_license_store() -> LicenseFileStore:
    """Get license file store for the configured upload directory."""
    return LicenseFileStore(settings.upload_dir, max_size_bytes=settings.max_upload_size_bytes)


def get_doctor_service() -> DoctorService:
    """Get doctor service instance."""
    return DoctorService()


@router.post(
    "/register",
    response_class=PlainTextResponse,
    status_code=status.HTTP_200_OK,
    summary="Register a doctor",
)
async def register_doctor(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    license_store: Annotated[LicenseFileStore, Depends(get_license_store)],
    doctor_service: Annotated[DoctorService, Depends(get_doctor_service)],
) -> PlainTextResponse:
    """
    Register a doctor from a multipart form.

    - **fullName**, **dob**, **gender**, **contactNumber**, **email**, **degree**,
      **licenseNumber**, **issuingAuthority**, **fees**, **bio**: text fields
    - **specializations**: one or more values
    - **timingDays**, **timingFrom**, **timingTo**: parallel values, one per slot
    - **licenseFile**: the license as a PDF

    Email and license number must not already be registered.
    """
    stored: StoredLicenseFile | None = None
    try:
        async with request.form() as form:
            upload = single_upload(form.getlist(LICENSE_FILE_FIELD))
            stored = await license_store.store(upload)
            candidate = normalize_registration(collect_form_fields(form), stored.path)
        await doctor_service.register(db, candidate)
    except AppException as e:
        if stored is not None:
            await license_store.discard(stored)
        logger.info("doctor_registration_failed", error=e.message, kind=type(e).__name__)
        raise
    except Exception as e:
        if stored is not None:
            await license_store.discard(stored)
        logger.exception("doctor_registration_failed", error=str(e))
        raise BadRequestException(str(e) or type(e).__name__) from e

    return PlainTextResponse("Doctor registered successfully!")
