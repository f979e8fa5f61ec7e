"""Doctor registration schemas for request/response validation."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class TimingSlot(BaseModel):
    """One (day, start-time, end-time) availability slot."""

    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
        str_min_length=1,
    )

    day: str = Field(..., max_length=20)
    from_: str = Field(..., alias="from", pattern=TIME_PATTERN)
    to: str = Field(..., pattern=TIME_PATTERN)


class DoctorCreate(BaseModel):
    """Schema for a normalized registration record."""

    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
        str_min_length=1,
    )

    full_name: str = Field(..., alias="fullName", max_length=200)
    dob: date
    gender: str = Field(..., max_length=50)
    contact_number: str = Field(..., alias="contactNumber", max_length=50)
    email: EmailStr
    degree: str = Field(..., max_length=200)
    specializations: list[str] = Field(..., min_length=1)
    license_number: str = Field(..., alias="licenseNumber", max_length=100)
    issuing_authority: str = Field(..., alias="issuingAuthority", max_length=200)
    fees: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    license_file: str = Field(..., alias="licenseFile")
    timing_slots: list[TimingSlot] = Field(default_factory=list, alias="timingSlots")
    bio: str

    @field_validator("dob")
    @classmethod
    def dob_not_in_future(cls, value: date) -> date:
        if value > date.today():
            raise ValueError("date of birth cannot be in the future")
        return value

    def to_row(self) -> dict:
        """Column values for the doctors table."""
        data = self.model_dump(exclude={"timing_slots"})
        data["email"] = str(self.email)
        data["timing_slots"] = [slot.model_dump(by_alias=True) for slot in self.timing_slots]
        return data
