"""Reshape raw registration form fields into the record shape."""

from collections.abc import Mapping
from typing import Any

from starlette.datastructures import FormData, UploadFile

from doctor_registry.core.exceptions import ValidationFailedException

# A submitted field is either one value or a repeated one
FormValue = str | list[str]

SCALAR_FIELDS = (
    "fullName",
    "dob",
    "gender",
    "contactNumber",
    "email",
    "degree",
    "licenseNumber",
    "issuingAuthority",
    "fees",
    "bio",
)


def collect_form_fields(form: FormData) -> dict[str, FormValue]:
    """
    Collect text fields from a parsed multipart form.

    A key submitted once becomes a scalar, a repeated key becomes a list.
    ``name[]`` keys are merged into ``name``. File parts are skipped.
    """
    collected: dict[str, list[str]] = {}
    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            continue
        name = key[:-2] if key.endswith("[]") else key
        collected.setdefault(name, []).append(value)

    return {name: values[0] if len(values) == 1 else values for name, values in collected.items()}


def as_sequence(value: FormValue | None) -> list[str]:
    """Normalize a scalar-or-sequence form value to a list."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


def build_timing_slots(
    days: FormValue | None,
    starts: FormValue | None,
    ends: FormValue | None,
) -> list[dict[str, str]]:
    """
    Zip the parallel day/from/to inputs into timing slot objects.

    Raises:
        ValidationFailedException: If the three inputs differ in length
    """
    days_list = as_sequence(days)
    starts_list = as_sequence(starts)
    ends_list = as_sequence(ends)

    if not len(days_list) == len(starts_list) == len(ends_list):
        message = (
            "Timing slots are incomplete: got "
            f"{len(days_list)} day(s), {len(starts_list)} start time(s) "
            f"and {len(ends_list)} end time(s)"
        )
        raise ValidationFailedException(
            message,
            errors=[{"field": "timingSlots", "message": message}],
        )

    return [
        {"day": day, "from": start, "to": end}
        for day, start, end in zip(days_list, starts_list, ends_list, strict=True)
    ]


def normalize_registration(
    fields: Mapping[str, FormValue],
    license_file_path: str,
) -> dict[str, Any]:
    """
    Build a candidate doctor record from submitted form fields.

    Scalar fields given more than once keep their first value. Type and
    presence checks are left to schema validation.
    """
    record: dict[str, Any] = {}
    for name in SCALAR_FIELDS:
        value = fields.get(name)
        if isinstance(value, list):
            value = value[0] if value else None
        if value is not None:
            record[name] = value

    if "specializations" in fields:
        record["specializations"] = as_sequence(fields["specializations"])

    record["licenseFile"] = license_file_path
    record["timingSlots"] = build_timing_slots(
        fields.get("timingDays"),
        fields.get("timingFrom"),
        fields.get("timingTo"),
    )
    return record
