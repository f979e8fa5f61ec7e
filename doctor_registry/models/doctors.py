"""Doctor registration model definition using SQLAlchemy Core."""

from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    UniqueConstraint,
    Uuid,
)

metadata = MetaData()


def _utcnow() -> datetime:
    return datetime.now(UTC)


doctors = Table(
    "doctors",
    metadata,
    Column("id", Uuid(as_uuid=True), primary_key=True, default=uuid4),
    # Personal details
    Column("full_name", String(200), nullable=False),
    Column("dob", Date, nullable=False),
    Column("gender", String(50), nullable=False),
    Column("contact_number", String(50), nullable=False),
    Column("email", String(320), nullable=False),
    # Professional credentials
    Column("degree", String(200), nullable=False),
    Column("specializations", JSON, nullable=False),
    Column("license_number", String(100), nullable=False),
    Column("issuing_authority", String(200), nullable=False),
    Column("license_file", Text, nullable=False),
    # Practice information
    Column("fees", Numeric(10, 2), nullable=False),
    # List of {"day", "from", "to"} objects
    Column("timing_slots", JSON, nullable=False),
    Column("bio", Text, nullable=False),
    # Metadata
    Column("created_at", DateTime(timezone=True), nullable=False, default=_utcnow),
    UniqueConstraint("email", name="doctors_email_key"),
    UniqueConstraint("license_number", name="doctors_license_number_key"),
)
