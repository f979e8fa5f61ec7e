from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from doctor_registry.api.endpoints.registration import get_license_store
from doctor_registry.database import Database
from doctor_registry.main import app
from doctor_registry.models.doctors import doctors
from doctor_registry.services.license_storage import LicenseFileStore

PDF_BYTES = b"%PDF-1.4\n1 0 obj << /Type /Catalog >> endobj\ntrailer << /Root 1 0 R >>\n%%EOF\n"


@pytest_asyncio.fixture
async def database(tmp_path: Path) -> AsyncGenerator[Database, None]:
    """Create a database context on a throwaway SQLite file."""
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'doctors_test.db'}")
    await database.connect()
    await database.create_tables()

    yield database

    await database.disconnect()


@pytest_asyncio.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with database.session() as session:
        yield session


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    """Pre-existing upload directory."""
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest_asyncio.fixture
async def client(database: Database, upload_dir: Path) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""
    app.state.database = database
    app.dependency_overrides[get_license_store] = lambda: LicenseFileStore(
        upload_dir, max_size_bytes=1024 * 1024
    )

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
    del app.state.database


@pytest.fixture
def registration_form() -> dict:
    """Sample registration form fields."""
    return {
        "fullName": "Dr. Asha Menon",
        "dob": "1982-04-17",
        "gender": "Female",
        "contactNumber": "+91-9876543210",
        "email": "asha.menon@example.com",
        "degree": "MBBS, MD",
        "specializations": ["Cardiology", "Internal Medicine"],
        "licenseNumber": "KMC-458812",
        "issuingAuthority": "Karnataka Medical Council",
        "fees": "750.00",
        "bio": "Consultant cardiologist with twelve years of practice.",
        "timingDays": ["Monday", "Wednesday"],
        "timingFrom": ["09:00", "14:00"],
        "timingTo": ["12:00", "18:00"],
    }


@pytest.fixture
def license_pdf() -> dict:
    """Multipart file part for a PDF license."""
    return {"licenseFile": ("license.pdf", PDF_BYTES, "application/pdf")}


@pytest.fixture
def stored_doctors(database: Database):
    """Return a coroutine function reading every stored doctor row."""

    async def fetch() -> list[dict]:
        async with database.session() as session:
            result = await session.execute(select(doctors).order_by(doctors.c.created_at))
            return [dict(row) for row in result.mappings().all()]

    return fetch
