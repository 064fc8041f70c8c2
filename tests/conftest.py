"""Shared fixtures and utilities for tests."""

import os

# Settings are read when api.main is imported, so the environment must be in
# place before any application module loads.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key-min-32-chars-long-for-security")
os.environ.setdefault("JWT_REFRESH_SECRET_KEY", "test-refresh-secret-key-min-32-chars-long")
os.environ.setdefault("JSON_LOGS", "false")

from pathlib import Path
from typing import Optional

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from api.main import create_app
from core.config import Settings
from core.storage.local import DocumentStorage
from database.engine import Database
from database.models.applications import Application
from database.models.candidates import Candidate, VisaStatus
from database.models.jobs import Job, JobStatus
from database.models.users import Role, User
from core.security import hash_password

API = "/api/v1"

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "AdminPass123!"
STAFF_PASSWORD = "StaffPass123!"

PDF_BYTES = b"%PDF-1.4\n1 0 obj<</Type/Catalog>>endobj\ntrailer<</Root 1 0 R>>\n%%EOF"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


# ==================== Settings and Storage ==================== #
@pytest.fixture
def upload_dir(tmp_path) -> Path:
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def test_settings(tmp_path, upload_dir) -> Settings:
    """Settings pointing at a throwaway SQLite file and upload directory."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'ats.db'}",
        upload_dir=str(upload_dir),
        jwt_secret_key="test-jwt-secret-key-min-32-chars-long-for-security",
        jwt_refresh_secret_key="test-refresh-secret-key-min-32-chars-long",
        bootstrap_admin_email=ADMIN_EMAIL,
        bootstrap_admin_password=ADMIN_PASSWORD,
        max_upload_size_bytes=1024 * 1024,
        max_upload_files=5,
        json_logs=False,
    )


@pytest.fixture
def storage(upload_dir) -> DocumentStorage:
    return DocumentStorage(str(upload_dir), max_file_size=1024 * 1024)


def stored_files(upload_dir: Path) -> list[Path]:
    """Every file currently in the upload directory."""
    return [p for p in upload_dir.rglob("*") if p.is_file()]


# ==================== HTTP Client ==================== #
@pytest.fixture
def client(test_settings):
    """Test client with the lifespan running (tables and bootstrap admin created)."""
    app = create_app(test_settings)
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


def login(client: TestClient, email: str, password: str) -> dict:
    response = client.post(f"{API}/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def admin_headers(client) -> dict:
    return login(client, ADMIN_EMAIL, ADMIN_PASSWORD)


def create_staff(client: TestClient, admin_headers: dict, email: str, role: str) -> dict:
    response = client.post(
        f"{API}/ats/users",
        json={
            "email": email,
            "full_name": email.split("@")[0].title(),
            "password": STAFF_PASSWORD,
            "role": role,
        },
        headers=admin_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def recruiter(client, admin_headers) -> dict:
    user = create_staff(client, admin_headers, "recruiter@example.com", "recruiter")
    return {**user, "headers": login(client, "recruiter@example.com", STAFF_PASSWORD)}


@pytest.fixture
def viewer(client, admin_headers) -> dict:
    user = create_staff(client, admin_headers, "viewer@example.com", "viewer")
    return {**user, "headers": login(client, "viewer@example.com", STAFF_PASSWORD)}


def create_job(client: TestClient, headers: dict, **overrides) -> dict:
    payload = {
        "title": "Senior Java Developer (Client: Acme)",
        "public_title": "Senior Java Developer",
        "public_description": "Build and maintain Spring Boot services.",
        "location_city": "Dallas",
        "location_state": "TX",
        "job_type": "full_time",
        "visa_sponsorship": True,
        "salary_min": 120000,
        "salary_max": 150000,
        "show_salary": False,
        "internal_notes": "Client pays net 45",
        "is_published": True,
    }
    payload.update(overrides)
    response = client.post(f"{API}/ats/jobs", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def apply(
    client: TestClient,
    job_id: int,
    email: str = "priya.sharma@example.com",
    files: Optional[list] = None,
    **fields,
):
    data = {
        "first_name": "Priya",
        "last_name": "Sharma",
        "email": email,
        "visa_status": "h1b",
        "location_state": "TX",
    }
    data.update(fields)
    return client.post(f"{API}/jobs/{job_id}/apply", data=data, files=files or None)


# ==================== Database Session ==================== #
@pytest_asyncio.fixture
async def session(tmp_path):
    """Session on a fresh SQLite database, for service-level tests."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'service.db'}")
    await db.create_all()
    async with db.session() as db_session:
        yield db_session
    await db.close()


@pytest_asyncio.fixture
async def staff_user(session) -> User:
    user = User(
        email="staff@example.com",
        full_name="Staff Recruiter",
        password_hash=hash_password(STAFF_PASSWORD),
        role=Role.RECRUITER,
        is_active=True,
    )
    session.add(user)
    await session.commit()
    return user


@pytest_asyncio.fixture
async def open_job(session) -> Job:
    job = Job(
        title="Data Engineer",
        public_description="Own the batch pipelines.",
        is_published=True,
        status=JobStatus.OPEN,
    )
    session.add(job)
    await session.commit()
    return job


@pytest_asyncio.fixture
async def application(session, open_job) -> Application:
    candidate = Candidate(
        first_name="Ravi",
        last_name="Kumar",
        email="ravi.kumar@example.com",
        visa_status=VisaStatus.H1B,
    )
    session.add(candidate)
    await session.flush()
    app_row = Application(job_id=open_job.id, candidate_id=candidate.id)
    session.add(app_row)
    await session.commit()
    return app_row
