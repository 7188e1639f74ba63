"""
Shared test fixtures and configuration for Workforce Sync backend tests.
"""
import os
from typing import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment before importing app modules
os.environ["ENVIRONMENT"] = "development"
os.environ["DEBUG"] = "true"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DOWNSTREAM_API_URL"] = "https://hr.test/rest/v1"

from workforce_sync.db.base import Base  # noqa: E402
from workforce_sync.services.employee_repository import EmployeeRepository  # noqa: E402

from tests.utils.downstream_stub import FakeClock  # noqa: E402


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def db_engine():
    """In-memory SQLite shared across threads of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Generator[Session, None, None]:
    TestingSessionLocal = sessionmaker(bind=db_engine, expire_on_commit=False)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def repository(db_session) -> EmployeeRepository:
    return EmployeeRepository(db_session)


@pytest.fixture
def provider1_payload():
    """Provider 1 payload with every optional field populated."""
    return {
        "id": "12345",
        "personal_info": {
            "first_name": "John",
            "last_name": "Doe",
            "email_address": "john.doe@example.com",
            "phone": "+1-555-123-4567",
            "birth_date": "1985-06-15",
        },
        "employment": {
            "hire_date": "2023-01-15",
            "department_name": "Security",
            "job_title": "Security Guard",
        },
    }


@pytest.fixture
def provider2_payload():
    """Provider 2 payload with every optional field populated."""
    return {
        "employee_id": "EMP-001",
        "name": {"given": "Jane", "family": "Smith"},
        "contact": {"email": "jane.smith@company.com", "mobile": "555.987.6543"},
        "profile": {
            "dob": "1990-03-22",
            "start_date": "2022-08-10",
            "division": "Operations",
            "role": "Operations Manager",
        },
    }
