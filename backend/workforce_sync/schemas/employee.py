from datetime import date, datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, EmailStr, Field, ValidationError, field_validator

from workforce_sync.core.exceptions import FieldValidationError


class EmployeeFieldConstraints(BaseModel):
    """Field-level constraints every canonical record must satisfy before it is stored."""

    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    phone_number: Optional[str] = Field(None, max_length=20, pattern=r"^[0-9]+$")
    date_of_birth: Optional[date] = None
    hire_date: Optional[date] = None
    department: Optional[str] = Field(None, max_length=100)
    position: Optional[str] = Field(None, max_length=100)
    provider: str = Field(..., min_length=1, max_length=50)
    external_id: str = Field(..., min_length=1, max_length=255)

    @field_validator("first_name", "last_name", "provider", "external_id")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v

    class Config:
        from_attributes = True


def validate_employee_fields(record: Any) -> None:
    """
    Run field-level validation on a canonical record.

    Raises:
        FieldValidationError: listing every violated constraint as "field: message"
    """
    try:
        EmployeeFieldConstraints.model_validate(record)
    except ValidationError as e:
        errors = [
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in e.errors()
        ]
        raise FieldValidationError(errors) from e


class EmployeeResponse(BaseModel):
    """Read projection of a canonical employee record."""

    id: int
    first_name: str
    last_name: str
    email: str
    phone_number: Optional[str] = None
    date_of_birth: Optional[date] = None
    hire_date: Optional[date] = None
    department: Optional[str] = None
    position: Optional[str] = None
    provider: str
    external_id: str
    raw_payload: Optional[Dict[str, Any]] = None
    downstream_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class IngestResponse(BaseModel):
    success: bool = True
    message: str = "Employee processed successfully"
    employee_id: int


class SyncResponse(BaseModel):
    success: bool = True
    message: str = "Sync completed"
    synced_count: int


class ErrorBody(BaseModel):
    success: bool = False
    error: str
