"""
Provider 1 mapper.

Expected payload:
{
  "id": "12345",
  "personal_info": {
    "first_name": "John",
    "last_name": "Doe",
    "email_address": "john.doe@example.com",
    "phone": "+1-555-123-4567",
    "birth_date": "1985-06-15"
  },
  "employment": {
    "hire_date": "2023-01-15",
    "department_name": "Security",
    "job_title": "Security Guard"
  }
}
"""

from typing import Any, Mapping

from workforce_sync.mappers.base import BaseEmployeeMapper, MapperRegistry
from workforce_sync.models.employee import Employee


@MapperRegistry.register
class Provider1EmployeeMapper(BaseEmployeeMapper):
    PROVIDER_ID = "provider1"

    REQUIRED_FIELDS = [
        "id",
        "personal_info.first_name",
        "personal_info.last_name",
        "personal_info.email_address",
    ]

    def validate(self, raw_payload: Mapping[str, Any]) -> bool:
        if not isinstance(raw_payload, Mapping):
            return False
        if not self._has_values(raw_payload, self.REQUIRED_FIELDS):
            return False
        return self._is_valid_email(self._get_value(raw_payload, "personal_info.email_address"))

    def external_id(self, raw_payload: Mapping[str, Any]) -> str:
        return str(self._get_value(raw_payload, "id", ""))

    def to_canonical(self, raw_payload: Mapping[str, Any]) -> Employee:
        return Employee(
            provider=self.provider_id(),
            external_id=self.external_id(raw_payload),
            first_name=self._get_value(raw_payload, "personal_info.first_name", ""),
            last_name=self._get_value(raw_payload, "personal_info.last_name", ""),
            email=self._get_value(raw_payload, "personal_info.email_address", ""),
            phone_number=self._format_phone_number(self._get_value(raw_payload, "personal_info.phone")),
            date_of_birth=self._parse_date(self._get_value(raw_payload, "personal_info.birth_date")),
            hire_date=self._parse_date(self._get_value(raw_payload, "employment.hire_date")),
            department=self._optional_str(self._get_value(raw_payload, "employment.department_name")),
            position=self._optional_str(self._get_value(raw_payload, "employment.job_title")),
            raw_payload=raw_payload,
        )
