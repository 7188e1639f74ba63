"""
Provider 2 mapper.

Expected payload:
{
  "employee_id": "EMP-001",
  "name": {"given": "Jane", "family": "Smith"},
  "contact": {"email": "jane.smith@company.com", "mobile": "555.987.6543"},
  "profile": {
    "dob": "1990-03-22",
    "start_date": "2022-08-10",
    "division": "Operations",
    "role": "Operations Manager"
  }
}
"""

from typing import Any, Mapping

from workforce_sync.mappers.base import BaseEmployeeMapper, MapperRegistry
from workforce_sync.models.employee import Employee


@MapperRegistry.register
class Provider2EmployeeMapper(BaseEmployeeMapper):
    PROVIDER_ID = "provider2"

    REQUIRED_FIELDS = [
        "employee_id",
        "name.given",
        "name.family",
        "contact.email",
    ]

    def validate(self, raw_payload: Mapping[str, Any]) -> bool:
        if not isinstance(raw_payload, Mapping):
            return False
        if not self._has_values(raw_payload, self.REQUIRED_FIELDS):
            return False
        return self._is_valid_email(self._get_value(raw_payload, "contact.email"))

    def external_id(self, raw_payload: Mapping[str, Any]) -> str:
        return str(self._get_value(raw_payload, "employee_id", ""))

    def to_canonical(self, raw_payload: Mapping[str, Any]) -> Employee:
        return Employee(
            provider=self.provider_id(),
            external_id=self.external_id(raw_payload),
            first_name=self._get_value(raw_payload, "name.given", ""),
            last_name=self._get_value(raw_payload, "name.family", ""),
            email=self._get_value(raw_payload, "contact.email", ""),
            phone_number=self._format_phone_number(self._get_value(raw_payload, "contact.mobile")),
            date_of_birth=self._parse_date(self._get_value(raw_payload, "profile.dob")),
            hire_date=self._parse_date(self._get_value(raw_payload, "profile.start_date")),
            department=self._optional_str(self._get_value(raw_payload, "profile.division")),
            position=self._optional_str(self._get_value(raw_payload, "profile.role")),
            raw_payload=raw_payload,
        )
