"""
Base Employee Mapper Interface

Abstract base class and registry for provider payload mappers.
Every provider that pushes employee data must have a mapper inheriting from
BaseEmployeeMapper and registered with MapperRegistry.
"""

import logging
import re
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional, Type

from email_validator import EmailNotValidError, validate_email

from workforce_sync.models.employee import Employee

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"[^0-9]")
_MAX_PHONE_LENGTH = 20


class BaseEmployeeMapper(ABC):
    """
    Translates one provider's payload shape to and from the canonical record.

    Mappers are stateless; the sync service never branches on provider
    identity beyond looking a mapper up by PROVIDER_ID.
    """

    PROVIDER_ID: str = "base"

    def provider_id(self) -> str:
        return self.PROVIDER_ID

    @abstractmethod
    def validate(self, raw_payload: Mapping[str, Any]) -> bool:
        """
        Check the payload carries the provider's required fields and a
        syntactically valid email address.
        """

    @abstractmethod
    def external_id(self, raw_payload: Mapping[str, Any]) -> str:
        """Extract the provider-assigned identifier (half of the upsert key)."""

    @abstractmethod
    def to_canonical(self, raw_payload: Mapping[str, Any]) -> Employee:
        """
        Map a provider payload to an unsaved canonical Employee.

        Must set provider and external_id and copy the raw payload verbatim.
        """

    def to_downstream_payload(self, record: Employee) -> Dict[str, Any]:
        """
        Map a canonical record to the downstream employee payload.

        Optional fields are omitted when absent; the originating provider and
        external id always travel as custom fields.
        """
        data: Dict[str, Any] = {
            "firstName": record.first_name,
            "lastName": record.last_name,
            "email": record.email,
        }

        if record.phone_number:
            data["primaryPhone"] = record.phone_number
        if record.hire_date:
            data["startDate"] = record.hire_date.isoformat()
        if record.date_of_birth:
            data["birthdate"] = record.date_of_birth.isoformat()
        if record.department:
            data["department"] = record.department
        if record.position:
            data["jobTitle"] = record.position

        data["customFields"] = {
            "source_provider": self.provider_id(),
            "external_id": record.external_id,
        }
        return data

    # ------------------------------------------------------------------
    # Helpers shared by concrete mappers
    # ------------------------------------------------------------------

    @staticmethod
    def _get_value(data: Any, path: str, default: Any = None) -> Any:
        """Read a dotted path (e.g. "personal_info.first_name") from nested dicts."""
        current = data
        for key in path.split("."):
            if not isinstance(current, Mapping) or key not in current:
                return default
            current = current[key]
        return default if current is None else current

    @staticmethod
    def _has_values(data: Any, paths: List[str]) -> bool:
        """True when every path resolves to a non-empty value."""
        for path in paths:
            value = BaseEmployeeMapper._get_value(data, path)
            if value is None or value == "" or value == {} or value == []:
                return False
        return True

    @staticmethod
    def _is_valid_email(value: Any) -> bool:
        if not isinstance(value, str):
            return False
        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError:
            return False
        return True

    @staticmethod
    def _parse_date(value: Any) -> Optional[date]:
        """Parse a provider date string; unparseable values become None."""
        if not value or not isinstance(value, str):
            return None
        try:
            return datetime.strptime(value, "%Y-%m-%d").date()
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
        except ValueError:
            logger.debug(f"Ignoring unparseable date value: {value!r}")
            return None

    @staticmethod
    def _format_phone_number(value: Any) -> Optional[str]:
        """Keep digits only, truncated to the column limit."""
        if value is None or value == "":
            return None
        cleaned = _NON_DIGITS.sub("", str(value))
        return cleaned[:_MAX_PHONE_LENGTH] or None

    @staticmethod
    def _optional_str(value: Any) -> Optional[str]:
        if value is None or value == "":
            return None
        return str(value)


class MapperRegistry:
    """
    Registry of available provider mappers.

    Use this to discover mappers by provider id.
    """

    _mappers: Dict[str, Type[BaseEmployeeMapper]] = {}

    @classmethod
    def register(cls, mapper_class: Type[BaseEmployeeMapper]) -> Type[BaseEmployeeMapper]:
        """
        Register a mapper class.

        Can be used as a decorator:
            @MapperRegistry.register
            class MyProviderMapper(BaseEmployeeMapper):
                ...
        """
        cls._mappers[mapper_class.PROVIDER_ID] = mapper_class
        logger.debug(f"Registered provider mapper: {mapper_class.PROVIDER_ID}")
        return mapper_class

    @classmethod
    def get(cls, provider_id: str) -> Optional[Type[BaseEmployeeMapper]]:
        """Get a mapper class by provider id."""
        return cls._mappers.get(provider_id)

    @classmethod
    def list_all(cls) -> List[str]:
        """List all registered provider ids."""
        return list(cls._mappers.keys())

    @classmethod
    def instances(cls) -> Dict[str, BaseEmployeeMapper]:
        """Instantiate every registered mapper, keyed by provider id."""
        return {provider_id: mapper_class() for provider_id, mapper_class in cls._mappers.items()}
