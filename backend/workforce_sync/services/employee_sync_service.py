"""
Employee ingestion and downstream synchronization.

Ingest flow for one provider payload:
1. Resolve the provider mapper and validate the payload shape
2. Upsert the canonical record keyed by (provider, external_id)
3. Push the record to the downstream HR API (create or update)

Downstream failures never undo or fail the local upsert; the record stays
pending and is picked up again by the next sweep.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from workforce_sync.core.config import settings
from workforce_sync.core.exceptions import InvalidPayloadError, UnsupportedProviderError
from workforce_sync.downstream.client import DownstreamClient
from workforce_sync.mappers import BaseEmployeeMapper, MapperRegistry
from workforce_sync.models.employee import Employee
from workforce_sync.schemas.employee import validate_employee_fields
from workforce_sync.services.employee_repository import EmployeeRepository

logger = logging.getLogger("workforce_sync.sync")


class EmployeeSyncService:
    def __init__(
        self,
        repository: EmployeeRepository,
        downstream: DownstreamClient,
        mappers: Optional[Mapping[str, BaseEmployeeMapper]] = None,
    ):
        self.repository = repository
        self.downstream = downstream
        self.mappers: Dict[str, BaseEmployeeMapper] = dict(
            mappers if mappers is not None else MapperRegistry.instances()
        )

    def _get_mapper(self, provider: str) -> BaseEmployeeMapper:
        mapper = self.mappers.get(provider)
        if mapper is None:
            raise UnsupportedProviderError(provider)
        return mapper

    def ingest(self, provider: str, raw_payload: Mapping[str, Any]) -> Employee:
        """
        Create or update the canonical record for a provider payload, then sync it.

        Raises:
            UnsupportedProviderError: no mapper for ``provider``
            InvalidPayloadError: the mapper rejected the payload shape
            FieldValidationError: the mapped record violates a field constraint
            ConflictError: the email or key is already taken by another record
        """
        mapper = self._get_mapper(provider)

        if not mapper.validate(raw_payload):
            raise InvalidPayloadError(provider)

        external_id = mapper.external_id(raw_payload)
        existing = self.repository.find_by_provider_and_external_id(provider, external_id)

        if existing is None:
            employee = self._create_from_payload(mapper, raw_payload)
            logger.info(
                "Created new employee",
                extra={"provider": provider, "external_id": external_id, "employee_id": employee.id},
            )
        else:
            employee = self._update_from_payload(existing, mapper, raw_payload)
            logger.info(
                "Updated existing employee",
                extra={"provider": provider, "external_id": external_id, "employee_id": employee.id},
            )

        # Sync outcome only affects downstream_id; failures leave the record pending
        self.sync_one(employee)

        return employee

    def _create_from_payload(self, mapper: BaseEmployeeMapper, raw_payload: Mapping[str, Any]) -> Employee:
        employee = mapper.to_canonical(raw_payload)
        validate_employee_fields(employee)
        return self.repository.save(employee)

    def _update_from_payload(
        self,
        existing: Employee,
        mapper: BaseEmployeeMapper,
        raw_payload: Mapping[str, Any],
    ) -> Employee:
        updated = mapper.to_canonical(raw_payload)
        # Checked before touching the stored instance so a rejected payload leaves it intact
        validate_employee_fields(updated)
        existing.apply_from(updated)
        return self.repository.save(existing)

    def sync_one(self, employee: Employee) -> bool:
        """
        Push one record to the downstream API.

        Updates when the record already has a downstream id, creates otherwise
        and stores the id the downstream API assigned. Never raises.
        """
        try:
            mapper = self._get_mapper(employee.provider)
            payload = mapper.to_downstream_payload(employee)

            if employee.downstream_id:
                self.downstream.update_employee(employee.downstream_id, payload)
            else:
                result = self.downstream.create_employee(payload)
                downstream_id = self._extract_downstream_id(result)
                if downstream_id is None:
                    logger.warning(
                        "Downstream create returned no employee id",
                        extra={"employee_id": employee.id},
                    )
                    return False
                employee.downstream_id = downstream_id
                self.repository.save(employee)

            logger.info(
                "Employee synced to downstream API",
                extra={"employee_id": employee.id, "downstream_id": employee.downstream_id},
            )
            return True

        except Exception as e:
            logger.error(
                f"Failed to sync employee to downstream API: {e}",
                extra={"employee_id": employee.id, "error_type": type(e).__name__},
            )
            return False

    @staticmethod
    def _extract_downstream_id(result: Mapping[str, Any]) -> Optional[str]:
        data = result.get("data")
        if isinstance(data, Mapping) and data.get("id") is not None:
            return str(data["id"])
        if result.get("id") is not None:
            return str(result["id"])
        return None

    def sync_all_pending(self, limit: Optional[int] = None) -> int:
        """
        Sync up to ``limit`` pending records, one after another.

        Returns the number of records synced successfully; failed records stay
        pending for the next sweep.
        """
        if limit is None:
            limit = settings.SYNC_BATCH_LIMIT
        pending = self.repository.find_pending_sync(limit)
        synced_count = 0

        for employee in pending:
            if self.sync_one(employee):
                synced_count += 1

        logger.info(
            "Batch sync completed",
            extra={
                "total_pending": len(pending),
                "synced": synced_count,
                "failed": len(pending) - synced_count,
            },
        )
        return synced_count

    def get_all_employees(self) -> List[Employee]:
        return self.repository.find_all()

    def get_employees_by_provider(self, provider: str) -> List[Employee]:
        return self.repository.find_by_provider(provider)

    def get_employee(self, employee_id: int) -> Optional[Employee]:
        return self.repository.get(employee_id)
