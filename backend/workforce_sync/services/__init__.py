# Services Package

from workforce_sync.services.employee_repository import EmployeeRepository
from workforce_sync.services.employee_sync_service import EmployeeSyncService

__all__ = [
    "EmployeeRepository",
    "EmployeeSyncService",
]
