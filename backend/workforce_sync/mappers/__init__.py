"""
Provider Mappers Package

One mapper per external provider that pushes employee data. Each mapper
validates the provider's payload shape, extracts its external id and
translates between the provider payload, the canonical record and the
downstream HR API payload.
"""

from workforce_sync.mappers.base import BaseEmployeeMapper, MapperRegistry

# Import concrete implementations (they auto-register via decorator)
from workforce_sync.mappers.provider1 import Provider1EmployeeMapper
from workforce_sync.mappers.provider2 import Provider2EmployeeMapper

__all__ = [
    "BaseEmployeeMapper",
    "MapperRegistry",
    "Provider1EmployeeMapper",
    "Provider2EmployeeMapper",
]
