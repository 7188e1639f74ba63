"""
Employee persistence.

Thin repository over a SQLAlchemy session. Uniqueness violations (email,
provider + external id) are translated to ConflictError.
"""

import logging
from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from workforce_sync.core.exceptions import ConflictError
from workforce_sync.models.employee import Employee

logger = logging.getLogger("workforce_sync.repository")


class EmployeeRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, employee_id: int) -> Optional[Employee]:
        return self.db.get(Employee, employee_id)

    def find_by_provider_and_external_id(self, provider: str, external_id: str) -> Optional[Employee]:
        result = self.db.execute(
            select(Employee).where(
                Employee.provider == provider,
                Employee.external_id == external_id,
            )
        )
        return result.scalar_one_or_none()

    def find_by_downstream_id(self, downstream_id: str) -> Optional[Employee]:
        result = self.db.execute(select(Employee).where(Employee.downstream_id == downstream_id))
        return result.scalar_one_or_none()

    def find_by_provider(self, provider: str) -> List[Employee]:
        result = self.db.execute(
            select(Employee).where(Employee.provider == provider).order_by(Employee.id.desc())
        )
        return list(result.scalars().all())

    def find_all(self) -> List[Employee]:
        result = self.db.execute(select(Employee).order_by(Employee.id.desc()))
        return list(result.scalars().all())

    def find_pending_sync(self, limit: int = 100) -> List[Employee]:
        """
        Records due for a downstream sync sweep.

        A record is pending when it has never been created downstream, or when
        it has been modified after creation. Most recently updated first.
        """
        query = (
            select(Employee)
            .where(
                or_(
                    Employee.downstream_id.is_(None),
                    Employee.updated_at > Employee.created_at,
                )
            )
            .order_by(Employee.updated_at.desc(), Employee.id.desc())
            .limit(limit)
        )
        result = self.db.execute(query)
        return list(result.scalars().all())

    def save(self, employee: Employee) -> Employee:
        """
        Persist a new or modified record and commit.

        Raises:
            ConflictError: when the email or (provider, external_id) is already taken
        """
        self.db.add(employee)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(
                "Uniqueness violation while saving employee",
                extra={"provider": employee.provider, "external_id": employee.external_id},
            )
            raise ConflictError(
                f"Employee conflicts with an existing record "
                f"(provider={employee.provider}, external_id={employee.external_id})"
            ) from e
        self.db.refresh(employee)
        return employee

    def remove(self, employee: Employee) -> None:
        self.db.delete(employee)
        self.db.commit()
