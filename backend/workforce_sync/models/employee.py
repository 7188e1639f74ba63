from datetime import datetime, timezone

from sqlalchemy import JSON, Column, Date, DateTime, Index, Integer, String, UniqueConstraint, event

from workforce_sync.db.base_class import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Employee(Base):
    """Canonical employee record, one per (provider, external_id)."""

    __tablename__ = "employees"  # type: ignore[assignment]
    __table_args__ = (
        UniqueConstraint("provider", "external_id", name="uq_employees_provider_external_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    phone_number = Column(String(20), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    hire_date = Column(Date, nullable=True)
    department = Column(String(100), nullable=True)
    position = Column(String(100), nullable=True)

    provider = Column(String(50), nullable=False)
    external_id = Column(String(255), nullable=False)
    raw_payload = Column(JSON, nullable=True)  # verbatim provider payload, audit only

    # Set once the downstream API accepts the create
    downstream_id = Column(String(64), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    # Fields overwritten from the latest provider payload on upsert
    MUTABLE_FIELDS = (
        "first_name",
        "last_name",
        "email",
        "phone_number",
        "date_of_birth",
        "hire_date",
        "department",
        "position",
        "raw_payload",
    )

    def apply_from(self, other: "Employee") -> None:
        """Overwrite mutable fields in place with those of a freshly mapped record."""
        for name in self.MUTABLE_FIELDS:
            setattr(self, name, getattr(other, name))

    def __repr__(self) -> str:
        return f"<Employee id={self.id} provider={self.provider} external_id={self.external_id}>"


Index("idx_employees_provider", Employee.provider)
Index("idx_employees_downstream_id", Employee.downstream_id)
Index("idx_employees_updated_at", Employee.updated_at)


@event.listens_for(Employee, "before_insert")
def _set_created_timestamps(mapper, connection, target: Employee) -> None:
    now = utcnow()
    target.created_at = now
    target.updated_at = now


@event.listens_for(Employee, "before_update")
def _bump_updated_at(mapper, connection, target: Employee) -> None:
    target.updated_at = utcnow()
