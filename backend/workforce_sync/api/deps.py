import logging
import threading
from typing import Generator, Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from workforce_sync.db.session import SessionLocal
from workforce_sync.downstream.client import DownstreamClient
from workforce_sync.services.employee_repository import EmployeeRepository
from workforce_sync.services.employee_sync_service import EmployeeSyncService

logger = logging.getLogger("workforce_sync.deps")


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# Global singleton instance
_downstream_client: Optional[DownstreamClient] = None
_downstream_client_lock = threading.Lock()


def get_downstream_client() -> DownstreamClient:
    """
    Process-wide downstream client.

    Token state lives on this instance, so every request shares one credential
    and one single-flight refresh. Built at most once, even when several
    threadpool workers resolve the dependency at the same time.
    """
    global _downstream_client
    if _downstream_client is None:
        with _downstream_client_lock:
            if _downstream_client is None:
                logger.info("Creating downstream API client")
                _downstream_client = DownstreamClient.from_settings()
    return _downstream_client


def close_downstream_client() -> None:
    """Close the process-wide downstream client if one was created."""
    global _downstream_client
    with _downstream_client_lock:
        if _downstream_client is not None:
            _downstream_client.close()
            _downstream_client = None


def get_sync_service(
    db: Session = Depends(get_db),
    client: DownstreamClient = Depends(get_downstream_client),
) -> EmployeeSyncService:
    return EmployeeSyncService(EmployeeRepository(db), client)
