import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from workforce_sync.api.deps import get_sync_service
from workforce_sync.core.exceptions import ClientInputError
from workforce_sync.schemas.employee import (
    EmployeeResponse,
    ErrorBody,
    IngestResponse,
    SyncResponse,
)
from workforce_sync.services.employee_sync_service import EmployeeSyncService

logger = logging.getLogger("workforce_sync.api.employees")

router = APIRouter()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorBody(error=message).model_dump())


@router.get("", response_model=List[EmployeeResponse], responses={500: {"model": ErrorBody}})
async def list_employees(
    provider: Optional[str] = None,
    service: EmployeeSyncService = Depends(get_sync_service),
) -> Any:
    """
    List canonical employee records, newest first, optionally for one provider.
    """
    try:
        if provider:
            return await run_in_threadpool(service.get_employees_by_provider, provider)
        return await run_in_threadpool(service.get_all_employees)
    except Exception as e:
        logger.error(f"Failed to list employees: {e}", exc_info=True)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to retrieve employees")


@router.get("/{employee_id}", response_model=EmployeeResponse)
async def read_employee(
    employee_id: int,
    service: EmployeeSyncService = Depends(get_sync_service),
) -> Any:
    """
    Get employee by ID.
    """
    employee = await run_in_threadpool(service.get_employee, employee_id)
    if not employee:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Employee not found",
        )
    return employee


# Declared before the provider route so "sync" is never taken as a provider id
@router.post("/sync", response_model=SyncResponse)
async def sync_pending_employees(
    limit: Optional[int] = Query(None, ge=1),
    service: EmployeeSyncService = Depends(get_sync_service),
) -> Any:
    """
    Push pending records to the downstream API and report how many succeeded.
    """
    try:
        synced_count = await run_in_threadpool(service.sync_all_pending, limit)
    except Exception as e:
        logger.error(f"Pending sync sweep failed: {e}", exc_info=True)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to sync employees")
    return SyncResponse(synced_count=synced_count)


@router.post(
    "/{provider_id}",
    response_model=IngestResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorBody}, 500: {"model": ErrorBody}},
)
async def ingest_employee(
    provider_id: str,
    request: Request,
    service: EmployeeSyncService = Depends(get_sync_service),
) -> Any:
    """
    Accept one employee payload pushed by a provider.

    The record is stored (created or updated) and then synced to the
    downstream API; a failed downstream sync does not fail the request.
    """
    try:
        payload = await request.json()
    except ValueError:
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid JSON data")
    if not isinstance(payload, dict):
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid JSON data")

    try:
        employee = await run_in_threadpool(service.ingest, provider_id, payload)
    except ClientInputError as e:
        logger.warning(
            f"Rejected employee payload: {e}",
            extra={"provider": provider_id},
        )
        return _error(status.HTTP_400_BAD_REQUEST, str(e))
    except Exception as e:
        logger.error(
            f"Failed to process employee payload: {e}",
            extra={"provider": provider_id},
            exc_info=True,
        )
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")

    return IngestResponse(employee_id=employee.id)
