"""Department endpoints."""

from fastapi import APIRouter, Depends, status

from src.api.dependencies import get_dept_store
from src.application.dto.requests import CreateDepartmentRequest
from src.application.dto.responses import ApiResponse, DepartmentResponse, ErrorResponse
from src.core.entities.department import Department
from src.core.exceptions import DepartmentNotFoundError
from src.infrastructure.storage.sqlite import SQLiteDepartmentStore

router = APIRouter(prefix="/api/departments", tags=["departments"])


@router.get("", response_model=ApiResponse[list[DepartmentResponse]])
async def list_departments(
    store: SQLiteDepartmentStore = Depends(get_dept_store),
) -> ApiResponse[list[DepartmentResponse]]:
    """List departments ordered by name."""
    departments = await store.list_departments()
    return ApiResponse(data=[DepartmentResponse.from_entity(d) for d in departments])


@router.post(
    "",
    response_model=ApiResponse[DepartmentResponse],
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}},
)
async def create_department(
    request: CreateDepartmentRequest,
    store: SQLiteDepartmentStore = Depends(get_dept_store),
) -> ApiResponse[DepartmentResponse]:
    """Create a department; the id is generated when not supplied."""
    department = await store.create_department(Department(**request.model_dump()))
    return ApiResponse(
        data=DepartmentResponse.from_entity(department),
        message="Department created",
    )


@router.get(
    "/{department_id}",
    response_model=ApiResponse[DepartmentResponse],
    responses={404: {"model": ErrorResponse}},
)
async def get_department(
    department_id: str,
    store: SQLiteDepartmentStore = Depends(get_dept_store),
) -> ApiResponse[DepartmentResponse]:
    """Get a department."""
    department = await store.get_department(department_id)
    if department is None:
        raise DepartmentNotFoundError(department_id)
    return ApiResponse(data=DepartmentResponse.from_entity(department))
