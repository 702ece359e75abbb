from typing import Any, Optional, Tuple

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_async_db, get_current_active_user_async, paginated, pagination_params
from app.models.user import User
from app.schemas.base import ActionResponse, APIResponse, PaginatedResponse
from app.schemas.program import ProgramAssign, ProgramCreate, ProgramResponse, ProgramStatus, ProgramUpdate
from app.services.async_program import AsyncProgramService

router = APIRouter()


@router.get("", response_model=PaginatedResponse[ProgramResponse])
async def list_programs(
    program_status: Optional[ProgramStatus] = Query(None, alias="status"),
    client_id: Optional[int] = Query(None, ge=1),
    paging: Tuple[int, int] = Depends(pagination_params),
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    """Clients see programs assigned to them, coaches the ones they own, admins all."""
    page, limit = paging
    programs, total = await AsyncProgramService.list_programs(
        db, current_user, page, limit, status=program_status, client_id=client_id
    )
    return paginated(ProgramResponse, programs, total, page, limit)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=APIResponse[ProgramResponse])
async def create_program(
    data: ProgramCreate,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    program = await AsyncProgramService.create_program(db, current_user, data)
    return APIResponse(data=ProgramResponse.model_validate(program), message="Program created successfully")


@router.get("/{program_id}", response_model=APIResponse[ProgramResponse])
async def get_program(
    program_id: int,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    program = await AsyncProgramService.get_program(db, current_user, program_id)
    return APIResponse(data=ProgramResponse.model_validate(program))


@router.put("/{program_id}", response_model=APIResponse[ProgramResponse])
async def update_program(
    program_id: int,
    data: ProgramUpdate,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    program = await AsyncProgramService.update_program(db, current_user, program_id, data)
    return APIResponse(data=ProgramResponse.model_validate(program), message="Program updated successfully")


@router.post("/{program_id}/assign", response_model=APIResponse[ProgramResponse])
async def assign_program(
    program_id: int,
    data: ProgramAssign,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    program = await AsyncProgramService.assign_program(db, current_user, program_id, data.client_id)
    return APIResponse(data=ProgramResponse.model_validate(program), message="Program assigned successfully")


@router.delete("/{program_id}", response_model=ActionResponse)
async def delete_program(
    program_id: int,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    await AsyncProgramService.delete_program(db, current_user, program_id)
    return ActionResponse(message="Program deleted successfully")
