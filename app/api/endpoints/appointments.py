from datetime import date
from typing import Any, Optional, Tuple

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_async_db, get_current_active_user_async, paginated, pagination_params
from app.core.config import settings
from app.models.user import User
from app.schemas.appointment import (
    AppointmentCreate,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentUpdate,
    AvailableSlots,
)
from app.schemas.base import APIResponse, PaginatedResponse
from app.services.async_appointment import AsyncAppointmentService

router = APIRouter()


@router.get("", response_model=PaginatedResponse[AppointmentResponse])
async def list_appointments(
    appointment_status: Optional[AppointmentStatus] = Query(
        None, alias="status", description="Cancelled appointments are only listed when asked for"
    ),
    day: Optional[date] = Query(None, alias="date", description="Only appointments starting on this UTC day"),
    coach_id: Optional[int] = Query(None, ge=1),
    client_id: Optional[int] = Query(None, ge=1),
    paging: Tuple[int, int] = Depends(pagination_params),
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    page, limit = paging
    appointments, total = await AsyncAppointmentService.list_appointments(
        db,
        current_user,
        page,
        limit,
        status=appointment_status,
        day=day,
        coach_id=coach_id,
        client_id=client_id,
    )
    return paginated(AppointmentResponse, appointments, total, page, limit)


@router.get("/available-slots", response_model=APIResponse[AvailableSlots])
async def get_available_slots(
    coach_id: int = Query(..., ge=1),
    day: date = Query(..., alias="date", description="Day to search (YYYY-MM-DD)"),
    duration: int = Query(settings.DEFAULT_APPOINTMENT_MINUTES, ge=5, le=480, description="Slot length in minutes"),
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    """Free start times for a coach on one day, inside the working window."""
    slots = await AsyncAppointmentService.available_slots(db, coach_id, day, duration)
    return APIResponse(data=slots)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=APIResponse[AppointmentResponse])
async def create_appointment(
    data: AppointmentCreate,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    """
    Book an appointment.

    Fails with 409 when the slot overlaps another non-cancelled appointment
    of the same coach.
    """
    appointment = await AsyncAppointmentService.create_appointment(db, current_user, data)
    return APIResponse(
        data=AppointmentResponse.model_validate(appointment), message="Appointment scheduled successfully"
    )


@router.get("/{appointment_id}", response_model=APIResponse[AppointmentResponse])
async def get_appointment(
    appointment_id: int,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    appointment = await AsyncAppointmentService.get_appointment(db, current_user, appointment_id)
    return APIResponse(data=AppointmentResponse.model_validate(appointment))


@router.put("/{appointment_id}", response_model=APIResponse[AppointmentResponse])
async def update_appointment(
    appointment_id: int,
    data: AppointmentUpdate,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    appointment = await AsyncAppointmentService.update_appointment(db, current_user, appointment_id, data)
    return APIResponse(
        data=AppointmentResponse.model_validate(appointment), message="Appointment updated successfully"
    )


@router.delete("/{appointment_id}", response_model=APIResponse[AppointmentResponse])
async def cancel_appointment(
    appointment_id: int,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    appointment = await AsyncAppointmentService.cancel_appointment(db, current_user, appointment_id)
    return APIResponse(
        data=AppointmentResponse.model_validate(appointment), message="Appointment cancelled successfully"
    )
