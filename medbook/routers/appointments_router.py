from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
import logging

from ..application.errors import BookingError
from ..application.ports.notifier import BookingNotifier
from ..application.services.appointments_service import AppointmentsService
from ..application.services.booking_service import BookingService
from ..dependencies import (
    CurrentUser,
    get_appointments_service,
    get_booking_service,
    get_current_user,
    get_notifier,
)
from ..schemas.appointments.appointment import (
    AppointmentCreate,
    AppointmentResponse,
    AvailabilityResponse,
)
from ..schemas.common.common import ErrorResponse
from ..utils import normalize_phone

BOOKING_ERRORS = {
    400: {"model": ErrorResponse, "description": "Invalid request or outside bookable days and hours"},
    404: {"model": ErrorResponse, "description": "Unknown hospital or medical test"},
    409: {"model": ErrorResponse, "description": "Slot overlaps an existing booking, or reference collision"},
}

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


@router.get("/my", response_model=List[AppointmentResponse])
async def get_my_appointments(
    current_user: CurrentUser = Depends(get_current_user),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    appts = await appt_service.list_for_patient(current_user.id)
    return [AppointmentResponse.model_validate(a) for a in appts]


@router.get("/availability", response_model=AvailabilityResponse)
async def get_availability(
    hospital_id: Optional[str] = Query(None),
    date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    duration: Optional[str] = Query(None, description="Minutes; defaults to the test's duration"),
    test_id: Optional[str] = Query(None),
    current_user: CurrentUser = Depends(get_current_user),
    booking: BookingService = Depends(get_booking_service),
):
    result = await booking.availability(hospital_id, date, duration=duration, test_id=test_id)
    return AvailabilityResponse(
        hospital_id=result.hospital_id,
        date=result.appointment_date.isoformat(),
        duration=result.duration,
        slots=result.slots,
        opens=result.opens,
        closes=result.closes,
    )


@router.post("/", response_model=AppointmentResponse, status_code=201, responses=BOOKING_ERRORS)
async def book_appointment(
    appointment_data: AppointmentCreate,
    background_tasks: BackgroundTasks,
    current_user: CurrentUser = Depends(get_current_user),
    booking: BookingService = Depends(get_booking_service),
    notifier: BookingNotifier = Depends(get_notifier),
):
    logger.debug(f"Create appointment start - user: {current_user.id}, payload: {appointment_data.model_dump()}")
    try:
        appt = await booking.book(
            patient_id=current_user.id,
            patient_name=current_user.name,
            patient_phone=normalize_phone(current_user.phone) or current_user.phone,
            hospital_id=appointment_data.hospital_id,
            test_id=appointment_data.test_id,
            appointment_date=appointment_data.appointment_date,
            time_slot=appointment_data.time_slot,
        )
    except (BookingError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"Create appointment error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error creating appointment: {str(e)}")

    # Runs after the response is sent; the booking is already committed
    background_tasks.add_task(notifier.appointment_booked, appt)
    return AppointmentResponse.model_validate(appt)


@router.get("/reference/{reference}", response_model=AppointmentResponse)
async def get_appointment_by_reference(
    reference: str,
    current_user: CurrentUser = Depends(get_current_user),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    appt = await appt_service.get_by_reference(current_user.id, reference)
    return AppointmentResponse.model_validate(appt)


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    appt = await appt_service.get_for_patient(current_user.id, appointment_id)
    return AppointmentResponse.model_validate(appt)
