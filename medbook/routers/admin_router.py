from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Response
import logging

from ..application.ports.notifier import BookingNotifier
from ..application.services.appointments_service import AppointmentsService
from ..dependencies import (
    CurrentUser,
    get_appointments_service,
    get_catalog_service,
    get_notifier,
    require_admin,
)
from ..schemas.appointments.appointment import (
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentStatusResponse,
    AppointmentStatusUpdate,
)
from ..schemas.common.common import ErrorResponse
from ..schemas.hospitals.hospital import HospitalCreate, HospitalResponse, HospitalUpdate
from ..schemas.medical_tests.medical_test import MedicalTestCreate, MedicalTestResponse, MedicalTestUpdate
from ..services.catalog.catalog_service import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])

CATALOG_ERRORS = {
    404: {"model": ErrorResponse, "description": "Catalogue entry not found"},
    409: {"model": ErrorResponse, "description": "Entry is still referenced, or duplicates an existing one"},
}


@router.get("/appointments", response_model=AppointmentListResponse)
async def list_appointments(
    status: Optional[str] = Query(None, description="Filter by status; 'all' disables the filter"),
    admin: CurrentUser = Depends(require_admin),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    appts = await appt_service.list_all(status)
    return AppointmentListResponse(appointments=[AppointmentResponse.model_validate(a) for a in appts])


@router.put("/appointments/{appointment_id}/status", response_model=AppointmentStatusResponse)
async def update_appointment_status(
    appointment_id: int,
    update: AppointmentStatusUpdate,
    background_tasks: BackgroundTasks,
    admin: CurrentUser = Depends(require_admin),
    appt_service: AppointmentsService = Depends(get_appointments_service),
    notifier: BookingNotifier = Depends(get_notifier),
):
    appt = await appt_service.update_status(appointment_id, update.status)
    logger.info(f"Admin {admin.id} set appointment {appt.reference} to {update.status}")
    if update.status == "confirmed":
        background_tasks.add_task(notifier.appointment_confirmed, appt)
    return AppointmentStatusResponse(
        message=f"Appointment {update.status} successfully",
        appointment=AppointmentResponse.model_validate(appt),
    )


@router.post("/hospitals", response_model=HospitalResponse, status_code=201, responses=CATALOG_ERRORS)
async def create_hospital(
    hospital_data: HospitalCreate,
    admin: CurrentUser = Depends(require_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    hospital = await catalog.create_hospital(hospital_data)
    return HospitalResponse.from_model(hospital)


@router.post("/medical-tests", response_model=MedicalTestResponse, status_code=201, responses=CATALOG_ERRORS)
async def create_medical_test(
    test_data: MedicalTestCreate,
    admin: CurrentUser = Depends(require_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    test = await catalog.create_test(test_data)
    return MedicalTestResponse.model_validate(test)


@router.get("/hospitals", response_model=List[HospitalResponse])
async def list_all_hospitals(
    admin: CurrentUser = Depends(require_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    hospitals = await catalog.list_hospitals(active_only=False)
    return [HospitalResponse.from_model(h) for h in hospitals]


@router.put("/hospitals/{hospital_id}", response_model=HospitalResponse, responses=CATALOG_ERRORS)
async def update_hospital(
    hospital_id: str,
    hospital_data: HospitalUpdate,
    admin: CurrentUser = Depends(require_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    hospital = await catalog.update_hospital(hospital_id, hospital_data)
    if not hospital:
        raise HTTPException(status_code=404, detail="Hospital not found")
    return HospitalResponse.from_model(hospital)


@router.delete("/hospitals/{hospital_id}", status_code=204, responses=CATALOG_ERRORS)
async def delete_hospital(
    hospital_id: str,
    admin: CurrentUser = Depends(require_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    if not await catalog.delete_hospital(hospital_id):
        raise HTTPException(status_code=404, detail="Hospital not found")
    logger.info(f"Admin {admin.id} deleted hospital {hospital_id}")
    return Response(status_code=204)


@router.get("/medical-tests", response_model=List[MedicalTestResponse])
async def list_all_medical_tests(
    hospital_id: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    admin: CurrentUser = Depends(require_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    tests = await catalog.list_tests(hospital_id=hospital_id, category=category, available_only=False)
    return [MedicalTestResponse.model_validate(t) for t in tests]


@router.put("/medical-tests/{test_id}", response_model=MedicalTestResponse, responses=CATALOG_ERRORS)
async def update_medical_test(
    test_id: str,
    test_data: MedicalTestUpdate,
    admin: CurrentUser = Depends(require_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    test = await catalog.update_test(test_id, test_data)
    if not test:
        raise HTTPException(status_code=404, detail="Medical test not found")
    return MedicalTestResponse.model_validate(test)


@router.delete("/medical-tests/{test_id}", status_code=204, responses=CATALOG_ERRORS)
async def delete_medical_test(
    test_id: str,
    admin: CurrentUser = Depends(require_admin),
    catalog: CatalogService = Depends(get_catalog_service),
):
    if not await catalog.delete_test(test_id):
        raise HTTPException(status_code=404, detail="Medical test not found")
    logger.info(f"Admin {admin.id} deleted medical test {test_id}")
    return Response(status_code=204)
