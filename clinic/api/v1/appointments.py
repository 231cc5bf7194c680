from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List

from ...core.database import get_db
from ...core.exceptions import NotAuthorizedError
from ...core.security import UserRole
from ...api.deps import (
    get_current_user, get_doctor_user, get_patient_user, require_role,
    get_booking_service, get_appointment_service
)
from ...services.appointment_service import AppointmentService
from ...services.booking_service import BookingService
from ...services.doctor_service import DoctorService
from ...schemas.appointment import (
    AppointmentResponse, BookAppointmentRequest, DaySlotsResponse,
    WeekdayCapacityResponse
)
from ...models.user import User

router = APIRouter(prefix="/appointments", tags=["Appointments"])

@router.get(
    "/doctors/{doctor_id}/slots",
    response_model=DaySlotsResponse,
    dependencies=[Depends(get_current_user)]
)
async def get_day_slots(
    doctor_id: int,
    date: str = Query(..., description="YYYY-MM-DD"),
    booking_service: BookingService = Depends(get_booking_service)
):
    """Availability of all eight slots of a doctor's day."""
    return booking_service.get_slots_for_day(doctor_id, date)

@router.get(
    "/doctors/{doctor_id}/capacity",
    response_model=WeekdayCapacityResponse,
    dependencies=[Depends(get_current_user)]
)
async def get_weekday_capacity(
    doctor_id: int,
    booking_service: BookingService = Depends(get_booking_service)
):
    """Remaining booking capacity per weekday."""
    return booking_service.get_weekday_capacity(doctor_id)

@router.post("/book", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def book_appointment(
    data: BookAppointmentRequest,
    current_user: User = Depends(get_patient_user),
    booking_service: BookingService = Depends(get_booking_service)
):
    """Book an appointment for the signed-in patient."""
    if data.patient_id is not None and data.patient_id != current_user.id:
        raise NotAuthorizedError("Patients can only book appointments for themselves")

    appointment = booking_service.book(
        doctor_id=data.doctor_id,
        patient_id=current_user.id,
        date=data.date,
        slot=data.slot,
        appointment_day=data.appointment_day,
    )
    return AppointmentResponse.from_appointment(appointment)

@router.get("/patient/{patient_id}", response_model=List[AppointmentResponse])
async def get_appointments_for_patient(
    patient_id: int,
    current_user: User = Depends(require_role([UserRole.PATIENT, UserRole.ADMIN])),
    appointment_service: AppointmentService = Depends(get_appointment_service)
):
    if current_user.role == UserRole.PATIENT and current_user.id != patient_id:
        raise NotAuthorizedError("Patients can only view their own appointments")

    appointments = appointment_service.list_for_patient(patient_id)
    return [AppointmentResponse.from_appointment(a) for a in appointments]

@router.get("/doctor/{doctor_id}", response_model=List[AppointmentResponse])
async def get_appointments_for_doctor(
    doctor_id: int,
    current_user: User = Depends(get_doctor_user),
    appointment_service: AppointmentService = Depends(get_appointment_service),
    db: Session = Depends(get_db)
):
    if current_user.role == UserRole.DOCTOR:
        own = DoctorService(db).get_doctor_for_user(current_user.id)
        if not own or own.id != doctor_id:
            raise NotAuthorizedError("Doctors can only view their own appointments")

    appointments = appointment_service.list_for_doctor(doctor_id)
    return [AppointmentResponse.from_appointment(a) for a in appointments]

@router.patch("/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(
    appointment_id: int,
    current_user: User = Depends(get_patient_user),
    appointment_service: AppointmentService = Depends(get_appointment_service)
):
    """Cancel one of the signed-in patient's appointments."""
    appointment = appointment_service.cancel(appointment_id, current_user.id)
    return AppointmentResponse.from_appointment(appointment)

@router.delete("/{appointment_id}", response_model=AppointmentResponse)
async def delete_appointment(
    appointment_id: int,
    current_user: User = Depends(get_patient_user),
    appointment_service: AppointmentService = Depends(get_appointment_service)
):
    """Same as cancel; the record is kept with status CANCELLED."""
    appointment = appointment_service.cancel(appointment_id, current_user.id)
    return AppointmentResponse.from_appointment(appointment)

@router.patch("/{appointment_id}/complete", response_model=AppointmentResponse)
async def complete_appointment(
    appointment_id: int,
    current_user: User = Depends(get_doctor_user),
    appointment_service: AppointmentService = Depends(get_appointment_service)
):
    """Mark an appointment as completed by its doctor (or an admin)."""
    doctor_user_id = current_user.id if current_user.role == UserRole.DOCTOR else None
    appointment = appointment_service.complete(appointment_id, doctor_user_id)
    return AppointmentResponse.from_appointment(appointment)
