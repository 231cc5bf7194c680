from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from ...core.config import settings
from ...core.database import get_db
from ...api.deps import get_current_user
from ...services.doctor_service import DoctorService
from ...schemas.appointment import AppointmentResponse
from ...schemas.doctor import AvailableDoctorResponse, DoctorResponse

router = APIRouter(prefix="/doctors", tags=["Doctors"], dependencies=[Depends(get_current_user)])

@router.get("/available", response_model=List[AvailableDoctorResponse])
async def available_doctors(
    specialization: Optional[str] = None,
    date: Optional[str] = Query(None, description="ISO date, optionally with a time of day"),
    include_appointments: bool = False,
    db: Session = Depends(get_db)
):
    """Doctors whose declared schedule covers the given date (and time, if given)."""
    results = DoctorService(db).available_doctors(
        specialization=specialization,
        date=date,
        include_appointments=include_appointments,
        mode=settings.BOOKING_MODE,
    )
    return [
        AvailableDoctorResponse(
            doctor_id=doctor.id,
            name=doctor.user.name if doctor.user else "",
            specialization=doctor.specialization or "",
            department=doctor.department.name if doctor.department else "",
            availability=doctor.availability or "",
            available_slots=doctor.available_slots,
            appointments=[AppointmentResponse.from_appointment(a) for a in appointments],
        )
        for doctor, appointments in results
    ]

@router.get("/filter", response_model=List[DoctorResponse])
async def filter_doctors(
    department_id: Optional[int] = None,
    specialization: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """Filter doctors by department and specialization."""
    doctors = DoctorService(db).filter_doctors(department_id, specialization)
    return [DoctorResponse.from_doctor(doctor) for doctor in doctors]

@router.get("/{doctor_id}", response_model=DoctorResponse)
async def get_doctor(doctor_id: int, db: Session = Depends(get_db)):
    return DoctorResponse.from_doctor(DoctorService(db).get_doctor(doctor_id))
