from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, EmailStr, Field

from .appointment import AppointmentResponse

def _validate_week(value: List[int]) -> List[int]:
    if len(value) != 7:
        raise ValueError("available_slots must have one entry per weekday (7, Sunday first)")
    if any(count < 0 for count in value):
        raise ValueError("available_slots entries must be zero or positive")
    return value

WeekCounts = Annotated[List[int], AfterValidator(_validate_week)]

class DoctorCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)
    phone: Optional[str] = Field(None, max_length=15)
    specialization: str = Field(..., min_length=1, max_length=100)
    dept_name: str = Field(..., min_length=1, max_length=50)
    availability: Optional[str] = Field(None, max_length=100)
    available_slots: Optional[WeekCounts] = None

class DoctorUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=8, max_length=72)
    phone: Optional[str] = Field(None, max_length=15)
    specialization: Optional[str] = Field(None, min_length=1, max_length=100)
    dept_name: Optional[str] = Field(None, min_length=1, max_length=50)
    availability: Optional[str] = Field(None, max_length=100)

class CapacityUpdate(BaseModel):
    available_slots: WeekCounts

class DoctorResponse(BaseModel):
    id: int
    user_id: int
    name: str
    email: str
    phone: Optional[str] = None
    specialization: str
    department: str
    availability: str
    available_days: List[int]
    start_hour: Optional[int] = None
    end_hour: Optional[int] = None
    available_slots: List[int]

    @classmethod
    def from_doctor(cls, doctor) -> "DoctorResponse":
        return cls(
            id=doctor.id,
            user_id=doctor.user_id,
            name=doctor.user.name if doctor.user else "",
            email=doctor.user.email if doctor.user else "",
            phone=doctor.user.phone if doctor.user else None,
            specialization=doctor.specialization or "",
            department=doctor.department.name if doctor.department else "",
            availability=doctor.availability or "",
            available_days=sorted(doctor.available_days or []),
            start_hour=doctor.start_hour,
            end_hour=doctor.end_hour,
            available_slots=doctor.available_slots,
        )

class AvailableDoctorResponse(BaseModel):
    doctor_id: int
    name: str
    specialization: str
    department: str
    availability: str
    available_slots: List[int]
    appointments: List[AppointmentResponse] = []
