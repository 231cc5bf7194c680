from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..models.appointment import AppointmentStatus
from ..services.slot_calendar import slot_label

class CamelModel(BaseModel):
    # Wire names are camelCase; snake_case is accepted on input as well
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class BookAppointmentRequest(CamelModel):
    doctor_id: int
    patient_id: Optional[int] = None
    # Slot mode
    date: Optional[str] = None
    # Left untyped so a non-integer slot is reported as a booking validation error
    slot: Optional[Any] = None
    # Weekday mode
    appointment_day: Optional[str] = None

class AppointmentResponse(CamelModel):
    id: int
    doctor_id: int
    patient_id: int
    date: Optional[str] = None
    slot: Optional[int] = None
    time: Optional[str] = None
    appointment_day: Optional[str] = None
    status: AppointmentStatus
    created_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    @classmethod
    def from_appointment(cls, appointment) -> "AppointmentResponse":
        return cls(
            id=appointment.id,
            doctor_id=appointment.doctor_id,
            patient_id=appointment.patient_id,
            date=appointment.date,
            slot=appointment.slot,
            time=slot_label(appointment.slot) if appointment.slot is not None else None,
            appointment_day=appointment.appointment_day,
            status=appointment.status,
            created_at=appointment.created_at,
            cancelled_at=appointment.cancelled_at,
        )

class SlotResponse(CamelModel):
    slot: int
    time: str
    available: bool
    booked_by: Optional[int] = None

class DaySlotsResponse(CamelModel):
    date: str
    doctor_id: int
    slots: List[SlotResponse]

class WeekdayCapacity(CamelModel):
    day: str
    index: int
    remaining: int
    max_capacity: int
    works: bool

class WeekdayCapacityResponse(CamelModel):
    doctor_id: int
    days: List[WeekdayCapacity]
