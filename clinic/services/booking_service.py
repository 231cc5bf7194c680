"""Appointment booking with conflict detection.

Two booking modes exist and a deployment runs exactly one of them
(``settings.BOOKING_MODE``):

``slot``
    A patient books one of the eight fixed slots on a weekday date. The
    occupancy pre-check is a plain read followed by an insert, so two
    concurrent requests can both pass it. The partial unique index on
    ``appointments(doctor_id, date, slot) WHERE status = 'BOOKED'`` is what
    actually prevents the double booking; the losing insert is reported as
    ``SLOT_TAKEN``.

``weekday``
    A patient books a weekday against the doctor's remaining capacity for
    that day. The claim is one conditional ``UPDATE ... WHERE remaining > 0``
    so each unit of capacity has at most one winner. The decrement, the
    duplicate check and the insert share one transaction.

Lost races are reported, never retried here.
"""
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import Optional, Union
import logging

from ..core.config import settings
from ..core.database import storage_guard
from ..core.exceptions import (
    BookingValidationError, NotFoundError, SlotTakenError,
    ConflictError, NoCapacityError
)
from ..core.security import UserRole
from ..models.appointment import BOOKED_SLOT_INDEX, Appointment, AppointmentStatus
from ..models.doctor import Doctor, DoctorCapacity
from ..models.user import User
from .availability import is_day_available
from .slot_calendar import (
    WEEKDAY_NAMES, is_past_date, is_valid_date_format, is_valid_slot_index,
    is_weekday, normalize_slot_index, slot_label, slot_times, weekday_to_index
)

logger = logging.getLogger(__name__)

SLOT_MODE = "slot"
WEEKDAY_MODE = "weekday"

# SQLite names the indexed columns instead of the index
_BOOKED_SLOT_COLUMNS = "appointments.doctor_id, appointments.date, appointments.slot"

def is_booked_slot_violation(exc: IntegrityError) -> bool:
    """Whether ``exc`` comes from the one-live-booking-per-slot index."""
    diag = getattr(exc.orig, "diag", None)
    constraint = getattr(diag, "constraint_name", None)
    if constraint is not None:
        return constraint == BOOKED_SLOT_INDEX
    message = str(exc.orig)
    return BOOKED_SLOT_INDEX in message or _BOOKED_SLOT_COLUMNS in message

class BookingService:
    def __init__(self, db: Session, mode: Optional[str] = None):
        self.db = db
        self.mode = mode or settings.BOOKING_MODE

    def book(
        self,
        doctor_id: int,
        patient_id: int,
        date: Optional[str] = None,
        slot=None,
        appointment_day: Optional[str] = None,
    ) -> Appointment:
        """Book with whichever mode this deployment runs."""
        if self.mode == WEEKDAY_MODE:
            return self.book_weekday(doctor_id, patient_id, appointment_day)
        return self.book_slot(doctor_id, patient_id, date, slot)

    # Slot mode

    def validate_slot_request(self, date, slot) -> None:
        """Checks run in this order and stop at the first failure."""
        if not is_valid_slot_index(slot):
            raise BookingValidationError("Slot must be an integer between 0 and 7")
        if not is_valid_date_format(date):
            raise BookingValidationError("Invalid date format. Expected YYYY-MM-DD")
        if not is_weekday(date):
            raise BookingValidationError("Appointments only available Monday through Friday")
        if is_past_date(date):
            raise BookingValidationError("Cannot book appointments in the past")

    def book_slot(self, doctor_id: int, patient_id: int, date, slot) -> Appointment:
        self._require_mode(SLOT_MODE)
        self.validate_slot_request(date, slot)
        slot = normalize_slot_index(slot)

        with storage_guard(
            self.db,
            "booking a slot",
            on_integrity_error=lambda exc: SlotTakenError(
                "Slot already booked for this doctor/date/slot"
            ) if is_booked_slot_violation(exc) else None,
        ):
            self._get_doctor(doctor_id)
            self._get_patient(patient_id)

            existing = self.db.query(Appointment.id).filter(
                Appointment.doctor_id == doctor_id,
                Appointment.date == date,
                Appointment.slot == slot,
                Appointment.status == AppointmentStatus.BOOKED
            ).first()
            if existing:
                raise SlotTakenError("Slot already booked for this doctor/date/slot")

            appointment = Appointment(
                doctor_id=doctor_id,
                patient_id=patient_id,
                date=date,
                slot=slot,
                status=AppointmentStatus.BOOKED
            )
            self.db.add(appointment)
            self.db.commit()
            self.db.refresh(appointment)

        logger.info(
            f"Booked appointment {appointment.id}: doctor {doctor_id}, "
            f"{date} {slot_label(slot)}, patient {patient_id}"
        )
        return appointment

    def get_slots_for_day(self, doctor_id: int, date) -> dict:
        """All eight slots for a doctor's day, in slot order."""
        self._require_mode(SLOT_MODE)
        if not is_valid_date_format(date):
            raise BookingValidationError("Invalid date format. Expected YYYY-MM-DD")
        if not is_weekday(date):
            raise BookingValidationError("Date must be a weekday (Monday-Friday)")

        with storage_guard(self.db, "loading day slots"):
            self._get_doctor(doctor_id)
            booked = self.db.query(Appointment.slot, Appointment.patient_id).filter(
                Appointment.doctor_id == doctor_id,
                Appointment.date == date,
                Appointment.status == AppointmentStatus.BOOKED
            ).all()

        booked_by = {booked_slot: booked_patient for booked_slot, booked_patient in booked}
        return {
            "date": date,
            "doctor_id": doctor_id,
            "slots": [
                {
                    "slot": index,
                    "time": label,
                    "available": index not in booked_by,
                    "booked_by": booked_by.get(index),
                }
                for index, label in slot_times()
            ],
        }

    # Weekday mode

    def book_weekday(self, doctor_id: int, patient_id: int, appointment_day) -> Appointment:
        self._require_mode(WEEKDAY_MODE)
        day = weekday_to_index(appointment_day)
        if day is None:
            raise BookingValidationError(
                "Invalid appointment day. Expected a weekday name such as 'monday'"
            )
        day_name = WEEKDAY_NAMES[day]

        with storage_guard(self.db, "booking a weekday"):
            doctor = self._get_doctor(doctor_id)
            self._get_patient(patient_id)

            if not is_day_available(doctor.window, day):
                raise BookingValidationError(f"Doctor is not available on {day_name}")

            # Single conditional write; never read the counter and write it back
            claimed = self.db.query(DoctorCapacity).filter(
                DoctorCapacity.doctor_id == doctor_id,
                DoctorCapacity.day_index == day,
                DoctorCapacity.remaining > 0
            ).update(
                {DoctorCapacity.remaining: DoctorCapacity.remaining - 1},
                synchronize_session=False
            )
            if claimed == 0:
                raise NoCapacityError(f"No capacity left for this doctor on {day_name}")

            duplicate = self.db.query(Appointment.id).filter(
                Appointment.doctor_id == doctor_id,
                Appointment.patient_id == patient_id,
                Appointment.appointment_day == day_name,
                Appointment.status == AppointmentStatus.BOOKED
            ).first()
            if duplicate:
                raise ConflictError(
                    f"Patient already has a booked appointment with this doctor on {day_name}"
                )

            appointment = Appointment(
                doctor_id=doctor_id,
                patient_id=patient_id,
                appointment_day=day_name,
                status=AppointmentStatus.BOOKED
            )
            self.db.add(appointment)
            self.db.commit()
            self.db.refresh(appointment)

        logger.info(
            f"Booked appointment {appointment.id}: doctor {doctor_id}, "
            f"{day_name}, patient {patient_id}"
        )
        return appointment

    def get_weekday_capacity(self, doctor_id: int) -> dict:
        self._require_mode(WEEKDAY_MODE)
        with storage_guard(self.db, "loading weekday capacity"):
            doctor = self._get_doctor(doctor_id)
            rows = {row.day_index: row for row in doctor.capacity}
            window = doctor.window

        return {
            "doctor_id": doctor_id,
            "days": [
                {
                    "day": name,
                    "index": index,
                    "remaining": rows[index].remaining if index in rows else 0,
                    "max_capacity": rows[index].max_capacity if index in rows else 0,
                    "works": window.covers_day(index),
                }
                for index, name in enumerate(WEEKDAY_NAMES)
            ],
        }

    # Lookups

    def _require_mode(self, mode: str) -> None:
        if self.mode != mode:
            raise BookingValidationError(
                f"This operation requires '{mode}' booking mode; the service runs '{self.mode}'"
            )

    def _get_doctor(self, doctor_id: Union[int, str]) -> Doctor:
        doctor = self.db.query(Doctor).filter(Doctor.id == doctor_id).first()
        if not doctor:
            raise NotFoundError("Doctor not found")
        return doctor

    def _get_patient(self, patient_id: Union[int, str]) -> User:
        patient = self.db.query(User).filter(
            User.id == patient_id,
            User.role == UserRole.PATIENT,
            User.is_active == True
        ).first()
        if not patient:
            raise NotFoundError("Patient not found")
        return patient
