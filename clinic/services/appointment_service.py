from datetime import datetime
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from ..core.config import settings
from ..core.database import storage_guard
from ..core.exceptions import (
    BookingValidationError, NotFoundError, NotAuthorizedError,
    AlreadyCancelledError, AlreadyCompletedError, ConflictError
)
from ..models.appointment import Appointment, AppointmentStatus
from ..models.doctor import Doctor, DoctorCapacity
from .booking_service import WEEKDAY_MODE
from .slot_calendar import weekday_to_index

logger = logging.getLogger(__name__)

class AppointmentService:
    """Status transitions of a booked appointment.

    BOOKED -> CANCELLED and BOOKED -> COMPLETED; both targets are terminal.
    """

    def __init__(self, db: Session, mode: Optional[str] = None):
        self.db = db
        self.mode = mode or settings.BOOKING_MODE

    def get_appointment(self, appointment_id: int) -> Appointment:
        appointment = self.db.query(Appointment).filter(
            Appointment.id == appointment_id
        ).first()
        if not appointment:
            raise NotFoundError("Appointment not found")
        return appointment

    def cancel(self, appointment_id: int, requesting_patient_id: int) -> Appointment:
        with storage_guard(self.db, "cancelling an appointment"):
            appointment = self.get_appointment(appointment_id)

            if appointment.status == AppointmentStatus.CANCELLED:
                raise AlreadyCancelledError("Appointment is already cancelled")

            # Ownership is checked here as well as by the router's role gate
            if appointment.patient_id != requesting_patient_id:
                raise NotAuthorizedError("Not authorized to cancel this appointment")

            if appointment.status == AppointmentStatus.COMPLETED:
                raise ConflictError("Completed appointments cannot be cancelled")

            appointment.status = AppointmentStatus.CANCELLED
            appointment.cancelled_at = datetime.utcnow()

            if self.mode == WEEKDAY_MODE and appointment.appointment_day:
                self._restore_capacity(appointment)

            self.db.commit()
            self.db.refresh(appointment)

        logger.info(f"Cancelled appointment {appointment.id} for patient {requesting_patient_id}")
        return appointment

    def complete(self, appointment_id: int, doctor_user_id: Optional[int] = None) -> Appointment:
        """Mark a weekday booking as attended.

        When ``doctor_user_id`` is given it must belong to the appointment's
        doctor.
        """
        if self.mode != WEEKDAY_MODE:
            raise BookingValidationError("Completion is only supported in weekday booking mode")

        with storage_guard(self.db, "completing an appointment"):
            appointment = self.get_appointment(appointment_id)

            if doctor_user_id is not None:
                owner = self.db.query(Doctor.user_id).filter(
                    Doctor.id == appointment.doctor_id
                ).scalar()
                if owner != doctor_user_id:
                    raise NotAuthorizedError("Not authorized to complete this appointment")

            if appointment.status == AppointmentStatus.COMPLETED:
                raise AlreadyCompletedError("Appointment is already completed")
            if appointment.status == AppointmentStatus.CANCELLED:
                raise ConflictError("Cancelled appointments cannot be completed")

            appointment.status = AppointmentStatus.COMPLETED
            self.db.commit()
            self.db.refresh(appointment)

        logger.info(f"Completed appointment {appointment.id}")
        return appointment

    def list_for_patient(self, patient_id: int) -> List[Appointment]:
        with storage_guard(self.db, "listing patient appointments"):
            return self.db.query(Appointment).filter(
                Appointment.patient_id == patient_id
            ).order_by(Appointment.id.desc()).all()

    def list_for_doctor(self, doctor_id: int) -> List[Appointment]:
        with storage_guard(self.db, "listing doctor appointments"):
            return self.db.query(Appointment).filter(
                Appointment.doctor_id == doctor_id
            ).order_by(Appointment.id.desc()).all()

    def _restore_capacity(self, appointment: Appointment) -> None:
        """Give the cancelled booking's unit back, never above the configured maximum."""
        day = weekday_to_index(appointment.appointment_day)
        restored = self.db.query(DoctorCapacity).filter(
            DoctorCapacity.doctor_id == appointment.doctor_id,
            DoctorCapacity.day_index == day,
            DoctorCapacity.remaining < DoctorCapacity.max_capacity
        ).update(
            {DoctorCapacity.remaining: DoctorCapacity.remaining + 1},
            synchronize_session=False
        )
        if restored == 0:
            logger.warning(
                f"Capacity for doctor {appointment.doctor_id} on {appointment.appointment_day} "
                f"already at maximum; nothing restored"
            )
