from datetime import datetime
from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from ..core.config import settings
from ..core.database import storage_guard
from ..core.exceptions import BookingValidationError, ConflictError, NotFoundError
from ..core.security import UserRole, get_password_hash
from ..models.appointment import Appointment, AppointmentStatus
from ..models.department import Department
from ..models.doctor import Doctor, DoctorCapacity, DAYS_PER_WEEK
from ..models.user import User
from ..schemas.doctor import DoctorCreate, DoctorUpdate
from .availability import is_nominally_available, parse_availability
from .slot_calendar import WEEKDAY_NAMES, day_index

logger = logging.getLogger(__name__)

class DoctorService:
    def __init__(self, db: Session):
        self.db = db

    def get_doctor(self, doctor_id: int) -> Doctor:
        doctor = self.db.query(Doctor).filter(Doctor.id == doctor_id).first()
        if not doctor:
            raise NotFoundError("Doctor not found")
        return doctor

    def get_doctor_for_user(self, user_id: int) -> Optional[Doctor]:
        return self.db.query(Doctor).filter(Doctor.user_id == user_id).first()

    def create_doctor(self, data: DoctorCreate) -> Doctor:
        with storage_guard(
            self.db,
            "creating a doctor",
            on_integrity_error=lambda exc: ConflictError("Email already exists"),
        ):
            department = self._get_department_by_name(data.dept_name)

            if self.db.query(User).filter(User.email == data.email).first():
                raise ConflictError("Email already exists")

            user = User(
                name=data.name.strip(),
                email=data.email,
                phone=data.phone,
                password_hash=get_password_hash(data.password),
                role=UserRole.DOCTOR,
                is_active=True
            )
            self.db.add(user)
            self.db.flush()

            doctor = Doctor(
                user_id=user.id,
                department_id=department.id,
                specialization=data.specialization.strip(),
            )
            self._set_availability(doctor, data.availability)
            self._seed_capacity(doctor, data.available_slots or [0] * DAYS_PER_WEEK)

            self.db.add(doctor)
            self.db.commit()
            self.db.refresh(doctor)

        logger.info(f"Created doctor {doctor.id} for user {doctor.user_id}")
        return doctor

    def update_doctor(self, doctor_id: int, data: DoctorUpdate) -> Doctor:
        with storage_guard(
            self.db,
            "updating a doctor",
            on_integrity_error=lambda exc: ConflictError("Email already in use"),
        ):
            doctor = self.get_doctor(doctor_id)
            user = doctor.user
            if not user:
                raise NotFoundError("Associated user not found")

            if data.dept_name:
                doctor.department_id = self._get_department_by_name(data.dept_name).id
            if data.specialization:
                doctor.specialization = data.specialization.strip()
            if data.availability is not None:
                self._set_availability(doctor, data.availability)

            if data.name:
                user.name = data.name.strip()
            if data.email and data.email != user.email:
                taken = self.db.query(User).filter(
                    User.email == data.email,
                    User.id != user.id
                ).first()
                if taken:
                    raise ConflictError("Email already in use")
                user.email = data.email
            if data.phone:
                user.phone = data.phone
            if data.password:
                user.password_hash = get_password_hash(data.password)

            self.db.commit()
            self.db.refresh(doctor)

        return doctor

    def delete_doctor(self, doctor_id: int) -> None:
        """Remove a doctor and their login; doctors with appointment history are kept."""
        with storage_guard(self.db, "deleting a doctor"):
            doctor = self.get_doctor(doctor_id)
            has_history = self.db.query(Appointment.id).filter(
                Appointment.doctor_id == doctor.id
            ).first()
            if has_history:
                raise ConflictError(
                    "Doctor has appointments on record; deactivate the account instead"
                )

            user = doctor.user
            self.db.delete(doctor)
            if user:
                self.db.delete(user)
            self.db.commit()

        logger.info(f"Deleted doctor {doctor_id}")

    def set_capacity(self, doctor_id: int, available_slots: List[int]) -> Doctor:
        """Reset each weekday's maximum capacity.

        Live bookings keep holding their unit, so ``remaining`` becomes the
        new maximum minus the BOOKED appointments already on that weekday
        (never below zero). Counting and writing share one transaction.
        """
        with storage_guard(self.db, "updating doctor capacity"):
            doctor = self.get_doctor(doctor_id)
            booked = dict(
                self.db.query(Appointment.appointment_day, func.count(Appointment.id)).filter(
                    Appointment.doctor_id == doctor.id,
                    Appointment.appointment_day.isnot(None),
                    Appointment.status == AppointmentStatus.BOOKED
                ).group_by(Appointment.appointment_day).all()
            )
            rows = {row.day_index: row for row in doctor.capacity}
            for index, count in enumerate(available_slots):
                remaining = max(count - booked.get(WEEKDAY_NAMES[index], 0), 0)
                row = rows.get(index)
                if row is None:
                    doctor.capacity.append(
                        DoctorCapacity(day_index=index, remaining=remaining, max_capacity=count)
                    )
                else:
                    row.max_capacity = count
                    row.remaining = remaining
            self.db.commit()
            self.db.refresh(doctor)

        logger.info(f"Capacity for doctor {doctor_id} set to {available_slots}")
        return doctor

    def filter_doctors(
        self,
        department_id: Optional[int] = None,
        specialization: Optional[str] = None,
    ) -> List[Doctor]:
        with storage_guard(self.db, "filtering doctors"):
            query = self.db.query(Doctor)
            if department_id is not None:
                query = query.filter(Doctor.department_id == department_id)
            if specialization and specialization.strip():
                query = query.filter(Doctor.specialization == specialization.strip())
            return query.order_by(Doctor.id).all()

    def available_doctors(
        self,
        specialization: Optional[str] = None,
        date: Optional[str] = None,
        include_appointments: bool = False,
        mode: Optional[str] = None,
    ):
        """Doctors whose declared schedule covers ``date``, with their bookings that day.

        ``date`` is ISO 8601; when it carries a time of day the doctor's
        hours are checked as well as the weekday.
        """
        target = None
        check_hour = False
        if date:
            try:
                target = datetime.fromisoformat(date.strip())
            except ValueError as exc:
                raise BookingValidationError("Invalid date. Expected ISO 8601, e.g. 2025-03-10 or 2025-03-10T14:00") from exc
            check_hour = "T" in date or ":" in date

        mode = mode or settings.BOOKING_MODE
        results = []
        with storage_guard(self.db, "listing available doctors"):
            for doctor in self.filter_doctors(specialization=specialization):
                if target and not is_nominally_available(doctor.window, target, check_hour=check_hour):
                    continue

                appointments = []
                if include_appointments and target:
                    query = self.db.query(Appointment).filter(
                        Appointment.doctor_id == doctor.id,
                        Appointment.status == AppointmentStatus.BOOKED
                    )
                    if mode == "weekday":
                        query = query.filter(
                            Appointment.appointment_day == WEEKDAY_NAMES[day_index(target.date())]
                        )
                    else:
                        query = query.filter(Appointment.date == target.date().isoformat())
                    appointments = query.order_by(Appointment.id).all()

                results.append((doctor, appointments))
        return results

    def _get_department_by_name(self, name: str) -> Department:
        department = self.db.query(Department).filter(
            Department.name == name.strip().upper()
        ).first()
        if not department:
            raise NotFoundError("Department not found")
        return department

    def _set_availability(self, doctor: Doctor, availability: Optional[str]) -> None:
        # Parsed once here; bookings read only the structured columns
        doctor.availability = availability.strip() if availability else None
        doctor.apply_window(parse_availability(doctor.availability))

    def _seed_capacity(self, doctor: Doctor, available_slots: List[int]) -> None:
        doctor.capacity = [
            DoctorCapacity(day_index=index, remaining=count, max_capacity=count)
            for index, count in enumerate(available_slots)
        ]
