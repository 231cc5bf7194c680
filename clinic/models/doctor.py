from sqlalchemy import (
    Column, Integer, String, ForeignKey, DateTime, JSON,
    CheckConstraint, UniqueConstraint
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base
from ..services.availability import AvailabilityWindow

DAYS_PER_WEEK = 7

class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=True, index=True)

    specialization = Column(String(100), nullable=True, index=True)

    # Availability: the declared text is kept for display, the structured
    # window is parsed from it once when the doctor is written
    availability = Column(String(100), nullable=True)
    available_days = Column(JSON, nullable=False, default=list)
    start_hour = Column(Integer, nullable=True)
    end_hour = Column(Integer, nullable=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="doctor")
    department = relationship("Department", back_populates="doctors")
    appointments = relationship("Appointment", back_populates="doctor")
    capacity = relationship(
        "DoctorCapacity",
        back_populates="doctor",
        order_by="DoctorCapacity.day_index",
        cascade="all, delete-orphan",
    )

    @property
    def window(self) -> AvailabilityWindow:
        return AvailabilityWindow(
            days=frozenset(self.available_days or []),
            start_hour=self.start_hour,
            end_hour=self.end_hour,
        )

    def apply_window(self, window: AvailabilityWindow) -> None:
        self.available_days = sorted(window.days)
        self.start_hour = window.start_hour
        self.end_hour = window.end_hour

    @property
    def available_slots(self):
        """Remaining capacity per weekday, Sunday first."""
        remaining = [0] * DAYS_PER_WEEK
        for row in self.capacity:
            remaining[row.day_index] = row.remaining
        return remaining

    def __repr__(self):
        return f"<Doctor(id={self.id}, user_id={self.user_id}, specialization='{self.specialization}')>"

class DoctorCapacity(Base):
    """Bookable capacity for one doctor on one weekday."""
    __tablename__ = "doctor_capacity"
    __table_args__ = (
        UniqueConstraint("doctor_id", "day_index", name="uq_doctor_capacity_day"),
        CheckConstraint("day_index >= 0 AND day_index <= 6", name="ck_doctor_capacity_day_index"),
        CheckConstraint("remaining >= 0 AND remaining <= max_capacity", name="ck_doctor_capacity_bounds"),
    )

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="CASCADE"), nullable=False, index=True)
    day_index = Column(Integer, nullable=False)
    remaining = Column(Integer, nullable=False, default=0)
    max_capacity = Column(Integer, nullable=False, default=0)

    doctor = relationship("Doctor", back_populates="capacity")

    def __repr__(self):
        return f"<DoctorCapacity(doctor_id={self.doctor_id}, day_index={self.day_index}, remaining={self.remaining})>"
