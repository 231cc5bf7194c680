from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Index, Enum as SQLEnum, text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base

class AppointmentStatus(str, enum.Enum):
    BOOKED = "BOOKED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"

_booked_only = text("status = 'BOOKED'")
BOOKED_SLOT_INDEX = "uq_appointments_booked_slot"

class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        # At most one live booking per doctor/date/slot; cancelled rows free the slot
        Index(
            BOOKED_SLOT_INDEX,
            "doctor_id", "date", "slot",
            unique=True,
            sqlite_where=_booked_only,
            postgresql_where=_booked_only,
        ),
        Index("ix_appointments_doctor_date", "doctor_id", "date"),
        Index("ix_appointments_doctor_day", "doctor_id", "appointment_day"),
    )

    id = Column(Integer, primary_key=True, index=True)

    # Relationships
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False, index=True)

    # Temporal key: date + slot in "slot" mode, weekday name in "weekday" mode
    date = Column(String(10), nullable=True)
    slot = Column(Integer, nullable=True)
    appointment_day = Column(String(10), nullable=True)

    status = Column(
        SQLEnum(AppointmentStatus, native_enum=False, length=10),
        nullable=False,
        default=AppointmentStatus.BOOKED,
        index=True,
    )

    # Tracking
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
    cancelled_at = Column(DateTime, nullable=True)

    # Relationships
    patient = relationship("User", back_populates="appointments")
    doctor = relationship("Doctor", back_populates="appointments")

    def __repr__(self):
        return f"<Appointment(id={self.id}, patient_id={self.patient_id}, doctor_id={self.doctor_id}, status='{self.status}')>"
