from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base

class Department(Base):
    __tablename__ = "departments"

    id = Column(Integer, primary_key=True, index=True)
    # Stored upper-case; uniqueness is case-insensitive through that normalization
    name = Column(String(50), unique=True, nullable=False)

    created_at = Column(DateTime, server_default=func.now())

    doctors = relationship("Doctor", back_populates="department")

    def __repr__(self):
        return f"<Department(id={self.id}, name='{self.name}')>"
