from sqlalchemy.orm import Session
from typing import List
import logging

from ..core.database import storage_guard
from ..core.exceptions import ConflictError, NotFoundError
from ..models.department import Department

logger = logging.getLogger(__name__)

class DepartmentService:
    def __init__(self, db: Session):
        self.db = db

    def list_departments(self) -> List[Department]:
        with storage_guard(self.db, "listing departments"):
            return self.db.query(Department).order_by(Department.name).all()

    def get_department(self, department_id: int) -> Department:
        department = self.db.query(Department).filter(Department.id == department_id).first()
        if not department:
            raise NotFoundError("Department not found")
        return department

    def create_department(self, name: str) -> Department:
        with storage_guard(
            self.db,
            "creating a department",
            on_integrity_error=lambda exc: ConflictError("Department already exists"),
        ):
            if self._find_by_name(name):
                raise ConflictError("Department already exists")

            department = Department(name=name)
            self.db.add(department)
            self.db.commit()
            self.db.refresh(department)

        logger.info(f"Created department {department.id} ({department.name})")
        return department

    def update_department(self, department_id: int, name: str) -> Department:
        with storage_guard(
            self.db,
            "updating a department",
            on_integrity_error=lambda exc: ConflictError("Department with this name already exists"),
        ):
            department = self.get_department(department_id)
            existing = self._find_by_name(name)
            if existing and existing.id != department.id:
                raise ConflictError("Department with this name already exists")

            department.name = name
            self.db.commit()
            self.db.refresh(department)

        return department

    def delete_department(self, department_id: int) -> None:
        with storage_guard(self.db, "deleting a department"):
            department = self.get_department(department_id)
            # Doctors stay; they lose their department link
            for doctor in department.doctors:
                doctor.department_id = None
            self.db.delete(department)
            self.db.commit()

        logger.info(f"Deleted department {department_id}")

    def _find_by_name(self, name: str):
        return self.db.query(Department).filter(Department.name == name.strip().upper()).first()
