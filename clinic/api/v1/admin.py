from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.exceptions import NotFoundError
from ...api.deps import get_admin_user
from ...services.department_service import DepartmentService
from ...services.doctor_service import DoctorService
from ...schemas.auth import UserResponse
from ...schemas.department import DepartmentResponse, DepartmentWrite
from ...schemas.doctor import CapacityUpdate, DoctorCreate, DoctorResponse, DoctorUpdate
from ...models.user import User

router = APIRouter(prefix="/admin", tags=["Administration"], dependencies=[Depends(get_admin_user)])

@router.get("/dashboard")
async def dashboard(current_user: User = Depends(get_admin_user)):
    return {"message": f"Welcome to Admin Dashboard, {current_user.name}"}

# Departments
@router.post("/departments", response_model=DepartmentResponse, status_code=status.HTTP_201_CREATED)
async def create_department(data: DepartmentWrite, db: Session = Depends(get_db)):
    return DepartmentService(db).create_department(data.name)

@router.put("/departments/{department_id}", response_model=DepartmentResponse)
async def update_department(department_id: int, data: DepartmentWrite, db: Session = Depends(get_db)):
    return DepartmentService(db).update_department(department_id, data.name)

@router.delete("/departments/{department_id}")
async def delete_department(department_id: int, db: Session = Depends(get_db)):
    DepartmentService(db).delete_department(department_id)
    return {"message": "Department deleted successfully"}

# Doctors
@router.post("/doctors", response_model=DoctorResponse, status_code=status.HTTP_201_CREATED)
async def create_doctor(data: DoctorCreate, db: Session = Depends(get_db)):
    """Create a doctor together with their DOCTOR login."""
    doctor = DoctorService(db).create_doctor(data)
    return DoctorResponse.from_doctor(doctor)

@router.put("/doctors/{doctor_id}", response_model=DoctorResponse)
async def update_doctor(doctor_id: int, data: DoctorUpdate, db: Session = Depends(get_db)):
    doctor = DoctorService(db).update_doctor(doctor_id, data)
    return DoctorResponse.from_doctor(doctor)

@router.put("/doctors/{doctor_id}/capacity", response_model=DoctorResponse)
async def set_doctor_capacity(doctor_id: int, data: CapacityUpdate, db: Session = Depends(get_db)):
    """Reset the per-weekday booking capacity (Sunday first)."""
    doctor = DoctorService(db).set_capacity(doctor_id, data.available_slots)
    return DoctorResponse.from_doctor(doctor)

@router.delete("/doctors/{doctor_id}")
async def delete_doctor(doctor_id: int, db: Session = Depends(get_db)):
    DoctorService(db).delete_doctor(doctor_id)
    return {"message": "Doctor and associated user deleted successfully"}

# Users
@router.get("/users")
async def list_users(
    skip: int = 0,
    limit: int = 10,
    db: Session = Depends(get_db)
):
    """List all users."""
    users = db.query(User).order_by(User.id).offset(skip).limit(limit).all()
    return [UserResponse.model_validate(user) for user in users]

@router.patch("/users/{user_id}/status")
async def update_user_status(
    user_id: int,
    is_active: bool,
    db: Session = Depends(get_db)
):
    """Activate or deactivate a user account."""
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")

    user.is_active = is_active
    db.commit()

    return {"message": f"User {'activated' if is_active else 'deactivated'} successfully"}
