from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from ...core.database import get_db
from ...api.deps import get_current_user
from ...services.department_service import DepartmentService
from ...schemas.department import DepartmentResponse

router = APIRouter(prefix="/departments", tags=["Departments"])

@router.get("", response_model=List[DepartmentResponse], dependencies=[Depends(get_current_user)])
async def list_departments(db: Session = Depends(get_db)):
    """List all departments."""
    return DepartmentService(db).list_departments()
