from pydantic import BaseModel, Field, field_validator

class DepartmentWrite(BaseModel):
    name: str = Field(..., max_length=50)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        value = value.strip().upper()
        if not value:
            raise ValueError("Name is required and must be a string")
        return value

class DepartmentResponse(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True
