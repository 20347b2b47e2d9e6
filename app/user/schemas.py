# app/user/schemas.py
from typing import Literal

from pydantic import BaseModel, Field


class CategoryOut(BaseModel):
    category_id: int
    category_name: str

    model_config = {"from_attributes": True}


class UserCreate(BaseModel):
    email: str = Field(..., min_length=3, max_length=256)
    first_name: str | None = Field(default=None, max_length=20)
    last_name: str | None = Field(default=None, max_length=20)
    role: Literal["Admin", "Technician", "EndUser"] = "EndUser"
    help_desk_category_id: int | None = None


class UserOut(BaseModel):
    id: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    role: str
    help_desk_category_id: int | None = None
    category: CategoryOut | None = None

    model_config = {"from_attributes": True}
