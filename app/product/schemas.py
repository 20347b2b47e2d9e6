# app/product/schemas.py
from datetime import datetime

from pydantic import BaseModel, Field

from app.ticket.schemas import TicketSummaryOut


class ProductBase(BaseModel):
    product_name: str = Field(..., min_length=6, max_length=60)
    product_description: str | None = Field(default=None, max_length=400)


class ProductCreate(ProductBase):
    product_id: str = Field(..., min_length=1, max_length=20)


class ProductUpdate(BaseModel):
    product_name: str | None = Field(default=None, min_length=6, max_length=60)
    product_description: str | None = Field(default=None, max_length=400)
    display: int | None = Field(default=None, ge=0, le=1)


class ProductCodeOut(BaseModel):
    product_id: str
    code: str
    count: int

    model_config = {"from_attributes": True}


class ProductOut(ProductBase):
    product_id: str
    release_date: datetime | None = None
    update_date: datetime | None = None
    display: int
    code: ProductCodeOut | None = None

    model_config = {"from_attributes": True}


class ProductDetailsOut(BaseModel):
    product: ProductOut
    tickets: list[TicketSummaryOut]


class ProductOption(BaseModel):
    value: str
    text: str
