# app/product/routes.py
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.core.identity import CurrentUser, get_current_user
from app.product import services as product_service
from app.product.schemas import (
    ProductCodeOut,
    ProductCreate,
    ProductDetailsOut,
    ProductOption,
    ProductOut,
    ProductUpdate,
)
from app.ticket.schemas import TicketSummaryOut
router = APIRouter(prefix="/products", tags=["Products"])


@router.get("/", response_model=list[ProductOut])
def list_all(db: Session = Depends(get_db)):
    return product_service.get_products(db)


@router.get("/options", response_model=list[ProductOption])
def options(db: Session = Depends(get_db)):
    return [
        ProductOption(value=product_id, text=name)
        for product_id, name in product_service.get_product_select_list(db)
    ]


@router.post("/", response_model=ProductOut, status_code=201)
def create(
    product: ProductCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    if product_service.get_product_edit(db, product.product_id):
        raise HTTPException(status_code=409, detail="Product already exists")
    created = product_service.create_product(db, product, user.id)
    if not created:
        raise HTTPException(status_code=500, detail="Failed to create product")
    return created


@router.get("/{product_id}", response_model=ProductDetailsOut)
def get(
    product_id: str,
    is_completed: bool = Query(default=False),
    db: Session = Depends(get_db),
):
    details = product_service.get_product_details(db, product_id, is_completed)
    if not details:
        raise HTTPException(status_code=404, detail="Product not found")
    return ProductDetailsOut(
        product=ProductOut.model_validate(details["product"]),
        tickets=[TicketSummaryOut.model_validate(t) for t in details["tickets"]],
    )


@router.get("/{product_id}/code", response_model=ProductCodeOut)
def get_code(product_id: str, db: Session = Depends(get_db)):
    code = product_service.get_code(db, product_id)
    if not code:
        raise HTTPException(status_code=404, detail="Product code not found")
    return code


@router.put("/{product_id}", response_model=ProductOut)
def update(
    product_id: str,
    product: ProductUpdate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    if not product_service.get_product_edit(db, product_id):
        raise HTTPException(status_code=404, detail="Product not found")
    if not product_service.update_product(db, product_id, product, user.id):
        raise HTTPException(status_code=409, detail="Product was not updated")
    return product_service.get_product_edit(db, product_id)
