# app/user/routes.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.user import services as user_service
from app.user.schemas import CategoryOut, UserCreate, UserOut

router = APIRouter(tags=["Users"])


@router.get("/categories", response_model=list[CategoryOut])
def list_categories(db: Session = Depends(get_db)):
    return user_service.get_categories(db)


@router.post("/users", response_model=UserOut, status_code=201)
def create_user(user: UserCreate, db: Session = Depends(get_db)):
    created = user_service.create_user(db, user)
    if not created:
        raise HTTPException(status_code=409, detail="Failed to create user")
    return created


@router.get("/users/{user_id}", response_model=UserOut)
def get_user(user_id: str, db: Session = Depends(get_db)):
    user = user_service.get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user
