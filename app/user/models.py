# app/user/models.py
from uuid import uuid4

from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from app.core.database import Base
from app.core.identity import ROLE_END_USER


class HelpDeskCategory(Base):
    __tablename__ = "help_desk_categories"

    category_id = Column(Integer, primary_key=True, index=True)
    category_name = Column(String(100), unique=True, nullable=False)


class AppUser(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: uuid4().hex)
    email = Column(String(256), unique=True, index=True, nullable=False)
    first_name = Column(String(20))
    last_name = Column(String(20))
    role = Column(String(20), nullable=False, default=ROLE_END_USER)
    # technician specialty; users without one are never assignable
    help_desk_category_id = Column(Integer, ForeignKey("help_desk_categories.category_id"), index=True)
    deleted = Column(Integer, nullable=False, default=0)

    category = relationship("HelpDeskCategory")
    user_tickets = relationship("UserTicket", back_populates="user")

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()
