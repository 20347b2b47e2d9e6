# app/comment/models.py
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from app.core.database import Base


class Comment(Base):
    __tablename__ = "comments"

    comment_id = Column(Integer, primary_key=True, index=True)
    ticket_id = Column(String(20), ForeignKey("tickets.ticket_id"), index=True, nullable=False)
    user_id = Column(String(36), ForeignKey("users.id"))
    comment_text = Column(String(500), nullable=False)
    create_date = Column(DateTime)
    file_name = Column(String(100))
    file_type = Column(String(10))
    deleted = Column(Integer, nullable=False, default=0)

    ticket = relationship("Ticket", back_populates="comments")
    author = relationship("AppUser")

    # filled per read from blob storage, never persisted
    file_url = None
