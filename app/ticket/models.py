# app/ticket/models.py
import enum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from app.core.database import Base


class TicketStatus(str, enum.Enum):
    ACTIVE = "Active"
    PAUSED = "Paused"
    COMPLETE = "Complete"
    CANCELED = "Canceled"


OPEN_STATUSES = (TicketStatus.ACTIVE, TicketStatus.PAUSED)
CLOSED_STATUSES = (TicketStatus.COMPLETE, TicketStatus.CANCELED)


class Priority(str, enum.Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @classmethod
    def parse(cls, label: str | None, default: "Priority | None" = None) -> "Priority | None":
        """Case-insensitive lookup by value or name."""
        if label:
            wanted = label.strip().lower()
            for member in cls:
                if wanted in (member.value.lower(), member.name.lower()):
                    return member
        return default


class Ticket(Base):
    __tablename__ = "tickets"

    ticket_id = Column(String(20), primary_key=True, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), index=True)
    title = Column(String(70), nullable=False)
    description = Column(String(400), nullable=False)
    status = Column(Enum(TicketStatus), nullable=False, default=TicketStatus.ACTIVE, index=True)
    priority = Column(Enum(Priority), nullable=False, default=Priority.MEDIUM)
    issue_date = Column(DateTime, index=True)
    update_date = Column(DateTime)
    update_user_id = Column(String(36), ForeignKey("users.id"))
    complete_date = Column(DateTime)
    help_desk_category_id = Column(Integer, ForeignKey("help_desk_categories.category_id"))
    product_id = Column(String(20), ForeignKey("products.product_id"))
    # 1 iff at least one user_tickets row references this ticket
    assigned = Column(Integer, nullable=False, default=0, index=True)
    deleted = Column(Integer, nullable=False, default=0)

    category = relationship("HelpDeskCategory")
    product = relationship("Product", back_populates="tickets")
    creator = relationship("AppUser", foreign_keys=[user_id])
    user_tickets = relationship("UserTicket", back_populates="ticket")
    comments = relationship("Comment", back_populates="ticket", order_by="Comment.create_date")
    completion = relationship("TicketCompletion", back_populates="ticket", uselist=False)


class UserTicket(Base):
    __tablename__ = "user_tickets"

    user_id = Column(String(36), ForeignKey("users.id"), primary_key=True)
    ticket_id = Column(String(20), ForeignKey("tickets.ticket_id"), primary_key=True, index=True)

    user = relationship("AppUser", back_populates="user_tickets")
    ticket = relationship("Ticket", back_populates="user_tickets")


class TicketCompletion(Base):
    __tablename__ = "ticket_completions"

    completion_id = Column(Integer, primary_key=True, index=True)
    ticket_id = Column(String(20), ForeignKey("tickets.ticket_id"), unique=True, nullable=False)
    user_id = Column(String(36), ForeignKey("users.id"))
    question = Column(String(400))
    answer = Column(String(400))
    category = Column(Integer, ForeignKey("help_desk_categories.category_id"))
    difficulty = Column(String(20))
    is_csv = Column(Integer, nullable=False, default=0)
    completion_date = Column(DateTime)

    ticket = relationship("Ticket", back_populates="completion")
