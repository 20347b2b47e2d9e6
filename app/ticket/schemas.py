# app/ticket/schemas.py
from datetime import datetime

from pydantic import BaseModel, Field

from app.comment.schemas import CommentOut
from app.ticket.models import Priority, TicketStatus
from app.user.schemas import CategoryOut, UserOut


class TicketBase(BaseModel):
    title: str = Field(..., min_length=6, max_length=70)
    description: str = Field(..., min_length=1, max_length=400)


class TicketCreate(TicketBase):
    product_id: str | None = None


class TicketUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=6, max_length=70)
    description: str | None = Field(default=None, min_length=1, max_length=400)
    status: TicketStatus | None = None
    priority: Priority | None = None


class TicketSummaryOut(BaseModel):
    ticket_id: str
    title: str
    status: TicketStatus
    priority: Priority
    issue_date: datetime | None = None
    help_desk_category_id: int | None = None
    product_id: str | None = None
    assigned: int

    model_config = {"from_attributes": True}


class TicketOut(TicketBase, TicketSummaryOut):
    user_id: str | None = None
    update_date: datetime | None = None
    update_user_id: str | None = None
    complete_date: datetime | None = None


class AssigneeOut(BaseModel):
    user: UserOut

    model_config = {"from_attributes": True}


class TicketDetailsOut(TicketOut):
    category: CategoryOut | None = None
    user_tickets: list[AssigneeOut] = []
    comments: list[CommentOut] = []
    is_owner: bool = False
    is_assigned: bool = False


class CompletionCreate(BaseModel):
    answer: str = Field(..., min_length=1, max_length=400)
    question: str | None = Field(default=None, max_length=400)
    category: int | None = None
    difficulty: Priority | None = None


class CompletionOut(BaseModel):
    completion_id: int
    ticket_id: str
    user_id: str | None = None
    question: str | None = None
    answer: str | None = None
    category: int | None = None
    difficulty: str | None = None
    completion_date: datetime | None = None

    model_config = {"from_attributes": True}


class TicketCompletionDetailsOut(TicketDetailsOut):
    completion: CompletionOut | None = None


class AssignRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
