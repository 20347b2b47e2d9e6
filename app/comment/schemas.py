# app/comment/schemas.py
from datetime import datetime

from pydantic import BaseModel


class CommentAuthor(BaseModel):
    id: str
    full_name: str

    model_config = {"from_attributes": True}


class CommentOut(BaseModel):
    comment_id: int
    ticket_id: str
    comment_text: str
    create_date: datetime | None = None
    file_name: str | None = None
    file_type: str | None = None
    file_url: str | None = None
    author: CommentAuthor | None = None

    model_config = {"from_attributes": True}
