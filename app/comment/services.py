# app/comment/services.py
import logging
import uuid
from datetime import datetime, timezone
from pathlib import PurePath

from sqlalchemy.orm import Session, selectinload
from app.core.config import get_settings
from app.core.database import atomic
from app.core.exceptions import PersistenceError, ValidationError
from app.comment.models import Comment
from app.comment.storage import BlobStorage

logger = logging.getLogger(__name__)


def attach_file_urls(comments: list[Comment], storage: BlobStorage) -> list[Comment]:
    for comment in comments:
        if comment.file_name:
            comment.file_url = storage.get_signed_url(comment.file_name)
    return comments


def get_comments(db: Session, ticket_id: str, storage: BlobStorage | None = None) -> list[Comment]:
    if not ticket_id or not ticket_id.strip():
        logger.warning("Invalid or empty ticket_id provided.")
        return []
    comments = (
        db.query(Comment)
        .options(selectinload(Comment.author))
        .filter(Comment.ticket_id == ticket_id, Comment.deleted == 0)
        .order_by(Comment.create_date)
        .all()
    )
    if storage is not None:
        attach_file_urls(comments, storage)
    return comments


def create_comment(
    db: Session,
    user_id: str,
    ticket_id: str,
    comment_text: str,
    storage: BlobStorage,
    file_name: str | None = None,
    file_data: bytes | None = None,
) -> Comment | None:
    """Add a comment, uploading the optional attachment first.

    Attachments must have an allowed extension and fit MAX_FILE_SIZE; they
    are stored under a fresh uuid name.
    """
    if not user_id or not ticket_id or not comment_text or not comment_text.strip():
        raise ValidationError("user_id, ticket_id and comment text are required")

    comment = Comment(
        ticket_id=ticket_id,
        user_id=user_id,
        comment_text=comment_text.strip(),
        create_date=datetime.now(timezone.utc).replace(tzinfo=None),
    )

    blob_name = None
    if file_data:
        settings = get_settings()
        extension = PurePath(file_name or "").suffix.lower()
        if extension not in settings.ALLOWED_FILE_EXTENSIONS or len(file_data) > settings.MAX_FILE_SIZE:
            raise ValidationError("File is not supported. Check file type and file size.")
        blob_name = f"{uuid.uuid4()}{extension}"
        if not storage.upload(blob_name, file_data):
            logger.warning("Failed to upload file for ticket %s.", ticket_id)
            return None
        comment.file_name = blob_name
        comment.file_type = extension

    try:
        with atomic(db, "adding a comment"):
            db.add(comment)
    except PersistenceError:
        if blob_name:
            logger.warning("Removing attachment %s of a comment that was not saved.", blob_name)
            storage.delete(blob_name)
        return None

    db.refresh(comment)
    if comment.file_name:
        comment.file_url = storage.get_signed_url(comment.file_name)
    return comment
