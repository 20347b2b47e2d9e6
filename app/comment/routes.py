# app/comment/routes.py
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import Response
from sqlalchemy.orm import Session
from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.identity import CurrentUser, get_current_user
from app.comment import services as comment_service
from app.comment.schemas import CommentOut
from app.comment.storage import LocalBlobStorage, get_blob_storage
from app.ticket import services as ticket_service

router = APIRouter(prefix="/tickets/{ticket_id}/comments", tags=["Comments"])
files_router = APIRouter(prefix="/files", tags=["Files"])


@router.get("/", response_model=list[CommentOut])
def list_all(
    ticket_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    storage: LocalBlobStorage = Depends(get_blob_storage),
):
    if not ticket_service.is_existing_ticket(db, ticket_id):
        raise HTTPException(status_code=404, detail="Ticket not found")
    return comment_service.get_comments(db, ticket_id, storage)


@router.post("/", response_model=CommentOut, status_code=201)
def create(
    ticket_id: str,
    comment_text: str = Form(..., min_length=1, max_length=500),
    file: UploadFile | None = File(default=None),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    storage: LocalBlobStorage = Depends(get_blob_storage),
    settings: Settings = Depends(get_settings),
):
    if not ticket_service.is_existing_ticket(db, ticket_id):
        raise HTTPException(status_code=404, detail="Ticket not found")
    file_name, file_data = None, None
    if file is not None:
        # one byte past the limit is enough for the size check to reject it
        file_name, file_data = file.filename, file.file.read(settings.MAX_FILE_SIZE + 1)
    comment = comment_service.create_comment(
        db, user.id, ticket_id, comment_text, storage, file_name=file_name, file_data=file_data
    )
    if not comment:
        raise HTTPException(status_code=500, detail="An error occurred while adding the comment.")
    return comment


@files_router.get("/{name}")
def download(
    name: str,
    expires: int = Query(...),
    sig: str = Query(...),
    storage: LocalBlobStorage = Depends(get_blob_storage),
):
    if not storage.verify(name, expires, sig):
        raise HTTPException(status_code=403, detail="Invalid or expired link")
    data = storage.read(name)
    if data is None:
        raise HTTPException(status_code=404, detail="File not found")
    return Response(content=data, media_type="application/octet-stream")
