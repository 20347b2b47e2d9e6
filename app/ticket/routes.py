# app/ticket/routes.py
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.identity import CurrentUser, get_current_user
from app.assignment import services as assignment_service
from app.comment.services import attach_file_urls
from app.comment.storage import BlobStorage, get_blob_storage
from app.prediction.dependencies import get_orchestrator
from app.prediction.orchestrator import PredictionOrchestrator
from app.prediction.queue import TicketQueue, get_ticket_queue
from app.ticket import services as ticket_service
from app.ticket.models import Ticket
from app.ticket.schemas import (
    AssignRequest,
    CompletionCreate,
    CompletionOut,
    TicketCompletionDetailsOut,
    TicketCreate,
    TicketDetailsOut,
    TicketOut,
    TicketSummaryOut,
    TicketUpdate,
)
from app.user import services as user_service
from app.user.schemas import UserOut
router = APIRouter(prefix="/tickets", tags=["Tickets"])


def _details(ticket: Ticket, user: CurrentUser, storage: BlobStorage, schema=TicketDetailsOut):
    attach_file_urls(ticket.comments, storage)
    out = schema.model_validate(ticket)
    return out.model_copy(
        update={
            "is_owner": ticket.user_id == user.id,
            "is_assigned": any(ut.user_id == user.id for ut in ticket.user_tickets),
        }
    )


@router.post("/", response_model=TicketOut, status_code=201)
def create(
    ticket: TicketCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    queue: TicketQueue = Depends(get_ticket_queue),
    orchestrator: PredictionOrchestrator = Depends(get_orchestrator),
    settings: Settings = Depends(get_settings),
):
    created = ticket_service.create_ticket(db, ticket, user.id)
    if not created:
        raise HTTPException(status_code=500, detail="Failed to create ticket")

    # classification and assignment happen later, off the request path
    queue.enqueue(created.ticket_id, user.id, user.role)
    if settings.RUN_PREDICTION_INLINE:
        background_tasks.add_task(orchestrator.drain, queue)
    return created


@router.get("/", response_model=list[TicketSummaryOut])
def list_all(
    is_completed: bool = Query(default=False, description="Complete/Canceled instead of Active/Paused"),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return ticket_service.get_tickets(db, user.id, is_completed)


@router.get("/{ticket_id}", response_model=TicketDetailsOut)
def get(
    ticket_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    storage: BlobStorage = Depends(get_blob_storage),
):
    ticket = ticket_service.get_ticket_details(db, ticket_id)
    if not ticket or ticket.deleted:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return _details(ticket, user, storage)


@router.put("/{ticket_id}", response_model=TicketOut)
def update(
    ticket_id: str,
    ticket: TicketUpdate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    if not ticket_service.is_existing_ticket(db, ticket_id):
        raise HTTPException(status_code=404, detail="Ticket not found")
    if not ticket_service.update_ticket(db, ticket_id, ticket, user.id):
        raise HTTPException(status_code=409, detail="Ticket was not updated")
    return ticket_service.get_ticket_edit(db, ticket_id)


@router.delete("/{ticket_id}", response_model=TicketOut)
def delete(
    ticket_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    if not ticket_service.is_existing_ticket(db, ticket_id):
        raise HTTPException(status_code=404, detail="Ticket not found")
    if not ticket_service.delete_ticket(db, ticket_id):
        raise HTTPException(status_code=500, detail="Failed to delete ticket")
    return ticket_service.get_ticket_edit(db, ticket_id)


@router.post("/{ticket_id}/completion", response_model=CompletionOut, status_code=201)
def complete(
    ticket_id: str,
    completion: CompletionCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    if not ticket_service.is_existing_ticket(db, ticket_id):
        raise HTTPException(status_code=404, detail="Ticket not found")
    created = ticket_service.create_ticket_completion(db, ticket_id, completion, user.id)
    if not created:
        raise HTTPException(status_code=409, detail="Failed to complete ticket")
    return created


@router.get("/{ticket_id}/completion", response_model=TicketCompletionDetailsOut)
def completion_details(
    ticket_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    storage: BlobStorage = Depends(get_blob_storage),
):
    ticket = ticket_service.get_ticket_completion_details(db, ticket_id)
    if not ticket or ticket.completion is None:
        raise HTTPException(status_code=404, detail="Ticket completion not found")
    return _details(ticket, user, storage, schema=TicketCompletionDetailsOut)


@router.get("/{ticket_id}/assignable-users", response_model=list[UserOut])
def assignable_users(
    ticket_id: str,
    category_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    if not ticket_service.is_existing_ticket(db, ticket_id):
        raise HTTPException(status_code=404, detail="Ticket not found")
    return assignment_service.get_assignable_users(db, ticket_id, category_id)


@router.post("/{ticket_id}/assignees")
def assign(
    ticket_id: str,
    request: AssignRequest,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    if not ticket_service.is_existing_ticket(db, ticket_id):
        raise HTTPException(status_code=404, detail=f"Ticket with ID '{ticket_id}' not found.")
    if not user_service.is_existing_user(db, request.user_id):
        raise HTTPException(status_code=404, detail=f"User with ID '{request.user_id}' not found.")
    if not assignment_service.assign_user(db, request.user_id, ticket_id):
        raise HTTPException(status_code=409, detail="Failed to assign user to ticket.")
    return {"success": True}


@router.delete("/{ticket_id}/assignees/{user_id}")
def unassign(
    ticket_id: str,
    user_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return {"success": assignment_service.unassign_user(db, user_id, ticket_id)}
