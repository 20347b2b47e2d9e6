# app/prediction/orchestrator.py
import logging
from collections.abc import Callable

from sqlalchemy.orm import Session
from app.core.identity import ROLE_TECHNICIAN
from app.prediction.predictor import PredictionService
from app.prediction.queue import TicketQueue, TicketQueueMessage
from app.ticket import services as ticket_service
from app.ticket.models import Priority
from app.user import services as user_service

logger = logging.getLogger(__name__)


class PredictionOrchestrator:
    """Classifies a freshly created ticket and gets it assigned.

    A ticket filed by a technician goes to that technician; any other ticket
    is auto-assigned within its predicted category. Every failure is logged
    and swallowed so a bad message never blocks the queue, and reprocessing
    the same ticket is harmless.
    """

    def __init__(self, session_factory: Callable[[], Session], predictor: PredictionService):
        self.session_factory = session_factory
        self.predictor = predictor

    def handle(self, text: str) -> bool:
        message = TicketQueueMessage.decode(text)
        if message is None:
            return False
        return self.process(message)

    def process(self, message: TicketQueueMessage) -> bool:
        logger.info("Processing ticket %s", message.ticket_id)
        with self.session_factory() as db:
            ticket = ticket_service.get_ticket_edit(db, message.ticket_id)
            if ticket is None or ticket.deleted:
                logger.warning("Ticket %s not found.", message.ticket_id)
                return False

            prediction = self.predictor.predict(f"{ticket.title},{ticket.description}")
            if prediction is None:
                logger.error("Prediction failed for ticket %s.", message.ticket_id)
                return False

            category = user_service.get_category_by_name(db, prediction.category)
            if category is None:
                logger.error("Predicted category '%s' does not exist.", prediction.category)
                return False
            priority = Priority.parse(prediction.priority_label, default=Priority.LOW)

            if not ticket_service.update_classification(db, ticket.ticket_id, category.category_id, priority):
                logger.error("Failed to process ticket %s", message.ticket_id)
                return False
            logger.info(
                "Ticket %s classified as %s / %s.", ticket.ticket_id, category.category_name, priority.value
            )

            if message.role == ROLE_TECHNICIAN and message.user_id:
                assigned = ticket_service.create_user_ticket(db, ticket.ticket_id, message.user_id)
            else:
                assigned = ticket_service.create_user_ticket(db, ticket.ticket_id)
            if not assigned:
                logger.error(
                    "Failed to assign ticket %s to user %s",
                    message.ticket_id,
                    message.user_id or "Unassigned",
                )
            return assigned

    def drain(self, queue: TicketQueue, timeout: float | None = None) -> int:
        """Handle queued messages until the queue is empty; returns how many were read."""
        handled = 0
        while True:
            text = queue.dequeue(timeout)
            if text is None:
                break
            handled += 1
            try:
                self.handle(text)
            except Exception:
                logger.exception("Error processing ticket message.")
        return handled
