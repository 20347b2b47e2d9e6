# app/prediction/queue.py
import base64
import logging
import queue
from functools import lru_cache
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field

from app.core.config import get_settings

logger = logging.getLogger(__name__)


class TicketQueueMessage(BaseModel):
    """Payload sent after a ticket is created: who filed it and in which role."""

    ticket_id: str = Field(..., alias="TicketId", min_length=1)
    user_id: str | None = Field(default=None, alias="UserId")
    role: str | None = Field(default=None, alias="Role")

    model_config = ConfigDict(populate_by_name=True)

    def encode(self) -> str:
        """JSON, base64 encoded for the wire."""
        raw = self.model_dump_json(by_alias=True).encode("utf-8")
        return base64.b64encode(raw).decode("ascii")

    @classmethod
    def decode(cls, text: str) -> "TicketQueueMessage | None":
        """Parse a wire message. Malformed input is logged and yields None."""
        try:
            raw = base64.b64decode(text, validate=True)
            return cls.model_validate_json(raw)
        except ValueError as exc:
            logger.error("Invalid message received: %s", exc)
            return None


class TicketQueue(Protocol):
    def enqueue(self, ticket_id: str, user_id: str | None, role: str | None) -> None: ...

    def dequeue(self, timeout: float | None = None) -> str | None: ...


class InMemoryTicketQueue:
    """Process-local at-least-once queue; a message can be put back with ``requeue``."""

    def __init__(self, name: str):
        self.name = name
        self._messages: queue.Queue[str] = queue.Queue()

    def enqueue(self, ticket_id: str, user_id: str | None, role: str | None) -> None:
        message = TicketQueueMessage(ticket_id=ticket_id, user_id=user_id, role=role)
        self._messages.put(message.encode())
        logger.debug("Enqueued ticket %s on %s.", ticket_id, self.name)

    def requeue(self, text: str) -> None:
        self._messages.put(text)

    def dequeue(self, timeout: float | None = None) -> str | None:
        try:
            if timeout is None:
                return self._messages.get_nowait()
            return self._messages.get(timeout=timeout)
        except queue.Empty:
            return None

    def __len__(self) -> int:
        return self._messages.qsize()


@lru_cache
def get_ticket_queue() -> InMemoryTicketQueue:
    return InMemoryTicketQueue(get_settings().PREDICTION_QUEUE_NAME)
