# app/core/exceptions.py


class HelpDeskError(Exception):
    """Base class for errors raised by the help desk services."""


class ValidationError(HelpDeskError):
    """Required input is missing or malformed. Not retried."""


class NotFoundError(HelpDeskError):
    """The requested entity does not exist (or is soft-deleted)."""


class PersistenceError(HelpDeskError):
    """Storage failure. The surrounding transaction has been rolled back."""


class DuplicateCodeError(HelpDeskError):
    """No unique product code could be generated within the retry limit."""

    def __init__(self, product_id: str, attempts: int):
        super().__init__(
            f"Could not generate a unique code for product '{product_id}' after {attempts} attempts"
        )
        self.product_id = product_id
        self.attempts = attempts


__all__ = [
    "HelpDeskError",
    "ValidationError",
    "NotFoundError",
    "PersistenceError",
    "DuplicateCodeError",
]
