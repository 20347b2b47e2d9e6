# app/models.py
# Importing every model module registers its table on Base.metadata and lets
# string relationships resolve.
from app.comment.models import Comment
from app.product.models import Product, ProductCode
from app.ticket.models import Ticket, TicketCompletion, UserTicket
from app.user.models import AppUser, HelpDeskCategory

__all__ = [
    "AppUser",
    "Comment",
    "HelpDeskCategory",
    "Product",
    "ProductCode",
    "Ticket",
    "TicketCompletion",
    "UserTicket",
]
