# app/core/seed.py
import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session
from app.core.config import get_settings
from app.core.database import atomic
from app.product.models import Product, ProductCode
from app.user.models import HelpDeskCategory

logger = logging.getLogger(__name__)

HELP_DESK_CATEGORIES = (
    "Network Security",
    "Authentication",
    "Data Backup and Recovery",
    "Incident Response",
    "Malware Protection",
    "Mobile Security",
)


def seed_database(db: Session) -> bool:
    """Insert reference data that is missing. Returns True when anything was added."""
    default_id = get_settings().DEFAULT_PRODUCT_ID
    seeded = False
    with atomic(db, "seeding the database"):
        if db.query(HelpDeskCategory).first() is None:
            db.add_all(HelpDeskCategory(category_name=name) for name in HELP_DESK_CATEGORIES)
            seeded = True

        if db.get(ProductCode, default_id) is None:
            if db.get(Product, default_id) is None:
                db.add(
                    Product(
                        product_id=default_id,
                        product_name=default_id,
                        product_description=default_id,
                        release_date=datetime.now(timezone.utc).replace(tzinfo=None),
                        display=0,
                        deleted=0,
                    )
                )
                db.flush()
            db.add(ProductCode(product_id=default_id, code=default_id, count=1))
            seeded = True
    if seeded:
        logger.info("Seeded help desk reference data.")
    return seeded
