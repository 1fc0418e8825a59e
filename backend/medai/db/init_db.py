"""Create all tables and the walk-in patient. Run on app startup."""
import logging

from medai.db.base import Base
from medai.db.session import engine, SessionLocal
from medai import models  # noqa: F401 - register models
from medai.services.patient_service import get_or_create_walk_in_patient

logger = logging.getLogger(__name__)


def init_db(bind=None):
    bind = bind or engine
    Base.metadata.create_all(bind=bind)

    db = SessionLocal(bind=bind)
    try:
        walk_in = get_or_create_walk_in_patient(db)
        logger.info(f"Walk-in patient ready: {walk_in.id}")
    finally:
        db.close()
