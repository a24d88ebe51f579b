"""
Create the lab booking tables.

Run with ``python -m labhub.init_db`` against the configured DATABASE_URL.
"""

import logging

from sqlalchemy.engine import Engine

from . import models  # noqa: F401  (registers tables on Base.metadata)
from .database import Base, engine

logger = logging.getLogger(__name__)


def init_db(bind: Engine = engine) -> None:
    Base.metadata.create_all(bind=bind)
    logger.info("Lab booking tables ready", extra={"tables": sorted(Base.metadata.tables)})


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
