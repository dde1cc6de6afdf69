"""Engine construction and schema creation for the revision store"""

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

from chandiff.crud.models import Revision  # noqa: F401  registers the table on SQLModel.metadata


def make_engine(db_url: str) -> Engine:
    return create_engine(db_url, echo=False)


def init_db(engine: Engine) -> None:
    """Create any missing tables."""
    SQLModel.metadata.create_all(engine)
