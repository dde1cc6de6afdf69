"""Shared fixtures for crud unit tests"""

import pytest
from sqlalchemy import create_engine
from sqlmodel import SQLModel, Session

from chandiff.crud.memory_repo import MemoryRepo
from chandiff.crud.sql_repo import SQLRepo


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine with all tables created."""
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    """Fresh session per test; changes are not committed."""
    with Session(engine) as s:
        yield s


@pytest.fixture(name="repo", params=["memory", "sql"])
def repo_fixture(request, session):
    """Each RevisionSource implementation in turn."""
    if request.param == "memory":
        return MemoryRepo()
    return SQLRepo(session)
