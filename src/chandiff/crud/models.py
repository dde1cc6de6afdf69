"""Database table definitions for stored document revisions"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Column, DateTime, String, Text, UniqueConstraint
from sqlmodel import Field, SQLModel


class Revision(SQLModel, table=True):
    """Immutable snapshot of one item's raw document text."""
    __tablename__ = "revisions"
    __table_args__ = (UniqueConstraint("item_id", "revision", name="uq_revision_item_num"),)
    id: Optional[int] = Field(default=None, primary_key=True)
    item_id: str = Field(..., index=True, nullable=False)
    revision: int = Field(..., nullable=False, description="Monotonically increasing per-item revision number")
    content: str = Field(..., sa_column=Column(Text, nullable=False))
    hash: str = Field(..., sa_column=Column(String(64), nullable=False))
    created_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
