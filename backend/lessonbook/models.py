# backend/lessonbook/models.py
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, JSON

from .db import Base


class Collection(Base):
    """One named collection ("lessons", "students", ...) stored as a JSON blob."""

    __tablename__ = "collections"

    key = Column("key", String, primary_key=True)
    value = Column("value", JSON, nullable=False, default=list)
    # bumped on every successful write; used for compare-and-swap
    version = Column("version", Integer, nullable=False, default=0)

    updated_at = Column("updated_at", DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
