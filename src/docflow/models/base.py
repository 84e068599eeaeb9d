"""Base SQLAlchemy declarative base for all models"""

from sqlalchemy import Column, DateTime, func
from sqlalchemy.orm import declarative_base


Base = declarative_base()


class TimestampMixin:
    """Standard created_at / updated_at columns.

    Append-only tables (audit log, access contexts) only carry created_at.
    """
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
