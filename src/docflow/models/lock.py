"""Named lock rows for serializing writers on dialects without advisory locks.

A writer UPDATEs its lock row first thing in its transaction; the row lock
(or SQLite's database write lock) is held until commit or rollback.
"""

from sqlalchemy import Column, Text, DateTime, event, func

from .base import Base

HIERARCHY_LOCK_NAME = "group_hierarchy"


class WorkflowLock(Base):
    """One row per named lock."""
    __tablename__ = "workflow_locks"

    name = Column(Text, primary_key=True)
    acquired_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self):
        return f"<WorkflowLock(name='{self.name}')>"


@event.listens_for(WorkflowLock.__table__, "after_create")
def _seed_lock_rows(target, connection, **kw):
    connection.execute(target.insert(), [{"name": HIERARCHY_LOCK_NAME}])
