"""AccessContext SQLAlchemy model"""

from sqlalchemy import Column, Integer, ForeignKey, DateTime, UniqueConstraint, Index, func

from .base import Base


class AccessContext(Base):
    """Grant of one role to one group for one document.

    At most one row exists per (document_id, group_id, role_id); granting the
    same tuple again is a no-op.
    """
    __tablename__ = "access_contexts"
    __table_args__ = (
        UniqueConstraint('document_id', 'group_id', 'role_id', name='uq_access_contexts_doc_group_role'),
        Index("ix_access_contexts_document_role", "document_id", "role_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    document_id = Column(Integer, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False)
    role_id = Column(Integer, ForeignKey("roles.id", ondelete="RESTRICT"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self):
        return (
            f"<AccessContext(document_id={self.document_id}, group_id={self.group_id}, "
            f"role_id={self.role_id})>"
        )
