"""Document and document audit log models

A Document is a state-machine instance: its state_id points at a DocState of
its own DocType. Only the workflow engine updates state_id, and every update
appends exactly one DocumentAuditEntry.
"""

from sqlalchemy import Column, Integer, Text, ForeignKey, DateTime, Index, func

from .base import Base, TimestampMixin


class Document(TimestampMixin, Base):
    """Workflow-governed document instance."""
    __tablename__ = "documents"
    __table_args__ = (
        Index("ix_documents_doctype_state", "doctype_id", "state_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    doctype_id = Column(Integer, ForeignKey("doctypes.id", ondelete="RESTRICT"), nullable=False)
    state_id = Column(Integer, ForeignKey("docstates.id", ondelete="RESTRICT"), nullable=False)
    title = Column(Text, nullable=True)

    def to_dict(self):
        """Convert document to dictionary representation"""
        return {
            "id": self.id,
            "doctype_id": self.doctype_id,
            "state_id": self.state_id,
            "title": self.title,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Document(id={self.id}, doctype_id={self.doctype_id}, state_id={self.state_id})>"


class DocumentAuditEntry(Base):
    """Immutable record of one applied transition.

    Entries are append-only and should never be updated or deleted.
    """
    __tablename__ = "document_audit_log"
    __table_args__ = (
        Index("ix_document_audit_log_document_id", "document_id", "id"),
        Index("ix_document_audit_log_actor", "actor_user_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    document_id = Column(Integer, ForeignKey("documents.id", ondelete="RESTRICT"), nullable=False)
    action_id = Column(Integer, ForeignKey("docactions.id", ondelete="RESTRICT"), nullable=False)
    actor_user_id = Column(Integer, ForeignKey("users_master.id", ondelete="RESTRICT"), nullable=False)
    from_state_id = Column(Integer, ForeignKey("docstates.id", ondelete="RESTRICT"), nullable=False)
    to_state_id = Column(Integer, ForeignKey("docstates.id", ondelete="RESTRICT"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def to_dict(self):
        """Convert audit entry to dictionary representation"""
        return {
            "id": self.id,
            "document_id": self.document_id,
            "action_id": self.action_id,
            "actor_user_id": self.actor_user_id,
            "from_state_id": self.from_state_id,
            "to_state_id": self.to_state_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
