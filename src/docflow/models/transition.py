"""Transition SQLAlchemy model"""

from sqlalchemy import Column, Integer, ForeignKey, UniqueConstraint, Index

from .base import Base, TimestampMixin


class Transition(TimestampMixin, Base):
    """Deterministic edge (from_state, action) -> to_state of one DocType.

    The unique constraint on (doctype_id, from_state_id, action_id) keeps the
    state machine deterministic: one trigger never has two outcomes.
    """
    __tablename__ = "transitions"
    __table_args__ = (
        UniqueConstraint('doctype_id', 'from_state_id', 'action_id', name='uq_transitions_trigger'),
        Index("ix_transitions_doctype_from", "doctype_id", "from_state_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    doctype_id = Column(Integer, ForeignKey("doctypes.id", ondelete="RESTRICT"), nullable=False)
    from_state_id = Column(Integer, ForeignKey("docstates.id", ondelete="RESTRICT"), nullable=False)
    action_id = Column(Integer, ForeignKey("docactions.id", ondelete="RESTRICT"), nullable=False)
    to_state_id = Column(Integer, ForeignKey("docstates.id", ondelete="RESTRICT"), nullable=False)
    required_role_id = Column(Integer, ForeignKey("roles.id", ondelete="RESTRICT"), nullable=False)

    def __repr__(self):
        return (
            f"<Transition(doctype_id={self.doctype_id}, from={self.from_state_id}, "
            f"action={self.action_id}, to={self.to_state_id}, role={self.required_role_id})>"
        )
