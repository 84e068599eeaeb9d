"""Controlled-vocabulary models: document types, states, actions and roles.

Each row is a plain name with a unique integer identity. DocState names are
unique within their DocType; the others are globally unique.
"""

from sqlalchemy import Column, Integer, Text, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship, validates

from .base import Base, TimestampMixin


class _NamedMixin:
    """Shared name column with whitespace trimming."""

    name = Column(Text, nullable=False)

    @validates('name')
    def validate_name(self, key, value):
        """Ensure names are stored trimmed and never empty."""
        if value is None or not value.strip():
            raise ValueError(f"{type(self).__name__} name cannot be empty")
        return value.strip()

    def __repr__(self):
        return f"<{type(self).__name__}(id={self.id}, name='{self.name}')>"


class DocType(_NamedMixin, TimestampMixin, Base):
    """A class of document governed by one transition table."""
    __tablename__ = "doctypes"
    __table_args__ = (
        UniqueConstraint('name', name='uq_doctypes_name'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)

    states = relationship("DocState", back_populates="doctype", order_by="DocState.id")


class DocState(_NamedMixin, TimestampMixin, Base):
    """A named node in one document type's state machine."""
    __tablename__ = "docstates"
    __table_args__ = (
        UniqueConstraint('doctype_id', 'name', name='uq_docstates_doctype_name'),
        Index("ix_docstates_doctype_id", "doctype_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    doctype_id = Column(Integer, ForeignKey("doctypes.id", ondelete="RESTRICT"), nullable=False)

    doctype = relationship("DocType", back_populates="states")

    def __repr__(self):
        return f"<DocState(id={self.id}, doctype_id={self.doctype_id}, name='{self.name}')>"


class DocAction(_NamedMixin, TimestampMixin, Base):
    """A named trigger shared across document types (e.g. APPROVE)."""
    __tablename__ = "docactions"
    __table_args__ = (
        UniqueConstraint('name', name='uq_docactions_name'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)


class Role(_NamedMixin, TimestampMixin, Base):
    """A label granted to a group within a document's access context."""
    __tablename__ = "roles"
    __table_args__ = (
        UniqueConstraint('name', name='uq_roles_name'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
