"""User SQLAlchemy model

Users are owned by an external directory. The workflow engine only reads
this table to check that a user id exists.
"""

from sqlalchemy import Column, Integer, Text, Boolean, UniqueConstraint, true

from .base import Base


class User(Base):
    """Minimal user row as kept by the surrounding application."""
    __tablename__ = "users_master"
    __table_args__ = (
        UniqueConstraint('email', name='uq_users_master_email'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(Text, nullable=False)
    last_name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    active = Column(Boolean, nullable=False, server_default=true())

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"
