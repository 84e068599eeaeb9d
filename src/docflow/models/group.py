"""Group, membership and hierarchy models.

A SINGLETON group belongs to exactly one user (unique owner_user_id) and has
that user as its only member. NAMED groups hold any number of users and may
contain other groups through group_hierarchy edges (parent contains child).
"""

import enum

from sqlalchemy import (
    Column,
    Integer,
    Text,
    ForeignKey,
    CheckConstraint,
    UniqueConstraint,
    PrimaryKeyConstraint,
    Index,
)

from .base import Base, TimestampMixin


class GroupKind(str, enum.Enum):
    """Kinds of groups.

    Values are stored as TEXT in the database and must match exactly.
    """
    SINGLETON = "SINGLETON"
    NAMED = "NAMED"


class Group(TimestampMixin, Base):
    """Grantee of roles in access contexts."""
    __tablename__ = "groups"
    __table_args__ = (
        CheckConstraint(
            "kind IN ('SINGLETON', 'NAMED')",
            name='ck_groups_kind'
        ),
        CheckConstraint(
            "(kind = 'SINGLETON' AND owner_user_id IS NOT NULL) OR "
            "(kind = 'NAMED' AND owner_user_id IS NULL)",
            name='ck_groups_owner'
        ),
        UniqueConstraint('owner_user_id', name='uq_groups_owner_user_id'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    kind = Column(Text, nullable=False, server_default=GroupKind.NAMED.value)
    owner_user_id = Column(Integer, ForeignKey("users_master.id", ondelete="RESTRICT"), nullable=True)

    @property
    def is_singleton(self) -> bool:
        return self.kind == GroupKind.SINGLETON.value

    def __repr__(self):
        return f"<Group(id={self.id}, name='{self.name}', kind='{self.kind}')>"


class GroupUser(Base):
    """Direct membership of a user in a group."""
    __tablename__ = "group_users"
    __table_args__ = (
        PrimaryKeyConstraint('group_id', 'user_id', name='pk_group_users'),
        Index("ix_group_users_user_id", "user_id"),
    )

    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users_master.id", ondelete="CASCADE"), nullable=False)


class GroupHierarchy(Base):
    """Edge "parent contains child" in the group DAG."""
    __tablename__ = "group_hierarchy"
    __table_args__ = (
        PrimaryKeyConstraint('parent_group_id', 'child_group_id', name='pk_group_hierarchy'),
        CheckConstraint('parent_group_id <> child_group_id', name='ck_group_hierarchy_no_self_edge'),
        Index("ix_group_hierarchy_child", "child_group_id"),
    )

    parent_group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False)
    child_group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False)

    def __repr__(self):
        return f"<GroupHierarchy(parent={self.parent_group_id}, child={self.child_group_id})>"
