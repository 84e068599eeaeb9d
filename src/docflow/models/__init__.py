"""SQLAlchemy Models for docflow"""

from .base import Base
from .user import User
from .vocabulary import DocType, DocState, DocAction, Role
from .group import Group, GroupKind, GroupUser, GroupHierarchy
from .document import Document, DocumentAuditEntry
from .access_context import AccessContext
from .transition import Transition
from .lock import WorkflowLock, HIERARCHY_LOCK_NAME

__all__ = [
    "Base",
    "User",
    "DocType",
    "DocState",
    "DocAction",
    "Role",
    "Group",
    "GroupKind",
    "GroupUser",
    "GroupHierarchy",
    "Document",
    "DocumentAuditEntry",
    "AccessContext",
    "Transition",
    "WorkflowLock",
    "HIERARCHY_LOCK_NAME",
]
