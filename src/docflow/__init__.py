"""docflow - document workflow engine.

Documents move through per-doctype state machines whose edges are named
actions. Every transition is gated by roles granted to groups in the
document's access context, resolved through the group hierarchy.
"""

from .bootstrap import Workflow
from .config import Settings, get_settings
from .errors import (
    WorkflowError,
    ValidationError,
    ConflictError,
    NotFoundError,
    CycleError,
    UnauthorizedError,
    RejectedActionError,
    ConcurrentModificationError,
    StorageError,
)
from .workflow import ApplyResult, AuthorizationResolver, WorkflowEngine

__version__ = "0.1.0"

__all__ = [
    "Workflow",
    "Settings",
    "get_settings",
    "WorkflowEngine",
    "AuthorizationResolver",
    "ApplyResult",
    "WorkflowError",
    "ValidationError",
    "ConflictError",
    "NotFoundError",
    "CycleError",
    "UnauthorizedError",
    "RejectedActionError",
    "ConcurrentModificationError",
    "StorageError",
]
