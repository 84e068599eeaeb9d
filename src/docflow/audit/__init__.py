"""Document audit log"""

from .schemas import AuditEntry
from .service import log_transition, list_entries

__all__ = [
    "AuditEntry",
    "log_transition",
    "list_entries",
]
