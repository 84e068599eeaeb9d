"""Audit logging service for document transitions.

The document audit log is append-only: entries are created by the workflow
engine inside the same transaction as the state update and are never
updated or deleted.
"""

from typing import List

from sqlalchemy.orm import Session

from ..models.document import DocumentAuditEntry
from ..validation import check_paging
from .schemas import AuditEntry


def log_transition(
    db: Session,
    document_id: int,
    action_id: int,
    actor_user_id: int,
    from_state_id: int,
    to_state_id: int,
) -> AuditEntry:
    """Create an audit log entry for an applied transition.

    All parameters are stored as-is; callers must have validated them.
    The row is flushed (not committed) so the caller's transaction decides
    whether it becomes visible.

    Args:
        db: Session of the transition's unit of work
        document_id: Document that changed state
        action_id: Action that was applied
        actor_user_id: User who applied it
        from_state_id: State before the transition
        to_state_id: State after the transition

    Returns:
        AuditEntry: Snapshot of the created entry
    """
    entry = DocumentAuditEntry(
        document_id=document_id,
        action_id=action_id,
        actor_user_id=actor_user_id,
        from_state_id=from_state_id,
        to_state_id=to_state_id,
    )

    db.add(entry)
    db.flush()  # Get ID without committing transaction
    db.refresh(entry, attribute_names=["created_at"])

    return AuditEntry.model_validate(entry)


def list_entries(
    db: Session,
    document_id: int,
    offset: int = 0,
    limit: int = 0,
) -> List[AuditEntry]:
    """List a document's audit entries in insertion order.

    Args:
        db: Database session
        document_id: Document whose history is listed
        offset: Entries to skip
        limit: Maximum entries to return (0 means no limit)
    """
    offset, limit = check_paging(offset, limit)

    query = (
        db.query(DocumentAuditEntry)
        .filter(DocumentAuditEntry.document_id == document_id)
        .order_by(DocumentAuditEntry.id)
        .offset(offset)
    )
    if limit:
        query = query.limit(limit)

    return [AuditEntry.model_validate(entry) for entry in query.all()]
