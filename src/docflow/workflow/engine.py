"""Workflow engine - applies actions to documents.

apply() is the only writer of documents.state_id:

1. read the document's doctype and current state
2. resolve the transition (none defined -> RejectedActionError)
3. check the acting user holds the required role (-> UnauthorizedError)
4. update the state, conditioned on it still being the state read in 1
   (-> ConcurrentModificationError), and append one audit entry

Steps 1-4 share one unit of work, so a failure anywhere leaves neither the
new state nor the audit entry visible.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import func, update
from sqlalchemy.orm import Session, sessionmaker

from ..audit import AuditEntry, log_transition
from ..config import Settings, get_settings
from ..database import read_session, unit_of_work
from ..errors import (
    ConcurrentModificationError,
    NotFoundError,
    RejectedActionError,
    StorageError,
)
from ..models.document import Document
from ..models.transition import Transition
from ..observability.operation_id import operation_scope
from ..transitions import TransitionTable
from ..users import SqlUserDirectory, UserDirectoryPort
from ..validation import check_id
from .authorization import AuthorizationResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApplyResult:
    """Outcome of a successful apply()."""
    new_state_id: int
    audit_entry: AuditEntry


class WorkflowEngine:
    """Stateless engine; each document is one state-machine instance."""

    def __init__(
        self,
        session_factory: sessionmaker,
        transitions: TransitionTable,
        authorizer: AuthorizationResolver,
        user_directory: Optional[UserDirectoryPort] = None,
        settings: Optional[Settings] = None,
    ):
        self.session_factory = session_factory
        self.transitions = transitions
        self.authorizer = authorizer
        self.user_directory = user_directory or SqlUserDirectory()
        self.settings = settings or get_settings()

    def apply(
        self,
        document_id: int,
        user_id: int,
        action_id: int,
        session: Optional[Session] = None,
    ) -> ApplyResult:
        """Apply an action to a document on behalf of a user.

        Args:
            document_id: Document to move
            user_id: Acting user
            action_id: Requested action
            session: Optional caller-owned session to join

        Returns:
            ApplyResult with the new state and the audit entry written

        Raises:
            NotFoundError: If the document or the user does not exist
            RejectedActionError: If the action is not valid in the current state
            UnauthorizedError: If the user lacks the required role
            ConcurrentModificationError: If the document changed state after
                it was read; retry from a fresh read
            StorageError: If the database fails
        """
        check_id(document_id, "document id")
        check_id(user_id, "user id")
        check_id(action_id, "action id")

        log_extra = {"document_id": document_id, "user_id": user_id, "action_id": action_id}

        with operation_scope(), unit_of_work(self.session_factory, session) as db:
            document = db.get(Document, document_id, populate_existing=True)
            if document is None:
                raise NotFoundError(f"document {document_id} not found")
            if not self.user_directory.exists(db, user_id):
                raise NotFoundError(f"user {user_id} not found")

            from_state_id = document.state_id

            try:
                target = self.transitions.resolve(
                    document.doctype_id, from_state_id, action_id, session=db
                )
            except NotFoundError:
                logger.info(
                    f"Rejected action {action_id} on document {document_id} in state {from_state_id}",
                    extra=log_extra,
                )
                raise RejectedActionError(
                    f"action {action_id} is not valid in state {from_state_id}"
                )

            self.authorizer.authorize(user_id, document_id, target.required_role_id, session=db)

            result = db.execute(
                update(Document)
                .where(
                    Document.id == document_id,
                    Document.state_id == from_state_id,
                )
                .values(state_id=target.to_state_id, updated_at=func.now())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                logger.warning(
                    f"Document {document_id} left state {from_state_id} concurrently",
                    extra=log_extra,
                )
                raise ConcurrentModificationError(
                    f"document {document_id} is no longer in state {from_state_id}"
                )
            db.expire(document)

            entry = log_transition(
                db,
                document_id=document_id,
                action_id=action_id,
                actor_user_id=user_id,
                from_state_id=from_state_id,
                to_state_id=target.to_state_id,
            )

            logger.info(
                f"Document {document_id}: {from_state_id} -> {target.to_state_id} by action {action_id}",
                extra=log_extra,
            )
            return ApplyResult(new_state_id=target.to_state_id, audit_entry=entry)

    def apply_with_retry(
        self,
        document_id: int,
        user_id: int,
        action_id: int,
        max_retries: Optional[int] = None,
    ) -> ApplyResult:
        """apply() in its own unit of work, retrying concurrent-modification
        and retryable storage failures.

        Each retry starts again from a fresh read of the document, so a
        retry may legitimately end in RejectedActionError when the racing
        transition already moved the document on.
        """
        if max_retries is None:
            max_retries = self.settings.APPLY_MAX_RETRIES

        with operation_scope():
            attempt = 0
            while True:
                try:
                    return self.apply(document_id, user_id, action_id)
                except ConcurrentModificationError:
                    if attempt >= max_retries:
                        raise
                except StorageError as e:
                    if not e.retryable or attempt >= max_retries:
                        raise
                attempt += 1
                logger.warning(
                    f"Retrying action {action_id} on document {document_id} (attempt {attempt + 1})",
                    extra={"document_id": document_id, "user_id": user_id, "action_id": action_id},
                )

    def available_actions(
        self,
        document_id: int,
        user_id: int,
        session: Optional[Session] = None,
    ) -> List[Transition]:
        """List the transitions the user may currently invoke on a document.

        Raises:
            NotFoundError: If the document or the user does not exist
        """
        check_id(document_id, "document id")
        check_id(user_id, "user id")

        with read_session(self.session_factory, session) as db:
            document = db.get(Document, document_id, populate_existing=True)
            if document is None:
                raise NotFoundError(f"document {document_id} not found")
            if not self.user_directory.exists(db, user_id):
                raise NotFoundError(f"user {user_id} not found")

            candidates = self.transitions.outgoing(document.doctype_id, document.state_id, session=db)
            if not candidates:
                return []

            roles = self.authorizer.effective_roles(user_id, document_id, session=db)
            return [t for t in candidates if t.required_role_id in roles]
