"""Access context service - per-document role grants.

An access context says "group G holds role R for document D". Grants and
revocations are idempotent; roles_for answers the union of roles held by any
group of a set, which is the core authorization query.
"""

import logging
from typing import Iterable, List, Optional, Set

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, sessionmaker

from ..database import insert_ignore, read_session, unit_of_work
from ..errors import NotFoundError
from ..models.access_context import AccessContext
from ..models.document import Document
from ..models.group import Group
from ..models.vocabulary import Role
from ..validation import check_id

logger = logging.getLogger(__name__)


class AccessContextService:
    """Service for granting, revoking and querying document roles."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def grant(
        self,
        document_id: int,
        group_id: int,
        role_id: int,
        session: Optional[Session] = None,
    ) -> None:
        """Grant a role to a group for one document.

        Granting an existing (document, group, role) tuple is a no-op, also
        when two callers race on the same tuple.

        Raises:
            ValidationError: If any id is non-positive
            NotFoundError: If the document, group or role does not exist
        """
        check_id(document_id, "document id")
        check_id(group_id, "group id")
        check_id(role_id, "role id")

        with unit_of_work(self.session_factory, session) as db:
            if db.get(Document, document_id) is None:
                raise NotFoundError(f"document {document_id} not found")
            if db.get(Group, group_id) is None:
                raise NotFoundError(f"group {group_id} not found")
            if db.get(Role, role_id) is None:
                raise NotFoundError(f"role {role_id} not found")

            inserted = insert_ignore(
                db,
                AccessContext,
                document_id=document_id,
                group_id=group_id,
                role_id=role_id,
            )
            if inserted:
                logger.info(
                    f"Granted role {role_id} to group {group_id} on document {document_id}",
                    extra={"document_id": document_id, "group_id": group_id},
                )

    def revoke(
        self,
        document_id: int,
        group_id: int,
        role_id: int,
        session: Optional[Session] = None,
    ) -> None:
        """Revoke a grant; revoking an absent grant is a no-op."""
        check_id(document_id, "document id")
        check_id(group_id, "group id")
        check_id(role_id, "role id")

        with unit_of_work(self.session_factory, session) as db:
            result = db.execute(
                delete(AccessContext).where(
                    AccessContext.document_id == document_id,
                    AccessContext.group_id == group_id,
                    AccessContext.role_id == role_id,
                )
            )
            if result.rowcount:
                logger.info(
                    f"Revoked role {role_id} from group {group_id} on document {document_id}",
                    extra={"document_id": document_id, "group_id": group_id},
                )

    def roles_for(
        self,
        document_id: int,
        group_ids: Iterable[int],
        session: Optional[Session] = None,
    ) -> Set[int]:
        """Answer the union of roles granted on a document to any of the groups.

        Returns:
            Set of role ids (empty if no group holds any role)
        """
        check_id(document_id, "document id")
        group_ids = set(group_ids)
        if not group_ids:
            return set()

        with read_session(self.session_factory, session) as db:
            return set(db.execute(
                select(AccessContext.role_id)
                .where(
                    AccessContext.document_id == document_id,
                    AccessContext.group_id.in_(group_ids),
                )
                .distinct()
            ).scalars())

    def groups_with_role(
        self,
        document_id: int,
        role_id: int,
        session: Optional[Session] = None,
    ) -> Set[int]:
        """Answer the groups directly granted a role on a document."""
        check_id(document_id, "document id")
        check_id(role_id, "role id")

        with read_session(self.session_factory, session) as db:
            return set(db.execute(
                select(AccessContext.group_id).where(
                    AccessContext.document_id == document_id,
                    AccessContext.role_id == role_id,
                )
            ).scalars())

    def list_for_document(
        self,
        document_id: int,
        session: Optional[Session] = None,
    ) -> List[AccessContext]:
        """List all grants on a document ordered by id."""
        check_id(document_id, "document id")

        with read_session(self.session_factory, session) as db:
            return (
                db.query(AccessContext)
                .filter(AccessContext.document_id == document_id)
                .order_by(AccessContext.id)
                .all()
            )
