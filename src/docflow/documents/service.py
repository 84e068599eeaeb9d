"""Document service - creating and reading workflow documents.

Documents start in their doctype's INITIAL state (or an explicit state of the
same doctype). After creation only the workflow engine moves them.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session, sessionmaker

from ..audit import AuditEntry, list_entries
from ..config import get_settings
from ..database import read_session, unit_of_work
from ..errors import NotFoundError, ValidationError
from ..models.document import Document
from ..models.vocabulary import DocState, DocType
from ..validation import check_id

logger = logging.getLogger(__name__)


class DocumentService:
    """Service for document creation, lookup and history."""

    def __init__(self, session_factory: sessionmaker, initial_state_name: Optional[str] = None):
        self.session_factory = session_factory
        self.initial_state_name = initial_state_name or get_settings().INITIAL_STATE_NAME

    def new(
        self,
        doctype_id: int,
        title: Optional[str] = None,
        initial_state_id: Optional[int] = None,
        session: Optional[Session] = None,
    ) -> int:
        """Create a document of a type and answer its id.

        Args:
            doctype_id: Document type
            title: Optional human-readable title
            initial_state_id: Starting state; defaults to the doctype's
                INITIAL state

        Raises:
            NotFoundError: If the doctype does not exist or has no INITIAL state
            ValidationError: If initial_state_id belongs to another doctype
        """
        check_id(doctype_id, "doctype id")
        if initial_state_id is not None:
            check_id(initial_state_id, "initial state id")

        with unit_of_work(self.session_factory, session) as db:
            if db.get(DocType, doctype_id) is None:
                raise NotFoundError(f"document type {doctype_id} not found")

            if initial_state_id is None:
                state = db.query(DocState).filter(
                    DocState.doctype_id == doctype_id,
                    DocState.name == self.initial_state_name,
                ).first()
                if state is None:
                    raise NotFoundError(
                        f"document type {doctype_id} has no '{self.initial_state_name}' state"
                    )
            else:
                state = db.get(DocState, initial_state_id)
                if state is None:
                    raise NotFoundError(f"document state {initial_state_id} not found")
                if state.doctype_id != doctype_id:
                    raise ValidationError(
                        f"document state {initial_state_id} does not belong to document type {doctype_id}"
                    )

            document = Document(doctype_id=doctype_id, state_id=state.id, title=title)
            db.add(document)
            db.flush()

            logger.info(f"Created document {document.id} of doctype {doctype_id} in state {state.id}",
                        extra={"document_id": document.id})
            return document.id

    def get(self, document_id: int, session: Optional[Session] = None) -> Document:
        """Fetch a document.

        Raises:
            NotFoundError: If id is non-positive or unmatched
        """
        if isinstance(document_id, bool) or not isinstance(document_id, int) or document_id <= 0:
            raise NotFoundError(f"document {document_id!r} not found")

        with read_session(self.session_factory, session) as db:
            document = db.get(Document, document_id)
            if document is None:
                raise NotFoundError(f"document {document_id} not found")
            return document

    def history(
        self,
        document_id: int,
        offset: int = 0,
        limit: int = 0,
        session: Optional[Session] = None,
    ) -> List[AuditEntry]:
        """List a document's applied transitions, oldest first.

        Raises:
            NotFoundError: If the document does not exist
        """
        check_id(document_id, "document id")

        with read_session(self.session_factory, session) as db:
            if db.get(Document, document_id) is None:
                raise NotFoundError(f"document {document_id} not found")
            return list_entries(db, document_id, offset=offset, limit=limit)
