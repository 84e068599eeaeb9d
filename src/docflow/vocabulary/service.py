"""Vocabulary registries for document types, states, actions and roles.

The registries treat names as plain, controlled vocabulary: they assign
identities and enforce uniqueness but attach no transition semantics.
DocStates are scoped to a DocType; the others are global.
"""

import logging
from typing import List, Optional, Type

from sqlalchemy.orm import Session, sessionmaker

from ..database import unit_of_work, read_session
from ..errors import ConflictError, NotFoundError
from ..models.vocabulary import DocType, DocState, DocAction, Role
from ..validation import clean_name, check_id, check_paging

logger = logging.getLogger(__name__)


class VocabularyRegistry:
    """Registry over one globally-unique vocabulary table.

    Subclasses set `model` and `label`.
    """

    model: Type = None
    label: str = "entry"

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def new(self, name: str, session: Optional[Session] = None) -> int:
        """Register a new name and return its identity.

        Raises:
            ValidationError: If name is empty after trimming
            ConflictError: If the name is already registered
        """
        name = clean_name(name, f"{self.label} name")

        with unit_of_work(self.session_factory, session) as db:
            self._ensure_unique(db, name)
            entry = self.model(name=name)
            db.add(entry)
            db.flush()
            logger.info(f"Registered {self.label} '{name}' as {entry.id}")
            return entry.id

    def get(self, entry_id: int, session: Optional[Session] = None):
        """Fetch an entry by id.

        Raises:
            NotFoundError: If id is non-positive or unmatched
        """
        if isinstance(entry_id, bool) or not isinstance(entry_id, int) or entry_id <= 0:
            raise NotFoundError(f"{self.label} {entry_id!r} not found")

        with read_session(self.session_factory, session) as db:
            entry = db.get(self.model, entry_id)
            if entry is None:
                raise NotFoundError(f"{self.label} {entry_id} not found")
            return entry

    def list(self, offset: int = 0, limit: int = 0, session: Optional[Session] = None) -> List:
        """List entries ordered by id; limit 0 means no limit."""
        offset, limit = check_paging(offset, limit)

        with read_session(self.session_factory, session) as db:
            query = self._scoped_query(db).order_by(self.model.id).offset(offset)
            if limit:
                query = query.limit(limit)
            return query.all()

    def rename(self, entry_id: int, new_name: str, session: Optional[Session] = None) -> None:
        """Rename an entry in place; its id does not change.

        Raises:
            ValidationError: If the new name is empty or the id is non-positive
            NotFoundError: If no entry has this id
            ConflictError: If another entry in scope already uses the name
        """
        check_id(entry_id, f"{self.label} id")
        new_name = clean_name(new_name, f"{self.label} name")

        with unit_of_work(self.session_factory, session) as db:
            entry = db.get(self.model, entry_id)
            if entry is None:
                raise NotFoundError(f"{self.label} {entry_id} not found")
            if entry.name == new_name:
                return
            self._ensure_unique(db, new_name, scope=entry)
            old_name = entry.name
            entry.name = new_name
            db.flush()
            logger.info(f"Renamed {self.label} {entry_id}: '{old_name}' -> '{new_name}'")

    def exists(self, name: str, session: Optional[Session] = None) -> int:
        """Answer the id registered for a name.

        Raises:
            NotFoundError: If the name is not registered
        """
        name = clean_name(name, f"{self.label} name")

        with read_session(self.session_factory, session) as db:
            entry = self._scoped_query(db).filter(self.model.name == name).first()
            if entry is None:
                raise NotFoundError(f"{self.label} '{name}' not found")
            return entry.id

    def _scoped_query(self, db: Session, scope=None):
        return db.query(self.model)

    def _ensure_unique(self, db: Session, name: str, scope=None) -> None:
        clash = self._scoped_query(db, scope).filter(self.model.name == name).first()
        if clash is not None:
            raise ConflictError(f"{self.label} '{name}' already exists")


class DocTypeRegistry(VocabularyRegistry):
    """Classes of documents, each governed by one transition table."""
    model = DocType
    label = "document type"


class DocActionRegistry(VocabularyRegistry):
    """Action names shared by all document types (APPROVE, REJECT, ...)."""
    model = DocAction
    label = "document action"


class RoleRegistry(VocabularyRegistry):
    """Role names granted to groups through access contexts."""
    model = Role
    label = "role"


class DocStateRegistry(VocabularyRegistry):
    """States of document types; names are unique within one DocType.

    `new` and `exists` take the owning doctype id first. `list` accepts an
    optional doctype filter.
    """
    model = DocState
    label = "document state"

    def new(self, doctype_id: int, name: str, session: Optional[Session] = None) -> int:
        """Register a state for a document type.

        Raises:
            ValidationError: If name is empty or doctype_id is non-positive
            NotFoundError: If the document type does not exist
            ConflictError: If the doctype already has a state with this name
        """
        check_id(doctype_id, "doctype id")
        name = clean_name(name, f"{self.label} name")

        with unit_of_work(self.session_factory, session) as db:
            if db.get(DocType, doctype_id) is None:
                raise NotFoundError(f"document type {doctype_id} not found")
            clash = db.query(DocState).filter(
                DocState.doctype_id == doctype_id,
                DocState.name == name
            ).first()
            if clash is not None:
                raise ConflictError(
                    f"{self.label} '{name}' already exists for document type {doctype_id}"
                )
            state = DocState(doctype_id=doctype_id, name=name)
            db.add(state)
            db.flush()
            logger.info(f"Registered {self.label} '{name}' as {state.id} (doctype {doctype_id})")
            return state.id

    def list(
        self,
        offset: int = 0,
        limit: int = 0,
        doctype_id: Optional[int] = None,
        session: Optional[Session] = None,
    ) -> List[DocState]:
        """List states ordered by id, optionally for one document type."""
        offset, limit = check_paging(offset, limit)

        with read_session(self.session_factory, session) as db:
            query = db.query(DocState)
            if doctype_id is not None:
                query = query.filter(DocState.doctype_id == doctype_id)
            query = query.order_by(DocState.id).offset(offset)
            if limit:
                query = query.limit(limit)
            return query.all()

    def exists(self, doctype_id: int, name: str, session: Optional[Session] = None) -> int:
        """Answer the id of the named state within a document type.

        Raises:
            NotFoundError: If the doctype has no state with this name
        """
        check_id(doctype_id, "doctype id")
        name = clean_name(name, f"{self.label} name")

        with read_session(self.session_factory, session) as db:
            state = db.query(DocState).filter(
                DocState.doctype_id == doctype_id,
                DocState.name == name
            ).first()
            if state is None:
                raise NotFoundError(
                    f"{self.label} '{name}' not found for document type {doctype_id}"
                )
            return state.id

    def _scoped_query(self, db: Session, scope=None):
        query = db.query(DocState)
        if scope is not None:
            query = query.filter(DocState.doctype_id == scope.doctype_id)
        return query
