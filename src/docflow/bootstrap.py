"""Wiring of all docflow components around one session factory.

The process entry point owns the engine's lifecycle:

    workflow = Workflow.from_settings(get_settings(), create_schema=True)
    try:
        doc_id = workflow.documents.new(doctype_id)
        workflow.engine.apply(doc_id, user_id, approve_id)
    finally:
        workflow.dispose()
"""

import logging
from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from .access import AccessContextService
from .config import Settings, get_settings
from .database import create_engine_from_settings, init_schema, make_session_factory
from .documents import DocumentService
from .groups import GroupService
from .transitions import TransitionTable
from .users import SqlUserDirectory, UserDirectoryPort
from .vocabulary import DocActionRegistry, DocStateRegistry, DocTypeRegistry, RoleRegistry
from .workflow import AuthorizationResolver, WorkflowEngine

logger = logging.getLogger(__name__)


class Workflow:
    """All component APIs sharing one injected session factory."""

    def __init__(
        self,
        session_factory: sessionmaker,
        settings: Optional[Settings] = None,
        user_directory: Optional[UserDirectoryPort] = None,
        engine: Optional[Engine] = None,
    ):
        self.settings = settings or get_settings()
        self.session_factory = session_factory
        self.user_directory = user_directory or SqlUserDirectory()
        self._engine = engine

        self.doctypes = DocTypeRegistry(session_factory)
        self.docstates = DocStateRegistry(session_factory)
        self.docactions = DocActionRegistry(session_factory)
        self.roles = RoleRegistry(session_factory)
        self.groups = GroupService(session_factory, self.user_directory)
        self.access_contexts = AccessContextService(session_factory)
        self.transitions = TransitionTable(session_factory)
        self.documents = DocumentService(session_factory, self.settings.INITIAL_STATE_NAME)
        self.authorizer = AuthorizationResolver(self.groups, self.access_contexts)
        self.engine = WorkflowEngine(
            session_factory,
            self.transitions,
            self.authorizer,
            user_directory=self.user_directory,
            settings=self.settings,
        )

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, create_schema: bool = False) -> "Workflow":
        """Create the database engine from settings and wire all components.

        Args:
            settings: Settings to use (defaults to get_settings())
            create_schema: Create missing tables before returning
        """
        settings = settings or get_settings()
        engine = create_engine_from_settings(settings)
        if create_schema:
            init_schema(engine)
        logger.info(f"docflow ready on {engine.url.render_as_string(hide_password=True)}")
        return cls(make_session_factory(engine), settings=settings, engine=engine)

    def session(self):
        """Open a session for composing several calls in one transaction.

        Usage:
            with workflow.session() as db, db.begin():
                workflow.groups.add_user(ras_id, user_id, session=db)
                workflow.access_contexts.grant(doc_id, ras_id, approver_id, session=db)
        """
        return self.session_factory()

    def dispose(self) -> None:
        """Release pooled connections of an engine created by from_settings."""
        if self._engine is not None:
            self._engine.dispose()
