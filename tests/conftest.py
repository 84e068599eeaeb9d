"""Pytest fixtures for docflow tests.

Provides reusable test fixtures for:
- A file-backed SQLite database per test (separate connections can race,
  which an in-memory database shared through one connection cannot)
- A fully wired Workflow
- Users with their singleton groups
- The STORAGE_REQ document type with its states, actions, roles and
  transitions
- Threads started together, for racing concurrent calls

Usage:
    def test_approve(workflow, storage_req, make_user):
        user_id, group_id = make_user("ra@example.com")
        ...
"""

import threading
from dataclasses import dataclass
from typing import Any, Callable, Generator, List, Tuple

import pytest
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from docflow import Workflow
from docflow.config import Settings
from docflow.database import create_engine_from_settings, init_schema, make_session_factory
from docflow.models import User


@pytest.fixture(scope="function")
def settings(tmp_path) -> Settings:
    """Settings pointing at a fresh SQLite file."""
    return Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'docflow.db'}",
        SQLITE_BUSY_TIMEOUT=5.0,
        APPLY_MAX_RETRIES=2,
        LOG_JSON=False,
    )


@pytest.fixture(scope="function")
def db_engine(settings: Settings) -> Generator[Engine, None, None]:
    """Create all tables before the test and dispose the engine after."""
    engine = create_engine_from_settings(settings)
    init_schema(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine: Engine) -> sessionmaker:
    return make_session_factory(db_engine)


@pytest.fixture(scope="function")
def workflow(session_factory: sessionmaker, settings: Settings) -> Workflow:
    return Workflow(session_factory, settings=settings)


@pytest.fixture(scope="function")
def make_user(session_factory: sessionmaker, workflow: Workflow) -> Callable[[str], Tuple[int, int]]:
    """Factory creating a users_master row plus its singleton group.

    Returns:
        Callable taking an email and returning (user_id, singleton_group_id)
    """
    counter = {"n": 0}

    def _make_user(email: str = None) -> Tuple[int, int]:
        counter["n"] += 1
        n = counter["n"]
        with session_factory() as db:
            user = User(
                first_name=f"FN {n}",
                last_name=f"LN {n}",
                email=email or f"email{n}@example.com",
            )
            db.add(user)
            db.flush()
            group_id = workflow.groups.new_singleton(user.id, session=db)
            db.commit()
            return user.id, group_id

    return _make_user


@dataclass
class StorageRequestWorkflow:
    """Ids of the STORAGE_REQ workflow design."""
    doctype: int
    initial: int
    pending: int
    approved: int
    rejected: int
    submit: int
    approve: int
    reject: int
    author: int
    approver: int


@pytest.fixture(scope="function")
def storage_req(workflow: Workflow) -> StorageRequestWorkflow:
    """STORAGE_REQ: INITIAL --SUBMIT--> PENDING_APPROVAL --APPROVE--> APPROVED
    and PENDING_APPROVAL --REJECT--> REJECTED.

    SUBMIT requires AUTHOR; APPROVE and REJECT require APPROVER.
    """
    doctype = workflow.doctypes.new("STORAGE_REQ")
    initial = workflow.docstates.new(doctype, "INITIAL")
    pending = workflow.docstates.new(doctype, "PENDING_APPROVAL")
    approved = workflow.docstates.new(doctype, "APPROVED")
    rejected = workflow.docstates.new(doctype, "REJECTED")

    submit = workflow.docactions.new("SUBMIT")
    approve = workflow.docactions.new("APPROVE")
    reject = workflow.docactions.new("REJECT")

    author = workflow.roles.new("AUTHOR")
    approver = workflow.roles.new("APPROVER")

    workflow.transitions.define(doctype, initial, submit, pending, author)
    workflow.transitions.define(doctype, pending, approve, approved, approver)
    workflow.transitions.define(doctype, pending, reject, rejected, approver)

    return StorageRequestWorkflow(
        doctype=doctype,
        initial=initial,
        pending=pending,
        approved=approved,
        rejected=rejected,
        submit=submit,
        approve=approve,
        reject=reject,
        author=author,
        approver=approver,
    )


@pytest.fixture
def run_concurrently() -> Callable[..., List[Any]]:
    """Run callables on separate threads released together by a barrier.

    Returns:
        Callable taking zero-argument callables and returning, in the same
        order, each one's return value or the exception it raised
    """
    def _run(*calls: Callable[[], Any]) -> List[Any]:
        barrier = threading.Barrier(len(calls))
        outcomes: List[Any] = [None] * len(calls)

        def worker(index: int, call: Callable[[], Any]) -> None:
            barrier.wait()
            try:
                outcomes[index] = call()
            except Exception as e:
                outcomes[index] = e

        threads = [threading.Thread(target=worker, args=(i, c)) for i, c in enumerate(calls)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)
        assert not any(thread.is_alive() for thread in threads), "worker thread hung"
        return outcomes

    return _run
