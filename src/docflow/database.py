"""Database engine, session factory and unit-of-work helpers.

Components never reach for a global connection: each one receives a session
factory at construction. Every mutating call takes an optional caller-owned
Session. When given, the component joins it and leaves commit/rollback to the
caller; otherwise it opens, commits (or rolls back) and closes its own.
"""

import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session

from .config import Settings, get_settings
from .errors import ConflictError, StorageError, ValidationError, WorkflowError
from .models.base import Base

logger = logging.getLogger(__name__)

# Dialects with an idempotent INSERT and a way to serialize hierarchy writers
SUPPORTED_DIALECTS = ("postgresql", "sqlite", "mysql", "mariadb")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """SQLite ignores FOREIGN KEY clauses unless asked per connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine_from_settings(settings: Optional[Settings] = None) -> Engine:
    """Create a SQLAlchemy engine for the configured DATABASE_URL.

    Pool settings only apply to server databases (not SQLite).

    Raises:
        ValidationError: If DATABASE_URL names an unsupported database
    """
    settings = settings or get_settings()
    url = settings.DATABASE_URL

    backend = make_url(url).get_backend_name()
    if backend not in SUPPORTED_DIALECTS:
        raise ValidationError(
            f"unsupported database '{backend}'; expected one of {', '.join(SUPPORTED_DIALECTS)}"
        )

    engine_kwargs = {
        "pool_pre_ping": True,
        "echo": settings.DB_ECHO,
    }

    if url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": settings.SQLITE_BUSY_TIMEOUT,
        }
    else:
        engine_kwargs["pool_size"] = settings.DB_POOL_SIZE
        engine_kwargs["max_overflow"] = settings.DB_MAX_OVERFLOW

    engine = create_engine(url, **engine_kwargs)

    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)

    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    """Create the session factory injected into every component.

    Objects stay readable after commit so registries can return them.
    """
    return sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )


def init_schema(engine: Engine) -> None:
    """Create all workflow tables that do not exist yet."""
    Base.metadata.create_all(bind=engine)


@contextmanager
def unit_of_work(
    session_factory: sessionmaker,
    session: Optional[Session] = None,
) -> Generator[Session, None, None]:
    """Join a caller-supplied session or run a self-managed transaction.

    Usage:
        with unit_of_work(self.session_factory, session) as db:
            db.add(DocType(name="STORAGE_REQ"))

    Uniqueness violations surface as ConflictError and driver failures as
    StorageError, both chained to the original exception. A self-managed
    session is rolled back on any exception; a joined session is left for
    its owner to roll back.
    """
    owned = session is None
    db = session_factory() if owned else session
    try:
        yield db
        if owned:
            db.commit()
        else:
            db.flush()
    except WorkflowError:
        if owned:
            db.rollback()
        raise
    except IntegrityError as e:
        if owned:
            db.rollback()
        raise ConflictError(f"uniqueness violation: {e.orig}") from e
    except OperationalError as e:
        if owned:
            db.rollback()
        logger.error(f"Storage operation failed (retryable): {e.orig}", exc_info=True)
        raise StorageError(f"storage unavailable: {e.orig}", retryable=True) from e
    except SQLAlchemyError as e:
        if owned:
            db.rollback()
        logger.error(f"Storage operation failed: {e}", exc_info=True)
        raise StorageError(f"storage failure: {e}") from e
    except Exception:
        if owned:
            db.rollback()
        raise
    finally:
        if owned:
            db.close()


@contextmanager
def read_session(
    session_factory: sessionmaker,
    session: Optional[Session] = None,
) -> Generator[Session, None, None]:
    """Session for read-only calls; never commits.

    Driver failures surface as StorageError like in unit_of_work.
    """
    owned = session is None
    db = session_factory() if owned else session
    try:
        yield db
    except OperationalError as e:
        raise StorageError(f"storage unavailable: {e.orig}", retryable=True) from e
    except SQLAlchemyError as e:
        raise StorageError(f"storage failure: {e}") from e
    finally:
        if owned:
            db.close()


def insert_ignore_statement(dialect_name: str, model, **values):
    """Build an INSERT that silently skips rows whose unique key exists.

    PostgreSQL and SQLite use ON CONFLICT DO NOTHING; MySQL and MariaDB use
    INSERT IGNORE.

    Raises:
        ValidationError: If the dialect has no idempotent insert
    """
    table = model.__table__

    if dialect_name == "postgresql":
        return postgresql.insert(table).values(**values).on_conflict_do_nothing()
    if dialect_name == "sqlite":
        return sqlite.insert(table).values(**values).on_conflict_do_nothing()
    if dialect_name in ("mysql", "mariadb"):
        return mysql.insert(table).values(**values).prefix_with("IGNORE")
    raise ValidationError(f"unsupported database '{dialect_name}'")


def insert_ignore(session: Session, model, **values) -> bool:
    """Insert a row unless an identical key already exists.

    Concurrent callers inserting the same key never fail on the unique
    constraint: one inserts, the others do nothing.

    Returns:
        True if a row was inserted, False if it already existed
    """
    dialect = session.get_bind().dialect.name
    result = session.execute(insert_ignore_statement(dialect, model, **values))
    return result.rowcount > 0
