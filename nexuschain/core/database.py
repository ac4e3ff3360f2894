"""
FILE: nexuschain/core/database.py
Engine construction and per-request session management
"""

from sqlmodel import create_engine, Session, SQLModel  # type: ignore
from sqlalchemy import text  # type: ignore
from sqlalchemy.engine import Engine
from starlette.requests import HTTPConnection
from typing import Generator
from nexuschain.core.config import Settings
import logging

logger = logging.getLogger(__name__)


def build_engine(settings: Settings) -> Engine:
    """Create the SQLAlchemy engine described by settings."""
    if settings.DATABASE_URL.startswith("sqlite"):
        return create_engine(
            settings.DATABASE_URL,
            echo=settings.DB_ECHO,
            connect_args={"check_same_thread": False},
        )
    return create_engine(
        settings.DATABASE_URL,
        echo=settings.DB_ECHO,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
        pool_recycle=3600,
    )


def get_session(connection: HTTPConnection) -> Generator[Session, None, None]:
    """Session bound to the app engine. Works for HTTP and WebSocket routes."""
    with Session(connection.app.state.engine) as session:
        try:
            yield session
        except Exception as e:
            logger.error(f"Database error: {e}")
            session.rollback()
            raise
        finally:
            session.close()


def create_db_and_tables(engine: Engine):
    """Create all database tables. Safe to run multiple times."""
    # Register table metadata before create_all
    import nexuschain.shared.models  # noqa: F401

    try:
        logger.info("🔨 Creating database tables...")
        SQLModel.metadata.create_all(engine)
        logger.info("✅ Database tables created successfully")
        table_names = SQLModel.metadata.tables.keys()
        logger.info(f"📊 Available tables: {', '.join(table_names)}")
    except Exception as e:
        logger.error(f"❌ Error creating database tables: {e}")
        raise


def init_db(engine: Engine):
    """Initialize database on application startup."""
    create_db_and_tables(engine)


def close_db(engine: Engine):
    """Close database connections."""
    engine.dispose()


def check_database_connection(engine: Engine) -> bool:
    try:
        with Session(engine) as session:
            session.exec(text("SELECT 1"))  # type: ignore
        return True
    except Exception as e:
        logger.error(f"❌ Database connection failed: {e}")
        return False
