# db/connection.py

from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import sessionmaker, declarative_base
from urllib.parse import quote_plus
import logging

from config import (
    DATABASE_URL as CONFIGURED_URL,
    DB_HOST, DB_PORT, DB_NAME, DB_USERNAME, DB_PASSWORD,
)

logger = logging.getLogger(__name__)


def build_database_url() -> str:
    """
    DATABASE_URL from the environment when present, otherwise a Postgres URL
    assembled from the DB_* settings.
    """
    if CONFIGURED_URL:
        return CONFIGURED_URL

    password = DB_PASSWORD
    if isinstance(password, (bytes, bytearray)):
        password = password.decode("utf-8")
    pw_quoted = quote_plus(str(password))
    return (
        f"postgresql://{DB_USERNAME}:{pw_quoted}"
        f"@{DB_HOST}:{DB_PORT}/{DB_NAME}?sslmode=disable"
    )


def make_engine(url: str):
    """Engine with pool settings for Postgres, thread-shareable connections for SQLite."""
    if url.startswith("sqlite"):
        return create_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False},
        )

    eng = create_engine(
        url,
        echo=False,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,   # Validate connections before use
        pool_recycle=3600,    # Recycle connections every hour
        connect_args={
            "application_name": "CRM_Analytics",
            "connect_timeout": 10,
        },
    )

    @event.listens_for(eng, "connect")
    def set_connection_settings(dbapi_connection, connection_record):
        """Pin the session timezone so DATE/TIMESTAMP comparisons are stable"""
        with dbapi_connection.cursor() as cursor:
            cursor.execute("SET timezone TO 'UTC'")
        dbapi_connection.commit()

    return eng


DATABASE_URL = build_database_url()
engine = make_engine(DATABASE_URL)
logger.info(f"Database engine created for: {engine.url.render_as_string(hide_password=True)}")

# Session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)

# Base class for models
Base = declarative_base()


def get_db():
    """
    Database dependency with proper error handling
    """
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        logger.error(f"Database session error: {e}")
        db.rollback()
        raise
    finally:
        db.close()


def get_session_factory():
    """
    Dependency handing the analytics fan-out a factory, since every
    concurrent aggregator opens its own session.
    """
    return SessionLocal


def check_database_connection() -> bool:
    """
    Check if database connection is working
    """
    try:
        with engine.connect() as conn:
            test_value = conn.execute(text("SELECT 1")).scalar()
        if test_value == 1:
            logger.info("✅ Database connection successful")
            return True
        logger.error("❌ Database query returned unexpected result")
        return False
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False
