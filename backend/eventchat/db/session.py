"""
Database session management.
"""
import math
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from eventchat.core.config import settings
from eventchat.db.base import Base


def _asin(x):
    if x is None:
        return None
    # Rounding can push the haversine term a hair past 1 for antipodal points
    return math.asin(min(1.0, max(-1.0, x)))


def _unary(fn):
    def wrapper(x):
        return None if x is None else fn(x)
    return wrapper


def _power(x, y):
    if x is None or y is None:
        return None
    return math.pow(x, y)


def register_sqlite_functions(engine: Engine) -> None:
    """
    Register the math functions used by the spatial distance expression.

    MySQL and PostgreSQL ship them; SQLite only does when compiled with
    SQLITE_ENABLE_MATH_FUNCTIONS, so they are added on every new connection.
    """
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.create_function("sin", 1, _unary(math.sin), deterministic=True)
        dbapi_connection.create_function("cos", 1, _unary(math.cos), deterministic=True)
        dbapi_connection.create_function("sqrt", 1, _unary(math.sqrt), deterministic=True)
        dbapi_connection.create_function("radians", 1, _unary(math.radians), deterministic=True)
        dbapi_connection.create_function("asin", 1, _asin, deterministic=True)
        dbapi_connection.create_function("power", 2, _power, deterministic=True)


if settings.DATABASE_URL.startswith("sqlite"):
    engine = create_engine(
        settings.DATABASE_URL,
        echo=settings.DB_ECHO,
        connect_args={"check_same_thread": False}
    )
else:
    engine = create_engine(
        settings.DATABASE_URL,
        echo=settings.DB_ECHO,
        pool_pre_ping=True,
        pool_recycle=3600
    )
register_sqlite_functions(engine)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Session:
    """Dependency for getting database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Initialize database tables."""
    import eventchat.models  # noqa: F401  registers every model on Base.metadata
    Base.metadata.create_all(bind=engine)
