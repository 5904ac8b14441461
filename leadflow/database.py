"""
Database engine + session factory.

Always initializes — defaults to SQLite for local dev, Postgres in production.
Every connection carries a bounded timeout so a stuck store surfaces as a
transient failure instead of hanging the webhook.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from leadflow.config import DATABASE_URL, STORE_TIMEOUT_SECONDS


class Base(DeclarativeBase):
    pass


# Railway injects postgres:// but SQLAlchemy 2.x requires postgresql://
url = DATABASE_URL.replace('postgres://', 'postgresql://', 1)

# SQLite needs different engine kwargs than Postgres
if url.startswith('sqlite'):
    engine = create_engine(url, connect_args={
        'check_same_thread': False,
        'timeout': STORE_TIMEOUT_SECONDS,
    })
else:
    engine = create_engine(
        url,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        pool_timeout=STORE_TIMEOUT_SECONDS,
        connect_args={
            'connect_timeout': int(max(STORE_TIMEOUT_SECONDS, 1)),
            'options': f'-c statement_timeout={int(STORE_TIMEOUT_SECONDS * 1000)}',
        },
    )

# Store methods hand ORM rows back after the session closes
SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)


def get_session():
    """Return a new DB session."""
    return SessionLocal()
