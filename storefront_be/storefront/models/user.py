import uuid

from sqlalchemy import Column, String, DateTime, create_engine
from sqlalchemy.orm import declarative_base, relationship, sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.config import get_settings
from storefront.utils.dates import utcnow

DATABASE_URL = get_settings().DATABASE_URL

if not DATABASE_URL:
    raise RuntimeError(
        "DATABASE_URL is not set. Provide a valid Postgres URL (postgres:// or postgresql://) or a sqlite URL."
    )

# Normalize driver to psycopg (SQLAlchemy 2.x + psycopg3) regardless of incoming scheme
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql+psycopg://", 1)
elif DATABASE_URL.startswith("postgresql://") and "+" not in DATABASE_URL.split("://", 1)[0]:
    DATABASE_URL = DATABASE_URL.replace("postgresql://", "postgresql+psycopg://", 1)

_engine_kwargs = {"pool_pre_ping": True, "future": True}
if DATABASE_URL.startswith("sqlite"):
    _engine_kwargs["connect_args"] = {"check_same_thread": False}
    # In-memory databases only exist on a single connection
    if DATABASE_URL in ("sqlite://", "sqlite:///:memory:"):
        _engine_kwargs["poolclass"] = StaticPool

engine = create_engine(DATABASE_URL, **_engine_kwargs)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
Base = declarative_base()


def new_id() -> str:
    return uuid.uuid4().hex


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=new_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    first_name = Column(String(100))
    last_name = Column(String(100))
    name = Column(String(255))
    image = Column(String(500))
    password = Column(String(255))  # bcrypt hash
    role = Column(String(20), default="USER", nullable=False)  # USER, ADMIN
    created_at = Column(DateTime, default=utcnow, nullable=False)

    orders = relationship("Order", back_populates="user")
    reviews = relationship("Review", back_populates="user")

    @property
    def display_name(self) -> str:
        return self.name or f"{self.first_name or ''} {self.last_name or ''}".strip()


class TokenBlacklist(Base):
    __tablename__ = "token_blacklist"

    id = Column(String(32), primary_key=True, default=new_id)
    jti = Column(String(255), unique=True, index=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)

# NOTE: Table creation is handled in storefront.main startup so that importing the
# models never opens a connection.
