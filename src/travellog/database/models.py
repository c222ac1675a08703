"""SQLAlchemy models for the travellog database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class KeyValueEntry(Base):
    """Local storage entry."""

    __tablename__ = "kv_entries"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)


class User(Base):
    """Registered identity."""

    __tablename__ = "users"

    id = Column(String, primary_key=True)
    email = Column(String, unique=True, nullable=False)
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    places = relationship("PlaceRow", back_populates="owner", cascade="all, delete-orphan")
    sessions = relationship("AuthSession", back_populates="user", cascade="all, delete-orphan")


class PlaceRow(Base):
    """Remote place row, scoped to an owner."""

    __tablename__ = "places"

    id = Column(Integer, primary_key=True)
    owner_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    country = Column(String, nullable=False, default="")
    country_code = Column(String, nullable=True)
    city = Column(String, nullable=False, default="")
    lat = Column(Float, nullable=False, default=0.0)
    lng = Column(Float, nullable=False, default=0.0)
    status = Column(String, nullable=False, default="wishlist")
    # Stored with a time-of-day suffix; the row mapper truncates it.
    date_visited = Column(String, nullable=True)
    rating = Column(Integer, nullable=False, default=0)
    notes = Column(Text, nullable=False, default="")
    # JSON encoded list of strings
    tags = Column(Text, nullable=False, default="[]")
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    owner = relationship("User", back_populates="places")


class AuthSession(Base):
    """Sign-in or password recovery session."""

    __tablename__ = "auth_sessions"

    access_token = Column(String, primary_key=True)
    refresh_token = Column(String, nullable=False)
    user_id = Column(String, ForeignKey("users.id"), nullable=False)
    is_current = Column(Boolean, default=False, nullable=False)
    is_recovery = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)
    expires_at = Column(DateTime, nullable=True)

    # Relationships
    user = relationship("User", back_populates="sessions")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Remote calls use the connection from worker threads
        connect_args["check_same_thread"] = False
    engine = create_engine(database_url, echo=False, connect_args=connect_args)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
