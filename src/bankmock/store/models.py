"""
BankMock Store Models

SQLAlchemy tables for scenarios, mock requests and mock responses.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import ForeignKey, Integer, MetaData, String, Text, DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# Naming convention keeps constraint names stable across backends
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Declarative base shared by the three mock tables."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class Scenario(Base):
    """A named, provider-tagged bundle of expected requests."""

    __tablename__ = "scenarios"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    provider: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # Informational only; the registry owns the active pointer
    is_active: Mapped[bool] = mapped_column(default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'provider': self.provider,
            'description': self.description,
            'is_active': self.is_active,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:
        return f"Scenario(id={self.id!r}, name={self.name!r}, provider={self.provider!r})"


class MockRequest(Base):
    """One expected call within a scenario."""

    __tablename__ = "mock_requests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    scenario_id: Mapped[int] = mapped_column(ForeignKey("scenarios.id"), index=True, nullable=False)
    method: Mapped[str] = mapped_column(String(10), nullable=False)
    path_pattern: Mapped[str] = mapped_column(Text, nullable=False)
    body_pattern: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    headers_pattern: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    sequence_order: Mapped[int] = mapped_column(Integer, nullable=False)
    # Lifetime total; per-activation counts live in the ScenarioRegistry
    times_matched: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'scenario_id': self.scenario_id,
            'method': self.method,
            'path_pattern': self.path_pattern,
            'body_pattern': self.body_pattern,
            'headers_pattern': self.headers_pattern,
            'sequence_order': self.sequence_order,
            'times_matched': self.times_matched,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:
        return (
            f"MockRequest(id={self.id!r}, method={self.method!r}, "
            f"path_pattern={self.path_pattern!r}, sequence_order={self.sequence_order!r})"
        )


class MockResponse(Base):
    """The canned reply for a MockRequest (1:1)."""

    __tablename__ = "mock_responses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    request_id: Mapped[int] = mapped_column(
        ForeignKey("mock_requests.id"), unique=True, index=True, nullable=False
    )
    status_code: Mapped[int] = mapped_column(Integer, nullable=False)
    headers: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    body: Mapped[str] = mapped_column(Text, default="")
    delay_ms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'request_id': self.request_id,
            'status_code': self.status_code,
            'headers': self.headers,
            'body': self.body,
            'delay_ms': self.delay_ms,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:
        return f"MockResponse(id={self.id!r}, request_id={self.request_id!r}, status_code={self.status_code!r})"
