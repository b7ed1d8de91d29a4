"""
BankMock Record Store

CRUD persistence for scenarios, mock requests and mock responses.

The default database is a private in-process SQLite database; any
SQLAlchemy URL can be used instead. All store I/O goes through
``session_scope`` which commits on success, rolls back and logs on failure,
and re-raises SQLAlchemy errors as StorageError.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple

from sqlalchemy import create_engine, delete, func, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..common.errors import ConfigurationError, ScenarioNotFoundError, StorageError
from .models import Base, MockRequest, MockResponse, Scenario, utc_now
from .records import CreateMockRequest, CreateMockResponse, CreateScenario


logger = logging.getLogger("bankmock.store")


def create_store_engine(database_url: str = "sqlite://", echo: bool = False) -> Engine:
    """
    Create a SQLAlchemy engine for the record store.

    In-memory SQLite URLs get a single shared connection so every thread
    sees the same database.
    """
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, echo=echo, pool_pre_ping=True)


class RecordStore:
    """
    Persistence for the three mock record types.

    Example:
        store = RecordStore()
        store.create_scenario(CreateScenario('happy-path', 'plaid'))
        store.add_mock(
            'happy-path',
            CreateMockRequest.get('/accounts/{id}'),
            CreateMockResponse.ok('{"balance": 100}')
        )
    """

    def __init__(
        self,
        database_url: str = "sqlite://",
        echo: bool = False,
        engine: Optional[Engine] = None
    ):
        """
        Initialize record store and create its tables.

        Args:
            database_url: SQLAlchemy database URL
            echo: Log every SQL statement
            engine: Pre-built engine (overrides database_url)
        """
        self.engine = engine or create_store_engine(database_url, echo=echo)
        self._sessionmaker = sessionmaker(
            self.engine,
            expire_on_commit=False,
            autoflush=False,
        )
        # Serializes store I/O; the shared SQLite connection is not re-entrant
        self._lock = threading.RLock()

        self.create_tables()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Transactional session; commits on success, rolls back on error."""
        with self._lock:
            session = self._sessionmaker()
            try:
                yield session
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                logger.exception("Record store transaction rolled back")
                raise StorageError(f"Record store operation failed: {e}") from e
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()

    def create_tables(self):
        """Create the scenarios, mock_requests and mock_responses tables."""
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            logger.exception("Failed to create record store tables")
            raise StorageError(f"Failed to create tables: {e}") from e

    # Scenarios

    def create_scenario(self, data: CreateScenario) -> Scenario:
        """
        Create a scenario.

        Raises:
            ConfigurationError: If a scenario with the same name exists
            StorageError: If the insert fails
        """
        with self.session_scope() as session:
            if self._find_scenario(session, data.name) is not None:
                raise ConfigurationError(f"Scenario already exists: {data.name}")

            now = utc_now()
            scenario = Scenario(
                name=data.name,
                provider=data.provider,
                description=data.description,
                is_active=True,
                created_at=now,
                updated_at=now,
            )
            session.add(scenario)
            session.flush()

        logger.debug(f"Created scenario {scenario.name} ({scenario.provider})")
        return scenario

    def get_scenario(self, name: str) -> Optional[Scenario]:
        with self.session_scope() as session:
            return self._find_scenario(session, name)

    def get_scenario_by_id(self, scenario_id: int) -> Optional[Scenario]:
        with self.session_scope() as session:
            return session.get(Scenario, scenario_id)

    def list_scenarios(self) -> List[Scenario]:
        """List all scenarios ordered by name."""
        with self.session_scope() as session:
            return list(session.scalars(select(Scenario).order_by(Scenario.name)))

    def delete_scenario(self, name: str):
        """
        Delete a scenario with its requests and their responses.

        The three deletes run in one transaction.

        Raises:
            ScenarioNotFoundError: If no scenario has this name
        """
        with self.session_scope() as session:
            scenario = self._find_scenario(session, name)
            if scenario is None:
                raise ScenarioNotFoundError(name)

            request_ids = select(MockRequest.id).where(MockRequest.scenario_id == scenario.id)
            session.execute(delete(MockResponse).where(MockResponse.request_id.in_(request_ids)))
            session.execute(delete(MockRequest).where(MockRequest.scenario_id == scenario.id))
            session.execute(delete(Scenario).where(Scenario.id == scenario.id))

        logger.debug(f"Deleted scenario {name}")

    # Mocks

    def add_mock(
        self,
        scenario_name: str,
        request: CreateMockRequest,
        response: CreateMockResponse
    ) -> Tuple[MockRequest, MockResponse]:
        """
        Store a request/response pair in a scenario.

        When ``request.sequence_order`` is None the mock is placed after the
        scenario's current highest sequence_order (1 for the first mock).

        Raises:
            ScenarioNotFoundError: If the scenario does not exist
        """
        with self.session_scope() as session:
            scenario = self._find_scenario(session, scenario_name)
            if scenario is None:
                raise ScenarioNotFoundError(scenario_name)

            sequence_order = request.sequence_order
            if sequence_order is None:
                max_order = session.scalar(
                    select(func.max(MockRequest.sequence_order))
                    .where(MockRequest.scenario_id == scenario.id)
                )
                sequence_order = (max_order or 0) + 1

            now = utc_now()
            mock_request = MockRequest(
                scenario_id=scenario.id,
                method=request.method.upper(),
                path_pattern=request.path_pattern,
                body_pattern=request.body_pattern,
                headers_pattern=request.headers_pattern,
                sequence_order=sequence_order,
                times_matched=0,
                created_at=now,
            )
            session.add(mock_request)
            session.flush()

            mock_response = MockResponse(
                request_id=mock_request.id,
                status_code=response.status_code,
                headers=response.headers,
                body=response.body,
                delay_ms=response.delay_ms,
                created_at=now,
            )
            session.add(mock_response)
            session.flush()

        logger.debug(
            f"Added mock {mock_request.method} {mock_request.path_pattern} "
            f"to {scenario_name} (sequence {mock_request.sequence_order})"
        )
        return mock_request, mock_response

    def list_requests(self, scenario_id: int, method: Optional[str] = None) -> List[MockRequest]:
        """
        List a scenario's mock requests in scan order.

        Args:
            scenario_id: Owning scenario id
            method: Optional HTTP method filter (exact, case-insensitive)

        Returns:
            Requests ordered by sequence_order, ties by insertion order
        """
        query = select(MockRequest).where(MockRequest.scenario_id == scenario_id)
        if method is not None:
            query = query.where(MockRequest.method == method.upper())
        query = query.order_by(MockRequest.sequence_order, MockRequest.id)

        with self.session_scope() as session:
            return list(session.scalars(query))

    def get_response(self, request_id: int) -> Optional[MockResponse]:
        with self.session_scope() as session:
            return session.scalar(
                select(MockResponse).where(MockResponse.request_id == request_id)
            )

    def record_match(self, request_id: int):
        """Increment the persisted lifetime match counter of a request."""
        with self.session_scope() as session:
            session.execute(
                update(MockRequest)
                .where(MockRequest.id == request_id)
                .values(times_matched=MockRequest.times_matched + 1)
            )

    def reset(self):
        """Delete every response, request and scenario."""
        with self.session_scope() as session:
            session.execute(delete(MockResponse))
            session.execute(delete(MockRequest))
            session.execute(delete(Scenario))

        logger.info("Record store reset")

    @staticmethod
    def _find_scenario(session: Session, name: str) -> Optional[Scenario]:
        return session.scalar(select(Scenario).where(Scenario.name == name))
