"""
BankMock Mock Server

FastAPI HTTP server that answers every request from a MockBackend, so
provider clients written in any language can point their base URL at it.

Features:
- Catch-all route backed by MockBackend.execute
- Admin API for listing and switching scenarios at runtime
- Match counters and request metrics
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
import uvicorn

from ..common.config import MockBackendConfig, ServerConfig
from ..common.errors import (
    ConfigurationError,
    MockBackendError,
    NoMatchError,
    ScenarioNotFoundError,
    StorageError,
)
from ..fixtures import load_fixture
from ..mock.backend import HttpRequest, MockBackend
from ..scenarios import load_scenarios


# Set by the server from the body it sends
HOP_HEADERS = {'content-length', 'transfer-encoding', 'connection'}

ERROR_STATUS = {
    NoMatchError: 404,
    ConfigurationError: 500,
    StorageError: 503,
}


def error_status(error: MockBackendError) -> int:
    """HTTP status used to report a backend error."""
    for error_type, status in ERROR_STATUS.items():
        if isinstance(error, error_type):
            return status
    return 500


@dataclass
class MockMetrics:
    """Track mock server metrics."""

    total_requests: int = 0
    matched_requests: int = 0
    unmatched_requests: int = 0
    failed_requests: int = 0
    start_time: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        uptime_seconds = (datetime.now() - datetime.fromisoformat(self.start_time)).total_seconds()
        return {
            'total_requests': self.total_requests,
            'matched_requests': self.matched_requests,
            'unmatched_requests': self.unmatched_requests,
            'failed_requests': self.failed_requests,
            'match_rate': round((self.matched_requests / self.total_requests * 100) if self.total_requests > 0 else 0, 2),
            'uptime_seconds': round(uptime_seconds, 2),
            'start_time': self.start_time
        }


class MockServer:
    """
    FastAPI server serving responses from a MockBackend.

    Example:
        backend = MockBackend()
        load_scenarios(backend, 'scenarios/plaid.yaml')

        server = MockServer(backend)
        server.start(port=8080)

        # Switch scenario from a test:
        #   POST http://127.0.0.1:8080/__admin__/scenarios/plaid_error/activate
    """

    def __init__(
        self,
        backend: Optional[MockBackend] = None,
        config: Optional[ServerConfig] = None
    ):
        """
        Initialize mock server.

        Args:
            backend: Backend answering requests (a fresh MockBackend if None)
            config: Optional ServerConfig for server behavior
        """
        self.backend = backend or MockBackend()
        self.config = config or ServerConfig()
        self.metrics = MockMetrics()

        self.logger = logging.getLogger("bankmock.server")
        self.logger.setLevel(getattr(logging, self.config.log_level.upper(), logging.INFO))

        self.app = self._create_app()

    def _create_app(self) -> FastAPI:
        """Create FastAPI application with routes."""
        app = FastAPI(
            title="BankMock Server",
            description="Scenario-driven mock of banking provider APIs",
            version="1.0.0"
        )

        if self.config.admin_enabled:
            self._add_admin_routes(app, self.config.admin_prefix)

        # Catch-all route (must be last)
        @app.api_route("/{path:path}", methods=["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"])
        async def mock_request(request: Request, path: str):
            """Answer a request from the active scenario."""
            return await self._handle_request(request)

        return app

    def _add_admin_routes(self, app: FastAPI, prefix: str):
        backend = self.backend

        @app.get(f"{prefix}/scenarios")
        async def list_scenarios():
            """List all scenarios."""
            scenarios = await run_in_threadpool(backend.list_scenarios)
            active = backend.active_scenario()
            return JSONResponse(content={
                'total': len(scenarios),
                'active': active,
                'scenarios': [s.to_dict() for s in scenarios]
            })

        @app.get(f"{prefix}/scenarios/{{name}}/mocks")
        async def list_mocks(name: str):
            """List a scenario's mocks in scan order."""
            try:
                mocks = await run_in_threadpool(backend.list_mocks, name)
            except ScenarioNotFoundError as e:
                return self._error_response(e, status_code=404)

            return JSONResponse(content={
                'scenario': name,
                'total': len(mocks),
                'mocks': [
                    {
                        'request': req.to_dict(),
                        'response': resp.to_dict() if resp else None,
                        'match_count': backend.match_count(req.id)
                    }
                    for req, resp in mocks
                ]
            })

        @app.post(f"{prefix}/scenarios/{{name}}/activate")
        async def activate_scenario(name: str):
            """Activate a scenario and reset its match counters."""
            try:
                await run_in_threadpool(backend.activate_scenario, name)
            except ScenarioNotFoundError as e:
                return self._error_response(e, status_code=404)

            return JSONResponse(content={'status': 'activated', 'active': name})

        @app.post(f"{prefix}/deactivate")
        async def deactivate():
            """Deactivate the active scenario."""
            backend.deactivate_scenario()
            return JSONResponse(content={'status': 'deactivated', 'active': None})

        @app.get(f"{prefix}/active")
        async def get_active():
            """Get the active scenario name."""
            return JSONResponse(content={'active': backend.active_scenario()})

        @app.get(f"{prefix}/counts")
        async def get_counts():
            """Get match counts of the active scenario's mocks."""
            counts = backend.match_counts()
            return JSONResponse(content={
                'active': backend.active_scenario(),
                'counts': {str(request_id): count for request_id, count in counts.items()}
            })

        @app.post(f"{prefix}/reset")
        async def reset():
            """Wipe all scenarios and metrics."""
            await run_in_threadpool(backend.reset)
            self.metrics = MockMetrics()
            return JSONResponse(content={'status': 'reset'})

        @app.get(f"{prefix}/metrics")
        async def get_metrics():
            """Get server metrics."""
            return JSONResponse(content=self.metrics.to_dict())

    async def _handle_request(self, request: Request) -> Response:
        """
        Forward an incoming request to the backend.

        Args:
            request: FastAPI Request object

        Returns:
            The mocked response, or a JSON error response
        """
        self.metrics.total_requests += 1

        body = await request.body()
        call = HttpRequest(
            method=request.method,
            url=str(request.url),
            headers=dict(request.headers),
            body=body.decode('utf-8', errors='replace') if body else None
        )

        self.logger.debug(f"Incoming: {call.method} {call.url}")

        # execute may sleep for a mock's delay
        try:
            result = await run_in_threadpool(self.backend.execute, call)
        except NoMatchError as e:
            self.metrics.unmatched_requests += 1
            return self._error_response(e)
        except MockBackendError as e:
            self.metrics.failed_requests += 1
            self.logger.error(f"Backend error for {call.method} {call.url}: {e}")
            return self._error_response(e)

        self.metrics.matched_requests += 1

        headers = {k: v for k, v in result.headers.items() if k.lower() not in HOP_HEADERS}
        return Response(
            content=result.body,
            status_code=result.status,
            headers=headers
        )

    def _error_response(self, error: MockBackendError, status_code: Optional[int] = None) -> JSONResponse:
        return JSONResponse(
            content={
                'error': error.kind.value,
                'message': error.message
            },
            status_code=status_code or error_status(error)
        )

    def start(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        access_log: bool = True
    ):
        """
        Start the mock server.

        Args:
            host: Host to bind to (overrides config)
            port: Port to bind to (overrides config)
            access_log: Enable access logging
        """
        actual_host = host or self.config.host
        actual_port = port or self.config.port

        scenarios = self.backend.list_scenarios()
        self.logger.info(f"BankMock server starting on {actual_host}:{actual_port}")
        self.logger.info(f"Scenarios loaded: {len(scenarios)}, active: {self.backend.active_scenario()}")

        if self.config.admin_enabled:
            self.logger.info(f"Admin API: http://{actual_host}:{actual_port}{self.config.admin_prefix}/scenarios")

        uvicorn.run(
            self.app,
            host=actual_host,
            port=actual_port,
            log_level=self.config.log_level,
            access_log=access_log
        )

    def get_app(self) -> FastAPI:
        """
        Get the FastAPI app instance for testing or custom deployment.

        Returns:
            FastAPI application instance
        """
        return self.app


def create_mock_server(
    scenario_files: Optional[List[str]] = None,
    fixtures: Optional[List[str]] = None,
    activate: Optional[str] = None,
    host: str = "127.0.0.1",
    port: int = 8080,
    log_level: str = "info",
    backend_config: Optional[MockBackendConfig] = None
) -> MockServer:
    """
    Convenience function to create and populate a mock server.

    Args:
        scenario_files: YAML scenario files to load
        fixtures: Bundled provider fixtures to load
        activate: Scenario to activate (overrides the files' ``activate``)
        host: Host to bind to
        port: Port to bind to
        log_level: Server log level
        backend_config: Optional MockBackendConfig

    Returns:
        Configured MockServer instance

    Raises:
        ConfigurationError: If a file, fixture or scenario name is invalid

    Example:
        server = create_mock_server(fixtures=['plaid'], activate='plaid_error', port=9090)
        server.start()
    """
    backend = MockBackend(config=backend_config)

    for provider in fixtures or []:
        load_fixture(backend, provider)

    for path in scenario_files or []:
        load_scenarios(backend, path, activate=activate is None)

    if activate is not None:
        backend.activate_scenario(activate)

    config = ServerConfig(host=host, port=port, log_level=log_level)
    return MockServer(backend, config=config)
