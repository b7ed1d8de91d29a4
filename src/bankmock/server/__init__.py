"""
BankMock Server Module

FastAPI mock server exposing a MockBackend over HTTP, with an admin API
for scenario switching.
"""

from .app import MockServer, MockMetrics, create_mock_server, error_status

__all__ = [
    'MockServer',
    'MockMetrics',
    'create_mock_server',
    'error_status',
]
