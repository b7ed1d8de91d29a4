"""
BankMock Record Store Module

Persistence for the three mock record types.

This module provides:
- SQLAlchemy models (Scenario, MockRequest, MockResponse)
- Input records with fluent builders
- RecordStore with create/find/list/delete and cascading scenario delete
"""

from .models import Base, Scenario, MockRequest, MockResponse
from .records import CreateScenario, CreateMockRequest, CreateMockResponse
from .store import RecordStore, create_store_engine

__all__ = [
    # Models
    'Base',
    'Scenario',
    'MockRequest',
    'MockResponse',

    # Records
    'CreateScenario',
    'CreateMockRequest',
    'CreateMockResponse',

    # Store
    'RecordStore',
    'create_store_engine',
]
