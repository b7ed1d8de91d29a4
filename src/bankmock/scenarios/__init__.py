"""
BankMock Scenario Files Module

YAML scenario documents that populate a MockBackend.
"""

from .loader import MockSpec, ScenarioSpec, ScenarioFile, load_scenarios

__all__ = [
    'MockSpec',
    'ScenarioSpec',
    'ScenarioFile',
    'load_scenarios',
]
