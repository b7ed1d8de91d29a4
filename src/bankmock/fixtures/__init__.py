"""
BankMock Provider Fixtures

Canned sandbox responses for the banking providers, shipped as YAML
scenario files under ``fixtures/data``.

Every provider has a ``<provider>_happy_path`` scenario. Plaid also ships
``plaid_error`` (ITEM_LOGIN_REQUIRED on /accounts/get) and
``plaid_rate_limited`` (429 on /accounts/get).

Example:
    backend = happy_path('plaid')
    response = backend.post('https://sandbox.plaid.com/accounts/get', {'access_token': 't'})
    assert response.json()['accounts'][0]['name'] == 'Plaid Checking'
"""

import logging
from importlib import resources
from typing import List, Optional

from ..common.config import MockBackendConfig
from ..common.errors import ConfigurationError
from ..mock.backend import MockBackend
from ..scenarios import ScenarioFile


logger = logging.getLogger("bankmock.fixtures")

PROVIDERS = ['plaid', 'truelayer', 'teller', 'gocardless', 'yapily', 'mx']


def available_providers() -> List[str]:
    """Providers with bundled fixtures."""
    return list(PROVIDERS)


def fixture_file(provider: str) -> ScenarioFile:
    """
    Parse the bundled scenario file of a provider.

    Raises:
        ConfigurationError: If the provider has no fixtures
    """
    if provider not in PROVIDERS:
        raise ConfigurationError(
            f"No fixtures for provider '{provider}' (available: {', '.join(PROVIDERS)})"
        )

    text = resources.files(__package__).joinpath('data').joinpath(f'{provider}.yaml').read_text(encoding='utf-8')
    return ScenarioFile.from_string(text)


def load_fixture(
    backend: MockBackend,
    provider: str,
    scenario_name: Optional[str] = None
) -> List[str]:
    """
    Load a provider's fixture scenarios into a backend without activating.

    Args:
        backend: Target backend
        provider: Provider name (see available_providers())
        scenario_name: Load only this scenario of the provider's file

    Returns:
        Names of the scenarios created

    Raises:
        ConfigurationError: Unknown provider or scenario
    """
    fixtures = fixture_file(provider)

    if scenario_name is not None:
        selected = [s for s in fixtures.scenarios if s.scenario.name == scenario_name]
        if not selected:
            raise ConfigurationError(f"Provider '{provider}' has no fixture scenario '{scenario_name}'")
        fixtures = ScenarioFile(scenarios=selected)

    names = fixtures.load_into(backend, activate=False)
    logger.info(f"Loaded {provider} fixtures: {', '.join(names)}")
    return names


def provider_backend(
    provider: str,
    scenario_name: Optional[str] = None,
    config: Optional[MockBackendConfig] = None
) -> MockBackend:
    """
    Fresh backend with all of a provider's fixtures and one scenario active.

    Args:
        provider: Provider name
        scenario_name: Scenario to activate (default ``<provider>_happy_path``)
        config: Optional MockBackendConfig
    """
    backend = MockBackend(config=config)
    load_fixture(backend, provider)
    backend.activate_scenario(scenario_name or f"{provider}_happy_path")
    return backend


def happy_path(provider: str, config: Optional[MockBackendConfig] = None) -> MockBackend:
    """Fresh backend with ``<provider>_happy_path`` loaded and active."""
    backend = MockBackend(config=config)
    load_fixture(backend, provider, f"{provider}_happy_path")
    backend.activate_scenario(f"{provider}_happy_path")
    return backend


def all_providers_happy_path(config: Optional[MockBackendConfig] = None) -> MockBackend:
    """Fresh backend holding every provider's happy path; none is active."""
    backend = MockBackend(config=config)
    for provider in PROVIDERS:
        load_fixture(backend, provider, f"{provider}_happy_path")
    return backend


__all__ = [
    'PROVIDERS',
    'available_providers',
    'fixture_file',
    'load_fixture',
    'provider_backend',
    'happy_path',
    'all_providers_happy_path',
]
