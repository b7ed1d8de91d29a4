"""
BankMock CLI

Command-line interface for the BankMock mock server.

Commands:
    serve       - Start the mock HTTP server
    validate    - Check scenario files without serving them
    fixtures    - List bundled provider fixtures

Examples:
    # Serve a scenario file
    bankmock serve scenarios/plaid.yaml --port 8080

    # Serve bundled fixtures with the error scenario active
    bankmock serve --fixtures plaid --activate plaid_error

    # Validate scenario files in CI
    bankmock validate scenarios/*.yaml
"""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .common.config import MockBackendConfig
from .common.errors import MockBackendError
from .common.utils import configure_logging
from .fixtures import available_providers, fixture_file
from .mock.backend import MockBackend
from .scenarios import ScenarioFile
from .server import create_mock_server


def cmd_serve(args) -> int:
    """
    Start the mock server.

    Args:
        args: Parsed command-line arguments
    """
    if not args.files and not args.fixtures:
        print("❌ Nothing to serve: pass scenario files and/or --fixtures")
        return 1

    configure_logging(args.log_level)

    try:
        server = create_mock_server(
            scenario_files=args.files,
            fixtures=args.fixtures,
            activate=args.activate,
            host=args.host,
            port=args.port,
            log_level=args.log_level,
            backend_config=MockBackendConfig(honor_delays=not args.no_delays, log_level=args.log_level)
        )
    except (MockBackendError, OSError) as e:
        print(f"❌ Failed to create mock server: {e}")
        return 1

    print(f"🏦 BankMock Server")
    print(f"   Scenarios: {len(server.backend.list_scenarios())}")
    print(f"   Active: {server.backend.active_scenario() or '(none)'}")
    print()

    try:
        server.start()
    except KeyboardInterrupt:
        print("\n\n👋 Mock server stopped")

    return 0


def cmd_validate(args) -> int:
    """
    Load scenario files into a scratch backend and report problems.

    Args:
        args: Parsed command-line arguments

    Returns:
        0 if every file loaded cleanly, 1 otherwise
    """
    failures = 0

    for path in args.files:
        backend = MockBackend(config=MockBackendConfig(honor_delays=False))
        try:
            scenario_file = ScenarioFile.from_yaml(path)
            names = scenario_file.load_into(backend)
        except (MockBackendError, OSError) as e:
            failures += 1
            print(f"❌ {path}: {e}")
            continue

        mocks = sum(len(spec.mocks) for spec in scenario_file.scenarios)
        print(f"✅ {path}: {len(names)} scenarios, {mocks} mocks")

    if failures:
        print(f"\n{failures} of {len(args.files)} files failed validation")
        return 1

    return 0


def cmd_fixtures(args) -> int:
    """List bundled provider fixtures and their scenarios."""
    for provider in available_providers():
        scenarios = [spec.scenario.name for spec in fixture_file(provider).scenarios]
        print(f"  • {provider}: {', '.join(scenarios)}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='bankmock',
        description="BankMock - scenario-driven mock server for banking provider APIs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Serve a scenario file
  %(prog)s serve scenarios/plaid.yaml --port 8080

  # Serve bundled fixtures for two providers
  %(prog)s serve --fixtures plaid teller --activate teller_happy_path

  # Validate scenario files
  %(prog)s validate scenarios/*.yaml
        """
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # --- SERVE command ---
    serve_parser = subparsers.add_parser('serve', help='Start the mock HTTP server')
    serve_parser.add_argument('files', nargs='*', help='YAML scenario files')
    serve_parser.add_argument('--activate', help='Scenario to activate (overrides the files)')
    serve_parser.add_argument('--fixtures', nargs='+', choices=available_providers(),
                              help='Load bundled provider fixtures')
    serve_parser.add_argument('--host', default='127.0.0.1', help='Host to bind (default: 127.0.0.1)')
    serve_parser.add_argument('-p', '--port', type=int, default=8080, help='Port to bind (default: 8080)')
    serve_parser.add_argument('--no-delays', action='store_true', help='Ignore response delay_ms')
    serve_parser.add_argument('--log-level', default='info', choices=['debug', 'info', 'warning', 'error'],
                              help='Log level (default: info)')

    # --- VALIDATE command ---
    validate_parser = subparsers.add_parser('validate', help='Validate scenario files')
    validate_parser.add_argument('files', nargs='+', help='YAML scenario files')

    # --- FIXTURES command ---
    subparsers.add_parser('fixtures', help='List bundled provider fixtures')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Dispatch to command handler
    if args.command == 'serve':
        return cmd_serve(args)
    elif args.command == 'validate':
        return cmd_validate(args)
    elif args.command == 'fixtures':
        return cmd_fixtures(args)

    parser.print_help()
    return 1


if __name__ == '__main__':
    sys.exit(main())
