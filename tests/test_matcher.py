"""
Tests for BankMock Request Matcher

Tests the pure matching predicates including:
- URL to path extraction
- Path templates with {name} and {*} placeholders
- JSON subset body matching and regex fallback
- Header subset matching
- Registration-time validation
"""

import pytest

from bankmock.common.errors import ConfigurationError
from bankmock.mock.matcher import (
    compile_path_pattern,
    extract_path,
    json_matches,
    matches_body,
    matches_headers,
    matches_path,
    parse_headers_pattern,
    validate_mock_request,
    validate_mock_response,
)


class TestExtractPath:
    """Test URL reduction to a path."""

    @pytest.mark.parametrize('url,expected', [
        ('https://sandbox.plaid.com/accounts/get', '/accounts/get'),
        ('http://localhost:8080/data/v1/accounts', '/data/v1/accounts'),
        ('https://api.teller.io/accounts?count=10', '/accounts'),
        ('https://api.teller.io/accounts#top', '/accounts'),
        ('/accounts/42', '/accounts/42'),
        ('https://api.teller.io', '/'),
        ('HTTPS://API.TELLER.IO/accounts', '/accounts'),
    ])
    def test_extract_path(self, url, expected):
        assert extract_path(url) == expected


class TestPathMatching:
    """Test path template matching."""

    def test_literal_path(self):
        assert matches_path('/accounts', 'https://api.example.com/accounts')
        assert not matches_path('/accounts', 'https://api.example.com/accounts/1')

    def test_named_placeholder_matches_one_segment(self):
        assert matches_path('/accounts/{id}', 'https://api.example.com/accounts/42')
        assert not matches_path('/accounts/{id}', 'https://api.example.com/accounts/42/balances')
        assert not matches_path('/accounts/{id}', 'https://api.example.com/accounts/')

    def test_multiple_placeholders(self):
        pattern = '/users/{user_guid}/members/{member_guid}'
        assert matches_path(pattern, '/users/USR-1/members/MBR-2')
        assert not matches_path(pattern, '/users/USR-1/members/MBR-2/status')

    def test_wildcard_placeholder_spans_segments(self):
        assert matches_path('/accounts/{*}', '/accounts/42/transactions/7')
        assert matches_path('/accounts/{*}', '/accounts/')

    def test_query_string_ignored(self):
        assert matches_path('/accounts/{id}/transactions', '/accounts/42/transactions?from=2024-01-01')

    def test_pattern_is_anchored(self):
        assert not matches_path('/accounts', '/v1/accounts')
        assert not matches_path('/accounts', '/accounts-archive')

    def test_regex_text_kept(self):
        assert matches_path('/accounts/[0-9]+', '/accounts/123')
        assert not matches_path('/accounts/[0-9]+', '/accounts/abc')

    def test_compiled_pattern(self):
        regex = compile_path_pattern('/accounts/{id}/{*}')
        assert regex.pattern == '^/accounts/[^/]+/.*$'

    def test_invalid_pattern_raises_configuration_error(self):
        with pytest.raises(ConfigurationError):
            matches_path('/accounts/(', '/accounts/1')


class TestJsonMatches:
    """Test recursive JSON subset comparison."""

    def test_object_subset(self):
        assert json_matches({'a': 1}, {'a': 1, 'b': 2})
        assert not json_matches({'a': 1, 'c': 3}, {'a': 1, 'b': 2})

    def test_nested_objects(self):
        pattern = {'options': {'count': 10}}
        assert json_matches(pattern, {'access_token': 't', 'options': {'count': 10, 'offset': 0}})
        assert not json_matches(pattern, {'options': {'count': 11}})

    def test_arrays_positional_and_same_length(self):
        assert json_matches([1, '*'], [1, 'x'])
        assert not json_matches([1, 2], [1, 2, 3])
        assert not json_matches([1, 2], [2, 1])

    def test_wildcard_matches_anything(self):
        assert json_matches({'token': '*'}, {'token': {'nested': True}})
        assert json_matches('*', None)

    def test_wildcard_does_not_make_key_optional(self):
        assert not json_matches({'token': '*'}, {})

    def test_scalars(self):
        assert json_matches(1.5, 1.5)
        assert json_matches(None, None)
        assert not json_matches('1', 1)

    def test_booleans_never_equal_numbers(self):
        assert not json_matches(True, 1)
        assert not json_matches(0, False)
        assert json_matches(True, True)

    def test_type_mismatch(self):
        assert not json_matches({'a': 1}, [1])
        assert not json_matches([1], {'a': 1})
        assert not json_matches(1, [1])


class TestBodyMatching:
    """Test body pattern matching."""

    def test_no_pattern_matches_anything(self):
        assert matches_body(None, None)
        assert matches_body(None, 'anything')

    def test_wildcard_matches_missing_body(self):
        assert matches_body('*', None)

    def test_pattern_against_missing_body(self):
        assert not matches_body('{"a": 1}', None)
        assert not matches_body('debit', None)

    def test_json_subset(self):
        assert matches_body('{"type": "debit"}', '{"type": "debit", "amount": 10}')
        assert not matches_body('{"type": "debit"}', '{"type": "credit"}')

    def test_json_pattern_with_non_json_body_falls_back_to_regex(self):
        assert matches_body('"debit"', 'type="debit"')
        assert not matches_body('"debit"', 'type=credit')

    def test_json_pattern_used_as_text_when_body_is_not_json(self):
        assert not matches_body('{"a": 1}', 'plain text')
        assert matches_body('{"a": 1}', 'prefix {"a": 1} suffix')

    def test_json_pattern_that_is_invalid_regex_raises_for_non_json_body(self):
        with pytest.raises(ConfigurationError):
            matches_body('{"a": "(x"}', 'plain text body')

    def test_json_pattern_that_is_invalid_regex_still_matches_json_body(self):
        assert matches_body('{"a": "(x"}', '{"a": "(x", "b": 2}')

    def test_regex_pattern(self):
        assert matches_body('access_token=\\w+', 'access_token=abc&x=1')
        assert not matches_body('^client_id=', 'grant_type=x&client_id=y')

    def test_invalid_regex_raises(self):
        with pytest.raises(ConfigurationError):
            matches_body('access_token=(', 'access_token=abc')


class TestHeaderMatching:
    """Test header subset matching."""

    def test_no_pattern(self):
        assert matches_headers(None, {})

    def test_names_case_insensitive(self):
        pattern = '{"Authorization": "Bearer t"}'
        assert matches_headers(pattern, {'authorization': 'Bearer t'})
        assert matches_headers(pattern, {'AUTHORIZATION': 'Bearer t', 'Accept': 'x'})

    def test_values_exact(self):
        assert not matches_headers('{"Authorization": "Bearer t"}', {'Authorization': 'bearer t'})

    def test_missing_header(self):
        assert not matches_headers('{"X-Api-Key": "*"}', {'Accept': 'application/json'})

    def test_wildcard_value(self):
        assert matches_headers('{"X-Api-Key": "*"}', {'x-api-key': 'secret'})

    def test_invalid_pattern_raises(self):
        with pytest.raises(ConfigurationError):
            matches_headers('not json', {})

    def test_parse_headers_pattern_lowercases(self):
        assert parse_headers_pattern('{"Content-Type": "application/json"}') == {
            'content-type': 'application/json'
        }

    @pytest.mark.parametrize('pattern', ['[]', '"x"', '{"a": 1}'])
    def test_parse_headers_pattern_rejects_non_string_maps(self, pattern):
        with pytest.raises(ConfigurationError):
            parse_headers_pattern(pattern)


class TestValidateMockRequest:
    """Test registration-time validation."""

    def test_valid_patterns(self):
        validate_mock_request('/accounts/{id}', '{"a": "*"}', '{"Accept": "*"}')
        validate_mock_request('/accounts/{*}', '*')
        validate_mock_request('/accounts', 'grant_type=\\w+')

    def test_invalid_path(self):
        with pytest.raises(ConfigurationError):
            validate_mock_request('/accounts/(')

    def test_invalid_body_regex(self):
        with pytest.raises(ConfigurationError):
            validate_mock_request('/accounts', 'token=(')

    def test_invalid_headers(self):
        with pytest.raises(ConfigurationError):
            validate_mock_request('/accounts', headers_pattern='{bad')


class TestValidateMockResponse:
    """Test canned response validation."""

    def test_valid_responses(self):
        validate_mock_response(200)
        validate_mock_response(599, 0)
        validate_mock_response(100, 1500)

    @pytest.mark.parametrize("status_code", [42, 600, '200', True, None])
    def test_invalid_status_code(self, status_code):
        with pytest.raises(ConfigurationError):
            validate_mock_response(status_code)

    @pytest.mark.parametrize("delay_ms", [-5, -1, '100', 1.5, True])
    def test_invalid_delay(self, delay_ms):
        with pytest.raises(ConfigurationError):
            validate_mock_response(200, delay_ms)
