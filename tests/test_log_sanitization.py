"""
Verifies that credentials are redacted from log events.
"""

from voicerelay.logging_config import add_correlation_id, sanitize_secrets, set_correlation_id


class TestLogSanitization:
    """Tests for secret sanitization processor."""

    def test_redact_api_key(self):
        """Should redact api_key field."""
        event_dict = {
            'event': 'Testing',
            'api_key': 'sk-1234567890abcdef',
        }
        result = sanitize_secrets(None, None, event_dict)

        assert result['api_key'] == 'sk***REDACTED***'
        assert result['event'] == 'Testing'

    def test_redact_query_keys(self):
        """NewsData and OpenWeatherMap take their keys as query parameters."""
        event_dict = {
            'params': {'q': 'Cebu', 'appid': 'owm-secret-key'},
            'apikey': 'pub_12345',
        }
        result = sanitize_secrets(None, None, event_dict)

        assert result['params']['q'] == 'Cebu'
        assert 'REDACTED' in result['params']['appid']
        assert 'REDACTED' in result['apikey']

    def test_redact_authorization_header(self):
        event_dict = {'headers': {'Authorization': 'Bearer sk-1234567890abcdef'}}
        result = sanitize_secrets(None, None, event_dict)

        assert result['headers']['Authorization'].startswith('Be***REDACTED***')

    def test_case_and_separator_insensitive(self):
        event_dict = {
            'API_KEY': 'sk-test-key',
            'client-secret': 'secret123',
            'Password': 'secret',
        }
        result = sanitize_secrets(None, None, event_dict)

        assert all('REDACTED' in value for value in result.values())

    def test_list_of_dicts(self):
        event_dict = {'providers': [{'name': 'openai', 'api_key': 'sk-abcdef'}]}
        result = sanitize_secrets(None, None, event_dict)

        assert result['providers'][0]['name'] == 'openai'
        assert 'REDACTED' in result['providers'][0]['api_key']

    def test_preserve_non_sensitive_data(self):
        """Should not redact relay fields that merely look similar."""
        event_dict = {
            'session_id': 'a1b2c3',
            'transcript_preview': 'what time is it',
            'max_tokens': 60,
            'bytes_sent': 4096,
        }
        result = sanitize_secrets(None, None, event_dict)

        assert result == event_dict

    def test_none_and_empty_preserved(self):
        result = sanitize_secrets(None, None, {'api_key': None, 'token': ''})

        assert result['api_key'] is None
        assert result['token'] == ''


class TestCorrelationId:
    def test_bound_to_events(self):
        set_correlation_id('session-123')
        result = add_correlation_id(None, None, {'event': 'x'})

        assert result['correlation_id'] == 'session-123'

    def test_generated_when_missing(self):
        value = set_correlation_id()
        assert value and len(value) == 32
