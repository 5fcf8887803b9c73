"""
Name: Gemini Build Services Tests

Responsibilities:
  - Retry classification (transient vs permanent, quota not retried)
  - Translator/crafter error mapping with a mocked genai client
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from hideout_api.crosscutting.exceptions import (
    CraftDomainMismatchError,
    CraftError,
    CraftQuotaExceededError,
    TranslationError,
)
from hideout_api.infrastructure.services import GeminiBuildCrafter, GeminiBuildTranslator
from hideout_api.infrastructure.services.retry import (
    create_retry_decorator,
    get_http_status_code,
    is_transient_error,
)

pytestmark = pytest.mark.unit


class ApiError(Exception):
    def __init__(self, code: int, message: str = ""):
        super().__init__(message or f"HTTP {code}")
        self.code = code


def _client(*outcomes) -> MagicMock:
    client = MagicMock()
    client.models.generate_content.side_effect = list(outcomes)
    return client


def _reply(text: str) -> SimpleNamespace:
    return SimpleNamespace(text=text)


def _no_wait():
    return create_retry_decorator(max_attempts=3, base_delay=0, max_delay=0.01)


class TestRetryClassification:
    @pytest.mark.parametrize("code", [408, 500, 503])
    def test_server_errors_are_transient(self, code):
        assert is_transient_error(ApiError(code))

    @pytest.mark.parametrize("code", [400, 401, 404, 429])
    def test_client_errors_and_quota_are_not(self, code):
        assert not is_transient_error(ApiError(code))

    def test_network_errors_are_transient(self):
        assert is_transient_error(TimeoutError())
        assert is_transient_error(ConnectionError())

    def test_status_from_response(self):
        exc = Exception()
        exc.response = SimpleNamespace(status_code=502)

        assert get_http_status_code(exc) == 502

    def test_invalid_attempts(self):
        with pytest.raises(ValueError):
            create_retry_decorator(max_attempts=0)


class TestTranslator:
    def test_translates_and_sets_language(self):
        client = _client(_reply('{"build_title": "Flecha"}'))
        translator = GeminiBuildTranslator("", client=client, retry_decorator=_no_wait())

        result = translator.translate_build({"build_title": "Arrow"}, "es")

        assert result == {"build_title": "Flecha", "language": "es"}
        assert "Arrow" in client.models.generate_content.call_args.kwargs["contents"]

    def test_transient_error_is_retried(self):
        client = _client(ApiError(503), _reply('{"build_title": "Pfeil"}'))
        translator = GeminiBuildTranslator("", client=client, retry_decorator=_no_wait())

        assert translator.translate_build({}, "de")["build_title"] == "Pfeil"
        assert client.models.generate_content.call_count == 2

    def test_permanent_failure_is_translation_error(self):
        client = _client(ApiError(400))
        translator = GeminiBuildTranslator("", client=client, retry_decorator=_no_wait())

        with pytest.raises(TranslationError):
            translator.translate_build({}, "es")
        assert client.models.generate_content.call_count == 1

    def test_non_object_reply(self):
        translator = GeminiBuildTranslator(
            "", client=_client(_reply("[]")), retry_decorator=_no_wait()
        )

        with pytest.raises(TranslationError):
            translator.translate_build({}, "es")

    def test_requires_api_key_without_client(self):
        with pytest.raises(CraftError):
            GeminiBuildTranslator("  ")


class TestCrafter:
    def test_quota_maps_to_retry_after(self):
        client = _client(ApiError(429, "Quota exceeded. retryDelay: 7.2s"))
        crafter = GeminiBuildCrafter("", client=client, retry_decorator=_no_wait())

        with pytest.raises(CraftQuotaExceededError) as exc:
            crafter.craft_build([], {})

        assert exc.value.retry_after == 8
        assert client.models.generate_content.call_count == 1

    def test_domain_mismatch(self):
        client = _client(_reply('{"error": "domain_mismatch", "details": ["pizza"]}'))
        crafter = GeminiBuildCrafter("", client=client, retry_decorator=_no_wait())

        with pytest.raises(CraftDomainMismatchError) as exc:
            crafter.craft_build([{"name": "Exile"}], {"requested_archetype": "mapper"})

        assert exc.value.details == ["pizza"]

    def test_crafted_payload_is_returned(self):
        client = _client(_reply('{"build_title": "Boneshatter"}'))
        crafter = GeminiBuildCrafter("", client=client, retry_decorator=_no_wait())

        assert crafter.craft_build([], {}) == {"build_title": "Boneshatter"}
