"""Unit tests for the error taxonomy and failure classification."""

from __future__ import annotations

import httpx
import pytest

from llm_failover.circuit_breaker import CircuitOpenError
from llm_failover.circuit_breaker_config import CircuitState
from llm_failover.errors import (
    AllProvidersExhaustedError,
    ConfigurationError,
    FailoverError,
    FailureClassification,
    FatalProviderError,
    NoProvidersConfiguredError,
    TransientProviderError,
    UnknownProviderError,
    as_provider_error,
    classify_error,
    classify_status_code,
)
from llm_failover.models import ProviderAttempt

TRANSIENT = FailureClassification.TRANSIENT
FATAL = FailureClassification.FATAL


class _StatusError(Exception):
    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class TestHierarchy:
    def test_root_class(self) -> None:
        for exc in (
            TransientProviderError("x"),
            FatalProviderError("x"),
            NoProvidersConfiguredError(),
            UnknownProviderError("x"),
            AllProvidersExhaustedError([]),
            CircuitOpenError("x", 0),
        ):
            assert isinstance(exc, FailoverError)

    def test_configuration_errors(self) -> None:
        assert isinstance(NoProvidersConfiguredError(), ConfigurationError)
        assert isinstance(UnknownProviderError("x"), ConfigurationError)
        assert isinstance(UnknownProviderError("x"), LookupError)

    def test_exhausted_error_summarises_attempts(self) -> None:
        error = AllProvidersExhaustedError(
            [
                ProviderAttempt("openai", CircuitOpenError("openai", 30_000), skipped=True),
                ProviderAttempt("anthropic", TransientProviderError("503"), attempts=3),
            ]
        )
        assert error.provider_ids == ["openai", "anthropic"]
        assert "openai: Circuit openai is open. Retry in 30.0s" in str(error)
        assert "anthropic: 503" in str(error)

    def test_circuit_open_error_names_half_open_state(self) -> None:
        error = CircuitOpenError("openai", 0, CircuitState.HALF_OPEN)
        assert error.state is CircuitState.HALF_OPEN
        assert str(error) == "Circuit openai is half_open with a trial call in flight"
        assert CircuitOpenError("openai", 0).state is CircuitState.OPEN

    def test_attempt_to_dict(self) -> None:
        attempt = ProviderAttempt("openai", FatalProviderError("bad key"), attempts=1)
        assert attempt.to_dict() == {
            "provider_id": "openai",
            "error": "bad key",
            "error_type": "FatalProviderError",
            "attempts": 1,
            "skipped": False,
        }


class TestClassification:
    def test_explicit_errors_win_over_message(self) -> None:
        assert classify_error(TransientProviderError("invalid api key")) is TRANSIENT
        assert classify_error(FatalProviderError("timeout")) is FATAL

    @pytest.mark.parametrize(
        "exc",
        [
            TimeoutError(),
            ConnectionResetError(),
            httpx.ConnectTimeout("slow"),
            httpx.ReadError("reset"),
        ],
    )
    def test_transport_errors_are_transient(self, exc: Exception) -> None:
        assert classify_error(exc) is TRANSIENT

    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            (408, TRANSIENT),
            (409, TRANSIENT),
            (425, TRANSIENT),
            (429, TRANSIENT),
            (500, TRANSIENT),
            (503, TRANSIENT),
            (529, TRANSIENT),
            (400, FATAL),
            (401, FATAL),
            (403, FATAL),
            (404, FATAL),
            (422, FATAL),
        ],
    )
    def test_status_codes(self, status: int, expected: FailureClassification) -> None:
        assert classify_status_code(status) is expected
        assert classify_error(_StatusError("x", status)) is expected

    def test_status_from_httpx_response(self) -> None:
        request = httpx.Request("POST", "https://api.example.com/v1/chat")
        response = httpx.Response(429, request=request)
        exc = httpx.HTTPStatusError("429", request=request, response=response)
        assert classify_error(exc) is TRANSIENT

    @pytest.mark.parametrize(
        "message",
        ["Rate limit reached", "The server is overloaded", "Service Unavailable", "quota"],
    )
    def test_transient_messages(self, message: str) -> None:
        assert classify_error(RuntimeError(message)) is TRANSIENT

    @pytest.mark.parametrize(
        "message",
        ["Invalid API key", "Unauthorized", "content policy violation", "model not found"],
    )
    def test_fatal_messages(self, message: str) -> None:
        assert classify_error(RuntimeError(message)) is FATAL

    def test_fatal_keywords_checked_first(self) -> None:
        assert classify_error(RuntimeError("authentication timeout")) is FATAL

    def test_unknown_defaults_to_transient(self) -> None:
        assert classify_error(RuntimeError("something odd")) is TRANSIENT


class TestAsProviderError:
    def test_wraps_with_provider_id(self) -> None:
        cause = RuntimeError("Unauthorized")
        error = as_provider_error(cause, "openai")
        assert isinstance(error, FatalProviderError)
        assert error.provider_id == "openai"
        assert error.cause is cause

    def test_passes_provider_errors_through(self) -> None:
        original = TransientProviderError("503")
        assert as_provider_error(original, "anthropic") is original
        assert original.provider_id == "anthropic"
