"""Tests for CORS middleware configuration."""

from __future__ import annotations

from typing import Any

import pytest
from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from llm_failover.api.middleware.cors import configure_cors, resolve_cors_origins


def _cors_kwargs(app: FastAPI) -> dict[str, Any]:
    for middleware in app.user_middleware:
        if middleware.cls is CORSMiddleware:
            return dict(middleware.kwargs)
    raise AssertionError("CORSMiddleware not installed")


class TestResolveCorsOrigins:
    def test_unset_gives_localhost_defaults(self) -> None:
        origins = resolve_cors_origins(None)
        assert "http://localhost:3000" in origins
        assert "http://127.0.0.1:5173" in origins

    def test_wildcard(self) -> None:
        assert resolve_cors_origins("*") == ["*"]

    def test_comma_separated(self) -> None:
        assert resolve_cors_origins(" https://a.example , ,https://b.example") == [
            "https://a.example",
            "https://b.example",
        ]


class TestConfigureCors:
    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LLM_FAILOVER_CORS_ORIGINS", "https://admin.example")
        app = FastAPI()

        configure_cors(app)

        kwargs = _cors_kwargs(app)
        assert kwargs["allow_origins"] == ["https://admin.example"]
        assert kwargs["allow_methods"] == ["GET", "POST", "OPTIONS"]

    def test_defaults_when_unset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("LLM_FAILOVER_CORS_ORIGINS", raising=False)
        app = FastAPI()

        configure_cors(app)

        assert "http://localhost:3000" in _cors_kwargs(app)["allow_origins"]
