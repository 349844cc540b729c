"""
Pytest configuration and fixtures for actioncore tests.
"""

from __future__ import annotations

import os
from typing import Generator
from unittest.mock import MagicMock, patch

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from actioncore.config import reset_config


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def clean_config() -> Generator[None, None, None]:
    """Reset the config singleton and strip ACTIONCORE_* env vars around each test."""
    saved = {k: v for k, v in os.environ.items() if k.startswith("ACTIONCORE_")}
    for key in saved:
        del os.environ[key]
    reset_config()

    yield

    reset_config()
    for key in [k for k in os.environ if k.startswith("ACTIONCORE_")]:
        del os.environ[key]
    os.environ.update(saved)


# ============================================================================
# OTel Fixtures
# ============================================================================


@pytest.fixture
def span_exporter() -> Generator[InMemorySpanExporter, None, None]:
    """Route actioncore spans to an in-memory exporter."""
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    tracer = provider.get_tracer("actioncore")

    with patch("actioncore.tracing.get_tracer", return_value=tracer):
        yield exporter

    provider.shutdown()


@pytest.fixture
def mock_span() -> MagicMock:
    """A mock OTel span that is recording."""
    span = MagicMock()
    span.is_recording.return_value = True
    return span


@pytest.fixture
def mock_otel(mock_span: MagicMock) -> Generator[MagicMock, None, None]:
    """Patch the current span lookup used by add_span_event."""
    with patch("actioncore.otel.otel_trace") as mock_trace:
        mock_trace.get_current_span.return_value = mock_span
        yield mock_span


# ============================================================================
# Reporter Fixtures
# ============================================================================


@pytest.fixture
def reporter() -> MagicMock:
    """Install a MagicMock as the global on_exception hook."""
    from actioncore.config import get_config

    hook = MagicMock(name="on_exception")

    def on_exception(error, action=None, context=None):
        hook(error, action=action, context=context)

    get_config(on_exception=on_exception)
    return hook
