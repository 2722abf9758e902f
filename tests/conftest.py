"""
Shared test fixtures and helpers for the faultline test suite.
"""

import logging
import os

import pytest

from faultline.debug import set_execution_context
from faultline.faults import BufferedRuntime, FaultEngine
from faultline.renderers import ErrorRenderer


# ============================================================================
# Renderers
# ============================================================================


class FailingRenderer(ErrorRenderer):
    """Renderer whose every call fails."""

    def render(self, exception):
        raise RuntimeError("renderer exploded")


class RecordingRenderer(ErrorRenderer):
    """Renderer that remembers what it was asked to render."""

    def __init__(self, debug=False):
        super().__init__(debug)
        self.rendered = []

    def render(self, exception):
        self.rendered.append(exception)
        return f"[{exception.class_name}] {exception.message}"


# ============================================================================
# Runtime Helpers
# ============================================================================


class FailingSinkRuntime(BufferedRuntime):
    """Buffered runtime whose output sink rejects every write."""

    def write(self, text):
        raise OSError("sink closed")


def raise_and_catch(exc):
    """Raise ``exc`` so it carries a traceback, and return it."""
    try:
        raise exc
    except BaseException as caught:
        return caught


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def _reset_execution_context():
    yield
    set_execution_context("cli")


@pytest.fixture(autouse=True)
def _clean_faultline_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("FAULTLINE_"):
            monkeypatch.delenv(key)


@pytest.fixture
def runtime():
    """Non-interactive runtime capturing status, headers and output."""
    return BufferedRuntime()


@pytest.fixture
def cli_runtime():
    """Terminal-like runtime capturing output."""
    return BufferedRuntime(cli=True)


@pytest.fixture
def engine(runtime):
    """FaultEngine bound to a BufferedRuntime, never registered."""
    eng = FaultEngine(runtime=runtime)
    yield eng
    eng.unregister()


@pytest.fixture
def fault_logs(caplog):
    """Capture every record sent to the fault logger."""
    caplog.set_level(logging.DEBUG, logger="faultline.faults")
    return caplog


@pytest.fixture
def failing_renderer():
    return FailingRenderer()


@pytest.fixture
def recording_renderer():
    return RecordingRenderer()


@pytest.fixture
def failing_sink_runtime():
    return FailingSinkRuntime()


@pytest.fixture
def raised():
    """Helper turning an exception instance into a raised-and-caught one."""
    return raise_and_catch
