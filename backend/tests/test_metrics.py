"""Tests for metrics helpers."""
from __future__ import annotations

from typing import Any, Dict

import pytest

from dayflow.observability import metrics
from dayflow.observability import tracing


class _DummyTrace:
    def __init__(self, name: str, metadata: Dict[str, Any]):
        self.name = name
        self.metadata = metadata
        self.ended = False

    def end(self) -> None:
        self.ended = True


class _DummyClient:
    def __init__(self):
        self.traces: list[_DummyTrace] = []

    def trace(self, name: str, metadata: Dict[str, Any] | None = None):
        trace = _DummyTrace(name, metadata or {})
        self.traces.append(trace)
        return trace


def test_log_metric_closes_trace(monkeypatch) -> None:
    dummy_client = _DummyClient()
    monkeypatch.setattr(tracing, "get_opik_client", lambda: dummy_client)

    metrics.log_metric("demo_metric", 42, metadata={"foo": "bar"})

    assert dummy_client.traces, "Metric call should record a trace"
    assert dummy_client.traces[0].name == "metric:demo_metric"
    assert dummy_client.traces[0].metadata["value"] == 42
    assert dummy_client.traces[0].metadata["foo"] == "bar"
    assert dummy_client.traces[0].ended is True


def test_log_metric_without_client_is_silent(monkeypatch) -> None:
    monkeypatch.setattr(tracing, "get_opik_client", lambda: None)

    metrics.log_metric("demo_metric", 1)


def test_timed_metric_marks_failures(monkeypatch) -> None:
    dummy_client = _DummyClient()
    monkeypatch.setattr(tracing, "get_opik_client", lambda: dummy_client)

    with pytest.raises(ValueError):
        with metrics.timed_metric("flow.duration_ms", {"flow": "demo"}):
            raise ValueError("nope")
    with metrics.timed_metric("flow.duration_ms", {"flow": "demo"}):
        pass

    failed, succeeded = dummy_client.traces
    assert failed.metadata["success"] is False
    assert succeeded.metadata["success"] is True
    assert succeeded.metadata["flow"] == "demo"
    assert succeeded.metadata["value"] >= 0
