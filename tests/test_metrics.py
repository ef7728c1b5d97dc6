"""Tests for the CloudWatch metrics client."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from gdg_bot.services.metrics import NAMESPACE, MetricsClient


def _make_client(*, enabled: bool = True) -> MetricsClient:
    with (
        patch.dict("os.environ", {"METRICS_ENABLED": str(enabled).lower()}),
        patch.object(MetricsClient, "_start_flush_thread"),
    ):
        return MetricsClient()


def _dimensions(datum: dict) -> dict[str, str]:
    return {d["Name"]: d["Value"] for d in datum["Dimensions"]}


class TestMetricsRecording:
    def test_record_success_buffers_calls_and_latency(self):
        client = _make_client()
        client.record_success("google_calendar", "events.list", latency_ms=120.0)
        names = {m["MetricName"] for m in client._buffer}
        assert names == {"Calls", "Latency"}

    def test_record_failure_without_latency(self):
        client = _make_client()
        client.record_failure("gemini", "completion", error_type="ResourceExhausted")
        names = {m["MetricName"] for m in client._buffer}
        assert names == {"Calls", "Errors"}

    def test_record_failure_with_latency(self):
        client = _make_client()
        client.record_failure("twilio", "messages.create", error_type="TwilioRestException", latency_ms=80.0)
        assert len(client._buffer) == 3

    def test_dimensions(self):
        client = _make_client()
        client.record_failure("google_sheets", "values.get", error_type="GoogleAPIError")
        calls = next(m for m in client._buffer if m["MetricName"] == "Calls")
        errors = next(m for m in client._buffer if m["MetricName"] == "Errors")
        assert _dimensions(calls) == {"Service": "google_sheets", "Status": "failure"}
        assert _dimensions(errors) == {"Service": "google_sheets", "ErrorType": "GoogleAPIError"}


class TestTimed:
    def test_success_is_recorded(self):
        client = _make_client()
        with client.timed("google_calendar", "events.get"):
            pass
        latency = next(m for m in client._buffer if m["MetricName"] == "Latency")
        assert _dimensions(latency) == {"Service": "google_calendar", "Operation": "events.get"}

    def test_exception_is_recorded_and_reraised(self):
        client = _make_client()
        with pytest.raises(TimeoutError):
            with client.timed("gemini", "completion"):
                raise TimeoutError("slow")
        errors = next(m for m in client._buffer if m["MetricName"] == "Errors")
        assert _dimensions(errors)["ErrorType"] == "TimeoutError"


class TestMetricsFlush:
    def test_flush_clears_buffer(self):
        client = _make_client()
        client._cw_client = MagicMock()
        client.record_success("twilio", "messages.create", latency_ms=10.0)
        client.flush()
        assert client._buffer == []

    def test_flush_when_enabled_calls_put_metric_data(self):
        client = _make_client(enabled=True)
        mock_cw = MagicMock()
        client._cw_client = mock_cw

        client.record_success("twilio", "messages.create", latency_ms=10.0)
        assert client.flush() == 2

        kwargs = mock_cw.put_metric_data.call_args.kwargs
        assert kwargs["Namespace"] == NAMESPACE == "GDGWhatsAppBot"
        assert len(kwargs["MetricData"]) == 2

    def test_flush_survives_cloudwatch_errors(self):
        client = _make_client(enabled=True)
        client._cw_client = MagicMock()
        client._cw_client.put_metric_data.side_effect = RuntimeError("throttled")
        client.record_success("twilio", "messages.create", latency_ms=10.0)
        assert client.flush() == 0

    def test_flush_empty_buffer_returns_zero(self):
        assert _make_client(enabled=True).flush() == 0


class TestDisabledMetrics:
    def test_disabled_client_does_not_buffer(self):
        client = _make_client(enabled=False)
        for _ in range(10_000):
            with client.timed("gemini", "completion"):
                pass
        client.record_failure("twilio", "messages.create", error_type="TwilioRestException")
        assert client._buffer == []

    def test_disabled_client_still_reraises(self):
        client = _make_client(enabled=False)
        with pytest.raises(ValueError):
            with client.timed("google_sheets", "values.get"):
                raise ValueError("bad range")

    def test_flush_when_disabled_does_not_call_boto3(self):
        client = _make_client(enabled=False)
        client._cw_client = MagicMock()
        client.record_success("twilio", "messages.create", latency_ms=10.0)
        assert client.flush() == 0
        client._cw_client.put_metric_data.assert_not_called()
