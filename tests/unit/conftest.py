"""
Shared fixtures for unit tests.
"""

from __future__ import annotations

import json
import os
import types
import uuid
from typing import Any, Callable

import pytest

# The handler module builds its Powertools objects at import time, so the
# environment they read must exist before test modules are collected.
os.environ.setdefault("POWERTOOLS_SERVICE_NAME", "alarm-notifier-test")
os.environ.setdefault("POWERTOOLS_TRACE_DISABLED", "true")
os.environ.setdefault("POWERTOOLS_DEV", "true")  # Pretty print logs
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

from alarm_notifier.clients import get_sns_client  # noqa: E402
from alarm_notifier.config import PACKAGE_NAME, AppConfig, BuildInfo, get_config  # noqa: E402

ALARM_TOPIC_ARN = "arn:aws:sns:us-east-1:123456789012:alarm-notifications"
ERROR_TOPIC_ARN = "arn:aws:sns:us-east-1:123456789012:alarm-notifier-errors"

REASON = (
    "Threshold Crossed: 1 out of the last 1 datapoints [12.0 (01/01/23 00:00:00)] "
    "was greater than or equal to the threshold (10.0) "
    "(minimum 1 datapoint for OK -> ALARM transition)."
)


@pytest.fixture(autouse=True)
def clear_caches():
    """Each test gets a fresh configuration and SNS client."""
    get_config.cache_clear()
    get_sns_client.cache_clear()
    yield
    get_config.cache_clear()
    get_sns_client.cache_clear()


@pytest.fixture
def app_config() -> AppConfig:
    """A fully populated configuration, independent of the environment."""
    return AppConfig(
        alarm_topic_arn=ALARM_TOPIC_ARN,
        notify_on_error=True,
        error_topic_arn=ERROR_TOPIC_ARN,
        timezones=("UTC",),
        maintainer="@oncall",
        call_to_action="Please put eyes on this message if you are investigating this.",
        log_level="INFO",
        function_name="alarm-notifier-test",
        region="us-east-1",
        log_group_name="/aws/lambda/alarm-notifier-test",
        log_stream_name="2023/01/01/[$LATEST]0123456789abcdef",
        build=BuildInfo(
            name=PACKAGE_NAME,
            homepage="https://git.example.com/ops/alarm-notifier",
            tag="",
            commit="0123456789abcdef0123456789abcdef01234567",
            short_commit="0123456",
            branch="main",
        ),
    )


@pytest.fixture
def lambda_environment(monkeypatch):
    """Sets a valid handler environment for a single test."""
    monkeypatch.setenv("AWS_SNS_TOPIC_ARN", ALARM_TOPIC_ARN)
    monkeypatch.setenv("AWS_SNS_TOPIC_ARN_ERROR", ERROR_TOPIC_ARN)
    monkeypatch.setenv("TIMEZONE", '["UTC", "America/New_York"]')
    monkeypatch.setenv("MAINTAINER", "@oncall")
    monkeypatch.setenv("CALL_TO_ACTION_ALARM", "Please investigate.")
    monkeypatch.setenv("AWS_LAMBDA_FUNCTION_NAME", "alarm-notifier-test")
    monkeypatch.setenv("AWS_REGION", "us-east-1")
    monkeypatch.setenv("AWS_LAMBDA_LOG_GROUP_NAME", "/aws/lambda/alarm-notifier-test")
    monkeypatch.setenv("AWS_LAMBDA_LOG_STREAM_NAME", "2023/01/01/[$LATEST]abc")
    monkeypatch.delenv("NOTIFY_ON_ERROR", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)


# ---------- Minimal, realistic dummy events ---------- #
def _alarm_state(value: str, reason: str, timestamp: str) -> dict:
    return {
        "reason": reason,
        "reasonData": json.dumps({"version": "1.0", "evaluatedDatapoints": []}),
        "timestamp": timestamp,
        "value": value,
    }


@pytest.fixture
def make_alarm_event() -> Callable[..., dict]:
    """Builds the CloudWatch "Alarm State Change" event carried in the SNS message."""

    def _make(
        state: str = "ALARM",
        alarm_name: str = "API-5xx-Rate",
        description: str | None = "5xx rate exceeded threshold",
        reason: str = REASON,
        timestamp: str = "2023-01-01T00:00:00.000Z",
    ) -> dict:
        previous = "OK" if state != "OK" else "ALARM"
        return {
            "version": "0",
            "id": str(uuid.uuid4()),
            "detail-type": "CloudWatch Alarm State Change",
            "source": "aws.cloudwatch",
            "account": "123456789012",
            "time": timestamp,
            "region": "us-east-1",
            "resources": [
                f"arn:aws:cloudwatch:us-east-1:123456789012:alarm:{alarm_name}"
            ],
            "detail": {
                "alarmName": alarm_name,
                "configuration": {"description": description, "metrics": []},
                "previousState": _alarm_state(
                    previous, "Threshold Crossed: back to normal.", timestamp
                ),
                "state": _alarm_state(state, reason, timestamp),
            },
        }

    return _make


@pytest.fixture
def make_sns_event() -> Callable[[Any], dict]:
    """Wraps a message (dict or raw string) in the SNS event the runtime delivers."""

    def _make(message: Any) -> dict:
        body = message if isinstance(message, str) else json.dumps(message)
        return {
            "Records": [
                {
                    "EventSource": "aws:sns",
                    "EventVersion": "1.0",
                    "EventSubscriptionArn": f"{ALARM_TOPIC_ARN}:{uuid.uuid4()}",
                    "Sns": {
                        "Type": "Notification",
                        "MessageId": str(uuid.uuid4()),
                        "TopicArn": "arn:aws:sns:us-east-1:123456789012:cloudwatch-alarms",
                        "Subject": None,
                        "Message": body,
                        "Timestamp": "2023-01-01T00:00:05.000Z",
                        "MessageAttributes": {},
                    },
                }
            ]
        }

    return _make


@pytest.fixture
def sns_event(make_sns_event, make_alarm_event) -> dict:
    """One SNS record that wraps a single ALARM state change."""
    return make_sns_event(make_alarm_event())


@pytest.fixture
def lambda_context():
    """A *very* small stand-in for the LambdaContext object."""
    return types.SimpleNamespace(
        function_name="alarm-notifier-test",
        memory_limit_in_mb=128,
        aws_request_id="req-" + uuid.uuid4().hex,
        invoked_function_arn="arn:aws:lambda:us-east-1:123456789012:function:alarm-notifier-test",
        get_remaining_time_in_millis=lambda: 30000,
    )
