# In src/alarm_notifier/schemas.py

import re
from datetime import datetime, timezone
from typing import Annotated, Any, Literal, TypedDict

import pydantic
from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

from .exceptions import SchemaKind, SchemaValidationError

# --- Static Type Hinting (for mypy and IDEs) ---


class SnsMessageDict(TypedDict):
    Message: str
    Subject: str | None
    TopicArn: str
    Type: str


class SnsEventRecordDict(TypedDict):
    """
    A TypedDict representing the structure of a single SNS event record
    as the Lambda runtime delivers it.
    """

    EventSource: str
    Sns: SnsMessageDict


class SnsEventDict(TypedDict):
    Records: list[SnsEventRecordDict]


class HandlerResult(TypedDict):
    statusCode: int
    body: str


# --- Runtime Validation (using Pydantic) ---

NonEmptyStr = Annotated[str, StringConstraints(min_length=1)]
AccountId = Annotated[str, StringConstraints(pattern=r"^[0-9]+$")]
StateValue = Literal["ALARM", "INSUFFICIENT_DATA", "OK"]

# CloudWatch writes offsets as +0000, which datetime.fromisoformat only
# accepts with a colon on older interpreters.
_COMPACT_OFFSET = re.compile(r"([+-]\d{2})(\d{2})$")


def parse_timestamp(value: str) -> datetime:
    """
    Parses an ISO-8601 date-time string into an aware datetime.
    Values without an offset are taken to be UTC.
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _COMPACT_OFFSET.sub(r"\1:\2", text)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class _Model(BaseModel):
    # Unrecognized fields are tolerated at every level.
    model_config = ConfigDict(extra="ignore", frozen=True)


class SnsMessageModel(_Model):
    message: NonEmptyStr = Field(..., alias="Message")
    subject: NonEmptyStr | None = Field(..., alias="Subject")
    topic_arn: NonEmptyStr = Field(..., alias="TopicArn")
    type: Literal["Notification"] = Field(..., alias="Type")


class SnsEventRecord(_Model):
    event_source: Literal["aws:sns"] = Field(..., alias="EventSource")
    sns: SnsMessageModel = Field(..., alias="Sns")


class SnsEvent(_Model):
    """
    Pydantic model for runtime parsing and validation of the SNS event
    delivered to the handler. Only the first record is ever consumed.
    """

    records: list[SnsEventRecord] = Field(..., alias="Records", min_length=1)


class AlarmState(_Model):
    reason: NonEmptyStr
    reason_data: NonEmptyStr = Field(..., alias="reasonData")
    timestamp: datetime
    value: StateValue

    @field_validator("timestamp", mode="before")
    @classmethod
    def validate_iso_timestamp(cls, value: Any) -> datetime:
        if not isinstance(value, str):
            raise ValueError("timestamp must be an ISO-8601 date-time string")
        try:
            return parse_timestamp(value)
        except ValueError as e:
            raise ValueError(f"'{value}' is not a valid ISO-8601 date-time") from e


class AlarmConfiguration(_Model):
    description: NonEmptyStr | None = Field(...)


class AlarmDetail(_Model):
    alarm_name: NonEmptyStr = Field(..., alias="alarmName")
    configuration: AlarmConfiguration
    previous_state: AlarmState = Field(..., alias="previousState")
    state: AlarmState


class AlarmStateChangeEvent(_Model):
    """A CloudWatch "Alarm State Change" event, unpacked from an SNS message."""

    account: AccountId
    detail: AlarmDetail
    detail_type: Literal["CloudWatch Alarm State Change"] = Field(
        ..., alias="detail-type"
    )
    source: Literal["aws.cloudwatch"]


# --- Validation Entry Points ---


def _describe_errors(error: pydantic.ValidationError) -> list[str]:
    """Flattens pydantic errors into 'dotted.location: message' strings."""
    details = []
    for e in error.errors():
        location = ".".join(str(part) for part in e["loc"]) or "<root>"
        details.append(f"{location}: {e['msg']}")
    return details


def validate_sns_event(event: Any) -> SnsEvent:
    try:
        return SnsEvent.model_validate(event)
    except pydantic.ValidationError as e:
        raise SchemaValidationError(SchemaKind.SNS_EVENT, _describe_errors(e)) from e


def validate_alarm_event(payload: Any) -> AlarmStateChangeEvent:
    try:
        return AlarmStateChangeEvent.model_validate(payload)
    except pydantic.ValidationError as e:
        raise SchemaValidationError(SchemaKind.ALARM_EVENT, _describe_errors(e)) from e
