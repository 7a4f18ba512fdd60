# src/alarm_notifier/exceptions.py

"""
Shared custom exceptions for the Alarm Notifier service.

Exception Hierarchy:
- AlarmNotifierError (base)
  - ConfigurationError
  - SchemaValidationError
  - PublishError
"""

from enum import Enum
from typing import Any, Dict, List, Optional


class AlarmNotifierError(Exception):
    """Base exception for all Alarm Notifier service errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = dict(context) if context else {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
        }


class ConfigurationError(AlarmNotifierError):
    """Raised when a required environment value is missing or invalid."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, error_code="CONFIGURATION_ERROR", **kwargs)


class SchemaKind(str, Enum):
    """The two document shapes checked on every invocation."""

    SNS_EVENT = "SNS event"
    ALARM_EVENT = "SNS message"


class SchemaValidationError(AlarmNotifierError):
    """Raised when the SNS event or the alarm payload inside it is malformed."""

    def __init__(self, schema_kind: SchemaKind, details: List[str], **kwargs):
        self.schema_kind = schema_kind
        self.details = list(details)
        message = f"{schema_kind.value} failed schema validation: " + "; ".join(
            self.details
        )
        context = {"schema_kind": schema_kind.name, "details": self.details}
        super().__init__(
            message, error_code="SCHEMA_VALIDATION_ERROR", context=context, **kwargs
        )


class PublishError(AlarmNotifierError):
    """Raised when an SNS publish call fails."""

    def __init__(self, topic_arn: str, reason: str, **kwargs):
        self.topic_arn = topic_arn
        message = f"Failed to publish to {topic_arn}: {reason}"
        # Start with provided context, then add our default context
        context = {}
        if "context" in kwargs:
            context.update(kwargs.pop("context"))
        context.update({"topic_arn": topic_arn})
        super().__init__(message, error_code="PUBLISH_ERROR", context=context, **kwargs)


# === Utility Functions ===


def get_error_context(error: Exception) -> Dict[str, Any]:
    """Extract error context for logging."""
    if isinstance(error, AlarmNotifierError):
        return error.to_dict()
    return {
        "error_type": error.__class__.__name__,
        "message": str(error),
    }
