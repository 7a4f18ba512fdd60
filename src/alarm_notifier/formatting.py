"""
Builds the human-readable chat notifications published by the service.

Both entry points are pure: everything they need arrives as arguments, so
they can be exercised without an environment or network access.

- `notification_from_alarm_event` renders a CloudWatch alarm state change.
- `notification_from_error` renders a runtime failure of this function.
"""

import re
import traceback
from datetime import datetime
from typing import NamedTuple
from zoneinfo import ZoneInfo

from .config import AppConfig
from .schemas import AlarmStateChangeEvent

FENCE = "```"
CELEBRATION = "Yaaaaay! 🎉"

# CloudWatch bakes a locale-dependent timestamp like "(01/01/23 00:00:00)"
# into the reason text.
_AMBIGUOUS_TIMESTAMP = re.compile(r" [(][^)]*[0-9]{2}/[0-9]{2}/[0-9]{2}[^)]*[)]")


class Presentation(NamedTuple):
    emoji: str
    verb: str
    tail: str


def presentation_for_state(state: str, config: AppConfig) -> Presentation:
    if state == "ALARM":
        return Presentation("❌", "triggered", config.call_to_action)
    if state == "OK":
        return Presentation("✅", "resolved", CELEBRATION)
    return Presentation(
        "❔",
        "ambiguous",
        f"Contact {config.maintainer} if this does not resolve in ten minutes or so.",
    )


def strip_ambiguous_timestamp(reason: str) -> str:
    """Removes the first parenthesized dd/dd/dd timestamp from *reason*."""
    return _AMBIGUOUS_TIMESTAMP.sub("", reason, count=1)


def format_timestamp(timestamp: datetime, zone: str) -> str:
    """Renders e.g. '2023-01-01 00:00:00.000 UTC'."""
    local = timestamp.astimezone(ZoneInfo(zone))
    millis = local.microsecond // 1000
    return f"{local:%Y-%m-%d %H:%M:%S}.{millis:03d} {local:%Z}"


def format_timestamps(timestamp: datetime, timezones: tuple[str, ...]) -> list[str]:
    return [format_timestamp(timestamp, zone) for zone in timezones]


def _fenced(title: str, lines: list[str]) -> str:
    body = "".join(f"{line}\n" for line in lines)
    return f"{title}:\n{FENCE}\n{body}{FENCE}"


def notification_from_alarm_event(
    event: AlarmStateChangeEvent, config: AppConfig
) -> str:
    """Returns a chat-friendly notification body for an alarm state change."""
    detail = event.detail
    emoji, verb, tail = presentation_for_state(detail.state.value, config)

    head = f"{emoji} **{detail.alarm_name}** {emoji}"
    intro = f"The `{detail.alarm_name}` alarm is {verb}!"
    description = detail.configuration.description or ""
    reason = _fenced("Reason", [strip_ambiguous_timestamp(detail.state.reason)])
    timestamp = _fenced(
        "Timestamp", format_timestamps(detail.state.timestamp, config.timezones)
    )

    return f"{head}\n{intro} {description}\n\n{reason}\n{timestamp}\n{tail}"


def format_build_link(config: AppConfig) -> str:
    """
    Markdown link to the source tree of the running build. Untagged builds
    also name the branch they came from.
    """
    build = config.build
    text = f"{build.name}:{build.label}"
    link = f"[{text}]({build.homepage}/tree/{build.version})" if build.homepage else text
    if not build.tag:
        link += f" from `{build.branch}`"
    return link


def format_stack(error: BaseException) -> str:
    return "".join(
        traceback.format_exception(type(error), error, error.__traceback__)
    ).rstrip()


def notification_from_error(error: BaseException, config: AppConfig) -> str:
    """Returns a chat-friendly notification body for an error raised by this function."""
    function_name = config.function_name
    head = f"❗ **{function_name}** ❗"
    intro = (
        f"The `{function_name}` lambda running {format_build_link(config)} "
        "just threw the following error:"
    )
    stack = f"{FENCE}\n{format_stack(error)}\n{FENCE}"
    logs = f">> [CloudWatch Logs]({config.log_uri}) <<"
    tail = f"Please contact {config.maintainer} if you see this message."

    return f"{head}\n{intro}\n\n{stack}\n\n{logs}\n\n{tail}"
