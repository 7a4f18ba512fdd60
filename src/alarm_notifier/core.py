# src/alarm_notifier/core.py

"""
Core business logic for turning an SNS-delivered CloudWatch alarm into a
chat notification.

`process_event` walks one invocation through its stages:

    received -> validated -> extracted -> payload validated
             -> formatted -> published

Any stage may raise; the Lambda adapter in `app.py` owns the failure
boundary. Configuration and the SNS client are passed in explicitly.
"""

import json
import logging
from typing import Any, NamedTuple

from .clients import SnsClient
from .config import AppConfig
from .formatting import notification_from_alarm_event
from .schemas import SnsEvent, validate_alarm_event, validate_sns_event

logger = logging.getLogger(__name__)


class ExtractedMessage(NamedTuple):
    payload: Any
    was_json: bool


def parse_sns_message(event: SnsEvent) -> ExtractedMessage:
    """
    Extracts the message of the first SNS record, decoding it as JSON when
    possible. Plain-text messages are returned unchanged rather than raising,
    so they fail payload validation later instead of crashing here.
    """
    logger.debug("Parsing SNS message.")
    raw_message = event.records[0].sns.message
    try:
        extracted = ExtractedMessage(json.loads(raw_message), True)
    except json.JSONDecodeError:
        extracted = ExtractedMessage(raw_message, False)
    logger.info(
        f"Parsed SNS message as {'JSON' if extracted.was_json else 'a string'}.",
        extra={"sns_message": extracted.payload},
    )
    return extracted


def build_subject(maintainer: str, alarm_name: str, state: str) -> str:
    return f"{maintainer} - {alarm_name} {state}"


def process_event(event: Any, config: AppConfig, sns_client: SnsClient) -> str:
    """
    Validates an SNS event, formats the alarm it carries and publishes the
    result to the outbound topic. Returns the pretty-printed publish result:
    the topic, subject and message merged with the SNS response.
    """
    # --- 1. VALIDATE THE ENVELOPE ---
    sns_event = validate_sns_event(event)

    # --- 2. EXTRACT & VALIDATE THE ALARM ---
    extracted = parse_sns_message(sns_event)
    alarm_event = validate_alarm_event(extracted.payload)
    detail = alarm_event.detail

    # --- 3. FORMAT ---
    notification = notification_from_alarm_event(alarm_event, config)
    subject = build_subject(config.maintainer, detail.alarm_name, detail.state.value)
    logger.info(
        "Formatted alarm notification",
        extra={
            "alarm_name": detail.alarm_name,
            "state": detail.state.value,
            "previous_state": detail.previous_state.value,
        },
    )

    # --- 4. PUBLISH ---
    response = sns_client.publish(notification, subject, config.alarm_topic_arn)

    # Echo what was published next to the SNS response for the invocation log.
    published = {
        "TopicArn": config.alarm_topic_arn,
        "Subject": subject,
        "Message": notification,
        **response,
    }
    result = json.dumps(published, indent=4, default=str, ensure_ascii=False)
    logger.info("Done.", extra={"sns_response": response})
    return result
