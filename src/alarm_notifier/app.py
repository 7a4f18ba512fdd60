"""
The Lambda Adapter & Orchestrator for the Alarm Notifier service.

This module is the main entry point for the AWS Lambda function. It is
responsible for:
1.  Initializing AWS Lambda Powertools (Logger, Tracer and Metrics).
2.  Loading configuration inside the failure boundary, so that a missing
    environment variable is reported like any other failure.
3.  Invoking the core business logic (`process_event`) that validates,
    formats and republishes a CloudWatch alarm notification.
4.  Catching every failure, returning a well-formed 500 response and, when
    enabled, reporting the failure to the error topic on a best-effort basis.
"""

import os

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from .clients import get_sns_client
from .config import AppConfig, get_config
from .core import process_event
from .exceptions import get_error_context
from .formatting import notification_from_error
from .schemas import HandlerResult, SnsEventDict

# --- Global & Reusable Components ---
SERVICE_NAME = os.getenv("POWERTOOLS_SERVICE_NAME", "alarm-notifier")

logger = Logger(service=SERVICE_NAME)
tracer = Tracer(service=SERVICE_NAME)
metrics = Metrics(namespace="AlarmNotifier", service=SERVICE_NAME)


def _report_error(error: Exception, config: AppConfig | None) -> None:
    """
    Publishes a runtime error notification to the error topic. Failures here
    are logged and never re-raised. When the configuration itself failed to
    load, whatever the environment still provides is used.
    """
    try:
        if config is None:
            config = AppConfig.load_for_error_report()
        if not config.notify_on_error:
            logger.debug("Runtime error notifications are disabled.")
            return

        error_topic_arn = config.require_error_topic_arn()
        notification = notification_from_error(error, config)
        subject = f"{config.maintainer} - {config.function_name} Runtime Error"
        get_sns_client(config.error_sns_region).publish(
            notification, subject, error_topic_arn
        )
        metrics.add_metric(
            name="ErrorNotificationsPublished", unit=MetricUnit.Count, value=1
        )
    except Exception as e:
        metrics.add_metric(
            name="ErrorNotificationFailures", unit=MetricUnit.Count, value=1
        )
        logger.exception(
            f"ERROR: {e}", extra={"error_details": get_error_context(e)}
        )


@logger.inject_lambda_context()
@tracer.capture_lambda_handler
@metrics.log_metrics(capture_cold_start_metric=True)
def handler(event: SnsEventDict, context: LambdaContext) -> HandlerResult:
    """Main Lambda handler for SNS-delivered CloudWatch alarm events."""
    result: HandlerResult = {"statusCode": 500, "body": "FATAL: Unknown error!"}
    config: AppConfig | None = None

    try:
        config = get_config()
        logger.setLevel(config.log_level)
        logger.info("Received event", extra={"event": event})

        result["body"] = process_event(
            event, config, get_sns_client(config.sns_region)
        )
        result["statusCode"] = 200
        metrics.add_metric(
            name="AlarmNotificationsPublished", unit=MetricUnit.Count, value=1
        )

    except Exception as e:
        result["body"] = f"{type(e).__name__}: {e}"
        metrics.add_metric(name="InvocationFailures", unit=MetricUnit.Count, value=1)
        logger.exception(f"FATAL: {e}", extra={"error_details": get_error_context(e)})
        _report_error(e, config)

    return result
