# src/alarm_notifier/clients.py

"""
Client wrapper for publishing notifications to Amazon SNS.

The wrapper keeps the orchestration code free of boto3 details and maps
botocore failures onto the service's own `PublishError`.
"""

import logging
from functools import lru_cache
from typing import TYPE_CHECKING, Any

import boto3
from botocore.exceptions import (
    ClientError,
    EndpointConnectionError,
    ParamValidationError,
    ReadTimeoutError,
)

from .exceptions import PublishError

if TYPE_CHECKING:
    from mypy_boto3_sns.client import SNSClient as SNSClientType

logger = logging.getLogger(__name__)

# SNS rejects subjects longer than this.
MAX_SUBJECT_LENGTH = 100


class SnsClient:
    """
    A wrapper for SNS client operations. Every publish names its topic
    explicitly; there is no default destination.
    """

    def __init__(self, sns_client: "SNSClientType"):
        """
        Initializes the SnsClient.

        Args:
            sns_client: A typed boto3 SNS client.
        """
        self._client = sns_client

    def publish(self, message: str, subject: str, topic_arn: str) -> dict[str, Any]:
        """
        Publishes *message* to *topic_arn* and returns the raw SNS response.
        Raises PublishError on any transport, authorization or parameter failure.
        """
        if len(subject) > MAX_SUBJECT_LENGTH:
            logger.warning(
                "Truncating SNS subject",
                extra={"subject": subject, "max_length": MAX_SUBJECT_LENGTH},
            )
            subject = subject[:MAX_SUBJECT_LENGTH]

        logger.info("Sending message to SNS...", extra={"topic_arn": topic_arn})
        try:
            response = self._client.publish(
                TopicArn=topic_arn, Subject=subject, Message=message
            )
        except ClientError as e:
            error_code = e.response["Error"]["Code"]
            error_message = e.response["Error"]["Message"]
            raise PublishError(
                topic_arn,
                error_message,
                context={
                    "aws_error_code": error_code,
                    "aws_error_message": error_message,
                },
            ) from e
        except ParamValidationError as e:
            raise PublishError(
                topic_arn,
                "invalid publish parameters",
                context={"validation_error": str(e)},
            ) from e
        except ReadTimeoutError as e:
            raise PublishError(
                topic_arn, "SNS read timeout", context={"timeout_error": str(e)}
            ) from e
        except EndpointConnectionError as e:
            raise PublishError(
                topic_arn,
                "SNS endpoint connection error",
                context={"connection_error": str(e)},
            ) from e

        logger.info(
            "SNS message sent.",
            extra={"topic_arn": topic_arn, "message_id": response.get("MessageId")},
        )
        return dict(response)


@lru_cache(maxsize=None)
def get_sns_client(region: str) -> SnsClient:
    """Builds one SnsClient per region and reuses it across warm invocations."""
    logger.debug("Creating SNS client", extra={"region": region})
    return SnsClient(sns_client=boto3.client("sns", region_name=region or None))
