import json
import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from urllib.parse import quote
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

PACKAGE_NAME = "cloudwatch-alarm-notifier"

DEFAULT_TIMEZONES = ("UTC",)
DEFAULT_MAINTAINER = "the bot maintainer"
DEFAULT_CALL_TO_ACTION = (
    "Please put eyes 👀 on this message if you are investigating this."
)


def _required(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise ConfigurationError(f"{name} is not defined in the environment!")
    logger.info(f'Read "{name}" from the environment as "{value}".')
    return value


def _optional(name: str, default: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        logger.warning(f'NOTICE: "{name}" is not defined in the environment!')
        return default
    logger.info(f'Read "{name}" from the environment as "{value}".')
    return value


def arn_region(arn: str, default: str) -> str:
    """Region field of an ARN, e.g. arn:aws:sns:<region>:<account>:<name>."""
    parts = arn.split(":")
    return parts[3] if len(parts) > 3 and parts[3] else default


def _notify_on_error() -> bool:
    return os.getenv("NOTIFY_ON_ERROR", "true").strip().lower() in (
        "true",
        "1",
        "yes",
        "on",
    )


def _error_topic_arn(notify_on_error: bool) -> str | None:
    """
    A missing error topic is not an error at load time;
    `AppConfig.require_error_topic_arn` raises when it is used.
    """
    value = os.getenv("AWS_SNS_TOPIC_ARN_ERROR", "").strip()
    if not value:
        if notify_on_error:
            logger.warning('NOTICE: "AWS_SNS_TOPIC_ARN_ERROR" is not defined in the environment!')
        return None
    logger.info(f'Read "AWS_SNS_TOPIC_ARN_ERROR" from the environment as "{value}".')
    return value


def _parse_timezones(raw: str | None) -> tuple[str, ...]:
    """
    Parses the TIMEZONE variable, a JSON array of IANA zone names.
    An unset or empty list falls back to UTC.
    """
    if raw is None or not raw.strip() or raw.strip() == "[]":
        logger.warning('NOTICE: "TIMEZONE" is not defined in the environment! Using UTC.')
        return DEFAULT_TIMEZONES

    zones = json.loads(raw)
    if not isinstance(zones, list) or not all(isinstance(z, str) for z in zones):
        raise ValueError("TIMEZONE must be a JSON array of timezone names.")
    if not zones:
        logger.warning('NOTICE: "TIMEZONE" parsed to an empty list! Using UTC.')
        return DEFAULT_TIMEZONES

    for zone in zones:
        try:
            ZoneInfo(zone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"TIMEZONE contains an unknown timezone '{zone}'") from e

    logger.info(f'Read "TIMEZONE" from the environment as "{zones}".')
    return tuple(zones)


@dataclass(frozen=True, slots=True)
class BuildInfo:
    """Identifies the deployed build in runtime error notifications."""

    name: str
    homepage: str
    tag: str
    commit: str
    short_commit: str
    branch: str

    @property
    def version(self) -> str:
        """The release tag if there is one, otherwise the full commit hash."""
        return self.tag or self.commit

    @property
    def label(self) -> str:
        return self.tag or self.short_commit

    @classmethod
    def load_from_env(cls) -> "BuildInfo":
        commit = os.getenv("GIT_COMMIT", "").strip()
        short_commit = os.getenv("GIT_SHORT_COMMIT", "").strip() or commit[:7]
        return cls(
            name=PACKAGE_NAME,
            homepage=os.getenv("PROJECT_HOMEPAGE", "").strip().rstrip("/"),
            tag=os.getenv("GIT_TAG", "").strip(),
            commit=commit or "unknown",
            short_commit=short_commit or "unknown",
            branch=os.getenv("GIT_BRANCH", "").strip() or "unknown",
        )


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration loaded from environment variables."""

    # --- Required Variables ---
    alarm_topic_arn: str

    # --- Error Notification ---
    notify_on_error: bool
    error_topic_arn: str | None

    # --- Optional Variables with Defaults ---
    timezones: tuple[str, ...]
    maintainer: str
    call_to_action: str
    log_level: str

    # --- Lambda Runtime (unvalidated) ---
    function_name: str
    region: str
    log_group_name: str
    log_stream_name: str

    build: BuildInfo

    # --- Derived Properties ---
    @property
    def sns_region(self) -> str:
        """Region of the outbound topic."""
        return arn_region(self.alarm_topic_arn, self.region)

    @property
    def error_sns_region(self) -> str:
        return arn_region(self.error_topic_arn or "", self.sns_region)

    def require_error_topic_arn(self) -> str:
        if not self.error_topic_arn:
            raise ConfigurationError(
                "AWS_SNS_TOPIC_ARN_ERROR is not defined in the environment!"
            )
        return self.error_topic_arn

    @property
    def log_uri(self) -> str:
        log_group = quote(self.log_group_name, safe="")
        log_stream = quote(self.log_stream_name, safe="")
        return (
            f"https://console.aws.amazon.com/cloudwatch/home?region={self.region}"
            f"#logsV2:log-groups/log-group/{log_group}/log-events/{log_stream}"
        )

    @classmethod
    def load_from_env(cls) -> "AppConfig":
        """
        Loads configuration from environment variables, performing validation and type casting.
        Fails fast with a ConfigurationError if anything is invalid.
        """
        try:
            # --- Handle required string variables ---
            alarm_topic_arn = _required("AWS_SNS_TOPIC_ARN")

            notify_on_error = _notify_on_error()
            error_topic_arn = _error_topic_arn(notify_on_error)

            # --- Handle optional variables ---
            timezones = _parse_timezones(os.getenv("TIMEZONE"))
            maintainer = _optional("MAINTAINER", DEFAULT_MAINTAINER)
            call_to_action = _optional("CALL_TO_ACTION_ALARM", DEFAULT_CALL_TO_ACTION)

            log_level = os.getenv("LOG_LEVEL", "INFO").upper()
            allowed_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
            if log_level not in allowed_log_levels:
                raise ValueError(
                    f"LOG_LEVEL must be one of {allowed_log_levels}, not '{log_level}'"
                )

        except (ValueError, TypeError) as e:
            # json.JSONDecodeError is a ValueError
            raise ConfigurationError(
                f"Invalid value for an environment variable: {e}"
            ) from e

        return cls(
            alarm_topic_arn=alarm_topic_arn,
            notify_on_error=notify_on_error,
            error_topic_arn=error_topic_arn,
            timezones=timezones,
            maintainer=maintainer,
            call_to_action=call_to_action,
            log_level=log_level,
            function_name=os.getenv("AWS_LAMBDA_FUNCTION_NAME", ""),
            region=os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION", ""),
            log_group_name=os.getenv("AWS_LAMBDA_LOG_GROUP_NAME", ""),
            log_stream_name=os.getenv("AWS_LAMBDA_LOG_STREAM_NAME", ""),
            build=BuildInfo.load_from_env(),
        )

    @classmethod
    def load_for_error_report(cls) -> "AppConfig":
        """
        Best-effort configuration for reporting a failed `load_from_env`.
        Nothing is required and invalid optional values fall back to defaults.
        """
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        return cls(
            alarm_topic_arn=os.getenv("AWS_SNS_TOPIC_ARN", "").strip(),
            notify_on_error=_notify_on_error(),
            error_topic_arn=os.getenv("AWS_SNS_TOPIC_ARN_ERROR", "").strip() or None,
            timezones=DEFAULT_TIMEZONES,
            maintainer=os.getenv("MAINTAINER", "").strip() or DEFAULT_MAINTAINER,
            call_to_action=os.getenv("CALL_TO_ACTION_ALARM", "").strip()
            or DEFAULT_CALL_TO_ACTION,
            log_level=log_level if log_level in logging.getLevelNamesMapping() else "INFO",
            function_name=os.getenv("AWS_LAMBDA_FUNCTION_NAME", ""),
            region=os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION", ""),
            log_group_name=os.getenv("AWS_LAMBDA_LOG_GROUP_NAME", ""),
            log_stream_name=os.getenv("AWS_LAMBDA_LOG_STREAM_NAME", ""),
            build=BuildInfo.load_from_env(),
        )


# --- Singleton Factory Function (Lazy-loaded and Cached) ---
@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """
    Loads the application configuration from environment variables.
    The result is cached using lru_cache, so the environment is only read once
    on the first successful call. A ConfigurationError is not cached.
    """
    logger.info("Loading application configuration from environment...")
    return AppConfig.load_from_env()
