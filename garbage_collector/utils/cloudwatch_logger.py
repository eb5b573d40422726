"""CloudWatch sink for garbage collector telemetry."""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

import boto3
from botocore.exceptions import ClientError

from ..config import Settings

# Record attributes copied into the structured CloudWatch payload
STRUCTURED_FIELDS = (
    "event",
    "correlation_id",
    "collector",
    "resource_id",
    "batch_index",
    "batch_count",
    "total_count",
    "duration_ms",
    "error_type",
)


class CloudWatchHandler(logging.Handler):
    """Logging handler that ships structured telemetry records to CloudWatch."""

    def __init__(
        self,
        log_group: str,
        log_stream: str,
        region: str = "us-east-1",
    ):
        """
        Initialize CloudWatch logging handler.

        Args:
            log_group: CloudWatch log group name
            log_stream: CloudWatch log stream name
            region: AWS region for CloudWatch
        """
        super().__init__()
        self.log_group = log_group
        self.log_stream = log_stream
        self.region = region
        self.client = boto3.client("logs", region_name=region)
        self._ensure_log_group_and_stream()

    def _ensure_log_group_and_stream(self) -> None:
        """Create log group and stream if they don't exist."""
        try:
            try:
                self.client.create_log_group(logGroupName=self.log_group)
            except ClientError as e:
                if e.response["Error"]["Code"] != "ResourceAlreadyExistsException":
                    raise

            try:
                self.client.create_log_stream(
                    logGroupName=self.log_group,
                    logStreamName=self.log_stream,
                )
            except ClientError as e:
                if e.response["Error"]["Code"] != "ResourceAlreadyExistsException":
                    raise
        except Exception as e:
            print(f"Failed to setup CloudWatch logging: {e}", file=sys.stderr)

    def build_payload(self, record: logging.LogRecord) -> str:
        """Render a record as a JSON document with its telemetry fields."""
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": self.format(record),
        }
        for field in STRUCTURED_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value
        return json.dumps(payload, default=str)

    def emit(self, record: logging.LogRecord) -> None:
        """
        Emit a log record to CloudWatch.

        Args:
            record: The log record to emit
        """
        try:
            self.client.put_log_events(
                logGroupName=self.log_group,
                logStreamName=self.log_stream,
                logEvents=[
                    {
                        "message": self.build_payload(record),
                        "timestamp": int(record.created * 1000),
                    }
                ],
            )
        except Exception as e:
            # Logging must never break a collection pass
            print(f"Failed to send log to CloudWatch: {e}", file=sys.stderr)


def configure_cloudwatch_logging(settings: Settings) -> Optional[CloudWatchHandler]:
    """
    Attach a CloudWatch handler to the root logger when enabled.

    Args:
        settings: Application settings; CloudWatch is used only when
                  ``cloudwatch_enabled`` is set

    Returns:
        The installed handler, or None when disabled or setup failed
    """
    if not settings.cloudwatch_enabled:
        return None

    log_stream = settings.cloudwatch_log_stream or (
        f"{settings.environment}-{datetime.now(timezone.utc):%Y-%m-%d}"
    )

    try:
        handler = CloudWatchHandler(
            log_group=settings.cloudwatch_log_group,
            log_stream=log_stream,
            region=settings.aws_region,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        logging.getLogger().addHandler(handler)

        logging.getLogger(__name__).info(
            f"CloudWatch logging configured: group={settings.cloudwatch_log_group}, "
            f"stream={log_stream}"
        )
        return handler
    except Exception as e:
        print(f"Failed to configure CloudWatch logging: {e}", file=sys.stderr)
        return None
