"""Default configuration parameters for the token forecast bot."""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional


class RoundingPolicy(str, Enum):
    """How elapsed-day buckets are turned into the interval feature."""
    FRACTIONAL = "fractional"    # round(days / bucket, decimals)
    FLOOR = "floor"              # whole buckets only


@dataclass(frozen=True)
class BaselineParams:
    """Interval normalization parameters tied to the model's training window."""
    baseline_date: date = date(2024, 1, 23)          # Last date the model was trained on
    bucket_days: int = 4                             # Bucket width used at training time
    rounding: RoundingPolicy = RoundingPolicy.FRACTIONAL
    decimals: int = 2                                # Only used by FRACTIONAL


@dataclass(frozen=True)
class RetryParams:
    """Retry parameters for calls to the prediction service."""
    max_retries: int = 3                             # Additional attempts after the first
    base_delay_seconds: float = 0.5
    backoff_factor: float = 2.0
    max_delay_seconds: float = 8.0


@dataclass(frozen=True)
class PredictionServiceParams:
    """Prediction service connection parameters."""
    endpoint_url: str = ""
    signature_name: str = "serving_default"
    timeout_seconds: float = 10.0                    # Per attempt
    user_agent: str = "token-forecast-bot/0.1"


@dataclass(frozen=True)
class ConversationParams:
    """Conversation handling parameters."""
    trigger_command: str = "/command1"
    idle_expiry_seconds: Optional[int] = None        # None disables expiry


@dataclass(frozen=True)
class TransportParams:
    """Chat transport parameters."""
    bot_token: str = ""
    webhook_base_url: Optional[str] = None           # Polling when unset
    webhook_port: int = 8443


@dataclass(frozen=True)
class LoggingParams:
    """Logging parameters."""
    level: str = "INFO"
    format_json: bool = False


@dataclass(frozen=True)
class DefaultConfig:
    """Complete default configuration."""
    baseline: BaselineParams
    retry: RetryParams
    prediction: PredictionServiceParams
    conversation: ConversationParams
    transport: TransportParams
    logging: LoggingParams


def get_default_config() -> DefaultConfig:
    """Get the default configuration instance."""
    return DefaultConfig(
        baseline=BaselineParams(),
        retry=RetryParams(),
        prediction=PredictionServiceParams(),
        conversation=ConversationParams(),
        transport=TransportParams(),
        logging=LoggingParams(),
    )
