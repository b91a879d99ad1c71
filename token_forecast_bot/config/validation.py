"""Configuration validation utilities."""

from dataclasses import dataclass
from datetime import date
from typing import Any
from urllib.parse import urlparse

from .defaults import RoundingPolicy

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_baseline_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate interval normalization parameters."""
        errors = []

        # Validate baseline_date
        if "baseline_date" in params:
            value = params["baseline_date"]
            valid = isinstance(value, date)
            if isinstance(value, str):
                try:
                    date.fromisoformat(value)
                    valid = True
                except ValueError:
                    valid = False
            if not valid:
                errors.append(ValidationError(
                    field="baseline_date",
                    message="Must be a date in YYYY-MM-DD format",
                    value=value
                ))

        # Validate bucket_days
        if "bucket_days" in params:
            value = params["bucket_days"]
            if not _is_int(value) or value <= 0:
                errors.append(ValidationError(
                    field="bucket_days",
                    message="Must be a positive integer",
                    value=value
                ))

        # Validate rounding
        if "rounding" in params:
            value = params["rounding"]
            allowed = [policy.value for policy in RoundingPolicy]
            if value not in allowed:
                errors.append(ValidationError(
                    field="rounding",
                    message=f"Must be one of {allowed}",
                    value=value
                ))

        # Validate decimals
        if "decimals" in params:
            value = params["decimals"]
            if not _is_int(value) or value < 0:
                errors.append(ValidationError(
                    field="decimals",
                    message="Must be a non-negative integer",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_retry_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate retry parameters."""
        errors = []

        if "max_retries" in params:
            value = params["max_retries"]
            if not _is_int(value) or value < 0:
                errors.append(ValidationError(
                    field="max_retries",
                    message="Must be a non-negative integer",
                    value=value
                ))

        for name in ("base_delay_seconds", "max_delay_seconds"):
            if name in params:
                value = params[name]
                if not _is_number(value) or value < 0:
                    errors.append(ValidationError(
                        field=name,
                        message="Must be a non-negative number",
                        value=value
                    ))

        if "backoff_factor" in params:
            value = params["backoff_factor"]
            if not _is_number(value) or value <= 1:
                errors.append(ValidationError(
                    field="backoff_factor",
                    message="Must be a number > 1 so delays increase",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_prediction_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate prediction service parameters."""
        errors = []

        # Empty endpoint is allowed here, the entry point requires it
        if params.get("endpoint_url"):
            value = params["endpoint_url"]
            parsed = urlparse(value) if isinstance(value, str) else None
            if parsed is None or parsed.scheme not in ("http", "https") or not parsed.netloc:
                errors.append(ValidationError(
                    field="endpoint_url",
                    message="Must be an absolute http(s) URL",
                    value=value
                ))

        if "signature_name" in params:
            value = params["signature_name"]
            if not isinstance(value, str) or not value.strip():
                errors.append(ValidationError(
                    field="signature_name",
                    message="Must be a non-empty string",
                    value=value
                ))

        if "timeout_seconds" in params:
            value = params["timeout_seconds"]
            if not _is_number(value) or value <= 0:
                errors.append(ValidationError(
                    field="timeout_seconds",
                    message="Must be a positive number",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_conversation_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate conversation parameters."""
        errors = []

        if "trigger_command" in params:
            value = params["trigger_command"]
            if not isinstance(value, str) or not value.startswith("/") or len(value) < 2:
                errors.append(ValidationError(
                    field="trigger_command",
                    message="Must be a slash command such as /command1",
                    value=value
                ))

        if params.get("idle_expiry_seconds") is not None:
            value = params["idle_expiry_seconds"]
            if not _is_int(value) or value <= 0:
                errors.append(ValidationError(
                    field="idle_expiry_seconds",
                    message="Must be a positive integer or null",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_logging_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate logging parameters."""
        errors = []

        if "level" in params:
            value = params["level"]
            if not isinstance(value, str) or value.upper() not in LOG_LEVELS:
                errors.append(ValidationError(
                    field="level",
                    message=f"Must be one of {list(LOG_LEVELS)}",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate complete configuration."""
        errors = []
        section_validators = {
            "baseline": ConfigValidator.validate_baseline_params,
            "retry": ConfigValidator.validate_retry_params,
            "prediction": ConfigValidator.validate_prediction_params,
            "conversation": ConfigValidator.validate_conversation_params,
            "transport": None,
            "logging": ConfigValidator.validate_logging_params,
        }

        for section, validate in section_validators.items():
            if section not in config:
                continue

            params = config[section]
            if not isinstance(params, dict):
                errors.append(ValidationError(
                    field=section,
                    message="Must be a mapping of settings",
                    value=params
                ))
            elif validate is not None:
                errors.extend(validate(params))

        return errors
