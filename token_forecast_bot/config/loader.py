"""Configuration loader with 3-tier parameter precedence."""

import os
from dataclasses import dataclass, fields, is_dataclass
from datetime import date
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from dotenv import load_dotenv

from ..errors import ConfigurationError
from .defaults import (
    BaselineParams,
    ConversationParams,
    DefaultConfig,
    LoggingParams,
    PredictionServiceParams,
    RetryParams,
    RoundingPolicy,
    TransportParams,
    get_default_config,
)
from .validation import ConfigValidator

# Environment variable -> (section, field, converter)
ENV_OVERRIDES: dict[str, tuple[str, str, Any]] = {
    "TELEGRAM_BOT_TOKEN": ("transport", "bot_token", str),
    "WEBHOOK_BASE_URL": ("transport", "webhook_base_url", str),
    "WEBHOOK_PORT": ("transport", "webhook_port", int),
    "MODEL_API_URL": ("prediction", "endpoint_url", str),
    "SIGNATURE_NAME": ("prediction", "signature_name", str),
    "PREDICTION_TIMEOUT_SECONDS": ("prediction", "timeout_seconds", float),
    "LOG_LEVEL": ("logging", "level", str),
    "LOG_FORMAT_JSON": ("logging", "format_json", lambda v: v.strip().lower() in ("1", "true", "yes", "on")),
}

SECTION_TYPES = {
    "baseline": BaselineParams,
    "retry": RetryParams,
    "prediction": PredictionServiceParams,
    "conversation": ConversationParams,
    "transport": TransportParams,
    "logging": LoggingParams,
}


@dataclass(frozen=True)
class ConfigLoader:
    """Manages configuration loading with 3-tier precedence."""

    config_file: Path
    defaults: DefaultConfig

    @classmethod
    def create(cls, config_file: Optional[Path] = None) -> "ConfigLoader":
        """Create a ConfigLoader instance."""
        if config_file is None:
            env_file = os.environ.get("BOT_CONFIG_FILE")
            if env_file:
                config_file = Path(env_file)
            else:
                config_file = Path(__file__).parent.parent.parent / "config" / "bot.yaml"

        return cls(
            config_file=Path(config_file),
            defaults=get_default_config(),
        )

    def load_file_config(self) -> dict[str, Any]:
        """Load overrides from the YAML config file, if present."""
        if not self.config_file.exists():
            return {}

        with open(self.config_file) as f:
            file_config = yaml.safe_load(f)

        if file_config is None:
            return {}
        if not isinstance(file_config, dict):
            raise ConfigurationError(
                f"Config file must contain a mapping: {self.config_file}",
                setting="config_file",
            )
        return file_config

    def load_env_config(self, environ: Optional[Mapping[str, str]] = None) -> dict[str, Any]:
        """Collect overrides from environment variables (and a .env file)."""
        if environ is None:
            load_dotenv()
            environ = os.environ

        config: dict[str, Any] = {}
        for env_name, (section, field_name, convert) in ENV_OVERRIDES.items():
            raw = environ.get(env_name)
            if raw is None or raw == "":
                continue
            try:
                value = convert(raw)
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid value for {env_name}: {e}",
                    setting=env_name,
                ) from e
            config.setdefault(section, {})[field_name] = value

        return config

    def merge_config(self, environ: Optional[Mapping[str, str]] = None) -> dict[str, Any]:
        """
        Merge configuration with 3-tier precedence.

        Priority order:
        1. Environment variables (highest priority)
        2. YAML config file
        3. Dataclass defaults (lowest priority)
        """
        # Start with defaults
        config = self._dataclass_to_dict(self.defaults)

        # Apply file overrides
        config = self._deep_merge(config, self.load_file_config())

        # Apply environment overrides
        config = self._deep_merge(config, self.load_env_config(environ))

        return config

    def load(self, environ: Optional[Mapping[str, str]] = None) -> DefaultConfig:
        """Merge, validate and build the typed configuration."""
        config = self.merge_config(environ)

        errors = ConfigValidator.validate_config(config)
        if errors:
            error_msgs = [f"{err.field}: {err.message} (got: {err.value!r})" for err in errors]
            raise ConfigurationError(
                "Invalid configuration: " + "; ".join(error_msgs),
                context={"errors": error_msgs},
            )

        return self._dict_to_config(config)

    def _dict_to_config(self, config: dict[str, Any]) -> DefaultConfig:
        """Build typed config sections from a merged dictionary."""
        sections = {}
        for section, section_type in SECTION_TYPES.items():
            values = dict(config.get(section, {}))
            known = {f.name for f in fields(section_type)}
            values = {k: v for k, v in values.items() if k in known}

            if section == "baseline":
                if isinstance(values.get("baseline_date"), str):
                    values["baseline_date"] = date.fromisoformat(values["baseline_date"])
                if "rounding" in values:
                    values["rounding"] = RoundingPolicy(values["rounding"])

            sections[section] = section_type(**values)

        return DefaultConfig(**sections)

    def _dataclass_to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert nested dataclasses to dictionary."""
        if is_dataclass(obj):
            result = {}
            for field in fields(obj):
                value = getattr(obj, field.name)
                if is_dataclass(value):
                    result[field.name] = self._dataclass_to_dict(value)
                elif isinstance(value, RoundingPolicy):
                    result[field.name] = value.value
                else:
                    result[field.name] = value
            return result
        return obj  # type: ignore[no-any-return]

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
