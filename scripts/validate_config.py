#!/usr/bin/env python3
"""Configuration validation script."""

import sys
from pathlib import Path

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from token_forecast_bot.config.loader import ConfigLoader
from token_forecast_bot.config.validation import ConfigValidator
from token_forecast_bot.errors import ConfigurationError


def main():
    """Main validation function."""
    config_file = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    loader = ConfigLoader.create(config_file)
    print(f"🔍 Validating forecast bot configuration ({loader.config_file})...")

    try:
        merged = loader.merge_config()
    except ConfigurationError as e:
        print(f"❌ Could not read configuration: {e}")
        sys.exit(1)

    errors = ConfigValidator.validate_config(merged)
    if errors:
        print(f"❌ Found {len(errors)} validation errors:")
        for error in errors:
            print(f"  • {error.field}: {error.message} (value: {error.value!r})")
        sys.exit(1)

    config = loader.load()
    missing = []
    if not config.transport.bot_token:
        missing.append("TELEGRAM_BOT_TOKEN")
    if not config.prediction.endpoint_url:
        missing.append("MODEL_API_URL")

    print(f"📅 Baseline date: {config.baseline.baseline_date.isoformat()} "
          f"(bucket {config.baseline.bucket_days} days, {config.baseline.rounding.value})")
    print(f"🔁 Retries: {config.retry.max_retries} "
          f"(base {config.retry.base_delay_seconds}s, cap {config.retry.max_delay_seconds}s)")
    print(f"📡 Delivery: {'webhook' if config.transport.webhook_base_url else 'polling'}")

    if missing:
        print(f"\n⚠️  Required settings not set: {', '.join(missing)}")
        sys.exit(1)

    print("\n🎉 Configuration is valid!")
    sys.exit(0)


if __name__ == "__main__":
    main()
