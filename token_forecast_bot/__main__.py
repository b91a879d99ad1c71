"""Run the bot with ``python -m token_forecast_bot``."""

from .engine import main

main()
