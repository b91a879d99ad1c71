"""
Token Forecast Bot - conversational front-end for a token price model.

Walks a chat user through picking a token and a target date, normalizes the
selection into model features and relays the prediction service's answer.
"""

__version__ = "0.1.0"
__author__ = "Token Forecast Team"
