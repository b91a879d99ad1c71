"""
Chat transport module.

Outbound interfaces the conversation tracker talks to, and their Telegram
implementations.
"""
