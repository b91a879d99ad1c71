"""
Conversation state machine module.

Tracks, per conversation, which selection step is pending and drives the
IDLE → AWAITING_DATE → IDLE round trip.
"""
