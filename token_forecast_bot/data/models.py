"""
Canonical data models for prediction requests and responses.

This module defines immutable data structures exchanged between the request
normalizer, the prediction client and the conversation tracker.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class PredictionRequest:
    """Validated, model-ready prediction request."""
    signature_name: str     # Model serving signature
    interval_count: float   # Buckets elapsed since the baseline date, >= 0
    token_index: int        # Catalog index of the selected token

    def to_payload(self) -> dict[str, Any]:
        """Wire representation expected by the prediction service."""
        return {
            "signature_name": self.signature_name,
            "instances": [self.interval_count, self.token_index],
        }


@dataclass(frozen=True)
class PredictionResponse:
    """Ordered, non-empty sequence of predicted values."""
    predictions: tuple[float, ...]

    @property
    def latest(self) -> float:
        """Last prediction in the sequence."""
        return self.predictions[-1]

    def __len__(self) -> int:
        return len(self.predictions)
