"""
Request normalization for converting raw selections into prediction requests.

This module resolves the selected symbol against the token catalog, parses the
selected date and quantizes the distance from the model's baseline date into
the interval feature the model was trained with.
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from ..config.defaults import BaselineParams, RoundingPolicy
from ..errors import ClassifiedError, InvalidDateError, InvalidTokenError
from ..utils.dates import calendar_days_between, parse_selection_date
from .catalog import TokenCatalog, default_catalog
from .models import PredictionRequest

logger = structlog.get_logger(__name__)

DEFAULT_SIGNATURE_NAME = "serving_default"


@dataclass
class NormalizationResult:
    """Result of request normalization."""
    # Normalized request (None if invalid)
    request: Optional[PredictionRequest] = None
    # Processing metadata
    success: bool = True
    error: Optional[ClassifiedError] = None

    @classmethod
    def ok(cls, request: PredictionRequest) -> "NormalizationResult":
        """Create successful result with a normalized request."""
        return cls(request=request, success=True)

    @classmethod
    def failed(cls, error: ClassifiedError) -> "NormalizationResult":
        """Create error result."""
        return cls(success=False, error=error)


def compute_interval_count(days_difference: int, params: BaselineParams) -> float:
    """
    Quantize elapsed days into model interval buckets.

    Negative differences are clamped to zero. FRACTIONAL keeps
    ``params.decimals`` decimal places, FLOOR keeps whole buckets only.
    """
    days = max(0, days_difference)

    if params.rounding == RoundingPolicy.FLOOR:
        return days // params.bucket_days

    return round(days / params.bucket_days, params.decimals)


class RequestNormalizer:
    """
    Turns a (symbol, date string) selection into a PredictionRequest.

    Pure: no network access and no conversation state is touched, so a
    failure here guarantees no prediction call is made.
    """

    def __init__(
        self,
        catalog: Optional[TokenCatalog] = None,
        baseline: Optional[BaselineParams] = None,
        signature_name: Optional[str] = None
    ):
        self.catalog = catalog or default_catalog
        self.baseline = baseline or BaselineParams()
        self.signature_name = signature_name or DEFAULT_SIGNATURE_NAME
        self.logger = logger

    def normalize(self, symbol: str, date_string: str) -> NormalizationResult:
        """
        Validate a selection and build the prediction request.

        Args:
            symbol: Selected token symbol (exact, case-sensitive)
            date_string: Selected date, YYYY/MM/DD

        Returns:
            NormalizationResult with the request or an InvalidToken/InvalidDate error
        """
        token_index = self.catalog.lookup(symbol)
        if token_index is None:
            return NormalizationResult.failed(InvalidTokenError(
                f"Unknown token symbol: {symbol!r}",
                symbol=symbol,
                detail=f"symbol {symbol!r} is not in the token catalog"
            ))

        requested_date = parse_selection_date(date_string)
        if requested_date is None:
            return NormalizationResult.failed(InvalidDateError(
                f"Unparseable date: {date_string!r}",
                raw_date=date_string,
                reason=InvalidDateError.UNPARSEABLE,
                detail="expected YYYY/MM/DD"
            ))

        days_difference = calendar_days_between(requested_date, self.baseline.baseline_date)
        if days_difference < 0:
            return NormalizationResult.failed(InvalidDateError(
                f"Date {requested_date.isoformat()} precedes baseline "
                f"{self.baseline.baseline_date.isoformat()}",
                raw_date=date_string,
                reason=InvalidDateError.BEFORE_BASELINE,
                detail=f"{-days_difference} days before baseline"
            ))

        request = PredictionRequest(
            signature_name=self.signature_name,
            interval_count=compute_interval_count(days_difference, self.baseline),
            token_index=token_index,
        )

        self.logger.debug(
            "Normalized prediction request",
            symbol=symbol,
            requested_date=requested_date.isoformat(),
            days_difference=days_difference,
            interval_count=request.interval_count,
            token_index=token_index
        )

        return NormalizationResult.ok(request)
