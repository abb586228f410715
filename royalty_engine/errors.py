"""
Error Taxonomy for the Royalty Engine

Every error derives from ValueError so callers that already treat
ValueError as "bad input" (the HTTP and Lambda adapters) keep working.
"""


class RoyaltyCalculationError(ValueError):
    """Base class for all engine errors."""


class InvalidInputError(RoyaltyCalculationError):
    """Malformed input: unparseable, negative or non-finite numbers, bad dates."""


class InvalidScheduleError(RoyaltyCalculationError):
    """Rate schedule with gaps, overlaps or out-of-range rates."""


class ScheduleCapacityError(InvalidScheduleError):
    """Units fall beyond the top of a bounded rate schedule."""


class InvalidOwnershipError(RoyaltyCalculationError):
    """Ownership percentages that cannot be split."""


class MissingContractError(RoyaltyCalculationError):
    """One or more authors have no contract terms."""

    def __init__(self, message: str, contact_ids: list[str] | None = None):
        super().__init__(message)
        self.contact_ids = contact_ids or []


class SplitReconciliationError(RoyaltyCalculationError):
    """Rounded splits do not add back up to the total."""
