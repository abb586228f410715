"""
Title Royalty Aggregator

Sums per-format royalties into the title total for the period.
"""

from decimal import Decimal

from ..models import FormatCalculation
from ..money import sum_money


class TitleRoyaltyAggregator:
    """Purely additive; no policy lives here."""

    def aggregate(self, format_calculations: tuple[FormatCalculation, ...]) -> Decimal:
        return sum_money(fc.format_royalty for fc in format_calculations)
