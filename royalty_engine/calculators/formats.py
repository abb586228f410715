"""
Format Royalty Calculator

Nets one format's gross sales against its returns and prices the net
units through the tiered rate schedule.
"""

from ..models import BASIS_UNITS, FormatCalculation, NetSales, RateTier, SalesAggregate
from ..money import ZERO
from .tiers import TieredRateApplicator


class FormatRoyaltyCalculator:
    """Calculates the royalty earned by a single sales format."""

    def __init__(self, tier_applicator: TieredRateApplicator | None = None):
        self.tier_applicator = tier_applicator or TieredRateApplicator()

    def calculate(
        self,
        fmt: str,
        aggregate: SalesAggregate | None,
        tiers: tuple[RateTier, ...],
        start_position: int = 0,
        basis: str = BASIS_UNITS,
    ) -> FormatCalculation:
        """
        Calculate one format's royalty.

        A missing aggregate means the format had no sales this period
        (it still appears because the contract has a schedule for it).
        """
        net_sales = self.calculate_net_sales(aggregate)

        tier_breakdowns, format_royalty = self.tier_applicator.apply(
            net_sales.net_quantity,
            tiers,
            start_position=start_position,
            basis=basis,
            net_revenue=net_sales.net_revenue,
        )

        return FormatCalculation(
            format=fmt,
            net_sales=net_sales,
            tier_breakdowns=tier_breakdowns,
            format_royalty=format_royalty,
        )

    @staticmethod
    def calculate_net_sales(aggregate: SalesAggregate | None) -> NetSales:
        """Net = gross - returns, capped at zero (no negative periods)."""
        if aggregate is None:
            return NetSales(
                gross_quantity=0,
                gross_revenue=ZERO,
                returns_quantity=0,
                returns_amount=ZERO,
                net_quantity=0,
                net_revenue=ZERO,
            )

        return NetSales(
            gross_quantity=aggregate.gross_quantity,
            gross_revenue=aggregate.gross_revenue,
            returns_quantity=aggregate.returns_quantity,
            returns_amount=aggregate.returns_amount,
            net_quantity=max(0, aggregate.gross_quantity - aggregate.returns_quantity),
            net_revenue=max(ZERO, aggregate.gross_revenue - aggregate.returns_amount),
        )
