"""
Tiered Rate Applicator

Allocates a format's net units across its rate tiers and prices each
tier. All math is Decimal; each tier amount is rounded to cents with
ROUND_HALF_UP and the format royalty is the exact sum of those amounts.
"""

from decimal import Decimal

from ..errors import ScheduleCapacityError
from ..models import BASIS_NET_REVENUE, BASIS_UNITS, RateTier, TierBreakdown
from ..money import ZERO, quantize_money, sum_money


class TieredRateApplicator:
    """Applies a progressive rate schedule to a quantity of units."""

    def apply(
        self,
        net_quantity: int,
        tiers: tuple[RateTier, ...],
        start_position: int = 0,
        basis: str = BASIS_UNITS,
        net_revenue: Decimal = ZERO,
    ) -> tuple[tuple[TierBreakdown, ...], Decimal]:
        """
        Allocate units to tiers and return (breakdowns, format_royalty).

        The period's units occupy [start_position, start_position + net_quantity)
        on the lifetime unit axis. Each tier takes its overlap with that
        window, so:
        - period mode (start 0) fills tiers from the bottom up
        - lifetime mode skips tiers already exhausted by earlier periods
        - a period may cross one or more tier boundaries
        - tiers without units are left out of the breakdown
        """
        if net_quantity <= 0 or not tiers:
            return (), ZERO

        window_start = start_position
        window_end = start_position + net_quantity
        allocated = 0
        breakdowns = []

        for tier in sorted(tiers, key=lambda t: t.min_quantity):
            if allocated >= net_quantity:
                break

            lower = max(window_start, tier.min_quantity)
            upper = window_end if tier.max_quantity is None else min(window_end, tier.max_quantity)
            units = upper - lower
            if units <= 0:
                # Tier entirely below (already exhausted) or above the window
                continue

            breakdowns.append(TierBreakdown(
                tier_id=tier.tier_id,
                min_quantity=tier.min_quantity,
                max_quantity=tier.max_quantity,
                rate=tier.rate,
                units_applied=units,
                royalty_amount=self._tier_royalty(units, tier.rate, net_quantity, basis, net_revenue),
            ))
            allocated += units

        if allocated != net_quantity:
            raise ScheduleCapacityError(
                f"{net_quantity - allocated} of {net_quantity} units fall beyond the top of the rate schedule "
                f"(units {window_start}-{window_end}); the last tier must be unbounded or large enough"
            )

        return tuple(breakdowns), sum_money(b.royalty_amount for b in breakdowns)

    def _tier_royalty(
        self,
        units: int,
        rate: Decimal,
        net_quantity: int,
        basis: str,
        net_revenue: Decimal,
    ) -> Decimal:
        """
        Price one tier.

        units:       units x rate
        net_revenue: the tier's unit share of net revenue x rate
        """
        if basis == BASIS_NET_REVENUE:
            return quantize_money(Decimal(units) * net_revenue * rate / Decimal(net_quantity))
        return quantize_money(Decimal(units) * rate)
