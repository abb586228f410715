"""
Input Validation for the Royalty Engine

Validates all input data before processing begins.
Raises a RoyaltyCalculationError subclass (a ValueError) with a clear
message for any constraint violation. Nothing is repaired silently.
"""

from decimal import Decimal

from .errors import InvalidInputError, InvalidOwnershipError, InvalidScheduleError, MissingContractError
from .models import (
    BASIS_NET_REVENUE,
    BASIS_UNITS,
    MODE_LIFETIME,
    ROYALTY_BASES,
    TIER_CALCULATION_MODES,
    AuthorOwnership,
    CalculationInput,
    ContractTerms,
    RateTier,
    SalesAggregate,
)
from .money import HUNDRED, ZERO


class InputValidator:
    """Validates calculation input according to contract rules."""

    def validate(self, input_data: CalculationInput) -> None:
        """
        Run all validations. Raises if any check fails.
        """
        self._validate_period(input_data)
        self._validate_options(input_data)
        self._validate_sales(input_data.sales_aggregates)
        for fmt, tiers in input_data.rate_schedules.items():
            self.validate_schedule(fmt, tiers, input_data.royalty_basis)
        self._validate_ownership(input_data.title_authors)
        self._validate_contracts(input_data.contracts)
        self._validate_contract_coverage(input_data)

    def _validate_period(self, input_data: CalculationInput) -> None:
        period = input_data.period
        if period.start_date > period.end_date:
            raise InvalidInputError(
                f"period start_date {period.start_date} is after end_date {period.end_date}"
            )

    def _validate_options(self, input_data: CalculationInput) -> None:
        if input_data.royalty_basis not in ROYALTY_BASES:
            raise InvalidInputError(
                f"Invalid royalty_basis: {input_data.royalty_basis}. Must be one of {', '.join(ROYALTY_BASES)}"
            )

        if input_data.tier_calculation_mode not in TIER_CALCULATION_MODES:
            raise InvalidInputError(
                f"Invalid tier_calculation_mode: {input_data.tier_calculation_mode}. "
                f"Must be one of {', '.join(TIER_CALCULATION_MODES)}"
            )

        if input_data.lifetime_quantities and input_data.tier_calculation_mode != MODE_LIFETIME:
            raise InvalidInputError("lifetime_quantities are only allowed when tier_calculation_mode='lifetime'")

        for fmt, quantity in input_data.lifetime_quantities.items():
            if quantity < 0:
                raise InvalidInputError(f"lifetime quantity for {fmt} cannot be negative, got: {quantity}")

        if input_data.returns_reserve < 0:
            raise InvalidInputError(f"returns_reserve cannot be negative, got: {input_data.returns_reserve}")

    def _validate_sales(self, sales: tuple[SalesAggregate, ...]) -> None:
        seen = set()
        for aggregate in sales:
            if not aggregate.format:
                raise InvalidInputError("sales format cannot be empty")
            if aggregate.format in seen:
                raise InvalidInputError(f"Duplicate sales aggregate for format: {aggregate.format}")
            seen.add(aggregate.format)

            for name in ("gross_quantity", "returns_quantity", "gross_revenue", "returns_amount"):
                value = getattr(aggregate, name)
                if value < 0:
                    raise InvalidInputError(f"{aggregate.format}.{name} cannot be negative, got: {value}")

    def validate_schedule(self, fmt: str, tiers: tuple[RateTier, ...], basis: str = BASIS_UNITS) -> None:
        """
        A schedule must start at 0, be gapless and non-overlapping, and
        only its last tier may be unbounded. An empty schedule is valid and
        earns nothing.

        Under the units basis a rate is an amount per unit and may exceed 1;
        under the net_revenue basis it is a fraction of revenue in [0, 1].
        """
        ordered = sorted(tiers, key=lambda t: t.min_quantity)

        for i, tier in enumerate(ordered):
            if tier.rate < 0:
                raise InvalidScheduleError(f"{fmt} tier {i} rate cannot be negative, got: {tier.rate}")
            if basis == BASIS_NET_REVENUE and tier.rate > 1:
                raise InvalidScheduleError(
                    f"{fmt} tier {i} rate must be between 0 and 1 for the net_revenue basis, got: {tier.rate}"
                )
            if tier.max_quantity is not None and tier.max_quantity <= tier.min_quantity:
                raise InvalidScheduleError(
                    f"{fmt} tier {i} max_quantity ({tier.max_quantity}) must be greater than "
                    f"min_quantity ({tier.min_quantity})"
                )

        if not ordered:
            return

        if ordered[0].min_quantity != 0:
            raise InvalidScheduleError(f"{fmt} schedule must start at 0, starts at {ordered[0].min_quantity}")

        for previous, current in zip(ordered, ordered[1:]):
            if previous.max_quantity is None:
                raise InvalidScheduleError(
                    f"{fmt} schedule has an unbounded tier at {previous.min_quantity} that is not the last tier"
                )
            if current.min_quantity < previous.max_quantity:
                raise InvalidScheduleError(
                    f"{fmt} tiers overlap: [{previous.min_quantity}, {previous.max_quantity}) "
                    f"and [{current.min_quantity}, ...)"
                )
            if current.min_quantity > previous.max_quantity:
                raise InvalidScheduleError(
                    f"{fmt} schedule has a gap between {previous.max_quantity} and {current.min_quantity}"
                )

    def _validate_ownership(self, authors: tuple[AuthorOwnership, ...]) -> None:
        """Ownership must add up to exactly 100%; anything else is rejected."""
        if not authors:
            return

        seen = set()
        for author in authors:
            if author.contact_id in seen:
                raise InvalidOwnershipError(f"Duplicate title author: {author.contact_id}")
            seen.add(author.contact_id)

            pct = author.ownership_percentage
            if not (ZERO < pct <= HUNDRED):
                raise InvalidOwnershipError(
                    f"ownership_percentage for {author.contact_id} must be greater than 0 and at most 100, got: {pct}"
                )
            if pct != pct.quantize(Decimal("0.01")):
                raise InvalidOwnershipError(
                    f"ownership_percentage for {author.contact_id} allows at most 2 decimal places, got: {pct}"
                )

        total = sum((a.ownership_percentage for a in authors), ZERO)
        if total != HUNDRED:
            raise InvalidOwnershipError(f"Ownership percentages must sum to 100, got: {total}")

    def _validate_contracts(self, contracts: dict[str, ContractTerms]) -> None:
        for contact_id, terms in contracts.items():
            for name in ("advance_amount", "advance_paid", "advance_recouped"):
                value = getattr(terms, name)
                if value < 0:
                    raise InvalidInputError(f"{name} for {contact_id} cannot be negative, got: {value}")

    def _validate_contract_coverage(self, input_data: CalculationInput) -> None:
        """Every title author needs contract terms; failure is all-or-nothing."""
        missing = [a.contact_id for a in input_data.title_authors if a.contact_id not in input_data.contracts]
        if missing:
            raise MissingContractError(
                f"Cannot calculate royalty: {len(missing)} author(s) lack contracts: {', '.join(missing)}",
                contact_ids=missing,
            )
