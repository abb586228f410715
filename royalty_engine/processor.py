"""
Royalty Processor - Main Orchestrator

Coordinates the royalty calculation pipeline through discrete, testable
steps. The pipeline is a pure function of its input: it reads no storage,
writes no state and gives identical results for identical input, which is
what makes the statement "dry run" preview safe.
"""

import json
import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, Mapping

from .calculators import (
    AdvanceRecoupmentEngine,
    FormatRoyaltyCalculator,
    OwnershipSplitEngine,
    TieredRateApplicator,
    TitleRoyaltyAggregator,
)
from .errors import MissingContractError
from .models import (
    BASIS_UNITS,
    MODE_LIFETIME,
    MODE_PERIOD,
    AuthorOwnership,
    AuthorSplitBreakdown,
    CalculationInput,
    ContractTerms,
    FormatCalculation,
    ProcessingContext,
    RateTier,
    RoyaltyCalculation,
    SalesAggregate,
    StatementPeriod,
)
from .money import ZERO, quantize_money, sum_money
from .output import OutputBuilder
from .validators import InputValidator

logger = logging.getLogger(__name__)


class RoyaltyProcessor:
    """
    Main orchestrator for royalty calculations.

    Implements a clear pipeline pattern:
    1. Validate Input
    2. Build Context (resolve authors and contracts)
    3. Calculate Format Royalties
    4. Aggregate Title Royalty
    5. Apply Returns Reserve
    6. Split By Ownership (multi-author titles only)
    7. Recoup Advances
    8. Assemble Result
    """

    def __init__(self):
        self.validator = InputValidator()
        self.format_calculator = FormatRoyaltyCalculator(TieredRateApplicator())
        self.title_aggregator = TitleRoyaltyAggregator()
        self.split_engine = OwnershipSplitEngine()
        self.recoupment_engine = AdvanceRecoupmentEngine()
        self.output_builder = OutputBuilder()

    def process(self, input_data: CalculationInput) -> RoyaltyCalculation:
        """
        Run a calculation through the complete pipeline.

        Args:
            input_data: CalculationInput with parsed Decimal values

        Returns:
            RoyaltyCalculation with every breakdown and the recoupment delta
        """
        # Step 1: Validate
        self.validator.validate(input_data)

        # Step 2: Build initial context
        ctx = self._build_context(input_data)

        # Step 3: Per-format royalties
        ctx.format_calculations = self._calculate_formats(input_data)

        # Step 4: Title total
        ctx.title_total_royalty = self.title_aggregator.aggregate(ctx.format_calculations)

        # Step 5: Returns reserve
        ctx.returns_deduction = quantize_money(min(input_data.returns_reserve, ctx.title_total_royalty))
        ctx.distributable_royalty = ctx.title_total_royalty - ctx.returns_deduction

        # Steps 6-7: Split and recoup
        if ctx.is_split:
            ctx.splits = self.split_engine.split(ctx.distributable_royalty, ctx.authors)
            ctx.author_splits = self._recoup_per_author(ctx)
        else:
            terms = input_data.contracts[ctx.author_id]
            ctx.single_author_recoupment = self.recoupment_engine.apply(ctx.distributable_royalty, terms)

        logger.debug(
            "Calculated title %s for %s: total=%s split=%s",
            input_data.title_id, ctx.author_id, ctx.title_total_royalty, ctx.is_split,
        )

        # Step 8: Assemble
        return self._build_result(ctx)

    def process_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Calculate from raw dictionary input.

        Convenience method for API usage.
        """
        calculation = self.process(CalculationInput.from_dict(data))
        return self.output_builder.build(calculation)

    def preview_statements_from_dict(self, data: Dict[str, Any]) -> list[dict]:
        """Build per-author statement calculations without persisting anything."""
        calculation = self.process(CalculationInput.from_dict(data))
        return self.output_builder.build_statements(calculation)

    def _build_context(self, input_data: CalculationInput) -> ProcessingContext:
        """Resolve the reporting author, their contract and the split set."""
        authors = input_data.title_authors

        if authors:
            primary = next((a for a in authors if a.is_primary), authors[0])
            author_id = primary.contact_id
            contract_id = primary.contract_id or input_data.contracts[author_id].contract_id
        else:
            author_id = self._resolve_single_author(input_data)
            contract_id = input_data.contracts[author_id].contract_id

        return ProcessingContext(
            input=input_data,
            author_id=author_id,
            contract_id=contract_id,
            authors=authors,
        )

    def _resolve_single_author(self, input_data: CalculationInput) -> str:
        """
        Without title authors the author is author_id, or else the only
        contract supplied.
        """
        contracts = input_data.contracts
        if input_data.author_id is not None:
            if input_data.author_id not in contracts:
                raise MissingContractError(
                    f"No contract found for author {input_data.author_id}",
                    contact_ids=[input_data.author_id],
                )
            return input_data.author_id

        if len(contracts) == 1:
            return next(iter(contracts))

        if not contracts:
            raise MissingContractError("No contract supplied for the title")
        raise MissingContractError(
            f"{len(contracts)} contracts supplied without title_authors or author_id; cannot pick the author"
        )

    def _calculate_formats(self, input_data: CalculationInput) -> tuple[FormatCalculation, ...]:
        """
        Calculate every format that has sales, returns or a rate schedule.

        Order is first-seen: sales formats first, then schedule-only formats.
        """
        sales_by_format = {s.format: s for s in input_data.sales_aggregates}
        formats = list(sales_by_format)
        formats += [f for f in input_data.rate_schedules if f not in sales_by_format]

        calculations = []
        for fmt in formats:
            aggregate = sales_by_format.get(fmt)
            tiers = input_data.rate_schedules.get(fmt, ())

            if aggregate is not None and not tiers and aggregate.gross_quantity > aggregate.returns_quantity:
                logger.warning("No rate schedule for format %s; its sales earn no royalty", fmt)

            start_position = 0
            if input_data.tier_calculation_mode == MODE_LIFETIME:
                start_position = input_data.lifetime_quantities.get(fmt, 0)

            calculations.append(self.format_calculator.calculate(
                fmt,
                aggregate,
                tiers,
                start_position=start_position,
                basis=input_data.royalty_basis,
            ))

        return tuple(calculations)

    def _recoup_per_author(self, ctx: ProcessingContext) -> tuple[AuthorSplitBreakdown, ...]:
        """Each co-author recoups against their own contract."""
        contracts = ctx.input.contracts
        breakdowns = []

        for author, split in zip(ctx.authors, ctx.splits):
            terms = contracts[author.contact_id]
            result = self.recoupment_engine.apply(split.split_amount, terms)
            breakdowns.append(AuthorSplitBreakdown(
                contact_id=author.contact_id,
                contract_id=author.contract_id or terms.contract_id,
                ownership_percentage=split.ownership_percentage,
                split_amount=split.split_amount,
                recoupment=result.recoupment,
                net_payable=result.net_payable,
                advance_status=result.advance_status,
            ))

        return tuple(breakdowns)

    def _build_result(self, ctx: ProcessingContext) -> RoyaltyCalculation:
        input_data = ctx.input

        if ctx.is_split:
            recoupment = sum_money(s.recoupment for s in ctx.author_splits)
            net_payable = sum_money(s.net_payable for s in ctx.author_splits)
            advance_status = None
        else:
            single = ctx.single_author_recoupment
            recoupment = single.recoupment
            net_payable = single.net_payable
            advance_status = single.advance_status

        return RoyaltyCalculation(
            period=input_data.period,
            author_id=ctx.author_id,
            contract_id=ctx.contract_id,
            title_id=input_data.title_id,
            format_calculations=ctx.format_calculations,
            total_royalty_earned=ctx.title_total_royalty,
            advance_recoupment=recoupment,
            net_payable=net_payable,
            title_total_royalty=ctx.title_total_royalty,
            is_split_calculation=ctx.is_split,
            author_splits=ctx.author_splits,
            returns_deduction=ctx.returns_deduction,
            distributable_royalty=ctx.distributable_royalty,
            advance_status=advance_status,
        )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def calculate_royalty_for_period(
    period: StatementPeriod,
    sales_aggregates: Iterable[SalesAggregate],
    rate_schedules: Mapping[str, Iterable[RateTier]],
    title_authors: Iterable[AuthorOwnership] = (),
    contracts: Mapping[str, ContractTerms] | None = None,
    *,
    title_id: str | None = None,
    author_id: str | None = None,
    royalty_basis: str = BASIS_UNITS,
    tier_calculation_mode: str = MODE_PERIOD,
    lifetime_quantities: Mapping[str, int] | None = None,
    returns_reserve: Decimal = ZERO,
) -> RoyaltyCalculation:
    """
    Calculate a title's royalty for one statement period.

    Empty or single-element title_authors means a single-author title.
    Contracts are keyed by contact id.
    """
    input_data = CalculationInput(
        period=period,
        sales_aggregates=tuple(sales_aggregates),
        rate_schedules={fmt: tuple(tiers) for fmt, tiers in rate_schedules.items()},
        title_authors=tuple(title_authors),
        contracts=dict(contracts or {}),
        title_id=title_id,
        author_id=author_id,
        royalty_basis=royalty_basis,
        tier_calculation_mode=tier_calculation_mode,
        lifetime_quantities=dict(lifetime_quantities or {}),
        returns_reserve=returns_reserve,
    )
    return RoyaltyProcessor().process(input_data)


def process_calculation_from_dict(input_data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Calculate from a Python dict and return a Python dict.
    """
    processor = RoyaltyProcessor()
    return processor.process_from_dict(input_data)


def process_calculation_from_json(json_input: str) -> str:
    """
    Calculate from a JSON string and return a JSON string.
    Errors are reported in the payload instead of raised.
    """
    try:
        input_data = json.loads(json_input)
        processor = RoyaltyProcessor()
        result = processor.process_from_dict(input_data)
        return json.dumps(result, indent=2)

    except ValueError as e:
        error_response = {"error": str(e), "status": "validation_failed"}
        return json.dumps(error_response, indent=2)

    except Exception as e:
        error_response = {"error": str(e), "status": "failed"}
        return json.dumps(error_response, indent=2)
