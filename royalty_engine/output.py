"""
Output Builder

Turns a RoyaltyCalculation into JSON-safe dictionaries: the full
calculation for API responses and the per-author statement calculations
that the statement store persists.

Money is emitted as canonical 2-place strings ("2625.00") rather than
floats, so serialised output is exact and byte-for-byte reproducible.
"""

from decimal import Decimal

from .models import AdvanceStatus, FormatCalculation, RoyaltyCalculation, StatementPeriod, TierBreakdown
from .money import format_money


def _fmt(value: Decimal) -> str:
    """Format a number as currency string for descriptions."""
    return f"${value:,.2f}"


class OutputBuilder:
    """Builds API and statement output."""

    def build(self, calc: RoyaltyCalculation) -> dict:
        """Construct the complete calculation response."""
        return {
            "period": self._build_period(calc.period),
            "title_id": calc.title_id,
            "author_id": calc.author_id,
            "contract_id": calc.contract_id,
            "format_calculations": [self._build_format(fc) for fc in calc.format_calculations],
            "title_total_royalty": format_money(calc.title_total_royalty),
            "total_royalty_earned": format_money(calc.total_royalty_earned),
            "returns_deduction": format_money(calc.returns_deduction),
            "distributable_royalty": format_money(calc.distributable_royalty),
            "advance_recoupment": format_money(calc.advance_recoupment),
            "net_payable": format_money(calc.net_payable),
            "is_split_calculation": calc.is_split_calculation,
            "author_splits": [
                {
                    "contact_id": s.contact_id,
                    "contract_id": s.contract_id,
                    "ownership_percentage": str(s.ownership_percentage),
                    "split_amount": format_money(s.split_amount),
                    "recoupment": format_money(s.recoupment),
                    "net_payable": format_money(s.net_payable),
                    "advance_status": self._build_advance_status(s.advance_status),
                }
                for s in calc.author_splits
            ],
            "advance_status": (
                self._build_advance_status(calc.advance_status) if calc.advance_status else None
            ),
            "summary": self._build_summary(calc),
        }

    def build_statements(self, calc: RoyaltyCalculation) -> list[dict]:
        """
        Build statement calculations, one per author.

        Single-author titles yield one statement for the whole title.
        Split titles yield one statement per co-author showing the title's
        format breakdown, their share and their own advance position.
        """
        period = self._build_period(calc.period)
        format_breakdowns = [self._build_statement_format(fc) for fc in calc.format_calculations]

        if not calc.is_split_calculation:
            return [{
                "contact_id": calc.author_id,
                "contract_id": calc.contract_id,
                "period": period,
                "format_breakdowns": format_breakdowns,
                "returns_deduction": format_money(calc.returns_deduction),
                "gross_royalty": format_money(calc.total_royalty_earned),
                "advance_recoupment": self._build_statement_recoupment(
                    calc.advance_status, calc.advance_recoupment
                ),
                "net_payable": format_money(calc.net_payable),
            }]

        return [
            {
                "contact_id": split.contact_id,
                "contract_id": split.contract_id,
                "period": period,
                "format_breakdowns": format_breakdowns,
                "returns_deduction": format_money(calc.returns_deduction),
                "gross_royalty": format_money(split.split_amount),
                "advance_recoupment": self._build_statement_recoupment(split.advance_status, split.recoupment),
                "net_payable": format_money(split.net_payable),
                "split_calculation": {
                    "is_split_calculation": True,
                    "ownership_percentage": str(split.ownership_percentage),
                    "split_amount": format_money(split.split_amount),
                    "title_total_royalty": format_money(calc.title_total_royalty),
                    "distributable_royalty": format_money(calc.distributable_royalty),
                },
            }
            for split in calc.author_splits
        ]

    def _build_period(self, period: StatementPeriod) -> dict:
        return {
            "start_date": period.start_date.isoformat(),
            "end_date": period.end_date.isoformat(),
        }

    def _build_format(self, fc: FormatCalculation) -> dict:
        net = fc.net_sales
        return {
            "format": fc.format,
            "net_sales": {
                "gross_quantity": net.gross_quantity,
                "gross_revenue": format_money(net.gross_revenue),
                "returns_quantity": net.returns_quantity,
                "returns_amount": format_money(net.returns_amount),
                "net_quantity": net.net_quantity,
                "net_revenue": format_money(net.net_revenue),
            },
            "tier_breakdowns": [self._build_tier(tb) for tb in fc.tier_breakdowns],
            "format_royalty": format_money(fc.format_royalty),
        }

    def _build_tier(self, tb: TierBreakdown) -> dict:
        return {
            "tier_id": tb.tier_id,
            "min_quantity": tb.min_quantity,
            "max_quantity": tb.max_quantity,
            "rate": str(tb.rate),
            "units_applied": tb.units_applied,
            "royalty_amount": format_money(tb.royalty_amount),
        }

    def _build_statement_format(self, fc: FormatCalculation) -> dict:
        return {
            "format": fc.format,
            "total_quantity": fc.net_sales.net_quantity,
            "total_revenue": format_money(fc.net_sales.net_revenue),
            "tier_breakdowns": [
                {
                    "tier_min_quantity": tb.min_quantity,
                    "tier_max_quantity": tb.max_quantity,
                    "tier_rate": str(tb.rate),
                    "quantity_in_tier": tb.units_applied,
                    "royalty_earned": format_money(tb.royalty_amount),
                }
                for tb in fc.tier_breakdowns
            ],
            "format_royalty": format_money(fc.format_royalty),
        }

    def _build_advance_status(self, status: AdvanceStatus) -> dict:
        return {
            "total_advance": format_money(status.total_advance),
            "previously_recouped": format_money(status.previously_recouped),
            "remaining_after_this_period": format_money(status.remaining_after_this_period),
        }

    def _build_statement_recoupment(self, status: AdvanceStatus, recoupment: Decimal) -> dict:
        return {
            "original_advance": format_money(status.total_advance),
            "previously_recouped": format_money(status.previously_recouped),
            "this_periods_recoupment": format_money(recoupment),
            "remaining_advance": format_money(status.remaining_after_this_period),
        }

    def _build_summary(self, calc: RoyaltyCalculation) -> dict:
        """Value and plain-English description for each headline figure."""
        formats = ", ".join(
            f"{fc.format} ({_fmt(fc.format_royalty)})" for fc in calc.format_calculations
        ) or "no formats"

        if calc.is_split_calculation:
            recoupment_desc = (
                f"Sum of each co-author's recoupment against their own advance across "
                f"{len(calc.author_splits)} authors"
            )
        else:
            recoupment_desc = (
                f"min(distributable {_fmt(calc.distributable_royalty)}, remaining advance) = "
                f"{_fmt(calc.advance_recoupment)}"
            )

        return {
            "gross_royalty": {
                "value": format_money(calc.total_royalty_earned),
                "description": f"Sum of format royalties: {formats}",
            },
            "returns_deduction": {
                "value": format_money(calc.returns_deduction),
                "description": (
                    f"Reserve against returns withheld from {_fmt(calc.title_total_royalty)}"
                    if calc.returns_deduction > 0 else "No reserve against returns this period"
                ),
            },
            "advance_recoupment": {
                "value": format_money(calc.advance_recoupment),
                "description": recoupment_desc,
            },
            "net_payable": {
                "value": format_money(calc.net_payable),
                "description": (
                    f"distributable ({_fmt(calc.distributable_royalty)}) - "
                    f"recoupment ({_fmt(calc.advance_recoupment)}) = {_fmt(calc.net_payable)}"
                ),
            },
        }
