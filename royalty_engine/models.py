"""
Domain Models for the Royalty Engine

These dataclasses provide type-safe representations of every input and
result of a royalty calculation. Monetary, rate and percentage values are
Decimal; unit counts are int. Raw input is parsed once, in from_dict.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from .errors import InvalidInputError
from .money import ZERO, to_decimal, to_quantity

BASIS_UNITS = "units"
BASIS_NET_REVENUE = "net_revenue"
ROYALTY_BASES = (BASIS_UNITS, BASIS_NET_REVENUE)

MODE_PERIOD = "period"
MODE_LIFETIME = "lifetime"
TIER_CALCULATION_MODES = (MODE_PERIOD, MODE_LIFETIME)


def _parse_date(value, field_name: str) -> date:
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value), "%Y-%m-%d").date()
    except ValueError:
        raise InvalidInputError(f"{field_name} must be a YYYY-MM-DD date, got: {value!r}") from None


def _require(data: dict, key: str, context: str):
    if not isinstance(data, dict):
        raise InvalidInputError(f"{context} must be an object")
    if key not in data or data[key] is None:
        raise InvalidInputError(f"{context}.{key} is required")
    return data[key]


def _optional_object(data: dict, key: str) -> dict:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise InvalidInputError(f"input.{key} must be an object keyed by id, got {type(value).__name__}")
    return value


def _optional_list(value, context: str) -> list:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise InvalidInputError(f"{context} must be a list, got {type(value).__name__}")
    return value


def _optional_amount(data: dict, key: str):
    # Storage hands these over as DECIMAL strings; only null means zero
    value = data.get(key)
    return "0" if value is None else value


# =============================================================================
# INPUT MODELS
# =============================================================================


@dataclass(frozen=True)
class StatementPeriod:
    """Inclusive calendar range covered by a statement."""

    start_date: date
    end_date: date

    @classmethod
    def from_dict(cls, data: dict) -> "StatementPeriod":
        return cls(
            start_date=_parse_date(_require(data, "start_date", "period"), "period.start_date"),
            end_date=_parse_date(_require(data, "end_date", "period"), "period.end_date"),
        )


@dataclass(frozen=True)
class SalesAggregate:
    """Gross sales and returns for one format over one period."""

    format: str
    gross_quantity: int
    gross_revenue: Decimal
    returns_quantity: int = 0
    returns_amount: Decimal = ZERO

    @classmethod
    def from_dict(cls, data: dict) -> "SalesAggregate":
        fmt = _require(data, "format", "sales")
        return cls(
            format=str(fmt),
            gross_quantity=to_quantity(data.get("gross_quantity", 0), f"{fmt}.gross_quantity"),
            gross_revenue=to_decimal(data.get("gross_revenue", 0), f"{fmt}.gross_revenue"),
            returns_quantity=to_quantity(data.get("returns_quantity", 0), f"{fmt}.returns_quantity"),
            returns_amount=to_decimal(data.get("returns_amount", 0), f"{fmt}.returns_amount"),
        )


@dataclass(frozen=True)
class RateTier:
    """A unit band [min_quantity, max_quantity) paying one rate."""

    min_quantity: int
    max_quantity: int | None  # None = unbounded
    rate: Decimal
    tier_id: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "RateTier":
        lower = _require(data, "min_quantity", "tier")
        upper = data.get("max_quantity")
        return cls(
            min_quantity=to_quantity(lower, "tier.min_quantity"),
            max_quantity=to_quantity(upper, "tier.max_quantity") if upper is not None else None,
            rate=to_decimal(_require(data, "rate", "tier"), "tier.rate"),
            tier_id=data.get("tier_id"),
        )


@dataclass(frozen=True)
class ContractTerms:
    """Advance balances of one author's contract, as of now."""

    advance_amount: Decimal = ZERO
    advance_paid: Decimal = ZERO
    advance_recouped: Decimal = ZERO
    contract_id: str | None = None

    @property
    def remaining_advance(self) -> Decimal:
        return max(ZERO, self.advance_paid - self.advance_recouped)

    @classmethod
    def from_dict(cls, data: dict) -> "ContractTerms":
        if not isinstance(data, dict):
            raise InvalidInputError("contract terms must be an object")
        return cls(
            advance_amount=to_decimal(_optional_amount(data, "advance_amount"), "advance_amount"),
            advance_paid=to_decimal(_optional_amount(data, "advance_paid"), "advance_paid"),
            advance_recouped=to_decimal(_optional_amount(data, "advance_recouped"), "advance_recouped"),
            contract_id=data.get("contract_id"),
        )


@dataclass(frozen=True)
class AuthorOwnership:
    """One co-author's ownership share of a title."""

    contact_id: str
    contract_id: str | None
    ownership_percentage: Decimal
    is_primary: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "AuthorOwnership":
        contact_id = str(_require(data, "contact_id", "title_author"))
        is_primary = data.get("is_primary")
        if is_primary is not None and not isinstance(is_primary, bool):
            raise InvalidInputError(f"{contact_id}.is_primary must be true or false, got: {is_primary!r}")
        return cls(
            contact_id=contact_id,
            contract_id=data.get("contract_id"),
            ownership_percentage=to_decimal(
                _require(data, "ownership_percentage", "title_author"),
                f"{contact_id}.ownership_percentage",
            ),
            is_primary=bool(is_primary),
        )


@dataclass(frozen=True)
class CalculationInput:
    """Complete input for one title's royalty calculation."""

    period: StatementPeriod
    sales_aggregates: tuple[SalesAggregate, ...]
    rate_schedules: dict[str, tuple[RateTier, ...]]
    title_authors: tuple[AuthorOwnership, ...] = ()
    contracts: dict[str, ContractTerms] = field(default_factory=dict)
    title_id: str | None = None
    author_id: str | None = None
    royalty_basis: str = BASIS_UNITS
    tier_calculation_mode: str = MODE_PERIOD
    lifetime_quantities: dict[str, int] = field(default_factory=dict)
    returns_reserve: Decimal = ZERO

    @classmethod
    def from_dict(cls, data: dict) -> "CalculationInput":
        if not isinstance(data, dict):
            raise InvalidInputError("calculation input must be an object")

        schedules = {
            str(fmt): tuple(RateTier.from_dict(t) for t in _optional_list(tiers, f"rate_schedules.{fmt}"))
            for fmt, tiers in _optional_object(data, "rate_schedules").items()
        }
        contracts = {
            str(contact_id): ContractTerms.from_dict(terms)
            for contact_id, terms in _optional_object(data, "contracts").items()
        }
        lifetime = {
            str(fmt): to_quantity(qty, f"lifetime_quantities.{fmt}")
            for fmt, qty in _optional_object(data, "lifetime_quantities").items()
        }
        sales = _optional_list(data.get("sales"), "input.sales")
        authors = _optional_list(data.get("title_authors"), "input.title_authors")
        return cls(
            period=StatementPeriod.from_dict(_require(data, "period", "input")),
            sales_aggregates=tuple(SalesAggregate.from_dict(s) for s in sales),
            rate_schedules=schedules,
            title_authors=tuple(AuthorOwnership.from_dict(a) for a in authors),
            contracts=contracts,
            title_id=data.get("title_id"),
            author_id=data.get("author_id"),
            royalty_basis=data.get("royalty_basis", BASIS_UNITS),
            tier_calculation_mode=data.get("tier_calculation_mode", MODE_PERIOD),
            lifetime_quantities=lifetime,
            returns_reserve=to_decimal(_optional_amount(data, "returns_reserve"), "returns_reserve"),
        )


# =============================================================================
# OUTPUT / RESULT MODELS
# =============================================================================


@dataclass(frozen=True)
class TierBreakdown:
    """Units and royalty allocated to one tier."""

    tier_id: str | None
    min_quantity: int
    max_quantity: int | None
    rate: Decimal
    units_applied: int
    royalty_amount: Decimal


@dataclass(frozen=True)
class NetSales:
    gross_quantity: int
    gross_revenue: Decimal
    returns_quantity: int
    returns_amount: Decimal
    net_quantity: int
    net_revenue: Decimal


@dataclass(frozen=True)
class FormatCalculation:
    format: str
    net_sales: NetSales
    tier_breakdowns: tuple[TierBreakdown, ...]
    format_royalty: Decimal


@dataclass(frozen=True)
class OwnershipSplit:
    contact_id: str
    ownership_percentage: Decimal
    split_amount: Decimal


@dataclass(frozen=True)
class AdvanceStatus:
    total_advance: Decimal
    previously_recouped: Decimal
    remaining_after_this_period: Decimal


@dataclass(frozen=True)
class RecoupmentResult:
    recoupment: Decimal
    net_payable: Decimal
    advance_status: AdvanceStatus


@dataclass(frozen=True)
class AuthorSplitBreakdown:
    """One co-author's share of the title royalty after recoupment."""

    contact_id: str
    contract_id: str | None
    ownership_percentage: Decimal
    split_amount: Decimal
    recoupment: Decimal
    net_payable: Decimal
    advance_status: AdvanceStatus


@dataclass(frozen=True)
class RoyaltyCalculation:
    """Complete result of a royalty calculation for one title and period.

    Single-author titles carry no author_splits and the title total equals
    total_royalty_earned. advance_status is set for single-author titles
    only; split titles report it per author.
    """

    period: StatementPeriod
    author_id: str
    contract_id: str | None
    title_id: str | None
    format_calculations: tuple[FormatCalculation, ...]
    total_royalty_earned: Decimal
    advance_recoupment: Decimal
    net_payable: Decimal
    title_total_royalty: Decimal
    is_split_calculation: bool
    author_splits: tuple[AuthorSplitBreakdown, ...] = ()
    returns_deduction: Decimal = ZERO
    distributable_royalty: Decimal = ZERO
    advance_status: AdvanceStatus | None = None


@dataclass
class ProcessingContext:
    """
    Holds all intermediate state while a calculation runs.
    This is the "bag" that flows through the pipeline.
    """

    # Input (never mutated)
    input: CalculationInput
    author_id: str = ""
    contract_id: str | None = None
    authors: tuple[AuthorOwnership, ...] = ()

    # Step results (populated as we go)
    format_calculations: tuple[FormatCalculation, ...] = ()
    title_total_royalty: Decimal = ZERO
    returns_deduction: Decimal = ZERO
    distributable_royalty: Decimal = ZERO
    splits: tuple[OwnershipSplit, ...] = ()
    author_splits: tuple[AuthorSplitBreakdown, ...] = ()
    single_author_recoupment: RecoupmentResult | None = None

    @property
    def is_split(self) -> bool:
        return len(self.authors) > 1
