"""
Integration Test Scenarios for the Royalty Calculation Engine

These tests cover complete, real-world statement periods that validate
end-to-end functionality: sales in, statement figures out.

Run with: python -m pytest tests/test_integration_scenarios.py -v

IMPORTANT: This file has a companion business summary document:
    docs/test_scenarios_business_summary.md

When adding or modifying tests, please update the business summary document
to keep them in sync. The summary provides plain-English explanations of
each test scenario for business stakeholders.
"""

import copy
import json

import pytest

from royalty_engine import RoyaltyProcessor
from royalty_engine.errors import InvalidOwnershipError, InvalidScheduleError, MissingContractError

PHYSICAL_SCHEDULE = [
    {"min_quantity": 0, "max_quantity": 1000, "rate": "0.08"},
    {"min_quantity": 1000, "max_quantity": None, "rate": "0.10"},
]


def _three_format_title():
    """
    A first-half statement for a title sold in print, ebook and audio,
    priced on net revenue with a returns reserve held back.
    """
    return {
        "title_id": "title-042",
        "period": {"start_date": "2025-01-01", "end_date": "2025-06-30"},
        "royalty_basis": "net_revenue",
        "returns_reserve": "245.50",
        "sales": [
            {"format": "physical", "gross_quantity": 1300, "gross_revenue": "32500.00",
             "returns_quantity": 50, "returns_amount": "1250.00"},
            {"format": "ebook", "gross_quantity": 3200, "gross_revenue": "22400.00"},
            {"format": "audiobook", "gross_quantity": 800, "gross_revenue": "9600.00"},
        ],
        "rate_schedules": {
            "physical": PHYSICAL_SCHEDULE,
            "ebook": [{"min_quantity": 0, "max_quantity": None, "rate": "0.25"}],
            "audiobook": [{"min_quantity": 0, "max_quantity": None, "rate": "0.20"}],
        },
        "contracts": {
            "author-1": {
                "contract_id": "contract-1",
                "advance_amount": "10000.00",
                "advance_paid": "10000.00",
                "advance_recouped": "4100.50"
            }
        }
    }


def _co_authored_title(percentages, contracts=None):
    authors = [
        {"contact_id": f"author-{i}", "contract_id": f"contract-{i}", "ownership_percentage": pct}
        for i, pct in enumerate(percentages, start=1)
    ]
    return {
        "title_id": "title-077",
        "period": {"start_date": "2025-07-01", "end_date": "2025-12-31"},
        "sales": [
            {"format": "physical", "gross_quantity": 1250, "gross_revenue": "31250.00"},
        ],
        "rate_schedules": {"physical": PHYSICAL_SCHEDULE},
        "title_authors": authors,
        "contracts": contracts if contracts is not None else {
            a["contact_id"]: {"contract_id": a["contract_id"]} for a in authors
        },
    }


class TestEndToEndStatement:
    """Three formats, returns, a reserve and a partly recouped advance."""

    @pytest.fixture
    def processor(self):
        return RoyaltyProcessor()

    def test_format_royalties(self, processor):
        result = processor.process_from_dict(_three_format_title())
        formats = {fc["format"]: fc["format_royalty"] for fc in result["format_calculations"]}

        assert formats == {"physical": "2625.00", "ebook": "5600.00", "audiobook": "1920.00"}

    def test_physical_tier_split(self, processor):
        """1000/1250 of $31,250 at 8% and 250/1250 at 10%"""
        result = processor.process_from_dict(_three_format_title())
        tiers = result["format_calculations"][0]["tier_breakdowns"]

        assert [t["royalty_amount"] for t in tiers] == ["2000.00", "625.00"]

    def test_gross_royalty(self, processor):
        result = processor.process_from_dict(_three_format_title())

        assert result["title_total_royalty"] == "10145.00"
        assert result["total_royalty_earned"] == "10145.00"

    def test_net_payable(self, processor):
        """10145.00 - 245.50 reserve = 9899.50; 5899.50 recouped; 4000.00 paid"""
        result = processor.process_from_dict(_three_format_title())

        assert result["returns_deduction"] == "245.50"
        assert result["distributable_royalty"] == "9899.50"
        assert result["advance_recoupment"] == "5899.50"
        assert result["net_payable"] == "4000.00"
        assert result["advance_status"]["remaining_after_this_period"] == "0.00"

    def test_statement_preview(self, processor):
        statements = processor.preview_statements_from_dict(_three_format_title())

        assert len(statements) == 1
        statement = statements[0]
        assert statement["contact_id"] == "author-1"
        assert statement["contract_id"] == "contract-1"
        assert statement["gross_royalty"] == "10145.00"
        assert statement["returns_deduction"] == "245.50"
        assert statement["net_payable"] == "4000.00"
        assert statement["advance_recoupment"] == {
            "original_advance": "10000.00",
            "previously_recouped": "4100.50",
            "this_periods_recoupment": "5899.50",
            "remaining_advance": "0.00",
        }
        assert "split_calculation" not in statement

    def test_statement_format_breakdown(self, processor):
        statement = processor.preview_statements_from_dict(_three_format_title())[0]
        physical = statement["format_breakdowns"][0]

        assert physical["total_quantity"] == 1250
        assert physical["total_revenue"] == "31250.00"
        assert physical["tier_breakdowns"][1] == {
            "tier_min_quantity": 1000,
            "tier_max_quantity": None,
            "tier_rate": "0.10",
            "quantity_in_tier": 250,
            "royalty_earned": "625.00",
        }


class TestReturnsNetting:
    """Returns come off before tiers are applied and never go negative."""

    @pytest.fixture
    def processor(self):
        return RoyaltyProcessor()

    def test_full_returns_earn_nothing(self, processor):
        data = _co_authored_title(["100"])
        data["sales"][0].update(returns_quantity=1250, returns_amount="31250.00")

        result = processor.process_from_dict(data)

        assert result["title_total_royalty"] == "0.00"
        assert result["format_calculations"][0]["tier_breakdowns"] == []

    def test_returns_exceed_sales(self, processor):
        data = _co_authored_title(["100"])
        data["sales"][0].update(returns_quantity=2000, returns_amount="50000.00")

        result = processor.process_from_dict(data)

        assert result["format_calculations"][0]["net_sales"]["net_quantity"] == 0
        assert result["title_total_royalty"] == "0.00"
        assert result["net_payable"] == "0.00"


class TestCoAuthorSplits:
    """Every cent of the title royalty lands with exactly one author."""

    @pytest.fixture
    def processor(self):
        return RoyaltyProcessor()

    def test_whole_percent_three_way(self, processor):
        """$105.00 at 33/33/34"""
        result = processor.process_from_dict(_co_authored_title(["33", "33", "34"]))

        assert [s["split_amount"] for s in result["author_splits"]] == ["34.65", "34.65", "35.70"]

    def test_fractional_percent_three_way(self, processor):
        """$105.00 at 33.33/33.33/33.34 rounds to 105.01; one cent comes back off"""
        result = processor.process_from_dict(_co_authored_title(["33.33", "33.33", "33.34"]))
        amounts = [s["split_amount"] for s in result["author_splits"]]

        assert amounts == ["34.99", "35.00", "35.01"]
        assert sum(float(a) for a in amounts) == pytest.approx(105.00)

    def test_each_author_recoups_own_advance(self, processor):
        contracts = {
            "author-1": {"contract_id": "contract-1", "advance_paid": "50.00", "advance_recouped": "0.00"},
            "author-2": {"contract_id": "contract-2", "advance_paid": "10.00", "advance_recouped": "10.00"},
        }
        result = processor.process_from_dict(_co_authored_title(["50", "50"], contracts))
        splits = result["author_splits"]

        assert splits[0]["split_amount"] == "52.50"
        assert splits[0]["recoupment"] == "50.00"
        assert splits[0]["net_payable"] == "2.50"
        assert splits[1]["recoupment"] == "0.00"
        assert splits[1]["net_payable"] == "52.50"
        assert result["net_payable"] == "55.00"

    def test_zero_royalty_period(self, processor):
        data = _co_authored_title(["60", "40"])
        data["sales"] = []

        result = processor.process_from_dict(data)

        assert [s["split_amount"] for s in result["author_splits"]] == ["0.00", "0.00"]
        assert result["net_payable"] == "0.00"

    def test_one_statement_per_co_author(self, processor):
        statements = processor.preview_statements_from_dict(_co_authored_title(["60", "40"]))

        assert [s["contact_id"] for s in statements] == ["author-1", "author-2"]
        assert [s["gross_royalty"] for s in statements] == ["63.00", "42.00"]
        assert statements[0]["split_calculation"] == {
            "is_split_calculation": True,
            "ownership_percentage": "60.00",
            "split_amount": "63.00",
            "title_total_royalty": "105.00",
            "distributable_royalty": "105.00",
        }


class TestLifetimeEscalation:
    """Escalators can count units across the life of the contract."""

    @pytest.fixture
    def processor(self):
        return RoyaltyProcessor()

    def test_first_period_stays_in_base_tier(self, processor):
        data = _co_authored_title(["100"])
        data["tier_calculation_mode"] = "lifetime"
        data["lifetime_quantities"] = {"physical": 0}
        data["sales"][0].update(gross_quantity=800, gross_revenue="20000.00")

        result = processor.process_from_dict(data)
        assert result["title_total_royalty"] == "64.00"

    def test_second_period_continues_tier_position(self, processor):
        """800 sold before, 400 now: 200 @ 8% + 200 @ 10%"""
        data = _co_authored_title(["100"])
        data["tier_calculation_mode"] = "lifetime"
        data["lifetime_quantities"] = {"physical": 800}
        data["sales"][0].update(gross_quantity=400, gross_revenue="10000.00")

        result = processor.process_from_dict(data)
        assert result["title_total_royalty"] == "36.00"

    def test_period_mode_restarts_each_period(self, processor):
        data = _co_authored_title(["100"])
        data["sales"][0].update(gross_quantity=400, gross_revenue="10000.00")

        result = processor.process_from_dict(data)
        assert result["title_total_royalty"] == "32.00"


class TestDryRun:
    """Preview and final calculation see the same figures."""

    @pytest.fixture
    def processor(self):
        return RoyaltyProcessor()

    def test_repeated_calculation_identical(self, processor):
        data = _three_format_title()
        runs = [json.dumps(processor.preview_statements_from_dict(data), sort_keys=True) for _ in range(3)]

        assert runs[0] == runs[1] == runs[2]

    def test_inputs_not_mutated(self, processor):
        data = _co_authored_title(["33.33", "33.33", "33.34"])
        before = copy.deepcopy(data)

        processor.process_from_dict(data)
        processor.preview_statements_from_dict(data)

        assert data == before


class TestInvalidInput:
    """Bad input fails the whole title; nothing partial comes back."""

    @pytest.fixture
    def processor(self):
        return RoyaltyProcessor()

    def test_gapped_schedule_rejected(self, processor):
        data = _three_format_title()
        data["rate_schedules"]["physical"] = [
            {"min_quantity": 0, "max_quantity": 1000, "rate": "0.08"},
            {"min_quantity": 2000, "max_quantity": None, "rate": "0.10"},
        ]

        with pytest.raises(InvalidScheduleError):
            processor.process_from_dict(data)

    def test_ownership_not_100_rejected(self, processor):
        with pytest.raises(InvalidOwnershipError):
            processor.process_from_dict(_co_authored_title(["50", "49"]))

    def test_missing_contract_rejected_atomically(self, processor):
        data = _co_authored_title(["50", "30", "20"])
        del data["contracts"]["author-2"]
        del data["contracts"]["author-3"]

        with pytest.raises(MissingContractError) as exc_info:
            processor.preview_statements_from_dict(data)
        assert exc_info.value.contact_ids == ["author-2", "author-3"]
