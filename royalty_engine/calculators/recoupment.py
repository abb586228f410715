"""
Advance Recoupment Engine

Applies one author's earnings against their outstanding advance.
"""

from decimal import Decimal

from ..models import AdvanceStatus, ContractTerms, RecoupmentResult
from ..money import ZERO, quantize_money


class AdvanceRecoupmentEngine:
    """Calculates this period's recoupment without touching contract state."""

    def apply(self, split_amount: Decimal, contract: ContractTerms) -> RecoupmentResult:
        """
        Recoup the advance from an author's earnings.

        remaining   = max(0, advance_paid - advance_recouped)
        recoupment  = min(split_amount, remaining)
        net_payable = split_amount - recoupment

        Only the effect is reported. The caller persists
        advance_recouped += recoupment once the statement is final.
        """
        earned = quantize_money(max(ZERO, split_amount))
        remaining = quantize_money(contract.remaining_advance)

        recoupment = min(earned, remaining)
        net_payable = earned - recoupment

        return RecoupmentResult(
            recoupment=recoupment,
            net_payable=net_payable,
            advance_status=AdvanceStatus(
                total_advance=quantize_money(contract.advance_amount),
                previously_recouped=quantize_money(contract.advance_recouped),
                remaining_after_this_period=remaining - recoupment,
            ),
        )
