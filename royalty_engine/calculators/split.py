"""
Ownership Split Engine

Divides a title's royalty across co-authors by ownership percentage so
that the rounded shares always add back up to the total, to the cent.
"""

from decimal import Decimal

from ..errors import SplitReconciliationError
from ..models import AuthorOwnership, OwnershipSplit
from ..money import CENT, HUNDRED, ZERO, quantize_money, quantize_percentage, sum_money


class OwnershipSplitEngine:
    """Splits a total royalty by ownership percentage."""

    def split(self, total_royalty: Decimal, authors: tuple[AuthorOwnership, ...]) -> tuple[OwnershipSplit, ...]:
        """
        Split total_royalty across authors.

        Rules:
        - total <= 0: every author gets 0.00 (royalty is never negative)
        - otherwise each share is total x pct / 100 rounded half-up to cents
        - rounding drift is then moved one cent at a time (see _reconcile)
        """
        if total_royalty <= 0:
            return tuple(
                OwnershipSplit(
                    contact_id=a.contact_id,
                    ownership_percentage=quantize_percentage(a.ownership_percentage),
                    split_amount=quantize_money(ZERO),
                )
                for a in authors
            )

        total = quantize_money(total_royalty)
        exact = [total * a.ownership_percentage / HUNDRED for a in authors]
        rounded = self._reconcile(total, exact, [quantize_money(e) for e in exact])

        splits = tuple(
            OwnershipSplit(
                contact_id=a.contact_id,
                ownership_percentage=quantize_percentage(a.ownership_percentage),
                split_amount=amount,
            )
            for a, amount in zip(authors, rounded)
        )

        split_sum = sum_money(s.split_amount for s in splits)
        if split_sum != total:
            raise SplitReconciliationError(
                f"Split sum {split_sum} differs from total {total}. Ownership percentages may not sum to 100%."
            )
        return splits

    def _reconcile(self, total: Decimal, exact: list[Decimal], rounded: list[Decimal]) -> list[Decimal]:
        """
        Remove the drift between total and the sum of rounded shares.

        Each rounding moves a share by at most half a cent, so the drift is
        fewer cents than there are authors and no author moves twice.
        - short of the total: a cent goes to the authors rounded down the most
        - over the total: a cent comes off the authors rounded up the most
        Ties go to the earlier author.
        """
        drift = total - sum_money(rounded)
        if drift == 0:
            return rounded

        steps = int(abs(drift) / CENT)
        result = list(rounded)

        if drift > 0:
            order = sorted(range(len(exact)), key=lambda i: (-(exact[i] - rounded[i]), i))
            for i in order[:steps]:
                result[i] += CENT
        else:
            order = sorted(range(len(exact)), key=lambda i: (exact[i] - rounded[i], i))
            for i in order[:steps]:
                result[i] -= CENT

        return result
