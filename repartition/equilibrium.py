"""
Equilibrium Check

Re-verifies a distribution from its own fields: the distributed total must
match the payment amount within tolerance, and every level of the split
must add up to the base it was taken from.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from .models import INSTITUTIONAL_TIERS, LINE_BACKED_TIERS, BeneficiaryLine, RepartitionResult

logger = logging.getLogger(__name__)


@dataclass
class EquilibriumReport:
    """Outcome of re-verifying a distribution."""

    total_reparti: Decimal
    ecart: Decimal
    tolerance: Decimal
    equilibre: bool
    issues: list[str] = field(default_factory=list)

    @property
    def is_coherent(self) -> bool:
        return self.equilibre and not self.issues


class EquilibriumChecker:
    """Computes and audits the distributed total of a result."""

    @staticmethod
    def total_for(institutional_amounts: Iterable[Decimal], lines: Iterable[BeneficiaryLine]) -> Decimal:
        """
        Total reparti = institutional tiers + every beneficiary line.

        Line-backed tiers (indicator, DD, DG, chiefs, seizers) are counted
        through their lines only, never twice.
        """
        total = sum(institutional_amounts, Decimal("0"))
        return total + sum((line.amount for line in lines), Decimal("0"))

    def check(self, result: RepartitionResult) -> EquilibriumReport:
        total = self.total_for((result.tier_amount(t) for t in INSTITUTIONAL_TIERS), result.lines)
        ecart = result.produit_disponible - total
        equilibre = abs(ecart) <= result.tolerance

        issues = self._coherence_issues(result)
        if total != result.total_reparti:
            issues.append(f"stored total_reparti {result.total_reparti} != recomputed {total}")
        if equilibre != result.equilibre:
            issues.append(f"stored equilibre {result.equilibre} != recomputed {equilibre}")

        if not equilibre:
            logger.warning(
                f"Payment {result.payment_id}: distribution of {result.produit_disponible} "
                f"does not balance (total {total}, ecart {ecart})"
            )
        for issue in issues:
            logger.warning(f"Payment {result.payment_id}: {issue}")

        return EquilibriumReport(
            total_reparti=total,
            ecart=ecart,
            tolerance=result.tolerance,
            equilibre=equilibre,
            issues=issues,
        )

    def _coherence_issues(self, result: RepartitionResult) -> list[str]:
        issues = []

        levels = [
            ("indicator", result.part_indicateur + result.produit_net, result.produit_disponible),
            (
                "level 1",
                result.part_flcf + result.part_tresor + result.produit_net_ayants_droits,
                result.produit_net,
            ),
            ("permanent", result.part_dd + result.part_dg + result.pool_restant, result.produit_net_ayants_droits),
            (
                "pools",
                result.part_chefs
                + result.part_saisissants
                + result.part_mutuelle
                + result.part_masse_commune
                + result.part_interessement,
                result.pool_restant,
            ),
        ]
        for name, computed, expected in levels:
            if computed != expected:
                issues.append(f"{name} sum {computed} != {expected}")

        for tier in LINE_BACKED_TIERS:
            lines_total = sum((line.amount for line in result.lines_for(tier)), Decimal("0"))
            if lines_total != result.tier_amount(tier):
                issues.append(f"{tier.value} lines sum {lines_total} != part {result.tier_amount(tier)}")

        return issues
