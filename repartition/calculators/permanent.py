"""
Permanent Beneficiary Calculator

DD and DG receive a share of every distribution, whoever worked the case.
"""

from ..models import DistributionContext, PermanentSplit
from .money import split_with_remainder


class PermanentBeneficiaryCalculator:
    """Calculates part DD, part DG and the pool left for role-dependent shares."""

    def calculate(self, ctx: DistributionContext) -> PermanentSplit:
        rule_set = ctx.rule_set
        (dd, dg), pool_restant = split_with_remainder(
            ctx.institutional.produit_net_ayants_droits,
            [rule_set.dd_rate, rule_set.dg_rate],
            ctx.quantum,
        )
        return PermanentSplit(part_dd=dd, part_dg=dg, pool_restant=pool_restant)
